"""
Type definitions for data sets, batch-ready events and pass results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Union

from dataset_monitor.monitor.instants import format_instant

if TYPE_CHECKING:
    from dataset_monitor.monitor.files import S3RifFile


class RifFileType(str, Enum):
    """The record categories a data set file can hold."""

    BENEFICIARY = "BENEFICIARY"
    CARRIER = "CARRIER"
    DME = "DME"
    HHA = "HHA"
    HOSPICE = "HOSPICE"
    INPATIENT = "INPATIENT"
    OUTPATIENT = "OUTPATIENT"
    PDE = "PDE"
    SNF = "SNF"

    @classmethod
    def from_name(cls, name: str) -> RifFileType:
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown RIF file type '{name}'. Valid types: {', '.join(t.value for t in cls)}"
            ) from None


@dataclass(frozen=True)
class ManifestEntry:
    """One file declared by a manifest."""

    name: str
    type: RifFileType


@dataclass(frozen=True, eq=False)
class DataSetManifest:
    """
    A data set manifest: the batch timestamp plus its ordered file entries.

    The timestamp alone identifies the data set, so equality and hashing use
    nothing else.
    """

    timestamp: datetime
    entries: tuple[ManifestEntry, ...] = ()
    sequence_id: int = 0

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            raise ValueError("Manifest timestamp must be timezone-aware")
        object.__setattr__(self, "entries", tuple(self.entries))
        seen: set[str] = set()
        for entry in self.entries:
            if entry.name in seen:
                raise ValueError(f"Duplicate manifest entry name: '{entry.name}'")
            seen.add(entry.name)

    @property
    def entry_names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataSetManifest):
            return NotImplemented
        return self.timestamp == other.timestamp

    def __hash__(self) -> int:
        return hash(self.timestamp)

    def __str__(self) -> str:
        names = ", ".join(f"{e.name}:{e.type.value}" for e in self.entries)
        return f"DataSetManifest[timestamp={format_instant(self.timestamp)}, sequenceId={self.sequence_id}, entries=[{names}]]"


@dataclass(frozen=True)
class RifFilesEvent:
    """
    Batch-ready event handed to the downstream loader.

    Files are in manifest order, one handle per entry. The handles belong to
    the loader only for the duration of the handler call.
    """

    timestamp: datetime
    files: tuple[S3RifFile, ...] = field(default_factory=tuple)


# --- Scan results ------------------------------------------------------------


@dataclass(frozen=True)
class NoDataAvailable:
    """Scan outcome: nothing eligible for processing this pass."""

    pending_count: int = 0
    completed_count: int = 0


@dataclass(frozen=True)
class DataSetFound:
    """Scan outcome: the oldest eligible pending data set."""

    manifest: DataSetManifest
    pending_count: int = 0
    completed_count: int = 0


ScanResult = Union[NoDataAvailable, DataSetFound]


# --- Pass results ------------------------------------------------------------


class PassStatus(str, Enum):
    """How one worker pass ended."""

    NO_DATA = "no_data"
    PROCESSED = "processed"
    STORAGE_ERROR = "storage_error"
    PARSE_ERROR = "parse_error"
    HANDLER_ERROR = "handler_error"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class PassResult:
    """Result of ``DataSetMonitorWorker.run_one_pass``."""

    status: PassStatus
    timestamp: datetime | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status in (PassStatus.NO_DATA, PassStatus.PROCESSED)
