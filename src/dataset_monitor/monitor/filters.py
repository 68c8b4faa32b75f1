"""
Data set filter predicates.

A filter decides, before selection, whether a pending data set may be
processed by this monitor. Rejected data sets are skipped, not failed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from dataset_monitor.monitor.types import DataSetManifest, RifFileType

DataSetFilter = Callable[[DataSetManifest], bool]


def accept_all(manifest: DataSetManifest) -> bool:
    return True


def build_data_set_filter(allowed_rif_types: Iterable[RifFileType] | None = None) -> DataSetFilter:
    """
    Build the filter for a set of allowed file types.

    With no types configured every data set passes; otherwise a data set
    passes only when all of its entries have an allowed type.
    """
    if not allowed_rif_types:
        return accept_all

    allowed = frozenset(allowed_rif_types)

    def only_allowed_types(manifest: DataSetManifest) -> bool:
        return all(entry.type in allowed for entry in manifest.entries)

    return only_allowed_types
