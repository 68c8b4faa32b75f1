"""
Typed monitor settings built from the ``monitor:`` config section.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dataset_monitor.config.loader import Config
from dataset_monitor.config.resolver import has_unresolved_placeholder
from dataset_monitor.exceptions import ConfigurationError
from dataset_monitor.monitor.recent import DEFAULT_RECENTLY_PROCESSED_CAPACITY
from dataset_monitor.monitor.types import RifFileType

# Keys forwarded untouched to the S3 connection config
_S3_KEYS = ("region", "endpoint_url", "access_key_id", "secret_access_key", "session_token")


@dataclass(frozen=True)
class MonitorSettings:
    """Validated settings for one data set monitor."""

    bucket: str
    # Extra boto3 client settings: region, endpoint_url, credentials
    s3: dict[str, Any] = field(default_factory=dict)
    # Fixed delay between two passes (seconds)
    scan_interval_s: float = 1.0
    # Delay between two availability polls of one data set (seconds)
    availability_poll_s: float = 1.0
    recently_processed_capacity: int = DEFAULT_RECENTLY_PROCESSED_CAPACITY
    # None admits every data set
    allowed_rif_types: frozenset[RifFileType] | None = None
    handler: str = "log"

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ConfigurationError("monitor.bucket is required")
        if self.scan_interval_s <= 0:
            raise ConfigurationError("monitor.scan_interval_s must be > 0")
        if self.availability_poll_s <= 0:
            raise ConfigurationError("monitor.availability_poll_s must be > 0")
        if self.recently_processed_capacity < 1:
            raise ConfigurationError("monitor.recently_processed_capacity must be >= 1")

    @property
    def connection_config(self) -> dict[str, Any]:
        """Connection config in the shape S3Connection expects."""
        return {"type": "s3", "config": {"bucket": self.bucket, **self.s3}}

    @classmethod
    def from_config(cls, config: Config | dict[str, Any], *, bucket: str | None = None) -> MonitorSettings:
        """
        Build settings from configuration, collecting every problem found.

        Args:
            config: Loaded Config (or its raw data dict)
            bucket: Bucket name that overrides ``monitor.bucket`` (CLI option)

        Raises:
            ConfigurationError: Listing all invalid or missing settings
        """
        data = config.data if isinstance(config, Config) else config
        section = data.get("monitor") or {}
        if not isinstance(section, dict):
            raise ConfigurationError("Configuration 'monitor' must be a dictionary")

        errors: list[str] = []

        bucket_value = bucket or section.get("bucket") or ""
        if not bucket_value or has_unresolved_placeholder(bucket_value):
            errors.append(f"monitor.bucket is required (got {bucket_value!r})")

        scan_interval_s = _number(section, "scan_interval_s", 1.0, errors)
        availability_poll_s = _number(section, "availability_poll_s", 1.0, errors)
        capacity = _integer(section, "recently_processed_capacity", DEFAULT_RECENTLY_PROCESSED_CAPACITY, errors)

        allowed_types = None
        raw_types = section.get("allowed_rif_types")
        if raw_types:
            if isinstance(raw_types, str):
                raw_types = [raw_types]
            try:
                allowed_types = frozenset(RifFileType.from_name(str(name)) for name in raw_types)
            except ValueError as e:
                errors.append(f"monitor.allowed_rif_types: {e}")

        handler = section.get("handler") or "log"
        if not isinstance(handler, str):
            errors.append(f"monitor.handler must be a string, got {type(handler).__name__}")

        s3 = {key: section[key] for key in _S3_KEYS if section.get(key)}

        if errors:
            raise ConfigurationError(
                "Invalid monitor configuration:\n  " + "\n  ".join(errors), details={"errors": errors}
            )

        return cls(
            bucket=str(bucket_value),
            s3=s3,
            scan_interval_s=scan_interval_s,
            availability_poll_s=availability_poll_s,
            recently_processed_capacity=capacity,
            allowed_rif_types=allowed_types,
            handler=handler,
        )


def _number(section: dict[str, Any], key: str, default: float, errors: list[str]) -> float:
    value = section.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        errors.append(f"monitor.{key} must be a number, got {value!r}")
        return default


def _integer(section: dict[str, Any], key: str, default: int, errors: list[str]) -> int:
    value = section.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"monitor.{key} must be an integer, got {value!r}")
        return default
