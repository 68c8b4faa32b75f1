"""
dataset-monitor exception hierarchy.

All domain-specific exceptions inherit from DataSetMonitorError, so a caller
can catch any monitor failure with a single base class while still handling
the individual failure kinds separately.

Hierarchy::

    DataSetMonitorError
    ├── ConfigurationError      - config loading, parsing, validation
    ├── StorageError            - any failed storage gateway call (fatal, no retry)
    ├── ManifestParseError      - malformed manifest body (fatal)
    ├── HandlerError            - downstream batch handler failed
    └── WaitInterruptedError    - availability wait interrupted/cancelled
"""

from __future__ import annotations


class DataSetMonitorError(Exception):
    """Base exception for all dataset-monitor errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(DataSetMonitorError):
    """Raised when configuration loading, parsing, or validation fails."""


# --- Storage -----------------------------------------------------------------


class StorageError(DataSetMonitorError):
    """Raised when a storage gateway operation fails.

    Storage errors are not retried; they abort the current pass.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        target = f" '{key}'" if key else ""
        super().__init__(f"S3 {operation}{target} failed: {message}", details={"operation": operation, "key": key})
        self.operation = operation
        self.key = key
        if cause is not None:
            self.__cause__ = cause


# --- Manifests ---------------------------------------------------------------


class ManifestParseError(DataSetMonitorError):
    """Raised when a manifest body cannot be deserialized."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        full = f"Invalid manifest '{key}': {message}" if key else f"Invalid manifest: {message}"
        super().__init__(full, details={"key": key})
        self.key = key


# --- Processing --------------------------------------------------------------


class HandlerError(DataSetMonitorError):
    """Raised when the downstream batch handler fails for a data set."""

    def __init__(self, timestamp: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Handler failed for data set '{timestamp}': {message}", details={"timestamp": timestamp})
        self.timestamp = timestamp
        if cause is not None:
            self.__cause__ = cause


class WaitInterruptedError(DataSetMonitorError):
    """Raised when waiting for a data set to finish uploading is interrupted.

    This is not a graceful cancellation path: the pass is abandoned and the
    data set stays pending.
    """

    def __init__(self, timestamp: str) -> None:
        super().__init__(
            f"Interrupted while waiting for data set '{timestamp}' to become available",
            details={"timestamp": timestamp},
        )
        self.timestamp = timestamp
