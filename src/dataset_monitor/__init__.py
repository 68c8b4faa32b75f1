"""
dataset-monitor - Polls S3 for uploaded data sets and feeds them to a loader.

Data sets arrive under ``Incoming/<timestamp>/`` with a ``manifest.xml``
listing their files. The monitor processes them oldest first, one at a time,
then moves them to ``Done/<timestamp>/``.
"""

__version__ = "0.1.0"

from dataset_monitor.exceptions import (
    ConfigurationError,
    DataSetMonitorError,
    HandlerError,
    ManifestParseError,
    StorageError,
    WaitInterruptedError,
)
from dataset_monitor.monitor import (
    DataSetManifest,
    DataSetMonitorWorker,
    ManifestEntry,
    PassResult,
    PassStatus,
    RifFilesEvent,
    RifFileType,
)
from dataset_monitor.service.scheduler import DataSetMonitor
from dataset_monitor.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Monitoring
    "DataSetMonitorWorker",
    "DataSetMonitor",
    "DataSetManifest",
    "ManifestEntry",
    "RifFileType",
    "RifFilesEvent",
    "PassResult",
    "PassStatus",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "DataSetMonitorError",
    "ConfigurationError",
    "StorageError",
    "ManifestParseError",
    "HandlerError",
    "WaitInterruptedError",
]
