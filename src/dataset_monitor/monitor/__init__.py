"""
Data set monitoring: manifests, selection, availability, dispatch and relocation.
"""

from dataset_monitor.monitor.files import S3RifFile
from dataset_monitor.monitor.filters import DataSetFilter, accept_all, build_data_set_filter
from dataset_monitor.monitor.handlers import BatchHandler, LoggingBatchHandler, resolve_handler
from dataset_monitor.monitor.instants import format_instant, parse_instant
from dataset_monitor.monitor.manifest import parse_manifest, serialize_manifest
from dataset_monitor.monitor.recent import RecentlyProcessed
from dataset_monitor.monitor.types import (
    DataSetFound,
    DataSetManifest,
    ManifestEntry,
    NoDataAvailable,
    PassResult,
    PassStatus,
    RifFilesEvent,
    RifFileType,
    ScanResult,
)
from dataset_monitor.monitor.worker import DataSetMonitorWorker

__all__ = [
    "DataSetMonitorWorker",
    "DataSetManifest",
    "ManifestEntry",
    "RifFileType",
    "RifFilesEvent",
    "S3RifFile",
    "ScanResult",
    "NoDataAvailable",
    "DataSetFound",
    "PassResult",
    "PassStatus",
    "RecentlyProcessed",
    "BatchHandler",
    "LoggingBatchHandler",
    "resolve_handler",
    "DataSetFilter",
    "accept_all",
    "build_data_set_filter",
    "parse_manifest",
    "serialize_manifest",
    "parse_instant",
    "format_instant",
]
