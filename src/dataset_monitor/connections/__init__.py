"""
Storage connections used by the monitor.
"""

from dataset_monitor.connections.s3 import S3Connection
from dataset_monitor.connections.storage import BaseStorageConnection

__all__ = [
    "BaseStorageConnection",
    "S3Connection",
]
