"""
File handles for the objects of a data set.

A handle is bound to one pending S3 key. Its content is downloaded to a local
temp file the first time a loader asks for it, and the temp file is removed by
``cleanup_temp_file`` once the handler call is over.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import IO

from dataset_monitor.connections.s3 import S3Connection
from dataset_monitor.monitor.types import RifFileType
from dataset_monitor.utils.logging import get_logger

logger = get_logger("dataset_monitor.monitor.files")


class S3RifFile:
    """A data set file stored in S3, downloaded on demand."""

    def __init__(self, connection: S3Connection, file_type: RifFileType, key: str):
        self.connection = connection
        self.file_type = file_type
        self.key = key
        self._local_path: Path | None = None

    @property
    def name(self) -> str:
        """The entry file name (last key segment)."""
        return self.key.rsplit("/", 1)[-1]

    @property
    def local_path(self) -> Path:
        """Local copy of the object, downloading it on first access."""
        if self._local_path is None:
            fd, tmp_name = tempfile.mkstemp(prefix="dataset-monitor-", suffix=f"-{self.name}")
            os.close(fd)
            tmp_path = Path(tmp_name)
            try:
                self.connection.download_file(self.key, tmp_path)
            except Exception:
                tmp_path.unlink(missing_ok=True)
                raise
            logger.debug(f"Downloaded '{self.key}' to '{tmp_path}'")
            self._local_path = tmp_path
        return self._local_path

    def open(self) -> IO[bytes]:
        """Open the (downloaded) content for binary reading."""
        return self.local_path.open("rb")

    @property
    def downloaded(self) -> bool:
        return self._local_path is not None

    def cleanup_temp_file(self) -> None:
        """Remove the local copy, if one was made. Safe to call repeatedly."""
        if self._local_path is None:
            return
        try:
            self._local_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temp file '{self._local_path}' for '{self.key}': {e}")
        self._local_path = None

    def __repr__(self) -> str:
        return f"S3RifFile(key='{self.key}', type={self.file_type.value})"
