"""
S3 connection for storage operations.

Provides a boto3 client wrapper exposing the operations the monitor needs:
list (paginated), get, head, copy (keeping SSE-KMS keys) and batch delete.
Every botocore failure is re-raised as StorageError.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Iterator, Optional

from botocore.exceptions import BotoCoreError, ClientError

from dataset_monitor.connections.storage import BaseStorageConnection
from dataset_monitor.exceptions import StorageError

# S3 DeleteObjects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000

_BOTO_ERRORS = (ClientError, BotoCoreError)


class S3Connection(BaseStorageConnection):
    """
    S3 connection wrapper for storage operations.

    Provides lazy-initialized boto3 client with credential management.
    Supports AWS credentials from config, environment, or IAM role.

    Built from the ``monitor:`` config section (see
    ``MonitorSettings.connection_config``)::

        monitor:
          bucket: my-bucket
          region: us-east-1
          access_key_id: AKIA...  # Optional, uses env/IAM if not set
          secret_access_key: ...   # Optional
          session_token: ...       # Optional (for temp creds)
          endpoint_url: ...        # Optional (for S3-compatible services)

    Keys are used as given: the monitor works from the bucket root.
    """

    def __init__(self, name: str, config: dict[str, Any]):
        super().__init__(name, config)
        self._client = None
        bucket_name = self._cfg.get("bucket", "")
        if not bucket_name:
            raise ValueError(
                f"S3 connection '{name}' requires a bucket. "
                f"Set monitor.bucket in config.yaml or pass --bucket"
            )

    @property
    def bucket(self) -> str:
        """Get S3 bucket name from config."""
        return self._cfg["bucket"]

    @property
    def region(self) -> Optional[str]:
        """Get AWS region from config."""
        return self._cfg.get("region")

    @property
    def endpoint_url(self) -> Optional[str]:
        """Get custom endpoint URL (for S3-compatible services like MinIO)."""
        return self._cfg.get("endpoint_url")

    @property
    def _cfg(self) -> dict[str, Any]:
        """Get nested config dict."""
        return self.config.get("config", {})

    def _get_client_kwargs(self) -> dict[str, Any]:
        """Build kwargs for boto3 client initialization."""
        kwargs: dict[str, Any] = {}

        if self.region:
            kwargs["region_name"] = self.region

        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url

        # Explicit credentials from config (override env/IAM)
        access_key = self._cfg.get("access_key_id")
        secret_key = self._cfg.get("secret_access_key")
        session_token = self._cfg.get("session_token")

        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
            if session_token:
                kwargs["aws_session_token"] = session_token

        return kwargs

    @property
    def client(self):
        """
        Get boto3 S3 client (lazy initialization).

        Returns:
            boto3.client('s3') instance
        """
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", **self._get_client_kwargs())
        return self._client

    def list_objects(self, prefix: str = "", *, max_keys: int = 1000) -> Iterator[dict[str, Any]]:
        """
        List objects in the bucket with optional prefix, across all pages.

        Args:
            prefix: Key prefix to filter objects
            max_keys: Maximum number of keys to return per request

        Yields:
            Dict with object metadata (Key, Size, LastModified, ETag, ...).

        Raises:
            StorageError: If any page request fails
        """
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, PaginationConfig={"PageSize": max_keys}):
                yield from page.get("Contents", [])
        except _BOTO_ERRORS as e:
            raise StorageError("list", str(e), key=prefix, cause=e) from e

    def get_object(self, key: str) -> bytes:
        """
        Get object content as bytes.

        Args:
            key: S3 object key

        Returns:
            Object content as bytes
        """
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except _BOTO_ERRORS as e:
            raise StorageError("get", str(e), key=key, cause=e) from e

    def head_object(self, key: str) -> dict[str, Any]:
        """
        Get object metadata without its content.

        Args:
            key: S3 object key

        Returns:
            The HeadObject response (ServerSideEncryption, SSEKMSKeyId, ...)
        """
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except _BOTO_ERRORS as e:
            raise StorageError("head", str(e), key=key, cause=e) from e

    def copy_object(self, source_key: str, target_key: str, *, kms_key_id: Optional[str] = None) -> None:
        """
        Server-side copy of an object inside the bucket.

        S3 copies keep user metadata but not server-side encryption settings,
        so a KMS key must be passed explicitly to keep the target encrypted
        under the same key.

        Args:
            source_key: Key to copy from
            target_key: Key to copy to
            kms_key_id: KMS key id to encrypt the copy with, if any
        """
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "CopySource": {"Bucket": self.bucket, "Key": source_key},
            "Key": target_key,
        }
        if kms_key_id:
            kwargs["ServerSideEncryption"] = "aws:kms"
            kwargs["SSEKMSKeyId"] = kms_key_id
        try:
            self.client.copy_object(**kwargs)
        except _BOTO_ERRORS as e:
            raise StorageError("copy", str(e), key=source_key, cause=e) from e

    def delete_objects(self, keys: Iterable[str]) -> int:
        """
        Delete objects in batches of 1000 (S3 limit).

        Args:
            keys: Keys to delete

        Returns:
            Number of keys submitted for deletion

        Raises:
            StorageError: If a request fails or S3 reports per-key errors
        """
        objects = [{"Key": key} for key in keys]
        for i in range(0, len(objects), DELETE_BATCH_SIZE):
            batch = objects[i : i + DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(Bucket=self.bucket, Delete={"Objects": batch, "Quiet": True})
            except _BOTO_ERRORS as e:
                raise StorageError("delete", str(e), key=batch[0]["Key"], cause=e) from e
            failed = response.get("Errors") or []
            if failed:
                first = failed[0]
                raise StorageError(
                    "delete",
                    f"{len(failed)} key(s) not deleted, first: {first.get('Code')} {first.get('Message')}",
                    key=first.get("Key"),
                )
        return len(objects)

    def download_file(self, key: str, local_path: str | Path) -> Path:
        """
        Download an object to a local file.

        Args:
            key: S3 object key
            local_path: Local file path to save to

        Returns:
            Path to the downloaded file
        """
        local_path = Path(local_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)

        # Download to temp file first for atomicity
        tmp_path = local_path.with_suffix(local_path.suffix + ".part")
        try:
            self.client.download_file(self.bucket, key, str(tmp_path))
            os.replace(tmp_path, local_path)
        except _BOTO_ERRORS as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError("download", str(e), key=key, cause=e) from e
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        return local_path

    def close(self) -> None:
        """Reset the client; boto3 clients need no explicit closing."""
        self._client = None

    def __enter__(self) -> "S3Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
