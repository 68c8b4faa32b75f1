"""
Shared fixtures: an in-memory, boto3-shaped S3 client and data set helpers.

The fake client implements only the calls S3Connection makes, with the same
keyword arguments and response shapes as boto3 (paginated list_objects_v2,
NoSuchKey ClientErrors, DeleteObjects batches). Like real S3, copy_object
does not carry SSE-KMS settings over unless they are passed explicitly.
"""

from __future__ import annotations

import io
from datetime import datetime
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from dataset_monitor.connections.s3 import S3Connection
from dataset_monitor.monitor.instants import parse_instant
from dataset_monitor.monitor.manifest import MANIFEST_FILE_NAME, data_set_prefix, serialize_manifest
from dataset_monitor.monitor.types import DataSetManifest, ManifestEntry, RifFilesEvent, RifFileType


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakePaginator:
    def __init__(self, client: FakeS3Client):
        self.client = client

    def paginate(self, Bucket, Prefix="", PaginationConfig=None):
        self.client._record("list_objects_v2", Bucket=Bucket, Prefix=Prefix)
        for hook in list(self.client.list_hooks):
            hook(Prefix)
        page_size = (PaginationConfig or {}).get("PageSize", 1000)
        keys = sorted(k for k in self.client.objects if k.startswith(Prefix))
        if not keys:
            yield {"KeyCount": 0}
            return
        for i in range(0, len(keys), page_size):
            self.client.pages_served += 1
            yield {
                "KeyCount": len(keys[i : i + page_size]),
                "Contents": [
                    {"Key": key, "Size": len(self.client.objects[key]["Body"])} for key in keys[i : i + page_size]
                ],
            }


class FakeS3Client:
    """In-memory stand-in for ``boto3.client("s3")``."""

    def __init__(self):
        # key -> {"Body": bytes, "SSEKMSKeyId": str | None}
        self.objects: dict[str, dict] = {}
        self.calls: list[tuple[str, dict]] = []
        # operation name -> exception raised on every call to it
        self.failures: dict[str, Exception] = {}
        # callables run at the start of each listing (simulate concurrent uploads)
        self.list_hooks: list = []
        self.pages_served = 0

    def _record(self, operation: str, **kwargs) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.failures:
            raise self.failures[operation]

    def calls_to(self, operation: str) -> list[dict]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    def put_object(self, Bucket, Key, Body=b"", ServerSideEncryption=None, SSEKMSKeyId=None):
        if isinstance(Body, str):
            Body = Body.encode("utf-8")
        self.objects[Key] = {"Body": Body, "SSEKMSKeyId": SSEKMSKeyId}
        return {}

    def get_paginator(self, operation_name):
        assert operation_name == "list_objects_v2"
        return FakePaginator(self)

    def get_object(self, Bucket, Key):
        self._record("get_object", Bucket=Bucket, Key=Key)
        if Key not in self.objects:
            raise client_error("NoSuchKey", "GetObject", "The specified key does not exist.")
        return {"Body": io.BytesIO(self.objects[Key]["Body"])}

    def head_object(self, Bucket, Key):
        self._record("head_object", Bucket=Bucket, Key=Key)
        if Key not in self.objects:
            raise client_error("404", "HeadObject", "Not Found")
        obj = self.objects[Key]
        response = {"ContentLength": len(obj["Body"])}
        if obj["SSEKMSKeyId"]:
            response["ServerSideEncryption"] = "aws:kms"
            response["SSEKMSKeyId"] = obj["SSEKMSKeyId"]
        return response

    def copy_object(self, Bucket, CopySource, Key, ServerSideEncryption=None, SSEKMSKeyId=None):
        self._record(
            "copy_object",
            Bucket=Bucket,
            CopySource=CopySource,
            Key=Key,
            ServerSideEncryption=ServerSideEncryption,
            SSEKMSKeyId=SSEKMSKeyId,
        )
        source = self.objects.get(CopySource["Key"])
        if source is None:
            raise client_error("NoSuchKey", "CopyObject", "The specified key does not exist.")
        self.objects[Key] = {"Body": source["Body"], "SSEKMSKeyId": SSEKMSKeyId}
        return {"CopyObjectResult": {}}

    def delete_objects(self, Bucket, Delete):
        self._record("delete_objects", Bucket=Bucket, Delete=Delete)
        deleted = []
        for obj in Delete["Objects"]:
            self.objects.pop(obj["Key"], None)
            deleted.append({"Key": obj["Key"]})
        return {"Deleted": deleted}

    def download_file(self, Bucket, Key, Filename):
        self._record("download_file", Bucket=Bucket, Key=Key, Filename=Filename)
        if Key not in self.objects:
            raise client_error("404", "HeadObject", "Not Found")
        Path(Filename).write_bytes(self.objects[Key]["Body"])


class RecordingHandler:
    """Batch handler that records events and, optionally, fails."""

    def __init__(self, error: Exception | None = None, read_files: bool = False):
        self.events: list[RifFilesEvent] = []
        self.contents: list[dict[str, bytes]] = []
        self.error = error
        self.read_files = read_files

    def on_batch_ready(self, event: RifFilesEvent) -> None:
        self.events.append(event)
        if self.read_files:
            contents = {}
            for rif_file in event.files:
                with rif_file.open() as f:
                    contents[rif_file.name] = f.read()
            self.contents.append(contents)
        if self.error is not None:
            raise self.error


def ts(value: str) -> datetime:
    parsed = parse_instant(value)
    assert parsed is not None, value
    return parsed


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def connection(fake_s3):
    conn = S3Connection("test", {"config": {"bucket": "test-bucket"}})
    conn._client = fake_s3
    return conn


@pytest.fixture
def recording_handler():
    return RecordingHandler()


@pytest.fixture
def make_handler():
    """Factory for RecordingHandler (``make_handler(error=..., read_files=...)``)."""
    return RecordingHandler


@pytest.fixture
def put_data_set(fake_s3):
    """
    Upload a data set: ``put_data_set("2024-01-01T00:00:00Z", {"a.rif": "BENEFICIARY"})``.

    Args (of the returned helper):
        timestamp: Data set id (ISO instant text)
        entries: Entry name -> RIF type name, in manifest order
        upload: Entry names to actually upload (default: all)
        kms_key_id: SSE-KMS key id recorded on every uploaded object
        completed: Upload under Done/ instead of Incoming/
    """

    def _put(
        timestamp: str,
        entries: dict[str, str],
        *,
        upload: list[str] | None = None,
        kms_key_id: str | None = None,
        completed: bool = False,
    ) -> DataSetManifest:
        manifest = DataSetManifest(
            timestamp=ts(timestamp),
            entries=tuple(ManifestEntry(name, RifFileType.from_name(kind)) for name, kind in entries.items()),
        )
        prefix = data_set_prefix(manifest.timestamp, completed=completed)
        fake_s3.put_object(
            Bucket="test-bucket",
            Key=prefix + MANIFEST_FILE_NAME,
            Body=serialize_manifest(manifest),
            SSEKMSKeyId=kms_key_id,
        )
        for name in entries if upload is None else upload:
            fake_s3.put_object(
                Bucket="test-bucket", Key=prefix + name, Body=f"{name} content\n".encode(), SSEKMSKeyId=kms_key_id
            )
        return manifest

    return _put
