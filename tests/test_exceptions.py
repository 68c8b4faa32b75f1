"""
Tests for the exception hierarchy.
"""

import pytest

from dataset_monitor.exceptions import (
    ConfigurationError,
    DataSetMonitorError,
    HandlerError,
    ManifestParseError,
    StorageError,
    WaitInterruptedError,
)


class TestHierarchy:
    """Verify all exceptions inherit from DataSetMonitorError."""

    @pytest.mark.parametrize(
        "exc_class",
        [ConfigurationError, StorageError, ManifestParseError, HandlerError, WaitInterruptedError],
    )
    def test_inherits_from_base(self, exc_class):
        assert issubclass(exc_class, DataSetMonitorError)

    def test_base_is_exception(self):
        assert issubclass(DataSetMonitorError, Exception)


class TestMessages:
    """Tests for messages and details."""

    def test_base_details_default(self):
        exc = DataSetMonitorError("boom")
        assert exc.message == "boom"
        assert exc.details == {}
        assert str(exc) == "boom"

    def test_configuration_details(self):
        exc = ConfigurationError("bad", details={"errors": ["x"]})
        assert exc.details == {"errors": ["x"]}

    def test_storage_error(self):
        cause = RuntimeError("timeout")
        exc = StorageError("get", "timeout", key="Incoming/a/manifest.xml", cause=cause)
        assert str(exc) == "S3 get 'Incoming/a/manifest.xml' failed: timeout"
        assert exc.operation == "get"
        assert exc.key == "Incoming/a/manifest.xml"
        assert exc.details == {"operation": "get", "key": "Incoming/a/manifest.xml"}
        assert exc.__cause__ is cause

    def test_storage_error_without_key(self):
        assert str(StorageError("list", "denied")) == "S3 list failed: denied"

    def test_manifest_parse_error(self):
        assert str(ManifestParseError("bad", key="k")) == "Invalid manifest 'k': bad"
        assert str(ManifestParseError("bad")) == "Invalid manifest: bad"

    def test_handler_error(self):
        exc = HandlerError("2024-01-01T00:00:00Z", "load failed")
        assert str(exc) == "Handler failed for data set '2024-01-01T00:00:00Z': load failed"
        assert exc.timestamp == "2024-01-01T00:00:00Z"

    def test_wait_interrupted_error(self):
        exc = WaitInterruptedError("2024-01-01T00:00:00Z")
        assert "2024-01-01T00:00:00Z" in str(exc)
        assert exc.details == {"timestamp": "2024-01-01T00:00:00Z"}

    def test_catch_with_base_class(self):
        with pytest.raises(DataSetMonitorError):
            raise StorageError("delete", "denied")
