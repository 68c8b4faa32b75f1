"""
Tests for the DataSetMonitor scheduling loop.

The loop is driven with asyncio.run; most tests use a scripted stand-in for
the worker, one runs a real worker against the fake S3 client.
"""

import asyncio
import threading
import time

import pytest

from dataset_monitor.exceptions import StorageError
from dataset_monitor.monitor.instants import parse_instant
from dataset_monitor.monitor.types import PassResult, PassStatus
from dataset_monitor.monitor.worker import DataSetMonitorWorker
from dataset_monitor.service.scheduler import DataSetMonitor


class ScriptedWorker:
    """Returns queued pass results; NO_DATA once the script runs out."""

    def __init__(self, *results, pass_duration_s=0.0):
        self.results = list(results)
        self.pass_duration_s = pass_duration_s
        self.cancel_event = threading.Event()
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def run_one_pass(self):
        with self._lock:
            self.calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            time.sleep(self.pass_duration_s)
            return self.results.pop(0) if self.results else PassResult(PassStatus.NO_DATA)
        finally:
            with self._lock:
                self.in_flight -= 1


class RecordingListener:
    def __init__(self, stop_after_no_data=None):
        self.monitor = None
        self.no_data = 0
        self.errors = []
        self.stop_after_no_data = stop_after_no_data

    def no_data_available(self):
        self.no_data += 1
        if self.stop_after_no_data is not None and self.no_data >= self.stop_after_no_data:
            self.monitor.stop()

    def error_occurred(self, result):
        self.errors.append(result)


def _monitor(worker, listener=None, scan_interval_s=0.01):
    monitor = DataSetMonitor(worker, listener=listener, scan_interval_s=scan_interval_s)
    if listener is not None:
        listener.monitor = monitor
    return monitor


class TestDataSetMonitor:
    """Tests for DataSetMonitor.run/stop."""

    def test_stops_on_failed_pass(self):
        failure = PassResult(PassStatus.STORAGE_ERROR, error=StorageError("list", "timeout"))
        worker = ScriptedWorker(PassResult(PassStatus.NO_DATA), PassResult(PassStatus.PROCESSED), failure)
        listener = RecordingListener()
        monitor = _monitor(worker, listener)

        result = asyncio.run(monitor.run())

        assert result is failure
        assert worker.calls == 3
        assert monitor.pass_count == 3
        assert listener.no_data == 1
        assert listener.errors == [failure]
        assert not monitor.stopped_by_request
        assert not monitor.running

    def test_stop_from_listener(self):
        worker = ScriptedWorker()
        listener = RecordingListener(stop_after_no_data=3)
        monitor = _monitor(worker, listener)

        result = asyncio.run(monitor.run())

        assert result.status is PassStatus.NO_DATA
        assert worker.calls == 3
        assert monitor.stopped_by_request
        assert listener.errors == []

    def test_stop_interrupts_interval_sleep(self):
        worker = ScriptedWorker()
        monitor = _monitor(worker, scan_interval_s=60)

        async def scenario():
            task = asyncio.create_task(monitor.run())
            await asyncio.sleep(0.05)
            assert monitor.running
            monitor.stop()
            return await asyncio.wait_for(task, timeout=5)

        started = time.monotonic()
        asyncio.run(scenario())

        assert time.monotonic() - started < 5
        assert worker.calls == 1
        assert monitor.stopped_by_request

    def test_stop_before_run_runs_no_pass(self):
        worker = ScriptedWorker()
        monitor = _monitor(worker)
        monitor.stop()

        assert asyncio.run(monitor.run()) is None
        assert worker.calls == 0

    def test_passes_never_overlap(self):
        worker = ScriptedWorker(pass_duration_s=0.02)
        listener = RecordingListener(stop_after_no_data=5)
        monitor = _monitor(worker, listener, scan_interval_s=0.001)

        asyncio.run(monitor.run())

        assert worker.calls == 5
        assert worker.max_in_flight == 1

    def test_stop_with_cancel_wait_sets_worker_token(self):
        worker = ScriptedWorker()
        monitor = _monitor(worker)

        monitor.stop()
        assert not worker.cancel_event.is_set()

        monitor.stop(cancel_wait=True)
        assert worker.cancel_event.is_set()

    def test_no_listener(self):
        failure = PassResult(PassStatus.HANDLER_ERROR)
        monitor = _monitor(ScriptedWorker(PassResult(PassStatus.NO_DATA), failure))

        assert asyncio.run(monitor.run()) is failure

    def test_invalid_interval(self):
        with pytest.raises(ValueError, match="scan_interval_s"):
            DataSetMonitor(ScriptedWorker(), scan_interval_s=0)


class TestMonitorWithWorker:
    """Runs the loop over a real worker and the fake bucket."""

    def test_processes_data_sets_in_order(self, connection, fake_s3, recording_handler, put_data_set):
        put_data_set("2024-01-02T00:00:00Z", {"b.rif": "CARRIER"})
        put_data_set("2024-01-01T00:00:00Z", {"a.rif": "BENEFICIARY"})
        worker = DataSetMonitorWorker(connection, recording_handler, availability_poll_s=0.01)
        listener = RecordingListener(stop_after_no_data=1)
        monitor = _monitor(worker, listener)

        result = asyncio.run(monitor.run())

        assert result.status is PassStatus.NO_DATA
        assert [e.timestamp for e in recording_handler.events] == [
            parse_instant("2024-01-01T00:00:00Z"),
            parse_instant("2024-01-02T00:00:00Z"),
        ]
        assert not any(k.startswith("Incoming/") for k in fake_s3.objects)

    def test_cancel_wait_interrupts_stuck_pass(self, connection, recording_handler, put_data_set):
        put_data_set("2024-01-01T00:00:00Z", {"a.rif": "BENEFICIARY", "b.rif": "CARRIER"}, upload=["a.rif"])
        worker = DataSetMonitorWorker(connection, recording_handler, availability_poll_s=0.01)
        listener = RecordingListener()
        monitor = _monitor(worker, listener)

        async def scenario():
            task = asyncio.create_task(monitor.run())
            await asyncio.sleep(0.1)
            monitor.stop(cancel_wait=True)
            return await asyncio.wait_for(task, timeout=5)

        result = asyncio.run(scenario())

        assert result.status is PassStatus.INTERRUPTED
        assert monitor.stopped_by_request
        assert recording_handler.events == []
