"""
Fixed-delay scheduler for the data set monitor worker.

Runs one worker pass at a time in a background thread (passes are blocking
boto3 and handler calls) and sleeps ``scan_interval_s`` between passes. The
loop stops on the first failed pass or when ``stop()`` is called.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from dataset_monitor.monitor.types import PassResult, PassStatus
from dataset_monitor.monitor.worker import DataSetMonitorWorker
from dataset_monitor.utils.logging import get_logger

logger = get_logger("dataset_monitor.service.scheduler")

LOG_MESSAGE_STARTING_WORKER = "Starting data set monitor worker..."


class MonitorListener(Protocol):
    """Receives the monitor's notable pass outcomes."""

    def no_data_available(self) -> None: ...

    def error_occurred(self, result: PassResult) -> None: ...


class DataSetMonitor:
    def __init__(
        self,
        worker: DataSetMonitorWorker,
        listener: MonitorListener | None = None,
        scan_interval_s: float = 1.0,
    ):
        if scan_interval_s <= 0:
            raise ValueError("scan_interval_s must be > 0")
        self.worker = worker
        self.listener = listener
        self.scan_interval_s = scan_interval_s
        self.pass_count = 0
        self._stopping = asyncio.Event()
        self._stop_requested = False
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stopped_by_request(self) -> bool:
        """Whether the loop ended (or will end) because stop() was called."""
        return self._stop_requested

    def stop(self, cancel_wait: bool = False) -> None:
        """
        Request a graceful stop between passes.

        Args:
            cancel_wait: Also cancel a pass that is waiting for a data set to
                finish uploading; that pass then ends as INTERRUPTED.
        """
        self._stop_requested = True
        self._stopping.set()
        if cancel_wait:
            self.worker.cancel_event.set()

    async def run(self) -> PassResult | None:
        """
        Run passes until stopped or a pass fails.

        Returns:
            The failing PassResult, or the last result when stopped by request
            (None if no pass ran).
        """
        logger.info(LOG_MESSAGE_STARTING_WORKER)
        self._running = True
        last_result: PassResult | None = None
        try:
            while not self._stopping.is_set():
                result = await asyncio.to_thread(self.worker.run_one_pass)
                self.pass_count += 1
                last_result = result

                if result.status is PassStatus.NO_DATA:
                    if self.listener is not None:
                        self.listener.no_data_available()
                elif not result.ok:
                    if self.listener is not None:
                        self.listener.error_occurred(result)
                    if not self._stop_requested:
                        logger.error(f"Data set monitor stopping after failed pass ({result.status.value})")
                    return result

                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=self.scan_interval_s)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False

        logger.info(f"Data set monitor stopped after {self.pass_count} pass(es)")
        return last_result
