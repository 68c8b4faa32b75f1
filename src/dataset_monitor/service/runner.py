"""
Application wiring: configuration -> worker -> monitor loop.

Used by the CLI. Functions return process exit codes instead of exiting so
they can be driven from tests.
"""

from __future__ import annotations

import asyncio
import signal
import threading
from pathlib import Path

from dataset_monitor.config import MonitorSettings, load_config
from dataset_monitor.connections.s3 import S3Connection
from dataset_monitor.exceptions import ConfigurationError
from dataset_monitor.monitor.filters import build_data_set_filter
from dataset_monitor.monitor.handlers import BatchHandler, resolve_handler
from dataset_monitor.monitor.types import PassResult
from dataset_monitor.monitor.worker import DataSetMonitorWorker
from dataset_monitor.service.scheduler import DataSetMonitor, MonitorListener
from dataset_monitor.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("dataset_monitor.service.runner")

EXIT_CODE_SUCCESS = 0
EXIT_CODE_BAD_CONFIG = 1
EXIT_CODE_MONITOR_ERROR = 2


def load_settings(
    project_dir: Path,
    env: str | None = None,
    *,
    bucket: str | None = None,
    verbose: bool = False,
) -> MonitorSettings:
    """
    Load config.yaml, set up logging and build the monitor settings.

    Raises:
        ConfigurationError: If the configuration is missing or invalid
    """
    config = load_config(project_dir, env=env)
    setup_logging_from_config(config.data, project_dir=project_dir, level_override="DEBUG" if verbose else None)
    return MonitorSettings.from_config(config, bucket=bucket)


def build_worker(
    settings: MonitorSettings,
    *,
    handler: BatchHandler | None = None,
    connection: S3Connection | None = None,
    cancel_event: threading.Event | None = None,
) -> DataSetMonitorWorker:
    """
    Build a worker from settings.

    Raises:
        ConfigurationError: If the handler cannot be resolved
    """
    if handler is None:
        handler = resolve_handler(settings.handler)
    if connection is None:
        connection = S3Connection("monitor", settings.connection_config)
    return DataSetMonitorWorker(
        connection,
        handler,
        data_set_filter=build_data_set_filter(settings.allowed_rif_types),
        availability_poll_s=settings.availability_poll_s,
        recently_processed_capacity=settings.recently_processed_capacity,
        cancel_event=cancel_event,
    )


def _install_signal_handlers(monitor: DataSetMonitor) -> None:
    loop = asyncio.get_running_loop()

    def request_stop(signame: str) -> None:
        if monitor.stopped_by_request:
            logger.warning(f"Received {signame} again, cancelling any data set wait")
            monitor.stop(cancel_wait=True)
        else:
            logger.info(f"Received {signame}, stopping after the current pass (repeat to cancel waiting)")
            monitor.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig.name)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread
            logger.debug(f"Cannot install handler for {sig.name}")


async def _serve(monitor: DataSetMonitor) -> PassResult | None:
    _install_signal_handlers(monitor)
    return await monitor.run()


def exit_code_for(result: PassResult | None, *, stopped_by_request: bool = False) -> int:
    if stopped_by_request or result is None or result.ok:
        return EXIT_CODE_SUCCESS
    return EXIT_CODE_MONITOR_ERROR


def run_monitor(
    *,
    project_dir: Path,
    env: str | None = None,
    bucket: str | None = None,
    verbose: bool = False,
    listener: MonitorListener | None = None,
) -> int:
    """
    Run the data set monitor until stopped or a pass fails (blocking).

    Returns:
        Process exit code
    """
    try:
        settings = load_settings(project_dir, env, bucket=bucket, verbose=verbose)
        worker = build_worker(settings)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CODE_BAD_CONFIG

    monitor = DataSetMonitor(worker, listener=listener, scan_interval_s=settings.scan_interval_s)
    logger.info(f"Monitoring bucket '{settings.bucket}' every {settings.scan_interval_s}s")
    try:
        result = asyncio.run(_serve(monitor))
    finally:
        worker.connection.close()
    return exit_code_for(result, stopped_by_request=monitor.stopped_by_request)


def run_single_pass(
    *,
    project_dir: Path,
    env: str | None = None,
    bucket: str | None = None,
    verbose: bool = False,
) -> tuple[int, PassResult | None]:
    """
    Run exactly one worker pass (blocking).

    Returns:
        Tuple of (exit code, pass result); the result is None on bad config
    """
    try:
        settings = load_settings(project_dir, env, bucket=bucket, verbose=verbose)
        worker = build_worker(settings)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CODE_BAD_CONFIG, None

    try:
        result = worker.run_one_pass()
    finally:
        worker.connection.close()
    return exit_code_for(result), result
