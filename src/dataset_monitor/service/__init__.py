"""
dataset-monitor long-running service (scheduler loop and application wiring).
"""

from dataset_monitor.service.runner import (
    EXIT_CODE_BAD_CONFIG,
    EXIT_CODE_MONITOR_ERROR,
    EXIT_CODE_SUCCESS,
    build_worker,
    run_monitor,
    run_single_pass,
)
from dataset_monitor.service.scheduler import DataSetMonitor, MonitorListener

__all__ = [
    "DataSetMonitor",
    "MonitorListener",
    "build_worker",
    "run_monitor",
    "run_single_pass",
    "EXIT_CODE_SUCCESS",
    "EXIT_CODE_BAD_CONFIG",
    "EXIT_CODE_MONITOR_ERROR",
]
