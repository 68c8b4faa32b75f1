"""
Minimal batch handler for the demo project.

Referenced from config.yaml as ``loader:print_batch`` (this directory must be
on PYTHONPATH).
"""

from __future__ import annotations

from dataset_monitor.monitor.types import RifFilesEvent


def print_batch(event: RifFilesEvent) -> None:
    for rif_file in event.files:
        with rif_file.open() as f:
            line_count = sum(1 for _ in f)
        print(f"{rif_file.file_type.value:<12} {rif_file.name}: {line_count} line(s)")
