"""
Run one monitor pass for the demo project.
"""

from __future__ import annotations

from pathlib import Path

from dataset_monitor.config.loader import load_config
from dataset_monitor.config.settings import MonitorSettings
from dataset_monitor.service.runner import build_worker
from dataset_monitor.utils.logging import setup_logging_from_config


def main() -> None:
    project_dir = Path(__file__).parent
    config_obj = load_config(project_dir, env=None)
    setup_logging_from_config(config_obj.data, project_dir=project_dir)
    settings = MonitorSettings.from_config(config_obj)

    worker = build_worker(settings)
    result = worker.run_one_pass()
    print(result)
    if not result.ok:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
