"""
Configuration management.

Configuration file parsing, environment resolution and monitor settings.
"""

from dataset_monitor.config.loader import Config, load_config
from dataset_monitor.config.resolver import resolve_config
from dataset_monitor.config.settings import MonitorSettings

__all__ = [
    "load_config",
    "Config",
    "MonitorSettings",
    "resolve_config",
]
