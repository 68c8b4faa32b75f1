"""
Downstream batch handlers.

The handler receives each complete data set and loads it; the monitor blocks
on it, so at most one data set is in flight. Handlers are named in config as
``package.module:attribute`` or by a built-in name.
"""

from __future__ import annotations

import importlib
import inspect
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from dataset_monitor.exceptions import ConfigurationError
from dataset_monitor.monitor.instants import format_instant
from dataset_monitor.monitor.types import RifFilesEvent
from dataset_monitor.utils.logging import get_logger

logger = get_logger("dataset_monitor.monitor.handlers")


@runtime_checkable
class BatchHandler(Protocol):
    """
    Batch handler protocol.

    ``on_batch_ready`` must return only once the data set is fully loaded and
    raise if loading failed.
    """

    def on_batch_ready(self, event: RifFilesEvent) -> None: ...


class LoggingBatchHandler:
    """Logs the files of each data set without loading them (dry runs)."""

    name = "log"

    def on_batch_ready(self, event: RifFilesEvent) -> None:
        logger.info(f"Data set {format_instant(event.timestamp)} ready with {len(event.files)} file(s)")
        for rif_file in event.files:
            logger.info(f"  {rif_file.file_type.value}: {rif_file.key}")


class CallableBatchHandler:
    """Adapts a plain ``fn(event)`` callable to BatchHandler."""

    def __init__(self, fn: Callable[[RifFilesEvent], Any]):
        self.fn = fn

    def on_batch_ready(self, event: RifFilesEvent) -> None:
        self.fn(event)

    def __repr__(self) -> str:
        return f"CallableBatchHandler({getattr(self.fn, '__qualname__', self.fn)!r})"


def build_default_handler_registry() -> dict[str, Callable[[], BatchHandler]]:
    """
    Build registry of built-in handlers.
    """
    return {LoggingBatchHandler.name: LoggingBatchHandler}


def resolve_handler(spec: str, *, registry: dict[str, Callable[[], BatchHandler]] | None = None) -> BatchHandler:
    """
    Resolve a handler spec into a BatchHandler.

    Args:
        spec: A built-in name (``log``) or an import path ``package.module:attribute``.
            The attribute may be a handler object, a class instantiated with no
            arguments, or a callable taking the event.
        registry: Built-in handlers (default: build_default_handler_registry())

    Raises:
        ConfigurationError: If the spec cannot be resolved
    """
    registry = registry or build_default_handler_registry()
    if spec in registry:
        return registry[spec]()

    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigurationError(
            f"Unknown handler '{spec}'. Use 'package.module:attribute' or one of: {list(registry.keys())}"
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import handler module '{module_name}': {e}") from e
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ConfigurationError(f"Handler '{spec}' not found: no attribute '{part}'") from None

    if inspect.isclass(target):
        target = target()
    if isinstance(target, BatchHandler):
        return target
    if callable(target):
        return CallableBatchHandler(target)
    raise ConfigurationError(f"Handler '{spec}' is neither a BatchHandler nor callable")
