"""Core app services for settings, screen delivery, failure handling, and diagnostics."""

from .config import AppConfig, load_config, save_config
from .diagnostics import DiagnosticsExporter, build_doctor_payload
from .failure import FailureHandler, LogNotifier, Notifier
from .scheduler import DeliveryScheduler, TickOutcome
from .screen_store import ScreenSlot, ScreenStore

try:  # Keep import side effects tolerant in minimal test environments.
    from .runtime import KeyScreenRuntime, build_runtime
except Exception:  # pragma: no cover
    KeyScreenRuntime = None  # type: ignore[assignment]
    build_runtime = None  # type: ignore[assignment]

__all__ = [
    "AppConfig",
    "DeliveryScheduler",
    "DiagnosticsExporter",
    "FailureHandler",
    "KeyScreenRuntime",
    "LogNotifier",
    "Notifier",
    "ScreenSlot",
    "ScreenStore",
    "TickOutcome",
    "build_doctor_payload",
    "build_runtime",
    "load_config",
    "save_config",
]
