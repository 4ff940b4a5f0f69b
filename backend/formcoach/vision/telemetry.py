"""
Optional structured telemetry for threshold tuning.

Analyzers emit TelemetryEvent objects through an injectable sink instead
of printing to the console. The default sink drops everything, so
production callers pay for nothing but a method call. Tests and tuning
tools plug in a recording or logging sink.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class TelemetryEvent:
    """A named telemetry record."""
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class TelemetrySink(Protocol):
    """Anything with an emit(event) method."""

    enabled: bool

    def emit(self, event: TelemetryEvent) -> None:
        ...


class NullTelemetry:
    """Discards every event."""

    enabled = False

    def emit(self, event: TelemetryEvent) -> None:
        pass


class LoggingTelemetry:
    """Writes events to a logger, one line per event."""

    enabled = True

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.log = log or logger
        self.level = level

    def emit(self, event: TelemetryEvent) -> None:
        details = ", ".join(f"{k}={_format_value(v)}" for k, v in event.data.items())
        self.log.log(self.level, f"[{event.name}] {details}")


class RecordingTelemetry:
    """Keeps events in memory for inspection."""

    enabled = True

    def __init__(self):
        self.events: List[TelemetryEvent] = []

    def emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def named(self, name: str) -> List[TelemetryEvent]:
        """Return all recorded events with the given name."""
        return [e for e in self.events if e.name == name]

    def clear(self) -> None:
        self.events.clear()


def emit(sink: Optional[TelemetrySink], name: str, **data: Any) -> None:
    """Emit an event if a sink is present and enabled."""
    if sink is None or not getattr(sink, "enabled", False):
        return
    sink.emit(TelemetryEvent(name=name, data=data))


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_format_value(v) for v in value) + "]"
    return str(value)
