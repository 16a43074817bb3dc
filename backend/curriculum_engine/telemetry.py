"""In-process telemetry for the curriculum engine.

Planning decisions (fallbacks, gaps, truncation) are emitted as structured
events so dashboards and prompt builders can observe them without parsing log
text. Every event is also written to the ``curriculum_engine.telemetry``
logger as a single JSON line.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List

logger = logging.getLogger("curriculum_engine.telemetry")

GRAPH_STORE_LOADED = "graph_store_loaded"
GRAPH_STORE_SWAPPED = "graph_store_swapped"
PLANNING_GAP = "planning_gap"
LEARNING_PLAN_ASSEMBLED = "learning_plan_assembled"


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


Listener = Callable[[TelemetryEvent], None]

_listeners: List[Listener] = []
_lock = RLock()


def register_listener(listener: Listener) -> None:
    with _lock:
        _listeners.append(listener)


def unregister_listener(listener: Listener) -> None:
    with _lock:
        try:
            _listeners.remove(listener)
        except ValueError:
            pass


def clear_listeners() -> None:
    """Remove all registered listeners. Mainly used to reset test state."""
    with _lock:
        _listeners.clear()


@contextmanager
def capture_events() -> Iterator[List[TelemetryEvent]]:
    """Collect every event emitted inside the ``with`` block."""
    captured: List[TelemetryEvent] = []
    register_listener(captured.append)
    try:
        yield captured
    finally:
        unregister_listener(captured.append)


def emit_event(name: str, **fields: Any) -> None:
    """Emit a structured telemetry event and fan it out to listeners."""
    payload = {key: _sanitize(value) for key, value in fields.items()}
    event = TelemetryEvent(name=name, payload=payload)

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **payload}, default=str))


def _sanitize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(_sanitize(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_sanitize(item) for item in value]
    if isinstance(value, dict):
        return {str(_sanitize(key)): _sanitize(item) for key, item in value.items()}
    return value


__all__ = [
    "GRAPH_STORE_LOADED",
    "GRAPH_STORE_SWAPPED",
    "LEARNING_PLAN_ASSEMBLED",
    "PLANNING_GAP",
    "TelemetryEvent",
    "capture_events",
    "clear_listeners",
    "emit_event",
    "register_listener",
    "unregister_listener",
]
