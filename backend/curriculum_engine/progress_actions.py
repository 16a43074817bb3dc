"""Event-log edits for the learner-facing progress commands.

Each helper returns a :class:`ProgressChange` instead of touching storage; the
persistence collaborator applies it. Corrections remove events rather than
appending compensating ones, so a history may rewind.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from .graph_store import GraphStore
from .models import CurriculumNode, ProgressAction, ProgressChange, ProgressEvent
from .navigator import SequenceNavigator

logger = logging.getLogger(__name__)

# Keeps appended events strictly ordered when several share one command.
_EVENT_SPACING = timedelta(microseconds=1)


class UnknownNodeError(LookupError):
    """Raised when a progress command names a unit missing from the graph."""


def _require(store: GraphStore, node_id: str) -> CurriculumNode:
    node = store.node_by_id(node_id)
    if node is None:
        raise UnknownNodeError(f"Curriculum node {node_id!r} was not found.")
    return node


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _event(node_id: str, action: ProgressAction, created_at: datetime) -> ProgressEvent:
    return ProgressEvent(node_id=node_id, action=action, created_at=created_at)


def complete_unit(
    store: GraphStore,
    node_id: str,
    *,
    now: Optional[datetime] = None,
    navigator: Optional[SequenceNavigator] = None,
) -> ProgressChange:
    """Mark a unit completed and start whatever follows it."""
    _require(store, node_id)
    navigator = navigator or SequenceNavigator(store)
    timestamp = _now(now)
    appended = [_event(node_id, ProgressAction.COMPLETED, timestamp)]
    following = navigator.next(node_id)
    if following is not None:
        appended.append(_event(following.id, ProgressAction.STARTED, timestamp + _EVENT_SPACING))
    return ProgressChange(events_to_append=appended)


def go_back(
    store: GraphStore,
    events: Sequence[ProgressEvent],
    node_id: str,
    *,
    now: Optional[datetime] = None,
    navigator: Optional[SequenceNavigator] = None,
) -> ProgressChange:
    """Undo progress on ``node_id`` and reopen the unit before it.

    Drops the unit's STARTED events. When the previous unit has COMPLETED
    events they are dropped too and a fresh STARTED is recorded for it.
    """
    _require(store, node_id)
    navigator = navigator or SequenceNavigator(store)
    removed: List[str] = [
        event.event_id
        for event in events
        if event.node_id == node_id and event.action is ProgressAction.STARTED
    ]
    appended: List[ProgressEvent] = []

    previous = navigator.previous(node_id)
    if previous is not None:
        previous_completions = [
            event.event_id
            for event in events
            if event.node_id == previous.id and event.action is ProgressAction.COMPLETED
        ]
        if previous_completions:
            removed.extend(previous_completions)
            appended.append(_event(previous.id, ProgressAction.STARTED, _now(now)))
    else:
        logger.info("Go back from %s: no previous unit, only clearing its start", node_id)

    return ProgressChange(events_to_append=appended, event_ids_to_remove=removed)


def start_subject(store: GraphStore, node_id: str, *, now: Optional[datetime] = None) -> ProgressChange:
    _require(store, node_id)
    return ProgressChange(events_to_append=[_event(node_id, ProgressAction.STARTED, _now(now))])


def place_at(
    store: GraphStore,
    node_id: str,
    *,
    now: Optional[datetime] = None,
    navigator: Optional[SequenceNavigator] = None,
) -> ProgressChange:
    """Onboard a learner at ``node_id``: earlier units in the subject chain count as completed."""
    node = _require(store, node_id)
    navigator = navigator or SequenceNavigator(store)
    timestamp = _now(now)
    chain = navigator.nodes_before_in_subject(node_id, node.subject)
    appended: List[ProgressEvent] = []
    for offset, earlier in enumerate(chain[:-1]):
        appended.append(_event(earlier.id, ProgressAction.COMPLETED, timestamp + offset * _EVENT_SPACING))
    appended.append(_event(node_id, ProgressAction.STARTED, timestamp + len(appended) * _EVENT_SPACING))
    return ProgressChange(events_to_append=appended)


__all__ = ["UnknownNodeError", "complete_unit", "go_back", "place_at", "start_subject"]
