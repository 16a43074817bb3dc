"""Derives learner position from an append-only history of progress events."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .graph_store import GraphStore
from .models import ProgressAction, ProgressEvent, Subject, SubjectProgressSummary
from .navigator import SequenceNavigator

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ProgressLedger:
    """Pure reductions over a student's progress events.

    Events may arrive in any order; recency is decided by ``created_at`` and,
    for identical timestamps, by position in the supplied list. Events naming
    nodes the graph does not know are skipped.
    """

    def __init__(self, store: GraphStore, navigator: Optional[SequenceNavigator] = None) -> None:
        self._store = store
        self._navigator = navigator or SequenceNavigator(store)

    def _in_subject(
        self,
        events: Iterable[ProgressEvent],
        subject: Subject,
        action: Optional[ProgressAction] = None,
    ) -> List[Tuple[int, ProgressEvent]]:
        selected: List[Tuple[int, ProgressEvent]] = []
        for position, event in enumerate(events):
            if action is not None and event.action is not action:
                continue
            node = self._store.node_by_id(event.node_id)
            if node is None:
                logger.debug("Ignoring progress event %s for unknown node %s", event.event_id, event.node_id)
                continue
            if node.subject is subject:
                selected.append((position, event))
        return selected

    @staticmethod
    def _latest(entries: Sequence[Tuple[int, ProgressEvent]]) -> Optional[ProgressEvent]:
        if not entries:
            return None
        _, event = max(entries, key=lambda entry: (_as_utc(entry[1].created_at), entry[0]))
        return event

    def completed_nodes(self, events: Sequence[ProgressEvent], subject: Union[Subject, str]) -> FrozenSet[str]:
        subject = Subject(subject)
        return frozenset(event.node_id for _, event in self._in_subject(events, subject, ProgressAction.COMPLETED))

    def current_node(self, events: Sequence[ProgressEvent], subject: Union[Subject, str]) -> Optional[str]:
        subject = Subject(subject)
        latest_completion = self._latest(self._in_subject(events, subject, ProgressAction.COMPLETED))
        if latest_completion is not None:
            following = self._navigator.next(latest_completion.node_id)
            return following.id if following else latest_completion.node_id

        latest_start = self._latest(self._in_subject(events, subject, ProgressAction.STARTED))
        return latest_start.node_id if latest_start else None

    def in_progress_nodes(self, events: Sequence[ProgressEvent], subject: Union[Subject, str]) -> List[str]:
        """Started but not completed units, most recently started first."""
        subject = Subject(subject)
        completed = self.completed_nodes(events, subject)
        starts = sorted(
            self._in_subject(events, subject, ProgressAction.STARTED),
            key=lambda entry: (_as_utc(entry[1].created_at), entry[0]),
            reverse=True,
        )
        ordered: List[str] = []
        for _, event in starts:
            if event.node_id in completed or event.node_id in ordered:
                continue
            ordered.append(event.node_id)
        return ordered

    def latest_activity(self, events: Sequence[ProgressEvent], subject: Union[Subject, str]) -> Optional[datetime]:
        latest = self._latest(self._in_subject(events, Subject(subject)))
        return latest.created_at if latest else None

    def subject_summary(self, events: Sequence[ProgressEvent], subject: Union[Subject, str]) -> SubjectProgressSummary:
        subject = Subject(subject)
        total = len(self._store.nodes_by_subject(subject))
        completed = len(self.completed_nodes(events, subject))
        percentage = round(completed / total * 100) if total else 0
        return SubjectProgressSummary(
            subject=subject,
            completed_count=completed,
            total_count=total,
            completion_percentage=min(percentage, 100),
            current_node_id=self.current_node(events, subject),
            last_activity_at=self.latest_activity(events, subject),
        )

    def summary(self, events: Sequence[ProgressEvent]) -> Dict[Subject, SubjectProgressSummary]:
        events = list(events)
        return {subject: self.subject_summary(events, subject) for subject in self._store.subjects()}


__all__ = ["ProgressLedger"]
