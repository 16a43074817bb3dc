"""Cross-subject learning plan assembly."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .catalog import natural_order
from .config import Settings, get_settings
from .graph_registry import get_graph_store
from .graph_store import GraphStore
from .models import LearningPlan, PlanDiagnostics, ProgressEvent, Subject, SubjectPlanContribution
from .navigator import SequenceNavigator
from .path_planner import PathPlanner, strategy_for
from .progress_ledger import ProgressLedger
from .telemetry import LEARNING_PLAN_ASSEMBLED, emit_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_PLAN_UNITS = 50
DEFAULT_FALLBACK_UNIT_COUNT = 5

GoalMap = Mapping[Union[Subject, str], Optional[str]]


class PlanAssembler:
    """Builds the ordered unit list for a one-year plan across all subjects."""

    def __init__(
        self,
        store: GraphStore,
        *,
        planner: Optional[PathPlanner] = None,
        ledger: Optional[ProgressLedger] = None,
        max_plan_units: int = DEFAULT_MAX_PLAN_UNITS,
        fallback_unit_count: int = DEFAULT_FALLBACK_UNIT_COUNT,
    ) -> None:
        self._store = store
        self._planner = planner or PathPlanner(store)
        self._ledger = ledger or ProgressLedger(store, SequenceNavigator(store))
        self._max_plan_units = max(max_plan_units, 1)
        self._fallback_unit_count = max(fallback_unit_count, 0)

    @classmethod
    def from_settings(cls, store: GraphStore, settings: Optional[Settings] = None) -> "PlanAssembler":
        settings = settings or get_settings()
        planner = PathPlanner(
            store,
            strategy=strategy_for(settings.path_strategy),
            max_depth=settings.max_traversal_depth,
        )
        return cls(
            store,
            planner=planner,
            max_plan_units=settings.max_plan_units,
            fallback_unit_count=settings.fallback_unit_count,
        )

    def start_points(self, events: Sequence[ProgressEvent], subject: Subject) -> List[str]:
        in_progress = self._ledger.in_progress_nodes(events, subject)
        if in_progress:
            return in_progress
        current = self._ledger.current_node(events, subject)
        if current is not None:
            return [current]
        return [node.id for node in self._store.entry_nodes(subject)]

    def fallback_units(self, subject: Subject, completed: Sequence[str] = ()) -> List[str]:
        """First units of the subject from its natural beginning, skipping completed ones."""
        done = set(completed)
        units: List[str] = []
        for node in natural_order(self._store, subject):
            if len(units) >= self._fallback_unit_count:
                break
            if node.id not in done:
                units.append(node.id)
        return units

    def _resolve_goals(self, goals: GoalMap) -> Dict[Subject, str]:
        resolved: Dict[Subject, str] = {}
        for raw_subject, goal_id in goals.items():
            if not goal_id:
                continue
            try:
                subject = Subject(raw_subject)
            except ValueError:
                logger.warning("Ignoring goal %s for unknown subject %r", goal_id, raw_subject)
                continue
            if goal_id not in self._store:
                logger.warning("Ignoring goal %s for %s: node not in curriculum graph", goal_id, subject.value)
                continue
            resolved[subject] = goal_id
        return resolved

    def _subject_contribution(
        self,
        subject: Subject,
        events: Sequence[ProgressEvent],
        goal_id: Optional[str],
    ) -> SubjectPlanContribution:
        completed = self._ledger.completed_nodes(events, subject)
        start_ids = self.start_points(events, subject)
        unit_ids: List[str] = []
        if goal_id and start_ids:
            unit_ids = self._planner.comprehensive_subject_path(subject, start_ids, goal_id, completed)

        used_fallback = not unit_ids
        if used_fallback:
            unit_ids = self.fallback_units(subject, sorted(completed))
            logger.info(
                "Using first-%d fallback for %s (goal=%s, starts=%d)",
                self._fallback_unit_count,
                subject.value,
                goal_id or "-",
                len(start_ids),
            )
        return SubjectPlanContribution(
            subject=subject,
            start_ids=start_ids,
            goal_id=goal_id,
            strategy=None if used_fallback else self._planner.strategy.name,
            used_fallback=used_fallback,
            unit_ids=unit_ids,
        )

    def assemble(self, goals: GoalMap, events: Sequence[ProgressEvent]) -> LearningPlan:
        events = list(events)
        resolved_goals = self._resolve_goals(goals)

        contributions = [
            self._subject_contribution(subject, events, resolved_goals.get(subject))
            for subject in self._store.subjects()
        ]

        considered = 0
        merged: List[str] = []
        seen: set[str] = set()
        for contribution in contributions:
            considered += len(contribution.unit_ids)
            for unit_id in contribution.unit_ids:
                if unit_id in seen:
                    continue
                seen.add(unit_id)
                merged.append(unit_id)

        truncated = len(merged) > self._max_plan_units
        unit_ids = merged[: self._max_plan_units]
        diagnostics = PlanDiagnostics(
            units_considered=considered,
            units_retained=len(unit_ids),
            truncated=truncated,
            contributions=contributions,
        )
        return LearningPlan(unit_ids=unit_ids, diagnostics=diagnostics)


def generate_learning_plan(
    goals: GoalMap,
    events: Sequence[ProgressEvent],
    *,
    store: Optional[GraphStore] = None,
    settings: Optional[Settings] = None,
) -> LearningPlan:
    """Assemble a plan against the active graph and report the outcome."""
    graph = store or get_graph_store()
    assembler = PlanAssembler.from_settings(graph, settings)
    start = time.perf_counter()
    plan = assembler.assemble(goals, events)
    duration_ms = (time.perf_counter() - start) * 1000.0
    diagnostics = plan.diagnostics
    emit_event(
        LEARNING_PLAN_ASSEMBLED,
        unit_count=len(plan.unit_ids),
        units_considered=diagnostics.units_considered,
        truncated=diagnostics.truncated,
        fallback_subjects=[entry.subject for entry in diagnostics.contributions if entry.used_fallback],
        retained_by_subject=diagnostics.retained_by_subject(plan.unit_ids),
        duration_ms=round(duration_ms, 2),
    )
    return plan


__all__ = [
    "DEFAULT_FALLBACK_UNIT_COUNT",
    "DEFAULT_MAX_PLAN_UNITS",
    "PlanAssembler",
    "generate_learning_plan",
]
