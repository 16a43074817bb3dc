"""Prerequisite closures and point-to-point routes through the curriculum DAG."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .graph_store import GraphStore
from .models import Subject
from .telemetry import PLANNING_GAP, emit_event

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRAVERSAL_DEPTH = 512


class PathSelectionStrategy:
    """Chooses the canonical route among candidate paths to the same goal."""

    name = "base"

    def select(self, candidates: Sequence[List[str]]) -> List[str]:
        raise NotImplementedError


class LongestPathStrategy(PathSelectionStrategy):
    """Prefers the route covering the most ground; ties keep the earliest candidate."""

    name = "longest"

    def select(self, candidates: Sequence[List[str]]) -> List[str]:
        best: List[str] = []
        for candidate in candidates:
            if len(candidate) > len(best):
                best = candidate
        return list(best)


class ShortestPathStrategy(PathSelectionStrategy):
    name = "shortest"

    def select(self, candidates: Sequence[List[str]]) -> List[str]:
        best: Optional[List[str]] = None
        for candidate in candidates:
            if not candidate:
                continue
            if best is None or len(candidate) < len(best):
                best = candidate
        return list(best or [])


_STRATEGIES = {
    LongestPathStrategy.name: LongestPathStrategy,
    ShortestPathStrategy.name: ShortestPathStrategy,
}


def strategy_for(name: str) -> PathSelectionStrategy:
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown path selection strategy {name!r}.") from None


@dataclass
class _SearchState:
    goal: str
    path: List[str] = field(default_factory=list)
    on_branch: Set[str] = field(default_factory=set)
    dead_ends: Set[str] = field(default_factory=set)
    truncated: bool = False


class PathPlanner:
    def __init__(
        self,
        store: GraphStore,
        *,
        strategy: Optional[PathSelectionStrategy] = None,
        max_depth: int = DEFAULT_MAX_TRAVERSAL_DEPTH,
    ) -> None:
        self._store = store
        self._strategy = strategy or LongestPathStrategy()
        self._max_depth = max(max_depth, 1)

    @property
    def strategy(self) -> PathSelectionStrategy:
        return self._strategy

    def prerequisites_of(self, node_id: str) -> List[str]:
        """All ancestors of ``node_id`` over dependency edges, earliest first."""
        if node_id not in self._store:
            return []
        ordered: List[str] = []
        visited: Set[str] = {node_id}
        # Explicit stack; the depth of a frame is its index.
        stack: List[Tuple[str, Iterator[str]]] = [(node_id, iter(self._store.predecessor_ids(node_id)))]
        while stack:
            current, pending = stack[-1]
            for predecessor in pending:
                if predecessor in visited:
                    continue
                visited.add(predecessor)
                if len(stack) >= self._max_depth:
                    logger.warning("Prerequisite walk hit depth limit %d at %s", self._max_depth, predecessor)
                    ordered.append(predecessor)
                    continue
                stack.append((predecessor, iter(self._store.predecessor_ids(predecessor))))
                break
            else:
                stack.pop()
                if stack:
                    ordered.append(current)
        return ordered

    def path_between(self, start_id: str, end_id: str) -> List[str]:
        """First route found from ``start_id`` to ``end_id`` (both inclusive), or ``[]``."""
        if start_id not in self._store or end_id not in self._store:
            return []
        if start_id == end_id:
            return [start_id]
        state = _SearchState(goal=end_id)
        if self._search(start_id, state):
            return list(state.path)
        return []

    def _search(self, start_id: str, state: _SearchState) -> bool:
        state.path.append(start_id)
        state.on_branch.add(start_id)
        # One successor iterator per node on the current branch; depth is the stack height.
        frames: List[Iterator[str]] = [iter(self._store.successor_ids(start_id))]
        while frames:
            node_id = state.path[-1]
            for successor in frames[-1]:
                if successor in state.on_branch:
                    logger.debug("Skipping cyclic edge %s -> %s", node_id, successor)
                    continue
                if successor in state.dead_ends:
                    continue
                if len(frames) > self._max_depth:
                    if not state.truncated:
                        logger.warning("Path search toward %s hit depth limit %d", state.goal, self._max_depth)
                    state.truncated = True
                    continue
                state.path.append(successor)
                state.on_branch.add(successor)
                if successor == state.goal:
                    return True
                frames.append(iter(self._store.successor_ids(successor)))
                break
            else:
                frames.pop()
                state.path.pop()
                state.on_branch.discard(node_id)
                if not state.truncated:
                    state.dead_ends.add(node_id)
        return False

    def comprehensive_subject_path(
        self,
        subject: Union[Subject, str],
        start_ids: Iterable[str],
        end_id: str,
        completed_ids: Iterable[str] = (),
    ) -> List[str]:
        """Funnel several starting points toward one goal and return the remaining units.

        Each start is routed to the goal; the strategy picks one route, which is
        then narrowed to units of ``subject`` that are not yet completed.
        """
        subject = Subject(subject)
        starts = list(dict.fromkeys(start_ids))
        if not starts:
            self._report_gap(subject, starts, end_id, "no_start_points")
            return []

        candidates: List[List[str]] = []
        for start_id in starts:
            route = self.path_between(start_id, end_id)
            if route:
                candidates.append(route)
        if not candidates:
            self._report_gap(subject, starts, end_id, "unreachable")
            return []

        route = self._strategy.select(candidates)
        completed = set(completed_ids)
        filtered: List[str] = []
        for node_id in route:
            if node_id in completed or node_id in filtered:
                continue
            if self._store.subject_of(node_id) is not subject:
                continue
            filtered.append(node_id)
        logger.debug(
            "Subject %s path to %s: %d candidate routes, %d units kept",
            subject.value,
            end_id,
            len(candidates),
            len(filtered),
        )
        return filtered

    def _report_gap(self, subject: Subject, start_ids: List[str], end_id: str, reason: str) -> None:
        logger.info("Planning gap for %s toward %s (%s) from %s", subject.value, end_id, reason, start_ids or "-")
        emit_event(PLANNING_GAP, subject=subject, goal_id=end_id, start_ids=start_ids, reason=reason)


__all__ = [
    "DEFAULT_MAX_TRAVERSAL_DEPTH",
    "LongestPathStrategy",
    "PathPlanner",
    "PathSelectionStrategy",
    "ShortestPathStrategy",
    "strategy_for",
]
