"""Successor and predecessor lookups along a learner's path."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from .graph_store import GraphStore
from .models import DEPENDENCY_RELATIONSHIPS, CurriculumEdge, CurriculumNode, RelationshipType, Subject

logger = logging.getLogger(__name__)


class SequenceNavigator:
    """Resolves next/previous units from the graph alone (no progress state).

    ``sequential`` edges are preferred; when a unit has none, the first
    ``foundational`` edge is followed into the adjoining course.
    """

    def __init__(
        self,
        store: GraphStore,
        *,
        categories: Sequence[RelationshipType] = DEPENDENCY_RELATIONSHIPS,
    ) -> None:
        self._store = store
        self._categories = tuple(categories)

    def next(self, node_id: str) -> Optional[CurriculumNode]:
        for category in self._categories:
            edges = self._store.edges_from(node_id, category)
            if edges:
                return self._resolve(edges[0], edges[0].to_id)
        return None

    def previous(self, node_id: str) -> Optional[CurriculumNode]:
        for category in self._categories:
            edges = self._store.edges_to(node_id, category)
            if edges:
                return self._resolve(edges[0], edges[0].from_id)
        return None

    def nodes_before_in_subject(self, node_id: str, subject: Union[Subject, str]) -> List[CurriculumNode]:
        """The chain of units leading to ``node_id`` inside ``subject``, earliest first.

        The chain includes ``node_id`` itself and stops at the first predecessor
        outside the subject.
        """
        subject = Subject(subject)
        current = self._store.node_by_id(node_id)
        chain: List[CurriculumNode] = []
        seen: set[str] = set()
        while current is not None:
            seen.add(current.id)
            chain.append(current)
            previous = self.previous(current.id)
            if previous is None or previous.subject is not subject:
                break
            if previous.id in seen:
                logger.warning("Stopped walking back from %s: %s repeats in the chain", node_id, previous.id)
                break
            current = previous
        chain.reverse()
        return chain

    def first_node(self, subject: Union[Subject, str]) -> Optional[CurriculumNode]:
        entries = self._store.entry_nodes(subject)
        if entries:
            return entries[0]
        nodes = self._store.nodes_by_subject(subject)
        return nodes[0] if nodes else None

    def _resolve(self, edge: CurriculumEdge, node_id: str) -> Optional[CurriculumNode]:
        node = self._store.node_by_id(node_id)
        if node is None:
            logger.debug("Edge %s -> %s points at a missing node", edge.from_id, edge.to_id)
        return node


__all__ = ["SequenceNavigator"]
