"""Immutable, indexed view of the curriculum prerequisite network."""

from __future__ import annotations

import json
import logging
from collections import deque
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .models import (
    DEPENDENCY_RELATIONSHIPS,
    LEARNER_SUBJECTS,
    SENTINEL_NODE_IDS,
    START_NODE_ID,
    CurriculumDataset,
    CurriculumEdge,
    CurriculumNode,
    RelationshipType,
    Subject,
)
from .telemetry import GRAPH_STORE_LOADED, emit_event

logger = logging.getLogger(__name__)


class MalformedDatasetError(ValueError):
    """Raised when a dataset cannot be indexed safely."""


class EdgeOrder(str, Enum):
    """Tie-break applied when several edges of one category qualify."""

    DATASET = "dataset"
    TARGET_ID = "target_id"


_AdjacencyKey = Tuple[str, RelationshipType]


class GraphStore:
    """Node and adjacency lookups over a validated dataset.

    Built once; nothing is mutated afterwards. Reloading means building a new
    store (see ``graph_registry``).
    """

    def __init__(self, dataset: CurriculumDataset, *, edge_order: EdgeOrder = EdgeOrder.DATASET) -> None:
        self._edge_order = EdgeOrder(edge_order)
        self._nodes = MappingProxyType(self._index_nodes(dataset.nodes))
        self._edges: Tuple[CurriculumEdge, ...] = tuple(dataset.edges)
        self._validate_edges(self._edges)
        self._validate_metadata(dataset)

        outgoing: Dict[_AdjacencyKey, List[CurriculumEdge]] = {}
        incoming: Dict[_AdjacencyKey, List[CurriculumEdge]] = {}
        for edge in self._edges:
            outgoing.setdefault((edge.from_id, edge.relationship_type), []).append(edge)
            incoming.setdefault((edge.to_id, edge.relationship_type), []).append(edge)
        if self._edge_order is EdgeOrder.TARGET_ID:
            for edges in outgoing.values():
                edges.sort(key=lambda edge: edge.to_id)
            for edges in incoming.values():
                edges.sort(key=lambda edge: edge.from_id)
        self._outgoing = {key: tuple(edges) for key, edges in outgoing.items()}
        self._incoming = {key: tuple(edges) for key, edges in incoming.items()}

        by_subject: Dict[Subject, List[CurriculumNode]] = {}
        for node in self._nodes.values():
            by_subject.setdefault(node.subject, []).append(node)
        self._by_subject = {
            subject: tuple(sorted(nodes, key=lambda node: (node.course_path, node.unit_number)))
            for subject, nodes in by_subject.items()
        }

        cyclic = self._nodes_on_cycles()
        if cyclic:
            logger.warning(
                "Curriculum graph contains a dependency cycle involving %s; traversal guards will cut it.",
                ", ".join(sorted(cyclic)),
            )
        self._cyclic_nodes = frozenset(cyclic)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], *, edge_order: EdgeOrder = EdgeOrder.DATASET) -> "GraphStore":
        try:
            dataset = CurriculumDataset.model_validate(payload)
        except ValidationError as exc:
            raise MalformedDatasetError(f"Curriculum dataset failed validation: {exc}") from exc
        return cls(dataset, edge_order=edge_order)

    # -- validation -----------------------------------------------------------------

    @staticmethod
    def _index_nodes(nodes: Iterable[CurriculumNode]) -> Dict[str, CurriculumNode]:
        indexed: Dict[str, CurriculumNode] = {}
        for node in nodes:
            if node.id in indexed:
                raise MalformedDatasetError(f"Duplicate node id {node.id!r} in curriculum dataset.")
            is_sentinel = node.id in SENTINEL_NODE_IDS
            if is_sentinel != (node.subject is Subject.SYSTEM):
                if is_sentinel:
                    raise MalformedDatasetError(f"Sentinel node {node.id!r} must use the system subject.")
                raise MalformedDatasetError(
                    f"Node {node.id!r} uses the system subject, which is reserved for START and END."
                )
            indexed[node.id] = node
        return indexed

    def _validate_edges(self, edges: Sequence[CurriculumEdge]) -> None:
        for edge in edges:
            for endpoint in (edge.from_id, edge.to_id):
                if endpoint not in self._nodes:
                    raise MalformedDatasetError(
                        f"Edge {edge.from_id!r} -> {edge.to_id!r} references unknown node {endpoint!r}."
                    )
            if edge.relationship_type is RelationshipType.SYSTEM and edge.from_id != START_NODE_ID:
                raise MalformedDatasetError(
                    f"System edge {edge.from_id!r} -> {edge.to_id!r} must originate at {START_NODE_ID}."
                )

    def _validate_metadata(self, dataset: CurriculumDataset) -> None:
        metadata = dataset.metadata
        if metadata is None:
            return
        if metadata.total_nodes is not None and metadata.total_nodes != len(self._nodes):
            raise MalformedDatasetError(
                f"Dataset metadata declares {metadata.total_nodes} nodes but {len(self._nodes)} were loaded."
            )
        if metadata.total_edges is not None and metadata.total_edges != len(self._edges):
            raise MalformedDatasetError(
                f"Dataset metadata declares {metadata.total_edges} edges but {len(self._edges)} were loaded."
            )

    def _nodes_on_cycles(self) -> set[str]:
        indegree: Dict[str, int] = {node_id: 0 for node_id in self._nodes}
        successors: Dict[str, List[str]] = {node_id: [] for node_id in self._nodes}
        for edge in self._edges:
            successors[edge.from_id].append(edge.to_id)
            indegree[edge.to_id] += 1

        ready = deque(node_id for node_id, degree in indegree.items() if degree == 0)
        while ready:
            node_id = ready.popleft()
            for neighbour in successors[node_id]:
                indegree[neighbour] -= 1
                if indegree[neighbour] == 0:
                    ready.append(neighbour)
        return {node_id for node_id, degree in indegree.items() if degree > 0}

    # -- lookups --------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def cyclic_node_ids(self) -> frozenset[str]:
        """Nodes the load-time ordering pass could not place (cycle members and their descendants)."""
        return self._cyclic_nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def node_by_id(self, node_id: str) -> Optional[CurriculumNode]:
        return self._nodes.get(node_id)

    def nodes(self) -> Tuple[CurriculumNode, ...]:
        return tuple(self._nodes.values())

    def nodes_by_subject(self, subject: Union[Subject, str]) -> Tuple[CurriculumNode, ...]:
        return self._by_subject.get(Subject(subject), ())

    def subject_of(self, node_id: str) -> Optional[Subject]:
        node = self._nodes.get(node_id)
        return node.subject if node else None

    def subjects(self) -> Tuple[Subject, ...]:
        return tuple(subject for subject in LEARNER_SUBJECTS if subject in self._by_subject)

    def edges_from(self, node_id: str, category: RelationshipType) -> Tuple[CurriculumEdge, ...]:
        return self._outgoing.get((node_id, category), ())

    def edges_to(self, node_id: str, category: RelationshipType) -> Tuple[CurriculumEdge, ...]:
        return self._incoming.get((node_id, category), ())

    def successor_ids(
        self,
        node_id: str,
        categories: Sequence[RelationshipType] = DEPENDENCY_RELATIONSHIPS,
    ) -> List[str]:
        return [edge.to_id for category in categories for edge in self.edges_from(node_id, category)]

    def predecessor_ids(
        self,
        node_id: str,
        categories: Sequence[RelationshipType] = DEPENDENCY_RELATIONSHIPS,
    ) -> List[str]:
        return [edge.from_id for category in categories for edge in self.edges_to(node_id, category)]

    def entry_nodes(self, subject: Union[Subject, str]) -> Tuple[CurriculumNode, ...]:
        """Units linked from ``START`` for the subject, in edge order."""
        subject = Subject(subject)
        entries: List[CurriculumNode] = []
        for edge in self.edges_from(START_NODE_ID, RelationshipType.SYSTEM):
            node = self._nodes[edge.to_id]
            if node.subject is subject and node not in entries:
                entries.append(node)
        return tuple(entries)


def load_graph_store(path: Union[str, Path], *, edge_order: EdgeOrder = EdgeOrder.DATASET) -> GraphStore:
    """Read a dataset JSON file and build a store, failing fast on bad input."""
    dataset_path = Path(path)
    try:
        payload = json.loads(dataset_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise MalformedDatasetError(f"Unable to read curriculum dataset at {dataset_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise MalformedDatasetError(f"Curriculum dataset at {dataset_path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedDatasetError(f"Curriculum dataset at {dataset_path} must be a JSON object.")

    store = GraphStore.from_mapping(payload, edge_order=edge_order)
    logger.info(
        "Loaded curriculum dataset from %s: %d nodes, %d edges",
        dataset_path,
        store.node_count,
        store.edge_count,
    )
    emit_event(
        GRAPH_STORE_LOADED,
        path=str(dataset_path),
        node_count=store.node_count,
        edge_count=store.edge_count,
        subjects=list(store.subjects()),
        cyclic_node_count=len(store.cyclic_node_ids),
    )
    return store


__all__ = ["EdgeOrder", "GraphStore", "MalformedDatasetError", "load_graph_store"]
