"""Curriculum graph engine: navigation, progress derivation and plan assembly."""

from .graph_registry import get_graph_store, graph_registry
from .graph_store import EdgeOrder, GraphStore, MalformedDatasetError, load_graph_store
from .navigator import SequenceNavigator
from .path_planner import LongestPathStrategy, PathPlanner, PathSelectionStrategy, ShortestPathStrategy
from .plan_assembler import PlanAssembler, generate_learning_plan
from .progress_ledger import ProgressLedger

__all__ = [
    "EdgeOrder",
    "GraphStore",
    "LongestPathStrategy",
    "MalformedDatasetError",
    "PathPlanner",
    "PathSelectionStrategy",
    "PlanAssembler",
    "ProgressLedger",
    "SequenceNavigator",
    "ShortestPathStrategy",
    "generate_learning_plan",
    "get_graph_store",
    "graph_registry",
    "load_graph_store",
]
