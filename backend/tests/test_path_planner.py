"""Tests for prerequisite closures, DFS routes and multi-start stitching."""

from __future__ import annotations

import pytest

from conftest import edge, node
from curriculum_engine.config import get_settings
from curriculum_engine.graph_store import GraphStore
from curriculum_engine.models import Subject
from curriculum_engine.path_planner import (
    LongestPathStrategy,
    PathPlanner,
    ShortestPathStrategy,
    strategy_for,
)
from curriculum_engine.telemetry import PLANNING_GAP, capture_events


def _diamond_store() -> GraphStore:
    # root -> left -> goal, root -> mid -> right -> goal
    return GraphStore.from_mapping(
        {
            "nodes": [
                node("root", "math", "math/core", 1),
                node("left", "math", "math/core", 2),
                node("mid", "math", "math/core", 3),
                node("right", "math", "math/core", 4),
                node("goal", "math", "math/core", 5),
            ],
            "edges": [
                edge("root", "left"),
                edge("root", "mid"),
                edge("left", "goal"),
                edge("mid", "right"),
                edge("right", "goal", "foundational"),
            ],
        }
    )


def test_prerequisites_are_ordered_earliest_first(curriculum_store: GraphStore) -> None:
    planner = PathPlanner(curriculum_store)

    assert planner.prerequisites_of("b2") == ["a1", "a2", "a3", "b1"]
    assert planner.prerequisites_of("a1") == []
    assert planner.prerequisites_of("missing") == []


def test_prerequisites_exclude_self_and_duplicates() -> None:
    planner = PathPlanner(_diamond_store())

    prerequisites = planner.prerequisites_of("goal")

    assert "goal" not in prerequisites
    assert len(prerequisites) == len(set(prerequisites))
    assert set(prerequisites) == {"root", "left", "mid", "right"}
    assert prerequisites.index("root") < prerequisites.index("left")
    assert prerequisites.index("mid") < prerequisites.index("right")


def test_path_between_same_node_is_single_element(math_store: GraphStore) -> None:
    assert PathPlanner(math_store).path_between("m2", "m2") == ["m2"]


def test_path_between_follows_sequential_chain(math_store: GraphStore) -> None:
    assert PathPlanner(math_store).path_between("m1", "m3") == ["m1", "m2", "m3"]


def test_path_between_crosses_foundational_edges(curriculum_store: GraphStore) -> None:
    assert PathPlanner(curriculum_store).path_between("a2", "b2") == ["a2", "a3", "b1", "b2"]


def test_path_between_backwards_or_unknown_is_empty(math_store: GraphStore) -> None:
    planner = PathPlanner(math_store)

    assert planner.path_between("m3", "m1") == []
    assert planner.path_between("m1", "ghost") == []
    assert planner.path_between("ghost", "ghost") == []


def test_path_between_returns_first_route_in_edge_order() -> None:
    assert PathPlanner(_diamond_store()).path_between("root", "goal") == ["root", "left", "goal"]


def test_path_between_terminates_on_cycles() -> None:
    store = GraphStore.from_mapping(
        {
            "nodes": [node(name, "math", "loop", index) for index, name in enumerate(["c1", "c2", "c3", "out"])],
            "edges": [edge("c1", "c2"), edge("c2", "c3"), edge("c3", "c1"), edge("c3", "out")],
        }
    )
    planner = PathPlanner(store)

    assert planner.path_between("c1", "out") == ["c1", "c2", "c3", "out"]
    assert planner.path_between("c2", "missing") == []
    assert planner.path_between("out", "c1") == []
    assert planner.prerequisites_of("c1") == ["c2", "c3"]


def test_depth_limit_cuts_long_routes() -> None:
    names = [f"u{index}" for index in range(6)]
    store = GraphStore.from_mapping(
        {
            "nodes": [node(name, "math", "long", index) for index, name in enumerate(names)],
            "edges": [edge(a, b) for a, b in zip(names, names[1:])],
        }
    )

    assert PathPlanner(store, max_depth=3).path_between("u0", "u5") == []
    assert PathPlanner(store, max_depth=5).path_between("u0", "u5") == names
    assert PathPlanner(store, max_depth=3).prerequisites_of("u5") == ["u2", "u3", "u4"]


def test_chains_deeper_than_the_interpreter_stack(monkeypatch) -> None:
    names = [f"u{index}" for index in range(1500)]
    store = GraphStore.from_mapping(
        {
            "nodes": [node(name, "math", "math/long", index) for index, name in enumerate(names)],
            "edges": [edge(a, b) for a, b in zip(names, names[1:])],
        }
    )
    monkeypatch.setenv("CURRICULUM_MAX_TRAVERSAL_DEPTH", "5000")

    planner = PathPlanner(store, max_depth=get_settings().max_traversal_depth)

    assert planner.path_between("u0", "u1499") == names
    assert planner.prerequisites_of("u1499") == names[:-1]
    assert planner.path_between("u1499", "u0") == []
    assert planner.comprehensive_subject_path(Subject.MATH, ["u0"], "u1499", completed_ids=names[:1000]) == names[1000:]


def test_comprehensive_path_matches_single_start(math_store: GraphStore) -> None:
    planner = PathPlanner(math_store)

    assert planner.comprehensive_subject_path("math", ["m1"], "m3", []) == ["m1", "m2", "m3"]
    assert planner.comprehensive_subject_path("math", ["m1"], "m3", ["m1"]) == ["m2", "m3"]


def test_comprehensive_path_picks_longest_route(curriculum_store: GraphStore) -> None:
    planner = PathPlanner(curriculum_store)

    path = planner.comprehensive_subject_path(Subject.MATH, ["b1", "a2"], "b2", completed_ids=["a3"])

    assert path == ["a2", "b1", "b2"]


def test_comprehensive_path_never_returns_completed_or_foreign_units(curriculum_store: GraphStore) -> None:
    planner = PathPlanner(curriculum_store)
    completed = {"e1"}

    path = planner.comprehensive_subject_path(Subject.ELA, ["e1"], "s2", completed)

    assert path == ["e2", "e3"]
    assert not completed.intersection(path)


def test_comprehensive_path_reports_gaps(curriculum_store: GraphStore) -> None:
    planner = PathPlanner(curriculum_store)

    with capture_events() as events:
        unreachable = planner.comprehensive_subject_path(Subject.MATH, ["a1"], "z2", [])
        no_starts = planner.comprehensive_subject_path(Subject.MATH, [], "b2", [])

    assert unreachable == []
    assert no_starts == []
    reasons = [event.payload["reason"] for event in events if event.name == PLANNING_GAP]
    assert reasons == ["unreachable", "no_start_points"]


def test_shortest_strategy_is_pluggable(curriculum_store: GraphStore) -> None:
    planner = PathPlanner(curriculum_store, strategy=ShortestPathStrategy())

    assert planner.comprehensive_subject_path(Subject.MATH, ["a1", "b1"], "b2") == ["b1", "b2"]


def test_strategy_lookup_by_name() -> None:
    assert isinstance(strategy_for("longest"), LongestPathStrategy)
    assert isinstance(strategy_for("shortest"), ShortestPathStrategy)
    with pytest.raises(ValueError):
        strategy_for("weighted")


def test_longest_strategy_keeps_first_on_ties() -> None:
    assert LongestPathStrategy().select([["a", "b"], ["c", "d"], ["e"]]) == ["a", "b"]
    assert LongestPathStrategy().select([]) == []
