from __future__ import annotations

from typing import Any, Dict, List

import pytest

from curriculum_engine.config import get_settings
from curriculum_engine.graph_registry import graph_registry
from curriculum_engine.graph_store import GraphStore
from curriculum_engine.telemetry import clear_listeners


def node(node_id: str, subject: str, course: str = "", unit: int = 0, grade: str = "6") -> Dict[str, Any]:
    return {
        "id": node_id,
        "unit_title": f"Unit {node_id}",
        "unit_number": unit,
        "course_title": course.replace("-", " ").title(),
        "course_path": course,
        "grade_level": grade,
        "subject": subject,
    }


def edge(source: str, target: str, relationship: str = "sequential") -> Dict[str, str]:
    return {
        "from": source,
        "to": target,
        "relationship_type": relationship,
        "description": f"{source} before {target}",
    }


def sentinels() -> List[Dict[str, Any]]:
    return [node("START", "system"), node("END", "system")]


@pytest.fixture(autouse=True)
def _reset_engine_state():
    clear_listeners()
    get_settings.cache_clear()
    graph_registry.clear()
    yield
    clear_listeners()
    get_settings.cache_clear()
    graph_registry.clear()


@pytest.fixture
def math_payload() -> Dict[str, Any]:
    return {
        "nodes": sentinels()
        + [
            node("m1", "math", "math/algebra-1", 1),
            node("m2", "math", "math/algebra-1", 2),
            node("m3", "math", "math/algebra-1", 3),
        ],
        "edges": [
            edge("START", "m1", "system"),
            edge("m1", "m2"),
            edge("m2", "m3"),
        ],
    }


@pytest.fixture
def math_store(math_payload) -> GraphStore:
    return GraphStore.from_mapping(math_payload)


@pytest.fixture
def curriculum_payload() -> Dict[str, Any]:
    """Four subjects; math spans two linked courses plus one disconnected course."""
    return {
        "metadata": {"total_nodes": 17, "total_edges": 14},
        "nodes": sentinels()
        + [
            node("a1", "math", "math/grade-6", 1, "6"),
            node("a2", "math", "math/grade-6", 2, "6"),
            node("a3", "math", "math/grade-6", 3, "6"),
            node("b1", "math", "math/grade-7", 1, "7"),
            node("b2", "math", "math/grade-7", 2, "7"),
            node("z1", "math", "math/calculus", 1, "12"),
            node("z2", "math", "math/calculus", 2, "12"),
            node("e1", "ela", "ela/reading", 1, "6"),
            node("e2", "ela", "ela/reading", 2, "6"),
            node("e3", "ela", "ela/reading", 3, "6"),
            node("s1", "science", "science/biology", 1, "9"),
            node("s2", "science", "science/biology", 2, "9"),
            node("h1", "humanities", "humanities/civics", 1, "8"),
            node("h2", "humanities", "humanities/civics", 2, "8"),
            node("h3", "humanities", "humanities/civics", 3, "8"),
        ],
        "edges": [
            edge("START", "a1", "system"),
            edge("START", "e1", "system"),
            edge("START", "s1", "system"),
            edge("a1", "a2"),
            edge("a2", "a3"),
            edge("a3", "b1", "foundational"),
            edge("b1", "b2"),
            edge("z1", "z2"),
            edge("e1", "e2"),
            edge("e2", "e3"),
            edge("s1", "s2"),
            edge("h1", "h2"),
            edge("h2", "h3"),
            edge("e3", "s2", "foundational"),
        ],
    }


@pytest.fixture
def curriculum_store(curriculum_payload) -> GraphStore:
    return GraphStore.from_mapping(curriculum_payload)
