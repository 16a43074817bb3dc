from __future__ import annotations

from conftest import node
from curriculum_engine.catalog import courses_by_subject, natural_order, subject_display_name, subject_info
from curriculum_engine.graph_store import GraphStore
from curriculum_engine.models import Subject


def test_courses_sorted_by_grade_rank_with_unknown_grades_last() -> None:
    store = GraphStore.from_mapping(
        {
            "nodes": [
                node("adv2", "math", "math/advanced", 2, "college"),
                node("adv1", "math", "math/advanced", 1, "college"),
                node("g10", "math", "math/geometry", 1, "10"),
                node("g9", "math", "math/algebra", 1, "9"),
                node("k1", "math", "math/early", 1, "K-1"),
            ],
            "edges": [],
        }
    )

    courses = courses_by_subject(store, Subject.MATH)

    assert [course.path for course in courses] == ["math/early", "math/algebra", "math/geometry", "math/advanced"]
    assert [unit.id for unit in courses[-1].units] == ["adv1", "adv2"]
    assert courses[0].title == "Math/Early"


def test_natural_order_flattens_grade_ordered_courses(curriculum_store: GraphStore) -> None:
    assert [unit.id for unit in natural_order(curriculum_store, "math")] == ["a1", "a2", "a3", "b1", "b2", "z1", "z2"]


def test_subject_info_lists_first_unit_of_each_course(curriculum_store: GraphStore) -> None:
    info = {entry.subject: entry for entry in subject_info(curriculum_store)}

    assert set(info) == {Subject.MATH, Subject.ELA, Subject.SCIENCE, Subject.HUMANITIES}
    assert [unit.id for unit in info[Subject.MATH].starting_nodes] == ["a1", "b1", "z1"]
    assert info[Subject.HUMANITIES].display_name == "History & Social Studies"
    assert subject_display_name("ela") == "English Language Arts"
