"""Course and subject groupings for browsing the curriculum."""

from __future__ import annotations

from typing import Dict, List, Tuple, Union

from .graph_store import GraphStore
from .models import CourseInfo, CurriculumNode, Subject, SubjectInfo

GRADE_ORDER: Tuple[str, ...] = ("K-1", "2", "3", "4", "5", "6", "6-8", "7", "8", "9", "9-12", "10", "11", "12")

SUBJECT_DISPLAY_NAMES: Dict[Subject, str] = {
    Subject.MATH: "Mathematics",
    Subject.ELA: "English Language Arts",
    Subject.SCIENCE: "Science",
    Subject.HUMANITIES: "History & Social Studies",
}

SUBJECT_DESCRIPTIONS: Dict[Subject, str] = {
    Subject.MATH: "Number sense, algebra, geometry, and mathematical reasoning",
    Subject.ELA: "Reading comprehension, vocabulary, and language skills",
    Subject.SCIENCE: "Biology, chemistry, physics, and earth science concepts",
    Subject.HUMANITIES: "History, government, civics, and social studies",
}


def _grade_key(grade_level: str) -> Tuple[int, str]:
    try:
        return (GRADE_ORDER.index(grade_level), grade_level)
    except ValueError:
        return (len(GRADE_ORDER), grade_level)


def subject_display_name(subject: Union[Subject, str]) -> str:
    subject = Subject(subject)
    return SUBJECT_DISPLAY_NAMES.get(subject, subject.value.capitalize())


def courses_by_subject(store: GraphStore, subject: Union[Subject, str]) -> List[CourseInfo]:
    """Courses of a subject, lowest grade first, each with units in unit order."""
    subject = Subject(subject)
    groups: Dict[str, List[CurriculumNode]] = {}
    for node in store.nodes_by_subject(subject):
        groups.setdefault(node.course_path, []).append(node)

    courses: List[CourseInfo] = []
    for course_path, units in groups.items():
        ordered = sorted(units, key=lambda node: node.unit_number)
        first = ordered[0]
        courses.append(
            CourseInfo(
                path=course_path,
                title=first.course_title,
                grade_level=first.grade_level,
                subject=subject,
                units=ordered,
            )
        )
    courses.sort(key=lambda course: (_grade_key(course.grade_level), course.path))
    return courses


def natural_order(store: GraphStore, subject: Union[Subject, str]) -> List[CurriculumNode]:
    return [unit for course in courses_by_subject(store, subject) for unit in course.units]


def subject_info(store: GraphStore) -> List[SubjectInfo]:
    entries: List[SubjectInfo] = []
    for subject in store.subjects():
        courses = courses_by_subject(store, subject)
        entries.append(
            SubjectInfo(
                subject=subject,
                display_name=subject_display_name(subject),
                description=SUBJECT_DESCRIPTIONS.get(subject, f"Core concepts and skills in {subject.value}"),
                starting_nodes=[course.units[0] for course in courses if course.units],
            )
        )
    return entries


__all__ = [
    "GRADE_ORDER",
    "SUBJECT_DESCRIPTIONS",
    "SUBJECT_DISPLAY_NAMES",
    "courses_by_subject",
    "natural_order",
    "subject_display_name",
    "subject_info",
]
