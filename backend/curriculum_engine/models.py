"""Curriculum graph data model and derived planning results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

START_NODE_ID = "START"
END_NODE_ID = "END"
SENTINEL_NODE_IDS = frozenset({START_NODE_ID, END_NODE_ID})


class Subject(str, Enum):
    MATH = "math"
    ELA = "ela"
    SCIENCE = "science"
    HUMANITIES = "humanities"
    SYSTEM = "system"


# Stable order used wherever subjects are iterated or concatenated.
LEARNER_SUBJECTS: tuple[Subject, ...] = (
    Subject.MATH,
    Subject.ELA,
    Subject.SCIENCE,
    Subject.HUMANITIES,
)


class RelationshipType(str, Enum):
    SEQUENTIAL = "sequential"
    FOUNDATIONAL = "foundational"
    SYSTEM = "system"


# Categories that carry learning dependencies (system edges only mark entry points).
DEPENDENCY_RELATIONSHIPS: tuple[RelationshipType, ...] = (
    RelationshipType.SEQUENTIAL,
    RelationshipType.FOUNDATIONAL,
)


class ProgressAction(str, Enum):
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"


class CurriculumNode(BaseModel):
    """One teachable unit within a course."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    unit_title: str = ""
    unit_number: int = 0
    course_title: str = ""
    course_path: str = ""
    grade_level: str = ""
    subject: Subject


class CurriculumEdge(BaseModel):
    """Directed dependency between two units."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_id: str = Field(alias="from", min_length=1)
    to_id: str = Field(alias="to", min_length=1)
    relationship_type: RelationshipType
    description: str = ""


class DatasetMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    total_nodes: Optional[int] = Field(default=None, ge=0)
    total_edges: Optional[int] = Field(default=None, ge=0)


class CurriculumDataset(BaseModel):
    """Raw dataset document as produced by the external loader."""

    model_config = ConfigDict(frozen=True)

    metadata: Optional[DatasetMetadata] = None
    nodes: List[CurriculumNode] = Field(default_factory=list)
    edges: List[CurriculumEdge] = Field(default_factory=list)


class ProgressEvent(BaseModel):
    """A student started or completed a unit at ``created_at``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_id: str = Field(default_factory=lambda: uuid4().hex, alias="id")
    node_id: str = Field(alias="nodeId")
    action: ProgressAction
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
    )


class SubjectProgressSummary(BaseModel):
    """Derived per-subject snapshot. Recomputed from events, never stored."""

    model_config = ConfigDict(frozen=True)

    subject: Subject
    completed_count: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0)
    completion_percentage: int = Field(default=0, ge=0, le=100)
    current_node_id: Optional[str] = None
    last_activity_at: Optional[datetime] = None


class ProgressChange(BaseModel):
    """Event-log edits produced by a correction or progress flow."""

    model_config = ConfigDict(frozen=True)

    events_to_append: List[ProgressEvent] = Field(default_factory=list)
    event_ids_to_remove: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.events_to_append and not self.event_ids_to_remove

    def apply(self, events: Sequence[ProgressEvent]) -> List[ProgressEvent]:
        """Return a new event list with removals dropped and appends added."""
        removed = set(self.event_ids_to_remove)
        kept = [event for event in events if event.event_id not in removed]
        kept.extend(self.events_to_append)
        return kept


class SubjectPlanContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: Subject
    start_ids: List[str] = Field(default_factory=list)
    goal_id: Optional[str] = None
    strategy: Optional[str] = None
    used_fallback: bool = False
    unit_ids: List[str] = Field(default_factory=list)


class PlanDiagnostics(BaseModel):
    model_config = ConfigDict(frozen=True)

    units_considered: int = Field(default=0, ge=0)
    units_retained: int = Field(default=0, ge=0)
    truncated: bool = False
    contributions: List[SubjectPlanContribution] = Field(default_factory=list)

    def retained_by_subject(self, unit_ids: Sequence[str]) -> Dict[Subject, int]:
        retained = set(unit_ids)
        return {
            contribution.subject: sum(1 for unit_id in contribution.unit_ids if unit_id in retained)
            for contribution in self.contributions
        }


class LearningPlan(BaseModel):
    """Final ordered unit list for a one-year plan."""

    model_config = ConfigDict(frozen=True)

    unit_ids: List[str] = Field(default_factory=list)
    diagnostics: PlanDiagnostics = Field(default_factory=PlanDiagnostics)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CourseInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    title: str
    grade_level: str
    subject: Subject
    units: List[CurriculumNode] = Field(default_factory=list)


class SubjectInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: Subject
    display_name: str
    description: str
    starting_nodes: List[CurriculumNode] = Field(default_factory=list)


__all__ = [
    "CourseInfo",
    "CurriculumDataset",
    "CurriculumEdge",
    "CurriculumNode",
    "DEPENDENCY_RELATIONSHIPS",
    "DatasetMetadata",
    "END_NODE_ID",
    "LEARNER_SUBJECTS",
    "LearningPlan",
    "PlanDiagnostics",
    "ProgressAction",
    "ProgressChange",
    "ProgressEvent",
    "RelationshipType",
    "SENTINEL_NODE_IDS",
    "START_NODE_ID",
    "Subject",
    "SubjectInfo",
    "SubjectPlanContribution",
    "SubjectProgressSummary",
]
