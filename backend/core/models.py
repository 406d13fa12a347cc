"""
models.py — Typed records for the result analytics engine.

The engine works on already-loaded collections. Each record keeps optional
fields as ``None`` so defaults (status → Active, score → 0) are applied at the
point of use, never at load time.

Coercion helpers turn JSON-like dicts (API payloads, DB rows) into records.
They fail fast on structurally invalid input (a record that is not a mapping,
a scope without a term) and stay lenient on missing optional scalars.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar


class StudentStatus(str, Enum):
    ACTIVE = "Active"
    WITHDRAWN = "Withdrawn"
    GRADUATED = "Graduated"
    EXPELLED = "Expelled"
    INACTIVE = "Inactive"
    TRANSFERRED = "Transferred"
    ON_LEAVE = "On Leave"
    DISCIPLINARY_SUSPENSION = "Disciplinary Suspension"
    FINANCIAL_SUSPENSION = "Financial Suspension"
    DISTANCE_LEARNER = "Distance Learner"


ISSUE_TYPES = ("missing-assignment", "orphan-result", "duplicate-result")


# ── Entities ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Student:
    id: Any
    status: Optional[str] = None
    campus_id: Any = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AcademicClass:
    id: Any
    arm: Optional[str] = None
    session_label: Optional[str] = None
    name: Optional[str] = None
    level: Optional[str] = None


@dataclass(frozen=True)
class TermReport:
    student_id: Any
    term_id: Any
    academic_class_id: Any = None
    average_score: Optional[float] = None


@dataclass(frozen=True)
class Enrollment:
    student_id: Any
    academic_class_id: Any = None
    enrolled_term_id: Any = None


@dataclass(frozen=True)
class ScoreEntry:
    student_id: Any
    academic_class_id: Any = None
    subject_name: Optional[str] = None
    term_id: Any = None


@dataclass(frozen=True)
class ResultScope:
    """The (term, optional class/arm/session/campus) tuple bounding a query."""

    term_id: Any
    academic_class_id: Any = None
    campus_id: Any = None
    arm_name: Optional[str] = None
    session_label: Optional[str] = None


# ── Outputs ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CohortRanking:
    student_id: Any
    rank: int
    total: int


@dataclass(frozen=True)
class ResultStatistics:
    enrolled: int = 0
    with_results: int = 0
    average_score: float = 0.0
    pass_count: int = 0
    pass_rate: float = 0.0


@dataclass(frozen=True)
class IntegrityIssue:
    type: str
    message: str
    student_id: Any = None


# ── Helpers ─────────────────────────────────────────────────────────

R = TypeVar("R")


def score_of(report: TermReport) -> float:
    """Average score with a missing, non-numeric or NaN/inf value treated as 0."""
    if report.average_score is None:
        return 0.0
    try:
        value = float(report.average_score)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(value) or math.isinf(value) else value


def index_by_id(records: Iterable[Any]) -> Dict[Any, Any]:
    """Map id → record. Later duplicates win, matching a keyed DB lookup."""
    return {r.id: r for r in records}


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{kind} record must be an object, got {type(data).__name__}")
    return data


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present (non-None) value among snake/camel aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def student_from_dict(data: Any) -> Student:
    data = _require_mapping(data, "Student")
    return Student(
        id=data.get("id"),
        status=data.get("status"),
        campus_id=_first(data, "campus_id", "campusId"),
        name=data.get("name"),
    )


def class_from_dict(data: Any) -> AcademicClass:
    data = _require_mapping(data, "AcademicClass")
    return AcademicClass(
        id=data.get("id"),
        arm=data.get("arm"),
        session_label=_first(data, "session_label", "sessionLabel"),
        name=data.get("name"),
        level=data.get("level"),
    )


def report_from_dict(data: Any) -> TermReport:
    data = _require_mapping(data, "TermReport")
    return TermReport(
        student_id=_first(data, "student_id", "studentId"),
        term_id=_first(data, "term_id", "termId"),
        academic_class_id=_first(data, "academic_class_id", "academicClassId"),
        average_score=_first(data, "average_score", "averageScore"),
    )


def enrollment_from_dict(data: Any) -> Enrollment:
    data = _require_mapping(data, "Enrollment")
    return Enrollment(
        student_id=_first(data, "student_id", "studentId"),
        academic_class_id=_first(data, "academic_class_id", "academicClassId"),
        enrolled_term_id=_first(data, "enrolled_term_id", "enrolledTermId"),
    )


def score_entry_from_dict(data: Any) -> ScoreEntry:
    data = _require_mapping(data, "ScoreEntry")
    return ScoreEntry(
        student_id=_first(data, "student_id", "studentId"),
        academic_class_id=_first(data, "academic_class_id", "academicClassId"),
        subject_name=_first(data, "subject_name", "subjectName"),
        term_id=_first(data, "term_id", "termId"),
    )


def scope_from_dict(data: Any) -> ResultScope:
    data = _require_mapping(data, "Scope")
    term_id = _first(data, "term_id", "termId")
    if term_id is None:
        raise ValueError("Scope requires a term id.")
    return ResultScope(
        term_id=term_id,
        academic_class_id=_first(data, "academic_class_id", "academicClassId"),
        campus_id=_first(data, "campus_id", "campusId"),
        arm_name=_first(data, "arm_name", "armName"),
        session_label=_first(data, "session_label", "sessionLabel"),
    )


def parse_collection(items: Any, factory: Callable[[Any], R]) -> List[R]:
    """Build a list of records. ``None`` is an empty collection."""
    if items is None:
        return []
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise ValueError(f"Expected a list of records, got {type(items).__name__}")
    return [factory(item) for item in items]
