"""
integrity.py — Cross-entity consistency diagnostics for term results.

Checks:
- missing-assignment: active (campus-matching) student with no enrollment
  for the scoped term/class
- orphan-result: term report for a student with no enrollment in the scoped
  class/term
- duplicate-result: more than one term report per (student, term, class), or
  more than one score row per (student, class, subject, term)

Enrollment and result validity is a matter of class + term membership. The
scope's campus only narrows who is expected to be enrolled; it never turns a
validly enrolled student's result into an orphan.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from core.models import (
    ISSUE_TYPES,
    AcademicClass,
    Enrollment,
    IntegrityIssue,
    ResultScope,
    ScoreEntry,
    Student,
    TermReport,
    index_by_id,
)
from core.scope import campus_students, is_active_student, matches_class_scope, matches_term

logger = logging.getLogger(__name__)

REPORT_KEY = ["student_id", "term_id", "academic_class_id"]
SCORE_KEY = ["student_id", "academic_class_id", "subject_name", "term_id"]


def _duplicate_keys(rows: List[Tuple], columns: List[str]) -> List[Tuple]:
    """Composite keys that occur more than once, in first-seen order."""
    if not rows:
        return []
    df = pd.DataFrame(rows, columns=columns, dtype=object)
    counts = df.groupby(columns, dropna=False, sort=False).size()
    # groupby reports missing key parts as NaN; hand them back as None.
    return [
        tuple(None if pd.isna(part) else part for part in key)
        for key, count in counts.items()
        if count > 1
    ]


def _label(value: Any, missing: str = "unknown") -> str:
    return missing if value is None else str(value)


def find_integrity_issues(
    reports: Sequence[TermReport],
    enrollments: Sequence[Enrollment],
    students: Sequence[Student],
    score_entries: Sequence[ScoreEntry],
    scope: ResultScope,
    classes: Optional[Sequence[AcademicClass]] = None,
) -> List[IntegrityIssue]:
    """Return every integrity issue found for ``scope``."""
    classes_by_id = index_by_id(classes or [])
    issues: List[IntegrityIssue] = []

    active_students = campus_students(students, scope)
    active_ids = {s.id for s in active_students}

    def in_class_scope(academic_class_id: Any) -> bool:
        return matches_class_scope(academic_class_id, scope, classes_by_id, check_class_id=True)

    scoped_enrollments = [
        e for e in enrollments
        if matches_term(e.enrolled_term_id, scope)
        and in_class_scope(e.academic_class_id)
        and e.student_id in active_ids
    ]
    enrolled_ids = {e.student_id for e in scoped_enrollments}

    for student in active_students:
        if student.id not in enrolled_ids:
            issues.append(IntegrityIssue(
                type="missing-assignment",
                message=f"{student.name or 'Student'} is active but not enrolled for the selected term/scope",
                student_id=student.id,
            ))

    # Relational checks: class + term membership only, whatever the campus.
    active_any_campus = {s.id for s in students if is_active_student(s)}
    member_ids = {
        e.student_id for e in enrollments
        if matches_term(e.enrolled_term_id, scope)
        and in_class_scope(e.academic_class_id)
        and e.student_id in active_any_campus
    }

    scoped_reports = [
        r for r in reports
        if matches_term(r.term_id, scope) and in_class_scope(r.academic_class_id)
    ]

    for report in scoped_reports:
        if report.student_id not in member_ids:
            issues.append(IntegrityIssue(
                type="orphan-result",
                message=f"Result exists for student {_label(report.student_id)} without enrollment in scope",
                student_id=report.student_id,
            ))

    report_rows = [(r.student_id, r.term_id, r.academic_class_id) for r in scoped_reports]
    for student_id, term_id, academic_class_id in _duplicate_keys(report_rows, REPORT_KEY):
        issues.append(IntegrityIssue(
            type="duplicate-result",
            message=(
                f"Duplicate results detected for {_label(student_id)} in the same term "
                f"(term {_label(term_id)}, class {_label(academic_class_id)})"
            ),
            student_id=student_id,
        ))

    scoped_scores = [
        se for se in score_entries
        if matches_term(se.term_id, scope) and in_class_scope(se.academic_class_id)
    ]
    score_rows = [
        (se.student_id, se.academic_class_id, se.subject_name, se.term_id)
        for se in scoped_scores
    ]
    for student_id, academic_class_id, subject_name, term_id in _duplicate_keys(score_rows, SCORE_KEY):
        issues.append(IntegrityIssue(
            type="duplicate-result",
            message=(
                f"Duplicate score rows detected for student {_label(student_id)}: "
                f"{_label(subject_name, 'unnamed subject')} (class {_label(academic_class_id)}, term {_label(term_id)})"
            ),
            student_id=student_id,
        ))

    logger.debug("Found %d integrity issues for term %s", len(issues), scope.term_id)
    return issues


def summarize_issues(issues: Sequence[IntegrityIssue]) -> Dict[str, int]:
    """Count issues per type; every known type is present."""
    summary = {issue_type: 0 for issue_type in ISSUE_TYPES}
    for issue in issues:
        summary[issue.type] = summary.get(issue.type, 0) + 1
    return summary
