"""
result_stats.py — Enrollment and result statistics for a scope.

Counts distinct enrolled students and students with results, then the mean
average score, pass count and pass rate over the scoped term reports. A scope
with no reports yields zeroed statistics.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from core.models import (
    AcademicClass,
    Enrollment,
    ResultScope,
    ResultStatistics,
    Student,
    TermReport,
    index_by_id,
    score_of,
)
from core.scope import campus_students, matches_class_scope, matches_term, requires_class

logger = logging.getLogger(__name__)


def aggregate_result_statistics(
    reports: Sequence[TermReport],
    enrollments: Sequence[Enrollment],
    students: Sequence[Student],
    scope: ResultScope,
    passing_score: float = 50,
    classes: Optional[Sequence[AcademicClass]] = None,
) -> ResultStatistics:
    """Enrollment/result counts and pass-rate statistics for ``scope``."""
    classes_by_id = index_by_id(classes or [])
    active_ids = {s.id for s in campus_students(students, scope)}

    def in_scope(student_id, term_id, academic_class_id) -> bool:
        return (
            matches_term(term_id, scope)
            and requires_class(academic_class_id, scope)
            and matches_class_scope(academic_class_id, scope, classes_by_id)
            and student_id in active_ids
        )

    scoped_enrollment = [
        e for e in enrollments
        if in_scope(e.student_id, e.enrolled_term_id, e.academic_class_id)
    ]
    scoped_reports = [
        r for r in reports
        if in_scope(r.student_id, r.term_id, r.academic_class_id)
    ]

    enrolled = len({e.student_id for e in scoped_enrollment})
    with_results = len({r.student_id for r in scoped_reports})

    if not scoped_reports:
        logger.debug("No scoped reports for term %s", scope.term_id)
        return ResultStatistics(enrolled=enrolled, with_results=with_results)

    scores = np.array([score_of(r) for r in scoped_reports], dtype=float)
    pass_count = int((scores >= passing_score).sum())

    return ResultStatistics(
        enrolled=enrolled,
        with_results=with_results,
        average_score=float(scores.mean()),
        pass_count=pass_count,
        pass_rate=pass_count / len(scores) * 100,
    )
