"""
ranking.py — Tie-aware cohort ranking and campus percentiles.

Computes:
- Dense ranks over any scored sequence (ties share a rank, no gaps)
- Cohort rankings for a result scope (level-wide or per class/arm)
- A single student's percentile position within the campus cohort
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from core.models import (
    AcademicClass,
    CohortRanking,
    ResultScope,
    Student,
    TermReport,
    index_by_id,
    score_of,
)
from core.scope import (
    is_active_student,
    matches_arm,
    matches_campus,
    matches_session,
    matches_term,
    requires_class,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Dense Rank ──────────────────────────────────────────────────────

def dense_rank(items: Sequence[T], score_of_item: Callable[[T], float]) -> List[int]:
    """
    Dense-rank ``items`` by descending score.

    Returns one rank per item, aligned with the input order. Each entry keeps
    the index it had before sorting, so equal scores or repeated objects can
    never be attributed to the wrong position.
    """
    indexed = [(idx, score_of_item(item)) for idx, item in enumerate(items)]
    ordered = sorted(indexed, key=lambda pair: pair[1], reverse=True)

    ranks = [0] * len(indexed)
    current_rank = 0
    last_score: Optional[float] = None
    for idx, score in ordered:
        if last_score is None or score != last_score:
            current_rank += 1
            last_score = score
        ranks[idx] = current_rank
    return ranks


# ── Cohort Ranking ──────────────────────────────────────────────────

def _scoped_cohort(
    reports: Sequence[TermReport],
    scope: ResultScope,
    students_by_id: Dict[Any, Student],
    classes_by_id: Dict[Any, AcademicClass],
) -> List[TermReport]:
    cohort = []
    for report in reports:
        if not matches_term(report.term_id, scope):
            continue
        if not requires_class(report.academic_class_id, scope):
            continue
        student = students_by_id.get(report.student_id)
        if not is_active_student(student) or not matches_campus(student, scope):
            continue
        academic_class = classes_by_id.get(report.academic_class_id)
        if not matches_arm(academic_class, scope) or not matches_session(academic_class, scope):
            continue
        cohort.append(report)
    return cohort


def rank_cohort(
    reports: Sequence[TermReport],
    scope: ResultScope,
    students: Sequence[Student],
    classes: Sequence[AcademicClass],
) -> List[CohortRanking]:
    """
    Rank term reports within a scope.

    Leaving the scope's class and arm unset ranks a whole level (all arms
    together); setting them restricts the ranking to one class/arm. ``total``
    is the size of the ranked cohort and is the same for every entry.
    """
    cohort = _scoped_cohort(reports, scope, index_by_id(students), index_by_id(classes))
    if not cohort:
        logger.debug("No reports in scope %s; nothing to rank", scope)
        return []

    ranks = dense_rank(cohort, score_of)
    total = len(cohort)
    logger.debug("Ranked %d reports for term %s", total, scope.term_id)
    return [
        CohortRanking(student_id=report.student_id, rank=rank, total=total)
        for report, rank in zip(cohort, ranks)
    ]


# ── Campus Percentile ───────────────────────────────────────────────

def calculate_campus_percentile(
    report: TermReport,
    all_reports: Sequence[TermReport],
    scope: ResultScope,
    students: Sequence[Student],
    classes: Sequence[AcademicClass],
) -> Optional[int]:
    """
    Percentile of ``report``'s student among the term's campus cohort.

    Class and arm are ignored; campus and session apply when set. The value is
    ``round((count - rank) / count * 100)``: 0 for the lowest position, and
    below 100 for the top position unless the cohort has a single member.
    Returns None for an empty cohort or a student who is not in it.
    """
    students_by_id = index_by_id(students)
    classes_by_id = index_by_id(classes)

    cohort = []
    for r in all_reports:
        if not matches_term(r.term_id, scope):
            continue
        student = students_by_id.get(r.student_id)
        if not is_active_student(student) or not matches_campus(student, scope):
            continue
        if not matches_session(classes_by_id.get(r.academic_class_id), scope):
            continue
        cohort.append(r)

    if not cohort:
        return None

    ordered = sorted(cohort, key=score_of, reverse=True)
    rank = next(
        (pos for pos, r in enumerate(ordered, start=1) if r.student_id == report.student_id),
        None,
    )
    if rank is None:
        return None

    count = len(ordered)
    # Half-up rounding: 12.5 -> 13.
    return int(math.floor((count - rank) / count * 100 + 0.5))
