"""
report_card.py — Position, percentile and grade helpers for report cards.

A report card shows two positions: within the student's arm/class and within
the whole level (all arms of the session), plus the campus percentile.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from core.models import AcademicClass, CohortRanking, ResultScope, Student, TermReport
from core.ranking import calculate_campus_percentile, rank_cohort

logger = logging.getLogger(__name__)


# Grade bands (min_score, label, remark), ordered high to low.
GRADE_BANDS = [
    (80.0, "A", "Excellent"),
    (70.0, "B", "Very Good"),
    (60.0, "C", "Good"),
    (50.0, "D", "Pass"),
    (40.0, "E", "Weak Pass"),
    (0.0, "F", "Fail"),
]


# ── Display Helpers ─────────────────────────────────────────────────

def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "N/A" or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_ordinal(n: Any) -> str:
    """1 → '1st', 12 → '12th', 22 → '22nd'. Missing → '-'."""
    num = _to_int(n)
    if num is None:
        return "-"
    if 10 <= num % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(num % 10, "th")
    return f"{num}{suffix}"


def has_valid_ranking(position: Any, total: Any) -> bool:
    return _to_int(position) is not None and _to_int(total) is not None


def format_position(position: Any, total: Any) -> str:
    """'3rd of 45', or 'N/A' without a usable position/total."""
    if not has_valid_ranking(position, total):
        return "N/A"
    return f"{get_ordinal(position)} of {_to_int(total)}"


def position_percentile(position: Any, total: Any) -> Optional[float]:
    """Share of the cohort at or below ``position``: 3rd of 45 → 95.56."""
    if not has_valid_ranking(position, total):
        return None
    pos, tot = _to_int(position), _to_int(total)
    if tot <= 0:
        return None
    return (tot - pos + 1) / tot * 100


def format_percentile(percentile: Optional[float]) -> str:
    """'Top 5%' from the 90th percentile up, '75th percentile' below it."""
    if percentile is None or (isinstance(percentile, float) and math.isnan(percentile)):
        return "N/A"
    if percentile >= 90:
        return f"Top {math.ceil(100 - percentile)}%"
    return f"{get_ordinal(int(math.floor(percentile + 0.5)))} percentile"


def get_grade(score: Optional[float]) -> Dict[str, Any]:
    """Grade label and remark for a 0-100 average."""
    if score is None:
        return {"label": "-", "remark": "No score"}
    try:
        value = float(score)
    except (TypeError, ValueError):
        return {"label": "-", "remark": "No score"}
    if math.isnan(value):
        return {"label": "-", "remark": "No score"}
    value = max(0.0, min(100.0, value))

    for min_score, label, remark in GRADE_BANDS:
        if value >= min_score:
            return {"label": label, "remark": remark, "score": round(value, 1)}
    return {"label": "F", "remark": "Fail", "score": round(value, 1)}


def get_grade_label(score: Optional[float]) -> str:
    return get_grade(score)["label"]


# ── Standing ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReportStanding:
    student_id: Any
    arm_position: Optional[int]
    arm_total: Optional[int]
    level_position: Optional[int]
    level_total: Optional[int]
    campus_percentile: Optional[int]
    grade: str
    arm_position_label: str
    level_position_label: str
    arm_percentile_label: str
    level_percentile_label: str
    campus_percentile_label: str


def _position_of(
    rankings: Sequence[CohortRanking], student_id: Any
) -> Tuple[Optional[int], Optional[int]]:
    for entry in rankings:
        if entry.student_id == student_id:
            return entry.rank, entry.total
    return None, None


def level_scope(scope: ResultScope) -> ResultScope:
    """Same term/campus/session, every class and arm of the level."""
    return ResultScope(
        term_id=scope.term_id,
        campus_id=scope.campus_id,
        session_label=scope.session_label,
    )


def build_report_standing(
    report: TermReport,
    reports: Sequence[TermReport],
    scope: ResultScope,
    students: Sequence[Student],
    classes: Sequence[AcademicClass],
) -> ReportStanding:
    """
    Arm position, level position and campus percentile for one report.

    ``scope`` is the arm scope (class id and/or arm set). Positions are None
    when the student is not part of the respective cohort.
    """
    arm_rankings = rank_cohort(reports, scope, students, classes)
    level_rankings = rank_cohort(reports, level_scope(scope), students, classes)

    arm_position, arm_total = _position_of(arm_rankings, report.student_id)
    level_position, level_total = _position_of(level_rankings, report.student_id)
    percentile = calculate_campus_percentile(report, reports, scope, students, classes)

    return ReportStanding(
        student_id=report.student_id,
        arm_position=arm_position,
        arm_total=arm_total,
        level_position=level_position,
        level_total=level_total,
        campus_percentile=percentile,
        grade=get_grade_label(report.average_score),
        arm_position_label=format_position(arm_position, arm_total),
        level_position_label=format_position(level_position, level_total),
        arm_percentile_label=format_percentile(position_percentile(arm_position, arm_total)),
        level_percentile_label=format_percentile(position_percentile(level_position, level_total)),
        campus_percentile_label=format_percentile(percentile),
    )
