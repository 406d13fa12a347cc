"""
Result routes — ranking, percentile, statistics and integrity endpoints.

Every endpoint receives the already-loaded collections in the request body:
    {
      "scope": {"term_id": 1, "academic_class_id": 101, ...},
      "students": [...], "classes": [...], "reports": [...],
      "enrollments": [...], "score_entries": [...],
      "passing_score": 50          # optional
    }
"""

import logging
import os
from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from core.integrity import find_integrity_issues, summarize_issues
from core.models import (
    ResultScope,
    TermReport,
    class_from_dict,
    enrollment_from_dict,
    parse_collection,
    report_from_dict,
    scope_from_dict,
    score_entry_from_dict,
    student_from_dict,
)
from core.ranking import calculate_campus_percentile, rank_cohort
from core.report_card import build_report_standing
from core.result_stats import aggregate_result_statistics

logger = logging.getLogger(__name__)

router = APIRouter()

PASS_MARK = int(os.getenv("PASS_MARK", "50"))


def _payload_inputs(payload: dict) -> Dict[str, Any]:
    """Coerce the request body into engine records."""
    if not isinstance(payload, dict) or payload.get("scope") is None:
        raise HTTPException(400, "No scope provided.")
    try:
        return {
            "scope": scope_from_dict(payload["scope"]),
            "students": parse_collection(payload.get("students"), student_from_dict),
            "classes": parse_collection(payload.get("classes"), class_from_dict),
            "reports": parse_collection(payload.get("reports"), report_from_dict),
            "enrollments": parse_collection(payload.get("enrollments"), enrollment_from_dict),
            "score_entries": parse_collection(payload.get("score_entries"), score_entry_from_dict),
        }
    except ValueError as exc:
        logger.warning("Rejected result payload: %s", exc)
        raise HTTPException(400, str(exc))


def _passing_score(payload: dict) -> float:
    value = payload.get("passing_score")
    if value is None:
        return PASS_MARK
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HTTPException(400, f"Invalid passing score: {value!r}")


def _report_for(student_id: str, reports: List[TermReport], scope: ResultScope) -> TermReport:
    # Path parameters are strings; ids in the payload may be ints.
    for report in reports:
        if str(report.student_id) == student_id and report.term_id == scope.term_id:
            return report
    raise HTTPException(404, f"No report for student '{student_id}' in term {scope.term_id}.")


@router.post("/rank")
async def rank(payload: dict):
    """Dense-ranked cohort for the scope (level-wide or per class/arm)."""
    data = _payload_inputs(payload)
    rankings = rank_cohort(data["reports"], data["scope"], data["students"], data["classes"])
    return [asdict(r) for r in rankings]


@router.post("/percentile/{student_id}")
async def percentile(student_id: str, payload: dict):
    """Campus percentile for one student's term report."""
    data = _payload_inputs(payload)
    report = _report_for(student_id, data["reports"], data["scope"])
    value = calculate_campus_percentile(
        report, data["reports"], data["scope"], data["students"], data["classes"]
    )
    return {"student_id": report.student_id, "percentile": value}


@router.post("/statistics")
async def statistics(payload: dict):
    """Enrollment/result counts, mean score and pass rate."""
    data = _payload_inputs(payload)
    stats = aggregate_result_statistics(
        data["reports"],
        data["enrollments"],
        data["students"],
        data["scope"],
        passing_score=_passing_score(payload),
        classes=data["classes"],
    )
    return asdict(stats)


@router.post("/integrity")
async def integrity(payload: dict):
    """Missing enrollments, orphan results and duplicate rows."""
    data = _payload_inputs(payload)
    issues = find_integrity_issues(
        data["reports"],
        data["enrollments"],
        data["students"],
        data["score_entries"],
        data["scope"],
        data["classes"],
    )
    return {
        "issues": [asdict(i) for i in issues],
        "summary": summarize_issues(issues),
    }


@router.post("/standing/{student_id}")
async def standing(student_id: str, payload: dict):
    """Arm position, level position and campus percentile for a report card."""
    data = _payload_inputs(payload)
    report = _report_for(student_id, data["reports"], data["scope"])
    result = build_report_standing(
        report, data["reports"], data["scope"], data["students"], data["classes"]
    )
    return asdict(result)
