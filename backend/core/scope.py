"""
scope.py — Shared filtering rules for the result analytics engine.

A filter dimension (class, campus, arm, session) only applies when BOTH the
scope sets it and the candidate (or its resolved class) carries a value for
it. A class with no recorded arm stays visible under an arm filter, and a
scope without a campus includes every campus. Term is always matched exactly.
"""

from typing import Any, Dict, Optional

from core.models import AcademicClass, ResultScope, Student, StudentStatus


INACTIVE_STATUSES = frozenset({
    StudentStatus.WITHDRAWN.value,
    StudentStatus.GRADUATED.value,
    StudentStatus.EXPELLED.value,
    StudentStatus.INACTIVE.value,
})


def _status_value(status: Any) -> Any:
    if isinstance(status, StudentStatus):
        return status.value
    return status


def is_active_student(student: Optional[Student]) -> bool:
    """False for a missing student or one in a terminal status."""
    if student is None:
        return False
    status = student.status if student.status is not None else StudentStatus.ACTIVE.value
    return _status_value(status) not in INACTIVE_STATUSES


def _is_set(value: Any) -> bool:
    # Empty strings from form/query payloads mean "no filter".
    return value is not None and value != ""


def matches_term(term_id: Any, scope: ResultScope) -> bool:
    return term_id == scope.term_id


def matches_class_id(academic_class_id: Any, scope: ResultScope) -> bool:
    if not _is_set(scope.academic_class_id) or academic_class_id is None:
        return True
    return academic_class_id == scope.academic_class_id


def matches_campus(student: Optional[Student], scope: ResultScope) -> bool:
    if not _is_set(scope.campus_id) or student is None or student.campus_id is None:
        return True
    return student.campus_id == scope.campus_id


def matches_arm(academic_class: Optional[AcademicClass], scope: ResultScope) -> bool:
    if not _is_set(scope.arm_name) or academic_class is None or not academic_class.arm:
        return True
    return academic_class.arm == scope.arm_name


def matches_session(academic_class: Optional[AcademicClass], scope: ResultScope) -> bool:
    if (
        not _is_set(scope.session_label)
        or academic_class is None
        or not academic_class.session_label
    ):
        return True
    return academic_class.session_label == scope.session_label


def matches_class_scope(
    academic_class_id: Any,
    scope: ResultScope,
    classes_by_id: Dict[Any, AcademicClass],
    check_class_id: bool = False,
) -> bool:
    """Session and arm filters against the resolved class.

    With ``check_class_id`` the scope's class id is applied as well.
    """
    if check_class_id and not matches_class_id(academic_class_id, scope):
        return False
    academic_class = classes_by_id.get(academic_class_id)
    return matches_session(academic_class, scope) and matches_arm(academic_class, scope)


def requires_class(academic_class_id: Any, scope: ResultScope) -> bool:
    """Exact class restriction: a set scope class excludes rows without one."""
    if not _is_set(scope.academic_class_id):
        return True
    return academic_class_id == scope.academic_class_id


def campus_students(students, scope: ResultScope) -> list:
    """Active students, restricted to the scope's campus when one is set.

    Unlike ``matches_campus`` a student with no campus is excluded once the
    scope names a campus: campus membership here defines who is counted.
    """
    return [
        s for s in students
        if is_active_student(s)
        and (not _is_set(scope.campus_id) or s.campus_id == scope.campus_id)
    ]
