"""
Tests for core/result_stats.py — enrollment counts, averages and pass rates.
"""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.models import AcademicClass, Enrollment, ResultScope, Student, TermReport
from core.result_stats import aggregate_result_statistics

PASS_MARK = 50


@pytest.fixture
def students():
    return [
        Student(id=1, name="Ada", campus_id=1, status="Active"),
        Student(id=2, name="Bola", campus_id=1, status="Active"),
        Student(id=3, name="Chidi", campus_id=1, status="Withdrawn"),
        Student(id=4, name="Dami", campus_id=1, status="Active"),
        Student(id=5, name="Eniola", campus_id=2, status="Active"),
    ]


@pytest.fixture
def classes():
    return [
        AcademicClass(id=101, name="JSS1 Gold", arm="Gold", session_label="2024/2025"),
        AcademicClass(id=102, name="JSS1 Silver", arm="Silver", session_label="2024/2025"),
    ]


@pytest.fixture
def enrollments():
    return [
        Enrollment(student_id=1, academic_class_id=101, enrolled_term_id=1),
        Enrollment(student_id=1, academic_class_id=101, enrolled_term_id=1),
        Enrollment(student_id=2, academic_class_id=101, enrolled_term_id=1),
        Enrollment(student_id=3, academic_class_id=101, enrolled_term_id=1),
        Enrollment(student_id=5, academic_class_id=102, enrolled_term_id=1),
    ]


@pytest.fixture
def reports():
    return [
        TermReport(student_id=1, term_id=1, academic_class_id=101, average_score=90),
        TermReport(student_id=2, term_id=1, academic_class_id=101, average_score=90),
        TermReport(student_id=3, term_id=1, academic_class_id=101, average_score=50),
        TermReport(student_id=5, term_id=1, academic_class_id=102, average_score=40),
    ]


class TestAggregateResultStatistics:
    """Tests for aggregate_result_statistics."""

    def test_class_scope(self, reports, enrollments, students, classes):
        scope = ResultScope(term_id=1, campus_id=1, session_label="2024/2025",
                            academic_class_id=101, arm_name="Gold")
        stats = aggregate_result_statistics(reports, enrollments, students, scope, PASS_MARK, classes)

        assert stats.enrolled == 2
        assert stats.with_results == 2
        assert stats.average_score == pytest.approx(90)
        assert stats.pass_count == 2
        assert stats.pass_rate == pytest.approx(100)

    def test_duplicate_enrollment_counted_once(self, reports, enrollments, students, classes):
        stats = aggregate_result_statistics(
            reports, enrollments, students, ResultScope(term_id=1, academic_class_id=101), PASS_MARK, classes
        )
        assert stats.enrolled == 2

    def test_withdrawn_student_never_counted(self, reports, enrollments, students, classes):
        stats = aggregate_result_statistics(reports, enrollments, students, ResultScope(term_id=1), PASS_MARK, classes)
        # Students 1, 2 and 5 are active; 3 is withdrawn.
        assert stats.enrolled == 3
        assert stats.with_results == 3
        assert stats.average_score == pytest.approx((90 + 90 + 40) / 3)
        assert stats.pass_count == 2
        assert stats.pass_rate == pytest.approx(200 / 3)

    def test_campus_filter_is_strict(self, reports, enrollments, classes):
        students = [Student(id=1, campus_id=1), Student(id=2, campus_id=None)]
        stats = aggregate_result_statistics(
            reports, enrollments, students, ResultScope(term_id=1, campus_id=1), PASS_MARK, classes
        )
        assert stats.enrolled == 1
        assert stats.with_results == 1

    def test_arm_filter_without_class_id(self, reports, enrollments, students, classes):
        stats = aggregate_result_statistics(
            reports, enrollments, students, ResultScope(term_id=1, arm_name="Silver"), PASS_MARK, classes
        )
        assert stats.enrolled == 1
        assert stats.with_results == 1
        assert stats.pass_count == 0

    def test_unknown_class_passes_class_scope(self, students):
        reports = [TermReport(student_id=1, term_id=1, academic_class_id=999, average_score=70)]
        stats = aggregate_result_statistics(reports, [], students, ResultScope(term_id=1, arm_name="Gold"))
        assert stats.with_results == 1

    def test_missing_score_counts_as_zero(self, students, classes):
        reports = [
            TermReport(student_id=1, term_id=1, academic_class_id=101, average_score=None),
            TermReport(student_id=2, term_id=1, academic_class_id=101, average_score=80),
        ]
        stats = aggregate_result_statistics(reports, [], students, ResultScope(term_id=1), PASS_MARK, classes)
        assert stats.average_score == pytest.approx(40)
        assert stats.pass_count == 1
        assert stats.pass_rate == pytest.approx(50)

    def test_zero_passing_score_passes_missing_score(self, students, classes):
        reports = [TermReport(student_id=1, term_id=1, academic_class_id=101, average_score=None)]
        stats = aggregate_result_statistics(reports, [], students, ResultScope(term_id=1), 0, classes)
        assert stats.pass_count == 1

    def test_custom_passing_score(self, reports, enrollments, students, classes):
        stats = aggregate_result_statistics(reports, enrollments, students, ResultScope(term_id=1), 95, classes)
        assert stats.pass_count == 0
        assert stats.pass_rate == 0

    def test_empty_scope_is_zeroed(self, reports, enrollments, students, classes):
        stats = aggregate_result_statistics(reports, enrollments, students, ResultScope(term_id=9), PASS_MARK, classes)
        assert stats.enrolled == 0
        assert stats.with_results == 0
        assert stats.average_score == 0
        assert stats.pass_count == 0
        assert stats.pass_rate == 0

    def test_enrolled_without_results(self, enrollments, students, classes):
        stats = aggregate_result_statistics([], enrollments, students, ResultScope(term_id=1), PASS_MARK, classes)
        assert stats.enrolled == 3
        assert stats.with_results == 0
        assert stats.pass_rate == 0
        assert stats.average_score == 0

    def test_classes_default_to_empty(self, reports, enrollments, students):
        stats = aggregate_result_statistics(reports, enrollments, students, ResultScope(term_id=1))
        assert stats.with_results == 3

    def test_nan_score_counts_as_zero(self, students, classes):
        reports = [
            TermReport(student_id=1, term_id=1, academic_class_id=101, average_score=float("nan")),
            TermReport(student_id=2, term_id=1, academic_class_id=101, average_score=60),
        ]
        stats = aggregate_result_statistics(reports, [], students, ResultScope(term_id=1), PASS_MARK, classes)
        assert stats.average_score == pytest.approx(30)
        assert stats.pass_count == 1
        assert stats.pass_rate == pytest.approx(50)
