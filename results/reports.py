"""
Assembly of printable class result reports.

A report is structured data, not markup: one summary row per student plus a
detail block (per-record rows, per-subject totals and a totals row) for each
student that has results. Rendering to HTML/PDF/spreadsheets is left to the
caller. Given the same inputs the report, and its JSON form, are identical.
"""
from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, Hashable, Tuple

from django.core.serializers.json import DjangoJSONEncoder

from .aggregation import calculate_subject_results, record_grade
from .grading import GradeClassifier, format_percentage
from .records import ClassStatistics, StudentRef, SubjectResult, to_jsonable

logger = logging.getLogger(__name__)

RESULT_PASS = 'PASS'
RESULT_FAIL = 'FAIL'
RESULT_NO_DATA = 'NO DATA'
NO_GRADE = '-'


@dataclass(frozen=True)
class SummaryRow:
    student_id: Hashable
    roll_number: Any
    name: str
    exam_count: int
    total_obtained: Any
    total_max: Any
    percentage: Any
    percentage_display: str
    grade: str
    passed: bool
    result: str


@dataclass(frozen=True)
class DetailRow:
    record_id: Hashable
    subject: str
    exam_type: str
    exam_date: Any
    marks_obtained: Any
    max_marks: Any
    percentage: Any
    percentage_display: str
    grade: str
    comments: str


@dataclass(frozen=True)
class TotalsRow:
    exam_count: int
    total_obtained: Any
    total_max: Any
    percentage: Any
    percentage_display: str
    grade: str
    passed: bool


@dataclass(frozen=True)
class StudentDetail:
    student_id: Hashable
    roll_number: Any
    name: str
    rows: Tuple[DetailRow, ...]
    subjects: Tuple[SubjectResult, ...]
    grade_counts: Dict[str, int]
    totals: TotalsRow


@dataclass(frozen=True)
class GradeCount:
    grade: str
    count: int


@dataclass(frozen=True)
class ClassReport:
    class_id: Hashable
    filters: Dict[str, str]
    statistics: ClassStatistics
    summary: Tuple[SummaryRow, ...]
    details: Tuple[StudentDetail, ...]
    grade_distribution: Tuple[GradeCount, ...]
    student_grade_distribution: Tuple[GradeCount, ...]
    unavailable_student_ids: Tuple[Hashable, ...] = ()

    def to_dict(self):
        return to_jsonable(self)

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), cls=DjangoJSONEncoder, **kwargs)


def _full_distribution(counts, classifier):
    """Every grade in band order (zero counts included), then any extra labels."""
    labels = list(classifier.labels)
    labels += [label for label in counts if label not in classifier.labels]
    return tuple(GradeCount(grade=label, count=counts.get(label, 0)) for label in labels)


def _student_identity(student_id, students_by_id):
    student = students_by_id.get(student_id)
    if student is None:
        logger.warning(f"Student {student_id} missing from report lookup; using placeholder name")
        student = StudentRef(id=student_id, name=f"Student {student_id}")
    return student


def build_summary_row(summary, student):
    if summary.has_data:
        grade = summary.grade
        result = RESULT_PASS if summary.passed else RESULT_FAIL
    else:
        grade = NO_GRADE
        result = RESULT_NO_DATA

    return SummaryRow(
        student_id=summary.student_id,
        roll_number=student.roll_number,
        name=student.name,
        exam_count=summary.exam_count,
        total_obtained=summary.total_obtained,
        total_max=summary.total_max,
        percentage=summary.percentage,
        percentage_display=format_percentage(summary.percentage),
        grade=grade,
        passed=summary.passed,
        result=result,
    )


def build_student_detail(summary, student, classifier=None):
    """Detail block for one student with results."""
    classifier = classifier or GradeClassifier()

    rows = []
    for record in summary.records:
        percentage = record.percentage
        rows.append(DetailRow(
            record_id=record.id,
            subject=record.subject_name,
            exam_type=record.exam_type,
            exam_date=record.exam_date,
            marks_obtained=record.marks_obtained,
            max_marks=record.max_marks,
            percentage=percentage,
            percentage_display=format_percentage(percentage),
            grade=record_grade(record, classifier),
            comments=record.comments or '',
        ))

    totals = TotalsRow(
        exam_count=summary.exam_count,
        total_obtained=summary.total_obtained,
        total_max=summary.total_max,
        percentage=summary.percentage,
        percentage_display=format_percentage(summary.percentage),
        grade=summary.grade,
        passed=summary.passed,
    )

    return StudentDetail(
        student_id=summary.student_id,
        roll_number=student.roll_number,
        name=student.name,
        rows=tuple(rows),
        subjects=tuple(calculate_subject_results(summary.records, classifier)),
        grade_counts=dict(summary.grade_counts),
        totals=totals,
    )


def assemble_class_report(class_summary, students_by_id, classifier=None):
    """
    Compose the class report from a ClassSummary.

    Every student appears in the summary table, in the class summary's
    order; students without results are marked "NO DATA" and get no detail
    block.

    Args:
        class_summary: ClassSummary from aggregate_class
        students_by_id: Dict mapping student id to StudentRef
        classifier: GradeClassifier used for per-record grades

    Returns:
        ClassReport
    """
    classifier = classifier or GradeClassifier()

    summary_rows = []
    details = []
    for summary in class_summary.per_student:
        student = _student_identity(summary.student_id, students_by_id)
        summary_rows.append(build_summary_row(summary, student))
        if summary.has_data:
            details.append(build_student_detail(summary, student, classifier))

    return ClassReport(
        class_id=class_summary.class_id,
        filters=class_summary.criteria.describe(),
        statistics=class_summary.statistics,
        summary=tuple(summary_rows),
        details=tuple(details),
        grade_distribution=_full_distribution(class_summary.grade_distribution, classifier),
        student_grade_distribution=_full_distribution(
            class_summary.student_grade_distribution, classifier
        ),
        unavailable_student_ids=class_summary.unavailable_student_ids,
    )
