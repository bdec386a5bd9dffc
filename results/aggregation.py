"""
Student and class level aggregation of mark records.

All functions are pure: they take records (already fetched) and return new
summary objects. Percentages stay at full Decimal precision; rounding is
left to display code.
"""
from collections import Counter
import logging

from .filters import filter_records
from .grading import GradeClassifier, percentage_of
from .records import (
    ZERO, HUNDRED, ClassStatistics, ClassSummary, FilterCriteria,
    StudentSummary, SubjectResult, as_decimal,
)

logger = logging.getLogger(__name__)


def split_valid_records(records):
    """
    Separate usable records from malformed ones.

    Returns:
        tuple: (list of valid MarkRecord, number of excluded records)
    """
    valid = []
    excluded = 0
    for record in records:
        if record.is_valid:
            valid.append(record)
        else:
            excluded += 1
            logger.debug(
                f"Excluding malformed mark record {record.id}: "
                f"obtained={record.marks_obtained!r} max={record.max_marks!r}"
            )
    return valid, excluded


def record_grade(record, classifier=None):
    """
    Grade of a single record.

    A grade stored on the record wins; otherwise it is computed from the
    record's own percentage. Stored and computed grades are not reconciled.
    """
    if record.stored_grade:
        return record.stored_grade
    classifier = classifier or GradeClassifier()
    return classifier.grade_for(record.percentage)


def ordered_counts(counter, classifier):
    """Counter as a dict in grade order (best first), zero counts dropped."""
    return {
        label: counter[label]
        for label in classifier.grade_order(list(counter))
        if counter[label] > 0
    }


def aggregate_student(records, student_id=None, classifier=None):
    """
    Reduce a student's mark records to a StudentSummary.

    The aggregate percentage comes from combined totals, not from averaging
    per-record percentages. Malformed records are skipped and counted in
    ``excluded_count``.

    Args:
        records: Iterable of MarkRecord (normally already filtered)
        student_id: Student the records belong to; taken from the first
            record when omitted
        classifier: GradeClassifier (defaults to the standard table)

    Returns:
        StudentSummary
    """
    classifier = classifier or GradeClassifier()
    records = list(records)
    if student_id is None and records:
        student_id = records[0].student_id

    valid, excluded = split_valid_records(records)
    if excluded:
        logger.info(f"Excluded {excluded} malformed mark record(s) for student {student_id}")

    total_obtained = sum((as_decimal(r.marks_obtained) for r in valid), ZERO)
    total_max = sum((as_decimal(r.max_marks) for r in valid), ZERO)
    exam_count = len(valid)

    percentage = percentage_of(total_obtained, total_max)
    grade_counts = Counter(record_grade(r, classifier) for r in valid)

    return StudentSummary(
        student_id=student_id,
        total_obtained=total_obtained,
        total_max=total_max,
        percentage=percentage,
        grade=classifier.grade_for(percentage),
        exam_count=exam_count,
        grade_counts=ordered_counts(grade_counts, classifier),
        passed=exam_count > 0 and classifier.is_passing(percentage),
        average_marks=total_obtained / exam_count if exam_count else ZERO,
        excluded_count=excluded,
        records=tuple(valid),
    )


def calculate_subject_results(records, classifier=None):
    """
    Per-subject totals for one student's records (report card table).

    Subjects appear in order of first appearance in ``records``.
    Malformed records are ignored.
    """
    classifier = classifier or GradeClassifier()
    valid, _ = split_valid_records(records)

    grouped = {}
    for record in valid:
        grouped.setdefault(record.subject_id, []).append(record)

    results = []
    for subject_id, subject_records in grouped.items():
        total_obtained = sum((as_decimal(r.marks_obtained) for r in subject_records), ZERO)
        total_max = sum((as_decimal(r.max_marks) for r in subject_records), ZERO)
        percentage = percentage_of(total_obtained, total_max)
        results.append(SubjectResult(
            subject_id=subject_id,
            subject_name=subject_records[0].subject_name,
            exam_count=len(subject_records),
            total_obtained=total_obtained,
            total_max=total_max,
            percentage=percentage,
            grade=classifier.grade_for(percentage),
            passed=classifier.is_passing(percentage),
        ))
    return results


def calculate_class_statistics(summaries):
    """
    Class-wide statistics from student summaries.

    Averages, extremes and the pass rate only consider students with
    results; students without results are counted separately and never
    as failures.
    """
    summaries = list(summaries)
    with_data = [s for s in summaries if s.has_data]

    if not with_data:
        return ClassStatistics(
            total_students=len(summaries),
            students_without_data=len(summaries),
        )

    percentages = [s.percentage for s in with_data]
    passed = sum(1 for s in with_data if s.passed)

    return ClassStatistics(
        total_students=len(summaries),
        students_with_data=len(with_data),
        students_without_data=len(summaries) - len(with_data),
        average_percentage=sum(percentages, ZERO) / len(percentages),
        highest_percentage=max(percentages),
        lowest_percentage=min(percentages),
        passed=passed,
        failed=len(with_data) - passed,
        pass_rate=HUNDRED * passed / len(with_data),
    )


def aggregate_class(students, records_by_student, criteria=None, classifier=None,
                    class_id=None, unavailable_student_ids=()):
    """
    Build a ClassSummary for every student in a class.

    Each student's records are filtered then aggregated. Students missing
    from ``records_by_student`` (or with no matching records) still get a
    summary with ``exam_count == 0``. Output order follows ``students``.

    Args:
        students: Sequence of StudentRef enrolled in the class
        records_by_student: Dict mapping student id to list of MarkRecord
        criteria: FilterCriteria applied to every student's records
        classifier: GradeClassifier (defaults to the standard table)
        class_id: Class identifier; taken from the first student if omitted
        unavailable_student_ids: Students whose records could not be fetched

    Returns:
        ClassSummary
    """
    classifier = classifier or GradeClassifier()
    criteria = criteria or FilterCriteria()
    students = list(students)
    if class_id is None and students:
        class_id = students[0].class_id

    per_student = []
    entry_counts = Counter()
    student_counts = Counter()

    for student in students:
        records = filter_records(records_by_student.get(student.id, ()), criteria)
        summary = aggregate_student(records, student_id=student.id, classifier=classifier)
        per_student.append(summary)

        if summary.has_data:
            entry_counts.update(summary.grade_counts)
            student_counts[summary.grade] += 1

    return ClassSummary(
        class_id=class_id,
        per_student=tuple(per_student),
        grade_distribution=ordered_counts(entry_counts, classifier),
        student_grade_distribution=ordered_counts(student_counts, classifier),
        statistics=calculate_class_statistics(per_student),
        criteria=criteria,
        unavailable_student_ids=tuple(unavailable_student_ids),
    )
