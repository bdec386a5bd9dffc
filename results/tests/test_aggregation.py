from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from results.aggregation import (
    aggregate_class, aggregate_student, calculate_class_statistics,
    calculate_subject_results, record_grade, split_valid_records,
)
from results.records import FilterCriteria

from .helpers import make_record, make_students


def in_year(year):
    return datetime(year, 3, 1, 10, 0, tzinfo=dt_timezone.utc)


class AggregateStudentTest(SimpleTestCase):
    """Tests for reducing one student's records to a summary."""

    def test_combined_totals(self):
        """45/50 and 30/50 give 75/100: B+ and a pass."""
        summary = aggregate_student([
            make_record(obtained=45, maximum=50),
            make_record(obtained=30, maximum=50),
        ], student_id=1)

        self.assertEqual(summary.total_obtained, Decimal('75'))
        self.assertEqual(summary.total_max, Decimal('100'))
        self.assertEqual(summary.percentage, Decimal('75'))
        self.assertEqual(summary.grade, 'B+')
        self.assertTrue(summary.passed)
        self.assertEqual(summary.exam_count, 2)
        self.assertEqual(summary.average_marks, Decimal('37.5'))
        self.assertTrue(summary.has_data)

    def test_no_records(self):
        summary = aggregate_student([], student_id=7)

        self.assertEqual(summary.student_id, 7)
        self.assertEqual(summary.percentage, Decimal('0'))
        self.assertEqual(summary.grade, 'F')
        self.assertFalse(summary.passed)
        self.assertEqual(summary.exam_count, 0)
        self.assertEqual(summary.grade_counts, {})
        self.assertFalse(summary.has_data)

    def test_genuine_zero_differs_from_no_data(self):
        summary = aggregate_student([make_record(obtained=0, maximum=50)], student_id=1)
        self.assertEqual(summary.percentage, Decimal('0'))
        self.assertEqual(summary.exam_count, 1)
        self.assertTrue(summary.has_data)
        self.assertFalse(summary.passed)

    def test_zero_max_marks_excluded(self):
        summary = aggregate_student([
            make_record(obtained=45, maximum=50),
            make_record(obtained=10, maximum=0),
        ], student_id=1)

        self.assertEqual(summary.total_max, Decimal('50'))
        self.assertEqual(summary.total_obtained, Decimal('45'))
        self.assertEqual(summary.grade_counts, {'A+': 1})
        self.assertEqual(summary.exam_count, 1)
        self.assertEqual(summary.excluded_count, 1)

    def test_per_record_grades_versus_combined_grade(self):
        """95% and 55% are graded separately, the overall grade uses totals."""
        summary = aggregate_student([
            make_record(obtained=19, maximum=20),
            make_record(obtained=55, maximum=100),
        ], student_id=1)

        self.assertEqual(summary.grade_counts, {'A+': 1, 'C+': 1})
        # 74/120 = 61.67%, not the 75% an average of percentages would give
        self.assertEqual(summary.grade, 'B')
        self.assertLess(summary.percentage, Decimal('62'))
        self.assertGreater(summary.percentage, Decimal('61'))

    def test_malformed_records_skipped(self):
        summary = aggregate_student([
            make_record(obtained=40, maximum=50),
            make_record(obtained=-5, maximum=50),
            make_record(obtained=10, maximum=Decimal('NaN')),
            make_record(obtained=None, maximum=50),
            make_record(obtained=10, maximum=float('inf')),
        ], student_id=1)

        self.assertEqual(summary.exam_count, 1)
        self.assertEqual(summary.excluded_count, 4)
        self.assertEqual(summary.total_max, Decimal('50'))

    def test_stored_grade_wins(self):
        summary = aggregate_student([make_record(obtained=45, maximum=50, grade='B')], student_id=1)
        self.assertEqual(summary.grade_counts, {'B': 1})
        self.assertEqual(summary.grade, 'A+')

    def test_grade_counts_in_band_order(self):
        summary = aggregate_student([
            make_record(obtained=10, maximum=100),
            make_record(obtained=95, maximum=100),
            make_record(obtained=12, maximum=100),
        ], student_id=1)
        self.assertEqual(list(summary.grade_counts.items()), [('A+', 1), ('F', 2)])

    def test_does_not_mutate_input(self):
        records = [make_record(obtained=45, maximum=50), make_record(obtained=1, maximum=0)]
        snapshot = list(records)
        aggregate_student(records, student_id=1)
        self.assertEqual(records, snapshot)

    def test_student_id_from_records(self):
        summary = aggregate_student([make_record(student_id=42, obtained=5, maximum=10)])
        self.assertEqual(summary.student_id, 42)

    def test_to_dict_uses_strings_for_decimals(self):
        data = aggregate_student([make_record(obtained=45, maximum=50)], student_id=1).to_dict()
        self.assertEqual(data['total_obtained'], '45')
        self.assertEqual(data['grade'], 'A+')
        self.assertTrue(data['has_data'])
        self.assertNotIn('records', data)


class RecordHelpersTest(SimpleTestCase):

    def test_split_valid_records(self):
        good = make_record(obtained=5, maximum=10)
        bad = make_record(obtained=5, maximum=0)
        self.assertEqual(split_valid_records([good, bad]), ([good], 1))

    def test_record_grade(self):
        self.assertEqual(record_grade(make_record(obtained=85, maximum=100)), 'A')
        self.assertEqual(record_grade(make_record(obtained=85, maximum=100, grade=' C ')), 'C')


class SubjectResultsTest(SimpleTestCase):
    """Tests for per-subject totals."""

    def test_grouped_in_first_appearance_order(self):
        results = calculate_subject_results([
            make_record(subject_id=2, subject_name='English', obtained=30, maximum=50),
            make_record(subject_id=1, subject_name='Mathematics', obtained=90, maximum=100),
            make_record(subject_id=2, subject_name='English', obtained=40, maximum=50),
            make_record(subject_id=3, subject_name='Science', obtained=3, maximum=0),
        ])

        self.assertEqual([r.subject_name for r in results], ['English', 'Mathematics'])
        english = results[0]
        self.assertEqual(english.exam_count, 2)
        self.assertEqual(english.total_obtained, Decimal('70'))
        self.assertEqual(english.percentage, Decimal('70'))
        self.assertEqual(english.grade, 'B+')
        self.assertTrue(english.passed)


class AggregateClassTest(SimpleTestCase):
    """Tests for class-level aggregation."""

    def setUp(self):
        self.students = make_students('Ama Mensah', 'Kofi Owusu', 'Yaw Boateng')
        self.records = {
            1: [
                make_record(student_id=1, obtained=45, maximum=50, exam_date=in_year(2023)),
                make_record(student_id=1, obtained=30, maximum=50, exam_date=in_year(2023)),
                make_record(student_id=1, obtained=10, maximum=50, exam_date=in_year(2024)),
            ],
            2: [
                make_record(student_id=2, obtained=15, maximum=50, exam_date=in_year(2022)),
            ],
        }

    def test_year_filter_keeps_every_student(self):
        summary = aggregate_class(
            self.students, self.records, criteria=FilterCriteria(year='2023'), class_id=9
        )

        self.assertEqual(summary.class_id, 9)
        self.assertEqual(len(summary.per_student), 3)
        self.assertEqual([s.student_id for s in summary.per_student], [1, 2, 3])
        self.assertEqual(summary.summary_for(1).exam_count, 2)
        self.assertEqual(summary.summary_for(1).percentage, Decimal('75'))
        self.assertEqual(summary.summary_for(2).exam_count, 0)
        self.assertEqual(summary.summary_for(3).exam_count, 0)
        self.assertEqual(summary.criteria.describe(), {'year': '2023', 'exam_type': 'all'})

    def test_distributions_only_count_students_with_data(self):
        summary = aggregate_class(self.students, self.records, criteria=FilterCriteria(year='2023'))

        self.assertEqual(summary.grade_distribution, {'A+': 1, 'B': 1})
        self.assertEqual(summary.student_grade_distribution, {'B+': 1})
        self.assertEqual([s.student_id for s in summary.students_with_data], [1])

    def test_unfiltered_distribution(self):
        summary = aggregate_class(self.students, self.records)

        self.assertEqual(summary.grade_distribution, {'A+': 1, 'B': 1, 'F': 2})
        # Student 1: 85/150 = 56.7% (C+); student 2: 15/50 = 30% (F)
        self.assertEqual(summary.student_grade_distribution, {'C+': 1, 'F': 1})

    def test_statistics(self):
        summary = aggregate_class(self.students, self.records)
        stats = summary.statistics

        self.assertEqual(stats.total_students, 3)
        self.assertEqual(stats.students_with_data, 2)
        self.assertEqual(stats.students_without_data, 1)
        self.assertEqual(stats.highest_percentage, summary.summary_for(1).percentage)
        self.assertEqual(stats.lowest_percentage, Decimal('30'))
        self.assertEqual(stats.passed, 1)
        self.assertEqual(stats.failed, 1)
        self.assertEqual(stats.pass_rate, Decimal('50'))

    def test_statistics_without_any_data(self):
        stats = calculate_class_statistics([aggregate_student([], student_id=1)])
        self.assertEqual(stats.total_students, 1)
        self.assertEqual(stats.students_without_data, 1)
        self.assertEqual(stats.failed, 0)
        self.assertEqual(stats.pass_rate, Decimal('0'))

    def test_empty_class(self):
        summary = aggregate_class([], {}, class_id=4)
        self.assertEqual(summary.per_student, ())
        self.assertEqual(summary.grade_distribution, {})
        self.assertEqual(summary.statistics.total_students, 0)

    def test_unavailable_students_recorded(self):
        summary = aggregate_class(self.students, self.records, unavailable_student_ids=[3])
        self.assertEqual(summary.unavailable_student_ids, (3,))
        self.assertEqual(summary.to_dict()['unavailable_student_ids'], [3])

    def test_class_id_from_students(self):
        summary = aggregate_class(make_students('Esi', class_id=12), {})
        self.assertEqual(summary.class_id, 12)
