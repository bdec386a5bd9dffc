from decimal import Decimal
import json

from django.test import SimpleTestCase

from results.aggregation import aggregate_class
from results.records import FilterCriteria
from results.reports import (
    NO_GRADE, RESULT_FAIL, RESULT_NO_DATA, RESULT_PASS, assemble_class_report,
)

from .helpers import make_record, make_students


class ClassReportTest(SimpleTestCase):
    """Tests for class report assembly."""

    def setUp(self):
        self.students = make_students('Ama Mensah', 'Kofi Owusu', 'Yaw Boateng')
        self.records = {
            1: [
                make_record(student_id=1, subject_id=1, subject_name='Mathematics', obtained=45, maximum=50),
                make_record(student_id=1, subject_id=2, subject_name='English', obtained=30, maximum=50,
                            comments='Good effort'),
            ],
            2: [
                make_record(student_id=2, subject_id=1, subject_name='Mathematics', obtained=10, maximum=50),
            ],
        }
        self.students_by_id = {s.id: s for s in self.students}

    def build(self, criteria=None):
        summary = aggregate_class(self.students, self.records, criteria=criteria, class_id=5)
        return assemble_class_report(summary, self.students_by_id)

    def test_summary_rows_follow_roster(self):
        report = self.build()

        self.assertEqual([row.name for row in report.summary], ['Ama Mensah', 'Kofi Owusu', 'Yaw Boateng'])
        first, second, third = report.summary
        self.assertEqual(first.result, RESULT_PASS)
        self.assertEqual(first.grade, 'B+')
        self.assertEqual(first.percentage_display, '75.0')
        self.assertEqual(second.result, RESULT_FAIL)
        self.assertEqual(second.grade, 'F')

    def test_student_without_results_marked_no_data(self):
        row = self.build().summary[2]

        self.assertEqual(row.exam_count, 0)
        self.assertEqual(row.grade, NO_GRADE)
        self.assertEqual(row.result, RESULT_NO_DATA)
        self.assertFalse(row.passed)

    def test_details_only_for_students_with_results(self):
        report = self.build()

        self.assertEqual([d.student_id for d in report.details], [1, 2])
        detail = report.details[0]
        self.assertEqual([r.subject for r in detail.rows], ['Mathematics', 'English'])
        self.assertEqual(detail.rows[0].percentage_display, '90.0')
        self.assertEqual(detail.rows[0].grade, 'A+')
        self.assertEqual(detail.rows[1].comments, 'Good effort')
        self.assertEqual([s.subject_name for s in detail.subjects], ['Mathematics', 'English'])
        self.assertEqual(detail.totals.total_obtained, Decimal('75'))
        self.assertEqual(detail.totals.grade, 'B+')
        self.assertTrue(detail.totals.passed)

    def test_distribution_lists_every_grade(self):
        report = self.build()

        labels = [entry.grade for entry in report.grade_distribution]
        self.assertEqual(labels, ['A+', 'A', 'B+', 'B', 'C+', 'C', 'F'])
        counts = {entry.grade: entry.count for entry in report.grade_distribution}
        self.assertEqual(counts['A+'], 1)
        self.assertEqual(counts['B'], 1)
        self.assertEqual(counts['F'], 1)
        self.assertEqual(counts['C'], 0)

        student_counts = {e.grade: e.count for e in report.student_grade_distribution}
        self.assertEqual(student_counts['B+'], 1)
        self.assertEqual(student_counts['F'], 1)

    def test_filters_recorded(self):
        report = self.build(FilterCriteria(exam_type='First Terminal'))
        self.assertEqual(report.filters, {'year': 'all', 'exam_type': 'First Terminal'})

    def test_report_is_deterministic(self):
        self.assertEqual(self.build().to_json(), self.build().to_json())

    def test_to_dict_is_json_safe(self):
        data = self.build().to_dict()

        self.assertEqual(data['class_id'], 5)
        self.assertEqual(data['summary'][0]['total_obtained'], '75')
        self.assertEqual(data['statistics']['students_with_data'], 2)
        self.assertIsInstance(data['details'][0]['rows'][0]['exam_date'], str)
        json.loads(self.build().to_json())

    def test_missing_student_gets_placeholder(self):
        summary = aggregate_class(self.students, self.records, class_id=5)
        with self.assertLogs('results.reports', level='WARNING'):
            report = assemble_class_report(summary, {1: self.students[0]})
        self.assertEqual(report.summary[1].name, 'Student 2')
        self.assertIsNone(report.summary[1].roll_number)
