from django.test import TestCase

from academics.models import Class
from schools.models import School
from students.models import Student


class StudentModelTests(TestCase):
    """Tests for the Student model."""

    def setUp(self):
        self.school = School.objects.create(name='Test School')
        self.klass = Class.objects.create(
            school=self.school,
            level_type=Class.LevelType.PRIMARY,
            level_number=3,
            section='A'
        )

    def test_full_name(self):
        """Test full name includes other names when present."""
        student = Student(first_name='Ama', last_name='Mensah', admission_number='S1')
        self.assertEqual(student.full_name, 'Ama Mensah')

        student.other_names = 'Serwaa'
        self.assertEqual(student.full_name, 'Ama Serwaa Mensah')

    def test_str_representation(self):
        """Test string representation."""
        student = Student(first_name='Kofi', last_name='Owusu', admission_number='S2')
        self.assertEqual(str(student), 'Kofi Owusu (S2)')

    def test_to_ref(self):
        """Test conversion to the results engine reference."""
        student = Student.objects.create(
            first_name='Yaw', last_name='Boateng', admission_number='S3',
            roll_number=7, current_class=self.klass
        )
        ref = student.to_ref()
        self.assertEqual(ref.id, student.pk)
        self.assertEqual(ref.name, 'Yaw Boateng')
        self.assertEqual(ref.roll_number, 7)
        self.assertEqual(ref.class_id, self.klass.pk)

    def test_to_ref_without_class(self):
        """Test students not placed in a class."""
        student = Student.objects.create(first_name='Esi', last_name='Asante', admission_number='S4')
        self.assertIsNone(student.to_ref().class_id)
