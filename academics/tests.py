"""
Tests for the academics app.

Focuses on:
- Class name generation per level type
- Subject ordering
"""
from django.db import IntegrityError
from django.test import TestCase

from academics.models import Class, Subject
from schools.models import School


class ClassModelTest(TestCase):
    """Tests for Class model."""

    def setUp(self):
        self.school = School.objects.create(name='Test School', short_name='TEST')

    def make_class(self, level_type, level_number, section='A'):
        return Class.objects.create(
            school=self.school,
            level_type=level_type,
            level_number=level_number,
            section=section
        )

    def test_name_generation(self):
        """Test class names per level type."""
        self.assertEqual(self.make_class(Class.LevelType.KG, 2).name, 'KG2-A')
        self.assertEqual(self.make_class(Class.LevelType.PRIMARY, 4).name, 'B4-A')
        self.assertEqual(self.make_class(Class.LevelType.JHS, 2, 'B').name, 'B8-B')
        self.assertEqual(self.make_class(Class.LevelType.SHS, 3).name, 'SHS3-A')

    def test_name_updated_on_save(self):
        """Test name follows level changes."""
        klass = self.make_class(Class.LevelType.PRIMARY, 1)
        klass.section = 'C'
        klass.save()
        self.assertEqual(klass.name, 'B1-C')

    def test_unique_per_school(self):
        """Test a school cannot have two identical classes."""
        self.make_class(Class.LevelType.PRIMARY, 1)
        with self.assertRaises(IntegrityError):
            self.make_class(Class.LevelType.PRIMARY, 1)

    def test_str_representation(self):
        self.assertEqual(str(self.make_class(Class.LevelType.SHS, 1)), 'SHS1-A')


class SubjectModelTest(TestCase):
    """Tests for Subject model."""

    def test_default_ordering(self):
        Subject.objects.create(name='Science')
        Subject.objects.create(name='English Language')
        names = list(Subject.objects.values_list('name', flat=True))
        self.assertEqual(names, ['English Language', 'Science'])
