from django.test import TestCase

from schools.models import School


class SchoolModelTests(TestCase):
    """Tests for the School model."""

    def test_display_name(self):
        """Test short name is preferred for display."""
        school = School.objects.create(name='Accra Academy', short_name='ACCRA')
        self.assertEqual(school.display_name, 'ACCRA')

        school.short_name = ''
        self.assertEqual(school.display_name, 'Accra Academy')

    def test_default_ordering(self):
        School.objects.create(name='Wesley Girls')
        School.objects.create(name='Achimota School')
        self.assertEqual(
            list(School.objects.values_list('name', flat=True)),
            ['Achimota School', 'Wesley Girls'],
        )
