"""
Mark Repository: where the results engine gets its raw data.

The engine only depends on the ``MarkRepository`` interface. The
ORM-backed implementation below reads from this project's models; other
implementations (e.g. one calling a remote REST backend) must raise
``RepositoryError`` subclasses for every failure so that per-student
failures can be isolated.
"""
from abc import ABC, abstractmethod
import logging
from typing import List

from django.db import DatabaseError, connections

from .exceptions import ClassNotFound, RepositoryError, SchoolNotFound, StudentNotFound
from .records import ClassRef, MarkRecord, StudentRef

logger = logging.getLogger(__name__)


class MarkRepository(ABC):
    """
    Abstract source of mark records and class rosters.

    All methods may be called concurrently from worker threads.
    """

    @abstractmethod
    def get_marks_by_student(self, student_id) -> List[MarkRecord]:
        """
        All mark records for a student.

        Raises:
            StudentNotFound: if the student does not exist. A student without
                marks returns an empty list.
            RepositoryError: for any other failure.
        """
        pass

    @abstractmethod
    def get_students_by_class(self, class_id) -> List[StudentRef]:
        """
        Students currently enrolled in a class.

        Raises:
            ClassNotFound: if the class does not exist.
        """
        pass

    @abstractmethod
    def get_classes_by_school(self, school_id) -> List[ClassRef]:
        """
        Classes belonging to a school.

        Raises:
            SchoolNotFound: if the school does not exist.
        """
        pass

    def release_thread_resources(self):
        """Hook called at the end of each worker-thread fetch."""
        pass


class DjangoMarkRepository(MarkRepository):
    """Repository backed by the project's Django models."""

    def get_marks_by_student(self, student_id):
        from students.models import Student
        from .models import Mark

        try:
            if not Student.objects.filter(pk=student_id).exists():
                raise StudentNotFound(f"Student {student_id} not found")

            marks = Mark.objects.filter(
                student_id=student_id
            ).select_related('subject').order_by('exam_date', 'subject__name', 'pk')

            return [mark.to_record() for mark in marks]
        except DatabaseError as e:
            raise RepositoryError(f"Could not load marks for student {student_id}: {e}") from e

    def get_students_by_class(self, class_id):
        from academics.models import Class
        from students.models import Student

        try:
            if not Class.objects.filter(pk=class_id).exists():
                raise ClassNotFound(f"Class {class_id} not found")

            students = Student.objects.filter(
                current_class_id=class_id,
                is_active=True
            ).order_by('roll_number', 'last_name', 'first_name')

            return [student.to_ref() for student in students]
        except DatabaseError as e:
            raise RepositoryError(f"Could not load students for class {class_id}: {e}") from e

    def get_classes_by_school(self, school_id):
        from academics.models import Class
        from schools.models import School

        try:
            if not School.objects.filter(pk=school_id).exists():
                raise SchoolNotFound(f"School {school_id} not found")

            classes = Class.objects.filter(
                school_id=school_id,
                is_active=True
            ).order_by('level_number', 'section')

            return [ClassRef(id=c.pk, name=c.name, school_id=c.school_id) for c in classes]
        except DatabaseError as e:
            raise RepositoryError(f"Could not load classes for school {school_id}: {e}") from e

    def release_thread_resources(self):
        # Worker threads open their own connections; close them before the
        # thread is reused or torn down.
        connections.close_all()
