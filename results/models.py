from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from .grading import GradeClassifier, percentage_of
from .records import MarkRecord


class Mark(models.Model):
    """
    A student's score in one subject for one exam sitting.
    One row per (student, subject, exam type, exam date).
    """
    class ExamType(models.TextChoices):
        FIRST_TERMINAL = 'First Terminal', _('First Terminal')
        SECOND_TERMINAL = 'Second Terminal', _('Second Terminal')
        MID_TERMINAL = 'Mid-Terminal', _('Mid-Terminal')
        ANNUAL = 'Annual', _('Annual')
        TEST = 'Test', _('Test')

    student = models.ForeignKey(
        'students.Student',
        on_delete=models.CASCADE,
        related_name='marks',
        db_index=True
    )
    class_assigned = models.ForeignKey(
        'academics.Class',
        on_delete=models.CASCADE,
        related_name='marks',
        db_index=True
    )
    subject = models.ForeignKey(
        'academics.Subject',
        on_delete=models.CASCADE,
        related_name='marks',
        db_index=True
    )
    exam_type = models.CharField(
        max_length=20,
        choices=ExamType.choices
    )
    exam_date = models.DateTimeField()
    marks_obtained = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text='Marks earned in this exam'
    )
    max_marks = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('1'))],
        help_text='Maximum marks available for this exam'
    )
    grade = models.CharField(
        max_length=5,
        blank=True,
        help_text='Letter grade (set automatically on save)'
    )
    comments = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'mark'
        ordering = ['-exam_date', 'subject__name']
        verbose_name = 'Mark'
        verbose_name_plural = 'Marks'
        unique_together = ['student', 'subject', 'exam_type', 'exam_date']
        indexes = [
            models.Index(fields=['student', 'exam_date'], name='mark_student_date_idx'),
            models.Index(fields=['class_assigned', 'exam_type'], name='mark_class_type_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.subject.name} ({self.exam_type}): {self.marks_obtained}/{self.max_marks}"

    def clean(self):
        """Validate that marks obtained don't exceed max marks"""
        if (
            self.marks_obtained is not None
            and self.max_marks is not None
            and self.marks_obtained > self.max_marks
        ):
            raise ValidationError(
                f'Marks obtained ({self.marks_obtained}) cannot exceed max marks ({self.max_marks})'
            )

    def get_percentage(self):
        """Get the percentage score for this exam"""
        return percentage_of(self.marks_obtained, self.max_marks)

    def save(self, *args, **kwargs):
        if self.max_marks and self.max_marks > 0 and self.marks_obtained is not None:
            self.grade = GradeClassifier().grade_for(self.get_percentage())
        super().save(*args, **kwargs)

    def to_record(self):
        """Immutable engine record for this row."""
        return MarkRecord(
            id=self.pk,
            student_id=self.student_id,
            class_id=self.class_assigned_id,
            subject_id=self.subject_id,
            subject_name=self.subject.name,
            exam_type=self.exam_type,
            exam_date=self.exam_date,
            marks_obtained=self.marks_obtained,
            max_marks=self.max_marks,
            grade=self.grade,
            comments=self.comments,
        )
