from django.db import models

from results.records import StudentRef


class Student(models.Model):
    """
    Represents a student enrolled in the school.
    """
    # Personal Information
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    other_names = models.CharField(max_length=100, blank=True)

    # Admission Details
    admission_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique student ID/admission number"
    )
    roll_number = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Roll number within the current class"
    )

    # Enrollment
    current_class = models.ForeignKey(
        'academics.Class',
        on_delete=models.PROTECT,
        related_name='students',
        null=True,
        blank=True
    )

    # Metadata
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['last_name', 'first_name']
        verbose_name = "Student"
        verbose_name_plural = "Students"
        indexes = [
            models.Index(fields=['current_class', 'is_active'], name='student_class_active_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.admission_number})"

    @property
    def full_name(self):
        """Return full name of student."""
        names = [self.first_name]
        if self.other_names:
            names.append(self.other_names)
        names.append(self.last_name)
        return ' '.join(names)

    def to_ref(self):
        """Read-only reference used by the results engine."""
        return StudentRef(
            id=self.pk,
            name=self.full_name,
            roll_number=self.roll_number,
            class_id=self.current_class_id,
        )
