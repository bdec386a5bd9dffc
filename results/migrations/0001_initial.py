from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
        ('students', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Mark',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('exam_type', models.CharField(choices=[('First Terminal', 'First Terminal'), ('Second Terminal', 'Second Terminal'), ('Mid-Terminal', 'Mid-Terminal'), ('Annual', 'Annual'), ('Test', 'Test')], max_length=20)),
                ('exam_date', models.DateTimeField()),
                ('marks_obtained', models.DecimalField(decimal_places=2, help_text='Marks earned in this exam', max_digits=6, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('max_marks', models.DecimalField(decimal_places=2, help_text='Maximum marks available for this exam', max_digits=6, validators=[django.core.validators.MinValueValidator(Decimal('1'))])),
                ('grade', models.CharField(blank=True, help_text='Letter grade (set automatically on save)', max_length=5)),
                ('comments', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='academics.class')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='students.student')),
                ('subject', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='academics.subject')),
            ],
            options={
                'verbose_name': 'Mark',
                'verbose_name_plural': 'Marks',
                'db_table': 'mark',
                'ordering': ['-exam_date', 'subject__name'],
                'indexes': [
                    models.Index(fields=['student', 'exam_date'], name='mark_student_date_idx'),
                    models.Index(fields=['class_assigned', 'exam_type'], name='mark_class_type_idx'),
                ],
                'unique_together': {('student', 'subject', 'exam_type', 'exam_date')},
            },
        ),
    ]
