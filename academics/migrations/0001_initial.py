import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('schools', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Subject',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='e.g., Mathematics, English Language, Integrated Science', max_length=100)),
                ('short_name', models.CharField(blank=True, help_text='e.g., MATH, ENG, INT SCI', max_length=20)),
                ('code', models.CharField(blank=True, help_text='Optional subject code', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Subject',
                'verbose_name_plural': 'Subjects',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Class',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level_type', models.CharField(choices=[('kg', 'Kindergarten'), ('primary', 'Primary'), ('jhs', 'JHS'), ('shs', 'SHS')], default='primary', max_length=10)),
                ('level_number', models.PositiveSmallIntegerField(help_text='1, 2, 3, etc.')),
                ('section', models.CharField(help_text='A, B, C, etc.', max_length=5)),
                ('name', models.CharField(editable=False, help_text='Auto-generated: B1-A, B8-B, SHS2-A', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('school', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='classes', to='schools.school')),
            ],
            options={
                'verbose_name': 'Class',
                'verbose_name_plural': 'Classes',
                'ordering': ['level_type', 'level_number', 'section'],
                'unique_together': {('school', 'level_type', 'level_number', 'section')},
            },
        ),
    ]
