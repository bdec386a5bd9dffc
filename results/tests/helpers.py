from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
import itertools

from results.records import MarkRecord, StudentRef

_ids = itertools.count(1)


def make_record(student_id=1, obtained='0', maximum='100', subject_id=1,
                subject_name='Mathematics', exam_type='First Terminal',
                exam_date=None, grade='', class_id=1, comments=''):
    """MarkRecord with sensible defaults for tests."""
    if exam_date is None:
        exam_date = datetime(2023, 3, 15, 9, 0, tzinfo=dt_timezone.utc)
    return MarkRecord(
        id=next(_ids),
        student_id=student_id,
        class_id=class_id,
        subject_id=subject_id,
        subject_name=subject_name,
        exam_type=exam_type,
        exam_date=exam_date,
        marks_obtained=Decimal(str(obtained)) if isinstance(obtained, (int, str)) else obtained,
        max_marks=Decimal(str(maximum)) if isinstance(maximum, (int, str)) else maximum,
        grade=grade,
        comments=comments,
    )


def make_students(*names, class_id=1):
    return [
        StudentRef(id=index, name=name, roll_number=index, class_id=class_id)
        for index, name in enumerate(names, start=1)
    ]
