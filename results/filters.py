"""
Selection of mark records by exam year and exam type.
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from django.utils import timezone

from . import config
from .records import FilterCriteria

logger = logging.getLogger(__name__)


def get_reporting_timezone():
    """Timezone used to decide which calendar year an exam falls in."""
    name = config.REPORTING_TIME_ZONE
    if name:
        return ZoneInfo(name)
    return timezone.get_default_timezone()


def exam_year(exam_date, tz=None):
    """
    Calendar year of an exam date in the reporting timezone.

    Aware datetimes are converted first; naive datetimes and plain dates are
    taken as already local.
    """
    if isinstance(exam_date, datetime) and timezone.is_aware(exam_date):
        exam_date = timezone.localtime(exam_date, tz or get_reporting_timezone())
    return exam_date.year


def filter_records(records, criteria=None):
    """
    Keep the records matching the criteria.

    Year and exam type are both optional and combine with AND. Exam types
    match case-insensitively. Input order is preserved and the input is
    never modified, so applying the same criteria twice gives the same result.

    Args:
        records: Iterable of MarkRecord
        criteria: FilterCriteria (None means no filtering)

    Returns:
        list: Matching MarkRecord instances
    """
    records = list(records)
    if criteria is None:
        criteria = FilterCriteria()

    year = criteria.year_filter
    exam_type = criteria.exam_type_filter
    if year is None and exam_type is None:
        return records

    tz = get_reporting_timezone() if year is not None else None
    wanted_type = exam_type.strip().casefold() if exam_type is not None else None

    matched = []
    for record in records:
        if year is not None:
            if record.exam_date is None or str(exam_year(record.exam_date, tz)) != year:
                continue
        if wanted_type is not None:
            if (record.exam_type or '').strip().casefold() != wanted_type:
                continue
        matched.append(record)

    logger.debug(f"Filter {criteria.describe()} kept {len(matched)} of {len(records)} records")
    return matched
