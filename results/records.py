"""
Value types passed between the components of the results engine.

ORM rows are converted into these at the repository boundary, so the
grading, filtering, aggregation and report code never touches the database
and never mutates the records it is given.
"""
import re
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Hashable, List, Optional, Tuple, Union

from . import config

ZERO = Decimal('0')
HUNDRED = Decimal('100')

_YEAR_PATTERN = re.compile(r'[0-9]{4}')


def as_decimal(value):
    """
    Convert a numeric value to Decimal.

    Returns None for missing values, booleans, unparseable input and
    non-finite numbers (NaN, +/-Infinity).
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not result.is_finite():
        return None
    return result


def to_jsonable(value):
    """
    Recursively convert engine values into JSON-safe primitives.

    Decimals become strings so no precision is lost; dates become ISO strings.
    """
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


@dataclass(frozen=True)
class MarkRecord:
    """One exam score for one student in one subject."""
    id: Hashable
    student_id: Hashable
    class_id: Hashable
    subject_id: Hashable
    subject_name: str
    exam_type: str
    exam_date: Union[date, datetime]
    marks_obtained: Any
    max_marks: Any
    grade: str = ''
    comments: str = ''

    @property
    def is_valid(self) -> bool:
        """A record is usable when both marks are finite, marks >= 0 and max > 0."""
        obtained = as_decimal(self.marks_obtained)
        maximum = as_decimal(self.max_marks)
        if obtained is None or maximum is None:
            return False
        return obtained >= ZERO and maximum > ZERO

    @property
    def percentage(self) -> Optional[Decimal]:
        """Score as a percentage of max marks, or None for malformed records."""
        if not self.is_valid:
            return None
        return as_decimal(self.marks_obtained) / as_decimal(self.max_marks) * HUNDRED

    @property
    def stored_grade(self) -> str:
        return (self.grade or '').strip()


@dataclass(frozen=True)
class StudentRef:
    """Read-only student reference data."""
    id: Hashable
    name: str
    roll_number: Any = None
    class_id: Hashable = None


@dataclass(frozen=True)
class ClassRef:
    id: Hashable
    name: str
    school_id: Hashable = None


@dataclass(frozen=True)
class FilterCriteria:
    """
    Year and exam-type selection applied to mark records.

    Either value may be None or the "all" sentinel, meaning no filtering on
    that field. A year must be a 4-digit string.
    """
    year: Optional[str] = None
    exam_type: Optional[str] = None

    def __post_init__(self):
        year = self.year
        if year is not None and not isinstance(year, str):
            year = str(year)
            object.__setattr__(self, 'year', year)
        if self.year_filter is not None and not _YEAR_PATTERN.fullmatch(year):
            raise ValueError(f"Year filter must be a 4-digit year, got '{year}'")

    @classmethod
    def from_params(cls, params):
        """Build criteria from a query-parameter mapping (year, exam_type)."""
        year = (params.get('year') or '').strip() or None
        exam_type = (params.get('exam_type') or '').strip() or None
        return cls(year=year, exam_type=exam_type)

    @staticmethod
    def _active(value):
        if value is None:
            return None
        if value.strip().lower() == str(config.ALL_FILTER_VALUE).lower():
            return None
        return value

    @property
    def year_filter(self) -> Optional[str]:
        """The year to match, or None when not filtering by year."""
        return self._active(self.year)

    @property
    def exam_type_filter(self) -> Optional[str]:
        """The exam type to match, or None when not filtering by exam type."""
        return self._active(self.exam_type)

    def describe(self) -> Dict[str, str]:
        all_value = config.ALL_FILTER_VALUE
        return {
            'year': self.year_filter or all_value,
            'exam_type': self.exam_type_filter or all_value,
        }


@dataclass(frozen=True)
class SubjectResult:
    """A student's combined results in one subject."""
    subject_id: Hashable
    subject_name: str
    exam_count: int
    total_obtained: Decimal
    total_max: Decimal
    percentage: Decimal
    grade: str
    passed: bool


@dataclass(frozen=True)
class StudentSummary:
    """
    Aggregated results for one student.

    ``exam_count == 0`` means no results were entered (or none matched the
    filters); callers must use it, not ``percentage``, to tell "no data"
    apart from a genuine 0% score.
    """
    student_id: Hashable
    total_obtained: Decimal
    total_max: Decimal
    percentage: Decimal
    grade: str
    exam_count: int
    grade_counts: Dict[str, int]
    passed: bool
    average_marks: Decimal = ZERO
    excluded_count: int = 0
    records: Tuple[MarkRecord, ...] = ()

    @property
    def has_data(self) -> bool:
        return self.exam_count > 0

    def to_dict(self, include_records=False):
        data = {
            'student_id': to_jsonable(self.student_id),
            'total_obtained': to_jsonable(self.total_obtained),
            'total_max': to_jsonable(self.total_max),
            'percentage': to_jsonable(self.percentage),
            'grade': self.grade,
            'exam_count': self.exam_count,
            'grade_counts': dict(self.grade_counts),
            'passed': self.passed,
            'has_data': self.has_data,
            'average_marks': to_jsonable(self.average_marks),
            'excluded_count': self.excluded_count,
        }
        if include_records:
            data['records'] = to_jsonable(self.records)
        return data


@dataclass(frozen=True)
class ClassStatistics:
    """Class-wide figures derived from the student summaries."""
    total_students: int = 0
    students_with_data: int = 0
    students_without_data: int = 0
    average_percentage: Decimal = ZERO
    highest_percentage: Decimal = ZERO
    lowest_percentage: Decimal = ZERO
    passed: int = 0
    failed: int = 0
    pass_rate: Decimal = ZERO


@dataclass(frozen=True)
class ClassSummary:
    """
    Summaries for every student enrolled in a class, in enrollment order.

    ``grade_distribution`` counts individual exam entries per grade;
    ``student_grade_distribution`` counts students per overall grade.
    Both only include students with results.
    """
    class_id: Hashable
    per_student: Tuple[StudentSummary, ...]
    grade_distribution: Dict[str, int]
    student_grade_distribution: Dict[str, int]
    statistics: ClassStatistics
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    unavailable_student_ids: Tuple[Hashable, ...] = ()

    def summary_for(self, student_id) -> Optional[StudentSummary]:
        for summary in self.per_student:
            if summary.student_id == student_id:
                return summary
        return None

    @property
    def students_with_data(self) -> List[StudentSummary]:
        return [s for s in self.per_student if s.has_data]

    def to_dict(self):
        return {
            'class_id': to_jsonable(self.class_id),
            'filters': self.criteria.describe(),
            'per_student': [s.to_dict() for s in self.per_student],
            'grade_distribution': dict(self.grade_distribution),
            'student_grade_distribution': dict(self.student_grade_distribution),
            'statistics': to_jsonable(self.statistics),
            'unavailable_student_ids': to_jsonable(self.unavailable_student_ids),
        }
