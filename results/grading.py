"""
Letter grades and pass/fail verdicts for percentages.

The letter grade and the pass/fail verdict are separate rules: the grade
comes from walking the band table highest threshold first, while a pass is
simply ``percentage >= pass mark``. With the default table the two only
line up at the C boundary.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from . import config
from .records import HUNDRED, ZERO, as_decimal


@dataclass(frozen=True)
class GradeBand:
    """A percentage threshold (inclusive) mapped to a letter grade."""
    min_percentage: Decimal
    label: str


DEFAULT_GRADE_BANDS = (
    GradeBand(Decimal('90'), 'A+'),
    GradeBand(Decimal('80'), 'A'),
    GradeBand(Decimal('70'), 'B+'),
    GradeBand(Decimal('60'), 'B'),
    GradeBand(Decimal('50'), 'C+'),
    GradeBand(Decimal('40'), 'C'),
    GradeBand(Decimal('0'), 'F'),
)


@dataclass(frozen=True)
class GradeResult:
    grade: str
    passed: bool


class GradeClassifier:
    """
    Maps percentages to letter grades and pass/fail verdicts.

    Args:
        bands: Iterable of GradeBand; evaluated highest threshold first.
            The lowest band must start at 0 and acts as the catch-all.
        pass_mark: Minimum percentage to pass (defaults to RESULTS_PASS_MARK)
    """

    def __init__(self, bands=DEFAULT_GRADE_BANDS, pass_mark=None):
        ordered = sorted(
            (GradeBand(as_decimal(b.min_percentage), b.label) for b in bands),
            key=lambda band: band.min_percentage,
            reverse=True,
        )
        if not ordered:
            raise ValueError('A grading table needs at least one band')
        if ordered[-1].min_percentage != ZERO:
            raise ValueError('The lowest grade band must start at 0%')

        self.bands = tuple(ordered)
        if pass_mark is None:
            pass_mark = config.PASS_MARK
        self.pass_mark = as_decimal(pass_mark)

    @property
    def labels(self):
        """Grade labels from best to worst."""
        return tuple(band.label for band in self.bands)

    @property
    def failing_grade(self):
        return self.bands[-1].label

    def grade_for(self, percentage):
        """
        Look up the letter grade for a percentage.

        Values below 0 get the catch-all grade; non-finite values are
        treated as 0.
        """
        value = as_decimal(percentage)
        if value is None:
            value = ZERO
        for band in self.bands:
            if value >= band.min_percentage:
                return band.label
        return self.failing_grade

    def is_passing(self, percentage):
        """Check whether a percentage meets the pass mark."""
        value = as_decimal(percentage)
        if value is None:
            return False
        return value >= self.pass_mark

    def classify(self, percentage):
        return GradeResult(
            grade=self.grade_for(percentage),
            passed=self.is_passing(percentage),
        )

    def grade_order(self, labels):
        """
        Sort grade labels best-first by band order.

        Labels outside the table (e.g. stored grades from another scale)
        follow, alphabetically.
        """
        known = [label for label in self.labels if label in labels]
        unknown = sorted(label for label in set(labels) if label not in self.labels)
        return known + unknown


def classify(percentage, classifier=None):
    """Grade and pass/fail verdict for a percentage using the default table."""
    return (classifier or GradeClassifier()).classify(percentage)


def is_passing(percentage, pass_mark=None):
    value = as_decimal(percentage)
    if value is None:
        return False
    if pass_mark is None:
        pass_mark = config.PASS_MARK
    return value >= as_decimal(pass_mark)


def percentage_of(obtained, maximum):
    """
    Percentage of ``obtained`` out of ``maximum`` at full precision.

    Returns 0 when ``maximum`` is not a positive finite number.
    """
    obtained = as_decimal(obtained)
    maximum = as_decimal(maximum)
    if obtained is None or maximum is None or maximum <= ZERO:
        return ZERO
    return obtained / maximum * HUNDRED


def format_percentage(percentage, places=None):
    """
    Display string for a percentage, e.g. '75.0'.

    Clamped to 0-100 and rounded half-up. Only used for display; never
    feed the result back into calculations.
    """
    if places is None:
        places = config.DISPLAY_DECIMAL_PLACES
    value = as_decimal(percentage)
    if value is None:
        value = ZERO
    value = min(max(value, ZERO), HUNDRED)
    quantum = Decimal(1).scaleb(-places)
    return str(value.quantize(quantum, rounding=ROUND_HALF_UP))
