"""
Exceptions raised by the results engine.

Malformed mark records and students without results are not errors: the
former are skipped during aggregation and the latter are reported through
``StudentSummary.exam_count == 0``.
"""


class ResultsError(Exception):
    """Base class for results engine errors."""


class RepositoryError(ResultsError):
    """The mark repository could not supply the requested data."""


class NotFound(RepositoryError):
    """The requested student, class or school does not exist."""


class StudentNotFound(NotFound):
    """The requested student does not exist."""


class ClassNotFound(NotFound):
    """The requested class does not exist."""


class SchoolNotFound(NotFound):
    """The requested school does not exist."""


class SupersededRequest(ResultsError):
    """
    A newer request on the same channel replaced this one.

    The stale aggregation is abandoned and its result must not be used.
    """

    def __init__(self, channel):
        self.channel = channel
        super().__init__(f"Request on channel '{channel}' was superseded by a newer request")
