"""
Presentation-facing entry points of the results engine.

``ResultsService`` fetches records from a MarkRepository, then runs the pure
filter/aggregate/report steps. Per-student record fetches run on a bounded
thread pool; a failed fetch degrades that student to "no data" instead of
failing the whole class.

Re-running a class view with new filters should go through a
``LatestRequestTracker`` channel: only the newest request on a channel may
deliver a result, older ones are abandoned with ``SupersededRequest``.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
import itertools
import logging
import threading

from . import config
from .aggregation import aggregate_class, aggregate_student
from .exceptions import RepositoryError, StudentNotFound, SupersededRequest
from .filters import filter_records
from .grading import GradeClassifier
from .records import FilterCriteria
from .reports import assemble_class_report
from .repository import DjangoMarkRepository

logger = logging.getLogger(__name__)


class RequestToken:
    """Handle for one request on a last-request-wins channel."""

    def __init__(self, tracker, channel, generation):
        self.tracker = tracker
        self.channel = channel
        self.generation = generation

    @property
    def superseded(self):
        return not self.tracker.is_latest(self.channel, self.generation)

    def check(self):
        """Raise SupersededRequest if a newer request took over the channel."""
        if self.superseded:
            raise SupersededRequest(self.channel)

    def __repr__(self):
        return f"RequestToken({self.channel!r}, {self.generation})"


class LatestRequestTracker:
    """
    Tracks the newest request per channel (e.g. one dashboard view).

    Thread-safe. Generations come from one global counter so a channel
    never reuses a number.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._latest = {}

    def begin(self, channel):
        """Start a request on ``channel``, superseding any in-flight one."""
        with self._lock:
            generation = next(self._counter)
            self._latest[channel] = generation
        return RequestToken(self, channel, generation)

    def is_latest(self, channel, generation):
        with self._lock:
            return self._latest.get(channel) == generation

    def finish(self, token):
        """Forget the channel if ``token`` is still its newest request."""
        if token is None:
            return
        with self._lock:
            if self._latest.get(token.channel) == token.generation:
                del self._latest[token.channel]


# Shared by all views in this process
request_tracker = LatestRequestTracker()


class ResultsService:
    """
    Computes student summaries, class summaries and class reports.

    Args:
        repository: MarkRepository (defaults to the ORM-backed one)
        classifier: GradeClassifier (defaults to the standard table)
        pool_width: Maximum concurrent per-student fetches
            (defaults to RESULTS_FETCH_POOL_WIDTH)
    """

    def __init__(self, repository=None, classifier=None, pool_width=None):
        self.repository = repository or DjangoMarkRepository()
        self.classifier = classifier or GradeClassifier()
        self.pool_width = max(1, int(pool_width or config.FETCH_POOL_WIDTH))

    # ============ Fetching ============

    def _fetch_one(self, student_id):
        try:
            return self.repository.get_marks_by_student(student_id)
        finally:
            self.repository.release_thread_resources()

    def fetch_records(self, students, token=None):
        """
        Fetch every student's records with bounded concurrency.

        Args:
            students: Sequence of StudentRef
            token: Optional RequestToken; when superseded, pending fetches
                are cancelled and SupersededRequest is raised

        Returns:
            tuple: (dict of student id -> list of MarkRecord,
                    tuple of student ids whose fetch failed, in roster order)
        """
        students = list(students)
        records_by_student = {}
        failed = set()

        if not students:
            return records_by_student, ()

        width = min(self.pool_width, len(students))
        pool = ThreadPoolExecutor(max_workers=width, thread_name_prefix='results-fetch')
        abandoned = False
        try:
            future_map = {
                pool.submit(self._fetch_one, student.id): student.id
                for student in students
            }
            for future in as_completed(future_map):
                if token is not None and token.superseded:
                    abandoned = True
                    logger.info(f"Abandoning record fetch on channel {token.channel!r}: superseded")
                    raise SupersededRequest(token.channel)

                student_id = future_map[future]
                try:
                    records_by_student[student_id] = future.result()
                except RepositoryError as e:
                    logger.warning(f"Could not fetch marks for student {student_id}: {e}")
                    records_by_student[student_id] = []
                    failed.add(student_id)
                except Exception:
                    logger.exception(f"Unexpected error fetching marks for student {student_id}")
                    records_by_student[student_id] = []
                    failed.add(student_id)
        finally:
            # Stale fetches still running are left to finish on their own
            pool.shutdown(wait=not abandoned, cancel_futures=abandoned)

        unavailable = tuple(s.id for s in students if s.id in failed)
        return records_by_student, unavailable

    # ============ Queries ============

    def get_student_summary(self, student_id, criteria=None, token=None):
        """
        Summary for a single student.

        Raises:
            StudentNotFound: if the student does not exist
            SupersededRequest: if ``token`` was superseded while fetching
        """
        criteria = criteria or FilterCriteria()
        try:
            records = self.repository.get_marks_by_student(student_id)
        except StudentNotFound:
            raise
        except RepositoryError as e:
            logger.warning(f"Could not fetch marks for student {student_id}, reporting no data: {e}")
            records = []

        if token is not None:
            token.check()

        return aggregate_student(
            filter_records(records, criteria),
            student_id=student_id,
            classifier=self.classifier,
        )

    def _load_class(self, class_id, criteria, token):
        students = self.repository.get_students_by_class(class_id)
        if token is not None:
            token.check()

        records_by_student, unavailable = self.fetch_records(students, token=token)
        summary = aggregate_class(
            students,
            records_by_student,
            criteria=criteria,
            classifier=self.classifier,
            class_id=class_id,
            unavailable_student_ids=unavailable,
        )
        if token is not None:
            token.check()

        stats = summary.statistics
        logger.info(
            f"Aggregated class {class_id} {criteria.describe()}: "
            f"{stats.total_students} students, {stats.students_with_data} with results, "
            f"{len(unavailable)} unavailable"
        )
        return students, summary

    def get_class_summary(self, class_id, criteria=None, token=None):
        """
        Summary of every student in a class.

        Raises:
            ClassNotFound / RepositoryError: if the class roster cannot be loaded
            SupersededRequest: if ``token`` was superseded before completion
        """
        criteria = criteria or FilterCriteria()
        _, summary = self._load_class(class_id, criteria, token)
        return summary

    def get_class_report(self, class_id, criteria=None, token=None):
        """Printable class report (summary table + per-student details)."""
        criteria = criteria or FilterCriteria()
        students, summary = self._load_class(class_id, criteria, token)
        students_by_id = {student.id: student for student in students}
        report = assemble_class_report(summary, students_by_id, classifier=self.classifier)
        if token is not None:
            token.check()
        return report

    def get_school_classes(self, school_id):
        return self.repository.get_classes_by_school(school_id)
