"""
Celery tasks for results app.
Builds class reports in the background for large classes and print runs.
"""
import logging

from celery import shared_task

from . import config
from .exceptions import NotFound, RepositoryError
from .records import FilterCriteria
from .services import ResultsService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=config.TASK_MAX_RETRIES,
    default_retry_delay=config.TASK_RETRY_DELAY,
    soft_time_limit=config.TASK_SOFT_TIME_LIMIT,
    time_limit=config.TASK_TIME_LIMIT,
)
def generate_class_report(self, class_id, year=None, exam_type=None):
    """
    Build a class report and return it as JSON-safe data.

    Args:
        class_id: ID of the Class
        year: Optional 4-digit year filter
        exam_type: Optional exam type filter

    Retries with exponential backoff when the repository fails; a missing
    class is not retried.
    """
    try:
        criteria = FilterCriteria(year=year, exam_type=exam_type)
    except ValueError as e:
        logger.error(f"Invalid filters for class {class_id} report: {e}")
        return {'success': False, 'error': str(e)}

    logger.info(f"Generating report for class {class_id} {criteria.describe()}")

    try:
        report = ResultsService().get_class_report(class_id, criteria)
    except NotFound as e:
        logger.error(f"Class report not generated: {e}")
        return {'success': False, 'error': str(e)}
    except RepositoryError as e:
        logger.warning(f"Retryable error generating report for class {class_id}: {e}")
        raise self.retry(exc=e, countdown=config.TASK_RETRY_DELAY * (2 ** self.request.retries))

    logger.info(
        f"Report for class {class_id} ready: {len(report.summary)} students, "
        f"{len(report.details)} with results"
    )
    return {
        'success': True,
        'class_id': class_id,
        'report': report.to_dict(),
    }
