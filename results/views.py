"""JSON endpoints exposing student summaries, class summaries and class reports."""
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .decorators import ratelimit
from .exceptions import NotFound, RepositoryError, SupersededRequest
from .records import FilterCriteria
from .services import ResultsService, request_tracker

logger = logging.getLogger(__name__)

CHANNEL_HEADER = 'HTTP_X_RESULTS_CHANNEL'


def get_results_service():
    """Service instance used by the views."""
    return ResultsService()


def _error(message, status):
    return JsonResponse({'error': message}, status=status)


def _parse_criteria(request):
    try:
        return FilterCriteria.from_params(request.GET), None
    except ValueError as e:
        return None, _error(str(e), 400)


def _run_on_channel(request, query):
    """
    Run ``query(token)``, honouring the optional X-Results-Channel header.

    Repository not-found errors map to 404, other repository failures to
    503 and superseded requests to 409.
    """
    channel = request.META.get(CHANNEL_HEADER, '').strip()
    token = request_tracker.begin(channel) if channel else None
    try:
        return query(token), None
    except SupersededRequest:
        return None, _error('Request superseded by a newer request', 409)
    except NotFound as e:
        return None, _error(str(e), 404)
    except RepositoryError as e:
        logger.error(f"Results repository failure: {e}")
        return None, _error('Results are temporarily unavailable', 503)
    finally:
        request_tracker.finish(token)


# ============ Students ============

@require_GET
@ratelimit()
def student_summary(request, student_id):
    """Aggregated results for one student."""
    criteria, error = _parse_criteria(request)
    if error:
        return error

    service = get_results_service()
    summary, error = _run_on_channel(
        request, lambda token: service.get_student_summary(student_id, criteria, token=token)
    )
    if error:
        return error

    data = summary.to_dict(include_records=True)
    data['filters'] = criteria.describe()
    return JsonResponse(data)


# ============ Classes ============

@require_GET
@ratelimit()
def class_summary(request, class_id):
    """Roster of student summaries plus grade distributions for a class."""
    criteria, error = _parse_criteria(request)
    if error:
        return error

    service = get_results_service()
    summary, error = _run_on_channel(
        request, lambda token: service.get_class_summary(class_id, criteria, token=token)
    )
    if error:
        return error
    return JsonResponse(summary.to_dict())


@require_GET
@ratelimit()
def class_report(request, class_id):
    """Printable class report as structured data."""
    criteria, error = _parse_criteria(request)
    if error:
        return error

    service = get_results_service()
    report, error = _run_on_channel(
        request, lambda token: service.get_class_report(class_id, criteria, token=token)
    )
    if error:
        return error
    return JsonResponse(report.to_dict())


@require_GET
@ratelimit()
def school_classes(request, school_id):
    """Classes of a school, for class pickers."""
    service = get_results_service()
    classes, error = _run_on_channel(request, lambda token: service.get_school_classes(school_id))
    if error:
        return error

    return JsonResponse({
        'classes': [
            {'id': c.id, 'name': c.name}
            for c in classes
        ]
    })
