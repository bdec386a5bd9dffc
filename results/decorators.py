import logging
from functools import wraps

from django.core.cache import cache
from django.http import JsonResponse

from . import config

logger = logging.getLogger(__name__)

PERIOD_SECONDS = {'s': 1, 'm': 60, 'h': 3600, 'd': 86400}


def parse_rate(rate):
    """
    Parse a "number/period" rate such as "120/h".

    Returns:
        tuple: (limit, period_seconds); falls back to 100/hour when malformed
    """
    try:
        limit, period = rate.split('/')
        return int(limit), PERIOD_SECONDS.get(period, 3600)
    except (ValueError, AttributeError):
        return 100, 3600


def get_client_ip(request):
    """Get client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def ratelimit(rate=None):
    """
    Simple cache-based, per-IP rate limiter for the JSON API.

    Args:
        rate: Format "number/period" where period is s/m/h/d.
            Defaults to RESULTS_API_RATE_LIMIT, read per request.

    Usage:
        @ratelimit(rate='60/m')
        def my_view(request):
            ...
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            limit, period_seconds = parse_rate(rate or config.API_RATE_LIMIT)
            cache_key = f"results:ratelimit:{view_func.__name__}:ip:{get_client_ip(request)}"

            # Atomically create the key if it doesn't exist
            if not cache.add(cache_key, 1, period_seconds):
                try:
                    current = cache.incr(cache_key)
                except ValueError:
                    # Key expired between add and incr, recreate
                    cache.set(cache_key, 1, period_seconds)
                    current = 1

                if current > limit:
                    logger.warning(f"Rate limit exceeded for {cache_key}")
                    return JsonResponse(
                        {'error': 'Too many requests. Please try again later.'},
                        status=429
                    )

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator
