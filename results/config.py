"""
Configuration settings for the results app.

These values can be overridden in Django settings by prefixing with RESULTS_.
For example, to widen the per-student fetch pool:
    RESULTS_FETCH_POOL_WIDTH = 16

All configuration values are lazily loaded to avoid Django setup issues.
"""
from decimal import Decimal


def _get_setting(name, default):
    """Get a results setting from Django settings or use default."""
    from django.conf import settings
    return getattr(settings, f'RESULTS_{name}', default)


_DEFAULTS = {
    # Concurrency for per-student record fetches
    'FETCH_POOL_WIDTH': 8,

    # Grading policy
    'PASS_MARK': Decimal('40'),

    # Display formatting
    'DISPLAY_DECIMAL_PLACES': 1,

    # Timezone used to take the calendar year of an exam date.
    # None falls back to settings.TIME_ZONE.
    'REPORTING_TIME_ZONE': None,

    # Filter value meaning "no filter"
    'ALL_FILTER_VALUE': 'all',

    # JSON API throttling (per client IP)
    'API_RATE_LIMIT': '120/h',

    # Celery task settings
    'TASK_MAX_RETRIES': 3,
    'TASK_RETRY_DELAY': 60,  # seconds
    'TASK_SOFT_TIME_LIMIT': 5 * 60,
    'TASK_TIME_LIMIT': 6 * 60,
}


class _ConfigProxy:
    """
    Lazy configuration proxy that loads settings only when accessed.
    This avoids Django setup issues during module import.
    """

    def __getattr__(self, name):
        if name in _DEFAULTS:
            return _get_setting(name, _DEFAULTS[name])
        raise AttributeError(f"Unknown config setting: {name}")


_config = _ConfigProxy()


def __getattr__(name):
    """Enable module-level attribute access via the config proxy."""
    return getattr(_config, name)
