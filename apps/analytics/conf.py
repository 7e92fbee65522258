from django.conf import settings

DEFAULTS = {
    "TYPE_SAMPLE_SIZE": 1000,
    "MISSING_VALUE_STRATEGY": "auto",
    "DUPLICATE_STRATEGY": "strict",
    "HANDLE_OUTLIERS": False,
    "OUTLIER_STRATEGY": "iqr",
    "PERFORMANCE_MODE_ROWS": 1000,
    "MAX_UPLOAD_SIZE": 100 * 1024 * 1024,
    "TOP_RECOMMENDATIONS": 3,
}


def get_setting(name: str):
    """
    Read an analytics setting, falling back to the built-in default.

    The pipeline can run outside a configured Django project, in which case
    only the defaults apply.
    """
    default = DEFAULTS[name]
    if not settings.configured:
        return default
    return getattr(settings, "ANALYTICS", {}).get(name, default)
