import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-analytics-dev-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "true").lower() == "true"

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "apps.analytics",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
]

ROOT_URLCONF = "core.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Uploads are parsed in memory, so let Django buffer them up to the analytics limit.
MAX_UPLOAD_SIZE = int(os.environ.get("ANALYTICS_MAX_UPLOAD_SIZE", 100 * 1024 * 1024))
DATA_UPLOAD_MAX_MEMORY_SIZE = MAX_UPLOAD_SIZE
FILE_UPLOAD_MAX_MEMORY_SIZE = MAX_UPLOAD_SIZE

ANALYTICS = {
    "TYPE_SAMPLE_SIZE": int(os.environ.get("ANALYTICS_TYPE_SAMPLE_SIZE", 1000)),
    "MISSING_VALUE_STRATEGY": os.environ.get("ANALYTICS_MISSING_VALUE_STRATEGY", "auto"),
    "DUPLICATE_STRATEGY": os.environ.get("ANALYTICS_DUPLICATE_STRATEGY", "strict"),
    "HANDLE_OUTLIERS": os.environ.get("ANALYTICS_HANDLE_OUTLIERS", "false").lower() == "true",
    "OUTLIER_STRATEGY": os.environ.get("ANALYTICS_OUTLIER_STRATEGY", "iqr"),
    "PERFORMANCE_MODE_ROWS": int(os.environ.get("ANALYTICS_PERFORMANCE_MODE_ROWS", 1000)),
    "MAX_UPLOAD_SIZE": MAX_UPLOAD_SIZE,
    "TOP_RECOMMENDATIONS": int(os.environ.get("ANALYTICS_TOP_RECOMMENDATIONS", 3)),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "apps.analytics": {
            "handlers": ["console"],
            "level": os.environ.get("ANALYTICS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
