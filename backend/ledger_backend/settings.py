import os
import sys
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url
from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", os.environ.get("DJANGO_SECRET_KEY", "changeme"))
DEBUG = os.getenv("DEBUG", os.getenv("DJANGO_DEBUG", "True")) == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

# Include Django's manage.py test invocation.
TESTING = (
    "pytest" in sys.modules
    or "PYTEST_CURRENT_TEST" in os.environ
    or "test" in sys.argv
)

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "ops.apps.OpsConfig",  # Operations & observability
    "tenant.apps.TenantConfig",  # Tenant/company directory
    "daily_ledger.apps.DailyLedgerConfig",
    "django_celery_beat",  # Periodic tasks
    "django_celery_results",  # Task results
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "ledger_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "ledger_backend.wsgi.application"

# =============================================================================
# Database Configuration
# =============================================================================
DATABASES = {
    "default": dj_database_url.config(
        env="DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# Daily Ledger Configuration
# =============================================================================
# The single civil offset every ledger-day boundary is computed in.
# 330 minutes = UTC+05:30 (IST).
LEDGER_UTC_OFFSET_MINUTES = int(os.getenv("LEDGER_UTC_OFFSET_MINUTES", "330"))

# Attempts per ledger mutation before a version conflict is raised
LEDGER_SAVE_MAX_ATTEMPTS = int(os.getenv("LEDGER_SAVE_MAX_ATTEMPTS", "5"))

# Collaborator providers (dotted paths). Empty = null provider (zero figures).
LEDGER_INVENTORY_PROVIDER = os.getenv("LEDGER_INVENTORY_PROVIDER", "")
LEDGER_TRANSACTION_PROVIDER = os.getenv("LEDGER_TRANSACTION_PROVIDER", "")

# Civil time of the daily carry-forward trigger
LEDGER_CARRY_FORWARD_HOUR = int(os.getenv("LEDGER_CARRY_FORWARD_HOUR", "0"))
LEDGER_CARRY_FORWARD_MINUTE = int(os.getenv("LEDGER_CARRY_FORWARD_MINUTE", "5"))

# =============================================================================
# Celery Configuration (Async Task Processing)
# =============================================================================
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = "django-db"
CELERY_CACHE_BACKEND = "django-cache"

# Celery settings
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes
CELERY_WORKER_PREFETCH_MULTIPLIER = 1  # Prevent task hoarding

# Run tasks inline during tests
CELERY_TASK_ALWAYS_EAGER = TESTING
CELERY_TASK_EAGER_PROPAGATES = TESTING

# Celery Beat (periodic tasks)
CELERY_BEAT_SCHEDULER = "django_celery_beat.schedulers:DatabaseScheduler"

# Beat runs in UTC; shift the civil trigger time by the ledger offset.
_carry_forward_utc_minutes = (
    LEDGER_CARRY_FORWARD_HOUR * 60
    + LEDGER_CARRY_FORWARD_MINUTE
    - LEDGER_UTC_OFFSET_MINUTES
) % (24 * 60)

CELERY_BEAT_SCHEDULE = {
    "daily-ledger-carry-forward": {
        "task": "daily_ledger.tasks.run_daily_carry_forward",
        "schedule": crontab(
            hour=_carry_forward_utc_minutes // 60,
            minute=_carry_forward_utc_minutes % 60,
        ),
    },
}

# =============================================================================
# Structured Logging Configuration
# =============================================================================
from ops.logging_config import get_logging_config
LOGGING = get_logging_config(DEBUG)

# =============================================================================
# Observability Configuration
# =============================================================================
# Application version (set via CI/CD)
VERSION = os.getenv("APP_VERSION", "dev")
