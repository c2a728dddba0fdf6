import os
import sys
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", os.environ.get("DJANGO_SECRET_KEY", "changeme"))
DEBUG = os.getenv("DEBUG", os.getenv("DJANGO_DEBUG", "False")) == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

# Test-mode flag. Include Django's manage.py test invocation.
TESTING = (
    "PYTEST_CURRENT_TEST" in os.environ
    or "pytest" in sys.argv[0]
    or "test" in sys.argv
)
DISABLE_EVENT_VALIDATION = os.getenv("DISABLE_EVENT_VALIDATION", "False") == "True"

# When True, outbox subscribers run in-process right after the emitting
# transaction commits. Otherwise a Celery task is queued on commit.
EVENTS_SYNC = os.getenv("EVENTS_SYNC", "") == "True" or DEBUG or TESTING

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "ops.apps.OpsConfig",
    "tenant.apps.TenantConfig",
    "accounts.apps.AccountsConfig",
    "commerce.apps.CommerceConfig",
    "accounting.apps.AccountingConfig",
    "events.apps.EventsConfig",
    "django_celery_beat",  # Periodic tasks
    "django_celery_results",  # Task results
]

MIDDLEWARE = []

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

LANGUAGE_CODE = "es-co"
TIME_ZONE = os.getenv("TIME_ZONE", "America/Bogota")
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "accounts.User"

# =============================================================================
# Accounting
# =============================================================================
# PUC class that groups cash and bank accounts (Disponible).
ACCOUNTING_CASH_CLASS_PREFIX = os.getenv("ACCOUNTING_CASH_CLASS_PREFIX", "11")

# =============================================================================
# Celery Configuration (Async Task Processing)
# =============================================================================
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = "django-db"
CELERY_CACHE_BACKEND = "django-cache"

CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes
CELERY_WORKER_PREFETCH_MULTIPLIER = 1  # Prevent task hoarding
CELERY_TASK_ALWAYS_EAGER = TESTING

# Celery Beat (periodic tasks)
CELERY_BEAT_SCHEDULER = "django_celery_beat.schedulers:DatabaseScheduler"
CELERY_BEAT_SCHEDULE = {
    # Safety net for events whose on-commit dispatch was lost (worker restart, broker outage).
    "sweep-outbox": {
        "task": "events.tasks.process_all_events",
        "schedule": 60.0,
    },
    "outbox-health": {
        "task": "events.tasks.check_consumer_health",
        "schedule": 300.0,
    },
}

# Consumer lag threshold for health checks
CONSUMER_LAG_THRESHOLD = int(os.getenv("CONSUMER_LAG_THRESHOLD", "1000"))

# =============================================================================
# Structured Logging Configuration
# =============================================================================
from ops.logging_config import get_logging_config
LOGGING = get_logging_config(DEBUG)

VERSION = os.getenv("APP_VERSION", "dev")
