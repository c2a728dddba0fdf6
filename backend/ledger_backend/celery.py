"""
Celery application configuration.

Runs the outbox dispatcher: business events written by the commerce layer
are delivered to their subscribers (the accounting bridge) by workers,
plus the periodic sweep that catches anything a post-commit hook missed.

Usage:
    # Start worker
    celery -A ledger_backend worker -l INFO

    # Start beat scheduler (outbox sweep, consumer health)
    celery -A ledger_backend beat -l INFO
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ledger_backend.settings")

app = Celery("ledger_backend")

app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
