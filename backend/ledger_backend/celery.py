"""
Celery application for the ledger backend.

Runs the daily carry-forward trigger (beat) and request-driven ledger-day
bootstraps (worker).

Usage:
    # Worker
    celery -A ledger_backend worker -l INFO

    # Beat scheduler; CELERY_BEAT_SCHEDULE holds the carry-forward entry
    celery -A ledger_backend beat -l INFO

    # Both in one process (development only)
    celery -A ledger_backend worker -B -l INFO
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ledger_backend.settings")

app = Celery("ledger_backend")

# CELERY_* keys in Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up daily_ledger.tasks
app.autodiscover_tasks()
