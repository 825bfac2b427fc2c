# ledger_backend/__init__.py
"""
Daily stock ledger backend.

Loads the Celery app on Django startup so @shared_task decorators bind to it.
"""

from ledger_backend.celery import app as celery_app

__all__ = ("celery_app",)
