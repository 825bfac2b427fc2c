"""
Celery tasks for the daily ledger.

Tasks:
- run_daily_carry_forward: ensure today's ledger day for every active company
- ensure_ledger_day: create one ledger day off the request path

Usage:
    # Bootstrap today's row after a company posts its first document
    from daily_ledger.tasks import ensure_ledger_day
    ensure_ledger_day.delay(tenant_id, company_id)

    # Scheduled daily at LEDGER_CARRY_FORWARD_HOUR:MINUTE civil time
    # (CELERY_BEAT_SCHEDULE, editable in Django admin -> Periodic Tasks)
"""
import logging
from typing import Optional

from celery import shared_task

from daily_ledger.exceptions import StorageError

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=0)
def run_daily_carry_forward(self, now: Optional[str] = None) -> dict:
    """
    Run the daily carry-forward batch.

    Args:
        now: Optional ISO timestamp to process instead of the current time

    Returns:
        Batch report with per-combination results
    """
    from django.utils.dateparse import parse_datetime

    from daily_ledger.scheduler import DailyCarryForwardScheduler

    scheduler = DailyCarryForwardScheduler()
    return scheduler.run(now=parse_datetime(now) if now else None)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=30,
    autoretry_for=(StorageError,),
    retry_backoff=True,
)
def ensure_ledger_day(self, tenant_id: str, company_id: str, day: Optional[str] = None) -> dict:
    """
    Ensure a ledger day exists for one tenant/company.

    Args:
        tenant_id: Tenant identifier
        company_id: Company identifier
        day: Optional ISO date or timestamp; defaults to today

    Returns:
        Dict with the ledger day snapshot, or the validation error
    """
    from django.utils import timezone

    from daily_ledger.carry_forward import CarryForwardEngine
    from daily_ledger.exceptions import LedgerValidationError

    engine = CarryForwardEngine()
    try:
        record = engine.ensure_day(tenant_id, company_id, day or timezone.now())
    except LedgerValidationError as e:
        logger.error(f"Rejected ledger day request for {tenant_id}/{company_id}: {e}")
        return {"status": "error", "error": str(e)}

    return {"status": "success", "ledger_day": record.snapshot()}
