# daily_ledger/scheduler.py
"""
DAILY CARRY-FORWARD SCHEDULER

Once per civil day, make sure every active (tenant, company) has a ledger
day. Each combination is independent: a failure is logged and reported,
and the batch moves on.

The scheduler is constructed once (by the Celery task or a management
command) with its collaborators, including the clock, so tests can pin
"now".
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

from daily_ledger.carry_forward import CarryForwardEngine
from daily_ledger.daykey import DayKeyNormalizer
from daily_ledger.exceptions import LedgerError
from ops import metrics


logger = logging.getLogger(__name__)


class DailyCarryForwardScheduler:
    def __init__(
        self,
        engine: Optional[CarryForwardEngine] = None,
        directory=None,
        clock: Optional[Callable[[], datetime]] = None,
        normalizer: Optional[DayKeyNormalizer] = None,
    ):
        if directory is None:
            from tenant.directory import CompanyDirectory
            directory = CompanyDirectory()

        self.engine = engine or CarryForwardEngine()
        self.directory = directory
        self.clock = clock or timezone.now
        self.normalizer = normalizer or self.engine.normalizer
        self.last_run_day = None

    def run(self, now: Optional[datetime] = None) -> dict:
        """Ensure the civil day containing `now` (default: the clock) for every combination."""
        day_key = self.normalizer.today(now or self.clock())
        ledger_date = self.normalizer.civil_date(day_key)

        logger.info(f"Starting daily carry forward for {ledger_date}")

        try:
            combinations = self.directory.active_combinations()
        except LedgerError:
            logger.exception(f"Could not enumerate companies for {ledger_date}")
            metrics.ledger_carry_forward_runs.labels(outcome="failed").inc()
            return self._report(day_key, [], [])

        results = []
        for tenant_id, company_id in combinations:
            try:
                record = self.engine.ensure_day(tenant_id, company_id, day_key)
                results.append({
                    "tenant_id": tenant_id,
                    "company_id": company_id,
                    "status": "success",
                    "opening_stock": record.opening_stock.as_dict(),
                })
            except Exception as e:
                logger.exception(f"Carry forward failed for {tenant_id}/{company_id} on {ledger_date}: {e}")
                results.append({
                    "tenant_id": tenant_id,
                    "company_id": company_id,
                    "status": "error",
                    "error": str(e),
                })

        self.last_run_day = day_key
        report = self._report(day_key, combinations, results)

        if report["failed"] == 0:
            outcome = "success"
        elif report["succeeded"] == 0:
            outcome = "failed"
        else:
            outcome = "partial"
        metrics.ledger_carry_forward_runs.labels(outcome=outcome).inc()

        logger.info(
            f"Daily carry forward for {ledger_date} completed: "
            f"{report['succeeded']} succeeded, {report['failed']} failed "
            f"of {report['combinations']} combinations"
        )
        return report

    @staticmethod
    def _report(day_key, combinations, results) -> dict:
        succeeded = sum(1 for r in results if r["status"] == "success")
        return {
            "day_key": day_key.isoformat(),
            "combinations": len(combinations),
            "succeeded": succeeded,
            "failed": len(results) - succeeded,
            "results": results,
        }
