# daily_ledger/carry_forward.py
"""
CARRY-FORWARD ENGINE

Guarantees exactly one LedgerDay per (tenant, company, day) and seeds its
opening stock:

1. yesterday exists          -> opening = yesterday's closing, verbatim
2. no ledger rows at all     -> opening = live inventory snapshot (bootstrap
                                for tenants onboarded mid-history)
3. rows exist, gap yesterday -> opening = zero; fix_missing_carry_forwards
                                walks a range to close such gaps

Closing starts equal to opening and the day's accumulators start at zero.

Creation is never check-then-create: the store's unique constraint decides
races, and a DuplicateKeyError means another caller already created the day,
so the engine returns that row.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from daily_ledger.daykey import DayKeyNormalizer, get_normalizer
from daily_ledger.exceptions import DuplicateKeyError, LedgerValidationError
from daily_ledger.models import LedgerDay
from daily_ledger.providers import InventorySnapshotProvider, get_inventory_provider
from daily_ledger.store import LedgerStore
from daily_ledger.values import StockFigure, ZERO, q2
from ops import metrics


logger = logging.getLogger(__name__)


def validate_identity(tenant_id, company_id) -> None:
    for label, value in (("tenant_id", tenant_id), ("company_id", company_id)):
        if not isinstance(value, str) or not value.strip():
            raise LedgerValidationError(f"{label} must be a non-empty string, got {value!r}")


class CarryForwardEngine:
    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        inventory_provider: Optional[InventorySnapshotProvider] = None,
        normalizer: Optional[DayKeyNormalizer] = None,
    ):
        self.store = store or LedgerStore()
        self.inventory_provider = inventory_provider or get_inventory_provider()
        self.normalizer = normalizer or get_normalizer()

    def ensure_day(self, tenant_id: str, company_id: str, day) -> LedgerDay:
        """
        Return the ledger day for `day`, creating it if it does not exist.

        Idempotent: a second call returns the stored row unchanged.
        """
        validate_identity(tenant_id, company_id)
        day_key = self.normalizer.normalize(day)

        existing = self.store.find_one(tenant_id, company_id, day_key)
        if existing is not None:
            logger.debug(f"Ledger day {tenant_id}/{company_id} {existing.ledger_date} already exists")
            return existing

        opening = self._opening_stock(tenant_id, company_id, day_key)

        record = LedgerDay(
            tenant_id=tenant_id,
            company_id=company_id,
            day_key=day_key,
            ledger_date=self.normalizer.civil_date(day_key),
            opening_quantity=opening.quantity,
            opening_amount=opening.amount,
            closing_quantity=opening.quantity,
            closing_amount=opening.amount,
            purchase_quantity=0,
            purchase_amount=ZERO,
            sales_quantity=0,
            sales_amount=ZERO,
        )

        try:
            self.store.create(record)
        except DuplicateKeyError:
            # Lost the race: the winner's row is the answer.
            metrics.ledger_creation_races.inc()
            logger.warning(
                f"Concurrent creation of ledger day {tenant_id}/{company_id} "
                f"{record.ledger_date}; using the existing row"
            )
            return self.store.get(tenant_id, company_id, day_key)

        metrics.ledger_days_created.inc()
        logger.info(
            f"Created ledger day {tenant_id}/{company_id} {record.ledger_date} "
            f"opening={opening.quantity} units / {opening.amount}"
        )
        return record

    def get_day(self, tenant_id: str, company_id: str, day) -> LedgerDay:
        """Read-only lookup; raises LedgerNotFoundError instead of creating the day."""
        validate_identity(tenant_id, company_id)
        return self.store.get(tenant_id, company_id, self.normalizer.normalize(day))

    def _opening_stock(self, tenant_id: str, company_id: str, day_key) -> StockFigure:
        previous_key = self.normalizer.previous_day(day_key)
        previous = self.store.find_one(tenant_id, company_id, previous_key)
        if previous is not None:
            return previous.closing_stock

        if not self.store.has_any(tenant_id, company_id):
            snapshot = self.inventory_provider.current_inventory_value(tenant_id, company_id)
            if snapshot.quantity < 0 or snapshot.amount < 0:
                raise LedgerValidationError(
                    f"Inventory snapshot for {tenant_id}/{company_id} is negative: {snapshot}"
                )
            logger.info(
                f"First ledger day for {tenant_id}/{company_id}; "
                f"opening from live inventory {snapshot.quantity} units / {snapshot.amount}"
            )
            return StockFigure(snapshot.quantity, q2(snapshot.amount))

        logger.warning(
            f"No ledger day before {self.normalizer.civil_date(day_key)} for "
            f"{tenant_id}/{company_id}; opening stock defaults to zero"
        )
        return StockFigure()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def fix_missing_carry_forwards(self, tenant_id: str, company_id: str, from_day, to_day) -> List[dict]:
        """
        Ensure every day in [from_day, to_day] exists, one day at a time.

        Days are processed in order so each new day can inherit from the one
        created just before it. Failures are reported per day.
        """
        validate_identity(tenant_id, company_id)
        results = []

        for day_key in self.normalizer.iter_days(from_day, to_day):
            civil = self.normalizer.civil_date(day_key)
            try:
                record = self.ensure_day(tenant_id, company_id, day_key)
                results.append({
                    "day_key": day_key.isoformat(),
                    "ledger_date": civil.isoformat(),
                    "status": "success",
                    "opening_stock": record.opening_stock.as_dict(),
                })
            except Exception as e:
                logger.exception(f"Carry forward failed for {tenant_id}/{company_id} {civil}")
                results.append({
                    "day_key": day_key.isoformat(),
                    "ledger_date": civil.isoformat(),
                    "status": "error",
                    "error": str(e),
                })

        return results

    def verify_carry_forward(self, tenant_id: str, company_id: str, day) -> dict:
        """Check that `day`'s opening stock equals the previous day's closing."""
        validate_identity(tenant_id, company_id)
        day_key = self.normalizer.normalize(day)
        previous_key = self.normalizer.previous_day(day_key)

        previous = self.store.find_one(tenant_id, company_id, previous_key)
        current = self.store.find_one(tenant_id, company_id, day_key)

        verification = {
            "yesterday": {
                "exists": previous is not None,
                "closing_stock": previous.closing_stock.as_dict() if previous else None,
                "day_key": previous_key.isoformat(),
            },
            "today": {
                "exists": current is not None,
                "opening_stock": current.opening_stock.as_dict() if current else None,
                "day_key": day_key.isoformat(),
            },
            "carry_forward_correct": False,
        }

        if previous is not None and current is not None:
            verification["carry_forward_correct"] = previous.closing_stock == current.opening_stock

        return verification
