# daily_ledger/mutations.py
"""
MUTATION APPLIER

Applies signed deltas to one ledger day:

    purchase                 -> purchases_of_day and closing stock
    sale                     -> sales_of_day and closing stock
    direct_stock_adjustment  -> opening AND closing stock (baseline correction)
    expense                  -> total_expenses and the expense head

The target day is created through the carry-forward engine first, in the
same transaction as the delta, so a delta never lands on a missing day and
a rejected delta leaves no new day behind.

Concurrency: the row is re-read with select_for_update() inside a
transaction and saved through the store's versioned compare-and-swap. A
ConcurrentUpdateError reloads the row and re-applies the same delta, up to
LEDGER_SAVE_MAX_ATTEMPTS times.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.db import models, transaction

from daily_ledger.carry_forward import CarryForwardEngine, validate_identity
from daily_ledger.exceptions import ConcurrentUpdateError, LedgerNotFoundError, LedgerValidationError
from daily_ledger.models import LedgerDay
from daily_ledger.values import StockFigure, q2, to_amount, to_quantity
from ops import metrics


logger = logging.getLogger(__name__)


class DeltaKind(models.TextChoices):
    PURCHASE = "purchase", "Purchase"
    SALE = "sale", "Sale"
    EXPENSE = "expense", "Expense"
    DIRECT_STOCK_ADJUSTMENT = "direct_stock_adjustment", "Direct stock adjustment"


def coerce_kind(kind) -> DeltaKind:
    try:
        return DeltaKind(kind)
    except ValueError:
        raise LedgerValidationError(
            f"Unknown delta kind {kind!r}; expected one of {', '.join(DeltaKind.values)}"
        )


class MutationApplier:
    def __init__(self, engine: Optional[CarryForwardEngine] = None, max_attempts: Optional[int] = None):
        self.engine = engine or CarryForwardEngine()
        self.store = self.engine.store
        self.normalizer = self.engine.normalizer
        self.max_attempts = max_attempts or settings.LEDGER_SAVE_MAX_ATTEMPTS

    def apply_delta(
        self,
        tenant_id: str,
        company_id: str,
        day,
        kind,
        quantity_delta=0,
        amount_delta=0,
        expense_head_id: Optional[str] = None,
        stock_movement: Optional[StockFigure] = None,
    ) -> Optional[LedgerDay]:
        """
        Apply one delta to the ledger day containing `day`.

        `stock_movement` overrides how a purchase or sale moves closing
        stock (a sale is booked at sale value but leaves stock at cost); for
        a sale its amount is also taken out of total_cogs. Without it the
        closing stock moves by the delta itself.

        Returns the saved record, or None for a zero stock adjustment, which
        writes nothing.
        """
        kind = coerce_kind(kind)
        validate_identity(tenant_id, company_id)
        delta = StockFigure(
            to_quantity(quantity_delta, "quantity_delta"),
            q2(to_amount(amount_delta, "amount_delta")),
        )

        if kind == DeltaKind.EXPENSE and (not isinstance(expense_head_id, str) or not expense_head_id):
            raise LedgerValidationError("Expense deltas require an expense_head_id")

        if stock_movement is not None:
            if kind not in (DeltaKind.PURCHASE, DeltaKind.SALE):
                raise LedgerValidationError(f"stock_movement is not valid for {kind.value} deltas")
            stock_movement = StockFigure(
                to_quantity(stock_movement.quantity, "stock_movement quantity"),
                q2(to_amount(stock_movement.amount, "stock_movement amount")),
            )

        if kind == DeltaKind.DIRECT_STOCK_ADJUSTMENT and delta.is_zero:
            logger.debug(f"Zero stock adjustment for {tenant_id}/{company_id} ignored")
            return None

        day_key = self.normalizer.normalize(day)

        attempt = 0
        while True:
            attempt += 1
            try:
                # A rejected delta also rolls back a day created for it.
                with transaction.atomic():
                    self.engine.ensure_day(tenant_id, company_id, day_key)
                    record = self.store.find_one(tenant_id, company_id, day_key, for_update=True)
                    if record is None:
                        raise LedgerNotFoundError(
                            f"Ledger day {tenant_id}/{company_id} {day_key.isoformat()} "
                            f"disappeared before the delta was applied"
                        )
                    self._apply(record, kind, delta, expense_head_id, stock_movement)
                    self._check_stock(record, kind)
                    self.store.save(record)
            except ConcurrentUpdateError:
                metrics.ledger_save_conflicts.inc()
                if attempt >= self.max_attempts:
                    logger.error(
                        f"Giving up on {kind.value} delta for {tenant_id}/{company_id} "
                        f"{day_key.isoformat()} after {attempt} conflicting saves"
                    )
                    raise
                logger.warning(
                    f"Concurrent update on {tenant_id}/{company_id} {day_key.isoformat()}; "
                    f"retrying {kind.value} delta (attempt {attempt + 1}/{self.max_attempts})"
                )
                continue
            break

        metrics.ledger_deltas_applied.labels(kind=kind.value).inc()
        logger.debug(
            f"Applied {kind.value} delta {delta.quantity} / {delta.amount} to "
            f"{tenant_id}/{company_id} {record.ledger_date} (version {record.version})"
        )
        return record

    @staticmethod
    def _apply(record: LedgerDay, kind: DeltaKind, delta: StockFigure, expense_head_id, stock_movement) -> None:
        if kind == DeltaKind.PURCHASE:
            record.purchases_of_day += delta
            record.closing_stock += delta if stock_movement is None else stock_movement
        elif kind == DeltaKind.SALE:
            record.sales_of_day += delta
            if stock_movement is None:
                record.closing_stock += delta
            else:
                record.closing_stock += stock_movement
                record.total_cogs -= stock_movement.amount
        elif kind == DeltaKind.DIRECT_STOCK_ADJUSTMENT:
            record.opening_stock += delta
            record.closing_stock += delta
        elif kind == DeltaKind.EXPENSE:
            record.apply_expense(expense_head_id, delta.amount)
        else:
            raise LedgerValidationError(f"Unhandled delta kind {kind!r}")

    @staticmethod
    def _check_stock(record: LedgerDay, kind: DeltaKind) -> None:
        for label, figure in (("opening", record.opening_stock), ("closing", record.closing_stock)):
            if figure.quantity < 0 or figure.amount < 0:
                raise LedgerValidationError(
                    f"{kind.value} delta would make {label} stock negative for "
                    f"{record}: {figure.quantity} units / {figure.amount}"
                )

    # ------------------------------------------------------------------
    # Posting hooks
    # ------------------------------------------------------------------

    def record_purchase(self, tenant_id: str, company_id: str, day, quantity, amount) -> LedgerDay:
        return self.apply_delta(tenant_id, company_id, day, DeltaKind.PURCHASE, quantity, amount)

    def record_sale(self, tenant_id: str, company_id: str, day, quantity, sale_amount, cost_amount) -> LedgerDay:
        """
        Book a sale of `quantity` units: sales_of_day grows by the sale value
        while closing stock shrinks by the cost of the goods sold.
        """
        quantity = to_quantity(quantity, "quantity")
        cost_amount = to_amount(cost_amount, "cost_amount")
        return self.apply_delta(
            tenant_id,
            company_id,
            day,
            DeltaKind.SALE,
            quantity,
            sale_amount,
            stock_movement=StockFigure(-quantity, -cost_amount),
        )

    def record_expense(self, tenant_id: str, company_id: str, day, expense_head_id: str, amount) -> LedgerDay:
        return self.apply_delta(
            tenant_id, company_id, day, DeltaKind.EXPENSE, 0, amount, expense_head_id=expense_head_id
        )

    def record_product_stock_change(
        self, tenant_id: str, company_id: str, day, old_quantity, new_quantity, cost_price
    ) -> Optional[LedgerDay]:
        """
        Reflect a manual product quantity edit as a baseline correction.

        Product creation is old_quantity=0, deletion is new_quantity=0.
        """
        difference = to_quantity(new_quantity, "new_quantity") - to_quantity(old_quantity, "old_quantity")
        value = difference * to_amount(cost_price, "cost_price")
        return self.apply_delta(
            tenant_id, company_id, day, DeltaKind.DIRECT_STOCK_ADJUSTMENT, difference, value
        )
