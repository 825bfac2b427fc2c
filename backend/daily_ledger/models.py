# daily_ledger/models.py
"""
LEDGER DAY MODEL

One row per (tenant, company, civil day).

Guarantees:
- (tenant_id, company_id, day_key) is unique, enforced by the database
- opening/closing stock never stored negative (check constraints)
- rows are delta-adjusted through the mutation applier, never recomputed
- every save bumps `version`; stale saves are rejected by the store
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from daily_ledger.values import StockFigure, ZERO


class LedgerDay(models.Model):
    # Opaque identifiers owned by external collaborators; never validated here.
    tenant_id = models.CharField(max_length=64)
    company_id = models.CharField(max_length=64)

    day_key = models.DateTimeField(
        help_text="Start of the civil day under the ledger offset, stored as UTC",
    )
    ledger_date = models.DateField(
        help_text="Civil calendar date of day_key",
    )

    opening_quantity = models.BigIntegerField(default=0)
    opening_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    closing_quantity = models.BigIntegerField(default=0)
    closing_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    purchase_quantity = models.BigIntegerField(default=0)
    purchase_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    sales_quantity = models.BigIntegerField(default=0)
    sales_amount = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    total_cogs = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    # Sum of every expense posting applied this day, reversals included.
    # Not reconciled with expense_summary once a head is pruned.
    total_expenses = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    # {expense_head_id: "amount"}; heads at or below zero are removed
    expense_summary = models.JSONField(default=dict, blank=True)

    version = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Ledger Day"
        verbose_name_plural = "Ledger Days"
        ordering = ["day_key"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "company_id", "day_key"],
                name="uniq_ledger_day",
            ),
            models.CheckConstraint(
                condition=Q(opening_quantity__gte=0) & Q(opening_amount__gte=0),
                name="ledger_day_opening_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(closing_quantity__gte=0) & Q(closing_amount__gte=0),
                name="ledger_day_closing_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "day_key"], name="ledger_day_tenant_day_idx"),
        ]

    def __str__(self):
        return f"{self.tenant_id}/{self.company_id} {self.ledger_date}"

    # ------------------------------------------------------------------
    # Figures
    # ------------------------------------------------------------------

    @property
    def opening_stock(self) -> StockFigure:
        return StockFigure(self.opening_quantity, self.opening_amount)

    @opening_stock.setter
    def opening_stock(self, figure: StockFigure):
        self.opening_quantity, self.opening_amount = figure.quantity, figure.amount

    @property
    def closing_stock(self) -> StockFigure:
        return StockFigure(self.closing_quantity, self.closing_amount)

    @closing_stock.setter
    def closing_stock(self, figure: StockFigure):
        self.closing_quantity, self.closing_amount = figure.quantity, figure.amount

    @property
    def purchases_of_day(self) -> StockFigure:
        return StockFigure(self.purchase_quantity, self.purchase_amount)

    @purchases_of_day.setter
    def purchases_of_day(self, figure: StockFigure):
        self.purchase_quantity, self.purchase_amount = figure.quantity, figure.amount

    @property
    def sales_of_day(self) -> StockFigure:
        return StockFigure(self.sales_quantity, self.sales_amount)

    @sales_of_day.setter
    def sales_of_day(self, figure: StockFigure):
        self.sales_quantity, self.sales_amount = figure.quantity, figure.amount

    # ------------------------------------------------------------------
    # Expense heads
    # ------------------------------------------------------------------

    def expense_heads(self) -> dict[str, Decimal]:
        return {head: Decimal(amount) for head, amount in (self.expense_summary or {}).items()}

    def apply_expense(self, expense_head_id: str, amount_delta: Decimal) -> None:
        """
        Post an expense delta.

        total_expenses always moves by the delta. The head is created only by
        a positive delta and is removed once it reaches zero or below.
        """
        self.total_expenses += amount_delta

        heads = self.expense_heads()
        if expense_head_id in heads:
            remaining = heads[expense_head_id] + amount_delta
            if remaining <= 0:
                del heads[expense_head_id]
            else:
                heads[expense_head_id] = remaining
        elif amount_delta > 0:
            heads[expense_head_id] = amount_delta

        self.expense_summary = {head: str(amount) for head, amount in heads.items()}

    def snapshot(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "company_id": self.company_id,
            "day_key": self.day_key.isoformat(),
            "ledger_date": self.ledger_date.isoformat(),
            "opening_stock": self.opening_stock.as_dict(),
            "closing_stock": self.closing_stock.as_dict(),
            "purchases_of_day": self.purchases_of_day.as_dict(),
            "sales_of_day": self.sales_of_day.as_dict(),
            "total_cogs": self.total_cogs,
            "total_expenses": self.total_expenses,
            "expense_summary": dict(self.expense_summary or {}),
            "version": self.version,
        }
