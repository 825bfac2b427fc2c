# daily_ledger/providers.py
"""
Outbound collaborator contracts.

The ledger reads two things it does not own:
- a live inventory snapshot, used once when a tenant/company gets its
  first-ever ledger day
- transaction aggregates (receipts, payments, sales) over a day range,
  used only by the profit & loss report

Range arguments are day keys: `start` is the first day key of the range and
`end` is the day key after the last day, so [start, end) covers whole civil
days computed by the same normalizer as the ledger itself.

Concrete providers are configured by dotted path:
    LEDGER_INVENTORY_PROVIDER = "catalog.ledger.ProductInventoryProvider"
    LEDGER_TRANSACTION_PROVIDER = "sales.ledger.EntryAggregateProvider"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Tuple

from django.conf import settings
from django.utils.module_loading import import_string

from daily_ledger.values import StockFigure, TotalCount, ZERO, to_amount, to_quantity


# =============================================================================
# Inventory snapshot
# =============================================================================

@dataclass(frozen=True)
class StockItem:
    quantity: int
    cost_price: Decimal
    is_active: bool = True


def snapshot_from_items(items: Iterable[StockItem]) -> StockFigure:
    """Sum quantity and quantity x cost price across active stock items."""
    quantity = 0
    amount = ZERO
    for item in items:
        if not item.is_active:
            continue
        item_quantity = to_quantity(item.quantity, "stock item quantity")
        quantity += item_quantity
        amount += item_quantity * to_amount(item.cost_price, "stock item cost price")
    return StockFigure(quantity, amount)


class InventorySnapshotProvider(ABC):
    @abstractmethod
    def current_inventory_value(self, tenant_id: str, company_id: str) -> StockFigure:
        """Live {quantity, amount} of the company's stock right now."""


class NullInventoryProvider(InventorySnapshotProvider):
    def current_inventory_value(self, tenant_id: str, company_id: str) -> StockFigure:
        return StockFigure()


# =============================================================================
# Transaction aggregates
# =============================================================================

@dataclass(frozen=True)
class SaleLine:
    category: str
    subtotal: Decimal


@dataclass(frozen=True)
class SaleTransaction:
    """One posted sale: its settled total and the category subtotals behind it."""

    total_amount: Decimal
    payment_method: str = ""
    lines: Tuple[SaleLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ExpensePayment:
    label: str
    total: Decimal
    count: int = 0


class TransactionAggregateProvider(ABC):
    @abstractmethod
    def receipts(self, tenant_id: str, company_id, start: datetime, end: datetime) -> TotalCount:
        """Receipts in [start, end)."""

    @abstractmethod
    def vendor_payments(self, tenant_id: str, company_id, start: datetime, end: datetime) -> TotalCount:
        """Payments to vendors (not expense vouchers) in [start, end)."""

    @abstractmethod
    def expense_payments(
        self, tenant_id: str, company_id, start: datetime, end: datetime
    ) -> List[ExpensePayment]:
        """Expense vouchers in [start, end), one entry per expense head."""

    @abstractmethod
    def sales(self, tenant_id: str, company_id, start: datetime, end: datetime) -> List[SaleTransaction]:
        """Sale transactions in [start, end)."""


class NullTransactionProvider(TransactionAggregateProvider):
    def receipts(self, tenant_id, company_id, start, end) -> TotalCount:
        return TotalCount()

    def vendor_payments(self, tenant_id, company_id, start, end) -> TotalCount:
        return TotalCount()

    def expense_payments(self, tenant_id, company_id, start, end) -> List[ExpensePayment]:
        return []

    def sales(self, tenant_id, company_id, start, end) -> List[SaleTransaction]:
        return []


# =============================================================================
# Configuration
# =============================================================================

def get_inventory_provider() -> InventorySnapshotProvider:
    path = getattr(settings, "LEDGER_INVENTORY_PROVIDER", "")
    if not path:
        return NullInventoryProvider()
    return import_string(path)()


def get_transaction_provider() -> TransactionAggregateProvider:
    path = getattr(settings, "LEDGER_TRANSACTION_PROVIDER", "")
    if not path:
        return NullTransactionProvider()
    return import_string(path)()
