# tests/conftest.py
"""
Pytest fixtures for daily ledger tests.

Collaborators (inventory snapshot, transaction aggregates, clock) are
in-memory fakes injected into the engine, applier, aggregator and
scheduler. The normalizer is pinned to UTC+05:30 regardless of settings.
"""

from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from daily_ledger.aggregation import RangeAggregator
from daily_ledger.carry_forward import CarryForwardEngine
from daily_ledger.daykey import DayKeyNormalizer
from daily_ledger.models import LedgerDay
from daily_ledger.mutations import MutationApplier
from daily_ledger.providers import InventorySnapshotProvider, TransactionAggregateProvider
from daily_ledger.store import LedgerStore
from daily_ledger.values import StockFigure, TotalCount


TENANT = "tenant-1"
COMPANY = "company-1"

IST_MINUTES = 330


# =============================================================================
# Fake collaborators
# =============================================================================

class FakeInventoryProvider(InventorySnapshotProvider):
    def __init__(self, figure=None):
        self.figure = figure or StockFigure()
        self.calls = []

    def current_inventory_value(self, tenant_id, company_id):
        self.calls.append((tenant_id, company_id))
        return self.figure


class FakeTransactionProvider(TransactionAggregateProvider):
    def __init__(self):
        self.receipt_totals = TotalCount()
        self.vendor_payment_totals = TotalCount()
        self.expense_payment_rows = []
        self.sale_rows = []
        self.ranges = []

    def receipts(self, tenant_id, company_id, start, end):
        self.ranges.append((start, end))
        return self.receipt_totals

    def vendor_payments(self, tenant_id, company_id, start, end):
        return self.vendor_payment_totals

    def expense_payments(self, tenant_id, company_id, start, end):
        return list(self.expense_payment_rows)

    def sales(self, tenant_id, company_id, start, end):
        return list(self.sale_rows)


class FixedClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


# =============================================================================
# Core fixtures
# =============================================================================

@pytest.fixture
def normalizer():
    return DayKeyNormalizer(IST_MINUTES)


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def inventory():
    return FakeInventoryProvider()


@pytest.fixture
def transactions():
    return FakeTransactionProvider()


@pytest.fixture
def engine(store, inventory, normalizer):
    return CarryForwardEngine(store=store, inventory_provider=inventory, normalizer=normalizer)


@pytest.fixture
def applier(engine):
    return MutationApplier(engine=engine, max_attempts=3)


@pytest.fixture
def aggregator(store, transactions, normalizer):
    return RangeAggregator(store=store, transaction_provider=transactions, normalizer=normalizer)


@pytest.fixture
def clock():
    # 2025-11-23 00:30 IST
    return FixedClock(datetime(2025, 11, 22, 19, 0, tzinfo=dt_timezone.utc))


# =============================================================================
# Ledger day factory
# =============================================================================

@pytest.fixture
def make_day(db, store, normalizer):
    """
    Insert a ledger day directly through the store.

    Figures are (quantity, amount) tuples; closing defaults to opening.
    """

    def _make(
        civil_date: date,
        opening=(0, "0"),
        closing=None,
        purchases=(0, "0"),
        sales=(0, "0"),
        tenant_id=TENANT,
        company_id=COMPANY,
    ) -> LedgerDay:
        closing = closing or opening
        record = LedgerDay(
            tenant_id=tenant_id,
            company_id=company_id,
            day_key=normalizer.for_date(civil_date),
            ledger_date=civil_date,
            opening_quantity=opening[0],
            opening_amount=Decimal(opening[1]),
            closing_quantity=closing[0],
            closing_amount=Decimal(closing[1]),
            purchase_quantity=purchases[0],
            purchase_amount=Decimal(purchases[1]),
            sales_quantity=sales[0],
            sales_amount=Decimal(sales[1]),
        )
        return store.create(record)

    return _make
