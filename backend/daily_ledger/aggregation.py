# daily_ledger/aggregation.py
"""
RANGE AGGREGATOR

Read-side reports over an inclusive range of ledger days.

Point-in-time vs accumulated figures:
- opening stock value of a range = opening of its FIRST day
- closing stock value of a range = closing of its LAST day
- purchases and sales are summed across every day

Over all companies (company_id=None) the point-in-time balances are taken
per company and then added up.

Missing days are not errors: they simply do not contribute, and day_count
is smaller. Every ratio is 0 when its denominator is not positive.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from daily_ledger.daykey import DayKeyNormalizer, get_normalizer
from daily_ledger.exceptions import LedgerValidationError
from daily_ledger.models import LedgerDay
from daily_ledger.providers import (
    SaleTransaction,
    TransactionAggregateProvider,
    get_transaction_provider,
)
from daily_ledger.store import LedgerStore
from daily_ledger.values import StockFigure, ZERO, q2, to_amount, to_quantity


logger = logging.getLogger(__name__)


UNCATEGORIZED = "uncategorized"
DEFERRED_PAYMENT_METHODS = frozenset({"credit"})
MAX_PAGE_SIZE = 500


def percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator <= 0:
        return ZERO
    return q2(numerator / denominator * 100)


def split_by_category(transaction: SaleTransaction) -> Dict[str, Decimal]:
    """
    Split one sale's total across its line categories in proportion to each
    category's subtotal. Shares are rounded to cents and the rounding
    remainder goes to the largest category, so they add up to the total.
    """
    total = q2(to_amount(transaction.total_amount, "total_amount"))

    subtotals: Dict[str, Decimal] = OrderedDict()
    for line in transaction.lines:
        category = line.category or UNCATEGORIZED
        subtotals[category] = subtotals.get(category, ZERO) + to_amount(line.subtotal, "line subtotal")

    weights = OrderedDict((category, s) for category, s in subtotals.items() if s > 0)
    base = sum(weights.values(), ZERO)
    if base <= 0:
        return {UNCATEGORIZED: total}

    shares = {category: q2(total * weight / base) for category, weight in weights.items()}
    remainder = total - sum(shares.values(), ZERO)
    if remainder:
        largest = max(weights, key=weights.get)
        shares[largest] += remainder
    return shares


def settlement_of(transaction: SaleTransaction) -> str:
    method = (transaction.payment_method or "").strip().lower()
    return "deferred" if method in DEFERRED_PAYMENT_METHODS else "immediate"


class RangeAggregator:
    def __init__(
        self,
        store: Optional[LedgerStore] = None,
        transaction_provider: Optional[TransactionAggregateProvider] = None,
        normalizer: Optional[DayKeyNormalizer] = None,
    ):
        self.store = store or LedgerStore()
        self.transaction_provider = transaction_provider or get_transaction_provider()
        self.normalizer = normalizer or get_normalizer()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _bounds(self, from_day, to_day) -> Tuple:
        from_key = self.normalizer.normalize(from_day)
        to_key = self.normalizer.normalize(to_day)
        if to_key < from_key:
            raise LedgerValidationError(
                f"Range end {self.normalizer.civil_date(to_key)} is before "
                f"start {self.normalizer.civil_date(from_key)}"
            )
        return from_key, to_key

    def _period(self, company_id, from_key, to_key) -> dict:
        return {
            "from": self.normalizer.civil_date(from_key).isoformat(),
            "to": self.normalizer.civil_date(to_key).isoformat(),
            "company": company_id or "all",
        }

    @staticmethod
    def point_in_time(records: Iterable[LedgerDay]) -> Tuple[StockFigure, StockFigure]:
        """
        (opening of the first day, closing of the last day) per company,
        summed across companies. `records` must be ordered by day.
        """
        first: Dict[str, LedgerDay] = {}
        last: Dict[str, LedgerDay] = {}
        for record in records:
            first.setdefault(record.company_id, record)
            last[record.company_id] = record

        opening = sum((r.opening_stock for r in first.values()), StockFigure())
        closing = sum((r.closing_stock for r in last.values()), StockFigure())
        return opening, closing

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def summarize(self, tenant_id: str, company_id: Optional[str], from_day, to_day) -> dict:
        """Summed stock figures, averages and net change over the range."""
        from_key, to_key = self._bounds(from_day, to_day)
        records = self.store.find_range(tenant_id, company_id, from_key, to_key)

        opening = sum((r.opening_stock for r in records), StockFigure())
        closing = sum((r.closing_stock for r in records), StockFigure())
        purchases = sum((r.purchases_of_day for r in records), StockFigure())
        sales = sum((r.sales_of_day for r in records), StockFigure())
        day_count = len(records)

        return {
            "period": self._period(company_id, from_key, to_key),
            "day_count": day_count,
            "total_opening_quantity": opening.quantity,
            "total_opening_amount": q2(opening.amount),
            "total_closing_quantity": closing.quantity,
            "total_closing_amount": q2(closing.amount),
            "total_purchase_quantity": purchases.quantity,
            "total_purchase_amount": q2(purchases.amount),
            "total_sales_quantity": sales.quantity,
            "total_sales_amount": q2(sales.amount),
            "average_opening_value": q2(opening.amount / day_count) if day_count else ZERO,
            "average_closing_value": q2(closing.amount / day_count) if day_count else ZERO,
            "net_stock_change": closing.quantity - opening.quantity,
            "net_value_change": q2(closing.amount - opening.amount),
        }

    def profit_and_loss(self, tenant_id: str, company_id: Optional[str], from_day, to_day) -> dict:
        """
        Trading account from the ledger plus income and expenses from the
        transaction provider.

            COGS         = opening stock value + purchases - closing stock value
            gross profit = sales - COGS
            net profit   = (sales + receipts) - (COGS + vendor payments + expense payments)
        """
        from_key, to_key = self._bounds(from_day, to_day)
        end_key = self.normalizer.next_day(to_key)
        records = self.store.find_range(tenant_id, company_id, from_key, to_key)

        opening, closing = self.point_in_time(records)
        purchases = sum((r.purchase_amount for r in records), ZERO)
        sales = sum((r.sales_amount for r in records), ZERO)

        cost_of_goods_sold = opening.amount + purchases - closing.amount
        gross_profit = sales - cost_of_goods_sold

        provider = self.transaction_provider
        receipts = provider.receipts(tenant_id, company_id, from_key, end_key)
        vendor_payments = provider.vendor_payments(tenant_id, company_id, from_key, end_key)
        expense_payments = provider.expense_payments(tenant_id, company_id, from_key, end_key)
        sale_transactions = provider.sales(tenant_id, company_id, from_key, end_key)

        total_expense_payments = sum((to_amount(p.total, "expense total") for p in expense_payments), ZERO)
        total_income = sales + receipts.total
        total_expenses = cost_of_goods_sold + vendor_payments.total + total_expense_payments
        net_profit = total_income - total_expenses

        if not records:
            logger.info(
                f"No ledger days for {tenant_id}/{company_id or 'all'} between "
                f"{from_key.isoformat()} and {to_key.isoformat()}; stock figures are zero"
            )

        return {
            "period": self._period(company_id, from_key, to_key),
            "day_count": len(records),
            "trading": {
                "opening_stock": q2(opening.amount),
                "purchases": q2(purchases),
                "closing_stock": q2(closing.amount),
                "cost_of_goods_sold": q2(cost_of_goods_sold),
                "gross_profit": q2(gross_profit),
                "gross_loss": q2(-gross_profit) if gross_profit < 0 else ZERO,
                "sales": q2(sales),
            },
            "income": {
                "total": q2(total_income),
                "breakdown": {
                    "sales": {"amount": q2(sales), "label": "Sales"},
                    "receipts": {
                        "amount": q2(receipts.total),
                        "label": "Receipts",
                        "count": receipts.count,
                    },
                },
            },
            "expenses": {
                "total": q2(total_expenses),
                "breakdown": {
                    "cost_of_goods_sold": {
                        "amount": q2(cost_of_goods_sold),
                        "label": "Cost of Goods Sold",
                        "components": {
                            "opening_stock": q2(opening.amount),
                            "purchases": q2(purchases),
                            "closing_stock": q2(closing.amount),
                        },
                    },
                    "vendor_payments": {
                        "amount": q2(vendor_payments.total),
                        "label": "Vendor Payments",
                        "count": vendor_payments.count,
                    },
                    "expense_payments": [
                        {"label": p.label, "amount": q2(to_amount(p.total, "expense total")), "count": p.count}
                        for p in expense_payments
                    ],
                },
            },
            "summary": {
                "gross_profit": q2(gross_profit),
                "net_profit": q2(net_profit),
                "total_income": q2(total_income),
                "total_expenses": q2(total_expenses),
                "profit_margin": percentage(gross_profit, sales),
                "net_margin": percentage(net_profit, total_income),
                "expense_ratio": percentage(total_expenses, total_income),
                "is_profitable": net_profit > 0,
            },
            "sales_partition": self.partition_sales(sale_transactions),
        }

    def partition_sales(self, transactions: Iterable[SaleTransaction]) -> dict:
        """Sales totals by line category and by settlement (immediate/deferred)."""
        by_category: Dict[str, Decimal] = OrderedDict()
        by_settlement = {"immediate": ZERO, "deferred": ZERO}
        count = 0

        for transaction in transactions:
            count += 1
            for category, share in split_by_category(transaction).items():
                by_category[category] = by_category.get(category, ZERO) + share
            by_settlement[settlement_of(transaction)] += q2(to_amount(transaction.total_amount, "total_amount"))

        return {
            "transaction_count": count,
            "by_category": dict(by_category),
            "by_settlement": by_settlement,
        }

    def current_stock_status(self, tenant_id: str) -> dict:
        """Latest ledger day of every company and their summed closing stock."""
        latest = self.store.latest_per_company(tenant_id)
        total = sum((r.closing_stock for r in latest), StockFigure())
        return {
            "tenant_id": tenant_id,
            "companies": [
                {
                    "company_id": r.company_id,
                    "ledger_date": r.ledger_date.isoformat(),
                    "closing_stock": r.closing_stock.as_dict(),
                }
                for r in latest
            ],
            "total_closing_stock": total.as_dict(),
        }

    def list_days(
        self,
        tenant_id: str,
        company_id: Optional[str],
        from_day,
        to_day,
        page: int = 1,
        page_size: int = 50,
        descending: bool = False,
    ) -> dict:
        page = to_quantity(page, "page")
        page_size = to_quantity(page_size, "page_size")
        if page < 1:
            raise LedgerValidationError(f"page must be at least 1, got {page}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise LedgerValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        from_key, to_key = self._bounds(from_day, to_day)
        records: List[LedgerDay] = self.store.find_range(
            tenant_id, company_id, from_key, to_key, descending=descending
        )

        total = len(records)
        total_pages = (total + page_size - 1) // page_size
        offset = (page - 1) * page_size

        return {
            "results": [r.snapshot() for r in records[offset:offset + page_size]],
            "pagination": {
                "page": page,
                "page_size": page_size,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_previous": page > 1,
            },
        }
