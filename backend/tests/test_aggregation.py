# tests/test_aggregation.py
"""
Tests for the range aggregator.

Tests cover:
- Summary totals, averages and net change
- Point-in-time opening/closing values in profit & loss
- Division-by-zero guards
- Category and settlement partition of sales
- Stock status and paged listings
"""

from datetime import date
from decimal import Decimal

import pytest

from daily_ledger.aggregation import RangeAggregator, percentage, settlement_of, split_by_category
from daily_ledger.exceptions import LedgerValidationError
from daily_ledger.providers import ExpensePayment, SaleLine, SaleTransaction
from daily_ledger.values import TotalCount


TENANT = "tenant-1"
COMPANY = "company-1"


@pytest.fixture
def three_days(make_day):
    """Openings 100/110/90, closings 110/90/95; purchases 25; sales 120."""
    make_day(date(2025, 11, 1), opening=(10, "100"), closing=(11, "110"), purchases=(2, "20"), sales=(1, "50"))
    make_day(date(2025, 11, 2), opening=(11, "110"), closing=(9, "90"), sales=(2, "40"))
    make_day(date(2025, 11, 3), opening=(9, "90"), closing=(10, "95"), purchases=(1, "5"), sales=(1, "30"))


# =============================================================================
# Summary
# =============================================================================

@pytest.mark.django_db
class TestSummarize:

    def test_totals_and_averages(self, aggregator, three_days):
        summary = aggregator.summarize(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 3))

        assert summary["day_count"] == 3
        assert summary["total_opening_quantity"] == 30
        assert summary["total_opening_amount"] == Decimal("300.00")
        assert summary["total_closing_amount"] == Decimal("295.00")
        assert summary["total_purchase_amount"] == Decimal("25.00")
        assert summary["total_sales_quantity"] == 4
        assert summary["total_sales_amount"] == Decimal("120.00")
        assert summary["average_opening_value"] == Decimal("100.00")
        assert summary["average_closing_value"] == Decimal("98.33")
        assert summary["net_stock_change"] == 0
        assert summary["net_value_change"] == Decimal("-5.00")
        assert summary["period"] == {"from": "2025-11-01", "to": "2025-11-03", "company": COMPANY}

    def test_missing_days_shrink_day_count(self, aggregator, three_days):
        summary = aggregator.summarize(TENANT, COMPANY, date(2025, 10, 30), date(2025, 11, 5))

        assert summary["day_count"] == 3

    def test_empty_range_is_all_zero(self, aggregator, db):
        summary = aggregator.summarize(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 3))

        assert summary["day_count"] == 0
        assert summary["average_opening_value"] == Decimal("0")
        assert summary["net_value_change"] == Decimal("0")

    def test_reversed_range_is_rejected(self, aggregator, db):
        with pytest.raises(LedgerValidationError):
            aggregator.summarize(TENANT, COMPANY, date(2025, 11, 3), date(2025, 11, 1))


# =============================================================================
# Profit & loss
# =============================================================================

@pytest.mark.django_db
class TestProfitAndLoss:

    def test_stock_values_are_point_in_time(self, aggregator, three_days):
        report = aggregator.profit_and_loss(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 3))

        trading = report["trading"]
        assert trading["opening_stock"] == Decimal("100.00")
        assert trading["closing_stock"] == Decimal("95.00")
        assert trading["purchases"] == Decimal("25.00")
        assert trading["sales"] == Decimal("120.00")
        assert trading["cost_of_goods_sold"] == Decimal("30.00")
        assert trading["gross_profit"] == Decimal("90.00")
        assert trading["gross_loss"] == Decimal("0")

    def test_income_expenses_and_ratios(self, aggregator, transactions, three_days):
        transactions.receipt_totals = TotalCount(Decimal("30"), 2)
        transactions.vendor_payment_totals = TotalCount(Decimal("10"), 1)
        transactions.expense_payment_rows = [ExpensePayment("Rent", Decimal("20"), 1)]

        report = aggregator.profit_and_loss(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 3))

        assert report["income"]["total"] == Decimal("150.00")
        assert report["income"]["breakdown"]["receipts"]["count"] == 2
        assert report["expenses"]["total"] == Decimal("60.00")
        assert report["expenses"]["breakdown"]["expense_payments"] == [
            {"label": "Rent", "amount": Decimal("20.00"), "count": 1}
        ]
        summary = report["summary"]
        assert summary["net_profit"] == Decimal("90.00")
        assert summary["profit_margin"] == Decimal("75.00")
        assert summary["net_margin"] == Decimal("60.00")
        assert summary["expense_ratio"] == Decimal("40.00")
        assert summary["is_profitable"] is True

    def test_gross_loss(self, aggregator, make_day):
        make_day(date(2025, 11, 1), opening=(10, "100"), closing=(0, "0"), sales=(10, "60"))

        report = aggregator.profit_and_loss(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 1))

        assert report["trading"]["gross_profit"] == Decimal("-40.00")
        assert report["trading"]["gross_loss"] == Decimal("40.00")
        assert report["summary"]["is_profitable"] is False

    def test_zero_sales_gives_zero_margins(self, aggregator, make_day):
        make_day(date(2025, 11, 1), opening=(10, "100"))

        summary = aggregator.profit_and_loss(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 1))["summary"]

        assert summary["profit_margin"] == Decimal("0")
        assert summary["net_margin"] == Decimal("0")
        assert summary["expense_ratio"] == Decimal("0")

    def test_empty_range_reports_zero(self, aggregator, db):
        report = aggregator.profit_and_loss(TENANT, COMPANY, date(2025, 11, 1), date(2025, 11, 30))

        assert report["day_count"] == 0
        assert report["trading"]["cost_of_goods_sold"] == Decimal("0")
        assert report["summary"]["is_profitable"] is False

    def test_provider_sees_whole_civil_days(self, aggregator, transactions, normalizer, db):
        aggregator.profit_and_loss(TENANT, COMPANY, "2025-11-01", "2025-11-03")

        assert transactions.ranges == [
            (normalizer.for_date(date(2025, 11, 1)), normalizer.for_date(date(2025, 11, 4)))
        ]

    def test_all_companies_sum_per_company_balances(self, aggregator, make_day):
        make_day(date(2025, 11, 1), opening=(1, "100"), closing=(1, "120"))
        make_day(date(2025, 11, 2), opening=(1, "120"), closing=(1, "95"))
        make_day(date(2025, 11, 2), opening=(1, "50"), closing=(1, "55"), company_id="company-2")
        make_day(date(2025, 11, 3), opening=(1, "55"), closing=(1, "60"), company_id="company-2")

        report = aggregator.profit_and_loss(TENANT, None, date(2025, 11, 1), date(2025, 11, 3))

        assert report["trading"]["opening_stock"] == Decimal("150.00")
        assert report["trading"]["closing_stock"] == Decimal("155.00")
        assert report["period"]["company"] == "all"


# =============================================================================
# Sales partition
# =============================================================================

class TestSalesPartition:

    def test_mixed_sale_is_split_by_subtotal(self):
        sale = SaleTransaction(
            Decimal("100"),
            "cash",
            (SaleLine("goods", Decimal("200")), SaleLine("services", Decimal("100"))),
        )

        assert split_by_category(sale) == {"goods": Decimal("66.67"), "services": Decimal("33.33")}

    def test_rounding_remainder_goes_to_largest_category(self):
        sale = SaleTransaction(
            Decimal("10"),
            lines=(
                SaleLine("goods", Decimal("1")),
                SaleLine("services", Decimal("1")),
                SaleLine("rentals", Decimal("1")),
                SaleLine("repairs", Decimal("3")),
            ),
        )

        shares = split_by_category(sale)

        # 1.67 x 3 + 5.00 overshoots by a cent; the largest category absorbs it
        assert shares == {
            "goods": Decimal("1.67"),
            "services": Decimal("1.67"),
            "rentals": Decimal("1.67"),
            "repairs": Decimal("4.99"),
        }
        assert sum(shares.values()) == Decimal("10.00")

    def test_equal_thirds_still_sum_to_total(self):
        sale = SaleTransaction(
            Decimal("100"),
            lines=tuple(SaleLine(name, Decimal("1")) for name in ("a", "b", "c")),
        )

        shares = split_by_category(sale)

        assert sum(shares.values()) == Decimal("100.00")
        assert shares["a"] == Decimal("33.34")

    def test_lines_of_one_category_are_combined(self):
        sale = SaleTransaction(
            Decimal("90"),
            lines=(SaleLine("goods", Decimal("30")), SaleLine("goods", Decimal("30")), SaleLine("services", Decimal("30"))),
        )

        assert split_by_category(sale) == {"goods": Decimal("60.00"), "services": Decimal("30.00")}

    def test_sale_without_lines_is_uncategorized(self):
        assert split_by_category(SaleTransaction(Decimal("40"))) == {"uncategorized": Decimal("40.00")}

    @pytest.mark.parametrize("method, settlement", [
        ("credit", "deferred"),
        (" CREDIT ", "deferred"),
        ("cash", "immediate"),
        ("", "immediate"),
    ])
    def test_settlement(self, method, settlement):
        assert settlement_of(SaleTransaction(Decimal("1"), method)) == settlement

    def test_partition_report(self):
        aggregator = RangeAggregator(store=object(), transaction_provider=object(), normalizer=object())

        partition = aggregator.partition_sales([
            SaleTransaction(Decimal("100"), "cash", (SaleLine("goods", Decimal("100")),)),
            SaleTransaction(Decimal("50"), "credit", (SaleLine("services", Decimal("50")),)),
        ])

        assert partition["transaction_count"] == 2
        assert partition["by_category"] == {"goods": Decimal("100.00"), "services": Decimal("50.00")}
        assert partition["by_settlement"] == {"immediate": Decimal("100.00"), "deferred": Decimal("50.00")}

    def test_percentage_guard(self):
        assert percentage(Decimal("5"), Decimal("0")) == Decimal("0")
        assert percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")


# =============================================================================
# Stock status & listings
# =============================================================================

@pytest.mark.django_db
class TestStockStatusAndListing:

    def test_current_stock_status(self, aggregator, make_day):
        make_day(date(2025, 11, 1), closing=(5, "50"))
        make_day(date(2025, 11, 2), closing=(6, "60"))
        make_day(date(2025, 11, 1), closing=(4, "40"), company_id="company-2")

        status = aggregator.current_stock_status(TENANT)

        assert [c["company_id"] for c in status["companies"]] == [COMPANY, "company-2"]
        assert status["companies"][0]["ledger_date"] == "2025-11-02"
        assert status["total_closing_stock"] == {"quantity": 10, "amount": Decimal("100.00")}

    def test_list_days_paginates(self, aggregator, make_day):
        for day in range(1, 6):
            make_day(date(2025, 11, day))

        page = aggregator.list_days(TENANT, COMPANY, "2025-11-01", "2025-11-05", page=3, page_size=2)

        assert [r["ledger_date"] for r in page["results"]] == ["2025-11-05"]
        assert page["pagination"] == {
            "page": 3,
            "page_size": 2,
            "total": 5,
            "total_pages": 3,
            "has_next": False,
            "has_previous": True,
        }

    def test_list_days_descending(self, aggregator, make_day):
        for day in range(1, 4):
            make_day(date(2025, 11, day))

        page = aggregator.list_days(TENANT, COMPANY, "2025-11-01", "2025-11-03", descending=True)

        assert [r["ledger_date"] for r in page["results"]] == ["2025-11-03", "2025-11-02", "2025-11-01"]

    @pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (1, 501)])
    def test_list_days_rejects_bad_paging(self, aggregator, page, page_size):
        with pytest.raises(LedgerValidationError):
            aggregator.list_days(TENANT, COMPANY, "2025-11-01", "2025-11-03", page=page, page_size=page_size)
