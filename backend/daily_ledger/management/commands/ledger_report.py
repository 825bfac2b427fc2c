# daily_ledger/management/commands/ledger_report.py
"""
Management command to print ledger reports as JSON.

Usage:
    # Stock summary for one company
    python manage.py ledger_report summary --tenant t1 --company c1 --from 2025-11-01 --to 2025-11-30

    # Profit & loss across all companies of a tenant
    python manage.py ledger_report pnl --tenant t1 --from 2025-11-01 --to 2025-11-30

    # Latest closing stock per company
    python manage.py ledger_report stock --tenant t1

    # Paged day listing, newest first
    python manage.py ledger_report days --tenant t1 --company c1 --from 2025-11-01 --to 2025-11-30 --desc
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from daily_ledger.aggregation import RangeAggregator
from daily_ledger.exceptions import LedgerError


class Command(BaseCommand):
    help = "Print a ledger summary, profit & loss, stock status or day listing"

    def add_arguments(self, parser):
        parser.add_argument("report", choices=["summary", "pnl", "stock", "days"])
        parser.add_argument("--tenant", type=str, required=True)
        parser.add_argument("--company", type=str, help="Company (default: all companies)")
        parser.add_argument("--from", dest="from_date", type=str, help="First civil date")
        parser.add_argument("--to", dest="to_date", type=str, help="Last civil date (inclusive)")
        parser.add_argument("--page", type=int, default=1)
        parser.add_argument("--page-size", type=int, default=50)
        parser.add_argument("--desc", action="store_true", help="Newest day first")

    def handle(self, *args, **options):
        report = options["report"]
        tenant, company = options["tenant"], options.get("company")
        aggregator = RangeAggregator()

        if report != "stock" and not (options.get("from_date") and options.get("to_date")):
            raise CommandError(f"'{report}' needs --from and --to")

        try:
            if report == "summary":
                data = aggregator.summarize(tenant, company, options["from_date"], options["to_date"])
            elif report == "pnl":
                data = aggregator.profit_and_loss(tenant, company, options["from_date"], options["to_date"])
            elif report == "stock":
                data = aggregator.current_stock_status(tenant)
            else:
                data = aggregator.list_days(
                    tenant,
                    company,
                    options["from_date"],
                    options["to_date"],
                    page=options["page"],
                    page_size=options["page_size"],
                    descending=options["desc"],
                )
        except LedgerError as e:
            raise CommandError(str(e))

        self.stdout.write(json.dumps(data, cls=DjangoJSONEncoder, indent=2))
