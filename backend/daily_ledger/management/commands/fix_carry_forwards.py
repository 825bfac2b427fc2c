# daily_ledger/management/commands/fix_carry_forwards.py
"""
Management command to fill gaps in a company's ledger.

Walks the inclusive range one civil day at a time, creating each missing
day from the one before it. Existing days are left untouched.

Usage:
    python manage.py fix_carry_forwards --tenant t1 --company c1 --from 2025-11-01 --to 2025-11-30
"""

from django.core.management.base import BaseCommand, CommandError

from daily_ledger.carry_forward import CarryForwardEngine
from daily_ledger.exceptions import LedgerError


class Command(BaseCommand):
    help = "Create missing ledger days across a date range"

    def add_arguments(self, parser):
        parser.add_argument("--tenant", type=str, required=True)
        parser.add_argument("--company", type=str, required=True)
        parser.add_argument("--from", dest="from_date", type=str, required=True, help="First civil date")
        parser.add_argument("--to", dest="to_date", type=str, required=True, help="Last civil date (inclusive)")

    def handle(self, *args, **options):
        engine = CarryForwardEngine()

        try:
            results = engine.fix_missing_carry_forwards(
                options["tenant"], options["company"], options["from_date"], options["to_date"]
            )
        except LedgerError as e:
            raise CommandError(str(e))

        failed = 0
        for result in results:
            if result["status"] == "success":
                stock = result["opening_stock"]
                self.stdout.write(
                    f"  {result['ledger_date']}: opening {stock['quantity']} units / {stock['amount']}"
                )
            else:
                failed += 1
                self.stdout.write(self.style.ERROR(f"  {result['ledger_date']}: {result['error']}"))

        self.stdout.write("")
        self.stdout.write(f"Days processed: {len(results)}")
        if failed:
            self.stdout.write(self.style.ERROR(f"Failed: {failed}"))
        else:
            self.stdout.write(self.style.SUCCESS("All days present"))
