# daily_ledger/management/commands/run_carry_forward.py
"""
Management command to run the daily carry-forward now.

Usage:
    # Today's civil day for every active company (same as the beat task)
    python manage.py run_carry_forward

    # A specific day
    python manage.py run_carry_forward --date 2025-11-23

    # One tenant/company only
    python manage.py run_carry_forward --tenant t1 --company c1 --date 2025-11-23

    # Machine-readable output
    python manage.py run_carry_forward --json
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from daily_ledger.carry_forward import CarryForwardEngine
from daily_ledger.exceptions import LedgerError
from daily_ledger.scheduler import DailyCarryForwardScheduler


class Command(BaseCommand):
    help = "Ensure ledger days exist for a civil day (default: today)"

    def add_arguments(self, parser):
        parser.add_argument("--date", type=str, help="Civil date or ISO timestamp (default: now)")
        parser.add_argument("--tenant", type=str, help="Only this tenant (requires --company)")
        parser.add_argument("--company", type=str, help="Only this company (requires --tenant)")
        parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    def handle(self, *args, **options):
        tenant, company = options.get("tenant"), options.get("company")
        if bool(tenant) != bool(company):
            raise CommandError("--tenant and --company must be given together")

        engine = CarryForwardEngine()

        try:
            if tenant:
                day = options.get("date") or timezone.now()
                record = engine.ensure_day(tenant, company, day)
                report = {"status": "success", "ledger_day": record.snapshot()}
            else:
                scheduler = DailyCarryForwardScheduler(engine=engine)
                now = engine.normalizer.normalize(options["date"]) if options.get("date") else None
                report = scheduler.run(now=now)
        except LedgerError as e:
            raise CommandError(str(e))

        if options["json"]:
            self.stdout.write(json.dumps(report, cls=DjangoJSONEncoder, indent=2))
            return

        if tenant:
            snapshot = report["ledger_day"]
            self.stdout.write(self.style.SUCCESS(
                f"{tenant}/{company} {snapshot['ledger_date']}: "
                f"opening {snapshot['opening_stock']['quantity']} units / {snapshot['opening_stock']['amount']}"
            ))
            return

        for result in report["results"]:
            label = f"{result['tenant_id']}/{result['company_id']}"
            if result["status"] == "success":
                self.stdout.write(f"  OK: {label}")
            else:
                self.stdout.write(self.style.ERROR(f"  FAILED: {label} - {result['error']}"))

        style = self.style.SUCCESS if report["failed"] == 0 else self.style.WARNING
        self.stdout.write(style(
            f"Carry forward {report['day_key']}: {report['succeeded']} succeeded, "
            f"{report['failed']} failed of {report['combinations']}"
        ))
