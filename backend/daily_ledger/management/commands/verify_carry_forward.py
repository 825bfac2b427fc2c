# daily_ledger/management/commands/verify_carry_forward.py
"""
Management command to check one day's carry-forward.

Usage:
    python manage.py verify_carry_forward --tenant t1 --company c1 --date 2025-11-23
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from daily_ledger.carry_forward import CarryForwardEngine
from daily_ledger.exceptions import LedgerError


class Command(BaseCommand):
    help = "Check that a day's opening stock equals the previous day's closing stock"

    def add_arguments(self, parser):
        parser.add_argument("--tenant", type=str, required=True)
        parser.add_argument("--company", type=str, required=True)
        parser.add_argument("--date", type=str, required=True)

    def handle(self, *args, **options):
        try:
            verification = CarryForwardEngine().verify_carry_forward(
                options["tenant"], options["company"], options["date"]
            )
        except LedgerError as e:
            raise CommandError(str(e))

        self.stdout.write(json.dumps(verification, cls=DjangoJSONEncoder, indent=2))

        if verification["carry_forward_correct"]:
            self.stdout.write(self.style.SUCCESS("Carry forward is correct"))
        else:
            self.stdout.write(self.style.ERROR("Carry forward is missing or does not match"))
