"""
Register every tenant/company combination found in the ledger.

Run this after importing ledger history so the daily carry-forward visits
the imported companies too.

Usage:
    python manage.py sync_company_directory
    python manage.py sync_company_directory --dry-run

New entries are created ACTIVE. Idempotent: combinations that already have
an entry (in any status) are skipped.
"""
from django.core.management.base import BaseCommand

from tenant.directory import CompanyDirectory


class Command(BaseCommand):
    help = "Create company directory entries for ledger combinations that don't have one"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without making changes",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - no changes will be made\n"))

        directory = CompanyDirectory()
        missing = directory.unregistered_ledger_combinations()

        created = 0
        for tenant_id, company_id in missing:
            if dry_run:
                self.stdout.write(f"  WOULD CREATE: {tenant_id}/{company_id} -> ACTIVE")
            else:
                directory.register(tenant_id, company_id)
                self.stdout.write(self.style.SUCCESS(f"  CREATED: {tenant_id}/{company_id} -> ACTIVE"))
            created += 1

        self.stdout.write("")
        if dry_run:
            self.stdout.write(f"Would create: {created}")
        else:
            self.stdout.write(self.style.SUCCESS(f"Created: {created}"))
