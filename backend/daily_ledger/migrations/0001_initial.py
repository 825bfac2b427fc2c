"""
Initial migration for daily_ledger.

Creates:
- daily_ledger_ledgerday: one row per (tenant, company, civil day)
"""
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerDay",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", models.CharField(max_length=64)),
                ("company_id", models.CharField(max_length=64)),
                (
                    "day_key",
                    models.DateTimeField(
                        help_text="Start of the civil day under the ledger offset, stored as UTC",
                    ),
                ),
                ("ledger_date", models.DateField(help_text="Civil calendar date of day_key")),
                ("opening_quantity", models.BigIntegerField(default=0)),
                ("opening_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("closing_quantity", models.BigIntegerField(default=0)),
                ("closing_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("purchase_quantity", models.BigIntegerField(default=0)),
                ("purchase_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("sales_quantity", models.BigIntegerField(default=0)),
                ("sales_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_cogs", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_expenses", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("expense_summary", models.JSONField(blank=True, default=dict)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Ledger Day",
                "verbose_name_plural": "Ledger Days",
                "ordering": ["day_key"],
                "indexes": [
                    models.Index(fields=["tenant_id", "day_key"], name="ledger_day_tenant_day_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenant_id", "company_id", "day_key"),
                        name="uniq_ledger_day",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("opening_quantity__gte", 0), ("opening_amount__gte", 0)),
                        name="ledger_day_opening_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("closing_quantity__gte", 0), ("closing_amount__gte", 0)),
                        name="ledger_day_closing_non_negative",
                    ),
                ],
            },
        ),
    ]
