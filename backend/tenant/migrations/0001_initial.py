"""
Initial migration for tenant.

Creates:
- tenant_companydirectoryentry: (tenant, company) pairs visited by the scheduler
"""
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CompanyDirectoryEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", models.CharField(max_length=64)),
                ("company_id", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[("ACTIVE", "Active"), ("SUSPENDED", "Suspended")],
                        default="ACTIVE",
                        help_text="Only ACTIVE entries are visited by the daily carry-forward.",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Company Directory Entry",
                "verbose_name_plural": "Company Directory",
                "ordering": ["tenant_id", "company_id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenant_id", "company_id"),
                        name="uniq_company_directory_entry",
                    ),
                ],
            },
        ),
    ]
