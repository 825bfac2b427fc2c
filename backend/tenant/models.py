"""
Company Directory - the tenant/company combinations the ledger serves.

Tenants and companies are owned by other systems; the ledger only knows
them as opaque identifier pairs. The directory lists which pairs the daily
carry-forward should visit.

Design Principles:
- Identifiers are copied verbatim, never validated against an owner
- SUSPENDED entries are kept (history) but skipped by the scheduler
"""
from django.db import models


class CompanyDirectoryEntry(models.Model):
    """One (tenant, company) pair known to the ledger."""

    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"

    tenant_id = models.CharField(max_length=64)
    company_id = models.CharField(max_length=64)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        help_text="Only ACTIVE entries are visited by the daily carry-forward.",
    )

    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Company Directory Entry"
        verbose_name_plural = "Company Directory"
        ordering = ["tenant_id", "company_id"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "company_id"],
                name="uniq_company_directory_entry",
            ),
        ]

    def __str__(self):
        return f"{self.tenant_id}/{self.company_id} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE
