"""
Tenant/company enumeration for the daily carry-forward.

The directory table is the source of truth. If it cannot be read, the
scheduler still runs against every combination that already has ledger
history, so one broken table does not skip a whole day.
"""
import logging
from typing import List, Optional, Tuple

from django.db import DatabaseError, transaction

from daily_ledger.store import LedgerStore
from tenant.models import CompanyDirectoryEntry

logger = logging.getLogger(__name__)


class CompanyDirectory:
    def __init__(self, store: Optional[LedgerStore] = None):
        self.store = store or LedgerStore()

    def active_combinations(self) -> List[Tuple[str, str]]:
        """Sorted (tenant_id, company_id) pairs to carry forward."""
        try:
            with transaction.atomic():
                return list(
                    CompanyDirectoryEntry.objects
                    .filter(status=CompanyDirectoryEntry.Status.ACTIVE)
                    .order_by("tenant_id", "company_id")
                    .values_list("tenant_id", "company_id")
                )
        except DatabaseError as e:
            logger.error(f"Company directory unavailable ({e}); falling back to ledger combinations")
            return self.store.combinations()

    def register(self, tenant_id: str, company_id: str) -> Tuple[CompanyDirectoryEntry, bool]:
        entry, created = CompanyDirectoryEntry.objects.get_or_create(
            tenant_id=tenant_id,
            company_id=company_id,
        )
        if created:
            logger.info(f"Registered {tenant_id}/{company_id} in company directory")
        return entry, created

    def unregistered_ledger_combinations(self) -> List[Tuple[str, str]]:
        """Combinations with ledger rows but no directory entry."""
        known = set(CompanyDirectoryEntry.objects.values_list("tenant_id", "company_id"))
        return [c for c in self.store.combinations() if c not in known]
