# daily_ledger/store.py
"""
LEDGER ENTITY STORE

Persistence for LedgerDay rows.

- Uniqueness of (tenant, company, day) is arbitrated by the database
  constraint, never by check-then-act: a losing creator gets DuplicateKeyError.
- save() is a versioned compare-and-swap; a stale record raises
  ConcurrentUpdateError instead of overwriting a concurrent writer.
- Any other database failure surfaces as StorageError.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import List, Optional, Tuple

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, OuterRef, Subquery
from django.utils import timezone

from daily_ledger.exceptions import (
    ConcurrentUpdateError,
    DuplicateKeyError,
    LedgerNotFoundError,
    StorageError,
)
from daily_ledger.models import LedgerDay


logger = logging.getLogger(__name__)


# Columns written by save(); identity columns are immutable once created.
MUTABLE_FIELDS = (
    "opening_quantity",
    "opening_amount",
    "closing_quantity",
    "closing_amount",
    "purchase_quantity",
    "purchase_amount",
    "sales_quantity",
    "sales_amount",
    "total_cogs",
    "total_expenses",
    "expense_summary",
)


@contextmanager
def _storage_errors(action: str):
    try:
        yield
    except DatabaseError as e:
        raise StorageError(f"Ledger storage failed during {action}: {e}") from e


class LedgerStore:
    """Django ORM implementation of the ledger entity store."""

    def find_one(
        self,
        tenant_id: str,
        company_id: str,
        day_key,
        for_update: bool = False,
    ) -> Optional[LedgerDay]:
        with _storage_errors("find_one"):
            qs = LedgerDay.objects.filter(
                tenant_id=tenant_id,
                company_id=company_id,
                day_key=day_key,
            )
            if for_update:
                qs = qs.select_for_update()
            return qs.first()

    def get(self, tenant_id: str, company_id: str, day_key) -> LedgerDay:
        record = self.find_one(tenant_id, company_id, day_key)
        if record is None:
            raise LedgerNotFoundError(
                f"No ledger day for tenant={tenant_id} company={company_id} day={day_key.isoformat()}"
            )
        return record

    def find_range(
        self,
        tenant_id: str,
        company_id: Optional[str],
        from_day_key,
        to_day_key,
        descending: bool = False,
    ) -> List[LedgerDay]:
        """Rows with from_day_key <= day_key <= to_day_key, ordered by day.

        company_id=None spans every company of the tenant.
        """
        with _storage_errors("find_range"):
            qs = LedgerDay.objects.filter(
                tenant_id=tenant_id,
                day_key__gte=from_day_key,
                day_key__lte=to_day_key,
            )
            if company_id is not None:
                qs = qs.filter(company_id=company_id)

            if descending:
                qs = qs.order_by("-day_key", "company_id")
            else:
                qs = qs.order_by("day_key", "company_id")
            return list(qs)

    def has_any(self, tenant_id: str, company_id: str) -> bool:
        """Whether any ledger day was ever stored for this tenant/company."""
        with _storage_errors("has_any"):
            return LedgerDay.objects.filter(tenant_id=tenant_id, company_id=company_id).exists()

    def create(self, record: LedgerDay) -> LedgerDay:
        """
        Insert a new ledger day.

        Raises DuplicateKeyError if the identity already exists. The insert
        runs in its own savepoint so callers inside a transaction survive
        the rejection.
        """
        try:
            with transaction.atomic():
                record.save(force_insert=True)
        except IntegrityError as e:
            if self._identity_taken(record):
                logger.debug(
                    f"Duplicate ledger day rejected by store: "
                    f"{record.tenant_id}/{record.company_id} {record.ledger_date}"
                )
                raise DuplicateKeyError(
                    f"Ledger day already exists for tenant={record.tenant_id} "
                    f"company={record.company_id} day={record.day_key.isoformat()}"
                ) from e
            raise StorageError(f"Ledger day insert rejected: {e}") from e
        except DatabaseError as e:
            raise StorageError(f"Ledger storage failed during create: {e}") from e

        return record

    def save(self, record: LedgerDay) -> LedgerDay:
        """
        Persist a loaded record if nobody else saved it since it was read.

        The row is matched on (pk, version) and the version is bumped in the
        same UPDATE.
        """
        values = {field: getattr(record, field) for field in MUTABLE_FIELDS}
        now = timezone.now()

        with _storage_errors("save"):
            updated = LedgerDay.objects.filter(
                pk=record.pk,
                version=record.version,
            ).update(version=F("version") + 1, updated_at=now, **values)

        if updated == 0:
            raise ConcurrentUpdateError(
                f"Ledger day {record.pk} changed since version {record.version} was read"
            )

        record.version += 1
        record.updated_at = now
        return record

    def combinations(self) -> List[Tuple[str, str]]:
        """Distinct (tenant_id, company_id) pairs that have ledger rows."""
        with _storage_errors("combinations"):
            return list(
                LedgerDay.objects
                .order_by("tenant_id", "company_id")
                .values_list("tenant_id", "company_id")
                .distinct()
            )

    def latest_per_company(self, tenant_id: str) -> List[LedgerDay]:
        """Most recent ledger day of every company of a tenant."""
        newest = (
            LedgerDay.objects
            .filter(tenant_id=tenant_id, company_id=OuterRef("company_id"))
            .order_by("-day_key")
            .values("pk")[:1]
        )
        with _storage_errors("latest_per_company"):
            return list(
                LedgerDay.objects
                .filter(tenant_id=tenant_id, pk=Subquery(newest))
                .order_by("company_id")
            )

    def _identity_taken(self, record: LedgerDay) -> bool:
        with _storage_errors("create"):
            return LedgerDay.objects.filter(
                tenant_id=record.tenant_id,
                company_id=record.company_id,
                day_key=record.day_key,
            ).exists()
