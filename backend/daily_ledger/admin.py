# daily_ledger/admin.py
"""Django admin for ledger days."""

from django.contrib import admin

from .models import LedgerDay


@admin.register(LedgerDay)
class LedgerDayAdmin(admin.ModelAdmin):
    list_display = [
        "ledger_date", "tenant_id", "company_id",
        "opening_quantity", "opening_amount",
        "closing_quantity", "closing_amount",
        "sales_amount", "total_expenses", "version",
    ]
    list_filter = ["ledger_date"]
    search_fields = ["tenant_id", "company_id"]
    date_hierarchy = "ledger_date"
    ordering = ["-day_key", "tenant_id", "company_id"]
    readonly_fields = [
        "tenant_id", "company_id", "day_key", "ledger_date",
        "opening_quantity", "opening_amount", "closing_quantity", "closing_amount",
        "purchase_quantity", "purchase_amount", "sales_quantity", "sales_amount",
        "total_cogs", "total_expenses", "expense_summary", "version",
        "created_at", "updated_at",
    ]

    def has_add_permission(self, request):
        return False  # Created by the carry-forward engine

    def has_change_permission(self, request, obj=None):
        return False  # Delta-adjusted by the mutation applier only

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser
