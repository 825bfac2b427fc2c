"""
Django Admin registration for Tenant models.
"""
from django.contrib import admin

from tenant.models import CompanyDirectoryEntry


@admin.register(CompanyDirectoryEntry)
class CompanyDirectoryEntryAdmin(admin.ModelAdmin):
    list_display = ["tenant_id", "company_id", "status", "updated_at"]
    list_filter = ["status"]
    search_fields = ["tenant_id", "company_id"]
    readonly_fields = ["created_at", "updated_at"]

    fieldsets = (
        (None, {
            "fields": ("tenant_id", "company_id", "status"),
        }),
        ("Notes", {
            "fields": ("notes",),
            "classes": ("collapse",),
        }),
        ("Timestamps", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    def has_delete_permission(self, request, obj=None):
        """Entries are suspended, not deleted, once they have ledger history."""
        if obj is None:
            return super().has_delete_permission(request, obj)
        return obj.status == CompanyDirectoryEntry.Status.SUSPENDED
