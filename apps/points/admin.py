from django.contrib import admin

from .models import LedgerEntry


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ['user', 'domain', 'reference_kind', 'amount', 'submission', 'logical_version', 'created_at']
    list_filter = ['domain', 'reference_kind', 'created_at']
    search_fields = ['user__username', 'user__email', 'description']
    readonly_fields = [
        'user', 'submission', 'domain', 'amount', 'reference_kind',
        'logical_version', 'description', 'created_at'
    ]

    def has_add_permission(self, request):
        return False  # Entries are written by the awarding engine and checkout

    def has_change_permission(self, request, obj=None):
        return False  # Ledger is append-only

    def has_delete_permission(self, request, obj=None):
        return False
