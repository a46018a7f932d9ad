"""Admin registrations for inventory app.

Both models are read-only here: stock only moves through the services, and
ledger entries are never edited once written.
"""

from django.contrib import admin

from .models import LedgerEntry, StockLevel


@admin.register(StockLevel)
class StockLevelAdmin(admin.ModelAdmin):
    list_display = ("id", "business", "branch", "item", "quantity", "reserved_quantity", "held_quantity", "updated_at")
    list_filter = ("business",)
    search_fields = ("item__name", "item__sku")
    list_select_related = ("business", "branch", "item")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "business_id",
        "branch_id",
        "item_id",
        "transaction_type",
        "quantity",
        "quantity_before",
        "quantity_after",
        "deduction_reason",
        "created_at",
    )
    list_filter = ("transaction_type", "deduction_reason", "reference_type")
    search_fields = ("notes",)
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# EOF
