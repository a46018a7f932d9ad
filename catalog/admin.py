"""Admin registrations for catalog items."""

from django.contrib import admin

from .models import Item


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "business", "sku", "storage_unit", "cost_per_unit", "is_active")
    list_filter = ("is_active", "storage_unit")
    search_fields = ("name", "name_ar", "sku")


# EOF
