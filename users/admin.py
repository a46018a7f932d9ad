from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class StaffUserAdmin(BaseUserAdmin):
    """Django's user admin plus the business a staff member acts for."""

    list_display = ("username", "business", "first_name", "last_name", "is_active", "last_login")
    list_filter = ("business", "is_active", "is_staff")
    list_select_related = ("business",)
    autocomplete_fields = ("business",)
    fieldsets = BaseUserAdmin.fieldsets + (("Business", {"fields": ("business",)}),)
    add_fieldsets = BaseUserAdmin.add_fieldsets + (("Business", {"fields": ("business",)}),)


# EOF
