"""Admin registrations for the business app."""

from django.contrib import admin

from .models import Branch, Business


class BranchInline(admin.TabularInline):
    model = Branch
    extra = 0
    fields = ("name", "name_ar", "is_active")


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [BranchInline]


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "business", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "name_ar", "business__name")


# EOF
