"""Django app configuration for the business app."""

from django.apps import AppConfig


class BusinessConfig(AppConfig):
    """Tenants and their branches; stock is scoped to one or the other."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "business"
