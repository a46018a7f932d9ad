"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Inventory items and the unit/cost metadata the ledger snapshots."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
