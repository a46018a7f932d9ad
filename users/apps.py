from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Staff accounts; each one acts on behalf of a single business."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Staff users"
