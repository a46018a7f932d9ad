"""User model carrying the identity context for inventory calls.

Authentication itself is handled by DRF's configured authentication classes;
this project only needs to know which business a user acts for.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account bound to a single business.

    Fields:
    - business: the tenant the user acts for; ``None`` for platform staff,
      who cannot call the inventory endpoints.
    """

    business = models.ForeignKey(
        "business.Business",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="users",
    )
