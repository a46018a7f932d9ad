"""Scoped throttle for the inventory endpoints.

Reads rates from Django settings at request time so ``override_settings`` in
tests takes effect without reloading DRF's cached defaults.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class InventoryScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)


# EOF
