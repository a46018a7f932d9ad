"""Permissions for the inventory API."""

from rest_framework.permissions import BasePermission


class IsBusinessMember(BasePermission):
    """Authenticated staff that belong to a business.

    Every inventory read and write is scoped to ``request.user.business_id``.
    """

    message = "User is not assigned to a business."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "business_id", None))


# EOF
