# accounts/permissions.py
from rest_framework.permissions import BasePermission


class IsTenantMember(BasePermission):
    """
    Allows access only to authenticated users attached to a tenant.
    Every offer query and command is scoped to request.user.tenant.
    """
    message = "Your account is not attached to a tenant."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "tenant_id", None) is not None


class IsDispatcher(BasePermission):
    """Allows offer creation and cancellation only to dispatchers and admins."""
    message = "Only dispatchers can perform this action."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) in ("dispatcher", "admin")
