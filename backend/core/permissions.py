"""
Role-based DRF permission classes.

These gate endpoints at the HTTP boundary.  Services repeat the same
checks through ``core.domain.access.require_role`` so they stay safe
when called outside a view.

Police accounts awaiting admin verification do not pass the police
checks.
"""

from rest_framework import permissions

from core.domain.access import has_role


class _RolePermission(permissions.BasePermission):
    """Grant access when the authenticated user acts in ``allowed_roles``."""

    allowed_roles: tuple[str, ...] = ()

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return has_role(request.user, *self.allowed_roles)


class IsAdmin(_RolePermission):
    message = "This action requires the admin role."
    allowed_roles = ("admin",)


class IsPoliceOrAdmin(_RolePermission):
    message = "This action requires a verified police officer or an admin."
    allowed_roles = ("police", "admin")


class CanFileReport(_RolePermission):
    """Citizens and admins may submit crime reports."""

    message = "Only citizens and admins may submit crime reports."
    allowed_roles = ("citizen", "admin")
