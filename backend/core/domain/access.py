"""
core.domain.access — Role-scoped queryset selectors (shared patterns).

This module provides shared utilities that each app's service layer
calls to obtain querysets filtered by the requesting user's role, and
guards that reject role-ineligible actors.

╔══════════════════════════════════════════════════════════════════╗
║  IMPORTANT — Per-app scoping logic does NOT live here.         ║
║  Each app's ``services.py`` owns its own scope config.         ║
║  This module provides:                                         ║
║    1) ``get_effective_role`` — role an actor may act in.       ║
║    2) ``build_role_scope`` / ``apply_role_filter`` — dispatch  ║
║       a per-role filter.                                       ║
║    3) ``require_role`` — guard that raises PermissionDenied.   ║
╚══════════════════════════════════════════════════════════════════╝

Architecture overview
---------------------
Role-based data access follows a **scope-config** pattern:

    ┌─────────┐      ┌────────────────┐      ┌──────────────────┐
    │  View   │─────▶│  App service   │─────▶│ core.domain      │
    │ (thin)  │      │ (owns logic)   │      │   .access        │
    └─────────┘      └────────────────┘      │ (shared helpers) │
                                             └──────────────────┘

Usage in an app's service layer::

    from core.domain.access import apply_role_filter

    REPORT_SCOPE_CONFIG = {
        "admin":   lambda u: Q(),
        "police":  lambda u: Q(),
        "citizen": lambda u: Q(reporter=u) | (Q(is_anonymous=False) & ~Q(status="closed")),
    }

    qs = apply_role_filter(Report.objects.all(), user, scope_config=REPORT_SCOPE_CONFIG)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import Q, QuerySet

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User

# Type alias for a scope filter function.
# Takes the acting user and returns the ``Q`` restricting what they may see.
ScopeFilter = Callable[["User"], Q]

# Role name → scope filter.
ScopeConfig = dict[str, ScopeFilter]

#: Roles that must be verified by an admin before acting in that role.
VERIFICATION_REQUIRED_ROLES: frozenset[str] = frozenset({"police"})

#: A ``Q`` that matches no rows.
MATCH_NOTHING = Q(pk__in=[])


def get_user_role_name(user: User | None) -> str | None:
    """
    Return the stored role name for an actor, or ``None``.

    Superusers created from the CLI are treated as admins regardless of
    the value stored in ``role``.  Anonymous or inactive users have no
    role at all.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if not user.is_active:
        return None
    if user.is_superuser:
        return "admin"
    return getattr(user, "role", None) or None


def get_effective_role(user: User | None) -> str | None:
    """
    Like ``get_user_role_name`` but ``None`` for accounts whose role still
    awaits admin verification.
    """
    role_name = get_user_role_name(user)
    if role_name in VERIFICATION_REQUIRED_ROLES and not user.is_verified:
        return None
    return role_name


def has_role(user: User | None, *allowed_roles: str) -> bool:
    """
    Return ``True`` when the actor acts in one of ``allowed_roles``.

    Police accounts awaiting admin verification do not count as police.
    """
    return get_effective_role(user) in allowed_roles


def require_role(user: User | None, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Args:
        user:          Authenticated user.
        *allowed_roles: One or more role names (``"citizen"``, ``"police"``,
                        ``"admin"``).
        message:       Optional custom error message.

    Raises:
        core.domain.exceptions.PermissionDenied
    """
    if has_role(user, *allowed_roles):
        return

    role_name = get_user_role_name(user)
    if (
        role_name in VERIFICATION_REQUIRED_ROLES
        and role_name in allowed_roles
    ):
        raise PermissionDenied(
            message or "Your police account is awaiting admin verification."
        )
    raise PermissionDenied(
        message
        or f"Role '{role_name}' is not permitted for this operation. "
        f"Required: {', '.join(allowed_roles)}."
    )


def build_role_scope(user: User | None, *, scope_config: ScopeConfig) -> Q:
    """
    Return the ``Q`` object the user's role maps to in ``scope_config``.

    Users whose role has no entry, or is not yet verified, get
    ``MATCH_NOTHING``.
    """
    role_name = get_effective_role(user)
    filter_fn = scope_config.get(role_name) if role_name else None
    if filter_fn is None:
        return MATCH_NOTHING
    return filter_fn(user)


def apply_role_filter(
    queryset: QuerySet,
    user: User | None,
    *,
    scope_config: ScopeConfig,
) -> QuerySet:
    """
    Apply role-based filtering to a queryset using the provided config.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_config: Role name → filter function.

    Returns:
        The filtered queryset (empty when the role is unknown).
    """
    return queryset.filter(build_role_scope(user, scope_config=scope_config))
