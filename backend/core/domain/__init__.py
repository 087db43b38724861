"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler translating those exceptions into responses.
access             Role-scoped queryset selectors and role guards.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.access import require_role, apply_role_filter
"""
