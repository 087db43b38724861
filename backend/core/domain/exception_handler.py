"""
DRF exception handler for service-layer errors.

Registered as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.  DRF's own
exceptions keep their default rendering.  Every ``DomainError`` becomes
``{"detail": message}`` with the status code the exception class
declares, and database failures become an opaque 500.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def _view_name(context: dict) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else "unknown"


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, DomainError):
        logger.warning(
            "%s in %s: %s", type(exc).__name__, _view_name(context), exc.message,
        )
        return Response({"detail": exc.message}, status=exc.status_code)

    if isinstance(exc, DatabaseError):
        logger.exception("Database error in %s", _view_name(context))
        return Response({"detail": "A server error occurred."}, status=500)

    return None
