"""
core.domain.exceptions — Business-rule errors raised by service layers.

Services never raise DRF exceptions.  Each class below carries the HTTP
status it maps to, and ``core.domain.exception_handler`` turns it into a
``{"detail": ...}`` response.

┌─────────────────────┬──────────────────────────────────────┬──────┐
│ Exception           │ Raised when                          │ Code │
├─────────────────────┼──────────────────────────────────────┼──────┤
│ DomainError         │ input breaks a report or user rule   │ 400  │
│ PermissionDenied    │ role mismatch, hidden report, self   │ 403  │
│ NotFound            │ report or user id does not exist     │ 404  │
│ Conflict            │ duplicate account, user owns reports │ 409  │
│ InvalidTransition   │ FIR decided without an FIR request   │ 409  │
└─────────────────────┴──────────────────────────────────────┴──────┘
"""

from __future__ import annotations


class DomainError(Exception):
    """Malformed or out-of-range input that reached a service."""

    status_code: int = 400
    default_message: str = "The request breaks a business rule."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The actor's effective role does not allow the operation, the report
    is hidden from them, or they targeted their own account.
    """

    status_code = 403
    default_message = "You do not have permission to perform this action."


class NotFound(DomainError):
    status_code = 404
    default_message = "The requested resource was not found."


class Conflict(DomainError):
    status_code = 409
    default_message = "The operation conflicts with the current state."


class InvalidTransition(Conflict):
    """
    A workflow field cannot move from ``current`` to ``target``.

    Used by the FIR sub-workflow: approving or rejecting an FIR the
    reporter never requested::

        raise InvalidTransition(
            current=FIRStatus.NOT_REQUESTED,
            target=FIRStatus.APPROVED,
            reason="FIR was not requested for this report.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.current = current
        self.target = target
        self.reason = reason
        if message is None and reason:
            message = reason
        elif message is None and current and target:
            message = f"Cannot move from '{current}' to '{target}'."
        super().__init__(message)
