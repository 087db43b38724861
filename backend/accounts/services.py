"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service function / method, and
return the result wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — citizen / police self-registration.
- ``PasswordResetService``     — reset-link emails and password change.
- ``UserManagementService``    — admin listing, verification, activation,
                                 role changes and deletion.
- ``CurrentUserService``       — "Me" endpoint helpers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import default_token_generator
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from core.domain.access import require_role
from core.domain.exceptions import Conflict, DomainError, NotFound, PermissionDenied

from .models import UserRole

if TYPE_CHECKING:
    from notifications.queue import EmailDispatchQueue

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_user_or_404(user_id: int) -> User:
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound(f"User with id {user_id} not found.")


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Create citizen and police accounts from validated sign-up data."""

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new user.

        Citizens are verified on creation.  Police accounts start
        unverified and cannot act as police until an admin verifies
        them through ``UserManagementService.verify_police_account``.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username or email is already taken.
        """
        validated_data.pop("password_confirm", None)
        password = validated_data.pop("password")
        role = validated_data.pop("role", UserRole.CITIZEN)

        conflicts = []
        if User.objects.filter(username=validated_data.get("username")).exists():
            conflicts.append("username")
        if User.objects.filter(email__iexact=validated_data.get("email")).exists():
            conflicts.append("email")
        if conflicts:
            raise Conflict(
                f"The following field(s) already exist: {', '.join(conflicts)}."
            )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=password,
                    role=role,
                    is_verified=(role == UserRole.CITIZEN),
                    **validated_data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with one of the provided unique fields already exists."
            )

        logger.info("Registered %s account %s (id=%s)", role, user.username, user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Password Reset Service
# ═══════════════════════════════════════════════════════════════════


class PasswordResetService:
    """
    Password-reset flow.

    ``request_reset`` never reveals whether the address is registered:
    unknown or inactive addresses are logged and otherwise ignored.
    """

    @staticmethod
    def build_reset_url(user: User) -> str:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        return f"{settings.CLIENT_URL.rstrip('/')}/reset-password/{uid}/{token}"

    @staticmethod
    def request_reset(
        email: str,
        dispatch_queue: EmailDispatchQueue | None = None,
    ) -> None:
        user = User.objects.filter(email__iexact=email, is_active=True).first()
        if user is None:
            logger.info("Password reset requested for unknown address %s", email)
            return

        if dispatch_queue is None:
            from notifications import get_dispatch_queue
            dispatch_queue = get_dispatch_queue()

        dispatch_queue.queue_password_reset(
            email=user.email,
            user_name=user.get_full_name() or user.username,
            reset_url=PasswordResetService.build_reset_url(user),
        )

    @staticmethod
    def confirm_reset(uidb64: str, token: str, new_password: str) -> User:
        """
        Set ``new_password`` when ``token`` is valid for the encoded user.

        Raises
        ------
        DomainError
            If the link is malformed, expired or already used.
        """
        try:
            user = User.objects.get(pk=force_str(urlsafe_base64_decode(uidb64)))
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            user = None

        if user is None or not default_token_generator.check_token(user, token):
            raise DomainError("Invalid or expired password reset link.")

        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("Password reset completed for user id=%s", user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """
    Administrative operations on users.

    Every mutating method takes ``performed_by`` and refuses to act when
    the target is the acting admin, whatever the requested change.
    """

    @staticmethod
    def _ensure_not_self(target: User, performed_by: User, message: str) -> None:
        if target.pk == performed_by.pk:
            raise PermissionDenied(message)

    @staticmethod
    def list_users(
        *,
        role: str | None = None,
        is_verified: bool | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> QuerySet[User]:
        """
        Return a filtered queryset of users, newest first.

        ``search`` matches username, email, first and last name
        case-insensitively.
        """
        qs = User.objects.all().order_by("-date_joined")

        if role:
            qs = qs.filter(role=role)
        if is_verified is not None:
            qs = qs.filter(is_verified=is_verified)
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        if search:
            qs = qs.filter(
                Q(username__icontains=search)
                | Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        return qs

    @staticmethod
    def get_user(user_id: int) -> User:
        return _get_user_or_404(user_id)

    @staticmethod
    def list_available_officers() -> QuerySet[User]:
        """Active police accounts, for assignment pickers."""
        return User.objects.filter(
            role=UserRole.POLICE,
            is_active=True,
        ).order_by("last_name", "first_name")

    @staticmethod
    @transaction.atomic
    def verify_police_account(
        user_id: int,
        is_verified: bool,
        performed_by: User,
    ) -> User:
        """
        Set the verification flag of a police account.

        Raises
        ------
        DomainError
            If the target is not a police account.
        """
        require_role(performed_by, "admin")
        target = _get_user_or_404(user_id)

        if target.role != UserRole.POLICE:
            raise DomainError("Only police accounts can be verified.")

        target.is_verified = is_verified
        target.save(update_fields=["is_verified"])
        logger.info(
            "User %s %s police account id=%s",
            performed_by.pk, "verified" if is_verified else "unverified", target.pk,
        )
        return target

    @staticmethod
    @transaction.atomic
    def set_user_active(user_id: int, is_active: bool, performed_by: User) -> User:
        require_role(performed_by, "admin")
        target = _get_user_or_404(user_id)
        UserManagementService._ensure_not_self(
            target, performed_by, "You cannot change the status of your own account."
        )

        target.is_active = is_active
        target.save(update_fields=["is_active"])
        logger.info(
            "User %s %s account id=%s",
            performed_by.pk, "activated" if is_active else "deactivated", target.pk,
        )
        return target

    @staticmethod
    @transaction.atomic
    def set_user_role(user_id: int, role: str, performed_by: User) -> User:
        """
        Change a user's role.

        Moving to citizen clears the police profile and verifies the
        account.  Moving to police requires a fresh admin verification.
        """
        require_role(performed_by, "admin")
        target = _get_user_or_404(user_id)
        UserManagementService._ensure_not_self(
            target, performed_by, "You cannot change your own role."
        )

        if role not in UserRole.values:
            raise DomainError(f"Invalid role '{role}'.")

        # Reports may only be assigned to police officers.
        if target.role == UserRole.POLICE and role != UserRole.POLICE:
            released = target.assigned_reports.update(assigned_officer=None)
            if released:
                logger.info("Released %d report(s) assigned to user id=%s", released, target.pk)

        target.role = role
        if role == UserRole.CITIZEN:
            target.is_verified = True
            target.badge_number = ""
            target.department = ""
        elif role == UserRole.POLICE:
            target.is_verified = False
        target.save(update_fields=["role", "is_verified", "badge_number", "department"])

        logger.info("User %s changed role of id=%s to %s", performed_by.pk, target.pk, role)
        return target

    @staticmethod
    @transaction.atomic
    def delete_user(user_id: int, performed_by: User) -> None:
        """
        Hard-delete a user who has never filed a report.

        Raises
        ------
        Conflict
            If the user authored any report; deactivate them instead.
        """
        require_role(performed_by, "admin")
        target = _get_user_or_404(user_id)
        UserManagementService._ensure_not_self(
            target, performed_by, "You cannot delete your own account."
        )

        if target.reports.exists():
            raise Conflict(
                "Cannot delete user with existing crime reports. Deactivate instead."
            )

        target.delete()
        logger.info("User %s deleted account id=%s", performed_by.pk, user_id)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the ``/me/`` endpoint."""

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=list(validated_data.keys()))
        return user
