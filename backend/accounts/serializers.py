"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here — all domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import UserRole

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.ModelSerializer):
    """
    Validates new-user registration data.

    Citizens and police officers may self-register; admin accounts are
    created only by an existing admin changing a user's role.  Police
    registrations must carry a badge number and department.
    """

    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Minimum 8 characters.",
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Must match 'password'.",
    )
    role = serializers.ChoiceField(
        choices=[UserRole.CITIZEN, UserRole.POLICE],
        default=UserRole.CITIZEN,
    )

    class Meta:
        model = User
        fields = [
            "username",
            "password",
            "password_confirm",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "badge_number",
            "department",
        ]
        extra_kwargs = {
            "email": {"required": True},
            "first_name": {"required": True},
            "last_name": {"required": True},
        }

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )
        validate_password(attrs["password"])

        if attrs.get("role") == UserRole.POLICE:
            missing = {
                field: "This field is required for police accounts."
                for field in ("badge_number", "department")
                if not attrs.get(field, "").strip()
            }
            if missing:
                raise serializers.ValidationError(missing)
        else:
            attrs.pop("badge_number", None)
            attrs.pop("department", None)

        attrs.pop("password_confirm")
        return attrs


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Custom SimpleJWT serializer that:

    1. Accepts ``identifier`` + ``password`` instead of
       ``username`` + ``password``.
    2. Resolves the user via ``UsernameOrEmailBackend``.
    3. Injects ``role`` and ``is_verified`` claims into the token payload.
    """

    username_field = "identifier"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop(self.username_field, None)
        self.fields["identifier"] = serializers.CharField(
            help_text="Username or email.",
        )

    @classmethod
    def get_token(cls, user) -> Any:
        token = super().get_token(user)
        token["role"] = user.role
        token["is_verified"] = user.is_verified
        return token

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        user = authenticate(
            request=self.context.get("request"),
            identifier=attrs.get("identifier"),
            password=attrs.get("password"),
        )

        # ``user_can_authenticate`` already rejects inactive users.
        if user is None:
            raise serializers.ValidationError(
                {"detail": "Invalid credentials."},
                code="authentication",
            )

        refresh = self.get_token(user)
        self.user = user
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
    )

    def validate_new_password(self, value: str) -> str:
        validate_password(value)
        return value



# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserListSerializer(serializers.ModelSerializer):
    """Compact row for admin user tables."""

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_verified",
            "is_active",
            "date_joined",
        ]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full user representation (used in retrieve, me, login and
    registration responses).  Never exposes the password hash.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "is_verified",
            "is_active",
            "badge_number",
            "department",
            "date_joined",
            "last_login",
        ]
        read_only_fields = fields


class OfficerSerializer(serializers.ModelSerializer):
    """Police officer summary for assignment pickers and report payloads."""

    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "badge_number", "department"]
        read_only_fields = fields


class MeUpdateSerializer(serializers.ModelSerializer):
    """
    Allows the authenticated user to update limited profile fields.
    Role, verification and activation cannot be self-modified.
    """

    class Meta:
        model = User
        fields = ["email", "first_name", "last_name", "phone"]

    def validate_email(self, value: str) -> str:
        if (
            self.instance
            and User.objects.exclude(pk=self.instance.pk)
            .filter(email__iexact=value)
            .exists()
        ):
            raise serializers.ValidationError(
                "This email is already in use by another account."
            )
        return value

    def validate_first_name(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("First name cannot be empty.")
        return value.strip()

    def validate_last_name(self, value: str) -> str:
        if not value.strip():
            raise serializers.ValidationError("Last name cannot be empty.")
        return value.strip()


# ═══════════════════════════════════════════════════════════════════
#  Admin User-Management Request Serializers
# ═══════════════════════════════════════════════════════════════════


class UserFilterSerializer(serializers.Serializer):
    """Query parameters accepted by ``GET /users/``."""

    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    is_verified = serializers.BooleanField(allow_null=True, default=None)
    is_active = serializers.BooleanField(allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)


class VerifyPoliceSerializer(serializers.Serializer):
    is_verified = serializers.BooleanField()


class SetActiveSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class SetRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.choices)
