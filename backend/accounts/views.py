"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``             — POST /auth/register/
- ``LoginView``                — POST /auth/login/
- ``PasswordResetView``        — POST /auth/password-reset/
- ``PasswordResetConfirmView`` — POST /auth/password-reset/confirm/
- ``MeView``                   — GET / PATCH /me/
- ``UserViewSet``              — /users/  (admin user management)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.domain.exceptions import PermissionDenied
from core.pagination import paginate
from core.permissions import IsAdmin

from .serializers import (
    CustomTokenObtainPairSerializer,
    MeUpdateSerializer,
    OfficerSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    RegisterRequestSerializer,
    SetActiveSerializer,
    SetRoleSerializer,
    UserDetailSerializer,
    UserFilterSerializer,
    UserListSerializer,
    VerifyPoliceSerializer,
)
from .services import (
    CurrentUserService,
    PasswordResetService,
    UserManagementService,
    UserRegistrationService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a citizen (verified) or police (awaiting
    verification) account.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``UserDetailSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = RegisterRequestSerializer

    @extend_schema(
        summary="Register",
        responses={201: OpenApiResponse(response=UserDetailSerializer, description="Account created.")},
        tags=["Auth"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(serializer.validated_data)
        response_serializer = UserDetailSerializer(user)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates by username or email plus password
    and returns ``{"access", "refresh", "user"}``.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Login",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(description="Token pair and user profile."),
            400: OpenApiResponse(description="Invalid credentials."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = serializer.validated_data  # contains 'access' and 'refresh'
        payload["user"] = UserDetailSerializer(serializer.user).data

        return Response(payload, status=status.HTTP_200_OK)


class PasswordResetView(APIView):
    """
    POST /api/accounts/auth/password-reset/

    Queues a reset-link email.  Always answers 200 so the endpoint
    cannot be used to probe which addresses are registered.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Request password reset",
        request=PasswordResetRequestSerializer,
        responses={200: OpenApiResponse(description="Reset email queued if the account exists.")},
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        PasswordResetService.request_reset(serializer.validated_data["email"])
        return Response(
            {"detail": "If an account exists for this email, a reset link has been sent."},
            status=status.HTTP_200_OK,
        )


class PasswordResetConfirmView(APIView):
    """POST /api/accounts/auth/password-reset/confirm/"""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Confirm password reset",
        request=PasswordResetConfirmSerializer,
        responses={
            200: OpenApiResponse(description="Password changed."),
            400: OpenApiResponse(description="Invalid or expired link."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        PasswordResetService.confirm_reset(data["uid"], data["token"], data["new_password"])
        return Response({"detail": "Password has been reset."}, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → Retrieve current user profile.
    PATCH /api/accounts/me/ → Update own profile fields.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        responses={200: UserDetailSerializer},
        tags=["Auth"],
    )
    def get(self, request: Request) -> Response:
        return Response(UserDetailSerializer(request.user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update current user",
        request=MeUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Auth"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(
            instance=request.user,
            data=request.data,
            partial=True,
        )
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/

    Administrative user management.  Admin only.

    Self-targeted status, role and delete requests are rejected with 403
    before the request body is validated, so no payload can slip past
    the guard.
    """

    permission_classes = [IsAuthenticated, IsAdmin]
    lookup_value_regex = r"\d+"

    def _reject_self(self, request: Request, pk: str, message: str) -> None:
        if str(request.user.pk) == str(pk):
            raise PermissionDenied(message)

    @extend_schema(
        summary="List users",
        parameters=[
            OpenApiParameter(name="role", type=str, description="citizen, police or admin."),
            OpenApiParameter(name="is_verified", type=bool),
            OpenApiParameter(name="is_active", type=bool),
            OpenApiParameter(name="search", type=str, description="Username, email or name."),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: UserListSerializer(many=True)},
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        filter_serializer = UserFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = UserManagementService.list_users(**filter_serializer.validated_data)
        return paginate(self, request, qs, UserListSerializer)

    @extend_schema(
        summary="Retrieve user",
        responses={200: UserDetailSerializer, 404: OpenApiResponse(description="User not found.")},
        tags=["Users"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        user = UserManagementService.get_user(pk)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete user",
        responses={
            204: OpenApiResponse(description="Deleted."),
            403: OpenApiResponse(description="Cannot delete own account."),
            409: OpenApiResponse(description="User has reports; deactivate instead."),
        },
        tags=["Users"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        self._reject_self(request, pk, "You cannot delete your own account.")
        UserManagementService.delete_user(pk, performed_by=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"], url_path="verify")
    @extend_schema(
        summary="Verify police account",
        request=VerifyPoliceSerializer,
        responses={200: UserDetailSerializer, 400: OpenApiResponse(description="Not a police account.")},
        tags=["Users"],
    )
    def verify(self, request: Request, pk: str = None) -> Response:
        serializer = VerifyPoliceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.verify_police_account(
            pk, serializer.validated_data["is_verified"], performed_by=request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["put"], url_path="status")
    @extend_schema(
        summary="Activate / deactivate user",
        request=SetActiveSerializer,
        responses={200: UserDetailSerializer, 403: OpenApiResponse(description="Cannot change own status.")},
        tags=["Users"],
    )
    def set_status(self, request: Request, pk: str = None) -> Response:
        self._reject_self(request, pk, "You cannot change the status of your own account.")
        serializer = SetActiveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.set_user_active(
            pk, serializer.validated_data["is_active"], performed_by=request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["put"], url_path="role")
    @extend_schema(
        summary="Change user role",
        request=SetRoleSerializer,
        responses={200: UserDetailSerializer, 403: OpenApiResponse(description="Cannot change own role.")},
        tags=["Users"],
    )
    def set_role(self, request: Request, pk: str = None) -> Response:
        self._reject_self(request, pk, "You cannot change your own role.")
        serializer = SetRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.set_user_role(
            pk, serializer.validated_data["role"], performed_by=request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="available-officers")
    @extend_schema(
        summary="Available officers",
        description="Active police accounts that can be assigned to reports.",
        responses={200: OfficerSerializer(many=True)},
        tags=["Users"],
    )
    def available_officers(self, request: Request) -> Response:
        officers = UserManagementService.list_available_officers()
        return Response(OfficerSerializer(officers, many=True).data, status=status.HTTP_200_OK)
