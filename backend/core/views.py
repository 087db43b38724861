"""
Thin views over ``core.services``: validate query parameters, call the
service with the requesting user, serialise the returned dict.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsAdmin

from .serializers import (
    DashboardFilterSerializer,
    DashboardStatsSerializer,
    EmailQueueStatusSerializer,
    SystemConstantsSerializer,
)
from .services import (
    DashboardAggregationService,
    EmailQueueStatusService,
    SystemConstantsService,
)


class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    User and report counts plus the five most recent accounts and
    reports.  Admin only.

    **Query Parameters**:
        - ``start_date`` / ``end_date`` (ISO date, optional): restrict the
          counts to accounts and reports created in the range.
    """

    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="Dashboard statistics",
        parameters=[
            OpenApiParameter(name="start_date", type=str, description="ISO date, inclusive."),
            OpenApiParameter(name="end_date", type=str, description="ISO date, inclusive."),
        ],
        responses={200: OpenApiResponse(response=DashboardStatsSerializer, description="Dashboard stats.")},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        filter_serializer = DashboardFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        service = DashboardAggregationService(user=request.user, **filter_serializer.validated_data)
        serializer = DashboardStatsSerializer(service.get_stats())
        return Response(serializer.data, status=status.HTTP_200_OK)


class EmailQueueStatusView(APIView):
    """
    **GET /api/core/email-queue/**

    Snapshot of the notification dispatch queue.  Admin only.
    """

    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="Email queue status",
        responses={200: EmailQueueStatusSerializer},
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        data = EmailQueueStatusService.get_status(request.user)
        return Response(EmailQueueStatusSerializer(data).data, status=status.HTTP_200_OK)


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Every choice enumeration the frontend needs for dropdowns, filters
    and labels.  Public configuration data.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="System constants",
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        return Response(SystemConstantsSerializer(data).data, status=status.HTTP_200_OK)
