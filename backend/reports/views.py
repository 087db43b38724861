"""
Reports app ViewSets.

Views are intentionally thin.  Every view follows the same pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Role gates sit on the actions as DRF permission classes so the HTTP
layer answers 403 early; the services repeat the checks.

ViewSets
--------
- ``ReportViewSet`` — every report endpoint.  Workflow operations are
  ``@action`` methods on the report resource.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.pagination import paginate
from core.permissions import CanFileReport, IsAdmin, IsPoliceOrAdmin

from .serializers import (
    FIRRequestFilterSerializer,
    FIRUpdateSerializer,
    HeatmapPointSerializer,
    ReportAssignSerializer,
    ReportCreateSerializer,
    ReportDetailSerializer,
    ReportFilterSerializer,
    ReportListSerializer,
    ReportStatsSerializer,
    ReportStatusUpdateSerializer,
    ReportVerifySerializer,
)
from .services import (
    ReportAssignmentService,
    ReportCreationService,
    ReportQueryService,
    ReportWorkflowService,
)

_FILTER_PARAMETERS = [
    OpenApiParameter(name="category", type=str, description="Crime category."),
    OpenApiParameter(name="status", type=str, description="Report status."),
    OpenApiParameter(name="severity", type=str, description="low, medium, high or critical."),
    OpenApiParameter(name="city", type=str, description="Partial, case-insensitive city match."),
    OpenApiParameter(name="start_date", type=str, description="ISO date; incidents on or after."),
    OpenApiParameter(name="end_date", type=str, description="ISO date; incidents on or before."),
    OpenApiParameter(name="search", type=str, description="Text search on title and description."),
    OpenApiParameter(name="page", type=int),
    OpenApiParameter(name="limit", type=int),
]


class ReportViewSet(viewsets.ViewSet):
    """
    /api/reports/

    Listings are pre-filtered by the requesting user's role: citizens see
    their own reports plus public reports that are not closed.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        extra = {
            "create": [CanFileReport],
            "update_status": [IsPoliceOrAdmin],
            "update_fir": [IsPoliceOrAdmin],
            "fir_requests": [IsPoliceOrAdmin],
            "assign": [IsAdmin],
            "verify": [IsAdmin],
            "verification_queue": [IsAdmin],
        }.get(self.action, [])
        return [permission() for permission in [*self.permission_classes, *extra]]

    def _filters(self, request: Request) -> dict:
        serializer = ReportFilterSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def _detail(self, request: Request, report, status_code=status.HTTP_200_OK) -> Response:
        serializer = ReportDetailSerializer(report, context={"request": request})
        return Response(serializer.data, status=status_code)

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List reports",
        parameters=_FILTER_PARAMETERS,
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        qs = ReportQueryService.get_filtered_queryset(request.user, self._filters(request))
        return paginate(self, request, qs, ReportListSerializer, context={"request": request})

    @extend_schema(
        summary="File a crime report",
        request=ReportCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReportDetailSerializer, description="Report created."),
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Role may not file reports."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.create_report(serializer.validated_data, request.user)
        return self._detail(request, report, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve report",
        responses={
            200: ReportDetailSerializer,
            403: OpenApiResponse(description="Anonymous report of another citizen."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        report = ReportQueryService.get_report_detail(request.user, pk)
        return self._detail(request, report)

    # ── Workflow @actions ─────────────────────────────────────────────

    @action(detail=True, methods=["put"], url_path="status")
    @extend_schema(
        summary="Update report status",
        request=ReportStatusUpdateSerializer,
        responses={200: ReportDetailSerializer, 404: OpenApiResponse(description="Report not found.")},
        tags=["Reports – Workflow"],
    )
    def update_status(self, request: Request, pk: str = None) -> Response:
        serializer = ReportStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportQueryService.get_report(pk)
        report = ReportWorkflowService.update_status(
            report,
            serializer.validated_data["status"],
            request.user,
            note=serializer.validated_data["note"],
        )
        return self._detail(request, report)

    @action(detail=True, methods=["put"], url_path="assign")
    @extend_schema(
        summary="Assign officer",
        request=ReportAssignSerializer,
        responses={
            200: ReportDetailSerializer,
            400: OpenApiResponse(description="Invalid officer ID."),
            404: OpenApiResponse(description="Report not found."),
        },
        tags=["Reports – Workflow"],
    )
    def assign(self, request: Request, pk: str = None) -> Response:
        serializer = ReportAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportAssignmentService.assign_officer(
            pk, serializer.validated_data["officer_id"], request.user,
        )
        return self._detail(request, report)

    @action(detail=True, methods=["put"], url_path="fir")
    @extend_schema(
        summary="Approve or reject FIR",
        request=FIRUpdateSerializer,
        responses={
            200: ReportDetailSerializer,
            404: OpenApiResponse(description="Report not found."),
            409: OpenApiResponse(description="FIR was not requested for this report."),
        },
        tags=["Reports – Workflow"],
    )
    def update_fir(self, request: Request, pk: str = None) -> Response:
        serializer = FIRUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportQueryService.get_report(pk)
        report = ReportWorkflowService.update_fir(
            report,
            data["action"],
            request.user,
            fir_number=data.get("fir_number"),
            note=data["note"],
        )
        return self._detail(request, report)

    @action(detail=True, methods=["put"], url_path="verify")
    @extend_schema(
        summary="Verify report",
        request=ReportVerifySerializer,
        responses={200: ReportDetailSerializer, 404: OpenApiResponse(description="Report not found.")},
        tags=["Reports – Workflow"],
    )
    def verify(self, request: Request, pk: str = None) -> Response:
        serializer = ReportVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportQueryService.get_report(pk)
        report = ReportWorkflowService.verify_report(
            report, serializer.validated_data["verification_status"], request.user,
        )
        return self._detail(request, report)

    # ── Collection @actions ───────────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="fir-requests")
    @extend_schema(
        summary="FIR requests",
        parameters=[
            OpenApiParameter(name="fir_status", type=str, description="pending (default), approved, rejected or all."),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def fir_requests(self, request: Request) -> Response:
        serializer = FIRRequestFilterSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        qs = ReportQueryService.list_fir_requests(request.user, serializer.validated_data["fir_status"])
        return paginate(self, request, qs, ReportListSerializer, context={"request": request})

    @action(detail=False, methods=["get"], url_path="mine")
    @extend_schema(
        summary="My reports",
        parameters=_FILTER_PARAMETERS,
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def mine(self, request: Request) -> Response:
        qs = ReportQueryService.list_own_reports(request.user, self._filters(request))
        return paginate(self, request, qs, ReportListSerializer, context={"request": request})

    @action(detail=False, methods=["get"], url_path="assigned")
    @extend_schema(
        summary="Reports assigned to me",
        parameters=_FILTER_PARAMETERS,
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def assigned(self, request: Request) -> Response:
        qs = ReportQueryService.list_assigned_reports(request.user, self._filters(request))
        return paginate(self, request, qs, ReportListSerializer, context={"request": request})

    @action(detail=False, methods=["get"], url_path="verification-queue")
    @extend_schema(
        summary="Reports awaiting verification",
        parameters=[OpenApiParameter(name="page", type=int), OpenApiParameter(name="limit", type=int)],
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def verification_queue(self, request: Request) -> Response:
        qs = ReportQueryService.list_verification_queue(request.user)
        return paginate(self, request, qs, ReportListSerializer, context={"request": request})

    @action(detail=False, methods=["get"], url_path="heatmap")
    @extend_schema(
        summary="Crime heatmap points",
        parameters=[
            OpenApiParameter(name="category", type=str),
            OpenApiParameter(name="start_date", type=str),
            OpenApiParameter(name="end_date", type=str),
        ],
        responses={200: HeatmapPointSerializer(many=True)},
        tags=["Reports – Statistics"],
    )
    def heatmap(self, request: Request) -> Response:
        points = ReportQueryService.get_heatmap_points(request.user, self._filters(request))
        return Response(HeatmapPointSerializer(points, many=True).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(
        summary="Report statistics",
        parameters=[
            OpenApiParameter(name="start_date", type=str),
            OpenApiParameter(name="end_date", type=str),
        ],
        responses={200: ReportStatsSerializer},
        tags=["Reports – Statistics"],
    )
    def stats(self, request: Request) -> Response:
        data = ReportQueryService.get_summary_stats(request.user, self._filters(request))
        return Response(ReportStatsSerializer(data).data, status=status.HTTP_200_OK)
