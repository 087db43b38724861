"""
Reports app URL configuration.

All routes are registered under the ``/api/reports/`` prefix.

Route Hierarchy
---------------
  /api/reports/                          → list / create
  /api/reports/{id}/                     → retrieve

  ── Workflow @actions ───────────────────────────────────────────
  PUT /api/reports/{id}/status/          → police / admin
  PUT /api/reports/{id}/assign/          → admin
  PUT /api/reports/{id}/fir/             → police / admin
  PUT /api/reports/{id}/verify/          → admin

  ── Collection @actions ─────────────────────────────────────────
  GET /api/reports/fir-requests/
  GET /api/reports/mine/
  GET /api/reports/assigned/
  GET /api/reports/verification-queue/
  GET /api/reports/heatmap/
  GET /api/reports/stats/
"""

from rest_framework.routers import DefaultRouter

from .views import ReportViewSet

router = DefaultRouter()
router.register(
    prefix=r"reports",
    viewset=ReportViewSet,
    basename="report",
)

urlpatterns = router.urls
