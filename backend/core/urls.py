"""
Admin dashboard, email queue monitor and public choice constants.

Mounted under ``/api/core/``.
"""

from django.urls import path

from . import views

app_name = "core"

urlpatterns = [
    path("dashboard/", views.DashboardStatsView.as_view(), name="dashboard-stats"),
    path("email-queue/", views.EmailQueueStatusView.as_view(), name="email-queue"),
    path("constants/", views.SystemConstantsView.as_view(), name="system-constants"),
]
