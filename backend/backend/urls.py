"""
Root URLconf.

    /api/accounts/   authentication, profile, admin user management
    /api/reports/    crime reports and their workflow
    /api/core/       dashboard, email queue, constants
    /api/docs/       Swagger UI over the generated OpenAPI schema
"""
from django.contrib import admin
from django.urls import include, path

from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/accounts/", include("accounts.urls")),
    path("api/", include("reports.urls")),
    path("api/core/", include("core.urls")),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
]
