"""FreightDesk root URL configuration."""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("admin/", admin.site.urls),

    # OpenAPI / Interactive Docs
    path("api/schema/",  SpectacularAPIView.as_view(),       name="schema"),
    path("api/docs/",    SpectacularSwaggerView.as_view(), name="swagger-ui"),

    # Auth
    path("api/auth/token/",         TokenObtainPairView.as_view(), name="token-obtain"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(),    name="token-refresh"),

    # Freight core
    path("api/",          include("apps.shipments.urls")),
    path("api/tracking/", include("apps.tracking.urls")),
]

# Prometheus metrics (only when installed)
try:
    import django_prometheus  # noqa: F401
    urlpatterns += [path("", include("django_prometheus.urls"))]
except ImportError:
    pass
