"""
pytest configuration for FreightDesk.
Sets Django settings and provides shared fixtures.
"""

from datetime import timedelta

import pytest
from django.conf import settings


def pytest_configure(config):
    """Configure Django settings before tests run."""
    if not settings.configured:
        settings.configure(
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME":   ":memory:",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.admin",
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django.contrib.sessions",
                "django.contrib.messages",
                "django.contrib.staticfiles",
                "rest_framework",
                "rest_framework_simplejwt",
                "drf_spectacular",
                "django_filters",
                "corsheaders",
                "channels",
                "apps.shipments",
                "apps.tracking",
            ],
            REST_FRAMEWORK={
                "DEFAULT_AUTHENTICATION_CLASSES": [
                    "rest_framework_simplejwt.authentication.JWTAuthentication",
                ],
                "DEFAULT_PERMISSION_CLASSES": [
                    "rest_framework.permissions.IsAuthenticated",
                ],
                "DEFAULT_FILTER_BACKENDS": [
                    "django_filters.rest_framework.DjangoFilterBackend",
                ],
                "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
                "PAGE_SIZE": 50,
                "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
                "EXCEPTION_HANDLER": "apps.shipments.exceptions.freight_exception_handler",
            },
            SPECTACULAR_SETTINGS={
                "TITLE": "FreightDesk API",
                "VERSION": "test",
                "SERVE_INCLUDE_SCHEMA": False,
            },
            SECRET_KEY="test-secret-key-not-for-production",
            DEBUG=True,
            USE_TZ=True,
            TIME_ZONE="UTC",
            ROOT_URLCONF="freightdesk.urls",
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            MIDDLEWARE=[
                "django.middleware.security.SecurityMiddleware",
                "corsheaders.middleware.CorsMiddleware",
                "django.contrib.sessions.middleware.SessionMiddleware",
                "django.middleware.common.CommonMiddleware",
                "django.middleware.csrf.CsrfViewMiddleware",
                "django.contrib.auth.middleware.AuthenticationMiddleware",
                "django.contrib.messages.middleware.MessageMiddleware",
            ],
            CHANNEL_LAYERS={
                "default": {
                    "BACKEND": "channels.layers.InMemoryChannelLayer",
                }
            },
            ASGI_APPLICATION="freightdesk.asgi.application",
            STATIC_URL="/static/",
            TEMPLATES=[{
                "BACKEND":  "django.template.backends.django.DjangoTemplates",
                "APP_DIRS": True,
                "OPTIONS":  {
                    "context_processors": [
                        "django.template.context_processors.request",
                        "django.contrib.auth.context_processors.auth",
                        "django.contrib.messages.context_processors.messages",
                    ],
                },
            }],
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                }
            },
            CELERY_TASK_ALWAYS_EAGER=True,   # Execute tasks synchronously in tests
            CELERY_TASK_EAGER_PROPAGATES=True,
            CORS_ALLOW_ALL_ORIGINS=True,
            FREIGHT={
                "REFERENCE_PREFIX": "EXP-",
                "TRACKING_PREFIX":  "TRK",
                "WEIGHT_RATE":      "0.50",
                "DISTANCE_RATE":    "0.10",
            },
            SIMPLE_JWT={
                "ACCESS_TOKEN_LIFETIME": timedelta(hours=8),
                "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
                "ALGORITHM": "HS256",
                "AUTH_HEADER_TYPES": ("Bearer",),
            },
        )


@pytest.fixture(autouse=True)
def _reset_default_service():
    """Every test starts with a freshly wired default service."""
    from apps.shipments import api
    api.set_service(None)
    yield
    api.set_service(None)
