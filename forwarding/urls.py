"""
URL configuration for forwarding project.

- /admin/ : 운영자 관리 페이지 (요율표, 보관요금표, Bin 관리)
- /api/ : logistics 앱 API
- /api/schema/, /api/docs/ : OpenAPI 문서 (drf-spectacular)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # 관리자 페이지
    path("admin/", admin.site.urls),
    # OpenAPI 문서 (logistics URL보다 먼저 매칭)
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path(
        "api/docs/",
        SpectacularSwaggerView.as_view(url_name="schema"),
        name="swagger-ui",
    ),
    # logistics 앱 URLs 포함
    path("api/", include("logistics.urls")),
    # DRF 인증 URLs (로그인/로그아웃 페이지)
    path("api-auth/", include("rest_framework.urls")),
]
