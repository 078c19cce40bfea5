"""
URL configuration for the Medilink core API.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # Django admin; /admin belongs to the platform portal
    path('django-admin/', admin.site.urls),

    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API v1
    path('v1/', include('apps.core.urls')),  # Health check

    # Session context, routing decisions and organization switching
    path('v1/', include('apps.tenants.urls')),

    # Memberships and tenant audit trail
    path('v1/', include('apps.rbac.urls')),

    # Marketplace workflows
    path('v1/equipment/', include('apps.equipment.urls')),
    path('v1/', include('apps.service_requests.urls')),

    # Cross-tenant operator surface
    path('v1/platform/', include('apps.platform_admin.urls')),
]
