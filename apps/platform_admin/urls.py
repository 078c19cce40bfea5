"""
URL configuration for the platform operator API.
"""
from django.urls import path
from apps.platform_admin import views

urlpatterns = [
    path('service-requests', views.PlatformServiceRequestListView.as_view(), name='platform-service-request-list'),
    path('service-requests/<uuid:service_request_id>/reassign', views.PlatformReassignProviderView.as_view(), name='platform-service-request-reassign'),
    path('disputes/escalated', views.PlatformEscalatedDisputeListView.as_view(), name='platform-dispute-escalated'),
    path('disputes/<uuid:dispute_id>', views.PlatformDisputeDetailView.as_view(), name='platform-dispute-detail'),
    path('disputes/<uuid:dispute_id>/resolve', views.PlatformResolveDisputeView.as_view(), name='platform-dispute-resolve'),
    path('tenants', views.PlatformTenantListView.as_view(), name='platform-tenant-list'),
    path('tenants/<uuid:tenant_id>/suspend', views.PlatformSuspendTenantView.as_view(), name='platform-tenant-suspend'),
    path('tenants/<uuid:tenant_id>/reactivate', views.PlatformReactivateTenantView.as_view(), name='platform-tenant-reactivate'),
    path('audit-log', views.PlatformAuditLogView.as_view(), name='platform-audit-log'),
]
