"""
URL configuration for session and organization endpoints.
"""
from django.urls import path
from apps.tenants import views

urlpatterns = [
    path('session', views.SessionView.as_view(), name='session'),
    path('session/route', views.SessionRouteView.as_view(), name='session-route'),
    path('session/switch-tenant', views.SwitchTenantView.as_view(), name='session-switch-tenant'),
    path('organizations', views.CreateTenantView.as_view(), name='organization-create'),
]
