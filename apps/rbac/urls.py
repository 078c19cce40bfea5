"""
URL configuration for membership management and the tenant audit log.
"""
from django.urls import path
from apps.rbac import views

urlpatterns = [
    path('organizations/<uuid:tenant_id>/members', views.MembershipListView.as_view(), name='membership-list'),
    path('organizations/<uuid:tenant_id>/members/<uuid:user_id>', views.MembershipDetailView.as_view(), name='membership-detail'),
    path('audit-logs', views.AuditLogListView.as_view(), name='audit-log-list'),
]
