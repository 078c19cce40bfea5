"""
Django admin configuration for RBAC app.
"""
from django.contrib import admin

from apps.core.admin import ReadOnlyModelAdmin
from apps.rbac.models import AuditLog, Membership, User


@admin.register(User)
class UserAdmin(ReadOnlyModelAdmin):
    list_display = ['email', 'name', 'platform_role', 'is_active', 'created_at']
    list_filter = ['platform_role', 'is_active']
    search_fields = ['email', 'name']
    ordering = ['-created_at']


@admin.register(Membership)
class MembershipAdmin(ReadOnlyModelAdmin):
    list_display = ['user', 'tenant', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['user__email', 'tenant__name']
    list_select_related = ['user', 'tenant']


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyModelAdmin):
    """Append-only compliance trail."""
    list_display = ['created_at', 'action', 'resource_type', 'resource_id', 'actor', 'tenant', 'request_id']
    list_filter = ['action', 'resource_type']
    search_fields = ['action', 'resource_id', 'actor__email', 'request_id']
    date_hierarchy = 'created_at'
    list_select_related = ['actor', 'tenant']
