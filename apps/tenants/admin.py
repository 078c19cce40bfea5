"""
Django admin configuration for tenants app.
"""
from django.contrib import admin

from apps.core.admin import ReadOnlyModelAdmin
from apps.tenants.models import ProviderProfile, Tenant


@admin.register(Tenant)
class TenantAdmin(ReadOnlyModelAdmin):
    list_display = ['name', 'slug', 'kind', 'lifecycle_status', 'suspended_at', 'created_at']
    list_filter = ['kind', 'lifecycle_status']
    search_fields = ['name', 'slug']
    ordering = ['name']


@admin.register(ProviderProfile)
class ProviderProfileAdmin(ReadOnlyModelAdmin):
    list_display = ['display_name', 'tenant', 'is_accepting_requests', 'created_at']
    list_filter = ['is_accepting_requests']
    search_fields = ['display_name', 'tenant__name']
