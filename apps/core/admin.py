"""
Django admin configuration for core app.
"""
from django.contrib import admin


admin.site.site_header = "Medilink Administration"
admin.site.site_title = "Medilink Admin"
admin.site.index_title = "Records (read-only; changes go through the API)"


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Inspection-only admin.

    Writes would skip the audit trail and the membership and lifecycle
    rules enforced by the services.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
