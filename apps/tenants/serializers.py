"""
Serializers for session and organization endpoints.
"""
from rest_framework import serializers

from apps.tenants.models import Tenant


class TenantSerializer(serializers.ModelSerializer):
    """Serializer for Tenant."""

    class Meta:
        model = Tenant
        fields = ['id', 'name', 'slug', 'kind', 'lifecycle_status', 'created_at', 'updated_at']
        read_only_fields = fields


class CreateTenantSerializer(serializers.Serializer):
    """Serializer for onboarding a new organization."""

    name = serializers.CharField(max_length=200)
    kind = serializers.ChoiceField(choices=Tenant.Kind.choices)


class SwitchTenantSerializer(serializers.Serializer):
    tenant_id = serializers.UUIDField()


class RoutingDecisionSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    redirect_to = serializers.CharField(allow_null=True)
    reason = serializers.CharField()
