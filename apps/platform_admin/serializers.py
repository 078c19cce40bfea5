"""
Serializers for the platform operator API.
"""
from rest_framework import serializers

from apps.rbac.serializers import AuditLogSerializer
from apps.service_requests.models import Dispute
from apps.service_requests.serializers import DisputeSerializer, ServiceRequestSerializer
from apps.tenants.models import ProviderProfile, Tenant


class PlatformServiceRequestSerializer(ServiceRequestSerializer):
    """Service request with cross-tenant enrichment."""

    hospital_name = serializers.CharField(read_only=True)
    provider_name = serializers.CharField(read_only=True, allow_null=True)
    is_bottleneck = serializers.BooleanField(read_only=True)

    class Meta(ServiceRequestSerializer.Meta):
        fields = ServiceRequestSerializer.Meta.fields + ['is_bottleneck']
        read_only_fields = fields


class EscalatedDisputeSerializer(DisputeSerializer):
    hospital_name = serializers.CharField(read_only=True)
    provider_name = serializers.CharField(read_only=True, allow_null=True)
    service_request_description = serializers.CharField(read_only=True)

    class Meta(DisputeSerializer.Meta):
        fields = DisputeSerializer.Meta.fields + [
            'hospital_name', 'provider_name', 'service_request_description'
        ]
        read_only_fields = fields


class ProviderProfileSerializer(serializers.ModelSerializer):

    class Meta:
        model = ProviderProfile
        fields = ['id', 'tenant', 'display_name', 'coverage_area', 'is_accepting_requests']
        read_only_fields = fields


class DisputeDetailSerializer(serializers.Serializer):
    """Dispute, its service request and provider, and the arbitration history."""

    dispute = DisputeSerializer(read_only=True)
    service_request = ServiceRequestSerializer(read_only=True)
    provider = ProviderProfileSerializer(read_only=True, allow_null=True)
    arbitration_history = AuditLogSerializer(many=True, read_only=True)


class ResolveDisputeSerializer(serializers.Serializer):
    resolution = serializers.ChoiceField(choices=Dispute.Resolution.choices)
    reason = serializers.CharField()
    refund_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['resolution'] == Dispute.Resolution.PARTIAL_REFUND and attrs.get('refund_amount') is None:
            raise serializers.ValidationError({'refund_amount': "A partial refund needs a refund amount"})
        return attrs


class ReassignProviderSerializer(serializers.Serializer):
    provider_id = serializers.UUIDField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class PlatformTenantSerializer(serializers.ModelSerializer):
    """Organization with its member count."""

    member_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Tenant
        fields = [
            'id', 'name', 'slug', 'kind', 'lifecycle_status', 'suspended_at',
            'suspension_reason', 'member_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class OnboardTenantSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    kind = serializers.ChoiceField(choices=Tenant.Kind.choices)
    owner_email = serializers.EmailField()


class SuspendTenantSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')

