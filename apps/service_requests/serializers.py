"""
Serializers for service request, dispute and payment endpoints.
"""
from rest_framework import serializers

from apps.service_requests.models import Dispute, Payment, ServiceRequest


class ServiceRequestSerializer(serializers.ModelSerializer):
    """Serializer for ServiceRequest."""

    hospital_name = serializers.CharField(source='tenant.name', read_only=True)
    provider_name = serializers.CharField(source='provider.display_name', read_only=True, default=None)

    class Meta:
        model = ServiceRequest
        fields = [
            'id', 'tenant', 'hospital_name', 'equipment', 'provider', 'provider_name',
            'requested_by', 'request_type', 'priority', 'description', 'status',
            'status_changed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ServiceRequestCreateSerializer(serializers.Serializer):
    """Serializer for raising a service request."""

    description = serializers.CharField()
    request_type = serializers.ChoiceField(choices=ServiceRequest.RequestType.choices, required=False)
    priority = serializers.ChoiceField(choices=ServiceRequest.Priority.choices, required=False)
    equipment_id = serializers.UUIDField(required=False, allow_null=True)
    provider_id = serializers.UUIDField(required=False, allow_null=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class DisputeSerializer(serializers.ModelSerializer):
    """Serializer for Dispute."""

    class Meta:
        model = Dispute
        fields = [
            'id', 'tenant', 'service_request', 'raised_by', 'dispute_type', 'description',
            'status', 'status_changed_at', 'escalation_reason', 'resolution',
            'resolution_notes', 'refund_amount', 'resolved_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class DisputeCreateSerializer(serializers.Serializer):
    service_request_id = serializers.UUIDField()
    dispute_type = serializers.ChoiceField(choices=Dispute.DisputeType.choices)
    description = serializers.CharField()


class EscalateSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for Payment."""

    class Meta:
        model = Payment
        fields = [
            'id', 'tenant', 'service_request', 'amount', 'currency', 'status',
            'reference', 'paid_at', 'status_changed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField(max_length=3, required=False, default='VND')
    service_request_id = serializers.UUIDField(required=False, allow_null=True)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
