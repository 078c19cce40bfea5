"""
Serializers for status history.
"""
from rest_framework import serializers

from apps.workflows.models import StatusHistory


class StatusHistorySerializer(serializers.ModelSerializer):
    """Serializer for one status transition."""

    performed_by_email = serializers.CharField(source='performed_by.email', read_only=True, default=None)

    class Meta:
        model = StatusHistory
        fields = [
            'id', 'entity_kind', 'entity_id', 'previous_status', 'new_status',
            'performed_by', 'performed_by_email', 'notes', 'created_at'
        ]
        read_only_fields = fields


class StatusChangeSerializer(serializers.Serializer):
    """Request body for status change endpoints."""

    status = serializers.CharField(max_length=32)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
