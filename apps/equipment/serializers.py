"""
Serializers for equipment API endpoints.
"""
from rest_framework import serializers

from apps.equipment.models import Equipment, FailureReport


class EquipmentSerializer(serializers.ModelSerializer):
    """Serializer for Equipment."""

    class Meta:
        model = Equipment
        fields = [
            'id', 'tenant', 'name', 'serial_number', 'category', 'location',
            'condition', 'criticality', 'status', 'status_changed_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'tenant', 'status', 'status_changed_at', 'created_at', 'updated_at']


class EquipmentCreateSerializer(serializers.Serializer):
    """Serializer for registering equipment."""

    name = serializers.CharField(max_length=200)
    serial_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    condition = serializers.ChoiceField(choices=Equipment.Condition.choices, required=False)
    criticality = serializers.ChoiceField(choices=Equipment.Criticality.choices, required=False)


class FailureReportSerializer(serializers.ModelSerializer):
    """Serializer for FailureReport."""

    class Meta:
        model = FailureReport
        fields = ['id', 'equipment', 'urgency', 'description', 'reported_by', 'created_at']
        read_only_fields = ['id', 'equipment', 'reported_by', 'created_at']


class FailureReportCreateSerializer(serializers.Serializer):
    urgency = serializers.ChoiceField(choices=FailureReport.Urgency.choices)
    description = serializers.CharField()
