"""
RBAC serializers for REST API endpoints.

Provides serialization for:
- Users and memberships
- Member management requests
- Audit logs
"""
from rest_framework import serializers

from apps.rbac.models import AuditLog, Membership, User
from apps.rbac.roles import OrgRole


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (basic info)."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'platform_role', 'is_active']
        read_only_fields = fields


class MembershipSerializer(serializers.ModelSerializer):
    """Serializer for Membership."""

    user = UserSerializer(read_only=True)
    tenant_name = serializers.CharField(source='tenant.name', read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'tenant', 'tenant_name', 'user', 'role', 'created_at', 'updated_at']
        read_only_fields = fields


class AddMemberSerializer(serializers.Serializer):
    """Serializer for adding an existing user to an organization."""

    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=OrgRole.choices, default=OrgRole.MEMBER)

    def validate_email(self, value):
        return value.lower()


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=OrgRole.choices)


class AuditLogSerializer(serializers.ModelSerializer):
    """Serializer for AuditLog model."""

    actor_email = serializers.EmailField(source='actor.email', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'tenant', 'actor', 'actor_email', 'action',
            'resource_type', 'resource_id', 'previous_values', 'new_values',
            'metadata', 'request_id', 'created_at'
        ]
        read_only_fields = fields
