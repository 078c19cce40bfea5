# Generated migration for users, memberships and the audit log

import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('email', models.EmailField(db_index=True, help_text='User email address (unique globally)', max_length=254, unique=True)),
                ('name', models.CharField(blank=True, help_text='Display name', max_length=200)),
                ('platform_role', models.CharField(blank=True, choices=[('platform_admin', 'Platform admin'), ('platform_support', 'Platform support')], db_index=True, help_text='Platform-wide role (null for regular users)', max_length=32, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Whether user account is active')),
            ],
            options={
                'db_table': 'users',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('admin', 'Admin'), ('member', 'Member')], db_index=True, default='member', help_text='Role within the organization', max_length=16)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(help_text='Organization this membership belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='memberships', to='tenants.tenant')),
                ('user', models.ForeignKey(help_text='User who is a member', on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='rbac.user')),
            ],
            options={
                'db_table': 'memberships',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['tenant', 'role'], name='membership_tenant_role_idx')],
                'constraints': [models.UniqueConstraint(fields=('tenant', 'user'), name='unique_membership_per_tenant')],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('action', models.CharField(db_index=True, help_text="Action performed (e.g., 'organization.member_removed')", max_length=100)),
                ('resource_type', models.CharField(db_index=True, help_text="Type of resource (e.g., 'membership', 'service_request')", max_length=50)),
                ('resource_id', models.CharField(db_index=True, help_text='ID of the resource', max_length=64)),
                ('previous_values', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder, help_text='Values before the change')),
                ('new_values', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder, help_text='Values after the change')),
                ('request_id', models.CharField(blank=True, db_index=True, help_text='Request ID for tracing', max_length=64, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder, help_text='Additional context (acting roles, notes)')),
                ('actor', models.ForeignKey(blank=True, help_text='User who performed the action (null for system actions)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='audit_logs', to='rbac.user')),
                ('tenant', models.ForeignKey(blank=True, help_text='Organization this action belongs to (null for platform-wide actions)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='audit_logs', to='tenants.tenant')),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['tenant', 'created_at'], name='audit_tenant_created_idx'),
                    models.Index(fields=['actor', 'created_at'], name='audit_actor_created_idx'),
                    models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
                    models.Index(fields=['resource_type', 'resource_id'], name='audit_resource_idx'),
                ],
            },
        ),
    ]
