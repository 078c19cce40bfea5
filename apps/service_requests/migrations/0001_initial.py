# Generated migration for service requests, disputes and payments

import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
        ('rbac', '0001_initial'),
        ('equipment', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ServiceRequest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('status_changed_at', models.DateTimeField(blank=True, db_index=True, help_text='When the status last changed', null=True)),
                ('request_type', models.CharField(choices=[('repair', 'Repair'), ('maintenance', 'Maintenance'), ('calibration', 'Calibration'), ('inspection', 'Inspection'), ('installation', 'Installation'), ('other', 'Other')], default='repair', max_length=16)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], db_index=True, default='medium', max_length=16)),
                ('description', models.TextField()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('quoted', 'Quoted'), ('accepted', 'Accepted'), ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('disputed', 'Disputed')], db_index=True, default='pending', max_length=32)),
                ('equipment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='service_requests', to='equipment.equipment')),
                ('provider', models.ForeignKey(blank=True, help_text='Assigned provider', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='service_requests', to='tenants.providerprofile')),
                ('requested_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='service_requests', to='rbac.user')),
                ('tenant', models.ForeignKey(help_text='Hospital organization that raised the request', on_delete=django.db.models.deletion.PROTECT, related_name='service_requests', to='tenants.tenant')),
            ],
            options={
                'db_table': 'service_requests',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['tenant', 'status'], name='sr_tenant_status_idx'),
                    models.Index(fields=['provider', 'status'], name='sr_provider_status_idx'),
                    models.Index(fields=['status', 'status_changed_at'], name='sr_status_changed_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Dispute',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('status_changed_at', models.DateTimeField(blank=True, db_index=True, help_text='When the status last changed', null=True)),
                ('dispute_type', models.CharField(choices=[('quality', 'Quality'), ('pricing', 'Pricing'), ('timeline', 'Timeline'), ('other', 'Other')], default='other', max_length=16)),
                ('description', models.TextField()),
                ('status', models.CharField(choices=[('open', 'Open'), ('investigating', 'Investigating'), ('resolved', 'Resolved'), ('closed', 'Closed'), ('escalated', 'Escalated')], db_index=True, default='open', max_length=32)),
                ('escalation_reason', models.TextField(blank=True)),
                ('resolution', models.CharField(blank=True, choices=[('refund', 'Refund'), ('partial_refund', 'Partial refund'), ('dismiss', 'Dismiss'), ('re_assign', 'Re-assign')], help_text='Platform ruling', max_length=16)),
                ('resolution_notes', models.TextField(blank=True)),
                ('refund_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('raised_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='disputes', to='rbac.user')),
                ('service_request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='disputes', to='service_requests.servicerequest')),
                ('tenant', models.ForeignKey(help_text='Hospital organization that raised the dispute', on_delete=django.db.models.deletion.PROTECT, related_name='disputes', to='tenants.tenant')),
            ],
            options={
                'db_table': 'disputes',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['tenant', 'status'], name='dispute_tenant_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('status_changed_at', models.DateTimeField(blank=True, db_index=True, help_text='When the status last changed', null=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)])),
                ('currency', models.CharField(default='VND', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed'), ('refunded', 'Refunded')], db_index=True, default='pending', max_length=32)),
                ('reference', models.CharField(blank=True, help_text='External payment reference', max_length=100)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('service_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='service_requests.servicerequest')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='tenants.tenant')),
            ],
            options={
                'db_table': 'payments',
                'ordering': ['-created_at'],
            },
        ),
    ]
