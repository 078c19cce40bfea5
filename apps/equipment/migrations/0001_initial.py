# Generated migration for equipment and failure reports

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
        ('rbac', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Equipment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('status_changed_at', models.DateTimeField(blank=True, db_index=True, help_text='When the status last changed', null=True)),
                ('name', models.CharField(max_length=200)),
                ('serial_number', models.CharField(blank=True, db_index=True, help_text='Manufacturer serial number', max_length=100)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('location', models.CharField(blank=True, help_text='Department or room', max_length=200)),
                ('condition', models.CharField(choices=[('excellent', 'Excellent'), ('good', 'Good'), ('fair', 'Fair'), ('poor', 'Poor')], default='good', max_length=16)),
                ('criticality', models.CharField(choices=[('A', 'High criticality'), ('B', 'Medium criticality'), ('C', 'Low criticality')], default='B', max_length=1)),
                ('status', models.CharField(choices=[('available', 'Available'), ('in_use', 'In use'), ('maintenance', 'Maintenance'), ('damaged', 'Damaged'), ('retired', 'Retired')], db_index=True, default='available', max_length=32)),
                ('tenant', models.ForeignKey(help_text='Owning organization', on_delete=django.db.models.deletion.PROTECT, related_name='equipment', to='tenants.tenant')),
            ],
            options={
                'verbose_name_plural': 'equipment',
                'db_table': 'equipment',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['tenant', 'status'], name='equipment_tenant_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='FailureReport',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('urgency', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=16)),
                ('description', models.TextField()),
                ('equipment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='failure_reports', to='equipment.equipment')),
                ('reported_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='failure_reports', to='rbac.user')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='failure_reports', to='tenants.tenant')),
            ],
            options={
                'db_table': 'failure_reports',
                'ordering': ['-created_at'],
            },
        ),
    ]
