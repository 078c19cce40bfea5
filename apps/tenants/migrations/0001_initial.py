# Generated migration for organizations and provider profiles

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('name', models.CharField(help_text='Organization display name', max_length=200)),
                ('slug', models.SlugField(help_text='URL-friendly identifier', max_length=220, unique=True)),
                ('kind', models.CharField(choices=[('hospital', 'Hospital'), ('provider', 'Provider')], db_index=True, help_text='Hospital or equipment-service provider', max_length=16)),
                ('lifecycle_status', models.CharField(choices=[('trial', 'Trial'), ('active', 'Active'), ('suspended', 'Suspended')], db_index=True, default='trial', help_text='Current lifecycle status', max_length=16)),
                ('suspended_at', models.DateTimeField(blank=True, help_text='When the organization was last suspended', null=True)),
                ('suspension_reason', models.TextField(blank=True, help_text='Operator-supplied reason for the last suspension')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'tenants',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['kind', 'lifecycle_status'], name='tenant_kind_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='ProviderProfile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when the record was soft deleted', null=True)),
                ('display_name', models.CharField(help_text='Name shown to hospitals', max_length=200)),
                ('description', models.TextField(blank=True)),
                ('coverage_area', models.CharField(blank=True, help_text='Region the provider serves', max_length=200)),
                ('is_accepting_requests', models.BooleanField(db_index=True, default=True, help_text='Whether the provider can be assigned new service requests')),
                ('tenant', models.OneToOneField(help_text='Provider organization', on_delete=django.db.models.deletion.PROTECT, related_name='provider_profile', to='tenants.tenant')),
            ],
            options={
                'db_table': 'provider_profiles',
                'ordering': ['display_name'],
            },
        ),
    ]
