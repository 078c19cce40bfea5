# Generated migration for status history

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
            name='StatusHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the record was created')),
                ('entity_kind', models.CharField(choices=[('service_request', 'Service request'), ('dispute', 'Dispute'), ('equipment', 'Equipment'), ('payment', 'Payment')], help_text='Kind of workflow entity', max_length=32)),
                ('entity_id', models.UUIDField(help_text='ID of the workflow entity')),
                ('previous_status', models.CharField(max_length=32)),
                ('new_status', models.CharField(max_length=32)),
                ('notes', models.TextField(blank=True)),
                ('performed_by', models.ForeignKey(blank=True, help_text='User who made the change (null for system changes)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='status_changes', to='rbac.user')),
                ('tenant', models.ForeignKey(help_text='Organization owning the entity', on_delete=django.db.models.deletion.PROTECT, related_name='status_history', to='tenants.tenant')),
            ],
            options={
                'verbose_name_plural': 'status history',
                'db_table': 'status_history',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['entity_kind', 'entity_id', 'created_at'], name='status_hist_entity_idx'),
                    models.Index(fields=['tenant', 'created_at'], name='status_hist_tenant_idx'),
                ],
            },
        ),
    ]
