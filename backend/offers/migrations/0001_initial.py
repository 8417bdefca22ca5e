import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        ('carriers', '0001_initial'),
        ('drivers', '0001_initial'),
        ('shipments', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Offer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('TENDER', 'Tender to carrier'), ('DISPATCH', 'Dispatch to driver')], max_length=10)),
                ('state', models.CharField(choices=[('OFFERED', 'Offered'), ('ACCEPTED', 'Accepted'), ('REJECTED', 'Rejected'), ('EXPIRED', 'Expired'), ('CANCELLED', 'Cancelled')], default='OFFERED', max_length=10)),
                ('offer_type', models.CharField(choices=[('PRIMARY', 'Primary'), ('BACKUP', 'Backup'), ('SPOT', 'Spot'), ('EMERGENCY', 'Emergency')], default='PRIMARY', max_length=10)),
                ('amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('responded_by', models.CharField(blank=True, max_length=100)),
                ('response_note', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('carrier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='carriers.carrier')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_offers', to=settings.AUTH_USER_MODEL)),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='drivers.driver')),
                ('shipment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='shipments.shipment')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='offers', to='accounts.tenant')),
            ],
            options={
                'db_table': 'offers',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='OfferAuditEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=20)),
                ('timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('actor_id', models.CharField(blank=True, max_length=100)),
                ('note', models.TextField(blank=True)),
                ('offer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_trail', to='offers.offer')),
            ],
            options={
                'verbose_name_plural': 'offer audit entries',
                'db_table': 'offer_audit_entries',
                'ordering': ['timestamp', 'id'],
            },
        ),
        migrations.CreateModel(
            name='InboundMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('provider_message_id', models.CharField(blank=True, db_index=True, max_length=100)),
                ('from_number', models.CharField(max_length=20)),
                ('to_number', models.CharField(blank=True, max_length=20)),
                ('body', models.TextField(blank=True)),
                ('intent', models.CharField(choices=[('ACCEPT', 'Accept'), ('REJECT', 'Reject'), ('UNRECOGNIZED', 'Unrecognized')], max_length=15)),
                ('outcome', models.CharField(choices=[('APPLIED', 'Applied'), ('DUPLICATE', 'Duplicate (no-op)'), ('UNRECOGNIZED', 'Unrecognized'), ('NEEDS_REVIEW', 'Needs manual review'), ('FAILED', 'Failed')], max_length=15)),
                ('detail', models.TextField(blank=True)),
                ('received_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inbound_messages', to='drivers.driver')),
                ('offer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='inbound_messages', to='offers.offer')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_inbound_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'inbound_messages',
                'ordering': ['-received_at', '-id'],
            },
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['tenant', 'state'], name='offer_tenant_state_idx'),
        ),
        migrations.AddIndex(
            model_name='offer',
            index=models.Index(fields=['shipment', 'kind', 'state'], name='offer_shipment_kind_state_idx'),
        ),
        migrations.AddConstraint(
            model_name='offer',
            constraint=models.UniqueConstraint(condition=models.Q(('kind', 'TENDER'), ('state', 'OFFERED')), fields=('shipment', 'carrier'), name='unique_active_tender_per_carrier'),
        ),
        migrations.AddConstraint(
            model_name='offer',
            constraint=models.UniqueConstraint(condition=models.Q(('kind', 'DISPATCH'), ('state__in', ['OFFERED', 'ACCEPTED'])), fields=('shipment', 'driver'), name='unique_active_dispatch_per_driver'),
        ),
        migrations.AddIndex(
            model_name='inboundmessage',
            index=models.Index(fields=['from_number', 'received_at'], name='inbound_from_received_idx'),
        ),
    ]
