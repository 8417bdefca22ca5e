import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        ('carriers', '0001_initial'),
        ('drivers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Shipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference_number', models.CharField(max_length=40, unique=True)),
                ('status', models.CharField(choices=[('quoted', 'Quoted'), ('tendered', 'Tendered'), ('booked', 'Booked'), ('dispatched', 'Dispatched'), ('confirmed', 'Confirmed'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], default='quoted', max_length=20)),
                ('origin_city', models.CharField(max_length=100)),
                ('origin_state', models.CharField(max_length=2)),
                ('destination_city', models.CharField(max_length=100)),
                ('destination_state', models.CharField(max_length=2)),
                ('pickup_window_start', models.DateTimeField(blank=True, null=True)),
                ('total_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('equipment_type', models.CharField(choices=[('DRY_VAN', 'Dry Van'), ('REEFER', 'Reefer'), ('FLATBED', 'Flatbed'), ('STEP_DECK', 'Step Deck'), ('TANKER', 'Tanker'), ('CONTAINER', 'Container'), ('POWER_ONLY', 'Power Only')], default='DRY_VAN', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_shipments', to='drivers.driver')),
                ('carrier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='shipments', to='carriers.carrier')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shipments', to='accounts.tenant')),
            ],
            options={
                'db_table': 'shipments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='shipment',
            index=models.Index(fields=['tenant', 'status'], name='shipment_tenant_status_idx'),
        ),
    ]
