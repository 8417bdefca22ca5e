import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        ('carriers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('phone_number', models.CharField(max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('cdl_number', models.CharField(blank=True, max_length=30)),
                ('license_expiration_date', models.DateField(blank=True, null=True)),
                ('medical_certificate_expiration_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('INACTIVE', 'Inactive'), ('ON_LOAD', 'On Load'), ('OFF_DUTY', 'Off Duty'), ('SICK', 'Sick'), ('VACATION', 'Vacation')], default='ACTIVE', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('last_dispatch_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('carrier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='drivers', to='carriers.carrier')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='drivers', to='accounts.tenant')),
            ],
            options={
                'db_table': 'drivers',
                'ordering': ['last_name', 'first_name'],
            },
        ),
        migrations.AddConstraint(
            model_name='driver',
            constraint=models.UniqueConstraint(fields=('tenant', 'phone_number'), name='unique_tenant_driver_phone'),
        ),
    ]
