from django.db import models


class Carrier(models.Model):
    """Trucking company that receives load tenders."""

    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        INACTIVE = 'INACTIVE', 'Inactive'
        PENDING = 'PENDING', 'Pending Approval'
        SUSPENDED = 'SUSPENDED', 'Suspended'

    tenant = models.ForeignKey(
        'accounts.Tenant',
        on_delete=models.PROTECT,
        related_name='carriers'
    )

    name = models.CharField(max_length=200)
    scac = models.CharField(max_length=4, help_text="Standard Carrier Alpha Code")
    mc_number = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    is_active = models.BooleanField(default=True)

    email = models.EmailField()
    phone_number = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'carriers'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'scac'], name='unique_tenant_carrier_scac'),
        ]

    def __str__(self):
        return f"{self.name} ({self.scac})"
