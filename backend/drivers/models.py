from django.db import models

from common.utils import normalize_phone_number


class Driver(models.Model):
    """Driver record: contact channel for dispatch offers and compliance dates"""

    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        INACTIVE = 'INACTIVE', 'Inactive'
        ON_LOAD = 'ON_LOAD', 'On Load'
        OFF_DUTY = 'OFF_DUTY', 'Off Duty'
        SICK = 'SICK', 'Sick'
        VACATION = 'VACATION', 'Vacation'

    tenant = models.ForeignKey(
        'accounts.Tenant',
        on_delete=models.PROTECT,
        related_name='drivers'
    )
    carrier = models.ForeignKey(
        'carriers.Carrier',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='drivers'
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    # Registered contact channel; inbound SMS replies are correlated on it
    phone_number = models.CharField(max_length=20)
    email = models.EmailField(blank=True)

    # Compliance
    cdl_number = models.CharField(max_length=30, blank=True)
    license_expiration_date = models.DateField(null=True, blank=True)
    medical_certificate_expiration_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    is_active = models.BooleanField(default=True)
    last_dispatch_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'drivers'
        ordering = ['last_name', 'first_name']
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'phone_number'],
                name='unique_tenant_driver_phone'
            )
        ]

    def save(self, *args, **kwargs):
        self.phone_number = normalize_phone_number(self.phone_number)
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __str__(self):
        return f"{self.full_name} - {self.phone_number}"
