from django.db import models
from django.contrib.auth.models import AbstractUser


class Tenant(models.Model):
    """Brokerage company that owns shipments, carriers, drivers and offers."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=60, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'tenants'
        ordering = ['name']

    def __str__(self):
        return self.name


class User(AbstractUser):
    """Extended user model with role and tenant membership"""
    ROLE_CHOICES = [
        ('dispatcher', 'Dispatcher'),
        ('carrier', 'Carrier Representative'),
        ('driver', 'Driver'),
        ('admin', 'Administrator'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='dispatcher')
    phone_number = models.CharField(max_length=20, blank=True)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='users'
    )

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
