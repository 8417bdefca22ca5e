from django.db import models


class Shipment(models.Model):
    """
    Freight shipment. Its status is read by the offer workflow and only
    written by the offer coordinator on behalf of an offer transition.
    """

    class Status(models.TextChoices):
        QUOTED = 'quoted', 'Quoted'
        TENDERED = 'tendered', 'Tendered'
        BOOKED = 'booked', 'Booked'
        DISPATCHED = 'dispatched', 'Dispatched'
        CONFIRMED = 'confirmed', 'Confirmed'
        IN_TRANSIT = 'in_transit', 'In Transit'
        DELIVERED = 'delivered', 'Delivered'
        CANCELLED = 'cancelled', 'Cancelled'

    class Equipment(models.TextChoices):
        DRY_VAN = 'DRY_VAN', 'Dry Van'
        REEFER = 'REEFER', 'Reefer'
        FLATBED = 'FLATBED', 'Flatbed'
        STEP_DECK = 'STEP_DECK', 'Step Deck'
        TANKER = 'TANKER', 'Tanker'
        CONTAINER = 'CONTAINER', 'Container'
        POWER_ONLY = 'POWER_ONLY', 'Power Only'

    tenant = models.ForeignKey(
        'accounts.Tenant',
        on_delete=models.PROTECT,
        related_name='shipments'
    )

    reference_number = models.CharField(max_length=40, unique=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.QUOTED)

    carrier = models.ForeignKey(
        'carriers.Carrier',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='shipments'
    )
    assigned_driver = models.ForeignKey(
        'drivers.Driver',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_shipments'
    )

    # Lane
    origin_city = models.CharField(max_length=100)
    origin_state = models.CharField(max_length=2)
    destination_city = models.CharField(max_length=100)
    destination_state = models.CharField(max_length=2)

    # Cargo
    pickup_window_start = models.DateTimeField(null=True, blank=True)
    total_weight = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    equipment_type = models.CharField(max_length=20, choices=Equipment.choices, default=Equipment.DRY_VAN)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'shipments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='shipment_tenant_status_idx'),
        ]

    def __str__(self):
        return f"Shipment {self.reference_number} - {self.status}"
