from django.contrib import admin
from .models import Shipment


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    """Shipment admin. Status is owned by the offer workflow and shown read-only."""
    list_display = ['reference_number', 'tenant', 'status', 'carrier', 'assigned_driver', 'created_at']
    list_filter = ['status', 'tenant', 'equipment_type']
    search_fields = ['reference_number', 'origin_city', 'destination_city']
    readonly_fields = ['status', 'carrier', 'assigned_driver', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
