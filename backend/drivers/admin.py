from django.contrib import admin
from drivers.models import Driver


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    """Admin panel for managing drivers"""

    list_display = [
        "full_name",
        "phone_number",
        "tenant",
        "carrier",
        "status",
        "is_active",
        "license_expiration_date",
        "medical_certificate_expiration_date",
    ]

    list_filter = [
        "status",
        "is_active",
        "tenant",
    ]

    search_fields = [
        "first_name",
        "last_name",
        "phone_number",
        "cdl_number",
    ]

    readonly_fields = [
        "last_dispatch_at",
        "created_at",
        "updated_at",
    ]

    ordering = ("last_name", "first_name")
