from django.contrib import admin
from carriers.models import Carrier


@admin.register(Carrier)
class CarrierAdmin(admin.ModelAdmin):
    """Admin panel for managing carriers"""

    list_display = ["name", "scac", "tenant", "status", "is_active", "email"]
    list_filter = ["status", "is_active", "tenant"]
    search_fields = ["name", "scac", "mc_number", "email"]
    readonly_fields = ["created_at", "updated_at"]
