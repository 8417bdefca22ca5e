from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check),  # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/', include('accounts.urls')),  # JWT obtain/refresh

    # Driver APIs (availability)
    path('api/drivers/', include('drivers.urls')),

    # Offer APIs and SMS webhooks (at /api/)
    path('api/', include('offers.urls')),
]
