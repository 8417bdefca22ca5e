from django.urls import path
from . import views

app_name = 'offers'

urlpatterns = [
    # Offer APIs
    path('offers/', views.OfferListCreateView.as_view(), name='offer-list'),
    path('offers/stats/', views.offer_stats_view, name='offer-stats'),
    path('offers/<int:offer_id>/', views.OfferDetailView.as_view(), name='offer-detail'),
    path('offers/<int:offer_id>/respond/', views.respond_to_offer_view, name='offer-respond'),
    path('offers/<int:offer_id>/cancel/', views.cancel_offer_view, name='offer-cancel'),
    path('shipments/<int:shipment_id>/offers/', views.shipment_offers_view, name='shipment-offers'),

    # Provider webhooks (unauthenticated)
    path('webhooks/sms/inbound/', views.sms_inbound_webhook, name='sms-inbound'),
    path('webhooks/sms/delivery/', views.sms_delivery_webhook, name='sms-delivery'),
]
