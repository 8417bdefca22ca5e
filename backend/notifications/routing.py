"""WebSocket URL routing for the dispatch board."""

from django.urls import re_path

from .consumers import OfferBoardConsumer

websocket_urlpatterns = [
    # URL: ws://localhost:8000/ws/offers/?token=<access>
    re_path(
        r"ws/offers/$",
        OfferBoardConsumer.as_asgi(),
        name="offers-ws"
    ),
]
