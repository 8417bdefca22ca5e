from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'notifications'

    def ready(self):
        from services.offer_workflow.events import offer_event
        from .dispatcher import handle_offer_event

        offer_event.connect(handle_offer_event, dispatch_uid='notifications.handle_offer_event')
