from unittest.mock import AsyncMock, MagicMock, patch

from django.core import mail
from django.test import override_settings

from notifications.providers import ConsoleSmsProvider, SmsResult
from offers.models import Offer
from services.offer_workflow import transition
from .base import OfferWorkflowTestCase


class FailingSmsProvider(ConsoleSmsProvider):
	def send_sms(self, to, message):
		return SmsResult(success=False, error='carrier network unreachable')


class OfferNotificationTests(OfferWorkflowTestCase):
	def test_tender_is_emailed_to_carrier(self):
		self.tender(self.carrier_one)

		self.assertEqual(len(mail.outbox), 1)
		self.assertEqual(mail.outbox[0].to, ['ops@blueline.test'])
		self.assertIn('LD-1001', mail.outbox[0].subject)
		self.assertIn('$2500.00', mail.outbox[0].body)

	def test_dispatch_is_texted_to_driver(self):
		self.book()
		provider = ConsoleSmsProvider()
		with patch('notifications.dispatcher.get_sms_provider', return_value=provider):
			offer = self.dispatch(self.driver_one).offer

		self.assertEqual(provider.sent, [('+12145550101', offer.payload['message'])])

	def test_sms_failure_marks_result_degraded(self):
		self.book()
		with patch('notifications.dispatcher.get_sms_provider', return_value=FailingSmsProvider()):
			result = self.dispatch(self.driver_one)

		self.assertTrue(result.success)
		self.assertTrue(result.degraded)
		self.assertIn('carrier network unreachable', result.warnings[0])
		self.assertEqual(Offer.objects.get(id=result.offer.id).state, Offer.State.OFFERED)

	def test_acceptance_does_not_send_sms_or_email(self):
		offer = self.tender(self.carrier_one).offer
		mail.outbox.clear()
		provider = ConsoleSmsProvider()
		with patch('notifications.dispatcher.get_sms_provider', return_value=provider):
			transition(offer.id, Offer.State.ACCEPTED, 'carrier-portal', tenant=self.tenant)

		self.assertEqual(mail.outbox, [])
		self.assertEqual(provider.sent, [])

	def test_events_reach_tenant_board(self):
		channel_layer = MagicMock()
		channel_layer.group_send = AsyncMock()
		with patch('notifications.dispatcher.get_channel_layer', return_value=channel_layer):
			offer = self.tender(self.carrier_one).offer

		channel_layer.group_send.assert_awaited_once()
		group, message = channel_layer.group_send.await_args[0]
		self.assertEqual(group, f'tenant_{self.tenant.id}')
		self.assertEqual(message['type'], 'offer.event')
		self.assertEqual(message['event']['name'], 'offer_created')
		self.assertEqual(message['event']['offer_id'], offer.id)

	@override_settings(OFFER_NOTIFICATIONS_ASYNC=True)
	def test_async_delivery_is_queued(self):
		with patch('offers.tasks.deliver_offer_notification_task.delay') as mock_delay:
			offer = self.tender(self.carrier_one).offer

		mock_delay.assert_called_once()
		event_data = mock_delay.call_args[0][0]
		self.assertEqual(event_data['offer_id'], offer.id)
		self.assertEqual(event_data['kind'], 'TENDER')
		self.assertEqual(mail.outbox, [])

	def test_queued_event_delivers_in_worker(self):
		from offers.tasks import deliver_offer_notification_task
		from services.offer_workflow.events import OFFER_CREATED, OfferEvent

		with override_settings(OFFER_NOTIFICATIONS_ASYNC=True):
			with patch('offers.tasks.deliver_offer_notification_task.delay'):
				offer = self.tender(self.carrier_one).offer

		event = OfferEvent.from_offer(OFFER_CREATED, offer)
		self.assertTrue(deliver_offer_notification_task(event.as_dict()))
		self.assertEqual(len(mail.outbox), 1)
