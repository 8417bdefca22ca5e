from rest_framework.test import APIClient

from accounts.models import Tenant, User
from offers.models import InboundMessage, Offer
from .base import OfferWorkflowTestCase


class OfferApiTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.client = APIClient()
		self.client.force_authenticate(user=self.dispatcher)

	def create_tender(self, carrier, **extra):
		data = {
			'shipment_id': self.shipment.id,
			'actor_id': carrier.id,
			'kind': 'TENDER',
			'amount': '2500.00',
			**extra,
		}
		return self.client.post('/api/offers/', data, format='json')

	def test_create_tender(self):
		response = self.create_tender(self.carrier_one, expiry_hours=12)

		self.assertEqual(response.status_code, 201)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['state'], 'OFFERED')
		self.assertIsNotNone(response.data['expires_at'])
		self.assertEqual(response.data['offer']['actor_id'], self.carrier_one.id)

	def test_create_errors_map_to_status_codes(self):
		self.create_tender(self.carrier_one)
		duplicate = self.create_tender(self.carrier_one)
		self.assertEqual(duplicate.status_code, 409)
		self.assertEqual(duplicate.data['error'], 'conflict')

		missing = self.client.post('/api/offers/', {
			'shipment_id': 99999, 'actor_id': self.carrier_two.id, 'kind': 'TENDER', 'amount': '10',
		}, format='json')
		self.assertEqual(missing.status_code, 404)

		no_amount = self.client.post('/api/offers/', {
			'shipment_id': self.shipment.id, 'actor_id': self.carrier_two.id, 'kind': 'TENDER',
		}, format='json')
		self.assertEqual(no_amount.status_code, 400)
		self.assertEqual(no_amount.data['error'], 'invalid_details')

		self.carrier_two.status = 'SUSPENDED'
		self.carrier_two.save()
		ineligible = self.create_tender(self.carrier_two)
		self.assertEqual(ineligible.status_code, 422)
		self.assertEqual(ineligible.data['error'], 'ineligible')

		wrong_state = self.client.post('/api/offers/', {
			'shipment_id': self.shipment.id, 'actor_id': self.driver_one.id, 'kind': 'DISPATCH',
		}, format='json')
		self.assertEqual(wrong_state.status_code, 422)
		self.assertEqual(wrong_state.data['error'], 'invalid_shipment_state')

	def test_respond_accept_then_conflict(self):
		offer = self.tender(self.carrier_one).offer
		url = f'/api/offers/{offer.id}/respond/'

		accepted = self.client.post(url, {'actor_id': self.carrier_one.id, 'decision': 'ACCEPT'}, format='json')
		self.assertEqual(accepted.status_code, 200)
		self.assertEqual(accepted.data['offer']['state'], 'ACCEPTED')

		again = self.client.post(url, {'actor_id': self.carrier_one.id, 'decision': 'ACCEPT'}, format='json')
		self.assertEqual(again.status_code, 409)
		self.assertEqual(again.data['error'], 'invalid_transition')

	def test_respond_to_expired_offer_is_gone(self):
		offer = self.make_overdue(self.tender(self.carrier_one).offer)
		response = self.client.post(
			f'/api/offers/{offer.id}/respond/',
			{'actor_id': self.carrier_one.id, 'decision': 'ACCEPT'},
			format='json'
		)
		self.assertEqual(response.status_code, 410)
		self.assertEqual(response.data['error'], 'expired')

	def test_respond_validation(self):
		offer = self.tender(self.carrier_one).offer
		url = f'/api/offers/{offer.id}/respond/'

		bad_decision = self.client.post(url, {'actor_id': self.carrier_one.id, 'decision': 'MAYBE'}, format='json')
		self.assertEqual(bad_decision.status_code, 400)

		wrong_actor = self.client.post(url, {'actor_id': self.carrier_two.id, 'decision': 'ACCEPT'}, format='json')
		self.assertEqual(wrong_actor.status_code, 404)

	def test_cancel_requires_dispatcher(self):
		offer = self.tender(self.carrier_one).offer
		driver_user = User.objects.create_user(
			username='driver', password='pass1234', role='driver', tenant=self.tenant
		)
		client = APIClient()
		client.force_authenticate(user=driver_user)

		forbidden = client.post(f'/api/offers/{offer.id}/cancel/', {}, format='json')
		self.assertEqual(forbidden.status_code, 403)

		cancelled = self.client.post(f'/api/offers/{offer.id}/cancel/', {'reason': 'Customer cancelled'}, format='json')
		self.assertEqual(cancelled.status_code, 200)
		self.assertEqual(cancelled.data['offer']['state'], 'CANCELLED')

	def test_offer_detail_and_lists(self):
		offer = self.tender(self.carrier_one).offer
		self.tender(self.carrier_two)

		detail = self.client.get(f'/api/offers/{offer.id}/')
		self.assertEqual(detail.status_code, 200)
		self.assertEqual([entry['action'] for entry in detail.data['audit_trail']], ['OFFERED'])

		listing = self.client.get('/api/offers/', {'carrier': self.carrier_one.id})
		self.assertEqual([row['id'] for row in listing.data], [offer.id])

		by_shipment = self.client.get(f'/api/shipments/{self.shipment.id}/offers/')
		self.assertEqual(len(by_shipment.data), 2)

		self.assertEqual(self.client.get('/api/offers/', {'shipment': 'abc'}).status_code, 400)
		self.assertEqual(self.client.get('/api/shipments/99999/offers/').status_code, 404)

	def test_offer_stats_endpoint(self):
		offer = self.tender(self.carrier_one).offer
		self.tender(self.carrier_two)
		self.client.post(
			f'/api/offers/{offer.id}/respond/',
			{'actor_id': self.carrier_one.id, 'decision': 'REJECT'},
			format='json'
		)

		response = self.client.get('/api/offers/stats/', {'kind': 'TENDER'})
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['total'], 2)
		self.assertEqual(response.data['by_state']['REJECTED'], 1)
		self.assertEqual(response.data['by_state']['OFFERED'], 1)
		self.assertEqual(response.data['rejection_rate'], 50.0)

		self.assertEqual(self.client.get('/api/offers/stats/', {'kind': 'PICKUP'}).status_code, 400)

	def test_other_tenant_cannot_see_offer(self):
		offer = self.tender(self.carrier_one).offer
		other_tenant = Tenant.objects.create(name='Other Brokerage', slug='other')
		outsider = User.objects.create_user(
			username='outsider', password='pass1234', role='dispatcher', tenant=other_tenant
		)
		client = APIClient()
		client.force_authenticate(user=outsider)

		self.assertEqual(client.get(f'/api/offers/{offer.id}/').status_code, 404)
		self.assertEqual(client.get('/api/offers/').data, [])

	def test_user_without_tenant_is_refused(self):
		admin = User.objects.create_user(username='root', password='pass1234', role='admin')
		client = APIClient()
		client.force_authenticate(user=admin)
		self.assertEqual(client.get('/api/offers/').status_code, 403)

	def test_unauthenticated_request_is_rejected(self):
		self.assertEqual(APIClient().get('/api/offers/').status_code, 401)

	def test_driver_availability_endpoint(self):
		response = self.client.get(f'/api/drivers/{self.driver_one.id}/availability/')
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['available'])
		self.assertEqual(response.data['driver']['phone_number'], '+12145550101')

		self.assertEqual(self.client.get('/api/drivers/99999/availability/').status_code, 404)


class SmsWebhookTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.client = APIClient()
		self.book()
		self.offer = self.dispatch(self.driver_one).offer

	def test_inbound_accept_from_provider_form(self):
		response = self.client.post('/api/webhooks/sms/inbound/', {
			'From': '+12145550101',
			'To': '+15551234567',
			'Body': '1',
			'MessageSid': 'SM300',
		})

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['success'])
		self.assertEqual(response.data['matched_offer_id'], self.offer.id)
		self.assertEqual(response.data['applied_decision'], 'ACCEPT')

		self.offer.refresh_from_db()
		self.assertEqual(self.offer.state, Offer.State.ACCEPTED)

		repeat = self.client.post('/api/webhooks/sms/inbound/', {
			'From': '+12145550101', 'Body': '1', 'MessageSid': 'SM300',
		})
		self.assertEqual(repeat.status_code, 200)
		self.assertTrue(repeat.data['success'])
		self.assertEqual(repeat.data['outcome'], 'DUPLICATE')

	def test_unrecognized_reply_still_answers_200(self):
		response = self.client.post(
			'/api/webhooks/sms/inbound/',
			{'from': '2145550101', 'body': 'maybe later'},
			format='json'
		)
		self.assertEqual(response.status_code, 200)
		self.assertFalse(response.data['success'])
		self.assertEqual(InboundMessage.objects.get().outcome, InboundMessage.Outcome.UNRECOGNIZED)

	def test_delivery_receipt(self):
		response = self.client.post('/api/webhooks/sms/delivery/', {
			'MessageSid': 'SM300', 'MessageStatus': 'delivered', 'To': '+12145550101',
		})
		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.data['success'])


class HealthCheckTests(OfferWorkflowTestCase):
	def test_health_check(self):
		response = APIClient().get('/health/')
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['services']['database'], 'healthy')
		self.assertEqual(response.data['services']['channels'], 'healthy')
