from datetime import timedelta

from django.utils import timezone

from drivers.models import Driver
from offers.models import Offer
from services.offer_workflow import (
	ActorIneligibleError,
	InvalidShipmentStateError,
	OfferConflictError,
	check_eligible,
	get_driver_availability,
	respond_to_offer,
)
from shipments.models import Shipment
from .base import OfferWorkflowTestCase


class DispatchCreationTests(OfferWorkflowTestCase):
	def test_dispatch_requires_accepted_tender(self):
		with self.assertRaises(InvalidShipmentStateError):
			self.dispatch(self.driver_one)

		self.tender(self.carrier_one)
		with self.assertRaises(InvalidShipmentStateError):
			self.dispatch(self.driver_one)

	def test_dispatch_after_booking(self):
		self.book()
		result = self.dispatch(self.driver_one)

		offer = result.offer
		self.assertEqual(offer.state, Offer.State.OFFERED)
		self.assertEqual(offer.driver, self.driver_one)
		self.assertIsNone(offer.expires_at)
		self.assertTrue(offer.payload['message'].startswith('Dispatch Alert: Load LD-1001'))
		self.assertIn("Reply '1' to Confirm, '2' to Reject.", offer.payload['message'])

		self.shipment.refresh_from_db()
		self.assertEqual(self.shipment.status, Shipment.Status.BOOKED)
		self.assertEqual(self.shipment.assigned_driver, self.driver_one)

	def test_custom_message_is_kept(self):
		self.book()
		offer = self.dispatch(self.driver_one, message='Call dispatch before pickup').offer
		self.assertEqual(offer.payload['message'], 'Call dispatch before pickup')

	def test_driver_with_expired_license_is_ineligible(self):
		self.book()
		self.driver_one.license_expiration_date = timezone.localdate() - timedelta(days=1)
		self.driver_one.save()

		with self.assertRaises(ActorIneligibleError) as ctx:
			self.dispatch(self.driver_one)
		self.assertEqual(str(ctx.exception), 'License expired')
		self.assertFalse(Offer.objects.filter(kind=Offer.Kind.DISPATCH).exists())

	def test_duplicate_dispatch_to_same_driver_conflicts(self):
		self.book()
		self.dispatch(self.driver_one)
		with self.assertRaises(OfferConflictError):
			self.dispatch(self.driver_one, dispatch_type=Offer.OfferType.BACKUP)


class EligibilityTests(OfferWorkflowTestCase):
	def test_driver_statuses(self):
		for driver_status, eligible in [
			(Driver.Status.ACTIVE, True),
			(Driver.Status.OFF_DUTY, True),
			(Driver.Status.ON_LOAD, False),
			(Driver.Status.SICK, False),
			(Driver.Status.VACATION, False),
			(Driver.Status.INACTIVE, False),
		]:
			self.driver_one.status = driver_status
			self.assertEqual(check_eligible(Offer.Kind.DISPATCH, self.driver_one).eligible, eligible, driver_status)

	def test_medical_certificate(self):
		today = timezone.localdate()
		self.driver_one.medical_certificate_expiration_date = today
		self.assertTrue(check_eligible(Offer.Kind.DISPATCH, self.driver_one).eligible)

		self.driver_one.medical_certificate_expiration_date = today - timedelta(days=1)
		verdict = check_eligible(Offer.Kind.DISPATCH, self.driver_one)
		self.assertFalse(verdict.eligible)
		self.assertEqual(verdict.reason, 'Medical certificate expired')

		self.driver_one.medical_certificate_expiration_date = None
		self.assertTrue(check_eligible(Offer.Kind.DISPATCH, self.driver_one).eligible)

	def test_deactivated_carrier(self):
		self.carrier_one.is_active = False
		self.assertFalse(check_eligible(Offer.Kind.TENDER, self.carrier_one).eligible)


class DispatchResponseTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.book()

	def test_accepting_dispatch_keeps_sibling_dispatches(self):
		primary = self.dispatch(self.driver_one).offer
		backup = self.dispatch(self.driver_two, dispatch_type=Offer.OfferType.BACKUP).offer

		result = respond_to_offer(self.tenant, primary.id, self.driver_one.id, 'ACCEPT', 'driver-app')

		backup.refresh_from_db()
		self.shipment.refresh_from_db()
		self.driver_one.refresh_from_db()

		self.assertEqual(result.cancelled_count, 0)
		self.assertEqual(result.offer.state, Offer.State.ACCEPTED)
		self.assertEqual(backup.state, Offer.State.OFFERED)
		self.assertEqual(self.shipment.status, Shipment.Status.CONFIRMED)
		self.assertEqual(self.shipment.assigned_driver, self.driver_one)
		self.assertEqual(self.driver_one.status, Driver.Status.ON_LOAD)
		self.assertIsNotNone(self.driver_one.last_dispatch_at)

	def test_second_driver_accepting_keeps_primary_assignment(self):
		primary = self.dispatch(self.driver_one).offer
		backup = self.dispatch(self.driver_two, dispatch_type=Offer.OfferType.BACKUP).offer

		respond_to_offer(self.tenant, primary.id, self.driver_one.id, 'ACCEPT', 'driver-app')
		respond_to_offer(self.tenant, backup.id, self.driver_two.id, 'ACCEPT', 'driver-app')

		self.shipment.refresh_from_db()
		self.assertEqual(self.shipment.status, Shipment.Status.CONFIRMED)
		self.assertEqual(self.shipment.assigned_driver, self.driver_one)

	def test_rejecting_dispatch_reopens_shipment(self):
		offer = self.dispatch(self.driver_one).offer
		respond_to_offer(self.tenant, offer.id, self.driver_one.id, 'REJECT', 'driver-app')

		self.shipment.refresh_from_db()
		self.assertEqual(self.shipment.status, Shipment.Status.TENDERED)
		self.assertIsNone(self.shipment.assigned_driver)

		# A tendered shipment can be dispatched again
		retry = self.dispatch(self.driver_two).offer
		self.assertEqual(retry.state, Offer.State.OFFERED)

	def test_backup_rejection_leaves_assignment_alone(self):
		self.dispatch(self.driver_one)
		backup = self.dispatch(self.driver_two, dispatch_type=Offer.OfferType.BACKUP).offer

		respond_to_offer(self.tenant, backup.id, self.driver_two.id, 'REJECT', 'driver-app')

		self.shipment.refresh_from_db()
		self.assertEqual(self.shipment.status, Shipment.Status.BOOKED)
		self.assertEqual(self.shipment.assigned_driver, self.driver_one)

	def test_driver_availability(self):
		availability = get_driver_availability(self.tenant, self.driver_one.id)
		self.assertTrue(availability['available'])
		self.assertIsNone(availability['current_dispatch'])

		offer = self.dispatch(self.driver_one).offer
		respond_to_offer(self.tenant, offer.id, self.driver_one.id, 'ACCEPT', 'driver-app')

		availability = get_driver_availability(self.tenant, self.driver_one.id)
		self.assertFalse(availability['available'])
		self.assertEqual(availability['reason'], 'Driver status is ON_LOAD')
		self.assertEqual(availability['current_dispatch'].id, offer.id)
