from unittest.mock import patch

from django.db import DatabaseError

from offers.models import AuditTrailImmutableError, Offer, OfferAuditEntry
from services.offer_workflow import (
	InvalidTransitionError,
	RollbackError,
	offer_event,
	respond_to_offer,
	transition,
)
from shipments.models import Shipment
from .base import OfferWorkflowTestCase


class AuditTrailTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.offer = self.tender(self.carrier_one).offer
		self.entry = self.offer.audit_trail.get()

	def test_existing_entry_cannot_be_saved(self):
		self.entry.note = 'rewritten'
		with self.assertRaises(AuditTrailImmutableError):
			self.entry.save()

	def test_entries_cannot_be_deleted(self):
		with self.assertRaises(AuditTrailImmutableError):
			self.entry.delete()
		with self.assertRaises(AuditTrailImmutableError):
			OfferAuditEntry.objects.filter(offer=self.offer).delete()
		with self.assertRaises(AuditTrailImmutableError):
			OfferAuditEntry.objects.filter(offer=self.offer).update(note='x')
		self.assertEqual(OfferAuditEntry.objects.filter(offer=self.offer).count(), 1)

	def test_every_transition_appends_one_entry(self):
		respond_to_offer(self.tenant, self.offer.id, self.carrier_one.id, 'REJECT', 'carrier-portal', note='No trucks')
		actions = list(self.offer.audit_trail.values_list('action', 'actor_id', 'note'))
		self.assertEqual(actions[-1], ('REJECTED', 'carrier-portal', 'No trucks'))
		self.assertEqual(len(actions), 2)


class CoordinatorTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.events = []
		offer_event.connect(self._record_event, dispatch_uid='test-record-event')
		self.addCleanup(offer_event.disconnect, dispatch_uid='test-record-event')

	def _record_event(self, sender, event, **kwargs):
		self.events.append(event)

	def test_events_follow_commit(self):
		c1 = self.tender(self.carrier_one).offer
		c2 = self.tender(self.carrier_two).offer
		self.events.clear()

		transition(c1.id, Offer.State.ACCEPTED, 'carrier-portal', tenant=self.tenant)

		names = [(event.name, event.offer_id) for event in self.events]
		self.assertEqual(names, [('offer_accepted', c1.id), ('offer_cancelled', c2.id)])
		self.assertEqual(self.events[0].tenant_id, self.tenant.id)

	def test_failed_transition_emits_nothing(self):
		offer = self.tender(self.carrier_one).offer
		transition(offer.id, Offer.State.REJECTED, 'carrier-portal', tenant=self.tenant)
		self.events.clear()

		with self.assertRaises(InvalidTransitionError):
			transition(offer.id, Offer.State.ACCEPTED, 'carrier-portal', tenant=self.tenant)
		self.assertEqual(self.events, [])

	def test_database_failure_rolls_back_everything(self):
		c1 = self.tender(self.carrier_one).offer
		c2 = self.tender(self.carrier_two).offer
		self.events.clear()

		with patch('services.offer_workflow.coordinator.record_audit', side_effect=DatabaseError('disk full')):
			with self.assertRaises(RollbackError):
				transition(c1.id, Offer.State.ACCEPTED, 'carrier-portal', tenant=self.tenant)

		c1.refresh_from_db()
		c2.refresh_from_db()
		self.shipment.refresh_from_db()
		self.assertEqual(c1.state, Offer.State.OFFERED)
		self.assertEqual(c2.state, Offer.State.OFFERED)
		self.assertEqual(self.shipment.status, Shipment.Status.QUOTED)
		self.assertIsNone(self.shipment.carrier)
		self.assertEqual(self.events, [])

	def test_receiver_failure_degrades_but_keeps_state(self):
		offer = self.tender(self.carrier_one).offer

		def broken_receiver(sender, event, **kwargs):
			raise RuntimeError('board offline')

		offer_event.connect(broken_receiver, dispatch_uid='test-broken-receiver')
		self.addCleanup(offer_event.disconnect, dispatch_uid='test-broken-receiver')

		with self.assertLogs('services.offer_workflow.coordinator', level='ERROR'):
			result = transition(offer.id, Offer.State.ACCEPTED, 'carrier-portal', tenant=self.tenant)

		self.assertTrue(result.success)
		self.assertTrue(result.degraded)
		self.assertIn('board offline', result.warnings[0])

		offer.refresh_from_db()
		self.assertEqual(offer.state, Offer.State.ACCEPTED)
