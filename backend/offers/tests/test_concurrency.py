import threading
from unittest import skipIf

from django.db import connection

from offers.models import Offer
from services.offer_workflow import InvalidTransitionError, respond_to_offer
from shipments.models import Shipment
from .base import OfferWorkflowTransactionTestCase


@skipIf(connection.vendor == 'sqlite', 'SQLite has no row-level locks; run against PostgreSQL')
class ConcurrentAcceptanceTests(OfferWorkflowTransactionTestCase):
	"""
	Competing responses on separate connections. Exactly one of them may write;
	the other observes the committed state and fails with InvalidTransitionError.
	"""

	def race(self, *calls):
		barrier = threading.Barrier(len(calls))
		outcomes = [None] * len(calls)

		def run(index, call):
			try:
				barrier.wait()
				outcomes[index] = call()
			except Exception as e:
				outcomes[index] = e
			finally:
				connection.close()

		threads = [threading.Thread(target=run, args=(i, call)) for i, call in enumerate(calls)]
		for thread in threads:
			thread.start()
		for thread in threads:
			thread.join(timeout=30)
		return outcomes

	def accept(self, offer, carrier):
		return lambda: respond_to_offer(self.tenant, offer.id, carrier.id, 'ACCEPT', f'carrier-{carrier.id}')

	def assert_one_winner(self, outcomes):
		winners = [o for o in outcomes if not isinstance(o, Exception)]
		losers = [o for o in outcomes if isinstance(o, Exception)]
		self.assertEqual(len(winners), 1, outcomes)
		self.assertEqual(len(losers), 1, outcomes)
		self.assertIsInstance(losers[0], InvalidTransitionError)
		return winners[0]

	def test_same_offer_accepted_twice(self):
		offer = self.tender(self.carrier_one).offer

		winner = self.assert_one_winner(self.race(
			self.accept(offer, self.carrier_one),
			self.accept(offer, self.carrier_one),
		))

		self.assertTrue(winner.success)
		self.assertEqual(offer.audit_trail.filter(action='ACCEPTED').count(), 1)

	def test_competing_tenders_accepted_at_once(self):
		c1 = self.tender(self.carrier_one).offer
		c2 = self.tender(self.carrier_two).offer

		winner = self.assert_one_winner(self.race(
			self.accept(c1, self.carrier_one),
			self.accept(c2, self.carrier_two),
		))

		self.assertEqual(winner.cancelled_count, 1)
		self.assertEqual(
			Offer.objects.filter(shipment=self.shipment, state=Offer.State.ACCEPTED).count(), 1
		)
		self.assertEqual(
			Offer.objects.filter(shipment=self.shipment, state=Offer.State.CANCELLED).count(), 1
		)
		self.shipment.refresh_from_db()
		self.assertEqual(self.shipment.status, Shipment.Status.BOOKED)
		self.assertEqual(self.shipment.carrier_id, winner.offer.carrier_id)
