from io import StringIO

from django.core.management import call_command

from offers.models import Offer
from offers.tasks import expire_stale_offers_task
from .base import OfferWorkflowTestCase


class ExpireOffersCommandTests(OfferWorkflowTestCase):
	def setUp(self):
		super().setUp()
		self.overdue = self.make_overdue(self.tender(self.carrier_one).offer)
		self.current = self.tender(self.carrier_two).offer

	def test_dry_run_changes_nothing(self):
		out = StringIO()
		call_command('expire_offers', '--dry-run', stdout=out)

		self.assertIn('1 overdue offer(s) would expire', out.getvalue())
		self.overdue.refresh_from_db()
		self.assertEqual(self.overdue.state, Offer.State.OFFERED)

	def test_expires_only_overdue_offers(self):
		out = StringIO()
		call_command('expire_offers', stdout=out)

		self.assertIn('Expired 1 overdue offer(s).', out.getvalue())
		self.overdue.refresh_from_db()
		self.current.refresh_from_db()
		self.assertEqual(self.overdue.state, Offer.State.EXPIRED)
		self.assertEqual(self.overdue.audit_trail.last().actor_id, 'system')
		self.assertEqual(self.current.state, Offer.State.OFFERED)

	def test_sweep_task(self):
		self.assertEqual(expire_stale_offers_task(), 1)
		self.assertEqual(expire_stale_offers_task(), 0)
