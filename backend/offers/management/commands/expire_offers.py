from django.core.management.base import BaseCommand

from services.offer_workflow import expire_overdue_offers
from services.offer_workflow.expiry import find_overdue_offers


class Command(BaseCommand):
    help = "Expire OFFERED tenders whose expiry time has passed."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Expire at most this many offers (default: all overdue offers).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show how many offers would expire without changing them.",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            count = find_overdue_offers().count()
            self.stdout.write(self.style.WARNING(f"DRY RUN: {count} overdue offer(s) would expire."))
            return

        expired = expire_overdue_offers(limit=options["limit"])
        self.stdout.write(self.style.SUCCESS(f"Expired {expired} overdue offer(s)."))
