from django.core.management.base import BaseCommand
from django.utils import timezone
from datetime import timedelta
from rides.models import RideOffer, RideRequest, TERMINAL_STATUSES
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Purge archived completed/cancelled rides and their offers from the live tables."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=30,
            help="Delete rides archived more than this many days ago (default: 30).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        dry_run = options["dry_run"]
        cutoff = timezone.now() - timedelta(days=days)

        # Ride history keeps its own copy; only the live rows go
        old_rides = RideRequest.objects.filter(
            status__in=TERMINAL_STATUSES,
            archived_at__isnull=False,
            archived_at__lt=cutoff,
        )
        old_offers = RideOffer.objects.filter(ride__in=old_rides)
        rides_count = old_rides.count()
        offers_count = old_offers.count()

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f"DRY RUN: Would delete {rides_count} archived rides and {offers_count} offers older than {days} days."
                )
            )
            return

        old_offers.delete()
        old_rides.delete()
        logger.info("Cleaned up %s archived rides and %s offers", rides_count, offers_count)
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {rides_count} archived rides and {offers_count} offers older than {days} days."
            )
        )
