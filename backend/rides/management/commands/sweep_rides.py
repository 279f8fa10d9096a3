from django.core.management.base import BaseCommand
from rides.services.sweeper import sweep_stale_rides


class Command(BaseCommand):
    help = "Expire overdue ride offers, then re-dispatch or cancel rides left without offers."

    def handle(self, *args, **options):
        result = sweep_stale_rides()

        message = (
            f"Expired {result.expired_offers} offer(s); re-dispatched {result.redispatched} "
            f"and cancelled {result.cancelled} ride(s)."
        )
        if result.failed:
            self.stdout.write(self.style.WARNING(f"{message} {result.failed} ride(s) failed, see logs."))
        else:
            self.stdout.write(self.style.SUCCESS(message))
