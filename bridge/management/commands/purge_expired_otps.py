from django.core.management.base import BaseCommand

from ...accounts import purge_expired_otps


class Command(BaseCommand):
    help = "Delete expired email verification codes"

    def handle(self, *args, **options):
        deleted = purge_expired_otps()
        self.stdout.write(self.style.SUCCESS(
            f"Deleted {deleted} expired OTP codes"
        ))
