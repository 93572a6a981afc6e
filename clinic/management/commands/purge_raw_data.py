from django.core.management.base import BaseCommand

from clinic.services.records import purge_expired_raw_data


class Command(BaseCommand):
    help = "Delete raw sensor data older than RAW_DATA_TTL_SECONDS."

    def handle(self, *args, **opts):
        deleted = purge_expired_raw_data()
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} expired raw data rows."))
