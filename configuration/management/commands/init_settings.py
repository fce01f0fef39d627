from django.core.management.base import BaseCommand

from configuration.services import initialize_default_settings


class Command(BaseCommand):
    help = "Create the default business settings that do not exist yet"

    def handle(self, *args, **options):
        created = initialize_default_settings()
        for key in created:
            self.stdout.write(self.style.SUCCESS(f"{key}: created"))
        if not created:
            self.stdout.write("All default settings already exist")
