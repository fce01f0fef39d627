from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from users.permissions import ROLE_GROUPS


class Command(BaseCommand):
    help = "Create the Admin, Pengelola, Kasir and Tenant groups"

    def handle(self, *args, **options):
        for role in ROLE_GROUPS:
            group, created = Group.objects.get_or_create(name=role)
            action = "created" if created else "exists"
            self.stdout.write(self.style.SUCCESS(f"{group.name}: {action}"))
