from django.core.management.base import BaseCommand

from accounts import services
from accounts.models import Role, User


STAFF = [
    {"name": "Store Admin", "username": "admin", "role": Role.ADMIN},
    {"name": "Front Cashier", "username": "cashier", "role": Role.CASHIER},
]


class Command(BaseCommand):
    help = 'Create the default Admin and Cashier accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default='password',
            help='Password for the created accounts (default: password)',
        )

    def handle(self, *args, **options):
        for account in STAFF:
            if User.objects.filter(username=account['username']).exists():
                self.stdout.write(f"Already exists: {account['username']}")
                continue

            user = services.create_user(None, {**account, 'password': options['password']})
            self.stdout.write(f"Created: {user.username} ({user.role})")

        self.stdout.write(self.style.SUCCESS('Staff accounts ready'))
