from decimal import Decimal

from django.core.management.base import BaseCommand

from epos.exceptions import Conflict
from menu import services
from menu.models import Menu


MENU_ITEMS = [
    {"name": "Chicken Adobo", "price": "125.00", "category": "Mains",
     "description": "Chicken braised in soy, vinegar and garlic"},
    {"name": "Pork Sinigang", "price": "165.00", "category": "Mains",
     "description": "Tamarind soup with pork and vegetables"},
    {"name": "Beef Tapa", "price": "150.00", "category": "Mains"},
    {"name": "Garlic Rice", "price": "35.00", "category": "Sides"},
    {"name": "Lumpia (4 pcs)", "price": "80.00", "category": "Sides"},
    {"name": "Halo-Halo", "price": "95.00", "category": "Desserts"},
    {"name": "Leche Flan", "price": "70.00", "category": "Desserts"},
    {"name": "Iced Tea", "price": "45.00", "category": "Drinks"},
    {"name": "Calamansi Juice", "price": "50.00", "category": "Drinks"},
    {"name": "Brewed Coffee", "price": "60.00", "category": "Drinks"},
]


class Command(BaseCommand):
    help = 'Seed the database with menu items'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing menu items that no order refers to before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing menu items...')
            kept = 0
            for menu in Menu.objects.all():
                try:
                    services.delete_menu(None, menu)
                except Conflict:
                    kept += 1
            self.stdout.write(
                self.style.SUCCESS(f'Cleared menu items ({kept} kept, still on orders)')
            )

        created_items = []
        for item_data in MENU_ITEMS:
            if Menu.objects.filter(name=item_data['name']).exists():
                self.stdout.write(f"Already exists: {item_data['name']}")
                continue

            item = services.create_menu(None, {
                'name': item_data['name'],
                'price': Decimal(item_data['price']),
                'category': item_data['category'],
                'description': item_data.get('description'),
                'availability_status': True,
            })
            created_items.append(item)
            self.stdout.write(f"Created: {item.name} - {item.price:.2f} ({item.category})")

        self.stdout.write(
            self.style.SUCCESS(f'\nTotal new menu items created: {len(created_items)}')
        )

        self.stdout.write("\nAll menu items in database:")
        self.stdout.write("-" * 50)
        for item in Menu.objects.all():
            self.stdout.write(
                f"ID: {item.id:2d} | {item.name:20s} | {item.price:8.2f} | {item.category}"
            )
