from __future__ import annotations

import random
from decimal import Decimal
from urllib.parse import quote_plus

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.addresses.models import Address, AddressKind
from modules.products.models import PricingKind, Product, ProductCategory

W = PricingKind.WEIGHT
P = PricingKind.PIECE

# (name, brand, category, pricing kind, unit price, featured, description)
CATALOG = [
    ("India Gate Basmati Rice", "India Gate", ProductCategory.RICE, W, "1299", True,
     "Premium quality basmati rice, aged for perfect texture and aroma"),
    ("Daawat Basmati Rice", "Daawat", ProductCategory.RICE, W, "1199", True,
     "Extra long grain basmati rice with rich aroma"),
    ("Fortune Basmati Rice", "Fortune", ProductCategory.RICE, W, "1099", False,
     "Pure basmati rice with excellent cooking quality"),
    ("India Gate Brown Rice", "India Gate", ProductCategory.RICE, W, "899", False,
     "Healthy brown rice with natural fiber"),
    ("Tata Sampann Unpolished Rice", "Tata Sampann", ProductCategory.RICE, W, "999",
     False, "Unpolished rice with natural nutrients"),
    ("Aashirvaad Atta", "Aashirvaad", ProductCategory.FLOUR, W, "399", True,
     "Premium quality whole wheat flour"),
    ("Pillsbury Chakki Fresh Atta", "Pillsbury", ProductCategory.FLOUR, W, "449",
     False, "Freshly milled whole wheat flour"),
    ("Aashirvaad Multigrain Atta", "Aashirvaad", ProductCategory.FLOUR, W, "499",
     False, "Multigrain flour with 6 grains"),
    ("Tata Sampann Besan", "Tata Sampann", ProductCategory.FLOUR, W, "149", False,
     "Premium quality gram flour"),
    ("Tata Sampann Toor Dal", "Tata Sampann", ProductCategory.PULSES, W, "199", True,
     "Premium quality toor dal"),
    ("Fortune Chana Dal", "Fortune", ProductCategory.PULSES, W, "179", False,
     "High quality split chickpeas"),
    ("Tata Sampann Moong Dal", "Tata Sampann", ProductCategory.PULSES, W, "189",
     False, "Premium quality split green gram"),
    ("Fortune Urad Dal", "Fortune", ProductCategory.PULSES, W, "209", False,
     "Premium quality black gram"),
    ("Fortune Sunflower Oil", "Fortune", ProductCategory.OIL, P, "199", True,
     "Pure sunflower oil, 1L bottle"),
    ("Saffola Gold Oil", "Saffola", ProductCategory.OIL, P, "219", False,
     "Blended edible oil, 1L bottle"),
    ("Fortune Rice Bran Oil", "Fortune", ProductCategory.OIL, P, "189", False,
     "Healthy rice bran oil, 1L bottle"),
    ("Saffola Active Oil", "Saffola", ProductCategory.OIL, P, "229", False,
     "Blended oil with antioxidants, 1L bottle"),
    ("Fortune Mustard Oil", "Fortune", ProductCategory.OIL, P, "179", False,
     "Pure mustard oil, 1L bottle"),
    ("Tata Salt", "Tata", ProductCategory.ESSENTIALS, W, "20", True,
     "Iodized salt"),
    ("Tata Tea Premium", "Tata", ProductCategory.ESSENTIALS, W, "299", False,
     "Premium tea leaves"),
    ("Tata Sampann Turmeric Powder", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "149", False, "Pure turmeric powder"),
    ("Tata Sampann Red Chilli Powder", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "129", False, "Pure red chilli powder"),
    ("Tata Sampann Coriander Powder", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "139", False, "Pure coriander powder"),
    ("Tata Sampann Cumin Powder", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "159", False, "Pure cumin powder"),
    ("Tata Sampann Garam Masala", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "169", False, "Premium garam masala blend"),
    ("Tata Sampann Black Pepper", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "199", False, "Whole black pepper"),
    ("Tata Sampann Cardamom", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "299", False, "Premium green cardamom"),
    ("Tata Sampann Mustard Seeds", "Tata Sampann", ProductCategory.ESSENTIALS, W,
     "129", False, "Whole mustard seeds"),
]  # fmt: skip


class Command(BaseCommand):
    help = "Seed database with development users and the grocery catalog."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        with transaction.atomic():
            users_created, shopper = self._seed_users()
            products_created = self._seed_products()
            addresses_created = self._seed_addresses(str(shopper.pk))

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={products_created}, "
                f"addresses={addresses_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        shopper = User.objects.filter(username="shopper").first()
        if shopper is None:
            shopper = User.objects.create_user(
                "shopper", email="shopper@example.com", password="shopper123"
            )
            created += 1
        return created, shopper

    def _seed_products(self) -> int:
        self.stdout.write("Creating products...")
        created = 0
        for name, brand, category, kind, price, featured, description in CATALOG:
            _, was_created = Product.objects.get_or_create(
                name=name,
                brand=brand,
                defaults={
                    "description": description,
                    "category": category,
                    "pricing_kind": kind,
                    "unit_price": Decimal(price),
                    "is_featured": featured,
                    "stock": random.randint(10, 59),
                    "image_url": (
                        f"https://placehold.co/400x300?text={quote_plus(name)}"
                    ),
                },
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return created

    def _seed_addresses(self, owner_id: str) -> int:
        if Address.objects.filter(owner_id=owner_id).exists():
            return 0
        Address.objects.create(
            owner_id=owner_id,
            kind=AddressKind.HOME,
            street="12 MG Road",
            city="Bengaluru",
            region="Karnataka",
            postal_code="560001",
            is_default=True,
        )
        Address.objects.create(
            owner_id=owner_id,
            kind=AddressKind.WORK,
            street="4th Floor, Cyber Towers",
            city="Hyderabad",
            region="Telangana",
            postal_code="500081",
        )
        return 2
