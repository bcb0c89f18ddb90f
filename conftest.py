# conftest.py - shared fixtures for the staff and inventory test suites

import os

import pytest
from django.contrib.auth.hashers import make_password

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "repairdesk.settings")

STAFF_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _fast_test_settings(settings):
    # Speed up password hashing in tests
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}


# --- Staff --------------------------------------------------------------------

@pytest.fixture
def make_staff(db):
    from staff.models import Staff

    def _make(email="tech@repairdesk.test", role="TECHNICIAN", status="ACTIVE", **extra):
        return Staff.objects.create(
            first_name=extra.pop("first_name", "Tess"),
            last_name=extra.pop("last_name", "Tech"),
            email=email,
            password=make_password(STAFF_PASSWORD),
            role=role,
            status=status,
            **extra,
        )
    return _make


@pytest.fixture
def staff(make_staff):
    return make_staff()


@pytest.fixture
def manager(make_staff):
    return make_staff(email="manager@repairdesk.test", role="MANAGER", first_name="Max")


@pytest.fixture
def suspended_staff(make_staff):
    return make_staff(email="gone@repairdesk.test", status="SUSPENDED", first_name="Sam")


@pytest.fixture
def staff_password():
    return STAFF_PASSWORD


@pytest.fixture
def staff_token(staff):
    from staff.services.auth_service import AuthService
    return AuthService.login(staff.email, STAFF_PASSWORD)["token"]


@pytest.fixture
def auth_client(client, staff_token):
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {staff_token}"
    return client


# --- Inventory ----------------------------------------------------------------

@pytest.fixture
def location_a(db):
    from inventory.models import StoreLocation
    return StoreLocation.objects.create(name="Main Street", sort_order=1)


@pytest.fixture
def location_b(db):
    from inventory.models import StoreLocation
    return StoreLocation.objects.create(name="Harbour Mall", sort_order=2)


@pytest.fixture
def item(db):
    from inventory.models import InventoryItem
    return InventoryItem.objects.create(name="iPhone 13 Screen", sku="SCR-IP13")


@pytest.fixture
def variation(item):
    from inventory.models import InventoryVariation
    return InventoryVariation.objects.create(item=item, name="OLED Black", sku="SCR-IP13-OLED", price="89.00")


@pytest.fixture
def stock(staff):
    """Seed stock through the ledger: stock(variation, location, 15)."""
    from inventory.services import InventoryAdjustmentService

    def _stock(variation, location, quantity):
        InventoryAdjustmentService.adjust_stock(
            variation.id, location.id, quantity, "Opening stock", staff.id
        )
    return _stock


@pytest.fixture
def make_transfer(staff, item, variation, location_a, location_b):
    from inventory.models import InventoryTransfer
    from inventory.services import InventoryTransferService

    def _make(quantity=10, from_location=None, to_location=None):
        result = InventoryTransferService.create(
            inventory_item_id=item.id,
            variation_id=variation.id,
            quantity=quantity,
            from_location_id=(from_location or location_a).id,
            to_location_id=(to_location or location_b).id,
            requested_by_id=staff.id,
        )
        return InventoryTransfer.objects.get(id=result["id"])
    return _make
