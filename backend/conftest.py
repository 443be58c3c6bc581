"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import uuid
from decimal import Decimal

import pytest


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_app_settings():
    """
    Forget cached business settings around each test.

    AppSettings is a process-wide singleton; without this a tax mode set by
    one test would leak into the next.
    """
    from settings.config import app_settings

    app_settings.reset()
    yield
    app_settings.reset()


# ============================================================================
# USERS
# ============================================================================

@pytest.fixture
def admin_user(db):
    from users.models import User

    return User.objects.create_user(
        email="admin@example.com",
        password="test-pass-123",
        username="admin",
        first_name="Ada",
        last_name="Admin",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def cashier_user(db):
    from users.models import User

    return User.objects.create_user(
        email="cashier@example.com",
        password="test-pass-123",
        username="cashier",
        first_name="Cas",
        last_name="Hier",
        role=User.Role.CASHIER,
    )


# ============================================================================
# SETTINGS
# ============================================================================

@pytest.fixture
def tax_mode(db):
    """
    Set the business tax mode.

    Usage:
        def test_inclusive(tax_mode):
            tax_mode("inclusive")
    """
    from settings.models import GlobalSettings

    def _set(mode: str, currency: str = "EUR"):
        settings_obj = GlobalSettings.load()
        settings_obj.tax_mode = mode
        settings_obj.currency = currency
        settings_obj.save()
        return settings_obj

    return _set


# ============================================================================
# CATALOG & STOCK
# ============================================================================

@pytest.fixture
def stock_items(db):
    from inventory.models import StockItem

    return {
        "keg": StockItem.objects.create(name="Lager Keg (pints)", quantity=10),
        "lemon": StockItem.objects.create(name="Lemons", quantity=3),
    }


@pytest.fixture
def catalog(db, stock_items):
    """
    A small catalog:
    - lager: 10.00, 19% tax, draws 1 pint per unit
    - shandy: 4.00, draws 1 pint and 1 lemon per unit
    - crisps: 2.00, no stock requirements
    - broken: links to a malformed and a missing stock item
    """
    from products.models import Category, Product, ProductVariant, StockConsumption, TaxRate

    vat = TaxRate.objects.create(name="VAT Standard", rate=Decimal("0.19"), is_default=True)
    drinks = Category.objects.create(name="Drinks")
    snacks = Category.objects.create(name="Snacks", order=1)

    beer = Product.objects.create(name="Beer", category=drinks)
    lager = ProductVariant.objects.create(product=beer, name="Lager", price=Decimal("10.00"), tax_rate=vat)
    shandy = ProductVariant.objects.create(product=beer, name="Shandy", price=Decimal("4.00"), tax_rate=vat)
    StockConsumption.objects.create(variant=lager, stock_item_id=str(stock_items["keg"].id), quantity=1)
    StockConsumption.objects.create(variant=shandy, stock_item_id=str(stock_items["keg"].id), quantity=1)
    StockConsumption.objects.create(variant=shandy, stock_item_id=str(stock_items["lemon"].id), quantity=1)

    chips = Product.objects.create(name="Crisps", category=snacks)
    crisps = ProductVariant.objects.create(product=chips, name="Salted", price=Decimal("2.00"))

    mystery = Product.objects.create(name="Mystery", category=snacks)
    broken = ProductVariant.objects.create(product=mystery, name="Box", price=Decimal("5.00"))
    StockConsumption.objects.create(variant=broken, stock_item_id="not-a-uuid", quantity=1)
    StockConsumption.objects.create(variant=broken, stock_item_id=str(uuid.uuid4()), quantity=1)

    return {"lager": lager, "shandy": shandy, "crisps": crisps, "broken": broken, "vat": vat}


@pytest.fixture
def make_item():
    """
    Build a cart line in wire form.

    Usage:
        make_item(variant, quantity=2)
    """

    def _make(variant=None, quantity=1, name=None, price=None, rate=None, variant_id=None, item_id=None):
        return {
            "id": item_id or uuid.uuid4().hex,
            "variant_id": variant.id if variant is not None else variant_id,
            "product_id": variant.product_id if variant is not None else None,
            "name": name if name is not None else (f"{variant.product.name} - {variant.name}" if variant else ""),
            "price": str(price if price is not None else variant.price),
            "quantity": quantity,
            "effective_tax_rate": str(
                rate if rate is not None else (variant.get_effective_tax_rate() if variant else "0")
            ),
        }

    return _make


# ============================================================================
# ROOMS & TABLES
# ============================================================================

@pytest.fixture
def tables(db):
    from tables.models import Room, Table

    room = Room.objects.create(name="Main Hall")
    return {
        "free": Table.objects.create(name="1", room=room),
        "busy": Table.objects.create(name="2", room=room, status=Table.Status.OCCUPIED),
        "reserved": Table.objects.create(name="3", room=room, status=Table.Status.RESERVED),
        "spare": Table.objects.create(name="4", room=room),
    }


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def admin_client(api_client, admin_user):
    api_client.force_authenticate(user=admin_user)
    return api_client


@pytest.fixture
def cashier_client(api_client, cashier_user):
    api_client.force_authenticate(user=cashier_user)
    return api_client
