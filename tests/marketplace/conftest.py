from datetime import UTC, datetime

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _adapters():
    """Fresh fake gateway and channel adapters for every test."""
    from marketplace.notification.channel import reset_channels
    from marketplace.payment.gateway import reset_gateway, set_gateway
    from marketplace.payment.gateway.fake_adapter import FakeGateway

    set_gateway(FakeGateway())
    reset_channels()
    yield
    reset_gateway()
    reset_channels()


@pytest.fixture()
def gateway():
    from marketplace.payment.gateway import get_gateway

    return get_gateway()


@pytest.fixture()
def sms():
    from marketplace.notification.channel import get_channel
    from marketplace.notification.notification import NotificationChannel

    return get_channel(NotificationChannel.SMS.value)


@pytest.fixture()
def invoices():
    from marketplace.notification.channel import get_channel
    from marketplace.notification.notification import NotificationChannel

    return get_channel(NotificationChannel.INVOICE.value)


# ---------------------------------------------------------------------------
# Builders shared by application, integration and BDD tests
# ---------------------------------------------------------------------------
def make_supplier(business_name="Mama Ngozi Crafts", commission_rate=10.0, active=True):
    from protean import current_domain

    from marketplace.catalogue.management import ChangeSupplierStatus, RegisterSupplier
    from marketplace.catalogue.supplier import SupplierStatus

    supplier_id = current_domain.process(
        RegisterSupplier(business_name=business_name, commission_rate=commission_rate),
        asynchronous=False,
    )
    if active:
        current_domain.process(
            ChangeSupplierStatus(supplier_id=supplier_id, status=SupplierStatus.ACTIVE.value),
            asynchronous=False,
        )
    return supplier_id


def make_product(name="Woven Basket", price=1000.0, stock=10, supplier_id=None):
    from protean import current_domain

    from marketplace.catalogue.management import AddProduct

    return current_domain.process(
        AddProduct(name=name, price=price, stock=stock, supplier_id=supplier_id),
        asynchronous=False,
    )


def make_cart(*lines):
    """Create a cart holding ``(product_id, quantity)`` lines and return its id."""
    from protean import current_domain

    from marketplace.cart.items import AddCartItem
    from marketplace.cart.management import CreateCart

    cart_id = current_domain.process(CreateCart(), asynchronous=False)
    for product_id, quantity in lines:
        current_domain.process(
            AddCartItem(cart_id=cart_id, product_id=product_id, quantity=quantity),
            asynchronous=False,
        )
    return cart_id


def place_order(cart_id, **overrides):
    from marketplace.order.checkout import PlaceOrder, checkout

    fields = {
        "cart_id": cart_id,
        "customer_name": "Awa Ndiaye",
        "customer_phone": "+237670000000",
        "customer_address": "Rue 1.234, Bastos",
        "customer_city": "Yaounde",
        "payment_method": "MOMO",
    }
    fields.update(overrides)
    return checkout(PlaceOrder(**fields))


def deliver_item(supplier_id, order_item_id):
    """Walk an order item through to DELIVERED."""
    from protean import current_domain

    from marketplace.fulfillment.tracking import UpdateFulfillmentStatus

    for status in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
        current_domain.process(
            UpdateFulfillmentStatus(supplier_id=supplier_id, order_item_id=order_item_id, status=status),
            asynchronous=False,
        )


def utc(*args):
    return datetime(*args, tzinfo=UTC)


class MarketBuilder:
    """Builders exposed to test modules through the ``market`` fixture."""

    supplier = staticmethod(make_supplier)
    product = staticmethod(make_product)
    cart = staticmethod(make_cart)
    order = staticmethod(place_order)
    deliver = staticmethod(deliver_item)
    utc = staticmethod(utc)


@pytest.fixture()
def market():
    return MarketBuilder()


@pytest.fixture()
def two_supplier_order():
    """Order of 2×1000 from supplier A (10%) and 1×500 from supplier B (10%)."""
    supplier_a = make_supplier("Supplier A", commission_rate=10.0)
    supplier_b = make_supplier("Supplier B", commission_rate=10.0)
    product_a = make_product("Product A", price=1000.0, stock=5, supplier_id=supplier_a)
    product_b = make_product("Product B", price=500.0, stock=5, supplier_id=supplier_b)
    cart_id = make_cart((product_a, 2), (product_b, 1))
    order_id = place_order(cart_id, customer_email="awa@example.com")
    return {
        "order_id": order_id,
        "cart_id": cart_id,
        "supplier_a": supplier_a,
        "supplier_b": supplier_b,
        "product_a": product_a,
        "product_b": product_b,
    }
