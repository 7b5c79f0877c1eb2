"""Shared fixtures: a fake backend and sample catalog data."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from grocery_bot.errors import BackendRejected
from grocery_bot.models.models import Address, Order, Product, User
from grocery_bot.services.session import ShopSession


class FakeBackend:
    """Records calls; ``fail`` maps a method name to the exception it raises."""

    def __init__(self):
        self.calls = []
        self.fail = {}
        self.products = []
        self.addresses = []
        self.orders = []
        self.users = []
        self.bills = []
        self.redirect_url = "https://pay.example/checkout/abc"

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name):
        return [args for call, args in self.calls if call == name]

    def login(self, email, password):
        self._record('login', email, password)
        return User(id='u1', name='Jane Doe', email=email)

    def register(self, name, email, password):
        self._record('register', name, email, password)
        return User(id='u2', name=name, email=email)

    def logout(self):
        self._record('logout')
        return "Logged Out"

    def seller_login(self, email, password):
        self._record('seller_login', email, password)
        return "Logged In"

    def seller_logout(self):
        self._record('seller_logout')
        return "Logged Out"

    def get_products(self):
        self._record('get_products')
        return list(self.products)

    def set_stock(self, product_id, in_stock):
        self._record('set_stock', product_id, in_stock)
        return "Stock Updated"

    def get_addresses(self):
        self._record('get_addresses')
        return list(self.addresses)

    def place_cod_order(self, payload):
        self._record('place_cod_order', payload)
        return "Order Placed Successfully"

    def place_online_order(self, payload):
        self._record('place_online_order', payload)
        return self.redirect_url

    def get_user_orders(self):
        self._record('get_user_orders')
        return list(self.orders)

    def get_seller_orders(self):
        self._record('get_seller_orders')
        return list(self.orders)

    def update_order_status(self, order_id, status):
        self._record('update_order_status', order_id, status)
        return "Status updated!"

    def delete_order(self, order_id):
        self._record('delete_order', order_id)
        return "Order deleted successfully!"

    def get_users(self):
        self._record('get_users')
        return list(self.users)

    def delete_user(self, user_id):
        self._record('delete_user', user_id)
        return "User deleted successfully"

    def get_bills(self):
        self._record('get_bills')
        return list(self.bills)


def make_product(product_id, price, name=None, category='Vegetables', in_stock=True):
    return Product(
        id=product_id,
        name=name or f"Product {product_id}",
        unit_price=Decimal(str(price)),
        category=category,
        in_stock=in_stock,
    )


def make_order(order_id, status='Pending', amount='130', items=None):
    return Order.from_api({
        '_id': order_id,
        'status': status,
        'amount': amount,
        'paymentType': 'COD',
        'createdAt': '2025-01-15T10:30:00.000Z',
        'updatedAt': '2025-01-15T10:30:00.000Z',
        'items': items if items is not None else [
            {'product': {'_id': 'p1', 'name': 'Tomato', 'offerPrice': 50}, 'quantity': 2},
        ],
        'address': {
            '_id': 'a1', 'firstName': 'Jane', 'lastName': 'Doe', 'street': '12 Market Road',
            'city': 'Pune', 'state': 'MH', 'zipcode': '411001', 'country': 'India', 'phone': '9876543210',
        },
    })


@pytest.fixture
def catalog():
    return [
        make_product('p1', 50, name='Tomato'),
        make_product('p2', 30, name='Onion'),
        make_product('p3', '12.5', name='Milk', category='Dairy'),
    ]


@pytest.fixture
def address():
    return Address(id='a1', street='12 Market Road', city='Pune', state='MH', country='India', phone='9876543210')


@pytest.fixture
def user():
    return User(id='u1', name='Jane Doe', email='jane@example.com')


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session(backend, catalog):
    return ShopSession(backend=backend, catalog=catalog)


@pytest.fixture
def checkout_session(session, user, address):
    session.user = user
    session.set_addresses([address])
    session.cart.add('p1', 2)
    session.cart.add('p2', 1)
    return session


@pytest.fixture
def update():
    """A Telegram update double for a button press."""
    update = MagicMock()
    update.effective_user.id = 42
    update.effective_user.username = 'seller'
    update.callback_query.answer = AsyncMock()
    update.callback_query.message.reply_text = AsyncMock()
    update.callback_query.message.reply_document = AsyncMock()
    update.message.reply_text = AsyncMock()
    update.message.reply_document = AsyncMock()
    return update


@pytest.fixture
def context(session):
    context = MagicMock()
    context.user_data = {'session': session}
    context.args = []
    return context


@pytest.fixture
def rejected():
    return BackendRejected("Not allowed")
