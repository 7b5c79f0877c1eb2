"""Tests for the REST client and its envelope handling."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from grocery_bot.api.backend import BackendClient
from grocery_bot.errors import BackendRejected, TransportFailure


def _response(body, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http):
    return BackendClient(base_url='http://store.test/', timeout=5, session=http)


def test_requires_base_url(monkeypatch):
    monkeypatch.delenv('BACKEND_URL', raising=False)
    with pytest.raises(ValueError):
        BackendClient()


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv('BACKEND_URL', 'http://env.test')
    assert BackendClient(session=MagicMock()).base_url == 'http://env.test'


def test_get_products(client, http):
    http.request.return_value = _response({
        'success': True,
        'products': [
            {'_id': 'p1', 'name': 'Tomato', 'price': 60, 'offerPrice': 50, 'category': 'Vegetables',
             'inStock': True, 'image': ['t.png']},
            {'_id': 'p2', 'name': 'Milk', 'price': '12.5', 'category': 'Dairy', 'inStock': False},
        ],
    })

    products = client.get_products()

    http.request.assert_called_once_with('GET', 'http://store.test/api/product/list', json=None, timeout=5)
    assert [(p.id, p.unit_price, p.in_stock) for p in products] == [
        ('p1', Decimal('50'), True),
        ('p2', Decimal('12.5'), False),
    ]


def test_success_false_is_rejected_even_on_http_200(client, http):
    http.request.return_value = _response({'success': False, 'message': 'Not Authorized'})
    with pytest.raises(BackendRejected) as exc_info:
        client.get_addresses()
    assert exc_info.value.message == 'Not Authorized'


def test_rejection_without_message(client, http):
    http.request.return_value = _response({'success': False}, status_code=401)
    with pytest.raises(BackendRejected, match='401'):
        client.get_user_orders()


def test_success_on_error_status_is_still_success(client, http):
    http.request.return_value = _response({'success': True, 'message': 'done'}, status_code=500)
    assert client.delete_order('o1') == 'done'


def test_network_error_is_transport_failure(client, http):
    http.request.side_effect = requests.ConnectionError('refused')
    with pytest.raises(TransportFailure):
        client.get_seller_orders()


def test_non_json_body_is_transport_failure(client, http):
    http.request.return_value = _response(ValueError('no json'), status_code=502)
    with pytest.raises(TransportFailure):
        client.get_users()


def test_place_cod_order(client, http):
    http.request.return_value = _response({'success': True, 'message': 'Order Placed Successfully'})
    payload = {'userId': 'u1', 'items': [{'product': 'p1', 'quantity': 2}], 'address': 'a1'}

    assert client.place_cod_order(payload) == 'Order Placed Successfully'
    http.request.assert_called_once_with('POST', 'http://store.test/api/order/cod', json=payload, timeout=5)


def test_place_online_order_returns_url(client, http):
    http.request.return_value = _response({'success': True, 'url': 'https://pay.test/s/1'})
    assert client.place_online_order({}) == 'https://pay.test/s/1'
    assert http.request.call_args[0][1] == 'http://store.test/api/order/stripe'


def test_place_online_order_without_url(client, http):
    http.request.return_value = _response({'success': True})
    with pytest.raises(BackendRejected):
        client.place_online_order({})


@pytest.mark.parametrize("call, method, path, body", [
    (lambda c: c.update_order_status('o1', 'Delivered'), 'PUT', '/api/order/updateStatus/o1', {'status': 'Delivered'}),
    (lambda c: c.delete_order('o1'), 'DELETE', '/api/order/o1', None),
    (lambda c: c.set_stock('p1', False), 'POST', '/api/product/stock', {'id': 'p1', 'inStock': False}),
    (lambda c: c.delete_user('u1'), 'DELETE', '/api/user/delete/u1', None),
    (lambda c: c.seller_logout(), 'GET', '/api/seller/logout', None),
])
def test_endpoints(client, http, call, method, path, body):
    http.request.return_value = _response({'success': True, 'message': 'ok'})
    assert call(client) == 'ok'
    http.request.assert_called_once_with(method, f'http://store.test{path}', json=body, timeout=5)


def test_orders_are_parsed(client, http):
    http.request.return_value = _response({'success': True, 'orders': [{
        '_id': 'o1', 'status': 'Order Placed', 'amount': 132.6, 'paymentType': 'Online', 'isPaid': True,
        'items': [{'product': {'_id': 'p1', 'name': 'Tomato', 'offerPrice': 50}, 'quantity': 2}],
        'address': 'a1', 'createdAt': '2025-01-15T10:30:00.000Z',
    }]})

    order, = client.get_user_orders()
    assert order.status == 'Order Placed'
    assert order.amount == Decimal('132.6')
    assert order.address == 'a1'
    assert order.items[0].product_name == 'Tomato'
    assert order.created_at.year == 2025


def test_login_returns_user(client, http):
    http.request.return_value = _response({'success': True, 'user': {'_id': 'u1', 'name': 'Jane', 'email': 'j@x.in'}})
    user = client.login('j@x.in', 'secret')
    assert (user.id, user.name) == ('u1', 'Jane')


def test_bills_accept_a_bare_list(client, http):
    http.request.return_value = _response([{
        '_id': 'b1', 'customerName': 'Ravi', 'paymentMethod': 'Cash on Delivery', 'totalAmount': 480,
        'items': [{'name': 'Rice', 'quantity': 1, 'price': 450}, {'name': 'Milk', 'quantity': 1, 'price': 30}],
        'createdAt': '2025-02-01T09:00:00.000Z',
    }])

    bill, = client.get_bills()

    http.request.assert_called_once_with('GET', 'http://store.test/api/bills/all', json=None, timeout=5)
    assert bill.customer_name == 'Ravi'
    assert bill.total == Decimal('480')
    assert bill.items == ['Rice x 1 @ 450', 'Milk x 1 @ 30']
    assert bill.created_at.month == 2


def test_bills_in_an_envelope(client, http):
    http.request.return_value = _response({'success': True, 'bills': [{'_id': 'b1', 'items': 'Rice, Milk'}]})
    assert client.get_bills()[0].items == ['Rice, Milk']


def test_other_endpoints_reject_a_bare_list(client, http):
    http.request.return_value = _response([])
    with pytest.raises(TransportFailure):
        client.get_users()
