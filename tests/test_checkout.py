"""Tests for order assembly and payment dispatch."""

import asyncio

import pytest

from grocery_bot.errors import BackendRejected, EmptyCart, MissingAddress, TransportFailure, Unauthenticated
from grocery_bot.services.checkout import PaymentMethod, assemble_order, place_order


class TestAssembleOrder:

    def test_payload(self, checkout_session, user, address):
        payload = assemble_order(user, address, checkout_session.cart_view().items)
        assert payload == {
            'userId': 'u1',
            'items': [{'product': 'p1', 'quantity': 2}, {'product': 'p2', 'quantity': 1}],
            'address': 'a1',
        }

    def test_user_checked_first(self, address):
        with pytest.raises(Unauthenticated):
            assemble_order(None, None, [])

    def test_address_checked_before_items(self, user):
        with pytest.raises(MissingAddress):
            assemble_order(user, None, [])

    def test_empty_cart(self, user, address):
        with pytest.raises(EmptyCart):
            assemble_order(user, address, [])


class TestPlaceOrder:

    def test_cod_clears_cart(self, checkout_session, backend):
        outcome = asyncio.run(place_order(checkout_session, PaymentMethod.COD))

        assert outcome.message == "Order Placed Successfully"
        assert outcome.redirect_url is None
        assert len(backend.called('place_cod_order')) == 1
        assert not checkout_session.cart

    def test_online_returns_redirect_and_keeps_cart(self, checkout_session, backend):
        outcome = asyncio.run(place_order(checkout_session, PaymentMethod.ONLINE))

        assert outcome.redirect_url == backend.redirect_url
        assert backend.called('place_online_order')
        assert checkout_session.cart.snapshot() == {'p1': 2, 'p2': 1}

    def test_missing_address_makes_no_call(self, checkout_session, backend):
        checkout_session.selected_address = None
        with pytest.raises(MissingAddress):
            asyncio.run(place_order(checkout_session, PaymentMethod.COD))
        assert backend.calls == []

    def test_empty_cart_makes_no_call(self, checkout_session, backend):
        checkout_session.cart.clear()
        with pytest.raises(EmptyCart):
            asyncio.run(place_order(checkout_session, PaymentMethod.COD))
        assert backend.calls == []

    def test_delisted_items_count_as_empty(self, checkout_session, backend):
        checkout_session.catalog = []
        with pytest.raises(EmptyCart):
            asyncio.run(place_order(checkout_session, PaymentMethod.ONLINE))
        assert backend.calls == []

    @pytest.mark.parametrize("error", [BackendRejected("Out of stock"), TransportFailure(OSError("down"))])
    def test_failure_leaves_cart_untouched(self, checkout_session, backend, error):
        backend.fail['place_cod_order'] = error
        with pytest.raises(type(error)):
            asyncio.run(place_order(checkout_session, PaymentMethod.COD))
        assert checkout_session.cart.snapshot() == {'p1': 2, 'p2': 1}

    def test_reset_during_request_is_not_overwritten(self, checkout_session, backend):
        def place_and_logout(payload):
            checkout_session.reset()
            checkout_session.cart.add('p3')
            return "ok"

        backend.place_cod_order = place_and_logout
        asyncio.run(place_order(checkout_session, PaymentMethod.COD))
        assert checkout_session.cart.snapshot() == {'p3': 1}


def test_payment_method_toggle():
    assert PaymentMethod.COD.toggled() is PaymentMethod.ONLINE
    assert PaymentMethod.ONLINE.toggled() is PaymentMethod.COD
