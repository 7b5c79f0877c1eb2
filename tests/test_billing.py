"""Tests for bill computation, naming and PDF rendering."""

from datetime import datetime
from decimal import Decimal

import pytest

from grocery_bot.errors import Unauthenticated
from grocery_bot.models.models import BillLine, User
from grocery_bot.services.bill_pdf import COLUMNS, BillDocument, render_bill_pdf
from grocery_bot.services.billing import (
    bill_filename, build_bill, compute_totals, make_bill, parse_bill_lines,
)
from grocery_bot.services.cart import CartState, project_cart
from conftest import make_product

NOW = datetime(2025, 3, 1, 12, 0)


def _items(catalog, entries):
    return project_cart(catalog, CartState(entries)).items


class TestBuildBill:

    def test_scenario_totals(self, catalog, user, address):
        bill = build_bill(_items(catalog, {'p1': 2, 'p2': 1}), user, address, "Cash on Delivery", now=NOW)

        assert bill.subtotal == Decimal('130.00')
        assert bill.tax == Decimal('2.60')
        assert bill.grand_total == Decimal('132.60')
        assert bill.customer_name == 'Jane Doe'
        assert bill.address_text == '12 Market Road, Pune, MH, India'
        assert [(line.name, line.quantity) for line in bill.lines] == [('Tomato', 2), ('Onion', 1)]

    def test_requires_user(self, catalog, address):
        with pytest.raises(Unauthenticated):
            build_bill(_items(catalog, {'p1': 1}), None, address, "Cash on Delivery")

    def test_fallbacks(self, catalog):
        bill = build_bill(_items(catalog, {'p1': 1}), User(id='u9', name=''), None, "Online Payment", now=NOW)
        assert bill.customer_name == 'Customer'
        assert bill.address_text == 'No address selected'

    def test_is_pure(self, catalog, user, address):
        items = _items(catalog, {'p1': 2, 'p3': 3})
        first = build_bill(items, user, address, "Cash on Delivery", now=NOW)
        second = build_bill(items, user, address, "Cash on Delivery", now=NOW)
        assert first == second

    def test_subtotal_matches_cart_total_on_half_cent(self, user):
        catalog = [make_product('p1', '0.125')]
        view = project_cart(catalog, CartState({'p1': 1}))
        bill = build_bill(view.items, user, None, "Cash on Delivery", now=NOW)

        assert view.total == Decimal('0.13')
        assert bill.subtotal == view.total

    def test_empty_items(self, user):
        bill = build_bill([], user, None, "Cash on Delivery", now=NOW)
        assert bill.lines == []
        assert (bill.subtotal, bill.tax, bill.grand_total) == (Decimal('0.00'), Decimal('0.00'), Decimal('0.00'))


class TestComputeTotals:

    @pytest.mark.parametrize("price, quantity, tax", [
        ('50', 2, '2.00'),
        ('12.5', 3, '0.75'),
        ('0.25', 1, '0.01'),
        ('99.99', 7, '14.00'),
    ])
    def test_tax_is_two_percent_to_the_cent(self, price, quantity, tax):
        subtotal, computed_tax, grand_total = compute_totals([BillLine('x', quantity, Decimal(price))])
        assert computed_tax == Decimal(tax)
        assert grand_total == subtotal + computed_tax


class TestBillFilename:

    def test_normalises_name(self):
        assert bill_filename('Jane Doe') == 'order-bill_jane_doe.pdf'

    def test_whitespace_runs_collapse(self):
        assert bill_filename('  Jane \t Mary   Doe ') == 'order-bill_jane_mary_doe.pdf'

    def test_is_stable(self):
        assert bill_filename('Jane Doe') == bill_filename('Jane Doe')

    def test_custom_prefix(self):
        assert bill_filename('Ravi', prefix='grocery-bill') == 'grocery-bill_ravi.pdf'


class TestParseBillLines:

    def test_parses_lines(self):
        lines = parse_bill_lines("Rice 5kg, 1, 450\n\nMilk, 2, 30.50\n")
        assert lines == [
            BillLine('Rice 5kg', 1, Decimal('450')),
            BillLine('Milk', 2, Decimal('30.50')),
        ]

    def test_name_may_contain_commas(self):
        assert parse_bill_lines("Dal, toor, 1, 120")[0].name == 'Dal, toor'

    @pytest.mark.parametrize("text", [
        "Rice, 1", "Rice, one, 10", "Rice, 0, 10", "Rice, 1, -2", ", 1, 2", "Rice, 1, NaN",
        "Rice, 1, 1e30", "Rice, 1001, 1",
    ])
    def test_rejects_bad_lines(self, text):
        with pytest.raises(ValueError):
            parse_bill_lines(text)


class TestRenderBillPdf:

    def test_renders_pdf(self, catalog, user, address):
        bill = build_bill(_items(catalog, {'p1': 2, 'p2': 1}), user, address, "Cash on Delivery", now=NOW)
        data = render_bill_pdf(bill)
        assert data.startswith(b'%PDF')

    def test_renders_empty_table(self, user):
        data = render_bill_pdf(build_bill([], user, None, "Cash on Delivery", now=NOW))
        assert data.startswith(b'%PDF')

    def test_long_bills_paginate(self):
        lines = [BillLine(f"Item {i}", 1, Decimal('10')) for i in range(60)]
        document = BillDocument(make_bill('Jane Doe', lines, "Online Payment", now=NOW))
        document.build()
        assert document.page_no() >= 3

    def test_non_latin_text_does_not_fail(self, user):
        bill = make_bill('Jane Doe', [BillLine('टमाटर', 1, Decimal('5'))], "Cash on Delivery", now=NOW)
        assert render_bill_pdf(bill).startswith(b'%PDF')

    def test_long_names_are_cut_to_the_column(self):
        document = BillDocument(make_bill('Jane Doe', [], "Cash on Delivery", now=NOW))
        document.set_font('Helvetica', '', 12)
        width = COLUMNS[1] - COLUMNS[0] - 2

        fitted = document._fit("Organic Cold Pressed Virgin Coconut Oil Family Pack", width)

        assert fitted.endswith('...')
        assert document.get_string_width(fitted) <= width
        assert document._fit("Rice", width) == "Rice"
