"""
Unit Tests: Cart domain object

Covers add/ceiling, quantity clamping, idempotent remove and the totals
arithmetic (subtotal, tax, discount, total).
"""

import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from erp_pos.domain.cart import Cart, compute_totals, to_money
from erp_pos.domain.exceptions import CartItemNotFoundError, ValidationError


def item(sku="A1", price="10.00", quantity=5, name=None):
    return SimpleNamespace(id=uuid.uuid4(), name=name or f"Item {sku}", sku=sku, price=Decimal(price), quantity=quantity)


class TestAddItem:
    def test_first_add_creates_line_with_snapshot(self):
        cart = Cart()
        widget = item(price="10.00", quantity=5)

        assert cart.add_item(widget) is True

        line = cart.get_line(widget.id)
        assert line.quantity == 1
        assert line.price == Decimal("10.00")
        assert line.available_quantity == 5

    def test_price_snapshot_ignores_later_catalog_change(self):
        cart = Cart()
        widget = item(price="10.00")
        cart.add_item(widget)

        widget.price = Decimal("12.00")
        cart.add_item(widget)

        assert cart.get_line(widget.id).price == Decimal("10.00")
        assert cart.get_line(widget.id).quantity == 2

    def test_add_at_ceiling_is_noop(self):
        cart = Cart()
        widget = item(quantity=2)

        assert cart.add_item(widget)
        assert cart.add_item(widget)
        assert cart.add_item(widget) is False

        assert cart.get_line(widget.id).quantity == 2

    def test_lines_keep_insertion_order(self):
        cart = Cart()
        first, second = item("A1"), item("B2")
        cart.add_item(first)
        cart.add_item(second)

        assert [line.sku for line in cart.lines] == ["A1", "B2"]


class TestSetQuantity:
    @pytest.mark.parametrize("requested,expected", [
        (-10, 1),
        (0, 1),
        (1, 1),
        (3, 3),
        (4, 4),
        (5, 4),
        (10_000, 4),
    ])
    def test_clamped_to_one_and_available(self, requested, expected):
        cart = Cart()
        widget = item(quantity=4)
        cart.add_item(widget)

        line = cart.set_quantity(widget.id, requested)

        assert line.quantity == expected
        assert widget.id in cart

    def test_unknown_product_raises(self):
        cart = Cart()

        with pytest.raises(CartItemNotFoundError):
            cart.set_quantity(uuid.uuid4(), 2)


class TestRemove:
    def test_remove_existing(self):
        cart = Cart()
        widget = item()
        cart.add_item(widget)

        cart.remove_item(widget.id)

        assert cart.is_empty

    def test_remove_absent_is_noop(self):
        cart = Cart()
        widget = item()
        cart.add_item(widget)

        cart.remove_item(uuid.uuid4())

        assert len(cart) == 1
        assert cart.get_line(widget.id).quantity == 1


class TestTotals:
    def test_example_sale(self):
        cart = Cart()
        a1 = item("A1", "10.00", quantity=5)
        b2 = item("B2", "5.50", quantity=3)
        cart.add_item(a1)
        cart.add_item(a1)
        cart.add_item(b2)

        totals = cart.compute_totals("0.10")

        assert totals.subtotal == Decimal("25.50")
        assert totals.tax == Decimal("2.55")
        assert totals.discount == Decimal("0.00")
        assert totals.total == Decimal("28.05")

    def test_empty_cart_totals_are_zero(self):
        totals = Cart().compute_totals("0.10")

        assert totals.subtotal == Decimal("0")
        assert totals.total == Decimal("0")

    @pytest.mark.parametrize("prices,quantities,rate,discount", [
        (["0.99"], [3], "0.10", "0"),
        (["19.99", "0.01", "7.35"], [1, 7, 2], "0.10", "1.50"),
        (["3.33", "3.33", "3.34"], [3, 3, 3], "0.075", "0"),
        (["1250.00"], [2], "0.20", "100.00"),
    ])
    def test_total_matches_formula(self, prices, quantities, rate, discount):
        cart = Cart()
        for n, (price, qty) in enumerate(zip(prices, quantities)):
            product = item(f"S{n}", price, quantity=qty)
            cart.add_item(product)
            cart.set_quantity(product.id, qty)

        totals = cart.compute_totals(rate, Decimal(discount))

        raw = sum(Decimal(p) * q for p, q in zip(prices, quantities))
        expected = raw * (1 + Decimal(rate)) - Decimal(discount)
        assert abs(totals.total - expected) <= Decimal("0.01")
        assert totals.subtotal == sum(line.line_total for line in cart.lines)
        assert totals.total == totals.subtotal + totals.tax - totals.discount

    def test_negative_discount_rejected(self):
        with pytest.raises(ValidationError):
            compute_totals([], "0.10", Decimal("-1"))

    def test_discount_above_amount_rejected(self):
        cart = Cart()
        cart.add_item(item(price="10.00"))

        with pytest.raises(ValidationError):
            cart.compute_totals("0.10", Decimal("11.01"))

    def test_to_money_rounds_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(0.1) == Decimal("0.10")


def test_snapshot_is_detached():
    cart = Cart()
    widget = item(quantity=5)
    cart.add_item(widget)

    snapshot = cart.snapshot()
    cart.set_quantity(widget.id, 4)

    assert snapshot[0].quantity == 1
    assert cart.get_line(widget.id).quantity == 4
