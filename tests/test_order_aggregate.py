"""Order aggregate tests: totals, line item validation and order numbers."""
import re
from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import EmptyOrder, InvalidLineItem, InvalidOrder
from app.models.order import Order, generate_order_number
from app.models.order_line_item import OrderLineItem, quantize_money


def _order(tax="0.00") -> Order:
    return Order.new(tenant_id="tenant-1", created_by_actor_id="owner-1", tax_amount=Decimal(tax))


def test_totals_follow_line_items():
    """subtotal is the sum of line subtotals; total adds the tax."""
    order = _order("200.00")
    order.add_line_item("Laptop", 2, Decimal("1200.00"))
    order.add_line_item("Mouse", 1, Decimal("25.00"))

    assert [i.subtotal for i in order.line_items] == [Decimal("2400.00"), Decimal("25.00")]
    assert order.subtotal == Decimal("2425.00")
    assert order.total == Decimal("2625.00")


def test_new_order_is_empty_with_total_equal_to_tax():
    order = _order("15.50")

    assert order.line_items == []
    assert order.subtotal == Decimal("0.00")
    assert order.total == Decimal("15.50")


def test_line_subtotal_rounds_half_up():
    item = OrderLineItem.build("Widget", 3, "0.335")

    assert item.unit_price == Decimal("0.34")
    assert item.subtotal == Decimal("1.02")


def test_quantize_money_accepts_float():
    assert quantize_money(19.995) == Decimal("20.00")
    assert quantize_money("0.005") == Decimal("0.01")


def test_update_line_item_recomputes_totals():
    order = _order("10.00")
    item = order.add_line_item("Keyboard", 1, Decimal("50.00"))

    order.update_line_item(item, quantity=3)

    assert item.subtotal == Decimal("150.00")
    assert order.subtotal == Decimal("150.00")
    assert order.total == Decimal("160.00")

    order.update_line_item(item, unit_price=Decimal("40.00"))

    assert item.quantity == 3
    assert order.total == Decimal("130.00")


def test_update_foreign_line_item_is_rejected():
    order = _order()
    stranger = OrderLineItem.build("Elsewhere", 1, Decimal("1.00"))

    with pytest.raises(InvalidOrder):
        order.update_line_item(stranger, quantity=2)


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
def test_invalid_quantity(quantity):
    with pytest.raises(InvalidLineItem):
        OrderLineItem.build("Widget", quantity, Decimal("1.00"))


@pytest.mark.parametrize("price", [Decimal("-0.01"), "abc", None, Decimal("NaN")])
def test_invalid_unit_price(price):
    with pytest.raises(InvalidLineItem):
        OrderLineItem.build("Widget", 1, price)


def test_blank_product_name_is_rejected():
    with pytest.raises(InvalidLineItem):
        OrderLineItem.build("   ", 1, Decimal("1.00"))


def test_invalid_repricing_leaves_totals_untouched():
    order = _order("5.00")
    item = order.add_line_item("Widget", 2, Decimal("10.00"))

    with pytest.raises(InvalidLineItem):
        order.update_line_item(item, quantity=0)

    assert item.quantity == 2
    assert order.total == Decimal("25.00")


@pytest.mark.parametrize("tax", [Decimal("-1.00"), "not-a-number"])
def test_invalid_tax_is_rejected(tax):
    with pytest.raises(InvalidOrder):
        Order.new(tenant_id="tenant-1", created_by_actor_id="owner-1", tax_amount=tax)


def test_empty_order_cannot_be_persisted():
    order = _order()

    with pytest.raises(EmptyOrder):
        order.ensure_ready_to_persist()


def test_tenant_cannot_be_reassigned():
    order = _order()

    with pytest.raises(ValueError):
        order.tenant_id = "tenant-2"


def test_order_number_format():
    number = generate_order_number(prefix="ORD", today=date(2025, 1, 31))

    assert re.fullmatch(r"ORD-20250131-[A-Z0-9]{4}", number)


def test_new_order_gets_an_order_number():
    assert re.fullmatch(r"ORD-\d{8}-[A-Z0-9]{4}", _order().order_number)
