"""Tests for cart partitioning and charge proration."""

import re
from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from marketplace.order.composition import (
    compose_order,
    generate_order_id,
    generate_tracking_number,
    partition_by_vendor,
    prorate_charges,
)
from marketplace.order.events import OrderPlaced
from marketplace.order.order import CartLineItem, OrderProvenance, OrderStatus


def _line(product_id, price, quantity=1, vendor_id="A", vendor_name=None):
    return CartLineItem(
        product_id=product_id,
        price=price,
        quantity=quantity,
        vendor_id=vendor_id,
        vendor_name=vendor_name or f"Vendor {vendor_id}",
    )


class TestSingleVendorCart:
    def test_one_group_takes_all_charges(self):
        order = compose_order(
            [
                {"id": "P1", "price": 24.99, "quantity": 2, "vendor_id": "1"},
                {"id": "P2", "price": 79.99, "quantity": 1, "vendor_id": "1"},
            ],
            shipping=5.00,
            tax=10.40,
            discount=0,
        )
        groups = order.groups
        assert len(groups) == 1
        assert groups[0].subtotal == pytest.approx(129.97)
        assert groups[0].shipping == 5.00
        assert groups[0].tax == pytest.approx(10.40)
        assert groups[0].discount == 0
        assert order.subtotal == pytest.approx(129.97)
        assert order.total == pytest.approx(145.37)


class TestTwoVendorCart:
    def test_shipping_is_split_evenly(self):
        order = compose_order(
            [
                {"id": "P1", "price": 100, "quantity": 1, "vendor_id": "A"},
                {"id": "P2", "price": 300, "quantity": 1, "vendor_id": "B"},
            ],
            shipping=20,
            tax=0,
            discount=0,
        )
        group_a, group_b = order.groups
        assert (group_a.vendor_id, group_a.subtotal, group_a.shipping, group_a.tax) == ("A", 100, 10, 0)
        assert (group_b.vendor_id, group_b.subtotal, group_b.shipping, group_b.tax) == ("B", 300, 10, 0)
        assert order.subtotal == 400
        assert order.total == 420

    def test_tax_and_discount_follow_subtotal_share(self):
        order = compose_order(
            [
                {"id": "P1", "price": 100, "quantity": 1, "vendor_id": "A"},
                {"id": "P2", "price": 300, "quantity": 1, "vendor_id": "B"},
            ],
            shipping=20,
            tax=40,
            discount=8,
        )
        group_a, group_b = order.groups
        assert group_a.tax == 10
        assert group_b.tax == 30
        assert group_a.discount == 2
        assert group_b.discount == 6
        assert order.total == 400 + 20 + 40 - 8


class TestPartition:
    def test_first_seen_vendor_order(self):
        groups = partition_by_vendor(
            [_line("P1", 5, vendor_id="B"), _line("P2", 7, vendor_id="A"), _line("P3", 1, quantity=3, vendor_id="B")]
        )
        assert [g.vendor_id for g in groups] == ["B", "A"]
        assert [item.product_id for item in groups[0].items] == ["P1", "P3"]
        assert groups[0].subtotal == 8

    def test_items_without_vendor_go_to_default_vendor(self):
        order = compose_order([{"id": "P1", "price": 10, "quantity": 1}])
        assert order.groups[0].vendor_id == "1"
        assert order.groups[0].vendor_name == "Unknown Vendor"

    def test_every_item_lands_in_exactly_one_group(self):
        items = [_line(f"P{i}", i + 1, vendor_id="ABC"[i % 3]) for i in range(7)]
        order = compose_order(items)
        grouped = [item.product_id for group in order.groups for item in group.items]
        assert sorted(grouped) == sorted(item.product_id for item in items)
        assert sum(g.subtotal for g in order.groups) == pytest.approx(order.subtotal, abs=1e-6)


class TestProration:
    def test_zero_subtotal_gets_no_tax_or_discount(self):
        groups = prorate_charges(
            partition_by_vendor([_line("P1", 0, vendor_id="A"), _line("P2", 0, vendor_id="B")]),
            shipping=6,
            tax=5,
            discount=2,
        )
        assert [(g.shipping, g.tax, g.discount) for g in groups] == [(3, 0, 0), (3, 0, 0)]

    def test_no_groups(self):
        assert prorate_charges([], 10, 5, 1) == []


class TestComposedOrder:
    def test_empty_cart_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            compose_order([])
        assert exc.value.messages["items"] == ["Your cart is empty."]

    def test_local_order_defaults(self):
        before = datetime.now(UTC)
        order = compose_order([{"id": "P1", "price": 10, "quantity": 2, "vendor_id": "A"}], user_id="user-1")

        assert order.status == OrderStatus.PENDING.value
        assert order.provenance == OrderProvenance.LOCAL.value
        assert order.user_id == "user-1"
        assert re.fullmatch(r"ORD-\d+-[0-9A-Z]{4}", str(order.id))
        assert re.fullmatch(r"TRK-[0-9A-Z]{10}", order.tracking_number)
        assert order.estimated_delivery >= before + timedelta(days=5)

    def test_flat_items_keep_cart_order(self):
        order = compose_order(
            [
                {"id": "P1", "price": 1, "quantity": 1, "vendor_id": "B"},
                {"id": "P2", "price": 2, "quantity": 1, "vendor_id": "A"},
                {"id": "P3", "price": 3, "quantity": 1, "vendor_id": "B"},
            ]
        )
        assert [item.product_id for item in order.line_items] == ["P1", "P2", "P3"]

    def test_variant_selection_is_carried(self):
        order = compose_order([{"id": "P1", "price": 30, "quantity": 1, "variant": {"size": "M"}}])
        assert order.line_items[0].variant == {"size": "M"}

    def test_order_placed_event(self):
        order = compose_order(
            [
                {"id": "P1", "price": 10, "quantity": 1, "vendor_id": "A"},
                {"id": "P2", "price": 20, "quantity": 1, "vendor_id": "B"},
            ]
        )
        events = [e for e in order._events if isinstance(e, OrderPlaced)]
        assert len(events) == 1
        assert events[0].item_count == 2
        assert events[0].total == 30

    def test_explicit_order_id(self):
        assert compose_order([{"id": "P1", "price": 1}], order_id="ORD-fixed").id == "ORD-fixed"


class TestIdentifiers:
    def test_order_ids_are_unique(self):
        assert len({generate_order_id() for _ in range(50)}) == 50

    def test_tracking_number_shape(self):
        assert re.fullmatch(r"TRK-[0-9A-Z]{10}", generate_tracking_number())


class TestLineItemValidation:
    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _line("P1", 10, quantity=0)

    def test_price_must_not_be_negative(self):
        with pytest.raises(ValidationError):
            _line("P1", -1)

    def test_product_id_is_required(self):
        with pytest.raises(ValidationError):
            _line("", 1)

    def test_malformed_item_dict(self):
        with pytest.raises(ValidationError):
            CartLineItem.from_dict({"id": "P1", "price": "abc"})
