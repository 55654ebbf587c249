"""Tests for Order snapshots used by the ledger checkpoint."""

import json

from marketplace.order.composition import compose_order
from marketplace.order.normalization import normalize_order
from marketplace.order.order import Order, OrderProvenance


def _local_order():
    order = compose_order(
        [
            {"id": "P1", "price": 12.5, "quantity": 2, "vendor_id": "A", "variant": {"size": "M"}},
            {"id": "P2", "price": 30, "quantity": 1, "vendor_id": "B"},
        ],
        shipping=8,
        tax=3.3,
        discount=1.1,
        user_id="user-7",
        shipping_address={"name": "Ira", "city": "Pune", "zipCode": "411001"},
        payment_method="card",
        coupon_code="SPRING",
    )
    order.cancel("Ordered twice")
    return order


class TestSnapshot:
    def test_snapshot_is_json_serializable(self):
        json.dumps(_local_order().to_snapshot())

    def test_local_order_survives_round_trip(self):
        original = _local_order()
        restored = Order.from_snapshot(json.loads(json.dumps(original.to_snapshot())))

        assert restored.id == original.id
        assert restored.provenance == OrderProvenance.LOCAL.value
        assert restored.status == original.status
        assert restored.total == original.total
        assert restored.shipping_address.zip_code == "411001"
        assert restored.cancellation_reason == "Ordered twice"
        assert restored.cancelled_at == original.cancelled_at
        assert [g.to_dict() for g in restored.groups] == [g.to_dict() for g in original.groups]
        assert restored.line_items[0].variant == {"size": "M"}

    def test_remote_order_survives_round_trip(self):
        original = Order.from_remote(
            normalize_order({"_id": "r-1", "status": "shipped", "subtotal": 10, "total": 11.5})
        )
        restored = Order.from_snapshot(original.to_snapshot())
        assert restored.provenance == OrderProvenance.REMOTE.value
        assert restored.total == 11.5
        assert restored.status == "shipped"
