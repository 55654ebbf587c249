"""Tests for Order state machine — cancellation, trusted status updates and transition guards."""

import pytest
from protean.exceptions import InvalidStateError, ValidationError

from marketplace.order.composition import compose_order
from marketplace.order.events import OrderCancelled, OrderStatusChanged
from marketplace.order.order import OrderStatus

_PATH = [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED]


def _make_order():
    order = compose_order(
        [
            {"id": "P1", "price": 40, "quantity": 1, "vendor_id": "A"},
            {"id": "P2", "price": 60, "quantity": 1, "vendor_id": "B"},
        ],
        shipping=10,
    )
    order._events.clear()
    return order


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    if target_status == OrderStatus.CANCELLED:
        order.cancel("Changed my mind")
    else:
        for status in _PATH[: _PATH.index(target_status) + 1] if target_status in _PATH else []:
            order.update_status(status.value)
    order._events.clear()
    return order


class TestCancellation:
    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.PROCESSING])
    def test_cancellable_states(self, status):
        order = _order_at_state(status)
        order.cancel("Found it cheaper")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Found it cheaper"
        assert order.cancelled_at is not None

    @pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_non_cancellable_states(self, status):
        order = _order_at_state(status)
        with pytest.raises(InvalidStateError) as exc:
            order.cancel("Too late")
        assert f"cannot transition from {status.value} to cancelled" in str(exc.value)
        assert order.status == status.value

    def test_cancel_raises_event(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.cancel("Duplicate order")

        events = [e for e in order._events if isinstance(e, OrderCancelled)]
        assert len(events) == 1
        assert events[0].previous_status == OrderStatus.PENDING.value
        assert events[0].reason == "Duplicate order"

    def test_assert_cancellable_does_not_change_state(self):
        order = _order_at_state(OrderStatus.PENDING)
        order.assert_cancellable()
        assert order.status == OrderStatus.PENDING.value
        assert order._events == []


class TestTrustedStatusUpdates:
    def test_walks_the_fulfilment_path(self):
        order = _make_order()
        for status in _PATH:
            order.update_status(status.value)
        assert order.status == OrderStatus.DELIVERED.value

    def test_may_skip_ahead(self):
        order = _make_order()
        order.update_status(OrderStatus.DELIVERED.value)
        assert order.status == OrderStatus.DELIVERED.value

    def test_returned_is_accepted(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        order.update_status(OrderStatus.RETURNED.value)
        assert order.status == OrderStatus.RETURNED.value

    def test_raises_status_changed_event(self):
        order = _make_order()
        order.update_status(OrderStatus.PROCESSING.value)

        events = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert len(events) == 1
        assert (events[0].previous_status, events[0].new_status) == ("pending", "processing")

    def test_same_status_is_a_no_op(self):
        order = _make_order()
        order.update_status(OrderStatus.PENDING.value)
        assert order._events == []

    def test_unknown_status(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.update_status("teleported")

    def test_cancelled_is_terminal(self):
        order = _order_at_state(OrderStatus.CANCELLED)
        with pytest.raises(InvalidStateError):
            order.update_status(OrderStatus.PROCESSING.value)
        assert order.status == OrderStatus.CANCELLED.value

    def test_cancelling_through_trusted_path_stamps_time(self):
        order = _make_order()
        order.update_status(OrderStatus.CANCELLED.value)
        assert order.cancelled_at is not None
