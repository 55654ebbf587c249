"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from protean.exceptions import InvalidStateError, ValidationError
from pytest_bdd import given, parsers, then

from marketplace.order.composition import compose_order
from marketplace.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged, OrderSynced, ReturnRequested

# Map event name strings to classes for dynamic lookup in Then steps
_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderSynced": OrderSynced,
    "OrderStatusChanged": OrderStatusChanged,
    "OrderCancelled": OrderCancelled,
    "ReturnRequested": ReturnRequested,
}


@pytest.fixture()
def error():
    """Container for the exception a When step captured."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps — Order
# ---------------------------------------------------------------------------
@given("an order with items from vendors A and B", target_fixture="order")
def two_vendor_order():
    order = compose_order(
        [
            {"id": "P1", "price": 100.0, "quantity": 1, "vendor_id": "A", "vendor_name": "Acme Apparel"},
            {"id": "P2", "price": 50.0, "quantity": 1, "vendor_id": "B", "vendor_name": "Bolt Gear"},
        ],
        shipping=10.0,
        tax=15.0,
        user_id="user-001",
    )
    order._events.clear()
    return order


@given("an order with items from vendor A only", target_fixture="order")
def single_vendor_order():
    order = compose_order(
        [
            {"id": "P1", "price": 30.0, "quantity": 2, "vendor_id": "A", "vendor_name": "Acme Apparel"},
            {"id": "P3", "price": 12.0, "quantity": 1, "vendor_id": "A", "vendor_name": "Acme Apparel"},
        ],
        user_id="user-001",
    )
    order._events.clear()
    return order


@given(parsers.cfparse('the order moved to "{status}"'), target_fixture="order")
def order_moved_to(order, status):
    order.update_status(status)
    order._events.clear()
    return order


@given("the order was cancelled", target_fixture="order")
def cancelled_order(order):
    order.cancel("Changed my mind")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps — shared
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the action fails with a validation error")
def action_fails_validation(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then("the action fails with an invalid state error")
def action_fails_invalid_state(error):
    assert error["exc"] is not None, "Expected an invalid state error but none was raised"
    assert isinstance(error["exc"], InvalidStateError)


@then("the action succeeds")
def action_succeeds(error):
    assert error["exc"] is None, f"Unexpected error: {error['exc']!r}"


@then(parsers.cfparse("an {event_type} event is raised"))
def an_event_raised(order, event_type):
    _assert_event(order, event_type)


@then(parsers.cfparse("a {event_type} event is raised"))
def a_event_raised(order, event_type):
    _assert_event(order, event_type)


def _assert_event(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then("no event is raised")
def no_event_raised(order):
    assert order._events == []
