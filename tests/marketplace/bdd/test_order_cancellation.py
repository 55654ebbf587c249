"""BDD tests for order cancellation."""

from protean.exceptions import InvalidStateError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_cancellation.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order is cancelled with reason "{reason}"'))
def cancel_order(order, reason, error):
    try:
        order.cancel(reason)
    except InvalidStateError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is moved to "{status}"'))
def move_order(order, status, error):
    try:
        order.update_status(status)
    except InvalidStateError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cancellation reason is "{reason}"'))
def cancellation_reason_is(order, reason):
    assert order.cancellation_reason == reason
