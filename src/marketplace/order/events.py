"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A locally composed order was accepted into the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier()
    vendor_ids = Text(required=True)  # JSON: list of vendor ids, one per vendor group
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    total = Float(required=True)
    tracking_number = String(max_length=100)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderSynced:
    """An order was (re)loaded from the order backend."""

    __version__ = 1

    order_id = Identifier(required=True)
    status = String(required=True)
    total = Float(required=True)
    synced_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    """A trusted caller moved the order to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class ReturnRequested:
    """The customer asked to return (part of) a delivered order."""

    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = String(required=True)
    reason = String(required=True, max_length=500)
    items = Text()  # JSON: list of product ids, empty for the whole vendor group
    requested_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class ReturnResolved:
    """A vendor approved, rejected, processed or completed a return request."""

    __version__ = 1

    order_id = Identifier(required=True)
    vendor_id = String(required=True)
    previous_status = String(required=True)
    return_status = String(required=True)
    rejection_reason = String(max_length=500)
    resolved_at = DateTime(required=True)
