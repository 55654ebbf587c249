"""Domain events for commissions and settlements."""

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Commission")
class CommissionRecorded:
    """The platform's cut of one vendor group was recorded as owed."""

    __version__ = 1

    commission_id = Identifier(required=True)
    order_id = Identifier(required=True)
    vendor_id = String(required=True)
    subtotal = String(required=True)  # serialized Decimal
    commission = String(required=True)  # serialized Decimal
    vendor_earnings = String(required=True)  # serialized Decimal
    recorded_at = DateTime(required=True)


@marketplace.event(part_of="Commission")
class CommissionPaid:
    """The vendor's earnings for a commission were paid out."""

    __version__ = 1

    commission_id = Identifier(required=True)
    settlement_id = Identifier(required=True)
    vendor_id = String(required=True)
    paid_at = DateTime(required=True)


@marketplace.event(part_of="Settlement")
class SettlementRecorded:
    """A payout to a vendor was recorded."""

    __version__ = 1

    settlement_id = Identifier(required=True)
    commission_id = Identifier(required=True)
    vendor_id = String(required=True)
    amount = String(required=True)  # serialized Decimal
    payment_method = String(required=True)
    created_at = DateTime(required=True)


@marketplace.event(part_of="Commission")
class CommissionCancelled:
    """The commission was reversed, as when the vendor's items came back."""

    __version__ = 1

    commission_id = Identifier(required=True)
    order_id = Identifier(required=True)
    vendor_id = String(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
