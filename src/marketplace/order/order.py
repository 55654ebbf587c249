"""Order aggregate (CQRS) — a vendor-partitioned order and its lifecycle.

An order keeps two views of the same line items: the flat list shown on
receipts and confirmation screens, and the per-vendor groups used by vendor
dashboards, commissions and returns. Both are stored as JSON and exposed as
``CartLineItem`` / ``VendorGroup`` value objects.

Orders come from one of two places, recorded once in ``provenance``:
    LOCAL   composed here, before the backend knows about the products
    REMOTE  fetched from the order backend, which owns the totals

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING or PROCESSING), terminal
    A return request is recorded against a DELIVERED order.

Return requests:
    REQUESTED → APPROVED | REJECTED
    APPROVED → PROCESSING → COMPLETED (or APPROVED → COMPLETED)
    Approving or completing the return of a single-vendor order marks it RETURNED.
"""

import json
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from protean import atomic_change, invariant
from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    OrderSynced,
    ReturnRequested,
    ReturnResolved,
)

DEFAULT_VENDOR_ID = str(getattr(marketplace, "DEFAULT_VENDOR_ID", "1"))
DEFAULT_VENDOR_NAME = getattr(marketplace, "DEFAULT_VENDOR_NAME", "Unknown Vendor")
RETURN_REASON_MIN_LENGTH = int(getattr(marketplace, "RETURN_REASON_MIN_LENGTH", 5))
RETURN_REASON_MAX_LENGTH = int(getattr(marketplace, "RETURN_REASON_MAX_LENGTH", 500))

BALANCE_TOLERANCE = 1e-6


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"  # Reported by the backend only


class OrderProvenance(Enum):
    LOCAL = "local"
    REMOTE = "remote"


class ReturnStatus(Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    PROCESSING = "processing"
    REJECTED = "rejected"
    COMPLETED = "completed"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.RETURNED: set(),  # Terminal
}

_RETURN_TRANSITIONS = {
    ReturnStatus.REQUESTED: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
    ReturnStatus.APPROVED: {ReturnStatus.PROCESSING, ReturnStatus.COMPLETED},
    ReturnStatus.PROCESSING: {ReturnStatus.COMPLETED},
    ReturnStatus.REJECTED: set(),
    ReturnStatus.COMPLETED: set(),
}

_ACTIVE_RETURN_STATES = {ReturnStatus.REQUESTED.value, ReturnStatus.APPROVED.value, ReturnStatus.PROCESSING.value}


# ---------------------------------------------------------------------------
# Line items and vendor groups
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CartLineItem:
    """One cart line, with its unit price already resolved for the chosen variant."""

    product_id: str
    price: float
    quantity: int
    vendor_id: str = DEFAULT_VENDOR_ID
    vendor_name: str = DEFAULT_VENDOR_NAME
    variant: dict[str, Any] | None = None
    name: str | None = None
    image: str | None = None

    def __post_init__(self):
        errors: dict[str, list[str]] = {}
        if not self.product_id:
            errors["product_id"] = ["Line item needs a product id"]
        if not isinstance(self.quantity, int) or self.quantity < 1:
            errors["quantity"] = ["Quantity must be at least 1"]
        if not isinstance(self.price, int | float) or not math.isfinite(self.price) or self.price < 0:
            errors["price"] = ["Price must be a non-negative number"]
        if errors:
            raise ValidationError(errors)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineItem":
        """Build a line from a cart/order item dict (snake_case or storefront camelCase)."""
        try:
            quantity = int(data.get("quantity", 1))
            price = float(data.get("price", data.get("unit_price", 0)) or 0)
        except (TypeError, ValueError) as exc:
            raise ValidationError({"item": [f"Malformed line item: {exc}"]}) from exc

        product_id = data.get("product_id") or data.get("productId") or data.get("id") or data.get("_id")
        vendor_id = data.get("vendor_id", data.get("vendorId"))
        variant = data.get("variant") or None

        return cls(
            product_id=str(product_id) if product_id else "",
            price=price,
            quantity=quantity,
            vendor_id=str(vendor_id) if vendor_id not in (None, "") else DEFAULT_VENDOR_ID,
            vendor_name=data.get("vendor_name") or data.get("vendorName") or DEFAULT_VENDOR_NAME,
            variant=dict(variant) if isinstance(variant, dict) else None,
            name=data.get("name"),
            image=data.get("image"),
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "price": self.price,
            "quantity": self.quantity,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "variant": self.variant,
            "name": self.name,
            "image": self.image,
        }


@dataclass(frozen=True)
class VendorGroup:
    """The slice of an order that belongs to one vendor, with its share of order charges."""

    vendor_id: str
    vendor_name: str
    items: tuple[CartLineItem, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    discount: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "VendorGroup":
        return cls(
            vendor_id=str(data.get("vendor_id") or DEFAULT_VENDOR_ID),
            vendor_name=data.get("vendor_name") or DEFAULT_VENDOR_NAME,
            items=tuple(CartLineItem.from_dict(item) for item in data.get("items") or []),
            subtotal=float(data.get("subtotal") or 0.0),
            shipping=float(data.get("shipping") or 0.0),
            tax=float(data.get("tax") or 0.0),
            discount=float(data.get("discount") or 0.0),
        )

    def to_dict(self) -> dict:
        return {
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "discount": self.discount,
        }


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes, captured at checkout.

    Every field is optional: guest checkouts and backend tracking payloads
    frequently carry only part of an address.
    """

    name = String(max_length=255)
    email = String(max_length=255)
    phone = String(max_length=50)
    address = String(max_length=500)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    country = String(max_length=100)

    @classmethod
    def from_dict(cls, data: dict | None) -> "ShippingAddress | None":
        if not data:
            return None
        return cls(
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            city=data.get("city"),
            state=data.get("state"),
            zip_code=data.get("zip_code") or data.get("zipCode"),
            country=data.get("country"),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    user_id = Identifier()  # None for guest orders
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    provenance = String(choices=OrderProvenance, default=OrderProvenance.LOCAL.value)
    items = Text(sanitize=False)  # JSON: flat list of line item dicts
    vendor_groups = Text(sanitize=False)  # JSON: list of vendor group dicts
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(max_length=50)
    subtotal = Float(default=0.0)
    shipping = Float(default=0.0)
    tax = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    coupon_code = String(max_length=100)
    tracking_number = String(max_length=100)
    estimated_delivery = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_at = DateTime()
    return_status = String(choices=ReturnStatus)
    return_reason = String(max_length=500)
    return_vendor_id = String(max_length=100)
    return_items = Text(sanitize=False)  # JSON: list of product ids
    return_requested_at = DateTime()
    return_rejection_reason = String(max_length=500)
    return_resolved_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def subtotal_must_match_vendor_groups(self):
        if self.provenance != OrderProvenance.LOCAL.value or self.vendor_groups is None:
            return
        groups_subtotal = sum(group.subtotal for group in self.groups)
        if abs(groups_subtotal - (self.subtotal or 0.0)) > BALANCE_TOLERANCE:
            raise ValidationError(
                {"subtotal": [f"Order subtotal {self.subtotal} does not match vendor groups ({groups_subtotal})"]}
            )

    @invariant.post
    def total_must_follow_charges(self):
        if self.provenance != OrderProvenance.LOCAL.value:
            return
        expected = self.subtotal + self.shipping + self.tax - self.discount
        if self.total != expected:
            raise ValidationError({"total": [f"Order total {self.total} must equal {expected}"]})

    @invariant.post
    def every_item_must_belong_to_one_vendor_group(self):
        if self.provenance != OrderProvenance.LOCAL.value or self.vendor_groups is None:
            return
        vendor_ids = [group.vendor_id for group in self.groups]
        if len(vendor_ids) != len(set(vendor_ids)):
            raise ValidationError({"vendor_groups": ["Each vendor may only appear in one vendor group"]})

        grouped = sorted(
            (item.vendor_id, item.product_id, item.quantity) for group in self.groups for item in group.items
        )
        flat = sorted((item.vendor_id, item.product_id, item.quantity) for item in self.line_items)
        if grouped != flat or any(item.vendor_id != group.vendor_id for group in self.groups for item in group.items):
            raise ValidationError({"vendor_groups": ["Every line item must appear in exactly one vendor group"]})

    # -------------------------------------------------------------------
    # Views over the JSON columns
    # -------------------------------------------------------------------
    @property
    def line_items(self) -> list[CartLineItem]:
        return [CartLineItem.from_dict(item) for item in json.loads(self.items or "[]")]

    @property
    def groups(self) -> list[VendorGroup]:
        return [VendorGroup.from_dict(group) for group in json.loads(self.vendor_groups or "[]")]

    @property
    def vendor_ids(self) -> list[str]:
        return [group.vendor_id for group in self.groups]

    @property
    def is_local(self) -> bool:
        return self.provenance == OrderProvenance.LOCAL.value

    @property
    def has_active_return(self) -> bool:
        return self.return_status in _ACTIVE_RETURN_STATES

    def group_for(self, vendor_id) -> VendorGroup | None:
        return next((g for g in self.groups if g.vendor_id == str(vendor_id)), None)

    # -------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------
    @classmethod
    def create_local(
        cls,
        order_id,
        items,
        vendor_groups,
        subtotal,
        shipping,
        tax,
        discount,
        total,
        user_id=None,
        shipping_address=None,
        payment_method=None,
        coupon_code=None,
        tracking_number=None,
        estimated_delivery=None,
    ):
        """Create an optimistic, locally composed order.

        Args:
            items: Flat list of ``CartLineItem`` in cart order.
            vendor_groups: ``VendorGroup`` list produced by the composer.
            shipping_address: Dict with name, email, phone, address, city,
                state, zip_code, country (all optional).
        """
        now = datetime.now(UTC)
        order = cls(
            id=order_id,
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            provenance=OrderProvenance.LOCAL.value,
            items=json.dumps([item.to_dict() for item in items]),
            vendor_groups=json.dumps([group.to_dict() for group in vendor_groups]),
            shipping_address=ShippingAddress.from_dict(shipping_address),
            payment_method=payment_method,
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            discount=discount,
            total=total,
            coupon_code=coupon_code,
            tracking_number=tracking_number,
            estimated_delivery=estimated_delivery,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=user_id,
                vendor_ids=json.dumps(order.vendor_ids),
                item_count=len(items),
                subtotal=subtotal,
                total=total,
                tracking_number=tracking_number,
                placed_at=now,
            )
        )
        return order

    @classmethod
    def from_remote(cls, data: dict):
        """Create a backend-authoritative order from a normalized payload."""
        order = cls(
            id=data["id"],
            provenance=OrderProvenance.REMOTE.value,
            **cls._remote_fields(data),
        )
        order.raise_(
            OrderSynced(
                order_id=str(order.id),
                status=order.status,
                total=order.total,
                synced_at=datetime.now(UTC),
            )
        )
        return order

    def sync_from(self, data: dict):
        """Replace this order's state with a fresher normalized backend payload."""
        if self.is_local:
            raise InvalidStateError(f"Order {self.id} was composed locally and cannot be overwritten by the backend")

        with atomic_change(self):
            for name, value in self._remote_fields(data).items():
                setattr(self, name, value)

        self.raise_(
            OrderSynced(
                order_id=str(self.id),
                status=self.status,
                total=self.total,
                synced_at=datetime.now(UTC),
            )
        )

    @staticmethod
    def _remote_fields(data: dict) -> dict:
        return {
            "user_id": data.get("user_id"),
            "status": data.get("status") or OrderStatus.PENDING.value,
            "items": json.dumps(data.get("items") or []),
            "vendor_groups": json.dumps(data.get("vendor_groups") or []),
            "shipping_address": ShippingAddress.from_dict(data.get("shipping_address")),
            "payment_method": data.get("payment_method"),
            "subtotal": data.get("subtotal") or 0.0,
            "shipping": data.get("shipping") or 0.0,
            "tax": data.get("tax") or 0.0,
            "discount": data.get("discount") or 0.0,
            "total": data.get("total") or 0.0,
            "coupon_code": data.get("coupon_code"),
            "tracking_number": data.get("tracking_number"),
            "estimated_delivery": _parse_datetime(data.get("estimated_delivery")),
            "cancellation_reason": data.get("cancellation_reason"),
            "cancelled_at": _parse_datetime(data.get("cancelled_at")),
            "created_at": _parse_datetime(data.get("created_at")),
            "updated_at": datetime.now(UTC),
        }

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateError(
                f"Order {self.id}: cannot transition from {current.value} to {target_status.value}"
            )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def assert_cancellable(self):
        self._assert_can_transition(OrderStatus.CANCELLED)

    def cancel(self, reason=None):
        """Cancel a pending or processing order."""
        self.assert_cancellable()

        previous_status = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = OrderStatus.CANCELLED.value
            self.cancellation_reason = reason
            self.cancelled_at = now
            self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous_status,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------
    def check_return_request(self, reason, vendor_id=None, items=None):
        """Validate a return request and return the vendor it applies to.

        Raises ``InvalidStateError`` when the order is not delivered or
        already has an active return, and ``ValidationError`` for a trivial
        reason or a missing/unknown vendor selection.
        """
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise InvalidStateError(
                f"Order {self.id}: cannot request a return while the order is {self.status}, "
                f"only {OrderStatus.DELIVERED.value} orders can be returned"
            )

        if self.has_active_return:
            raise InvalidStateError(f"Order {self.id}: a return request is already active")

        reason = (reason or "").strip()
        if len(reason) < RETURN_REASON_MIN_LENGTH:
            raise ValidationError({"reason": [f"Return reason must be at least {RETURN_REASON_MIN_LENGTH} characters"]})
        if len(reason) > RETURN_REASON_MAX_LENGTH:
            raise ValidationError({"reason": [f"Return reason must be at most {RETURN_REASON_MAX_LENGTH} characters"]})

        groups = self.groups
        if vendor_id in (None, ""):
            if len(groups) > 1:
                raise ValidationError({"vendor_id": ["Select the vendor to return items from"]})
            vendor_id = groups[0].vendor_id if groups else None
        elif self.group_for(vendor_id) is None:
            raise ValidationError({"vendor_id": [f"Vendor {vendor_id} is not part of order {self.id}"]})

        if items:
            group = self.group_for(vendor_id)
            allowed = {item.product_id for item in group.items} if group else set()
            unknown = [str(product_id) for product_id in items if str(product_id) not in allowed]
            if unknown:
                raise ValidationError({"items": [f"Items {', '.join(unknown)} were not sold by vendor {vendor_id}"]})

        return None if vendor_id is None else str(vendor_id)

    def request_return(self, reason, vendor_id=None, items=None):
        """Record a return request against a delivered order."""
        vendor_id = self.check_return_request(reason, vendor_id=vendor_id, items=items)

        now = datetime.now(UTC)
        returned_items = [str(product_id) for product_id in items or []]
        with atomic_change(self):
            self.return_status = ReturnStatus.REQUESTED.value
            self.return_reason = reason.strip()
            self.return_vendor_id = vendor_id
            self.return_items = json.dumps(returned_items)
            self.return_requested_at = now
            self.updated_at = now

        self.raise_(
            ReturnRequested(
                order_id=str(self.id),
                vendor_id=vendor_id or "",
                reason=reason.strip(),
                items=json.dumps(returned_items),
                requested_at=now,
            )
        )

    def resolve_return(self, new_status, rejection_reason=None) -> bool:
        """Move the active return request along. Returns ``False`` when nothing changed.

        A rejection reason is kept only while the request stays rejected.
        """
        try:
            target = ReturnStatus(new_status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown return status: {new_status}"]}) from exc

        if not self.return_status:
            raise InvalidStateError(f"Order {self.id}: there is no return request to resolve")

        current = ReturnStatus(self.return_status)
        reason = (rejection_reason or "").strip() or None
        if target == current and (target != ReturnStatus.REJECTED or reason in (None, self.return_rejection_reason)):
            return False
        if target != current and target not in _RETURN_TRANSITIONS[current]:
            raise InvalidStateError(
                f"Order {self.id}: cannot move return request from {current.value} to {target.value}"
            )

        previous_order_status = self.status
        order_returned = (
            target in (ReturnStatus.APPROVED, ReturnStatus.COMPLETED)
            and len(self.groups) <= 1
            and self.status not in (OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value)
        )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.return_status = target.value
            self.return_rejection_reason = reason if target == ReturnStatus.REJECTED else None
            self.return_resolved_at = now
            if order_returned:
                self.status = OrderStatus.RETURNED.value
            self.updated_at = now

        self.raise_(
            ReturnResolved(
                order_id=str(self.id),
                vendor_id=self.return_vendor_id or "",
                previous_status=current.value,
                return_status=target.value,
                rejection_reason=self.return_rejection_reason,
                resolved_at=now,
            )
        )
        if order_returned:
            self.raise_(
                OrderStatusChanged(
                    order_id=str(self.id),
                    previous_status=previous_order_status,
                    new_status=OrderStatus.RETURNED.value,
                    changed_at=now,
                )
            )
        return True

    # -------------------------------------------------------------------
    # Trusted status setter
    # -------------------------------------------------------------------
    def update_status(self, new_status):
        """Move the order to ``new_status`` without consulting the transition table.

        Only other modules of this engine call it (fulfilment updates, backend
        sync). The one rule it keeps is that a cancelled order stays cancelled.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from exc

        current = OrderStatus(self.status)
        if target == current:
            return
        if current == OrderStatus.CANCELLED:
            raise InvalidStateError(f"Order {self.id}: cannot transition from cancelled to {target.value}")

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            if target == OrderStatus.CANCELLED:
                self.cancelled_at = now
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Snapshots for durable storage
    # -------------------------------------------------------------------
    def to_snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "status": self.status,
            "provenance": self.provenance,
            "items": json.loads(self.items or "[]"),
            "vendor_groups": json.loads(self.vendor_groups or "[]"),
            "shipping_address": self.shipping_address.to_dict() if self.shipping_address else None,
            "payment_method": self.payment_method,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
            "coupon_code": self.coupon_code,
            "tracking_number": self.tracking_number,
            "estimated_delivery": _isoformat(self.estimated_delivery),
            "cancellation_reason": self.cancellation_reason,
            "cancelled_at": _isoformat(self.cancelled_at),
            "return_status": self.return_status,
            "return_reason": self.return_reason,
            "return_vendor_id": self.return_vendor_id,
            "return_items": json.loads(self.return_items) if self.return_items else None,
            "return_requested_at": _isoformat(self.return_requested_at),
            "return_rejection_reason": self.return_rejection_reason,
            "return_resolved_at": _isoformat(self.return_resolved_at),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    @classmethod
    def from_snapshot(cls, data: dict):
        return cls(
            id=data["id"],
            user_id=data.get("user_id"),
            status=data.get("status") or OrderStatus.PENDING.value,
            provenance=data.get("provenance") or OrderProvenance.LOCAL.value,
            items=json.dumps(data.get("items") or []),
            vendor_groups=json.dumps(data.get("vendor_groups") or []),
            shipping_address=ShippingAddress.from_dict(data.get("shipping_address")),
            payment_method=data.get("payment_method"),
            subtotal=data.get("subtotal", 0.0),
            shipping=data.get("shipping", 0.0),
            tax=data.get("tax", 0.0),
            discount=data.get("discount", 0.0),
            total=data.get("total", 0.0),
            coupon_code=data.get("coupon_code"),
            tracking_number=data.get("tracking_number"),
            estimated_delivery=_parse_datetime(data.get("estimated_delivery")),
            cancellation_reason=data.get("cancellation_reason"),
            cancelled_at=_parse_datetime(data.get("cancelled_at")),
            return_status=data.get("return_status"),
            return_reason=data.get("return_reason"),
            return_vendor_id=data.get("return_vendor_id"),
            return_items=json.dumps(data["return_items"]) if data.get("return_items") is not None else None,
            return_requested_at=_parse_datetime(data.get("return_requested_at")),
            return_rejection_reason=data.get("return_rejection_reason"),
            return_resolved_at=_parse_datetime(data.get("return_resolved_at")),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


def _isoformat(value):
    return value.isoformat() if value else None


def _parse_datetime(value):
    if not value or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
