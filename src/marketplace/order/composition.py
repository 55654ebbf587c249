"""Cart to order composition.

Partitions a flat cart into vendor groups and spreads the order-level charges
across them:

- shipping is split evenly between the groups, regardless of their size
- tax and discount are prorated by each group's share of the subtotal

The asymmetry mirrors how the storefront has always billed multi-vendor
orders. A cart whose subtotal is zero gets no tax or discount share at all.
"""

import random
import string
import time
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError

from marketplace.domain import logger, marketplace
from marketplace.order.order import CartLineItem, Order, VendorGroup

ESTIMATED_DELIVERY_DAYS = int(getattr(marketplace, "ESTIMATED_DELIVERY_DAYS", 5))

_BASE36 = string.digits + string.ascii_uppercase


def generate_order_id() -> str:
    """Local order id: ``ORD-<epoch ms>-<4 base36 chars>``."""
    suffix = "".join(random.choices(_BASE36, k=4))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def generate_tracking_number() -> str:
    return "TRK-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=10))


def partition_by_vendor(items: list[CartLineItem]) -> list[VendorGroup]:
    """Group line items by vendor id, keeping first-seen vendor order."""
    partitions: dict[str, list[CartLineItem]] = {}
    names: dict[str, str] = {}
    for item in items:
        partitions.setdefault(item.vendor_id, []).append(item)
        names.setdefault(item.vendor_id, item.vendor_name)

    return [
        VendorGroup(
            vendor_id=vendor_id,
            vendor_name=names[vendor_id],
            items=tuple(group_items),
            subtotal=sum(item.price * item.quantity for item in group_items),
        )
        for vendor_id, group_items in partitions.items()
    ]


def prorate_charges(groups: list[VendorGroup], shipping: float, tax: float, discount: float) -> list[VendorGroup]:
    """Attach each group's share of shipping, tax and discount."""
    if not groups:
        return []

    total_subtotal = sum(group.subtotal for group in groups)
    shipping_share = shipping / len(groups)

    prorated = []
    for group in groups:
        share = group.subtotal / total_subtotal if total_subtotal else 0.0
        prorated.append(
            VendorGroup(
                vendor_id=group.vendor_id,
                vendor_name=group.vendor_name,
                items=group.items,
                subtotal=group.subtotal,
                shipping=shipping_share,
                tax=tax * share,
                discount=discount * share,
            )
        )
    return prorated


def compose_order(
    items,
    shipping=0.0,
    tax=0.0,
    discount=0.0,
    user_id=None,
    shipping_address=None,
    payment_method=None,
    coupon_code=None,
    order_id=None,
) -> Order:
    """Turn a flat cart into a local ``Order`` with prorated vendor groups.

    Args:
        items: ``CartLineItem`` instances or item dicts, in cart order.
        shipping, tax, discount: Order-level charges to spread over vendors.
    """
    lines = [item if isinstance(item, CartLineItem) else CartLineItem.from_dict(item) for item in items or []]
    if not lines:
        raise ValidationError({"items": ["Your cart is empty."]})

    shipping = float(shipping or 0.0)
    tax = float(tax or 0.0)
    discount = float(discount or 0.0)

    groups = prorate_charges(partition_by_vendor(lines), shipping, tax, discount)
    subtotal = sum(group.subtotal for group in groups)
    total = subtotal + shipping + tax - discount

    order = Order.create_local(
        order_id=order_id or generate_order_id(),
        items=lines,
        vendor_groups=groups,
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=discount,
        total=total,
        user_id=user_id,
        shipping_address=shipping_address,
        payment_method=payment_method,
        coupon_code=coupon_code,
        tracking_number=generate_tracking_number(),
        estimated_delivery=datetime.now(UTC) + timedelta(days=ESTIMATED_DELIVERY_DAYS),
    )
    logger.debug(
        "order_composed",
        order_id=str(order.id),
        vendor_groups=len(groups),
        subtotal=subtotal,
        total=total,
    )
    return order
