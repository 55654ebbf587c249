"""Normalization of order payloads coming back from the order backend.

The backend speaks MongoDB-flavoured JSON: ids arrive as ``_id``, ``orderId``
or ``id``; references are either flat ids or populated objects
(``{"_id": ..., "storeName": ...}``); timestamps are ``createdAt``. Everything
is folded into the snake_case shape ``Order.from_remote`` expects, keeping
values JSON-serializable so the result can travel inside a command.
"""

from datetime import UTC, datetime
from typing import Any

from marketplace.order.order import DEFAULT_VENDOR_ID, DEFAULT_VENDOR_NAME


def ref_id(value: Any) -> str | None:
    """The id behind a flat or populated reference."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        inner = value.get("_id") or value.get("id")
        return str(inner) if inner else None
    return str(value)


def _ref_name(value: Any, *keys: str) -> str | None:
    if isinstance(value, dict):
        for key in keys:
            if value.get(key):
                return str(value[key])
    return None


def _number(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _timestamp(value: Any) -> str | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def normalize_item(item: dict, vendor_id: str | None = None, vendor_name: str | None = None) -> dict:
    product = item.get("productId")
    vendor = item.get("vendorId", item.get("vendor_id"))
    product_id = item.get("id") or ref_id(product) or item.get("product_id") or ref_id(item.get("_id"))

    return {
        "product_id": str(product_id) if product_id else "",
        "price": max(_number(item.get("price")), 0.0),
        "quantity": max(int(_number(item.get("quantity"), 1)), 1),
        "vendor_id": ref_id(vendor) or vendor_id or DEFAULT_VENDOR_ID,
        "vendor_name": (
            item.get("vendorName")
            or item.get("vendor_name")
            or _ref_name(vendor, "storeName", "name")
            or vendor_name
            or DEFAULT_VENDOR_NAME
        ),
        "variant": item.get("variant") if isinstance(item.get("variant"), dict) else None,
        "name": item.get("name") or _ref_name(product, "name", "title"),
        "image": item.get("image") or _ref_name(product, "image", "thumbnail"),
    }


def normalize_vendor_group(group: dict) -> dict:
    vendor = group.get("vendorId", group.get("vendor_id"))
    vendor_id = ref_id(vendor) or DEFAULT_VENDOR_ID
    vendor_name = (
        group.get("vendorName")
        or group.get("vendor_name")
        or _ref_name(vendor, "storeName", "name")
        or DEFAULT_VENDOR_NAME
    )
    items = [
        normalize_item(item, vendor_id, vendor_name) for item in group.get("items") or [] if isinstance(item, dict)
    ]

    return {
        "vendor_id": vendor_id,
        "vendor_name": vendor_name,
        # Remote groups keep their own subtotal; items only stand in when it is missing
        "items": [{**item, "vendor_id": vendor_id} for item in items],
        "subtotal": _number(group.get("subtotal"), sum(i["price"] * i["quantity"] for i in items)),
        "shipping": _number(group.get("shipping")),
        "tax": _number(group.get("tax")),
        "discount": _number(group.get("discount")),
    }


def normalize_address(address: Any) -> dict | None:
    if not isinstance(address, dict) or not address:
        return None
    return {
        "name": address.get("name"),
        "email": address.get("email"),
        "phone": address.get("phone"),
        "address": address.get("address") or address.get("street"),
        "city": address.get("city"),
        "state": address.get("state"),
        "zip_code": address.get("zipCode") or address.get("zip_code") or address.get("postal_code"),
        "country": address.get("country"),
    }


def normalize_order(payload: dict) -> dict:
    """Canonical order dict from a backend order document."""
    order_id = payload.get("id") or payload.get("orderId") or payload.get("_id")
    groups = payload.get("vendorItems", payload.get("vendor_groups")) or []
    items = payload.get("items") or []

    return {
        "id": str(order_id) if order_id else None,
        "user_id": ref_id(payload.get("userId", payload.get("user_id"))),
        "status": str(payload.get("status") or "pending").strip().lower(),
        "items": [normalize_item(item) for item in items if isinstance(item, dict)],
        "vendor_groups": [normalize_vendor_group(group) for group in groups if isinstance(group, dict)],
        "shipping_address": normalize_address(payload.get("shippingAddress", payload.get("shipping_address"))),
        "payment_method": payload.get("paymentMethod") or payload.get("payment_method"),
        "subtotal": _number(payload.get("subtotal")),
        "shipping": _number(payload.get("shipping")),
        "tax": _number(payload.get("tax")),
        "discount": _number(payload.get("discount")),
        "total": _number(payload.get("total")),
        "coupon_code": payload.get("couponCode") or payload.get("coupon_code"),
        "tracking_number": payload.get("trackingNumber") or payload.get("tracking_number"),
        "estimated_delivery": _timestamp(payload.get("estimatedDelivery") or payload.get("estimated_delivery")),
        "cancellation_reason": payload.get("cancellationReason") or payload.get("cancellation_reason"),
        "cancelled_at": _timestamp(payload.get("cancelledAt") or payload.get("cancelled_at")),
        "created_at": _timestamp(payload.get("createdAt") or payload.get("date") or payload.get("created_at"))
        or datetime.now(UTC).isoformat(),
    }


def normalize_tracking_order(payload: dict) -> dict:
    """Public tracking responses carry no line items or vendor groups."""
    return normalize_order(
        {
            **payload,
            "id": payload.get("orderId") or payload.get("_id") or payload.get("id"),
            "items": [],
            "vendorItems": [],
        }
    )
