"""In-process fake order backend for development and testing.

Stores created orders in memory and serves them back in the backend's wire
shape (camelCase, ``_id``). It can be told to fail, or to answer a create
without an ``orderId``, to exercise the ledger's error paths.
"""

import random
import string
from datetime import UTC, datetime

from marketplace.exceptions import RemoteFailure
from marketplace.order.backend.port import OrderBackend


def _object_id() -> str:
    return "".join(random.choices("0123456789abcdef", k=24))


class FakeOrderBackend(OrderBackend):
    """Configurable fake order backend."""

    def __init__(self) -> None:
        self.orders: dict[str, dict] = {}
        self.calls: list[dict] = []
        self.should_succeed: bool = True
        self.failure_message: str = "Order service unavailable"
        self.failure_status: int = 503
        self.omit_order_id: bool = False

    def configure(
        self,
        should_succeed: bool,
        failure_message: str = "Order service unavailable",
        failure_status: int = 503,
    ) -> None:
        """Configure backend behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_message = failure_message
        self.failure_status = failure_status

    def seed(self, document: dict) -> dict:
        """Put an order document straight into the backend."""
        order_id = str(document.get("_id") or _object_id())
        self.orders[order_id] = {**document, "_id": order_id}
        return self.orders[order_id]

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if not self.should_succeed:
            raise RemoteFailure(self.failure_message, status_code=self.failure_status)

    def _lookup(self, order_id: str) -> dict:
        document = self.orders.get(order_id)
        if document is None:
            raise RemoteFailure("Order not found", status_code=404)
        return document

    async def create_order(self, payload: dict, idempotency_key: str) -> dict:
        self._record("create_order", payload=payload, idempotency_key=idempotency_key)

        for document in self.orders.values():
            if document.get("idempotencyKey") == idempotency_key:
                return {"orderId": document["_id"]}

        subtotal = sum(item["price"] * item["quantity"] for item in payload["items"])
        order_id = _object_id()
        self.orders[order_id] = {
            "_id": order_id,
            "userId": payload.get("userId"),
            "status": "pending",
            "items": [dict(item) for item in payload["items"]],
            "shippingAddress": payload.get("shippingAddress"),
            "paymentMethod": payload.get("paymentMethod"),
            "couponCode": payload.get("couponCode"),
            "shippingOption": payload.get("shippingOption"),
            "subtotal": subtotal,
            "shipping": 0,
            "tax": 0,
            "discount": 0,
            "total": subtotal,
            "trackingNumber": "TRK" + "".join(random.choices(string.digits, k=10)),
            "createdAt": datetime.now(UTC).isoformat(),
            "idempotencyKey": idempotency_key,
        }
        if self.omit_order_id:
            return {}
        return {"orderId": order_id}

    async def fetch_order(self, order_id: str) -> dict:
        self._record("fetch_order", order_id=order_id)
        return dict(self._lookup(order_id))

    async def list_orders(self, page: int = 1, limit: int = 20) -> list[dict]:
        self._record("list_orders", page=page, limit=limit)
        documents = sorted(self.orders.values(), key=lambda d: d.get("createdAt") or "", reverse=True)
        start = (page - 1) * limit
        return [dict(d) for d in documents[start : start + limit]]

    async def track_order(self, order_id: str) -> dict:
        self._record("track_order", order_id=order_id)
        document = self._lookup(order_id)
        return {
            "orderId": document["_id"],
            "status": document.get("status"),
            "trackingNumber": document.get("trackingNumber"),
            "total": document.get("total"),
            "createdAt": document.get("createdAt"),
        }

    async def cancel_order(self, order_id: str, reason: str) -> dict:
        self._record("cancel_order", order_id=order_id, reason=reason)
        document = self._lookup(order_id)
        document["status"] = "cancelled"
        document["cancellationReason"] = reason
        document["cancelledAt"] = datetime.now(UTC).isoformat()
        return dict(document)

    async def request_return(self, order_id: str, body: dict) -> dict:
        self._record("request_return", order_id=order_id, body=body)
        document = self._lookup(order_id)
        document.setdefault("returns", []).append(dict(body))
        return {"orderId": order_id, "status": "requested"}
