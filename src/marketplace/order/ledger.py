"""Order ledger — the storefront's view of every order it knows about.

Local orders (carts whose products are not yet in the shared catalogue) are
composed here through ``PlaceLocalOrder``. Everything else is created on the
order backend and cached after a read. Either way the ledger holds one entry
per order id, kept in the Order repository and checkpointed to the ledger
storage after every change so a restarted process can ``rehydrate()``.

Methods that may touch the network are coroutines. Failures from the backend
surface as ``RemoteFailure`` and leave the ledger unchanged.
"""

import asyncio
import json
import re

from protean.exceptions import InvalidStateError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.commission.ledger import SettlementLedger
from marketplace.domain import logger, marketplace
from marketplace.exceptions import RemoteFailure
from marketplace.order.backend import OrderBackend, get_order_backend
from marketplace.order.cancellation import CancelOrder
from marketplace.order.normalization import normalize_order, normalize_tracking_order
from marketplace.order.order import CartLineItem, Order, VendorGroup
from marketplace.order.placement import PlaceLocalOrder
from marketplace.order.returns import RequestReturn, ResolveReturn
from marketplace.order.status import UpdateOrderStatus
from marketplace.order.sync import SyncRemoteOrder
from marketplace.storage import LedgerStorage, get_ledger_storage

DEFAULT_CANCELLATION_REASON = getattr(marketplace, "DEFAULT_CANCELLATION_REASON", "Cancelled by customer")
DEFAULT_SHIPPING_OPTION = "standard"
ORDERS_KEY = "orders"

_BACKEND_ID = re.compile(r"^[a-fA-F0-9]{24}$")


def is_backend_product_id(value) -> bool:
    """True for ids minted by the backend catalogue (24 hex characters)."""
    return bool(_BACKEND_ID.match(str(value or "")))


def _item_product_id(item: dict):
    return item.get("id") or item.get("product_id") or item.get("productId") or item.get("_id")


def _js_number(value):
    # Integral floats serialize without a trailing ".0", as the storefront client does
    value = float(value)
    return int(value) if value.is_integer() else value


def _string_hash(text: str) -> int:
    """32-bit signed rolling hash over UTF-16 code units (``h * 31 + c``)."""
    value = 0
    encoded = text.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        code = encoded[index] | (encoded[index + 1] << 8)
        value = ((value << 5) - value + code) & 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def build_idempotency_key(payload: dict, user_id=None) -> str:
    """Stable key for one checkout attempt, so a retried POST creates one order."""
    base = json.dumps(
        {
            "userId": user_id or None,
            "items": payload.get("items") or [],
            "shippingAddress": payload.get("shippingAddress") or {},
            "paymentMethod": payload.get("paymentMethod") or "",
            "couponCode": payload.get("couponCode") or "",
            "shippingOption": payload.get("shippingOption") or DEFAULT_SHIPPING_OPTION,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return f"ord-{abs(_string_hash(base))}-{len(payload.get('items') or [])}"


def build_create_payload(order_data: dict) -> dict:
    """The backend's create-order body for a checkout."""
    items = []
    for item in order_data.get("items") or []:
        line_item = CartLineItem.from_dict(item)
        line = {
            "productId": line_item.product_id,
            "quantity": line_item.quantity,
            "price": _js_number(line_item.price),
        }
        if line_item.variant:
            line["variant"] = line_item.variant
        items.append(line)

    payload = {
        "items": items,
        "shippingAddress": order_data.get("shipping_address") or order_data.get("shippingAddress"),
        "paymentMethod": order_data.get("payment_method") or order_data.get("paymentMethod"),
    }
    coupon_code = order_data.get("coupon_code") or order_data.get("couponCode")
    if coupon_code:
        payload["couponCode"] = coupon_code
    payload["shippingOption"] = (
        order_data.get("shipping_option") or order_data.get("shippingOption") or DEFAULT_SHIPPING_OPTION
    )
    return payload


class OrderLedger:
    """Creates, caches, reconciles and transitions orders."""

    def __init__(self, backend: OrderBackend | None = None, storage: LedgerStorage | None = None) -> None:
        self._backend = backend
        self._storage = storage
        self._in_flight: dict[str, asyncio.Future] = {}

    @property
    def backend(self) -> OrderBackend:
        return self._backend or get_order_backend()

    @property
    def storage(self) -> LedgerStorage:
        return self._storage or get_ledger_storage()

    @property
    def _repo(self):
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    async def create(self, order_data: dict) -> Order:
        """Create an order from a checkout.

        ``order_data`` carries ``items`` (cart line dicts), ``user_id``,
        ``shipping_address``, ``payment_method``, ``shipping``, ``tax``,
        ``discount``, ``coupon_code`` and ``shipping_option``.
        """
        items = order_data.get("items") or []
        if not items:
            raise ValidationError({"items": ["Your cart is empty."]})

        if all(is_backend_product_id(_item_product_id(item)) for item in items):
            order = await self._create_remote(order_data)
        else:
            order = self._create_local(order_data, items)

        self.checkpoint()
        return order

    def _create_local(self, order_data: dict, items: list) -> Order:
        order_id = current_domain.process(
            PlaceLocalOrder(
                user_id=order_data.get("user_id") or order_data.get("userId"),
                items=json.dumps(items),
                shipping_address=json.dumps(
                    order_data.get("shipping_address") or order_data.get("shippingAddress") or {}
                ),
                payment_method=order_data.get("payment_method") or order_data.get("paymentMethod"),
                shipping=float(order_data.get("shipping") or 0.0),
                tax=float(order_data.get("tax") or 0.0),
                discount=float(order_data.get("discount") or 0.0),
                coupon_code=order_data.get("coupon_code") or order_data.get("couponCode"),
            ),
            asynchronous=False,
        )
        SettlementLedger(storage=self._storage).checkpoint()
        return self._repo.get(order_id)

    async def _create_remote(self, order_data: dict) -> Order:
        payload = build_create_payload(order_data)
        user_id = order_data.get("user_id") or order_data.get("userId")
        idempotency_key = build_idempotency_key(payload, user_id)

        response = await self.backend.create_order(payload, idempotency_key)
        created_id = (response or {}).get("orderId")
        if not created_id:
            raise RemoteFailure("Invalid order creation response from server.")

        try:
            order = await self.fetch_by_id(str(created_id))
        except (RemoteFailure, ObjectNotFoundError) as exc:
            raise RemoteFailure("Order created but could not be fetched. Please check your orders.") from exc

        logger.info("remote_order_created", order_id=str(order.id), idempotency_key=idempotency_key)
        return order

    # -------------------------------------------------------------------
    # Reads and reconciliation
    # -------------------------------------------------------------------
    async def fetch_by_id(self, order_id) -> Order:
        """Cached order, or a single backend read shared by concurrent callers."""
        order_id = str(order_id)
        cached = self._repo.get_or_none(order_id)
        if cached is not None:
            return cached

        pending = self._in_flight.get(order_id)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch_remote(order_id))
            self._in_flight[order_id] = pending
            pending.add_done_callback(lambda _: self._in_flight.pop(order_id, None))
        return await asyncio.shield(pending)

    async def _fetch_remote(self, order_id: str) -> Order:
        try:
            document = await self.backend.fetch_order(order_id)
        except RemoteFailure as exc:
            if exc.status_code == 404:
                raise ObjectNotFoundError(f"Order {order_id} not found") from exc
            raise

        data = normalize_order(document)
        data["id"] = data["id"] or order_id
        order = self._sync(data)
        self.checkpoint()
        return order

    def _sync(self, data: dict) -> Order:
        order_id = current_domain.process(SyncRemoteOrder(document=json.dumps(data)), asynchronous=False)
        return self._repo.get(order_id)

    async def fetch_user_orders(self, page: int = 1, limit: int = 20) -> list[Order]:
        """Pull one page of the signed-in user's orders from the backend and reconcile them."""
        documents = await self.backend.list_orders(page=page, limit=limit)

        orders = []
        for document in documents:
            data = normalize_order(document)
            if not data["id"]:
                logger.warning("remote_order_without_id", page=page)
                continue
            orders.append(self._reconcile(data))

        self.checkpoint()
        return orders

    def _reconcile(self, data: dict) -> Order:
        existing = self._repo.get_or_none(data["id"])
        if existing is not None and existing.is_local:
            # Local orders are never overwritten by what the backend reports
            return existing
        return self._sync(data)

    async def track(self, order_id) -> Order:
        """Public tracking view: cached order, else the backend's reduced tracking record."""
        order_id = str(order_id)
        cached = self._repo.get_or_none(order_id)
        if cached is not None:
            return cached

        try:
            document = await self.backend.track_order(order_id)
        except RemoteFailure as exc:
            if exc.status_code == 404:
                raise ObjectNotFoundError(f"Order {order_id} not found") from exc
            raise

        data = normalize_tracking_order(document)
        data["id"] = data["id"] or order_id
        order = self._sync(data)
        self.checkpoint()
        return order

    def get(self, order_id) -> Order:
        """Order from the ledger; ``ObjectNotFoundError`` when unknown."""
        return self._repo.get(str(order_id))

    def all_orders(self) -> list[Order]:
        orders = self._repo._dao.query.limit(None).all().items
        return sorted(orders, key=lambda o: o.created_at.timestamp() if o.created_at else 0.0, reverse=True)

    def orders_for_user(self, user_id=None) -> list[Order]:
        """A user's orders; ``None`` selects guest orders."""
        if user_id is None:
            return [order for order in self.all_orders() if order.user_id is None]
        return [order for order in self.all_orders() if str(order.user_id) == str(user_id)]

    def vendor_orders(self, vendor_id) -> list[Order]:
        return [order for order in self.all_orders() if str(vendor_id) in order.vendor_ids]

    def vendor_order_items(self, order_id, vendor_id) -> VendorGroup | None:
        """The vendor's slice of one order, or ``None``."""
        order = self._repo.get_or_none(str(order_id))
        return order.group_for(vendor_id) if order is not None else None

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    async def cancel(self, order_id, reason: str | None = None) -> Order:
        """Cancel a pending or processing order.

        Backend orders are cancelled remotely first; when that call fails the
        local entry is left as it was.
        """
        reason = reason or DEFAULT_CANCELLATION_REASON
        order = self.get(order_id)
        order.assert_cancellable()

        if not order.is_local:
            await self.backend.cancel_order(str(order.id), reason)

        current_domain.process(CancelOrder(order_id=str(order.id), reason=reason), asynchronous=False)
        self.checkpoint()

        logger.info("order_cancelled", order_id=str(order.id), provenance=order.provenance)
        return self.get(order.id)

    async def request_return(self, order_id, reason, vendor_id=None, items=None) -> Order:
        """File a return for a delivered order, scoped to one vendor's items."""
        order = self.get(order_id)
        resolved_vendor_id = order.check_return_request(reason, vendor_id=vendor_id, items=items)

        if not order.is_local:
            body = {"reason": reason.strip(), "vendorId": resolved_vendor_id}
            if items:
                group = order.group_for(resolved_vendor_id)
                quantities = {item.product_id: item.quantity for item in group.items} if group else {}
                body["items"] = [
                    {"productId": str(product_id), "quantity": quantities.get(str(product_id), 1)}
                    for product_id in items
                ]
            await self.backend.request_return(str(order.id), body)

        current_domain.process(
            RequestReturn(
                order_id=str(order.id),
                reason=reason,
                vendor_id=resolved_vendor_id,
                items=json.dumps([str(product_id) for product_id in items]) if items else None,
            ),
            asynchronous=False,
        )
        self.checkpoint()

        logger.info("order_return_requested", order_id=str(order.id), vendor_id=resolved_vendor_id)
        return self.get(order.id)

    def resolve_return(self, order_id, status, rejection_reason=None) -> Order:
        """Approve, reject, process or complete the order's return request.

        Only local orders are resolved here; the backend resolves its own
        returns and they arrive with the next sync.
        """
        order = self.get(order_id)
        if not order.is_local:
            raise InvalidStateError(f"Order {order.id}: returns on backend orders are resolved by the order backend")

        current_domain.process(
            ResolveReturn(order_id=str(order.id), status=str(status), rejection_reason=rejection_reason),
            asynchronous=False,
        )
        self.checkpoint()
        SettlementLedger(storage=self._storage).checkpoint()

        logger.info("order_return_resolved", order_id=str(order.id), return_status=str(status))
        return self.get(order.id)

    def update_status(self, order_id, status) -> Order:
        """Trusted status change, for fulfilment and other internal callers."""
        current_domain.process(UpdateOrderStatus(order_id=str(order_id), status=str(status)), asynchronous=False)
        self.checkpoint()
        return self.get(order_id)

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def checkpoint(self) -> None:
        self.storage.save(ORDERS_KEY, [order.to_snapshot() for order in self.all_orders()])

    def rehydrate(self) -> int:
        """Reload the ledger from its last checkpoint. Returns the number of orders loaded."""
        records = self.storage.load(ORDERS_KEY)
        repo = self._repo
        repo._dao.delete_all()
        for record in records:
            repo.add(Order.from_snapshot(record))

        logger.info("order_ledger_rehydrated", orders=len(records))
        return len(records)

    def reset(self) -> None:
        """Forget every order, in memory and in storage."""
        self._repo._dao.delete_all()
        self._in_flight.clear()
        self.storage.save(ORDERS_KEY, [])
