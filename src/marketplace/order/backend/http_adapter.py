"""HTTP order backend adapter (httpx).

Talks to the storefront REST API. Responses are wrapped as
``{"success": ..., "data": ..., "message": ...}``; the adapter unwraps
``data`` and turns every transport or HTTP error into ``RemoteFailure``,
preferring the message the server sent.
"""

import os

import httpx

from marketplace.domain import logger
from marketplace.exceptions import RemoteFailure
from marketplace.order.backend.port import OrderBackend

DEFAULT_TIMEOUT = 30.0


class HttpOrderBackend(OrderBackend):
    """Order backend reached over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or os.environ.get("ORDER_BACKEND_URL", "http://localhost:5000/api")).rstrip("/")
        self.token = token if token is not None else os.environ.get("ORDER_BACKEND_TOKEN")
        self.timeout = timeout
        self.transport = transport

    def _headers(self, extra: dict | None = None) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
        headers: dict | None = None,
        failure_message: str,
    ):
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(method, path, json=json, params=params, headers=self._headers(headers))
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                message = _server_message(exc.response) or failure_message
                logger.warning(
                    "order_backend_http_error",
                    method=method,
                    path=path,
                    status_code=exc.response.status_code,
                    message=message,
                )
                raise RemoteFailure(message, status_code=exc.response.status_code) from exc
            except httpx.RequestError as exc:
                logger.warning("order_backend_unreachable", method=method, path=path, error=str(exc))
                raise RemoteFailure(failure_message) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteFailure(failure_message, status_code=response.status_code) from exc

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def create_order(self, payload: dict, idempotency_key: str) -> dict:
        data = await self._request(
            "POST",
            "/user/orders",
            json=payload,
            headers={"x-idempotency-key": idempotency_key},
            failure_message="Failed to create order",
        )
        return data if isinstance(data, dict) else {}

    async def fetch_order(self, order_id: str) -> dict:
        data = await self._request("GET", f"/user/orders/{order_id}", failure_message="Failed to fetch order")
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            return data["order"]
        return data if isinstance(data, dict) else {}

    async def list_orders(self, page: int = 1, limit: int = 20) -> list[dict]:
        data = await self._request(
            "GET",
            "/user/orders",
            params={"page": page, "limit": limit},
            failure_message="Failed to fetch orders",
        )
        if isinstance(data, dict):
            data = data.get("orders")
        return [order for order in data or [] if isinstance(order, dict)]

    async def track_order(self, order_id: str) -> dict:
        data = await self._request("GET", f"/orders/track/{order_id}", failure_message="Failed to track order")
        return data if isinstance(data, dict) else {}

    async def cancel_order(self, order_id: str, reason: str) -> dict:
        data = await self._request(
            "PATCH",
            f"/user/orders/{order_id}/cancel",
            json={"reason": reason},
            failure_message="Failed to cancel order",
        )
        return data if isinstance(data, dict) else {}

    async def request_return(self, order_id: str, body: dict) -> dict:
        data = await self._request(
            "POST",
            f"/user/orders/{order_id}/returns",
            json=body,
            failure_message="Failed to submit return request",
        )
        return data if isinstance(data, dict) else {}


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None
