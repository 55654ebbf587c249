"""Integration tests for the HTTP order backend, against an httpx mock transport."""

import json

import httpx
import pytest

from marketplace.exceptions import RemoteFailure
from marketplace.order.backend.http_adapter import HttpOrderBackend


class _Recorder:
    """Records requests and answers each with the next queued response."""

    def __init__(self, *responses):
        self.requests: list[httpx.Request] = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _backend(recorder, token="secret-token"):
    return HttpOrderBackend(base_url="http://shop.test/api/", token=token, transport=httpx.MockTransport(recorder))


def _ok(data, status_code=200):
    return httpx.Response(status_code, json={"success": True, "data": data})


class TestCreateOrder:
    async def test_posts_payload_with_idempotency_key(self):
        recorder = _Recorder(_ok({"orderId": "abc"}, status_code=201))
        payload = {"items": [{"productId": "p", "quantity": 1, "price": 10}], "shippingOption": "standard"}

        result = await _backend(recorder).create_order(payload, "ord-123-1")

        assert result == {"orderId": "abc"}
        (request,) = recorder.requests
        assert request.method == "POST"
        assert str(request.url) == "http://shop.test/api/user/orders"
        assert request.headers["x-idempotency-key"] == "ord-123-1"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == payload

    async def test_no_token_no_authorization_header(self):
        recorder = _Recorder(_ok({"orderId": "abc"}))
        await _backend(recorder, token="").create_order({"items": []}, "k")
        assert "Authorization" not in recorder.requests[0].headers

    async def test_server_message_is_surfaced(self):
        recorder = _Recorder(httpx.Response(400, json={"success": False, "message": "Coupon expired"}))
        with pytest.raises(RemoteFailure) as exc:
            await _backend(recorder).create_order({"items": []}, "k")
        assert exc.value.message == "Coupon expired"
        assert exc.value.status_code == 400

    async def test_generic_message_without_server_message(self):
        recorder = _Recorder(httpx.Response(500, text="<html>oops</html>"))
        with pytest.raises(RemoteFailure, match="Failed to create order") as exc:
            await _backend(recorder).create_order({"items": []}, "k")
        assert exc.value.status_code == 500

    async def test_network_error(self):
        recorder = _Recorder(httpx.ConnectError("connection refused"))
        with pytest.raises(RemoteFailure, match="Failed to create order") as exc:
            await _backend(recorder).create_order({"items": []}, "k")
        assert exc.value.status_code is None


class TestReads:
    async def test_fetch_order_unwraps_order(self):
        recorder = _Recorder(_ok({"order": {"_id": "abc", "status": "pending"}}))
        assert await _backend(recorder).fetch_order("abc") == {"_id": "abc", "status": "pending"}
        assert recorder.requests[0].url.path == "/api/user/orders/abc"

    async def test_fetch_order_plain_data(self):
        recorder = _Recorder(_ok({"_id": "abc"}))
        assert await _backend(recorder).fetch_order("abc") == {"_id": "abc"}

    async def test_fetch_missing_order(self):
        recorder = _Recorder(httpx.Response(404, json={"success": False, "message": "Order not found"}))
        with pytest.raises(RemoteFailure) as exc:
            await _backend(recorder).fetch_order("abc")
        assert exc.value.status_code == 404

    async def test_list_orders(self):
        recorder = _Recorder(_ok({"orders": [{"_id": "a"}, "junk", {"_id": "b"}], "total": 2}))
        orders = await _backend(recorder).list_orders(page=2, limit=5)

        assert orders == [{"_id": "a"}, {"_id": "b"}]
        assert dict(recorder.requests[0].url.params) == {"page": "2", "limit": "5"}

    async def test_track_order(self):
        recorder = _Recorder(_ok({"orderId": "abc", "status": "shipped"}))
        assert (await _backend(recorder).track_order("abc"))["status"] == "shipped"
        assert recorder.requests[0].url.path == "/api/orders/track/abc"


class TestWrites:
    async def test_cancel_order(self):
        recorder = _Recorder(_ok({"_id": "abc", "status": "cancelled"}))
        await _backend(recorder).cancel_order("abc", "Ordered twice")

        (request,) = recorder.requests
        assert request.method == "PATCH"
        assert request.url.path == "/api/user/orders/abc/cancel"
        assert json.loads(request.content) == {"reason": "Ordered twice"}

    async def test_request_return(self):
        recorder = _Recorder(_ok({"returnId": "r1"}, status_code=201))
        body = {"reason": "Arrived damaged", "vendorId": "A", "items": [{"productId": "p", "quantity": 1}]}
        await _backend(recorder).request_return("abc", body)

        (request,) = recorder.requests
        assert request.url.path == "/api/user/orders/abc/returns"
        assert json.loads(request.content) == body

    async def test_cancel_rejected(self):
        recorder = _Recorder(httpx.Response(400, json={"message": "Order has already shipped"}))
        with pytest.raises(RemoteFailure, match="Order has already shipped"):
            await _backend(recorder).cancel_order("abc", "Too late")
