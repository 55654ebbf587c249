"""Integration tests for the commission and variant API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from marketplace.api import commission_router, order_router, variant_router
from marketplace.api.errors import register_marketplace_exception_handlers


@pytest.fixture()
def client(vendors, backend, storage):
    app = FastAPI()
    register_marketplace_exception_handlers(app)
    app.include_router(order_router)
    app.include_router(commission_router)
    app.include_router(variant_router)
    return TestClient(app)


def _place_order(client):
    response = client.post(
        "/orders",
        json={
            "items": [
                {"id": "P1", "price": 100, "quantity": 1, "vendor_id": "A", "vendor_name": "Acme Apparel"},
                {"id": "P2", "price": 40, "quantity": 1, "vendor_id": "B", "vendor_name": "Bolt Gear"},
            ],
            "user_id": "user-api-002",
        },
    )
    assert response.status_code == 201
    return response.json()


def _commission_for(client, vendor_id):
    (commission,) = client.get(f"/commissions/vendors/{vendor_id}").json()
    return commission


class TestCommissions:
    def test_order_records_pending_commissions(self, client):
        _place_order(client)

        pending = client.get("/commissions/pending").json()
        assert sorted(c["vendor_id"] for c in pending) == ["A", "B"]

        commission = _commission_for(client, "A")
        assert commission["commission"] == 10.0
        assert commission["vendor_earnings"] == 90.0
        assert commission["status"] == "pending"

    def test_get_commission(self, client):
        _place_order(client)
        commission = _commission_for(client, "B")

        response = client.get(f"/commissions/{commission['id']}")
        assert response.status_code == 200
        assert response.json()["commission"] == 6.0

    def test_get_unknown_commission(self, client):
        assert client.get("/commissions/COMM-missing").status_code == 404

    def test_pay_commission(self, client):
        _place_order(client)
        commission = _commission_for(client, "A")

        response = client.post(
            f"/commissions/{commission['id']}/pay", json={"payment_method": "paypal", "transaction_id": "TX-1"}
        )
        assert response.status_code == 200
        settlement = response.json()
        assert settlement["amount"] == 90.0
        assert settlement["payment_method"] == "paypal"

        again = client.post(f"/commissions/{commission['id']}/pay", json={})
        assert again.json()["id"] == settlement["id"]

        assert [s["id"] for s in client.get("/commissions/vendors/A/settlements").json()] == [settlement["id"]]
        assert client.get("/commissions/vendors/A", params={"status": "paid"}).json()[0]["id"] == commission["id"]

    def test_earnings_summary(self, client):
        _place_order(client)
        _place_order(client)
        commission = client.get("/commissions/vendors/A").json()[0]
        client.post(f"/commissions/{commission['id']}/pay", json={})

        summary = client.get("/commissions/vendors/A/summary").json()
        assert summary == {
            "vendor_id": "A",
            "total_earnings": 180.0,
            "pending_earnings": 90.0,
            "paid_earnings": 90.0,
            "total_commission": 20.0,
            "total_orders": 2,
        }

    def test_commission_preview(self, client):
        response = client.post(
            "/commissions/preview",
            json={
                "items": [
                    {"id": "P1", "price": 100, "quantity": 2, "vendor_id": "A", "vendor_name": "Acme Apparel"},
                    {"id": "P2", "price": 40, "quantity": 1, "vendor_id": "B", "vendor_name": "Bolt Gear"},
                ]
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert [v["vendor_id"] for v in body["vendors"]] == ["A", "B"]
        assert body["vendors"][0]["commission"] == 20.0
        assert body["vendors"][1]["vendor_earnings"] == 34.0
        assert body["total_commission"] == 26.0
        assert body["total_vendor_earnings"] == 214.0
        assert client.get("/commissions/pending").json() == []

    def test_vendor_rate(self, client):
        assert client.get("/commissions/vendors/B/rate").json() == {"vendor_id": "B", "commission_rate": 15.0}
        assert client.get("/commissions/vendors/C/rate").json()["commission_rate"] == 10.0


class TestVariants:
    DEFINITION = {
        "attributes": [{"name": "Size", "values": ["S", "M"]}, {"name": "Color", "values": ["Red", "Blue"]}],
        "prices": {"color=red|size=m": 34.5},
        "stock": {"color=red|size=m": 2, "color=blue|size=m": 0, "color=red|size=s": 5},
    }

    def test_resolve_selection(self, client):
        response = client.post(
            "/variants/resolve",
            json={"definition": self.DEFINITION, "selection": {"Size": "M", "Color": "Red"}, "base_price": 30},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["signature"] == "color=red|size=m"
        assert body["label"] == "Size: M | Color: Red"
        assert body["price"] == 34.5
        assert body["stock"] == 2

        axes = {axis["key"]: axis for axis in body["axes"]}
        assert axes["color"]["available"] == {"Red": True, "Blue": False}
        assert axes["size"]["available"] == {"S": True, "M": True}

    def test_default_selection(self, client):
        body = client.post("/variants/resolve", json={"definition": self.DEFINITION, "base_price": 30}).json()
        assert body["selection"] == {"size": "S"}
        assert body["price"] == 30
        assert body["stock"] is None
