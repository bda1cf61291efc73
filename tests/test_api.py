from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from conftest import TODAY
from main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _register(client, name, role):
    response = client.post(
        "/users/",
        json={"name": name, "email": f"{name.lower()}@cashew-trade.in", "role": role, "city": "Kochi"},
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.fixture
def parties(client):
    return {
        "buyer": _register(client, "Anita", "buyer"),
        "merchant": _register(client, "Kerala", "merchant"),
        "rival": _register(client, "Goa", "merchant"),
    }


def _post_requirement(client, buyer_id, **overrides):
    payload = {
        "buyer_id": buyer_id,
        "grade": "W240",
        "origin": "india",
        "required_quantity": "1,000",
        "minimum_quantity": 500,
        "expected_price": "8000",
        "allow_lower_bid": False,
        "delivery_location": "Jawaharlal Nehru Port",
        "city": "Mumbai",
        "country": "India",
        "delivery_deadline": (TODAY + timedelta(days=30)).isoformat(),
    }
    payload.update(overrides)
    return client.post("/requirements/", json=payload)


@pytest.fixture
def requirement_id(client, parties):
    response = _post_requirement(client, parties["buyer"])
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestUsers:
    def test_duplicate_email(self, client, parties):
        response = client.post("/users/", json={"name": "Anita", "email": "anita@cashew-trade.in", "role": "buyer"})
        assert response.status_code == 400

    def test_get_user(self, client, parties):
        response = client.get(f"/users/{parties['merchant']}")
        assert response.status_code == 200
        assert response.json()["role"] == "merchant"

    def test_unknown_role(self, client):
        response = client.post("/users/", json={"name": "X", "email": "x@cashew-trade.in", "role": "broker"})
        assert response.status_code == 422


class TestRequirements:
    def test_create(self, client, parties):
        response = _post_requirement(client, parties["buyer"])
        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "active"
        assert Decimal(body["required_quantity"]) == 1000

    def test_price_above_ceiling(self, client, parties):
        response = _post_requirement(client, parties["buyer"], expected_price="8400")
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "PriceExceedsCeiling"
        assert Decimal(response.json()["detail"]["ceiling"]) == 8300

    def test_merchant_view_marks_viewed(self, client, parties, requirement_id):
        response = client.get(f"/requirements/{requirement_id}", params={"viewer_id": parties["merchant"]})
        assert response.json()["status"] == "viewed"
        # the owner looking at it changes nothing further
        response = client.get(f"/requirements/{requirement_id}", params={"viewer_id": parties["buyer"]})
        assert response.json()["status"] == "viewed"

    def test_open_list_excludes_skipped(self, client, parties, requirement_id):
        assert len(client.get("/requirements/open").json()) == 1
        response = client.post(f"/requirements/{requirement_id}/skip", json={"user_id": parties["buyer"]})
        assert response.json()["status"] == "closed"
        assert client.get("/requirements/open").json() == []

    def test_buyer_list(self, client, parties, requirement_id):
        [listed] = client.get(f"/requirements/buyer/{parties['buyer']}").json()
        assert listed["id"] == requirement_id
        assert listed["quote_count"] == 0

    def test_update_with_null_grade(self, client, parties, requirement_id):
        response = client.put(f"/requirements/{requirement_id}", json={"buyer_id": parties["buyer"], "grade": None})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "MissingField"
        assert client.get(f"/requirements/{requirement_id}").json()["grade"] == "W240"

    def test_update_and_delete(self, client, parties, requirement_id):
        response = client.put(
            f"/requirements/{requirement_id}",
            json={"buyer_id": parties["buyer"], "specifications": "Grade A only"},
        )
        assert response.status_code == 200
        assert response.json()["specifications"] == "Grade A only"

        response = client.delete(f"/requirements/{requirement_id}", params={"buyer_id": parties["rival"]})
        assert response.status_code == 403
        response = client.delete(f"/requirements/{requirement_id}", params={"buyer_id": parties["buyer"]})
        assert response.status_code == 200
        assert client.get(f"/requirements/{requirement_id}").status_code == 404


class TestNegotiationFlow:
    def _quote(self, client, requirement_id, merchant_id, quantity, price):
        return client.post(
            f"/quotes/send/{requirement_id}",
            json={"merchantId": merchant_id, "supplyQtyKg": quantity, "priceINR": price, "Remarks": "CIF Mumbai"},
        )

    def test_floor_and_quantity_rejections(self, client, parties, requirement_id):
        response = self._quote(client, requirement_id, parties["merchant"], "600", "7900")
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "PriceBelowFloor"

        response = self._quote(client, requirement_id, parties["merchant"], "1500", "8100")
        assert response.json()["detail"]["code"] == "QuantityOutOfRange"

    def test_accept_then_duplicate_acceptance(self, client, parties, requirement_id):
        first = self._quote(client, requirement_id, parties["merchant"], "700", "8200").json()
        second = self._quote(client, requirement_id, parties["rival"], "800", "8100").json()
        assert first["status"] == "new"
        assert client.get(f"/requirements/{requirement_id}").json()["status"] == "responded"

        response = client.patch(
            f"/quotes/{first['id']}/respond", json={"buyer_id": parties["buyer"], "action": "accept"}
        )
        assert response.status_code == 200
        order = response.json()["order"]
        assert Decimal(order["quantity"]) == 700
        assert Decimal(order["price"]) == 8200
        assert order["status"] == "placed"

        response = client.patch(
            f"/quotes/{second['id']}/respond", json={"buyer_id": parties["buyer"], "action": "accept"}
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DuplicateAcceptance"
        assert response.json()["detail"]["accepted_quote_id"] == first["id"]

        response = self._quote(client, requirement_id, parties["rival"], "900", "8100")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "RequirementNotOpen"

    def test_reject(self, client, parties, requirement_id):
        quote = self._quote(client, requirement_id, parties["merchant"], "700", "8200").json()
        response = client.patch(f"/quotes/{quote['id']}/respond", json={"buyer_id": parties["buyer"], "action": "reject"})
        assert response.json()["quote"]["status"] == "rejected"

    def test_quote_visibility(self, client, parties, requirement_id):
        self._quote(client, requirement_id, parties["merchant"], "700", "8200")
        self._quote(client, requirement_id, parties["rival"], "800", "8100")

        buyer_view = client.get(f"/quotes/with-requirement/{requirement_id}", params={"viewer_id": parties["buyer"]})
        assert len(buyer_view.json()["quotes"]) == 2

        merchant_view = client.get(
            f"/quotes/with-requirement/{requirement_id}",
            params={"view": "merchant", "viewer_id": parties["merchant"]},
        )
        [own] = merchant_view.json()["quotes"]
        assert own["merchant_id"] == parties["merchant"]

        snooping = client.get(f"/quotes/with-requirement/{requirement_id}", params={"viewer_id": parties["rival"]})
        assert snooping.status_code == 403

        assert client.get(f"/quotes/with-requirement/{requirement_id}", params={"view": "merchant"}).status_code == 400

    def test_merchant_quotes(self, client, parties, requirement_id):
        self._quote(client, requirement_id, parties["merchant"], "700", "8200")
        [entry] = client.get(f"/quotes/merchant/{parties['merchant']}").json()
        assert entry["requirement"]["id"] == requirement_id
        assert entry["requirement"]["status"] == "responded"

    def test_confirm_and_cancel(self, client, parties, requirement_id):
        quote = self._quote(client, requirement_id, parties["merchant"], "700", "8200").json()
        client.patch(f"/quotes/{quote['id']}/respond", json={"buyer_id": parties["buyer"], "action": "accept"})

        response = client.post(f"/orders/{requirement_id}/confirm", json={"user_id": parties["merchant"]})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

        [transaction] = client.get("/orders/confirmed").json()
        assert transaction["quote"]["id"] == quote["id"]
        assert transaction["order"]["status"] == "confirmed"

        response = client.post(f"/orders/{requirement_id}/cancel", json={"user_id": parties["buyer"]})
        assert response.json()["status"] == "cancelled"
        assert client.get(f"/orders/user/{parties['buyer']}").json() == []
        assert len(client.get(f"/orders/user/{parties['buyer']}", params={"include_cancelled": True}).json()) == 1
        assert client.get(f"/requirements/{requirement_id}").json()["status"] == "closed"

    def test_unknown_quote(self, client, parties):
        response = client.patch(
            "/quotes/00000000-0000-0000-0000-000000000000/respond",
            json={"buyer_id": parties["buyer"], "action": "accept"},
        )
        assert response.status_code == 404
