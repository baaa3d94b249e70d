"""
Integration tests for the back office: dashboard, account review,
balance corrections and user deletion.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration


class TestAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/dashboard"),
            ("get", "/api/admin/accounts"),
            ("get", "/api/admin/kyc"),
            ("get", "/api/admin/deposits"),
            ("get", "/api/admin/payment-methods"),
        ],
    )
    def test_regular_users_are_forbidden(self, client, api, method, path):
        _, headers = api.verified_trader("nosy@example.com")

        response = getattr(client, method)(path, headers=headers)

        assert response.status_code == 403

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/api/admin/dashboard").status_code == 401


class TestDashboard:
    def test_counts(self, client, api):
        admin = api.admin_headers()
        api.register("waiting@example.com")
        _, headers = api.verified_trader("active@example.com", funds="5000")
        client.post(
            "/api/funds/deposits",
            json={"amount": "100", "receipt_image_url": "https://files.example.com/r.png"},
            headers=headers,
        )
        client.post("/api/funds/withdrawals", json={"amount": "50"}, headers=headers)

        response = client.get("/api/admin/dashboard", headers=admin)

        assert response.status_code == 200
        assert response.json() == {
            "total_users": 3,
            "pending_verifications": 1,
            "pending_kyc": 0,
            "pending_fund_requests": 1,
            "pending_withdrawals": 1,
        }


class TestAccounts:
    def test_pagination_and_status_counts(self, client, api):
        admin = api.admin_headers()
        for n in range(4):
            api.register(f"user{n}@example.com")

        first = client.get("/api/admin/accounts?page_size=2", headers=admin).json()
        last = client.get("/api/admin/accounts?page_size=2&page=3", headers=admin).json()
        pending = client.get("/api/admin/accounts?status=pending", headers=admin).json()

        assert first["total"] == 5
        assert first["total_pages"] == 3
        assert len(first["accounts"]) == 2
        assert len(last["accounts"]) == 1
        assert first["status_counts"] == {"pending": 4, "approved": 1, "rejected": 0}
        assert pending["total"] == 4
        assert {a["role"] for a in pending["accounts"]} == {"user"}

    def test_search(self, client, api):
        admin = api.admin_headers()
        api.register("kiran@example.com", full_name="Kiran Shah")
        api.register("devi@example.com", full_name="Devi Menon")

        found = client.get("/api/admin/accounts?search=menon", headers=admin).json()

        assert [a["email"] for a in found["accounts"]] == ["devi@example.com"]

    def test_reject_then_approve(self, client, api):
        admin = api.admin_headers()
        user_id = api.register("review@example.com")
        url = f"/api/admin/accounts/{user_id}/verification"

        rejected = client.post(
            url, json={"decision": "rejected", "notes": "Blurry PAN card"}, headers=admin
        )
        approved = client.post(url, json={"decision": "approved"}, headers=admin)
        again = client.post(url, json={"decision": "rejected"}, headers=admin)

        assert rejected.json()["verification_status"] == "rejected"
        assert rejected.json()["verification_notes"] == "Blurry PAN card"
        assert approved.json()["is_verified"] is True
        assert approved.json()["verification_date"] is not None
        assert again.status_code == 409

    def test_review_unknown_account(self, client, api):
        response = client.post(
            f"/api/admin/accounts/{uuid4()}/verification",
            json={"decision": "approved"},
            headers=api.admin_headers(),
        )

        assert response.status_code == 404

    def test_invalid_decision(self, client, api):
        user_id = api.register("undecided@example.com")

        response = client.post(
            f"/api/admin/accounts/{user_id}/verification",
            json={"decision": "pending"},
            headers=api.admin_headers(),
        )

        assert response.status_code == 422


class TestAdjustFunds:
    def test_add_and_deduct_floor_at_zero(self, client, api):
        admin = api.admin_headers()
        user_id = api.register("adjust@example.com")
        url = f"/api/admin/accounts/{user_id}/funds"

        added = client.post(url, json={"amount": "750.50", "operation": "add"}, headers=admin)
        deducted = client.post(url, json={"amount": "1000", "operation": "deduct"}, headers=admin)

        assert Decimal(added.json()["funds"]) == Decimal("750.50")
        assert Decimal(deducted.json()["funds"]) == Decimal("0")

    def test_rejects_non_positive_amount(self, client, api):
        user_id = api.register("negative@example.com")

        response = client.post(
            f"/api/admin/accounts/{user_id}/funds",
            json={"amount": "-5", "operation": "add"},
            headers=api.admin_headers(),
        )

        assert response.status_code == 422


class TestDeleteUser:
    def test_removes_user_and_revokes_tokens(self, client, api):
        admin = api.admin_headers()
        user_id, headers = api.verified_trader("leaving@example.com", funds="10000")
        client.post(
            "/api/trading/orders",
            json={"symbol": "ITC", "side": "buy", "quantity": 4},
            headers=headers,
        )
        client.post(
            "/api/watchlist/", json={"symbol": "TCS", "name": "Tata Consultancy"}, headers=headers
        )

        response = client.delete(f"/api/admin/users/{user_id}", headers=admin)

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == user_id
        assert body["deleted_rows"]["orders"] == 1
        assert body["deleted_rows"]["user_portfolios"] == 1
        assert body["deleted_rows"]["user_watchlist"] == 1
        assert client.get("/api/auth/me", headers=headers).status_code == 401
        login = client.post(
            "/api/auth/login",
            json={"email": "leaving@example.com", "password": "Tr@de-Desk#2024x"},
        )
        assert login.status_code == 401
        accounts = client.get("/api/admin/accounts?search=leaving", headers=admin).json()
        assert accounts["total"] == 0

    def test_cannot_delete_self(self, client, api):
        admin = api.admin_headers()
        admin_id = client.get("/api/auth/me", headers=admin).json()["user_id"]

        response = client.delete(f"/api/admin/users/{admin_id}", headers=admin)

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "forbidden"

    def test_unknown_user(self, client, api):
        response = client.delete(f"/api/admin/users/{uuid4()}", headers=api.admin_headers())

        assert response.status_code == 404
