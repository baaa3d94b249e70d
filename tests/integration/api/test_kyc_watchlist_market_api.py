"""
Integration tests for KYC submission and review, the watchlist and the
market data proxy.
"""

from decimal import Decimal

import pytest

pytestmark = pytest.mark.integration

KYC = {
    "aadhar_card_url": "https://files.example.com/kyc/aadhar.png",
    "pan_card_url": "https://files.example.com/kyc/pan.png",
    "bank_name": "HDFC Bank",
    "account_number": "5010 0123 4567",
    "ifsc_code": "hdfc0001234",
    "account_holder_name": "Asha Rao",
}


class TestKyc:
    def test_unverified_user_submits_and_admin_approves(self, client, api):
        api.register("kyc@example.com")
        headers = api.headers("kyc@example.com")

        assert client.get("/api/kyc/", headers=headers).json() is None

        submitted = client.post("/api/kyc/", json=KYC, headers=headers)

        assert submitted.status_code == 201
        kyc = submitted.json()
        assert kyc["kyc_status"] == "pending"
        assert kyc["ifsc_code"] == "HDFC0001234"
        assert kyc["account_number"] == "501001234567"

        admin = api.admin_headers()
        queue = client.get("/api/admin/kyc?status=pending", headers=admin).json()
        assert [item["email"] for item in queue["items"]] == ["kyc@example.com"]
        assert client.get("/api/admin/dashboard", headers=admin).json()["pending_kyc"] == 1

        reviewed = client.post(
            f"/api/admin/kyc/{kyc['id']}/review",
            json={"decision": "approved", "notes": "Documents match"},
            headers=admin,
        )

        assert reviewed.status_code == 200
        assert reviewed.json()["kyc_status"] == "approved"
        assert reviewed.json()["verified_by"] is not None
        assert client.get("/api/kyc/", headers=headers).json()["kyc_status"] == "approved"

        resubmitted = client.post("/api/kyc/", json=KYC, headers=headers)
        assert resubmitted.status_code == 409

    def test_resubmission_replaces_rejected_documents(self, client, api):
        api.register("redo@example.com")
        headers = api.headers("redo@example.com")
        kyc_id = client.post("/api/kyc/", json=KYC, headers=headers).json()["id"]
        client.post(
            f"/api/admin/kyc/{kyc_id}/review",
            json={"decision": "rejected", "notes": "PAN unreadable"},
            headers=api.admin_headers(),
        )

        resubmitted = client.post(
            "/api/kyc/",
            json={**KYC, "pan_card_url": "https://files.example.com/kyc/pan-v2.png"},
            headers=headers,
        )

        assert resubmitted.status_code == 201
        assert resubmitted.json()["id"] == kyc_id
        assert resubmitted.json()["kyc_status"] == "pending"
        assert resubmitted.json()["verification_notes"] is None
        assert resubmitted.json()["pan_card_url"].endswith("pan-v2.png")

    def test_invalid_bank_details(self, client, api):
        api.register("badkyc@example.com")
        headers = api.headers("badkyc@example.com")

        bad_ifsc = client.post(
            "/api/kyc/", json={**KYC, "ifsc_code": "HDFC1234567"}, headers=headers
        )
        short_ifsc = client.post("/api/kyc/", json={**KYC, "ifsc_code": "HDFC0"}, headers=headers)
        bad_account = client.post(
            "/api/kyc/", json={**KYC, "account_number": "50100-12345"}, headers=headers
        )

        assert bad_ifsc.status_code == 400
        assert short_ifsc.status_code == 422
        assert bad_account.status_code == 400


class TestWatchlist:
    def test_add_list_and_remove(self, client, api):
        _, headers = api.verified_trader("watcher@example.com")

        added = client.post(
            "/api/watchlist/",
            json={"symbol": "tcs", "name": "Tata Consultancy Services"},
            headers=headers,
        )
        client.post("/api/watchlist/", json={"symbol": "ACME"}, headers=headers)

        assert added.status_code == 201
        assert added.json()["stock_symbol"] == "TCS"

        items = {i["stock_symbol"]: i for i in client.get("/api/watchlist/", headers=headers).json()}
        assert Decimal(items["TCS"]["current_price"]) == Decimal("3180.25")
        assert Decimal(items["TCS"]["percent_change"]) == Decimal("-0.45")
        assert items["ACME"]["current_price"] is None

        unpriced = client.get("/api/watchlist/?with_prices=false", headers=headers).json()
        assert all(i["current_price"] is None for i in unpriced)

        removed = client.delete("/api/watchlist/tcs", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["message"] == "TCS removed from watchlist"
        assert client.delete("/api/watchlist/TCS", headers=headers).status_code == 404

    def test_duplicate_symbol(self, client, api):
        _, headers = api.verified_trader("dupwatch@example.com")
        client.post("/api/watchlist/", json={"symbol": "ITC"}, headers=headers)

        response = client.post("/api/watchlist/", json={"symbol": "itc"}, headers=headers)

        assert response.status_code == 409

    def test_unverified_user_cannot_change_watchlist(self, client, api):
        api.register("viewer@example.com")

        response = client.post(
            "/api/watchlist/", json={"symbol": "ITC"}, headers=api.headers("viewer@example.com")
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "account_not_verified"


class TestMarketData:
    @pytest.fixture
    def headers(self, api):
        api.register("quotes@example.com")
        return api.headers("quotes@example.com")

    def test_stock_quote(self, client, headers):
        response = client.get("/api/market/stock?name=Infosys Limited", headers=headers)

        assert response.status_code == 200
        quote = response.json()
        assert quote["symbol"] == "INFY"
        assert quote["current_price"] == {"NSE": "1435.80", "BSE": "1435.80"}

    def test_stock_errors(self, client, headers):
        blank = client.get("/api/market/stock?name=", headers=headers)
        unknown = client.get("/api/market/stock?name=ACME", headers=headers)

        assert blank.status_code == 400
        assert unknown.status_code == 502
        assert unknown.json()["detail"]["code"] == "market_data_unavailable"

    def test_search(self, client, headers):
        response = client.get("/api/market/search?query=bank", headers=headers)

        assert response.status_code == 200
        assert sorted(r["symbol"] for r in response.json()) == ["HDFCBANK", "ICICIBANK", "SBIN"]

    def test_search_requires_query(self, client, headers):
        assert client.get("/api/market/search", headers=headers).status_code == 400

    def test_trending(self, client, headers):
        stocks = client.get("/api/market/trending", headers=headers).json()

        assert stocks[0]["symbol"] == "BHARTIARTL"
        assert stocks[0]["ltp"] == "1520.60"

    def test_requires_login(self, client):
        assert client.get("/api/market/trending").status_code == 401
