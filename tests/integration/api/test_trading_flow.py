"""
Integration tests for order placement, portfolio valuation and the
back-office portfolio tools.
"""

from decimal import Decimal

import pytest

pytestmark = pytest.mark.integration


def place(client, headers, symbol, side, quantity, **extra):
    body = {"symbol": symbol, "side": side, "quantity": quantity, **extra}
    return client.post("/api/trading/orders", json=body, headers=headers)


class TestOrders:
    def test_market_buy_debits_and_opens_holding(self, client, api):
        _, headers = api.verified_trader("buyer@example.com", funds="100000")

        response = place(client, headers, "tcs", "buy", 10)

        assert response.status_code == 201
        body = response.json()
        assert body["order"]["stock_symbol"] == "TCS"
        assert body["order"]["order_type"] == "buy"
        assert body["order"]["price_type"] == "market"
        assert body["order"]["status"] == "completed"
        assert Decimal(body["order"]["price"]) == Decimal("3180.25")
        assert Decimal(body["order"]["total_amount"]) == Decimal("31802.50")
        assert Decimal(body["available_funds"]) == Decimal("68197.50")
        assert body["holding"]["quantity"] == 10
        assert body["holding_closed"] is False

    def test_limit_order_fills_at_limit_price(self, client, api):
        _, headers = api.verified_trader("limit@example.com", funds="10000")

        response = place(
            client, headers, "INFY", "buy", 5, order_type="limit", limit_price="1400"
        )

        assert response.status_code == 201
        order = response.json()["order"]
        assert order["price_type"] == "limit"
        assert Decimal(order["total_amount"]) == Decimal("7000")
        assert Decimal(response.json()["holding"]["current_price"]) == Decimal("1435.80")

    def test_limit_order_without_quote(self, client, api):
        _, headers = api.verified_trader("noquote@example.com", funds="1000")

        response = place(client, headers, "ACME", "buy", 2, order_type="limit", limit_price="100")

        assert response.status_code == 201
        assert Decimal(response.json()["available_funds"]) == Decimal("800")

    def test_limit_order_requires_price(self, client, api):
        _, headers = api.verified_trader("noprice@example.com", funds="1000")

        response = place(client, headers, "ITC", "buy", 1, order_type="limit")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "validation_error"

    def test_market_order_for_unknown_symbol(self, client, api):
        _, headers = api.verified_trader("unknown@example.com", funds="1000")

        response = place(client, headers, "ACME", "buy", 1)

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "market_data_unavailable"

    def test_insufficient_funds(self, client, api):
        _, headers = api.verified_trader("poor@example.com", funds="1000")

        response = place(client, headers, "RELIANCE", "buy", 1)

        assert response.status_code == 402
        assert response.json()["detail"]["code"] == "insufficient_funds"
        me = client.get("/api/auth/me", headers=headers).json()
        assert Decimal(me["funds"]) == Decimal("1000")

    def test_sell_more_than_held(self, client, api):
        _, headers = api.verified_trader("oversell@example.com", funds="10000")
        place(client, headers, "ITC", "buy", 10)

        response = place(client, headers, "ITC", "sell", 11)

        assert response.status_code == 402
        assert response.json()["detail"]["code"] == "insufficient_holdings"

    def test_unverified_account_cannot_trade(self, client, api):
        api.register("pending@example.com")
        headers = api.headers("pending@example.com")

        response = place(client, headers, "ITC", "buy", 1)

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "account_not_verified"

    def test_invalid_order_body(self, client, api):
        _, headers = api.verified_trader("invalid@example.com")

        assert place(client, headers, "ITC", "hold", 1).status_code == 422
        assert place(client, headers, "ITC", "buy", 0).status_code == 422

    def test_oversized_order_is_rejected(self, client, api):
        _, headers = api.verified_trader("whale@example.com", funds="1000")

        huge_quantity = place(
            client, headers, "TCS", "buy", 10**30, order_type="limit", limit_price="1"
        )
        huge_price = place(
            client, headers, "TCS", "buy", 1, order_type="limit", limit_price="1e20"
        )

        assert huge_quantity.status_code == 422
        assert huge_price.status_code == 422
        me = client.get("/api/auth/me", headers=headers).json()
        assert Decimal(me["funds"]) == Decimal("1000")

    def test_order_history(self, client, api):
        _, headers = api.verified_trader("history@example.com", funds="10000")
        place(client, headers, "ITC", "buy", 10)
        place(client, headers, "ITC", "sell", 4)

        everything = client.get("/api/trading/orders", headers=headers).json()
        sells = client.get("/api/trading/orders?side=sell", headers=headers).json()

        assert [o["order_type"] for o in everything] == ["sell", "buy"]
        assert [o["quantity"] for o in sells] == [4]


class TestPortfolio:
    def test_round_trip_with_price_refresh(self, client, api, market_data):
        _, headers = api.verified_trader("round@example.com", funds="100000")
        place(client, headers, "TCS", "buy", 10)

        market_data.set_price("TCS", Decimal("3300"))
        refresh = client.post("/api/portfolio/refresh-prices", headers=api.admin_headers())

        assert refresh.status_code == 200
        assert refresh.json()["updated_count"] == 1
        assert refresh.json()["error_count"] == 0
        assert Decimal(refresh.json()["prices"]["TCS"]) == Decimal("3300")

        portfolio = client.get("/api/portfolio/", headers=headers).json()
        metrics = portfolio["metrics"]
        assert Decimal(metrics["total_value"]) == Decimal("33000.00")
        assert Decimal(metrics["total_invested"]) == Decimal("31802.50")
        assert Decimal(metrics["total_profit_loss"]) == Decimal("1197.50")
        assert Decimal(metrics["total_profit_loss_percentage"]) == Decimal("3.77")
        assert metrics["total_holdings"] == 1

        partial = place(client, headers, "TCS", "sell", 4)
        assert Decimal(partial.json()["available_funds"]) == Decimal("81397.50")
        assert partial.json()["holding"]["quantity"] == 6

        closing = place(client, headers, "TCS", "sell", 6)
        assert closing.json()["holding_closed"] is True
        assert closing.json()["holding"] is None
        assert Decimal(closing.json()["available_funds"]) == Decimal("101197.50")

        empty = client.get("/api/portfolio/", headers=headers).json()
        assert empty["holdings"] == []
        assert Decimal(empty["metrics"]["total_profit_loss_percentage"]) == Decimal("0")

    def test_refresh_requires_admin(self, client, api):
        _, headers = api.verified_trader("notadmin@example.com")

        response = client.post("/api/portfolio/refresh-prices", headers=headers)

        assert response.status_code == 403


class TestPortfolioAdministration:
    def test_upsert_list_and_delete_holding(self, client, api):
        user_id, headers = api.verified_trader("managed@example.com")
        admin = api.admin_headers()

        upserted = client.put(
            f"/api/portfolio/{user_id}/infy",
            json={"quantity": 20, "avg_price": "1409", "current_price": "1435.80"},
            headers=admin,
        )

        assert upserted.status_code == 200
        holding = upserted.json()
        assert holding["stock_symbol"] == "INFY"
        assert Decimal(holding["profit_loss"]) == Decimal("536.00")

        listed = client.get("/api/portfolio/all?search=managed", headers=admin).json()
        assert [(h["stock_symbol"], h["email"]) for h in listed] == [
            ("INFY", "managed@example.com")
        ]
        own = client.get("/api/portfolio/", headers=headers).json()
        assert [h["id"] for h in own["holdings"]] == [holding["id"]]

        deleted = client.delete(f"/api/portfolio/holdings/{holding['id']}", headers=admin)
        assert deleted.status_code == 200
        again = client.delete(f"/api/portfolio/holdings/{holding['id']}", headers=admin)
        assert again.status_code == 404

    def test_listing_requires_admin(self, client, api):
        _, headers = api.verified_trader("peek@example.com")

        assert client.get("/api/portfolio/all", headers=headers).status_code == 403
