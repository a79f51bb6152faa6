"""
API tests for portfolio endpoints.

Tests cover:
- Portfolios created by purchases
- Creating named portfolios
- Summary totals
- Ownership checks (404)
"""

from fastapi.testclient import TestClient

from tests.conftest import USER_HEADERS


class TestPortfoliosAPI:
    """Tests for /portfolios endpoints."""

    def test_no_portfolios_initially(self, client: TestClient):
        response = client.get("/portfolios", headers=USER_HEADERS)

        assert response.status_code == 200
        assert response.json() == []

    def test_purchase_creates_default_portfolio(self, client: TestClient):
        """
        GIVEN user-1 has no portfolio
        WHEN user-1 buys 10 AAPL at 175.00
        THEN a "Default Portfolio" holds 10 AAPL at 175.00
        """
        client.post("/stocks/AAPL/buy", json={"price": 175.00, "quantity": 10}, headers=USER_HEADERS)

        response = client.get("/portfolios", headers=USER_HEADERS)

        assert response.status_code == 200
        portfolios = response.json()
        assert len(portfolios) == 1
        assert portfolios[0]["name"] == "Default Portfolio"
        position = portfolios[0]["positions"][0]
        assert position["symbol"] == "AAPL"
        assert position["quantity"] == 10
        assert position["average_price"] == 175.0
        assert position["current_price"] == 175.5
        assert position["total_value"] == 1755.0

    def test_create_portfolio(self, client: TestClient):
        response = client.post("/portfolios", json={"name": "Growth"}, headers=USER_HEADERS)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Growth"
        assert data["positions"] == []

    def test_create_duplicate_portfolio_returns_400(self, client: TestClient):
        client.post("/portfolios", json={"name": "Growth"}, headers=USER_HEADERS)

        response = client.post("/portfolios", json={"name": "Growth"}, headers=USER_HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_summary(self, client: TestClient):
        client.post("/stocks/AAPL/buy", json={"price": 175.00, "quantity": 10}, headers=USER_HEADERS)
        client.post("/stocks/ACME/buy", json={"price": 100.00, "quantity": 5}, headers=USER_HEADERS)

        response = client.get("/portfolios/summary", headers=USER_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["total_portfolios"] == 1
        assert data["total_stocks"] == 2
        assert data["total_value"] == 2255.0
        assert data["total_gain"] == 5.0

    def test_get_portfolio_of_another_user_returns_404(self, client: TestClient):
        created = client.post("/portfolios", json={"name": "Private"}, headers=USER_HEADERS).json()

        response = client.get(f"/portfolios/{created['id']}", headers={"X-User-Id": "user-2"})

        assert response.status_code == 404

    def test_get_own_portfolio(self, client: TestClient):
        created = client.post("/portfolios", json={"name": "Mine"}, headers=USER_HEADERS).json()

        response = client.get(f"/portfolios/{created['id']}", headers=USER_HEADERS)

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
