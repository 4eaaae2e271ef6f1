"""Tests for accounts API endpoints."""

from datetime import date
from decimal import Decimal

from conftest import make_transaction


class TestAccountsAPI:
    """Test account endpoints."""

    def test_list_accounts_empty(self, client):
        """Should return empty list when no accounts."""
        response = client.get("/api/v1/accounts")
        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}

    def test_create_account(self, client):
        """Should create a new account."""
        response = client.post("/api/v1/accounts", json={
            "name": "My Checking",
            "account_type": "checking",
            "initial_balance": "250.00",
            "initial_balance_date": "2024-01-01",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "My Checking"
        assert data["currency"] == "USD"
        assert Decimal(data["initial_balance"]) == Decimal("250.00")
        assert data["is_active"] is True
        assert "id" in data

    def test_create_account_requires_start_date(self, client):
        response = client.post("/api/v1/accounts", json={"name": "No date"})
        assert response.status_code == 422

    def test_list_accounts_with_data(self, client, sample_account):
        """Should return accounts when they exist."""
        response = client.get("/api/v1/accounts")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["name"] == sample_account.name

    def test_get_account_not_found(self, client):
        response = client.get("/api/v1/accounts/missing")
        assert response.status_code == 404

    def test_balance(self, client, db_session, sample_account):
        make_transaction(db_session, sample_account, date(2024, 1, 5), "-100.00")
        response = client.get(f"/api/v1/accounts/{sample_account.id}/balance", params={"as_of": "2024-01-05"})
        assert response.status_code == 200
        assert Decimal(response.json()["balance"]) == Decimal("900.00")

    def test_balance_unknown_account(self, client):
        response = client.get("/api/v1/accounts/missing/balance", params={"as_of": "2024-01-05"})
        assert response.status_code == 404


class TestAccountTransactionsAPI:
    """Test the merged transaction list endpoint."""

    def test_list_includes_projected(self, client, db_session, sample_account, monthly_series):
        make_transaction(db_session, sample_account, date(2024, 2, 3), "-20.00")
        response = client.get(
            f"/api/v1/accounts/{sample_account.id}/transactions",
            params={"start_date": "2024-02-01", "end_date": "2024-02-29"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["account_name"] == "Checking"
        assert [item["type"] for item in data["items"]] == ["transaction", "recurring"]
        assert data["items"][1]["is_projected"] is True
        assert data["summary"]["transaction_count"] == 1
        assert data["summary"]["recurring_count"] == 1
        assert Decimal(data["summary"]["ending_balance"]) == Decimal("930.00")
        assert len(data["daily_balances"]) == 2

    def test_exclude_recurring(self, client, sample_account, monthly_series):
        response = client.get(
            f"/api/v1/accounts/{sample_account.id}/transactions",
            params={"start_date": "2024-02-01", "end_date": "2024-02-29", "include_recurring": "false"},
        )
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_invalid_range(self, client, sample_account):
        response = client.get(
            f"/api/v1/accounts/{sample_account.id}/transactions",
            params={"start_date": "2024-02-29", "end_date": "2024-02-01"},
        )
        assert response.status_code == 400

    def test_unknown_account(self, client):
        response = client.get(
            "/api/v1/accounts/missing/transactions",
            params={"start_date": "2024-02-01", "end_date": "2024-02-29"},
        )
        assert response.status_code == 404
