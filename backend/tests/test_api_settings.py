"""Tests for settings API endpoints."""


class TestSettingsAPI:

    def test_defaults(self, client):
        response = client.get("/api/v1/settings")
        assert response.status_code == 200
        assert response.json() == {"auto_realize_past_due_items": False, "past_due_lookback_days": 30}

    def test_update(self, client):
        response = client.patch("/api/v1/settings", json={
            "auto_realize_past_due_items": True,
            "past_due_lookback_days": 14,
        })
        assert response.status_code == 200
        assert response.json() == {"auto_realize_past_due_items": True, "past_due_lookback_days": 14}
        assert client.get("/api/v1/settings").json()["past_due_lookback_days"] == 14

    def test_invalid_lookback(self, client):
        response = client.patch("/api/v1/settings", json={"past_due_lookback_days": 0})
        assert response.status_code == 400
        assert "Lookback" in response.json()["detail"]
