"""API tests against an in-memory database."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient


def _create_device(client: TestClient, name: str = "Front Desk", **fields) -> dict:
    payload = {"display_name": name, "price_per_page": "0.5", "cost_per_page": "0.05"}
    payload.update(fields)
    response = client.post("/api/devices/", json=payload)
    assert response.status_code == 201
    return response.json()


def _put_reading(client: TestClient, device_id: int, day: str, counter: int) -> dict:
    response = client.put(
        "/api/readings/",
        json={"device_id": device_id, "reading_date": day, "cumulative_counter": counter},
    )
    assert response.status_code == 200
    return response.json()


def test_health_endpoint(client: TestClient) -> None:
    """Test the health endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "printledger"


class TestDevices:
    """Device registry endpoints."""

    def test_create_and_get(self, client: TestClient) -> None:
        device = _create_device(client, revenue_formula=" count * 0.4 + 5 ")
        assert device["status"] == "offline"
        assert device["revenue_formula"] == "count * 0.4 + 5"
        assert Decimal(device["price_per_page"]) == Decimal("0.5")

        response = client.get(f"/api/devices/{device['id']}")
        assert response.status_code == 200
        assert response.json()["display_name"] == "Front Desk"

    def test_invalid_formula_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/devices/",
            json={"display_name": "Bad", "revenue_formula": "count * 0.5 + garbage()"},
        )
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "url", ["http://printer:abc/", "ftp://printer/", "printer status page"]
    )
    def test_malformed_target_url_rejected(self, client: TestClient, url: str) -> None:
        response = client.post("/api/devices/", json={"display_name": "Bad", "target_url": url})
        assert response.status_code == 422

        device = _create_device(client, target_url="http://10.0.0.5/status")
        assert device["target_url"] == "http://10.0.0.5/status"
        response = client.patch(f"/api/devices/{device['id']}", json={"target_url": url})
        assert response.status_code == 422

    def test_negative_rate_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/devices/", json={"display_name": "Bad", "price_per_page": "-1"}
        )
        assert response.status_code == 422

    def test_duplicate_name_rejected(self, client: TestClient) -> None:
        _create_device(client)
        response = client.post("/api/devices/", json={"display_name": "Front Desk"})
        assert response.status_code == 400

    def test_update_pricing(self, client: TestClient) -> None:
        device = _create_device(client, cost_formula="count * 0.1")
        response = client.patch(
            f"/api/devices/{device['id']}",
            json={"price_per_page": "0.75", "cost_formula": ""},
        )
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["price_per_page"]) == Decimal("0.75")
        assert data["cost_formula"] is None

    def test_empty_update_rejected(self, client: TestClient) -> None:
        device = _create_device(client)
        response = client.patch(f"/api/devices/{device['id']}", json={})
        assert response.status_code == 422

    def test_deactivate_keeps_device(self, client: TestClient) -> None:
        device = _create_device(client)
        response = client.delete(f"/api/devices/{device['id']}")
        assert response.status_code == 204

        assert client.get("/api/devices/").json() == []
        everything = client.get("/api/devices/", params={"active_only": False}).json()
        assert [d["is_active"] for d in everything] == [False]

    def test_unknown_device(self, client: TestClient) -> None:
        assert client.get("/api/devices/404").status_code == 404


class TestReadings:
    """Counter reading and delta endpoints."""

    def test_upsert_overwrites_same_day(self, client: TestClient) -> None:
        device = _create_device(client)
        first = _put_reading(client, device["id"], "2024-01-02", 100)
        second = _put_reading(client, device["id"], "2024-01-02", 150)
        assert first["id"] == second["id"]
        assert second["cumulative_counter"] == 150

        history = client.get(f"/api/readings/device/{device['id']}").json()
        assert len(history) == 1

    def test_upsert_unknown_device(self, client: TestClient) -> None:
        response = client.put(
            "/api/readings/",
            json={"device_id": 999, "reading_date": "2024-01-02", "cumulative_counter": 1},
        )
        assert response.status_code == 404

    def test_deltas(self, client: TestClient) -> None:
        device = _create_device(client)
        for day, counter in (("2024-01-01", 1000), ("2024-01-02", 1050), ("2024-01-04", 1120)):
            _put_reading(client, device["id"], day, counter)

        response = client.get(
            f"/api/readings/device/{device['id']}/deltas",
            params={"start_date": "2024-01-01", "end_date": "2024-01-04"},
        )
        assert response.status_code == 200
        data = response.json()
        assert [(d["reading_date"], d["delta"]) for d in data["deltas"]] == [
            ("2024-01-02", 50),
            ("2024-01-04", 70),
        ]
        assert data["total"] == 120

    def test_inverted_range(self, client: TestClient) -> None:
        device = _create_device(client)
        response = client.get(
            f"/api/readings/device/{device['id']}/deltas",
            params={"start_date": "2024-01-05", "end_date": "2024-01-01"},
        )
        assert response.status_code == 400


class TestWaste:
    """Waste ledger endpoints."""

    def test_entries_and_day_total(self, client: TestClient) -> None:
        device = _create_device(client)
        url = f"/api/waste/device/{device['id']}/2024-01-02"
        ids = []
        for count in (5, 3):
            response = client.post(
                "/api/waste/",
                json={"device_id": device["id"], "waste_date": "2024-01-02", "waste_count": count},
            )
            assert response.status_code == 201
            ids.append(response.json()["id"])

        assert client.get(url).json()["total"] == 8

        assert client.delete(f"/api/waste/{ids[1]}").status_code == 204
        assert client.get(url).json()["total"] == 5

        response = client.put(url, json={"waste_count": 0})
        assert response.status_code == 200
        assert response.json() == {
            "device_id": device["id"],
            "waste_date": "2024-01-02",
            "entries": [],
            "total": 0,
        }

    def test_zero_count_rejected(self, client: TestClient) -> None:
        device = _create_device(client)
        response = client.post(
            "/api/waste/",
            json={"device_id": device["id"], "waste_date": "2024-01-02", "waste_count": 0},
        )
        assert response.status_code == 422


class TestRevenues:
    """Manual revenue and rent endpoints."""

    def test_create_list_delete(self, client: TestClient) -> None:
        response = client.post(
            "/api/revenues/",
            json={"entry_date": "2024-01-03", "amount": "12.5", "description": "binding"},
        )
        assert response.status_code == 201
        entry_id = response.json()["id"]

        listed = client.get(
            "/api/revenues/", params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
        ).json()
        assert [e["description"] for e in listed] == ["binding"]

        assert client.delete(f"/api/revenues/{entry_id}").status_code == 204
        assert client.delete(f"/api/revenues/{entry_id}").status_code == 404

    def test_rent_setting(self, client: TestClient) -> None:
        default = client.get("/api/revenues/settings/rent").json()
        assert Decimal(default["monthly_rent"]) == Decimal("150")

        response = client.put("/api/revenues/settings/rent", json={"monthly_rent": "310"})
        assert response.status_code == 200
        assert Decimal(client.get("/api/revenues/settings/rent").json()["monthly_rent"]) == 310

    def test_negative_rent_rejected(self, client: TestClient) -> None:
        response = client.put("/api/revenues/settings/rent", json={"monthly_rent": "-1"})
        assert response.status_code == 422


class TestAnalytics:
    """Analytics endpoints over a small fixture."""

    def _seed(self, client: TestClient) -> dict:
        device = _create_device(client, "Device X")
        for day, counter in (("2024-01-01", 1000), ("2024-01-02", 1050), ("2024-01-04", 1120)):
            _put_reading(client, device["id"], day, counter)
        client.post(
            "/api/waste/",
            json={"device_id": device["id"], "waste_date": "2024-01-02", "waste_count": 5},
        )
        return device

    def test_summary(self, client: TestClient) -> None:
        self._seed(client)
        response = client.get(
            "/api/analytics/summary",
            params={"start_date": "2024-01-02", "end_date": "2024-01-02"},
        )
        assert response.status_code == 200
        data = response.json()
        assert (data["total_count"], data["effective_count"], data["waste_count"]) == (50, 45, 5)
        assert Decimal(data["device_revenue"]) == Decimal("22.50")
        assert Decimal(data["device_cost"]) == Decimal("2.50")

    def test_summary_rent_mode(self, client: TestClient) -> None:
        self._seed(client)
        data = client.get(
            "/api/analytics/summary",
            params={"start_date": "2024-01-01", "end_date": "2024-01-31", "rent_mode": "month"},
        ).json()
        assert Decimal(data["fixed_cost"]) == Decimal("150")
        assert data["rent_mode"] == "month"

    def test_summary_inverted_range(self, client: TestClient) -> None:
        response = client.get(
            "/api/analytics/summary",
            params={"start_date": "2024-01-31", "end_date": "2024-01-01"},
        )
        assert response.status_code == 400

    def test_compare_bad_metric(self, client: TestClient) -> None:
        response = client.get(
            "/api/analytics/compare",
            params={
                "start_date": "2024-01-02",
                "end_date": "2024-01-02",
                "baseline_start": "2024-01-01",
                "baseline_end": "2024-01-01",
                "metric": "margin",
            },
        )
        assert response.status_code == 400

    def test_compare(self, client: TestClient) -> None:
        self._seed(client)
        data = client.get(
            "/api/analytics/compare",
            params={
                "start_date": "2024-01-04",
                "end_date": "2024-01-04",
                "baseline_start": "2024-01-02",
                "baseline_end": "2024-01-02",
                "metric": "count",
            },
        ).json()
        assert Decimal(data["change"]) == 20
        assert Decimal(data["change_percent"]) == Decimal("40.0")

    def test_break_even(self, client: TestClient) -> None:
        self._seed(client)
        response = client.get(
            "/api/analytics/break-even",
            params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        )
        assert response.status_code == 200
        assert response.json()["effective_pages"] == 115

    def test_dashboard_and_comparison(self, client: TestClient) -> None:
        device = self._seed(client)
        dashboard = client.get("/api/analytics/dashboard", params={"today": "2024-01-04"}).json()
        assert dashboard["today_total"] == 70
        assert dashboard["today_has_baseline"] is True

        comparison = client.get(
            "/api/analytics/comparison",
            params={"today": "2024-01-04", "device_id": device["id"]},
        ).json()
        assert comparison["device_id"] == device["id"]
        assert Decimal(comparison["day_over_day"]["current"]) == 70

    def test_monthly(self, client: TestClient) -> None:
        self._seed(client)
        rows = client.get("/api/analytics/monthly/2024/2").json()
        assert len(rows) == 29
        assert client.get("/api/analytics/monthly/2024/13").status_code == 400

    def test_chart(self, client: TestClient) -> None:
        self._seed(client)
        points = client.get(
            "/api/analytics/chart", params={"days": 4, "today": "2024-01-04"}
        ).json()
        assert [p["date_label"] for p in points] == ["01-01", "01-02", "01-03", "01-04"]
        assert [p["total"] for p in points] == [0, 50, 0, 70]

        month = client.get("/api/analytics/chart", params={"dates": ["2024-01"]}).json()
        assert month[0]["per_device"] == {"Device X": 120}

        bad = client.get("/api/analytics/chart", params={"dates": ["soon"]})
        assert bad.status_code == 400

    def test_share(self, client: TestClient) -> None:
        self._seed(client)
        slices = client.get(
            "/api/analytics/share",
            params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        ).json()
        assert [(s["device_name"], Decimal(s["percentage"])) for s in slices] == [
            ("Device X", Decimal("100.0"))
        ]


def test_refresh_without_target_url(client: TestClient) -> None:
    device = _create_device(client)

    response = client.post(f"/api/refresh/{device['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["status"] == "offline"
    assert data["error_kind"] == "resolve_failure"

    batch = client.post("/api/refresh/").json()
    assert [r["device_id"] for r in batch] == [device["id"]]


def test_refresh_unknown_device(client: TestClient) -> None:
    assert client.post("/api/refresh/999").status_code == 404
