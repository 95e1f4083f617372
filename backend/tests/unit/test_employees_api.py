from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ems.services.employee_store import EmployeeNotFoundError, EmployeeStoreError
from tests.conftest import build_loaded_mirror


@pytest.fixture
def mirrored(loaded_mirror):
    with patch("ems.api.v1.endpoints.employees.employee_mirror", loaded_mirror):
        yield loaded_mirror


class TestListEmployees:
    def test_requires_auth(self, client):
        assert client.get("/api/v1/employees").status_code == 401

    def test_first_page(self, authenticated_client, mirrored):
        response = authenticated_client.get("/api/v1/employees")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 9
        assert body["page_size"] == 8
        assert body["total_pages"] == 2
        assert len(body["items"]) == 8
        assert body["showing_from"] == 1
        assert body["showing_to"] == 8
        assert body["items"][0]["full_name"] == "Alice Moreau"

    def test_second_page(self, authenticated_client, mirrored):
        body = authenticated_client.get("/api/v1/employees", params={"page": 2}).json()
        assert [e["id"] for e in body["items"]] == ["e9"]
        assert body["showing_from"] == 9
        assert body["showing_to"] == 9

    def test_department_filter(self, authenticated_client, mirrored):
        body = authenticated_client.get("/api/v1/employees", params={"department": "Engineering"}).json()
        assert [e["full_name"] for e in body["items"]] == ["Alice Moreau", "Dana Kim", "Hana Sato"]
        assert body["total_pages"] == 1

    def test_search_matches_email(self, authenticated_client, mirrored):
        body = authenticated_client.get("/api/v1/employees", params={"search": "PARTNER.ORG"}).json()
        assert [e["id"] for e in body["items"]] == ["e9"]

    def test_unknown_department_rejected(self, authenticated_client, mirrored):
        response = authenticated_client.get("/api/v1/employees", params={"department": "Space"})
        assert response.status_code == 422

    def test_page_zero_rejected(self, authenticated_client, mirrored):
        response = authenticated_client.get("/api/v1/employees", params={"page": 0})
        assert response.status_code == 422


class TestViewTransition:
    def test_search_resets_to_first_page(self, authenticated_client, mirrored):
        response = authenticated_client.post(
            "/api/v1/employees/view",
            json={"view": {"search": "", "department": "All", "page": 2}, "search": "a"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["view"] == {"search": "a", "department": "All", "page": 1}

    def test_page_click_keeps_filters(self, authenticated_client, mirrored):
        body = authenticated_client.post(
            "/api/v1/employees/view",
            json={"view": {"search": "", "department": "All", "page": 1}, "page": 2},
        ).json()
        assert body["view"]["page"] == 2
        assert [e["id"] for e in body["items"]] == ["e9"]


class TestStats:
    def test_aggregates_mirror(self, authenticated_client, mirrored):
        body = authenticated_client.get("/api/v1/employees/stats").json()
        assert body["total"] == 9
        assert body["active"] == 8
        assert body["departments"] == 6
        assert body["average_salary"] == pytest.approx(790000 / 9)

    def test_empty_mirror(self, authenticated_client):
        with patch("ems.api.v1.endpoints.employees.employee_mirror", build_loaded_mirror([])):
            body = authenticated_client.get("/api/v1/employees/stats").json()
        assert body == {"total": 0, "active": 0, "average_salary": 0.0, "departments": 0}


class TestGetEmployee:
    def test_found(self, authenticated_client, mirrored):
        response = authenticated_client.get("/api/v1/employees/e5")
        assert response.status_code == 200
        assert response.json()["full_name"] == "Elif Yilmaz"

    def test_not_found(self, authenticated_client, mirrored):
        response = authenticated_client.get("/api/v1/employees/nope")
        assert response.status_code == 404


class TestDeleteEmployee:
    def test_deletes_and_requests_refresh(self, authenticated_client):
        mock_mirror = MagicMock()
        with (
            patch("ems.api.v1.endpoints.employees.employee_store") as mock_store,
            patch("ems.api.v1.endpoints.employees.employee_mirror", mock_mirror),
        ):
            mock_store.delete = AsyncMock()
            response = authenticated_client.delete("/api/v1/employees/e2")

        assert response.status_code == 200
        assert response.json() == {"level": "success", "message": "Employee deleted"}
        mock_store.delete.assert_awaited_once_with("e2")
        mock_mirror.request_refresh.assert_called_once()

    def test_missing_returns_404(self, authenticated_client):
        with patch("ems.api.v1.endpoints.employees.employee_store") as mock_store:
            mock_store.delete = AsyncMock(side_effect=EmployeeNotFoundError("Employee 'x' not found"))
            response = authenticated_client.delete("/api/v1/employees/x")
        assert response.status_code == 404

    def test_store_failure_returns_500(self, authenticated_client):
        mock_mirror = MagicMock()
        with (
            patch("ems.api.v1.endpoints.employees.employee_store") as mock_store,
            patch("ems.api.v1.endpoints.employees.employee_mirror", mock_mirror),
        ):
            mock_store.delete = AsyncMock(side_effect=EmployeeStoreError("Failed to delete employee: 503"))
            response = authenticated_client.delete("/api/v1/employees/e2")
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to delete"
        mock_mirror.request_refresh.assert_not_called()


class TestStream:
    def test_streams_current_snapshot(self, authenticated_client):
        async def fake_events():
            yield 'event: snapshot\ndata: {"version": 1, "loaded": true, "employees": []}\n\n'

        mock_mirror = MagicMock()
        mock_mirror.stream_events = fake_events
        with patch("ems.api.v1.endpoints.employees.employee_mirror", mock_mirror):
            response = authenticated_client.get("/api/v1/employees/stream")

        assert response.status_code == 200
        assert "text/event-stream" in response.headers["content-type"]
        assert "event: snapshot" in response.text
