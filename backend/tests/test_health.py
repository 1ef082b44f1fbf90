"""
SmartParking - Health & Info Endpoint Tests
Tests for root, health, info and documentation endpoints.

Run: pytest tests/test_health.py -v
"""

import pytest
from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Tests for health and info endpoints."""

    # ============================================================
    # TEST: GET / (Root Endpoint)
    # ============================================================

    def test_root_endpoint_returns_200(self, client: TestClient):
        """
        Test: GET / returns 200 OK
        Expected: Status 200 with operational status
        """
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["name"] == "SmartParking"

    def test_root_endpoint_contains_version(self, client: TestClient):
        """
        Test: Root endpoint includes API version
        Expected: Version string in response
        """
        data = client.get("/").json()

        assert isinstance(data["version"], str)

    # ============================================================
    # TEST: GET /health
    # ============================================================

    def test_health_reports_services(self, client: TestClient):
        """
        Test: Health check lists scheduler and websocket state
        Expected: healthy status, scheduler stopped (patched), 0 connections
        """
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["scheduler"] == "stopped"
        assert data["services"]["websocket_connections"] == 0

    def test_info_lists_endpoints(self, client: TestClient):
        """
        Test: GET /api/v1/info describes the API
        Expected: sessions, stats and alerts endpoints listed
        """
        data = client.get("/api/v1/info").json()

        assert data["endpoints"]["sessions"] == "/sessions"
        assert data["endpoints"]["stats"] == "/stats"
        assert data["endpoints"]["alerts"] == "/alerts"
        assert data["pricing"]["currency"] == "TND"

    # ============================================================
    # TEST: OpenAPI Documentation
    # ============================================================

    def test_docs_endpoint_accessible(self, client: TestClient):
        """
        Test: GET /docs returns Swagger UI
        Expected: Status 200
        """
        assert client.get("/docs").status_code == 200

    def test_openapi_json_accessible(self, client: TestClient):
        """
        Test: GET /openapi.json returns API schema
        Expected: Valid OpenAPI JSON
        """
        response = client.get("/openapi.json")

        assert response.status_code == 200
        data = response.json()
        assert "openapi" in data
        assert "paths" in data

    @pytest.mark.parametrize("path", [
        "/sessions",
        "/stats",
        "/sessions/export",
        "/alerts",
        "/auth/login",
        "/parking/spaces",
        "/payments",
    ])
    def test_api_exposes_path(self, client: TestClient, path: str):
        """
        Test: API schema includes each public route
        Expected: path present in OpenAPI paths
        """
        paths = client.get("/openapi.json").json()["paths"]

        assert path in paths


class TestStartup:
    """Tests for the application lifespan."""

    def test_default_spaces_initialized(self, client: TestClient, mock_db):
        """
        Test: Startup creates default spaces
        Expected: initialize_default_spaces called with TOTAL_PARKING_SPACES
        """
        mock_db.initialize_default_spaces.assert_awaited_once_with(count=20)


class TestErrorHandling:
    """Tests for error handling."""

    def test_404_for_unknown_endpoint(self, client: TestClient):
        """
        Test: Unknown endpoint returns 404
        Expected: Status 404 Not Found
        """
        response = client.get("/this/endpoint/does/not/exist")

        assert response.status_code == 404

    def test_validation_error_format(self, operator_client: TestClient):
        """
        Test: Invalid query parameter returns structured 422
        Expected: detail and errors[] with field/message/type
        """
        response = operator_client.get("/sessions?status=parked")

        assert response.status_code == 422
        data = response.json()
        assert data["detail"] == "Erreur de validation"
        assert data["errors"][0]["field"] == "query.status"
