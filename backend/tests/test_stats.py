"""
SmartParking - Statistics Endpoint Tests
Tests for GET /stats session counters and GET /stats/dashboard.

Run: pytest tests/test_stats.py -v
"""

from fastapi.testclient import TestClient


def _counts(session_docs):
    """count_sessions double computing counts from the sample documents."""
    def count(status_filter=None):
        if status_filter is None:
            return len(session_docs)
        return sum(1 for s in session_docs if s["status"] == status_filter)
    return count


class TestStats:
    """Tests for GET /stats."""

    def test_stats_requires_operator(self, customer_client: TestClient):
        """
        Test: Customer reads stats
        Expected: 403
        """
        assert customer_client.get("/stats").status_code == 403

    def test_stats_counts(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: 5 sessions (2 active, 2 finished, 1 paid)
        Expected: {total: 5, active: 2, completed: 2, paid: 1}
        """
        mock_db.count_sessions.side_effect = _counts(session_docs)

        response = operator_client.get("/stats")

        assert response.status_code == 200
        assert response.json() == {"total": 5, "active": 2, "completed": 2, "paid": 1}

    def test_paid_not_counted_as_completed(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Only paid sessions
        Expected: completed counts finished only, so 0
        """
        paid_only = [s for s in session_docs if s["status"] == "paid"]
        mock_db.count_sessions.side_effect = _counts(paid_only)

        data = operator_client.get("/stats").json()

        assert data == {"total": 1, "active": 0, "completed": 0, "paid": 1}

    def test_four_independent_counts(self, operator_client: TestClient, mock_db):
        """
        Test: Counters are queried separately
        Expected: One unfiltered count and one per status
        """
        operator_client.get("/stats")

        filters = sorted(
            (call.args[0] if call.args else None) or ""
            for call in mock_db.count_sessions.await_args_list
        )
        assert filters == ["", "active", "finished", "paid"]

    def test_empty_collection(self, operator_client: TestClient, mock_db):
        """
        Test: No session at all
        Expected: All counters at 0
        """
        mock_db.count_sessions.return_value = 0

        data = operator_client.get("/stats").json()

        assert data == {"total": 0, "active": 0, "completed": 0, "paid": 0}

    def test_query_failure_returns_error(self, operator_client: TestClient, mock_db):
        """
        Test: A count query fails
        Expected: 500 with {"error": <message>}
        """
        mock_db.count_sessions.side_effect = Exception("quota exceeded")

        response = operator_client.get("/stats")

        assert response.status_code == 500
        assert response.json() == {"error": "quota exceeded"}


class TestDashboard:
    """Tests for GET /stats/dashboard."""

    def test_dashboard_requires_operator(self, customer_client: TestClient):
        assert customer_client.get("/stats/dashboard").status_code == 403

    def test_dashboard_counts(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: 3 sessions entered since midnight, 2 active overall, 1 payment today
        Expected: Today's counts, active count and occupancy of the 4 sample spaces
        """
        def count(status_filter=None, since=None):
            if since is not None:
                return 3
            return sum(1 for s in session_docs if s["status"] == status_filter)

        mock_db.count_sessions.side_effect = count
        mock_db.payment_totals.return_value = {"count": 1, "total": 8.0}

        response = operator_client.get("/stats/dashboard")

        assert response.status_code == 200
        data = response.json()
        assert data["sessions_today"] == 3
        assert data["active_sessions"] == 2
        assert data["payments_today"] == 1
        assert data["revenue_today"] == 8.0
        assert data["currency"] == "TND"
        assert data["spaces"]["total"] == 4
        assert data["spaces"]["occupied"] == 1
        assert data["spaces"]["occupancy_rate"] == 25.0

    def test_dashboard_today_starts_at_midnight(self, operator_client: TestClient, mock_db):
        """
        Test: Day boundary of the today counters
        Expected: Sessions and payments counted since 00:00 UTC
        """
        operator_client.get("/stats/dashboard")

        since_values = [
            call.kwargs["since"]
            for call in mock_db.count_sessions.await_args_list
            if call.kwargs.get("since")
        ]
        assert len(since_values) == 1
        assert (since_values[0].hour, since_values[0].minute) == (0, 0)
        assert mock_db.payment_totals.await_args.kwargs["since"] == since_values[0]

    def test_stats_contract_unchanged(self, operator_client: TestClient, mock_db):
        """
        Test: GET /stats next to the dashboard
        Expected: Still exactly the four session counters
        """
        mock_db.count_sessions.return_value = 0

        assert set(operator_client.get("/stats").json()) == {"total", "active", "completed", "paid"}

    def test_dashboard_failure(self, operator_client: TestClient, mock_db):
        mock_db.payment_totals.side_effect = Exception("quota exceeded")

        response = operator_client.get("/stats/dashboard")

        assert response.status_code == 500
        assert response.json() == {"error": "quota exceeded"}
