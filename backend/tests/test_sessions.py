"""
SmartParking - Session Endpoint Tests
Tests for session listing, lifecycle (entry, exit, payment) and status writes.

Run: pytest tests/test_sessions.py -v
"""

import pytest
from fastapi.testclient import TestClient
from datetime import timedelta

from database.firebase_db import StaleDocumentError, WalletDebitError
from utils.helpers import utcnow


class TestSessionsAuthentication:
    """Tests for session endpoint access control."""

    def test_list_requires_auth(self, client: TestClient):
        """
        Test: GET /sessions without token
        Expected: Status 401
        """
        assert client.get("/sessions").status_code == 401

    def test_list_forbidden_for_customer(self, customer_client: TestClient):
        """
        Test: Customer lists sessions
        Expected: Status 403, operator rank required
        """
        assert customer_client.get("/sessions").status_code == 403

    def test_list_allowed_for_admin(self, admin_client: TestClient):
        """
        Test: Admin lists sessions
        Expected: Status 200, admin outranks operator
        """
        assert admin_client.get("/sessions").status_code == 200


class TestListSessions:
    """Tests for GET /sessions."""

    def test_returns_sessions_key(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Sessions are wrapped under "sessions"
        Expected: Same order as the query result
        """
        mock_db.list_sessions.return_value = session_docs

        response = operator_client.get("/sessions")

        assert response.status_code == 200
        ids = [s["session_id"] for s in response.json()["sessions"]]
        assert ids == ["sess-1", "sess-2", "sess-3", "sess-4", "sess-5"]

    def test_query_limited_to_page_size(self, operator_client: TestClient, mock_db):
        """
        Test: No filter
        Expected: Query without status filter, limit 10
        """
        operator_client.get("/sessions")

        mock_db.list_sessions.assert_awaited_once_with(status_filter=None, limit=10)

    @pytest.mark.parametrize("status", ["active", "finished", "paid"])
    def test_status_filter_forwarded(self, operator_client: TestClient, mock_db, status):
        """
        Test: ?status=<s>
        Expected: Query filtered on exactly that status
        """
        operator_client.get(f"/sessions?status={status}")

        mock_db.list_sessions.assert_awaited_once_with(status_filter=status, limit=10)

    def test_empty_result(self, operator_client: TestClient, mock_db):
        """
        Test: No matching session
        Expected: Empty list, not an error
        """
        mock_db.list_sessions.return_value = []

        response = operator_client.get("/sessions?status=paid")

        assert response.status_code == 200
        assert response.json() == {"sessions": []}

    def test_space_joined_in_one_lookup(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Each session carries its space summary
        Expected: zone resolved, one batched lookup for all sessions
        """
        mock_db.list_sessions.return_value = session_docs

        sessions = operator_client.get("/sessions").json()["sessions"]

        assert sessions[0]["space"] == {"number": "A2", "zone": "Zone A", "vehicle_type": "car"}
        assert sessions[1]["space"]["vehicle_type"] == "truck"
        mock_db.get_spaces_by_numbers.assert_awaited_once()

    def test_unknown_space_left_empty(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: space_number not found in parking_spaces
        Expected: space is null, session still returned
        """
        session_docs[0]["space_number"] = "Z9"
        mock_db.list_sessions.return_value = session_docs[:1]

        sessions = operator_client.get("/sessions").json()["sessions"]

        assert sessions[0]["space"] is None

    def test_listing_is_read_only(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Listing sessions
        Expected: No write to sessions or spaces
        """
        mock_db.list_sessions.return_value = session_docs

        operator_client.get("/sessions")

        mock_db.update_session.assert_not_called()
        mock_db.update_space.assert_not_called()

    def test_query_failure_returns_message(self, operator_client: TestClient, mock_db):
        """
        Test: Database error during listing
        Expected: 500 with {"message": <error>}
        """
        mock_db.list_sessions.side_effect = Exception("index missing")

        response = operator_client.get("/sessions")

        assert response.status_code == 500
        assert response.json() == {"message": "index missing"}


class TestGetSession:
    """Tests for GET /sessions/{id} and /sessions/active."""

    def test_get_existing(self, operator_client: TestClient, mock_db, session_docs):
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.get("/sessions/sess-3")

        assert response.status_code == 200
        assert response.json()["status"] == "finished"

    def test_get_missing(self, operator_client: TestClient, mock_db):
        """
        Test: Unknown session id
        Expected: Status 404
        """
        assert operator_client.get("/sessions/nope").status_code == 404

    def test_active_sessions(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: GET /sessions/active
        Expected: Query filtered on active
        """
        mock_db.list_sessions.return_value = session_docs[:2]

        response = operator_client.get("/sessions/active")

        assert response.status_code == 200
        assert len(response.json()["sessions"]) == 2
        assert mock_db.list_sessions.await_args.kwargs["status_filter"] == "active"


class TestCreateSession:
    """Tests for POST /sessions (vehicle entry)."""

    def test_entry_on_free_space(self, operator_client: TestClient, mock_db):
        """
        Test: Vehicle enters free space A1
        Expected: 201, active session, space marked occupied, alert created
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "123 tu 4567", "type": "car"},
            "space_number": "A1"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["vehicle"]["plate"] == "123 TU 4567"
        assert data["exit_time"] is None
        assert data["space"]["number"] == "A1"

        mock_db.create_session.assert_awaited_once()
        number, updates = mock_db.update_space.await_args.args
        assert number == "A1"
        assert updates["status"] == "occupied"
        assert updates["current_session_id"] == data["session_id"]
        mock_db.create_alert.assert_awaited_once()

    def test_entry_on_occupied_space(self, operator_client: TestClient, mock_db):
        """
        Test: Vehicle enters occupied space A2
        Expected: 409, no session created
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "123 TU 4567"},
            "space_number": "A2"
        })

        assert response.status_code == 409
        mock_db.create_session.assert_not_called()

    def test_entry_on_space_reserved_for_other_plate(self, operator_client: TestClient, mock_db):
        """
        Test: Space A3 reserved for RES-001, another plate enters
        Expected: 409
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "OTHER-1"},
            "space_number": "A3"
        })

        assert response.status_code == 409

    def test_entry_on_space_reserved_for_same_plate(self, operator_client: TestClient, mock_db):
        """
        Test: Reserved vehicle arrives on its space
        Expected: 201, reservation consumed
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "res-001"},
            "space_number": "A3"
        })

        assert response.status_code == 201
        updates = mock_db.update_space.await_args.args[1]
        assert updates["reservation"] is None

    def test_entry_on_unknown_space(self, operator_client: TestClient):
        """
        Test: Space does not exist
        Expected: 404
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "123 TU 4567"},
            "space_number": "Z9"
        })

        assert response.status_code == 404

    def test_entry_requires_plate(self, operator_client: TestClient):
        """
        Test: Missing plate
        Expected: 422
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"type": "car"},
            "space_number": "A1"
        })

        assert response.status_code == 422

    @pytest.mark.parametrize("plate", ["AB@12", "12_TU_34", "-AB12"])
    def test_entry_rejects_malformed_plate(self, operator_client: TestClient, mock_db, plate):
        """
        Test: Plate with characters other than letters, digits, blanks, hyphens
        Expected: 422, space untouched
        """
        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": plate},
            "space_number": "A1"
        })

        assert response.status_code == 422
        mock_db.update_space.assert_not_called()

    def test_entry_frees_space_when_session_write_fails(
        self, operator_client: TestClient, mock_db, space_docs
    ):
        """
        Test: Space occupied, then the session write fails
        Expected: 500, A1 free again, no alert
        """
        spaces = {s["number"]: s for s in space_docs}

        def apply_update(number, updates):
            spaces[number].update(updates)
            return True

        mock_db.update_space.side_effect = apply_update
        mock_db.create_session.side_effect = Exception("unavailable")

        response = operator_client.post("/sessions", json={
            "vehicle": {"plate": "123 TU 4567"},
            "space_number": "A1"
        })

        assert response.status_code == 500
        assert response.json() == {"message": "unavailable"}
        assert spaces["A1"]["status"] == "free"
        assert spaces["A1"]["current_session_id"] is None
        assert mock_db.update_space.await_count == 2
        mock_db.create_alert.assert_not_called()


class TestEndSession:
    """Tests for PUT /sessions/{id}/end (vehicle exit)."""

    def test_end_computes_amount(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Active session of 2h05 ended
        Expected: finished, duration 125, 3 started hours at 2.0 = 6.0
        """
        active = session_docs[0]
        active["entry_time"] = utcnow() - timedelta(minutes=125, seconds=10)
        mock_db.get_session.return_value = active

        response = operator_client.put("/sessions/sess-1/end")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "finished"
        assert data["duration"] == 125
        assert data["amount"] == 6.0
        assert data["exit_time"] is not None

        session_id, updates = mock_db.update_session.await_args.args
        assert session_id == "sess-1"
        assert updates["status"] == "finished"

    def test_end_within_grace_period_is_free(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Stay of 10 minutes
        Expected: amount 0
        """
        mock_db.get_session.return_value = session_docs[0]

        response = operator_client.put("/sessions/sess-1/end")

        assert response.json()["amount"] == 0.0

    def test_end_with_explicit_amount(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Operator gives the amount
        Expected: Given amount kept
        """
        mock_db.get_session.return_value = session_docs[0]

        response = operator_client.put("/sessions/sess-1/end", json={"amount": 12.5})

        assert response.json()["amount"] == 12.5

    def test_end_frees_space(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Exit from occupied space A2
        Expected: A2 back to free without session
        """
        mock_db.get_session.return_value = session_docs[0]

        operator_client.put("/sessions/sess-1/end")

        number, updates = mock_db.update_space.await_args.args
        assert number == "A2"
        assert updates == {"current_session_id": None, "status": "free"}

    def test_end_finished_session_conflict(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Ending an already finished session
        Expected: 409, nothing written
        """
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.put("/sessions/sess-3/end")

        assert response.status_code == 409
        mock_db.update_session.assert_not_called()

    def test_end_missing_session(self, operator_client: TestClient):
        assert operator_client.put("/sessions/nope/end").status_code == 404


class TestPaySession:
    """Tests for POST /sessions/{id}/pay."""

    def test_pay_finished_session(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Finished session paid by card
        Expected: paid, payment record stored with session amount
        """
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.post("/sessions/sess-3/pay", json={"payment_method": "card"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "paid"
        assert data["payment_method"] == "card"

        mock_db.record_session_payment.assert_awaited_once()
        session_id, expected_status, updates, record, wallet_debit = (
            mock_db.record_session_payment.await_args.args
        )
        assert session_id == "sess-3"
        assert expected_status == "finished"
        assert updates == {"status": "paid", "payment_method": "card", "amount": 2.0}
        assert record["session_id"] == "sess-3"
        assert record["amount"] == 2.0
        assert record["reference"].startswith("PAY-")
        assert wallet_debit is None

    def test_pay_writes_session_and_payment_together(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Paying a finished session
        Expected: One transactional write, no separate session update
        """
        mock_db.get_session.return_value = session_docs[2]

        operator_client.post("/sessions/sess-3/pay", json={"payment_method": "cash"})

        mock_db.record_session_payment.assert_awaited_once()
        mock_db.update_session.assert_not_called()

    def test_pay_storage_failure(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: The payment transaction fails
        Expected: 500, no alert, no other write
        """
        mock_db.get_session.return_value = session_docs[2]
        mock_db.record_session_payment.side_effect = Exception("deadline exceeded")

        response = operator_client.post("/sessions/sess-3/pay", json={"payment_method": "card"})

        assert response.status_code == 500
        mock_db.update_session.assert_not_called()
        mock_db.create_alert.assert_not_called()

    def test_pay_concurrent_payment_conflict(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Session paid elsewhere between the read and the transaction
        Expected: 409
        """
        mock_db.get_session.return_value = session_docs[2]
        mock_db.record_session_payment.side_effect = StaleDocumentError("Statut actuel: paid")

        response = operator_client.post("/sessions/sess-3/pay", json={"payment_method": "card"})

        assert response.status_code == 409

    def test_pay_with_wallet_debits_in_same_write(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Wallet payment for a customer account
        Expected: Debit of the session amount passed with the payment
        """
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.post("/sessions/sess-3/pay", json={
            "payment_method": "wallet",
            "user_id": "customer-123"
        })

        assert response.status_code == 200
        wallet_debit = mock_db.record_session_payment.await_args.args[4]
        assert wallet_debit["user_id"] == "customer-123"
        assert wallet_debit["type"] == "payment"
        assert wallet_debit["amount"] == 2.0
        assert wallet_debit["session_id"] == "sess-3"

    def test_pay_with_wallet_requires_owner(self, operator_client: TestClient, mock_db, session_docs):
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.post("/sessions/sess-3/pay", json={"payment_method": "wallet"})

        assert response.status_code == 422

    def test_pay_with_wallet_insufficient_balance(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Wallet balance below the amount
        Expected: 402, session stays finished
        """
        mock_db.get_session.return_value = session_docs[2]
        mock_db.record_session_payment.side_effect = WalletDebitError("Solde insuffisant: 1.00")

        response = operator_client.post("/sessions/sess-3/pay", json={
            "payment_method": "wallet",
            "user_id": "customer-123"
        })

        assert response.status_code == 402
        assert "Solde insuffisant" in response.json()["detail"]
        mock_db.update_session.assert_not_called()

    def test_pay_active_session_conflict(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Paying a session still active
        Expected: 409, no payment stored
        """
        mock_db.get_session.return_value = session_docs[0]

        response = operator_client.post("/sessions/sess-1/pay", json={"payment_method": "cash"})

        assert response.status_code == 409
        mock_db.record_session_payment.assert_not_called()

    def test_pay_twice_conflict(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Paying a paid session
        Expected: 409
        """
        mock_db.get_session.return_value = session_docs[4]

        response = operator_client.post("/sessions/sess-5/pay", json={"payment_method": "cash"})

        assert response.status_code == 409

    def test_pay_unknown_method(self, operator_client: TestClient, mock_db, session_docs):
        mock_db.get_session.return_value = session_docs[2]

        response = operator_client.post("/sessions/sess-3/pay", json={"payment_method": "bitcoin"})

        assert response.status_code == 422


class TestUpdateStatus:
    """Tests for PATCH /sessions/{id}/status."""

    def test_active_to_paid_rejected(self, operator_client: TestClient, mock_db, session_docs):
        """
        Test: Skipping the finished state
        Expected: 409
        """
        mock_db.get_session.return_value = session_docs[0]

        response = operator_client.patch("/sessions/sess-1/status", json={"status": "paid"})

        assert response.status_code == 409
        mock_db.update_session.assert_not_called()

    @pytest.mark.parametrize("target", ["active", "finished", "paid"])
    def test_paid_is_terminal(self, operator_client: TestClient, mock_db, session_docs, target):
        """
        Test: Any write on a paid session
        Expected: 409
        """
        mock_db.get_session.return_value = session_docs[4]

        response = operator_client.patch("/sessions/sess-5/status", json={"status": target})

        assert response.status_code == 409

    def test_active_to_finished_allowed(self, operator_client: TestClient, mock_db, session_docs):
        mock_db.get_session.return_value = session_docs[0]

        response = operator_client.patch("/sessions/sess-1/status", json={"status": "finished"})

        assert response.status_code == 200
        assert response.json()["status"] == "finished"

    def test_finished_to_paid_allowed(self, operator_client: TestClient, mock_db, session_docs):
        mock_db.get_session.return_value = session_docs[3]

        response = operator_client.patch("/sessions/sess-4/status", json={"status": "paid"})

        assert response.status_code == 200
        assert response.json()["payment_method"] == "cash"
