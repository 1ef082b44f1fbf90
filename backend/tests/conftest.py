"""
SmartParking - Test Configuration & Fixtures
Reusable fixtures for all test modules.

Usage:
    pytest tests/ -v
    pytest tests/test_sessions.py -v
    pytest tests/ -v --tb=short
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, MagicMock, AsyncMock
from datetime import timedelta
import os
import sys

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import firebase_db  # noqa: E402
from models.user import User  # noqa: E402
from security.passwords import hash_password  # noqa: E402
from utils.helpers import utcnow  # noqa: E402


# bcrypt minimum cost, keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


# ============================================================
# MOCK FIREBASE BEFORE IMPORTING APP
# ============================================================

@pytest.fixture(scope="session", autouse=True)
def mock_firebase():
    """Mock Firebase initialization at session level."""
    with patch("database.firebase_db.init_firebase") as mock_init:
        with patch("database.firebase_db.get_firestore_client") as mock_client:
            mock_init.return_value = MagicMock()
            mock_client.return_value = MagicMock()
            yield


# ============================================================
# SAMPLE DOCUMENTS
# ============================================================

@pytest.fixture
def space_docs() -> list:
    """Four spaces: two free, one occupied, one reserved."""
    now = utcnow()
    return [
        {"number": "A1", "zone": "Zone A", "vehicle_type": "car", "status": "free",
         "current_session_id": None, "reservation": None, "created_at": now, "updated_at": now},
        {"number": "A2", "zone": "Zone A", "vehicle_type": "car", "status": "occupied",
         "current_session_id": "sess-1", "reservation": None, "created_at": now, "updated_at": now},
        {"number": "A3", "zone": "Zone A", "vehicle_type": "car", "status": "reserved",
         "current_session_id": None,
         "reservation": {"plate": "RES-001", "vehicle_type": "car",
                         "expires_at": now + timedelta(minutes=30)},
         "created_at": now, "updated_at": now},
        {"number": "B1", "zone": "Zone B", "vehicle_type": "truck", "status": "free",
         "current_session_id": None, "reservation": None, "created_at": now, "updated_at": now},
    ]


@pytest.fixture
def session_docs() -> list:
    """
    Five sessions, newest first: 2 active, 2 finished, 1 paid.
    """
    now = utcnow()

    def doc(session_id, plate, space, status, minutes_ago, **extra):
        entry = now - timedelta(minutes=minutes_ago)
        data = {
            "session_id": session_id,
            "vehicle": {"id": None, "plate": plate, "type": "car"},
            "space_number": space,
            "entry_time": entry,
            "exit_time": None,
            "status": status,
            "amount": None,
            "payment_method": None,
            "photos": {"entry": None, "exit": None},
            "duration": None,
            "created_at": entry,
            "updated_at": entry,
        }
        data.update(extra)
        return data

    return [
        doc("sess-1", "123 TU 4567", "A2", "active", 10),
        doc("sess-2", "88 TU 100", "B1", "active", 40),
        doc("sess-3", "77 TU 200", "A1", "finished", 120,
            exit_time=now - timedelta(minutes=60), duration=60, amount=2.0),
        doc("sess-4", "66 TU 300", "A1", "finished", 240,
            exit_time=now - timedelta(minutes=200), duration=40, amount=2.0),
        doc("sess-5", "55 TU 400", "B1", "paid", 600,
            exit_time=now - timedelta(minutes=400), duration=200, amount=8.0,
            payment_method="card"),
    ]


@pytest.fixture
def alert_docs() -> list:
    """Five alerts, newest first."""
    now = utcnow()
    return [
        {"alert_id": f"alert-{i}", "type": kind, "message": f"Alerte {i}",
         "timestamp": now - timedelta(minutes=i), "read": i > 2}
        for i, kind in enumerate(["success", "warning", "error", "success", "warning"], start=1)
    ]


# ============================================================
# MOCK DATABASE FIXTURES
# ============================================================

@pytest.fixture
def mock_db(space_docs):
    """Mock database with every FirebaseDB method used by the services."""
    mock = MagicMock()
    spaces = {s["number"]: s for s in space_docs}

    # Sessions
    mock.list_sessions = AsyncMock(return_value=[])
    mock.list_sessions_in_range = AsyncMock(return_value=[])
    mock.count_sessions = AsyncMock(return_value=0)
    mock.get_session = AsyncMock(return_value=None)
    mock.create_session = AsyncMock(side_effect=lambda data: data)
    mock.update_session = AsyncMock(return_value=True)

    # Alerts
    mock.get_recent_alerts = AsyncMock(return_value=[])
    mock.get_alert = AsyncMock(return_value=None)
    mock.create_alert = AsyncMock(side_effect=lambda data: data)
    mock.mark_alert_read = AsyncMock(return_value=True)

    # Spaces
    mock.get_all_spaces = AsyncMock(return_value=space_docs)
    mock.get_space = AsyncMock(side_effect=lambda number: spaces.get(number))
    mock.get_spaces_by_numbers = AsyncMock(
        side_effect=lambda numbers: {n: spaces[n] for n in set(numbers) if n in spaces}
    )
    mock.update_space = AsyncMock(return_value=True)
    mock.get_expired_reservations = AsyncMock(return_value=[])
    mock.initialize_default_spaces = AsyncMock(return_value=[])

    # Users and tokens
    mock.get_user = AsyncMock(return_value=None)
    mock.get_user_by_email = AsyncMock(return_value=None)
    mock.save_user = AsyncMock(return_value=True)
    mock.list_users = AsyncMock(return_value=[])
    mock.delete_user = AsyncMock(return_value=True)
    mock.save_auth_token = AsyncMock(return_value=True)
    mock.get_auth_token = AsyncMock(return_value=None)
    mock.delete_auth_token = AsyncMock(return_value=True)

    # Payments
    mock.record_session_payment = AsyncMock(side_effect=lambda *args: args[3])
    mock.get_recent_payments = AsyncMock(return_value=[])
    mock.list_payments_in_range = AsyncMock(return_value=[])
    mock.payment_totals = AsyncMock(return_value={"count": 0, "total": 0.0})

    # Wallets
    mock.wallet_top_up = AsyncMock(return_value=0.0)
    mock.list_wallet_transactions = AsyncMock(return_value=[])

    # Settings, None until an administrator saves them
    mock.get_parking_settings = AsyncMock(return_value=None)
    mock.save_parking_settings = AsyncMock(return_value=True)

    return mock


@pytest.fixture
def fast_hashing():
    """bcrypt at minimum cost for hashes computed by the services."""
    with patch("security.passwords.get_settings", return_value=MagicMock(bcrypt_rounds=TEST_BCRYPT_ROUNDS)):
        yield


# ============================================================
# MOCK USER FIXTURES
# ============================================================

def _user(user_id: str, role: str, password: str = "secret123", status: str = "active") -> User:
    return User(
        user_id=user_id,
        name=f"Test {role}",
        email=f"{role}@example.com",
        password_hash=hash_password(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        status=status,
    )


@pytest.fixture
def customer_user() -> User:
    return _user("customer-123", "customer")


@pytest.fixture
def operator_user() -> User:
    return _user("operator-123", "operator")


@pytest.fixture
def admin_user() -> User:
    return _user("admin-123", "admin")


# ============================================================
# TEST CLIENT FIXTURES
# ============================================================

@pytest.fixture
def app(mock_db):
    """FastAPI app with the database singleton replaced by mock_db."""
    with patch.object(firebase_db, "_db_instance", mock_db):
        with patch("main.init_firebase"):
            with patch("main.start_scheduler"):
                with patch("main.stop_scheduler"):
                    from main import app as fastapi_app
                    yield fastapi_app
                    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Unauthenticated TestClient."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login_as(app):
    """Authenticate every following request as the given user."""
    from security.auth import get_current_user

    def _login(user: User) -> User:
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture
def customer_client(client, login_as, customer_user):
    login_as(customer_user)
    return client


@pytest.fixture
def operator_client(client, login_as, operator_user):
    login_as(operator_user)
    return client


@pytest.fixture
def admin_client(client, login_as, admin_user):
    login_as(admin_user)
    return client
