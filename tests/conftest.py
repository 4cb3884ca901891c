from datetime import datetime

import pytest

from app import create_app
from models import db as _db
from models.user import ADMIN, CANDIDATE, INTERVIEWER, User
from routes.deps import booking_service, slot_service
from security.password import hash_password
from services.policy import Principal

PASSWORD = "password123"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + str(tmp_path / "test.db"),
        "NOTIFY_ASYNC": False,
        "SMTP_HOST": None,
        "BCRYPT_ROUNDS": 4,
    })
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sent(app):
    """Notifications captured by the in-memory port."""
    return app.extensions["notification_dispatcher"].port.sent


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role=CANDIDATE, name=None, email=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"{role}{n}@example.com",
            name=name or f"{role.title()} {n}",
            role=role,
            password_hash=hash_password(PASSWORD, rounds=4),
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture
def interviewer(make_user):
    return make_user(INTERVIEWER, name="John Smith")


@pytest.fixture
def candidate(make_user):
    return make_user(CANDIDATE, name="Test Candidate")


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN, name="System Administrator")


def as_principal(user):
    return Principal(requester_id=user.id, requester_role=user.role)


@pytest.fixture
def bookings(app):
    return booking_service()


@pytest.fixture
def slots(app):
    return slot_service()


def at(hour, minute=0, day=10):
    return datetime(2025, 1, day, hour, minute)
