import mongomock
import pytest
from fastapi.testclient import TestClient

from fittrack.config import Settings
from fittrack.db import COLLECTIONS, ensure_indexes, stamp
from fittrack.deps import get_db, get_mailer, get_settings
from fittrack.main import app
from fittrack.security import TokenService, hash_password

TEST_SECRET = "test-secret"
PASSWORD = "password123"


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send_otp(self, email, code):
        self.sent.append((email, code))


def make_plan_payload(**overrides):
    base = {
        "plan_name": "Leg Day Blast",
        "description": "Lower body strength",
        "location": "Gym",
        "training_type": "Strength",
        "level": "Beginner",
        "weeks": [
            {
                "week": 1,
                "days": [
                    {
                        "day": 1,
                        "day_name": "Legs",
                        "categories": [
                            {
                                "sub_category": "Training",
                                "exercises": [
                                    {"name": "Squat", "sets": 3, "reps": [10, 10, 10]},
                                    {"name": "Lunge", "sets": 3, "reps": [12, 12, 12]},
                                ],
                            }
                        ],
                    }
                ],
            }
        ],
    }
    base.update(overrides)
    return base


def create_user(db, email="user@example.com", role="user", verified=True):
    user = stamp({
        "name": "Test User",
        "email": email,
        "password": hash_password(PASSWORD),
        "is_verified": verified,
        "role": role,
    })
    user["_id"] = db[COLLECTIONS["USERS"]].insert_one(user).inserted_id
    return user


def auth_headers(user):
    token = TokenService(TEST_SECRET).issue(user["_id"], user["role"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    database = mongomock.MongoClient().fittrack_test
    ensure_indexes(database)
    return database


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        token_secret=TEST_SECRET,
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://testserver/files",
    )


@pytest.fixture
def client(db, mailer, settings):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return create_user(db)


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(db):
    return auth_headers(create_user(db, email="admin@example.com", role="admin"))


@pytest.fixture
def plan(client, admin_headers):
    resp = client.post("/api/v1/plan/create", json=make_plan_payload(), headers=admin_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["plan"]
