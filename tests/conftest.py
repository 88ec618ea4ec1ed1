"""
Shared fixtures.  The environment is configured before any backend module
is imported because ``core.config.settings`` and the engine are built at
import time.
"""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="ctfplatform-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["RATE_LIMIT_AUTH_REQUESTS"] = "1000"
os.environ["RATE_LIMIT_FLAG_REQUESTS"] = "1000"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
import models.audit_log       # noqa: F401, E402
import models.category        # noqa: F401, E402
import models.challenge       # noqa: F401, E402
import models.event           # noqa: F401, E402
import models.sponsor         # noqa: F401, E402
import models.submitted_flag  # noqa: F401, E402
import models.user            # noqa: F401, E402
from core.ratelimit import limiter  # noqa: E402
from main import app  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_HEADERS = {"X-Admin-Email": ADMIN_EMAIL}


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Entering the context runs the startup hook, which creates the admin row
    with TestClient(app) as c:
        yield c


@pytest.fixture
def csrf(client):
    return client.get("/api/csrf").json()["token"]


@pytest.fixture
def api(client, csrf):
    """Small helper that attaches the CSRF token (and admin header on demand)."""

    class _Api:
        def __init__(self):
            self.client = client
            self.csrf = csrf

        def post(self, url, body=None, admin=False):
            return client.post(url, json={**(body or {}), "csrf_token": csrf}, headers=_headers(admin))

        def put(self, url, body=None, admin=False):
            return client.put(url, json={**(body or {}), "csrf_token": csrf}, headers=_headers(admin))

        def delete(self, url, admin=False):
            headers = {**_headers(admin), "X-CSRF-Token": csrf}
            return client.delete(url, headers=headers)

        def get(self, url, admin=False):
            return client.get(url, headers=_headers(admin))

        def register(self, name="alice", email="alice@example.com", password="password123"):
            resp = self.post("/api/auth?action=register", {"name": name, "email": email, "password": password})
            assert resp.status_code == 200, resp.text
            return resp.json()["user"]

        def add_challenge(self, flag="cvctf{test}", points=100, **extra):
            body = {
                "title": extra.pop("title", "Warmup"),
                "category": extra.pop("category", "Web"),
                "difficulty": extra.pop("difficulty", "Easy"),
                "points": points,
                "flag": flag,
                **extra,
            }
            resp = self.post("/api/challenges?action=add", body, admin=True)
            assert resp.status_code == 200, resp.text
            return resp.json()["id"]

        def submit(self, user_id, challenge_id, flag):
            return self.post(
                "/api/submit_flag",
                {"user_id": user_id, "challenge_id": challenge_id, "flag": flag},
            )

    return _Api()


def _headers(admin: bool) -> dict:
    return dict(ADMIN_HEADERS) if admin else {}
