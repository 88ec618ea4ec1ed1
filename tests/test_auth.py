from core.config import settings


def test_register_then_login(api):
    user = api.register()
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert "password_hash" not in user

    resp = api.post("/api/auth?action=login", {"email": "alice@example.com", "password": "password123"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["isAdmin"] is False
    assert data["user"]["id"] == user["id"]


def test_register_duplicate_email_conflicts(api):
    api.register()
    resp = api.post(
        "/api/auth?action=register",
        {"name": "other", "email": "alice@example.com", "password": "password123"},
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "Email already registered"}


def test_register_validation(api):
    resp = api.post("/api/auth?action=register", {"name": "bob", "email": "", "password": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "All fields are required"

    resp = api.post("/api/auth?action=register", {"name": "bob", "email": "not-an-email", "password": "password123"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email format"

    resp = api.post("/api/auth?action=register", {"name": "bob", "email": "bob@example.com", "password": "short"})
    assert resp.status_code == 400


def test_register_strips_markup_from_name(api):
    user = api.register(name="<b>mallory</b>", email="mallory@example.com")
    assert user["name"] == "mallory"


def test_login_wrong_password_is_generic(api):
    api.register()
    wrong = api.post("/api/auth?action=login", {"email": "alice@example.com", "password": "nope-nope"})
    missing = api.post("/api/auth?action=login", {"email": "ghost@example.com", "password": "nope-nope"})
    assert wrong.status_code == missing.status_code == 401
    assert wrong.json() == missing.json() == {"error": "Invalid credentials"}


def test_configured_admin_login(api):
    resp = api.post(
        "/api/auth?action=login",
        {"email": settings.admin_email, "password": settings.admin_password},
    )
    assert resp.status_code == 200
    assert resp.json()["isAdmin"] is True


def test_banned_user_cannot_login(api):
    user = api.register()
    assert api.post("/api/users?action=ban", {"id": user["id"]}, admin=True).status_code == 200

    resp = api.post("/api/auth?action=login", {"email": "alice@example.com", "password": "password123"})
    assert resp.status_code == 403
    assert resp.json()["error"] == "Account is banned"


def test_unknown_action(api):
    resp = api.post("/api/auth?action=nope", {})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid action"


def test_missing_csrf_token_is_rejected(client):
    resp = client.post(
        "/api/auth?action=register",
        json={"name": "eve", "email": "eve@example.com", "password": "password123"},
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "Invalid CSRF token"


def test_wrong_csrf_token_is_rejected(client, csrf):
    resp = client.post(
        "/api/auth?action=login",
        json={"email": "a@example.com", "password": "x", "csrf_token": "0" * 64},
    )
    assert resp.status_code == 403


def test_auth_rate_limit(api, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_auth_requests", 2)
    body = {"email": "ghost@example.com", "password": "whatever1"}

    assert api.post("/api/auth?action=login", body).status_code == 401
    assert api.post("/api/auth?action=login", body).status_code == 401
    resp = api.post("/api/auth?action=login", body)
    assert resp.status_code == 429
    assert resp.json()["error"] == "Too many requests. Please try again later."


def test_register_rejects_empty_domain_label(api):
    resp = api.post("/api/auth?action=register", {"name": "bob", "email": "a@b..c", "password": "password123"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email format"
