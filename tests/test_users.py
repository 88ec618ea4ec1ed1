from io import BytesIO

from openpyxl import load_workbook

from conftest import ADMIN_EMAIL


def test_list_requires_admin(api):
    assert api.get("/api/users?action=list").status_code == 403
    users = api.get("/api/users?action=list", admin=True).json()["users"]
    assert [u["email"] for u in users] == [ADMIN_EMAIL]
    assert "password_hash" not in users[0]


def test_profile_is_public_and_hides_email(api):
    user = api.register()
    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["name"] == "alice"
    assert "email" not in profile
    assert api.get("/api/users?action=profile&id=999").status_code == 404


def test_admin_add_user_role_fallback(api):
    resp = api.post(
        "/api/users?action=add",
        {"name": "Op", "email": "op@example.com", "password": "password123", "role": "superuser"},
        admin=True,
    )
    assert resp.status_code == 200
    users = {u["email"]: u for u in api.get("/api/users?action=list", admin=True).json()["users"]}
    assert users["op@example.com"]["role"] == "user"

    dup = api.post(
        "/api/users?action=add",
        {"name": "Op", "email": "op@example.com", "password": "password123"},
        admin=True,
    )
    assert dup.status_code == 409


def test_ban_and_unban(api):
    user = api.register()
    api.post("/api/users?action=ban", {"id": user["id"], "is_banned": True}, admin=True)
    users = {u["id"]: u for u in api.get("/api/users?action=list", admin=True).json()["users"]}
    assert users[user["id"]]["is_banned"] is True
    assert users[user["id"]]["banned_at"] is not None

    api.post("/api/users?action=ban", {"id": user["id"], "is_banned": False}, admin=True)
    users = {u["id"]: u for u in api.get("/api/users?action=list", admin=True).json()["users"]}
    assert users[user["id"]]["is_banned"] is False
    assert users[user["id"]]["banned_at"] is None


def test_admin_cannot_target_self(api):
    admin = api.get("/api/users?action=list", admin=True).json()["users"][0]
    for action, body in (("ban", {"id": admin["id"]}), ("makeAdmin", {"id": admin["id"], "make_admin": False})):
        resp = api.post(f"/api/users?action={action}", body, admin=True)
        assert resp.status_code == 400
    assert api.delete(f"/api/users?action=delete&id={admin['id']}", admin=True).status_code == 400


def test_banned_user_leaves_scoreboard(api):
    user = api.register()
    challenge_id = api.add_challenge()
    api.submit(user["id"], challenge_id, "cvctf{test}")
    assert len(api.get("/api/users?action=scoreboard").json()["leaderboard"]) == 1

    api.post("/api/users?action=ban", {"id": user["id"]}, admin=True)
    assert api.get("/api/users?action=scoreboard").json()["leaderboard"] == []


def test_make_admin_grants_admin_access(api):
    user = api.register()
    api.post("/api/users?action=makeAdmin", {"id": user["id"]}, admin=True)

    resp = api.client.get("/api/users?action=list", headers={"X-Admin-Email": user["email"]})
    assert resp.status_code == 200


def test_reset_all_scores(api):
    user = api.register()
    challenge_id = api.add_challenge()
    api.submit(user["id"], challenge_id, "cvctf{test}")

    assert api.post("/api/users?action=reset", admin=True).status_code == 200

    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 0
    assert profile["solved_challenge_ids"] == []
    assert api.get("/api/users?action=flags", admin=True).json()["flags"] == []


def test_reset_single_event(api):
    event_id = api.post("/api/events?action=create", {"name": "E"}, admin=True).json()["id"]
    user = api.register()
    in_event = api.add_challenge(flag="cvctf{e}", points=30, event_id=event_id)
    in_pool = api.add_challenge(flag="cvctf{p}", points=70, title="Pool")
    api.submit(user["id"], in_event, "cvctf{e}")
    api.submit(user["id"], in_pool, "cvctf{p}")

    api.post(f"/api/users?action=reset&event_id={event_id}", admin=True)

    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 70
    assert profile["solved_challenge_ids"] == [in_pool]


def test_delete_user_removes_submissions(api):
    user = api.register()
    challenge_id = api.add_challenge()
    api.submit(user["id"], challenge_id, "cvctf{nope}")

    assert api.delete(f"/api/users?action=delete&id={user['id']}", admin=True).status_code == 200
    assert api.get(f"/api/users?action=profile&id={user['id']}").status_code == 404
    assert api.get("/api/users?action=flags", admin=True).json()["flags"] == []


def test_flags_filter_and_export(api):
    user = api.register()
    first = api.add_challenge(flag="cvctf{a}")
    second = api.add_challenge(flag="cvctf{b}", title="Second")
    api.submit(user["id"], first, "cvctf{a}")
    api.submit(user["id"], second, "cvctf{guess}")

    only_second = api.get(f"/api/users?action=flags&challenge_id={second}", admin=True).json()["flags"]
    assert [f["flag"] for f in only_second] == ["cvctf{guess}"]

    resp = api.get("/api/users?action=exportFlags", admin=True)
    assert resp.status_code == 200
    ws = load_workbook(BytesIO(resp.content)).active
    assert [c.value for c in ws[1]] == ["ID", "Time", "User", "Challenge", "Flag", "Correct"]
    assert ws.max_row == 3


def test_audit_log_records_admin_actions(api):
    user = api.register()
    api.post("/api/users?action=ban", {"id": user["id"]}, admin=True)

    logs = api.get(f"/api/users?action=audit&emails={user['email']}", admin=True).json()["logs"]
    assert logs[0]["action"] == "ban_user"
    assert logs[0]["admin_email"] == ADMIN_EMAIL
    assert logs[0]["target_email"] == user["email"]


def test_admin_add_rejects_malformed_email(api):
    resp = api.post(
        "/api/users?action=add",
        {"name": "Op", "email": "a@b..c", "password": "password123"},
        admin=True,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email format"


def test_admin_reads_gate_before_parameter_validation(client):
    for url in (
        "/api/users?action=audit&limit=0",
        "/api/users?action=flags&challenge_id=abc",
        "/api/users?action=exportFlags&challenge_id=abc",
        "/api/users?action=list&since=not-a-date",
    ):
        resp = client.get(url)
        assert resp.status_code == 403, url
        assert resp.json() == {"error": "Admin access required"}


def test_admin_reads_still_validate_parameters(api):
    resp = api.get("/api/users?action=audit&limit=0", admin=True)
    assert resp.status_code == 400


def test_reset_rejects_non_numeric_event_id(api):
    resp = api.post("/api/users?action=reset", {"event_id": "abc"}, admin=True)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid value for event_id"


def test_reset_event_id_in_body(api):
    event_id = api.post("/api/events?action=create", {"name": "E"}, admin=True).json()["id"]
    user = api.register()
    challenge_id = api.add_challenge(event_id=event_id)
    api.submit(user["id"], challenge_id, "cvctf{test}")

    assert api.post("/api/users?action=reset", {"event_id": event_id}, admin=True).status_code == 200
    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 0
