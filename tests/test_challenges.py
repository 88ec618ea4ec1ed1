def test_list_never_exposes_flag_hash(api):
    api.add_challenge()
    challenges = api.get("/api/challenges?action=list").json()["challenges"]
    assert len(challenges) == 1
    assert "flag_hash" not in challenges[0]
    assert "flag" not in challenges[0]

    detail = api.get(f"/api/challenges?action=get&id={challenges[0]['id']}").json()["challenge"]
    assert "flag_hash" not in detail


def test_list_filters(api):
    api.add_challenge(title="A", category="Web", difficulty="Easy")
    api.add_challenge(title="B", category="Crypto", difficulty="Hard")
    api.add_challenge(title="C", category="Web", difficulty="Hard", status="disabled")

    web = api.get("/api/challenges?action=list&category=Web").json()["challenges"]
    assert [c["title"] for c in web] == ["A"]

    every = api.get("/api/challenges?action=list&status=all").json()["challenges"]
    assert {c["title"] for c in every} == {"A", "B", "C"}

    hard = api.get("/api/challenges?action=list&status=all&difficulty=Hard").json()["challenges"]
    assert {c["title"] for c in hard} == {"B", "C"}

    assert api.get("/api/challenges?action=list&status=bogus").status_code == 400


def test_get_unknown_challenge(api):
    resp = api.get("/api/challenges?action=get&id=42")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Challenge not found"}


def test_add_requires_admin_before_anything_else(client):
    # No admin header, no CSRF token, invalid body: the admin gate answers first
    resp = client.post("/api/challenges?action=add", json={"title": 1})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin access required"}


def test_regular_user_is_not_admin(api):
    user = api.register()
    resp = api.client.post(
        "/api/challenges?action=add",
        json={"csrf_token": api.csrf},
        headers={"X-Admin-Email": user["email"]},
    )
    assert resp.status_code == 403


def test_add_rejects_wrong_flag_prefix(api):
    resp = api.post(
        "/api/challenges?action=add",
        {"title": "T", "category": "Web", "difficulty": "Easy", "points": 10, "flag": "flag{x}"},
        admin=True,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Flag must start with cvctf{"


def test_add_missing_field(api):
    resp = api.post(
        "/api/challenges?action=add",
        {"category": "Web", "difficulty": "Easy", "flag": "cvctf{x}"},
        admin=True,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required field: title"


def test_add_unknown_event(api):
    resp = api.post(
        "/api/challenges?action=add",
        {"title": "T", "category": "Web", "difficulty": "Easy", "flag": "cvctf{x}", "event_id": 77},
        admin=True,
    )
    assert resp.status_code == 404


def test_update_replaces_flag(api):
    user = api.register()
    challenge_id = api.add_challenge(flag="cvctf{old}")

    resp = api.put(f"/api/challenges?action=update&id={challenge_id}", {"flag": "cvctf{new}"}, admin=True)
    assert resp.status_code == 200

    assert api.submit(user["id"], challenge_id, "cvctf{old}").json()["correct"] is False
    assert api.submit(user["id"], challenge_id, "cvctf{new}").json()["correct"] is True


def test_partial_update_keeps_other_fields(api):
    challenge_id = api.add_challenge(title="Keep", points=100)
    api.put(f"/api/challenges?action=update&id={challenge_id}", {"status": "disabled"}, admin=True)

    ch = api.get(f"/api/challenges?action=get&id={challenge_id}").json()["challenge"]
    assert ch["title"] == "Keep"
    assert ch["points"] == 100
    assert ch["status"] == "disabled"
