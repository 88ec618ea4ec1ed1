def test_stats_requires_admin(api):
    assert api.get("/api/stats").status_code == 403


def test_stats_counts(api):
    user = api.register()
    api.register(name="bob", email="bob@example.com")
    challenge_id = api.add_challenge()
    api.add_challenge(title="Off", status="disabled")
    api.post("/api/events?action=create", {"name": "E", "status": "draft"}, admin=True)
    api.submit(user["id"], challenge_id, "cvctf{wrong}")
    api.submit(user["id"], challenge_id, "cvctf{test}")
    api.post("/api/users?action=ban", {"id": user["id"]}, admin=True)

    stats = api.get("/api/stats", admin=True).json()
    assert stats["users"] == {"total": 3, "active": 2, "banned": 1, "admins": 1}
    assert stats["challenges"] == {"total": 2, "active": 1, "disabled": 1}
    assert stats["events"] == {"total": 1, "active": 0, "archived": 0}
    assert stats["flags"] == {"total": 2, "correct": 1}
