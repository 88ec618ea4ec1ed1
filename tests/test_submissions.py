from core.config import settings


def test_correct_flag_awards_points_once(api):
    user = api.register()
    challenge_id = api.add_challenge(flag="cvctf{test}", points=100)

    first = api.submit(user["id"], challenge_id, "cvctf{test}")
    assert first.status_code == 200
    assert first.json() == {"correct": True, "message": "Correct flag!", "points": 100}

    again = api.submit(user["id"], challenge_id, "  cvctf{test}  ")
    assert again.json() == {
        "correct": True,
        "message": "Already solved",
        "points": 0,
        "already_solved": True,
    }

    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 100
    assert profile["challenges_solved"] == 1
    assert profile["solved_challenge_ids"] == [challenge_id]


def test_incorrect_flag(api):
    user = api.register()
    challenge_id = api.add_challenge()

    resp = api.submit(user["id"], challenge_id, "cvctf{wrong}")
    assert resp.json() == {"correct": False, "message": "Incorrect flag"}

    flags = api.get("/api/users?action=flags", admin=True).json()["flags"]
    assert len(flags) == 1
    assert flags[0]["is_correct"] is False
    assert flags[0]["user_name"] == "alice"
    assert flags[0]["challenge_title"] == "Warmup"


def test_submit_missing_fields(api):
    resp = api.submit(None, None, "")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields"


def test_submit_unknown_challenge_and_disabled(api):
    user = api.register()
    assert api.submit(user["id"], 999, "cvctf{x}").status_code == 404

    challenge_id = api.add_challenge(status="disabled")
    resp = api.submit(user["id"], challenge_id, "cvctf{test}")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Challenge is not active"


def test_banned_user_cannot_submit(api):
    user = api.register()
    challenge_id = api.add_challenge()
    api.post("/api/users?action=ban", {"id": user["id"]}, admin=True)

    resp = api.submit(user["id"], challenge_id, "cvctf{test}")
    assert resp.status_code == 403


def test_flag_rate_limit(api, monkeypatch):
    user = api.register()
    challenge_id = api.add_challenge()
    monkeypatch.setattr(settings, "rate_limit_flag_requests", 1)

    assert api.submit(user["id"], challenge_id, "cvctf{nope}").status_code == 200
    assert api.submit(user["id"], challenge_id, "cvctf{nope}").status_code == 429


def test_scoreboard_orders_by_points(api):
    alice = api.register()
    bob = api.register(name="bob", email="bob@example.com")
    api.register(name="carol", email="carol@example.com")
    easy = api.add_challenge(flag="cvctf{easy}", points=50)
    hard = api.add_challenge(flag="cvctf{hard}", points=300, title="Hard one", difficulty="Hard")

    api.submit(alice["id"], easy, "cvctf{easy}")
    api.submit(bob["id"], hard, "cvctf{hard}")
    api.submit(bob["id"], easy, "cvctf{easy}")

    board = api.get("/api/users?action=scoreboard").json()["leaderboard"]
    # carol has no points and is left out
    assert [row["username"] for row in board] == ["bob", "alice"]
    assert board[0] == {"rank": 1, "user_id": bob["id"], "username": "bob", "points": 350, "solved": 2}
    assert board[1]["rank"] == 2


def test_points_change_rescores_solvers(api):
    user = api.register()
    challenge_id = api.add_challenge(points=100)
    api.submit(user["id"], challenge_id, "cvctf{test}")

    resp = api.put(f"/api/challenges?action=update&id={challenge_id}", {"points": 250}, admin=True)
    assert resp.status_code == 200

    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 250


def test_deleting_challenge_removes_its_points(api):
    user = api.register()
    keep = api.add_challenge(flag="cvctf{keep}", points=40)
    drop = api.add_challenge(flag="cvctf{drop}", points=60, title="Drop me")
    api.submit(user["id"], keep, "cvctf{keep}")
    api.submit(user["id"], drop, "cvctf{drop}")

    assert api.delete(f"/api/challenges?action=delete&id={drop}", admin=True).status_code == 200

    profile = api.get(f"/api/users?action=profile&id={user['id']}").json()["user"]
    assert profile["total_points"] == 40
    assert profile["challenges_solved"] == 1
