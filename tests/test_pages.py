from datetime import datetime, timedelta, timezone


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_home_shows_active_event_and_sponsors(api):
    now = datetime.now(timezone.utc)
    api.post(
        "/api/events?action=create",
        {
            "name": "Autumn <CTF>",
            "start_date": (now - timedelta(hours=1)).isoformat(),
            "end_date": (now + timedelta(hours=1)).isoformat(),
        },
        admin=True,
    )
    api.post("/api/sponsors?action=add", {"name": "Acme"}, admin=True)

    html = api.client.get("/").text
    # autoescaped, not double-escaped
    assert "Autumn &lt;CTF&gt;" in html
    assert "Acme" in html


def test_play_lists_general_pool_only(api):
    event_id = api.post("/api/events?action=create", {"name": "E"}, admin=True).json()["id"]
    api.add_challenge(title="Pool challenge")
    api.add_challenge(title="Event challenge", event_id=event_id)

    html = api.client.get("/play").text
    assert "Pool challenge" in html
    assert "Event challenge" not in html


def test_challenge_page_and_missing(api):
    challenge_id = api.add_challenge(title="Detail me")
    assert "Detail me" in api.client.get(f"/challenges/{challenge_id}").text
    assert api.client.get("/challenges/999").status_code == 404


def test_static_pages_render(client):
    for path in ("/login", "/register", "/dashboard", "/scoreboard", "/admin"):
        resp = client.get(path)
        assert resp.status_code == 200, path
        assert "text/html" in resp.headers["content-type"]
