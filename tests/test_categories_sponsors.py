def test_category_crud(api):
    resp = api.post("/api/categories?action=add", {"name": "Web", "description": "HTTP things"}, admin=True)
    assert resp.status_code == 200
    category_id = resp.json()["id"]

    dup = api.post("/api/categories?action=add", {"name": "Web"}, admin=True)
    assert dup.status_code == 409

    api.post("/api/categories?action=add", {"name": "Crypto"}, admin=True)
    names = [c["name"] for c in api.get("/api/categories?action=list").json()["categories"]]
    assert names == ["Crypto", "Web"]

    assert api.delete(f"/api/categories?action=delete&id={category_id}", admin=True).status_code == 200


def test_category_delete_blocked_when_used(api):
    category_id = api.post("/api/categories?action=add", {"name": "Web"}, admin=True).json()["id"]
    api.add_challenge(category="Web")

    resp = api.delete(f"/api/categories?action=delete&id={category_id}", admin=True)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot delete category: it is used by challenges"


def test_category_rename_follows_challenges(api):
    category_id = api.post("/api/categories?action=add", {"name": "Web"}, admin=True).json()["id"]
    challenge_id = api.add_challenge(category="Web")

    resp = api.put(f"/api/categories?action=update&id={category_id}", {"name": "Web Security"}, admin=True)
    assert resp.status_code == 200
    ch = api.get(f"/api/challenges?action=get&id={challenge_id}").json()["challenge"]
    assert ch["category"] == "Web Security"


def test_sponsors_ordered_by_display_order(api):
    api.post("/api/sponsors?action=add", {"name": "Second", "display_order": 2}, admin=True)
    first_id = api.post("/api/sponsors?action=add", {"name": "First", "display_order": 1}, admin=True).json()["id"]

    names = [s["name"] for s in api.get("/api/sponsors?action=list").json()["sponsors"]]
    assert names == ["First", "Second"]

    api.put(f"/api/sponsors?action=update&id={first_id}", {"display_order": 5}, admin=True)
    names = [s["name"] for s in api.get("/api/sponsors?action=list").json()["sponsors"]]
    assert names == ["Second", "First"]

    assert api.delete(f"/api/sponsors?action=delete&id={first_id}", admin=True).status_code == 200
    assert len(api.get("/api/sponsors?action=list").json()["sponsors"]) == 1


def test_sponsor_mutation_requires_admin(api):
    resp = api.post("/api/sponsors?action=add", {"name": "Nope"})
    assert resp.status_code == 403
