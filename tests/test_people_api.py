from sqlalchemy import func, select

from app.models import Relationship


def test_person_crud(client, make_tree):
    tree = make_tree("Wedding", tree_type="WEDDING_GUESTS")
    created = client.post("/api/people", json={
        "tree_id": tree["id"],
        "name": "  Marta Silva ",
        "email": "marta@silvafamily.pt",
        "birth_date": "1961-04-02",
        "gender": "FEMALE",
        "relationship_to_bride": "Aunt",
        "position_x": 120.5,
        "position_y": -40,
    })
    assert created.status_code == 201
    person = created.json()
    assert person["name"] == "Marta Silva"
    assert person["is_alive"] is True
    assert person["position_x"] == 120.5

    got = client.get(f"/api/people/{person['id']}")
    assert got.status_code == 200
    assert got.json()["relationship_to_bride"] == "Aunt"

    upd = client.patch(f"/api/people/{person['id']}", json={"occupation": "Teacher", "is_alive": False})
    assert upd.status_code == 200
    assert upd.json()["occupation"] == "Teacher"
    assert upd.json()["is_alive"] is False
    assert upd.json()["email"] == "marta@silvafamily.pt"

    assert client.delete(f"/api/people/{person['id']}").status_code == 204
    assert client.get(f"/api/people/{person['id']}").status_code == 404
    assert client.delete(f"/api/people/{person['id']}").status_code == 404


def test_person_needs_existing_tree(client):
    resp = client.post("/api/people", json={"tree_id": "missing", "name": "Nobody"})
    assert resp.status_code == 404


def test_invalid_email_is_rejected(client, make_tree):
    tree = make_tree()
    resp = client.post("/api/people", json={"tree_id": tree["id"], "name": "X", "email": "not-an-email"})
    assert resp.status_code == 422


def test_list_and_search(client, make_tree, make_person):
    tree = make_tree()
    other = make_tree("Other")
    make_person(tree["id"], "Zoe", occupation="Baker")
    make_person(tree["id"], "Adam", email="adam@bakery.pt")
    make_person(tree["id"], "Mia", occupation="Pilot")
    make_person(other["id"], "Bakari")

    names = [p["name"] for p in client.get("/api/people", params={"tree_id": tree["id"]}).json()]
    assert names == ["Adam", "Mia", "Zoe"]

    found = client.get("/api/people/search", params={"tree_id": tree["id"], "q": "BAK"}).json()
    assert [p["name"] for p in found] == ["Adam", "Zoe"]


def test_deleting_person_removes_their_relationships(client, make_tree, make_person, run_db):
    tree = make_tree()
    a = make_person(tree["id"], "A")
    b = make_person(tree["id"], "B")
    c = make_person(tree["id"], "C")
    for src, dst, rt in ((a, b, "PARENT"), (c, b, "SIBLING"), (a, c, "CUSTOM")):
        resp = client.post("/api/relationships", json={
            "from_person_id": src["id"], "to_person_id": dst["id"], "relationship_type": rt, "tree_id": tree["id"],
        })
        assert resp.status_code == 201

    assert client.delete(f"/api/people/{b['id']}").status_code == 204

    async def _count(db):
        return await db.scalar(select(func.count(Relationship.id)))

    assert run_db(_count) == 1
    remaining = client.get(f"/api/relationships/person/{a['id']}").json()
    assert [r["relationship_type"] for r in remaining] == ["CUSTOM"]


def test_add_family_member_from_node(client, make_tree, make_person):
    tree = make_tree()
    grandma = make_person(tree["id"], "Grandma")
    resp = client.post(f"/api/people/{grandma['id']}/family-member", json={
        "relationship_type": "GRANDPARENT",
        "person": {"name": "Leo", "birth_date": "2015-09-01"},
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["person"]["tree_id"] == tree["id"]
    assert body["relationship"]["from_person_id"] == grandma["id"]
    assert body["relationship"]["to_person_id"] == body["person"]["id"]

    rows = client.get(f"/api/relationships/person/{body['person']['id']}").json()
    assert sorted(r["relationship_type"] for r in rows) == ["GRANDCHILD", "GRANDPARENT"]


def test_add_family_member_to_unknown_person(client):
    resp = client.post("/api/people/missing/family-member", json={
        "relationship_type": "CHILD", "person": {"name": "Orphan"},
    })
    assert resp.status_code == 404


def test_update_ignores_null_for_required_fields(client, make_tree, make_person):
    tree = make_tree()
    person = make_person(tree["id"], "Rui", position_x=10, occupation="Chef")
    resp = client.patch(f"/api/people/{person['id']}", json={
        "name": None, "position_x": None, "position_y": None, "is_alive": None, "occupation": None,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Rui"
    assert body["position_x"] == 10
    assert body["is_alive"] is True
    # optional columns do accept null
    assert body["occupation"] is None


def test_update_strips_name(client, make_tree, make_person):
    tree = make_tree()
    person = make_person(tree["id"], "Rui")
    resp = client.patch(f"/api/people/{person['id']}", json={"name": "  Rui Costa  "})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Rui Costa"

    blank = client.patch(f"/api/people/{person['id']}", json={"name": "   "})
    assert blank.status_code == 400
    assert client.get(f"/api/people/{person['id']}").json()["name"] == "Rui Costa"
