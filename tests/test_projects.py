from sqlmodel import select

from blazehub.db.models.projects import Project, ProjectCategory
from blazehub.db.models.purchases import Purchase
from blazehub.db.models.users import User, UserRole


def _payload(**overrides):
    body = {"name": "Starter kit", "description": "A FastAPI starter", "category": "free"}
    body.update(overrides)
    return body


# -----------------------------
# Création / modification
# -----------------------------
def test_create_project_admin_only(client, make_user, auth_headers):
    user = make_user()
    assert client.post("/api/projects", json=_payload()).status_code == 401
    assert client.post("/api/projects", json=_payload(), headers=auth_headers(user)).status_code == 403


def test_create_project(client, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN, name="Admin")
    resp = client.post(
        "/api/projects",
        json=_payload(name="  Spaced  ", category="free", price=50, githubRepo="  "),
        headers=auth_headers(admin),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Spaced"
    assert body["price"] is None
    assert body["githubRepo"] is None
    assert body["ownerId"] == admin.id
    assert body["owner"]["name"] == "Admin"
    assert body["fileCount"] == 0


def test_create_project_for_another_owner(client, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN)
    seller = make_user()
    headers = auth_headers(admin)

    resp = client.post("/api/projects", json=_payload(ownerId=seller.id), headers=headers)
    assert resp.json()["ownerId"] == seller.id
    assert client.post("/api/projects", json=_payload(ownerId=9999), headers=headers).status_code == 404


def test_create_project_validation(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=UserRole.ADMIN))

    resp = client.post("/api/projects", json=_payload(name="   "), headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Project name is required"}
    assert client.post("/api/projects", json=_payload(category="paid"), headers=headers).status_code == 400
    assert client.post("/api/projects", json=_payload(category="paid", price=0), headers=headers).status_code == 400
    assert client.post("/api/projects", json=_payload(category="gold", price=5), headers=headers).status_code == 400


def test_create_project_duplicate_name(client, make_user, auth_headers):
    headers = auth_headers(make_user(role=UserRole.ADMIN))
    assert client.post("/api/projects", json=_payload(), headers=headers).status_code == 201
    resp = client.post("/api/projects", json=_payload(), headers=headers)
    assert resp.status_code == 409


def test_update_project_owner_or_admin(client, make_user, make_project, auth_headers):
    owner = make_user()
    stranger = make_user()
    admin = make_user(role=UserRole.ADMIN)
    project = make_project(owner, name="Tool")
    make_project(owner, name="Other")
    url = f"/api/projects/{project.id}"

    assert client.put(url, json=_payload(name="Tool"), headers=auth_headers(stranger)).status_code == 403
    assert client.put(url, json=_payload(name="Other"), headers=auth_headers(owner)).status_code == 409

    resp = client.put(url, json=_payload(name="Tool v2", category="paid", price=30), headers=auth_headers(owner))
    assert resp.status_code == 200
    assert (resp.json()["name"], resp.json()["price"]) == ("Tool v2", 30)

    resp = client.put(url, json=_payload(name="Tool v3"), headers=auth_headers(admin))
    assert resp.status_code == 200
    assert resp.json()["category"] == "free"


# -----------------------------
# Catalogue
# -----------------------------
def test_list_filter_and_pagination(client, make_user, make_project):
    owner = make_user()
    make_project(owner, name="Free one")
    make_project(owner, name="Paid one", category=ProjectCategory.PAID, price=10)
    make_project(owner, name="Premium one", category=ProjectCategory.PREMIUM, price=99)

    body = client.get("/api/projects").json()
    assert body["totalCount"] == 3
    assert body["hasMore"] is False

    body = client.get("/api/projects", params={"category": "paid"}).json()
    assert [p["name"] for p in body["projects"]] == ["Paid one"]
    assert client.get("/api/projects", params={"category": "all"}).json()["totalCount"] == 3
    assert client.get("/api/projects", params={"category": "gold"}).status_code == 400

    body = client.get("/api/projects", params={"search": "PREMIUM"}).json()
    assert [p["name"] for p in body["projects"]] == ["Premium one"]

    page = client.get("/api/projects", params={"limit": 2}).json()
    assert len(page["projects"]) == 2
    assert page["hasMore"] is True
    page = client.get("/api/projects", params={"limit": 2, "offset": 2}).json()
    assert len(page["projects"]) == 1
    assert page["hasMore"] is False


def test_public_listing_hides_paid_from_guests(client, make_user, make_project, auth_headers):
    owner = make_user()
    make_project(owner, name="Free one")
    make_project(owner, name="Paid one", category=ProjectCategory.PAID, price=10)

    guest = client.get("/api/projects/public").json()
    assert [p["name"] for p in guest] == ["Free one"]
    assert guest[0]["files"] == []

    signed_in = client.get("/api/projects/public", headers=auth_headers(make_user())).json()
    assert sorted(p["name"] for p in signed_in) == ["Free one", "Paid one"]


def test_all_projects_is_admin_only(client, make_user, make_project, auth_headers):
    owner = make_user()
    make_project(owner)
    assert client.get("/api/projects/all", headers=auth_headers(owner)).status_code == 403

    body = client.get("/api/projects/all", headers=auth_headers(make_user(role=UserRole.ADMIN))).json()
    assert body[0]["fileIds"] == []


def test_get_project(client, make_user, make_project):
    project = make_project(make_user(), name="Readable")
    assert client.get(f"/api/projects/{project.id}").json()["name"] == "Readable"
    assert client.get("/api/projects/9999").status_code == 404


def test_delete_project(client, db, make_user, make_project, auth_headers):
    owner = make_user()
    buyer = make_user()
    project = make_project(owner, name="Gone", category=ProjectCategory.PAID, price=5)
    project_id = project.id
    db.add(Purchase(user_id=buyer.id, project_id=project_id))
    db.commit()

    assert client.delete(f"/api/projects/{project_id}", headers=auth_headers(buyer)).status_code == 403

    resp = client.delete(f"/api/projects/{project_id}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Project deleted successfully",
        "id": project_id,
        "name": "Gone",
        "filesCount": 0,
    }

    db.expire_all()
    assert db.get(Project, project_id) is None
    assert db.exec(select(Purchase)).all() == []


# -----------------------------
# Accès / achat
# -----------------------------
def test_purchase_status_rules(client, make_user, make_project, auth_headers):
    owner = make_user()
    free = make_project(owner, name="Free")
    paid = make_project(owner, name="Paid", category=ProjectCategory.PAID, price=10)

    assert client.get(f"/api/projects/{free.id}/purchase-status").json() == {"purchased": True}
    assert client.get(f"/api/projects/{paid.id}/purchase-status").status_code == 401
    assert client.get(f"/api/projects/{paid.id}/purchase-status", headers=auth_headers(owner)).json() == {"purchased": True}
    assert client.get(f"/api/projects/{paid.id}/purchase-status", headers=auth_headers(make_user())).json() == {"purchased": False}
    assert client.get("/api/projects/9999/purchase-status").status_code == 404


def test_purchase_debits_coins_once(client, db, make_user, make_project, auth_headers):
    buyer = make_user(coin=150)
    project = make_project(make_user(), name="Premium", category=ProjectCategory.PREMIUM, price=100)
    headers = auth_headers(buyer)
    url = f"/api/projects/{project.id}/purchase"

    resp = client.post(url, headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Successfully purchased Premium",
        "coinsDeducted": 100,
        "remainingCoins": 50,
    }
    assert client.get(f"/api/projects/{project.id}/purchase-status", headers=headers).json() == {"purchased": True}

    resp = client.post(url, headers=headers)
    assert resp.status_code == 409
    assert resp.json() == {"error": "Project already purchased"}

    db.expire_all()
    assert db.get(User, buyer.id).coin == 50
    assert len(db.exec(select(Purchase)).all()) == 1


def test_purchase_insufficient_coins(client, db, make_user, make_project, auth_headers):
    buyer = make_user(coin=20)
    project = make_project(make_user(), name="Paid", category=ProjectCategory.PAID, price=100)

    resp = client.post(f"/api/projects/{project.id}/purchase", headers=auth_headers(buyer))
    assert resp.status_code == 402
    assert resp.json() == {"error": "Insufficient coins", "required": 100, "current": 20, "needsUpgrade": True}

    db.expire_all()
    assert db.get(User, buyer.id).coin == 20
    assert db.exec(select(Purchase)).all() == []


def test_purchase_rejections(client, make_user, make_project, auth_headers):
    owner = make_user()
    buyer = make_user(coin=500)
    headers = auth_headers(buyer)
    free = make_project(owner, name="Free")
    unpriced = make_project(owner, name="Unpriced", category=ProjectCategory.PAID, price=None)

    resp = client.post(f"/api/projects/{free.id}/purchase", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Free projects don't require purchase"}
    assert client.post(f"/api/projects/{unpriced.id}/purchase", headers=headers).json() == {"error": "Project price not set"}
    assert client.post("/api/projects/9999/purchase", headers=headers).status_code == 404
    assert client.post(f"/api/projects/{free.id}/purchase").status_code == 401
