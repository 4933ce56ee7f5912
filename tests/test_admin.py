from conftest import MASTER_PASSWORD, STAFF_EMAIL


def test_seeded_users_and_roles(client, admin_headers):
    users = client.get("/api/admin/users", headers=admin_headers).json()
    emails = [u["email"] for u in users]
    assert emails == sorted(emails)
    assert {"admin@example.com", "mario.rossi@example.com", "giulia.bianchi@example.com"} <= set(emails)

    roles = {r["name"] for r in client.get("/api/admin/roles", headers=admin_headers).json()}
    assert {"admin", "staff"} <= roles


def test_seed_is_idempotent(db, client, admin_headers):
    from fieldportal.db.seed import seed_defaults

    before = client.get("/api/admin/users", headers=admin_headers).json()
    seed_defaults(db)
    after = client.get("/api/admin/users", headers=admin_headers).json()
    assert len(before) == len(after)


def test_staff_cannot_use_admin_routes(client, staff_headers):
    assert client.get("/api/admin/users", headers=staff_headers).status_code == 403
    r = client.put("/api/admin/master-password", json={"new_password": "whatever123"}, headers=staff_headers)
    assert r.status_code == 403


def test_add_user_then_login(client, admin_headers):
    r = client.post(
        "/api/admin/users",
        json={"email": "New.Tech@Example.com", "full_name": "New Tech", "role": "staff"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json()["email"] == "new.tech@example.com"

    r = client.post("/api/login", json={"email": "new.tech@example.com", "password": MASTER_PASSWORD})
    assert r.status_code == 200


def test_add_duplicate_user_is_400(client, admin_headers):
    r = client.post("/api/admin/users", json={"email": STAFF_EMAIL}, headers=admin_headers)
    assert r.status_code == 400


def test_add_user_unknown_role_is_404(client, admin_headers):
    r = client.post("/api/admin/users", json={"email": "x@example.com", "role": "wizard"}, headers=admin_headers)
    assert r.status_code == 404


def test_promote_staff_to_admin_applies_to_existing_token(client, admin_headers, staff_headers):
    me = client.get("/api/auth/me", headers=staff_headers).json()
    assert client.get("/api/admin/users", headers=staff_headers).status_code == 403

    r = client.patch(f"/api/admin/users/{me['id']}/role", json={"role": "admin"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["role"]["name"] == "admin"

    assert client.get("/api/admin/users", headers=staff_headers).status_code == 200


def test_change_master_password(client, admin_headers):
    r = client.put("/api/admin/master-password", json={"new_password": "BrandNew-2024"}, headers=admin_headers)
    assert r.status_code == 200

    old = client.post("/api/login", json={"email": STAFF_EMAIL, "password": MASTER_PASSWORD})
    assert old.status_code == 401
    new = client.post("/api/login", json={"email": STAFF_EMAIL, "password": "BrandNew-2024"})
    assert new.status_code == 200


def test_master_password_too_short_is_400(client, admin_headers):
    r = client.put("/api/admin/master-password", json={"new_password": "short"}, headers=admin_headers)
    assert r.status_code == 400


def test_create_role(client, admin_headers):
    r = client.post("/api/admin/roles", json={"name": "Geologist"}, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["name"] == "geologist"
    assert client.post("/api/admin/roles", json={"name": "geologist"}, headers=admin_headers).status_code == 400
