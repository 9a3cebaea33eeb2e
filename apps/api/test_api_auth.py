from conftest import DEFAULT_PASSWORD
from models import AppRole


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email="new@medstock.test", password="Str0ng!Pass"):
    return client.post("/api/auth/register", json={
        "email": email, "password": password, "first_name": "New", "last_name": "Hire",
    })


def test_registered_user_is_pending_approval(client):
    response = register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["roles"] == []

    me = client.get("/api/auth/me", headers=bearer(body["access_token"])).json()
    assert me["pending_approval"] is True
    assert me["is_staff"] is False
    assert me["permitted_routes"] == []

    blocked = client.get("/api/analytics/dashboard", headers=bearer(body["access_token"]))
    assert blocked.status_code == 403
    assert blocked.json()["detail"] == "Account pending approval"


def test_duplicate_email_rejected(client):
    assert register(client).status_code == 201
    response = register(client)
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_weak_password_rejected(client):
    assert register(client, password="short").status_code == 422


def test_login(client, make_user):
    user = make_user([AppRole.PHARMACIST], email="login@medstock.test")

    response = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["roles"] == ["pharmacist"]


def test_login_wrong_password(client, make_user):
    user = make_user([AppRole.PHARMACIST])
    response = client.post("/api/auth/login", json={"email": user.email, "password": "Wr0ng!Pass"})
    assert response.status_code == 401


def test_inactive_user_cannot_log_in(client, make_user):
    user = make_user([AppRole.PHARMACIST], is_active=False)
    response = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 403


def test_refresh_token_is_single_use(client, make_user):
    user = make_user([AppRole.ADMIN])
    tokens = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}).json()

    first = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert first.status_code == 200

    again = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert again.status_code == 401


def test_access_token_cannot_refresh(client, make_user):
    user = make_user([AppRole.ADMIN])
    tokens = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}).json()

    response = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_logout_revokes_access_token(client, admin, auth_headers):
    headers = auth_headers(admin)
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    assert client.post("/api/auth/logout", headers=headers).status_code == 200

    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_missing_token(client):
    assert client.get("/api/auth/me").status_code in (401, 403)


def test_access_report(client, make_user, auth_headers):
    doctor = make_user([AppRole.DOCTOR])
    headers = auth_headers(doctor)

    granted = client.get("/api/auth/access/analytics", headers=headers).json()
    denied = client.get("/api/auth/access/medicines", headers=headers).json()

    assert granted == {"route": "analytics", "decision": "granted", "allowed": True}
    assert denied == {"route": "medicines", "decision": "denied", "allowed": False}
    assert client.get("/api/auth/access/nowhere", headers=headers).status_code == 404


def test_staff_without_required_role_is_denied(client, make_user, auth_headers):
    doctor = make_user([AppRole.DOCTOR])

    response = client.get("/api/medicines", headers=auth_headers(doctor))

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied"


def test_admin_approves_pending_user(client, admin, auth_headers):
    pending = register(client).json()
    user_id = pending["user"]["id"]
    admin_headers = auth_headers(admin)

    listed = client.get("/api/users?pending_only=true", headers=admin_headers).json()
    assert [u["id"] for u in listed] == [user_id]

    granted = client.post(f"/api/users/{user_id}/roles", json={"role": "pharmacist"}, headers=admin_headers)
    assert granted.status_code == 200
    assert granted.json()["roles"] == ["pharmacist"]

    assert client.get("/api/medicines", headers=bearer(pending["access_token"])).status_code == 200

    revoked = client.delete(f"/api/users/{user_id}/roles/pharmacist", headers=admin_headers)
    assert revoked.json()["roles"] == []
    assert client.get("/api/medicines", headers=bearer(pending["access_token"])).status_code == 403


def test_admin_cannot_drop_own_admin_role(client, admin, auth_headers):
    response = client.delete(f"/api/users/{admin.id}/roles/admin", headers=auth_headers(admin))
    assert response.status_code == 400


def test_deactivated_user_is_locked_out(client, admin, pharmacist, auth_headers):
    response = client.patch(
        f"/api/users/{pharmacist.id}/active", json={"is_active": False}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers(pharmacist)).status_code == 403


def test_user_management_is_admin_only(client, pharmacist, auth_headers):
    assert client.get("/api/users", headers=auth_headers(pharmacist)).status_code == 403
