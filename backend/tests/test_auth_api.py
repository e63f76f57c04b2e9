import re

from conftest import PASSWORD, register


def login(client, email="owner@example.com", password=PASSWORD):
    return client.post("/api/auth/token", data={"username": email, "password": password})


def test_register_and_login(client):
    register(client)
    res = login(client)
    assert res.status_code == 200
    assert res.json()["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {res.json()['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"
    assert me.json()["role"] == "Member"


def test_register_rejects_weak_password(client):
    res = client.post(
        "/api/auth/register", json={"name": "Weak", "email": "weak@example.com", "password": "password"}
    )
    assert res.status_code == 400
    assert "uppercase" in res.json()["detail"]


def test_register_rejects_duplicate_email(client):
    register(client)
    res = client.post(
        "/api/auth/register", json={"name": "Again", "email": "owner@example.com", "password": PASSWORD}
    )
    assert res.status_code == 400


def test_login_with_wrong_password(client):
    register(client)
    assert login(client, password="Wrong#123").status_code == 401


def test_forgot_password_unknown_email(client, sent_emails):
    res = client.post("/api/auth/password/forgot", json={"email": "ghost@example.com"})
    assert res.status_code == 404
    assert res.json()["detail"] == "Email not found"
    assert sent_emails == []


def test_forgot_and_reset_password(client, sent_emails):
    register(client)
    res = client.post("/api/auth/password/forgot", json={"email": "owner@example.com"})
    assert res.status_code == 200
    assert res.json()["url"] == "/auth/check-email?email=owner%40example.com"
    assert sent_emails[0]["to"] == "owner@example.com"

    token = re.search(r"token=([^&\"]+)", sent_emails[0]["body"]).group(1)
    res = client.post(
        "/api/auth/password/reset",
        json={"email": "owner@example.com", "password": "Another#456", "token": "wrong"},
    )
    assert res.status_code == 400

    res = client.post(
        "/api/auth/password/reset",
        json={"email": "owner@example.com", "password": "Another#456", "token": token},
    )
    assert res.status_code == 200
    assert login(client, password="Another#456").status_code == 200
    assert login(client).status_code == 401


def test_reset_password_enforces_strength(client, sent_emails):
    register(client)
    client.post("/api/auth/password/forgot", json={"email": "owner@example.com"})
    token = re.search(r"token=([^&\"]+)", sent_emails[0]["body"]).group(1)
    res = client.post(
        "/api/auth/password/reset",
        json={"email": "owner@example.com", "password": "short", "token": token},
    )
    assert res.status_code == 400


def test_change_password(client):
    headers = register(client)
    res = client.post(
        "/api/profile/changePassword",
        json={"email": "owner@example.com", "currentPassword": "Wrong#123", "newPassword": "Another#456"},
        headers=headers,
    )
    assert res.status_code == 400

    res = client.post(
        "/api/profile/changePassword",
        json={"email": "owner@example.com", "currentPassword": PASSWORD, "newPassword": "Another#456"},
        headers=headers,
    )
    assert res.status_code == 200
    assert login(client, password="Another#456").status_code == 200


def test_change_password_requires_auth(client):
    res = client.post(
        "/api/profile/changePassword",
        json={"email": "owner@example.com", "currentPassword": PASSWORD, "newPassword": "Another#456"},
    )
    assert res.status_code == 401
