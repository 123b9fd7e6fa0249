"""Register / login / me: the token is how the acting user is resolved."""


def test_register_then_me(client):
    res = client.post("/auth/register", json={"email": "ana@example.com", "password": "secret123"})
    assert res.status_code == 201
    token = res.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ana@example.com"


def test_register_duplicate_email(client):
    payload = {"email": "dup@example.com", "password": "secret123"}
    assert client.post("/auth/register", json=payload).status_code == 201

    res = client.post("/auth/register", json=payload)
    assert res.status_code == 409
    assert res.json() == {"detail": "Email already registered", "code": "CONFLICT"}


def test_login(client):
    client.post("/auth/register", json={"email": "bo@example.com", "password": "secret123"})

    ok = client.post("/auth/login", json={"email": "bo@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"

    bad = client.post("/auth/login", json={"email": "bo@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401


def test_invalid_token_is_rejected(client):
    res = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_token_for_deleted_user_is_rejected(client):
    from app.core.security import create_access_token

    token = create_access_token("9999")
    res = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
