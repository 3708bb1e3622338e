def test_login_returns_token(client, staff_user):
    response = client.post("/api/auth/login", json={"username": "staff", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["role_name"] == "STAFF"


def test_login_with_wrong_password(client, staff_user):
    response = client.post("/api/auth/login", json={"username": "staff", "password": "wrong"})
    assert response.status_code == 401


def test_login_with_unknown_user(client):
    response = client.post("/api/auth/login", json={"username": "nobody", "password": "secret123"})
    assert response.status_code == 401


def test_me(client, staff_headers):
    response = client.get("/api/auth/me", headers=staff_headers)

    assert response.status_code == 200
    assert response.json()["username"] == "staff"


def test_logout_invalidates_token(client, staff_headers):
    assert client.post("/api/auth/logout", headers=staff_headers).status_code == 204
    assert client.get("/api/auth/me", headers=staff_headers).status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
