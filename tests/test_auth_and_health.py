from app.core.security import get_password_hash


def test_login_returns_token(client, make_user):
    make_user(email="vendedor@example.com", password_hash=get_password_hash("Secreta123"))

    response = client.post("/api/v1/auth/login", json={
        "email": "Vendedor@example.com",
        "password": "Secreta123",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]

    me = client.get(
        "/api/v1/messages/unread-count",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me.status_code == 200


def test_login_with_wrong_password(client, make_user):
    make_user(email="comprador@example.com", password_hash=get_password_hash("Correcta1"))

    response = client.post("/api/v1/auth/login", json={
        "email": "comprador@example.com",
        "password": "Incorrecta1",
    })

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"


def test_invalid_token_is_rejected(client):
    response = client.get(
        "/api/v1/messages/unread-count",
        headers={"Authorization": "Bearer no-es-un-jwt"},
    )
    assert response.status_code == 401


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["status"] == "online"
