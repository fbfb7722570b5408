from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def test_health_endpoints(client):
    assert client.get("/").json() == {"message": "Healthy"}
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/health/db").json() == {"database": "ok"}


def test_login_returns_token(client, admin_user):
    response = client.post("/api/login", json={"username": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD})

    assert response.status_code == 200
    assert response.json()["token"]


def test_wrong_password_is_rejected(client, admin_user):
    response = client.post("/api/login", json={"username": ADMIN_EMAIL, "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid username or password"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_unknown_user_is_rejected(client):
    response = client.post("/api/login", json={"username": "nobody@example.com", "password": ADMIN_PASSWORD})

    assert response.status_code == 401


def test_admin_routes_require_a_token(client):
    assert client.get("/api/members").status_code == 401
    assert client.get("/api/schemes").status_code == 401
    assert client.get("/api/journeys").status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get("/api/schemes", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid token"}


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
