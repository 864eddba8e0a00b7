import pytest
from fastapi.testclient import TestClient

from conftest import create_user, create_video, subscribe
from videotube.core.database import get_db
from videotube.main import app
from videotube.services.user_service import user_service

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # https so the Secure session cookies are kept by the client
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _login(client, username="alice", password="secret123"):
    response = client.post("/api/v1/users/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _set_cookies(response):
    return response.headers.get_list("set-cookie")


def test_register_with_multipart_form(client):
    response = client.post(
        "/api/v1/users/register",
        data={
            "fullName": "Carol Smith",
            "email": "Carol@Example.com",
            "username": "Carol",
            "password": "secret123",
        },
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data["username"] == "carol"
    assert data["email"] == "carol@example.com"
    assert data["fullName"] == "Carol Smith"
    assert data["avatarUrl"].startswith("/media/")
    assert data["coverImageUrl"] is None
    assert "passwordHash" not in data
    assert "refreshTokenHash" not in data


def test_register_without_avatar(client):
    response = client.post(
        "/api/v1/users/register",
        data={"fullName": "Carol", "email": "c@example.com", "username": "carol", "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Avatar file is required"


def test_register_duplicate_username(client, db):
    create_user(db, username="carol")
    response = client.post(
        "/api/v1/users/register",
        data={"fullName": "Carol", "email": "new@example.com", "username": "CAROL", "password": "secret123"},
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 409


def test_login_sets_secure_http_only_cookies(client, db):
    create_user(db)

    response = client.post("/api/v1/users/login", json={"email": "alice@example.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["accessToken"] and body["refreshToken"]
    assert body["user"]["username"] == "alice"
    cookies = _set_cookies(response)
    assert len(cookies) == 2
    for header in cookies:
        lowered = header.lower()
        assert "httponly" in lowered
        assert "secure" in lowered
    assert any(h.startswith("accessToken=") for h in cookies)
    assert any(h.startswith("refreshToken=") for h in cookies)


def test_login_with_wrong_password_sets_no_cookies(client, db):
    create_user(db)

    response = client.post("/api/v1/users/login", json={"username": "alice", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["error"] == "Invalid user credentials"
    assert _set_cookies(response) == []


def test_login_without_identifier(client):
    response = client.post("/api/v1/users/login", json={"username": "  ", "password": "secret123"})
    assert response.status_code == 400


def test_login_rate_limited(client, db, monkeypatch):
    from videotube.config import settings

    create_user(db)
    monkeypatch.setattr(settings, "LOGIN_RATE_LIMIT_PER_MINUTE", 2)
    for _ in range(2):
        client.post("/api/v1/users/login", json={"username": "alice", "password": "nope"})

    response = client.post("/api/v1/users/login", json={"username": "alice", "password": "secret123"})
    assert response.status_code == 429


def test_refresh_from_cookie(client, db):
    create_user(db)
    tokens = _login(client)

    response = client.post("/api/v1/users/refresh-token")

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["refreshToken"] != tokens["refreshToken"]
    assert len(_set_cookies(response)) == 2


def test_refresh_from_body_and_reuse_is_rejected(client, db):
    create_user(db)
    tokens = _login(client)
    client.cookies.clear()

    first = client.post("/api/v1/users/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert first.status_code == 200
    client.cookies.clear()

    reused = client.post("/api/v1/users/refresh-token", json={"refreshToken": tokens["refreshToken"]})

    assert reused.status_code == 401
    assert reused.json()["error"] == "Refresh token is expired or used"


def test_refresh_without_any_token(client):
    response = client.post("/api/v1/users/refresh-token")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized request"


def test_bearer_header_authenticates(client, db):
    create_user(db)
    tokens = _login(client)
    client.cookies.clear()

    response = client.get(
        "/api/v1/users/current-user",
        headers={"Authorization": f"Bearer {tokens['accessToken']}"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["username"] == "alice"


def test_current_user_requires_token(client):
    response = client.get("/api/v1/users/current-user")
    assert response.status_code == 401


def test_refresh_token_is_not_an_access_token(client, db):
    create_user(db)
    tokens = _login(client)
    client.cookies.clear()

    response = client.get(
        "/api/v1/users/current-user",
        headers={"Authorization": f"Bearer {tokens['refreshToken']}"},
    )
    assert response.status_code == 401


def test_logout_clears_cookies_and_revokes_refresh_token(client, db):
    create_user(db)
    tokens = _login(client)

    response = client.post("/api/v1/users/logout")

    assert response.status_code == 200
    cleared = _set_cookies(response)
    assert any(h.startswith("accessToken=") and "Max-Age=0" in h for h in cleared)
    assert any(h.startswith("refreshToken=") and "Max-Age=0" in h for h in cleared)

    client.cookies.clear()
    retry = client.post("/api/v1/users/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert retry.status_code == 401


def test_change_password_route(client, db):
    create_user(db)
    _login(client)

    wrong = client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "nope", "newPassword": "another-pass"},
    )
    assert wrong.status_code == 400

    ok = client.post(
        "/api/v1/users/change-password",
        json={"oldPassword": "secret123", "newPassword": "another-pass"},
    )
    assert ok.status_code == 200
    client.cookies.clear()
    _login(client, password="another-pass")


def test_update_account_route(client, db):
    create_user(db)
    _login(client)

    response = client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Alice Cooper", "email": "cooper@example.com"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["fullName"] == "Alice Cooper"


def test_update_avatar_route(client, db):
    create_user(db)
    _login(client)

    response = client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("new.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["data"]["avatarUrl"] != "/media/alice.png"


def test_update_avatar_rejects_non_images(client, db):
    create_user(db)
    _login(client)

    response = client.patch(
        "/api/v1/users/avatar",
        files={"avatar": ("script.sh", b"echo hi", "text/plain")},
    )
    assert response.status_code == 400


def test_channel_profile_for_anonymous_viewer(client, db):
    channel = create_user(db, username="chan")
    fan = create_user(db, username="fan")
    subscribe(db, fan, channel)

    response = client.get("/api/v1/users/c/CHAN")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "chan"
    assert data["subscribersCount"] == 1
    assert data["channelsSubscribedToCount"] == 0
    assert data["isSubscribed"] is False


def test_channel_profile_for_subscribed_viewer(client, db):
    channel = create_user(db, username="chan")
    fan = create_user(db, username="fan")
    subscribe(db, fan, channel)
    _login(client, username="fan")

    data = client.get("/api/v1/users/c/chan").json()["data"]

    assert data["isSubscribed"] is True


def test_unknown_channel_route(client):
    response = client.get("/api/v1/users/c/nobody")
    assert response.status_code == 404
    assert response.json()["error"] == "Channel does not exist"


def test_watch_history_route(client, db):
    viewer = create_user(db)
    owner = create_user(db, username="owner", full_name="Owner Person")
    first = create_video(db, owner, "first")
    second = create_video(db, owner, "second")
    user_service.append_to_watch_history(db, viewer.id, second.id)
    user_service.append_to_watch_history(db, viewer.id, first.id)
    _login(client)

    response = client.get("/api/v1/users/history")

    assert response.status_code == 200
    items = response.json()["data"]
    assert [item["title"] for item in items] == ["second", "first"]
    assert items[0]["owner"] == {
        "fullName": "Owner Person",
        "username": "owner",
        "avatarUrl": "/media/owner.png",
    }


def test_health_and_metrics(client):
    assert client.get("/health").status_code == 200
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "videotube_http_requests_total" in metrics.text
