"""Tests for authentication endpoints.

Tests login, logout and the current user profile endpoint.
"""

from jellyfish_core.auth import token
from jellyfish_core.config import settings


# ============================================================================
# Login
# ============================================================================


class TestLogin:
    """Tests for POST /auth/login."""

    def test_login_success(self, client, test_user):
        response = client.post("/auth/login", json={
            "username": "jane",
            "password": test_user["password"],
        })
        assert response.status_code == 200

        data = response.get_json()
        assert data["token_type"] == "bearer"
        assert data["user"]["slug"] == "user-jane"
        assert data["user"]["email"] == "jane@jellyfish.io"
        assert data["user"]["roles"] == ["user-community"]

        payload = token.validate_access_token(data["access_token"])
        assert payload.sub == data["session"]
        assert payload.username == "user-jane"

    def test_login_token_works(self, client, test_user):
        login = client.post("/auth/login", json={
            "username": "jane",
            "password": test_user["password"],
        }).get_json()

        response = client.get("/auth/me", headers={
            "Authorization": f"Bearer {login['access_token']}"
        })
        assert response.status_code == 200
        assert response.get_json()["slug"] == "user-jane"

    def test_login_wrong_password(self, client, test_user):
        response = client.post("/auth/login", json={
            "username": "jane",
            "password": "WrongPass123",
        })
        assert response.status_code == 401
        assert response.get_json()["error"]["type"] == "AuthenticationError"

    def test_login_unknown_user(self, client):
        """Unknown users get the same answer as wrong passwords."""
        response = client.post("/auth/login", json={
            "username": "nobody",
            "password": "Whatever123",
        })
        assert response.status_code == 401
        assert response.get_json()["error"]["message"] == "Invalid username or password"

    def test_login_non_user_card(self, client):
        """Slugs of other card types never log in."""
        response = client.post("/auth/login", json={
            "username": "admin-kernel",
            "password": "Whatever123",
        })
        assert response.status_code == 401

    def test_login_missing_body(self, client):
        response = client.post("/auth/login")
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "Request body is required"

    def test_login_invalid_username(self, client):
        response = client.post("/auth/login", json={"username": "Jane Doe", "password": "x"})
        assert response.status_code == 400
        assert response.get_json()["error"]["details"]["errors"]

    def test_admin_login_with_configured_password(self, client, kernel, monkeypatch):
        from jellyfish_core.default_cards.loader import set_admin_password

        monkeypatch.setattr(settings, "admin_password", "AdminPass123")
        set_admin_password(kernel)

        response = client.post("/auth/login", json={
            "username": "admin",
            "password": "AdminPass123",
        })
        assert response.status_code == 200
        assert response.get_json()["user"]["slug"] == "user-admin"

    def test_admin_without_password_cannot_log_in(self, client):
        response = client.post("/auth/login", json={
            "username": "admin",
            "password": "AdminPass123",
        })
        assert response.status_code == 401


# ============================================================================
# Logout and Profile
# ============================================================================


class TestLogout:
    """Tests for POST /auth/logout."""

    def test_logout_invalidates_token(self, client, auth_headers):
        response = client.post("/auth/logout", headers=auth_headers)
        assert response.status_code == 200

        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 401

    def test_logout_requires_auth(self, client):
        response = client.post("/auth/logout")
        assert response.status_code == 401


class TestMe:
    """Tests for GET /auth/me."""

    def test_me(self, client, auth_headers, test_user):
        response = client.get("/auth/me", headers=auth_headers)
        assert response.status_code == 200

        data = response.get_json()
        assert data["id"] == test_user["user"]["id"]
        assert data["slug"] == "user-jane"
        assert data["name"] == "jane"
        assert "hash" not in data

    def test_me_requires_auth(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.get_json()["error"]["details"] == {"code": "missing_auth"}

    def test_me_with_invalid_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer invalid"})
        assert response.status_code == 401
