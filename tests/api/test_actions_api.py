"""Tests for POST /api/v2/action."""

from jellyfish_core.kernel import links


def create_user_request(username, password="Password123"):
    return {
        "action": "action-create-user",
        "card": "user",
        "type": "type@1.0.0",
        "arguments": {
            "username": username,
            "email": f"{username}@jellyfish.io",
            "password": password,
        },
    }


class TestActionEndpoint:
    """Tests for running actions over HTTP."""

    def test_create_event(self, client, auth_headers, test_user):
        response = client.post("/api/v2/action", headers=auth_headers, json={
            "action": "action-create-event",
            "card": test_user["user"]["id"],
            "arguments": {"type": "message", "payload": {"message": "Hello"}, "tags": []},
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data["error"] is False
        assert data["data"]["type"] == "message@1.0.0"
        assert set(data["data"]) == {"id", "slug", "type", "version"}

    def test_missing_body(self, client):
        response = client.post("/api/v2/action")
        assert response.status_code == 400

    def test_missing_fields(self, client):
        response = client.post("/api/v2/action", json={"action": "action-create-user"})
        assert response.status_code == 400
        assert response.get_json()["error"]["details"]["errors"]

    def test_guest_cannot_see_actions(self, client):
        """Action cards are not readable by the guest."""
        response = client.post("/api/v2/action", json=create_user_request("mallory"))
        assert response.status_code == 404

    def test_users_cannot_create_users(self, client, auth_headers):
        response = client.post(
            "/api/v2/action", headers=auth_headers, json=create_user_request("mallory")
        )
        assert response.status_code == 403
        assert response.get_json()["error"]["type"] == "PermissionsError"

    def test_users_cannot_join_hidden_orgs(self, client, kernel, admin_session, auth_headers, test_user):
        org = kernel.insert_card(admin_session, {
            "slug": "org-secret", "type": "org@1.0.0", "name": "Secret", "markers": ["org-secret"],
        })
        kernel.insert_card(admin_session, {
            "slug": "contact-secret", "type": "contact@1.0.0",
            "markers": ["org-secret"], "data": {"profile": {}},
        })
        membership = links.build("is member of", "has member", test_user["user"], org)
        del membership["type"]

        response = client.post("/api/v2/action", headers=auth_headers, json={
            "action": "action-create-card",
            "card": "link",
            "type": "type@1.0.0",
            "arguments": {"reason": None, "properties": membership},
        })

        assert response.status_code == 400
        secret = client.get("/api/v2/slug/contact-secret", headers=auth_headers)
        assert secret.status_code == 404

    def test_unknown_action(self, client, auth_headers):
        response = client.post("/api/v2/action", headers=auth_headers, json={
            "action": "action-nope",
            "card": "user",
            "arguments": {},
        })
        assert response.status_code == 404
        assert response.get_json()["error"]["type"] == "ActionNotFound"

    def test_arguments_mismatch(self, client, auth_headers):
        response = client.post("/api/v2/action", headers=auth_headers, json={
            "action": "action-create-event",
            "card": "user-jane",
            "arguments": {"type": "message"},
        })
        assert response.status_code == 400
        assert response.get_json()["error"]["type"] == "SchemaMismatch"

    def test_duplicate_card(self, client, auth_headers):
        request = {
            "action": "action-create-card",
            "card": "contact",
            "arguments": {
                "reason": None,
                "properties": {"slug": "contact-dup", "data": {"profile": {}}},
            },
        }
        assert client.post("/api/v2/action", headers=auth_headers, json=request).status_code == 200

        response = client.post("/api/v2/action", headers=auth_headers, json=request)
        assert response.status_code == 409
        assert response.get_json()["error"]["type"] == "ElementAlreadyExists"

    def test_wrong_password_is_401(self, client, kernel, test_user):
        """Handler errors keep their own status."""
        from jellyfish_core.auth.token import generate_access_token

        admin_token = generate_access_token(kernel.sessions["admin"], "user-admin")
        response = client.post(
            "/api/v2/action",
            headers={"Authorization": f"Bearer {admin_token}"},
            json={
                "action": "action-create-session",
                "card": "user-jane",
                "arguments": {"password": "WrongPass123"},
            },
        )
        assert response.status_code == 401
