"""
Tests for the /api/auth endpoints.
"""
from conftest import PASSWORD


def register(client, **overrides):
    body = {"username": "carol", "email": "carol@example.com", "password": "secret123"}
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


class TestRegister:
    """Tests for account registration."""

    def test_register_returns_tokens_and_profile(self, client, db):
        """Test a new account gets a token and a public profile."""
        response = register(client)
        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["data"]["token"]
        assert body["data"]["refresh_token"]
        assert body["data"]["user"]["username"] == "carol"
        assert body["data"]["user"]["role"] == "user"
        assert "password" not in body["data"]["user"]

    def test_password_is_hashed(self, client, db):
        register(client)
        stored = db.users.find_one({"email": "carol@example.com"})
        assert stored["password"] != "secret123"
        assert stored["password"].startswith("$2")

    def test_email_is_lowercased(self, client, db):
        register(client, email="Carol@Example.COM")
        assert db.users.find_one({"email": "carol@example.com"}) is not None

    def test_duplicate_email_conflicts(self, client, user):
        """Test registering an existing email is rejected."""
        response = register(client, email="alice@example.com")
        assert response.status_code == 409
        assert response.get_json() == {"success": False, "message": "User already exists"}

    def test_duplicate_username_conflicts(self, client, user):
        response = register(client, username="alice")
        assert response.status_code == 409

    def test_short_password_rejected(self, client):
        response = register(client, password="123")
        assert response.status_code == 400
        assert response.get_json()["message"].startswith("password")

    def test_invalid_username_rejected(self, client):
        response = register(client, username="not valid!")
        assert response.status_code == 400

    def test_invalid_email_rejected(self, client):
        response = register(client, email="not-an-email")
        assert response.status_code == 400

    def test_role_cannot_be_self_assigned(self, client, db):
        """Test the request body cannot grant admin."""
        response = register(client, role="admin")
        assert response.status_code == 201
        assert response.get_json()["data"]["user"]["role"] == "user"

    def test_missing_body_rejected(self, client):
        response = client.post("/api/auth/register")
        assert response.status_code == 400
        assert response.get_json()["success"] is False


class TestLogin:
    """Tests for login."""

    def test_login_success(self, client, user):
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["token"]
        assert data["user"]["email"] == "alice@example.com"

    def test_wrong_password_and_unknown_email_look_identical(self, client, user):
        """Test failed logins do not reveal which part was wrong."""
        wrong_password = client.post("/api/auth/login",
                                     json={"email": "alice@example.com", "password": "nope-nope"})
        unknown_email = client.post("/api/auth/login",
                                    json={"email": "ghost@example.com", "password": PASSWORD})
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json()
        assert wrong_password.get_json()["message"] == "Invalid credentials"

    def test_missing_fields_rejected(self, client):
        response = client.post("/api/auth/login", json={"email": "alice@example.com"})
        assert response.status_code == 400


class TestTokens:
    """Tests for token handling on protected routes."""

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.get_json() == {"success": False, "message": "Not authorized to access this route"}

    def test_malformed_token_rejected(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401
        assert response.get_json()["success"] is False

    def test_me_returns_current_user(self, client, user):
        doc, headers = user
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["_id"] == str(doc["_id"])
        assert data["username"] == "alice"
        assert "password" not in data

    def test_token_for_deleted_user_rejected(self, client, db, user):
        doc, headers = user
        db.users.delete_one({"_id": doc["_id"]})
        response = client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401

    def test_refresh_issues_new_access_token(self, client, user):
        login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        refresh_token = login.get_json()["data"]["refresh_token"]

        response = client.post("/api/auth/refresh", headers={"Authorization": f"Bearer {refresh_token}"})
        assert response.status_code == 200
        new_token = response.get_json()["data"]["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert me.status_code == 200

    def test_refresh_rejects_access_token(self, client, user):
        _, headers = user
        response = client.post("/api/auth/refresh", headers=headers)
        assert response.status_code == 401


class TestProfile:
    """Tests for profile updates."""

    def test_update_username(self, client, db, user):
        doc, headers = user
        response = client.put("/api/auth/profile", json={"username": "alice2"}, headers=headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["username"] == "alice2"
        assert db.users.find_one({"_id": doc["_id"]})["username"] == "alice2"

    def test_update_to_taken_email_conflicts(self, client, user, other_user):
        _, headers = user
        response = client.put("/api/auth/profile", json={"email": "bob@example.com"}, headers=headers)
        assert response.status_code == 409

    def test_empty_update_rejected(self, client, user):
        _, headers = user
        response = client.put("/api/auth/profile", json={}, headers=headers)
        assert response.status_code == 400
        assert response.get_json()["message"] == "Provide a username or email to update"

    def test_keeping_own_username_is_allowed(self, client, user):
        _, headers = user
        response = client.put("/api/auth/profile", json={"username": "alice"}, headers=headers)
        assert response.status_code == 200


class TestPasswordWhitespace:
    """Tests that passwords are used exactly as typed."""

    def test_surrounding_spaces_are_part_of_the_password(self, client):
        register(client, password="  secret123 ")
        exact = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "  secret123 "})
        trimmed = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "secret123"})
        assert exact.status_code == 200
        assert trimmed.status_code == 401
