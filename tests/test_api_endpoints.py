"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end.
"""

from urllib.parse import urlparse, parse_qs
from unittest.mock import patch

import requests
from fastapi.testclient import TestClient

from usergate.auth.jwt import decode_access_token


ADMIN_PASSWORD = "admin123"
USER_PASSWORD = "secret1"

GOOGLE_PROFILE = {
    "id": "google-123",
    "email": "g@example.com",
    "name": "Grace Hopper",
    "given_name": "Grace",
    "family_name": "Hopper",
}


def _start_google_login(test_client) -> str:
    """Hit the login redirect and return the state it issued (cookie is kept by the client)."""
    response = test_client.get("/auth/google/login", follow_redirects=False)
    assert response.status_code == 307
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    assert response.cookies.get("oauth_state") == state
    return state


class TestHealth:
    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAuthEndpoints:
    """Test registration and credential login."""

    def test_register(self, test_client):
        """Test POST /auth/register endpoint."""
        response = test_client.post(
            "/auth/register",
            json={"name": "A", "email": "a@x.com", "password": "secret1"},
        )
        assert response.status_code == 201
        data = response.json()
        assert list(data) == ["userId"]
        assert data["userId"]

    def test_register_duplicate_email(self, test_client, regular_user):
        response = test_client.post(
            "/auth/register",
            json={"name": "Dup", "email": regular_user.email, "password": "secret1"},
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Email já está em uso"

    def test_register_validation(self, test_client):
        """Short passwords and malformed emails are rejected before reaching the service."""
        response = test_client.post("/auth/register", json={"name": "A", "email": "a@x.com", "password": "123"})
        assert response.status_code == 422

        response = test_client.post("/auth/register", json={"name": "A", "email": "not-an-email", "password": "secret1"})
        assert response.status_code == 422

    def test_login(self, test_client, regular_user):
        """Test POST /auth/login endpoint."""
        response = test_client.post(
            "/auth/login",
            json={"email": regular_user.email, "password": USER_PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"] == {
            "id": regular_user.id,
            "name": regular_user.name,
            "email": regular_user.email,
            "role": "USER",
        }
        assert decode_access_token(data["accessToken"])["sub"] == regular_user.id

    def test_login_wrong_password(self, test_client, regular_user):
        response = test_client.post(
            "/auth/login",
            json={"email": regular_user.email, "password": "wrong-password"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciais inválidas"

    def test_login_unknown_email(self, test_client):
        response = test_client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": USER_PASSWORD},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciais inválidas"

    def test_register_then_login_then_profile(self, test_client):
        user_id = test_client.post(
            "/auth/register",
            json={"name": "A", "email": "a@x.com", "password": "secret1"},
        ).json()["userId"]

        token = test_client.post(
            "/auth/login",
            json={"email": "a@x.com", "password": "secret1"},
        ).json()["accessToken"]

        response = test_client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        profile = response.json()
        assert profile["id"] == user_id
        assert profile["role"] == "USER"
        assert profile["lastLoginAt"] is not None
        assert "password" not in profile


class TestGoogleLogin:
    """Test the Google authorization-code flow with the token exchange mocked."""

    def test_login_redirects_to_google(self, test_client):
        response = test_client.get("/auth/google/login", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"].startswith("https://accounts.google.com/")
        assert "oauth_state" in response.cookies

    def test_callback_creates_user_and_redirects_with_token(self, test_client, identity_service):
        from usergate.api import app as app_module

        state = _start_google_login(test_client)

        with patch("usergate.api.app.fetch_google_profile", return_value=GOOGLE_PROFILE):
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": state},
                follow_redirects=False,
            )

        assert response.status_code == 307
        location = response.headers["location"]
        prefix = f"{app_module.FRONTEND_URL}/auth/success?token="
        assert location.startswith(prefix)

        user = identity_service.find_by_external_id("google-123")
        assert user is not None
        assert user.email == "g@example.com"
        assert user.last_login_at is not None
        assert decode_access_token(location[len(prefix):])["sub"] == user.id

    def test_callback_reuses_linked_account(self, test_client, make_user):
        existing = make_user(email="g@example.com", password=None, external_id="google-123")

        state = _start_google_login(test_client)
        with patch("usergate.api.app.fetch_google_profile", return_value=GOOGLE_PROFILE):
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": state},
                follow_redirects=False,
            )

        assert response.status_code == 307
        token = parse_qs(urlparse(response.headers["location"]).query)["token"][0]
        assert decode_access_token(token)["sub"] == existing.id

    def test_callback_rejects_bad_state(self, test_client):
        _start_google_login(test_client)

        with patch("usergate.api.app.fetch_google_profile") as fetch:
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": "forged"},
                follow_redirects=False,
            )

        assert response.status_code == 400
        fetch.assert_not_called()

    def test_callback_requires_code(self, test_client):
        state = _start_google_login(test_client)

        response = test_client.get("/auth/google/callback", params={"state": state}, follow_redirects=False)
        assert response.status_code == 400

    def test_callback_invalid_id_token(self, test_client):
        state = _start_google_login(test_client)

        with patch("usergate.api.app.fetch_google_profile", return_value=None):
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": state},
                follow_redirects=False,
            )

        assert response.status_code == 401

    def test_callback_email_taken_by_password_account(self, test_client, regular_user):
        state = _start_google_login(test_client)

        with patch(
            "usergate.api.app.fetch_google_profile",
            return_value={**GOOGLE_PROFILE, "email": regular_user.email},
        ):
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": state},
                follow_redirects=False,
            )

        assert response.status_code == 409


class TestUserEndpoints:
    """Test user management endpoints."""

    def test_requires_token(self, test_client):
        response = test_client.get("/users/me")
        assert response.status_code == 401

    def test_invalid_token(self, test_client):
        response = test_client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_get_self(self, test_client, regular_user, auth_headers):
        response = test_client.get(f"/users/{regular_user.id}", headers=auth_headers(regular_user))
        assert response.status_code == 200
        assert response.json()["email"] == regular_user.email

    def test_get_other_user_forbidden(self, test_client, regular_user, make_user, auth_headers):
        other = make_user()

        response = test_client.get(f"/users/{other.id}", headers=auth_headers(regular_user))
        assert response.status_code == 403

    def test_admin_gets_any_user(self, test_client, admin_user, regular_user, auth_headers):
        response = test_client.get(f"/users/{regular_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 200

    def test_get_missing_user(self, test_client, admin_user, auth_headers):
        response = test_client.get("/users/missing", headers=auth_headers(admin_user))
        assert response.status_code == 404
        assert response.json()["detail"] == "Usuário não encontrado"

    def test_list_users(self, test_client, admin_user, regular_user, auth_headers):
        """Test GET /users with complete filters."""
        response = test_client.get(
            "/users",
            params={"order": "asc", "page": 1, "limit": 10, "sortBy": "name"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        data = response.json()
        assert [u["name"] for u in data["data"]] == ["Admin", "Test User"]
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 2, "pages": 1}
        assert all("password" not in u for u in data["data"])

    def test_list_users_role_filter(self, test_client, admin_user, regular_user, auth_headers):
        response = test_client.get(
            "/users",
            params={"role": "ADMIN", "order": "desc", "page": 1, "limit": 10},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        assert [u["id"] for u in response.json()["data"]] == [admin_user.id]

    def test_list_users_incomplete_filters_returns_null(self, test_client, admin_user, auth_headers):
        response = test_client.get("/users", params={"page": 1}, headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert response.json() is None

    def test_list_users_invalid_sort(self, test_client, admin_user, auth_headers):
        response = test_client.get(
            "/users",
            params={"order": "asc", "page": 1, "limit": 10, "sortBy": "password"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422

    def test_list_users_non_admin(self, test_client, regular_user, auth_headers):
        response = test_client.get(
            "/users",
            params={"order": "asc", "page": 1, "limit": 10},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 403

    def test_list_inactive(self, test_client, admin_user, regular_user, auth_headers):
        # Logging in marks the admin as active
        test_client.post("/auth/login", json={"email": admin_user.email, "password": ADMIN_PASSWORD})

        response = test_client.get("/users/inactive", headers=auth_headers(admin_user))
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["id"] == regular_user.id

    def test_list_inactive_non_admin(self, test_client, regular_user, auth_headers):
        response = test_client.get("/users/inactive", headers=auth_headers(regular_user))
        assert response.status_code == 403
        assert response.json()["detail"] == "Acesso restrito a administradores"

    def test_update_self(self, test_client, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"name": "Renamed"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_update_own_role_forbidden(self, test_client, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"role": "ADMIN"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 403

    def test_update_other_user_forbidden(self, test_client, regular_user, make_user, auth_headers):
        other = make_user()

        response = test_client.patch(
            f"/users/{other.id}",
            json={"name": "Hacked"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 403

    def test_admin_promotes_user(self, test_client, admin_user, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"role": "ADMIN"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"

    def test_update_email_conflict(self, test_client, admin_user, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"email": admin_user.email},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 409

    def test_update_password_then_login(self, test_client, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"password": "newpass1"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 200

        login = test_client.post("/auth/login", json={"email": regular_user.email, "password": "newpass1"})
        assert login.status_code == 200

    def test_delete_user(self, test_client, admin_user, regular_user, auth_headers):
        response = test_client.delete(f"/users/{regular_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 200
        assert response.json() == {"message": "User deleted"}

        response = test_client.get(f"/users/{regular_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 404

    def test_admin_cannot_delete_self(self, test_client, admin_user, auth_headers):
        response = test_client.delete(f"/users/{admin_user.id}", headers=auth_headers(admin_user))
        assert response.status_code == 403
        assert response.json()["detail"] == "Você não pode excluir sua própria conta"

    def test_non_admin_cannot_delete(self, test_client, regular_user, make_user, auth_headers):
        other = make_user()

        response = test_client.delete(f"/users/{other.id}", headers=auth_headers(regular_user))
        assert response.status_code == 403

    def test_admin_creates_user(self, test_client, admin_user, auth_headers):
        response = test_client.post(
            "/users",
            json={"name": "Ops", "email": "ops@x.com", "password": "secret1", "role": "ADMIN"},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["role"] == "ADMIN"
        assert "password" not in data

    def test_non_admin_cannot_create_user(self, test_client, regular_user, auth_headers):
        response = test_client.post(
            "/users",
            json={"name": "Ops", "email": "ops@x.com", "password": "secret1"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 403


class TestAppStartup:
    def test_lifespan_initializes_schema(self):
        from usergate.api.app import app

        with patch("usergate.api.app.init_db") as init_db:
            with TestClient(app):
                init_db.assert_called_once()


class TestRequestValidation:
    """Passwords are bounded by bcrypt's 72-byte input; emails are stored exactly as sent."""

    def test_register_password_over_72_bytes(self, test_client):
        response = test_client.post(
            "/auth/register",
            json={"name": "A", "email": "long@x.com", "password": "p" * 80},
        )
        assert response.status_code == 422

    def test_register_multibyte_password_counts_bytes(self, test_client):
        # 40 characters, 80 bytes in UTF-8
        response = test_client.post(
            "/auth/register",
            json={"name": "A", "email": "long@x.com", "password": "é" * 40},
        )
        assert response.status_code == 422

    def test_register_and_login_with_72_byte_password(self, test_client):
        password = "p" * 72
        response = test_client.post(
            "/auth/register",
            json={"name": "A", "email": "edge@x.com", "password": password},
        )
        assert response.status_code == 201

        login = test_client.post("/auth/login", json={"email": "edge@x.com", "password": password})
        assert login.status_code == 200

    def test_login_with_overlong_password_is_unauthorized(self, test_client, regular_user):
        response = test_client.post(
            "/auth/login",
            json={"email": regular_user.email, "password": "p" * 80},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Credenciais inválidas"

    def test_update_password_over_72_bytes(self, test_client, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"password": "p" * 80},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 422

    def test_admin_create_password_over_72_bytes(self, test_client, admin_user, auth_headers):
        response = test_client.post(
            "/users",
            json={"name": "Ops", "email": "ops@x.com", "password": "p" * 80},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422

    def test_emails_differing_in_case_are_distinct(self, test_client):
        upper = test_client.post(
            "/auth/register",
            json={"name": "Upper", "email": "a@X.COM", "password": "secret1"},
        )
        lower = test_client.post(
            "/auth/register",
            json={"name": "Lower", "email": "a@x.com", "password": "secret1"},
        )
        assert upper.status_code == 201
        assert lower.status_code == 201
        assert upper.json()["userId"] != lower.json()["userId"]

        login = test_client.post("/auth/login", json={"email": "a@X.COM", "password": "secret1"})
        assert login.status_code == 200
        assert login.json()["user"]["email"] == "a@X.COM"
        assert login.json()["user"]["id"] == upper.json()["userId"]

    def test_update_keeps_email_as_sent(self, test_client, regular_user, auth_headers):
        response = test_client.patch(
            f"/users/{regular_user.id}",
            json={"email": "New.Person@Example.COM"},
            headers=auth_headers(regular_user),
        )
        assert response.status_code == 200
        assert response.json()["email"] == "New.Person@Example.COM"

    def test_list_users_zero_page_or_limit_returns_null(self, test_client, admin_user, auth_headers):
        for params in ({"order": "asc", "page": 0, "limit": 10}, {"order": "asc", "page": 1, "limit": 0}):
            response = test_client.get("/users", params=params, headers=auth_headers(admin_user))
            assert response.status_code == 200
            assert response.json() is None

    def test_list_users_negative_page(self, test_client, admin_user, auth_headers):
        response = test_client.get(
            "/users",
            params={"order": "asc", "page": -1, "limit": 10},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422

    def test_google_unreachable_is_bad_gateway(self, test_client):
        state = _start_google_login(test_client)

        with patch(
            "usergate.auth.google_oauth.requests.post",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            response = test_client.get(
                "/auth/google/callback",
                params={"code": "test-code", "state": state},
                follow_redirects=False,
            )

        assert response.status_code == 502
