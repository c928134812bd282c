"""Tests for auth endpoints."""

from tests.fakes import VALID_OTP, make_session, running_client


class TestSessionEndpoint:
    def test_signed_out_session(self, client):
        response = client.get("/api/auth/session")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unauthenticated"
        assert data["is_loading"] is False
        assert data["is_authenticated"] is False
        assert data["user"] is None

    def test_signed_in_session(self, signed_in_client):
        data = signed_in_client.get("/api/auth/session").json()
        assert data["status"] == "ready"
        assert data["user"]["email"] == "ann@example.com"
        assert data["family"]["name"] == "Ann's Family"


class TestSignIn:
    def test_sign_in_returns_settled_session(self, client, existing_user):
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "ann@example.com", "password": "secret123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["session"]["status"] == "ready"

    def test_bad_credentials(self, client, existing_user):
        response = client.post(
            "/api/auth/sign-in",
            json={"email": "ann@example.com", "password": "wrong"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid login credentials",
            "code": "invalid_credentials",
            "partial": False,
        }

    def test_invalid_email_is_rejected(self, client):
        response = client.post("/api/auth/sign-in", json={"email": "not-an-email", "password": "x"})
        assert response.status_code == 422

    def test_otp_flow(self, client, existing_user, auth_provider):
        sent = client.post("/api/auth/otp", json={"email": "ann@example.com"})
        assert sent.status_code == 200
        assert auth_provider.otp_sent == ["ann@example.com"]

        verified = client.post("/api/auth/otp/verify", json={"email": "ann@example.com", "token": VALID_OTP})
        assert verified.status_code == 200
        assert verified.json()["session"]["status"] == "ready"

    def test_google_returns_redirect(self, client):
        response = client.post("/api/auth/google")
        assert response.status_code == 200
        assert response.json()["redirect_url"].startswith("https://test.supabase.co/auth/v1/authorize")

    def test_sign_out(self, signed_in_client):
        response = signed_in_client.post("/api/auth/sign-out")
        assert response.status_code == 204
        assert signed_in_client.get("/api/auth/session").json()["status"] == "unauthenticated"


class TestSignUp:
    def test_sign_up_creates_family(self, client, repository):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "ann@example.com", "password": "secret123", "name": "Ann"},
        )
        assert response.status_code == 201
        session = response.json()["session"]
        assert session["status"] == "ready"
        assert session["family"]["name"] == "Ann's Family"
        assert len(repository.families) == 1

    def test_sign_up_existing_email(self, client, existing_user):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "ann@example.com", "password": "secret123", "name": "Ann"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "You are already a member. Please login."
        assert response.json()["code"] == "ALREADY_MEMBER"

    def test_partial_sign_up(self, client, repository):
        repository.fail_on.add("create_profile")
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "new@example.com", "password": "secret123", "name": "New"},
        )
        assert response.status_code == 400
        assert response.json()["partial"] is True

    def test_short_password_is_rejected(self, client):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "new@example.com", "password": "123", "name": "New"},
        )
        assert response.status_code == 422


class TestPasswords:
    def test_reset_password(self, client, auth_provider):
        response = client.post("/api/auth/reset-password", json={"email": "ann@example.com"})
        assert response.status_code == 200
        assert auth_provider.reset_emails == [("ann@example.com", "http://localhost:5173/reset-password")]

    def test_update_password_requires_session(self, client):
        response = client.post("/api/auth/update-password", json={"password": "newpass123"})
        assert response.status_code == 400

    def test_update_password(self, signed_in_client, auth_provider):
        response = signed_in_client.post("/api/auth/update-password", json={"password": "newpass123"})
        assert response.status_code == 200
        assert auth_provider.accounts["ann@example.com"][0] == "newpass123"


class TestRefresh:
    def test_refresh_family(self, container, session_manager, auth_provider, repository):
        identity = auth_provider.add_account("dan@example.com", "secret123")
        profile = repository.seed_profile(identity.id, "dan@example.com", "Dan")
        auth_provider.session = make_session(identity)

        with running_client(session_manager) as client:
            assert client.get("/api/auth/session").json()["status"] == "no_family"
            repository.seed_family(profile, "Dan's Family")

            response = client.post("/api/auth/refresh-family")

            assert response.status_code == 200
            assert response.json()["status"] == "ready"
