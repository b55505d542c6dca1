"""Tests for registration, login and token handling."""

from datetime import timedelta

from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import create_access_token, decode_access_token


class TestPasswordHashing:
    def test_round_trip(self):
        hashed = hash_password("password123")

        assert hashed != "password123"
        assert verify_password("password123", hashed)
        assert not verify_password("wrong-password", hashed)

    def test_empty_hash(self):
        assert not verify_password("password123", "")


class TestTokens:
    def test_decode(self):
        token = create_access_token({"user_id": 5})
        assert decode_access_token(token)["user_id"] == 5

    def test_expired_token(self):
        token = create_access_token({"user_id": 5}, expires_delta=timedelta(minutes=-1))
        assert decode_access_token(token) is None

    def test_garbage_token(self):
        assert decode_access_token("not-a-token") is None


class TestRegister:
    def test_register(self, client):
        response = client.post(
            "/auth/register",
            json={"name": "Ada", "email": "ada@example.com", "password": "password123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Registration successful"
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["role"] == "customer"

    def test_duplicate_email(self, client, user):
        response = client.post(
            "/auth/register",
            json={"name": "Again", "email": user.email, "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "User with this email already exists"

    def test_short_password(self, client):
        response = client.post(
            "/auth/register",
            json={"name": "Ada", "email": "ada@example.com", "password": "short"},
        )

        assert response.status_code == 400
        assert "password" in response.json()["detail"]


class TestLogin:
    def test_login(self, client, user):
        response = client.post(
            "/auth/login", json={"email": user.email, "password": "password123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert decode_access_token(data["access_token"])["user_id"] == user.id

    def test_wrong_password(self, client, user):
        response = client.post("/auth/login", json={"email": user.email, "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_disabled_account(self, client, session, user, user_headers):
        user.can_login = False
        session.add(user)
        session.commit()

        response = client.get("/orders", headers=user_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "User account is disabled"

    def test_invalid_bearer_token(self, client):
        response = client.get("/cart", headers={"Authorization": "Bearer broken"})
        assert response.status_code == 401
