"""
TripAlbum Backend — Auth Service Tests
=======================================

What:  Password hashing helpers and AuthService signup/login against SQLite.
How:   BCRYPT_ROUNDS=4 (conftest) keeps hashing fast.
"""

import pytest
from sqlalchemy import select

from tripalbum.exceptions import AuthenticationError, ConflictError, ValidationError
from tripalbum.models.user import User
from tripalbum.schemas.auth import LoginRequest, SignupRequest
from tripalbum.services.auth_service import AuthService, hash_password, verify_password


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("s3cret")
        assert hashed != "s3cret"
        assert hashed.startswith("$2")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_overlong_password_never_verifies(self):
        hashed = hash_password("x" * 72)
        assert not verify_password("x" * 73, hashed)

    def test_malformed_hash_does_not_raise(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestSignup:
    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_signup_stores_hash(self, db_session):
        response = await self.service.signup(
            db_session,
            SignupRequest(name="Ada", email="ada@example.com", password="pw123456"),
        )

        assert response.message == "User created successfully"
        assert response.user.email == "ada@example.com"
        assert response.user.name == "Ada"
        assert response.user.created_at is not None

        user = (await db_session.execute(select(User))).scalar_one()
        assert user.password_hash != "pw123456"
        assert verify_password("pw123456", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, db_session):
        payload = SignupRequest(name="Ada", email="ada@example.com", password="pw")
        await self.service.signup(db_session, payload)

        with pytest.raises(ConflictError, match="User already exists"):
            await self.service.signup(db_session, payload)

        users = (await db_session.execute(select(User))).scalars().all()
        assert len(users) == 1

    @pytest.mark.asyncio
    async def test_blank_fields_rejected(self, db_session):
        with pytest.raises(ValidationError, match="All fields are required"):
            await self.service.signup(
                db_session,
                SignupRequest(name="   ", email="ada@example.com", password="pw"),
            )

    @pytest.mark.asyncio
    async def test_password_over_bcrypt_limit_rejected(self, db_session):
        with pytest.raises(ValidationError, match="72 bytes"):
            await self.service.signup(
                db_session,
                SignupRequest(name="Ada", email="ada@example.com", password="é" * 40),
            )


class TestLogin:
    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_returns_identity(self, db_session):
        signup = await self.service.signup(
            db_session,
            SignupRequest(name="Ada", email="ada@example.com", password="pw123456"),
        )

        response = await self.service.login(
            db_session, LoginRequest(email="ada@example.com", password="pw123456")
        )

        assert response.message == "Login successful"
        assert response.user.id == signup.user.id
        assert response.user.name == "Ada"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db_session):
        await self.service.signup(
            db_session,
            SignupRequest(name="Ada", email="ada@example.com", password="pw123456"),
        )

        with pytest.raises(AuthenticationError) as wrong_password:
            await self.service.login(
                db_session, LoginRequest(email="ada@example.com", password="nope")
            )
        with pytest.raises(AuthenticationError) as unknown_email:
            await self.service.login(
                db_session, LoginRequest(email="bob@example.com", password="nope")
            )

        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"
