"""
TripAlbum Backend — Auth Service
=================================

What:  Signup and login against the users table.
How:   Passwords are hashed with bcrypt (per-password salt embedded in the
       hash). Hashing and checking run in the threadpool because bcrypt is
       deliberately slow and would otherwise stall the event loop.

Sessions:
    Login issues no token. The client keeps the returned identity and may
    send its id back as X-User-Id, which RequestContext uses for trip
    ownership checks.

Login failures:
    Unknown email and wrong password raise the same AuthenticationError
    ("Invalid credentials"). For unknown emails the password is still checked
    against a dummy hash so both paths cost one bcrypt comparison.
"""

import logging
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from tripalbum.config import settings
from tripalbum.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from tripalbum.models.user import User
from tripalbum.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    SignupUser,
    UserIdentity,
)

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.error("Stored password hash is not a valid bcrypt hash")
        return False


class AuthService:
    """
    Signup/login business logic. Stateless apart from the lazily built
    dummy hash used to equalize login timing.
    """

    def __init__(self):
        self._dummy_hash: Optional[str] = None

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await run_in_threadpool(hash_password, "tripalbum-dummy-password")
        return self._dummy_hash

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", str(e))
            raise DatabaseError(
                message="Something went wrong",
                context={"error": str(e)},
            )
        return result.scalar_one_or_none()

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> SignupResponse:
        """
        Register a new user.

        Raises:
            ValidationError: blank field, or password longer than bcrypt accepts
            ConflictError: email already registered (no second row is created)
        """
        name = payload.name.strip()
        email = payload.email.strip()
        if not name or not email or not payload.password:
            raise ValidationError(message="All fields are required")
        if len(payload.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                field="password",
            )

        if await self._find_by_email(db, email) is not None:
            raise ConflictError(message="User already exists", context={"email": email})

        password_hash = await run_in_threadpool(hash_password, payload.password)
        user = User(name=name, email=email, password_hash=password_hash)
        try:
            db.add(user)
            await db.flush()
        except IntegrityError:
            # A concurrent signup with the same email won the unique index
            await db.rollback()
            raise ConflictError(message="User already exists", context={"email": email})
        except SQLAlchemyError as e:
            logger.error("Signup error: %s", str(e), exc_info=True)
            raise DatabaseError(message="Something went wrong", context={"error": str(e)})

        logger.info("User registered: %s", user.id)
        return SignupResponse(
            user=SignupUser(
                id=str(user.id),
                name=user.name,
                email=user.email,
                created_at=user.created_at,
            ),
        )

    async def login(self, db: AsyncSession, payload: LoginRequest) -> LoginResponse:
        """
        Check credentials and return the identity.

        Raises:
            AuthenticationError: unknown email or wrong password (same message)
        """
        email = payload.email.strip()
        user = await self._find_by_email(db, email)

        if user is None:
            await run_in_threadpool(verify_password, payload.password, await self._get_dummy_hash())
            logger.info("Login failed: unknown email")
            raise AuthenticationError()

        if not await run_in_threadpool(verify_password, payload.password, user.password_hash):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise AuthenticationError()

        logger.info("Login successful: %s", user.id)
        return LoginResponse(
            user=UserIdentity(id=str(user.id), name=user.name, email=user.email),
        )


auth_service = AuthService()
