"""
Authentication service: staff login, logout, first-admin bootstrap, staff
account management, and the database-backed session verifier used by every
protected route.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.config import get_settings
from studio_booking.core.exceptions import BookingValidationError, Forbidden, Unauthorized
from studio_booking.core.logging import get_logger
from studio_booking.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from studio_booking.db.base import utcnow
from studio_booking.models.enums import Role
from studio_booking.models.session import Session
from studio_booking.models.user import User
from studio_booking.schemas.user import AdminBootstrap, Token, UserCreate, UserLogin, UserResponse
from studio_booking.services.interfaces.session_verifier import Principal, SessionVerifier

logger = get_logger(__name__)
settings = get_settings()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DbSessionVerifier(SessionVerifier):
    """
    A token is valid when its signature and exp check out AND a matching
    sessions row exists, has not expired, and belongs to an active user.
    Logging out (deleting the row) therefore revokes the token immediately.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def verify(self, token: str) -> Optional[Principal]:
        if not token or decode_access_token(token) is None:
            return None

        result = await self.db.execute(select(Session).where(Session.token == token))
        session = result.unique().scalar_one_or_none()
        if session is None:
            return None

        if _as_utc(session.expires_at) <= utcnow():
            session_id, user_id = session.id, session.user_id
            await self.db.delete(session)
            await self.db.commit()
            logger.info("session_expired", session_id=session_id, user_id=user_id)
            return None

        user = session.user
        if user is None or not user.is_active:
            return None

        return Principal(id=user.id, email=user.email, role=user.role)


async def _issue_session(db: AsyncSession, user: User) -> Token:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=expires_delta,
    )
    db.add(Session(token=token, user_id=user.id, expires_at=utcnow() + expires_delta))
    await db.flush()
    return Token(token=token, user=UserResponse.model_validate(user))


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> Token:
    """
    Authenticate a staff user and open a session.
    Raises Unauthorized for bad credentials, Forbidden for a deactivated account.
    """
    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise Unauthorized("Invalid email or password")

    if not user.is_active:
        logger.warning("login_refused_inactive", user_id=user.id)
        raise Forbidden("Account is deactivated")

    token = await _issue_session(db, user)
    logger.info("user_logged_in", user_id=user.id, role=user.role.value)
    return token


async def logout(db: AsyncSession, token: str) -> None:
    result = await db.execute(delete(Session).where(Session.token == token))
    logger.info("user_logged_out", sessions_deleted=result.rowcount)


async def bootstrap_admin(db: AsyncSession, data: AdminBootstrap, bootstrap_secret: Optional[str]) -> Token:
    """
    Create the first ADMIN account.

    Guarded by ADMIN_BOOTSTRAP_SECRET; refused entirely when that is unset,
    and refused once any admin exists.
    """
    expected = settings.ADMIN_BOOTSTRAP_SECRET
    if not expected or not bootstrap_secret or not secrets.compare_digest(bootstrap_secret, expected):
        logger.warning("admin_bootstrap_refused", reason="bad_secret")
        raise Forbidden()

    admins = await db.execute(select(func.count()).select_from(User).where(User.role == Role.ADMIN))
    if admins.scalar():
        logger.warning("admin_bootstrap_refused", reason="admin_exists")
        raise BookingValidationError([{"field": "email", "message": "An admin account already exists"}])

    existing = await db.execute(select(User).where(User.email == data.email.lower()))
    if existing.scalar_one_or_none():
        raise BookingValidationError([{"field": "email", "message": "Email already registered"}])

    user = User(
        email=data.email.lower(),
        name=data.name.strip(),
        hashed_password=hash_password(data.password),
        role=Role.ADMIN,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("admin_bootstrapped", user_id=user.id, email=user.email)
    return await _issue_session(db, user)


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """Create a staff account with the given role. Raises BookingValidationError on a taken email."""
    email = data.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise BookingValidationError([{"field": "email", "message": "User already exists"}])

    user = User(
        email=email,
        name=data.name.strip(),
        hashed_password=hash_password(data.password),
        role=data.role,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_created", user_id=user.id, role=user.role.value)
    return user
