"""
Authentication endpoints: login, logout and first-admin bootstrap.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.api.deps import bearer_scheme, get_current_principal
from studio_booking.db.session import get_db
from studio_booking.schemas.user import AdminBootstrap, Token, UserLogin
from studio_booking.services.auth_service import authenticate_user, bootstrap_admin, logout
from studio_booking.services.interfaces.session_verifier import Principal

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a session token."""
    return await authenticate_user(db, login_data)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout_endpoint(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the caller's session token."""
    await logout(db, credentials.credentials)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/bootstrap", response_model=Token, status_code=status.HTTP_201_CREATED)
async def bootstrap(
    data: AdminBootstrap,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    """Create the first admin account. Requires the bootstrap secret as bearer token."""
    secret = credentials.credentials if credentials else None
    return await bootstrap_admin(db, data, secret)
