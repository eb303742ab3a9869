"""
Admin endpoints: dashboard statistics and staff accounts.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.api.deps import require_roles
from studio_booking.db.session import get_db
from studio_booking.models.enums import Role
from studio_booking.schemas.stats import DashboardStats
from studio_booking.schemas.user import UserCreate, UserResponse
from studio_booking.services.auth_service import create_user, list_users
from studio_booking.services.interfaces.session_verifier import Principal
from studio_booking.services.stats_service import get_dashboard_stats

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    principal: Principal = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await get_dashboard_stats(db)


@router.get("/users", response_model=list[UserResponse])
async def staff_list(
    principal: Principal = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """All staff accounts, newest first."""
    return await list_users(db)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def staff_create(
    data: UserCreate,
    principal: Principal = Depends(require_roles(Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a staff account. The password is stored as a bcrypt hash."""
    return await create_user(db, data)
