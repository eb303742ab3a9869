"""
FastAPI dependencies: service wiring, authentication and rate limiting.

Routes depend on these rather than constructing services themselves, so
tests can swap any piece through app.dependency_overrides.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.config import get_settings
from studio_booking.core.exceptions import Forbidden, RateLimited, Unauthorized
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import record_rate_limit
from studio_booking.db.session import get_db
from studio_booking.models.enums import Role
from studio_booking.repositories.booking_repository import SqlAlchemyBookingRepository
from studio_booking.services.admission_service import AdmissionController
from studio_booking.services.auth_service import DbSessionVerifier
from studio_booking.services.availability_service import AvailabilityService
from studio_booking.services.conflict_service import ConflictDetector
from studio_booking.services.interfaces.rate_limit import RateLimiter
from studio_booking.services.interfaces.repository import BookingRepository
from studio_booking.services.interfaces.session_verifier import Principal, SessionVerifier
from studio_booking.services.lifecycle_service import BookingLifecycle
from studio_booking.services.slots import OperatingHours
from studio_booking.services.strategy_factory import get_rate_limiter

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_operating_hours() -> OperatingHours:
    return OperatingHours.from_settings(settings)


async def get_booking_repository(db: AsyncSession = Depends(get_db)) -> BookingRepository:
    return SqlAlchemyBookingRepository(db)


async def get_admission_controller(
    repository: BookingRepository = Depends(get_booking_repository),
    hours: OperatingHours = Depends(get_operating_hours),
) -> AdmissionController:
    return AdmissionController(
        repository,
        hours,
        max_retries=settings.ADMISSION_MAX_RETRIES,
        timeout=settings.ADMISSION_TIMEOUT_SECONDS,
    )


async def get_lifecycle(
    repository: BookingRepository = Depends(get_booking_repository),
) -> BookingLifecycle:
    return BookingLifecycle(repository)


async def get_availability_service(
    repository: BookingRepository = Depends(get_booking_repository),
    hours: OperatingHours = Depends(get_operating_hours),
) -> AvailabilityService:
    return AvailabilityService(ConflictDetector(repository), hours)


async def get_session_verifier(db: AsyncSession = Depends(get_db)) -> SessionVerifier:
    return DbSessionVerifier(db)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: SessionVerifier = Depends(get_session_verifier),
) -> Principal:
    """Resolve the bearer token to a principal or fail with 401."""
    if credentials is None:
        raise Unauthorized()
    principal = await verifier.verify(credentials.credentials)
    if principal is None:
        raise Unauthorized()
    return principal


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of `roles`."""
    allowed = frozenset(roles)

    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            logger.warning("role_forbidden", user_id=principal.id, role=principal.role.value)
            raise Forbidden()
        return principal

    return checker


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    key = client_ip(request)
    allowed = await limiter.allow(key)
    record_rate_limit(allowed)
    if not allowed:
        logger.warning("rate_limited", client=key, path=request.url.path)
        raise RateLimited(limiter.max_requests, limiter.retry_after(limiter.now()))
