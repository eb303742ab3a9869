"""
Admin dashboard statistics, computed with aggregate queries.
All day/week/month boundaries are in UTC.
"""

import math
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.config import get_settings
from studio_booking.core.exceptions import StorageUnavailable
from studio_booking.core.logging import get_logger
from studio_booking.db.base import utcnow
from studio_booking.models.booking import Booking
from studio_booking.models.enums import BookingStatus, ResourceType
from studio_booking.models.user import User
from studio_booking.schemas.stats import DashboardStats

logger = get_logger(__name__)
settings = get_settings()

PRICES = {
    ResourceType.STUDIO: settings.STUDIO_BOOKING_PRICE,
    ResourceType.COWORKING: settings.COWORKING_BOOKING_PRICE,
}


def _round_half_up(value: float, digits: int = 0) -> float:
    # halves go toward +inf, so -6.25 becomes -6.2 at one digit
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def utilization(confirmed: int, total: int) -> int:
    """Whole percent of `total` that `confirmed` makes up, 0 when there is nothing."""
    if total <= 0:
        return 0
    return int(_round_half_up(confirmed / total * 100))


def weekly_growth(last_week: int, week_before: int) -> float:
    if week_before <= 0:
        return 0.0
    return _round_half_up((last_week - week_before) / week_before * 100, 1)


async def _count(db: AsyncSession, *conditions) -> int:
    query = select(func.count()).select_from(Booking)
    if conditions:
        query = query.where(*conditions)
    return (await db.execute(query)).scalar() or 0


async def get_dashboard_stats(db: AsyncSession, clock: Callable[[], datetime] = utcnow) -> DashboardStats:
    now = clock()
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_month = start_of_today.replace(day=1)
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    try:
        total = await _count(db)
        pending = await _count(db, Booking.status == BookingStatus.PENDING)
        confirmed = await _count(db, Booking.status == BookingStatus.CONFIRMED)
        today = await _count(db, Booking.created_at >= start_of_today)
        last_week = await _count(db, Booking.created_at >= week_ago)
        week_before = await _count(
            db, Booking.created_at >= two_weeks_ago, Booking.created_at < week_ago
        )
        confirmed_studio = await _count(
            db,
            Booking.resource_type == ResourceType.STUDIO,
            Booking.status == BookingStatus.CONFIRMED,
        )
        active_members = (
            await db.execute(select(func.count()).select_from(User).where(User.is_active.is_(True)))
        ).scalar() or 0

        monthly = await db.execute(
            select(Booking.resource_type, func.count())
            .where(Booking.status == BookingStatus.CONFIRMED, Booking.created_at >= start_of_month)
            .group_by(Booking.resource_type)
        )
        revenue = sum(PRICES[resource_type] * count for resource_type, count in monthly.all())
    except SQLAlchemyError as e:
        logger.error("stats_query_failed", error=str(e))
        raise StorageUnavailable("Failed to fetch stats") from e

    return DashboardStats(
        totalBookings=total,
        pendingBookings=pending,
        confirmedBookings=confirmed,
        todayBookings=today,
        activeMembers=active_members,
        studioUtilization=utilization(confirmed_studio, total),
        monthlyRevenue=revenue,
        weeklyGrowth=weekly_growth(last_week, week_before),
    )
