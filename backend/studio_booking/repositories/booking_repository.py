"""
SQLAlchemy implementation of BookingRepository.

CONCURRENCY STRATEGY: Slot Ledger with Compare-and-Swap
=======================================================

Problem:
  Two clients submit overlapping studio bookings for the same day at the
  same moment. Both query for conflicts, both see none, both insert.
  Result: double booking.

Solution:
  Every (resource_type, date) pair has a row in slot_ledgers. An admission
  runs as one transaction:

  1. SELECT version FROM slot_ledgers WHERE ... FOR UPDATE
     (row lock on PostgreSQL; the row is created on first use)
  2. SELECT the day's pending/confirmed bookings and check overlap
  3. INSERT the booking
  4. UPDATE slot_ledgers SET version = version + 1
     WHERE ... AND version = :seen_version
  5. If rows_affected == 0 another admission committed first -> rollback, retry

  On PostgreSQL step 1 already serializes admissions for the day; step 4 is
  the guarantee on databases that ignore FOR UPDATE (SQLite). Either way no
  two transactions that saw the same version can both commit a booking.

Every database error is translated to StorageUnavailable so callers can
never mistake a failed conflict query for "no conflict".
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.core.exceptions import StorageUnavailable
from studio_booking.core.logging import get_logger
from studio_booking.db.base import utcnow
from studio_booking.models.booking import Booking
from studio_booking.models.enums import ACTIVE_STATUSES, BookingStatus, ResourceType
from studio_booking.models.slot_ledger import SlotLedger
from studio_booking.services.interfaces.repository import BookingRepository

logger = get_logger(__name__)


class SqlAlchemyBookingRepository(BookingRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("storage_error", operation=operation, error=str(e))
            raise StorageUnavailable(f"Storage failure during {operation}") from e

    async def find_active(self, resource_type: ResourceType, day: date) -> list[Booking]:
        async with self._guard("find_active"):
            result = await self.db.execute(
                select(Booking)
                .where(
                    Booking.resource_type == resource_type,
                    Booking.date == day,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                .order_by(Booking.start_time.asc())
            )
            return list(result.scalars().all())

    async def lock_ledger(self, resource_type: ResourceType, day: date) -> Optional[int]:
        async with self._guard("lock_ledger"):
            result = await self.db.execute(
                select(SlotLedger.version)
                .where(SlotLedger.resource_type == resource_type, SlotLedger.date == day)
                .with_for_update()
            )
            version = result.scalar_one_or_none()
            if version is not None:
                return version

            self.db.add(SlotLedger(resource_type=resource_type, date=day, version=0))
            try:
                await self.db.flush()
            except IntegrityError:
                # Another admission created the ledger row first
                await self.db.rollback()
                logger.info("ledger_create_race", resource_type=resource_type.value, date=str(day))
                return None
            return 0

    async def advance_ledger(self, resource_type: ResourceType, day: date, seen_version: int) -> bool:
        async with self._guard("advance_ledger"):
            result = await self.db.execute(
                update(SlotLedger)
                .where(
                    SlotLedger.resource_type == resource_type,
                    SlotLedger.date == day,
                    SlotLedger.version == seen_version,
                )
                .values(version=SlotLedger.version + 1, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def add(self, booking: Booking) -> Booking:
        async with self._guard("add"):
            self.db.add(booking)
            await self.db.flush()
            await self.db.refresh(booking)
            return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        async with self._guard("get"):
            return await self.db.get(Booking, booking_id)

    async def compare_and_set_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        target: BookingStatus,
    ) -> Optional[Booking]:
        async with self._guard("set_status"):
            result = await self.db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status == expected)
                .values(status=target, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                return None
            return await self.db.get(Booking, booking_id, populate_existing=True)

    async def search(
        self,
        status: Optional[BookingStatus] = None,
        resource_type: Optional[ResourceType] = None,
        day: Optional[date] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Booking], int]:
        query = select(Booking)
        if status is not None:
            query = query.where(Booking.status == status)
        if resource_type is not None:
            query = query.where(Booking.resource_type == resource_type)
        if day is not None:
            query = query.where(Booking.date == day)

        async with self._guard("search"):
            count_query = select(func.count()).select_from(query.subquery())
            total = (await self.db.execute(count_query)).scalar() or 0

            result = await self.db.execute(
                query
                .order_by(Booking.created_at.desc(), Booking.id.asc())
                .offset(offset)
                .limit(limit)
            )
            return list(result.scalars().all()), total

    async def commit(self) -> None:
        async with self._guard("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        async with self._guard("rollback"):
            await self.db.rollback()
