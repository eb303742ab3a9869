"""
Admission control: validate a booking request and admit it as `pending`
without ever admitting two overlapping live bookings.

ATOMICITY
=========

Conflict check and insert form one unit per (resource_type, date):

  - In process: a KeyedLock hands out one asyncio.Lock per key, so two
    requests in the same worker run their check+insert back to back.
  - Across workers: the slot ledger compare-and-swap in the repository
    (see repositories/booking_repository.py). A lost swap rolls back and
    retries from the conflict check, so the retry sees the winner's row.

The unit commits before the lock is released. Releasing first would let the
next waiter run its conflict query before the previous insert is visible.
The admission timeout covers waiting for the lock as well as the unit.

Validation happens before any of this, with no storage access.
"""

import asyncio
import time as time_module
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from studio_booking.core.exceptions import BookingValidationError, SlotTaken, StorageUnavailable
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import admission_latency, ledger_retries, record_booking_attempt
from studio_booking.models.booking import Booking
from studio_booking.models.enums import BookingStatus, ResourceType
from studio_booking.services.conflict_service import ConflictDetector
from studio_booking.services.interfaces.repository import BookingRepository
from studio_booking.services.slots import OperatingHours, format_clock

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class BookingRequest:
    """A candidate booking as submitted, before admission."""

    resource_type: ResourceType
    date: date
    start: time
    end: time
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None


class KeyedLock:
    """One asyncio.Lock per key, dropped again once nobody holds or awaits it."""

    def __init__(self):
        self._locks: dict[tuple, asyncio.Lock] = {}
        self._users: dict[tuple, int] = {}

    @asynccontextmanager
    async def hold(self, key: tuple):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every controller in this worker
admission_locks = KeyedLock()


class AdmissionController:

    def __init__(
        self,
        repository: BookingRepository,
        hours: OperatingHours,
        detector: Optional[ConflictDetector] = None,
        locks: Optional[KeyedLock] = None,
        today: Callable[[], date] = date.today,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.repository = repository
        self.hours = hours
        self.detector = detector or ConflictDetector(repository)
        self.locks = locks if locks is not None else admission_locks
        self.today = today
        self.max_retries = max_retries
        self.timeout = timeout

    def validate(self, request: BookingRequest) -> None:
        """Reject malformed requests. Never touches storage."""
        details = []

        if not request.name or not request.name.strip():
            details.append({"field": "name", "message": "Name is required"})
        if not request.email or "@" not in request.email:
            details.append({"field": "email", "message": "Valid email is required"})
        if not isinstance(request.resource_type, ResourceType):
            details.append({"field": "type", "message": "Booking type must be studio or coworking"})

        if request.date < self.today():
            details.append({"field": "date", "message": "Booking date cannot be in the past"})

        if request.end <= request.start:
            details.append({"field": "end_time", "message": "End time must be after start time"})
        else:
            if not self.hours.is_boundary(request.start):
                details.append({"field": "start_time", "message": self._hours_message()})
            if not self.hours.is_boundary(request.end):
                details.append({"field": "end_time", "message": self._hours_message()})

        if details:
            raise BookingValidationError(details)

    def _hours_message(self) -> str:
        return (
            f"Time must be a slot boundary between {format_clock(self.hours.open_time)} "
            f"and {format_clock(self.hours.close_time)}"
        )

    async def submit(self, request: BookingRequest) -> Booking:
        """
        Admit a booking request as `pending`.

        Raises:
            BookingValidationError: malformed request (no storage access happened)
            SlotTaken: overlaps a pending or confirmed booking
            StorageUnavailable: storage failed, timed out or stayed contended
        """
        try:
            self.validate(request)
        except BookingValidationError as e:
            record_booking_attempt("invalid")
            logger.info("booking_rejected_invalid", details=e.details)
            raise

        key = (request.resource_type, request.date)

        async def _locked() -> Booking:
            async with self.locks.hold(key):
                return await self._admit(request)

        started = time_module.perf_counter()
        try:
            booking = await asyncio.wait_for(_locked(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            record_booking_attempt("error")
            logger.error(
                "admission_timeout",
                resource_type=request.resource_type.value,
                date=str(request.date),
                timeout=self.timeout,
            )
            raise StorageUnavailable("Admission timed out") from e
        except SlotTaken:
            record_booking_attempt("slot_taken")
            raise
        except StorageUnavailable:
            record_booking_attempt("error")
            raise
        finally:
            admission_latency.observe(time_module.perf_counter() - started)

        record_booking_attempt("admitted")
        return booking

    async def _admit(self, request: BookingRequest) -> Booking:
        try:
            for attempt in range(1, self.max_retries + 1):
                version = await self.repository.lock_ledger(request.resource_type, request.date)
                if version is None:
                    ledger_retries.inc()
                    continue

                conflicts = await self.detector.find_conflicts(
                    request.resource_type, request.date, request.start, request.end
                )
                if conflicts:
                    # read before rollback, which expires the loaded rows
                    ranges = [
                        {"start_time": format_clock(b.start_time), "end_time": format_clock(b.end_time)}
                        for b in conflicts
                    ]
                    await self.repository.rollback()
                    logger.info(
                        "booking_slot_taken",
                        resource_type=request.resource_type.value,
                        date=str(request.date),
                        start=format_clock(request.start),
                        end=format_clock(request.end),
                        conflicts=len(conflicts),
                    )
                    raise SlotTaken(ranges)

                booking = await self.repository.add(Booking(
                    resource_type=request.resource_type,
                    date=request.date,
                    start_time=request.start,
                    end_time=request.end,
                    status=BookingStatus.PENDING,
                    name=request.name,
                    email=request.email,
                    phone=request.phone,
                    message=request.message,
                ))

                if not await self.repository.advance_ledger(request.resource_type, request.date, version):
                    # Another worker admitted for this day since we read the ledger
                    await self.repository.rollback()
                    ledger_retries.inc()
                    logger.info(
                        "admission_retry",
                        resource_type=request.resource_type.value,
                        date=str(request.date),
                        attempt=attempt,
                        reason="ledger_version_conflict",
                    )
                    continue

                await self.repository.commit()
                logger.info(
                    "booking_admitted",
                    booking_id=booking.id,
                    resource_type=request.resource_type.value,
                    date=str(request.date),
                    start=format_clock(request.start),
                    end=format_clock(request.end),
                    attempt=attempt,
                )
                return booking
        except SlotTaken:
            raise
        except BaseException:
            # Storage failure, cancellation (timeout) or a bug: leave nothing half-written
            await self._rollback_quietly()
            raise

        logger.warning(
            "admission_contended",
            resource_type=request.resource_type.value,
            date=str(request.date),
            attempts=self.max_retries,
        )
        raise StorageUnavailable("Booking could not be completed due to high demand. Please try again.")

    async def _rollback_quietly(self) -> None:
        try:
            await self.repository.rollback()
        except StorageUnavailable as e:
            # the caller sees the original error
            logger.warning("admission_rollback_failed", error=str(e))
