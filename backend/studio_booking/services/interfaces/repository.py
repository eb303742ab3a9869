"""
Booking repository interface.

The booking services only talk to storage through this interface, so the
scheduling rules can be exercised against any implementation. Every method
that touches storage raises StorageUnavailable on infrastructure failure.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from studio_booking.models.booking import Booking
from studio_booking.models.enums import BookingStatus, ResourceType


class BookingRepository(ABC):

    @abstractmethod
    async def find_active(self, resource_type: ResourceType, day: date) -> list[Booking]:
        """Pending and confirmed bookings for one resource on one date."""
        pass

    @abstractmethod
    async def lock_ledger(self, resource_type: ResourceType, day: date) -> Optional[int]:
        """
        Open the admission unit for (resource_type, day).

        Locks the day's ledger row where the database supports row locks and
        returns its version, creating the row on first use.

        Returns:
            The ledger version seen by this transaction
            None if another writer created the row concurrently (retry)
        """
        pass

    @abstractmethod
    async def advance_ledger(self, resource_type: ResourceType, day: date, seen_version: int) -> bool:
        """
        Compare-and-swap the ledger version from `seen_version` to the next one.

        Returns:
            False if another admission committed in between (retry)
        """
        pass

    @abstractmethod
    async def add(self, booking: Booking) -> Booking:
        """Stage a new booking in the current transaction."""
        pass

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def compare_and_set_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        target: BookingStatus,
    ) -> Optional[Booking]:
        """
        Move a booking from `expected` to `target` only if it is still in `expected`.

        Returns:
            The updated booking, or None if its status changed underneath us
        """
        pass

    @abstractmethod
    async def search(
        self,
        status: Optional[BookingStatus] = None,
        resource_type: Optional[ResourceType] = None,
        day: Optional[date] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Booking], int]:
        """Newest-first page of bookings matching the filters, plus the total count."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
