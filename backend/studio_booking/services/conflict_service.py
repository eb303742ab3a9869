"""
Conflict detection: which live bookings overlap a candidate interval.

A pure query. Admission calls it inside its critical section; the
availability service calls it outside one. Neither path can cause a write.
"""

from datetime import date, time

from studio_booking.models.booking import Booking
from studio_booking.models.enums import ResourceType
from studio_booking.services.interfaces.repository import BookingRepository
from studio_booking.services.slots import intervals_overlap


class ConflictDetector:

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def find_conflicts(
        self,
        resource_type: ResourceType,
        day: date,
        start: time,
        end: time,
    ) -> list[Booking]:
        """
        Pending/confirmed bookings for the resource and date whose
        [start_time, end_time) overlaps [start, end).

        StorageUnavailable from the repository propagates unchanged.
        """
        active = await self.repository.find_active(resource_type, day)
        return [
            booking
            for booking in active
            if intervals_overlap(start, end, booking.start_time, booking.end_time)
        ]
