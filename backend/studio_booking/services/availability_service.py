"""
Availability: which grid slots of a day are free for a resource.

Advisory only. A slot reported free can still be lost to a concurrent
submission; the admission controller is the authority.
"""

from dataclasses import dataclass
from datetime import date

from studio_booking.models.enums import ResourceType
from studio_booking.services.conflict_service import ConflictDetector
from studio_booking.services.slots import OperatingHours, TimeSlot, intervals_overlap


@dataclass(frozen=True)
class Availability:
    resource_type: ResourceType
    date: date
    busy_slots: list[TimeSlot]
    free_slots: list[TimeSlot]

    def to_response(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "type": self.resource_type.value,
            "unavailableSlots": [slot.label for slot in self.busy_slots],
            "availableSlots": [slot.label for slot in self.free_slots],
        }


class AvailabilityService:

    def __init__(self, detector: ConflictDetector, hours: OperatingHours):
        self.detector = detector
        self.hours = hours

    async def get_availability(self, resource_type: ResourceType, day: date) -> Availability:
        # One read for the whole day, then partition the grid in memory
        active = await self.detector.find_conflicts(
            resource_type, day, self.hours.open_time, self.hours.close_time
        )
        busy, free = [], []
        for slot in self.hours.grid(resource_type, day):
            taken = any(
                intervals_overlap(slot.start, slot.end, booking.start_time, booking.end_time)
                for booking in active
            )
            (busy if taken else free).append(slot)
        return Availability(resource_type, day, busy, free)
