"""
Booking lifecycle: the status state machine and who may drive it.

    pending ──> confirmed ──> cancelled
       └──────────────────────^

cancelled is terminal. Only administrative principals transition bookings.
"""

from typing import Optional

from studio_booking.core.exceptions import Forbidden, InvalidTransition, NotFound, Unauthorized
from studio_booking.core.logging import get_logger
from studio_booking.core.metrics import record_transition
from studio_booking.models.booking import Booking
from studio_booking.models.enums import BookingStatus
from studio_booking.services.interfaces.repository import BookingRepository
from studio_booking.services.interfaces.session_verifier import Principal

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class BookingLifecycle:

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def transition(self, actor: Optional[Principal], booking_id: str, target: BookingStatus) -> Booking:
        """
        Move a booking to `target`.

        Authorization is checked before the lookup so callers without the
        right role learn nothing about which ids exist.

        Raises:
            Unauthorized, Forbidden, NotFound, InvalidTransition
            StorageUnavailable: storage failed (nothing was changed)
        """
        if actor is None:
            raise Unauthorized()
        if not actor.is_admin:
            logger.warning("transition_forbidden", user_id=actor.id, role=actor.role.value)
            raise Forbidden()

        booking = await self.repository.get(booking_id)
        if booking is None:
            raise NotFound("Booking not found")

        current = booking.status
        if not can_transition(current, target):
            record_transition(target.value, applied=False)
            raise InvalidTransition(current.value, target.value)

        updated = await self.repository.compare_and_set_status(booking_id, current, target)
        if updated is None:
            # Another admin moved it first; judge the request against the fresh state
            fresh = await self.repository.get(booking_id)
            record_transition(target.value, applied=False)
            raise InvalidTransition(fresh.status.value if fresh else current.value, target.value)

        await self.repository.commit()
        record_transition(target.value, applied=True)
        logger.info(
            "booking_status_changed",
            booking_id=booking_id,
            from_status=current.value,
            to_status=target.value,
            actor_id=actor.id,
        )
        # no mailer here; the notifier consumes this event
        logger.info(
            "booking_notification",
            booking_id=booking_id,
            email=updated.email,
            status=target.value,
            resource_type=updated.resource_type.value,
            date=str(updated.date),
        )
        return updated
