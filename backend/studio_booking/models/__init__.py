from studio_booking.models.booking import Booking
from studio_booking.models.enums import ACTIVE_STATUSES, ADMIN_ROLES, BookingStatus, ResourceType, Role
from studio_booking.models.session import Session
from studio_booking.models.slot_ledger import SlotLedger
from studio_booking.models.user import User

__all__ = [
    "Booking", "SlotLedger", "User", "Session",
    "BookingStatus", "ResourceType", "Role", "ACTIVE_STATUSES", "ADMIN_ROLES",
]
