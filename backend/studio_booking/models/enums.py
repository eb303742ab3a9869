"""
Closed value sets shared by the ORM models, schemas and services.
"""

import enum


class ResourceType(str, enum.Enum):
    STUDIO = "studio"
    COWORKING = "coworking"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Statuses that hold a slot. Cancelled bookings free it.
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    USER = "USER"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.MODERATOR})


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]
