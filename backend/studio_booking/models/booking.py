"""
Booking model: one reservation of a studio or coworking slot.

Key design decisions:
- id is an opaque UUID string; resource_type, date and the time range never change
- Status field allows cancellation without deleting records
- Composite index on (resource_type, date, status) serves both conflict
  detection and availability queries
- Overlap is not expressible as a portable constraint; it is enforced by the
  admission controller under the slot ledger (see slot_ledger.py)
"""

import uuid

from sqlalchemy import Column, String, Date, Time, Text, Enum, Index, CheckConstraint

from studio_booking.db.base import Base, TimestampMixin
from studio_booking.models.enums import BookingStatus, ResourceType, enum_values


def _new_id() -> str:
    return str(uuid.uuid4())


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_id)
    resource_type = Column(
        Enum(ResourceType, name="resource_type", native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(
        Enum(BookingStatus, name="booking_status", native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
    )

    # Contact details, opaque to scheduling
    name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False)
    phone = Column(String(20), nullable=True)
    message = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_time_range"),
        CheckConstraint("status IN ('pending', 'confirmed', 'cancelled')", name="check_booking_status"),
        CheckConstraint("resource_type IN ('studio', 'coworking')", name="check_booking_resource_type"),
        Index("ix_bookings_resource_date_status", "resource_type", "date", "status"),
        Index("ix_bookings_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, type={self.resource_type}, date={self.date}, "
            f"{self.start_time}-{self.end_time}, status={self.status})>"
        )
