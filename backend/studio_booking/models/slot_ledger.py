"""
Slot ledger: one row per (resource_type, date), the serialization point
for admissions on that day.

Every successful admission advances `version` with a compare-and-swap in the
same transaction as the booking insert. Two workers that both saw version N
cannot both commit: the second UPDATE ... WHERE version = N matches no row.
"""

from sqlalchemy import Column, Integer, Date, Enum, UniqueConstraint

from studio_booking.db.base import Base, TimestampMixin
from studio_booking.models.enums import ResourceType, enum_values


class SlotLedger(Base, TimestampMixin):
    __tablename__ = "slot_ledgers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource_type = Column(
        Enum(ResourceType, name="resource_type", native_enum=False, values_callable=enum_values, length=20),
        nullable=False,
    )
    date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("resource_type", "date", name="uq_slot_ledger_resource_date"),
    )

    def __repr__(self) -> str:
        return f"<SlotLedger({self.resource_type}, {self.date}, v{self.version})>"
