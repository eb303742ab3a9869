"""
Pydantic schemas for booking-related request/response validation.

Field formats and contact sanitization live here; scheduling rules
(operating hours, end after start, no past dates) are enforced by the
admission controller so they hold for every caller, not just HTTP.
"""

import re
from datetime import date as date_type, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from studio_booking.models.enums import BookingStatus, ResourceType

CLOCK_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def sanitize_text(value: str, limit: int = 1000) -> str:
    """Strip markup-ish fragments from free text before storage."""
    value = value.strip()
    value = re.sub(r"[<>]", "", value)
    value = re.sub(r"javascript:", "", value, flags=re.IGNORECASE)
    value = re.sub(r"on\w+=", "", value, flags=re.IGNORECASE)
    return value[:limit]


class BookingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    type: ResourceType
    date: datetime
    start_time: str = Field(..., pattern=CLOCK_PATTERN)
    end_time: str = Field(..., pattern=CLOCK_PATTERN)
    message: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        value = " ".join(sanitize_text(value, limit=100).split())
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if len(value) > 254:
            raise ValueError("Email too long")
        return value

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = re.sub(r"\s+", "", value)
        if not value:
            return None
        if not PHONE_PATTERN.match(value):
            raise ValueError("Invalid phone number format")
        return value

    @field_validator("message")
    @classmethod
    def clean_message(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return sanitize_text(value, limit=500) or None


class BookingResponse(BaseModel):
    id: str
    type: ResourceType = Field(validation_alias="resource_type")
    date: date_type
    start_time: time
    end_time: time
    status: BookingStatus
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    page: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class StatusUpdate(BaseModel):
    bookingId: str = Field(..., min_length=1)
    status: BookingStatus


class AvailabilityResponse(BaseModel):
    date: date_type
    type: ResourceType
    unavailableSlots: list[str]
    availableSlots: list[str]
