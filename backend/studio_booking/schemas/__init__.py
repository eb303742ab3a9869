from studio_booking.schemas.user import UserLogin, UserCreate, UserResponse, AdminBootstrap, Token
from studio_booking.schemas.booking import (
    BookingCreate, BookingResponse, BookingListResponse, StatusUpdate, AvailabilityResponse,
)
from studio_booking.schemas.stats import DashboardStats

__all__ = [
    "UserLogin", "UserCreate", "UserResponse", "AdminBootstrap", "Token",
    "BookingCreate", "BookingResponse", "BookingListResponse", "StatusUpdate", "AvailabilityResponse",
    "DashboardStats",
]
