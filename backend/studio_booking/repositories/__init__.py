from studio_booking.repositories.booking_repository import SqlAlchemyBookingRepository

__all__ = ["SqlAlchemyBookingRepository"]
