"""
Service-level error taxonomy.

Services raise these instead of HTTPException so the booking core stays
independent of the web layer. A single exception handler in main.py renders
them as `{"error": ..., ...}` JSON with the class's status code.
"""

from typing import Any, Optional


class BookingServiceError(Exception):
    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message}

    def headers(self) -> Optional[dict[str, str]]:
        return None


class BookingValidationError(BookingServiceError):
    """Malformed or out-of-range request. Never retried."""

    status_code = 400
    error = "Validation error"

    def __init__(self, details: list[dict[str, str]]):
        super().__init__("; ".join(f"{d['field']}: {d['message']}" for d in details))
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


class InvalidTransition(BookingServiceError):
    status_code = 400
    error = "Invalid status transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change a {current} booking to {target}")
        self.current = current
        self.target = target


class Unauthorized(BookingServiceError):
    status_code = 401
    error = "Unauthorized"

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error}

    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(BookingServiceError):
    status_code = 403
    error = "Forbidden"

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error}


class NotFound(BookingServiceError):
    status_code = 404
    error = "Not found"


class SlotTaken(BookingServiceError):
    """The requested interval overlaps a pending or confirmed booking."""

    status_code = 409
    error = "Time slot already booked"

    def __init__(self, conflicts: list[dict[str, str]]):
        super().__init__("This time slot is not available. Please choose a different time.")
        self.conflicts = conflicts

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "conflicts": self.conflicts}


class RateLimited(BookingServiceError):
    status_code = 429
    error = "Too Many Requests"

    def __init__(self, limit: int, retry_after: int):
        super().__init__(f"Rate limit of {limit} requests exceeded")
        self.limit = limit
        self.retry_after = retry_after

    def headers(self) -> Optional[dict[str, str]]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
        }


class StorageUnavailable(BookingServiceError):
    """Infrastructure failure. Safe to retry with backoff; never means "no conflict"."""

    status_code = 503
    error = "Storage unavailable"
