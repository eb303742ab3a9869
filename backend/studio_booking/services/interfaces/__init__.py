"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .rate_limit import RateLimiter
from .memory_rate_limit import InMemoryRateLimiter
from .repository import BookingRepository
from .session_verifier import Principal, SessionVerifier

__all__ = ['RateLimiter', 'InMemoryRateLimiter', 'BookingRepository', 'Principal', 'SessionVerifier']
