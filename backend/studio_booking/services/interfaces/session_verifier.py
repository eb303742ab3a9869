"""
Session verifier interface.
Maps a bearer token to the authenticated principal behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from studio_booking.models.enums import ADMIN_ROLES, Role


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


class SessionVerifier(ABC):
    @abstractmethod
    async def verify(self, token: str) -> Optional[Principal]:
        """
        Resolve a bearer token.

        Returns:
            The principal for a live, unexpired session
            None for a missing, forged, revoked or expired token
        """
        pass
