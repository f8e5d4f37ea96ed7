"""Caller identity passed explicitly into every engine call."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    ARTIST = "ARTIST"
    VENUE = "VENUE"


@dataclass(frozen=True)
class AuthContext:
    """
    Identity of the acting user for one request.

    Built by the identity provider after server-side token validation.
    The engine authorizes against this object only, never against
    claims decoded on the client.
    """
    user_id: str
    role: UserRole

    @property
    def is_artist(self) -> bool:
        return self.role == UserRole.ARTIST

    @property
    def is_venue(self) -> bool:
        return self.role == UserRole.VENUE
