"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class TokenUser:
    """The authenticated caller as described by a verified access token."""

    id: UUID
    email: str
    display_name: Optional[str] = None
    role: Optional[str] = None


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a bearer token.

        Args:
            token: The raw token from the Authorization header or the
                WebSocket ``token`` query parameter

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        ...
