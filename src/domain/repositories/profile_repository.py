"""Profile repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for user profiles."""

    async def get(self, id: UUID) -> Profile | None:
        ...

    async def get_many(self, ids: list[UUID]) -> dict[UUID, Profile]:
        """Fetch several profiles at once, keyed by ID. Unknown IDs are omitted."""
        ...

    async def get_by_email(self, email: str) -> Profile | None:
        ...

    async def create(self, profile: Profile) -> Profile:
        ...

    async def update(self, profile: Profile) -> Profile:
        ...
