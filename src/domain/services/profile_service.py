"""Profile service: keeps a local profile row for every authenticated user."""

from collections.abc import Callable
from typing import ClassVar
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import UserNotFoundError
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class ProfileService:
    """Service layer for user profiles."""

    # In-memory cache of user IDs known to have a profile row. Avoids a DB
    # round-trip on every authenticated request.
    _provisioned_users: ClassVar[set[UUID]] = set()

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    @classmethod
    def clear_provisioned_cache(cls) -> None:
        """Clear the provisioned-users cache. Intended for testing."""
        cls._provisioned_users.clear()

    async def ensure_profile(
        self,
        user_id: UUID,
        email: str,
        display_name: str | None = None,
    ) -> Profile | None:
        """Create the profile on first sight of a user.

        Idempotent: returns None when the profile already exists. Concurrent
        first requests race on the primary key; the loser's unique violation
        is swallowed.
        """
        if user_id in self._provisioned_users:
            return None

        async with self._uow_factory() as uow:
            existing = await uow.profiles.get(user_id)
            if existing:
                self._provisioned_users.add(user_id)
                return None

            profile = Profile(
                id=user_id,
                email=email.lower().strip(),
                display_name=display_name,
            )
            try:
                created = await uow.profiles.create(profile)
                await uow.commit()
            except IntegrityError as exc:
                await uow.rollback()
                # Only swallow unique-constraint violations (race condition)
                orig = str(exc.orig).lower() if exc.orig else ""
                if "unique" in orig or "duplicate" in orig:
                    self._provisioned_users.add(user_id)
                    logger.debug("profile_already_created", user_id=str(user_id))
                    return None
                raise

            self._provisioned_users.add(user_id)
            logger.info("profile_created", user_id=str(user_id))
            return created  # type: ignore[no-any-return]

    async def get(self, user_id: UUID) -> Profile:
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get(user_id)
            if not profile:
                raise UserNotFoundError(str(user_id))
            return profile
