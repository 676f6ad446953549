"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Profile:
    """User profile, synced from the identity provider on first request."""

    id: UUID = field(default_factory=uuid4)
    email: str = ""
    display_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def label(self) -> str:
        """Name to show in notifications: display name, else the email local part."""
        if self.display_name:
            return self.display_name
        return self.email.split("@")[0] if self.email else str(self.id)
