"""Base type for events published on the session bus."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of something that already happened.

    Identity and timestamp are filled in automatically and are
    keyword-only so subclasses can declare positional fields.

    Raises:
        ValueError: If occurred_at is naive.
    """

    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime = field(default_factory=_utcnow, kw_only=True)

    def __post_init__(self) -> None:
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must carry a timezone")
