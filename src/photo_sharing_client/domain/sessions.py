"""Domain models for the authenticated session."""

from dataclasses import dataclass
from enum import StrEnum

from photo_sharing_client.domain.models import UserSnapshot


class SessionStatus(StrEnum):
    """Lifecycle state of the client session."""

    INACTIVE = "inactive"
    ACTIVE = "active"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the session as seen by consumers."""

    status: SessionStatus
    user: UserSnapshot | None = None

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE


INACTIVE = SessionState(status=SessionStatus.INACTIVE)
