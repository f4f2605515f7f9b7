"""Per-user activity derived from the photo sets the client has seen."""

import asyncio
import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import ValidationError

from photo_sharing_client.adapters.http_api_client import ApiClient
from photo_sharing_client.domain.errors import ApiError
from photo_sharing_client.domain.models import Comment, Photo
from photo_sharing_client.services.photos import StoreEvent, parse_photo_list

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True)
class AuthoredComment:
    """A comment together with the photo it was left on."""

    comment: Comment
    photo_id: str
    photo_owner_id: str
    photo_file_name: str


@dataclass
class ActivityIndex:
    """Comment and photo counts per user, updated one owner at a time.

    Each ingested photo set replaces that owner's previous contribution, so
    counts stay correct when the store reloads or merges a comment. A sweep
    result is dropped when its owner was ingested again, or the index was
    cleared, while the request was in flight.
    """

    api_client: ApiClient
    _photos_by_owner: dict[str, tuple[Photo, ...]] = field(
        default_factory=dict, init=False
    )
    _authored: dict[str, dict[str, list[AuthoredComment]]] = field(
        default_factory=dict, init=False
    )
    _comment_counts: Counter[str] = field(default_factory=Counter, init=False)
    _owner_tickets: dict[str, int] = field(default_factory=dict, init=False)
    _epoch: int = field(default=0, init=False)

    def on_store_event(self, event: StoreEvent) -> None:
        """Store listener keeping the index in step with displayed photos."""
        if event.error is None and event.snapshot is not None:
            self.ingest(event.snapshot.owner.id, event.snapshot.photos)

    def clear(self) -> None:
        """Forget all counts and drop the results of any sweep in flight."""
        self._epoch += 1
        self._photos_by_owner.clear()
        self._authored.clear()
        self._comment_counts.clear()

    def ingest(self, owner_id: str, photos: Iterable[Photo]) -> None:
        """Replace everything known about one owner's photos."""
        photos = tuple(photos)
        self._owner_tickets[owner_id] = self._owner_tickets.get(owner_id, 0) + 1
        for author_id, entries in self._authored.pop(owner_id, {}).items():
            self._comment_counts[author_id] -= len(entries)
            if self._comment_counts[author_id] <= 0:
                del self._comment_counts[author_id]

        authored: dict[str, list[AuthoredComment]] = {}
        for photo in photos:
            for top in photo.comments:
                for comment in (top, *top.replies):
                    authored.setdefault(comment.author.id, []).append(
                        AuthoredComment(
                            comment=comment,
                            photo_id=photo.id,
                            photo_owner_id=owner_id,
                            photo_file_name=photo.file_name,
                        )
                    )
        for author_id, entries in authored.items():
            self._comment_counts[author_id] += len(entries)
        self._authored[owner_id] = authored
        self._photos_by_owner[owner_id] = photos

    def photo_count(self, user_id: str) -> int:
        return len(self._photos_by_owner.get(user_id, ()))

    def comment_count(self, user_id: str) -> int:
        return self._comment_counts.get(user_id, 0)

    def comments_by(self, user_id: str) -> list[AuthoredComment]:
        """Return a user's comments across all known photos, newest first."""
        found = [
            entry
            for authored in self._authored.values()
            for entry in authored.get(user_id, [])
        ]
        found.sort(key=_newest_first_key, reverse=True)
        return found

    async def refresh(self, user_ids: Iterable[str]) -> None:
        """Fetch photo lists for many users in one concurrent sweep."""
        ids = list(user_ids)
        epoch = self._epoch
        tickets = {uid: self._owner_tickets.get(uid, 0) for uid in ids}
        results = await asyncio.gather(
            *(self.api_client.request("GET", f"/photosOfUser/{uid}") for uid in ids),
            return_exceptions=True,
        )
        for user_id, result in zip(ids, results, strict=True):
            if isinstance(result, ApiError):
                if result.is_auth_error:
                    raise result.with_operation("refresh_activity")
                logger.warning("Skipping activity for %s: %s", user_id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            if self._is_stale(epoch, user_id, tickets[user_id]):
                logger.debug("Discarding stale activity for %s", user_id)
                continue
            try:
                self.ingest(user_id, parse_photo_list(result))
            except (ApiError, ValidationError):
                logger.warning("Malformed photo list for %s", user_id, exc_info=True)

    def _is_stale(self, epoch: int, owner_id: str, ticket: int) -> bool:
        return epoch != self._epoch or ticket != self._owner_tickets.get(owner_id, 0)


def _newest_first_key(entry: AuthoredComment) -> datetime:
    created_at = entry.comment.created_at
    if created_at is None:
        return _OLDEST
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=UTC)
    return created_at
