"""Photo and comment store for the currently viewed user."""

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime

from pydantic import ValidationError

from photo_sharing_client.adapters.http_api_client import (
    ApiClient,
    Attachment,
    RequestKind,
)
from photo_sharing_client.domain.errors import ApiError, ErrorKind
from photo_sharing_client.domain.models import (
    AuthorRef,
    Comment,
    Photo,
    PhotoSetSnapshot,
    UserSnapshot,
)
from photo_sharing_client.domain.payloads import (
    CommentPayload,
    PhotoPayload,
    UserPayload,
    to_user_snapshot,
)

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "uploadedphoto"


@dataclass(frozen=True)
class StoreEvent:
    """Notification delivered to store subscribers."""

    operation: str
    snapshot: PhotoSetSnapshot | None
    error: ApiError | None = None


StoreListener = Callable[[StoreEvent], None]


@dataclass
class _CommentTree:
    """Flat comment records plus the one-level display ordering."""

    records: dict[str, Comment] = field(default_factory=dict)
    top_level: list[str] = field(default_factory=list)
    replies: dict[str, list[str]] = field(default_factory=dict)

    def root_of(self, comment_id: str) -> str | None:
        """Return the top-level comment a new reply to `comment_id` belongs under."""
        record = self.records.get(comment_id)
        if record is None:
            return None
        if record.parent_id is None:
            return record.id
        return record.parent_id

    def merge(self, comment: Comment) -> bool:
        """Insert a comment keyed by id; return False when nothing changed."""
        if comment.id in self.records:
            return False
        if comment.parent_id is None:
            self.records[comment.id] = comment
            self.top_level.append(comment.id)
            self.replies[comment.id] = []
            return True

        root_id = self.root_of(comment.parent_id)
        if root_id is None:
            logger.warning(
                "Dropping reply %s with unknown parent %s",
                comment.id,
                comment.parent_id,
            )
            return False
        if root_id != comment.parent_id:
            comment = _replace_parent(comment, root_id)
        self.records[comment.id] = comment
        self.replies[root_id].append(comment.id)
        return True

    def build(self) -> tuple[Comment, ...]:
        built = []
        for comment_id in self.top_level:
            top = self.records[comment_id]
            replies = tuple(self.records[rid] for rid in self.replies[comment_id])
            built.append(replace(top, parent_id=None, replies=replies))
        return tuple(built)


@dataclass
class _PhotoEntry:
    id: str
    owner_id: str
    file_name: str
    created_at: datetime | None
    comments: _CommentTree

    def snapshot(self) -> Photo:
        return Photo(
            id=self.id,
            owner_id=self.owner_id,
            file_name=self.file_name,
            created_at=self.created_at,
            comments=self.comments.build(),
        )


@dataclass
class PhotoStore:
    """Holds one owner's photos and comment trees and merges server results.

    Consumers only ever receive immutable snapshots through `snapshot()` or
    subscriber events. Loads are guarded against stale responses: a load that
    completes after a newer load was dispatched is discarded.
    """

    api_client: ApiClient
    _owner: UserSnapshot | None = field(default=None, init=False)
    _photos: list[_PhotoEntry] = field(default_factory=list, init=False)
    _listeners: list[StoreListener] = field(default_factory=list, init=False)
    _load_ticket: int = field(default=0, init=False)
    _requested_user_id: str | None = field(default=None, init=False)

    @property
    def owner_id(self) -> str | None:
        return self._owner.id if self._owner else None

    def snapshot(self) -> PhotoSetSnapshot | None:
        """Return an immutable view of the stored photo set."""
        if self._owner is None:
            return None
        return PhotoSetSnapshot(
            owner=self._owner,
            photos=tuple(entry.snapshot() for entry in self._photos),
        )

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StoreListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self) -> None:
        """Discard stored photos and any load still in flight."""
        self._load_ticket += 1
        self._requested_user_id = None
        self._owner = None
        self._photos = []
        self._publish(StoreEvent(operation="clear", snapshot=None))

    async def load_photos_for_user(self, user_id: str) -> PhotoSetSnapshot | None:
        """Fetch a user's profile and photos and replace the stored set.

        Returns None when the response was superseded by a newer load.
        """
        self._load_ticket += 1
        ticket = self._load_ticket
        self._requested_user_id = user_id

        try:
            photos_raw, user_raw = await asyncio.gather(
                self.api_client.request("GET", f"/photosOfUser/{user_id}"),
                self.api_client.request("GET", f"/user/{user_id}"),
            )
            owner = to_user_snapshot(UserPayload.model_validate(user_raw))
            entries = [_entry_from_payload(photo) for photo in _photo_list(photos_raw)]
        except ApiError as exc:
            error = exc.with_operation("load_photos_for_user")
            if self._is_stale(ticket, user_id):
                logger.debug("Ignoring failed stale load for user %s", user_id)
                return None
            self._publish(
                StoreEvent("load_photos_for_user", self.snapshot(), error=error)
            )
            raise error from exc
        except ValidationError as exc:
            error = ApiError(
                ErrorKind.NETWORK,
                "Malformed photo list",
                operation="load_photos_for_user",
            )
            if self._is_stale(ticket, user_id):
                return None
            self._publish(
                StoreEvent("load_photos_for_user", self.snapshot(), error=error)
            )
            raise error from exc

        if self._is_stale(ticket, user_id):
            logger.debug("Discarding stale photo list for user %s", user_id)
            return None

        self._owner = owner
        self._photos = entries
        snapshot = self.snapshot()
        self._publish(StoreEvent("load_photos_for_user", snapshot))
        return snapshot

    async def add_comment(
        self, photo_id: str, text: str, parent_id: str | None = None
    ) -> Comment:
        """Submit a comment or reply and merge the server's record."""
        body_text = text.strip()
        if not body_text:
            raise ApiError(
                ErrorKind.CLIENT, "Comment text is empty", operation="add_comment"
            )
        entry = self._find(photo_id)
        if entry is None:
            raise ApiError(
                ErrorKind.NOT_FOUND,
                f"Photo {photo_id} is not loaded",
                operation="add_comment",
            )
        root_id = None
        if parent_id is not None:
            root_id = entry.comments.root_of(parent_id)
            if root_id is None:
                raise ApiError(
                    ErrorKind.NOT_FOUND,
                    f"Comment {parent_id} does not exist on photo {photo_id}",
                    operation="add_comment",
                )

        body: dict[str, object] = {"comment": body_text}
        if root_id is not None:
            body["parent_id"] = root_id
        try:
            raw = await self.api_client.request(
                "POST", f"/commentsOfPhoto/{photo_id}", body
            )
            payload = CommentPayload.model_validate(_unwrap_comment(raw))
        except ApiError as exc:
            raise exc.with_operation("add_comment") from exc
        except ValidationError as exc:
            raise ApiError(
                ErrorKind.NETWORK, "Malformed comment response", operation="add_comment"
            ) from exc

        comment = _comment_from_payload(payload, photo_id)
        if comment.parent_id is None and root_id is not None:
            comment = _replace_parent(comment, root_id)

        # The photo may have been replaced by a newer load while in flight.
        current = self._find(photo_id)
        if current is None:
            logger.debug("Photo %s no longer displayed; not merging", photo_id)
            return comment
        if current.comments.merge(comment):
            self._publish(StoreEvent("add_comment", self.snapshot()))
        return comment

    async def upload_photo(
        self, file_name: str, content: bytes, content_type: str
    ) -> Photo:
        """Upload a photo and append it if the uploader's photos are displayed."""
        attachment = Attachment(
            field_name=UPLOAD_FIELD,
            file_name=file_name,
            content=content,
            content_type=content_type,
        )
        try:
            raw = await self.api_client.request(
                "POST", "/photos/new", attachment, kind=RequestKind.MULTIPART
            )
            if isinstance(raw, dict) and isinstance(raw.get("photo"), dict):
                raw = raw["photo"]
            entry = _entry_from_payload(PhotoPayload.model_validate(raw))
        except ApiError as exc:
            raise exc.with_operation("upload_photo") from exc
        except ValidationError as exc:
            raise ApiError(
                ErrorKind.NETWORK, "Malformed upload response", operation="upload_photo"
            ) from exc

        if self.owner_id == entry.owner_id and self._find(entry.id) is None:
            self._photos.append(entry)
            self._publish(StoreEvent("upload_photo", self.snapshot()))
        return entry.snapshot()

    def _find(self, photo_id: str) -> _PhotoEntry | None:
        for entry in self._photos:
            if entry.id == photo_id:
                return entry
        return None

    def _is_stale(self, ticket: int, user_id: str) -> bool:
        return ticket != self._load_ticket or user_id != self._requested_user_id

    def _publish(self, event: StoreEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


def _photo_list(raw: object) -> list[PhotoPayload]:
    if not isinstance(raw, list):
        raise ApiError(ErrorKind.NETWORK, "Expected a list of photos")
    return [PhotoPayload.model_validate(item) for item in raw]


def _unwrap_comment(raw: object) -> object:
    if isinstance(raw, dict) and "_id" not in raw:
        nested = raw.get("comment")
        if isinstance(nested, dict):
            return nested
    return raw


def _entry_from_payload(payload: PhotoPayload) -> _PhotoEntry:
    flat = list(_flatten(payload.comments, parent_id=None))
    tree = _CommentTree()
    # Top-level first so replies listed ahead of their parent still attach.
    for comment in flat:
        if comment.parent_id is None:
            tree.merge(_comment_from_payload(comment, payload.id))
    for comment in flat:
        if comment.parent_id is not None:
            tree.merge(_comment_from_payload(comment, payload.id))
    return _PhotoEntry(
        id=payload.id,
        owner_id=payload.user_id,
        file_name=payload.file_name,
        created_at=payload.date_time,
        comments=tree,
    )


def _flatten(
    comments: list[CommentPayload], parent_id: str | None
) -> Iterator[CommentPayload]:
    """Yield nested payloads parent-first, filling in implied parent ids."""
    for comment in comments:
        effective_parent = comment.parent_id or parent_id
        yield comment.model_copy(update={"parent_id": effective_parent, "replies": []})
        yield from _flatten(comment.replies, parent_id=comment.id)


def _comment_from_payload(payload: CommentPayload, photo_id: str) -> Comment:
    if payload.user is not None:
        author = AuthorRef(
            id=payload.user.id,
            first_name=payload.user.first_name,
            last_name=payload.user.last_name,
        )
    else:
        author = AuthorRef(id=payload.user_id or "")
    return Comment(
        id=payload.id,
        photo_id=payload.photo_id or photo_id,
        author=author,
        text=payload.comment,
        created_at=payload.date_time,
        parent_id=payload.parent_id,
    )


def _replace_parent(comment: Comment, parent_id: str) -> Comment:
    return replace(comment, parent_id=parent_id, replies=())


def parse_photo_list(raw: object) -> list[Photo]:
    """Parse a `/photosOfUser` response into photo snapshots."""
    return [_entry_from_payload(photo).snapshot() for photo in _photo_list(raw)]
