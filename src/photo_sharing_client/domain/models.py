"""Immutable domain snapshots exposed to consumers."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserSnapshot:
    """A member profile as last returned by the server."""

    id: str
    first_name: str
    last_name: str
    location: str = ""
    description: str = ""
    occupation: str = ""
    login_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class AuthorRef:
    """Minimal reference to the author of a comment."""

    id: str
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True)
class Comment:
    """A comment on a photo; replies are nested exactly one level deep."""

    id: str
    photo_id: str
    author: AuthorRef
    text: str
    created_at: datetime | None
    parent_id: str | None = None
    replies: tuple["Comment", ...] = ()

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None


@dataclass(frozen=True)
class Photo:
    """A photo and its ordered comment tree."""

    id: str
    owner_id: str
    file_name: str
    created_at: datetime | None
    comments: tuple[Comment, ...] = ()

    @property
    def comment_count(self) -> int:
        return sum(1 + len(comment.replies) for comment in self.comments)


@dataclass(frozen=True)
class PhotoSetSnapshot:
    """The photos of one owner as currently held by the store."""

    owner: UserSnapshot
    photos: tuple[Photo, ...]

    def photo_ids(self) -> list[str]:
        return [photo.id for photo in self.photos]

    def find(self, photo_id: str) -> Photo | None:
        for photo in self.photos:
            if photo.id == photo_id:
                return photo
        return None
