"""Image URL resolution with a single fallback attempt."""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import quote

MAX_ATTEMPTS = 2

_UUID_STEM = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_server_generated(file_name: str) -> bool:
    """Return True when the name looks like a server-assigned upload id."""
    return bool(_UUID_STEM.match(PurePosixPath(file_name).stem))


@dataclass(frozen=True)
class ImageLocationResolver:
    """Orders the candidate URLs for a stored image file name.

    Uploaded files (UUID-shaped names) live on the API server, so it is tried
    first; pre-seeded names are served as static assets first. Either way the
    other origin is the single fallback.
    """

    server_base_url: str
    static_base_url: str

    def server_url(self, file_name: str) -> str:
        return f"{self.server_base_url}/images/{quote(file_name)}"

    def static_url(self, file_name: str) -> str:
        return f"{self.static_base_url}/images/{quote(file_name)}"

    def primary_url(self, file_name: str) -> str:
        if is_server_generated(file_name):
            return self.server_url(file_name)
        return self.static_url(file_name)

    def fallback_url(self, file_name: str) -> str:
        if is_server_generated(file_name):
            return self.static_url(file_name)
        return self.server_url(file_name)

    def load(self, file_name: str) -> "ImageLoad":
        """Start tracking the load attempts for one image."""
        return ImageLoad(
            candidates=(self.primary_url(file_name), self.fallback_url(file_name))
        )


@dataclass
class ImageLoad:
    """Load state for one rendered image: primary, then fallback, then give up."""

    candidates: tuple[str, ...]
    _attempt: int = field(default=0, init=False)

    @property
    def url(self) -> str | None:
        """URL the renderer should load now, or None once unavailable."""
        if self.unavailable:
            return None
        return self.candidates[self._attempt]

    @property
    def attempts(self) -> int:
        return min(self._attempt + 1, MAX_ATTEMPTS)

    @property
    def unavailable(self) -> bool:
        return self._attempt >= min(len(self.candidates), MAX_ATTEMPTS)

    def fail(self) -> str | None:
        """Record a load failure and return the next URL to try, if any."""
        if not self.unavailable:
            self._attempt += 1
        return self.url
