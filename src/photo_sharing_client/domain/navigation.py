"""Route shapes for the photo views."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ListRoute:
    """Viewing all photos of a user."""

    user_id: str

    @property
    def path(self) -> str:
        return f"/photos/{self.user_id}"


@dataclass(frozen=True)
class SingleRoute:
    """Viewing one photo of a user."""

    user_id: str
    photo_id: str

    @property
    def path(self) -> str:
        return f"/photos/{self.user_id}/{self.photo_id}"


Route = ListRoute | SingleRoute


def parse_route(path: str) -> Route | None:
    """Parse a `/photos/...` path into a route, if it is one."""
    parts = [part for part in path.strip().split("/") if part]
    if not parts or parts[0] != "photos":
        return None
    if len(parts) == 2:  # noqa: PLR2004
        return ListRoute(user_id=parts[1])
    if len(parts) == 3:  # noqa: PLR2004
        return SingleRoute(user_id=parts[1], photo_id=parts[2])
    return None
