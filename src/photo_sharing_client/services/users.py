"""Member directory lookups."""

from dataclasses import dataclass

from pydantic import ValidationError

from photo_sharing_client.adapters.http_api_client import ApiClient
from photo_sharing_client.domain.errors import ApiError, ErrorKind
from photo_sharing_client.domain.models import UserSnapshot
from photo_sharing_client.domain.payloads import UserPayload, to_user_snapshot
from photo_sharing_client.services.cache import Cache

USER_LIST_KEY = "user:list"


@dataclass
class UserDirectory:
    """Reads member profiles, caching the full list for a short TTL."""

    api_client: ApiClient
    cache: Cache
    ttl_seconds: int = 60

    async def list_users(self, refresh: bool = False) -> list[UserSnapshot]:
        """Return all members, from cache unless `refresh` is set."""
        if not refresh:
            cached = self.cache.get(USER_LIST_KEY)
            if isinstance(cached, list):
                return list(cached)
        try:
            raw = await self.api_client.request("GET", "/user/list")
            if not isinstance(raw, list):
                raise ApiError(ErrorKind.NETWORK, "Expected a list of users")
            users = [to_user_snapshot(UserPayload.model_validate(item)) for item in raw]
        except ApiError as exc:
            raise exc.with_operation("list_users") from exc
        except ValidationError as exc:
            raise ApiError(
                ErrorKind.NETWORK, "Malformed user list", operation="list_users"
            ) from exc
        self.cache.set(USER_LIST_KEY, users, self.ttl_seconds)
        return list(users)

    async def get_user(self, user_id: str) -> UserSnapshot:
        """Fetch a single member profile."""
        try:
            raw = await self.api_client.request("GET", f"/user/{user_id}")
            return to_user_snapshot(UserPayload.model_validate(raw))
        except ApiError as exc:
            raise exc.with_operation("get_user") from exc
        except ValidationError as exc:
            raise ApiError(
                ErrorKind.NETWORK, "Malformed user record", operation="get_user"
            ) from exc

    def forget(self) -> None:
        """Drop the cached member list."""
        self.cache.invalidate(USER_LIST_KEY)
