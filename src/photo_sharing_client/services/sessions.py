"""Authentication session lifecycle."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import ValidationError

from photo_sharing_client.adapters.http_api_client import ApiClient
from photo_sharing_client.domain.errors import ApiError, ErrorKind
from photo_sharing_client.domain.models import UserSnapshot
from photo_sharing_client.domain.payloads import (
    LoginPayload,
    SessionCheckPayload,
    UserPayload,
    to_user_snapshot,
    user_snapshot_to_json,
)
from photo_sharing_client.domain.sessions import (
    INACTIVE,
    SessionState,
    SessionStatus,
)

logger = logging.getLogger(__name__)

TOKEN_KEY = "jwt_token"
USER_KEY = "user"

SessionListener = Callable[[SessionState], None]


class KeyValueStore(Protocol):
    """Simple persistence for the credential and user snapshot."""

    def get(self, key: str) -> object | None:
        """Return the stored value for a key, if present."""

    def set(self, key: str, value: object) -> None:
        """Store a value under a key."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class SessionManager:
    """Owns the token and current-user snapshot for the running client.

    The only transitions are `inactive -> active` on a successful login or
    restore, and `active -> inactive` on logout, on any auth error reported by
    the API client, or on a failed restore.
    """

    api_client: ApiClient
    store: KeyValueStore
    _token: str | None = field(default=None, init=False)
    _state: SessionState = field(default=INACTIVE, init=False)
    _listeners: list[SessionListener] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.api_client.bind_session(self.current_token, self._on_auth_error)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> UserSnapshot | None:
        return self._state.user

    def current_token(self) -> str | None:
        """Return the credential attached to outbound requests."""
        return self._token

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session transitions."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def restore(self) -> SessionState:
        """Validate a persisted token with the server; fail closed."""
        stored = self.store.get(TOKEN_KEY)
        if not isinstance(stored, str) or not stored:
            self._clear()
            return self._state

        self._token = stored
        try:
            raw = await self.api_client.request("GET", "/admin/session")
            check = SessionCheckPayload.model_validate(raw or {})
            if not check.logged_in or not check.user_id:
                logger.info("Stored session is no longer valid")
                self._clear()
                return self._state
            user_raw = await self.api_client.request("GET", f"/user/{check.user_id}")
            user = to_user_snapshot(UserPayload.model_validate(user_raw))
        except (ApiError, ValidationError) as exc:
            logger.info("Session restore failed: %s", exc)
            self._clear()
            return self._state

        self._activate(stored, user)
        return self._state

    async def login(self, login_name: str, password: str) -> SessionState:
        """Submit credentials and activate the session on success."""
        try:
            raw = await self.api_client.request(
                "POST",
                "/admin/login",
                {"login_name": login_name, "password": password},
            )
            payload = LoginPayload.model_validate(raw)
        except ApiError as exc:
            self._clear()
            raise _login_error(exc) from exc
        except ValidationError as exc:
            self._clear()
            raise ApiError(
                ErrorKind.NETWORK, "Malformed login response", operation="login"
            ) from exc

        self._activate(payload.token, to_user_snapshot(payload.user))
        return self._state

    async def logout(self) -> None:
        """Notify the server if possible, then always clear local state."""
        if self._token is not None:
            try:
                await self.api_client.request("POST", "/admin/logout")
            except ApiError:
                logger.warning("Server logout failed", exc_info=True)
        self._clear()

    async def update_profile(self, fields: dict[str, object]) -> UserSnapshot:
        """Update the current user's profile and replace the snapshot wholesale."""
        user = self.current_user
        if user is None or self._token is None:
            raise ApiError(ErrorKind.AUTH, "Not logged in", operation="update_profile")

        body = {**user_snapshot_to_json(user), **fields}
        body.pop("_id", None)
        try:
            raw = await self.api_client.request("PUT", f"/user/{user.id}", body)
            user_raw = raw.get("user", raw) if isinstance(raw, dict) else raw
            updated = to_user_snapshot(UserPayload.model_validate(user_raw))
        except ApiError as exc:
            raise exc.with_operation("update_profile") from exc
        except ValidationError as exc:
            raise ApiError(
                ErrorKind.NETWORK,
                "Malformed profile response",
                operation="update_profile",
            ) from exc

        if self._token is None:
            # Session ended while the request was in flight.
            return updated
        self.store.set(USER_KEY, user_snapshot_to_json(updated))
        self._set_state(SessionState(SessionStatus.ACTIVE, updated))
        return updated

    def invalidate(self) -> None:
        """Drop the session after an auth failure."""
        if self._state.is_active:
            logger.info("Session invalidated after auth error")
        self._clear()

    def _on_auth_error(self, error: ApiError) -> None:
        self.invalidate()

    def _activate(self, token: str, user: UserSnapshot) -> None:
        self._token = token
        self.store.set(TOKEN_KEY, token)
        self.store.set(USER_KEY, user_snapshot_to_json(user))
        logger.info("Session active for %s", user.login_name or user.id)
        self._set_state(SessionState(SessionStatus.ACTIVE, user))

    def _clear(self) -> None:
        self._token = None
        self.store.delete(TOKEN_KEY)
        self.store.delete(USER_KEY)
        self._set_state(INACTIVE)

    def _set_state(self, state: SessionState) -> None:
        changed = state != self._state
        self._state = state
        if changed:
            for listener in list(self._listeners):
                listener(state)


def _login_error(error: ApiError) -> ApiError:
    if error.kind in {ErrorKind.AUTH, ErrorKind.CLIENT, ErrorKind.NOT_FOUND}:
        return ApiError(
            ErrorKind.INVALID_CREDENTIALS,
            error.message,
            status_code=error.status_code,
            operation="login",
        )
    return error.with_operation("login")
