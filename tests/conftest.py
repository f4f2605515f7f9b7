"""Shared test fixtures."""

import asyncio
import copy
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from photo_sharing_client.adapters.http_api_client import (
    ApiClient,
    AuthErrorHook,
    RequestKind,
    TokenProvider,
)
from photo_sharing_client.config import Settings
from photo_sharing_client.containers import AppContainer, wire_container
from photo_sharing_client.domain.errors import ApiError, ErrorKind
from photo_sharing_client.services.photos import PhotoStore
from photo_sharing_client.services.sessions import KeyValueStore, SessionManager

USER_X = {
    "_id": "u-x",
    "first_name": "Ian",
    "last_name": "Malcolm",
    "location": "Austin, TX",
    "description": "Chaos theorist",
    "occupation": "Mathematician",
    "login_name": "ianmalcolm",
}
USER_APRIL = {
    "_id": "u-april",
    "first_name": "April",
    "last_name": "Ludgate",
    "location": "Pawnee, IN",
    "description": "Intern",
    "occupation": "Government employee",
    "login_name": "aprilludgate",
}
USER_ELLEN = {
    "_id": "u-ellen",
    "first_name": "Ellen",
    "last_name": "Ripley",
    "location": "Nostromo",
    "description": "Warrant officer",
    "occupation": "Lieutenant",
    "login_name": "ellenripley",
}


def author(user: dict[str, str]) -> dict[str, str]:
    return {
        "_id": user["_id"],
        "first_name": user["first_name"],
        "last_name": user["last_name"],
    }


def photos_of_x() -> list[dict[str, object]]:
    return [
        {
            "_id": "p1",
            "user_id": "u-x",
            "file_name": "malcolm1.jpg",
            "date_time": "2024-01-05T10:00:00Z",
            "comments": [
                {
                    "_id": "c1",
                    "user": author(USER_ELLEN),
                    "comment": "Life finds a way.",
                    "date_time": "2024-01-06T10:00:00Z",
                }
            ],
        },
        {
            "_id": "p2",
            "user_id": "u-x",
            "file_name": "malcolm2.jpg",
            "date_time": "2024-01-07T10:00:00Z",
            "comments": [],
        },
        {
            "_id": "p3",
            "user_id": "u-x",
            "file_name": "a1b2c3d4-e5f6-47a8-9abc-1234567890ab.jpg",
            "date_time": "2024-01-08T10:00:00Z",
            "comments": [],
        },
    ]


def photos_of_ellen() -> list[dict[str, object]]:
    return [
        {
            "_id": "p9",
            "user_id": "u-ellen",
            "file_name": "ripley1.jpg",
            "date_time": "2024-02-01T09:00:00Z",
            "comments": [],
        }
    ]


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    data: dict[str, object] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        return self.data.get(key)

    def set(self, key: str, value: object) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def _no_token() -> str | None:
    return None


@dataclass
class FakeApiClient(ApiClient):
    """Scripted API client keyed by (method, path).

    A scripted value may be a payload, an ApiError to raise, or a callable
    receiving the request body. Requests whose key has a gate wait on it.
    """

    responses: dict[tuple[str, str], object] = field(default_factory=dict)
    gates: dict[tuple[str, str], asyncio.Event] = field(default_factory=dict)
    calls: list[tuple[str, str, object, str | None]] = field(default_factory=list)
    kinds: list[RequestKind] = field(default_factory=list)
    token_provider: TokenProvider = _no_token
    on_auth_error: AuthErrorHook | None = None

    def bind_session(
        self, token_provider: TokenProvider, on_auth_error: AuthErrorHook
    ) -> None:
        self.token_provider = token_provider
        self.on_auth_error = on_auth_error

    async def request(
        self,
        method: str,
        path: str,
        body: object = None,
        kind: RequestKind = RequestKind.JSON,
    ) -> object:
        key = (method, path)
        self.calls.append((method, path, body, self.token_provider()))
        self.kinds.append(kind)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key not in self.responses:
            raise ApiError(ErrorKind.NOT_FOUND, f"{method} {path}", 404)
        result = self.responses[key]
        if callable(result):
            result = result(body)
        if isinstance(result, ApiError):
            if result.is_auth_error and self.on_auth_error is not None:
                self.on_auth_error(result)
            raise result
        return copy.deepcopy(result)

    def paths(self, method: str | None = None) -> list[str]:
        return [call[1] for call in self.calls if method in {None, call[0]}]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url="http://api.test/",
        static_base_url="http://static.test",
        state_file="unused.json",
    )


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def api_client() -> FakeApiClient:
    client = FakeApiClient()
    client.responses[("GET", "/user/u-x")] = USER_X
    client.responses[("GET", "/user/u-april")] = USER_APRIL
    client.responses[("GET", "/user/u-ellen")] = USER_ELLEN
    client.responses[("GET", "/photosOfUser/u-x")] = photos_of_x()
    client.responses[("GET", "/photosOfUser/u-ellen")] = photos_of_ellen()
    client.responses[("GET", "/photosOfUser/u-april")] = []
    client.responses[("GET", "/user/list")] = [USER_X, USER_APRIL, USER_ELLEN]
    client.responses[("POST", "/admin/login")] = {
        "token": "jwt-april",
        "user": USER_APRIL,
    }
    client.responses[("POST", "/admin/logout")] = {"ok": True}
    client.responses[("GET", "/admin/session")] = {
        "logged_in": True,
        "user_id": "u-april",
    }
    return client


@pytest.fixture
def session_manager(
    api_client: FakeApiClient, kv_store: InMemoryKeyValueStore
) -> SessionManager:
    return SessionManager(api_client=api_client, store=kv_store)


@pytest.fixture
def photo_store(api_client: FakeApiClient) -> PhotoStore:
    return PhotoStore(api_client)


@pytest.fixture
def container(
    settings: Settings,
    api_client: FakeApiClient,
    kv_store: InMemoryKeyValueStore,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return wire_container(settings, api_client, kv_store, close_resources)


def comment_responder(
    comment_id: str, user: dict[str, str], created_at: str
) -> Callable[[object], dict[str, object]]:
    """Build a handler echoing a posted comment back as the server would."""

    def respond(body: object) -> dict[str, object]:
        assert isinstance(body, dict)
        record: dict[str, object] = {
            "_id": comment_id,
            "user": author(user),
            "comment": body["comment"],
            "date_time": created_at,
        }
        if "parent_id" in body:
            record["parent_id"] = body["parent_id"]
        return record

    return respond
