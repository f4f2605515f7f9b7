"""Tests for the member directory."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from photo_sharing_client.domain.errors import ApiError, ErrorKind
from photo_sharing_client.services.cache import InMemoryCache
from photo_sharing_client.services.users import UserDirectory
from tests.conftest import FakeApiClient


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def test_list_users_is_cached_until_ttl(api_client: FakeApiClient) -> None:
    clock = _Clock()
    directory = UserDirectory(api_client, InMemoryCache(clock=clock), ttl_seconds=60)

    first = asyncio.run(directory.list_users())
    second = asyncio.run(directory.list_users())
    clock.now += timedelta(seconds=61)
    asyncio.run(directory.list_users())

    assert [user.login_name for user in first] == [
        "ianmalcolm",
        "aprilludgate",
        "ellenripley",
    ]
    assert second == first
    assert api_client.paths().count("/user/list") == 2


def test_refresh_and_forget_bypass_cache(api_client: FakeApiClient) -> None:
    directory = UserDirectory(api_client, InMemoryCache())

    asyncio.run(directory.list_users())
    asyncio.run(directory.list_users(refresh=True))
    directory.forget()
    asyncio.run(directory.list_users())

    assert api_client.paths().count("/user/list") == 3


def test_get_user_returns_snapshot(api_client: FakeApiClient) -> None:
    directory = UserDirectory(api_client, InMemoryCache())

    user = asyncio.run(directory.get_user("u-x"))

    assert user.full_name == "Ian Malcolm"
    assert user.occupation == "Mathematician"


def test_get_missing_user_is_not_found(api_client: FakeApiClient) -> None:
    directory = UserDirectory(api_client, InMemoryCache())

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(directory.get_user("u-ghost"))

    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.operation == "get_user"


def test_malformed_user_list_is_network_error(api_client: FakeApiClient) -> None:
    api_client.responses[("GET", "/user/list")] = {"users": []}
    directory = UserDirectory(api_client, InMemoryCache())

    with pytest.raises(ApiError) as exc_info:
        asyncio.run(directory.list_users())

    assert exc_info.value.kind is ErrorKind.NETWORK
