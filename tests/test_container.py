"""Tests for container wiring."""

import asyncio

from photo_sharing_client.config import Settings
from photo_sharing_client.containers import AppContainer, build_container
from photo_sharing_client.domain.navigation import ListRoute, SingleRoute


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)
    assert container.session_manager is not None
    assert container.api_client.base_url == "http://api.test"
    assert container.image_resolver.server_base_url == "http://api.test"
    asyncio.run(container.close_resources())


def test_login_browse_and_logout_flow(container: AppContainer) -> None:
    asyncio.run(container.session_manager.login("aprilludgate", "pw"))
    container.navigation.show_user_photos("u-x")
    asyncio.run(container.photo_store.load_photos_for_user("u-x"))
    assert container.navigation.route == ListRoute("u-x")
    assert container.activity_index.comment_count("u-ellen") == 1

    assert not container.navigation.advanced_enabled
    container.navigation.toggle_advanced_features()
    assert container.navigation.route == SingleRoute("u-x", "p1")

    asyncio.run(container.session_manager.logout())

    assert container.photo_store.snapshot() is None
    assert container.navigation.route is None
    assert container.activity_index.comment_count("u-ellen") == 0
    assert container.activity_index.photo_count("u-x") == 0
    assert container.activity_index.comments_by("u-ellen") == []
    assert container.navigation.advanced_enabled


def test_flag_is_only_reachable_through_navigation(container: AppContainer) -> None:
    assert not hasattr(container, "feature_flags")

    assert container.navigation.toggle_advanced_features() is True
    assert container.navigation.advanced_enabled
