"""Dependency container wiring for the client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from photo_sharing_client.adapters.http_api_client import ApiClient, HttpxApiClient
from photo_sharing_client.adapters.json_file_store import JsonFileKeyValueStore
from photo_sharing_client.app_logging import configure_logging
from photo_sharing_client.config import Settings, normalize_base_url
from photo_sharing_client.domain.sessions import SessionState
from photo_sharing_client.services.activity import ActivityIndex
from photo_sharing_client.services.cache import InMemoryCache
from photo_sharing_client.services.images import ImageLocationResolver
from photo_sharing_client.services.navigation import FeatureFlags, NavigationPolicy
from photo_sharing_client.services.photos import PhotoStore
from photo_sharing_client.services.sessions import KeyValueStore, SessionManager
from photo_sharing_client.services.users import UserDirectory


@dataclass
class AppContainer:
    """Holds client-wide dependencies."""

    settings: Settings
    api_client: ApiClient
    session_manager: SessionManager
    user_directory: UserDirectory
    photo_store: PhotoStore
    activity_index: ActivityIndex
    navigation: NavigationPolicy
    image_resolver: ImageLocationResolver
    close_resources: Callable[[], Awaitable[None]]


def wire_container(
    settings: Settings,
    api_client: ApiClient,
    store: KeyValueStore,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Connect services around an API client and persistence store."""
    session_manager = SessionManager(api_client=api_client, store=store)
    user_directory = UserDirectory(
        api_client=api_client,
        cache=InMemoryCache(),
        ttl_seconds=settings.user_list_ttl_seconds,
    )
    photo_store = PhotoStore(api_client)
    activity_index = ActivityIndex(api_client)
    photo_store.subscribe(activity_index.on_store_event)
    navigation = NavigationPolicy(FeatureFlags())
    navigation.attach(photo_store)
    image_resolver = ImageLocationResolver(
        server_base_url=normalize_base_url(settings.api_base_url),
        static_base_url=normalize_base_url(settings.static_base_url),
    )

    def on_session_change(state: SessionState) -> None:
        if not state.is_active:
            photo_store.clear()
            activity_index.clear()
            navigation.leave()

    session_manager.subscribe(on_session_change)

    return AppContainer(
        settings=settings,
        api_client=api_client,
        session_manager=session_manager,
        user_directory=user_directory,
        photo_store=photo_store,
        activity_index=activity_index,
        navigation=navigation,
        image_resolver=image_resolver,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    api_client = HttpxApiClient.create(
        base_url=normalize_base_url(resolved_settings.api_base_url),
        timeout=resolved_settings.request_timeout_seconds,
    )
    store = JsonFileKeyValueStore(Path(resolved_settings.state_file))

    async def close_resources() -> None:
        await api_client.close()

    return wire_container(resolved_settings, api_client, store, close_resources)
