"""Feature flag and the list/single photo navigation policy."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from photo_sharing_client.domain.models import PhotoSetSnapshot
from photo_sharing_client.domain.navigation import (
    ListRoute,
    Route,
    SingleRoute,
    parse_route,
)
from photo_sharing_client.services.photos import PhotoStore, StoreEvent

logger = logging.getLogger(__name__)

FlagListener = Callable[[bool], None]
RouteListener = Callable[[Route | None], None]


@dataclass
class FeatureFlags:
    """Process-wide feature switches with explicit subscribers."""

    _advanced_enabled: bool = field(default=False, init=False)
    _listeners: list[FlagListener] = field(default_factory=list, init=False)

    @property
    def advanced_enabled(self) -> bool:
        return self._advanced_enabled

    def set_advanced_enabled(self, enabled: bool) -> None:
        """Set the advanced-features flag and notify on change."""
        if enabled == self._advanced_enabled:
            return
        self._advanced_enabled = enabled
        for listener in list(self._listeners):
            listener(enabled)

    def subscribe(self, listener: FlagListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: FlagListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)


@dataclass
class NavigationPolicy:
    """Keeps the route in step with the advanced flag and the photo list.

    With the flag on, a list route over a non-empty photo list jumps to the
    first photo. With the flag off, a single-photo route falls back to the
    list. The rule is re-checked on every flag change and every store update,
    so a flag flipped before the photos arrive takes effect once they do.
    """

    flags: FeatureFlags
    _route: Route | None = field(default=None, init=False)
    _photos: PhotoSetSnapshot | None = field(default=None, init=False)
    _listeners: list[RouteListener] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.flags.subscribe(self._on_flag_changed)

    @property
    def route(self) -> Route | None:
        return self._route

    @property
    def advanced_enabled(self) -> bool:
        return self.flags.advanced_enabled

    def attach(self, store: PhotoStore) -> Callable[[], None]:
        """Follow a photo store; returns a callable that detaches."""
        self._photos = store.snapshot()
        unsubscribe = store.subscribe(self.on_store_event)
        self._reevaluate()
        return unsubscribe

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: RouteListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def toggle_advanced_features(self) -> bool:
        """Flip the advanced flag; returns the new value."""
        enabled = not self.flags.advanced_enabled
        self.flags.set_advanced_enabled(enabled)
        return enabled

    def set_advanced_enabled(self, enabled: bool) -> None:
        self.flags.set_advanced_enabled(enabled)

    def navigate(self, target: Route | str) -> Route | None:
        """Go to a route or `/photos/...` path, then apply the policy."""
        route = parse_route(target) if isinstance(target, str) else target
        if route is None:
            logger.debug("Ignoring non-photo route %r", target)
            return self._route
        self._set_route(route)
        self._reevaluate()
        return self._route

    def show_user_photos(self, user_id: str) -> Route | None:
        return self.navigate(ListRoute(user_id=user_id))

    def show_photo(self, user_id: str, photo_id: str) -> Route | None:
        return self.navigate(SingleRoute(user_id=user_id, photo_id=photo_id))

    def leave(self) -> None:
        """Navigate away from the photo views."""
        self._set_route(None)

    def step(self, delta: int) -> Route | None:
        """Move to a neighbouring photo; out-of-range steps do nothing."""
        route = self._route
        ids = self._photo_ids()
        if not isinstance(route, SingleRoute) or ids is None:
            return route
        if route.photo_id not in ids:
            return route
        target = ids.index(route.photo_id) + delta
        if 0 <= target < len(ids):
            self._set_route(SingleRoute(user_id=route.user_id, photo_id=ids[target]))
        return self._route

    def can_step(self, delta: int) -> bool:
        route = self._route
        ids = self._photo_ids()
        if not isinstance(route, SingleRoute) or not ids or route.photo_id not in ids:
            return False
        return 0 <= ids.index(route.photo_id) + delta < len(ids)

    def position(self) -> tuple[int, int] | None:
        """Return (1-based index, total) of the current single photo."""
        route = self._route
        ids = self._photo_ids()
        if not isinstance(route, SingleRoute) or not ids or route.photo_id not in ids:
            return None
        return ids.index(route.photo_id) + 1, len(ids)

    def on_store_event(self, event: StoreEvent) -> None:
        """Store listener: remember the latest photo list and re-check."""
        if event.error is not None:
            return
        self._photos = event.snapshot
        self._reevaluate()

    def _on_flag_changed(self, enabled: bool) -> None:
        self._reevaluate()

    def _photo_ids(self) -> list[str] | None:
        """Photo ids for the routed user, or None when not loaded yet."""
        route = self._route
        photos = self._photos
        if route is None or photos is None or photos.owner.id != route.user_id:
            return None
        return photos.photo_ids()

    def _reevaluate(self) -> None:
        route = self._route
        if route is None:
            return
        enabled = self.flags.advanced_enabled
        ids = self._photo_ids()

        if isinstance(route, SingleRoute):
            if not enabled:
                self._set_route(ListRoute(user_id=route.user_id))
            elif ids is not None and route.photo_id not in ids:
                if ids:
                    self._set_route(SingleRoute(route.user_id, ids[0]))
                else:
                    self._set_route(ListRoute(user_id=route.user_id))
            return

        if enabled and ids:
            self._set_route(SingleRoute(user_id=route.user_id, photo_id=ids[0]))

    def _set_route(self, route: Route | None) -> None:
        if route == self._route:
            return
        self._route = route
        for listener in list(self._listeners):
            listener(route)
