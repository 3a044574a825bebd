"""Cached server-state queries keyed by identity."""

import logging
import time
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .api import StorefrontAPI
from .auth import AuthManager
from .config import PROFILE_STALE_SECONDS, TOKEN_COOKIE
from .errors import StorefrontError
from .events import SessionSignal
from .models import User, WishlistItem
from .storage import Clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachedQuery(Generic[T]):
    """Result of an async fetcher cached for ``stale_time`` seconds.

    A disabled query never touches the network and yields None.
    """

    def __init__(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        stale_time: float = 0.0,
        enabled: Callable[[], bool] = lambda: True,
        clock: Clock = time.time,
    ) -> None:
        self.key = key
        self.fetcher = fetcher
        self.stale_time = stale_time
        self.enabled = enabled
        self.clock = clock
        self.data: Optional[T] = None
        self.error: Optional[Exception] = None
        self.updated_at: Optional[float] = None

    @property
    def is_stale(self) -> bool:
        if self.updated_at is None:
            return True
        return self.clock() - self.updated_at >= self.stale_time

    async def get(self, force: bool = False) -> Optional[T]:
        """Return cached data, fetching when missing or stale.

        Raises:
            StorefrontError: If the fetch fails; the previous data is kept
        """
        if not self.enabled():
            return None
        if not force and not self.is_stale:
            return self.data

        logger.info(f"Fetching query '{self.key}'")
        try:
            data = await self.fetcher()
        except StorefrontError as e:
            self.error = e
            raise
        self.data = data
        self.error = None
        self.updated_at = self.clock()
        return data

    def invalidate(self) -> None:
        """Evict the cached result."""
        self.data = None
        self.error = None
        self.updated_at = None

    def bind_session(self, signal: SessionSignal) -> None:
        signal.subscribe(lambda reason: self.invalidate())


class CurrentUserQuery(CachedQuery[User]):
    """The signed-in user's profile, fed into the AuthManager."""

    KEY = "currentUser"

    def __init__(
        self,
        api: StorefrontAPI,
        auth_manager: AuthManager,
        stale_time: float = PROFILE_STALE_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(
            self.KEY,
            api.get_current_user,
            stale_time=stale_time,
            enabled=lambda: auth_manager.cookies.get(TOKEN_COOKIE) is not None,
            clock=clock,
        )
        self.auth_manager = auth_manager

    async def get(self, force: bool = False) -> Optional[User]:
        """Fetch the profile; a failure while signed in ends the session."""
        try:
            user = await super().get(force=force)
        except StorefrontError as e:
            self.auth_manager.handle_profile_error(e)
            return None
        if user is not None:
            self.auth_manager.set_current_user(user)
        return user


class WishlistQuery(CachedQuery[list[WishlistItem]]):
    """The signed-in user's wishlist."""

    KEY = "myWishlist"

    def __init__(
        self,
        api: StorefrontAPI,
        auth_manager: AuthManager,
        stale_time: float = PROFILE_STALE_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(
            self.KEY,
            api.get_wishlist,
            stale_time=stale_time,
            enabled=lambda: auth_manager.cookies.get(TOKEN_COOKIE) is not None,
            clock=clock,
        )

    def contains(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.data or [])
