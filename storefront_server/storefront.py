"""Wiring of the storefront client components."""

import logging
import time
import webbrowser
from typing import Optional

import httpx

from .admin import AdminConsole
from .api import StorefrontAPI
from .auth import AuthManager
from .cart import CartStore
from .checkout import CheckoutOrchestrator, Redirect
from .config import Settings
from .events import SessionSignal
from .models import AuthCredentials
from .queries import CurrentUserQuery, WishlistQuery
from .storage import Clock, CookieStore, JsonFileStorage, KeyValueStorage

logger = logging.getLogger(__name__)


class Storefront:
    """One browser-like session against the storefront backend."""

    def __init__(
        self,
        settings: Settings,
        storage: Optional[KeyValueStorage] = None,
        clock: Clock = time.time,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        redirect: Optional[Redirect] = None,
    ) -> None:
        self.settings = settings
        self.storage = storage if storage is not None else JsonFileStorage(settings.state_file)
        self.cookies = CookieStore(self.storage, clock=clock)
        self.signal = SessionSignal()

        self.api = StorefrontAPI(
            settings.api_url,
            self.cookies,
            timeout=settings.timeout,
            transport=transport,
            payment_url=settings.payment_base_url,
        )
        self.auth = AuthManager(self.api, self.cookies, self.storage, signal=self.signal)
        self.cart = CartStore(self.storage, clock=clock)
        self.current_user = CurrentUserQuery(self.api, self.auth, clock=clock)
        self.wishlist = WishlistQuery(self.api, self.auth, clock=clock)
        self.admin = AdminConsole(self.api, self.auth)

        if redirect is None and settings.open_browser:
            redirect = webbrowser.open
        self.checkout = CheckoutOrchestrator(self.api, self.cart, redirect=redirect)

        self.cart.bind_session(self.signal)
        self.current_user.bind_session(self.signal)
        self.wishlist.bind_session(self.signal)

    async def startup(self) -> None:
        """On-load session check: drop stale state, refresh the profile."""
        if self.auth.check_expiration():
            return
        if self.auth.is_authenticated():
            await self.current_user.get()

    async def ensure_authenticated(self, credentials: Optional[AuthCredentials] = None) -> bool:
        """Ensure there is a live session, signing in with configured credentials if needed."""
        self.auth.check_expiration()
        if self.auth.is_authenticated():
            return True

        credentials = credentials or self.settings.credentials
        if credentials is None:
            return False

        logger.info("Auto-logging in with configured credentials...")
        result = await self.auth.sign_in(credentials)
        if result.success:
            logger.info("Auto-login successful")
            await self.current_user.get(force=True)
            return True
        logger.warning(f"Auto-login failed: {result.message}")
        return False

    async def aclose(self) -> None:
        await self.api.aclose()
