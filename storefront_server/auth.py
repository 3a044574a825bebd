"""Authentication and session management."""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from .api import StorefrontAPI
from .config import COOKIE_PATH, TOKEN_COOKIE, TOKEN_TTL_SECONDS, USER_STORAGE_KEY
from .errors import StorefrontError
from .events import SessionSignal
from .models import AuthCredentials, AuthResult, OperationResult, ProfileUpdate, SignUpData, User
from .storage import CookieStore, KeyValueStorage

logger = logging.getLogger(__name__)


class AuthStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthManager:
    """Tracks the signed-in identity and its bearer token.

    The token lives in the ``token`` cookie with an absolute one-hour expiry;
    the user snapshot is kept in storage so a restarted process still knows
    who is signed in while the cookie is valid.
    """

    def __init__(
        self,
        api: StorefrontAPI,
        cookies: CookieStore,
        storage: KeyValueStorage,
        signal: Optional[SessionSignal] = None,
        token_ttl: float = TOKEN_TTL_SECONDS,
    ) -> None:
        self.api = api
        self.cookies = cookies
        self.storage = storage
        self.signal = signal or SessionSignal()
        self.token_ttl = token_ttl

        self.token: Optional[str] = cookies.get(TOKEN_COOKIE)
        self.user: Optional[User] = self._load_user()
        self.loading = False
        self.error: Optional[str] = None
        self.email_verified = False

    def _load_user(self) -> Optional[User]:
        data = self.storage.get(USER_STORAGE_KEY)
        if not data:
            return None
        try:
            return User.model_validate(data)
        except ValueError as e:
            logger.warning(f"Could not load saved user: {e}")
            return None

    @property
    def status(self) -> AuthStatus:
        if self.loading:
            return AuthStatus.AUTHENTICATING
        if self.token:
            return AuthStatus.AUTHENTICATED
        return AuthStatus.ANONYMOUS

    def is_authenticated(self) -> bool:
        """Check if there's an active authenticated session."""
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def set_current_user(self, user: Optional[User]) -> None:
        self.user = user
        if user is None:
            self.storage.remove(USER_STORAGE_KEY)
        else:
            self.storage.set(USER_STORAGE_KEY, user.model_dump(mode="json", by_alias=True))

    def _start_session(self, result: AuthResult) -> None:
        self.token = result.token
        self.cookies.set(TOKEN_COOKIE, result.token, max_age=self.token_ttl, path=COOKIE_PATH)
        self.set_current_user(result.user)

    async def _run(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], str],
    ) -> OperationResult:
        """Run an API call, tracking loading/error and normalizing failures."""
        self.loading = True
        self.error = None
        try:
            data = await call()
        except StorefrontError as e:
            self.error = e.message
            logger.error(f"{action} error: {e.message}")
            return OperationResult(success=False, message=e.message, error_kind=e.kind)
        finally:
            self.loading = False
        message = on_success(data)
        return OperationResult(success=True, message=message, data=data)

    async def sign_in(self, credentials: AuthCredentials) -> OperationResult:
        """Sign in and store the session token."""
        logger.info("Signing in")
        outcome = await self._run(
            "Sign-in", lambda: self.api.sign_in(credentials), lambda _: "Signed in"
        )
        if not outcome.success:
            return outcome

        result: AuthResult = outcome.data
        if not result.token:
            self.error = "Sign-in failed"
            logger.error("Sign-in response carried no token")
            return OperationResult(success=False, message=self.error, error_kind="contract")

        self._start_session(result)
        logger.info("✓ Sign-in successful")
        return OperationResult(success=True, message=outcome.message, data=result.user)

    async def sign_up(self, user_data: Union[SignUpData, dict[str, Any]]) -> OperationResult:
        """Register; a successful sign-up also signs the user in."""
        if not isinstance(user_data, SignUpData):
            user_data = SignUpData.model_validate(user_data)
        logger.info("Signing up")

        outcome = await self._run(
            "Sign-up", lambda: self.api.sign_up(user_data), lambda _: "Account created"
        )
        if not outcome.success:
            return outcome

        result: AuthResult = outcome.data
        if result.token:
            self._start_session(result)
        elif result.user:
            self.set_current_user(result.user)
        logger.info("✓ Sign-up successful")
        return OperationResult(success=True, message=outcome.message, data=result.user)

    def logout(self, reason: str = "logout") -> None:
        """Drop the session and tell dependent stores it has ended."""
        had_session = self.token is not None or self.user is not None
        self.token = None
        self.set_current_user(None)
        self.cookies.remove(TOKEN_COOKIE)
        self.email_verified = False
        logger.info(f"Logged out ({reason})")
        if had_session:
            self.signal.emit(reason)

    def check_expiration(self) -> bool:
        """Log out when the token cookie is gone but session state remains.

        Returns:
            True if a logout happened
        """
        cookie_token = self.cookies.get(TOKEN_COOKIE)
        if cookie_token is None and (self.token is not None or self.user is not None):
            logger.info("Token cookie missing or expired, ending stale session")
            self.logout(reason="expired")
            return True
        if cookie_token is not None and cookie_token != self.token:
            self.token = cookie_token
        return False

    def handle_profile_error(self, error: Exception) -> None:
        """A profile fetch failed while a token is present: treat the token as invalid."""
        if self.cookies.get(TOKEN_COOKIE) is None and self.token is None:
            return
        logger.warning(f"Profile fetch failed with a token present ({error}), logging out")
        self.logout(reason="invalid-token")

    async def verify_email(self, token: str) -> OperationResult:
        def on_success(_: Any) -> str:
            self.email_verified = True
            return "Email verified"

        outcome = await self._run("Email verification", lambda: self.api.verify_email(token), on_success)
        if not outcome.success:
            self.email_verified = False
        return outcome

    async def resend_verification(self, email: str) -> OperationResult:
        return await self._run(
            "Resend verification",
            lambda: self.api.resend_verification(email),
            lambda _: "Verification email sent",
        )

    async def forgot_password(self, email: str) -> OperationResult:
        return await self._run(
            "Forgot password",
            lambda: self.api.forgot_password(email),
            lambda _: "Password reset email sent",
        )

    async def reset_password(self, token: str, password: str, password_confirm: str) -> OperationResult:
        def on_success(result: AuthResult) -> str:
            if result.token:
                self._start_session(result)
            return "Password reset"

        return await self._run(
            "Reset password",
            lambda: self.api.reset_password(token, password, password_confirm),
            on_success,
        )

    async def update_password(
        self, current_password: str, password: str, password_confirm: str
    ) -> OperationResult:
        def on_success(result: AuthResult) -> str:
            if result.token:
                self._start_session(result)
            return "Password updated"

        return await self._run(
            "Password update",
            lambda: self.api.update_password(current_password, password, password_confirm),
            on_success,
        )

    async def update_me(self, update: ProfileUpdate) -> OperationResult:
        """Edit the signed-in user's own profile."""

        def on_success(user: User) -> str:
            self.set_current_user(user)
            return "Profile updated"

        return await self._run("Profile update", lambda: self.api.update_me(update), on_success)

    async def delete_me(self) -> OperationResult:
        """Delete the signed-in account; the session ends with it."""
        outcome = await self._run(
            "Account deletion", self.api.delete_me, lambda _: "Account deleted"
        )
        if outcome.success:
            self.logout(reason="account-deleted")
        return outcome
