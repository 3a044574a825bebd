"""Runtime configuration sourced from environment variables."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .models import AuthCredentials

CART_STORAGE_KEY = "cart"
USER_STORAGE_KEY = "user"
TOKEN_COOKIE = "token"
COOKIE_PATH = "/"

CART_TTL_SECONDS = 60 * 60
TOKEN_TTL_SECONDS = 60 * 60
PROFILE_STALE_SECONDS = 5 * 60


def _str_to_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


class Settings(BaseModel):
    """Storefront client settings."""

    api_url: str = Field("http://localhost:5000/api/v1", description="Versioned backend API URL")
    payment_url: Optional[str] = Field(
        None, description="Base URL of the payment routes (default: api_url without /v1)"
    )
    state_file: str = Field(
        default_factory=lambda: str(Path.home() / ".storefront_session.json"),
        description="File holding the persisted cart and cookies",
    )
    timeout: float = Field(30.0, description="HTTP timeout in seconds")
    email: Optional[str] = None
    password: Optional[str] = None
    open_browser: bool = Field(False, description="Open checkout URLs in the system browser")

    @property
    def payment_base_url(self) -> str:
        if self.payment_url:
            return self.payment_url.rstrip("/")
        base = self.api_url.rstrip("/")
        if base.endswith("/v1"):
            return base[: -len("/v1")]
        return base

    @property
    def credentials(self) -> Optional[AuthCredentials]:
        if self.email and self.password:
            return AuthCredentials(email=self.email, password=self.password)
        return None


def load_settings() -> Settings:
    """Load settings from STOREFRONT_* environment variables."""
    values: dict[str, object] = {}

    api_url = os.environ.get("STOREFRONT_API_URL")
    if api_url:
        values["api_url"] = api_url.rstrip("/")

    payment_url = os.environ.get("STOREFRONT_PAYMENT_URL")
    if payment_url:
        values["payment_url"] = payment_url.rstrip("/")

    state_file = os.environ.get("STOREFRONT_STATE_FILE")
    if state_file:
        values["state_file"] = state_file

    timeout = os.environ.get("STOREFRONT_TIMEOUT")
    if timeout:
        values["timeout"] = float(timeout)

    values["email"] = os.environ.get("STOREFRONT_EMAIL")
    values["password"] = os.environ.get("STOREFRONT_PASSWORD")
    values["open_browser"] = _str_to_bool(os.environ.get("STOREFRONT_OPEN_BROWSER"))

    return Settings(**values)
