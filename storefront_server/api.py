"""Storefront backend REST API client."""

import logging
from typing import Any, Generator, Optional, TypeVar

import httpx
import pydantic

from .config import TOKEN_COOKIE
from .errors import ApiError, AuthenticationError, ContractError, TransportError
from .models import (
    AuthCredentials,
    AuthResult,
    CheckoutProduct,
    ContactMessage,
    ContactRecord,
    Order,
    OrderUpdate,
    PaymentStatus,
    Product,
    ProductInput,
    ProfileUpdate,
    Review,
    ReviewUpdate,
    SignUpData,
    User,
    UserUpdate,
    WishlistItem,
)
from .storage import CookieStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def extract_error_message(body: Any, default: str) -> str:
    """Pick the human-readable message out of an API error body."""
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(body, str) and body.strip():
        return body.strip()
    return default


def unwrap(payload: Any) -> Any:
    """Strip the backend's ``{"status": ..., "data": ...}`` envelope."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def parse_model(model: type[ModelT], data: Any, source: str) -> ModelT:
    """Validate a response payload, turning schema mismatches into ContractError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.error(f"Malformed {model.__name__} from {source}: {e.error_count()} error(s)")
        logger.debug(f"Payload from {source}: {data!r}")
        raise ContractError(f"Malformed response from {source}") from e


class BearerCookieAuth(httpx.Auth):
    """Attach the session token cookie as a bearer header on every request."""

    def __init__(self, cookies: CookieStore, cookie_name: str = TOKEN_COOKIE) -> None:
        self.cookies = cookies
        self.cookie_name = cookie_name

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self.cookies.get(self.cookie_name)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


class StorefrontAPI:
    """Client for the storefront backend API."""

    def __init__(
        self,
        base_url: str,
        cookies: CookieStore,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        payment_url: Optional[str] = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            base_url: Versioned API base URL, e.g. https://api.example.com/api/v1
            cookies: Cookie jar holding the session token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
            payment_url: Base URL of the payment routes, which live outside
                the versioned API (default: ``base_url``)
        """
        self.cookies = cookies
        self.payment_url = (payment_url or base_url).rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            auth=BearerCookieAuth(cookies),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            transport=transport,
        )

    def _require_token(self) -> None:
        if not self.cookies.get(TOKEN_COOKIE):
            raise AuthenticationError()

    async def _request(self, method: str, path: str, fallback: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            TransportError: If the request could not be sent
            ApiError: If the backend answered with an error status
            ContractError: If a successful response body is not JSON
        """
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(fallback) from e

        if response.is_error:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            message = extract_error_message(body, fallback)
            logger.error(f"{method} {path} returned {response.status_code}: {message}")
            raise ApiError(message, response.status_code, body)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Non-JSON body from {path}: {response.text[:200]}")
            raise ContractError(f"Malformed response from {path}") from None

    # Authentication

    async def sign_up(self, user_data: SignUpData) -> AuthResult:
        data = await self._request(
            "POST", "/signup", "Sign-up failed", json=user_data.model_dump(by_alias=True)
        )
        return self._parse_auth_result(data, "/signup")

    async def sign_in(self, credentials: AuthCredentials) -> AuthResult:
        data = await self._request(
            "POST", "/login", "Sign-in failed", json=credentials.model_dump()
        )
        return self._parse_auth_result(data, "/login")

    async def verify_email(self, token: str) -> Any:
        return unwrap(
            await self._request("PATCH", f"/verify/{token}", "Email verification failed", json={})
        )

    async def resend_verification(self, email: str) -> Any:
        return await self._request(
            "POST", "/resendVerify", "Resend verification failed", json={"email": email}
        )

    async def forgot_password(self, email: str) -> Any:
        return await self._request(
            "POST", "/forgotPassword", "Forgot password request failed", json={"email": email}
        )

    async def reset_password(self, token: str, password: str, password_confirm: str) -> AuthResult:
        data = await self._request(
            "PATCH",
            f"/resetPassword/{token}",
            "Reset password failed",
            json={"password": password, "passwordConfirm": password_confirm},
        )
        return self._parse_auth_result(data, "/resetPassword")

    async def update_password(
        self, current_password: str, password: str, password_confirm: str
    ) -> AuthResult:
        self._require_token()
        data = await self._request(
            "PATCH",
            "/users/updateMyPassword",
            "Password update failed.",
            json={
                "passwordCurrent": current_password,
                "password": password,
                "passwordConfirm": password_confirm,
            },
        )
        return self._parse_auth_result(data, "/users/updateMyPassword")

    # Users

    async def get_current_user(self) -> User:
        data = await self._request("GET", "/users/me", "Failed to load profile")
        user = unwrap(data)
        if isinstance(user, dict) and isinstance(user.get("user"), dict):
            user = user["user"]
        if not isinstance(user, dict):
            raise ContractError("Malformed response from /users/me")
        return parse_model(User, user, "/users/me")

    async def update_me(self, update: ProfileUpdate) -> User:
        self._require_token()
        data = unwrap(
            await self._request(
                "PATCH",
                "/users/updateMe",
                "Update failed",
                json=update.model_dump(exclude_none=True),
            )
        )
        return parse_model(User, self._user_payload(data), "/users/updateMe")

    async def delete_me(self) -> None:
        self._require_token()
        await self._request("DELETE", "/users/deleteMe", "Failed to delete account")

    async def list_users(self) -> list[User]:
        self._require_token()
        data = unwrap(await self._request("GET", "/users", "Failed to load users"))
        if isinstance(data, dict) and "users" in data:
            data = data["users"]
        return self._parse_list(data, User, "user")

    async def get_user(self, user_id: str) -> User:
        self._require_token()
        data = unwrap(await self._request("GET", f"/users/{user_id}", "Failed to load user"))
        return parse_model(User, self._user_payload(data), f"/users/{user_id}")

    async def update_user(self, user_id: str, update: UserUpdate) -> User:
        self._require_token()
        data = unwrap(
            await self._request(
                "PATCH",
                f"/users/{user_id}",
                "Failed to update user.",
                json=update.model_dump(exclude_none=True),
            )
        )
        return parse_model(User, self._user_payload(data), f"/users/{user_id}")

    async def delete_user(self, user_id: str) -> None:
        self._require_token()
        await self._request("DELETE", f"/users/{user_id}", "Failed to delete user.")

    # Products and reviews

    async def list_products(self) -> list[Product]:
        data = unwrap(await self._request("GET", "/products", "Failed to load products"))
        return self._parse_list(data, Product, "product")

    async def get_product(self, product_id: str) -> Product:
        data = unwrap(
            await self._request("GET", f"/products/{product_id}", "Failed to load product")
        )
        if isinstance(data, dict) and "product" in data:
            data = data["product"]
        return parse_model(Product, data, f"/products/{product_id}")

    async def create_product(self, product: ProductInput) -> Product:
        self._require_token()
        data = unwrap(
            await self._request(
                "POST",
                "/products",
                "Product creation failed.",
                json=product.model_dump(by_alias=True, exclude_none=True),
            )
        )
        if isinstance(data, dict) and "product" in data:
            data = data["product"]
        return parse_model(Product, data, "/products")

    async def update_product(self, product_id: str, product: ProductInput) -> Product:
        self._require_token()
        data = unwrap(
            await self._request(
                "PATCH",
                f"/products/{product_id}",
                "Product update failed.",
                json=product.model_dump(by_alias=True, exclude_none=True),
            )
        )
        if isinstance(data, dict) and "product" in data:
            data = data["product"]
        return parse_model(Product, data, f"/products/{product_id}")

    async def delete_product(self, product_id: str) -> None:
        self._require_token()
        await self._request("DELETE", f"/products/{product_id}", "Product deletion failed.")

    async def list_reviews(self, product_id: str) -> list[Review]:
        data = unwrap(
            await self._request(
                "GET", f"/products/{product_id}/reviews", "Failed to load reviews"
            )
        )
        return self._parse_list(data, Review, "review")

    async def create_review(self, product_id: str, rating: float, review: str) -> Review:
        self._require_token()
        data = unwrap(
            await self._request(
                "POST",
                f"/products/{product_id}/reviews",
                "Failed to create review.",
                json={"rating": rating, "review": review},
            )
        )
        return parse_model(Review, data, f"/products/{product_id}/reviews")

    async def update_review(self, review_id: str, update: ReviewUpdate) -> Review:
        self._require_token()
        data = unwrap(
            await self._request(
                "PATCH",
                f"/reviews/{review_id}",
                "Failed to update review.",
                json=update.model_dump(exclude_none=True),
            )
        )
        return parse_model(Review, data, f"/reviews/{review_id}")

    async def delete_review(self, review_id: str) -> None:
        self._require_token()
        await self._request("DELETE", f"/reviews/{review_id}", "Failed to delete review.")

    # Wishlist

    async def get_wishlist(self) -> list[WishlistItem]:
        data = unwrap(await self._request("GET", "/users/me/wishlist", "Failed to load wishlist"))
        return self._parse_list(data, WishlistItem, "wishlist item")

    async def add_to_wishlist(self, product_id: str) -> Any:
        self._require_token()
        return await self._request(
            "POST",
            "/users/me/wishlist",
            "Failed to add item to wishlist.",
            json={"productId": product_id},
        )

    async def remove_from_wishlist(self, product_id: str) -> Any:
        self._require_token()
        return await self._request(
            "DELETE", f"/users/me/wishlist/{product_id}", "Failed to remove item from wishlist."
        )

    # Orders and payments

    async def create_checkout_session(self, products: list[CheckoutProduct]) -> Any:
        return await self._request(
            "POST",
            "/orders/checkout-session",
            "Checkout session failed",
            json={"products": [product.model_dump() for product in products]},
        )

    async def list_orders(self) -> list[Order]:
        data = unwrap(await self._request("GET", "/orders", "Failed to load orders"))
        return self._parse_list(data, Order, "order")

    async def get_order(self, order_id: str) -> Order:
        data = unwrap(await self._request("GET", f"/orders/{order_id}", "Failed to load order"))
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            data = data["order"]
        return parse_model(Order, data, f"/orders/{order_id}")

    async def update_order(self, order_id: str, update: OrderUpdate) -> Order:
        self._require_token()
        data = unwrap(
            await self._request(
                "PUT",
                f"/orders/{order_id}",
                "Failed to update order",
                json=update.model_dump(by_alias=True, exclude_none=True),
            )
        )
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            data = data["order"]
        return parse_model(Order, data, f"/orders/{order_id}")

    async def delete_order(self, order_id: str) -> None:
        self._require_token()
        await self._request("DELETE", f"/orders/{order_id}", "Failed to delete order")

    async def verify_payment(self, session_id: str) -> PaymentStatus:
        data = await self._request(
            "GET",
            f"{self.payment_url}/payment/verify-payment",
            "Payment verification failed.",
            params={"session_id": session_id},
        )
        return parse_model(PaymentStatus, data or {}, "/payment/verify-payment")

    async def payment_history(self) -> list[Any]:
        data = unwrap(
            await self._request(
                "GET", f"{self.payment_url}/payment/history", "Failed to fetch payment history."
            )
        )
        return data if isinstance(data, list) else []

    # Contact

    async def send_contact_message(self, message: ContactMessage) -> Any:
        return await self._request(
            "POST", "/contact", "Failed to send message", json=message.model_dump(exclude_none=True)
        )

    async def list_contact_messages(self) -> list[ContactRecord]:
        self._require_token()
        data = unwrap(await self._request("GET", "/contact", "Failed to load messages"))
        if isinstance(data, dict) and "contacts" in data:
            data = data["contacts"]
        return self._parse_list(data, ContactRecord, "contact message")

    async def update_contact_message(self, message_id: str, status: str) -> ContactRecord:
        self._require_token()
        data = unwrap(
            await self._request(
                "PATCH",
                f"/contact/{message_id}",
                "Failed to update message",
                json={"status": status},
            )
        )
        if isinstance(data, dict) and isinstance(data.get("contact"), dict):
            data = data["contact"]
        return parse_model(ContactRecord, data, f"/contact/{message_id}")

    async def delete_contact_message(self, message_id: str) -> None:
        self._require_token()
        await self._request("DELETE", f"/contact/{message_id}", "Failed to delete message")

    # Helper methods for parsing responses

    def _user_payload(self, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            return data["user"]
        return data

    def _parse_auth_result(self, data: Any, source: str) -> AuthResult:
        if not isinstance(data, dict):
            return AuthResult()
        if "user" not in data and isinstance(data.get("data"), dict):
            data = {**data, "user": data["data"].get("user")}
        return parse_model(AuthResult, data, source)

    def _parse_list(self, items: Any, model: Any, label: str) -> list[Any]:
        if not isinstance(items, list):
            logger.warning(f"Expected a list of {label}s, got {type(items).__name__}")
            return []
        parsed = []
        for item in items:
            try:
                parsed.append(model.model_validate(item))
            except ValueError as e:
                logger.warning(f"Failed to parse {label}: {e}")
                continue
        return parsed

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
