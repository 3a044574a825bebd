"""Error taxonomy for storefront operations."""

from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for every error a storefront operation can raise."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Input rejected locally, before any network call."""

    kind = "validation"


class EmptyCartError(ValidationError):
    """Checkout attempted with no items in the cart."""

    def __init__(self, message: str = "Your cart is empty") -> None:
        super().__init__(message)


class PriceFormatError(ValidationError):
    """A price string could not be parsed into an amount."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid price: {value!r}")
        self.value = value


class TransportError(StorefrontError):
    """Network failure or non-2xx response from the backend."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiError(TransportError):
    """The backend answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int, body: Any = None) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in (401, 403)


class ContractError(StorefrontError):
    """The backend answered 2xx but the payload is not what was promised."""

    kind = "contract"


class MalformedResponseError(ContractError):
    """A successful response is missing a required field."""

    def __init__(self, field: str, payload: Any = None, reason: str = "missing") -> None:
        super().__init__(f"Malformed response: {reason} '{field}'")
        self.field = field
        self.payload = payload


class AuthenticationError(StorefrontError):
    """The operation needs a session token and none is available."""

    kind = "authentication"

    def __init__(self, message: str = "Authentication token is missing.") -> None:
        super().__init__(message)


class PermissionDeniedError(StorefrontError):
    """The signed-in user lacks the role the operation needs."""

    kind = "permission"

    def __init__(self, message: str = "Admin access required.") -> None:
        super().__init__(message)
