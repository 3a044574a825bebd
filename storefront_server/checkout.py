"""Checkout handoff to the payment provider."""

import logging
from typing import Any, Callable, Optional

import pydantic

from .api import StorefrontAPI
from .cart import CartStore
from .errors import EmptyCartError, MalformedResponseError, StorefrontError
from .models import CartLineItem, CheckoutProduct, CheckoutSession, OperationResult

logger = logging.getLogger(__name__)

Redirect = Callable[[str], None]


def build_checkout_products(items: list[CartLineItem]) -> list[CheckoutProduct]:
    """Turn cart entries into the payload shape the checkout endpoint expects.

    Prices go out as numbers, never as display strings.
    """
    return [
        CheckoutProduct(
            id=item.id,
            name=item.name,
            price=float(item.price),
            quantity=item.quantity,
            image=item.image,
        )
        for item in items
    ]


class CheckoutOrchestrator:
    """Creates a checkout session from the cart and hands the browser to the provider.

    Starting a checkout never touches the cart; the cart is cleared only by
    :meth:`complete_order` once the provider reports success.
    """

    def __init__(
        self,
        api: StorefrontAPI,
        cart: CartStore,
        redirect: Optional[Redirect] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            api: Backend API client
            cart: Cart store to read line items from
            redirect: Called with the provider URL to navigate to it
        """
        self.api = api
        self.cart = cart
        self.redirect = redirect
        self.processing = False
        self.checkout_url: Optional[str] = None
        self.error: Optional[str] = None
        self.payment_status: Optional[str] = None
        self.order_details: Optional[dict[str, Any]] = None

    async def create_session(self) -> CheckoutSession:
        """Create a checkout session for the current cart.

        Raises:
            EmptyCartError: If the cart has no items (no request is sent)
            TransportError: If the request fails
            MalformedResponseError: If the response carries no ``url``
        """
        if self.cart.is_empty:
            raise EmptyCartError()

        products = build_checkout_products(self.cart.cart_items)
        logger.info(f"Creating checkout session for {len(products)} product(s)")
        data = await self.api.create_checkout_session(products)

        if not isinstance(data, dict) or not data.get("url"):
            logger.error("Checkout session response has no 'url'")
            logger.debug(f"Checkout session payload: {data!r}")
            raise MalformedResponseError("url", data)
        try:
            return CheckoutSession.model_validate(data)
        except pydantic.ValidationError as e:
            errors = e.errors()
            field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else "url"
            logger.error(f"Checkout session response has a malformed '{field}'")
            logger.debug(f"Checkout session payload: {data!r}")
            raise MalformedResponseError(field, data, reason="invalid") from e

    async def checkout(self) -> OperationResult:
        """Create a session and redirect to it, normalizing every failure."""
        self.error = None
        self.processing = True
        try:
            session = await self.create_session()
        except StorefrontError as e:
            self.error = e.message
            logger.error(f"Checkout failed ({e.kind}): {e.message}")
            return OperationResult(success=False, message=e.message, error_kind=e.kind)
        finally:
            self.processing = False

        self.checkout_url = session.url
        logger.info("✓ Checkout session created, redirecting to payment provider")
        if self.redirect is not None:
            self.redirect(session.url)
        return OperationResult(
            success=True,
            message="Redirecting to payment provider",
            data={"url": session.url},
        )

    def complete_order(self) -> None:
        """The provider reported success: empty the cart and forget the session."""
        self.cart.clear_cart()
        self.reset()

    def reset(self) -> None:
        self.checkout_url = None
        self.error = None
        self.processing = False

    async def verify_payment(self, session_id: str) -> OperationResult:
        """Ask the backend for the outcome of a checkout session."""
        try:
            status = await self.api.verify_payment(session_id)
        except StorefrontError as e:
            logger.error(f"Payment verification failed: {e.message}")
            return OperationResult(success=False, message=e.message, error_kind=e.kind)

        self.payment_status = status.payment_status
        self.order_details = status.model_dump(by_alias=True)
        if status.payment_status == "paid":
            self.complete_order()
        return OperationResult(
            success=True,
            message=f"Payment status: {status.payment_status or 'unknown'}",
            data=self.order_details,
        )

    async def payment_history(self) -> OperationResult:
        try:
            history = await self.api.payment_history()
        except StorefrontError as e:
            return OperationResult(success=False, message=e.message, error_kind=e.kind)
        return OperationResult(success=True, message=f"{len(history)} payment(s)", data=history)
