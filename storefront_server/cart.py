"""Client-side shopping cart with persisted, auto-expiring storage."""

import logging
import time
from decimal import Decimal
from typing import Any, Optional, Union

from .config import CART_STORAGE_KEY, CART_TTL_SECONDS
from .events import SessionSignal
from .models import CartLineItem, CartState
from .money import sum_prices
from .storage import Clock, KeyValueStorage

logger = logging.getLogger(__name__)


def calculate_total(items: list[CartLineItem]) -> Decimal:
    """Sum of unit prices over the cart entries.

    Quantity is not factored in; the persisted total has always been the
    plain sum of the listed prices, while line totals (see
    :attr:`CartLineItem.line_total`) are what the cart page shows per row.
    """
    return sum_prices(item.price for item in items)


class CartStore:
    """Authoritative client-side cart.

    State is hydrated from storage at construction and written back
    synchronously on every mutation, stamped with the write time. Persisted
    carts older than :data:`CART_TTL_SECONDS` are discarded on load.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Clock = time.time,
        ttl: float = CART_TTL_SECONDS,
        storage_key: str = CART_STORAGE_KEY,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.ttl = ttl
        self.storage_key = storage_key
        self.cart_items: list[CartLineItem] = []
        self.total_amount = Decimal("0")
        self._hydrate()

    def _hydrate(self) -> None:
        """Load the persisted cart, dropping it when expired or unreadable."""
        data = self.storage.get(self.storage_key)
        if not data:
            return

        try:
            timestamp_ms = float(data["timestamp"])
            raw_items = data.get("cartItems") or []
            items = [CartLineItem.model_validate(item) for item in raw_items]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable persisted cart: {e}")
            self.storage.remove(self.storage_key)
            return

        age = self.clock() - timestamp_ms / 1000
        if age > self.ttl:
            logger.info(f"Persisted cart expired ({age:.0f}s old), starting empty")
            self.storage.remove(self.storage_key)
            return

        self.cart_items = items
        self.total_amount = calculate_total(items)
        logger.info(f"Loaded cart with {len(items)} item(s)")

    def _commit(self, items: list[CartLineItem]) -> None:
        """Persist ``items`` and make them the current cart.

        The payload is serialized and written before any in-memory state
        changes, so a failed write leaves the cart as it was.
        """
        payload = {
            "cartItems": [item.model_dump() for item in items],
            "timestamp": int(self.clock() * 1000),
        }
        self.storage.set(self.storage_key, payload)
        self.cart_items = items
        self.total_amount = calculate_total(items)

    def add_to_cart(self, item: Union[CartLineItem, dict[str, Any]]) -> CartLineItem:
        """Append an entry to the cart.

        Entries are not merged by id: adding the same product twice yields
        two entries.

        Raises:
            PriceFormatError: If the item's price cannot be parsed
        """
        if not isinstance(item, CartLineItem):
            item = CartLineItem.from_dict(item)
        else:
            item = item.model_copy()
        self._commit(self.cart_items + [item])
        logger.info(f"Added product {item.id} (qty: {item.quantity}) to cart")
        return item

    def remove_from_cart(self, item_id: str) -> int:
        """Remove every entry with this id; returns how many were removed."""
        remaining = [item for item in self.cart_items if item.id != item_id]
        removed = len(self.cart_items) - len(remaining)
        self._commit(remaining)
        logger.info(f"Removed {removed} entr{'y' if removed == 1 else 'ies'} for product {item_id}")
        return removed

    def update_quantity(self, item_id: str, quantity: int) -> Optional[CartLineItem]:
        """Set the quantity on the first entry with this id.

        The store does not validate the quantity; callers refuse values
        below 1.
        """
        items = list(self.cart_items)
        index = next((i for i, item in enumerate(items) if item.id == item_id), None)
        updated = None
        if index is not None:
            updated = items[index].model_copy(update={"quantity": quantity})
            items[index] = updated
        else:
            logger.warning(f"Product {item_id} not in cart")
        self._commit(items)
        return updated

    def clear_cart(self) -> None:
        """Empty the cart and delete the persisted entry."""
        self.cart_items = []
        self.total_amount = Decimal("0")
        self.storage.remove(self.storage_key)
        logger.info("Cart cleared")

    def bind_session(self, signal: SessionSignal) -> None:
        """Clear the cart whenever the session ends."""
        signal.subscribe(self._on_session_ended)

    def _on_session_ended(self, reason: str) -> None:
        self.clear_cart()

    @property
    def item_count(self) -> int:
        return len(self.cart_items)

    @property
    def is_empty(self) -> bool:
        return not self.cart_items

    def snapshot(self) -> CartState:
        return CartState(
            cart_items=[item.model_copy() for item in self.cart_items],
            total_amount=self.total_amount,
        )
