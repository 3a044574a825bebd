"""Back-office operations restricted to admin accounts."""

import logging

from .api import StorefrontAPI
from .auth import AuthManager
from .errors import AuthenticationError, PermissionDeniedError
from .models import (
    ContactRecord,
    Order,
    OrderUpdate,
    Product,
    ProductInput,
    User,
    UserUpdate,
)

logger = logging.getLogger(__name__)


class AdminConsole:
    """Catalog, customer, order and inbox management for admins.

    Every call checks the signed-in user's role before any request is sent;
    the backend enforces the same rule, this only spares the round trip.
    """

    def __init__(self, api: StorefrontAPI, auth_manager: AuthManager) -> None:
        self.api = api
        self.auth = auth_manager

    def _require_admin(self, action: str) -> None:
        if not self.auth.is_authenticated():
            raise AuthenticationError()
        if not self.auth.is_admin:
            logger.warning(f"Refused '{action}': signed-in user is not an admin")
            raise PermissionDeniedError()
        logger.info(f"Admin: {action}")

    # Products

    async def create_product(self, product: ProductInput) -> Product:
        self._require_admin("create product")
        return await self.api.create_product(product)

    async def update_product(self, product_id: str, product: ProductInput) -> Product:
        self._require_admin(f"update product {product_id}")
        return await self.api.update_product(product_id, product)

    async def delete_product(self, product_id: str) -> None:
        self._require_admin(f"delete product {product_id}")
        await self.api.delete_product(product_id)

    # Customers

    async def list_users(self) -> list[User]:
        self._require_admin("list users")
        return await self.api.list_users()

    async def get_user(self, user_id: str) -> User:
        self._require_admin(f"get user {user_id}")
        return await self.api.get_user(user_id)

    async def update_user(self, user_id: str, update: UserUpdate) -> User:
        self._require_admin(f"update user {user_id}")
        return await self.api.update_user(user_id, update)

    async def delete_user(self, user_id: str) -> None:
        self._require_admin(f"delete user {user_id}")
        await self.api.delete_user(user_id)

    # Orders

    async def update_order(self, order_id: str, update: OrderUpdate) -> Order:
        self._require_admin(f"update order {order_id}")
        return await self.api.update_order(order_id, update)

    async def delete_order(self, order_id: str) -> None:
        self._require_admin(f"delete order {order_id}")
        await self.api.delete_order(order_id)

    # Contact inbox

    async def list_messages(self) -> list[ContactRecord]:
        self._require_admin("list contact messages")
        return await self.api.list_contact_messages()

    async def update_message(self, message_id: str, status: str) -> ContactRecord:
        self._require_admin(f"update contact message {message_id}")
        return await self.api.update_contact_message(message_id, status)

    async def delete_message(self, message_id: str) -> None:
        self._require_admin(f"delete contact message {message_id}")
        await self.api.delete_contact_message(message_id)
