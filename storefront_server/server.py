"""MCP Server for the home-decor storefront."""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.types import Resource, TextContent, Tool
from pydantic import AnyUrl

from .config import load_settings
from .errors import EmptyCartError, StorefrontError
from .models import (
    AuthCredentials,
    CartState,
    ContactMessage,
    OperationResult,
    OrderUpdate,
    ProductInput,
    ProfileUpdate,
    ReviewUpdate,
    User,
    UserUpdate,
    WishlistItem,
)
from .money import format_price
from .storefront import Storefront

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

# Initialize server
app = Server("storefront-mcp-server")

# Global state
storefront: Storefront

NOT_AUTHENTICATED = (
    "Error: Not authenticated. Please configure STOREFRONT_EMAIL and STOREFRONT_PASSWORD, "
    "or use storefront_login first."
)


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _result_text(result: OperationResult) -> list[TextContent]:
    if result.success:
        return _text(f"✅ {result.message}")
    return _text(f"❌ {result.message}")


def _wishlist_label(item: WishlistItem) -> str:
    if item.name:
        return item.name
    if isinstance(item.product, dict):
        return str(item.product.get("name", ""))
    return ""


def format_cart(state: CartState) -> str:
    """Render the cart as plain text."""
    if not state.cart_items:
        return "Your cart is empty"

    lines = [f"Shopping Cart ({state.item_count} item(s)):\n"]
    for item in state.cart_items:
        lines.append(
            f"  - {item.name} [{item.id}]: {format_price(item.price)} x {item.quantity}"
            f" = {format_price(item.line_total)}"
        )
    lines.append(f"\nTotal: {format_price(state.total_amount)}")
    return "\n".join(lines)


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("storefront://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents",
        )
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    if str(uri) == "storefront://cart":
        return storefront.cart.snapshot().model_dump_json(indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    no_args = {"type": "object", "properties": {}}
    product_id = {"type": "string", "description": "Product ID"}
    order_id = {"type": "string", "description": "Order ID"}
    user_id = {"type": "string", "description": "User ID"}
    message_id = {"type": "string", "description": "Contact message ID"}
    email_only = {
        "type": "object",
        "properties": {"email": {"type": "string"}},
        "required": ["email"],
    }
    product_fields = {
        "name": {"type": "string"},
        "price": {"type": "string", "description": "Price, e.g. $12.00"},
        "description": {"type": "string"},
        "category": {"type": "string"},
        "quantity": {"type": "integer", "description": "Units in stock"},
    }
    return [
        Tool(
            name="storefront_login",
            description="Sign in. Uses STOREFRONT_EMAIL/STOREFRONT_PASSWORD if not provided.",
            inputSchema={
                "type": "object",
                "properties": {
                    "email": {"type": "string", "description": "Email address"},
                    "password": {"type": "string", "description": "Password"},
                },
            },
        ),
        Tool(
            name="storefront_signup",
            description="Create an account (also signs in)",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                    "password": {"type": "string"},
                    "password_confirm": {"type": "string"},
                },
                "required": ["name", "email", "password", "password_confirm"],
            },
        ),
        Tool(name="storefront_logout", description="Sign out and clear session", inputSchema=no_args),
        Tool(name="storefront_profile", description="Show the signed-in user", inputSchema=no_args),
        Tool(name="storefront_list_products", description="List catalog products", inputSchema=no_args),
        Tool(
            name="storefront_get_product",
            description="Get product details",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_add_to_cart",
            description="Add a product to the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": product_id,
                    "quantity": {"type": "integer", "description": "Quantity (default: 1)", "default": 1},
                },
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_remove_from_cart",
            description="Remove every cart entry of a product",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_update_quantity",
            description="Set the quantity of a cart entry (must be at least 1)",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id, "quantity": {"type": "integer"}},
                "required": ["product_id", "quantity"],
            },
        ),
        Tool(name="storefront_get_cart", description="Get current cart contents", inputSchema=no_args),
        Tool(name="storefront_clear_cart", description="Empty the cart", inputSchema=no_args),
        Tool(
            name="storefront_checkout",
            description="Create a payment checkout session for the cart and return its URL",
            inputSchema=no_args,
        ),
        Tool(
            name="storefront_verify_payment",
            description="Check the status of a checkout session; clears the cart once paid",
            inputSchema={
                "type": "object",
                "properties": {"session_id": {"type": "string"}},
                "required": ["session_id"],
            },
        ),
        Tool(name="storefront_wishlist", description="Show the wishlist", inputSchema=no_args),
        Tool(
            name="storefront_wishlist_add",
            description="Add a product to the wishlist",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_wishlist_remove",
            description="Remove a product from the wishlist",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_reviews",
            description="List reviews of a product",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_add_review",
            description="Review a product",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": product_id,
                    "rating": {"type": "number", "minimum": 1, "maximum": 5},
                    "review": {"type": "string"},
                },
                "required": ["product_id", "rating", "review"],
            },
        ),
        Tool(name="storefront_orders", description="List orders", inputSchema=no_args),
        Tool(
            name="storefront_contact",
            description="Send a message through the contact form",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                    "subject": {"type": "string"},
                    "message": {"type": "string"},
                },
                "required": ["name", "email", "message"],
            },
        ),
        Tool(
            name="storefront_verify_email",
            description="Confirm an email address with the token from the verification email",
            inputSchema={
                "type": "object",
                "properties": {"token": {"type": "string"}},
                "required": ["token"],
            },
        ),
        Tool(
            name="storefront_resend_verification",
            description="Send the verification email again",
            inputSchema=email_only,
        ),
        Tool(
            name="storefront_forgot_password",
            description="Send a password reset email",
            inputSchema=email_only,
        ),
        Tool(
            name="storefront_reset_password",
            description="Set a new password with the token from the reset email (also signs in)",
            inputSchema={
                "type": "object",
                "properties": {
                    "token": {"type": "string"},
                    "password": {"type": "string"},
                    "password_confirm": {"type": "string"},
                },
                "required": ["token", "password", "password_confirm"],
            },
        ),
        Tool(
            name="storefront_update_password",
            description="Change the signed-in user's password",
            inputSchema={
                "type": "object",
                "properties": {
                    "current_password": {"type": "string"},
                    "password": {"type": "string"},
                    "password_confirm": {"type": "string"},
                },
                "required": ["current_password", "password", "password_confirm"],
            },
        ),
        Tool(
            name="storefront_update_profile",
            description="Change the signed-in user's name or email",
            inputSchema={
                "type": "object",
                "properties": {"name": {"type": "string"}, "email": {"type": "string"}},
            },
        ),
        Tool(
            name="storefront_delete_account",
            description="Permanently delete the signed-in account",
            inputSchema={
                "type": "object",
                "properties": {"confirm": {"type": "boolean", "description": "Must be true"}},
                "required": ["confirm"],
            },
        ),
        Tool(
            name="storefront_get_order",
            description="Get details of one order",
            inputSchema={
                "type": "object",
                "properties": {"order_id": order_id},
                "required": ["order_id"],
            },
        ),
        Tool(name="storefront_payment_history", description="List past payments", inputSchema=no_args),
        Tool(
            name="storefront_update_review",
            description="Edit one of your reviews",
            inputSchema={
                "type": "object",
                "properties": {
                    "review_id": {"type": "string"},
                    "rating": {"type": "number", "minimum": 1, "maximum": 5},
                    "review": {"type": "string"},
                },
                "required": ["review_id"],
            },
        ),
        Tool(
            name="storefront_delete_review",
            description="Delete one of your reviews",
            inputSchema={
                "type": "object",
                "properties": {"review_id": {"type": "string"}},
                "required": ["review_id"],
            },
        ),
        # Admin back office
        Tool(
            name="storefront_admin_create_product",
            description="[admin] Add a product to the catalog",
            inputSchema={
                "type": "object",
                "properties": product_fields,
                "required": ["name", "price"],
            },
        ),
        Tool(
            name="storefront_admin_update_product",
            description="[admin] Edit a catalog product",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id, **product_fields},
                "required": ["product_id"],
            },
        ),
        Tool(
            name="storefront_admin_delete_product",
            description="[admin] Remove a product from the catalog",
            inputSchema={
                "type": "object",
                "properties": {"product_id": product_id},
                "required": ["product_id"],
            },
        ),
        Tool(name="storefront_admin_list_users", description="[admin] List customers", inputSchema=no_args),
        Tool(
            name="storefront_admin_get_user",
            description="[admin] Show one customer",
            inputSchema={"type": "object", "properties": {"user_id": user_id}, "required": ["user_id"]},
        ),
        Tool(
            name="storefront_admin_update_user",
            description="[admin] Edit a customer's name, email or role",
            inputSchema={
                "type": "object",
                "properties": {
                    "user_id": user_id,
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                    "role": {"type": "string", "enum": ["user", "admin"]},
                },
                "required": ["user_id"],
            },
        ),
        Tool(
            name="storefront_admin_delete_user",
            description="[admin] Delete a customer account",
            inputSchema={"type": "object", "properties": {"user_id": user_id}, "required": ["user_id"]},
        ),
        Tool(
            name="storefront_admin_update_order",
            description="[admin] Change an order's status or delivery flag",
            inputSchema={
                "type": "object",
                "properties": {
                    "order_id": order_id,
                    "order_status": {"type": "string"},
                    "is_delivered": {"type": "boolean"},
                },
                "required": ["order_id"],
            },
        ),
        Tool(
            name="storefront_admin_delete_order",
            description="[admin] Delete an order",
            inputSchema={"type": "object", "properties": {"order_id": order_id}, "required": ["order_id"]},
        ),
        Tool(
            name="storefront_admin_list_messages",
            description="[admin] List contact-form messages",
            inputSchema=no_args,
        ),
        Tool(
            name="storefront_admin_update_message",
            description="[admin] Set the status of a contact-form message",
            inputSchema={
                "type": "object",
                "properties": {"message_id": message_id, "status": {"type": "string"}},
                "required": ["message_id", "status"],
            },
        ),
        Tool(
            name="storefront_admin_delete_message",
            description="[admin] Delete a contact-form message",
            inputSchema={
                "type": "object",
                "properties": {"message_id": message_id},
                "required": ["message_id"],
            },
        ),
    ]


async def _login(arguments: dict[str, Any]) -> list[TextContent]:
    email = arguments.get("email")
    password = arguments.get("password")

    # Use provided credentials or fall back to environment
    configured = storefront.settings.credentials
    if not email or not password:
        if configured is None:
            return _text(
                "Error: No credentials provided and STOREFRONT_EMAIL/STOREFRONT_PASSWORD not configured."
            )
        email = email or configured.email
        password = password or configured.password

    result = await storefront.auth.sign_in(AuthCredentials(email=email, password=password))
    if result.success:
        await storefront.current_user.get(force=True)
        return _text(f"✅ Successfully signed in as {email}")
    return _result_text(result)


async def _add_to_cart(product_id: str, quantity: int) -> list[TextContent]:
    if quantity < 1:
        return _text("Error: Quantity must be at least 1")
    product = await storefront.api.get_product(product_id)
    item = storefront.cart.add_to_cart(product.to_line_item(quantity))
    return _text(
        f"✅ Added {item.name} (quantity: {item.quantity}) to cart\n"
        f"Cart total: {format_price(storefront.cart.total_amount)}"
    )


def _user_line(user: User) -> str:
    return f"  - {user.id}: {user.name or '-'} <{user.email or '-'}> ({user.role})"


def _product_input(arguments: dict[str, Any]) -> ProductInput:
    return ProductInput(
        name=arguments.get("name"),
        price=arguments.get("price"),
        description=arguments.get("description"),
        category=arguments.get("category"),
        stock=arguments.get("quantity"),
    )


async def _admin_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Back-office tools; the console refuses non-admin sessions."""
    admin = storefront.admin

    if name == "storefront_admin_create_product":
        product = await admin.create_product(_product_input(arguments))
        return _text(f"✅ Created product {product.name} [{product.id}]")

    elif name == "storefront_admin_update_product":
        product = await admin.update_product(arguments["product_id"], _product_input(arguments))
        return _text(f"✅ Updated product {product.name} [{product.id}]")

    elif name == "storefront_admin_delete_product":
        await admin.delete_product(arguments["product_id"])
        return _text(f"✅ Deleted product {arguments['product_id']}")

    elif name == "storefront_admin_list_users":
        users = await admin.list_users()
        if not users:
            return _text("No users found")
        return _text("\n".join([f"Found {len(users)} user(s):"] + [_user_line(u) for u in users]))

    elif name == "storefront_admin_get_user":
        user = await admin.get_user(arguments["user_id"])
        return _text(user.model_dump_json(indent=2, by_alias=True, exclude_none=True))

    elif name == "storefront_admin_update_user":
        update = UserUpdate(
            name=arguments.get("name"), email=arguments.get("email"), role=arguments.get("role")
        )
        user = await admin.update_user(arguments["user_id"], update)
        return _text(f"✅ Updated user\n{_user_line(user)}")

    elif name == "storefront_admin_delete_user":
        await admin.delete_user(arguments["user_id"])
        return _text(f"✅ Deleted user {arguments['user_id']}")

    elif name == "storefront_admin_update_order":
        update = OrderUpdate(
            order_status=arguments.get("order_status"), is_delivered=arguments.get("is_delivered")
        )
        order = await admin.update_order(arguments["order_id"], update)
        return _text(f"✅ Updated order {order.id}")

    elif name == "storefront_admin_delete_order":
        await admin.delete_order(arguments["order_id"])
        return _text(f"✅ Deleted order {arguments['order_id']}")

    elif name == "storefront_admin_list_messages":
        messages = await admin.list_messages()
        if not messages:
            return _text("No messages")
        lines = [f"{len(messages)} message(s):"]
        for m in messages:
            sender = f"{m.name or '-'} <{m.email or '-'}>"
            lines.append(f"  - {m.id} [{m.status or 'new'}] {sender}: {m.subject or m.message or ''}")
        return _text("\n".join(lines))

    elif name == "storefront_admin_update_message":
        message = await admin.update_message(arguments["message_id"], arguments["status"])
        return _text(f"✅ Message {message.id} marked {message.status or arguments['status']}")

    elif name == "storefront_admin_delete_message":
        await admin.delete_message(arguments["message_id"])
        return _text(f"✅ Deleted message {arguments['message_id']}")

    return _text(f"Unknown tool: {name}")


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "storefront_login":
            return await _login(arguments)

        elif name == "storefront_signup":
            result = await storefront.auth.sign_up(
                {
                    "name": arguments["name"],
                    "email": arguments["email"],
                    "password": arguments["password"],
                    "passwordConfirm": arguments["password_confirm"],
                }
            )
            return _result_text(result)

        elif name == "storefront_logout":
            storefront.auth.logout()
            return _text("✅ Successfully logged out")

        elif name == "storefront_profile":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            user = await storefront.current_user.get()
            if user is None:
                return _text("Session expired. Please sign in again.")
            role = "admin" if user.is_admin else "customer"
            return _text(f"Signed in as {user.name or user.email} ({user.email}), role: {role}")

        elif name == "storefront_list_products":
            products = await storefront.api.list_products()
            if not products:
                return _text("No products found")
            lines = [f"Found {len(products)} product(s):\n"]
            for i, product in enumerate(products, 1):
                lines.append(f"\n{i}. {product.name}")
                lines.append(f"   ID: {product.id}")
                lines.append(f"   Price: {format_price(product.price)}")
                if product.category:
                    lines.append(f"   Category: {product.category}")
            return _text("\n".join(lines))

        elif name == "storefront_get_product":
            product = await storefront.api.get_product(arguments["product_id"])
            return _text(product.model_dump_json(indent=2, exclude_none=True))

        elif name == "storefront_add_to_cart":
            return await _add_to_cart(arguments["product_id"], int(arguments.get("quantity", 1)))

        elif name == "storefront_remove_from_cart":
            removed = storefront.cart.remove_from_cart(arguments["product_id"])
            if removed:
                return _text(f"✅ Removed product {arguments['product_id']} from cart")
            return _text(f"❌ Product {arguments['product_id']} is not in the cart")

        elif name == "storefront_update_quantity":
            quantity = int(arguments["quantity"])
            if quantity < 1:
                return _text("Error: Quantity must be at least 1")
            item = storefront.cart.update_quantity(arguments["product_id"], quantity)
            if item is None:
                return _text(f"❌ Product {arguments['product_id']} is not in the cart")
            return _text(f"✅ Quantity of {item.name} set to {quantity}")

        elif name == "storefront_get_cart":
            return _text(format_cart(storefront.cart.snapshot()))

        elif name == "storefront_clear_cart":
            storefront.cart.clear_cart()
            return _text("✅ Cart cleared")

        elif name == "storefront_checkout":
            if storefront.cart.is_empty:
                raise EmptyCartError()
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            result = await storefront.checkout.checkout()
            if result.success:
                return _text(f"✅ Checkout session created. Complete payment at:\n{result.data['url']}")
            return _result_text(result)

        elif name == "storefront_verify_payment":
            result = await storefront.checkout.verify_payment(arguments["session_id"])
            return _result_text(result)

        elif name == "storefront_wishlist":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            items = await storefront.wishlist.get() or []
            if not items:
                return _text("Your wishlist is empty")
            lines = [f"Wishlist ({len(items)} item(s)):"]
            for item in items:
                lines.append(f"  - {item.product_id} {_wishlist_label(item)}".rstrip())
            return _text("\n".join(lines))

        elif name in ("storefront_wishlist_add", "storefront_wishlist_remove"):
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            product_id = arguments["product_id"]
            if name == "storefront_wishlist_add":
                await storefront.api.add_to_wishlist(product_id)
                message = f"✅ Added product {product_id} to wishlist"
            else:
                await storefront.api.remove_from_wishlist(product_id)
                message = f"✅ Removed product {product_id} from wishlist"
            storefront.wishlist.invalidate()
            return _text(message)

        elif name == "storefront_reviews":
            reviews = await storefront.api.list_reviews(arguments["product_id"])
            if not reviews:
                return _text("No reviews yet")
            lines = [f"{len(reviews)} review(s):"]
            for review in reviews:
                lines.append(f"  - {review.rating:g}/5: {review.review}")
            return _text("\n".join(lines))

        elif name == "storefront_add_review":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            await storefront.api.create_review(
                arguments["product_id"], float(arguments["rating"]), arguments["review"]
            )
            return _text("✅ Review submitted")

        elif name == "storefront_orders":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            orders = await storefront.api.list_orders()
            if not orders:
                return _text("No orders found")
            result_lines = [f"Found {len(orders)} order(s):"]
            for order in orders:
                total = format_price(order.total_price) if order.total_price is not None else "-"
                result_lines.append(f"  - {order.id}: {order.status}, total {total}")
            return _text("\n".join(result_lines))

        elif name == "storefront_contact":
            message = ContactMessage(
                name=arguments["name"],
                email=arguments["email"],
                subject=arguments.get("subject"),
                message=arguments["message"],
            )
            await storefront.api.send_contact_message(message)
            return _text("✅ Message sent")

        elif name == "storefront_verify_email":
            return _result_text(await storefront.auth.verify_email(arguments["token"]))

        elif name == "storefront_resend_verification":
            return _result_text(await storefront.auth.resend_verification(arguments["email"]))

        elif name == "storefront_forgot_password":
            return _result_text(await storefront.auth.forgot_password(arguments["email"]))

        elif name == "storefront_reset_password":
            result = await storefront.auth.reset_password(
                arguments["token"], arguments["password"], arguments["password_confirm"]
            )
            return _result_text(result)

        elif name == "storefront_update_password":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            result = await storefront.auth.update_password(
                arguments["current_password"], arguments["password"], arguments["password_confirm"]
            )
            return _result_text(result)

        elif name == "storefront_update_profile":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            update = ProfileUpdate(name=arguments.get("name"), email=arguments.get("email"))
            result = await storefront.auth.update_me(update)
            if result.success:
                storefront.current_user.invalidate()
            return _result_text(result)

        elif name == "storefront_delete_account":
            if arguments.get("confirm") is not True:
                return _text("Error: Set confirm to true to delete the account")
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            return _result_text(await storefront.auth.delete_me())

        elif name == "storefront_get_order":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            order = await storefront.api.get_order(arguments["order_id"])
            return _text(order.model_dump_json(indent=2, by_alias=True, exclude_none=True))

        elif name == "storefront_payment_history":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            result = await storefront.checkout.payment_history()
            if not result.success:
                return _result_text(result)
            if not result.data:
                return _text("No payments found")
            return _text(json.dumps(result.data, indent=2, default=str))

        elif name == "storefront_update_review":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            update = ReviewUpdate(rating=arguments.get("rating"), review=arguments.get("review"))
            await storefront.api.update_review(arguments["review_id"], update)
            return _text("✅ Review updated")

        elif name == "storefront_delete_review":
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            await storefront.api.delete_review(arguments["review_id"])
            return _text("✅ Review deleted")

        elif name.startswith("storefront_admin_"):
            if not await storefront.ensure_authenticated():
                return _text(NOT_AUTHENTICATED)
            return await _admin_tool(name, arguments)

        else:
            return _text(f"Unknown tool: {name}")

    except StorefrontError as e:
        logger.error(f"Tool {name} failed ({e.kind}): {e.message}")
        return _text(f"Error: {e.message}")
    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return _text(f"Error: {str(e)}")


async def main() -> None:
    """Main entry point."""
    global storefront

    settings = load_settings()
    storefront = Storefront(settings)

    if settings.credentials:
        logger.info(f"Credentials loaded from environment for: {settings.email}")
    else:
        logger.warning("No credentials found in environment variables (STOREFRONT_EMAIL, STOREFRONT_PASSWORD)")
        logger.warning("You can sign in via the storefront_login tool")

    await storefront.startup()
    logger.info(f"Starting Storefront MCP Server against {settings.api_url}...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await storefront.aclose()


if __name__ == "__main__":
    asyncio.run(main())
