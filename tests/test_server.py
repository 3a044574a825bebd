import pytest

from conftest import PAYMENT_PREFIX, login_reply, vase
from storefront_server import server
from storefront_server.models import CartState

PRODUCT = {"_id": "p9", "name": "Linen Throw", "price": "$40.00"}


@pytest.fixture()
def tools(storefront, monkeypatch):
    monkeypatch.setattr(server, "storefront", storefront, raising=False)
    return storefront


async def call(name, arguments=None) -> str:
    result = await server.call_tool(name, arguments or {})
    return result[0].text


def test_format_empty_cart() -> None:
    assert server.format_cart(CartState()) == "Your cart is empty"


async def test_list_tools_names() -> None:
    names = {tool.name for tool in await server.list_tools()}

    assert {
        "storefront_login",
        "storefront_add_to_cart",
        "storefront_update_quantity",
        "storefront_checkout",
        "storefront_verify_payment",
    } <= names


async def test_add_to_cart_and_show(tools, backend) -> None:
    backend.route("GET", "/products/p9", json_body={"data": {"product": PRODUCT}})

    text = await call("storefront_add_to_cart", {"product_id": "p9", "quantity": 2})

    assert "Added Linen Throw (quantity: 2)" in text
    assert "Cart total: $40.00" in text
    cart_text = await call("storefront_get_cart")
    assert "$40.00 x 2 = $80.00" in cart_text
    assert "Total: $40.00" in cart_text


async def test_quantity_below_one_is_refused(tools) -> None:
    tools.cart.add_to_cart(vase())

    text = await call("storefront_update_quantity", {"product_id": "p1", "quantity": 0})

    assert text == "Error: Quantity must be at least 1"
    assert tools.cart.cart_items[0].quantity == 1


async def test_add_to_cart_refuses_zero_quantity(tools, backend) -> None:
    text = await call("storefront_add_to_cart", {"product_id": "p9", "quantity": 0})

    assert text == "Error: Quantity must be at least 1"
    assert backend.requests == []


async def test_missing_product_reports_backend_message(tools, backend) -> None:
    backend.route("GET", "/products/nope", 404, {"message": "No product found with that ID"})

    text = await call("storefront_add_to_cart", {"product_id": "nope"})

    assert text == "Error: No product found with that ID"
    assert tools.cart.is_empty


async def test_checkout_needs_credentials(tools, backend) -> None:
    tools.cart.add_to_cart(vase())

    text = await call("storefront_checkout")

    assert text.startswith("Error: Not authenticated")
    assert backend.requests == []


async def test_login_then_checkout(tools, backend, redirects) -> None:
    backend.route("POST", "/login", json_body=login_reply())
    backend.route("GET", "/users/me", json_body={"data": login_reply()["user"]})
    backend.route("POST", "/orders/checkout-session", json_body={"url": "https://pay.test/s/1"})

    login_text = await call(
        "storefront_login", {"email": "ada@example.com", "password": "secret123"}
    )
    tools.cart.add_to_cart(vase())
    text = await call("storefront_checkout")

    assert login_text == "✅ Successfully signed in as ada@example.com"
    assert "https://pay.test/s/1" in text
    assert redirects == ["https://pay.test/s/1"]


async def test_logout_tool_clears_cart(tools, backend) -> None:
    backend.route("POST", "/login", json_body=login_reply())
    backend.route("GET", "/users/me", json_body={"data": login_reply()["user"]})
    await call("storefront_login", {"email": "ada@example.com", "password": "secret123"})
    tools.cart.add_to_cart(vase())

    await call("storefront_logout")

    assert tools.cart.is_empty
    assert not tools.auth.is_authenticated()


async def test_login_without_any_credentials(tools) -> None:
    text = await call("storefront_login")

    assert text.startswith("Error: No credentials provided")


async def test_unknown_tool(tools) -> None:
    assert await call("storefront_nope") == "Unknown tool: storefront_nope"


async def test_wishlist_add_refreshes_cached_list(tools, backend) -> None:
    backend.route("POST", "/login", json_body=login_reply())
    backend.route("GET", "/users/me", json_body={"data": login_reply()["user"]})
    backend.route("GET", "/users/me/wishlist", json_body={"data": []})
    backend.route("POST", "/users/me/wishlist", json_body={"status": "success"})
    await call("storefront_login", {"email": "ada@example.com", "password": "secret123"})

    assert await call("storefront_wishlist") == "Your wishlist is empty"

    backend.route(
        "GET",
        "/users/me/wishlist",
        json_body={"data": [{"_id": "w1", "product": {"_id": "p9", "name": "Linen Throw"}}]},
    )
    added = await call("storefront_wishlist_add", {"product_id": "p9"})
    listing = await call("storefront_wishlist")

    assert added == "✅ Added product p9 to wishlist"
    assert "p9 Linen Throw" in listing
    assert tools.wishlist.contains("p9")
    assert backend.body(backend.calls("POST", "/users/me/wishlist")[0]) == {"productId": "p9"}


async def signed_in_as(backend, role: str = "user") -> None:
    backend.route("POST", "/login", json_body=login_reply(role=role))
    backend.route("GET", "/users/me", json_body={"data": login_reply(role=role)["user"]})
    await call("storefront_login", {"email": "ada@example.com", "password": "secret123"})


async def test_empty_cart_checkout_does_not_sign_in(tools, backend, redirects) -> None:
    tools.settings.email = "ada@example.com"
    tools.settings.password = "secret123"
    backend.route("POST", "/login", json_body=login_reply())

    text = await call("storefront_checkout")

    assert text == "Error: Your cart is empty"
    assert backend.requests == []
    assert redirects == []


async def test_account_tools_are_listed() -> None:
    names = {tool.name for tool in await server.list_tools()}

    assert {
        "storefront_verify_email",
        "storefront_resend_verification",
        "storefront_forgot_password",
        "storefront_reset_password",
        "storefront_update_password",
        "storefront_update_profile",
        "storefront_delete_account",
        "storefront_get_order",
        "storefront_payment_history",
        "storefront_admin_create_product",
        "storefront_admin_list_messages",
    } <= names


async def test_forgot_and_reset_password(tools, backend) -> None:
    backend.route("POST", "/forgotPassword", json_body={"status": "success"})
    backend.route("PATCH", "/resetPassword/rt-1", json_body=login_reply("tok-reset"))

    forgot = await call("storefront_forgot_password", {"email": "ada@example.com"})
    reset = await call(
        "storefront_reset_password",
        {"token": "rt-1", "password": "newpass1", "password_confirm": "newpass1"},
    )

    assert forgot == "✅ Password reset email sent"
    assert reset == "✅ Password reset"
    assert tools.cookies.get("token") == "tok-reset"


async def test_resend_verification_tool(tools, backend) -> None:
    backend.route("POST", "/resendVerify", 404, {"message": "There is no user with that email"})

    text = await call("storefront_resend_verification", {"email": "nobody@example.com"})

    assert text == "❌ There is no user with that email"


async def test_delete_account_needs_confirmation(tools, backend) -> None:
    await signed_in_as(backend)
    backend.requests.clear()

    text = await call("storefront_delete_account")

    assert text == "Error: Set confirm to true to delete the account"
    assert backend.requests == []
    assert tools.auth.is_authenticated()


async def test_payment_history_tool(tools, backend) -> None:
    await signed_in_as(backend)
    backend.route(
        "GET", "/payment/history", json_body={"data": []}, prefix=PAYMENT_PREFIX
    )

    assert await call("storefront_payment_history") == "No payments found"


async def test_get_order_tool(tools, backend) -> None:
    await signed_in_as(backend)
    backend.route(
        "GET",
        "/orders/o1",
        json_body={"data": {"order": {"_id": "o1", "status": "pending", "totalPrice": 40}}},
    )

    text = await call("storefront_get_order", {"order_id": "o1"})

    assert '"_id": "o1"' in text
    assert '"status": "pending"' in text


async def test_admin_tools_refused_for_customers(tools, backend) -> None:
    await signed_in_as(backend, role="user")
    backend.requests.clear()

    text = await call("storefront_admin_delete_product", {"product_id": "p9"})

    assert text == "Error: Admin access required."
    assert backend.requests == []


async def test_admin_manages_catalog_and_users(tools, backend) -> None:
    await signed_in_as(backend, role="admin")
    backend.route("POST", "/products", 201, {"data": {"product": {**PRODUCT, "price": "$30.00"}}})
    backend.route("DELETE", "/products/p9", 204)
    backend.route(
        "GET",
        "/users",
        json_body={"data": {"users": [{"_id": "u2", "name": "Bo", "email": "bo@example.com"}]}},
    )

    created = await call(
        "storefront_admin_create_product",
        {"name": "Linen Throw", "price": "30", "quantity": 4},
    )
    deleted = await call("storefront_admin_delete_product", {"product_id": "p9"})
    users = await call("storefront_admin_list_users")

    assert created == "✅ Created product Linen Throw [p9]"
    assert backend.body(backend.calls("POST", "/products")[0]) == {
        "name": "Linen Throw",
        "price": "$30.00",
        "quantity": 4,
    }
    assert deleted == "✅ Deleted product p9"
    assert users == "Found 1 user(s):\n  - u2: Bo <bo@example.com> (user)"
