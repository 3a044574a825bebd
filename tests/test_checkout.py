import httpx
import pytest

from conftest import PAYMENT_PREFIX, FakeBackend, login_reply, vase
from storefront_server.checkout import build_checkout_products
from storefront_server.errors import ContractError
from storefront_server.models import AuthCredentials, CartLineItem

PAY_URL = "https://checkout.payments.test/c/pay/cs_test_1"


async def signed_in(storefront, backend: FakeBackend) -> None:
    backend.route("POST", "/login", json_body=login_reply())
    await storefront.auth.sign_in(AuthCredentials(email="ada@example.com", password="secret123"))


def test_checkout_products_carry_numeric_prices() -> None:
    items = [CartLineItem(id="p1", name="Vase", price="$10.00", quantity=2)]

    products = build_checkout_products(items)

    assert products[0].model_dump() == {
        "id": "p1",
        "name": "Vase",
        "price": 10.0,
        "quantity": 2,
        "image": None,
    }


async def test_empty_cart_fails_without_request(storefront, backend, redirects) -> None:
    result = await storefront.checkout.checkout()

    assert not result.success
    assert result.error_kind == "validation"
    assert result.message == "Your cart is empty"
    assert backend.requests == []
    assert redirects == []


async def test_checkout_redirects_and_keeps_cart(storefront, backend, redirects) -> None:
    await signed_in(storefront, backend)
    storefront.cart.add_to_cart(vase(price="$10.00", quantity=2))
    backend.route(
        "POST", "/orders/checkout-session", json_body={"url": PAY_URL, "sessionId": "cs_test_1"}
    )

    result = await storefront.checkout.checkout()

    assert result.success
    assert result.data == {"url": PAY_URL}
    assert redirects == [PAY_URL]
    assert storefront.checkout.checkout_url == PAY_URL
    assert storefront.cart.item_count == 1

    request = backend.calls("POST", "/orders/checkout-session")[0]
    assert request.headers["Authorization"] == "Bearer tok-123"
    assert backend.body(request) == {
        "products": [
            {"id": "p1", "name": "Vase", "price": 10.0, "quantity": 2, "image": None}
        ]
    }


async def test_response_without_url_is_contract_error(storefront, backend, redirects) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route("POST", "/orders/checkout-session", json_body={"sessionId": "cs_test_1"})

    result = await storefront.checkout.checkout()

    assert not result.success
    assert result.error_kind == "contract"
    assert result.message == "Malformed response: missing 'url'"
    assert redirects == []
    assert storefront.checkout.checkout_url is None
    assert storefront.cart.item_count == 1


async def test_backend_error_message_is_reported(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route("POST", "/orders/checkout-session", 500, {"message": "Stripe unavailable"})

    result = await storefront.checkout.checkout()

    assert result.error_kind == "transport"
    assert result.message == "Stripe unavailable"
    assert storefront.checkout.error == "Stripe unavailable"
    assert not storefront.checkout.processing


async def test_backend_error_without_message_uses_fallback(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route("POST", "/orders/checkout-session", 500)

    result = await storefront.checkout.checkout()

    assert result.message == "Checkout session failed"


async def test_network_failure(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route(
        "POST", "/orders/checkout-session", reply=httpx.ReadTimeout("timed out")
    )

    result = await storefront.checkout.checkout()

    assert result.error_kind == "transport"
    assert storefront.cart.item_count == 1


async def test_paid_session_completes_order(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route(
        "GET",
        "/payment/verify-payment",
        json_body={"paymentStatus": "paid", "orderId": 42},
        prefix=PAYMENT_PREFIX,
    )

    result = await storefront.checkout.verify_payment("cs_test_1")

    assert result.success
    assert result.data["orderId"] == "42"
    assert storefront.checkout.payment_status == "paid"
    assert storefront.cart.is_empty
    assert storefront.storage.get("cart") is None
    request = backend.calls("GET", "/payment/verify-payment", prefix=PAYMENT_PREFIX)[0]
    assert request.url.params["session_id"] == "cs_test_1"


async def test_unpaid_session_keeps_cart(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route(
        "GET", "/payment/verify-payment", json_body={"paymentStatus": "unpaid"}, prefix=PAYMENT_PREFIX
    )

    result = await storefront.checkout.verify_payment("cs_test_1")

    assert result.success
    assert storefront.cart.item_count == 1


async def test_complete_order_clears_cart_and_checkout_state(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route("POST", "/orders/checkout-session", json_body={"url": PAY_URL})
    await storefront.checkout.checkout()

    storefront.checkout.complete_order()

    assert storefront.cart.is_empty
    assert storefront.checkout.checkout_url is None


async def test_payment_history(storefront, backend) -> None:
    backend.route(
        "GET", "/payment/history", json_body={"data": [{"amount": 20}]}, prefix=PAYMENT_PREFIX
    )

    result = await storefront.checkout.payment_history()

    assert result.success
    assert result.data == [{"amount": 20}]


async def test_non_string_url_is_contract_error(storefront, backend, redirects) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route("POST", "/orders/checkout-session", json_body={"url": 123})

    result = await storefront.checkout.checkout()

    assert not result.success
    assert result.error_kind == "contract"
    assert result.message == "Malformed response: invalid 'url'"
    assert redirects == []
    assert storefront.cart.item_count == 1


async def test_malformed_payment_status_is_contract_error(storefront, backend) -> None:
    storefront.cart.add_to_cart(vase())
    backend.route(
        "GET",
        "/payment/verify-payment",
        json_body={"paymentStatus": ["paid"]},
        prefix=PAYMENT_PREFIX,
    )

    result = await storefront.checkout.verify_payment("cs_test_1")

    assert not result.success
    assert result.error_kind == "contract"
    assert storefront.cart.item_count == 1


async def test_malformed_order_raises_contract_error(storefront, backend) -> None:
    await signed_in(storefront, backend)
    backend.route("GET", "/orders/o1", json_body={"data": {"order": {"totalPrice": 10}}})

    with pytest.raises(ContractError):
        await storefront.api.get_order("o1")
