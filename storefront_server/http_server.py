"""HTTP server exposing the storefront session over REST."""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .admin import AdminConsole
from .config import load_settings
from .errors import (
    AuthenticationError,
    ContractError,
    EmptyCartError,
    PermissionDeniedError,
    StorefrontError,
    TransportError,
    ValidationError,
)
from .models import (
    AuthCredentials,
    CartLineItem,
    ContactMessage,
    OperationResult,
    OrderUpdate,
    ProductInput,
    ProfileUpdate,
    ReviewUpdate,
    UserUpdate,
)
from .storefront import Storefront

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")

ERROR_STATUS = {
    ValidationError.kind: 400,
    AuthenticationError.kind: 401,
    PermissionDeniedError.kind: 403,
    ContractError.kind: 502,
    TransportError.kind: 502,
}


# Request/Response Models
class LoginRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    name: str
    email: str
    password: str
    password_confirm: str


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = 1
    name: Optional[str] = None
    price: Optional[str] = None
    image: Optional[str] = None


class ProductRequest(BaseModel):
    product_id: str


class QuantityRequest(BaseModel):
    product_id: str
    quantity: int


class ReviewRequest(BaseModel):
    rating: float
    review: str


class EmailRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    password: str
    password_confirm: str


class UpdatePasswordRequest(BaseModel):
    current_password: str
    password: str
    password_confirm: str


class MessageStatusRequest(BaseModel):
    status: str


def _storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def _result_response(result: OperationResult) -> JSONResponse:
    status = 200 if result.success else ERROR_STATUS.get(result.error_kind or "", 500)
    return JSONResponse(status_code=status, content=result.model_dump(mode="json"))


async def _require_session(storefront: Storefront) -> None:
    if not await storefront.ensure_authenticated():
        raise HTTPException(status_code=401, detail="Not authenticated")


def create_app(factory: Optional[Callable[[], Storefront]] = None) -> FastAPI:
    """Build the FastAPI app; ``factory`` creates the storefront session on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown."""
        logger.info("Starting Storefront HTTP Server...")
        storefront = factory() if factory else Storefront(load_settings())
        await storefront.startup()
        app.state.storefront = storefront

        yield

        logger.info("Shutting down Storefront HTTP Server...")
        await storefront.aclose()

    app = FastAPI(
        title="Storefront MCP Server",
        description="HTTP API for a home-decor storefront session",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        status = ERROR_STATUS.get(exc.kind, 500)
        if isinstance(exc, TransportError) and exc.status_code:
            status = exc.status_code
        logger.error(f"{request.method} {request.url.path} failed ({exc.kind}): {exc.message}")
        return JSONResponse(status_code=status, content={"detail": exc.message, "error_kind": exc.kind})

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Storefront MCP Server",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "auth": {"login": "POST /auth/login", "signup": "POST /auth/signup", "logout": "POST /auth/logout", "status": "GET /auth/status"},
                "account": {
                    "profile": "GET/PATCH/DELETE /auth/me",
                    "verify": "POST /auth/verify/{token}",
                    "resend": "POST /auth/resend-verification",
                    "forgot": "POST /auth/forgot-password",
                    "reset": "POST /auth/reset-password/{token}",
                    "password": "POST /auth/update-password",
                },
                "products": {"list": "GET /products", "get": "GET /products/{id}", "reviews": "GET /products/{id}/reviews"},
                "cart": {"get": "GET /cart", "add": "POST /cart/add", "remove": "POST /cart/remove", "quantity": "POST /cart/quantity", "clear": "POST /cart/clear"},
                "checkout": {"create": "POST /checkout", "verify": "GET /checkout/verify"},
                "wishlist": {"get": "GET /wishlist", "add": "POST /wishlist/add", "remove": "POST /wishlist/remove"},
                "orders": {"list": "GET /orders", "get": "GET /orders/{id}", "payments": "GET /payment/history"},
                "reviews": {"update": "PATCH /reviews/{id}", "delete": "DELETE /reviews/{id}"},
                "admin": {
                    "products": "POST /admin/products, PATCH/DELETE /admin/products/{id}",
                    "users": "GET /admin/users, GET/PATCH/DELETE /admin/users/{id}",
                    "orders": "PATCH/DELETE /admin/orders/{id}",
                    "messages": "GET /admin/messages, PATCH/DELETE /admin/messages/{id}",
                },
            },
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        storefront = _storefront(request)
        return {"status": "healthy", "authenticated": storefront.auth.is_authenticated()}

    # Authentication endpoints
    @app.post("/auth/login")
    async def login(body: LoginRequest, request: Request):
        storefront = _storefront(request)
        result = await storefront.auth.sign_in(AuthCredentials(email=body.email, password=body.password))
        if result.success:
            await storefront.current_user.get(force=True)
        return _result_response(result)

    @app.post("/auth/signup")
    async def signup(body: SignUpRequest, request: Request):
        result = await _storefront(request).auth.sign_up(
            {
                "name": body.name,
                "email": body.email,
                "password": body.password,
                "passwordConfirm": body.password_confirm,
            }
        )
        return _result_response(result)

    @app.post("/auth/logout")
    async def logout(request: Request):
        _storefront(request).auth.logout()
        return {"success": True, "message": "Successfully logged out"}

    @app.get("/auth/status")
    async def auth_status(request: Request):
        storefront = _storefront(request)
        storefront.auth.check_expiration()
        user = storefront.auth.user
        return {
            "status": storefront.auth.status.value,
            "authenticated": storefront.auth.is_authenticated(),
            "email": user.email if user else None,
            "is_admin": storefront.auth.is_admin,
        }

    @app.post("/auth/verify/{token}")
    async def verify_email(token: str, request: Request):
        return _result_response(await _storefront(request).auth.verify_email(token))

    @app.post("/auth/resend-verification")
    async def resend_verification(body: EmailRequest, request: Request):
        return _result_response(await _storefront(request).auth.resend_verification(body.email))

    @app.post("/auth/forgot-password")
    async def forgot_password(body: EmailRequest, request: Request):
        return _result_response(await _storefront(request).auth.forgot_password(body.email))

    @app.post("/auth/reset-password/{token}")
    async def reset_password(token: str, body: ResetPasswordRequest, request: Request):
        result = await _storefront(request).auth.reset_password(
            token, body.password, body.password_confirm
        )
        return _result_response(result)

    @app.post("/auth/update-password")
    async def update_password(body: UpdatePasswordRequest, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        result = await storefront.auth.update_password(
            body.current_password, body.password, body.password_confirm
        )
        return _result_response(result)

    @app.patch("/auth/me")
    async def update_me(body: ProfileUpdate, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        result = await storefront.auth.update_me(body)
        if result.success:
            storefront.current_user.invalidate()
        return _result_response(result)

    @app.delete("/auth/me")
    async def delete_me(request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        return _result_response(await storefront.auth.delete_me())

    @app.get("/auth/me")
    async def current_user(request: Request):
        storefront = _storefront(request)
        user = await storefront.current_user.get()
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return user.model_dump(mode="json", by_alias=True)

    # Product endpoints
    @app.get("/products")
    async def list_products(request: Request):
        products = await _storefront(request).api.list_products()
        return {"count": len(products), "products": [p.model_dump(mode="json") for p in products]}

    @app.get("/products/{product_id}")
    async def get_product(product_id: str, request: Request):
        product = await _storefront(request).api.get_product(product_id)
        return product.model_dump(mode="json")

    @app.get("/products/{product_id}/reviews")
    async def list_reviews(product_id: str, request: Request):
        reviews = await _storefront(request).api.list_reviews(product_id)
        return {"count": len(reviews), "reviews": [r.model_dump(mode="json") for r in reviews]}

    @app.post("/products/{product_id}/reviews")
    async def create_review(product_id: str, body: ReviewRequest, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        review = await storefront.api.create_review(product_id, body.rating, body.review)
        return review.model_dump(mode="json")

    # Cart endpoints
    @app.get("/cart")
    async def get_cart(request: Request):
        return _storefront(request).cart.snapshot().model_dump(mode="json")

    @app.post("/cart/add")
    async def add_to_cart(body: AddToCartRequest, request: Request):
        if body.quantity < 1:
            raise HTTPException(status_code=400, detail="Quantity must be at least 1")
        storefront = _storefront(request)
        if body.price is not None:
            item = CartLineItem.from_dict(
                {
                    "id": body.product_id,
                    "name": body.name or "",
                    "price": body.price,
                    "image": body.image,
                    "quantity": body.quantity,
                }
            )
        else:
            product = await storefront.api.get_product(body.product_id)
            item = product.to_line_item(body.quantity)
        storefront.cart.add_to_cart(item)
        return storefront.cart.snapshot().model_dump(mode="json")

    @app.post("/cart/remove")
    async def remove_from_cart(body: ProductRequest, request: Request):
        storefront = _storefront(request)
        removed = storefront.cart.remove_from_cart(body.product_id)
        return {"removed": removed, **storefront.cart.snapshot().model_dump(mode="json")}

    @app.post("/cart/quantity")
    async def update_quantity(body: QuantityRequest, request: Request):
        if body.quantity < 1:
            raise HTTPException(status_code=400, detail="Quantity must be at least 1")
        storefront = _storefront(request)
        if storefront.cart.update_quantity(body.product_id, body.quantity) is None:
            raise HTTPException(status_code=404, detail=f"Product {body.product_id} is not in the cart")
        return storefront.cart.snapshot().model_dump(mode="json")

    @app.post("/cart/clear")
    async def clear_cart(request: Request):
        storefront = _storefront(request)
        storefront.cart.clear_cart()
        return storefront.cart.snapshot().model_dump(mode="json")

    # Checkout endpoints
    @app.post("/checkout")
    async def checkout(request: Request):
        storefront = _storefront(request)
        if storefront.cart.is_empty:
            raise EmptyCartError()
        await _require_session(storefront)
        return _result_response(await storefront.checkout.checkout())

    @app.get("/checkout/verify")
    async def verify_payment(session_id: str, request: Request):
        return _result_response(await _storefront(request).checkout.verify_payment(session_id))

    # Wishlist endpoints
    @app.get("/wishlist")
    async def get_wishlist(request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        items = await storefront.wishlist.get() or []
        return {"count": len(items), "items": [i.model_dump(mode="json", by_alias=True) for i in items]}

    @app.post("/wishlist/add")
    async def add_to_wishlist(body: ProductRequest, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        await storefront.api.add_to_wishlist(body.product_id)
        storefront.wishlist.invalidate()
        return {"success": True, "message": f"Added product {body.product_id} to wishlist"}

    @app.post("/wishlist/remove")
    async def remove_from_wishlist(body: ProductRequest, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        await storefront.api.remove_from_wishlist(body.product_id)
        storefront.wishlist.invalidate()
        return {"success": True, "message": f"Removed product {body.product_id} from wishlist"}

    # Order endpoints
    @app.get("/orders")
    async def list_orders(request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        orders = await storefront.api.list_orders()
        return {"count": len(orders), "orders": [o.model_dump(mode="json") for o in orders]}

    @app.get("/orders/{order_id}")
    async def get_order(order_id: str, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        order = await storefront.api.get_order(order_id)
        return order.model_dump(mode="json")

    @app.get("/payment/history")
    async def payment_history(request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        return _result_response(await storefront.checkout.payment_history())

    # Review endpoints
    @app.patch("/reviews/{review_id}")
    async def update_review(review_id: str, body: ReviewUpdate, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        review = await storefront.api.update_review(review_id, body)
        return review.model_dump(mode="json")

    @app.delete("/reviews/{review_id}")
    async def delete_review(review_id: str, request: Request):
        storefront = _storefront(request)
        await _require_session(storefront)
        await storefront.api.delete_review(review_id)
        return {"success": True, "message": f"Deleted review {review_id}"}

    # Admin endpoints
    async def _admin(request: Request) -> AdminConsole:
        storefront = _storefront(request)
        await _require_session(storefront)
        return storefront.admin

    @app.post("/admin/products")
    async def admin_create_product(body: ProductInput, request: Request):
        product = await (await _admin(request)).create_product(body)
        return product.model_dump(mode="json")

    @app.patch("/admin/products/{product_id}")
    async def admin_update_product(product_id: str, body: ProductInput, request: Request):
        product = await (await _admin(request)).update_product(product_id, body)
        return product.model_dump(mode="json")

    @app.delete("/admin/products/{product_id}")
    async def admin_delete_product(product_id: str, request: Request):
        await (await _admin(request)).delete_product(product_id)
        return {"success": True, "message": f"Deleted product {product_id}"}

    @app.get("/admin/users")
    async def admin_list_users(request: Request):
        users = await (await _admin(request)).list_users()
        return {"count": len(users), "users": [u.model_dump(mode="json") for u in users]}

    @app.get("/admin/users/{user_id}")
    async def admin_get_user(user_id: str, request: Request):
        user = await (await _admin(request)).get_user(user_id)
        return user.model_dump(mode="json")

    @app.patch("/admin/users/{user_id}")
    async def admin_update_user(user_id: str, body: UserUpdate, request: Request):
        user = await (await _admin(request)).update_user(user_id, body)
        return user.model_dump(mode="json")

    @app.delete("/admin/users/{user_id}")
    async def admin_delete_user(user_id: str, request: Request):
        await (await _admin(request)).delete_user(user_id)
        return {"success": True, "message": f"Deleted user {user_id}"}

    @app.patch("/admin/orders/{order_id}")
    async def admin_update_order(order_id: str, body: OrderUpdate, request: Request):
        order = await (await _admin(request)).update_order(order_id, body)
        return order.model_dump(mode="json")

    @app.delete("/admin/orders/{order_id}")
    async def admin_delete_order(order_id: str, request: Request):
        await (await _admin(request)).delete_order(order_id)
        return {"success": True, "message": f"Deleted order {order_id}"}

    @app.get("/admin/messages")
    async def admin_list_messages(request: Request):
        messages = await (await _admin(request)).list_messages()
        return {"count": len(messages), "messages": [m.model_dump(mode="json") for m in messages]}

    @app.patch("/admin/messages/{message_id}")
    async def admin_update_message(message_id: str, body: MessageStatusRequest, request: Request):
        message = await (await _admin(request)).update_message(message_id, body.status)
        return message.model_dump(mode="json")

    @app.delete("/admin/messages/{message_id}")
    async def admin_delete_message(message_id: str, request: Request):
        await (await _admin(request)).delete_message(message_id)
        return {"success": True, "message": f"Deleted message {message_id}"}

    @app.post("/contact")
    async def contact(body: ContactMessage, request: Request):
        await _storefront(request).api.send_contact_message(body)
        return {"success": True, "message": "Message sent"}

    return app


app = create_app()


def run_http_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the HTTP server."""
    import uvicorn

    if reload:
        uvicorn.run("storefront_server.http_server:app", host=host, port=port, log_level="info", reload=True)
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server()
