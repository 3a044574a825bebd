"""Data models for storefront entities."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .errors import PriceFormatError
from .money import format_price, parse_price


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class CartLineItem(BaseModel):
    """One product entry in the cart."""

    id: str = Field(description="Product ID")
    name: str = Field(default="", description="Product name")
    price: Decimal = Field(description="Unit price")
    image: Optional[str] = Field(None, description="Product image URL")
    quantity: int = Field(default=1, description="Number of units")

    normalize_id = field_validator("id", mode="before")(_coerce_id)

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, value: Any) -> Decimal:
        try:
            return parse_price(value)
        except PriceFormatError as e:
            raise ValueError(e.message) from None

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> str:
        return format_price(price)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLineItem":
        """Build a line item, raising PriceFormatError for a bad price."""
        parse_price(data.get("price"))
        return cls.model_validate(data)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartState(BaseModel):
    """Snapshot of the cart."""

    cart_items: list[CartLineItem] = Field(default_factory=list)
    total_amount: Decimal = Field(default=Decimal("0"))

    @property
    def item_count(self) -> int:
        return len(self.cart_items)


class CheckoutProduct(BaseModel):
    """Line item as sent to the checkout-session endpoint."""

    id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None


class CheckoutSession(BaseModel):
    """Payment-provider checkout session."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    url: str
    session_id: Optional[str] = Field(None, alias="sessionId")


class PaymentStatus(BaseModel):
    """Result of verifying a checkout session."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    payment_status: Optional[str] = Field(None, alias="paymentStatus")
    order_id: Optional[str] = Field(None, alias="orderId")

    normalize_id = field_validator("order_id", mode="before")(_coerce_id)


class AuthCredentials(BaseModel):
    """Authentication credentials."""

    email: str
    password: str


class SignUpData(BaseModel):
    """Registration form."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    email: str
    password: str
    password_confirm: str = Field(alias="passwordConfirm")


class User(BaseModel):
    """Minimal profile snapshot of a storefront user."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"
    photo: Optional[str] = None

    normalize_id = field_validator("id", mode="before")(_coerce_id)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class AuthResult(BaseModel):
    """Response body of /login and /signup."""

    model_config = ConfigDict(extra="allow")

    token: Optional[str] = None
    user: Optional[User] = None


class Product(BaseModel):
    """Represents a catalog product."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id", description="Product ID")
    name: str = Field(description="Product name")
    price: Decimal = Field(description="Unit price")
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = Field(None, alias="imageCover")
    ratings_average: Optional[float] = Field(None, alias="ratingsAverage")
    ratings_quantity: Optional[int] = Field(None, alias="ratingsQuantity")
    stock: Optional[int] = Field(None, alias="quantity")

    normalize_id = field_validator("id", mode="before")(_coerce_id)

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, value: Any) -> Decimal:
        try:
            return parse_price(value)
        except PriceFormatError as e:
            raise ValueError(e.message) from None

    def to_line_item(self, quantity: int = 1) -> CartLineItem:
        return CartLineItem(
            id=self.id,
            name=self.name,
            price=self.price,
            image=self.image,
            quantity=quantity,
        )


class Review(BaseModel):
    """A product review."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    review: str = ""
    rating: float
    product: Optional[Any] = None
    user: Optional[Any] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    normalize_id = field_validator("id", mode="before")(_coerce_id)


class Order(BaseModel):
    """A placed order."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    status: str = "unknown"
    total_price: Optional[Decimal] = Field(None, alias="totalPrice")
    products: list[Any] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    normalize_id = field_validator("id", mode="before")(_coerce_id)


class WishlistItem(BaseModel):
    """A wishlist entry; the backend returns either products or wrappers."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id")
    product: Optional[Any] = None
    name: Optional[str] = None

    normalize_id = field_validator("id", mode="before")(_coerce_id)

    @property
    def product_id(self) -> Optional[str]:
        if isinstance(self.product, dict) and self.product.get("_id"):
            return str(self.product["_id"])
        return self.id


class ContactMessage(BaseModel):
    """Message sent through the contact form."""

    name: str
    email: str
    subject: Optional[str] = None
    message: str


class OperationResult(BaseModel):
    """Normalized outcome of a store operation, safe to hand to callers."""

    success: bool
    message: str
    error_kind: Optional[str] = None
    data: Any = None


class ContactRecord(BaseModel):
    """A stored contact-form message, as listed in the back office."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    status: Optional[str] = None

    normalize_id = field_validator("id", mode="before")(_coerce_id)


class ProductInput(BaseModel):
    """Fields an admin may set when creating or editing a product."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    price: Optional[str] = Field(None, description="Display price, e.g. $12.00")
    description: Optional[str] = None
    category: Optional[str] = None
    stock: Optional[int] = Field(None, alias="quantity")

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        try:
            return format_price(parse_price(value))
        except PriceFormatError as e:
            raise ValueError(e.message) from None


class ProfileUpdate(BaseModel):
    """Changes a user may make to their own profile."""

    name: Optional[str] = None
    email: Optional[str] = None


class UserUpdate(BaseModel):
    """Changes an admin may make to any account."""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class OrderUpdate(BaseModel):
    """Fulfilment changes an admin may make to an order."""

    model_config = ConfigDict(populate_by_name=True)

    order_status: Optional[str] = Field(None, alias="orderStatus")
    is_delivered: Optional[bool] = Field(None, alias="isDelivered")


class ReviewUpdate(BaseModel):
    """Edits to a review."""

    rating: Optional[float] = Field(None, ge=1, le=5)
    review: Optional[str] = None
