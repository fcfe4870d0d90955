# storefront/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


class Identity(BaseModel):
    """Signed-in user as returned by the auth service."""

    user_id: str
    email: str | None = None
    access_token: str


class Product(BaseModel):
    """Row of the products table (read-only)."""

    id: str
    title: str
    description: str | None = None
    price: Decimal
    category: str | None = None
    image_url: str | None = None
    stock: int = 0


class CartLine(BaseModel):
    """cart_items row with the product snapshot taken at read time."""

    id: str
    user_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    title: str
    price: Decimal
    image_url: str | None = None
    stock: int | None = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class ShippingAddress(BaseModel):
    """Shipping form; stored on the order under the camelCase keys."""

    full_name: str = Field(..., min_length=1, alias="fullName")
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1, alias="zipCode")
    country: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    shipping_address: ShippingAddress | dict | None = None
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime | None = None


class OrderLineIn(BaseModel):
    """order_items row to insert; price is the cart snapshot price."""

    order_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    price: Decimal


class OrderLine(BaseModel):
    id: str
    order_id: str
    product_id: str
    quantity: int
    price: Decimal
    title: str | None = None
    image_url: str | None = None


class Notification(BaseModel):
    """Transient toast shown once."""

    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"


# --- API payloads ---


class SignInIn(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SessionOut(BaseModel):
    signed_in: bool
    user_id: str | None = None
    email: str | None = None
    cart_count: int = 0
    notifications: List[Notification] = []


class CartItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0)


class QuantityIn(BaseModel):
    #<= 0 removes the line
    quantity: int


class CartOut(BaseModel):
    ok: bool = True
    loading: bool = False
    items: List[CartLine]
    count: int
    subtotal: Decimal
    notifications: List[Notification] = []


class CheckoutSummaryOut(BaseModel):
    items: List[CartLine]
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    free_shipping: bool


class OrderPlacedOut(BaseModel):
    order_id: str
    redirect_to: str
    notifications: List[Notification] = []


class StatusStep(BaseModel):
    status: OrderStatus
    reached: bool


class OrderDetailOut(BaseModel):
    order: Order
    items: List[OrderLine]
    subtotal: Decimal
    shipping: Decimal
    progress: List[StatusStep]
