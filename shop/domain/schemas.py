# shop/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime

from shop.domain.order_status import OrderStatus, PaymentStatus, PaymentMethod


# ---------- uzytkownicy ----------

class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str | None = Field(None, max_length=200)
    user_type: Literal["customer", "admin"] = "customer"


class UserRead(BaseModel):
    id: int
    name: str
    email: str | None = None
    user_type: str

    model_config = ConfigDict(from_attributes=True)


# ---------- produkty ----------

class ProductCreate(BaseModel):
    sku: str = Field(..., pattern=r"^[A-Za-z0-9-]{3,20}$")
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., ge=0)
    original_price: Decimal | None = Field(None, ge=0)
    category: Literal["top", "bottom", "dress", "shoes", "accessory", "etc"]
    image: str = Field(..., min_length=1)
    description: str | None = Field(None, max_length=1000)
    stock: int = Field(0, ge=0)
    status: Literal["on_sale", "sold_out", "discontinued", "hidden"] = "on_sale"
    tags: List[str] = []
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: Decimal | None = Field(None, ge=0)


class ProductOut(BaseModel):
    id: int
    sku: str
    name: str
    price: Decimal
    original_price: Decimal | None = None
    discounted_price: Decimal
    category: str
    image: str
    description: str | None = None
    stock: int
    status: str
    tags: List[str] = []

    model_config = ConfigDict(from_attributes=True)


# ---------- koszyk ----------

class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, ge=1, le=99, description="Ilość produktu (1-99)")
    selected_size: str = Field("", max_length=10)
    selected_color: str = Field("", max_length=20)


class ItemQuantityIn(BaseModel):
    # 0 lub mniej usuwa pozycje
    quantity: int = Field(..., le=99)


class CartProductOut(BaseModel):
    id: int
    name: str
    price: Decimal
    original_price: Decimal | None = None
    image: str
    category: str
    stock: int
    status: str


class CartItemOut(BaseModel):
    id: int
    product: CartProductOut
    quantity: int
    selected_size: str
    selected_color: str
    added_at: datetime


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    status: str
    version: int
    items: List[CartItemOut]
    total_amount: Decimal
    total_items: int
    expires_at: datetime | None = None


class CartLineIssue(BaseModel):
    item_id: int
    product_id: int
    product_name: str
    reason: str


class CheckoutPreviewOut(BaseModel):
    is_valid: bool
    issues: List[CartLineIssue]
    total_amount: Decimal
    total_items: int


# ---------- zamowienia ----------

class AddressIn(BaseModel):
    zip_code: str = Field(..., pattern=r"^\d{5}$")
    main_address: str = Field(..., min_length=5, max_length=200)
    detail_address: str = Field("", max_length=200)


class ShippingAddressIn(BaseModel):
    recipient_name: str = Field(..., min_length=2, max_length=50)
    phone: str = Field(..., min_length=1, max_length=30, pattern=r"^[0-9-+\s()]+$")
    address: AddressIn


class PaymentAssertionIn(BaseModel):
    imp_uid: str = Field(..., min_length=1)
    merchant_uid: str = Field(..., min_length=1)


class PlaceOrderIn(BaseModel):
    """Zamówienie z aktywnego koszyka."""

    shipping_address: ShippingAddressIn
    shipping_method: Literal["standard", "express"] = "standard"
    payment_method: PaymentMethod
    notes: str | None = Field(None, max_length=500)
    # wymagane dla card / kakao_pay / naver_pay
    payment: PaymentAssertionIn | None = None


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    name: str | None = None
    image: str | None = None
    category: str | None = None
    quantity: int
    price: Decimal
    original_price: Decimal | None = None
    selected_size: str
    selected_color: str


class OrderSummaryOut(BaseModel):
    total_items: int
    item_count: int
    subtotal: Decimal
    total: Decimal


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: str
    items: List[OrderItemOut]
    subtotal: Decimal
    total: Decimal
    total_amount: Decimal
    total_items: int
    shipping_address: dict
    shipping_method: str
    tracking_number: str | None = None
    carrier: str | None = None
    payment_method: str
    payment_status: str
    transaction_id: str | None = None
    paid_at: datetime | None = None
    notes: str | None = None
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    summary: OrderSummaryOut


class PaginationOut(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: PaginationOut


class StatusStatOut(BaseModel):
    status: str
    count: int
    total_amount: Decimal


class DailyStatOut(BaseModel):
    date: str
    count: int
    total_amount: Decimal


class OrderStatsOut(BaseModel):
    status_stats: List[StatusStatOut]
    total_orders: int
    total_amount: Decimal
    average_order_value: Decimal | None = None
    daily_stats: List[DailyStatOut] | None = None


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    note: str | None = Field(None, max_length=200)


class ShippingUpdateIn(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=50)
    carrier: str = Field(..., min_length=1, max_length=50)


class PaymentUpdateIn(BaseModel):
    status: PaymentStatus
    transaction_id: str | None = Field(None, max_length=100)


class CancelIn(BaseModel):
    reason: str | None = Field(None, max_length=200)
