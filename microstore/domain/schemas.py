# microstore/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Literal, Optional
from decimal import Decimal
from datetime import datetime

from microstore.domain.orders import OrderStatus
from microstore.domain.payments import PaymentStatus


class CamelInput(BaseModel):
    """Wejscie akceptuje zarowno camelCase (stary frontend) jak i snake_case."""

    model_config = ConfigDict(populate_by_name=True)


# ======================= users =======================

class UserCreate(CamelInput):
    """Schema dla rejestracji użytkownika."""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=128)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: Optional[str] = Field(None, alias="firstName", max_length=100)
    last_name: Optional[str] = Field(None, alias="lastName", max_length=100)


class UserRead(BaseModel):
    """Schema dla użytkownika (response). Nigdy nie zawiera hasla."""

    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class LoginIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ======================= products =======================

class ProductCreate(CamelInput):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, alias="imageUrl")
    sku: str = Field(..., min_length=1, max_length=64)
    inventory: Optional[int] = Field(0, ge=0, description="NULL = bez limitu")
    category: Optional[str] = None


class ProductUpdate(CamelInput):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, alias="imageUrl")
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    inventory: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    sku: str
    inventory: Optional[int] = None
    category: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductFilter(BaseModel):
    search: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: Optional[bool] = None
    sort_by: Optional[Literal["price", "name", "category"]] = None
    sort_order: Literal["asc", "desc"] = "asc"


# ======================= cart =======================

class CartItemIn(CamelInput):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, alias="productId", description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")


class CartItemQuantityIn(BaseModel):
    quantity: int = Field(..., ge=0, description="0 usuwa pozycje")


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    id: int
    cart_id: int
    product_id: int
    quantity: int
    product: ProductOut


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    id: int
    user_id: int
    created_at: datetime
    items: List[CartItemOut]
    subtotal: Decimal
    total_items: int


# ======================= orders =======================

class OrderCreate(CamelInput):
    """Schema dla tworzenia zamówienia z koszyka zalogowanego użytkownika."""

    #brak adresu -> 400 z serwisu, nie 422 z walidacji
    shipping_address: Optional[str] = Field(None, alias="shippingAddress", max_length=500)


class OrderStatusIn(BaseModel):
    # walidacja wartosci w serwisie, zeby zwrocic 400 a nie 422
    status: str = Field(..., min_length=1)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    total: Decimal
    shipping_address: Optional[str] = None
    created_at: datetime


class OrderItemOut(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: Decimal
    #produkt mogl zniknac z katalogu, pozycja zamowienia zostaje
    product: Optional[ProductOut] = None


class OrderWithItemsOut(OrderOut):
    items: List[OrderItemOut]
    user: UserRead


# ======================= payments =======================

class PaymentIn(CamelInput):
    payment_method: str = Field(..., alias="paymentMethod", min_length=1, max_length=50)
    mock_success: bool = Field(True, alias="mockSuccess")


class RefundIn(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)


class PaymentOut(BaseModel):
    id: int
    order_id: int
    amount: Decimal
    status: PaymentStatus
    payment_method: str
    transaction_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutSessionIn(CamelInput):
    success_url: str = Field(..., alias="successUrl")
    cancel_url: str = Field(..., alias="cancelUrl")


class CheckoutSessionOut(BaseModel):
    session_id: str = Field(..., serialization_alias="sessionId")


class PaymentConfigOut(BaseModel):
    publishable_key: Optional[str] = Field(None, serialization_alias="publishableKey")


# ======================= notifications =======================

class NotificationRequest(BaseModel):
    recipient_id: int
    recipient_email: Optional[str] = None
    recipient_phone: Optional[str] = None
    type: Literal["email", "sms", "push"] = "email"
    subject: str
    message: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationOut(BaseModel):
    id: int
    recipient_id: int
    type: str
    subject: str
    message: str
    status: Literal["pending", "sent", "failed"]
    sent_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ======================= gateway / dashboard =======================

class ServiceMetrics(BaseModel):
    cpu: float
    memory: float
    requests: int
    errors: int


class ServiceStatusIn(BaseModel):
    status: str = Field(..., min_length=1)
    details: Optional[str] = None


class ServiceStatusOut(BaseModel):
    id: int
    name: str
    status: Literal["healthy", "warning", "error"]
    details: Optional[str] = None
    last_updated: datetime
    metrics: Optional[ServiceMetrics] = None

    model_config = ConfigDict(from_attributes=True)


class RegisteredServiceOut(BaseModel):
    name: str
    url: str
    version: Optional[str] = None
    is_local: bool
