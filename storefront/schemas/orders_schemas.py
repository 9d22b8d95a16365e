from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.constants.checkout import DeliveryRegion, PaymentMethod
from storefront.constants.order_status import OrderStatus

CENT = Decimal("0.01")
# Numeric(10, 2) holds at most 8 digits before the point
MAX_AMOUNT = Decimal("99999999.99")


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount to cents; JSON floats like 0.1 * 3 arrive with float noise."""
    if value > MAX_AMOUNT:
        raise ValueError(f"must not exceed {MAX_AMOUNT}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class OrderItemIn(BaseModel):
    product_id: int = Field(..., gt=0, alias="productId")
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, alias="unitPrice")

    @field_validator("unit_price")
    @classmethod
    def unit_price_in_cents(cls, value: Decimal) -> Decimal:
        return to_cents(value)

    class Config:
        populate_by_name = True


class OrderCreate(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    total: Decimal = Field(..., ge=0)
    phone_number: str = Field(..., min_length=1, alias="phoneNumber")
    delivery_address: str = Field(..., min_length=1, alias="deliveryAddress")
    delivery_region: DeliveryRegion = Field(..., alias="deliveryRegion")
    delivery_notes: Optional[str] = Field(None, alias="deliveryNotes")
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    payment_reference: Optional[str] = Field(None, alias="paymentReference")
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=255, alias="idempotencyKey")

    @field_validator("total")
    @classmethod
    def total_in_cents(cls, value: Decimal) -> Decimal:
        return to_cents(value)

    @field_validator("phone_number", "delivery_address")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    class Config:
        populate_by_name = True


class OrderCreated(BaseModel):
    id: int


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    status: str
    total_amount: Decimal
    created_at: datetime
    items: List[OrderItemOut]


class AdminOrderOut(OrderOut):
    phone_number: str
    delivery_address: str
    delivery_region: str
    delivery_notes: Optional[str]
    payment_method: str
    payment_reference: Optional[str]
    email: str
    full_name: str


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
