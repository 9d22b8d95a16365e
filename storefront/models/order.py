from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timezone
from decimal import Decimal

from storefront.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    status: str = Field(default="pending")

    phone_number: str
    delivery_address: str
    delivery_region: str
    delivery_notes: Optional[str] = None

    payment_method: str  # stripe | momo
    payment_reference: Optional[str] = None
    idempotency_key: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"order_by": "OrderItem.id"},
    )
