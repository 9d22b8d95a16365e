from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: int
    order_id: int
    read: bool
    created_at: datetime
    total_amount: Decimal
    full_name: str
    email: str
