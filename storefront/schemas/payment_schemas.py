from pydantic import BaseModel, Field

from storefront.config import settings


class PaymentIntentCreate(BaseModel):
    amount: int = Field(..., gt=0)  # minor currency units
    currency: str = Field(default_factory=lambda: settings.default_currency, min_length=3, max_length=3)


class PaymentIntentResponse(BaseModel):
    client_secret: str
