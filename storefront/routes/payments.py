from fastapi import APIRouter, Depends
from storefront.schemas.payment_schemas import PaymentIntentCreate, PaymentIntentResponse
from storefront.services.payment_service import PaymentGateway, get_payment_gateway

router = APIRouter()


@router.post("/create-intent", response_model=PaymentIntentResponse)
def create_intent(
    data: PaymentIntentCreate,
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    client_secret = gateway.create_payment_intent(data.amount, data.currency)
    return {"client_secret": client_secret}
