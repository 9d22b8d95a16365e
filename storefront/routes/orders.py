from typing import List, Optional
from fastapi import APIRouter, Depends, Header, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.schemas.orders_schemas import OrderCreate, OrderCreated, OrderOut
from storefront.schemas.user_schemas import Principal
from storefront.services.order_service import create_order, list_orders_for_user
from storefront.utils.token import get_current_principal

router = APIRouter()


@router.post("", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal)
):
    if idempotency_key and not payload.idempotency_key:
        payload = payload.model_copy(update={"idempotency_key": idempotency_key})

    order_id = create_order(session, principal, payload)
    return {"id": order_id}


@router.get("", response_model=List[OrderOut])
def my_orders(
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_current_principal)
):
    return list_orders_for_user(session, principal)
