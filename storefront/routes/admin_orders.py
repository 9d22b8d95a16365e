# -------- ADMIN ORDERS --------
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.schemas.orders_schemas import AdminOrderOut, OrderStatusUpdate
from storefront.schemas.user_schemas import Principal
from storefront.services.order_service import list_all_orders, update_order_status

router = APIRouter()


@router.get("", response_model=List[AdminOrderOut])
def list_orders(
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin)
):
    return list_all_orders(session, admin)


@router.put("/{order_id}")
def change_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin)
):
    order = update_order_status(session, admin, order_id, data.status)
    return {"success": True, "order_id": order.id, "status": order.status}
