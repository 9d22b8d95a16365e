# -------- ADMIN NOTIFICATIONS --------
from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.schemas.notification_schemas import NotificationOut
from storefront.schemas.user_schemas import Principal
from storefront.services.notification_service import (
    list_unread_notifications,
    mark_notification_read,
)

router = APIRouter()


@router.get("", response_model=List[NotificationOut])
def list_admin_notifications(
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin)
):
    return list_unread_notifications(session, admin)


@router.put("/{notification_id}/read")
def read_notification(
    notification_id: int,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    notification = mark_notification_read(session, admin, notification_id)
    return {"success": True, "notification_id": notification.id, "read": notification.read}
