import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from storefront.dependencies.admin import ensure_admin
from storefront.errors import NotFoundError, PersistenceError
from storefront.models.notifications import OrderNotification
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.notification_schemas import NotificationOut
from storefront.schemas.user_schemas import Principal

logger = logging.getLogger(__name__)


def create_order_notification(session: Session, order: Order) -> OrderNotification:
    """Add the unread marker inside the caller's transaction; never commits."""
    notification = OrderNotification(order_id=order.id)
    session.add(notification)
    session.flush()
    return notification


def list_unread_notifications(session: Session, principal: Principal) -> List[NotificationOut]:
    ensure_admin(principal)

    rows = session.exec(
        select(OrderNotification, Order, User)
        .join(Order, Order.id == OrderNotification.order_id)
        .join(User, User.id == Order.user_id)
        .where(OrderNotification.read == False)  # noqa: E712
        .order_by(OrderNotification.created_at.desc(), OrderNotification.id.desc())
    ).all()

    return [
        NotificationOut(
            id=n.id,
            order_id=n.order_id,
            read=n.read,
            created_at=n.created_at,
            total_amount=o.total_amount,
            full_name=u.full_name,
            email=u.email,
        )
        for n, o, u in rows
    ]


def mark_notification_read(
    session: Session,
    principal: Principal,
    notification_id: int,
) -> OrderNotification:
    ensure_admin(principal)

    notification = session.get(OrderNotification, notification_id)
    if not notification:
        raise NotFoundError("Notification", notification_id)

    if notification.read:
        return notification

    notification.read = True
    try:
        session.add(notification)
        session.commit()
        session.refresh(notification)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Mark read failed for notification {notification_id}")
        raise PersistenceError("Failed to mark notification read", str(e)) from e

    logger.info(f"Notification {notification_id} marked read by admin {principal.id}")
    return notification
