"""Order ledger: the single write path for orders and their status."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from storefront.config import settings
from storefront.constants.checkout import initial_status_for
from storefront.constants.order_status import ALLOWED_TRANSITIONS, OrderStatus
from storefront.dependencies.admin import ensure_admin
from storefront.errors import (
    NotFoundError,
    OrderCreationError,
    PersistenceError,
    ValidationError,
)
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.orders_schemas import (
    AdminOrderOut,
    OrderCreate,
    OrderItemOut,
    OrderOut,
)
from storefront.schemas.user_schemas import Principal
from storefront.services.notification_service import create_order_notification

logger = logging.getLogger(__name__)


def _find_by_idempotency_key(session: Session, user_id: int, key: str) -> Optional[Order]:
    return session.exec(
        select(Order).where(Order.user_id == user_id, Order.idempotency_key == key)
    ).first()


def verify_prices(session: Session, payload: OrderCreate) -> None:
    """Check submitted unit prices and total against the catalog."""
    tolerance = settings.price_tolerance
    product_ids = {item.product_id for item in payload.items}

    products = {
        p.id: p
        for p in session.exec(select(Product).where(Product.id.in_(list(product_ids)))).all()
    }

    lines_total = Decimal("0")
    for item in payload.items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise ValidationError(f"Unknown product {item.product_id}")
        if abs(item.unit_price - product.price) > tolerance:
            raise ValidationError(
                f"Price for product {item.product_id} does not match the catalog"
            )
        lines_total += item.unit_price * item.quantity

    if abs(payload.total - lines_total) > tolerance:
        raise ValidationError("Order total does not match its items")


def create_order(session: Session, principal: Principal, payload: OrderCreate) -> int:
    """
    Persist an order, its lines and its admin notification atomically.

    Card rail orders start as ``paid`` (the client confirmed with the gateway
    first), cash rail orders start as ``pending``. Without an idempotency key
    a retried call creates a second order.
    """
    if payload.idempotency_key:
        existing = _find_by_idempotency_key(session, principal.id, payload.idempotency_key)
        if existing:
            logger.info(
                f"Replaying order {existing.id} for user {principal.id} "
                f"(idempotency key {payload.idempotency_key})"
            )
            return existing.id

    if settings.verify_prices:
        verify_prices(session, payload)

    try:
        order = Order(
            user_id=principal.id,
            total_amount=payload.total,
            status=initial_status_for(payload.payment_method),
            phone_number=payload.phone_number,
            delivery_address=payload.delivery_address,
            delivery_region=payload.delivery_region.value,
            delivery_notes=payload.delivery_notes,
            payment_method=payload.payment_method.value,
            payment_reference=payload.payment_reference,
            idempotency_key=payload.idempotency_key,
        )
        session.add(order)
        session.flush()
        order_id = order.id

        for item in payload.items:
            session.add(
                OrderItem(
                    order_id=order_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
            )

        create_order_notification(session, order)
        session.commit()

    except IntegrityError as e:
        session.rollback()
        if payload.idempotency_key:
            # lost a race against a concurrent submission with the same key
            existing = _find_by_idempotency_key(session, principal.id, payload.idempotency_key)
            if existing:
                return existing.id
        logger.exception(f"Create order failed for user {principal.id}")
        raise OrderCreationError(str(e)) from e

    except Exception as e:
        session.rollback()
        logger.exception(f"Create order failed for user {principal.id}")
        raise OrderCreationError(str(e)) from e

    logger.info(
        f"Order {order_id} created for user {principal.id}: "
        f"{len(payload.items)} items, total {payload.total}, {payload.payment_method.value}"
    )
    return order_id


def _order_items(order: Order) -> List[OrderItemOut]:
    return [OrderItemOut.model_validate(i) for i in order.items]


def list_orders_for_user(session: Session, principal: Principal) -> List[OrderOut]:
    orders = session.exec(
        select(Order)
        .where(Order.user_id == principal.id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()

    return [
        OrderOut(
            id=o.id,
            status=o.status,
            total_amount=o.total_amount,
            created_at=o.created_at,
            items=_order_items(o),
        )
        for o in orders
    ]


def list_all_orders(session: Session, principal: Principal) -> List[AdminOrderOut]:
    ensure_admin(principal)

    rows = session.exec(
        select(Order, User)
        .join(User, User.id == Order.user_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()

    return [
        AdminOrderOut(
            id=o.id,
            status=o.status,
            total_amount=o.total_amount,
            created_at=o.created_at,
            phone_number=o.phone_number,
            delivery_address=o.delivery_address,
            delivery_region=o.delivery_region,
            delivery_notes=o.delivery_notes,
            payment_method=o.payment_method,
            payment_reference=o.payment_reference,
            email=u.email,
            full_name=u.full_name,
            items=_order_items(o),
        )
        for o, u in rows
    ]


def update_order_status(
    session: Session,
    principal: Principal,
    order_id: int,
    new_status: OrderStatus,
) -> Order:
    ensure_admin(principal)

    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order", order_id)

    new_status = OrderStatus(new_status).value
    previous = order.status

    if (
        settings.enforce_status_transitions
        and new_status != previous
        and new_status not in ALLOWED_TRANSITIONS.get(previous, [])
    ):
        raise ValidationError(f"Cannot move order from {previous} to {new_status}")

    order.status = new_status
    order.updated_at = datetime.now(timezone.utc)
    try:
        session.add(order)
        session.commit()
        session.refresh(order)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Status update failed for order {order_id}")
        raise PersistenceError("Failed to update order status", str(e)) from e

    logger.info(f"Order {order_id} status {previous} -> {new_status} by admin {principal.id}")
    return order
