"""Order creation: atomicity, line fidelity, initial status and checkout hardening."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import principal_for
from storefront.config import settings
from storefront.errors import OrderCreationError, ValidationError
from storefront.models.notifications import OrderNotification
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.schemas.orders_schemas import OrderCreate
from storefront.services import order_service
from storefront.services.order_service import create_order, list_orders_for_user


def _create(session, user, payload):
    return create_order(session, principal_for(user), OrderCreate.model_validate(payload))


class TestCreateOrderAtomicity:
    def test_order_lines_and_notification_are_all_persisted(self, session, customer, order_payload):
        payload = order_payload(
            items=[
                {"productId": 7, "quantity": 2, "unitPrice": 15.00},
                {"productId": 8, "quantity": 1, "unitPrice": 4.50},
            ],
            total=34.50,
        )
        order_id = _create(session, customer, payload)

        order = session.get(Order, order_id)
        assert order is not None
        assert order.user_id == customer.id

        items = session.exec(select(OrderItem).where(OrderItem.order_id == order_id)).all()
        assert len(items) == 2

        notifications = session.exec(
            select(OrderNotification).where(OrderNotification.order_id == order_id)
        ).all()
        assert len(notifications) == 1
        assert notifications[0].read is False

    def test_failure_mid_transaction_leaves_nothing_behind(
        self, session, customer, order_payload, monkeypatch
    ):
        def broken_notification(session, order):
            raise OperationalError("INSERT INTO order_notifications", {}, Exception("disk I/O error"))

        monkeypatch.setattr(order_service, "create_order_notification", broken_notification)

        with pytest.raises(OrderCreationError) as exc_info:
            _create(session, customer, order_payload())

        assert exc_info.value.message == "Failed to create order"
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderItem)).all() == []
        assert session.exec(select(OrderNotification)).all() == []

    def test_failure_after_some_lines_rolls_back_the_lines(
        self, session, customer, order_payload, monkeypatch
    ):
        real_add = session.add
        calls = {"items": 0}

        def add_then_fail(instance):
            if isinstance(instance, OrderItem):
                calls["items"] += 1
                if calls["items"] == 2:
                    raise RuntimeError("connection reset")
            real_add(instance)

        monkeypatch.setattr(session, "add", add_then_fail)
        payload = order_payload(
            items=[
                {"productId": 7, "quantity": 1, "unitPrice": 15.00},
                {"productId": 8, "quantity": 1, "unitPrice": 4.50},
            ],
            total=19.50,
        )

        with pytest.raises(OrderCreationError):
            _create(session, customer, payload)

        monkeypatch.undo()
        assert session.exec(select(Order)).all() == []
        assert session.exec(select(OrderItem)).all() == []

    def test_created_at_is_stamped_in_utc(self, session, customer, order_payload):
        before = datetime.now(timezone.utc)
        order_id = _create(session, customer, order_payload())

        order = session.get(Order, order_id)
        created_at = order.created_at
        if created_at.tzinfo is None:
            # SQLite hands timestamps back without an offset
            created_at = created_at.replace(tzinfo=timezone.utc)
        assert created_at >= before.replace(microsecond=0)
        assert Order(
            user_id=customer.id,
            total_amount=Decimal("1.00"),
            phone_number="0551234567",
            delivery_address="12 Main St",
            delivery_region="Northern",
            payment_method="momo",
        ).created_at.tzinfo is not None
        assert OrderNotification(order_id=order_id).created_at.tzinfo is not None

    def test_retry_without_key_creates_a_second_order(self, session, customer, order_payload):
        first = _create(session, customer, order_payload())
        second = _create(session, customer, order_payload())

        assert first != second
        assert len(session.exec(select(Order)).all()) == 2


class TestLineFidelity:
    def test_lines_match_submission_in_order(self, session, customer, order_payload):
        submitted = [
            {"productId": 8, "quantity": 3, "unitPrice": 4.50},
            {"productId": 7, "quantity": 1, "unitPrice": 15.00},
            {"productId": 12, "quantity": 10, "unitPrice": 0},
        ]
        _create(session, customer, order_payload(items=submitted, total=28.50))

        orders = list_orders_for_user(session, principal_for(customer))
        persisted = [(i.product_id, i.quantity, i.unit_price) for i in orders[0].items]

        assert persisted == [
            (8, 3, Decimal("4.50")),
            (7, 1, Decimal("15.00")),
            (12, 10, Decimal("0")),
        ]

    def test_same_product_twice_keeps_both_lines(self, session, customer, order_payload):
        submitted = [
            {"productId": 7, "quantity": 1, "unitPrice": 15.00},
            {"productId": 7, "quantity": 1, "unitPrice": 14.00},
        ]
        order_id = _create(session, customer, order_payload(items=submitted, total=29.00))

        items = session.exec(select(OrderItem).where(OrderItem.order_id == order_id)).all()
        assert sorted(i.unit_price for i in items) == [Decimal("14.00"), Decimal("15.00")]


class TestInitialStatus:
    @pytest.mark.parametrize(
        "payment_method, expected",
        [("stripe", "paid"), ("momo", "pending")],
    )
    def test_status_follows_payment_rail(self, session, customer, order_payload, payment_method, expected):
        order_id = _create(session, customer, order_payload(paymentMethod=payment_method))
        assert session.get(Order, order_id).status == expected

    def test_card_rail_keeps_payment_reference(self, session, customer, order_payload):
        order_id = _create(
            session,
            customer,
            order_payload(paymentMethod="stripe", paymentReference="order_Nx81fQ"),
        )
        order = session.get(Order, order_id)
        assert order.payment_method == "stripe"
        assert order.payment_reference == "order_Nx81fQ"


class TestIdempotencyKey:
    def test_replayed_key_returns_original_order(self, session, customer, order_payload):
        payload = order_payload(idempotencyKey="cart-5b1e")

        first = _create(session, customer, payload)
        second = _create(session, customer, payload)

        assert first == second
        assert len(session.exec(select(Order)).all()) == 1
        assert len(session.exec(select(OrderNotification)).all()) == 1

    def test_losing_a_concurrent_race_returns_the_winner(
        self, session, customer, order_payload, monkeypatch
    ):
        payload = order_payload(idempotencyKey="cart-9d40")
        winner = _create(session, customer, payload)

        real_find = order_service._find_by_idempotency_key
        lookups = []

        def miss_first_lookup(session, user_id, key):
            # the concurrent winner commits between this lookup and our insert
            lookups.append(key)
            if len(lookups) == 1:
                return None
            return real_find(session, user_id, key)

        monkeypatch.setattr(order_service, "_find_by_idempotency_key", miss_first_lookup)

        assert _create(session, customer, payload) == winner
        assert len(lookups) == 2
        assert len(session.exec(select(Order)).all()) == 1
        assert len(session.exec(select(OrderItem)).all()) == 1
        assert len(session.exec(select(OrderNotification)).all()) == 1

    def test_same_key_for_different_users_is_independent(
        self, session, customer, other_customer, order_payload
    ):
        payload = order_payload(idempotencyKey="cart-5b1e")

        first = _create(session, customer, payload)
        second = _create(session, other_customer, payload)

        assert first != second


class TestPriceVerification:
    @pytest.fixture(autouse=True)
    def enable_verification(self, monkeypatch):
        monkeypatch.setattr(settings, "verify_prices", True)

    def test_matching_prices_are_accepted(self, session, customer, products, order_payload):
        order_id = _create(session, customer, order_payload())
        assert session.get(Order, order_id) is not None

    def test_tampered_unit_price_is_rejected(self, session, customer, products, order_payload):
        payload = order_payload(
            items=[{"productId": 7, "quantity": 2, "unitPrice": 1.00}],
            total=2.00,
        )
        with pytest.raises(ValidationError):
            _create(session, customer, payload)
        assert session.exec(select(Order)).all() == []

    def test_total_must_match_lines(self, session, customer, products, order_payload):
        with pytest.raises(ValidationError, match="total"):
            _create(session, customer, order_payload(total=10.00))

    @pytest.mark.parametrize("product_id", [9, 404])
    def test_inactive_or_unknown_product_is_rejected(
        self, session, customer, products, order_payload, product_id
    ):
        payload = order_payload(
            items=[{"productId": product_id, "quantity": 1, "unitPrice": 22.00}],
            total=22.00,
        )
        with pytest.raises(ValidationError, match="Unknown product"):
            _create(session, customer, payload)

    def test_verification_off_trusts_client_prices(
        self, session, customer, products, order_payload, monkeypatch
    ):
        monkeypatch.setattr(settings, "verify_prices", False)
        payload = order_payload(
            items=[{"productId": 7, "quantity": 2, "unitPrice": 1.00}],
            total=99.00,
        )
        order_id = _create(session, customer, payload)
        assert session.get(Order, order_id).total_amount == Decimal("99.00")
