import logging
from typing import Optional

import stripe

from storefront.config import settings
from storefront.errors import PaymentGatewayError, ValidationError

logger = logging.getLogger(__name__)


class PaymentGateway:
    """
    Thin adapter over Stripe payment intents.

    The intent's ``client_secret`` goes back to the client, which confirms the
    payment with Stripe's own form; card details never reach this service.
    """

    def __init__(self, secret_key: Optional[str] = None, intents=None):
        self.secret_key = secret_key
        self.intents = intents or stripe.PaymentIntent

    def create_payment_intent(self, amount: int, currency: str) -> str:
        if amount <= 0:
            raise ValidationError("Amount must be a positive integer")

        secret_key = self.secret_key or settings.stripe_secret_key
        if not secret_key:
            raise PaymentGatewayError("Payments not configured")

        try:
            intent = self.intents.create(
                amount=amount,
                currency=currency.lower(),
                automatic_payment_methods={"enabled": True},
                api_key=secret_key,
            )
            client_secret = getattr(intent, "client_secret", None)
        except stripe.StripeError as e:
            logger.error(f"Create payment intent failed: {amount} {currency}: {e}")
            raise PaymentGatewayError("Failed to create payment intent", str(e)) from e

        if not client_secret:
            logger.error("Stripe returned no client secret")
            raise PaymentGatewayError("Failed to create payment intent")

        logger.info(f"Payment intent created: {amount} {currency}")
        return client_secret


payment_gateway = PaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    return payment_gateway
