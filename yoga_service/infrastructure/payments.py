import stripe
import structlog

from ..config import settings
from ..domain.errors import InvalidRequest, PaymentProviderError

logger = structlog.get_logger()


def amount_in_cents(price: float) -> int:
    cents = round(float(price) * 100)
    if cents <= 0:
        raise InvalidRequest("Price must be positive")
    return cents


class PaymentGateway:
    """Обёртка над Stripe: создаёт PaymentIntent и отдаёт client secret."""

    def __init__(self, api_key: str | None = None, currency: str | None = None):
        self.api_key = api_key or settings.PAYMENT_SECRET
        self.currency = currency or settings.PAYMENT_CURRENCY

    def create_intent(self, price: float) -> str:
        amount = amount_in_cents(price)
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=self.currency,
                payment_method_types=["card"],
            )
        except stripe.StripeError as e:
            logger.error("payment_intent_failed", amount=amount, error=str(e))
            raise PaymentProviderError() from e
        logger.info("payment_intent_created", amount=amount, currency=self.currency)
        return intent.client_secret


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway()
