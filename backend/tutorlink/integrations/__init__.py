"""External service integrations for the Tutorlink platform."""

from .payment_gateway import (
    FakePaymentGateway,
    PaymentGatewayError,
    PaymentIntent,
    Refund,
    StripePaymentGateway,
)

__all__ = [
    "FakePaymentGateway",
    "PaymentGatewayError",
    "PaymentIntent",
    "Refund",
    "StripePaymentGateway",
]
