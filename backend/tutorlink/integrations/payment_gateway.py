"""Thin Stripe adapter for booking payments, plus an in-memory fake."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from pydantic import SecretStr
import stripe

logger = logging.getLogger(__name__)


class PaymentGatewayError(RuntimeError):
    """Raised when the payment gateway rejects a call or cannot be reached."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class PaymentIntent:
    id: str
    status: str
    amount: int
    currency: str
    client_secret: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    next_action: Optional[Dict[str, Any]] = None


@dataclass
class Refund:
    id: str
    payment_intent_id: str
    amount: Optional[int]
    status: str


class StripePaymentGateway:
    """Create, inspect, cancel and refund Stripe payment intents."""

    def __init__(self, *, api_key: str | SecretStr) -> None:
        secret_value = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not secret_value:
            raise ValueError("Stripe API key must be provided")
        self._api_key = secret_value

    def create_intent(self, amount_minor: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        """Create a payment intent for ``amount_minor`` cents."""
        if amount_minor <= 0:
            raise ValueError("amount_minor must be positive")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._api_key,
                amount=amount_minor,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            raise self._wrap("create_intent", exc) from exc
        return self._to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            raise self._wrap("retrieve_intent", exc) from exc
        return self._to_intent(intent)

    def cancel_intent(self, intent_id: str) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.cancel(intent_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            raise self._wrap("cancel_intent", exc) from exc
        return self._to_intent(intent)

    def refund(self, intent_id: str, amount: Optional[int] = None, reason: Optional[str] = None) -> Refund:
        """Refund a captured intent; ``amount`` in cents, None refunds in full."""
        params: Dict[str, Any] = {"payment_intent": intent_id}
        if amount is not None:
            params["amount"] = amount
        if reason:
            params["reason"] = reason
        try:
            refund = stripe.Refund.create(api_key=self._api_key, **params)
        except stripe.StripeError as exc:
            raise self._wrap("refund", exc) from exc
        return Refund(
            id=refund.id,
            payment_intent_id=intent_id,
            amount=getattr(refund, "amount", amount),
            status=getattr(refund, "status", "pending"),
        )

    @staticmethod
    def _wrap(operation: str, exc: stripe.StripeError) -> PaymentGatewayError:
        message = getattr(exc, "user_message", None) or str(exc) or "Payment gateway error"
        logger.warning(f"Stripe {operation} failed: {message}")
        return PaymentGatewayError(message, code=getattr(exc, "code", None))

    @staticmethod
    def _to_intent(intent: Any) -> PaymentIntent:
        metadata = getattr(intent, "metadata", None) or {}
        next_action = getattr(intent, "next_action", None)
        return PaymentIntent(
            id=intent.id,
            status=intent.status,
            amount=int(intent.amount),
            currency=intent.currency,
            client_secret=getattr(intent, "client_secret", None),
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
            next_action=dict(next_action) if next_action else None,
        )


class FakePaymentGateway(StripePaymentGateway):
    """In-memory stand-in for Stripe used in local development and tests."""

    def __init__(self, *, fail_on: Iterable[str] = ()) -> None:
        super().__init__(api_key="sk_test_fake")
        self._logger = logging.getLogger(self.__class__.__name__)
        self.intents: Dict[str, PaymentIntent] = {}
        self.cancelled: List[str] = []
        self.refunds: List[Refund] = []
        self.fail_on = set(fail_on)

    def create_intent(self, amount_minor: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        self._maybe_fail("create_intent")
        if amount_minor <= 0:
            raise ValueError("amount_minor must be positive")
        intent_id = f"pi_fake_{uuid4().hex[:24]}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount_minor,
            currency=currency,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:16]}",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        self._logger.debug("Fake payment intent created", extra={"intent_id": intent_id})
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self._maybe_fail("retrieve_intent")
        return self._get(intent_id)

    def cancel_intent(self, intent_id: str) -> PaymentIntent:
        self._maybe_fail("cancel_intent")
        intent = self._get(intent_id)
        if intent.status == "succeeded":
            raise PaymentGatewayError("You cannot cancel this PaymentIntent because it has a status of succeeded.")
        intent.status = "canceled"
        self.cancelled.append(intent_id)
        return intent

    def refund(self, intent_id: str, amount: Optional[int] = None, reason: Optional[str] = None) -> Refund:
        self._maybe_fail("refund")
        intent = self._get(intent_id)
        refund = Refund(
            id=f"re_fake_{uuid4().hex[:24]}",
            payment_intent_id=intent.id,
            amount=amount if amount is not None else intent.amount,
            status="succeeded",
        )
        self.refunds.append(refund)
        return refund

    def set_status(self, intent_id: str, status: str, next_action: Optional[Dict[str, Any]] = None) -> None:
        """Simulate the client completing (or stalling) a payment."""
        intent = self._get(intent_id)
        intent.status = status
        intent.next_action = next_action

    def _get(self, intent_id: str) -> PaymentIntent:
        intent = self.intents.get(intent_id)
        if intent is None:
            raise PaymentGatewayError(f"No such payment_intent: '{intent_id}'", code="resource_missing")
        return intent

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PaymentGatewayError(f"Simulated {operation} failure")
