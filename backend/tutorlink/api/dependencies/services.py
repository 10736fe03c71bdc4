# backend/tutorlink/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

The payment gateway and notification client are process-wide: they are
built in the application lifespan and stored on ``app.state``. Services
are cheap and created per request around the request's session.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import FakePaymentGateway, StripePaymentGateway
from ...services.auth_service import AuthService
from ...services.booking_service import BookingService
from ...services.notification_service import NotificationClient, build_notification_client
from ...services.payment_service import PaymentService
from ...services.review_service import ReviewService
from ...services.subject_service import SubjectService
from ...services.user_service import UserService
from .database import get_db

logger = logging.getLogger(__name__)


def build_payment_gateway() -> StripePaymentGateway:
    """Stripe in real deployments; the in-memory fake when flagged or unconfigured."""
    if settings.payment_gateway_fake:
        logger.info("Using FakePaymentGateway (PAYMENT_GATEWAY_FAKE is set)")
        return FakePaymentGateway()
    if not settings.stripe_configured:
        if settings.environment == "production":
            raise RuntimeError("STRIPE_SECRET_KEY must be set in production")
        logger.warning("Stripe secret key not configured - payments will use the in-memory FakePaymentGateway")
        return FakePaymentGateway()
    return StripePaymentGateway(api_key=settings.stripe_secret_key)



def get_payment_gateway(request: Request) -> StripePaymentGateway:
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        gateway = build_payment_gateway()
        request.app.state.payment_gateway = gateway
    return gateway


def get_notification_client(request: Request) -> NotificationClient:
    client = getattr(request.app.state, "notification_client", None)
    if client is None:
        client = build_notification_client(settings)
        request.app.state.notification_client = client
    return client


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    payment_gateway: StripePaymentGateway = Depends(get_payment_gateway),
) -> BookingService:
    return BookingService(db, payment_gateway=payment_gateway)


def get_payment_service(
    db: Session = Depends(get_db),
    payment_gateway: StripePaymentGateway = Depends(get_payment_gateway),
    notification_client: NotificationClient = Depends(get_notification_client),
) -> PaymentService:
    return PaymentService(db, payment_gateway, notification_client)


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


def get_subject_service(db: Session = Depends(get_db)) -> SubjectService:
    return SubjectService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)
