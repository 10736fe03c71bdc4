# backend/tutorlink/routes/bookings.py
"""
Booking routes.

Endpoints:
    POST   /                          -> Create booking (student)
    GET    /                          -> List bookings (own; admins see all)
    GET    /availability/{tutor_id}   -> Tutor weekly availability (public)
    GET    /{booking_id}              -> Booking detail (participant or admin)
    PUT    /{booking_id}              -> Update fields / status transition
    DELETE /{booking_id}              -> Permanent delete (admin)
    POST   /{booking_id}/payment      -> Create payment intent (student)
    PUT    /{booking_id}/confirm-payment -> Reconcile with the gateway (student)
    PUT    /{booking_id}/pay          -> Manual payment override (admin)

Notifications and gateway cancel/refund calls are scheduled as background
tasks, so they run after the response has been sent.
"""

import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from ..api.dependencies.auth import get_current_admin, get_current_student, get_current_user
from ..api.dependencies.services import get_booking_service, get_payment_service
from ..core.exceptions import DomainException
from ..models.user import User
from ..schemas.base_responses import ApiResponse, ListResponse, MessageResponse
from ..schemas.booking import (
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    PaymentConfirmationResponse,
    PaymentIntentData,
    PaymentIntentResponse,
)
from ..services.booking_service import BookingService
from ..services.payment_service import PaymentService
from .common import handle_domain_exception, schedule_deferred

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


@router.post("", response_model=ApiResponse[BookingResponse], status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[BookingResponse]:
    try:
        booking = await asyncio.to_thread(service.create_booking, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=BookingResponse.model_validate(booking))


@router.get("", response_model=ListResponse[BookingResponse])
async def list_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> ListResponse[BookingResponse]:
    bookings = await asyncio.to_thread(service.list_bookings, current_user)
    items = [BookingResponse.model_validate(booking) for booking in bookings]
    return ListResponse(count=len(items), data=items)


@router.get("/availability/{tutor_id}", response_model=AvailabilityResponse)
async def get_tutor_availability(
    tutor_id: str,
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityResponse:
    try:
        availability = await asyncio.to_thread(service.get_tutor_availability, tutor_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return AvailabilityResponse(tutor_id=tutor_id, data=availability)


@router.get("/{booking_id}", response_model=ApiResponse[BookingResponse])
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[BookingResponse]:
    try:
        booking = await asyncio.to_thread(service.get_booking_for_user, booking_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return ApiResponse(data=BookingResponse.model_validate(booking))


@router.put("/{booking_id}", response_model=ApiResponse[BookingResponse])
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[BookingResponse]:
    try:
        result = await asyncio.to_thread(service.update_booking, booking_id, current_user, payload)
    except DomainException as exc:
        handle_domain_exception(exc)
    schedule_deferred(background_tasks, result.deferred_tasks)
    return ApiResponse(data=BookingResponse.model_validate(result.booking))


@router.delete("/{booking_id}", response_model=MessageResponse)
async def delete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
) -> MessageResponse:
    try:
        await asyncio.to_thread(service.delete_booking, booking_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return MessageResponse(message="Booking deleted")


@router.post("/{booking_id}/payment", response_model=PaymentIntentResponse)
async def create_payment_intent(
    booking_id: str,
    current_user: User = Depends(get_current_student),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    try:
        result = await asyncio.to_thread(service.create_payment_intent, booking_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    return PaymentIntentResponse(
        data=PaymentIntentData(
            client_secret=result.client_secret,
            payment_intent_id=result.payment_intent_id,
            amount=result.amount,
            currency=result.currency,
        )
    )


@router.put("/{booking_id}/confirm-payment", response_model=PaymentConfirmationResponse)
async def confirm_payment(
    booking_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_student),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentConfirmationResponse:
    try:
        confirmation = await asyncio.to_thread(service.confirm_payment, booking_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    schedule_deferred(background_tasks, confirmation.deferred_tasks)
    message = "Booking is already paid" if confirmation.already_paid else "Payment confirmed"
    return PaymentConfirmationResponse(
        message=message,
        data=BookingResponse.model_validate(confirmation.booking),
        details={
            "already_paid": confirmation.already_paid,
            "notifications_queued": confirmation.queued_notifications,
        },
    )


@router.put("/{booking_id}/pay", response_model=PaymentConfirmationResponse)
async def mark_booking_paid(
    booking_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentConfirmationResponse:
    try:
        confirmation = await asyncio.to_thread(service.mark_paid_manually, booking_id, current_user)
    except DomainException as exc:
        handle_domain_exception(exc)
    schedule_deferred(background_tasks, confirmation.deferred_tasks)
    return PaymentConfirmationResponse(
        message="Booking marked as paid",
        data=BookingResponse.model_validate(confirmation.booking),
        details={"notifications_queued": confirmation.queued_notifications},
    )
