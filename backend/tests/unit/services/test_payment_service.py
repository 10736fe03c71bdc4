"""PaymentService reconciliation against a mocked gateway and repositories."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from tutorlink.core.enums import RoleName
from tutorlink.core.exceptions import (
    ForbiddenException,
    PaymentActionRequiredException,
    ValidationException,
)
from tutorlink.core.ulid_helper import generate_ulid
from tutorlink.integrations.payment_gateway import PaymentGatewayError, PaymentIntent
from tutorlink.models.booking import Booking, BookingStatus, PaymentStatus
from tutorlink.models.user import User
from tutorlink.services.payment_service import PaymentService


def _transaction_cm() -> MagicMock:
    cm = MagicMock()
    cm.__enter__.return_value = None
    cm.__exit__.return_value = None
    return cm


def _user(role: RoleName) -> User:
    return User(
        id=generate_ulid(),
        name=f"{role.value} user",
        email=f"{generate_ulid().lower()}@example.com",
        hashed_password="x",
        role=role.value,
    )


def _intent(status: str, **overrides: object) -> PaymentIntent:
    fields = {"id": "pi_123", "status": status, "amount": 6000, "currency": "usd", "client_secret": "pi_123_secret"}
    fields.update(overrides)
    return PaymentIntent(**fields)


@pytest.fixture
def student() -> User:
    return _user(RoleName.STUDENT)


@pytest.fixture
def tutor() -> User:
    return _user(RoleName.TUTOR)


@pytest.fixture
def booking(student: User, tutor: User) -> Booking:
    booking = Booking(
        id=generate_ulid(),
        student_id=student.id,
        tutor_id=tutor.id,
        subject_id=generate_ulid(),
        booking_date=date(2030, 1, 7),
        start_time="10:00",
        end_time="12:00",
        duration=Decimal("2"),
        price=Decimal("60.00"),
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        payment_intent_id="pi_123",
    )
    booking.student = student
    booking.tutor = tutor
    return booking


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock()


@pytest.fixture
def notifications() -> MagicMock:
    client = MagicMock()
    client.send_payment_confirmation.return_value = True
    client.send_booking_confirmation.return_value = True
    client.send_new_booking_notification.return_value = True
    return client


@pytest.fixture
def payment_service(gateway: MagicMock, notifications: MagicMock, booking: Booking) -> PaymentService:
    service = PaymentService(
        MagicMock(),
        gateway,
        notifications,
        booking_repository=MagicMock(),
        user_repository=MagicMock(),
    )
    service.transaction = MagicMock(return_value=_transaction_cm())
    service.repository.get_by_id.return_value = booking
    return service


def _simulate_paid(booking: Booking):
    """Side effect standing in for the conditional UPDATE + refresh."""

    def _mark(booking_id, *, tutor_payout, paid_at):
        if booking.payment_status == PaymentStatus.PAID.value:
            return False
        booking.payment_status = PaymentStatus.PAID.value
        booking.tutor_payout = tutor_payout
        booking.paid_at = paid_at
        if booking.status == BookingStatus.PENDING.value:
            booking.status = BookingStatus.CONFIRMED.value
        return True

    return _mark


def _run_deferred(result) -> None:
    for task in result.deferred_tasks:
        task.run()


# --- create_payment_intent ---


def test_create_intent_charges_price_in_cents(
    payment_service: PaymentService, gateway: MagicMock, booking: Booking, student: User
) -> None:
    gateway.create_intent.return_value = _intent("requires_payment_method", id="pi_new", client_secret="sec")

    result = payment_service.create_payment_intent(booking.id, student)

    assert gateway.create_intent.call_args.args[0] == 6000
    assert result.payment_intent_id == "pi_new"
    assert result.client_secret == "sec"
    assert result.amount == 60.0
    assert booking.payment_intent_id == "pi_new"
    assert booking.payment_status == PaymentStatus.PENDING.value


def test_create_intent_only_for_bookings_student(
    payment_service: PaymentService, gateway: MagicMock, booking: Booking, tutor: User
) -> None:
    with pytest.raises(ForbiddenException):
        payment_service.create_payment_intent(booking.id, tutor)
    gateway.create_intent.assert_not_called()


def test_create_intent_rejects_cancelled_booking(
    payment_service: PaymentService, booking: Booking, student: User
) -> None:
    booking.status = BookingStatus.CANCELLED.value

    with pytest.raises(ValidationException) as exc_info:
        payment_service.create_payment_intent(booking.id, student)

    assert exc_info.value.code == "BOOKING_CANCELLED"


def test_create_intent_gateway_error_is_validation_error(
    payment_service: PaymentService, gateway: MagicMock, booking: Booking, student: User
) -> None:
    gateway.create_intent.side_effect = PaymentGatewayError("card network unavailable")

    with pytest.raises(ValidationException) as exc_info:
        payment_service.create_payment_intent(booking.id, student)

    assert exc_info.value.code == "PAYMENT_GATEWAY_ERROR"


# --- confirm_payment ---


def test_confirm_succeeded_marks_paid_and_notifies_once(
    payment_service: PaymentService,
    gateway: MagicMock,
    notifications: MagicMock,
    booking: Booking,
    student: User,
    tutor: User,
) -> None:
    gateway.retrieve_intent.return_value = _intent("succeeded")
    payment_service.repository.mark_paid_if_unpaid.side_effect = _simulate_paid(booking)

    result = payment_service.confirm_payment(booking.id, student)

    assert result.already_paid is False
    assert booking.payment_status == PaymentStatus.PAID.value
    assert booking.status == BookingStatus.CONFIRMED.value
    payment_service.user_repository.adjust_earnings.assert_called_once_with(
        tutor.id, pending_delta=Decimal("51.00")
    )
    # queued, not sent, until the deferred task runs
    assert result.queued_notifications == ["payment_confirmation"]
    notifications.send_payment_confirmation.assert_not_called()
    _run_deferred(result)
    notifications.send_payment_confirmation.assert_called_once()
    assert notifications.send_payment_confirmation.call_args.args[0] == student.email


def test_paying_a_completed_booking_credits_total_earnings(
    payment_service: PaymentService, gateway: MagicMock, booking: Booking, student: User, tutor: User
) -> None:
    booking.status = BookingStatus.COMPLETED.value
    gateway.retrieve_intent.return_value = _intent("succeeded")
    payment_service.repository.mark_paid_if_unpaid.side_effect = _simulate_paid(booking)

    result = payment_service.confirm_payment(booking.id, student)

    assert result.already_paid is False
    assert booking.status == BookingStatus.COMPLETED.value
    assert booking.payment_status == PaymentStatus.PAID.value
    payment_service.user_repository.adjust_earnings.assert_called_once_with(
        tutor.id, total_delta=Decimal("51.00")
    )


def test_manual_payment_of_completed_booking_credits_total_earnings(
    payment_service: PaymentService, booking: Booking, tutor: User
) -> None:
    booking.status = BookingStatus.COMPLETED.value
    payment_service.repository.mark_paid_if_unpaid.side_effect = _simulate_paid(booking)

    payment_service.mark_paid_manually(booking.id, _user(RoleName.ADMIN))

    payment_service.user_repository.adjust_earnings.assert_called_once_with(
        tutor.id, total_delta=Decimal("51.00")
    )


def test_confirm_on_paid_booking_is_a_no_op(
    payment_service: PaymentService, gateway: MagicMock, notifications: MagicMock, booking: Booking, student: User
) -> None:
    booking.payment_status = PaymentStatus.PAID.value

    result = payment_service.confirm_payment(booking.id, student)

    assert result.already_paid is True
    gateway.retrieve_intent.assert_not_called()
    payment_service.repository.mark_paid_if_unpaid.assert_not_called()
    notifications.send_payment_confirmation.assert_not_called()


def test_losing_a_concurrent_confirmation_sends_nothing(
    payment_service: PaymentService, gateway: MagicMock, notifications: MagicMock, booking: Booking, student: User
) -> None:
    gateway.retrieve_intent.return_value = _intent("succeeded")
    payment_service.repository.mark_paid_if_unpaid.return_value = False

    result = payment_service.confirm_payment(booking.id, student)

    assert result.already_paid is True
    payment_service.user_repository.adjust_earnings.assert_not_called()
    assert result.deferred_tasks == []
    notifications.send_payment_confirmation.assert_not_called()


def test_confirm_requires_intent(payment_service: PaymentService, booking: Booking, student: User) -> None:
    booking.payment_intent_id = None

    with pytest.raises(ValidationException) as exc_info:
        payment_service.confirm_payment(booking.id, student)

    assert exc_info.value.code == "NO_PAYMENT_INTENT"


def test_confirm_rejects_cancelled_booking(payment_service: PaymentService, booking: Booking, student: User) -> None:
    booking.status = BookingStatus.CANCELLED.value

    with pytest.raises(ValidationException) as exc_info:
        payment_service.confirm_payment(booking.id, student)

    assert exc_info.value.code == "BOOKING_CANCELLED"


@pytest.mark.parametrize(
    "status, code",
    [
        ("requires_payment_method", "PAYMENT_METHOD_REQUIRED"),
        ("requires_confirmation", "PAYMENT_CONFIRMATION_REQUIRED"),
        ("processing", "PAYMENT_NOT_COMPLETED"),
        ("canceled", "PAYMENT_NOT_COMPLETED"),
    ],
)
def test_unsuccessful_intent_leaves_booking_unpaid(
    payment_service: PaymentService,
    gateway: MagicMock,
    booking: Booking,
    student: User,
    status: str,
    code: str,
) -> None:
    gateway.retrieve_intent.return_value = _intent(status)

    with pytest.raises(ValidationException) as exc_info:
        payment_service.confirm_payment(booking.id, student)

    assert exc_info.value.code == code
    assert booking.payment_status == PaymentStatus.PENDING.value
    payment_service.repository.mark_paid_if_unpaid.assert_not_called()


def test_requires_action_returns_client_secret(
    payment_service: PaymentService, gateway: MagicMock, booking: Booking, student: User
) -> None:
    gateway.retrieve_intent.return_value = _intent(
        "requires_action", client_secret="pi_123_secret_3ds", next_action={"type": "use_stripe_sdk"}
    )

    with pytest.raises(PaymentActionRequiredException) as exc_info:
        payment_service.confirm_payment(booking.id, student)

    assert exc_info.value.details["requires_action"] is True
    assert exc_info.value.details["client_secret"] == "pi_123_secret_3ds"
    assert exc_info.value.details["next_action"] == {"type": "use_stripe_sdk"}


def test_notification_failure_does_not_fail_payment(
    payment_service: PaymentService, gateway: MagicMock, notifications: MagicMock, booking: Booking, student: User
) -> None:
    gateway.retrieve_intent.return_value = _intent("succeeded")
    payment_service.repository.mark_paid_if_unpaid.side_effect = _simulate_paid(booking)
    notifications.send_payment_confirmation.side_effect = RuntimeError("smtp down")

    result = payment_service.confirm_payment(booking.id, student)

    assert booking.payment_status == PaymentStatus.PAID.value
    assert [task.run() for task in result.deferred_tasks] == [False]


# --- mark_paid_manually ---


def test_manual_payment_requires_admin(payment_service: PaymentService, booking: Booking, student: User) -> None:
    with pytest.raises(ForbiddenException):
        payment_service.mark_paid_manually(booking.id, student)


def test_manual_payment_sends_all_notifications(
    payment_service: PaymentService, notifications: MagicMock, booking: Booking, tutor: User
) -> None:
    payment_service.repository.mark_paid_if_unpaid.side_effect = _simulate_paid(booking)

    result = payment_service.mark_paid_manually(booking.id, _user(RoleName.ADMIN))

    assert booking.payment_status == PaymentStatus.PAID.value
    assert set(result.queued_notifications) == {"payment_confirmation", "booking_confirmation", "new_booking"}
    _run_deferred(result)
    assert notifications.send_new_booking_notification.call_args.args[0] == tutor.email


def test_manual_payment_on_paid_booking_is_rejected(
    payment_service: PaymentService, booking: Booking
) -> None:
    booking.payment_status = PaymentStatus.PAID.value

    with pytest.raises(ValidationException) as exc_info:
        payment_service.mark_paid_manually(booking.id, _user(RoleName.ADMIN))

    assert exc_info.value.code == "ALREADY_PAID"
