"""End-to-end booking lifecycle through the HTTP API."""

from typing import Dict

from fastapi.testclient import TestClient
import pytest

from tutorlink.core.enums import RoleName
from tutorlink.integrations import FakePaymentGateway
from tutorlink.models.subject import Subject
from tutorlink.models.user import User
from tutorlink.services.email import ConsoleEmailSender


def _create_booking(client: TestClient, headers: Dict[str, str], tutor: User, subject: Subject, duration: float = 2):
    return client.post(
        "/api/bookings",
        json={
            "tutor_id": tutor.id,
            "subject_id": subject.id,
            "booking_date": "2030-01-07",
            "start_time": "10:00",
            "end_time": "12:00",
            "duration": duration,
            "notes": "Quadratic equations",
        },
        headers=headers,
    )


@pytest.fixture
def booking_id(client: TestClient, auth_headers_student, test_tutor: User, test_subject: Subject) -> str:
    response = _create_booking(client, auth_headers_student, test_tutor, test_subject)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["id"]


def _set_status(client: TestClient, booking_id: str, status: str, headers: Dict[str, str]):
    return client.put(f"/api/bookings/{booking_id}", json={"status": status}, headers=headers)


class TestBookingCreation:
    def test_price_comes_from_tutor_rate(
        self, client: TestClient, auth_headers_student, test_tutor: User, test_subject: Subject
    ) -> None:
        response = _create_booking(client, auth_headers_student, test_tutor, test_subject, duration=2)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["price"] == 60.0
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["tutor"]["id"] == test_tutor.id
        assert data["subject"]["name"] == "Algebra"

    def test_tutor_cannot_create_booking(
        self, client: TestClient, auth_headers_tutor, test_tutor: User, test_subject: Subject
    ) -> None:
        response = _create_booking(client, auth_headers_tutor, test_tutor, test_subject)
        assert response.status_code == 403

    def test_zero_duration_is_invalid(
        self, client: TestClient, auth_headers_student, test_tutor: User, test_subject: Subject
    ) -> None:
        response = _create_booking(client, auth_headers_student, test_tutor, test_subject, duration=0)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DURATION"

    def test_requires_authentication(self, client: TestClient, test_tutor: User, test_subject: Subject) -> None:
        response = _create_booking(client, {}, test_tutor, test_subject)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_malformed_time_is_rejected(
        self, client: TestClient, auth_headers_student, test_tutor: User, test_subject: Subject
    ) -> None:
        response = client.post(
            "/api/bookings",
            json={
                "tutor_id": test_tutor.id,
                "subject_id": test_subject.id,
                "booking_date": "2030-01-07",
                "start_time": "25:00",
                "end_time": "12:00",
                "duration": 1,
            },
            headers=auth_headers_student,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestBookingVisibility:
    def test_participants_and_admin_see_booking(
        self, client: TestClient, booking_id: str, auth_headers_student, auth_headers_tutor, auth_headers_admin
    ) -> None:
        for headers in (auth_headers_student, auth_headers_tutor, auth_headers_admin):
            response = client.get(f"/api/bookings/{booking_id}", headers=headers)
            assert response.status_code == 200

    def test_outsider_is_forbidden(self, client: TestClient, booking_id: str, make_user, headers_for) -> None:
        outsider = make_user()

        response = client.get(f"/api/bookings/{booking_id}", headers=headers_for(outsider))

        assert response.status_code == 403

    def test_listing_is_scoped_to_caller(
        self, client: TestClient, booking_id: str, make_user, headers_for, auth_headers_student, auth_headers_admin
    ) -> None:
        other = make_user()

        assert client.get("/api/bookings", headers=auth_headers_student).json()["count"] == 1
        assert client.get("/api/bookings", headers=headers_for(other)).json()["count"] == 0
        assert client.get("/api/bookings", headers=auth_headers_admin).json()["count"] == 1

    def test_unknown_booking_is_not_found(self, client: TestClient, auth_headers_admin) -> None:
        response = client.get("/api/bookings/01ARZ3NDEKTSV4RRFFQ69G5FAV", headers=auth_headers_admin)
        assert response.status_code == 404


class TestBookingLifecycle:
    def test_full_paid_lifecycle(
        self,
        client: TestClient,
        booking_id: str,
        test_tutor: User,
        auth_headers_student,
        auth_headers_tutor,
        payment_gateway: FakePaymentGateway,
        email_sender: ConsoleEmailSender,
    ) -> None:
        # Only the tutor confirms
        assert _set_status(client, booking_id, "confirmed", auth_headers_student).status_code == 403
        response = _set_status(client, booking_id, "confirmed", auth_headers_tutor)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

        # Payment intent
        response = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student)
        assert response.status_code == 200
        intent = response.json()["data"]
        assert intent["amount"] == 60.0
        assert intent["client_secret"]
        assert payment_gateway.intents[intent["payment_intent_id"]].amount == 6000

        # Not yet paid on the gateway side
        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)
        assert response.status_code == 400
        assert response.json()["code"] == "PAYMENT_METHOD_REQUIRED"

        payment_gateway.set_status(intent["payment_intent_id"], "succeeded")
        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment confirmed"
        assert body["data"]["payment_status"] == "paid"
        assert body["data"]["tutor_payout"] == 51.0
        assert body["details"]["notifications_queued"] == ["payment_confirmation"]
        assert len(email_sender.sent) == 1

        # Confirming again changes nothing and sends nothing
        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)
        assert response.status_code == 200
        assert response.json()["details"]["already_paid"] is True
        assert len(email_sender.sent) == 1

        me = client.get("/api/auth/me", headers=auth_headers_tutor).json()["data"]
        assert me["pending_earnings"] == 51.0
        assert me["total_earnings"] == 0.0

        # Completion moves the payout into total earnings
        response = _set_status(client, booking_id, "completed", auth_headers_tutor)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"

        me = client.get("/api/auth/me", headers=auth_headers_tutor).json()["data"]
        assert me["pending_earnings"] == 0.0
        assert me["total_earnings"] == 51.0
        assert me["completed_bookings"] == 1

        # Review updates the tutor's rating
        response = client.post(
            "/api/reviews",
            json={"booking_id": booking_id, "rating": 5, "comment": "Very clear explanations"},
            headers=auth_headers_student,
        )
        assert response.status_code == 201
        assert response.json()["data"]["tutor"]["id"] == test_tutor.id

        tutor = client.get(f"/api/users/tutors/{test_tutor.id}").json()["data"]
        assert tutor["total_reviews"] == 1
        assert tutor["average_rating"] == 5.0

    def test_pending_booking_advances_to_confirmed_when_paid(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        intent_id = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student).json()["data"][
            "payment_intent_id"
        ]
        payment_gateway.set_status(intent_id, "succeeded")

        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "confirmed"

    def test_paying_after_completion_credits_total_earnings(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        auth_headers_tutor,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        _set_status(client, booking_id, "confirmed", auth_headers_tutor)
        assert _set_status(client, booking_id, "completed", auth_headers_tutor).status_code == 200
        intent_id = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student).json()["data"][
            "payment_intent_id"
        ]
        payment_gateway.set_status(intent_id, "succeeded")

        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"
        assert response.json()["data"]["payment_status"] == "paid"
        me = client.get("/api/auth/me", headers=auth_headers_tutor).json()["data"]
        assert me["pending_earnings"] == 0.0
        assert me["total_earnings"] == 51.0
        assert me["completed_bookings"] == 1

    def test_requires_action_returns_client_secret(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        intent = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student).json()["data"]
        payment_gateway.set_status(intent["payment_intent_id"], "requires_action", next_action={"type": "use_stripe_sdk"})

        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "PAYMENT_REQUIRES_ACTION"
        assert body["requires_action"] is True
        assert body["client_secret"] == intent["client_secret"]

    def test_cancel_unpaid_booking_cancels_intent(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        auth_headers_tutor,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        intent_id = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student).json()["data"][
            "payment_intent_id"
        ]

        assert _set_status(client, booking_id, "cancelled", auth_headers_tutor).status_code == 403
        response = _set_status(client, booking_id, "cancelled", auth_headers_student)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert payment_gateway.cancelled == [intent_id]
        assert payment_gateway.refunds == []

        # A cancelled booking can no longer be paid
        payment_gateway.intents[intent_id].status = "succeeded"
        response = client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)
        assert response.status_code == 400
        assert response.json()["code"] == "BOOKING_CANCELLED"

    def test_cancel_paid_booking_refunds_once(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        auth_headers_tutor,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        intent_id = client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student).json()["data"][
            "payment_intent_id"
        ]
        payment_gateway.set_status(intent_id, "succeeded")
        client.put(f"/api/bookings/{booking_id}/confirm-payment", headers=auth_headers_student)

        response = _set_status(client, booking_id, "cancelled", auth_headers_student)

        assert response.status_code == 200
        assert [refund.payment_intent_id for refund in payment_gateway.refunds] == [intent_id]
        assert payment_gateway.cancelled == []
        me = client.get("/api/auth/me", headers=auth_headers_tutor).json()["data"]
        assert me["pending_earnings"] == 0.0

    def test_cancel_survives_gateway_outage(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_student,
        payment_gateway: FakePaymentGateway,
    ) -> None:
        client.post(f"/api/bookings/{booking_id}/payment", headers=auth_headers_student)
        payment_gateway.fail_on.add("cancel_intent")

        response = _set_status(client, booking_id, "cancelled", auth_headers_student)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"

    def test_complete_requires_confirmed(self, client: TestClient, booking_id: str, auth_headers_tutor) -> None:
        response = _set_status(client, booking_id, "completed", auth_headers_tutor)

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_non_admin_cannot_change_price(self, client: TestClient, booking_id: str, auth_headers_tutor) -> None:
        response = client.put(f"/api/bookings/{booking_id}", json={"price": 1}, headers=auth_headers_tutor)
        assert response.status_code == 403


class TestAdminBookingOperations:
    @pytest.mark.parametrize("price", [0.1, 0.49])
    def test_price_below_minimum_charge_is_rejected(
        self, client: TestClient, booking_id: str, auth_headers_admin, price: float
    ) -> None:
        response = client.put(f"/api/bookings/{booking_id}", json={"price": price}, headers=auth_headers_admin)

        assert response.status_code == 400
        assert response.json()["code"] == "PRICE_BELOW_MINIMUM"
        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers_admin).json()["data"]["price"] == 60.0

    def test_admin_sets_price_at_minimum_charge(self, client: TestClient, booking_id: str, auth_headers_admin) -> None:
        response = client.put(f"/api/bookings/{booking_id}", json={"price": 0.5}, headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["data"]["price"] == 0.5

    def test_admin_marks_paid_and_notifies_both_parties(
        self,
        client: TestClient,
        booking_id: str,
        auth_headers_admin,
        email_sender: ConsoleEmailSender,
        test_student: User,
        test_tutor: User,
    ) -> None:
        response = client.put(f"/api/bookings/{booking_id}/pay", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["data"]["payment_status"] == "paid"
        recipients = sorted(message["to"] for message in email_sender.sent)
        assert recipients == sorted([test_student.email, test_student.email, test_tutor.email])

        again = client.put(f"/api/bookings/{booking_id}/pay", headers=auth_headers_admin)
        assert again.status_code == 400

    def test_pay_requires_admin(self, client: TestClient, booking_id: str, auth_headers_student) -> None:
        response = client.put(f"/api/bookings/{booking_id}/pay", headers=auth_headers_student)
        assert response.status_code == 403

    def test_admin_delete_removes_reviews_and_resets_rating(
        self,
        client: TestClient,
        booking_id: str,
        test_tutor: User,
        auth_headers_student,
        auth_headers_tutor,
        auth_headers_admin,
    ) -> None:
        client.put(f"/api/bookings/{booking_id}/pay", headers=auth_headers_admin)
        _set_status(client, booking_id, "completed", auth_headers_tutor)
        client.post(
            "/api/reviews",
            json={"booking_id": booking_id, "rating": 4, "comment": "Good"},
            headers=auth_headers_student,
        )

        response = client.delete(f"/api/bookings/{booking_id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers_admin).status_code == 404
        tutor = client.get(f"/api/users/tutors/{test_tutor.id}").json()["data"]
        assert tutor["total_reviews"] == 0
        assert tutor["average_rating"] == 0.0


def test_tutor_availability_is_public(client: TestClient, make_user) -> None:
    schedule = [{"day": "Monday", "slots": [{"start_time": "09:00", "end_time": "12:00"}]}]
    tutor = make_user(RoleName.TUTOR, availability=schedule)

    response = client.get(f"/api/bookings/availability/{tutor.id}")

    assert response.status_code == 200
    assert response.json()["data"] == schedule
