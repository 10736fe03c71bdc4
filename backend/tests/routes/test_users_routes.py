from decimal import Decimal

from fastapi.testclient import TestClient
import pytest

from tutorlink.core.enums import RoleName
from tutorlink.models.subject import Subject
from tutorlink.models.user import User


@pytest.fixture
def tutors(make_user, test_subject: Subject, db):
    alice = make_user(RoleName.TUTOR, name="Alice Algebra", hourly_rate=Decimal("25.00"), average_rating=4.8)
    bob = make_user(RoleName.TUTOR, name="Bob Biology", hourly_rate=Decimal("60.00"), average_rating=3.9)
    alice.subjects = [test_subject]
    db.commit()
    return alice, bob


class TestTutorDirectory:
    def test_lists_only_tutors_best_rated_first(self, client: TestClient, tutors, test_student: User) -> None:
        response = client.get("/api/users/tutors")

        assert response.status_code == 200
        names = [tutor["name"] for tutor in response.json()["data"]]
        assert names == ["Alice Algebra", "Bob Biology"]

    def test_public_profile_hides_private_fields(self, client: TestClient, tutors) -> None:
        alice, _ = tutors
        data = client.get(f"/api/users/tutors/{alice.id}").json()["data"]

        assert data["name"] == "Alice Algebra"
        assert "email" not in data
        assert "pending_earnings" not in data

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("rating=4.5", ["Alice Algebra"]),
            ("price=20-30", ["Alice Algebra"]),
            ("price=50-100", ["Bob Biology"]),
            ("name=bio", ["Bob Biology"]),
        ],
    )
    def test_filters(self, client: TestClient, tutors, query: str, expected) -> None:
        response = client.get(f"/api/users/tutors?{query}")

        assert response.status_code == 200
        assert [tutor["name"] for tutor in response.json()["data"]] == expected

    def test_subject_filter(self, client: TestClient, tutors, test_subject: Subject) -> None:
        response = client.get(f"/api/users/tutors?subject={test_subject.id}")

        assert [tutor["name"] for tutor in response.json()["data"]] == ["Alice Algebra"]

    def test_inverted_price_range_is_rejected(self, client: TestClient, tutors) -> None:
        response = client.get("/api/users/tutors?price=100-10")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PRICE_RANGE"

    def test_student_id_is_not_a_tutor(self, client: TestClient, test_student: User) -> None:
        assert client.get(f"/api/users/tutors/{test_student.id}").status_code == 404


class TestTutorProfile:
    def test_tutor_updates_profile(
        self, client: TestClient, test_tutor: User, test_subject: Subject, auth_headers_tutor
    ) -> None:
        response = client.put(
            "/api/users/tutor-profile",
            json={
                "bio": "Ten years of teaching",
                "hourly_rate": 42.5,
                "subjects": [test_subject.id],
                "availability": [{"day": "Tuesday", "slots": [{"start_time": "14:00", "end_time": "16:00"}]}],
            },
            headers=auth_headers_tutor,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["hourly_rate"] == 42.5
        assert [subject["id"] for subject in data["subjects"]] == [test_subject.id]
        assert data["availability"][0]["day"] == "Tuesday"

    def test_unknown_subject_is_rejected(self, client: TestClient, auth_headers_tutor) -> None:
        response = client.put(
            "/api/users/tutor-profile",
            json={"subjects": ["01ARZ3NDEKTSV4RRFFQ69G5FAV"]},
            headers=auth_headers_tutor,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_SUBJECT"

    def test_inverted_slot_is_rejected(self, client: TestClient, auth_headers_tutor) -> None:
        response = client.put(
            "/api/users/tutor-profile",
            json={"availability": [{"day": "Monday", "slots": [{"start_time": "16:00", "end_time": "14:00"}]}]},
            headers=auth_headers_tutor,
        )

        assert response.status_code == 400

    def test_students_have_no_tutor_profile(self, client: TestClient, auth_headers_student) -> None:
        response = client.put("/api/users/tutor-profile", json={"bio": "hi"}, headers=auth_headers_student)

        assert response.status_code == 403


class TestAccounts:
    def test_aggregates_are_not_writable(self, client: TestClient, test_tutor: User, auth_headers_tutor) -> None:
        response = client.put(
            f"/api/users/{test_tutor.id}",
            json={"name": "Tara T.", "average_rating": 5, "total_earnings": 1000},
            headers=auth_headers_tutor,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Tara T."
        assert data["average_rating"] == 0.0
        assert data["total_earnings"] == 0.0

    def test_role_change_ignored_for_non_admin(self, client: TestClient, test_student: User, auth_headers_student) -> None:
        response = client.put(f"/api/users/{test_student.id}", json={"role": "admin"}, headers=auth_headers_student)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "student"

    def test_admin_can_change_role(self, client: TestClient, test_student: User, auth_headers_admin) -> None:
        response = client.put(f"/api/users/{test_student.id}", json={"role": "tutor"}, headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "tutor"

    def test_cannot_view_other_account(self, client: TestClient, test_tutor: User, auth_headers_student) -> None:
        assert client.get(f"/api/users/{test_tutor.id}", headers=auth_headers_student).status_code == 403

    def test_admin_lists_users(self, client: TestClient, test_student: User, auth_headers_admin) -> None:
        response = client.get("/api/users", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json()["count"] == 2

    def test_list_users_requires_admin(self, client: TestClient, auth_headers_student) -> None:
        assert client.get("/api/users", headers=auth_headers_student).status_code == 403

    def test_admin_deletes_user_without_bookings(
        self, client: TestClient, test_student: User, auth_headers_admin
    ) -> None:
        response = client.delete(f"/api/users/{test_student.id}", headers=auth_headers_admin)

        assert response.status_code == 200
        assert client.get(f"/api/users/{test_student.id}", headers=auth_headers_admin).status_code == 404
