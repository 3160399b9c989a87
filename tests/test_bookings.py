from uuid import UUID

import pytest

from careconnect.domain.bookings.lifecycle import (
    ADMIN_REASSIGN_TRANSITIONS,
    ADMIN_UNASSIGN_TRANSITIONS,
    PROVIDER_TRANSITIONS,
    check_transition,
    job_matches,
)
from careconnect.domain.catalog.service import compute_payout
from careconnect.errors import ConflictError
from careconnect.models import Booking, Client, Provider

from .conftest import bearer

REQUEST = {
    "serviceType": "nursing",
    "scheduledDate": "2025-12-01",
    "scheduledTime": "09:00",
    "estimatedCost": 110,
}


def create_request(api, headers, **overrides) -> dict:
    response = api.post("/requests/create", json={**REQUEST, **overrides}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["booking"]


def advance(api, headers, booking_id, *statuses):
    for status in statuses:
        response = api.post(
            "/jobs/update-status", json={"jobId": booking_id, "status": status}, headers=headers
        )
        assert response.status_code == 200, response.text
    return response.json()["booking"]


@pytest.fixture
def completed_booking(api, client_headers, approved_provider):
    provider_headers, provider_id = approved_provider
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=provider_headers)
    advance(api, provider_headers, booking["id"], "in-progress", "completed")
    return booking["id"], provider_id


def test_create_request_is_pending_and_unassigned(api, client_headers):
    booking = create_request(api, client_headers)

    assert booking["status"] == "pending"
    assert booking["provider_id"] is None
    assert booking["service_type"] == "nursing"
    assert booking["scheduled_date"] == "2025-12-01"
    assert booking["estimated_cost"] == 110


def test_create_request_for_family_member(api, client_headers):
    booking = create_request(
        api,
        client_headers,
        requestFor="other",
        recipientName="Kamala",
        recipientAge=82,
        providerGenderPreference="female",
    )
    assert booking["recipient"]["name"] == "Kamala"
    assert booking["preferences"] == {"providerGender": "female"}


def test_create_request_rejects_bad_date(api, client_headers):
    response = api.post(
        "/requests/create", json={**REQUEST, "scheduledDate": "01/12/2025"}, headers=client_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_create_request_uses_catalog_pricing(api, client_headers, admin_headers):
    created = api.post(
        "/admin/services",
        json={"title": "Night Nursing", "basePrice": 500, "platformFeePercentage": 10},
        headers=admin_headers,
    ).json()["service"]

    booking = create_request(api, client_headers, serviceType="Night Nursing")
    assert booking["service_id"] == created["id"]
    assert booking["base_price"] == 500


def test_client_cancels_pending_request(api, client_headers, auth):
    booking = create_request(api, client_headers)

    stranger = bearer(auth.issue("other@example.com", role="client"))
    response = api.post("/requests/cancel", json={"requestId": booking["id"]}, headers=stranger)
    assert response.status_code == 403
    assert response.json()["code"] == "NOT_BOOKING_OWNER"

    response = api.post(
        "/requests/cancel", json={"requestId": booking["id"]}, headers=client_headers
    )
    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "cancelled"

    again = api.post("/requests/cancel", json={"requestId": booking["id"]}, headers=client_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_job_board_matches_specialty(api, client_headers, approved_provider):
    headers, _ = approved_provider
    create_request(api, client_headers)
    create_request(api, client_headers, serviceType="Home Repairs")

    requests = api.get("/jobs/requests", headers=headers).json()["requests"]
    assert [r["service_type"] for r in requests] == ["nursing"]
    assert requests[0]["client_name"] == "Asha"


def test_accept_is_first_come(api, client_headers, approved_provider, admin_headers, make_provider):
    headers, provider_id = approved_provider
    rival_headers, rival_id = make_provider()
    api.post("/admin/approve-provider", json={"providerId": rival_id}, headers=admin_headers)
    booking = create_request(api, client_headers)

    first = api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)
    assert first.status_code == 200
    assert first.json()["booking"]["status"] == "accepted"
    assert first.json()["booking"]["provider_id"] == provider_id

    second = api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=rival_headers)
    assert second.status_code == 409
    assert second.json()["code"] == "BOOKING_ALREADY_ACCEPTED"

    assert api.get("/jobs/requests", headers=rival_headers).json()["requests"] == []


def test_accept_unknown_booking(api, approved_provider):
    headers, _ = approved_provider
    response = api.post("/jobs/accept", json={"requestId": "missing"}, headers=headers)
    assert response.status_code == 404
    assert response.json()["code"] == "BOOKING_NOT_FOUND"


def test_status_transitions_follow_lifecycle(api, client_headers, approved_provider):
    headers, _ = approved_provider
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)

    skip = api.post(
        "/jobs/update-status", json={"jobId": booking["id"], "status": "completed"}, headers=headers
    )
    assert skip.status_code == 409
    assert skip.json()["code"] == "INVALID_STATUS_TRANSITION"

    started = advance(api, headers, booking["id"], "in-progress")
    assert started["status"] == "in-progress"
    assert started["started_at"] is not None


def test_completion_splits_platform_fee(api, client_headers, admin_headers, approved_provider):
    headers, _ = approved_provider
    services = api.get("/services").json()["services"]
    nursing = next(s for s in services if s["title"] == "Nursing Care")
    updated = api.put(
        f"/admin/services/{nursing['id']}",
        json={"platformFeePercentage": 15},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    booking = create_request(api, client_headers, serviceType="Nursing Care", estimatedCost=200)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)

    completed = advance(api, headers, booking["id"], "in-progress", "completed")
    assert completed["platform_fee"] == 30
    assert completed["provider_payout"] == 170

    earnings = api.get("/provider/earnings", headers=headers).json()
    assert earnings["earnings"]["totalEarnings"] == 170
    assert earnings["earnings"]["completedJobs"] == 1


def test_only_assigned_provider_updates_job(api, client_headers, approved_provider, make_provider):
    headers, _ = approved_provider
    other_headers, _ = make_provider()
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)

    response = api.post(
        "/jobs/update-notes", json={"jobId": booking["id"], "notes": "hi"}, headers=other_headers
    )
    assert response.status_code == 403
    assert response.json()["code"] == "NOT_JOB_PROVIDER"

    response = api.post(
        "/jobs/update-notes",
        json={"jobId": booking["id"], "notes": "Bring BP monitor"},
        headers=headers,
    )
    assert response.json()["booking"]["provider_notes"] == "Bring BP monitor"


def test_rating_completed_booking_updates_provider(api, client_headers, completed_booking, db):
    booking_id, provider_id = completed_booking

    response = api.post(
        "/bookings/rate",
        json={"bookingId": booking_id, "rating": 4, "review": "Kind and punctual"},
        headers=client_headers,
    )
    assert response.status_code == 200
    assert response.json()["booking"]["user_rating"] == 4

    provider = db.query(Provider).filter(Provider.id == UUID(provider_id)).one()
    assert provider.rating == 4
    assert provider.total_reviews == 1

    bookings = api.get("/bookings/client", headers=client_headers).json()["bookings"]
    assert bookings[0]["provider"]["reviewCount"] == 1


def test_second_rating_rejected_and_unchanged(api, client_headers, completed_booking, db):
    booking_id, _ = completed_booking
    api.post("/bookings/rate", json={"bookingId": booking_id, "rating": 5}, headers=client_headers)

    response = api.post(
        "/bookings/rate", json={"bookingId": booking_id, "rating": 1}, headers=client_headers
    )
    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_RATED"
    assert db.query(Booking).filter(Booking.id == UUID(booking_id)).one().user_rating == 5


def test_rating_failures(api, client_headers, approved_provider, auth, db):
    headers, _ = approved_provider
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)

    not_done = api.post(
        "/bookings/rate", json={"bookingId": booking["id"], "rating": 5}, headers=client_headers
    )
    assert not_done.status_code == 409
    assert not_done.json()["code"] == "BOOKING_NOT_COMPLETED"

    stranger = bearer(auth.issue("other@example.com", role="client"))
    not_owner = api.post(
        "/bookings/rate", json={"bookingId": booking["id"], "rating": 5}, headers=stranger
    )
    assert not_owner.status_code == 403
    assert not_owner.json()["code"] == "NOT_BOOKING_OWNER"

    missing = api.post(
        "/bookings/rate",
        json={"bookingId": "00000000-0000-0000-0000-000000000000", "rating": 5},
        headers=client_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "BOOKING_NOT_FOUND"

    out_of_range = api.post(
        "/bookings/rate", json={"bookingId": booking["id"], "rating": 6}, headers=client_headers
    )
    assert out_of_range.status_code == 400

    stored = db.query(Booking).filter(Booking.id == UUID(booking["id"])).one()
    assert stored.user_rating is None
    assert stored.rated_at is None


def test_client_bookings_include_assigned_provider(api, client_headers, approved_provider):
    headers, provider_id = approved_provider
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)

    response = api.get("/bookings/client", headers=client_headers)
    assert response.status_code == 200, response.text
    listed = response.json()["bookings"][0]
    assert listed["status"] == "accepted"
    assert listed["provider"]["id"] == provider_id
    assert listed["provider"]["name"] == "Provider 1"
    assert listed["provider"]["reviewCount"] == 0


def test_provider_bookings_list(api, client_headers, completed_booking, approved_provider):
    headers, _ = approved_provider
    bookings = api.get("/bookings/provider", headers=headers).json()["bookings"]
    assert len(bookings) == 1
    assert bookings[0]["status"] == "completed"


def test_compute_payout():
    assert compute_payout(110, 10) == (11.0, 99.0)
    assert compute_payout(99.99, 12.5) == (12.5, 87.49)
    assert compute_payout(100, None) == (0.0, 100.0)


def test_check_transition_table():
    check_transition("accepted", "in-progress", PROVIDER_TRANSITIONS)
    with pytest.raises(ConflictError):
        check_transition("completed", "in-progress", PROVIDER_TRANSITIONS)
    with pytest.raises(ConflictError):
        check_transition("cancelled", "accepted", PROVIDER_TRANSITIONS)


@pytest.mark.parametrize(
    "service_type, specialty, skills, expected",
    [
        ("Nursing Care", "nursing", [], True),
        ("nursing", "Nursing Care", ["nursing"], True),
        ("Companionship", "Nursing Care", ["elder care"], False),
        ("", "Nursing Care", ["nursing"], False),
    ],
)
def test_job_matches(service_type, specialty, skills, expected):
    assert job_matches(service_type, specialty, skills) is expected


# ----------------------------------------------------------------------------
# Admin booking management
# ----------------------------------------------------------------------------


def approve(api, admin_headers, provider_id):
    response = api.post(
        "/admin/approve-provider", json={"providerId": provider_id}, headers=admin_headers
    )
    assert response.status_code == 200, response.text


def admin_post(api, admin_headers, path, **body):
    return api.post(path, json=body or None, headers=admin_headers)


def test_admin_creates_booking_for_client(api, client_headers, admin_headers, db):
    api.get("/bookings/client", headers=client_headers)
    client_id = str(db.query(Client).one().id)

    response = api.post(
        "/admin/bookings/create",
        json={**REQUEST, "clientId": client_id},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    booking = response.json()["booking"]
    assert booking["status"] == "pending"
    assert booking["client_id"] == client_id
    assert booking["created_by_admin"] is True

    listed = api.get("/bookings/client", headers=client_headers).json()["bookings"]
    assert [b["id"] for b in listed] == [booking["id"]]


def test_admin_create_requires_known_client(api, admin_headers, client_headers):
    response = api.post(
        "/admin/bookings/create",
        json={**REQUEST, "clientId": "00000000-0000-0000-0000-000000000000"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "CLIENT_NOT_FOUND"

    not_admin = api.post(
        "/admin/bookings/create", json={**REQUEST, "clientId": "x"}, headers=client_headers
    )
    assert not_admin.status_code == 403


def test_admin_removes_provider(api, client_headers, admin_headers, approved_provider, db):
    headers, provider_id = approved_provider
    booking = create_request(api, client_headers)
    api.post("/jobs/accept", json={"requestId": booking["id"]}, headers=headers)
    advance(api, headers, booking["id"], "in-progress")

    response = admin_post(api, admin_headers, f"/admin/booking/{booking['id']}/remove-provider")
    assert response.status_code == 200, response.text
    updated = response.json()["booking"]
    assert updated["status"] == "pending"
    assert updated["provider_id"] is None
    assert updated["previous_provider_id"] == provider_id
    assert updated["started_at"] is None

    board = api.get("/jobs/requests", headers=headers).json()["requests"]
    assert [r["id"] for r in board] == [booking["id"]]

    again = admin_post(api, admin_headers, f"/admin/booking/{booking['id']}/remove-provider")
    assert again.status_code == 400
    assert again.json()["code"] == "NO_PROVIDER_ASSIGNED"


def test_remove_provider_from_completed_booking(api, admin_headers, completed_booking):
    booking_id, _ = completed_booking
    response = admin_post(api, admin_headers, f"/admin/booking/{booking_id}/remove-provider")
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_admin_reassigns_booking(
    api, client_headers, admin_headers, approved_provider, make_provider
):
    _, first_id = approved_provider
    _, second_id = make_provider()
    approve(api, admin_headers, second_id)
    booking = create_request(api, client_headers)
    path = f"/admin/booking/{booking['id']}/reassign"

    assigned = admin_post(api, admin_headers, path, providerId=first_id)
    assert assigned.status_code == 200, assigned.text
    assert assigned.json()["booking"]["status"] == "accepted"
    assert assigned.json()["booking"]["provider_id"] == first_id
    assert assigned.json()["booking"]["reassigned_at"] is not None

    moved = admin_post(api, admin_headers, path, providerId=second_id)
    assert moved.status_code == 200, moved.text
    assert moved.json()["booking"]["provider_id"] == second_id
    assert moved.json()["booking"]["previous_provider_id"] == first_id

    same = admin_post(api, admin_headers, path, providerId=second_id)
    assert same.status_code == 409
    assert same.json()["code"] == "ALREADY_ASSIGNED"

    detail = api.get(f"/admin/booking/{booking['id']}", headers=admin_headers).json()["booking"]
    assert detail["client_name"] == "Asha"
    assert detail["provider"]["name"] == "Provider 2"


def test_reassign_rejects_unusable_providers(
    api, client_headers, admin_headers, completed_booking, make_provider
):
    booking = create_request(api, client_headers)
    path = f"/admin/booking/{booking['id']}/reassign"

    _, unapproved_id = make_provider()
    not_approved = admin_post(api, admin_headers, path, providerId=unapproved_id)
    assert not_approved.status_code == 400
    assert not_approved.json()["code"] == "PROVIDER_NOT_APPROVED"

    missing = admin_post(
        api, admin_headers, path, providerId="00000000-0000-0000-0000-000000000000"
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "PROVIDER_NOT_FOUND"

    done_id, _ = completed_booking
    approve(api, admin_headers, unapproved_id)
    finished = admin_post(
        api, admin_headers, f"/admin/booking/{done_id}/reassign", providerId=unapproved_id
    )
    assert finished.status_code == 409
    assert finished.json()["code"] == "INVALID_STATUS_TRANSITION"


def test_admin_booking_detail_unknown(api, admin_headers):
    response = api.get("/admin/booking/not-a-uuid", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "BOOKING_NOT_FOUND"


def test_admin_transition_tables():
    check_transition("accepted", "pending", ADMIN_UNASSIGN_TRANSITIONS)
    check_transition("accepted", "accepted", ADMIN_REASSIGN_TRANSITIONS)
    with pytest.raises(ConflictError):
        check_transition("pending", "pending", ADMIN_UNASSIGN_TRANSITIONS)
    with pytest.raises(ConflictError):
        check_transition("in-progress", "accepted", ADMIN_REASSIGN_TRANSITIONS)
