# ================================
# HTTP API TESTS (test_api.py)
# ================================

from datetime import timedelta

import pytest

from groupstays.models.enums import UserRole
from groupstays.utils import utc_now

ADMIN_BASE = "/api/v1/admin/group-stays"
OWNER_BASE = "/api/v1/owner/group-stays"


@pytest.fixture
def listed(make_booking, open_window, owner, make_property):
    """An open group stay and an eligible property of the default owner"""
    booking = make_booking()
    open_window(booking, notes="Prefer lake view")
    prop = make_property(owner)
    return booking, prop


def claim_body(booking, prop, price="100000", **extra):
    body = {"group_booking_id": booking.id, "property_id": prop.id, "offered_price_per_night": price}
    body.update(extra)
    return body


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Cache-Control"] == "no-store"
        assert "X-Process-Time" in response.headers


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get(f"{ADMIN_BASE}/assignments")
        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_FAILED"

    def test_invalid_token(self, client):
        response = client.get(f"{ADMIN_BASE}/assignments", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_inactive_user(self, client, make_user, auth_headers):
        suspended = make_user(UserRole.ADMIN, is_active=False)
        response = client.get(f"{ADMIN_BASE}/assignments", headers=auth_headers(suspended))
        assert response.status_code == 401

    def test_owner_cannot_use_admin_routes(self, client, owner, auth_headers):
        response = client.get(f"{ADMIN_BASE}/assignments", headers=auth_headers(owner))
        assert response.status_code == 403
        assert response.json()["error_code"] == "ACCESS_DENIED"

    def test_admin_cannot_use_owner_routes(self, client, admin, auth_headers):
        response = client.get(f"{OWNER_BASE}/claims/available", headers=auth_headers(admin))
        assert response.status_code == 403


class TestAdminRoutes:

    def test_open_update_and_close_window(self, client, admin, auth_headers, make_booking):
        booking = make_booking()
        headers = auth_headers(admin)
        deadline = (utc_now() + timedelta(days=2)).isoformat()

        opened = client.patch(
            f"{ADMIN_BASE}/{booking.id}/open-for-claims",
            json={"open": True, "deadline": deadline, "min_discount_percent": 5},
            headers=headers,
        )
        assert opened.status_code == 200
        body = opened.json()
        assert body["action"] == "OPENED_FOR_CLAIMS"
        assert body["booking"]["is_open_for_claims"] is True
        assert body["window"]["min_discount_percent"] == 5
        assert body["window"]["version"] == 1

        updated = client.patch(
            f"{ADMIN_BASE}/{booking.id}/open-for-claims",
            json={"open": True, "notes": "Breakfast included"},
            headers=headers,
        )
        assert updated.json()["action"] == "UPDATED_CLAIMS_SETTINGS"
        assert updated.json()["window"]["min_discount_percent"] == 5
        assert updated.json()["window"]["notes"] == "Breakfast included"

        closed = client.patch(
            f"{ADMIN_BASE}/{booking.id}/open-for-claims",
            json={"open": False, "reason_code": "NO_VALID_OFFERS"},
            headers=headers,
        )
        assert closed.status_code == 200
        assert closed.json()["action"] == "CLOSED_FOR_CLAIMS"
        assert closed.json()["booking"]["is_open_for_claims"] is False

    def test_close_without_reason_is_rejected(self, client, admin, auth_headers, make_booking, open_window):
        booking = make_booking()
        open_window(booking)
        response = client.patch(
            f"{ADMIN_BASE}/{booking.id}/open-for-claims", json={"open": False}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    def test_non_numeric_booking_id(self, client, admin, auth_headers):
        response = client.get(f"{ADMIN_BASE}/abc/claims", headers=auth_headers(admin))
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_booking(self, client, admin, auth_headers):
        response = client.get(f"{ADMIN_BASE}/4242/claims", headers=auth_headers(admin))
        assert response.status_code == 404

    def test_invalid_body_lists_field_errors(self, client, admin, auth_headers, make_booking):
        booking = make_booking()
        response = client.patch(
            f"{ADMIN_BASE}/{booking.id}/open-for-claims",
            json={"open": True, "min_hotel_star": 9},
            headers=auth_headers(admin),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert any("min_hotel_star" in error["loc"] for error in body["errors"])

    def test_review_and_accept_flow(self, client, admin, owner, auth_headers, listed, make_user, make_property, submit):
        booking, prop = listed
        rival = make_user()
        rival_prop = make_property(rival, title="Lake Hotel")
        own_claim = submit(owner, booking, prop, price="100000")
        submit(rival, booking, rival_prop, price="90000")
        headers = auth_headers(admin)

        review = client.get(f"{ADMIN_BASE}/{booking.id}/claims", headers=headers)
        assert review.status_code == 200
        body = review.json()
        assert len(body["claims"]) == 2
        assert body["shortlist"]["highest"] == own_claim.id
        assert body["claims"][0]["figures"]["nights"] == 3

        started = client.post(f"{ADMIN_BASE}/{booking.id}/claims/start-review", headers=headers)
        assert started.status_code == 200
        assert started.json()["status"] == "REVIEWING"

        accepted = client.post(f"{ADMIN_BASE}/claims/{own_claim.id}/accept", headers=headers)
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "ACCEPTED"

        again = client.post(f"{ADMIN_BASE}/claims/{own_claim.id}/accept", headers=headers)
        assert again.status_code == 409

        audits = client.get(f"{ADMIN_BASE}/{booking.id}/audits", headers=headers)
        assert audits.json()["items"][0]["action"] == "CLAIM_ACCEPTED"

    def test_expire_windows_endpoint(self, client, admin, auth_headers, make_booking, expire_window):
        expire_window(make_booking())
        expire_window(make_booking(), days_ago=2)

        response = client.post(f"{ADMIN_BASE}/expire-windows", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json() == {"closed": 1}

    def test_list_assignments(self, client, admin, auth_headers, make_booking):
        make_booking()
        make_booking()
        response = client.get(f"{ADMIN_BASE}/assignments", params={"page_size": 1}, headers=auth_headers(admin))
        body = response.json()
        assert body["total"] == 2
        assert len(body["items"]) == 1


class TestOwnerRoutes:

    def test_available_then_claim(self, client, owner, auth_headers, listed):
        booking, prop = listed
        headers = auth_headers(owner)

        available = client.get(f"{OWNER_BASE}/claims/available", headers=headers)
        assert available.status_code == 200
        item = available.json()["items"][0]
        assert item["booking"]["id"] == booking.id
        assert item["notes"] == "Prefer lake view"
        assert item["has_owner_claim"] is False

        created = client.post(f"{OWNER_BASE}/claims", json=claim_body(booking, prop), headers=headers)
        assert created.status_code == 201
        assert created.json()["total_amount"] == 1500000.0
        assert created.json()["status"] == "PENDING"

        available = client.get(f"{OWNER_BASE}/claims/available", headers=headers)
        assert available.json()["items"][0]["has_owner_claim"] is True

    def test_duplicate_claim_conflict(self, client, owner, auth_headers, listed):
        booking, prop = listed
        headers = auth_headers(owner)
        client.post(f"{OWNER_BASE}/claims", json=claim_body(booking, prop), headers=headers)

        response = client.post(f"{OWNER_BASE}/claims", json=claim_body(booking, prop, "95000"), headers=headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_CLAIM"

    def test_negative_price_is_rejected(self, client, owner, auth_headers, listed):
        booking, prop = listed
        response = client.post(
            f"{OWNER_BASE}/claims", json=claim_body(booking, prop, "-5"), headers=auth_headers(owner)
        )
        assert response.status_code == 400
        assert response.json()["errors"]

    def test_my_claims_and_withdraw(self, client, owner, auth_headers, listed, submit):
        booking, prop = listed
        claim = submit(owner, booking, prop)
        headers = auth_headers(owner)

        mine = client.get(f"{OWNER_BASE}/claims/my-claims", headers=headers)
        assert [c["id"] for c in mine.json()["items"]] == [claim.id]

        withdrawn = client.post(f"{OWNER_BASE}/claims/{claim.id}/withdraw", headers=headers)
        assert withdrawn.status_code == 200
        assert withdrawn.json()["status"] == "WITHDRAWN"

        filtered = client.get(f"{OWNER_BASE}/claims/my-claims", params={"status": "PENDING"}, headers=headers)
        assert filtered.json()["total"] == 0

    def test_withdraw_foreign_claim(self, client, owner, make_user, auth_headers, listed, submit):
        booking, prop = listed
        claim = submit(owner, booking, prop)
        stranger = make_user()
        response = client.post(f"{OWNER_BASE}/claims/{claim.id}/withdraw", headers=auth_headers(stranger))
        assert response.status_code == 404

    def test_message_to_assigned_customer(self, client, owner, auth_headers, make_booking, make_property):
        make_property(owner)
        booking = make_booking(assigned_owner_id=owner.id)

        response = client.post(
            f"{OWNER_BASE}/{booking.id}/message",
            json={"message": "Parking is free for the bus", "message_type": "Check-in Instructions"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 200
        assert response.json()["id"] == booking.id

    def test_message_with_unknown_type(self, client, owner, auth_headers, make_booking, make_property):
        make_property(owner)
        booking = make_booking(assigned_owner_id=owner.id)
        response = client.post(
            f"{OWNER_BASE}/{booking.id}/message",
            json={"message": "Hello", "message_type": "Spam"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 400
