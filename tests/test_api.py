"""
API round trips and error envelopes
"""

import pytest
from datetime import date, timedelta
from uuid import uuid4

from studyspace.core.security import create_access_token
from studyspace.models.reservation import ReservationStatus
from studyspace.services.next_available import local_today

from conftest import auth_headers, utc

API = "/api/v1"


@pytest.mark.integration
@pytest.mark.asyncio
class TestSeatEndpoints:

    async def test_requires_token(self, client, seats):
        response = await client.get(f"{API}/seats/")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTH_ERROR"

    async def test_rejects_bad_token(self, client, seats):
        response = await client.get(f"{API}/seats/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_list_by_pool(self, client, seats, test_user):
        response = await client.get(f"{API}/seats/", params={"pool": "full_day"}, headers=auth_headers(test_user))
        assert response.status_code == 200
        numbers = [seat["seat_number"] for seat in response.json()]
        assert numbers == list(range(1, 14))
        assert all(seat["pool"] == "full_day" for seat in response.json())

    async def test_grid(self, client, seats, test_user, make_reservation):
        await make_reservation(test_user, seats[4], utc(2025, 1, 15), utc(2025, 1, 16))

        response = await client.get(
            f"{API}/seats/grid",
            params={"as_of": "2025-01-15T06:30:00Z", "slot": "full"},
            headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        grid = response.json()
        assert grid[4]["status"] == "occupied"
        assert grid[4]["occupant_name"] == "Asha Verma"
        assert grid[0]["status"] == "available"
        assert grid[0]["occupant_name"] is None

    async def test_grid_unknown_slot(self, client, seats, test_user):
        response = await client.get(f"{API}/seats/grid", params={"slot": "evening"}, headers=auth_headers(test_user))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_grid_half_window(self, client, seats, test_user):
        response = await client.get(
            f"{API}/seats/grid", params={"start": "2025-01-15T00:00:00Z"}, headers=auth_headers(test_user)
        )
        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.asyncio
class TestAvailabilityEndpoints:

    async def test_check(self, client, seats, test_user, make_reservation):
        await make_reservation(test_user, seats[4], utc(2025, 1, 1), utc(2025, 2, 1), slot="day")
        headers = auth_headers(test_user)
        payload = {
            "seat_id": str(seats[4].id),
            "start_time": "2025-01-01T00:00:00Z",
            "end_time": "2025-02-01T00:00:00Z",
        }

        night = await client.post(f"{API}/availability/check", json={**payload, "slot": "night"}, headers=headers)
        full = await client.post(f"{API}/availability/check", json={**payload, "slot": "full"}, headers=headers)

        assert night.json()["available"] is True
        assert full.json()["available"] is False
        assert full.json()["conflicting_reservation"]["slot"] == "day"

    async def test_check_inverted_interval(self, client, seats, test_user):
        response = await client.post(
            f"{API}/availability/check",
            json={
                "seat_id": str(seats[0].id),
                "start_time": "2025-02-01T00:00:00Z",
                "end_time": "2025-01-01T00:00:00Z",
                "slot": "full",
            },
            headers=auth_headers(test_user)
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "end_time"}

    async def test_next_available(self, client, seats, test_user, make_reservation):
        await make_reservation(test_user, seats[8], membership=(date(2025, 2, 10), date(2025, 3, 10)))
        await make_reservation(test_user, seats[8], membership=(date(2025, 3, 5), date(2025, 4, 5)))

        response = await client.get(
            f"{API}/availability/next",
            params={"seat_number": 9, "duration_months": 1, "start": "2025-03-01"},
            headers=auth_headers(test_user)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["is_available_now"] is False
        assert body["next_available_date"] == "2025-04-06"
        assert body["conflicting_reservation_end"] == "2025-04-05"

    async def test_next_available_bad_duration(self, client, seats, test_user):
        response = await client.get(
            f"{API}/availability/next",
            params={"seat_number": 9, "duration_months": 13},
            headers=auth_headers(test_user)
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"field": "duration_months"}


@pytest.mark.integration
@pytest.mark.asyncio
class TestReservationEndpoints:

    async def test_booking_then_waitlist(self, client, seats, test_user, other_user):
        payload = {
            "seat_id": str(seats[0].id),
            "start_time": "2025-01-10T04:00:00Z",
            "end_time": "2025-01-10T12:00:00Z",
            "slot": "full",
        }

        first = await client.post(f"{API}/reservations/", json=payload, headers=auth_headers(test_user))
        second = await client.post(f"{API}/reservations/", json=payload, headers=auth_headers(other_user))

        assert first.status_code == 201
        assert first.json()["outcome"] == "reserved"
        assert first.json()["reservation"]["status"] == "pending"
        assert second.json()["outcome"] == "waitlisted"
        assert second.json()["waitlist_entry_id"] is not None
        assert second.json()["conflicting_reservation"]["id"] == first.json()["reservation"]["id"]

    async def test_booking_for_unknown_subject(self, client, seats):
        token = create_access_token({"sub": str(uuid4()), "role": "user"})
        response = await client.post(
            f"{API}/reservations/",
            json={
                "seat_id": str(seats[0].id),
                "start_time": "2025-01-10T04:00:00Z",
                "end_time": "2025-01-10T12:00:00Z",
                "slot": "day",
            },
            headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_membership(self, client, seats, test_user):
        start = local_today() + timedelta(days=1)
        response = await client.post(
            f"{API}/reservations/memberships",
            json={"category": "fixed", "duration_months": 2, "seat_number": 3, "start_date": start.isoformat()},
            headers=auth_headers(test_user)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["outcome"] == "reserved"
        assert body["reservation"]["membership_start_date"] == start.isoformat()
        assert body["reservation"]["duration_months"] == 2

    async def test_get_own_reservation(self, client, seats, test_user, other_user, make_reservation):
        reservation = await make_reservation(test_user, seats[0], utc(2025, 1, 1), utc(2025, 1, 2))

        own = await client.get(f"{API}/reservations/{reservation.id}", headers=auth_headers(test_user))
        foreign = await client.get(f"{API}/reservations/{reservation.id}", headers=auth_headers(other_user))

        assert own.status_code == 200
        assert own.json()["id"] == str(reservation.id)
        assert foreign.status_code == 404
        assert foreign.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.integration
@pytest.mark.asyncio
class TestWaitlistEndpoints:

    async def test_join_and_list(self, client, seats, test_user):
        headers = auth_headers(test_user)
        created = await client.post(
            f"{API}/waitlist/", json={"seat_id": str(seats[1].id), "slot": "night"}, headers=headers
        )
        listed = await client.get(f"{API}/waitlist/", params={"seat_id": str(seats[1].id)}, headers=headers)

        assert created.status_code == 201
        assert [entry["id"] for entry in listed.json()] == [created.json()["id"]]

    async def test_join_unknown_seat(self, client, seats, test_user):
        response = await client.post(
            f"{API}/waitlist/", json={"seat_id": str(uuid4()), "slot": "day"}, headers=auth_headers(test_user)
        )
        assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestAdminEndpoints:

    async def test_requires_admin_role(self, client, seats, test_user, make_reservation):
        reservation = await make_reservation(
            test_user, seats[0], utc(2025, 1, 1), utc(2025, 1, 2), status=ReservationStatus.PENDING
        )
        response = await client.post(
            f"{API}/admin/reservations/{reservation.id}/approve", headers=auth_headers(test_user)
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_FORBIDDEN"

    async def test_approve_then_reject_conflicts(self, client, seats, test_user, test_admin, make_reservation):
        reservation = await make_reservation(
            test_user, seats[0], utc(2025, 1, 1), utc(2025, 1, 2), status=ReservationStatus.PENDING
        )
        headers = auth_headers(test_admin)

        approved = await client.post(f"{API}/admin/reservations/{reservation.id}/approve", headers=headers)
        rejected = await client.post(
            f"{API}/admin/reservations/{reservation.id}/reject", json={"notes": "late"}, headers=headers
        )

        assert approved.status_code == 200
        assert approved.json()["status"] == "confirmed"
        assert approved.json()["payment_status"] == "paid"
        assert rejected.status_code == 409
        assert rejected.json()["error"]["code"] == "INVALID_TRANSITION"

    async def test_timeout_job(self, client, seats, test_user, test_admin, make_reservation):
        await make_reservation(
            test_user, seats[0], utc(2025, 1, 1), utc(2025, 1, 2), status=ReservationStatus.PENDING,
            created_at=utc(2025, 1, 1)
        )
        headers = auth_headers(test_admin)

        first = await client.post(f"{API}/admin/jobs/timeout-pending", headers=headers)
        second = await client.post(f"{API}/admin/jobs/timeout-pending", headers=headers)

        assert first.json() == {"timed_out": 1}
        assert second.json() == {"timed_out": 0}

    async def test_status_sync_and_snapshot(self, client, seats, test_user, test_admin):
        synced = await client.post(f"{API}/admin/seats/status/sync", headers=auth_headers(test_admin))
        snapshot = await client.get(f"{API}/seats/status", headers=auth_headers(test_user))

        assert synced.status_code == 200
        assert len(synced.json()) == len(seats)
        assert [(row["seat_number"], row["status"]) for row in snapshot.json()] == [
            (row["seat_number"], row["status"]) for row in synced.json()
        ]

    async def test_dequeue(self, client, seats, test_user, test_admin):
        created = await client.post(
            f"{API}/waitlist/", json={"seat_id": str(seats[1].id), "slot": "day"}, headers=auth_headers(test_user)
        )
        entry_id = created.json()["id"]

        removed = await client.delete(f"{API}/admin/waitlist/{entry_id}", headers=auth_headers(test_admin))
        missing = await client.delete(f"{API}/admin/waitlist/{entry_id}", headers=auth_headers(test_admin))

        assert removed.status_code == 204
        assert missing.status_code == 404

    async def test_expiring_memberships(self, client, seats, test_user, test_admin, make_reservation):
        today = local_today()
        await make_reservation(test_user, seats[0], membership=(today - timedelta(days=25), today + timedelta(days=2)))

        response = await client.get(
            f"{API}/admin/memberships/expiring", params={"within_days": 30}, headers=auth_headers(test_admin)
        )

        assert response.status_code == 200
        [item] = response.json()
        assert item["seat_number"] == 1
        assert item["band"] == "critical"
        assert item["days_left"] == 2


@pytest.mark.integration
@pytest.mark.asyncio
class TestHealth:

    async def test_liveness(self, client):
        response = await client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    async def test_readiness_with_local_locks(self, client):
        response = await client.get(f"{API}/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True}

    async def test_unknown_route_envelope(self, client):
        response = await client.get(f"{API}/nowhere")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
