import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from libseat.main import create_app
from libseat.models import ReservationStatus
from tests.conftest import civil

ADMIN = {"X-User-Role": "admin"}


@pytest_asyncio.fixture
async def client(engine, test_settings, clock, seat_cache, library):
    app = create_app(test_settings, engine=engine, clock=clock, cache=seat_cache)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestSeatRoutes:
    """Seat map and seat administration"""

    @pytest.mark.asyncio
    async def test_list_seats(self, client, library):
        response = await client.get("/api/v1/seats", params={"zone_id": library.zone.id})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        statuses = {seat["seat_number"]: seat["display_status"] for seat in data["seats"]}
        assert statuses == {"A1": "free", "A2": "free", "A3": "free", "A4": "locked"}

    @pytest.mark.asyncio
    async def test_seat_availability(self, client, library, add_reservation):
        await add_reservation(library.seat.id, 2, civil(2026, 2, 10, 12, 0), civil(2026, 2, 10, 13, 0))

        response = await client.get(f"/api/v1/seats/{library.seat.id}/availability")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "limited"
        assert data["available_minutes"] == 105
        assert data["next_reservation"]["start_time"].startswith("2026-02-10T12:00:00")

    @pytest.mark.asyncio
    async def test_unknown_seat_is_404(self, client):
        response = await client.get("/api/v1/seats/999/availability")

        assert response.status_code == 404
        assert response.json()["error"] == "seat_not_found"

    @pytest.mark.asyncio
    async def test_timeline_rejects_bad_date(self, client, library):
        response = await client.get(
            f"/api/v1/seats/{library.seat.id}/reservations", params={"date": "yesterday"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_admin_disables_seat(self, client, library):
        denied = await client.put(f"/api/v1/seats/{library.seat.id}", json={"is_available": False})
        assert denied.status_code == 403

        response = await client.put(
            f"/api/v1/seats/{library.seat.id}", json={"is_available": False}, headers=ADMIN
        )
        assert response.status_code == 200
        assert response.json()["is_available"] is False

        seats = (await client.get("/api/v1/seats")).json()["seats"]
        assert next(s for s in seats if s["id"] == library.seat.id)["display_status"] == "locked"

        blocked = await client.post(
            "/api/v1/reservations", params={"user_id": 1}, json={"seat_id": library.seat.id}
        )
        assert blocked.status_code == 400
        assert blocked.json()["error"] == "seat_unavailable"

    @pytest.mark.asyncio
    async def test_delete_seat_with_history_is_refused(self, client, library, add_reservation):
        await add_reservation(
            library.seat.id, 1,
            civil(2026, 2, 9, 9, 0), civil(2026, 2, 9, 10, 0),
            status=ReservationStatus.COMPLETED,
        )

        refused = await client.delete(f"/api/v1/seats/{library.seat.id}", headers=ADMIN)
        assert refused.status_code == 400
        assert refused.json()["error"] == "seat_has_reservations"

        deleted = await client.delete(f"/api/v1/seats/{library.third_seat.id}", headers=ADMIN)
        assert deleted.status_code == 200


class TestZoneRoutes:

    @pytest.mark.asyncio
    async def test_list_and_get_zones(self, client, library):
        zones = (await client.get("/api/v1/zones")).json()
        assert [z["name"] for z in zones] == ["Basement", "Reading Room"]

        response = await client.get(f"/api/v1/zones/{library.zone.id}")
        assert response.json()["is_active"] is True

        missing = await client.get("/api/v1/zones/999")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_zone_maintenance_blocks_reservations(self, client, library):
        response = await client.put(
            f"/api/v1/zones/{library.zone.id}", json={"is_active": False}, headers=ADMIN
        )
        assert response.status_code == 200

        blocked = await client.post(
            "/api/v1/reservations", params={"user_id": 1}, json={"seat_id": library.seat.id}
        )
        assert blocked.status_code == 400
        assert blocked.json()["error"] == "zone_inactive"


class TestReservationRoutes:

    @pytest.mark.asyncio
    async def test_walk_in_end_to_end(self, client, clock, library):
        response = await client.post(
            "/api/v1/reservations",
            params={"user_id": 1},
            json={"seat_id": library.seat.id, "reservation_type": "walk_in"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["reservation"]["status"] == "pending"
        assert data["reservation"]["end_time"].startswith("2026-02-10T23:59:59.999")
        assert data["meta"]["is_limited"] is False
        reservation_id = data["reservation"]["id"]

        taken = await client.post(
            "/api/v1/reservations", params={"user_id": 2}, json={"seat_id": library.seat.id}
        )
        assert taken.status_code == 409
        assert taken.json() == {"error": "seat_occupied", "message": taken.json()["message"]}

        checkin = await client.post(f"/api/v1/reservations/{reservation_id}/checkin", params={"user_id": 1})
        assert checkin.status_code == 200
        assert checkin.json()["reservation"]["status"] == "active"

        clock.advance(minutes=90)
        finish = await client.post(f"/api/v1/reservations/{reservation_id}/finish", params={"user_id": 1})
        assert finish.status_code == 200
        assert finish.json()["reservation"]["status"] == "completed"
        assert finish.json()["reservation"]["end_time"].startswith("2026-02-10T11:30:00")

    @pytest.mark.asyncio
    async def test_advance_end_to_end(self, client, clock, library):
        clock.set(civil(2026, 2, 10, 21, 0))

        response = await client.post(
            "/api/v1/reservations",
            params={"user_id": 1},
            json={
                "seat_id": library.seat.id,
                "reservation_type": "advance",
                "start_time": "2026-02-11T09:00:00",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["meta"]["is_advance"] is True
        assert data["reservation"]["start_time"].startswith("2026-02-11T09:00:00")
        assert data["reservation"]["end_time"].startswith("2026-02-11T23:59:59.999")

    @pytest.mark.asyncio
    async def test_advance_before_opening_hour(self, client, library):
        response = await client.post(
            "/api/v1/reservations",
            params={"user_id": 1},
            json={"seat_id": library.seat.id, "reservation_type": "advance", "start_time": "2026-02-11T09:00:00"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "advance_window_closed"

    @pytest.mark.asyncio
    async def test_quota_is_429(self, client, library, add_reservation):
        for hour in (15, 17, 19):
            await add_reservation(library.other_seat.id, 1, civil(2026, 2, 10, hour, 0), civil(2026, 2, 10, hour, 30))

        response = await client.post(
            "/api/v1/reservations", params={"user_id": 1}, json={"seat_id": library.seat.id}
        )

        assert response.status_code == 429
        assert response.json()["error"] == "quota_exceeded"

    @pytest.mark.asyncio
    async def test_late_check_in_is_410(self, client, clock, library, add_reservation):
        reservation = await add_reservation(
            library.seat.id, 1, civil(2026, 2, 10, 9, 44), civil(2026, 2, 10, 12, 0)
        )

        response = await client.post(f"/api/v1/reservations/{reservation.id}/checkin", params={"user_id": 1})

        assert response.status_code == 410
        assert response.json()["error"] == "checkin_expired"

    @pytest.mark.asyncio
    async def test_cancel_adjust_and_delete(self, client, library, add_reservation):
        reservation = await add_reservation(
            library.seat.id, 1, civil(2026, 2, 10, 15, 0), civil(2026, 2, 10, 16, 0)
        )

        adjusted = await client.patch(
            f"/api/v1/reservations/{reservation.id}/adjust",
            params={"user_id": 1},
            json={"start_time": "2026-02-10T16:00:00", "end_time": "2026-02-10T17:00:00"},
        )
        assert adjusted.status_code == 200
        assert adjusted.json()["start_time"].startswith("2026-02-10T16:00:00")

        forbidden = await client.patch(f"/api/v1/reservations/{reservation.id}/cancel", params={"user_id": 2})
        assert forbidden.status_code == 403

        cancelled = await client.patch(f"/api/v1/reservations/{reservation.id}/cancel", params={"user_id": 1})
        assert cancelled.json()["reservation"]["status"] == "cancelled"

        again = await client.patch(f"/api/v1/reservations/{reservation.id}/cancel", params={"user_id": 1})
        assert again.status_code == 400
        assert again.json()["error"] == "invalid_transition"

        deleted = await client.delete(f"/api/v1/reservations/{reservation.id}", params={"user_id": 1})
        assert deleted.status_code == 200

        gone = await client.get(f"/api/v1/reservations/{reservation.id}", params={"user_id": 1})
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_list_reservations(self, client, library, add_reservation):
        await add_reservation(library.seat.id, 1, civil(2026, 2, 10, 15, 0), civil(2026, 2, 10, 16, 0))
        await add_reservation(library.other_seat.id, 2, civil(2026, 2, 10, 15, 0), civil(2026, 2, 10, 16, 0))

        mine = (await client.get("/api/v1/reservations", params={"user_id": 1})).json()
        assert mine["pagination"]["total"] == 1
        assert mine["reservations"][0]["seat"]["seat_number"] == "A1"
        assert mine["reservations"][0]["seat"]["zone"]["name"] == "Reading Room"

        everyone = (await client.get("/api/v1/reservations", params={"user_id": 1}, headers=ADMIN)).json()
        assert everyone["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_missing_user_id_is_422(self, client, library):
        response = await client.post("/api/v1/reservations", json={"seat_id": library.seat.id})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_malformed_start_time_is_422(self, client, library):
        response = await client.post(
            "/api/v1/reservations",
            params={"user_id": 1},
            json={"seat_id": library.seat.id, "reservation_type": "advance", "start_time": "tomorrow morning"},
        )
        assert response.status_code == 422


class TestAmbientRoutes:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["redis"] == "disabled"

    @pytest.mark.asyncio
    async def test_trace_id_is_echoed(self, client):
        response = await client.get("/", headers={"X-Trace-ID": "trace-123"})
        assert response.headers["X-Trace-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_metrics(self, client, library):
        await client.post("/api/v1/reservations", params={"user_id": 1}, json={"seat_id": library.seat.id})

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "reservations_created_total" in response.text
        assert "libseat_http_requests_total" in response.text
