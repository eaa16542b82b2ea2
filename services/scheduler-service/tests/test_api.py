"""HTTP surface: /api/hosts, /api/slots, /api/book, /health."""

import pytest
from fastapi.testclient import TestClient

from app.booking_log import InMemoryBookingLog
from app.calendar_provider import MemoryCalendarProvider
from app.cursor_store import MemoryCursorStore
from app.event_details import TemplateDetailsGenerator
from app.hosts import HostRegistry
from app.main import create_app
from shared.rabbitmq import RabbitPublisher

from helpers import utc


def make_client(hosts, provider=None):
    provider = provider or MemoryCalendarProvider()
    app = create_app(
        registry=HostRegistry(hosts),
        provider=provider,
        booking_log=InMemoryBookingLog(),
        cursor_store=MemoryCursorStore(),
        details_generator=TemplateDetailsGenerator(),
        publisher=RabbitPublisher(None, "scheduler-service"),
    )
    return TestClient(app), provider


def book_body(start: str, guest: str = "Grace"):
    return {
        "startTime": start,
        "guestName": guest,
        "guestEmail": f"{guest.lower()}@guests.example.com",
        "topic": "Compilers",
    }


@pytest.fixture
def pair(alice, bob):
    return make_client([alice, bob])


class TestHosts:
    def test_statuses_in_configured_order(self, alice, offline, bob):
        client, _ = make_client([alice, offline, bob])

        resp = client.get("/api/hosts")

        assert resp.status_code == 200
        assert resp.json() == [
            {"id": "a", "name": "Alice", "email": "alice@example.com", "connected": True},
            {"id": "x", "name": "Xavier", "email": "xavier@example.com", "connected": False},
            {"id": "b", "name": "Bob", "email": "bob@example.com", "connected": True},
        ]

    def test_credentials_are_not_exposed(self, pair):
        client, _ = pair
        assert "token-a" not in client.get("/api/hosts").text


class TestSlots:
    def test_scenario_one_busy_host(self, pair):
        client, provider = pair
        provider.add_busy("a", utc("2024-06-10", 11), utc("2024-06-10", 12))

        resp = client.get("/api/slots", params={"date": "2024-06-10"})

        assert resp.status_code == 200
        assert resp.json() == [{"startTime": f"2024-06-10T{h:02d}:00:00Z"} for h in range(9, 17)]

    def test_no_connected_hosts(self, offline):
        client, _ = make_client([offline])

        resp = client.get("/api/slots", params={"date": "2024-06-10"})

        assert resp.status_code == 200
        assert resp.json() == []

    def test_missing_date(self, pair):
        client, _ = pair
        assert client.get("/api/slots").status_code == 422

    def test_bad_date(self, pair):
        client, _ = pair
        assert client.get("/api/slots", params={"date": "10/06/2024"}).status_code == 422

    def test_provider_unavailable(self, pair):
        client, provider = pair
        provider.failing_hosts.add("a")

        resp = client.get("/api/slots", params={"date": "2024-06-10"})

        assert resp.status_code == 503
        assert resp.json()["error"] == "ProviderUnavailable"


class TestBook:
    def test_scenario_assigns_free_host(self, pair):
        client, provider = pair
        provider.add_busy("a", utc("2024-06-10", 11), utc("2024-06-10", 12))

        resp = client.post("/api/book", json=book_body("2024-06-10T11:00:00.000Z"))

        assert resp.status_code == 201
        data = resp.json()
        assert data["assignedHost"] == {"id": "b", "name": "Bob", "email": "bob@example.com"}
        assert data["startTime"] == "2024-06-10T11:00:00Z"
        assert data["guestName"] == "Grace"
        assert data["guestEmail"] == "grace@guests.example.com"
        assert data["topic"] == "Compilers"
        assert data["bookingId"]
        assert data["meetingLink"].startswith("https://meet.example.com/")

    def test_booked_slot_disappears_for_single_host(self, alice):
        client, _ = make_client([alice])

        client.post("/api/book", json=book_body("2024-06-10T10:00:00Z"))
        starts = [s["startTime"] for s in client.get("/api/slots", params={"date": "2024-06-10"}).json()]

        assert "2024-06-10T10:00:00Z" not in starts
        assert "2024-06-10T11:00:00Z" in starts

    def test_rotates_between_hosts(self, pair):
        client, _ = pair

        first = client.post("/api/book", json=book_body("2024-06-10T10:00:00Z", "Ann")).json()
        second = client.post("/api/book", json=book_body("2024-06-10T10:00:00Z", "Ben")).json()

        assert first["assignedHost"]["id"] != second["assignedHost"]["id"]

    def test_conflict_when_all_busy(self, pair):
        client, provider = pair
        provider.add_busy("a", utc("2024-06-10", 11), utc("2024-06-10", 12))
        provider.add_busy("b", utc("2024-06-10", 11), utc("2024-06-10", 12))

        resp = client.post("/api/book", json=book_body("2024-06-10T11:00:00Z"))

        assert resp.status_code == 409
        assert resp.json()["error"] == "SlotUnavailable"

    def test_no_hosts_connected(self, offline):
        client, _ = make_client([offline])

        resp = client.post("/api/book", json=book_body("2024-06-10T11:00:00Z"))

        assert resp.status_code == 503
        assert resp.json() == {"detail": "No hosts have connected their calendars.", "error": "NoHostsConnected"}

    def test_event_creation_failure(self, pair):
        client, provider = pair
        provider.fail_event_creation = True

        resp = client.post("/api/book", json=book_body("2024-06-10T11:00:00Z"))

        assert resp.status_code == 502
        assert resp.json()["error"] == "EventCreationFailed"

    def test_unrecorded_booking_reports_event_id(self, alice):
        class BrokenLog(InMemoryBookingLog):
            async def append(self, booking):
                raise RuntimeError("database is down")

        provider = MemoryCalendarProvider()
        app = create_app(
            registry=HostRegistry([alice]),
            provider=provider,
            booking_log=BrokenLog(),
            cursor_store=MemoryCursorStore(),
            details_generator=TemplateDetailsGenerator(),
            publisher=RabbitPublisher(None, "scheduler-service"),
        )

        resp = TestClient(app).post("/api/book", json=book_body("2024-06-10T11:00:00Z"))

        _, _, created = provider.events[0]
        assert resp.status_code == 500
        assert resp.json()["error"] == "BookingRecordFailed"
        assert created.event_id in resp.json()["detail"]

    def test_invalid_body(self, pair):
        client, _ = pair
        body = book_body("2024-06-10T11:00:00Z")
        del body["guestName"]

        assert client.post("/api/book", json=body).status_code == 422

    def test_offset_start_time_is_normalized(self, pair):
        client, _ = pair

        resp = client.post("/api/book", json=book_body("2024-06-10T13:00:00+02:00"))

        assert resp.json()["startTime"] == "2024-06-10T11:00:00Z"


class TestSystem:
    def test_health(self, pair):
        client, _ = pair
        assert client.get("/health").json() == {"status": "ok", "service": "scheduler-service", "events_enabled": False}

    def test_request_id_is_echoed(self, pair):
        client, _ = pair
        resp = client.get("/api/hosts", headers={"X-Request-Id": "req-42"})
        assert resp.headers["X-Request-Id"] == "req-42"

    def test_request_id_is_generated(self, pair):
        client, _ = pair
        assert client.get("/api/hosts").headers["X-Request-Id"]
