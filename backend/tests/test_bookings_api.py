"""
Tests for booking endpoints: submission, availability, staff listing and
status changes.
"""

import pytest
from httpx import AsyncClient

from studio_booking.main import app
from studio_booking.services.interfaces.memory_rate_limit import InMemoryRateLimiter
from studio_booking.services.strategy_factory import get_rate_limiter


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, booking_payload, future_day):
    """A free slot is admitted as pending."""
    response = await client.post("/api/bookings", json=booking_payload())
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["type"] == "studio"
    assert data["date"] == future_day.isoformat()
    assert data["start_time"].startswith("10:00")
    assert data["end_time"].startswith("12:00")


@pytest.mark.asyncio
async def test_overlapping_booking_conflicts(client: AsyncClient, booking_payload):
    await client.post("/api/bookings", json=booking_payload("10:00", "12:00"))

    response = await client.post("/api/bookings", json=booking_payload("11:00", "13:00"))
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "Time slot already booked"
    assert data["conflicts"] == [{"start_time": "10:00", "end_time": "12:00"}]


@pytest.mark.asyncio
async def test_adjacent_booking_is_admitted(client: AsyncClient, booking_payload):
    first = await client.post("/api/bookings", json=booking_payload("10:00", "12:00"))
    second = await client.post("/api/bookings", json=booking_payload("12:00", "13:00"))
    assert first.status_code == 201
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_end_before_start_rejected(client: AsyncClient, booking_payload):
    response = await client.post("/api/bookings", json=booking_payload("14:00", "13:00"))
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation error"
    assert data["details"][0]["field"] == "end_time"


@pytest.mark.asyncio
async def test_past_date_rejected(client: AsyncClient, booking_payload):
    response = await client.post(
        "/api/bookings",
        json=booking_payload(date="2020-01-01T12:00:00+00:00"),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_outside_operating_hours_rejected(client: AsyncClient, booking_payload):
    response = await client.post("/api/bookings", json=booking_payload("07:00", "09:00"))
    assert response.status_code == 400


@pytest.mark.parametrize("overrides", [
    {"type": "boardroom"},
    {"email": "not-an-email"},
    {"phone": "abc123"},
    {"start_time": "25:00"},
    {"name": ""},
])
@pytest.mark.asyncio
async def test_malformed_fields_rejected(client: AsyncClient, booking_payload, overrides):
    response = await client.post("/api/bookings", json=booking_payload(**overrides))
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation error"
    assert data["details"]


@pytest.mark.asyncio
async def test_malformed_json_rejected(client: AsyncClient):
    response = await client.post(
        "/api/bookings",
        content="not json at all",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_contact_details_are_sanitized(client: AsyncClient, booking_payload):
    response = await client.post("/api/bookings", json=booking_payload(
        name="  Jane    <b>Doe</b> ",
        email="Jane@Example.COM",
        phone="+1 555 123 4567",
        message="<script>alert(1)</script> onclick=steal() javascript:void(0)",
    ))
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Jane bDoe/b"
    assert data["email"] == "jane@example.com"
    assert data["phone"] == "+15551234567"
    assert "<" not in data["message"] and ">" not in data["message"]
    assert "javascript:" not in data["message"].lower()
    assert "onclick=" not in data["message"].lower()


@pytest.mark.asyncio
async def test_submissions_are_rate_limited(client: AsyncClient, booking_payload):
    tight = InMemoryRateLimiter(max_requests=2, window_seconds=900)
    app.dependency_overrides[get_rate_limiter] = lambda: tight

    statuses = []
    for start, end in [("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00")]:
        response = await client.post("/api/bookings", json=booking_payload(start, end))
        statuses.append(response.status_code)

    assert statuses == [201, 201, 429]
    assert response.json() == {"error": "Too Many Requests", "message": "Rate limit of 2 requests exceeded"}
    assert int(response.headers["Retry-After"]) > 0
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "0"


@pytest.mark.asyncio
async def test_rate_limit_is_per_client_ip(client: AsyncClient, booking_payload):
    tight = InMemoryRateLimiter(max_requests=1, window_seconds=900)
    app.dependency_overrides[get_rate_limiter] = lambda: tight

    first = await client.post("/api/bookings", json=booking_payload("09:00", "10:00"),
                              headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
    second = await client.post("/api/bookings", json=booking_payload("10:00", "11:00"),
                               headers={"X-Forwarded-For": "10.0.0.2"})
    third = await client.post("/api/bookings", json=booking_payload("11:00", "12:00"),
                              headers={"X-Forwarded-For": "10.0.0.1"})

    assert (first.status_code, second.status_code, third.status_code) == (201, 201, 429)


@pytest.mark.asyncio
async def test_availability_reflects_bookings(client: AsyncClient, booking_payload, future_day):
    await client.post("/api/bookings", json=booking_payload("10:00", "12:00"))

    response = await client.get(f"/api/bookings/availability?date={future_day}&type=studio")
    assert response.status_code == 200
    data = response.json()
    assert data["unavailableSlots"] == ["10:00", "11:00"]
    assert "12:00" in data["availableSlots"]
    assert len(data["availableSlots"]) + len(data["unavailableSlots"]) == 9

    other = await client.get(f"/api/bookings/availability?date={future_day}&type=coworking")
    assert other.json()["unavailableSlots"] == []


@pytest.mark.asyncio
async def test_availability_requires_date_and_type(client: AsyncClient, future_day):
    missing_type = await client.get(f"/api/bookings/availability?date={future_day}")
    missing_both = await client.get("/api/bookings/availability")
    bad_type = await client.get(f"/api/bookings/availability?date={future_day}&type=boardroom")

    assert missing_type.status_code == 400
    assert missing_type.json()["details"] == [{"field": "type", "message": "type is required"}]
    assert missing_both.status_code == 400
    assert bad_type.status_code == 400


@pytest.mark.asyncio
async def test_list_requires_staff(client: AsyncClient, user_headers):
    anonymous = await client.get("/api/bookings")
    member = await client.get("/api/bookings", headers=user_headers)

    assert anonymous.status_code == 401
    assert anonymous.json() == {"error": "Unauthorized"}
    assert member.status_code == 403
    assert member.json() == {"error": "Forbidden"}


@pytest.mark.asyncio
async def test_list_paginates(client: AsyncClient, admin_headers, booking_payload):
    for start, end in [("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00")]:
        await client.post("/api/bookings", json=booking_payload(start, end))

    page1 = (await client.get("/api/bookings?limit=2", headers=admin_headers)).json()
    page2 = (await client.get("/api/bookings?limit=2&offset=2", headers=admin_headers)).json()

    assert page1["total"] == 3
    assert len(page1["bookings"]) == 2
    assert (page1["page"], page1["totalPages"], page1["hasNext"], page1["hasPrev"]) == (1, 2, True, False)
    assert len(page2["bookings"]) == 1
    assert (page2["page"], page2["hasNext"], page2["hasPrev"]) == (2, False, True)

    ids = {b["id"] for b in page1["bookings"]} | {b["id"] for b in page2["bookings"]}
    assert len(ids) == 3


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, moderator_headers, booking_payload, future_day):
    await client.post("/api/bookings", json=booking_payload("09:00", "10:00"))
    created = await client.post("/api/bookings", json=booking_payload("09:00", "10:00", type="coworking"))
    await client.post(
        "/api/bookings/confirm",
        json={"bookingId": created.json()["id"], "status": "confirmed"},
        headers=moderator_headers,
    )

    coworking = (await client.get("/api/bookings?type=coworking", headers=moderator_headers)).json()
    confirmed = (await client.get("/api/bookings?status=confirmed", headers=moderator_headers)).json()
    other_day = (await client.get("/api/bookings?date=2020-01-01", headers=moderator_headers)).json()
    same_day = (await client.get(f"/api/bookings?date={future_day}", headers=moderator_headers)).json()

    assert coworking["total"] == 1
    assert confirmed["total"] == 1
    assert confirmed["bookings"][0]["id"] == created.json()["id"]
    assert other_day["total"] == 0
    assert same_day["total"] == 2


@pytest.mark.asyncio
async def test_list_rejects_out_of_range_limit(client: AsyncClient, admin_headers):
    response = await client.get("/api/bookings?limit=500", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_confirm_then_cancel(client: AsyncClient, admin_headers, booking_payload):
    booking_id = (await client.post("/api/bookings", json=booking_payload())).json()["id"]

    confirmed = await client.post(
        "/api/bookings/confirm",
        json={"bookingId": booking_id, "status": "confirmed"},
        headers=admin_headers,
    )
    cancelled = await client.post(
        "/api/bookings/confirm",
        json={"bookingId": booking_id, "status": "cancelled"},
        headers=admin_headers,
    )
    revived = await client.post(
        "/api/bookings/confirm",
        json={"bookingId": booking_id, "status": "confirmed"},
        headers=admin_headers,
    )

    assert confirmed.status_code == 200 and confirmed.json()["status"] == "confirmed"
    assert cancelled.status_code == 200 and cancelled.json()["status"] == "cancelled"
    assert revived.status_code == 400
    assert revived.json()["error"] == "Invalid status transition"


@pytest.mark.asyncio
async def test_cancellation_frees_the_slot(client: AsyncClient, admin_headers, booking_payload, future_day):
    booking_id = (await client.post("/api/bookings", json=booking_payload())).json()["id"]
    assert (await client.post("/api/bookings", json=booking_payload())).status_code == 409

    await client.post(
        "/api/bookings/confirm",
        json={"bookingId": booking_id, "status": "cancelled"},
        headers=admin_headers,
    )

    availability = await client.get(f"/api/bookings/availability?date={future_day}&type=studio")
    assert availability.json()["unavailableSlots"] == []
    assert (await client.post("/api/bookings", json=booking_payload())).status_code == 201


@pytest.mark.asyncio
async def test_confirm_error_codes(client: AsyncClient, admin_headers, user_headers, booking_payload):
    booking_id = (await client.post("/api/bookings", json=booking_payload())).json()["id"]
    body = {"bookingId": booking_id, "status": "confirmed"}

    anonymous = await client.post("/api/bookings/confirm", json=body)
    member = await client.post("/api/bookings/confirm", json=body, headers=user_headers)
    missing = await client.post(
        "/api/bookings/confirm",
        json={"bookingId": "does-not-exist", "status": "confirmed"},
        headers=admin_headers,
    )
    bad_status = await client.post(
        "/api/bookings/confirm",
        json={"bookingId": booking_id, "status": "archived"},
        headers=admin_headers,
    )

    assert anonymous.status_code == 401
    assert member.status_code == 403
    assert missing.status_code == 404
    assert bad_status.status_code == 400


@pytest.mark.asyncio
async def test_responses_carry_security_and_request_headers(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Content-Security-Policy" in response.headers
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient, booking_payload):
    await client.post("/api/bookings", json=booking_payload())

    health = await client.get("/health")
    metrics = await client.get("/metrics")

    assert health.json()["status"] == "healthy"
    assert health.json()["cache"] == {"status": "disabled"}
    assert metrics.status_code == 200
    assert "booking_attempts_total" in metrics.text
