"""
tests/test_bookings.py
Tests for the booking lifecycle between producers and providers:
create → list → update status (with notifications to the other party).
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient

from shared.models.models import Booking, BookingStatus, Producer, Provider, User
from tests.conftest import auth_headers, create_producer_account


def _scheduled() -> str:
    return (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()


@pytest_asyncio.fixture
async def booking(repo, producer: Producer, provider: Provider) -> Booking:
    return await repo.create_booking(
        {
            "producer_id": producer.id,
            "provider_id": provider.id,
            "service_type": "drone",
            "scheduled_date": datetime.now(timezone.utc) + timedelta(days=3),
            "area": "20",
        }
    )


# ── Booking Creation ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_booking_success(
    client: AsyncClient,
    repo,
    producer_user: User,
    producer: Producer,
    provider: Provider,
    provider_user: User,
):
    """Producer books a provider; booking starts PENDING and the provider is notified."""
    payload = {
        "provider_id": provider.id,
        "scheduled_date": _scheduled(),
        "area": "25.5",
        "total_price": "892.50",
        "notes": "Pulverização de soja",
    }

    response = await client.post("/api/bookings", headers=auth_headers(producer_user), json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == BookingStatus.PENDING.value
    assert data["producer_id"] == producer.id
    assert data["provider_id"] == provider.id
    assert data["service_type"] == "drone"  # provider's service type
    assert data["area"] == "25.50"

    notifications = await repo.list_notifications_by_user(provider_user.id)
    assert len(notifications) == 1
    assert notifications[0].type == "booking"
    assert notifications[0].is_read is False

    assert await repo.list_notifications_by_user(producer_user.id) == []


@pytest.mark.asyncio
async def test_create_booking_explicit_service_type(
    client: AsyncClient, producer_user: User, producer: Producer, provider: Provider
):
    response = await client.post(
        "/api/bookings",
        headers=auth_headers(producer_user),
        json={"provider_id": provider.id, "service_type": "tractor", "scheduled_date": _scheduled()},
    )
    assert response.status_code == 201
    assert response.json()["service_type"] == "tractor"


@pytest.mark.asyncio
async def test_create_booking_unknown_provider(client: AsyncClient, producer_user: User, producer: Producer):
    response = await client.post(
        "/api/bookings",
        headers=auth_headers(producer_user),
        json={"provider_id": 999, "scheduled_date": _scheduled()},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_provider_cannot_create_booking(client: AsyncClient, provider_user: User, provider: Provider):
    response = await client.post(
        "/api/bookings",
        headers=auth_headers(provider_user),
        json={"provider_id": provider.id, "scheduled_date": _scheduled()},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_booking_missing_date(client: AsyncClient, producer_user: User, provider: Provider):
    response = await client.post(
        "/api/bookings", headers=auth_headers(producer_user), json={"provider_id": provider.id}
    )
    assert response.status_code == 422


# ── Listing / Reading ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_producer_bookings_with_details(
    client: AsyncClient, producer_user: User, producer: Producer, provider_user: User, booking: Booking
):
    response = await client.get(
        f"/api/bookings/producer/{producer.id}", headers=auth_headers(producer_user)
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["id"] == booking.id
    assert data[0]["provider"]["user"]["id"] == provider_user.id
    assert data[0]["producer"]["user"]["id"] == producer_user.id


@pytest.mark.asyncio
async def test_list_provider_bookings(
    client: AsyncClient, provider_user: User, provider: Provider, booking: Booking
):
    response = await client.get(
        f"/api/bookings/provider/{provider.id}", headers=auth_headers(provider_user)
    )
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [booking.id]


@pytest.mark.asyncio
async def test_list_other_producers_bookings_forbidden(
    client: AsyncClient, repo, producer: Producer, booking: Booking
):
    other_user, _ = await create_producer_account(repo, "outro.produtor")
    response = await client.get(
        f"/api/bookings/producer/{producer.id}", headers=auth_headers(other_user)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_booking_by_party(client: AsyncClient, provider_user: User, booking: Booking):
    response = await client.get(f"/api/bookings/{booking.id}", headers=auth_headers(provider_user))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_get_booking_by_outsider_forbidden(client: AsyncClient, repo, booking: Booking):
    outsider, _ = await create_producer_account(repo, "curioso")
    response = await client.get(f"/api/bookings/{booking.id}", headers=auth_headers(outsider))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient, producer_user: User):
    response = await client.get("/api/bookings/999", headers=auth_headers(producer_user))
    assert response.status_code == 404


# ── Status Updates ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_provider_confirms_booking_notifies_producer(
    client: AsyncClient, repo, provider_user: User, producer_user: User, booking: Booking
):
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(provider_user),
        json={"status": "confirmed"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    notifications = await repo.list_notifications_by_user(producer_user.id)
    assert len(notifications) == 1
    assert "confirmed" in notifications[0].message


@pytest.mark.asyncio
async def test_producer_cancels_booking_notifies_provider(
    client: AsyncClient, repo, producer_user: User, provider_user: User, booking: Booking
):
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(producer_user),
        json={"status": "cancelled"},
    )
    assert response.status_code == 200
    assert len(await repo.list_notifications_by_user(provider_user.id)) == 1


@pytest.mark.asyncio
async def test_any_status_can_be_set(client: AsyncClient, provider_user: User, booking: Booking):
    """No transition rules: pending can jump straight to completed."""
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(provider_user),
        json={"status": "completed"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_update_without_status_change_does_not_notify(
    client: AsyncClient, repo, producer_user: User, provider_user: User, booking: Booking
):
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(producer_user),
        json={"notes": "Levar mais calda", "status": "pending"},
    )
    assert response.status_code == 200
    assert response.json()["notes"] == "Levar mais calda"
    assert await repo.list_notifications_by_user(provider_user.id) == []


@pytest.mark.asyncio
async def test_invalid_status_rejected(client: AsyncClient, provider_user: User, booking: Booking):
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(provider_user),
        json={"status": "shipped"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_by_outsider_forbidden(client: AsyncClient, repo, booking: Booking):
    outsider, _ = await create_producer_account(repo, "intruso")
    response = await client.patch(
        f"/api/bookings/{booking.id}",
        headers=auth_headers(outsider),
        json={"status": "cancelled"},
    )
    assert response.status_code == 403
