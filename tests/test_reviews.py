"""
tests/test_reviews.py
Tests for provider reviews and rating aggregation through the API.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient

from shared.models.models import Booking, BookingStatus, Producer, Provider, User
from tests.conftest import auth_headers, create_producer_account


async def _booking(repo, producer: Producer, provider: Provider, status: BookingStatus) -> Booking:
    return await repo.create_booking(
        {
            "producer_id": producer.id,
            "provider_id": provider.id,
            "service_type": provider.service_type,
            "scheduled_date": datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc),
            "status": status.value,
        }
    )


@pytest_asyncio.fixture
async def completed_booking(repo, producer: Producer, provider: Provider) -> Booking:
    return await _booking(repo, producer, provider, BookingStatus.COMPLETED)


@pytest.mark.asyncio
async def test_create_review_success(
    client: AsyncClient,
    repo,
    producer_user: User,
    provider: Provider,
    provider_user: User,
    completed_booking: Booking,
):
    """Review of a completed booking targets the booking's provider and updates its rating."""
    response = await client.post(
        "/api/reviews",
        headers=auth_headers(producer_user),
        json={"booking_id": completed_booking.id, "rating": 5, "comment": "Excelente serviço"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["reviewee_id"] == provider.id
    assert data["reviewer_id"] == producer_user.id

    detail = (await client.get(f"/api/providers/{provider.id}")).json()
    assert detail["rating"] == "5.00"
    assert detail["total_reviews"] == 1
    assert [r["comment"] for r in detail["reviews"]] == ["Excelente serviço"]

    notifications = await repo.list_notifications_by_user(provider_user.id)
    assert len(notifications) == 1
    assert "5 estrela" in notifications[0].message


@pytest.mark.asyncio
async def test_rating_is_full_recomputation(
    client: AsyncClient, repo, producer_user: User, producer: Producer, provider: Provider
):
    """Ratings 5, 4, 3 on three bookings give 4.00 over 3 reviews."""
    for rating in (5, 4, 3):
        booking = await _booking(repo, producer, provider, BookingStatus.COMPLETED)
        response = await client.post(
            "/api/reviews",
            headers=auth_headers(producer_user),
            json={"booking_id": booking.id, "rating": rating},
        )
        assert response.status_code == 201

    detail = (await client.get(f"/api/providers/{provider.id}")).json()
    assert detail["rating"] == "4.00"
    assert detail["total_reviews"] == 3


@pytest.mark.asyncio
async def test_review_requires_completed_booking(
    client: AsyncClient, repo, producer_user: User, producer: Producer, provider: Provider
):
    booking = await _booking(repo, producer, provider, BookingStatus.CONFIRMED)
    response = await client.post(
        "/api/reviews",
        headers=auth_headers(producer_user),
        json={"booking_id": booking.id, "rating": 4},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_review_rejected(
    client: AsyncClient, producer_user: User, completed_booking: Booking
):
    payload = {"booking_id": completed_booking.id, "rating": 4}
    first = await client.post("/api/reviews", headers=auth_headers(producer_user), json=payload)
    assert first.status_code == 201

    second = await client.post("/api/reviews", headers=auth_headers(producer_user), json=payload)
    assert second.status_code == 409


@pytest.mark.parametrize("rating", [0, 6])
@pytest.mark.asyncio
async def test_rating_out_of_range(
    client: AsyncClient, producer_user: User, completed_booking: Booking, rating: int
):
    response = await client.post(
        "/api/reviews",
        headers=auth_headers(producer_user),
        json={"booking_id": completed_booking.id, "rating": rating},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_review_unknown_booking(client: AsyncClient, producer_user: User, producer: Producer):
    response = await client.post(
        "/api/reviews", headers=auth_headers(producer_user), json={"booking_id": 999, "rating": 4}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cannot_review_someone_elses_booking(
    client: AsyncClient, repo, completed_booking: Booking
):
    other_user, _ = await create_producer_account(repo, "vizinho")
    response = await client.post(
        "/api/reviews",
        headers=auth_headers(other_user),
        json={"booking_id": completed_booking.id, "rating": 1},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_provider_cannot_write_reviews(
    client: AsyncClient, provider_user: User, completed_booking: Booking
):
    response = await client.post(
        "/api/reviews",
        headers=auth_headers(provider_user),
        json={"booking_id": completed_booking.id, "rating": 5},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_reviews_by_provider_and_reviewer(
    client: AsyncClient, producer_user: User, provider: Provider, completed_booking: Booking
):
    await client.post(
        "/api/reviews",
        headers=auth_headers(producer_user),
        json={"booking_id": completed_booking.id, "rating": 3},
    )

    by_provider = await client.get(f"/api/reviews/provider/{provider.id}")
    assert by_provider.status_code == 200
    assert [r["rating"] for r in by_provider.json()] == [3]

    by_reviewer = await client.get(f"/api/reviews/reviewer/{producer_user.id}")
    assert by_reviewer.status_code == 200
    assert [r["booking_id"] for r in by_reviewer.json()] == [completed_booking.id]


@pytest.mark.asyncio
async def test_list_reviews_unknown_provider(client: AsyncClient):
    response = await client.get("/api/reviews/provider/999")
    assert response.status_code == 404
