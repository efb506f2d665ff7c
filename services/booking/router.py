"""
services/booking/router.py
Booking lifecycle between a producer and a provider.
Status is set freely by either party:
    PENDING → CONFIRMED → IN_PROGRESS → COMPLETED, or CANCELLED at any point.
"""

import logging
from typing import List, Tuple

from fastapi import APIRouter, Depends, HTTPException, status

from services.notification.router import dispatch_notification
from shared.middleware.auth import get_current_user, require_producer
from shared.models.models import Booking, Producer, Provider, User
from shared.repositories.base import NotFoundError, Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingDetailResponse,
    BookingResponse,
    BookingUpdateRequest,
    ProducerWithUserResponse,
    ProviderWithUserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


# ── Helpers ───────────────────────────────────────────────────

async def _get_booking_or_404(booking_id: int, repo: Repository) -> Booking:
    booking = await repo.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


async def _owner_of(repo: Repository, user_id: int) -> User:
    user = await repo.get_user(user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def _parties(booking: Booking, repo: Repository) -> Tuple[Producer, Provider]:
    producer = await repo.get_producer(booking.producer_id)
    if not producer:
        raise NotFoundError("Producer", booking.producer_id)
    provider = await repo.get_provider(booking.provider_id)
    if not provider:
        raise NotFoundError("Provider", booking.provider_id)
    return producer, provider


async def _booking_details(booking: Booking, repo: Repository) -> BookingDetailResponse:
    """Booking joined with both parties and their users."""
    producer, provider = await _parties(booking, repo)
    return BookingDetailResponse(
        **BookingResponse.model_validate(booking).model_dump(),
        provider=ProviderWithUserResponse.build(provider, await _owner_of(repo, provider.user_id)),
        producer=ProducerWithUserResponse.build(producer, await _owner_of(repo, producer.user_id)),
    )


def _format_date(value) -> str:
    return value.strftime("%d/%m/%Y")


# ── Endpoints ─────────────────────────────────────────────────

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreateRequest,
    current_user: User = Depends(require_producer),
    repo: Repository = Depends(get_repository),
):
    """
    Book a provider. The booking starts PENDING and the provider's user
    receives an in-app notification.
    """
    producer = await repo.get_producer_by_user_id(current_user.id)
    if not producer:
        raise HTTPException(status_code=404, detail="Producer profile not found")

    provider = await repo.get_provider(data.provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")

    booking_data = data.model_dump(exclude_none=True)
    booking_data["producer_id"] = producer.id
    booking_data.setdefault("service_type", provider.service_type)

    booking = await repo.create_booking(booking_data)

    await dispatch_notification(
        repo,
        provider.user_id,
        "BOOKING_CREATED",
        {
            "service_type": booking.service_type,
            "scheduled_date": _format_date(booking.scheduled_date),
        },
    )

    await repo.commit()
    logger.info(f"Booking {booking.id} created: producer {producer.id} → provider {provider.id}")
    return BookingResponse.model_validate(booking)


@router.get("/producer/{producer_id}", response_model=List[BookingDetailResponse])
async def list_producer_bookings(
    producer_id: int,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Bookings made by a producer. Only the producer's own user may list them."""
    producer = await repo.get_producer(producer_id)
    if not producer:
        raise HTTPException(status_code=404, detail="Producer not found")
    if producer.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    bookings = await repo.list_bookings_by_producer(producer_id)
    return [await _booking_details(b, repo) for b in bookings]


@router.get("/provider/{provider_id}", response_model=List[BookingDetailResponse])
async def list_provider_bookings(
    provider_id: int,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Bookings received by a provider. Only the provider's own user may list them."""
    provider = await repo.get_provider(provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")
    if provider.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized")

    bookings = await repo.list_bookings_by_provider(provider_id)
    return [await _booking_details(b, repo) for b in bookings]


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    booking = await _get_booking_or_404(booking_id, repo)
    producer, provider = await _parties(booking, repo)
    if current_user.id not in (producer.user_id, provider.user_id):
        raise HTTPException(status_code=403, detail="Not authorized")

    return await _booking_details(booking, repo)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    data: BookingUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """
    Partial update by either party. Any status may be set; when the status
    changes, the other party is notified.
    """
    booking = await _get_booking_or_404(booking_id, repo)
    producer, provider = await _parties(booking, repo)
    if current_user.id not in (producer.user_id, provider.user_id):
        raise HTTPException(status_code=403, detail="Not authorized")

    updates = data.model_dump(exclude_none=True)
    if not updates:
        return BookingResponse.model_validate(booking)

    old_status = booking.status
    booking = await repo.update_booking(booking_id, updates)

    if booking.status != old_status:
        recipient_id = provider.user_id if current_user.id == producer.user_id else producer.user_id
        await dispatch_notification(
            repo,
            recipient_id,
            "BOOKING_STATUS_CHANGED",
            {"booking_id": booking.id, "status": booking.status},
        )
        logger.info(f"Booking {booking.id}: {old_status} → {booking.status}")

    await repo.commit()
    return BookingResponse.model_validate(booking)
