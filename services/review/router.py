"""
services/review/router.py
Provider reviews. Each new review triggers a full rating recomputation.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from services.notification.router import dispatch_notification
from services.review.rating import recompute_provider_rating
from shared.middleware.auth import require_producer
from shared.models.models import BookingStatus, User
from shared.repositories.base import Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import ReviewCreateRequest, ReviewResponse

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreateRequest,
    current_user: User = Depends(require_producer),
    repo: Repository = Depends(get_repository),
):
    """
    Submit a review for a completed booking.
    - Booking must be in COMPLETED status
    - Only the producer who made the booking can review
    - One review per booking and reviewer
    The reviewee is always the booking's provider.
    """
    booking = await repo.get_booking(data.booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    producer = await repo.get_producer_by_user_id(current_user.id)
    if not producer or booking.producer_id != producer.id:
        raise HTTPException(status_code=403, detail="You can only review your own bookings")
    if booking.status != BookingStatus.COMPLETED.value:
        raise HTTPException(status_code=400, detail="Booking must be completed before reviewing")

    existing = await repo.list_reviews_by_booking(booking.id)
    if any(r.reviewer_id == current_user.id for r in existing):
        raise HTTPException(status_code=409, detail="You have already reviewed this booking")

    review = await repo.create_review(
        {
            "booking_id": booking.id,
            "reviewer_id": current_user.id,
            "reviewee_id": booking.provider_id,
            "rating": data.rating,
            "comment": data.comment,
        }
    )

    # Recalculate and denormalize aggregate rating on the provider
    provider = await recompute_provider_rating(repo, booking.provider_id)

    await dispatch_notification(
        repo,
        provider.user_id,
        "REVIEW_RECEIVED",
        {"rating": review.rating, "booking_id": booking.id},
    )

    await repo.commit()
    return ReviewResponse.model_validate(review)


@router.get("/provider/{provider_id}", response_model=List[ReviewResponse])
async def get_provider_reviews(provider_id: int, repo: Repository = Depends(get_repository)):
    """Public: reviews received by a provider."""
    if not await repo.get_provider(provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")
    return [ReviewResponse.model_validate(r) for r in await repo.list_reviews_by_provider(provider_id)]


@router.get("/reviewer/{reviewer_id}", response_model=List[ReviewResponse])
async def get_reviewer_reviews(reviewer_id: int, repo: Repository = Depends(get_repository)):
    """Public: reviews written by a user."""
    return [ReviewResponse.model_validate(r) for r in await repo.list_reviews_by_reviewer(reviewer_id)]
