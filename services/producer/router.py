"""
services/producer/router.py
Producer (farm) profiles.
"""

from fastapi import APIRouter, Depends, HTTPException

from shared.middleware.auth import require_producer
from shared.models.models import Producer, User
from shared.repositories.base import NotFoundError, Repository, profile_updates
from shared.repositories.factory import get_repository
from shared.schemas.schemas import ProducerUpdate, ProducerWithUserResponse

router = APIRouter(prefix="/api/producers", tags=["Producers"])


async def _get_own_producer(user: User, repo: Repository) -> Producer:
    producer = await repo.get_producer_by_user_id(user.id)
    if not producer:
        raise HTTPException(status_code=404, detail="Producer profile not found")
    return producer


@router.get("/me", response_model=ProducerWithUserResponse)
async def get_my_profile(
    current_user: User = Depends(require_producer),
    repo: Repository = Depends(get_repository),
):
    producer = await _get_own_producer(current_user, repo)
    return ProducerWithUserResponse.build(producer, current_user)


@router.patch("/me", response_model=ProducerWithUserResponse)
async def update_my_profile(
    update_data: ProducerUpdate,
    current_user: User = Depends(require_producer),
    repo: Repository = Depends(get_repository),
):
    """Update the authenticated producer's farm profile."""
    producer = await _get_own_producer(current_user, repo)

    updates = profile_updates(Producer, update_data.model_dump(exclude_unset=True))
    if updates:
        producer = await repo.update_producer(producer.id, updates)
        await repo.commit()

    return ProducerWithUserResponse.build(producer, current_user)


@router.get("/{producer_id}", response_model=ProducerWithUserResponse)
async def get_producer(producer_id: int, repo: Repository = Depends(get_repository)):
    producer = await repo.get_producer(producer_id)
    if not producer:
        raise HTTPException(status_code=404, detail="Producer not found")

    user = await repo.get_user(producer.user_id)
    if not user:
        raise NotFoundError("User", producer.user_id)
    return ProducerWithUserResponse.build(producer, user)
