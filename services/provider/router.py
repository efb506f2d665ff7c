"""
services/provider/router.py
Provider profiles: public detail page and self-service edits.
"""

from fastapi import APIRouter, Depends, HTTPException

from shared.middleware.auth import require_provider
from shared.models.models import Provider, User
from shared.repositories.base import NotFoundError, Repository, profile_updates
from shared.repositories.factory import get_repository
from shared.schemas.schemas import (
    ProviderDetailResponse,
    ProviderUpdate,
    ProviderWithUserResponse,
    ReviewResponse,
)

router = APIRouter(prefix="/api/providers", tags=["Providers"])


async def _get_provider_or_404(provider_id: int, repo: Repository) -> Provider:
    provider = await repo.get_provider(provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider


async def _get_own_provider(user: User, repo: Repository) -> Provider:
    provider = await repo.get_provider_by_user_id(user.id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider profile not found")
    return provider


@router.get("/{provider_id}", response_model=ProviderDetailResponse)
async def get_provider(provider_id: int, repo: Repository = Depends(get_repository)):
    """Public: provider profile with its owner and reviews."""
    provider = await _get_provider_or_404(provider_id, repo)
    user = await repo.get_user(provider.user_id)
    if not user:
        raise NotFoundError("User", provider.user_id)

    reviews = await repo.list_reviews_by_provider(provider.id)
    return ProviderDetailResponse.build(
        provider,
        user,
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
    )


@router.patch("/me", response_model=ProviderWithUserResponse)
async def update_my_profile(
    update_data: ProviderUpdate,
    current_user: User = Depends(require_provider),
    repo: Repository = Depends(get_repository),
):
    """Update the authenticated provider's profile. Rating fields are not editable."""
    provider = await _get_own_provider(current_user, repo)

    updates = profile_updates(Provider, update_data.model_dump(exclude_unset=True))
    if updates:
        provider = await repo.update_provider(provider.id, updates)
        await repo.commit()

    return ProviderWithUserResponse.build(provider, current_user)
