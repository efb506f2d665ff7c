"""
services/search/router.py
Provider discovery: attribute filters plus straight-line distance.
Registered before the provider router so /search and /nearby are not
captured by /providers/{provider_id}.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from config.settings import settings
from services.search.matching import get_providers_nearby, search_providers
from shared.repositories.base import Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import ProviderSearchFilters, ProviderWithUserResponse

router = APIRouter(prefix="/api/providers", tags=["Search"])


@router.get("/search", response_model=List[ProviderWithUserResponse])
async def search(
    service_type: Optional[str] = Query(None, alias="serviceType", description="drone, tractor, manual..."),
    location: Optional[str] = Query(None, description="Case-insensitive substring of the location label"),
    max_distance: Optional[float] = Query(None, alias="maxDistance", ge=0, description="km"),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    is_available: Optional[bool] = Query(None, alias="isAvailable"),
    repo: Repository = Depends(get_repository),
):
    """
    Search providers. All filters are optional and combined with AND.
    The distance filter applies only when latitude, longitude and
    maxDistance are all given.
    """
    filters = ProviderSearchFilters(
        service_type=service_type,
        location=location,
        is_available=is_available,
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
    )
    matches = await search_providers(repo, filters)
    return [ProviderWithUserResponse.build(m.provider, m.user, m.distance_km) for m in matches]


@router.get("/nearby", response_model=List[ProviderWithUserResponse])
async def nearby(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(default=settings.PROVIDER_NEARBY_DEFAULT_RADIUS_KM, ge=0, description="km"),
    repo: Repository = Depends(get_repository),
):
    """Available providers within `radius` km of the given point."""
    matches = await get_providers_nearby(repo, latitude, longitude, radius)
    return [ProviderWithUserResponse.build(m.provider, m.user, m.distance_km) for m in matches]
