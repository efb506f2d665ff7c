"""
services/search/matching.py
Provider matching: conjunctive filters over the provider listing,
with an optional straight-line distance cut-off.
"""

import logging
from typing import List, NamedTuple, Optional

from shared.models.models import Provider, User
from shared.repositories.base import NotFoundError, Repository
from shared.schemas.schemas import ProviderSearchFilters
from shared.utils.geo import haversine_km

logger = logging.getLogger(__name__)


class ProviderMatch(NamedTuple):
    provider: Provider
    user: User
    distance_km: Optional[float] = None


def _matches_attributes(provider: Provider, filters: ProviderSearchFilters) -> bool:
    if filters.service_type and provider.service_type != filters.service_type:
        return False
    if filters.is_available is not None and provider.is_available != filters.is_available:
        return False
    if filters.location and filters.location.lower() not in (provider.location or "").lower():
        return False
    return True


def _distance_to(provider: Provider, filters: ProviderSearchFilters) -> Optional[float]:
    """Distance from the query point, or None when the provider has no coordinates."""
    if provider.latitude is None or provider.longitude is None:
        return None
    return haversine_km(
        filters.latitude,
        filters.longitude,
        float(provider.latitude),
        float(provider.longitude),
    )


async def search_providers(
    repo: Repository,
    filters: ProviderSearchFilters,
) -> List[ProviderMatch]:
    """
    Return every provider satisfying all supplied filters, joined with its user.

    Geo filtering applies only when latitude, longitude and max_distance are
    all given; providers without stored coordinates are then excluded.
    Order follows the repository listing (ascending id).
    """
    matches: List[ProviderMatch] = []

    for provider in await repo.list_providers():
        if not _matches_attributes(provider, filters):
            continue

        distance = None
        if filters.has_geo:
            distance = _distance_to(provider, filters)
            if distance is None or distance > filters.max_distance:
                continue

        user = await repo.get_user(provider.user_id)
        if user is None:
            raise NotFoundError("User", provider.user_id)

        matches.append(ProviderMatch(provider, user, distance))

    logger.debug(f"Provider search {filters.model_dump(exclude_none=True)} -> {len(matches)} matches")
    return matches


async def get_providers_nearby(
    repo: Repository,
    latitude: float,
    longitude: float,
    radius_km: float,
) -> List[ProviderMatch]:
    """Available providers within radius_km of the given point."""
    filters = ProviderSearchFilters(
        latitude=latitude,
        longitude=longitude,
        max_distance=radius_km,
        is_available=True,
    )
    return await search_providers(repo, filters)
