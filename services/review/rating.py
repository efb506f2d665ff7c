"""
services/review/rating.py
Provider rating aggregation. Always a full recomputation over the
provider's reviews, never an incremental update.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from shared.models.models import Provider
from shared.repositories.base import NotFoundError, Repository

TWO_PLACES = Decimal("0.01")


def average_rating(ratings: Iterable[int]) -> Tuple[Decimal, int]:
    """(mean rounded half-up to 2 decimals, count). Empty input gives (0.00, 0)."""
    values = list(ratings)
    if not values:
        return Decimal("0.00"), 0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return mean.quantize(TWO_PLACES, rounding=ROUND_HALF_UP), len(values)


async def recompute_provider_rating(repo: Repository, provider_id: int) -> Provider:
    reviews = await repo.list_reviews_by_provider(provider_id)
    rating, total = average_rating(r.rating for r in reviews)

    provider = await repo.update_provider(
        provider_id, {"rating": rating, "total_reviews": total}
    )
    if provider is None:
        raise NotFoundError("Provider", provider_id)
    return provider
