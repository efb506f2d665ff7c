"""
tests/test_rating.py
Tests for provider rating aggregation.
"""

from decimal import Decimal

import pytest

from services.review.rating import average_rating, recompute_provider_rating
from shared.repositories.base import NotFoundError


@pytest.mark.parametrize(
    "ratings, expected",
    [
        ([5, 4, 3], Decimal("4.00")),
        ([5, 4], Decimal("4.50")),
        ([5, 5, 4], Decimal("4.67")),
        ([1, 1, 2], Decimal("1.33")),
        ([5], Decimal("5.00")),
    ],
)
def test_average_rating(ratings, expected):
    """Mean is rounded to 2 decimals; count is the number of ratings."""
    assert average_rating(ratings) == (expected, len(ratings))


def test_average_rating_rounds_half_up():
    """13/8 = 1.625 rounds up to 1.63."""
    assert average_rating([1, 1, 1, 2, 2, 2, 2, 2])[0] == Decimal("1.63")


def test_average_rating_empty():
    assert average_rating([]) == (Decimal("0.00"), 0)


@pytest.mark.asyncio
async def test_recompute_uses_all_reviews(repo, provider, producer_user):
    """Every review of the provider counts, not just the latest."""
    for booking_id, rating in enumerate([5, 4, 3], start=1):
        await repo.create_review(
            {
                "booking_id": booking_id,
                "reviewer_id": producer_user.id,
                "reviewee_id": provider.id,
                "rating": rating,
            }
        )

    updated = await recompute_provider_rating(repo, provider.id)
    assert updated.rating == Decimal("4.00")
    assert updated.total_reviews == 3


@pytest.mark.asyncio
async def test_recompute_ignores_other_providers(repo, provider, producer_user):
    await repo.create_review(
        {"booking_id": 1, "reviewer_id": producer_user.id, "reviewee_id": provider.id + 1, "rating": 1}
    )
    updated = await recompute_provider_rating(repo, provider.id)
    assert updated.rating == Decimal("0.00")
    assert updated.total_reviews == 0


@pytest.mark.asyncio
async def test_recompute_unknown_provider(repo):
    with pytest.raises(NotFoundError):
        await recompute_provider_rating(repo, 42)
