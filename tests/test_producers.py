"""
tests/test_producers.py
Tests for producer (farm) profiles.
"""

import pytest
from httpx import AsyncClient

from shared.models.models import Producer, User
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_get_my_producer_profile(client: AsyncClient, producer_user: User, producer: Producer):
    response = await client.get("/api/producers/me", headers=auth_headers(producer_user))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == producer.id
    assert data["crop_types"] == ["soja", "milho", "cana"]
    assert data["farm_size"] == "150.00"
    assert data["user"]["id"] == producer_user.id


@pytest.mark.asyncio
async def test_update_my_producer_profile(client: AsyncClient, producer_user: User):
    response = await client.patch(
        "/api/producers/me",
        headers=auth_headers(producer_user),
        json={"farm_name": "Fazenda Nova", "crop_types": ["café", "laranja"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["farm_name"] == "Fazenda Nova"
    assert data["crop_types"] == ["café", "laranja"]


@pytest.mark.asyncio
async def test_producer_me_requires_producer(client: AsyncClient, provider_user: User):
    response = await client.get("/api/producers/me", headers=auth_headers(provider_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_producer_public(client: AsyncClient, producer: Producer):
    response = await client.get(f"/api/producers/{producer.id}")
    assert response.status_code == 200
    assert response.json()["farm_name"] == "Fazenda Teste"


@pytest.mark.asyncio
async def test_get_producer_not_found(client: AsyncClient):
    response = await client.get("/api/producers/404")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_can_clear_farm_coordinates(client: AsyncClient, producer_user: User):
    response = await client.patch(
        "/api/producers/me",
        headers=auth_headers(producer_user),
        json={"latitude": None, "farm_size": None, "location": None},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["latitude"] is None
    assert data["farm_size"] is None
    assert data["location"] == "Ribeirão Preto, SP"
    assert data["longitude"] is not None
