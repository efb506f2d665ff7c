"""
services/auth/router.py
Email/password authentication.
Implements: Register → Login (JWT issue) → Me → Logout (deny-list)
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status

from config.redis_client import RedisCache, get_redis
from config.settings import settings
from shared.middleware.auth import TokenData, get_current_user, get_token_data
from shared.models.models import Producer, Provider, User, UserType
from shared.repositories.base import Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import (
    AuthResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProducerResponse,
    ProviderResponse,
    RegisterRequest,
    UserResponse,
)
from shared.utils.security import (
    create_access_token,
    get_token_remaining_ttl,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

USER_FIELDS = {"username", "email", "password", "name", "phone", "user_type"}
PRODUCER_FIELDS = {"farm_name", "location", "latitude", "longitude", "farm_size", "crop_types"}
PROVIDER_FIELDS = {
    "service_type", "specialty", "description", "price_per_hectare", "price_per_day",
    "location", "latitude", "longitude", "coverage_radius", "certifications",
    "equipment_owned",
}


# ── Helpers ───────────────────────────────────────────────────

async def load_profile(user: User, repo: Repository) -> Optional[Union[Provider, Producer]]:
    """The producer or provider profile attached to a user, if any."""
    if user.user_type == UserType.PROVIDER.value:
        return await repo.get_provider_by_user_id(user.id)
    return await repo.get_producer_by_user_id(user.id)


def _auth_response(user: User, profile, **extra) -> dict:
    if isinstance(profile, Provider):
        profile_out = ProviderResponse.model_validate(profile)
    elif isinstance(profile, Producer):
        profile_out = ProducerResponse.model_validate(profile)
    else:
        profile_out = None
    return {"user": UserResponse.model_validate(user), "profile": profile_out, **extra}


# ── Endpoints ─────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a producer or provider",
)
async def register(data: RegisterRequest, repo: Repository = Depends(get_repository)):
    """
    Create the user and its profile in one step.
    The profile kind follows user_type.
    """
    if await repo.get_user_by_email(data.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    if await repo.get_user_by_username(data.username):
        raise HTTPException(status_code=409, detail="Username already taken")

    fields = data.model_dump()
    user_data = {k: v for k, v in fields.items() if k in USER_FIELDS}
    user_data["password"] = hash_password(data.password)
    user = await repo.create_user(user_data)

    if data.user_type == UserType.PROVIDER:
        profile = await repo.create_provider(
            {"user_id": user.id, **{k: v for k, v in fields.items() if k in PROVIDER_FIELDS}}
        )
    else:
        profile = await repo.create_producer(
            {"user_id": user.id, **{k: v for k, v in fields.items() if k in PRODUCER_FIELDS}}
        )

    await repo.commit()
    logger.info(f"Registered {user.user_type} user {user.id}")
    return _auth_response(user, profile)


@router.post("/login", response_model=LoginResponse, summary="Login with email and password")
async def login(data: LoginRequest, repo: Repository = Depends(get_repository)):
    """Issue a JWT access token. Returns user and profile alongside the token."""
    user = await repo.get_user_by_email(data.email)
    if not user or not verify_password(data.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    access_token, _ = create_access_token(
        user_id=user.id,
        user_type=user.user_type,
        email=user.email,
    )
    profile = await load_profile(user, repo)
    return _auth_response(
        user,
        profile,
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", response_model=MessageResponse, summary="Logout user")
async def logout(
    token_data: TokenData = Depends(get_token_data),
    redis=Depends(get_redis),
):
    """Add the access token's JTI to the Redis deny-list until it expires."""
    ttl = get_token_remaining_ttl(token_data.payload)
    if redis is not None and ttl > 0:
        await RedisCache(redis).revoke_token(token_data.jti, ttl)
    elif redis is None:
        logger.warning(f"Redis unavailable; token {token_data.jti} not revoked")

    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=AuthResponse, summary="Get current user")
async def get_me(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Return the authenticated user and their profile."""
    profile = await load_profile(current_user, repo)
    return _auth_response(current_user, profile)
