"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shared.models.models import BookingStatus, NotificationType, UserType


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


Latitude = Optional[Decimal]
Longitude = Optional[Decimal]


# ── User ──────────────────────────────────────────────────────

class UserResponse(BaseSchema):
    id: int
    username: str
    email: EmailStr
    name: str
    phone: Optional[str]
    user_type: str
    created_at: datetime


class UserUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)


# ── Provider ──────────────────────────────────────────────────

class ProviderResponse(BaseSchema):
    id: int
    user_id: int
    service_type: str
    specialty: str
    description: Optional[str]
    price_per_hectare: Optional[Decimal]
    price_per_day: Optional[Decimal]
    location: str
    latitude: Latitude
    longitude: Longitude
    coverage_radius: int
    is_available: bool
    certifications: List[str]
    equipment_owned: bool
    rating: Decimal
    total_reviews: int


class ProviderWithUserResponse(ProviderResponse):
    user: UserResponse
    distance_km: Optional[float] = None  # Only set for geo queries

    @classmethod
    def build(cls, provider, user, distance_km: Optional[float] = None, **extra):
        return cls(
            **ProviderResponse.model_validate(provider).model_dump(),
            user=UserResponse.model_validate(user),
            distance_km=round(distance_km, 2) if distance_km is not None else None,
            **extra,
        )


class ProviderUpdate(BaseSchema):
    service_type: Optional[str] = Field(None, min_length=1, max_length=50)
    specialty: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    price_per_hectare: Optional[Decimal] = Field(None, ge=0)
    price_per_day: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Latitude = Field(None, ge=-90, le=90)
    longitude: Longitude = Field(None, ge=-180, le=180)
    coverage_radius: Optional[int] = Field(None, ge=1, le=1000)
    is_available: Optional[bool] = None
    certifications: Optional[List[str]] = None
    equipment_owned: Optional[bool] = None


# ── Producer ──────────────────────────────────────────────────

class ProducerResponse(BaseSchema):
    id: int
    user_id: int
    farm_name: Optional[str]
    location: str
    latitude: Latitude
    longitude: Longitude
    farm_size: Optional[Decimal]
    crop_types: List[str]


class ProducerWithUserResponse(ProducerResponse):
    user: UserResponse

    @classmethod
    def build(cls, producer, user):
        return cls(
            **ProducerResponse.model_validate(producer).model_dump(),
            user=UserResponse.model_validate(user),
        )


class ProducerUpdate(BaseSchema):
    farm_name: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Latitude = Field(None, ge=-90, le=90)
    longitude: Longitude = Field(None, ge=-180, le=180)
    farm_size: Optional[Decimal] = Field(None, ge=0)
    crop_types: Optional[List[str]] = None


# ── Auth ──────────────────────────────────────────────────────

class RegisterRequest(BaseSchema):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    name: str = Field(..., min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    user_type: UserType

    # Shared profile fields
    location: str = Field("", max_length=255)
    latitude: Latitude = Field(None, ge=-90, le=90)
    longitude: Longitude = Field(None, ge=-180, le=180)

    # Producer profile
    farm_name: Optional[str] = Field(None, max_length=255)
    farm_size: Optional[Decimal] = Field(None, ge=0)
    crop_types: List[str] = Field(default_factory=list)

    # Provider profile
    service_type: str = Field("drone", min_length=1, max_length=50)
    specialty: str = Field("", max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    price_per_hectare: Optional[Decimal] = Field(None, ge=0)
    price_per_day: Optional[Decimal] = Field(None, ge=0)
    coverage_radius: int = Field(50, ge=1, le=1000)
    certifications: List[str] = Field(default_factory=list)
    equipment_owned: bool = True


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str


class AuthResponse(BaseSchema):
    user: UserResponse
    profile: Optional[Union[ProviderResponse, ProducerResponse]] = None


class LoginResponse(AuthResponse):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


# ── Search ────────────────────────────────────────────────────

class ProviderSearchFilters(BaseSchema):
    """Conjunctive provider filters. Geo filtering needs all three geo fields."""
    service_type: Optional[str] = None
    location: Optional[str] = None
    is_available: Optional[bool] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    max_distance: Optional[float] = Field(None, ge=0)

    @property
    def has_geo(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and self.max_distance is not None
        )


# ── Booking ───────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    provider_id: int
    service_type: Optional[str] = Field(None, max_length=50)  # defaults to the provider's
    scheduled_date: datetime
    area: Optional[Decimal] = Field(None, ge=0)
    total_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class BookingUpdateRequest(BaseSchema):
    status: Optional[BookingStatus] = None
    scheduled_date: Optional[datetime] = None
    area: Optional[Decimal] = Field(None, ge=0)
    total_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=2000)


class BookingResponse(BaseSchema):
    id: int
    producer_id: int
    provider_id: int
    service_type: str
    scheduled_date: datetime
    area: Optional[Decimal]
    total_price: Optional[Decimal]
    status: str
    notes: Optional[str]
    created_at: datetime


class BookingDetailResponse(BookingResponse):
    provider: ProviderWithUserResponse
    producer: ProducerWithUserResponse


# ── Review ────────────────────────────────────────────────────

class ReviewCreateRequest(BaseSchema):
    booking_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseSchema):
    id: int
    booking_id: int
    reviewer_id: int
    reviewee_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime


class ProviderDetailResponse(ProviderWithUserResponse):
    reviews: List[ReviewResponse]


# ── Notification ──────────────────────────────────────────────

class NotificationResponse(BaseSchema):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    is_read: bool
    created_at: datetime


# ── Generic ───────────────────────────────────────────────────

class MessageResponse(BaseSchema):
    message: str
    success: bool = True
