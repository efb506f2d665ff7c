"""
shared/models/models.py
All SQLAlchemy ORM models for AgroConnect.
Integer primary keys; cross-entity references are stored by value
(no relationships, no cascading deletes).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from config.database import Base


# ── Enumerations ──────────────────────────────────────────────

class UserType(str, PyEnum):
    PRODUCER = "producer"
    PROVIDER = "provider"


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, PyEnum):
    BOOKING = "booking"
    WEATHER = "weather"
    PAYMENT = "payment"
    SYSTEM = "system"


# ── Mixins ────────────────────────────────────────────────────

class CreatedAtMixin:
    """Adds created_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# ── Models ────────────────────────────────────────────────────

class User(CreatedAtMixin, Base):
    """Root identity. Producers and providers extend it 1:1."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)

    __table_args__ = (
        Index("ix_users_user_type", "user_type"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.user_type})>"


class Provider(Base):
    """
    Service operator profile (drone, tractor, manual labour...).
    rating and total_reviews are derived from the provider's reviews.
    """
    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    service_type: Mapped[str] = mapped_column(String(50), nullable=False)
    specialty: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing
    price_per_hectare: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    price_per_day: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # Location
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(11, 8), nullable=True)
    coverage_radius: Mapped[int] = mapped_column(Integer, default=50, nullable=False)  # km

    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    certifications: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    equipment_owned: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Rating (denormalized, recomputed on every review)
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0.00"), nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("ix_providers_service_type", "service_type"),
        Index("ix_providers_is_available", "is_available"),
    )


class Producer(Base):
    """Farm operator profile."""
    __tablename__ = "producers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    farm_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(11, 8), nullable=True)
    farm_size: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)  # hectares
    crop_types: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)


class Booking(CreatedAtMixin, Base):
    """
    Service request from a producer to a provider.
    Status is set freely by the parties: pending → confirmed → in_progress
    → completed, or cancelled at any point.
    """
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    producer_id: Mapped[int] = mapped_column(Integer, ForeignKey("producers.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(Integer, ForeignKey("providers.id"), nullable=False)
    service_type: Mapped[str] = mapped_column(String(50), nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    area: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)  # hectares
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_bookings_producer_id", "producer_id"),
        Index("ix_bookings_provider_id", "provider_id"),
        Index("ix_bookings_status", "status"),
    )


class Review(CreatedAtMixin, Base):
    """Post-booking review of a provider. reviewee_id is a Provider id."""
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(Integer, ForeignKey("bookings.id"), nullable=False)
    reviewer_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    reviewee_id: Mapped[int] = mapped_column(Integer, ForeignKey("providers.id"), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_reviews_reviewee_id", "reviewee_id"),
        Index("ix_reviews_reviewer_id", "reviewer_id"),
        Index("ix_reviews_booking_id", "booking_id"),
        UniqueConstraint("booking_id", "reviewer_id", name="uq_review_booking_reviewer"),
    )


class Notification(CreatedAtMixin, Base):
    """In-app notification."""
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("ix_notifications_user_id_read", "user_id", "is_read"),)
