"""
shared/repositories/base.py
Storage interface shared by the in-memory and relational backends.
Services depend on this interface only, never on a concrete backend.
"""

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import Numeric

from shared.models.models import Booking, Notification, Producer, Provider, Review, User


class NotFoundError(LookupError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


def normalize_fields(model, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce values bound for Numeric columns to Decimal at the column's scale
    (floats go through str), as the database would store them.
    """
    columns = model.__table__.columns
    normalized = dict(data)
    for key, value in data.items():
        if value is None or key not in columns:
            continue
        column_type = columns[key].type
        if isinstance(column_type, Numeric):
            number = value if isinstance(value, Decimal) else Decimal(str(value))
            if column_type.scale is not None:
                number = number.quantize(Decimal(1).scaleb(-column_type.scale), rounding=ROUND_HALF_UP)
            normalized[key] = number
    return normalized


def profile_updates(model, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Partial update from explicitly sent fields. null clears nullable columns
    (coordinates, prices) and is ignored for required ones.
    """
    columns = model.__table__.columns
    return {
        key: value
        for key, value in data.items()
        if value is not None or (key in columns and columns[key].nullable)
    }


class Repository(ABC):
    """
    Async storage collaborator.

    get_* methods return None for an unknown id; update_* methods apply a
    partial update and return the updated entity, or None for an unknown id.
    """

    # ── Users ─────────────────────────────────────────────────
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, data: Dict[str, Any]) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]: ...

    # ── Providers ─────────────────────────────────────────────
    @abstractmethod
    async def get_provider(self, provider_id: int) -> Optional[Provider]: ...

    @abstractmethod
    async def get_provider_by_user_id(self, user_id: int) -> Optional[Provider]: ...

    @abstractmethod
    async def create_provider(self, data: Dict[str, Any]) -> Provider: ...

    @abstractmethod
    async def update_provider(self, provider_id: int, updates: Dict[str, Any]) -> Optional[Provider]: ...

    @abstractmethod
    async def list_providers(self) -> List[Provider]:
        """All providers, ascending id."""

    # ── Producers ─────────────────────────────────────────────
    @abstractmethod
    async def get_producer(self, producer_id: int) -> Optional[Producer]: ...

    @abstractmethod
    async def get_producer_by_user_id(self, user_id: int) -> Optional[Producer]: ...

    @abstractmethod
    async def create_producer(self, data: Dict[str, Any]) -> Producer: ...

    @abstractmethod
    async def update_producer(self, producer_id: int, updates: Dict[str, Any]) -> Optional[Producer]: ...

    # ── Bookings ──────────────────────────────────────────────
    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]: ...

    @abstractmethod
    async def create_booking(self, data: Dict[str, Any]) -> Booking: ...

    @abstractmethod
    async def update_booking(self, booking_id: int, updates: Dict[str, Any]) -> Optional[Booking]: ...

    @abstractmethod
    async def list_bookings_by_producer(self, producer_id: int) -> List[Booking]: ...

    @abstractmethod
    async def list_bookings_by_provider(self, provider_id: int) -> List[Booking]: ...

    # ── Reviews ───────────────────────────────────────────────
    @abstractmethod
    async def create_review(self, data: Dict[str, Any]) -> Review: ...

    @abstractmethod
    async def list_reviews_by_provider(self, provider_id: int) -> List[Review]: ...

    @abstractmethod
    async def list_reviews_by_reviewer(self, reviewer_id: int) -> List[Review]: ...

    @abstractmethod
    async def list_reviews_by_booking(self, booking_id: int) -> List[Review]: ...

    # ── Notifications ─────────────────────────────────────────
    @abstractmethod
    async def create_notification(self, data: Dict[str, Any]) -> Notification: ...

    @abstractmethod
    async def get_notification(self, notification_id: int) -> Optional[Notification]: ...

    @abstractmethod
    async def list_notifications_by_user(self, user_id: int) -> List[Notification]:
        """Newest first."""

    @abstractmethod
    async def mark_notification_as_read(self, notification_id: int) -> Optional[Notification]: ...

    @abstractmethod
    async def mark_all_notifications_as_read(self, user_id: int) -> int:
        """Returns the number of notifications that changed."""

    # ── Unit of work ──────────────────────────────────────────
    @abstractmethod
    async def commit(self) -> None: ...

    async def ping(self) -> None:
        """Raise if the backend is unreachable."""
