"""
shared/repositories/memory.py
In-memory keyed store. Entities are transient ORM instances held in
per-type dicts with their own id counters; column defaults mirror the
relational schema.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Type

from shared.models.models import (
    Booking,
    BookingStatus,
    Notification,
    Producer,
    Provider,
    Review,
    User,
)
from shared.repositories.base import Repository, normalize_fields


def _provider_defaults() -> Dict[str, Any]:
    return {
        "specialty": "",
        "description": None,
        "price_per_hectare": None,
        "price_per_day": None,
        "latitude": None,
        "longitude": None,
        "coverage_radius": 50,
        "is_available": True,
        "certifications": [],
        "equipment_owned": True,
        "rating": Decimal("0.00"),
        "total_reviews": 0,
    }


def _producer_defaults() -> Dict[str, Any]:
    return {
        "farm_name": None,
        "latitude": None,
        "longitude": None,
        "farm_size": None,
        "crop_types": [],
    }


DEFAULTS: Dict[type, Callable[[], Dict[str, Any]]] = {
    User: lambda: {"phone": None},
    Provider: _provider_defaults,
    Producer: _producer_defaults,
    Booking: lambda: {
        "area": None,
        "total_price": None,
        "status": BookingStatus.PENDING.value,
        "notes": None,
    },
    Review: lambda: {"comment": None},
    Notification: lambda: {"is_read": False},
}

TIMESTAMPED = (User, Booking, Review, Notification)


class _Table:
    def __init__(self, model: Type):
        self.model = model
        self.rows: Dict[int, Any] = {}
        self.next_id = 1

    def insert(self, data: Dict[str, Any]):
        values = {**DEFAULTS[self.model](), **normalize_fields(self.model, data)}
        values = {k: v for k, v in values.items() if k != "id"}
        if self.model in TIMESTAMPED:
            values.setdefault("created_at", datetime.now(timezone.utc))
        row = self.model(id=self.next_id, **values)
        self.rows[self.next_id] = row
        self.next_id += 1
        return row

    def update(self, row_id: int, updates: Dict[str, Any]):
        row = self.rows.get(row_id)
        if row is None:
            return None
        for field, value in normalize_fields(self.model, updates).items():
            if field != "id":
                setattr(row, field, value)
        return row

    def find(self, predicate) -> List[Any]:
        return [row for _, row in sorted(self.rows.items()) if predicate(row)]

    def first(self, predicate):
        matches = self.find(predicate)
        return matches[0] if matches else None


class MemoryRepository(Repository):
    """Process-local storage; lost on restart."""

    def __init__(self):
        self.users = _Table(User)
        self.providers = _Table(Provider)
        self.producers = _Table(Producer)
        self.bookings = _Table(Booking)
        self.reviews = _Table(Review)
        self.notifications = _Table(Notification)

    # ── Users ─────────────────────────────────────────────────
    async def get_user(self, user_id: int) -> Optional[User]:
        return self.users.rows.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return self.users.first(lambda u: u.email == email)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return self.users.first(lambda u: u.username == username)

    async def create_user(self, data: Dict[str, Any]) -> User:
        return self.users.insert(data)

    async def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]:
        return self.users.update(user_id, updates)

    # ── Providers ─────────────────────────────────────────────
    async def get_provider(self, provider_id: int) -> Optional[Provider]:
        return self.providers.rows.get(provider_id)

    async def get_provider_by_user_id(self, user_id: int) -> Optional[Provider]:
        return self.providers.first(lambda p: p.user_id == user_id)

    async def create_provider(self, data: Dict[str, Any]) -> Provider:
        return self.providers.insert(data)

    async def update_provider(self, provider_id: int, updates: Dict[str, Any]) -> Optional[Provider]:
        return self.providers.update(provider_id, updates)

    async def list_providers(self) -> List[Provider]:
        return self.providers.find(lambda p: True)

    # ── Producers ─────────────────────────────────────────────
    async def get_producer(self, producer_id: int) -> Optional[Producer]:
        return self.producers.rows.get(producer_id)

    async def get_producer_by_user_id(self, user_id: int) -> Optional[Producer]:
        return self.producers.first(lambda p: p.user_id == user_id)

    async def create_producer(self, data: Dict[str, Any]) -> Producer:
        return self.producers.insert(data)

    async def update_producer(self, producer_id: int, updates: Dict[str, Any]) -> Optional[Producer]:
        return self.producers.update(producer_id, updates)

    # ── Bookings ──────────────────────────────────────────────
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.bookings.rows.get(booking_id)

    async def create_booking(self, data: Dict[str, Any]) -> Booking:
        return self.bookings.insert(data)

    async def update_booking(self, booking_id: int, updates: Dict[str, Any]) -> Optional[Booking]:
        return self.bookings.update(booking_id, updates)

    async def list_bookings_by_producer(self, producer_id: int) -> List[Booking]:
        return self.bookings.find(lambda b: b.producer_id == producer_id)

    async def list_bookings_by_provider(self, provider_id: int) -> List[Booking]:
        return self.bookings.find(lambda b: b.provider_id == provider_id)

    # ── Reviews ───────────────────────────────────────────────
    async def create_review(self, data: Dict[str, Any]) -> Review:
        return self.reviews.insert(data)

    async def list_reviews_by_provider(self, provider_id: int) -> List[Review]:
        return self.reviews.find(lambda r: r.reviewee_id == provider_id)

    async def list_reviews_by_reviewer(self, reviewer_id: int) -> List[Review]:
        return self.reviews.find(lambda r: r.reviewer_id == reviewer_id)

    async def list_reviews_by_booking(self, booking_id: int) -> List[Review]:
        return self.reviews.find(lambda r: r.booking_id == booking_id)

    # ── Notifications ─────────────────────────────────────────
    async def create_notification(self, data: Dict[str, Any]) -> Notification:
        return self.notifications.insert(data)

    async def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self.notifications.rows.get(notification_id)

    async def list_notifications_by_user(self, user_id: int) -> List[Notification]:
        rows = self.notifications.find(lambda n: n.user_id == user_id)
        return sorted(rows, key=lambda n: (n.created_at, n.id), reverse=True)

    async def mark_notification_as_read(self, notification_id: int) -> Optional[Notification]:
        return self.notifications.update(notification_id, {"is_read": True})

    async def mark_all_notifications_as_read(self, user_id: int) -> int:
        unread = self.notifications.find(lambda n: n.user_id == user_id and not n.is_read)
        for notification in unread:
            notification.is_read = True
        return len(unread)

    # ── Unit of work ──────────────────────────────────────────
    async def commit(self) -> None:
        pass
