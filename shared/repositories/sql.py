"""
shared/repositories/sql.py
Relational backend on an AsyncSession (PostgreSQL via asyncpg in
production, SQLite via aiosqlite in tests).
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Booking, Notification, Producer, Provider, Review, User
from shared.repositories.base import Repository, normalize_fields

T = TypeVar("T")


class SqlRepository(Repository):
    """One instance per request, bound to that request's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Helpers ───────────────────────────────────────────────
    async def _insert(self, model: Type[T], data: Dict[str, Any]) -> T:
        row = model(**normalize_fields(model, data))
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)  # load server defaults (created_at)
        return row

    async def _update(self, model: Type[T], row_id: int, updates: Dict[str, Any]) -> Optional[T]:
        row = await self.session.get(model, row_id)
        if row is None:
            return None
        for field, value in normalize_fields(model, updates).items():
            if field != "id":
                setattr(row, field, value)
        await self.session.flush()
        return row

    async def _first(self, stmt):
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _all(self, stmt) -> list:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ── Users ─────────────────────────────────────────────────
    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._first(select(User).where(User.email == email))

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._first(select(User).where(User.username == username))

    async def create_user(self, data: Dict[str, Any]) -> User:
        return await self._insert(User, data)

    async def update_user(self, user_id: int, updates: Dict[str, Any]) -> Optional[User]:
        return await self._update(User, user_id, updates)

    # ── Providers ─────────────────────────────────────────────
    async def get_provider(self, provider_id: int) -> Optional[Provider]:
        return await self.session.get(Provider, provider_id)

    async def get_provider_by_user_id(self, user_id: int) -> Optional[Provider]:
        return await self._first(select(Provider).where(Provider.user_id == user_id))

    async def create_provider(self, data: Dict[str, Any]) -> Provider:
        return await self._insert(Provider, data)

    async def update_provider(self, provider_id: int, updates: Dict[str, Any]) -> Optional[Provider]:
        return await self._update(Provider, provider_id, updates)

    async def list_providers(self) -> List[Provider]:
        return await self._all(select(Provider).order_by(Provider.id))

    # ── Producers ─────────────────────────────────────────────
    async def get_producer(self, producer_id: int) -> Optional[Producer]:
        return await self.session.get(Producer, producer_id)

    async def get_producer_by_user_id(self, user_id: int) -> Optional[Producer]:
        return await self._first(select(Producer).where(Producer.user_id == user_id))

    async def create_producer(self, data: Dict[str, Any]) -> Producer:
        return await self._insert(Producer, data)

    async def update_producer(self, producer_id: int, updates: Dict[str, Any]) -> Optional[Producer]:
        return await self._update(Producer, producer_id, updates)

    # ── Bookings ──────────────────────────────────────────────
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return await self.session.get(Booking, booking_id)

    async def create_booking(self, data: Dict[str, Any]) -> Booking:
        return await self._insert(Booking, data)

    async def update_booking(self, booking_id: int, updates: Dict[str, Any]) -> Optional[Booking]:
        return await self._update(Booking, booking_id, updates)

    async def list_bookings_by_producer(self, producer_id: int) -> List[Booking]:
        return await self._all(
            select(Booking).where(Booking.producer_id == producer_id).order_by(Booking.id)
        )

    async def list_bookings_by_provider(self, provider_id: int) -> List[Booking]:
        return await self._all(
            select(Booking).where(Booking.provider_id == provider_id).order_by(Booking.id)
        )

    # ── Reviews ───────────────────────────────────────────────
    async def create_review(self, data: Dict[str, Any]) -> Review:
        return await self._insert(Review, data)

    async def list_reviews_by_provider(self, provider_id: int) -> List[Review]:
        return await self._all(
            select(Review).where(Review.reviewee_id == provider_id).order_by(Review.id)
        )

    async def list_reviews_by_reviewer(self, reviewer_id: int) -> List[Review]:
        return await self._all(
            select(Review).where(Review.reviewer_id == reviewer_id).order_by(Review.id)
        )

    async def list_reviews_by_booking(self, booking_id: int) -> List[Review]:
        return await self._all(
            select(Review).where(Review.booking_id == booking_id).order_by(Review.id)
        )

    # ── Notifications ─────────────────────────────────────────
    async def create_notification(self, data: Dict[str, Any]) -> Notification:
        return await self._insert(Notification, data)

    async def get_notification(self, notification_id: int) -> Optional[Notification]:
        return await self.session.get(Notification, notification_id)

    async def list_notifications_by_user(self, user_id: int) -> List[Notification]:
        return await self._all(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )

    async def mark_notification_as_read(self, notification_id: int) -> Optional[Notification]:
        return await self._update(Notification, notification_id, {"is_read": True})

    async def mark_all_notifications_as_read(self, user_id: int) -> int:
        unread = await self._all(
            select(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        )
        for notification in unread:
            notification.is_read = True
        await self.session.flush()
        return len(unread)

    # ── Unit of work ──────────────────────────────────────────
    async def commit(self) -> None:
        await self.session.commit()

    async def ping(self) -> None:
        await self.session.execute(text("SELECT 1"))
