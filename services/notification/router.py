"""
services/notification/router.py
In-app notifications: templated creation for booking and review events,
plus the recipient's read/unread endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.middleware.auth import get_current_user
from shared.models.models import Notification, NotificationType, User
from shared.repositories.base import Repository
from shared.repositories.factory import get_repository
from shared.schemas.schemas import MessageResponse, NotificationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


# ── Notification Templates ────────────────────────────────────

TEMPLATES = {
    "BOOKING_CREATED": {
        "type": NotificationType.BOOKING,
        "title": "Nova Solicitação de Serviço",
        "message": "Você recebeu uma nova solicitação de agendamento ({service_type}, {scheduled_date}).",
    },
    "BOOKING_STATUS_CHANGED": {
        "type": NotificationType.BOOKING,
        "title": "Agendamento Atualizado",
        "message": "O agendamento #{booking_id} mudou de status: {status}.",
    },
    "REVIEW_RECEIVED": {
        "type": NotificationType.BOOKING,
        "title": "Nova Avaliação",
        "message": "Você recebeu uma avaliação de {rating} estrela(s) pelo agendamento #{booking_id}.",
    },
}


async def dispatch_notification(
    repo: Repository,
    user_id: int,
    template_key: str,
    template_vars: dict = None,
) -> Notification:
    """Render a template and store it as an unread in-app notification for user_id."""
    template = TEMPLATES[template_key]
    vars_ = template_vars or {}

    notification = await repo.create_notification(
        {
            "user_id": user_id,
            "title": template["title"].format(**vars_),
            "message": template["message"].format(**vars_),
            "type": template["type"].value,
        }
    )
    logger.info(f"Notification {template_key} queued for user {user_id}")
    return notification


# ── REST Endpoints ────────────────────────────────────────────

@router.get("", response_model=List[NotificationResponse])
async def get_my_notifications(
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Get authenticated user's in-app notifications, newest first."""
    notifications = await repo.list_notifications_by_user(current_user.id)
    if unread_only:
        notifications = [n for n in notifications if not n.is_read]
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    notifications = await repo.list_notifications_by_user(current_user.id)
    return {"unread_count": sum(1 for n in notifications if not n.is_read)}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    notification = await repo.get_notification(notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not your notification")

    notification = await repo.mark_notification_as_read(notification_id)
    await repo.commit()
    return NotificationResponse.model_validate(notification)


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    count = await repo.mark_all_notifications_as_read(current_user.id)
    await repo.commit()
    return MessageResponse(message=f"{count} notifications marked as read")
