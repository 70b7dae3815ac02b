"""
Notification Routes

GET /notifications - List own notifications (optionally only read/unread)
GET /notifications/unread-count - Number of unread notifications
PUT /notifications/read-all - Mark all as read
PUT /notifications/{notification_id}/read - Mark one as read
DELETE /notifications/{notification_id} - Delete a notification
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_notification_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    MessageResponse, NotificationListResponse, NotificationResponse, UnreadCountResponse
)
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    read: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.list_notifications(actor, read, page, page_size)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCountResponse(count=service.unread_count(actor))


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    count = service.mark_all_read(actor)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(actor, notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    service: NotificationService = Depends(get_notification_service)
):
    service.delete(actor, notification_id)
    return MessageResponse(message="Notification deleted")
