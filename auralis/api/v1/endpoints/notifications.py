from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from auralis.core.errors import NotFoundError, StorageError
from auralis.core.utils.enums import SeverityEnum
from auralis.schemas.notification import NotificationCreateRequest, NotificationResponse
from auralis.services.call_store import CallRecordStore, get_call_store


router = APIRouter(tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    is_read: Optional[bool] = Query(None, alias="isRead"),
    severity: Optional[SeverityEnum] = Query(None),
    limit: int = Query(20, ge=1, le=200),
    store: CallRecordStore = Depends(get_call_store),
):
    return await store.list_notifications(
        is_read=is_read,
        severity=severity.value if severity else None,
        limit=limit,
    )


@router.post("/", response_model=NotificationResponse, status_code=201)
async def create_notification(
    payload: NotificationCreateRequest = Body(...),
    store: CallRecordStore = Depends(get_call_store),
):
    notification = await store.create_notification(payload.model_dump())
    if notification is None:
        raise StorageError("Failed to create notification", details="Notification could not be stored")
    return notification


@router.post("/{notification_id}/read")
async def mark_notification_read(notification_id: int, store: CallRecordStore = Depends(get_call_store)):
    if not await store.mark_notification_read(notification_id):
        raise NotFoundError("Notification not found", details=f"No notification with id {notification_id}")
    return {"success": True, "id": notification_id}


@router.delete("/expired")
async def cleanup_expired_notifications(store: CallRecordStore = Depends(get_call_store)):
    deleted = await store.cleanup_expired_notifications()
    return {"success": True, "deletedCount": deleted}
