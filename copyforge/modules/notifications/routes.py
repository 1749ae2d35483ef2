from fastapi import APIRouter, Depends
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.notifications.schemas import NotificationResponse, ReadAllResponse
from copyforge.modules.notifications.service import NotificationService
from copyforge.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Current user's notifications, newest first"""
    return service.list_notifications(current_user["id"], unread_only=unread_only, limit=limit, offset=offset)


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return ReadAllResponse(updated=service.mark_all_read(current_user["id"]))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, current_user["id"])
