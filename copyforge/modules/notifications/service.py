from supabase import Client
from copyforge.modules.notifications.schemas import NotificationResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def create_notification(
    supabase: Client,
    user_id: str,
    type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> bool:
    """Insert a notification. Failures are logged and reported as False, never raised."""
    try:
        supabase.table("notifications").insert({
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "link": link,
            "metadata": metadata or {},
            "is_read": False,
        }).execute()
        return True
    except Exception as e:
        logger.error(f"Failed to create {type} notification for user {user_id}: {e}")
        return False


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_notifications(self, user_id: str, unread_only: bool = False,
                           limit: int = 50, offset: int = 0) -> List[NotificationResponse]:
        try:
            query = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)
            if unread_only:
                query = query.eq("is_read", False)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [NotificationResponse(**n) for n in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, notification_id: str, user_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")
            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_all_read(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True})\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
