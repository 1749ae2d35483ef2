from supabase import Client
from copyforge.modules.modes.schemas import ModeCreate, ModeUpdate, ModeResponse
from typing import Any, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone

MODE_NAME_MAX = 100
COPY_SUFFIX = " (Copy)"


def copy_name(name: str) -> str:
    return name[:MODE_NAME_MAX - len(COPY_SUFFIX)].rstrip() + COPY_SUFFIX


class ModeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _next_sort_order(self, user_id: str) -> int:
        result = self.supabase.table("custom_modes")\
            .select("sort_order")\
            .eq("user_id", user_id)\
            .order("sort_order", desc=True)\
            .limit(1)\
            .execute()
        if not result.data:
            return 0
        return (result.data[0].get("sort_order") or 0) + 1

    def _get_mode(self, mode_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("custom_modes")\
            .select("*")\
            .eq("id", mode_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Mode not found")
        return result.data[0]

    def list_modes(self, user_id: str, active_only: bool = False) -> List[ModeResponse]:
        try:
            query = self.supabase.table("custom_modes")\
                .select("*")\
                .eq("user_id", user_id)
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("sort_order").execute()
            return [ModeResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_mode(self, mode_id: str, user_id: str) -> ModeResponse:
        try:
            return ModeResponse(**self._get_mode(mode_id, user_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_mode(self, mode_data: ModeCreate, user_id: str) -> ModeResponse:
        try:
            payload = mode_data.model_dump()
            payload.update({
                "user_id": user_id,
                "is_default": False,
                "sort_order": self._next_sort_order(user_id),
            })
            result = self.supabase.table("custom_modes").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create mode")
            return ModeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_mode(self, mode_id: str, user_id: str, mode_data: ModeUpdate) -> ModeResponse:
        """Update a user mode; default modes are read-only"""
        try:
            existing = self._get_mode(mode_id, user_id)
            if existing.get("is_default"):
                raise HTTPException(status_code=403, detail="Cannot modify default modes")

            update_data = mode_data.model_dump(exclude_unset=True)
            if "description" in update_data:
                update_data["description"] = (update_data["description"] or "").strip() or None
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("custom_modes")\
                .update(update_data)\
                .eq("id", mode_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Mode not found")
            return ModeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_mode(self, mode_id: str, user_id: str) -> bool:
        try:
            existing = self._get_mode(mode_id, user_id)
            if existing.get("is_default"):
                raise HTTPException(status_code=403, detail="Cannot delete default modes")
            result = self.supabase.table("custom_modes")\
                .delete()\
                .eq("id", mode_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def duplicate_mode(self, mode_id: str, user_id: str) -> ModeResponse:
        """Copy a mode (default modes included) as an inactive user mode named "<name> (Copy)" """
        try:
            original = self._get_mode(mode_id, user_id)
            result = self.supabase.table("custom_modes").insert({
                "user_id": user_id,
                "name": copy_name(original["name"]),
                "description": original.get("description"),
                "icon": original.get("icon"),
                "color": original.get("color"),
                "system_prompt": original["system_prompt"],
                "is_active": False,
                "is_default": False,
                "sort_order": self._next_sort_order(user_id),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to duplicate mode")
            return ModeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
