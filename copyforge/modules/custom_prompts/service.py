from supabase import Client
from copyforge.modules.custom_prompts.schemas import CustomPromptCreate, CustomPromptUpdate, CustomPromptResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CustomPromptService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_prompt(self, prompt_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("custom_prompts")\
            .select("*")\
            .eq("id", prompt_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Custom prompt not found")
        return result.data[0]

    def list_prompts(self, user_id: str, prompt_type: Optional[str] = None) -> List[CustomPromptResponse]:
        try:
            query = self.supabase.table("custom_prompts")\
                .select("*")\
                .eq("user_id", user_id)
            if prompt_type:
                query = query.eq("prompt_type", prompt_type)
            result = query.order("created_at", desc=True).execute()
            return [CustomPromptResponse(**p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_active_prompt(self, user_id: str, prompt_type: str) -> Optional[CustomPromptResponse]:
        try:
            result = self.supabase.table("custom_prompts")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("prompt_type", prompt_type)\
                .eq("is_active", True)\
                .limit(1)\
                .execute()
            return CustomPromptResponse(**result.data[0]) if result.data else None
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_prompt(self, prompt_data: CustomPromptCreate, user_id: str) -> CustomPromptResponse:
        """Create a custom prompt; creating it active deactivates the others of its type"""
        try:
            if prompt_data.is_active:
                self.deactivate_type(user_id, prompt_data.prompt_type)
            now = _now()
            result = self.supabase.table("custom_prompts").insert({
                **prompt_data.model_dump(),
                "user_id": user_id,
                "created_at": now,
                "updated_at": now,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create custom prompt")
            return CustomPromptResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_prompt(self, prompt_id: str, user_id: str, prompt_data: CustomPromptUpdate) -> CustomPromptResponse:
        try:
            self._get_prompt(prompt_id, user_id)
            update_data = prompt_data.model_dump(exclude_unset=True)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            update_data["updated_at"] = _now()
            result = self.supabase.table("custom_prompts")\
                .update(update_data)\
                .eq("id", prompt_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Custom prompt not found")
            return CustomPromptResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_prompt(self, prompt_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("custom_prompts")\
                .delete()\
                .eq("id", prompt_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def activate_prompt(self, prompt_id: str, user_id: str) -> CustomPromptResponse:
        """Make this the only active prompt of its type for the user"""
        try:
            prompt = self._get_prompt(prompt_id, user_id)
            self.supabase.table("custom_prompts")\
                .update({"is_active": False, "updated_at": _now()})\
                .eq("user_id", user_id)\
                .eq("prompt_type", prompt["prompt_type"])\
                .neq("id", prompt_id)\
                .execute()

            result = self.supabase.table("custom_prompts")\
                .update({"is_active": True, "updated_at": _now()})\
                .eq("id", prompt_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Custom prompt not found")
            return CustomPromptResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def deactivate_type(self, user_id: str, prompt_type: str) -> int:
        """Deactivate every prompt of one type for one user; returns the number of rows changed"""
        try:
            result = self.supabase.table("custom_prompts")\
                .update({"is_active": False, "updated_at": _now()})\
                .eq("user_id", user_id)\
                .eq("prompt_type", prompt_type)\
                .eq("is_active", True)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
