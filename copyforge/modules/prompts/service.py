from supabase import Client
from copyforge.modules.prompts.schemas import PromptCreate, PromptUpdate, PromptResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_ICON = "💬"
DEFAULT_MODES = ["email_copy"]

DEFAULT_PROMPTS: List[Dict[str, Any]] = [
    {
        "name": "Subject Lines",
        "description": "Generate compelling subject line options",
        "icon": "📧",
        "prompt": (
            "Generate 5 compelling subject line options for this email. For each option, include:\n"
            "1. The subject line\n"
            "2. A preview text (the first line that appears in inbox)\n"
            "3. The style/approach (e.g., Curiosity, Urgency, Benefit-focused, Personal, Question)\n\n"
            "Make them varied in style and optimized for open rates."
        ),
        "slash_command": "subjects",
        "modes": ["email_copy"],
    },
    {
        "name": "More Variants",
        "description": "Generate additional versions",
        "icon": "✨",
        "prompt": (
            "Create 2 more alternative versions of this email with different angles or tones. "
            "Keep the core message but vary the approach."
        ),
        "slash_command": "variants",
        "modes": ["email_copy"],
    },
    {
        "name": "Shorter Version",
        "description": "Make it more concise",
        "icon": "📝",
        "prompt": (
            "Create a shorter, more concise version of this email. Cut it down by about 30-40% "
            "while keeping the key message and call-to-action intact."
        ),
        "slash_command": "shorter",
        "modes": ["email_copy", "flow", "planning"],
    },
    {
        "name": "More Urgent",
        "description": "Add urgency and FOMO",
        "icon": "⚡",
        "prompt": (
            "Rewrite this email with more urgency and FOMO (fear of missing out). Add time-sensitive "
            "language and scarcity elements while keeping it authentic."
        ),
        "slash_command": "fomo",
        "modes": ["email_copy"],
    },
    {
        "name": "Friendlier Tone",
        "description": "Make it warmer and more personal",
        "icon": "😊",
        "prompt": (
            "Rewrite this email with a warmer, friendlier tone. Make it feel more personal and "
            "conversational, like a message from a friend."
        ),
        "slash_command": "friendly",
        "modes": ["email_copy"],
    },
]


def normalize_slash_command(command: Optional[str]) -> Optional[str]:
    """'/My Cmd ' -> 'mycmd'; empty -> None"""
    if not command:
        return None
    normalized = re.sub(r"\s", "", command.strip().lower())
    normalized = re.sub(r"^/", "", normalized)
    return normalized or None


class PromptService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def seed_defaults(self, user_id: str) -> None:
        rows = [
            {**prompt, "user_id": user_id, "is_active": True, "is_default": True, "sort_order": index}
            for index, prompt in enumerate(DEFAULT_PROMPTS)
        ]
        self.supabase.table("saved_prompts").insert(rows).execute()

    def list_prompts(self, user_id: str, mode: Optional[str] = None) -> List[PromptResponse]:
        """User's prompts in sort order; seeds the defaults for a user who has none"""
        try:
            existing = self.supabase.table("saved_prompts")\
                .select("id")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not existing.data:
                self.seed_defaults(user_id)

            query = self.supabase.table("saved_prompts")\
                .select("*")\
                .eq("user_id", user_id)
            if mode:
                query = query.contains("modes", [mode])
            result = query.order("sort_order").order("created_at").execute()
            return [PromptResponse(**p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_prompt(self, prompt_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("saved_prompts")\
            .select("*")\
            .eq("id", prompt_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Prompt not found")
        prompt = result.data[0]
        if prompt["user_id"] != user_id:
            raise HTTPException(status_code=403, detail="You can only access your own prompts")
        return prompt

    def _ensure_slash_command_free(self, user_id: str, slash_command: str, exclude_id: Optional[str] = None) -> None:
        query = self.supabase.table("saved_prompts")\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("slash_command", slash_command)
        if exclude_id:
            query = query.neq("id", exclude_id)
        if query.limit(1).execute().data:
            raise HTTPException(status_code=400, detail=f'Slash command "/{slash_command}" is already in use')

    def get_prompt(self, prompt_id: str, user_id: str) -> PromptResponse:
        try:
            return PromptResponse(**self._get_prompt(prompt_id, user_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_prompt(self, prompt_data: PromptCreate, user_id: str) -> PromptResponse:
        try:
            name = prompt_data.name.strip()
            text = prompt_data.prompt.strip()
            if not name:
                raise HTTPException(status_code=400, detail="Name is required")
            if not text:
                raise HTTPException(status_code=400, detail="Prompt text is required")

            slash_command = normalize_slash_command(prompt_data.slash_command)
            if slash_command:
                self._ensure_slash_command_free(user_id, slash_command)

            last = self.supabase.table("saved_prompts")\
                .select("sort_order")\
                .eq("user_id", user_id)\
                .order("sort_order", desc=True)\
                .limit(1)\
                .execute()
            next_order = (last.data[0].get("sort_order", -1) + 1) if last.data else 0

            result = self.supabase.table("saved_prompts").insert({
                "user_id": user_id,
                "name": name,
                "description": (prompt_data.description or "").strip() or None,
                "icon": prompt_data.icon or DEFAULT_ICON,
                "prompt": text,
                "slash_command": slash_command,
                "modes": prompt_data.modes or list(DEFAULT_MODES),
                "is_active": True,
                "is_default": False,
                "sort_order": next_order,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create prompt")
            return PromptResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_prompt(self, prompt_id: str, user_id: str, prompt_data: PromptUpdate) -> PromptResponse:
        try:
            self._get_prompt(prompt_id, user_id)
            update_data = prompt_data.model_dump(exclude_unset=True)
            if "name" in update_data and update_data["name"] is not None:
                update_data["name"] = update_data["name"].strip()
            if "prompt" in update_data and update_data["prompt"] is not None:
                update_data["prompt"] = update_data["prompt"].strip()
            if "description" in update_data:
                update_data["description"] = (update_data["description"] or "").strip() or None
            if "slash_command" in update_data:
                update_data["slash_command"] = normalize_slash_command(update_data["slash_command"])
                if update_data["slash_command"]:
                    self._ensure_slash_command_free(user_id, update_data["slash_command"], exclude_id=prompt_id)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")

            result = self.supabase.table("saved_prompts")\
                .update(update_data)\
                .eq("id", prompt_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Prompt not found")
            return PromptResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_prompt(self, prompt_id: str, user_id: str) -> bool:
        """Delete a user prompt; defaults can only be disabled"""
        try:
            prompt = self._get_prompt(prompt_id, user_id)
            if prompt.get("is_default"):
                raise HTTPException(status_code=400, detail="Cannot delete default prompts. You can disable them instead.")
            result = self.supabase.table("saved_prompts")\
                .delete()\
                .eq("id", prompt_id)\
                .execute()
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
