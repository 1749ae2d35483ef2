from supabase import Client
from copyforge.modules.brands.schemas import BrandCreate, BrandUpdate, BrandResponse, BrandVoice
from typing import Any, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def format_brand_for_prompt(brand: Dict[str, Any]) -> str:
    """Render a brand row as plain-text context for a system prompt"""
    sections = [f"Brand Name: {brand.get('name', '')}"]

    if brand.get("brand_details"):
        sections.append(f"Brand Details:\n{brand['brand_details']}")
    if brand.get("brand_guidelines"):
        sections.append(f"Brand Guidelines:\n{brand['brand_guidelines']}")

    if brand.get("brand_voice"):
        voice = BrandVoice(**brand["brand_voice"])
        parts = []
        if voice.brand_summary:
            parts.append(f"BRAND: {voice.brand_summary}")
        if voice.voice_description:
            parts.append(f"VOICE: {voice.voice_description}")
        if voice.we_sound:
            traits = "\n".join(f"• {t.trait}: {t.explanation}" for t in voice.we_sound)
            parts.append(f"WE SOUND:\n{traits}")
        if voice.we_never_sound:
            parts.append("WE NEVER SOUND:\n" + "\n".join(f"• {s}" for s in voice.we_never_sound))
        if voice.vocabulary:
            vocab = []
            if voice.vocabulary.use:
                vocab.append(f"Use: {', '.join(voice.vocabulary.use)}")
            if voice.vocabulary.avoid:
                vocab.append(f"Avoid: {', '.join(voice.vocabulary.avoid)}")
            if vocab:
                parts.append("VOCABULARY:\n" + "\n".join(vocab))
        if voice.audience:
            parts.append(f"AUDIENCE: {voice.audience}")
        if parts:
            sections.append("Brand Voice:\n" + "\n\n".join(parts))
    elif brand.get("copywriting_style_guide"):
        sections.append(f"Copywriting Style Guide:\n{brand['copywriting_style_guide']}")

    if brand.get("website_url"):
        sections.append(f"Website: {brand['website_url']}")

    return "\n\n".join(sections)


class BrandService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_brands(self, organization_id: str) -> List[BrandResponse]:
        """Brands of an organization, most recently updated first"""
        try:
            result = self.supabase.table("brands")\
                .select("*")\
                .eq("organization_id", organization_id)\
                .order("updated_at", desc=True)\
                .execute()
            return [BrandResponse(**brand) for brand in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_latest_brand(self, organization_id: str) -> BrandResponse:
        try:
            result = self.supabase.table("brands")\
                .select("*")\
                .eq("organization_id", organization_id)\
                .order("updated_at", desc=True)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="No brands found")
            return BrandResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_brand(self, brand_data: BrandCreate, user_data: Dict[str, Any]) -> BrandResponse:
        """Create a brand in the caller's organization (admin or brand_manager)"""
        try:
            organization_id = brand_data.organization_id or user_data["organization_id"]
            if organization_id != user_data["organization_id"]:
                raise HTTPException(status_code=403, detail="You can only create brands in your own organization")
            if user_data["organization_role"] not in ("admin", "brand_manager"):
                raise HTTPException(status_code=403, detail="Only admins and brand managers can create brands")

            now = datetime.now(timezone.utc).isoformat()
            payload = brand_data.model_dump(exclude_none=True)
            payload.update({
                "organization_id": organization_id,
                "user_id": user_data["id"],
                "created_at": now,
                "updated_at": now,
            })

            result = self.supabase.table("brands").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create brand")

            logger.info(f"Brand {result.data[0]['id']} created in organization {organization_id}")
            return BrandResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_brand(self, brand_id: str, brand_data: BrandUpdate) -> BrandResponse:
        try:
            update_data = brand_data.model_dump(exclude_unset=True)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("brands")\
                .update(update_data)\
                .eq("id", brand_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Brand not found")

            return BrandResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_brand_voice(self, brand_id: str, voice: BrandVoice) -> BrandResponse:
        return self.update_brand(brand_id, BrandUpdate(brand_voice=voice))

    def delete_brand(self, brand_id: str) -> bool:
        try:
            result = self.supabase.table("brands")\
                .delete()\
                .eq("id", brand_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
