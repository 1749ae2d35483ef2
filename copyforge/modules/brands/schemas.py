from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import datetime


class BrandVoiceTrait(BaseModel):
    trait: str
    explanation: str


class BrandVocabulary(BaseModel):
    use: List[str] = []
    avoid: List[str] = []


class BrandVoice(BaseModel):
    brand_summary: Optional[str] = None
    voice_description: Optional[str] = None
    we_sound: List[BrandVoiceTrait] = []
    we_never_sound: List[str] = []
    vocabulary: Optional[BrandVocabulary] = None
    proof_points: List[str] = []
    audience: Optional[str] = None
    good_copy_example: Optional[str] = None
    bad_copy_example: Optional[str] = None
    patterns: Optional[str] = None


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    organization_id: Optional[str] = None  # defaults to the caller's organization
    brand_details: Optional[str] = None
    brand_guidelines: Optional[str] = None
    copywriting_style_guide: Optional[str] = None
    brand_voice: Optional[BrandVoice] = None
    website_url: Optional[str] = None
    logo_url: Optional[str] = None


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    brand_details: Optional[str] = None
    brand_guidelines: Optional[str] = None
    copywriting_style_guide: Optional[str] = None
    brand_voice: Optional[BrandVoice] = None
    website_url: Optional[str] = None
    logo_url: Optional[str] = None


class BrandResponse(BaseModel):
    id: str
    organization_id: str
    user_id: Optional[str] = None
    name: str
    brand_details: Optional[str] = None
    brand_guidelines: Optional[str] = None
    copywriting_style_guide: Optional[str] = None
    brand_voice: Optional[Dict[str, Any]] = None
    website_url: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
