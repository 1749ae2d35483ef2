from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class PromptCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = None
    prompt: str = Field(..., min_length=1)
    slash_command: Optional[str] = None
    modes: Optional[List[str]] = None


class PromptUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = None
    prompt: Optional[str] = Field(None, min_length=1)
    slash_command: Optional[str] = None
    modes: Optional[List[str]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


class PromptResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    prompt: str
    slash_command: Optional[str] = None
    modes: List[str] = []
    is_active: bool = True
    is_default: bool = False
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
