from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


def _not_blank(v: Optional[str], field: str) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError(f"{field} cannot be empty")
    return v


class ModeCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    system_prompt: str
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        return _not_blank(v, "Name")

    @field_validator("system_prompt")
    @classmethod
    def _check_prompt(cls, v: str) -> str:
        return _not_blank(v, "System prompt")


class ModeUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    system_prompt: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: Optional[str]) -> Optional[str]:
        return _not_blank(v, "Name")

    @field_validator("system_prompt")
    @classmethod
    def _check_prompt(cls, v: Optional[str]) -> Optional[str]:
        return _not_blank(v, "System prompt")


class ModeResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    system_prompt: str
    is_active: bool = True
    is_default: bool = False
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
