from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

PromptType = Literal["design_email", "letter_email", "flow_email"]


class CustomPromptCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    prompt_type: PromptType
    system_prompt: str = Field(..., min_length=1)
    user_prompt: Optional[str] = None
    is_active: bool = False


class CustomPromptUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    system_prompt: Optional[str] = Field(None, min_length=1)
    user_prompt: Optional[str] = None


class CustomPromptResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    prompt_type: PromptType
    system_prompt: str
    user_prompt: Optional[str] = None
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeactivateRequest(BaseModel):
    prompt_type: PromptType


class DeactivateResponse(BaseModel):
    prompt_type: PromptType
    deactivated: int
