from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime

ConversationMode = Literal["email_copy", "planning", "flow", "assistant", "calendar_planner", "orchestrator"]
MessageRole = Literal["user", "assistant", "system"]
ShareContent = Literal["full_conversation", "last_email"]
ExportFormat = Literal["markdown", "json"]


class ConversationCreate(BaseModel):
    brand_id: Optional[str] = None
    title: Optional[str] = None
    mode: Optional[ConversationMode] = None
    custom_mode_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ConversationUpdate(BaseModel):
    title: Optional[str] = None
    mode: Optional[ConversationMode] = None
    custom_mode_id: Optional[str] = None
    is_starred: Optional[bool] = None
    is_pinned: Optional[bool] = None
    is_archived: Optional[bool] = None
    visibility: Optional[Literal["private", "team"]] = None
    metadata: Optional[Dict[str, Any]] = None


class ConversationResponse(BaseModel):
    id: str
    user_id: str
    brand_id: Optional[str] = None
    title: Optional[str] = None
    mode: Optional[str] = None
    custom_mode_id: Optional[str] = None
    is_starred: bool = False
    is_pinned: Optional[bool] = False
    is_archived: Optional[bool] = False
    parent_conversation_id: Optional[str] = None
    is_flow: Optional[bool] = False
    flow_type: Optional[str] = None
    flow_sequence_order: Optional[int] = None
    share_token: Optional[str] = None
    visibility: Optional[str] = "private"
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageCreate(BaseModel):
    role: MessageRole = "user"
    content: str
    model_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class MessageResponse(BaseModel):
    id: str
    conversation_id: str
    role: MessageRole
    content: Optional[str] = ""
    model_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationWithMessages(ConversationResponse):
    messages: List[MessageResponse] = []


class StarResponse(BaseModel):
    is_starred: bool


class PinResponse(BaseModel):
    is_pinned: bool


class ArchiveResponse(BaseModel):
    is_archived: bool


class ShareCreate(BaseModel):
    share_content: ShareContent = "full_conversation"


class ShareResponse(BaseModel):
    share_token: str
    share_url: str


class ConversationExport(BaseModel):
    conversation: ConversationResponse
    messages: List[MessageResponse] = []
    exported_at: datetime
    version: str = "1.0"


class SharedConversationResponse(BaseModel):
    id: str
    title: Optional[str] = None
    brand_id: Optional[str] = None
    created_at: datetime
    share_content: ShareContent = "full_conversation"
    messages: List[MessageResponse] = []


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    message_id: Optional[str] = None


class CommentUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    resolved: Optional[bool] = None


class CommentAuthor(BaseModel):
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    conversation_id: str
    user_id: str
    message_id: Optional[str] = None
    content: str
    resolved: bool = False
    created_at: Optional[datetime] = None
    user: Optional[CommentAuthor] = None

    class Config:
        from_attributes = True
