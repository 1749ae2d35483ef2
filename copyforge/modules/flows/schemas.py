from pydantic import BaseModel, Field
from typing import Optional, List, Literal

FlowType = Literal["welcome", "abandoned_cart", "post_purchase", "winback", "browse_abandonment", "custom"]
EmailFormat = Literal["design", "letter"]


class FlowOutlineEmail(BaseModel):
    sequence: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    email_type: EmailFormat = "design"
    timing: str = ""
    purpose: str = ""
    key_points: List[str] = []
    cta: str = ""


class FlowOutline(BaseModel):
    flow_name: str = Field(..., min_length=1)
    goal: str = ""
    target_audience: str = ""
    emails: List[FlowOutlineEmail] = Field(..., min_length=1)


class GenerateFlowEmailsRequest(BaseModel):
    conversation_id: str
    flow_type: FlowType = "custom"
    outline: FlowOutline
    model: Optional[str] = None


class FlowEmailFailure(BaseModel):
    sequence: int
    error: str


class GenerateFlowEmailsResponse(BaseModel):
    success: bool
    outline_id: str
    children: List[str] = []
    generated: int = 0
    failed: int = 0
    failures: List[FlowEmailFailure] = []


class CreateCalendarEmailsRequest(BaseModel):
    calendar_conversation_id: str
    brief_ids: Optional[List[str]] = None
    create_all: bool = False


class CalendarEmailConversation(BaseModel):
    id: str
    title: Optional[str] = None
    brief_id: Optional[str] = None


class CreateCalendarEmailsResponse(BaseModel):
    success: bool
    created_count: int
    conversations: List[CalendarEmailConversation] = []
    message: str


class CalendarBriefStatus(BaseModel):
    id: str
    title: str
    approval_status: str = "draft"
    has_email_conversation: bool = False
    email_conversation_id: Optional[str] = None


class CalendarEmailsStatus(BaseModel):
    total_briefs: int
    approved_briefs: int
    created_emails: int
    briefs: List[CalendarBriefStatus] = []
    child_conversations: List[CalendarEmailConversation] = []
    can_create_emails: bool
