from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from copyforge.modules.artifacts.schemas import ArtifactKind
from copyforge.modules.orchestrator.registry import SpecialistType, SpecialistOutputType


# ---- tool schemas (bound to chat models) ----

class ContextArtifact(BaseModel):
    id: str = Field(..., description="Artifact ID")
    kind: str = Field(..., description="Artifact kind (email, spreadsheet, etc.)")
    title: str = Field(..., description="Artifact title")
    summary: Optional[str] = Field(None, description="Brief summary of the artifact content")


class ContextProduct(BaseModel):
    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: Optional[float] = Field(None, description="Product price")


class PreviousOutput(BaseModel):
    specialist: str = Field(..., description="Previous specialist type")
    output: str = Field(..., description="Summary of previous output")
    artifact_ids: Optional[List[str]] = Field(None, description="Artifact IDs created")


class SpecialistContext(BaseModel):
    artifacts: Optional[List[ContextArtifact]] = Field(None, description="Artifacts the specialist should reference")
    products: Optional[List[ContextProduct]] = Field(None, description="Products relevant to the task")
    previous_output: Optional[PreviousOutput] = Field(None, description="Output from a previous specialist in the workflow")
    preferences: Optional[Dict[str, str]] = Field(None, description="User preferences (tone, length, style, etc.)")
    additional_context: Optional[str] = Field(None, description="Any additional context for the specialist")


class InvokeSpecialist(BaseModel):
    """Invoke a specialist agent to handle a task that needs deep expertise in one area.
    Handle simple questions, quick edits and general conversation yourself."""
    specialist: SpecialistType = Field(..., description="Which specialist agent to invoke")
    task: str = Field(..., description="Clear description of what you want the specialist to do")
    context: Optional[SpecialistContext] = Field(None, description="Context to pass to the specialist")
    expected_output: Optional[SpecialistOutputType] = Field(None, description="What type of output you expect from the specialist")

    class Config:
        title = "invoke_specialist"


class EmailVersionInput(BaseModel):
    id: Literal["a", "b", "c"] = Field(..., description="Version identifier")
    label: str = Field(..., description='Human-readable label, e.g. "Version A - Bold Approach"')
    subject_line: str = Field(..., description="Email subject line for this version")
    preview_text: Optional[str] = Field(None, description="Email preview text (preheader)")
    approach: Optional[str] = Field(None, description="Brief description of the approach for this version")
    content: str = Field(..., description="Full email body in markdown")


class CalendarSlot(BaseModel):
    id: str = Field(..., description="Unique slot identifier")
    date: str = Field(..., description="Date in YYYY-MM-DD format")
    title: str = Field(..., description="Email title")
    description: Optional[str] = Field(None, description="Brief description of the email content")
    email_type: Optional[Literal["promotional", "content", "announcement", "transactional", "nurture"]] = None
    status: Optional[Literal["draft", "scheduled", "sent", "approved", "pending"]] = None
    timing: Optional[str] = Field(None, description='Human-readable timing like "Morning" or "10:00 AM"')


class CreateArtifact(BaseModel):
    """Save generated content as a persistent artifact the user can edit, version and share."""
    kind: ArtifactKind = Field(..., description="Artifact kind")
    title: str = Field(..., min_length=1, max_length=255, description="Artifact title")
    description: Optional[str] = Field(None, description="One-line description")
    content: Optional[str] = Field(None, description="Main content in markdown")
    versions: Optional[List[EmailVersionInput]] = Field(None, description="Email versions A/B/C (email artifacts)")
    calendar_month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="Month in YYYY-MM format (calendar artifacts)")
    calendar_slots: Optional[List[CalendarSlot]] = Field(None, description="Scheduled sends (calendar artifacts)")
    # email_brief fields, one brief per planned send
    send_date: Optional[str] = Field(None, description="Planned send date, e.g. 2025-01-07 (email_brief artifacts)")
    brief_campaign_type: Optional[Literal["promotional", "content", "announcement", "transactional", "nurture"]] = None
    target_segment: Optional[str] = Field(None, description="Target audience segment")
    objective: Optional[str] = Field(None, description="What success looks like for this email")
    key_message: Optional[str] = Field(None, description="Primary message or hook")
    value_proposition: Optional[str] = None
    call_to_action: Optional[str] = Field(None, description="Primary CTA")
    subject_line_direction: Optional[str] = None
    tone_notes: Optional[str] = None

    class Config:
        title = "create_artifact"


# ---- results ----

class ArtifactRequest(BaseModel):
    kind: str
    title: str
    data: Dict[str, Any] = {}
    id: Optional[str] = None


class SpecialistResult(BaseModel):
    specialist: str
    status: Literal["success", "failed", "needs_input"]
    response: str = ""
    artifacts: List[ArtifactRequest] = []
    model_used: str = "none"
    duration_ms: int = 0


class RoutingDecision(BaseModel):
    use_orchestrator: bool
    specialist: Optional[str] = None
    task: Optional[str] = None
    reason: str
    invocation: Optional[InvokeSpecialist] = None
    reply: Optional[str] = None
    model_used: Optional[str] = None


class StructuredReplyError(ValueError):
    """Model output that should have been a JSON artifact was not"""


# ---- HTTP ----

class ChatRequest(BaseModel):
    conversation_id: str
    message: str = Field(..., min_length=1)
    mode: Optional[str] = None
    specialist: Optional[SpecialistType] = None
    model: Optional[str] = None
    background: bool = False
    priority: int = Field(0, ge=0, le=10)


class RouteRequest(BaseModel):
    message: str = Field(..., min_length=1)
    mode: Optional[str] = None
    specialist: Optional[SpecialistType] = None


class ChatResponse(BaseModel):
    conversation_id: str
    user_message_id: str
    assistant_message_id: Optional[str] = None
    status: Literal["completed", "pending", "failed"]
    content: Optional[str] = None
    specialist: Optional[str] = None
    model_used: Optional[str] = None
    artifact_ids: List[str] = []
    job_id: Optional[str] = None


class SpecialistInfo(BaseModel):
    id: str
    name: str
    description: str
    short_description: str
    capabilities: List[str]
    primary_output_type: str
    allowed_artifact_kinds: List[str]
    model_category: str
    model_id: str
    use_cases: List[str]

