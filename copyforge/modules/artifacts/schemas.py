from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime

ArtifactKind = Literal[
    "email",
    "flow",
    "campaign",
    "subject_lines",
    "template",
    "content_brief",
    "email_brief",
    "calendar",
    "markdown",
    "spreadsheet",
    "code",
    "checklist",
]

VersionKey = Literal["A", "B", "C"]

VERSION_COLUMNS = {"A": "version_a", "B": "version_b", "C": "version_c"}


class ArtifactVersion(BaseModel):
    label: Optional[str] = None
    subject_line: Optional[str] = None
    preview_text: Optional[str] = None
    approach: Optional[str] = None
    content: str = ""


class ArtifactCreate(BaseModel):
    conversation_id: str
    message_id: Optional[str] = None
    brand_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    kind: ArtifactKind = "email"
    content: str = ""
    version_a: Optional[ArtifactVersion] = None
    version_b: Optional[ArtifactVersion] = None
    version_c: Optional[ArtifactVersion] = None
    selected_version: VersionKey = "A"
    metadata: Optional[Dict[str, Any]] = None


class ArtifactUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    version_a: Optional[ArtifactVersion] = None
    version_b: Optional[ArtifactVersion] = None
    version_c: Optional[ArtifactVersion] = None
    selected_version: Optional[VersionKey] = None
    metadata: Optional[Dict[str, Any]] = None


class ArtifactResponse(BaseModel):
    id: str
    conversation_id: str
    message_id: Optional[str] = None
    brand_id: Optional[str] = None
    user_id: str
    title: str
    kind: str
    content: Optional[str] = ""
    version_a: Optional[Dict[str, Any]] = None
    version_b: Optional[Dict[str, Any]] = None
    version_c: Optional[Dict[str, Any]] = None
    selected_version: VersionKey = "A"
    share_token: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SelectVersion(BaseModel):
    version: VersionKey


class ArtifactShareResponse(BaseModel):
    share_token: str
    share_url: str


class ArtifactCommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    version_key: Optional[VersionKey] = None
    section_index: Optional[int] = Field(None, ge=0)


class ArtifactCommentResponse(BaseModel):
    id: str
    artifact_id: str
    user_id: str
    content: str
    version_key: Optional[VersionKey] = None
    section_index: Optional[int] = None
    resolved: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
