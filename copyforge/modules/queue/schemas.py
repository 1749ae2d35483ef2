from pydantic import BaseModel
from typing import Optional, Literal, Dict, Any
from datetime import datetime

JobStatus = Literal["pending", "processing", "completed", "failed", "cancelled"]


class JobResponse(BaseModel):
    id: str
    message_id: Optional[str] = None
    conversation_id: str
    user_id: str
    status: JobStatus
    priority: int = 0
    payload: Dict[str, Any] = {}
    retry_count: int = 0
    max_retries: int = 3
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProcessQueueResponse(BaseModel):
    processed: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    reclaimed: int = 0
