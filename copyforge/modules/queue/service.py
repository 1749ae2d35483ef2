from supabase import Client
from copyforge.config import settings
from copyforge.modules.queue.schemas import JobResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = ("pending", "failed")
FAILED_SCAN_PAGE = 100


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def max_retries_for(job: Dict[str, Any]) -> int:
    """Stored max_retries, falling back to the configured default only when the column is unset"""
    value = job.get("max_retries")
    return settings.queue_max_retries if value is None else value


def has_retries_left(job: Dict[str, Any]) -> bool:
    return (job.get("retry_count") or 0) < max_retries_for(job)


class QueueService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def enqueue(self, user_id: str, conversation_id: str, message_id: str, payload: Dict[str, Any],
                priority: int = 0) -> JobResponse:
        """Insert a pending job and mark its message pending"""
        try:
            result = self.supabase.table("message_jobs").insert({
                "user_id": user_id,
                "conversation_id": conversation_id,
                "message_id": message_id,
                "payload": payload,
                "priority": priority,
                "status": "pending",
                "retry_count": 0,
                "max_retries": settings.queue_max_retries,
                "created_at": _now(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to queue message")
            job = result.data[0]
            logger.info(f"Queued job {job['id']} for message {message_id} (priority {priority})")
            self.mirror_message_status(message_id, "pending")
            return JobResponse(**job)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_jobs(self, user_id: str, status: Optional[str] = None, limit: int = 50) -> List[JobResponse]:
        try:
            query = self.supabase.table("message_jobs")\
                .select("*")\
                .eq("user_id", user_id)
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [JobResponse(**j) for j in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_job(self, job_id: str, user_id: str) -> JobResponse:
        try:
            result = self.supabase.table("message_jobs")\
                .select("*")\
                .eq("id", job_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Job not found")
            return JobResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def cancel_job(self, job_id: str, user_id: str) -> JobResponse:
        """Cancel a job that no worker has claimed; 400 once it is processing or finished"""
        try:
            job = self.get_job(job_id, user_id)
            if job.status not in CANCELLABLE_STATUSES:
                raise HTTPException(status_code=400, detail=f"Job cannot be cancelled while {job.status}")
            result = self.supabase.table("message_jobs")\
                .update({"status": "cancelled", "completed_at": _now()})\
                .eq("id", job_id)\
                .eq("status", job.status)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=409, detail="Job was picked up by a worker")
            if job.message_id:
                self.mirror_message_status(job.message_id, "cancelled")
            return JobResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ---- worker side ----

    def fetch_candidates(self, limit: int) -> List[Dict[str, Any]]:
        """Pending jobs plus failed jobs with retries left, highest priority first, then oldest"""
        pending = self.supabase.table("message_jobs")\
            .select("*")\
            .eq("status", "pending")\
            .order("priority", desc=True)\
            .order("created_at")\
            .limit(limit)\
            .execute()
        candidates = (pending.data or []) + self._retryable_failed(limit)
        candidates.sort(key=lambda j: (-(j.get("priority") or 0), j.get("created_at") or ""))
        return candidates[:limit]

    def _retryable_failed(self, limit: int) -> List[Dict[str, Any]]:
        # max_retries is per row, so exhausted jobs are skipped page by page until enough remain
        retryable: List[Dict[str, Any]] = []
        offset = 0
        while len(retryable) < limit:
            page = self.supabase.table("message_jobs")\
                .select("*")\
                .eq("status", "failed")\
                .order("priority", desc=True)\
                .order("created_at")\
                .range(offset, offset + FAILED_SCAN_PAGE - 1)\
                .execute()
            rows = page.data or []
            retryable.extend(j for j in rows if has_retries_left(j))
            if len(rows) < FAILED_SCAN_PAGE:
                break
            offset += FAILED_SCAN_PAGE
        return retryable[:limit]

    def claim_job(self, job: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Move a job to processing only if its status is still what we read; None if someone else claimed it"""
        result = self.supabase.table("message_jobs")\
            .update({"status": "processing", "started_at": _now(), "error": None})\
            .eq("id", job["id"])\
            .eq("status", job["status"])\
            .execute()
        if not result.data:
            return None
        if job.get("message_id"):
            self.mirror_message_status(job["message_id"], "processing")
        return result.data[0]

    def fetch_stale(self) -> List[Dict[str, Any]]:
        """Jobs stuck in processing past the timeout (worker killed or failure write lost)"""
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=settings.queue_processing_timeout)
        result = self.supabase.table("message_jobs")\
            .select("*")\
            .eq("status", "processing")\
            .lt("started_at", cutoff.isoformat())\
            .execute()
        return result.data or []

    def expire_job(self, job: Dict[str, Any]) -> Optional[int]:
        """
        Fail a stale processing job as one attempt. Conditional on the
        started_at we read, so only one worker reclaims it; None if another did.
        """
        retry_count = (job.get("retry_count") or 0) + 1
        result = self.supabase.table("message_jobs")\
            .update({
                "status": "failed",
                "error": "Job timed out",
                "retry_count": retry_count,
                "completed_at": _now(),
            })\
            .eq("id", job["id"])\
            .eq("status", "processing")\
            .eq("started_at", job.get("started_at"))\
            .execute()
        if not result.data:
            return None
        if job.get("message_id"):
            self.mirror_message_status(job["message_id"], "failed")
        return retry_count

    def complete_job(self, job: Dict[str, Any]) -> None:
        self.supabase.table("message_jobs")\
            .update({"status": "completed", "completed_at": _now()})\
            .eq("id", job["id"])\
            .execute()

    def fail_job(self, job: Dict[str, Any], error: str) -> int:
        """Record a failure; returns the new retry_count"""
        retry_count = (job.get("retry_count") or 0) + 1
        self.supabase.table("message_jobs")\
            .update({
                "status": "failed",
                "error": error,
                "retry_count": retry_count,
                "completed_at": _now(),
            })\
            .eq("id", job["id"])\
            .execute()
        if job.get("message_id"):
            self.mirror_message_status(job["message_id"], "failed")
        return retry_count

    def mirror_message_status(self, message_id: str, status: str) -> None:
        """Keep messages.status in step with the job; failures are logged only"""
        try:
            self.supabase.table("messages")\
                .update({"status": status})\
                .eq("id", message_id)\
                .execute()
        except Exception as e:
            logger.warning(f"Failed to set message {message_id} status to {status}: {e}")
