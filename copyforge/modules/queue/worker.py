import logging
from typing import Any, Dict, Optional

from copyforge.config import settings
from copyforge.modules.notifications.service import create_notification
from copyforge.modules.orchestrator.service import OrchestratorService
from copyforge.modules.queue.schemas import ProcessQueueResponse
from copyforge.modules.queue.service import QueueService, max_retries_for
from copyforge.modules.rag.service import RAGService
from supabase import Client

logger = logging.getLogger(__name__)


def _conversation_link(conversation: Dict[str, Any]) -> str:
    return f"/brands/{conversation.get('brand_id')}/chat/{conversation['id']}"


def process_job(job: Dict[str, Any], supabase: Client, orchestrator: OrchestratorService) -> None:
    """
    Generate the reply for one claimed job.
    Raises on any failure so the caller can record it against the job.
    """
    result = supabase.table("conversations")\
        .select("*")\
        .eq("id", job["conversation_id"])\
        .limit(1)\
        .execute()
    if not result.data:
        raise ValueError(f"Conversation {job['conversation_id']} not found")
    conversation = result.data[0]

    payload = job.get("payload") or {}
    if not payload.get("message"):
        raise ValueError("Job payload has no message")

    response = orchestrator.run_turn(
        conversation,
        payload["message"],
        job["user_id"],
        user_message_id=payload.get("user_message_id") or "",
        mode=payload.get("mode"),
        specialist=payload.get("specialist"),
        model_id=payload.get("model"),
        assistant_message_id=job.get("message_id"),
    )
    if response.status == "failed":
        raise RuntimeError(response.content or "Generation failed")

    create_notification(
        supabase,
        job["user_id"],
        "job_completed",
        "Message Generated",
        f"Your message in \"{conversation.get('title') or 'Untitled conversation'}\" is ready",
        link=_conversation_link(conversation),
        metadata={
            "job_id": job["id"],
            "message_id": job.get("message_id"),
            "conversation_id": conversation["id"],
        },
    )


def _notify_failure(supabase: Client, job: Dict[str, Any], error: str, attempts: int) -> None:
    create_notification(
        supabase,
        job["user_id"],
        "job_failed",
        "Message Generation Failed",
        f"We couldn't generate your message after {attempts} attempt{'' if attempts == 1 else 's'}: {error}",
        link=f"/chat/{job['conversation_id']}",
        metadata={
            "job_id": job["id"],
            "message_id": job.get("message_id"),
            "conversation_id": job["conversation_id"],
        },
    )


def reclaim_stale_jobs(queue: QueueService, supabase: Client, stats: ProcessQueueResponse) -> None:
    for job in queue.fetch_stale():
        retry_count = queue.expire_job(job)
        if retry_count is None:
            continue
        stats.reclaimed += 1
        logger.warning(f"Job {job['id']} timed out in processing, marked failed")
        if retry_count >= max_retries_for(job):
            _notify_failure(supabase, job, "Job timed out", retry_count)


def process_queue(
    supabase: Client,
    limit: Optional[int] = None,
    orchestrator: Optional[OrchestratorService] = None,
) -> ProcessQueueResponse:
    """
    Drain up to `limit` jobs. Each job is claimed with a conditional update
    before it is touched, so concurrent runs never process the same job.
    Every claimed job ends completed or failed; jobs stuck in processing
    past the timeout are failed first so they re-enter the retry path.
    """
    queue = QueueService(supabase)
    if orchestrator is None:
        orchestrator = OrchestratorService(supabase, rag_service=RAGService(supabase))
    stats = ProcessQueueResponse()
    reclaim_stale_jobs(queue, supabase, stats)

    for job in queue.fetch_candidates(limit or settings.queue_batch_size):
        claimed = queue.claim_job(job)
        if not claimed:
            logger.info(f"Job {job['id']} already claimed, skipping")
            stats.skipped += 1
            continue

        stats.processed += 1
        try:
            process_job(claimed, supabase, orchestrator)
            queue.complete_job(claimed)
            stats.completed += 1
            logger.info(f"Job {claimed['id']} completed")
        except Exception as e:
            logger.error(f"Job {claimed['id']} failed: {str(e)}")
            stats.failed += 1
            try:
                retry_count = queue.fail_job(claimed, str(e))
            except Exception as write_error:
                # left in processing; reclaimed once it passes the timeout
                logger.error(f"Could not record failure for job {claimed['id']}: {write_error}")
                continue
            if retry_count >= max_retries_for(claimed):
                _notify_failure(supabase, claimed, str(e), retry_count)

    logger.info(
        f"Queue run: processed={stats.processed} completed={stats.completed} "
        f"failed={stats.failed} skipped={stats.skipped} reclaimed={stats.reclaimed}"
    )
    return stats
