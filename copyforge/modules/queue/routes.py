from fastapi import APIRouter, Depends
from copyforge.database.supabase_client import get_supabase, get_service_supabase
from copyforge.modules.orchestrator.service import OrchestratorService
from copyforge.modules.queue.schemas import JobResponse, JobStatus, ProcessQueueResponse
from copyforge.modules.queue.service import QueueService
from copyforge.modules.queue.worker import process_queue
from copyforge.modules.rag.service import RAGService
from copyforge.core.dependencies import get_current_user, verify_cron_secret
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/jobs", tags=["jobs"])
cron_router = APIRouter(prefix="/cron", tags=["cron"])


def get_queue_service(supabase: Client = Depends(get_supabase)) -> QueueService:
    return QueueService(supabase)


def get_worker_orchestrator(supabase: Client = Depends(get_service_supabase)) -> OrchestratorService:
    return OrchestratorService(supabase, rag_service=RAGService(supabase))


@router.get("", response_model=List[JobResponse])
async def list_jobs(
    status: Optional[JobStatus] = None,
    limit: int = 50,
    current_user: Dict = Depends(get_current_user),
    service: QueueService = Depends(get_queue_service)
):
    return service.list_jobs(current_user["id"], status=status, limit=limit)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    current_user: Dict = Depends(get_current_user),
    service: QueueService = Depends(get_queue_service)
):
    return service.get_job(job_id, current_user["id"])


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: str,
    current_user: Dict = Depends(get_current_user),
    service: QueueService = Depends(get_queue_service)
):
    return service.cancel_job(job_id, current_user["id"])


@cron_router.post("/process-queue", response_model=ProcessQueueResponse, dependencies=[Depends(verify_cron_secret)])
def run_queue(
    limit: Optional[int] = None,
    supabase: Client = Depends(get_service_supabase),
    orchestrator: OrchestratorService = Depends(get_worker_orchestrator)
):
    """Periodic worker run; authenticated with the cron secret, not a user session"""
    return process_queue(supabase, limit=limit, orchestrator=orchestrator)
