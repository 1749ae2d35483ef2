from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.conversations.schemas import MessageCreate
from copyforge.modules.conversations.service import ConversationService
from copyforge.modules.orchestrator.registry import all_specialists
from copyforge.modules.orchestrator.schemas import ChatRequest, ChatResponse, RouteRequest, RoutingDecision, SpecialistInfo
from copyforge.modules.orchestrator.service import OrchestratorService, model_for_specialist
from copyforge.modules.queue.service import QueueService
from copyforge.modules.rag.service import RAGService
from copyforge.core.dependencies import get_current_user, check_conversation_owner
from supabase import Client
from typing import List, Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def get_orchestrator_service(supabase: Client = Depends(get_supabase)) -> OrchestratorService:
    return OrchestratorService(supabase, rag_service=RAGService(supabase))


@router.post("", response_model=ChatResponse)
def chat(
    chat_request: ChatRequest,
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    orchestrator: OrchestratorService = Depends(get_orchestrator_service)
):
    """
    Run one chat turn.

    The user message is stored first. With background=true an empty
    assistant message is stored as pending and a job is queued for the cron
    worker; otherwise the reply is generated in this request.
    """
    conversation = check_conversation_owner(chat_request.conversation_id, current_user, supabase)
    conversation_service = ConversationService(supabase)
    user_message = conversation_service.add_message(conversation, MessageCreate(role="user", content=chat_request.message))

    if chat_request.background:
        placeholder = conversation_service.add_message(
            conversation, MessageCreate(role="assistant", content=""), status="pending"
        )
        queue = QueueService(supabase)
        try:
            job = queue.enqueue(
                user_id=current_user["id"],
                conversation_id=conversation["id"],
                message_id=placeholder.id,
                payload={
                    "message": chat_request.message,
                    "mode": chat_request.mode,
                    "specialist": chat_request.specialist,
                    "model": chat_request.model,
                    "user_message_id": user_message.id,
                },
                priority=chat_request.priority,
            )
        except Exception:
            # no job will ever fill this placeholder
            queue.mirror_message_status(placeholder.id, "failed")
            raise
        return ChatResponse(
            conversation_id=conversation["id"],
            user_message_id=user_message.id,
            assistant_message_id=placeholder.id,
            status="pending",
            job_id=job.id,
        )

    try:
        return orchestrator.run_turn(
            conversation,
            chat_request.message,
            current_user["id"],
            user_message_id=user_message.id,
            mode=chat_request.mode,
            specialist=chat_request.specialist,
            model_id=chat_request.model,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Chat turn failed for conversation {conversation['id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate a reply")


@router.post("/route", response_model=RoutingDecision, response_model_exclude_none=True)
def preview_route(
    route_request: RouteRequest,
    current_user: Dict = Depends(get_current_user),
    orchestrator: OrchestratorService = Depends(get_orchestrator_service)
):
    """Show which specialist (if any) would handle a message, without generating a reply"""
    try:
        return orchestrator.decide_route(route_request.message, route_request.mode, route_request.specialist)
    except Exception as e:
        logger.exception(f"Routing preview failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to route message")


@router.get("/specialists", response_model=List[SpecialistInfo])
async def list_specialists(current_user: Dict = Depends(get_current_user)):
    return [
        SpecialistInfo(
            id=s.id,
            name=s.name,
            description=s.description,
            short_description=s.short_description,
            capabilities=s.capabilities,
            primary_output_type=s.primary_output_type,
            allowed_artifact_kinds=s.allowed_artifact_kinds,
            model_category=s.model_category,
            model_id=model_for_specialist(s.id),
            use_cases=s.use_cases,
        )
        for s in all_specialists()
    ]
