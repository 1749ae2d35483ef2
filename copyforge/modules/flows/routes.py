from fastapi import APIRouter, Depends
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.flows.schemas import (
    GenerateFlowEmailsRequest, GenerateFlowEmailsResponse,
    CreateCalendarEmailsRequest, CreateCalendarEmailsResponse, CalendarEmailsStatus
)
from copyforge.modules.flows.service import FlowService
from copyforge.modules.rag.service import RAGService
from copyforge.core.dependencies import get_current_user, check_conversation_owner
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/flows", tags=["flows"])
calendar_router = APIRouter(prefix="/calendar", tags=["calendar"])


def get_flow_service(supabase: Client = Depends(get_supabase)) -> FlowService:
    return FlowService(supabase, rag_service=RAGService(supabase))


@router.post("/generate-emails", response_model=GenerateFlowEmailsResponse)
def generate_flow_emails(
    flow_request: GenerateFlowEmailsRequest,
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    service: FlowService = Depends(get_flow_service)
):
    """
    Approve a flow outline and write every email in it.

    Each email lands in its own child conversation linked to the flow
    conversation. Partial failures are listed in the response.
    """
    conversation = check_conversation_owner(flow_request.conversation_id, current_user, supabase)
    return service.generate_flow_emails(conversation, flow_request, current_user["id"])


@calendar_router.post("/create-emails", response_model=CreateCalendarEmailsResponse)
def create_calendar_emails(
    calendar_request: CreateCalendarEmailsRequest,
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    service: FlowService = Depends(get_flow_service)
):
    """Open an email conversation for each approved brief of a calendar"""
    calendar = check_conversation_owner(calendar_request.calendar_conversation_id, current_user, supabase)
    return service.create_calendar_emails(calendar, calendar_request, current_user["id"])


@calendar_router.get("/{conversation_id}/emails", response_model=CalendarEmailsStatus)
def calendar_emails_status(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    service: FlowService = Depends(get_flow_service)
):
    calendar = check_conversation_owner(conversation_id, current_user, supabase)
    return service.calendar_status(calendar)
