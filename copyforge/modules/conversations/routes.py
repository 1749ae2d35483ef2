from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from copyforge.database.supabase_client import get_supabase, get_service_supabase
from copyforge.modules.conversations.schemas import (
    ConversationCreate, ConversationUpdate, ConversationResponse, ConversationWithMessages,
    MessageCreate, MessageResponse, StarResponse, PinResponse, ArchiveResponse, ShareCreate, ShareResponse,
    SharedConversationResponse, ConversationExport, ExportFormat,
    CommentCreate, CommentUpdate, CommentResponse
)
from copyforge.modules.conversations.service import ConversationService, export_filename
from copyforge.core.dependencies import get_current_user, check_brand_access, check_conversation_owner
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/conversations", tags=["conversations"])
shared_router = APIRouter(prefix="/shared", tags=["shared"])


def get_conversation_service(supabase: Client = Depends(get_supabase)) -> ConversationService:
    return ConversationService(supabase)


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    brand_id: Optional[str] = None,
    starred: Optional[bool] = None,
    archived: Optional[bool] = None,
    limit: int = 20,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """List the caller's conversations, optionally for one brand, starred or archived"""
    return service.list_conversations(
        current_user["id"], brand_id=brand_id, starred=starred, archived=archived, limit=limit, offset=offset
    )


@router.post("", response_model=ConversationResponse, status_code=201)
async def create_conversation(
    conversation_data: ConversationCreate,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    if conversation_data.brand_id:
        check_brand_access(conversation_data.brand_id, current_user, supabase)
    return service.create_conversation(conversation_data, current_user["id"])


@router.get("/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    """Conversation with its messages in order"""
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return service.get_conversation_with_messages(conversation)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: str,
    conversation_data: ConversationUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    return service.update_conversation(conversation_id, current_user["id"], conversation_data)


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    if not service.delete_conversation(conversation_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return None


@router.post("/{conversation_id}/star", response_model=StarResponse)
async def toggle_star(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return StarResponse(is_starred=service.toggle_star(conversation))


@router.post("/{conversation_id}/pin", response_model=PinResponse)
async def toggle_pin(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return PinResponse(is_pinned=service.toggle_pin(conversation))


@router.post("/{conversation_id}/archive", response_model=ArchiveResponse)
async def toggle_archive(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return ArchiveResponse(is_archived=service.toggle_archive(conversation))


@router.post("/{conversation_id}/duplicate", response_model=ConversationResponse, status_code=201)
async def duplicate_conversation(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    """Copy the conversation with all of its messages"""
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return service.duplicate_conversation(conversation, current_user["id"])


@router.get("/{conversation_id}/export", response_model=ConversationExport)
async def export_conversation(
    conversation_id: str,
    export_format: ExportFormat = Query("markdown", alias="format"),
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    """Download the conversation as Markdown (default) or JSON"""
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    if export_format == "json":
        return service.export_json(conversation)
    return PlainTextResponse(
        service.export_markdown(conversation),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(conversation, "md")}"'},
    )


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: str,
    limit: int = 100,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    check_conversation_owner(conversation_id, current_user, supabase)
    return service.list_messages(conversation_id, limit=limit, offset=offset)


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def add_message(
    conversation_id: str,
    message_data: MessageCreate,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    """Store a message without running the model (use /chat for AI turns)"""
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    return service.add_message(conversation, message_data)


@router.post("/{conversation_id}/share", response_model=ShareResponse)
async def share_conversation(
    conversation_id: str,
    share_data: Optional[ShareCreate] = None,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service),
    supabase: Client = Depends(get_supabase)
):
    """Create a public read-only link"""
    conversation = check_conversation_owner(conversation_id, current_user, supabase)
    share_data = share_data or ShareCreate()
    return service.share_conversation(conversation, share_data.share_content)


@router.get("/{conversation_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    conversation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    service.get_accessible_conversation(conversation_id, current_user)
    return service.list_comments(conversation_id)


@router.post("/{conversation_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    conversation_id: str,
    comment_data: CommentCreate,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    """Comment on a conversation (owner or member of the brand's organization)"""
    conversation = service.get_accessible_conversation(conversation_id, current_user)
    return service.add_comment(conversation, comment_data, current_user)


@router.patch("/{conversation_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    conversation_id: str,
    comment_id: str,
    comment_data: CommentUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    conversation = service.get_accessible_conversation(conversation_id, current_user)
    return service.update_comment(conversation, comment_id, comment_data, current_user["id"])


@router.delete("/{conversation_id}/comments/{comment_id}", status_code=204)
async def delete_comment(
    conversation_id: str,
    comment_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ConversationService = Depends(get_conversation_service)
):
    conversation = service.get_accessible_conversation(conversation_id, current_user)
    if not service.delete_comment(conversation, comment_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Comment not found")
    return None


@shared_router.get("/conversations/{share_token}", response_model=SharedConversationResponse)
async def get_shared_conversation(
    share_token: str,
    service_supabase: Client = Depends(get_service_supabase)
):
    """Public view of a shared conversation"""
    return ConversationService(service_supabase).get_shared_conversation(share_token)
