from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase, get_service_supabase
from copyforge.modules.artifacts.schemas import (
    ArtifactCreate, ArtifactUpdate, ArtifactResponse, ArtifactVersion, SelectVersion,
    ArtifactShareResponse, ArtifactCommentCreate, ArtifactCommentResponse
)
from copyforge.modules.artifacts.service import ArtifactService
from copyforge.core.dependencies import get_current_user, check_brand_access, check_conversation_owner
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/artifacts", tags=["artifacts"])
shared_router = APIRouter(prefix="/shared", tags=["shared"])


def get_artifact_service(supabase: Client = Depends(get_supabase)) -> ArtifactService:
    return ArtifactService(supabase)


@router.get("", response_model=List[ArtifactResponse])
async def list_artifacts(
    conversation_id: Optional[str] = None,
    brand_id: Optional[str] = None,
    kind: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    """List the caller's artifacts, filtered by conversation, brand or kind"""
    return service.list_artifacts(
        current_user["id"], conversation_id=conversation_id, brand_id=brand_id, kind=kind, limit=limit, offset=offset
    )


@router.post("", response_model=ArtifactResponse, status_code=201)
async def create_artifact(
    artifact_data: ArtifactCreate,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service),
    supabase: Client = Depends(get_supabase)
):
    conversation = check_conversation_owner(artifact_data.conversation_id, current_user, supabase)
    if artifact_data.brand_id:
        check_brand_access(artifact_data.brand_id, current_user, supabase)
    else:
        artifact_data.brand_id = conversation.get("brand_id")
    return service.create_artifact(artifact_data, current_user["id"])


@router.get("/{artifact_id}", response_model=ArtifactResponse)
async def get_artifact(
    artifact_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    return ArtifactResponse(**service.get_accessible_artifact(artifact_id, current_user["id"]))


@router.patch("/{artifact_id}", response_model=ArtifactResponse)
async def update_artifact(
    artifact_id: str,
    artifact_data: ArtifactUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    return service.update_artifact(artifact_id, current_user["id"], artifact_data)


@router.delete("/{artifact_id}", status_code=204)
async def delete_artifact(
    artifact_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    if not service.delete_artifact(artifact_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Artifact not found")
    return None


@router.post("/{artifact_id}/select-version", response_model=ArtifactResponse)
async def select_version(
    artifact_id: str,
    selection: SelectVersion,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    return service.select_version(artifact_id, current_user["id"], selection.version)


@router.put("/{artifact_id}/versions/{version_key}", response_model=ArtifactResponse)
async def update_version(
    artifact_id: str,
    version_key: str,
    version_data: ArtifactVersion,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    """Replace the content of version A, B or C"""
    return service.update_version(artifact_id, current_user["id"], version_key, version_data)


@router.post("/{artifact_id}/share", response_model=ArtifactShareResponse)
async def share_artifact(
    artifact_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    return service.share_artifact(artifact_id, current_user["id"])


@router.get("/{artifact_id}/comments", response_model=List[ArtifactCommentResponse])
async def list_comments(
    artifact_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    service.get_accessible_artifact(artifact_id, current_user["id"])
    return service.list_comments(artifact_id)


@router.post("/{artifact_id}/comments", response_model=ArtifactCommentResponse, status_code=201)
async def add_comment(
    artifact_id: str,
    comment_data: ArtifactCommentCreate,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    service.get_accessible_artifact(artifact_id, current_user["id"])
    return service.add_comment(artifact_id, current_user["id"], comment_data)


@router.post("/{artifact_id}/comments/{comment_id}/resolve", response_model=ArtifactCommentResponse)
async def toggle_comment_resolved(
    artifact_id: str,
    comment_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    """Resolve or reopen a comment"""
    service.get_accessible_artifact(artifact_id, current_user["id"])
    return service.toggle_comment_resolved(artifact_id, comment_id)


@router.delete("/{artifact_id}/comments/{comment_id}", status_code=204)
async def delete_comment(
    artifact_id: str,
    comment_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ArtifactService = Depends(get_artifact_service)
):
    service.get_accessible_artifact(artifact_id, current_user["id"])
    if not service.delete_comment(artifact_id, comment_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Comment not found")
    return None


@shared_router.get("/artifacts/{share_token}", response_model=ArtifactResponse)
async def get_shared_artifact(
    share_token: str,
    service_supabase: Client = Depends(get_service_supabase)
):
    """Public view of a shared artifact"""
    return ArtifactService(service_supabase).get_shared_artifact(share_token)
