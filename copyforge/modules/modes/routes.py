from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.modes.schemas import ModeCreate, ModeUpdate, ModeResponse
from copyforge.modules.modes.service import ModeService
from copyforge.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/modes", tags=["modes"])


def get_mode_service(supabase: Client = Depends(get_supabase)) -> ModeService:
    return ModeService(supabase)


@router.get("", response_model=List[ModeResponse])
async def list_modes(
    active_only: bool = False,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    return service.list_modes(current_user["id"], active_only=active_only)


@router.post("", response_model=ModeResponse, status_code=201)
async def create_mode(
    mode_data: ModeCreate,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    return service.create_mode(mode_data, current_user["id"])


@router.get("/{mode_id}", response_model=ModeResponse)
async def get_mode(
    mode_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    return service.get_mode(mode_id, current_user["id"])


@router.put("/{mode_id}", response_model=ModeResponse)
async def update_mode(
    mode_id: str,
    mode_data: ModeUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    """Update a mode (default modes cannot be modified)"""
    return service.update_mode(mode_id, current_user["id"], mode_data)


@router.delete("/{mode_id}", status_code=204)
async def delete_mode(
    mode_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    if not service.delete_mode(mode_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Mode not found")
    return None


@router.post("/{mode_id}/duplicate", response_model=ModeResponse, status_code=201)
async def duplicate_mode(
    mode_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ModeService = Depends(get_mode_service)
):
    return service.duplicate_mode(mode_id, current_user["id"])
