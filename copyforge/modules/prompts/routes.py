from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.prompts.schemas import PromptCreate, PromptUpdate, PromptResponse
from copyforge.modules.prompts.service import PromptService
from copyforge.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/prompts", tags=["prompts"])


def get_prompt_service(supabase: Client = Depends(get_supabase)) -> PromptService:
    return PromptService(supabase)


@router.get("", response_model=List[PromptResponse])
async def list_prompts(
    mode: Optional[str] = None,
    current_user: Dict = Depends(get_current_user),
    service: PromptService = Depends(get_prompt_service)
):
    """Saved prompts (default set created on first use), optionally only those offered in a mode"""
    return service.list_prompts(current_user["id"], mode=mode)


@router.post("", response_model=PromptResponse, status_code=201)
async def create_prompt(
    prompt_data: PromptCreate,
    current_user: Dict = Depends(get_current_user),
    service: PromptService = Depends(get_prompt_service)
):
    return service.create_prompt(prompt_data, current_user["id"])


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PromptService = Depends(get_prompt_service)
):
    return service.get_prompt(prompt_id, current_user["id"])


@router.patch("/{prompt_id}", response_model=PromptResponse)
async def update_prompt(
    prompt_id: str,
    prompt_data: PromptUpdate,
    current_user: Dict = Depends(get_current_user),
    service: PromptService = Depends(get_prompt_service)
):
    return service.update_prompt(prompt_id, current_user["id"], prompt_data)


@router.delete("/{prompt_id}", status_code=204)
async def delete_prompt(
    prompt_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PromptService = Depends(get_prompt_service)
):
    if not service.delete_prompt(prompt_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Prompt not found")
    return None
