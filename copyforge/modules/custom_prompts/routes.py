from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.custom_prompts.schemas import (
    CustomPromptCreate, CustomPromptUpdate, CustomPromptResponse, DeactivateRequest, DeactivateResponse
)
from copyforge.modules.custom_prompts.service import CustomPromptService
from copyforge.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/custom-prompts", tags=["custom-prompts"])


def get_custom_prompt_service(supabase: Client = Depends(get_supabase)) -> CustomPromptService:
    return CustomPromptService(supabase)


@router.get("", response_model=List[CustomPromptResponse])
async def list_custom_prompts(
    prompt_type: Optional[str] = None,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    return service.list_prompts(current_user["id"], prompt_type=prompt_type)


@router.post("", response_model=CustomPromptResponse, status_code=201)
async def create_custom_prompt(
    prompt_data: CustomPromptCreate,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    return service.create_prompt(prompt_data, current_user["id"])


@router.post("/deactivate", response_model=DeactivateResponse)
async def deactivate_custom_prompts(
    request_data: DeactivateRequest,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    """Fall back to the built-in prompt for one type by deactivating all of the caller's custom prompts of that type"""
    deactivated = service.deactivate_type(current_user["id"], request_data.prompt_type)
    return DeactivateResponse(prompt_type=request_data.prompt_type, deactivated=deactivated)


@router.patch("/{prompt_id}", response_model=CustomPromptResponse)
async def update_custom_prompt(
    prompt_id: str,
    prompt_data: CustomPromptUpdate,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    return service.update_prompt(prompt_id, current_user["id"], prompt_data)


@router.delete("/{prompt_id}", status_code=204)
async def delete_custom_prompt(
    prompt_id: str,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    if not service.delete_prompt(prompt_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Custom prompt not found")
    return None


@router.post("/{prompt_id}/activate", response_model=CustomPromptResponse)
async def activate_custom_prompt(
    prompt_id: str,
    current_user: Dict = Depends(get_current_user),
    service: CustomPromptService = Depends(get_custom_prompt_service)
):
    """Activate a prompt; other prompts of the same type are deactivated"""
    return service.activate_prompt(prompt_id, current_user["id"])
