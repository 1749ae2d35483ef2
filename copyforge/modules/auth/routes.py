from fastapi import APIRouter, Depends
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.auth.schemas import LoginRequest, TokenResponse, CurrentUserResponse
from copyforge.modules.auth.service import AuthService
from copyforge.core.dependencies import (
    get_auth_service, get_access_token, get_current_user, get_user_membership, get_membership_cache
)
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_membership_cache),
    service: AuthService = Depends(get_auth_service)
):
    """Current user with profile details and organization role"""
    membership = get_user_membership(current_user["id"], supabase, cache) or {}
    profile = service.get_profile(current_user["id"]) or {}
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        full_name=profile.get("full_name") or current_user.get("user_metadata", {}).get("full_name"),
        avatar_url=profile.get("avatar_url"),
        user_metadata=current_user.get("user_metadata") or {},
        organization_id=membership.get("organization_id"),
        organization_role=membership.get("role"),
    )
