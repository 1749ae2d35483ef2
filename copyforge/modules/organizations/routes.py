from fastapi import APIRouter, Depends, HTTPException
from copyforge.database.supabase_client import get_supabase, get_service_supabase
from copyforge.modules.organizations.schemas import (
    OrganizationCreate, OrganizationUpdate, OrganizationResponse, MyOrganizationResponse,
    MemberResponse, MemberRoleUpdate, InviteCreate, InviteResponse,
    InviteAccept, InviteAcceptResponse
)
from copyforge.modules.organizations.service import OrganizationService
from copyforge.core.dependencies import (
    get_current_user, get_user_membership, get_membership_cache, require_organization, require_org_role
)
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/organizations", tags=["organizations"])


def get_organization_service(supabase: Client = Depends(get_supabase)) -> OrganizationService:
    return OrganizationService(supabase)


@router.get("", response_model=MyOrganizationResponse)
async def get_my_organization(
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
    supabase: Client = Depends(get_supabase),
    cache: Dict = Depends(get_membership_cache)
):
    """Current user's organization and role (both null when the user has none)"""
    membership = get_user_membership(current_user["id"], supabase, cache)
    return service.get_my_organization(membership)


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    org_data: OrganizationCreate,
    current_user: Dict = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service)
):
    """Create an organization; the creator becomes its admin"""
    return service.create_organization(org_data, current_user["id"])


@router.patch("", response_model=OrganizationResponse)
async def update_organization(
    org_data: OrganizationUpdate,
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Rename the organization or change its slug (admin only)"""
    return service.update_organization(user_data["organization_id"], org_data)


@router.get("/members", response_model=List[MemberResponse])
async def list_members(
    user_data: Dict = Depends(require_organization),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.list_members(user_data["organization_id"])


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    member_id: str,
    role_data: MemberRoleUpdate,
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Change a member's role (admin only)"""
    return service.update_member_role(user_data["organization_id"], member_id, role_data.role)


@router.delete("/members/{member_id}", status_code=204)
async def remove_member(
    member_id: str,
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Remove a member (admin only)"""
    if not service.remove_member(user_data["organization_id"], member_id, user_data["id"]):
        raise HTTPException(status_code=404, detail="Member not found")
    return None


@router.get("/invites", response_model=List[InviteResponse])
async def list_invites(
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Pending invitations (admin only)"""
    return service.list_invites(user_data["organization_id"])


@router.post("/invites", response_model=InviteResponse, status_code=201)
async def create_invite(
    invite_data: InviteCreate,
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    """Invite someone by email (admin only)"""
    return service.create_invite(user_data["organization_id"], invite_data, user_data)


@router.delete("/invites/{invite_id}", status_code=204)
async def revoke_invite(
    invite_id: str,
    user_data: Dict = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service)
):
    service.revoke_invite(user_data["organization_id"], invite_id)
    return None


@router.post("/invites/accept", response_model=InviteAcceptResponse)
async def accept_invite(
    accept_data: InviteAccept,
    service_supabase: Client = Depends(get_service_supabase)
):
    """Accept an invitation by token. Public: the invitee may have just signed up."""
    return OrganizationService(service_supabase).accept_invite(accept_data.token)
