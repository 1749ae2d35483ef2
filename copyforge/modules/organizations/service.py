from supabase import Client
from copyforge.modules.organizations.schemas import (
    OrganizationCreate, OrganizationUpdate, OrganizationResponse, MyOrganizationResponse,
    MemberResponse, InviteCreate, InviteResponse, InviteAcceptResponse
)
from copyforge.core.email import send_invite_email
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
import logging
import re
import secrets

logger = logging.getLogger(__name__)

INVITE_TTL_DAYS = 7
MAX_SLUG_ATTEMPTS = 100


def generate_slug(name: str) -> str:
    """URL-safe slug: lowercase, alphanumerics and single hyphens"""
    slug = name.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class OrganizationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _slug_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.supabase.table("organizations").select("id").eq("slug", slug)
        if exclude_id:
            query = query.neq("id", exclude_id)
        return bool(query.limit(1).execute().data)

    def get_unique_slug(self, base_slug: str) -> str:
        """Append -1, -2, ... until the slug is free; random suffix after MAX_SLUG_ATTEMPTS"""
        slug = base_slug
        counter = 1
        while self._slug_taken(slug):
            if counter > MAX_SLUG_ATTEMPTS:
                return f"{base_slug}-{secrets.token_hex(3)}"
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    def get_organization_by_id(self, organization_id: str) -> OrganizationResponse:
        """Get organization by ID"""
        try:
            result = self.supabase.table("organizations")\
                .select("*")\
                .eq("id", organization_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Organization not found")

            return OrganizationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_my_organization(self, membership: Optional[dict]) -> MyOrganizationResponse:
        """Organization and role for a membership row; empty response when the user has none"""
        if not membership:
            return MyOrganizationResponse()
        organization = self.get_organization_by_id(membership["organization_id"])
        return MyOrganizationResponse(organization=organization, role=membership["role"])

    def create_organization(self, org_data: OrganizationCreate, user_id: str) -> OrganizationResponse:
        """Create an organization and add the creator as admin"""
        try:
            existing = self.supabase.table("organization_members")\
                .select("id")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="You already belong to an organization")

            base_slug = generate_slug(org_data.name)
            if not base_slug:
                raise HTTPException(status_code=400, detail="Organization name must contain valid characters")
            slug = self.get_unique_slug(base_slug)

            result = self.supabase.table("organizations").insert({
                "name": org_data.name,
                "slug": slug
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create organization")
            org = result.data[0]

            try:
                self.supabase.table("organization_members").insert({
                    "organization_id": org["id"],
                    "user_id": user_id,
                    "role": "admin",
                    "invited_by": user_id,
                    "joined_at": datetime.now(timezone.utc).isoformat()
                }).execute()
            except Exception as member_err:
                logger.error(f"Failed to add creator to organization {org['id']}: {member_err}")
                # Remove the orphaned organization
                self.supabase.table("organizations").delete().eq("id", org["id"]).execute()
                raise HTTPException(status_code=500, detail="Failed to add you to the organization")

            return OrganizationResponse(**org)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_organization(self, organization_id: str, org_data: OrganizationUpdate) -> OrganizationResponse:
        """Update organization name and/or slug"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if org_data.name is not None:
                name = org_data.name.strip()
                if len(name) < 2:
                    raise HTTPException(status_code=400, detail="Organization name must be at least 2 characters")
                update_data["name"] = name
            if org_data.slug is not None:
                clean_slug = re.sub(r"[^a-z0-9-]", "", org_data.slug.lower())
                if len(clean_slug) < 2:
                    raise HTTPException(status_code=400, detail="Slug must be at least 2 characters")
                if self._slug_taken(clean_slug, exclude_id=organization_id):
                    raise HTTPException(status_code=400, detail="This slug is already taken")
                update_data["slug"] = clean_slug

            result = self.supabase.table("organizations")\
                .update(update_data)\
                .eq("id", organization_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Organization not found")

            return OrganizationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, organization_id: str) -> List[MemberResponse]:
        """List members with their profile email and name"""
        try:
            result = self.supabase.table("organization_members")\
                .select("*")\
                .eq("organization_id", organization_id)\
                .order("joined_at")\
                .execute()
            members = result.data or []
            if not members:
                return []

            profiles_result = self.supabase.table("profiles")\
                .select("user_id, email, full_name")\
                .in_("user_id", [m["user_id"] for m in members])\
                .execute()
            profiles = {p["user_id"]: p for p in (profiles_result.data or [])}

            return [
                MemberResponse(
                    **member,
                    email=profiles.get(member["user_id"], {}).get("email"),
                    full_name=profiles.get(member["user_id"], {}).get("full_name"),
                )
                for member in members
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_member(self, organization_id: str, member_id: str) -> dict:
        result = self.supabase.table("organization_members")\
            .select("*")\
            .eq("id", member_id)\
            .eq("organization_id", organization_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Member not found")
        return result.data[0]

    def _count_admins(self, organization_id: str) -> int:
        result = self.supabase.table("organization_members")\
            .select("id")\
            .eq("organization_id", organization_id)\
            .eq("role", "admin")\
            .execute()
        return len(result.data or [])

    def update_member_role(self, organization_id: str, member_id: str, role: str) -> MemberResponse:
        """Change a member's role; the last admin cannot be demoted"""
        try:
            member = self._get_member(organization_id, member_id)
            if member["role"] == "admin" and role != "admin" and self._count_admins(organization_id) <= 1:
                raise HTTPException(status_code=400, detail="Organization must keep at least one admin")

            result = self.supabase.table("organization_members")\
                .update({"role": role})\
                .eq("id", member_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")

            return MemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_member(self, organization_id: str, member_id: str, current_user_id: str) -> bool:
        """Remove a member (not yourself)"""
        try:
            member = self._get_member(organization_id, member_id)
            if member["user_id"] == current_user_id:
                raise HTTPException(status_code=400, detail="You cannot remove yourself from the organization")

            result = self.supabase.table("organization_members")\
                .delete()\
                .eq("id", member_id)\
                .execute()

            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_invite(self, organization_id: str, invite_data: InviteCreate, inviter: dict) -> InviteResponse:
        """Create an invite token and email it; email failures do not fail the invite"""
        try:
            email = invite_data.email.lower()
            pending = self.supabase.table("organization_invites")\
                .select("id")\
                .eq("organization_id", organization_id)\
                .eq("email", email)\
                .is_("used_at", "null")\
                .gt("expires_at", datetime.now(timezone.utc).isoformat())\
                .limit(1)\
                .execute()
            if pending.data:
                raise HTTPException(status_code=400, detail="An invitation is already pending for this email")

            result = self.supabase.table("organization_invites").insert({
                "organization_id": organization_id,
                "email": email,
                "role": invite_data.role,
                "invite_token": secrets.token_urlsafe(32),
                "invited_by": inviter["id"],
                "expires_at": (datetime.now(timezone.utc) + timedelta(days=INVITE_TTL_DAYS)).isoformat(),
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create invitation")
            invite = result.data[0]

            organization = self.get_organization_by_id(organization_id)
            email_sent = send_invite_email(
                to=email,
                organization_name=organization.name,
                inviter_email=inviter.get("email"),
                invite_token=invite["invite_token"],
                role=invite_data.role,
            )
            return InviteResponse(**invite, email_sent=email_sent)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_invites(self, organization_id: str) -> List[InviteResponse]:
        """Pending (unused) invitations, newest first"""
        try:
            result = self.supabase.table("organization_invites")\
                .select("*")\
                .eq("organization_id", organization_id)\
                .is_("used_at", "null")\
                .order("created_at", desc=True)\
                .execute()
            return [InviteResponse(**invite) for invite in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def revoke_invite(self, organization_id: str, invite_id: str) -> bool:
        """Delete a pending invitation"""
        try:
            result = self.supabase.table("organization_invites")\
                .delete()\
                .eq("id", invite_id)\
                .eq("organization_id", organization_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Invitation not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def accept_invite(self, token: str) -> InviteAcceptResponse:
        """Add the invited user to the organization. Expects a service-role client: new users may not have a session yet."""
        try:
            invite_result = self.supabase.table("organization_invites")\
                .select("id, email, role, organization_id, expires_at, used_at, invited_by")\
                .eq("invite_token", token)\
                .limit(1)\
                .execute()
            if not invite_result.data:
                raise HTTPException(status_code=404, detail="Invalid invitation token")
            invite = invite_result.data[0]

            if invite.get("used_at"):
                raise HTTPException(status_code=400, detail="This invitation has already been used")
            if datetime.now(timezone.utc) > parse_timestamp(invite["expires_at"]):
                raise HTTPException(status_code=400, detail="This invitation has expired")

            profile_result = self.supabase.table("profiles")\
                .select("user_id, email")\
                .eq("email", invite["email"])\
                .limit(1)\
                .execute()
            if not profile_result.data:
                raise HTTPException(status_code=404, detail="User profile not found. Please try again in a moment.")
            user_id = profile_result.data[0]["user_id"]

            now = datetime.now(timezone.utc).isoformat()
            existing = self.supabase.table("organization_members")\
                .select("id")\
                .eq("organization_id", invite["organization_id"])\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if existing.data:
                self.supabase.table("organization_invites")\
                    .update({"used_at": now})\
                    .eq("id", invite["id"])\
                    .execute()
                raise HTTPException(status_code=400, detail="You are already a member of this organization")

            self.supabase.table("organization_members").insert({
                "organization_id": invite["organization_id"],
                "user_id": user_id,
                "role": invite["role"],
                "invited_by": invite["invited_by"],
                "joined_at": now
            }).execute()

            try:
                self.supabase.table("organization_invites")\
                    .update({"used_at": now})\
                    .eq("id", invite["id"])\
                    .execute()
            except Exception as e:
                logger.error(f"Error marking invite {invite['id']} as used: {e}")

            return InviteAcceptResponse(organization_id=invite["organization_id"])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
