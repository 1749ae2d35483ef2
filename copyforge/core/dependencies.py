"""
Core dependencies for route protection, organization roles and brand access
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from copyforge.config import settings
from copyforge.database.supabase_client import get_supabase
from copyforge.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import hmac
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

SESSION_COOKIE = "sb-access-token"
BRAND_EDITOR_ROLES = ("admin", "brand_manager")


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for membership lookups."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Bearer token from the Authorization header, falling back to the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Resolve the Supabase user behind the session"""
    return auth_service.get_current_user(token)


def get_user_membership(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Return the user's organization_members row ({organization_id, role}) or None. Uses request-scoped cache when provided."""
    if cache is not None and "membership" in cache:
        return cache["membership"]
    try:
        result = supabase.table("organization_members")\
            .select("id, organization_id, role")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        membership = result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Error getting organization membership: {e}")
        membership = None
    if cache is not None:
        cache["membership"] = membership
    return membership


def get_membership_cache(request: Request) -> Dict[str, Any]:
    return _get_request_cache(request)


def require_organization(
    request: Request,
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Current user enriched with organization_id and organization_role; 403 without a membership"""
    membership = get_user_membership(user_data["id"], supabase, _get_request_cache(request))
    if not membership:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not belong to an organization"
        )
    return {
        **user_data,
        "organization_id": membership["organization_id"],
        "organization_role": membership["role"],
    }


def require_org_role(*roles: str):
    """Factory function to create an organization role check dependency"""
    def check_role(user_data: dict = Depends(require_organization)) -> dict:
        if user_data["organization_role"] not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient role. Required one of: {', '.join(roles)}"
            )
        return user_data
    return check_role


def check_brand_access(brand_id: str, user_data: dict, supabase: Client, write: bool = False) -> Dict[str, Any]:
    """Return the brand row if it belongs to the user's organization. write=True also requires an editor role."""
    result = supabase.table("brands")\
        .select("*")\
        .eq("id", brand_id)\
        .limit(1)\
        .execute()
    if not result.data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brand not found")
    brand = result.data[0]
    membership = get_user_membership(user_data["id"], supabase)
    if not membership or membership["organization_id"] != brand.get("organization_id"):
        # Do not leak existence of brands in other organizations
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brand not found")
    if write and membership["role"] not in BRAND_EDITOR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins and brand managers can modify brands"
        )
    return brand


def check_conversation_owner(conversation_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the conversation row if the current user owns it"""
    result = supabase.table("conversations")\
        .select("*")\
        .eq("id", conversation_id)\
        .eq("user_id", user_data["id"])\
        .limit(1)\
        .execute()
    if not result.data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return result.data[0]


def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> None:
    """Cron invocations authenticate with Authorization: Bearer <CRON_SECRET>"""
    if not settings.cron_secret:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cron secret not configured")
    if not credentials or not hmac.compare_digest(credentials.credentials, settings.cron_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
