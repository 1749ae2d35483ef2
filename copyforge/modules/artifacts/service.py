from supabase import Client
from copyforge.config import settings
from copyforge.modules.artifacts.schemas import (
    ArtifactCreate, ArtifactUpdate, ArtifactResponse, ArtifactVersion, ArtifactShareResponse,
    ArtifactCommentCreate, ArtifactCommentResponse, VERSION_COLUMNS
)
from copyforge.modules.conversations.service import generate_share_token
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_selected_version(artifact: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Data of the currently selected A/B/C version, or None"""
    return artifact.get(VERSION_COLUMNS.get(artifact.get("selected_version") or "A", "version_a"))


def get_available_versions(artifact: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {"key": key, "data": artifact[column]}
        for key, column in VERSION_COLUMNS.items()
        if artifact.get(column)
    ]


class ArtifactService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_artifacts(self, user_id: str, conversation_id: Optional[str] = None, brand_id: Optional[str] = None,
                       kind: Optional[str] = None, limit: int = 50, offset: int = 0) -> List[ArtifactResponse]:
        try:
            query = self.supabase.table("artifacts")\
                .select("*")\
                .eq("user_id", user_id)
            if conversation_id:
                query = query.eq("conversation_id", conversation_id)
            if brand_id:
                query = query.eq("brand_id", brand_id)
            if kind:
                query = query.eq("kind", kind)
            result = query.order("updated_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [ArtifactResponse(**a) for a in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_artifact(self, artifact_data: ArtifactCreate, user_id: str) -> ArtifactResponse:
        try:
            now = _now()
            payload = artifact_data.model_dump(exclude_none=True)
            payload.update({
                "user_id": user_id,
                "metadata": artifact_data.metadata or {},
                "created_at": now,
                "updated_at": now,
            })
            result = self.supabase.table("artifacts").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create artifact")
            logger.info(f"Artifact {result.data[0]['id']} ({artifact_data.kind}) created")
            return ArtifactResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_owned_artifact(self, artifact_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("artifacts")\
            .select("*")\
            .eq("id", artifact_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Artifact not found")
        return result.data[0]

    def get_accessible_artifact(self, artifact_id: str, user_id: str) -> Dict[str, Any]:
        """Artifact row if the user owns it or belongs to the organization of its brand"""
        result = self.supabase.table("artifacts")\
            .select("*")\
            .eq("id", artifact_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Artifact not found")
        artifact = result.data[0]
        if artifact["user_id"] == user_id:
            return artifact
        if artifact.get("brand_id"):
            brand = self.supabase.table("brands")\
                .select("organization_id")\
                .eq("id", artifact["brand_id"])\
                .limit(1)\
                .execute()
            if brand.data:
                membership = self.supabase.table("organization_members")\
                    .select("id")\
                    .eq("organization_id", brand.data[0]["organization_id"])\
                    .eq("user_id", user_id)\
                    .limit(1)\
                    .execute()
                if membership.data:
                    return artifact
        raise HTTPException(status_code=404, detail="Artifact not found")

    def update_artifact(self, artifact_id: str, user_id: str, artifact_data: ArtifactUpdate) -> ArtifactResponse:
        try:
            update_data = artifact_data.model_dump(exclude_unset=True)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            return self._update(artifact_id, user_id, update_data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update(self, artifact_id: str, user_id: str, update_data: Dict[str, Any]) -> ArtifactResponse:
        update_data["updated_at"] = _now()
        result = self.supabase.table("artifacts")\
            .update(update_data)\
            .eq("id", artifact_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Artifact not found")
        return ArtifactResponse(**result.data[0])

    def select_version(self, artifact_id: str, user_id: str, version: str) -> ArtifactResponse:
        """Switch the selected A/B/C version; the version must exist"""
        try:
            artifact = self.get_owned_artifact(artifact_id, user_id)
            if not artifact.get(VERSION_COLUMNS[version]):
                raise HTTPException(status_code=400, detail=f"Version {version} does not exist for this artifact")
            return self._update(artifact_id, user_id, {"selected_version": version})
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_version(self, artifact_id: str, user_id: str, version: str,
                       version_data: ArtifactVersion) -> ArtifactResponse:
        try:
            column = VERSION_COLUMNS.get(version.upper())
            if not column:
                raise HTTPException(status_code=400, detail="Version must be A, B or C")
            return self._update(artifact_id, user_id, {column: version_data.model_dump(exclude_none=True)})
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_artifact(self, artifact_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("artifacts")\
                .delete()\
                .eq("id", artifact_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ---- sharing ----

    def share_artifact(self, artifact_id: str, user_id: str) -> ArtifactShareResponse:
        """Return the artifact's share token, creating one on first share"""
        try:
            artifact = self.get_owned_artifact(artifact_id, user_id)
            token = artifact.get("share_token")
            if not token:
                token = generate_share_token()
                metadata = {**(artifact.get("metadata") or {}), "is_shared": True, "shared_at": _now()}
                self._update(artifact_id, user_id, {"share_token": token, "metadata": metadata})
            return ArtifactShareResponse(share_token=token, share_url=f"{settings.app_url}/share/email/{token}")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_shared_artifact(self, share_token: str) -> ArtifactResponse:
        """Public read by share token. Expects a service-role client."""
        try:
            result = self.supabase.table("artifacts")\
                .select("*")\
                .eq("share_token", share_token)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Shared artifact not found")
            return ArtifactResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ---- comments ----

    def list_comments(self, artifact_id: str) -> List[ArtifactCommentResponse]:
        try:
            result = self.supabase.table("artifact_comments")\
                .select("*")\
                .eq("artifact_id", artifact_id)\
                .order("created_at")\
                .execute()
            return [ArtifactCommentResponse(**c) for c in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_comment(self, artifact_id: str, user_id: str, comment_data: ArtifactCommentCreate) -> ArtifactCommentResponse:
        try:
            now = _now()
            payload = comment_data.model_dump()
            payload.update({
                "artifact_id": artifact_id,
                "user_id": user_id,
                "content": comment_data.content.strip(),
                "resolved": False,
                "created_at": now,
                "updated_at": now,
            })
            result = self.supabase.table("artifact_comments").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add comment")
            return ArtifactCommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_comment_resolved(self, artifact_id: str, comment_id: str) -> ArtifactCommentResponse:
        try:
            current = self.supabase.table("artifact_comments")\
                .select("resolved")\
                .eq("id", comment_id)\
                .eq("artifact_id", artifact_id)\
                .limit(1)\
                .execute()
            if not current.data:
                raise HTTPException(status_code=404, detail="Comment not found")

            result = self.supabase.table("artifact_comments")\
                .update({"resolved": not current.data[0].get("resolved", False), "updated_at": _now()})\
                .eq("id", comment_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Comment not found")
            return ArtifactCommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_comment(self, artifact_id: str, comment_id: str, user_id: str) -> bool:
        """Authors delete their own comments"""
        try:
            result = self.supabase.table("artifact_comments")\
                .delete()\
                .eq("id", comment_id)\
                .eq("artifact_id", artifact_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
