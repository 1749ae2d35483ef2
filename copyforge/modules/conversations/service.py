from supabase import Client
from copyforge.config import settings
from copyforge.modules.conversations.schemas import (
    ConversationCreate, ConversationUpdate, ConversationResponse, ConversationWithMessages,
    MessageCreate, MessageResponse, ShareResponse, SharedConversationResponse, ConversationExport,
    CommentCreate, CommentUpdate, CommentResponse, CommentAuthor
)
from copyforge.modules.notifications.service import create_notification
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import re
import secrets

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50


def generate_title_from_message(content: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Conversation title from the first user message: markdown stripped, cut at a word boundary"""
    cleaned = re.sub(r"[#*_`~]", "", content)
    cleaned = re.sub(r"\n+", " ", cleaned).strip()
    if len(cleaned) <= max_length:
        return cleaned
    truncated = cleaned[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        return truncated[:last_space] + "..."
    return truncated + "..."


def generate_share_token() -> str:
    return secrets.token_urlsafe(24)[:32]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _format_timestamp(value: Any) -> str:
    if not value:
        return "unknown"
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M UTC")


def render_markdown_export(conversation: Dict[str, Any], messages: List[Dict[str, Any]]) -> str:
    """Conversation as a Markdown document: header block, then one numbered section per message"""
    parts = [
        f"# {conversation.get('title') or 'Untitled conversation'}\n\n",
        f"**Created:** {_format_timestamp(conversation.get('created_at'))}\n",
        f"**Mode:** {conversation.get('mode') or 'assistant'}\n\n",
        "---\n\n",
    ]
    for index, message in enumerate(messages, start=1):
        speaker = "User" if message.get("role") == "user" else "Assistant"
        parts.append(f"## {speaker} {index}\n\n")
        parts.append(f"{message.get('content') or ''}\n\n")
        parts.append(f"*{_format_timestamp(message.get('created_at'))}*\n\n")
        parts.append("---\n\n")
    return "".join(parts)


def export_filename(conversation: Dict[str, Any], extension: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", (conversation.get("title") or "untitled").lower())
    return f"conversation-{slug}-{datetime.now(timezone.utc).date().isoformat()}.{extension}"


class ConversationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # ---- conversations ----

    def list_conversations(self, user_id: str, brand_id: Optional[str] = None, starred: Optional[bool] = None,
                           archived: Optional[bool] = None, limit: int = 20, offset: int = 0) -> List[ConversationResponse]:
        """User's conversations, most recently updated first"""
        try:
            query = self.supabase.table("conversations")\
                .select("*")\
                .eq("user_id", user_id)
            if brand_id:
                query = query.eq("brand_id", brand_id)
            if starred is not None:
                query = query.eq("is_starred", starred)
            if archived is not None:
                query = query.eq("is_archived", archived)
            result = query.order("updated_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [ConversationResponse(**c) for c in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_conversation(self, conversation_data: ConversationCreate, user_id: str) -> ConversationResponse:
        try:
            now = _now()
            payload = conversation_data.model_dump(exclude_none=True)
            payload.update({
                "user_id": user_id,
                "is_starred": False,
                "is_pinned": False,
                "is_archived": False,
                "visibility": "private",
                "created_at": now,
                "updated_at": now,
            })
            result = self.supabase.table("conversations").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create conversation")
            return ConversationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_conversation_with_messages(self, conversation: Dict[str, Any]) -> ConversationWithMessages:
        messages = self.list_messages(conversation["id"])
        return ConversationWithMessages(**conversation, messages=messages)

    def update_conversation(self, conversation_id: str, user_id: str,
                            conversation_data: ConversationUpdate) -> ConversationResponse:
        try:
            update_data = conversation_data.model_dump(exclude_unset=True)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            update_data["updated_at"] = _now()

            result = self.supabase.table("conversations")\
                .update(update_data)\
                .eq("id", conversation_id)\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Conversation not found")
            return ConversationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Delete a conversation; messages and comments cascade in the database"""
        try:
            result = self.supabase.table("conversations")\
                .delete()\
                .eq("id", conversation_id)\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_star(self, conversation: Dict[str, Any]) -> bool:
        new_status = not conversation.get("is_starred", False)
        self.update_conversation(conversation["id"], conversation["user_id"], ConversationUpdate(is_starred=new_status))
        return new_status

    def toggle_pin(self, conversation: Dict[str, Any]) -> bool:
        new_status = not conversation.get("is_pinned")
        self.update_conversation(conversation["id"], conversation["user_id"], ConversationUpdate(is_pinned=new_status))
        return new_status

    def toggle_archive(self, conversation: Dict[str, Any]) -> bool:
        new_status = not conversation.get("is_archived")
        self.update_conversation(conversation["id"], conversation["user_id"], ConversationUpdate(is_archived=new_status))
        return new_status

    def duplicate_conversation(self, conversation: Dict[str, Any], user_id: str) -> ConversationResponse:
        """
        Copy a conversation and its messages as "<title> (Copy)". Sharing,
        star, pin and archive state are not carried over; copied messages
        keep their timestamps so they stay in order.
        """
        try:
            now = _now()
            result = self.supabase.table("conversations").insert({
                "user_id": user_id,
                "brand_id": conversation.get("brand_id"),
                "title": f"{conversation.get('title') or 'Untitled conversation'} (Copy)",
                "mode": conversation.get("mode"),
                "custom_mode_id": conversation.get("custom_mode_id"),
                "metadata": {"duplicated_from": conversation["id"]},
                "is_starred": False,
                "is_pinned": False,
                "is_archived": False,
                "visibility": "private",
                "created_at": now,
                "updated_at": now,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to duplicate conversation")
            copy = result.data[0]

            messages = self._all_messages(conversation["id"])
            if messages:
                self.supabase.table("messages").insert([
                    {
                        "conversation_id": copy["id"],
                        "role": m["role"],
                        "content": m.get("content") or "",
                        "model_id": m.get("model_id"),
                        "metadata": m.get("metadata"),
                        "created_at": m.get("created_at"),
                    }
                    for m in messages
                ]).execute()
            logger.info(f"Conversation {conversation['id']} duplicated as {copy['id']} ({len(messages)} messages)")
            return ConversationResponse(**copy)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _all_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("messages")\
            .select("*")\
            .eq("conversation_id", conversation_id)\
            .order("created_at")\
            .execute()
        return result.data or []

    # ---- export ----

    def export_json(self, conversation: Dict[str, Any]) -> ConversationExport:
        try:
            return ConversationExport(
                conversation=ConversationResponse(**conversation),
                messages=[MessageResponse(**m) for m in self._all_messages(conversation["id"])],
                exported_at=datetime.now(timezone.utc),
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def export_markdown(self, conversation: Dict[str, Any]) -> str:
        try:
            messages = self._all_messages(conversation["id"])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return render_markdown_export(conversation, messages)

    # ---- messages ----

    def list_messages(self, conversation_id: str, limit: int = 100, offset: int = 0) -> List[MessageResponse]:
        try:
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("conversation_id", conversation_id)\
                .order("created_at")\
                .range(offset, offset + limit - 1)\
                .execute()
            return [MessageResponse(**m) for m in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_message(self, conversation: Dict[str, Any], message_data: MessageCreate,
                    status: Optional[str] = None) -> MessageResponse:
        """Append a message and bump the conversation; an untitled conversation takes its title from the first user message"""
        try:
            payload = message_data.model_dump(exclude_none=True)
            payload["conversation_id"] = conversation["id"]
            if status:
                payload["status"] = status
            result = self.supabase.table("messages").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add message")

            conversation_update = {"updated_at": _now()}
            if message_data.role == "user" and not conversation.get("title"):
                title = generate_title_from_message(message_data.content)
                if title:
                    conversation_update["title"] = title
                    conversation["title"] = title
            self.supabase.table("conversations")\
                .update(conversation_update)\
                .eq("id", conversation["id"])\
                .execute()

            return MessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_message(self, message_id: str, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("messages")\
                .update(update_data)\
                .eq("id", message_id)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ---- sharing ----

    def share_conversation(self, conversation: Dict[str, Any], share_content: str) -> ShareResponse:
        """Issue a fresh public share token (replaces any previous one)"""
        try:
            token = generate_share_token()
            metadata = {**(conversation.get("metadata") or {}), "share_content": share_content}
            result = self.supabase.table("conversations")\
                .update({"share_token": token, "metadata": metadata})\
                .eq("id", conversation["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Conversation not found")
            return ShareResponse(share_token=token, share_url=f"{settings.app_url}/shared/{token}")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_shared_conversation(self, share_token: str) -> SharedConversationResponse:
        """Public read of a shared conversation. Expects a service-role client."""
        try:
            result = self.supabase.table("conversations")\
                .select("*")\
                .eq("share_token", share_token)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Shared link not found or expired")
            conversation = result.data[0]
            share_content = (conversation.get("metadata") or {}).get("share_content", "full_conversation")

            if share_content == "last_email":
                messages_result = self.supabase.table("messages")\
                    .select("*")\
                    .eq("conversation_id", conversation["id"])\
                    .eq("role", "assistant")\
                    .order("created_at", desc=True)\
                    .limit(1)\
                    .execute()
                messages = [MessageResponse(**m) for m in messages_result.data or []]
            else:
                messages = self.list_messages(conversation["id"], limit=1000)

            return SharedConversationResponse(
                id=conversation["id"],
                title=conversation.get("title"),
                brand_id=conversation.get("brand_id"),
                created_at=conversation["created_at"],
                share_content=share_content,
                messages=messages,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ---- comments ----

    def get_accessible_conversation(self, conversation_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Conversation row if the user owns it or belongs to the organization of its brand"""
        result = self.supabase.table("conversations")\
            .select("*")\
            .eq("id", conversation_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Conversation not found")
        conversation = result.data[0]
        if conversation["user_id"] == user_data["id"]:
            return conversation

        if conversation.get("brand_id"):
            brand = self.supabase.table("brands")\
                .select("organization_id")\
                .eq("id", conversation["brand_id"])\
                .limit(1)\
                .execute()
            if brand.data:
                membership = self.supabase.table("organization_members")\
                    .select("id")\
                    .eq("organization_id", brand.data[0]["organization_id"])\
                    .eq("user_id", user_data["id"])\
                    .limit(1)\
                    .execute()
                if membership.data:
                    return conversation
        raise HTTPException(status_code=404, detail="Conversation not found")

    def _authors(self, user_ids: List[str]) -> Dict[str, CommentAuthor]:
        if not user_ids:
            return {}
        try:
            result = self.supabase.table("profiles")\
                .select("user_id, email, full_name")\
                .in_("user_id", list(set(user_ids)))\
                .execute()
            return {p["user_id"]: CommentAuthor(**p) for p in result.data or []}
        except Exception as e:
            logger.warning(f"Could not load comment authors: {e}")
            return {}

    def list_comments(self, conversation_id: str) -> List[CommentResponse]:
        try:
            result = self.supabase.table("conversation_comments")\
                .select("*")\
                .eq("conversation_id", conversation_id)\
                .order("created_at")\
                .execute()
            comments = result.data or []
            authors = self._authors([c["user_id"] for c in comments])
            return [
                CommentResponse(**c, user=authors.get(c["user_id"], CommentAuthor(user_id=c["user_id"])))
                for c in comments
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_comment(self, conversation: Dict[str, Any], comment_data: CommentCreate,
                    user_data: Dict[str, Any]) -> CommentResponse:
        """Add a comment; the conversation owner is notified when someone else comments"""
        try:
            payload = {
                "conversation_id": conversation["id"],
                "user_id": user_data["id"],
                "content": comment_data.content.strip(),
                "resolved": False,
            }
            if comment_data.message_id:
                payload["message_id"] = comment_data.message_id
            result = self.supabase.table("conversation_comments").insert(payload).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create comment")
            comment = result.data[0]

            if conversation["user_id"] != user_data["id"]:
                create_notification(
                    self.supabase,
                    user_id=conversation["user_id"],
                    type="comment_added",
                    title="New Comment",
                    message=f"{user_data.get('email') or 'Someone'} commented on your conversation",
                    link=f"/brands/{conversation.get('brand_id')}/chat?conversation={conversation['id']}",
                    metadata={
                        "conversation_id": conversation["id"],
                        "comment_id": comment["id"],
                        "commenter_id": user_data["id"],
                    },
                )

            author = self._authors([user_data["id"]]).get(
                user_data["id"], CommentAuthor(user_id=user_data["id"], email=user_data.get("email"))
            )
            return CommentResponse(**comment, user=author)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_comment(self, conversation_id: str, comment_id: str) -> Dict[str, Any]:
        result = self.supabase.table("conversation_comments")\
            .select("*")\
            .eq("id", comment_id)\
            .eq("conversation_id", conversation_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Comment not found")
        return result.data[0]

    def update_comment(self, conversation: Dict[str, Any], comment_id: str, comment_data: CommentUpdate,
                       user_id: str) -> CommentResponse:
        """Authors edit their own content; the author or conversation owner may resolve"""
        try:
            comment = self._get_comment(conversation["id"], comment_id)
            update_data = comment_data.model_dump(exclude_unset=True)
            if not update_data:
                raise HTTPException(status_code=400, detail="No fields to update")
            if "content" in update_data and comment["user_id"] != user_id:
                raise HTTPException(status_code=403, detail="You can only edit your own comments")
            if "resolved" in update_data and user_id not in (comment["user_id"], conversation["user_id"]):
                raise HTTPException(status_code=403, detail="Only the author or conversation owner can resolve comments")

            result = self.supabase.table("conversation_comments")\
                .update(update_data)\
                .eq("id", comment_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Comment not found")
            return CommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_comment(self, conversation: Dict[str, Any], comment_id: str, user_id: str) -> bool:
        try:
            comment = self._get_comment(conversation["id"], comment_id)
            if user_id not in (comment["user_id"], conversation["user_id"]):
                raise HTTPException(status_code=403, detail="You can only delete your own comments")
            result = self.supabase.table("conversation_comments")\
                .delete()\
                .eq("id", comment_id)\
                .execute()
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
