from supabase import Client
from copyforge.config import settings
from copyforge.core.llm import make_chat_model
from copyforge.modules.brands.service import format_brand_for_prompt
from copyforge.modules.flows.prompts import build_brief_message, build_flow_email_prompt
from copyforge.modules.flows.schemas import (
    GenerateFlowEmailsRequest, GenerateFlowEmailsResponse, FlowEmailFailure, FlowOutlineEmail,
    CreateCalendarEmailsRequest, CreateCalendarEmailsResponse, CalendarEmailConversation,
    CalendarBriefStatus, CalendarEmailsStatus
)
from copyforge.modules.orchestrator.service import message_text
from copyforge.modules.rag.service import RAGService
from langchain_core.messages import HumanMessage
from typing import Any, Callable, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import time

logger = logging.getLogger(__name__)

NO_BRAND_CONTEXT = "No brand selected."
EMAIL_GENERATION_ERROR = "Email generation failed"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FlowService:
    """Turns approved flow outlines and calendar briefs into child email conversations"""

    def __init__(self, supabase: Client, model_factory: Callable[..., Any] = make_chat_model,
                 rag_service: Optional[RAGService] = None):
        self.supabase = supabase
        self.model_factory = model_factory
        self.rag_service = rag_service

    def _brand_info(self, brand_id: Optional[str]) -> str:
        if not brand_id:
            return NO_BRAND_CONTEXT
        result = self.supabase.table("brands")\
            .select("*")\
            .eq("id", brand_id)\
            .limit(1)\
            .execute()
        return format_brand_for_prompt(result.data[0]) if result.data else NO_BRAND_CONTEXT

    def _mark_parent(self, conversation_id: str, flow_type: str) -> None:
        self.supabase.table("conversations")\
            .update({"is_flow": True, "flow_type": flow_type, "updated_at": _now()})\
            .eq("id", conversation_id)\
            .execute()

    # ---- flows ----

    def generate_flow_emails(self, conversation: Dict[str, Any], request: GenerateFlowEmailsRequest,
                             user_id: str) -> GenerateFlowEmailsResponse:
        """
        Save the approved outline, then write each email of the flow into its
        own child conversation. Emails are generated one after another; a
        failed email is reported and the rest still run.
        """
        outline = request.outline
        try:
            result = self.supabase.table("flow_outlines").insert({
                "conversation_id": conversation["id"],
                "flow_type": request.flow_type,
                "outline_data": outline.model_dump(),
                "approved": True,
                "approved_at": _now(),
                "email_count": len(outline.emails),
            }).execute()
        except Exception as e:
            logger.error(f"Failed to save flow outline for conversation {conversation['id']}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save outline")
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to save outline")
        outline_id = result.data[0]["id"]

        brand_info = self._brand_info(conversation.get("brand_id"))
        started = time.monotonic()
        logger.info(f"Generating {len(outline.emails)} emails for flow '{outline.flow_name}'")

        children: List[str] = []
        failures: List[FlowEmailFailure] = []
        for email in sorted(outline.emails, key=lambda e: e.sequence):
            try:
                children.append(self._generate_flow_email(conversation, request, email, brand_info, user_id))
            except Exception as e:
                logger.error(f"Flow email {email.sequence} of '{outline.flow_name}' failed: {e}")
                failures.append(FlowEmailFailure(sequence=email.sequence, error=EMAIL_GENERATION_ERROR))

        self._mark_parent(conversation["id"], request.flow_type)
        logger.info(
            f"Flow '{outline.flow_name}' done in {int((time.monotonic() - started) * 1000)}ms: "
            f"{len(children)} generated, {len(failures)} failed"
        )
        return GenerateFlowEmailsResponse(
            success=len(children) > 0,
            outline_id=outline_id,
            children=children,
            generated=len(children),
            failed=len(failures),
            failures=failures,
        )

    def _generate_flow_email(self, parent: Dict[str, Any], request: GenerateFlowEmailsRequest,
                             email: FlowOutlineEmail, brand_info: str, user_id: str) -> str:
        now = _now()
        child = self.supabase.table("conversations").insert({
            "brand_id": parent.get("brand_id"),
            "user_id": user_id,
            "title": f"{request.outline.flow_name} - Email {email.sequence}",
            "mode": "email_copy",
            "parent_conversation_id": parent["id"],
            "is_flow": False,
            "flow_sequence_order": email.sequence,
            "metadata": {"flow_email_title": email.title},
            "is_starred": False,
            "is_pinned": False,
            "is_archived": False,
            "visibility": "private",
            "created_at": now,
            "updated_at": now,
        }).execute()
        if not child.data:
            raise RuntimeError("Failed to create child conversation")
        child_id = child.data[0]["id"]

        rag_context = None
        if self.rag_service:
            query = f"{request.outline.goal} {email.purpose}".strip()
            rag_context = self.rag_service.get_context(parent.get("brand_id"), user_id, query).context or None

        model_id = request.model or settings.model_generation
        model = self.model_factory(model_id)
        reply = model.invoke([HumanMessage(content=build_flow_email_prompt(email, request.outline, brand_info, rag_context))])
        content = message_text(reply).strip()
        if not content:
            raise ValueError(f"No content generated for email {email.sequence}")

        self.supabase.table("messages").insert({
            "conversation_id": child_id,
            "role": "assistant",
            "content": content,
            "model_id": model_id,
            "status": "completed",
        }).execute()
        return child_id

    # ---- calendar ----

    def _calendar_briefs(self, conversation_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("artifacts")\
            .select("*")\
            .eq("conversation_id", conversation_id)\
            .eq("kind", "email_brief")\
            .order("created_at")\
            .execute()
        return result.data or []

    def create_calendar_emails(self, calendar: Dict[str, Any], request: CreateCalendarEmailsRequest,
                               user_id: str) -> CreateCalendarEmailsResponse:
        """
        Spawn one email_copy conversation per approved brief of a calendar
        conversation. Briefs that already have an email conversation are
        skipped. 400 when nothing is left to create.
        """
        try:
            briefs = [
                b for b in self._calendar_briefs(calendar["id"])
                if (b.get("metadata") or {}).get("approval_status") == "approved"
                and not (b.get("metadata") or {}).get("email_conversation_id")
            ]
        except Exception as e:
            logger.error(f"Failed to fetch briefs for calendar {calendar['id']}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch briefs")
        if request.brief_ids and not request.create_all:
            briefs = [b for b in briefs if b["id"] in request.brief_ids]
        if not briefs:
            raise HTTPException(status_code=400, detail="No approved briefs found")

        created: List[CalendarEmailConversation] = []
        for order, brief in enumerate(briefs, start=1):
            metadata = brief.get("metadata") or {}
            title = f"Email: {brief['title']}"
            now = _now()
            try:
                result = self.supabase.table("conversations").insert({
                    "user_id": user_id,
                    "brand_id": calendar.get("brand_id"),
                    "title": title,
                    "mode": "email_copy",
                    "parent_conversation_id": calendar["id"],
                    "is_flow": True,
                    "flow_type": "calendar_emails",
                    "flow_sequence_order": order,
                    "metadata": {
                        "email_brief_artifact_id": brief["id"],
                        "send_date": metadata.get("send_date"),
                        "campaign_type": metadata.get("campaign_type"),
                    },
                    "is_starred": False,
                    "is_pinned": False,
                    "is_archived": False,
                    "visibility": "private",
                    "created_at": now,
                    "updated_at": now,
                }).execute()
                if not result.data:
                    raise RuntimeError("insert returned no row")
                email_conversation_id = result.data[0]["id"]

                self.supabase.table("artifacts")\
                    .update({
                        "metadata": {**metadata, "email_conversation_id": email_conversation_id},
                        "updated_at": now,
                    })\
                    .eq("id", brief["id"])\
                    .execute()
                self.supabase.table("messages").insert({
                    "conversation_id": email_conversation_id,
                    "role": "user",
                    "content": build_brief_message(metadata),
                }).execute()
            except Exception as e:
                logger.error(f"Failed to create email conversation for brief {brief['id']}: {e}")
                continue
            created.append(CalendarEmailConversation(id=email_conversation_id, title=title, brief_id=brief["id"]))

        self._mark_parent(calendar["id"], "calendar_emails")
        return CreateCalendarEmailsResponse(
            success=True,
            created_count=len(created),
            conversations=created,
            message=f"Created {len(created)} email conversation(s) from approved briefs",
        )

    def calendar_status(self, calendar: Dict[str, Any]) -> CalendarEmailsStatus:
        try:
            briefs = self._calendar_briefs(calendar["id"])
            children = self.supabase.table("conversations")\
                .select("*")\
                .eq("parent_conversation_id", calendar["id"])\
                .order("flow_sequence_order")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        approved = sum(1 for b in briefs if (b.get("metadata") or {}).get("approval_status") == "approved")
        child_rows = children.data or []
        return CalendarEmailsStatus(
            total_briefs=len(briefs),
            approved_briefs=approved,
            created_emails=len(child_rows),
            briefs=[
                CalendarBriefStatus(
                    id=b["id"],
                    title=b["title"],
                    approval_status=(b.get("metadata") or {}).get("approval_status") or "draft",
                    has_email_conversation=bool((b.get("metadata") or {}).get("email_conversation_id")),
                    email_conversation_id=(b.get("metadata") or {}).get("email_conversation_id"),
                )
                for b in briefs
            ],
            child_conversations=[
                CalendarEmailConversation(
                    id=c["id"],
                    title=c.get("title"),
                    brief_id=(c.get("metadata") or {}).get("email_brief_artifact_id"),
                )
                for c in child_rows
            ],
            can_create_emails=approved > len(child_rows),
        )
