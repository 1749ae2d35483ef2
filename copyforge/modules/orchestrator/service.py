"""
Orchestrator: decides whether a chat turn is answered directly or delegated
to a specialist, runs the chosen model and persists the reply and any
artifacts it produced.
"""
from supabase import Client
from copyforge.config import settings
from copyforge.core.llm import make_chat_model
from copyforge.modules.artifacts.schemas import ArtifactCreate, ArtifactVersion
from copyforge.modules.artifacts.service import ArtifactService
from copyforge.modules.brands.service import format_brand_for_prompt
from copyforge.modules.orchestrator.registry import get_specialist, find_specialist_for_task, is_specialist_type
from copyforge.modules.orchestrator.prompts import (
    build_orchestrator_prompt, build_specialist_system_prompt, build_specialist_task_prompt, build_mode_system_prompt
)
from copyforge.modules.orchestrator.schemas import (
    InvokeSpecialist, CreateArtifact, ArtifactRequest, SpecialistResult, RoutingDecision, ChatResponse,
    StructuredReplyError
)
from copyforge.modules.rag.service import RAGService
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import ValidationError
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
import json
import logging
import re
import time

logger = logging.getLogger(__name__)

ORCHESTRATOR_MODES = ("orchestrator", "assistant")
SPECIALIST_HISTORY_TURNS = 5
NO_BRAND_CONTEXT = "No brand information provided."
SPECIALIST_ERROR_MESSAGE = "The specialist could not complete this request. Please try again."
STRUCTURED_REPLY_ERROR_MESSAGE = "The model returned content that could not be read as an artifact. Please try again."

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


def should_use_orchestrator(mode: Optional[str]) -> bool:
    return not mode or mode in ORCHESTRATOR_MODES


def model_for_specialist(specialist_id: str, routing: Optional[Dict[str, str]] = None) -> str:
    category = get_specialist(specialist_id).model_category
    effective = {**settings.get_model_routing(), **(routing or {})}
    return effective[category]


def message_text(message: BaseMessage) -> str:
    """Plain text of a model reply; Anthropic replies with tool use come back as a list of content parts"""
    content = message.content
    if isinstance(content, str):
        return content
    texts = []
    for part in content or []:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            texts.append(part.get("text", ""))
    return "".join(texts)


def history_to_messages(rows: List[Dict[str, Any]]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for row in rows:
        content = row.get("content")
        if not content:
            continue
        if row.get("role") == "user":
            messages.append(HumanMessage(content=content))
        elif row.get("role") == "assistant":
            messages.append(AIMessage(content=content))
    return messages


def extract_json_object(text: str) -> Dict[str, Any]:
    """First JSON object in model text, fenced in ```json or bare"""
    match = _FENCED_JSON.search(text or "")
    if match:
        candidate = match.group(1)
    else:
        start = (text or "").find("{")
        end = (text or "").rfind("}")
        if start == -1 or end <= start:
            raise StructuredReplyError(STRUCTURED_REPLY_ERROR_MESSAGE)
        candidate = text[start:end + 1]
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed JSON in model reply: {e}")
        raise StructuredReplyError(STRUCTURED_REPLY_ERROR_MESSAGE)
    if not isinstance(data, dict):
        raise StructuredReplyError(STRUCTURED_REPLY_ERROR_MESSAGE)
    return data


def parse_structured_reply(text: str, allowed_kinds: Optional[List[str]] = None) -> CreateArtifact:
    """Validate a JSON artifact embedded in model text. Raises StructuredReplyError with a generic message."""
    data = extract_json_object(text)
    try:
        artifact = CreateArtifact.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Model reply failed artifact validation: {e.error_count()} errors")
        raise StructuredReplyError(STRUCTURED_REPLY_ERROR_MESSAGE)
    if allowed_kinds and artifact.kind not in allowed_kinds:
        raise StructuredReplyError(STRUCTURED_REPLY_ERROR_MESSAGE)
    return artifact


def artifact_requests_from_tool_calls(tool_calls: List[Dict[str, Any]],
                                      allowed_kinds: List[str]) -> List[ArtifactRequest]:
    """create_artifact tool calls restricted to the kinds the specialist may produce"""
    requests = []
    for call in tool_calls or []:
        if call.get("name") != "create_artifact":
            continue
        try:
            artifact = CreateArtifact.model_validate(call.get("args") or {})
        except ValidationError as e:
            logger.warning(f"Ignoring invalid create_artifact call: {e.error_count()} errors")
            continue
        if artifact.kind not in allowed_kinds:
            logger.warning(f"Ignoring artifact of kind {artifact.kind}; allowed: {allowed_kinds}")
            continue
        requests.append(ArtifactRequest(kind=artifact.kind, title=artifact.title, data=artifact.model_dump(exclude_none=True)))
    return requests


BRIEF_FIELDS = (
    "send_date", "target_segment", "objective", "key_message", "value_proposition",
    "call_to_action", "subject_line_direction", "tone_notes",
)


def artifact_from_request(request: ArtifactRequest, conversation: Dict[str, Any],
                          message_id: Optional[str], specialist: Optional[str]) -> ArtifactCreate:
    """Map a create_artifact payload onto an artifacts row"""
    data = request.data
    versions = {}
    for version in data.get("versions") or []:
        column = f"version_{version['id']}"
        versions[column] = ArtifactVersion(
            label=version.get("label"),
            subject_line=version.get("subject_line"),
            preview_text=version.get("preview_text"),
            approach=version.get("approach"),
            content=version.get("content", ""),
        )

    content = data.get("content")
    if not content and "version_a" in versions:
        content = versions["version_a"].content

    metadata: Dict[str, Any] = {"source": "orchestrator"}
    if specialist:
        metadata["specialist"] = specialist
    for key in ("description", "calendar_month", "calendar_slots", *BRIEF_FIELDS):
        if data.get(key):
            metadata[key] = data[key]
    if data.get("brief_campaign_type"):
        metadata["campaign_type"] = data["brief_campaign_type"]
    if request.kind == "email_brief":
        metadata.setdefault("approval_status", "draft")

    return ArtifactCreate(
        conversation_id=conversation["id"],
        message_id=message_id,
        brand_id=conversation.get("brand_id"),
        title=request.title,
        kind=request.kind,
        content=content or "",
        metadata=metadata,
        **versions,
    )


class OrchestratorService:
    def __init__(
        self,
        supabase: Client,
        model_factory: Callable[..., Any] = make_chat_model,
        rag_service: Optional[RAGService] = None,
        routing: Optional[Dict[str, str]] = None,
    ):
        self.supabase = supabase
        self.model_factory = model_factory
        self.rag_service = rag_service
        self.routing = routing

    # ---- routing ----

    def decide_route(self, message: str, mode: Optional[str] = None, specialist: Optional[str] = None,
                     history: Optional[List[BaseMessage]] = None, system_prompt: Optional[str] = None) -> RoutingDecision:
        """Binary decision for one turn: delegate to a specialist or reply directly"""
        if not should_use_orchestrator(mode):
            return RoutingDecision(use_orchestrator=False, reason=f"mode {mode} replies directly")

        if specialist:
            if not is_specialist_type(specialist):
                return RoutingDecision(use_orchestrator=True, reason=f"unknown specialist {specialist}")
            return RoutingDecision(use_orchestrator=True, specialist=specialist, task=message, reason="requested by caller")

        if settings.orchestrator_routing == "llm":
            return self._route_with_model(message, history or [], system_prompt or build_orchestrator_prompt(NO_BRAND_CONTEXT))

        matched = find_specialist_for_task(message)
        if matched:
            return RoutingDecision(use_orchestrator=True, specialist=matched, task=message, reason="matched trigger keywords")
        return RoutingDecision(use_orchestrator=True, reason="no specialist matched")

    def _route_with_model(self, message: str, history: List[BaseMessage], system_prompt: str) -> RoutingDecision:
        """Let the orchestrator model decide by calling invoke_specialist (or not)"""
        model_id = self.routing_model_id()
        model = self.model_factory(model_id).bind_tools([InvokeSpecialist])
        reply = model.invoke([SystemMessage(content=system_prompt), *history, HumanMessage(content=message)])

        for call in getattr(reply, "tool_calls", None) or []:
            if call.get("name") != "invoke_specialist":
                continue
            try:
                invocation = InvokeSpecialist.model_validate(call.get("args") or {})
            except ValidationError as e:
                logger.warning(f"Ignoring invalid invoke_specialist call: {e.error_count()} errors")
                continue
            return RoutingDecision(
                use_orchestrator=True,
                specialist=invocation.specialist,
                task=invocation.task,
                reason="chosen by orchestrator model",
                invocation=invocation,
            )
        return RoutingDecision(use_orchestrator=True, reason="orchestrator model answered directly",
                               reply=message_text(reply), model_used=model_id)

    def routing_model_id(self) -> str:
        return {**settings.get_model_routing(), **(self.routing or {})}["reasoning"]

    # ---- execution ----

    def execute_specialist(self, invocation: InvokeSpecialist, brand_info: str,
                           history: Optional[List[BaseMessage]] = None,
                           memory_context: Optional[str] = None,
                           model_id: Optional[str] = None) -> SpecialistResult:
        """Run one specialist. Never raises; failures come back as status failed with a generic message."""
        started = time.monotonic()
        try:
            config = get_specialist(invocation.specialist)
            model_id = model_id or model_for_specialist(config.id, self.routing)
            model = self.model_factory(model_id)

            if config.creates_artifacts:
                if config.requires_artifact:
                    model = model.bind_tools([CreateArtifact], tool_choice="create_artifact")
                else:
                    model = model.bind_tools([CreateArtifact])

            logger.info(
                f"Executing specialist {config.id} with {model_id} "
                f"(artifacts={config.creates_artifacts}, forced={config.requires_artifact})"
            )
            messages = [
                SystemMessage(content=build_specialist_system_prompt(config, brand_info, memory_context)),
                *(history or [])[-SPECIALIST_HISTORY_TURNS:],
                HumanMessage(content=build_specialist_task_prompt(invocation)),
            ]
            reply = model.invoke(messages)
            response = message_text(reply)
            artifacts = artifact_requests_from_tool_calls(
                getattr(reply, "tool_calls", None) or [], config.allowed_artifact_kinds
            )

            if config.requires_artifact and not artifacts:
                # Tool call missing; the artifact may have come back as JSON text instead
                try:
                    artifact = parse_structured_reply(response, config.allowed_artifact_kinds)
                except StructuredReplyError as e:
                    return SpecialistResult(
                        specialist=config.id,
                        status="failed",
                        response=str(e),
                        model_used=model_id,
                        duration_ms=int((time.monotonic() - started) * 1000),
                    )
                artifacts.append(ArtifactRequest(
                    kind=artifact.kind, title=artifact.title, data=artifact.model_dump(exclude_none=True)
                ))
                response = ""

            return SpecialistResult(
                specialist=config.id,
                status="success",
                response=response,
                artifacts=artifacts,
                model_used=model_id,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        except Exception as e:
            logger.exception(f"Specialist {invocation.specialist} failed: {e}")
            return SpecialistResult(
                specialist=invocation.specialist,
                status="failed",
                response=SPECIALIST_ERROR_MESSAGE,
                model_used="none",
                duration_ms=int((time.monotonic() - started) * 1000),
            )

    def direct_reply(self, system_prompt: str, history: List[BaseMessage], message: str,
                     model_id: Optional[str] = None) -> AIMessage:
        model = self.model_factory(model_id or settings.default_chat_model)
        return model.invoke([SystemMessage(content=system_prompt), *history, HumanMessage(content=message)])

    # ---- context loading ----

    def load_brand_info(self, brand_id: Optional[str]) -> Dict[str, Any]:
        if not brand_id:
            return {}
        result = self.supabase.table("brands")\
            .select("*")\
            .eq("id", brand_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else {}

    def load_mode_prompt(self, custom_mode_id: Optional[str]) -> Optional[str]:
        if not custom_mode_id:
            return None
        result = self.supabase.table("custom_modes")\
            .select("system_prompt")\
            .eq("id", custom_mode_id)\
            .limit(1)\
            .execute()
        return result.data[0]["system_prompt"] if result.data else None

    def load_history(self, conversation_id: str, exclude_ids: List[str]) -> List[BaseMessage]:
        result = self.supabase.table("messages")\
            .select("*")\
            .eq("conversation_id", conversation_id)\
            .order("created_at")\
            .execute()
        rows = [
            m for m in result.data or []
            if m.get("id") not in exclude_ids and m.get("status") not in ("pending", "processing")
        ]
        return history_to_messages(rows)

    def load_memory_context(self, brand_id: Optional[str], user_id: str, message: str) -> Optional[str]:
        if not self.rag_service or not brand_id:
            return None
        return self.rag_service.get_context(brand_id, user_id, message).context or None

    # ---- full turn ----

    def run_turn(
        self,
        conversation: Dict[str, Any],
        message: str,
        user_id: str,
        user_message_id: str,
        mode: Optional[str] = None,
        specialist: Optional[str] = None,
        model_id: Optional[str] = None,
        assistant_message_id: Optional[str] = None,
    ) -> ChatResponse:
        """
        Answer one user message in a conversation and persist the result.

        The user message must already be stored. When assistant_message_id is
        given (background jobs) that placeholder row is filled in, otherwise a
        new assistant message is inserted. Artifacts are written after the
        message; a failed artifact write is logged and the reply is kept.
        Raises on direct-reply model errors so callers can retry.
        """
        mode = mode if mode is not None else conversation.get("mode")
        brand = self.load_brand_info(conversation.get("brand_id"))
        brand_info = format_brand_for_prompt(brand) if brand else NO_BRAND_CONTEXT
        exclude = [i for i in (user_message_id, assistant_message_id) if i]
        history = self.load_history(conversation["id"], exclude)
        memory_context = self.load_memory_context(conversation.get("brand_id"), user_id, message)

        orchestrator_prompt = build_orchestrator_prompt(brand_info, brand.get("name"), memory_context)
        decision = self.decide_route(message, mode, specialist, history, orchestrator_prompt)
        logger.info(
            f"Conversation {conversation['id']}: specialist={decision.specialist or 'none'} ({decision.reason})"
        )

        artifact_requests: List[ArtifactRequest] = []
        metadata: Dict[str, Any] = {"routing_reason": decision.reason}
        status = "completed"

        if decision.specialist:
            invocation = decision.invocation or InvokeSpecialist(specialist=decision.specialist, task=message)
            result = self.execute_specialist(invocation, brand_info, history, memory_context, model_id)
            content = result.response
            used_model = result.model_used
            artifact_requests = result.artifacts
            metadata.update({
                "specialist": result.specialist,
                "specialist_status": result.status,
                "duration_ms": result.duration_ms,
            })
            if result.status == "failed":
                status = "failed"
        elif decision.reply is not None:
            content = decision.reply
            used_model = decision.model_used
        else:
            if decision.use_orchestrator:
                system_prompt = orchestrator_prompt
            else:
                system_prompt = build_mode_system_prompt(
                    self.load_mode_prompt(conversation.get("custom_mode_id")), brand_info, memory_context
                )
            used_model = model_id or settings.default_chat_model
            content = message_text(self.direct_reply(system_prompt, history, message, used_model))

        assistant_id = self._save_assistant_message(
            conversation["id"], assistant_message_id, content, used_model, metadata, status
        )

        artifact_ids = []
        artifact_service = ArtifactService(self.supabase)
        for request in artifact_requests:
            try:
                artifact = artifact_service.create_artifact(
                    artifact_from_request(request, conversation, assistant_id, decision.specialist), user_id
                )
                artifact_ids.append(artifact.id)
            except Exception as e:
                logger.error(f"Failed to save {request.kind} artifact for conversation {conversation['id']}: {e}")

        self.supabase.table("conversations")\
            .update({"updated_at": datetime.now(timezone.utc).isoformat()})\
            .eq("id", conversation["id"])\
            .execute()

        return ChatResponse(
            conversation_id=conversation["id"],
            user_message_id=user_message_id,
            assistant_message_id=assistant_id,
            status=status,
            content=content,
            specialist=decision.specialist,
            model_used=used_model,
            artifact_ids=artifact_ids,
        )

    def _save_assistant_message(self, conversation_id: str, message_id: Optional[str], content: str,
                                model_id: Optional[str], metadata: Dict[str, Any], status: str) -> str:
        payload = {"content": content, "model_id": model_id, "metadata": metadata, "status": status}
        if message_id:
            self.supabase.table("messages")\
                .update(payload)\
                .eq("id", message_id)\
                .execute()
            return message_id
        result = self.supabase.table("messages").insert({
            **payload,
            "conversation_id": conversation_id,
            "role": "assistant",
        }).execute()
        return result.data[0]["id"]
