import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from copyforge.config import settings
from copyforge.modules.orchestrator.prompts import build_specialist_task_prompt
from copyforge.modules.orchestrator.schemas import InvokeSpecialist, StructuredReplyError
from copyforge.modules.orchestrator.service import (
    OrchestratorService, SPECIALIST_ERROR_MESSAGE, STRUCTURED_REPLY_ERROR_MESSAGE, message_text,
    parse_structured_reply, should_use_orchestrator,
)
from conftest import ORG_ID, StubFactory


def _tool_call(name, args, call_id="call_1"):
    return {"name": name, "args": args, "id": call_id}


CALENDAR_ARGS = {
    "kind": "calendar",
    "title": "January Email Calendar",
    "calendar_month": "2025-01",
    "calendar_slots": [
        {"id": "s1", "date": "2025-01-05", "title": "Winter Sale Launch", "email_type": "promotional", "status": "draft"},
    ],
}

EMAIL_ARGS = {
    "kind": "email",
    "title": "Spring Sale",
    "versions": [
        {"id": "a", "label": "Version A - Urgent", "subject_line": "48 hours only", "content": "Body A"},
        {"id": "b", "label": "Version B - Playful", "subject_line": "Spring has sprung", "content": "Body B"},
    ],
}


@pytest.fixture(autouse=True)
def rule_based_routing(monkeypatch):
    monkeypatch.setattr(settings, "orchestrator_routing", "rules")


# ---- routing ----

@pytest.mark.parametrize("mode,expected", [
    (None, True), ("", True), ("orchestrator", True), ("assistant", True), ("email_copy", False), ("flow", False),
])
def test_should_use_orchestrator(mode, expected):
    assert should_use_orchestrator(mode) is expected


def test_other_modes_always_reply_directly(fake_db):
    decision = OrchestratorService(fake_db, StubFactory()).decide_route("Write a promotional email", mode="email_copy")
    assert decision.use_orchestrator is False
    assert decision.specialist is None


def test_explicit_specialist_wins(fake_db):
    decision = OrchestratorService(fake_db, StubFactory()).decide_route(
        "Write a promotional email", specialist="data_interpreter"
    )
    assert decision.specialist == "data_interpreter"


def test_rule_based_routing(fake_db):
    service = OrchestratorService(fake_db, StubFactory())
    assert service.decide_route("Create a Q1 campaign calendar").specialist == "calendar_planner"
    no_match = service.decide_route("thanks!")
    assert no_match.use_orchestrator is True
    assert no_match.specialist is None


def test_model_routing_uses_invoke_specialist_tool_call(fake_db, monkeypatch):
    monkeypatch.setattr(settings, "orchestrator_routing", "llm")
    reply = AIMessage(content="", tool_calls=[_tool_call("invoke_specialist", {
        "specialist": "flow_architect",
        "task": "Design a three-email welcome series",
        "expected_output": "plan",
    })])
    factory = StubFactory(reply)

    decision = OrchestratorService(fake_db, factory).decide_route("I need a welcome series")

    assert decision.specialist == "flow_architect"
    assert decision.invocation.task == "Design a three-email welcome series"
    assert factory.models[0].tools == [InvokeSpecialist]
    assert factory.model_ids == [settings.model_reasoning]


def test_model_routing_without_tool_call_is_a_direct_reply(fake_db, monkeypatch):
    monkeypatch.setattr(settings, "orchestrator_routing", "llm")
    factory = StubFactory(AIMessage(content="Happy to help! What are you launching?"))

    decision = OrchestratorService(fake_db, factory).decide_route("hi")

    assert decision.specialist is None
    assert decision.reply == "Happy to help! What are you launching?"


# ---- specialist execution ----

def test_calendar_planner_forces_artifact_tool_and_filters_kinds(fake_db):
    reply = AIMessage(content="Here is your January plan.", tool_calls=[
        _tool_call("create_artifact", CALENDAR_ARGS, "call_1"),
        _tool_call("create_artifact", EMAIL_ARGS, "call_2"),
    ])
    factory = StubFactory(reply)
    history = [HumanMessage(content=f"turn {i}") for i in range(8)]

    result = OrchestratorService(fake_db, factory).execute_specialist(
        InvokeSpecialist(specialist="calendar_planner", task="Plan January emails"), "Brand Name: Acme", history
    )

    assert result.status == "success"
    assert [a.kind for a in result.artifacts] == ["calendar"]
    assert result.artifacts[0].data["calendar_month"] == "2025-01"
    assert result.model_used == settings.model_reasoning
    model = factory.models[0]
    assert model.tool_kwargs == {"tool_choice": "create_artifact"}
    # system prompt + last five history turns + task prompt
    assert len(model.messages) == 7
    assert isinstance(model.messages[0], SystemMessage)
    assert "<brand_context>\nBrand Name: Acme\n</brand_context>" in model.messages[0].content
    assert model.messages[1].content == "turn 3"
    assert model.messages[-1].content.startswith("## TASK\n\nPlan January emails")


def test_email_writer_binds_artifact_tool_without_forcing(fake_db):
    factory = StubFactory(AIMessage(content="Draft ready."))
    result = OrchestratorService(fake_db, factory).execute_specialist(
        InvokeSpecialist(specialist="email_writer", task="Write a welcome email"), "Brand Name: Acme"
    )
    assert result.status == "success"
    assert result.response == "Draft ready."
    assert result.artifacts == []
    assert factory.models[0].tool_kwargs == {}
    assert factory.model_ids == [settings.model_generation]


def test_specialist_failure_returns_generic_error(fake_db):
    factory = StubFactory(RuntimeError("provider exploded: secret details"))
    result = OrchestratorService(fake_db, factory).execute_specialist(
        InvokeSpecialist(specialist="email_writer", task="Write"), "Brand"
    )
    assert result.status == "failed"
    assert result.response == SPECIALIST_ERROR_MESSAGE
    assert "secret" not in result.response
    assert result.model_used == "none"


def test_calendar_planner_malformed_json_fallback_fails_generically(fake_db):
    factory = StubFactory(AIMessage(content='```json\n{"kind": "calendar", "title": \n```'))
    result = OrchestratorService(fake_db, factory).execute_specialist(
        InvokeSpecialist(specialist="calendar_planner", task="Plan February"), "Brand"
    )
    assert result.status == "failed"
    assert result.response == STRUCTURED_REPLY_ERROR_MESSAGE


def test_calendar_planner_json_text_is_accepted_when_tool_not_called(fake_db):
    factory = StubFactory(AIMessage(content='Sure!\n```json\n{"kind": "calendar", "title": "February"}\n```'))
    result = OrchestratorService(fake_db, factory).execute_specialist(
        InvokeSpecialist(specialist="calendar_planner", task="Plan February"), "Brand"
    )
    assert result.status == "success"
    assert [a.title for a in result.artifacts] == ["February"]


# ---- structured replies ----

def test_parse_structured_reply_bare_json():
    artifact = parse_structured_reply('Result: {"kind": "markdown", "title": "Notes", "content": "# Hi"}')
    assert artifact.kind == "markdown"
    assert artifact.content == "# Hi"


@pytest.mark.parametrize("text", [
    "no json here",
    "{not: valid json}",
    '{"kind": "poem", "title": "Ode"}',
    '{"title": "Missing kind"}',
])
def test_parse_structured_reply_rejects_bad_input_generically(text):
    with pytest.raises(StructuredReplyError) as excinfo:
        parse_structured_reply(text)
    assert str(excinfo.value) == STRUCTURED_REPLY_ERROR_MESSAGE


def test_parse_structured_reply_enforces_allowed_kinds():
    with pytest.raises(StructuredReplyError):
        parse_structured_reply('{"kind": "email", "title": "x"}', allowed_kinds=["calendar"])


def test_message_text_flattens_content_parts():
    message = AIMessage(content=[
        {"type": "text", "text": "Hello "},
        {"type": "tool_use", "id": "t1", "name": "create_artifact", "input": {}},
        {"type": "text", "text": "world"},
    ])
    assert message_text(message) == "Hello world"


def test_task_prompt_sections():
    invocation = InvokeSpecialist.model_validate({
        "specialist": "email_writer",
        "task": "Write the launch email",
        "context": {
            "previous_output": {"specialist": "calendar_planner", "output": "Jan 5 launch"},
            "artifacts": [{"id": "b1", "kind": "email_brief", "title": "Launch brief"}],
            "products": [{"id": "p1", "name": "Trail Pack", "price": 89}],
            "preferences": {"tone": "playful"},
            "additional_context": "Audience is returning customers",
        },
        "expected_output": "artifact",
    })

    prompt = build_specialist_task_prompt(invocation)

    headings = [line for line in prompt.splitlines() if line.startswith("## ")]
    assert headings == [
        "## TASK", "## PREVIOUS WORK", "## REFERENCE ARTIFACTS", "## RELEVANT PRODUCTS",
        "## USER PREFERENCES", "## ADDITIONAL CONTEXT", "## EXPECTED OUTPUT",
    ]
    assert "- **Launch brief** (email_brief): No summary" in prompt
    assert "- **Trail Pack**: No description - $89" in prompt
    assert prompt.endswith("Create an artifact with your output.")


def test_task_prompt_minimal():
    prompt = build_specialist_task_prompt(InvokeSpecialist(specialist="email_writer", task="Write"))
    assert prompt == "## TASK\n\nWrite"


# ---- full turn ----

def _seed_conversation(fake_db, **overrides):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": "user-alice",
                                    "brand_details": "Outdoor gear"})
    row = {"user_id": "user-alice", "brand_id": brand["id"], "title": "Spring", "mode": None}
    row.update(overrides)
    conversation = fake_db.seed("conversations", row)
    user_message = fake_db.seed("messages", {
        "conversation_id": conversation["id"], "role": "user", "content": "Write a promotional email for our spring sale",
    })
    return conversation, user_message


def test_run_turn_delegates_and_saves_artifact(fake_db):
    conversation, user_message = _seed_conversation(fake_db)
    factory = StubFactory(AIMessage(content="Three takes on your spring sale.", tool_calls=[
        _tool_call("create_artifact", EMAIL_ARGS)
    ]))

    response = OrchestratorService(fake_db, factory).run_turn(
        conversation, user_message["content"], "user-alice", user_message_id=user_message["id"]
    )

    assert response.status == "completed"
    assert response.specialist == "email_writer"
    assert len(response.artifact_ids) == 1

    assistant = next(m for m in fake_db.rows("messages") if m["role"] == "assistant")
    assert assistant["id"] == response.assistant_message_id
    assert assistant["content"] == "Three takes on your spring sale."
    assert assistant["metadata"]["specialist"] == "email_writer"

    artifact = fake_db.rows("artifacts")[0]
    assert artifact["kind"] == "email"
    assert artifact["message_id"] == assistant["id"]
    assert artifact["brand_id"] == conversation["brand_id"]
    assert artifact["version_a"]["subject_line"] == "48 hours only"
    assert artifact["version_b"]["content"] == "Body B"
    assert artifact["content"] == "Body A"


def test_run_turn_custom_mode_replies_directly_with_mode_prompt(fake_db):
    mode = fake_db.seed("custom_modes", {"user_id": "user-alice", "name": "Pirate", "system_prompt": "Talk like a pirate."})
    conversation, user_message = _seed_conversation(fake_db, mode="email_copy", custom_mode_id=mode["id"])
    factory = StubFactory(AIMessage(content="Arr, here be yer email."))

    response = OrchestratorService(fake_db, factory).run_turn(
        conversation, user_message["content"], "user-alice", user_message_id=user_message["id"]
    )

    assert response.specialist is None
    assert response.content == "Arr, here be yer email."
    system_prompt = factory.models[0].messages[0].content
    assert system_prompt.startswith("Talk like a pirate.")
    assert "Outdoor gear" in system_prompt
    assert factory.model_ids == [settings.default_chat_model]


def test_run_turn_fills_placeholder_message(fake_db):
    conversation, user_message = _seed_conversation(fake_db, mode="email_copy")
    placeholder = fake_db.seed("messages", {
        "conversation_id": conversation["id"], "role": "assistant", "content": "", "status": "pending",
    })
    factory = StubFactory(AIMessage(content="Done."))

    OrchestratorService(fake_db, factory).run_turn(
        conversation, user_message["content"], "user-alice",
        user_message_id=user_message["id"], assistant_message_id=placeholder["id"],
    )

    messages = fake_db.rows("messages")
    assert len(messages) == 2
    filled = next(m for m in messages if m["id"] == placeholder["id"])
    assert filled["content"] == "Done."
    assert filled["status"] == "completed"
    # neither the current user message nor the placeholder are sent as history
    assert len(factory.models[0].messages) == 2
