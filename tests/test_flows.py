import pytest
from langchain_core.messages import AIMessage

from copyforge.config import settings
from copyforge.main import app
from copyforge.modules.flows.prompts import build_brief_message, build_flow_email_prompt
from copyforge.modules.flows.routes import get_flow_service
from copyforge.modules.flows.schemas import FlowOutline, GenerateFlowEmailsRequest
from copyforge.modules.flows.service import FlowService
from copyforge.modules.orchestrator.schemas import ArtifactRequest
from copyforge.modules.orchestrator.service import artifact_from_request
from conftest import ORG_ID, StubFactory, auth_headers

OUTLINE = {
    "flow_name": "Welcome Series",
    "goal": "Turn new subscribers into first-time buyers",
    "target_audience": "New newsletter signups",
    "emails": [
        {"sequence": 2, "title": "Our story", "email_type": "letter", "timing": "Day 2",
         "purpose": "Build trust", "key_points": ["Founder note"], "cta": "Read more"},
        {"sequence": 1, "title": "Welcome", "email_type": "design", "timing": "Immediately",
         "purpose": "Greet and deliver the discount", "key_points": ["10% code", "Bestsellers"], "cta": "Shop now"},
        {"sequence": 3, "title": "Last chance", "email_type": "design", "timing": "Day 5",
         "purpose": "Use the code before it expires", "key_points": ["Code expires"], "cta": "Use my code"},
    ],
}


def _conversation(fake_db, user_id="user-alice", **extra):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": user_id})
    row = {"user_id": user_id, "brand_id": brand["id"], "title": "Plan", "mode": "flow"}
    row.update(extra)
    return fake_db.seed("conversations", row)


def _use_factory(fake_db, factory):
    app.dependency_overrides[get_flow_service] = lambda: FlowService(fake_db, factory)


def _brief(fake_db, conversation, title, approval_status, **metadata):
    return fake_db.seed("artifacts", {
        "conversation_id": conversation["id"],
        "user_id": conversation["user_id"],
        "brand_id": conversation["brand_id"],
        "kind": "email_brief",
        "title": title,
        "metadata": {"approval_status": approval_status, **metadata},
        "created_at": f"2025-01-01T00:00:{len(fake_db.rows('artifacts')):02d}+00:00",
    })


def _row(fake_db, table, row_id):
    return next(r for r in fake_db.rows(table) if r["id"] == row_id)


# ---- prompts ----

def test_flow_email_prompt_follows_email_type():
    outline = FlowOutline(**OUTLINE)
    first = build_flow_email_prompt(outline.emails[1], outline, "Brand Name: Acme")
    assert "Email 1 of 3 in a Welcome Series automation" in first
    assert "HERO SECTION:" in first
    assert "- 10% code\n- Bestsellers" in first
    assert "First email" in first

    letter = build_flow_email_prompt(outline.emails[0], outline, "Brand Name: Acme", rag_context="<ctx/>")
    assert "letter-style email" in letter
    assert "HERO SECTION:" not in letter
    assert "<ctx/>" in letter
    assert "Middle email" in letter


def test_brief_message_lists_optional_fields_when_present():
    message = build_brief_message({"objective": "Drive sales", "tone_notes": "Playful"})
    assert message.startswith("## Email Brief\n\n**Objective:** Drive sales")
    assert "**Key Message:** Not specified" in message
    assert "**Tone Notes:** Playful" in message
    assert "Target Segment" not in message


# ---- flow generation ----

def test_generate_flow_emails_creates_children_in_order(client, fake_db):
    conversation = _conversation(fake_db)
    factory = StubFactory(AIMessage(content="Email one"), AIMessage(content="Email two"), AIMessage(content="Email three"))
    _use_factory(fake_db, factory)

    response = client.post("/api/v1/flows/generate-emails", json={
        "conversation_id": conversation["id"], "flow_type": "welcome", "outline": OUTLINE,
    }, headers=auth_headers())
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["generated"], body["failed"]) == (3, 0)

    children = [_row(fake_db, "conversations", child_id) for child_id in body["children"]]
    assert [c["title"] for c in children] == [
        "Welcome Series - Email 1", "Welcome Series - Email 2", "Welcome Series - Email 3",
    ]
    assert all(c["parent_conversation_id"] == conversation["id"] for c in children)
    assert [c["flow_sequence_order"] for c in children] == [1, 2, 3]
    assert factory.model_ids == [settings.model_generation] * 3

    replies = {m["conversation_id"]: m["content"] for m in fake_db.rows("messages")}
    assert replies[children[0]["id"]] == "Email one"
    assert all(m["role"] == "assistant" for m in fake_db.rows("messages"))

    outline_row = fake_db.rows("flow_outlines")[0]
    assert outline_row["id"] == body["outline_id"]
    assert outline_row["email_count"] == 3
    assert outline_row["approved"] is True

    parent = _row(fake_db, "conversations", conversation["id"])
    assert parent["is_flow"] is True
    assert parent["flow_type"] == "welcome"


def test_one_failed_email_is_reported(client, fake_db):
    conversation = _conversation(fake_db)
    factory = StubFactory(AIMessage(content="Email one"), RuntimeError("overloaded"), AIMessage(content="Email three"))
    _use_factory(fake_db, factory)

    response = client.post("/api/v1/flows/generate-emails", json={
        "conversation_id": conversation["id"], "outline": OUTLINE,
    }, headers=auth_headers())
    body = response.json()
    assert body["success"] is True
    assert (body["generated"], body["failed"]) == (2, 1)
    assert body["failures"] == [{"sequence": 2, "error": "Email generation failed"}]
    assert len(fake_db.rows("messages")) == 2


def test_empty_reply_counts_as_failure(fake_db):
    conversation = _conversation(fake_db)
    outline = {**OUTLINE, "emails": OUTLINE["emails"][1:2]}
    service = FlowService(fake_db, StubFactory(AIMessage(content="   ")))

    result = service.generate_flow_emails(
        conversation, GenerateFlowEmailsRequest(conversation_id=conversation["id"], outline=outline), "user-alice"
    )
    assert result.success is False
    assert result.failed == 1


def test_flow_generation_requires_owner(client, fake_db):
    conversation = _conversation(fake_db)
    _use_factory(fake_db, StubFactory())
    response = client.post("/api/v1/flows/generate-emails", json={
        "conversation_id": conversation["id"], "outline": OUTLINE,
    }, headers=auth_headers("bob-token"))
    assert response.status_code == 404
    assert fake_db.rows("flow_outlines") == []


def test_outline_needs_an_email(client, fake_db):
    conversation = _conversation(fake_db)
    _use_factory(fake_db, StubFactory())
    response = client.post("/api/v1/flows/generate-emails", json={
        "conversation_id": conversation["id"], "outline": {**OUTLINE, "emails": []},
    }, headers=auth_headers())
    assert response.status_code == 400


# ---- calendar ----

def test_brief_artifact_starts_as_draft():
    request = ArtifactRequest(kind="email_brief", title="Winter Sale Launch", data={
        "send_date": "2025-01-05",
        "brief_campaign_type": "promotional",
        "objective": "Drive sales",
        "call_to_action": "Shop now",
    })
    artifact = artifact_from_request(request, {"id": "conv-1", "brand_id": "brand-1"}, None, "calendar_planner")
    assert artifact.metadata["approval_status"] == "draft"
    assert artifact.metadata["campaign_type"] == "promotional"
    assert artifact.metadata["send_date"] == "2025-01-05"
    assert "brief_campaign_type" not in artifact.metadata


def test_create_calendar_emails_from_approved_briefs(client, fake_db):
    calendar = _conversation(fake_db, mode="calendar")
    approved = _brief(fake_db, calendar, "Winter Sale Launch", "approved",
                      objective="Drive sales", send_date="2025-01-05", campaign_type="promotional")
    _brief(fake_db, calendar, "New Year Note", "draft")

    response = client.post("/api/v1/calendar/create-emails", json={
        "calendar_conversation_id": calendar["id"], "create_all": True,
    }, headers=auth_headers())
    assert response.status_code == 200
    body = response.json()
    assert body["created_count"] == 1
    created = body["conversations"][0]
    assert created["title"] == "Email: Winter Sale Launch"
    assert created["brief_id"] == approved["id"]

    child = _row(fake_db, "conversations", created["id"])
    assert child["parent_conversation_id"] == calendar["id"]
    assert child["mode"] == "email_copy"
    assert child["flow_type"] == "calendar_emails"
    assert child["metadata"]["send_date"] == "2025-01-05"
    assert _row(fake_db, "artifacts", approved["id"])["metadata"]["email_conversation_id"] == created["id"]

    first_message = fake_db.rows("messages")[0]
    assert first_message["conversation_id"] == created["id"]
    assert first_message["role"] == "user"
    assert "**Objective:** Drive sales" in first_message["content"]

    # every approved brief now has its conversation
    again = client.post("/api/v1/calendar/create-emails", json={
        "calendar_conversation_id": calendar["id"], "create_all": True,
    }, headers=auth_headers())
    assert again.status_code == 400


def test_selected_briefs_only(client, fake_db):
    calendar = _conversation(fake_db, mode="calendar")
    first = _brief(fake_db, calendar, "One", "approved")
    _brief(fake_db, calendar, "Two", "approved")

    response = client.post("/api/v1/calendar/create-emails", json={
        "calendar_conversation_id": calendar["id"], "brief_ids": [first["id"]],
    }, headers=auth_headers())
    assert [c["brief_id"] for c in response.json()["conversations"]] == [first["id"]]


def test_no_approved_briefs(client, fake_db):
    calendar = _conversation(fake_db, mode="calendar")
    _brief(fake_db, calendar, "Draft only", "draft")
    response = client.post("/api/v1/calendar/create-emails", json={
        "calendar_conversation_id": calendar["id"], "create_all": True,
    }, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["detail"] == "No approved briefs found"


@pytest.mark.parametrize("create_first,can_create", [(False, True), (True, False)])
def test_calendar_status(client, fake_db, create_first, can_create):
    calendar = _conversation(fake_db, mode="calendar")
    _brief(fake_db, calendar, "One", "approved")
    _brief(fake_db, calendar, "Two", "draft")
    if create_first:
        client.post("/api/v1/calendar/create-emails", json={
            "calendar_conversation_id": calendar["id"], "create_all": True,
        }, headers=auth_headers())

    status = client.get(f"/api/v1/calendar/{calendar['id']}/emails", headers=auth_headers()).json()
    assert (status["total_briefs"], status["approved_briefs"]) == (2, 1)
    assert status["created_emails"] == (1 if create_first else 0)
    assert status["can_create_emails"] is can_create
    assert [b["has_email_conversation"] for b in status["briefs"]] == [create_first, False]
