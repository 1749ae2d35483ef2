import pytest

from copyforge.modules.conversations.service import generate_title_from_message
from conftest import ORG_ID, auth_headers


@pytest.mark.parametrize("content,title", [
    ("Hi", "Hi"),
    ("## Plan **spring** launch", "Plan spring launch"),
    ("Line one\n\nLine two", "Line one Line two"),
    ("Help me write a long welcome email for new subscribers please", "Help me write a long welcome email for new..."),
    ("x" * 60, "x" * 50 + "..."),
])
def test_generate_title_from_message(content, title):
    assert generate_title_from_message(content) == title


def _conversation(fake_db, **extra):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": "user-alice"})
    row = {"user_id": "user-alice", "brand_id": brand["id"], "title": "Launch", "is_starred": False}
    row.update(extra)
    return fake_db.seed("conversations", row)


def test_first_user_message_titles_conversation(client, fake_db):
    created = client.post("/api/v1/conversations", json={"mode": "email_copy"}, headers=auth_headers())
    assert created.status_code == 201
    conversation_id = created.json()["id"]

    client.post(f"/api/v1/conversations/{conversation_id}/messages",
                json={"role": "user", "content": "# Black Friday teaser"}, headers=auth_headers())
    client.post(f"/api/v1/conversations/{conversation_id}/messages",
                json={"role": "user", "content": "Make it shorter"}, headers=auth_headers())

    conversation = client.get(f"/api/v1/conversations/{conversation_id}", headers=auth_headers()).json()
    assert conversation["title"] == "Black Friday teaser"
    assert [m["content"] for m in conversation["messages"]] == ["# Black Friday teaser", "Make it shorter"]


def test_conversations_are_private(client, fake_db):
    conversation = _conversation(fake_db)
    response = client.get(f"/api/v1/conversations/{conversation['id']}", headers=auth_headers("bob-token"))
    assert response.status_code == 404


def test_star_toggles(client, fake_db):
    conversation = _conversation(fake_db)
    first = client.post(f"/api/v1/conversations/{conversation['id']}/star", headers=auth_headers())
    assert first.json() == {"is_starred": True}


def test_share_last_email_only(client, fake_db):
    conversation = _conversation(fake_db)
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "user", "content": "Write it",
                              "created_at": "2025-01-01T10:00:00+00:00"})
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "assistant", "content": "Draft 1",
                              "created_at": "2025-01-01T10:01:00+00:00"})
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "assistant", "content": "Draft 2",
                              "created_at": "2025-01-01T10:02:00+00:00"})

    shared = client.post(f"/api/v1/conversations/{conversation['id']}/share",
                         json={"share_content": "last_email"}, headers=auth_headers())
    assert shared.status_code == 200
    token = shared.json()["share_token"]
    assert shared.json()["share_url"].endswith(f"/shared/{token}")

    public = client.get(f"/api/v1/shared/conversations/{token}")
    assert public.status_code == 200
    assert public.json()["share_content"] == "last_email"
    assert [m["content"] for m in public.json()["messages"]] == ["Draft 2"]


def test_unknown_share_token(client):
    assert client.get("/api/v1/shared/conversations/missing").status_code == 404


def test_teammate_comment_notifies_owner(client, fake_db):
    conversation = _conversation(fake_db)

    response = client.post(f"/api/v1/conversations/{conversation['id']}/comments",
                           json={"content": "  Love version B  "}, headers=auth_headers("bob-token"))

    assert response.status_code == 201
    comment = response.json()
    assert comment["content"] == "Love version B"
    assert comment["user"]["email"] == "bob@example.com"
    notification = fake_db.rows("notifications")[0]
    assert notification["user_id"] == "user-alice"
    assert notification["type"] == "comment_added"
    assert notification["metadata"]["comment_id"] == comment["id"]


def test_own_comment_does_not_notify(client, fake_db):
    conversation = _conversation(fake_db)
    client.post(f"/api/v1/conversations/{conversation['id']}/comments",
                json={"content": "Note to self"}, headers=auth_headers())
    assert fake_db.rows("notifications") == []


def test_outsider_cannot_comment(client, fake_db):
    conversation = _conversation(fake_db)
    response = client.post(f"/api/v1/conversations/{conversation['id']}/comments",
                           json={"content": "hi"}, headers=auth_headers("carol-token"))
    assert response.status_code == 404


def test_comment_edit_and_resolve_permissions(client, fake_db):
    conversation = _conversation(fake_db)
    comment = fake_db.seed("conversation_comments", {
        "conversation_id": conversation["id"], "user_id": "user-bob", "content": "Typo in line 2", "resolved": False,
    })
    url = f"/api/v1/conversations/{conversation['id']}/comments/{comment['id']}"

    assert client.patch(url, json={"content": "Rewritten"}, headers=auth_headers()).status_code == 403

    resolved = client.patch(url, json={"resolved": True}, headers=auth_headers())
    assert resolved.status_code == 200
    assert resolved.json()["resolved"] is True

    assert client.delete(url, headers=auth_headers()).status_code == 204
    assert fake_db.rows("conversation_comments") == []


def test_pin_and_archive_toggle(client, fake_db):
    conversation = _conversation(fake_db, is_pinned=False, is_archived=False)
    base = f"/api/v1/conversations/{conversation['id']}"

    assert client.post(f"{base}/pin", headers=auth_headers()).json() == {"is_pinned": True}
    assert client.post(f"{base}/pin", headers=auth_headers()).json() == {"is_pinned": False}
    assert client.post(f"{base}/archive", headers=auth_headers()).json() == {"is_archived": True}
    assert client.post(f"{base}/archive", headers=auth_headers("bob-token")).status_code == 404


def test_list_filters_archived(client, fake_db):
    active = _conversation(fake_db, title="Active", is_archived=False)
    archived = _conversation(fake_db, title="Old", is_archived=True)

    def titles(**params):
        response = client.get("/api/v1/conversations", params=params, headers=auth_headers())
        return sorted(c["title"] for c in response.json())

    assert titles(archived=False) == [active["title"]]
    assert titles(archived=True) == [archived["title"]]
    assert titles() == ["Active", "Old"]


def test_duplicate_copies_messages(client, fake_db):
    conversation = _conversation(fake_db, mode="email_copy", is_starred=True, share_token="tok")
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "user", "content": "Write it",
                              "created_at": "2025-01-01T10:00:00+00:00"})
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "assistant", "content": "Draft",
                              "created_at": "2025-01-01T10:01:00+00:00"})

    response = client.post(f"/api/v1/conversations/{conversation['id']}/duplicate", headers=auth_headers())
    assert response.status_code == 201
    copy = response.json()
    assert copy["title"] == "Launch (Copy)"
    assert copy["mode"] == "email_copy"
    assert copy["is_starred"] is False
    assert copy["share_token"] is None
    assert copy["metadata"] == {"duplicated_from": conversation["id"]}

    copied = client.get(f"/api/v1/conversations/{copy['id']}/messages", headers=auth_headers()).json()
    assert [(m["role"], m["content"]) for m in copied] == [("user", "Write it"), ("assistant", "Draft")]
    assert len(fake_db.rows("messages")) == 4


def test_duplicate_untitled_conversation(client, fake_db):
    conversation = _conversation(fake_db, title=None)
    response = client.post(f"/api/v1/conversations/{conversation['id']}/duplicate", headers=auth_headers())
    assert response.json()["title"] == "Untitled conversation (Copy)"


def test_markdown_export(client, fake_db):
    conversation = _conversation(fake_db, title="Spring Launch", mode="email_copy",
                                 created_at="2025-03-01T09:30:00+00:00")
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "user", "content": "Write it",
                              "created_at": "2025-03-01T09:31:00+00:00"})
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "assistant", "content": "Here you go",
                              "created_at": "2025-03-01T11:32:00+02:00"})

    response = client.get(f"/api/v1/conversations/{conversation['id']}/export", headers=auth_headers())
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="conversation-spring-launch-')
    assert disposition.endswith('.md"')

    body = response.text
    assert body.startswith("# Spring Launch\n\n**Created:** 2025-03-01 09:30 UTC\n**Mode:** email_copy\n")
    assert "## User 1\n\nWrite it\n\n*2025-03-01 09:31 UTC*" in body
    assert "## Assistant 2\n\nHere you go\n\n*2025-03-01 09:32 UTC*" in body


def test_json_export(client, fake_db):
    conversation = _conversation(fake_db)
    fake_db.seed("messages", {"conversation_id": conversation["id"], "role": "user", "content": "Write it"})

    response = client.get(f"/api/v1/conversations/{conversation['id']}/export", params={"format": "json"},
                          headers=auth_headers())
    assert response.status_code == 200
    exported = response.json()
    assert exported["version"] == "1.0"
    assert exported["conversation"]["id"] == conversation["id"]
    assert [m["content"] for m in exported["messages"]] == ["Write it"]


def test_export_rejects_unknown_format(client, fake_db):
    conversation = _conversation(fake_db)
    response = client.get(f"/api/v1/conversations/{conversation['id']}/export", params={"format": "pdf"},
                          headers=auth_headers())
    assert response.status_code == 400
