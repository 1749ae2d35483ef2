from conftest import ORG_ID, auth_headers


def _artifact(fake_db, **extra):
    brand = fake_db.seed("brands", {"organization_id": ORG_ID, "name": "Acme", "user_id": "user-alice"})
    conversation = fake_db.seed("conversations", {"user_id": "user-alice", "brand_id": brand["id"], "title": "Launch"})
    row = {
        "conversation_id": conversation["id"],
        "brand_id": brand["id"],
        "user_id": "user-alice",
        "title": "Spring Sale",
        "kind": "email",
        "content": "Body A",
        "version_a": {"label": "Urgent", "content": "Body A"},
        "version_b": {"label": "Playful", "content": "Body B"},
        "version_c": None,
        "selected_version": "A",
        "metadata": {},
    }
    row.update(extra)
    return fake_db.seed("artifacts", row)


def _row(fake_db, table, row_id):
    return next(r for r in fake_db.rows(table) if r["id"] == row_id)


# ---- versions ----

def test_select_existing_version(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.post(f"/api/v1/artifacts/{artifact['id']}/select-version",
                           json={"version": "B"}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["selected_version"] == "B"
    assert _row(fake_db, "artifacts", artifact["id"])["selected_version"] == "B"


def test_select_missing_version_rejected(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.post(f"/api/v1/artifacts/{artifact['id']}/select-version",
                           json={"version": "C"}, headers=auth_headers())
    assert response.status_code == 400
    assert _row(fake_db, "artifacts", artifact["id"])["selected_version"] == "A"


def test_select_version_requires_owner(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.post(f"/api/v1/artifacts/{artifact['id']}/select-version",
                           json={"version": "B"}, headers=auth_headers("bob-token"))
    assert response.status_code == 404


def test_update_version_content(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.put(f"/api/v1/artifacts/{artifact['id']}/versions/c", json={
        "label": "Story", "subject_line": "A note from us", "content": "Body C",
    }, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["version_c"] == {"label": "Story", "subject_line": "A note from us", "content": "Body C"}


def test_update_unknown_version_rejected(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.put(f"/api/v1/artifacts/{artifact['id']}/versions/D",
                          json={"content": "x"}, headers=auth_headers())
    assert response.status_code == 400


# ---- sharing ----

def test_share_reuses_token(client, fake_db):
    artifact = _artifact(fake_db)
    first = client.post(f"/api/v1/artifacts/{artifact['id']}/share", headers=auth_headers())
    second = client.post(f"/api/v1/artifacts/{artifact['id']}/share", headers=auth_headers())
    assert first.status_code == 200
    token = first.json()["share_token"]
    assert second.json()["share_token"] == token
    assert first.json()["share_url"].endswith(f"/share/email/{token}")
    assert _row(fake_db, "artifacts", artifact["id"])["metadata"]["is_shared"] is True

    shared = client.get(f"/api/v1/shared/artifacts/{token}")
    assert shared.status_code == 200
    assert shared.json()["title"] == "Spring Sale"


def test_unknown_shared_artifact(client):
    assert client.get("/api/v1/shared/artifacts/nope").status_code == 404


# ---- comments ----

def test_comment_lifecycle(client, fake_db):
    artifact = _artifact(fake_db)
    base = f"/api/v1/artifacts/{artifact['id']}/comments"

    created = client.post(base, json={"content": "  Punchier subject?  ", "version_key": "B"},
                          headers=auth_headers("bob-token"))
    assert created.status_code == 201
    comment = created.json()
    assert comment["content"] == "Punchier subject?"
    assert comment["resolved"] is False

    resolved = client.post(f"{base}/{comment['id']}/resolve", headers=auth_headers())
    assert resolved.json()["resolved"] is True
    reopened = client.post(f"{base}/{comment['id']}/resolve", headers=auth_headers())
    assert reopened.json()["resolved"] is False

    assert [c["id"] for c in client.get(base, headers=auth_headers()).json()] == [comment["id"]]

    # only the author deletes
    assert client.delete(f"{base}/{comment['id']}", headers=auth_headers()).status_code == 404
    assert client.delete(f"{base}/{comment['id']}", headers=auth_headers("bob-token")).status_code == 204
    assert fake_db.rows("artifact_comments") == []


def test_outsider_cannot_comment_on_artifact(client, fake_db):
    artifact = _artifact(fake_db)
    response = client.post(f"/api/v1/artifacts/{artifact['id']}/comments",
                           json={"content": "hi"}, headers=auth_headers("carol-token"))
    assert response.status_code == 404
