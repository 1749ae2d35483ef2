from conftest import auth_headers


def _seed_prompt(fake_db, user_id, prompt_type, is_active, name="Prompt"):
    return fake_db.seed("custom_prompts", {
        "user_id": user_id,
        "name": name,
        "prompt_type": prompt_type,
        "system_prompt": "Be concise.",
        "is_active": is_active,
    })


def _active(fake_db, row):
    return next(r for r in fake_db.rows("custom_prompts") if r["id"] == row["id"])["is_active"]


def test_deactivate_by_type_only_touches_that_type_and_user(client, fake_db):
    mine_design = _seed_prompt(fake_db, "user-alice", "design_email", True)
    mine_design_2 = _seed_prompt(fake_db, "user-alice", "design_email", True)
    mine_letter = _seed_prompt(fake_db, "user-alice", "letter_email", True)
    theirs_design = _seed_prompt(fake_db, "user-bob", "design_email", True)

    response = client.post(
        "/api/v1/custom-prompts/deactivate", json={"prompt_type": "design_email"}, headers=auth_headers()
    )
    assert response.status_code == 200
    assert response.json() == {"prompt_type": "design_email", "deactivated": 2}

    assert _active(fake_db, mine_design) is False
    assert _active(fake_db, mine_design_2) is False
    assert _active(fake_db, mine_letter) is True
    assert _active(fake_db, theirs_design) is True


def test_activate_deactivates_siblings_of_same_type(client, fake_db):
    current = _seed_prompt(fake_db, "user-alice", "flow_email", True, "Current")
    target = _seed_prompt(fake_db, "user-alice", "flow_email", False, "Target")
    other_type = _seed_prompt(fake_db, "user-alice", "letter_email", True, "Letter")

    response = client.post(f"/api/v1/custom-prompts/{target['id']}/activate", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["is_active"] is True

    assert _active(fake_db, current) is False
    assert _active(fake_db, target) is True
    assert _active(fake_db, other_type) is True


def test_create_active_prompt_replaces_active_one(client, fake_db):
    existing = _seed_prompt(fake_db, "user-alice", "letter_email", True)
    response = client.post("/api/v1/custom-prompts", json={
        "name": "New letter style",
        "prompt_type": "letter_email",
        "system_prompt": "Write like a handwritten note.",
        "is_active": True,
    }, headers=auth_headers())
    assert response.status_code == 201
    assert _active(fake_db, existing) is False


def test_unknown_prompt_type_rejected(client):
    response = client.post(
        "/api/v1/custom-prompts/deactivate", json={"prompt_type": "sms"}, headers=auth_headers()
    )
    assert response.status_code == 400


def test_cannot_activate_another_users_prompt(client, fake_db):
    theirs = _seed_prompt(fake_db, "user-bob", "design_email", False)
    response = client.post(f"/api/v1/custom-prompts/{theirs['id']}/activate", headers=auth_headers())
    assert response.status_code == 404
