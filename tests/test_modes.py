from conftest import auth_headers


def _seed_mode(fake_db, **overrides):
    row = {
        "user_id": "user-alice",
        "name": "Launch Writer",
        "description": "Product launch emails",
        "icon": "🚀",
        "color": "purple",
        "system_prompt": "You write launch emails.",
        "is_active": True,
        "is_default": False,
        "sort_order": 2,
    }
    row.update(overrides)
    return fake_db.seed("custom_modes", row)


def test_duplicate_mode_creates_inactive_copy(client, fake_db):
    original = _seed_mode(fake_db)

    response = client.post(f"/api/v1/modes/{original['id']}/duplicate", headers=auth_headers())
    assert response.status_code == 201
    copy = response.json()
    assert copy["id"] != original["id"]
    assert copy["name"] == "Launch Writer (Copy)"
    assert copy["is_active"] is False
    assert copy["is_default"] is False
    assert copy["system_prompt"] == original["system_prompt"]
    assert copy["icon"] == "🚀"
    assert copy["sort_order"] == 3
    assert len(fake_db.rows("custom_modes")) == 2


def test_duplicate_keeps_name_within_limit(client, fake_db):
    original = _seed_mode(fake_db, name="x" * 98)
    copy = client.post(f"/api/v1/modes/{original['id']}/duplicate", headers=auth_headers()).json()
    assert copy["name"] == "x" * 93 + " (Copy)"


def test_duplicate_of_full_length_name_keeps_copy_suffix(client, fake_db):
    original = _seed_mode(fake_db, name="Long name " * 10)
    copy = client.post(f"/api/v1/modes/{original['id']}/duplicate", headers=auth_headers()).json()
    assert copy["name"] != original["name"]
    assert copy["name"].endswith(" (Copy)")
    assert len(copy["name"]) <= 100


def test_duplicate_of_default_mode_is_editable(client, fake_db):
    original = _seed_mode(fake_db, is_default=True)
    copy = client.post(f"/api/v1/modes/{original['id']}/duplicate", headers=auth_headers()).json()
    assert copy["is_default"] is False


def test_cannot_duplicate_another_users_mode(client, fake_db):
    original = _seed_mode(fake_db, user_id="user-bob")
    response = client.post(f"/api/v1/modes/{original['id']}/duplicate", headers=auth_headers())
    assert response.status_code == 404


def test_default_modes_are_read_only(client, fake_db):
    default = _seed_mode(fake_db, is_default=True)
    assert client.delete(f"/api/v1/modes/{default['id']}", headers=auth_headers()).status_code == 403
    response = client.put(f"/api/v1/modes/{default['id']}", json={"name": "Changed"}, headers=auth_headers())
    assert response.status_code == 403


def test_create_mode_appends_sort_order(client, fake_db):
    _seed_mode(fake_db, sort_order=4)
    response = client.post(
        "/api/v1/modes", json={"name": "Teaser", "system_prompt": "Write teasers."}, headers=auth_headers()
    )
    assert response.status_code == 201
    assert response.json()["sort_order"] == 5


def test_blank_mode_name_rejected(client):
    response = client.post("/api/v1/modes", json={"name": "   ", "system_prompt": "x"}, headers=auth_headers())
    assert response.status_code == 400
