"""
Shared fixtures: an in-memory stand-in for the Supabase client and a
TestClient wired to it through dependency overrides.
"""
import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from copyforge.main import app
from copyforge.database.supabase_client import get_supabase, get_service_supabase
from copyforge.modules.auth.service import clear_auth_cache
from copyforge.modules.rag.service import clear_embedding_cache


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable subset of the postgrest query builder, evaluated against lists of dicts"""

    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload = None
        self.columns = "*"
        self.filters = []
        self.orders = []
        self.limit_count = None
        self.range_bounds = None

    # actions
    def select(self, columns="*", **kwargs):
        self.columns = columns
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def gt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] > value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] >= value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] < value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row[column] <= value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) == value)
        return self

    def contains(self, column, values):
        self.filters.append(lambda row: all(v in (row.get(column) or []) for v in values))
        return self

    # modifiers
    def order(self, column, desc=False, **kwargs):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def range(self, start, end):
        self.range_bounds = (start, end)
        return self

    def _matching(self):
        rows = self.db.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _project(self, row):
        if self.columns == "*" or "(" in self.columns:
            return copy.deepcopy(row)
        keys = [c.strip() for c in self.columns.split(",")]
        return {k: copy.deepcopy(row.get(k)) for k in keys}

    def execute(self):
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                row = copy.deepcopy(payload)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResult(inserted)

        if self.action == "update":
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return FakeResult(updated)

        if self.action == "delete":
            removed = self._matching()
            self.db.tables[self.table_name] = [row for row in rows if row not in removed]
            return FakeResult(copy.deepcopy(removed))

        result = self._matching()
        for column, desc in reversed(self.orders):
            present = [r for r in result if r.get(column) is not None]
            missing = [r for r in result if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            result = present + missing
        if self.range_bounds:
            start, end = self.range_bounds
            result = result[start:end + 1]
        if self.limit_count is not None:
            result = result[:self.limit_count]
        return FakeResult([self._project(row) for row in result])


class FakeRPC:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        return FakeResult(handler(self.params) if handler else [])


class FakeAuth:
    def __init__(self, db):
        self.db = db

    def get_user(self, jwt=None):
        user = self.db.users.get(jwt)
        if not user:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(
            id=user["id"], email=user["email"], user_metadata={}, app_metadata={}
        ))

    def sign_in_with_password(self, credentials):
        raise Exception("Invalid login credentials")

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.users = {}
        self.rpc_handlers = {}
        self.rpc_calls = []
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRPC(self, name, params or {})

    # helpers for arranging test data
    def add_user(self, token, user_id, email):
        self.users[token] = {"id": user_id, "email": email}
        self.tables.setdefault("profiles", []).append({"user_id": user_id, "email": email, "full_name": None})

    def seed(self, table, row):
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table):
        return self.tables.get(table, [])


ORG_ID = "org-1"


@pytest.fixture
def fake_db():
    db = FakeSupabase()
    db.add_user("alice-token", "user-alice", "alice@example.com")
    db.add_user("bob-token", "user-bob", "bob@example.com")
    db.add_user("carol-token", "user-carol", "carol@example.com")
    db.seed("organizations", {"id": ORG_ID, "name": "Acme", "slug": "acme"})
    db.seed("organization_members", {"organization_id": ORG_ID, "user_id": "user-alice", "role": "admin"})
    db.seed("organization_members", {"organization_id": ORG_ID, "user_id": "user-bob", "role": "member"})
    return db


@pytest.fixture
def client(fake_db):
    clear_auth_cache()
    clear_embedding_cache()
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    clear_auth_cache()


def auth_headers(token="alice-token"):
    return {"Authorization": f"Bearer {token}"}


class StubModel:
    """Chat model double: records what it was bound to and invoked with, returns a canned reply"""

    def __init__(self, reply):
        self.reply = reply
        self.tools = None
        self.tool_kwargs = None
        self.messages = None

    def bind_tools(self, tools, **kwargs):
        self.tools = tools
        self.tool_kwargs = kwargs
        return self

    def invoke(self, messages):
        self.messages = messages
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class StubFactory:
    """Hands out one StubModel per call, in order, remembering the requested model ids"""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.model_ids = []
        self.models = []

    def __call__(self, model_id=None, *args, **kwargs):
        self.model_ids.append(model_id)
        model = StubModel(self.replies.pop(0))
        self.models.append(model)
        return model
