import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_current_user
from app.database.supabase_client import get_supabase, get_service_supabase

FARMER_ID = "farmer-1"
ADMIN_ID = "admin-1"

# (table, embedded name) -> (foreign key column, target table)
RELATIONS = {
    ("crops", "zones"): ("zone_id", "zones"),
    ("user_subscriptions", "plan_id"): ("plan_id", "subscription_plans"),
    ("contact_submissions", "subscription_plans"): ("selected_plan_id", "subscription_plans"),
    ("subscription_requests", "subscription_plans"): ("plan_id", "subscription_plans"),
    ("subscription_requests", "contact_submissions"): ("contact_submission_id", "contact_submissions"),
}

TIMESTAMP_TABLES = ("alerts", "automation_history", "sensor_readings")

TABLE_DEFAULTS = {
    "alerts": {"is_read": False},
    "notifications": {"is_read": False},
    "contact_form_submissions": {"is_read": False},
    "newsletter_subscriptions": {"is_active": True},
}

EMBED = re.compile(r"^(?:(\w+):)?(\w+)\((.*)\)$")


def _split_top_level(columns: str):
    parts, depth, current = [], 0, ""
    for char in columns:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _like(value, pattern: str) -> bool:
    regex = "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$"
    return value is not None and re.match(regex, str(value), re.IGNORECASE) is not None


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Just enough of the postgrest builder for the services under test"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload = None
        self.on_conflict = "id"
        self.filters = []
        self.ordering = []
        self.row_limit = None

    # builders

    def select(self, columns="*"):
        self.operation, self.columns = "select", columns
        return self

    def insert(self, payload):
        self.operation, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.operation, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict="id"):
        self.operation, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def _filter(self, predicate):
        self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def in_(self, column, values):
        return self._filter(lambda row: row.get(column) in list(values))

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) <= value)

    def gt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) > value)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) < value)

    def ilike(self, column, pattern):
        return self._filter(lambda row: _like(row.get(column), pattern))

    def or_(self, expression):
        if any(ch in expression for ch in "()"):
            raise Exception(f"PGRST100: failed to parse logic tree ({expression})")
        clauses = []
        for clause in expression.split(","):
            column, operator, value = clause.split(".", 2)
            clauses.append((column, operator, value))

        def matches(row):
            for column, operator, value in clauses:
                if operator == "ilike" and _like(row.get(column), value):
                    return True
                if operator == "eq" and str(row.get(column)) == value:
                    return True
            return False

        return self._filter(matches)

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    # execution

    def _matching(self):
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def _embed(self, row):
        out = dict(row)
        for part in _split_top_level(self.columns):
            match = EMBED.match(part)
            if not match:
                continue
            alias, name, columns = match.groups()
            foreign_key, target = RELATIONS[(self.table, name)]
            related = next(
                (r for r in self.db.tables.get(target, []) if r["id"] == row.get(foreign_key)),
                None
            )
            if related is not None and columns.strip() != "*":
                related = {c.strip(): related.get(c.strip()) for c in columns.split(",")}
            out[alias or name] = related
        return out

    def execute(self):
        if self.db.fail_tables.get(self.table):
            raise self.db.fail_tables[self.table]

        if self.operation == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([self.db.add(self.table, row) for row in rows])

        if self.operation == "upsert":
            keys = [key.strip() for key in self.on_conflict.split(",")]
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            saved = []
            for row in rows:
                existing = next(
                    (r for r in self.db.tables.setdefault(self.table, [])
                     if all(key in row and r.get(key) == row[key] for key in keys)),
                    None
                )
                if existing is not None:
                    existing.update(row)
                    saved.append(dict(existing))
                else:
                    saved.append(self.db.add(self.table, row))
            return FakeResponse(saved)

        rows = self._matching()

        if self.operation == "update":
            for row in rows:
                row.update(self.payload)
            return FakeResponse([dict(row) for row in rows])

        if self.operation == "delete":
            self.db.tables[self.table] = [r for r in self.db.tables[self.table] if r not in rows]
            return FakeResponse([dict(row) for row in rows])

        for column, desc in reversed(self.ordering):
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column) or 0), reverse=desc)
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        return FakeResponse([self._embed(row) for row in rows])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", bucket: str):
        self.storage = storage
        self.bucket = bucket

    def upload(self, path, content, options=None):
        self.storage.objects[(self.bucket, path)] = content
        return {"path": path}

    def get_public_url(self, path):
        return f"https://storage.test/{self.bucket}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop((self.bucket, path), None)
        return [{"name": path} for path in paths]


class FakeStorage:
    def __init__(self):
        self.objects = {}

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    """In-memory stand-in for supabase.Client"""

    def __init__(self):
        self.tables = {}
        self.fail_tables = {}
        self.storage = FakeStorage()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def add(self, table, row):
        # strictly increasing created_at keeps "newest first" ordering deterministic
        self._clock += timedelta(seconds=1)
        stored = {**TABLE_DEFAULTS.get(table, {}), **row}
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", self._clock.isoformat())
        if table in TIMESTAMP_TABLES:
            stored.setdefault("timestamp", self._clock.isoformat())
        self.tables.setdefault(table, []).append(stored)
        return dict(stored)

    def rows(self, table):
        return self.tables.get(table, [])


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def basic_plan(db):
    return db.add("subscription_plans", {
        "name": "Basic",
        "description": "Small farms",
        "price": 29,
        "billing_interval": "month",
        "features": {"max_zones": 2, "max_devices": 3, "max_crops": 2, "automation": True},
    })


@pytest.fixture
def farmer(db):
    return db.add("user_profiles", {"id": FARMER_ID, "email": "farmer@example.com", "role": "farmer"})


@pytest.fixture
def admin(db):
    return db.add("user_profiles", {"id": ADMIN_ID, "email": "admin@example.com", "role": "admin"})


@pytest.fixture
def subscribed_farmer(db, farmer, basic_plan):
    db.add("user_subscriptions", {
        "user_id": FARMER_ID,
        "plan_id": basic_plan["id"],
        "status": "active",
    })
    return farmer


def _client_for(db, user):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: user
    return TestClient(app)


@pytest.fixture
def client(db):
    """Client authenticated as the farmer"""
    yield _client_for(db, {"id": FARMER_ID, "email": "farmer@example.com"})
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(db, admin):
    yield _client_for(db, {"id": ADMIN_ID, "email": "admin@example.com"})
    app.dependency_overrides.clear()
