"""In-memory stand-in for the Supabase query builder used by backend.infra.query."""

from datetime import datetime, timedelta, timezone

import pytest

from investment_tracker.backend.infra import query


class _Response:
    def __init__(self, data):
        self.data = data


class _Query:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self._action = "select"
        self._payload = None
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None

    def select(self, cols="*"):
        self._action = "select"
        return self

    def insert(self, payload):
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._action = "update"
        self._payload = payload
        return self

    def delete(self):
        self._action = "delete"
        return self

    def eq(self, col, value):
        self._filters.append((col, value))
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matches(self, row):
        return all(row.get(col) == value for col, value in self._filters)

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])

        if self._action == "insert":
            row = self.db.new_row(self._payload)
            rows.append(row)
            return _Response([dict(row)])

        matched = [r for r in rows if self._matches(r)]

        if self._action == "update":
            for r in matched:
                r.update(self._payload)
            return _Response([dict(r) for r in matched])

        if self._action == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return _Response([dict(r) for r in matched])

        if self._order is not None:
            col, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(col) or "", reverse=desc)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[: self._limit]
        return _Response([dict(r) for r in matched])


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self._seq = 0
        self._base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return _Query(self, name)

    def new_row(self, payload):
        self._seq += 1
        return {
            **payload,
            "id": f"op-{self._seq}",
            "created_at": (self._base + timedelta(seconds=self._seq)).isoformat(),
        }

    def rows(self, table="operations"):
        return self.tables.get(table, [])


@pytest.fixture
def fake_supabase(monkeypatch):
    fake = FakeSupabase()
    monkeypatch.setattr(query, "OPERATIONS_TABLE", "operations")
    monkeypatch.setattr(query, "get_supabase_client", lambda: fake)
    return fake
