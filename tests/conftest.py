import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from daybook.store import Store

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
TODAY = date(2026, 10, 19)  # a Monday

_EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeQuery:
    """Just enough of the postgrest query builder for the store to drive."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self._order = None
        self._limit = None

    # builders
    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, fields):
        self.op = "update"
        self.payload = fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    # filters
    def eq(self, col, val):
        self.filters.append(lambda r: r.get(col) == val)
        return self

    def lt(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) < val)
        return self

    def lte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) <= val)
        return self

    def gte(self, col, val):
        self.filters.append(lambda r: r.get(col) is not None and r.get(col) >= val)
        return self

    def is_(self, col, val):
        assert val in ("null", None)
        self.filters.append(lambda r: r.get(col) is None)
        return self

    def in_(self, col, vals):
        self.filters.append(lambda r: r.get(col) in vals)
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def execute(self):
        self.client.calls.append((self.table, self.op, self.payload))
        if self.client.fail_on and self.client.fail_on(self):
            raise RuntimeError(f"{self.op} {self.table} rejected")
        rows = self.client.tables.setdefault(self.table, [])
        matched = [r for r in rows if all(f(r) for f in self.filters)]

        if self.op == "select":
            data = [dict(r) for r in matched]
            if self._order:
                col, desc = self._order
                data.sort(key=lambda r: (r.get(col) is None, r.get(col)), reverse=desc)
            if self._limit:
                data = data[: self._limit]
        elif self.op == "insert":
            data = []
            for row in self.payload:
                stamp = self.client.next_timestamp()
                new = {"id": str(uuid.uuid4()), "created_at": stamp, "updated_at": stamp}
                new.update(row)
                rows.append(new)
                data.append(dict(new))
        elif self.op == "update":
            for r in matched:
                r.update(self.payload)
            data = [dict(r) for r in matched]
        else:
            for r in matched:
                rows.remove(r)
            data = [dict(r) for r in matched]
        return SimpleNamespace(data=data)


class FakeSupabase:
    def __init__(self, user_id=USER_ID):
        self.tables = {}
        self.calls = []
        self.fail_on = None
        self._ticks = 0
        self.auth = SimpleNamespace(get_user=self._get_user)
        self.user_id = user_id

    def _get_user(self):
        if self.user_id is None:
            return None
        return SimpleNamespace(user=SimpleNamespace(id=self.user_id))

    def next_timestamp(self):
        self._ticks += 1
        return (_EPOCH + timedelta(seconds=self._ticks)).isoformat()

    def table(self, name):
        return FakeQuery(self, name)

    def seed(self, table, **row):
        stamp = self.next_timestamp()
        new = {"id": str(uuid.uuid4()), "user_id": USER_ID, "created_at": stamp, "updated_at": stamp}
        new.update(row)
        self.tables.setdefault(table, []).append(new)
        return new

    def seed_task(self, title, task_date, **fields):
        row = {
            "title": title,
            "task_date": task_date.isoformat() if isinstance(task_date, date) else task_date,
            "priority": "medium",
            "is_completed": False,
            "routine_id": None,
            "sort_order": 0,
        }
        row.update(fields)
        return self.seed("tasks", **row)

    def rows(self, table, **match):
        return [r for r in self.tables.get(table, []) if all(r.get(k) == v for k, v in match.items())]


@pytest.fixture
def client():
    return FakeSupabase()


@pytest.fixture
def store(client):
    return Store(client)
