import copy
import itertools
from types import SimpleNamespace

import pytest

import data_integrator
from utils.local_state import LocalState


class FakeResponse:
    def __init__(self, data):
        self.data = data
        self.error = None


class FakeQuery:
    """
    Just enough of the postgrest query builder for the integrator: filters
    are collected and applied to an in-memory table on execute().
    """

    def __init__(self, db, table_name):
        self.db = db
        self.table_name = table_name
        self.action = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_to = None

    # builder -----------------------------------------------------------
    def select(self, *_columns):
        self.action = "select"
        return self

    def insert(self, row):
        self.action, self.payload = "insert", row
        return self

    def update(self, patch):
        self.action, self.payload = "update", patch
        return self

    def upsert(self, row):
        self.action, self.payload = "upsert", row
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, col, val):
        self.filters.append(lambda r: r.get(col) == val)
        return self

    def neq(self, col, val):
        self.filters.append(lambda r: r.get(col) != val)
        return self

    def in_(self, col, values):
        values = list(values)
        self.filters.append(lambda r: r.get(col) in values)
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.limit_to = n
        return self

    # execution ---------------------------------------------------------
    def _matching(self, rows):
        return [r for r in rows if all(f(r) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table_name, self.action))
        if self.table_name in self.db.failures:
            raise Exception(self.db.failures[self.table_name])

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "select":
            result = self._matching(rows)
            if self.order_by:
                col, desc = self.order_by
                result = sorted(result, key=lambda r: (r.get(col) is None, r.get(col) or 0), reverse=desc)
            if self.limit_to is not None:
                result = result[:self.limit_to]
            return FakeResponse(copy.deepcopy(result))

        if self.action == "insert":
            row = copy.deepcopy(self.payload)
            row.setdefault("id", self.db.next_id())
            self.db.check_unique(self.table_name, row)
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.action == "update":
            updated = []
            for row in self._matching(rows):
                candidate = {**row, **copy.deepcopy(self.payload)}
                self.db.check_unique(self.table_name, candidate)
                row.update(candidate)
                updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.action == "upsert":
            row = copy.deepcopy(self.payload)
            for existing in rows:
                if existing.get("id") == row.get("id"):
                    existing.clear()
                    existing.update(row)
                    return FakeResponse([copy.deepcopy(existing)])
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.action == "delete":
            removed = self._matching(rows)
            self.db.tables[self.table_name] = [r for r in rows if r not in removed]
            return FakeResponse(copy.deepcopy(removed))

        raise AssertionError(f"unsupported action {self.action}")


class FakeAuth:
    def __init__(self, db):
        self.db = db
        self.signed_out = 0

    def sign_in_with_password(self, credentials):
        account = self.db.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(user=SimpleNamespace(id=account["uid"], email=credentials["email"]))

    def sign_out(self):
        self.signed_out += 1


class FakeClient:
    # (table, column) pairs with a unique index on non-blank values
    UNIQUE = {("Stock", "barcode")}

    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self.accounts = {}
        self.auth = FakeAuth(self)
        self._ids = itertools.count(1)

    def next_id(self):
        return f"id-{next(self._ids)}"

    def schema(self, _name):
        return self

    def table(self, name):
        return FakeQuery(self, name)

    def check_unique(self, table_name, row):
        for table, col in self.UNIQUE:
            if table != table_name or not row.get(col):
                continue
            for other in self.tables.get(table, []):
                if other.get("id") != row.get("id") and other.get(col) == row.get(col):
                    raise Exception(
                        f'duplicate key value violates unique constraint "stock_{col}_unique" (23505)'
                    )

    def seed(self, table_name, *rows):
        for row in rows:
            row = dict(row)
            row.setdefault("id", self.next_id())
            self.tables.setdefault(table_name, []).append(row)
        return self


@pytest.fixture()
def fake_db(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(data_integrator, "get_client", lambda: client)
    monkeypatch.setattr(data_integrator, "new_client", lambda: client)
    monkeypatch.setattr(data_integrator, "get_schema", lambda: "public")
    return client


@pytest.fixture()
def auth_client(fake_db, monkeypatch):
    """
    Separate client for credential checks, sharing the fake accounts.
    """
    client = FakeClient()
    client.accounts = fake_db.accounts
    monkeypatch.setattr(data_integrator, "new_client", lambda: client)
    return client


@pytest.fixture()
def local_state(tmp_path):
    return LocalState("tester@example.com", storage_dir=tmp_path)
