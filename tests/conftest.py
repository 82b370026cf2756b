from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient


@dataclass
class FakeResponse:
    data: list[dict]
    count: int | None = None


class FakeQuery:
    """Chainable stand-in for a PostgREST query builder over in-memory rows."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.mode = "select"
        self.columns = "*"
        self.count_mode: str | None = None
        self.payload: Any = None
        self.filters: list = []
        self.ordering: list[tuple[str, bool]] = []
        self.window: tuple[int, int | None] | None = None

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.mode = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, values: Any) -> "FakeQuery":
        self.mode = "insert"
        self.payload = values
        return self

    def update(self, values: dict) -> "FakeQuery":
        self.mode = "update"
        self.payload = values
        return self

    def delete(self) -> "FakeQuery":
        self.mode = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column: str, values: list) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.ordering.append((column, desc))
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.window = (0, size)
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.window = (start, end - start + 1)
        return self

    def _matching(self) -> list[dict]:
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def execute(self) -> FakeResponse:
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"connection refused for '{self.table}'")
        if self.mode != "select" and self.table in self.db.failing_writes:
            raise RuntimeError(f"permission denied for '{self.table}'")

        rows = self.db.tables.setdefault(self.table, [])
        if self.mode == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.db.new_row(self.table, values) for values in payload]
            rows.extend(created)
            return FakeResponse(copy.deepcopy(created))

        matching = self._matching()
        if self.mode == "update":
            for row in matching:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matching))
        if self.mode == "delete":
            ids = {id(row) for row in matching}
            rows[:] = [row for row in rows if id(row) not in ids]
            return FakeResponse(copy.deepcopy(matching))

        total = len(matching)
        for column, desc in reversed(self.ordering):
            matching.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        if self.window is not None:
            start, size = self.window
            matching = matching[start : start + size]
        if self.columns != "*":
            keys = [key.strip() for key in self.columns.split(",")]
            matching = [{key: row.get(key) for key in keys} for row in matching]
        return FakeResponse(copy.deepcopy(matching), total if self.count_mode else None)


class FakeSupabase:
    """In-memory tables keyed by name; ids and created_at are assigned on insert."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.failing_tables: set[str] = set()
        self.failing_writes: set[str] = set()
        self._ids = count(1)
        self._clock = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def new_row(self, table: str, values: dict) -> dict:
        row = copy.deepcopy(values)
        row.setdefault("id", next(self._ids))
        if "created_at" not in row:
            self._clock += timedelta(seconds=1)
            row["created_at"] = self._clock.isoformat()
        return row

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    from src.fleetops.api.routes import health
    from src.fleetops.db import supabase as supabase_module

    db = FakeSupabase()
    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: db)
    monkeypatch.setattr(health, "get_supabase_client", lambda: db)
    return db


@pytest.fixture
def no_db(monkeypatch: pytest.MonkeyPatch) -> None:
    from src.fleetops.api.routes import health
    from src.fleetops.db import supabase as supabase_module

    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: None)
    monkeypatch.setattr(health, "get_supabase_client", lambda: None)


@pytest.fixture
def export_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    from src.fleetops.persistence.filesystem import FileStorage
    from src.fleetops.services.routing import service as route_service

    monkeypatch.setattr(route_service, "FileStorage", lambda: FileStorage(root=tmp_path))
    return tmp_path


@pytest.fixture
def api_client(fake_db: FakeSupabase, export_root: Path) -> TestClient:
    from src.fleetops.main import create_app

    return TestClient(create_app())
