"""Shared fixtures: synthetic question pools and an in-memory Supabase stand-in."""
import random
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from exam_prep.models import Answer, AnswerWeight, Question, Source


def make_question(qid, theme=None, source=Source.PREVIOUS, weights=("++", "+", "-", "--")) -> Question:
    return Question(
        id=qid,
        text=f"Question {qid}",
        answers=tuple(Answer(text=f"{qid}-{w}", weight=AnswerWeight.parse(w)) for w in weights),
        source=source,
        course="course-1",
        theme=theme,
    )


def build_pool(size: int = 20, themes=("algebra", "geometry")) -> list[Question]:
    return [make_question(f"q{i}", theme=themes[i % len(themes)] if themes else None) for i in range(size)]


def identity_shuffler(items):
    return list(items)


def reverse_shuffler(items):
    return list(reversed(list(items)))


class FakeQuery:
    """Just enough of the PostgREST query builder for QuizStore."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []
        self.op = "select"
        self.payload = None
        self.want_count = False
        self.order_by = None
        self.bounds = None
        self.max_rows = None

    def select(self, *columns, count=None):
        self.want_count = count == "exact"
        return self

    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def in_(self, column, values):
        values = set(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.client.orders.append((self.table, column))
        self.order_by = (column, desc)
        return self

    def range(self, start, end):
        self.bounds = (start, end)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict=None):
        self.op, self.payload = "upsert", payload
        return self

    def execute(self):
        self.client.calls.append((self.table, self.op))
        if self.table in self.client.failing:
            raise RuntimeError(f"{self.table} unavailable")
        rows = self.client.tables.setdefault(self.table, [])
        if self.op in ("insert", "upsert"):
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            saved = []
            for row in new_rows:
                row = dict(row)
                row.setdefault("id", f"{self.table}-{len(rows) + 1}")
                rows.append(row)
                saved.append(row)
            return SimpleNamespace(data=saved, count=None)

        matched = [r for r in rows if all(f(r) for f in self.filters)]
        if self.order_by:
            column, desc = self.order_by
            matched.sort(key=lambda r: r.get(column) or "", reverse=desc)
        total = len(matched)
        if self.bounds:
            matched = matched[self.bounds[0] : self.bounds[1] + 1]
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return SimpleNamespace(data=matched, count=total if self.want_count else None)


class FakeClient:
    def __init__(self, tables=None):
        self.tables = tables or {}
        self.failing = set()
        self.calls = []
        self.orders = []
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def pool() -> list[Question]:
    return build_pool()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
