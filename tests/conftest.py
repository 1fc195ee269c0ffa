import os
import uuid
from types import SimpleNamespace

import pytest

# Keep the tests off any developer .env values for external services.
os.environ["APP_ENV"] = "test"
os.environ["OPENCAGE_API_KEY"] = ""

from app.models.projects import ProjectLocation  # noqa: E402


class DummyQuery:
    """Records the PostgREST builder chain and returns canned rows on execute.

    `results` hands out one row list per execute call, then falls back to `rows`.
    """

    def __init__(self, rows=None, error=None, results=None):
        self.rows = rows or []
        self.error = error
        self.results = list(results or [])
        self.calls = []
        self.executed = 0

    def __getattr__(self, name):
        if name == "not_":
            self.calls.append(("not_",))
            return self

        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self):
        self.executed += 1
        if self.error is not None:
            raise self.error
        if self.results:
            return SimpleNamespace(data=self.results.pop(0))
        return SimpleNamespace(data=self.rows)


class DummySupabase:
    def __init__(self, query=None, user=None, tables=None):
        self.query = query or DummyQuery()
        self.queries = tables or {}
        self.tables = []
        self.user = user
        self.tokens = []
        self.auth = SimpleNamespace(get_user=self._get_user)
        self.postgrest = SimpleNamespace(auth=self.tokens.append)

    def table(self, name):
        self.tables.append(name)
        return self.queries.get(name, self.query)

    def _get_user(self, token):
        self.seen_token = token
        return SimpleNamespace(user=self.user)


@pytest.fixture
def make_project():
    def _make(project_id, latitude, longitude, **extra):
        return ProjectLocation(
            id=project_id,
            external_id=extra.pop("external_id", f"P-{project_id}"),
            latitude=latitude,
            longitude=longitude,
            **extra,
        )

    return _make


@pytest.fixture
def supabase_user():
    return SimpleNamespace(id=str(uuid.uuid4()), email="worker@fieldops.de")
