from datetime import datetime

import pytest

from study_rpg.db import MemoryRecordStore
from study_rpg.errors import GenerationUnavailable, PersistenceError
from study_rpg.models import User, level_for_points, new_id


class FakeGenerator:
    """Returns canned replies in order; raises once they run out or when failing."""

    def __init__(self, replies=None, fail=False):
        self.replies = list(replies or [])
        self.fail = fail
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.fail or not self.replies:
            raise GenerationUnavailable("generator offline")
        return self.replies.pop(0)


class FailingStore(MemoryRecordStore):
    """Memory store whose saves to the named collections fail."""

    def __init__(self, fail_on=(), data=None):
        super().__init__(data)
        self.fail_on = set(fail_on)

    def save_all(self, collection, records):
        if collection in self.fail_on:
            raise PersistenceError(f"disk full while saving {collection}")
        super().save_all(collection, records)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_ledger.db")
    return db_path


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 9, 30)


@pytest.fixture
def make_user():
    """Insert a user into a store and return its id."""
    def _make(store, points=0, username=None, role="student", **extra):
        user = User(
            id=new_id(),
            username=username or f"user-{new_id()[:8]}",
            name=extra.pop("name", "Test Student"),
            password=extra.pop("password", "secret"),
            role=role,
            points=points,
            level=level_for_points(points),
            **extra,
        )
        users = store.load_all("users")
        users.append(user.to_record())
        store.save_all("users", users)
        return user.id
    return _make


@pytest.fixture
def make_generator():
    return FakeGenerator


@pytest.fixture
def failing_store():
    return FailingStore
