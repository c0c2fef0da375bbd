"""Shared test fixtures for ivystore tests."""

from __future__ import annotations

import pytest

from ivystore import Record, open_store

# --- Test models ---


class Post(Record):
    author: str
    title: str = ""
    tags: list[str] = []


class LoadedPost(Post):
    """Post that remembers which id it was loaded from."""

    loaded_id: str | None = None

    def after_find(self, store, record_id: str) -> None:
        self.loaded_id = record_id


# --- Fixtures ---


@pytest.fixture
def root(tmp_path):
    """Create a store root with the posts, users and notes tables."""
    for name in ("posts", "users", "notes"):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def index_config():
    return {"posts": ["author", "tags"], "users": ["email", "age"]}


@pytest.fixture
def store(root, index_config):
    """Open a store where posts and users are indexed and notes is not."""
    s = open_store(str(root), index_config)
    yield s
    s.close()


@pytest.fixture
def seeded(store):
    """Store with three tagged posts."""
    store.create("posts", {"author": "alice", "tags": ["a", "b"]})
    store.create("posts", {"author": "bob", "tags": ["a"]})
    store.create("posts", {"author": "alice", "tags": ["b", "c"]})
    return store
