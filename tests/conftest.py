"""Shared test fixtures for abac-tree tests."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import Boolean, ForeignKey, Integer, String, create_engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)

from abac_tree.retrieval import ContextNode
from abac_tree.testing import isolated_engine

# ---------------------------------------------------------------------------
# Test models (for orm_retriever)
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))

    users: Mapped[list[User]] = relationship("User", back_populates="organization")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(50), default="viewer")
    org_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), nullable=True)

    organization: Mapped[Organization | None] = relationship(
        "Organization", back_populates="users"
    )
    posts: Mapped[list[Post]] = relationship("Post", back_populates="author")


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    author: Mapped[User] = relationship("User", back_populates="posts")


# ---------------------------------------------------------------------------
# Policy documents
# ---------------------------------------------------------------------------

ARTICLES_POLICY_SET: dict[str, Any] = {
    "name": "articles",
    "target": [{"credentials:group": "writer"}, {"credentials:group": "publisher"}],
    "apply": "permit-overrides",
    "policies": [
        {
            "name": "premium-writers",
            "target": [{"credentials:group": "writer", "credentials:premium": True}],
            "apply": "deny-overrides",
            "rules": [
                {"target": {"credentials:username": "bad_user"}, "effect": "deny"},
                {"target": {"credentials:blocked": True}, "effect": "deny"},
                {"effect": "permit"},
            ],
        },
        {
            "name": "non-premium",
            "target": {"credentials:premium": False},
            "apply": "permit-overrides",
            "rules": [
                {"target": {"credentials:username": "special_user"}, "effect": "permit"},
                {"effect": "deny"},
            ],
        },
    ],
}


def from_context(source: str, key: str, context: Any) -> Any:
    """Retriever used throughout the tests: reads ``context[key]``."""
    return context.get(key)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_engine():
    """Every test starts from the default config and built-in algorithms."""
    with isolated_engine():
        yield


@pytest.fixture()
def root() -> ContextNode:
    """Root node with the ``credentials`` source reading the bound mapping."""
    node = ContextNode()
    node.register("credentials", from_context)
    return node


@pytest.fixture()
def articles_policy_set() -> dict[str, Any]:
    return ARTICLES_POLICY_SET


@pytest.fixture()
def engine():
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def session(engine):
    """Provide a session that rolls back after each test."""
    factory = sessionmaker(bind=engine)
    sess = factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


@pytest.fixture()
def sample_data(session: Session) -> dict[str, Any]:
    """Seed the database and return the persisted objects."""
    org = Organization(id=1, name="Acme Corp")
    alice = User(id=1, name="Alice", role="admin", organization=org)
    bob = User(id=2, name="Bob", role="editor")
    post = Post(id=1, title="Public Post", is_published=True, author=alice)
    session.add_all([org, alice, bob, post])
    session.flush()
    return {"organization": org, "alice": alice, "bob": bob, "post": post}
