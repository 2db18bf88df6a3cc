"""Pytest fixtures for testing abac-tree policies."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from abac_tree.config._config import EngineConfig
from abac_tree.policy._combining import AlgorithmRegistry
from abac_tree.retrieval._context import ContextNode
from abac_tree.retrieval._retrievers import context_retriever

__all__ = ["algorithm_registry", "context_root", "isolated_engine_state"]


@pytest.fixture()
def context_root() -> ContextNode:
    """Provide a fresh root ``ContextNode``.

    The ``credentials`` source is registered with
    :func:`~abac_tree.retrieval.context_retriever`, so children bound to a
    mapping resolve ``credentials:<key>`` from it.

    Example::

        def test_writer(context_root):
            request = context_root.create_child({"group": ["writer"]})
            assert_permits(policy_set, request)
    """
    root = ContextNode()
    root.register("credentials", context_retriever)
    return root


@pytest.fixture()
def algorithm_registry() -> AlgorithmRegistry:
    """Provide a fresh ``AlgorithmRegistry`` holding only the built-ins."""
    return AlgorithmRegistry()


@pytest.fixture()
def isolated_engine_state() -> Generator[tuple[EngineConfig, AlgorithmRegistry], None, None]:
    """Isolate the global config and default algorithm registry for a test.

    Example::

        def test_something(isolated_engine_state):
            cfg, algorithms = isolated_engine_state
            algorithms.register("first-applicable", first_applicable)
    """
    from abac_tree.testing._isolation import isolated_engine

    with isolated_engine() as state:
        yield state
