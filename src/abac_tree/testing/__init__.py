"""abac-tree testing utilities — assertions, isolation and fixtures.

Provides test helpers for verifying policies:

- **Assertion helpers**: ``assert_permits``, ``assert_denies``,
  ``assert_undetermined``, ``assert_verdict``.
- **Isolation**: ``isolated_engine`` restores global config and the
  default algorithm registry.
- **Fixtures**: ``context_root``, ``algorithm_registry``,
  ``isolated_engine_state``.

Example::

    from abac_tree.testing import assert_permits

    def test_premium_writer(context_root):
        request = context_root.create_child({"group": ["writer"], "premium": True})
        assert_permits(articles_policy, request)
"""

from abac_tree.testing._assertions import (
    assert_denies,
    assert_permits,
    assert_undetermined,
    assert_verdict,
)
from abac_tree.testing._fixtures import algorithm_registry, context_root, isolated_engine_state
from abac_tree.testing._isolation import isolated_engine

__all__ = [
    "algorithm_registry",
    "assert_denies",
    "assert_permits",
    "assert_undetermined",
    "assert_verdict",
    "context_root",
    "isolated_engine",
    "isolated_engine_state",
]
