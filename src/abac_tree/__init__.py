"""abac-tree — attribute-based access control over policy trees.

Evaluates PolicySet → Policy → Rule trees against attributes resolved
through a hierarchy of pluggable retrievers, and returns PERMIT, DENY or
UNDETERMINED.

Example::

    from abac_tree import ContextNode, evaluate_policy, context_retriever

    root = ContextNode()
    root.register("credentials", context_retriever)

    policy = {
        "target": [{"credentials:group": ["admin", "pub"]}],
        "effect": "permit",
    }
    verdict = await evaluate_policy(policy, root.create_child({"group": ["admin", "pub"]}))
"""

from importlib.metadata import PackageNotFoundError, version

from abac_tree._checks import authorize, can, decide
from abac_tree._types import NodeKind, Verdict
from abac_tree.config._config import EngineConfig, configure
from abac_tree.exceptions import (
    AbacError,
    AccessDenied,
    CollisionError,
    ConfigurationError,
    RetrievalError,
    UnloadedAttributeError,
)
from abac_tree.explain._decision import explain_policy
from abac_tree.policy._combining import AlgorithmRegistry
from abac_tree.policy._engine import evaluate_policy, evaluate_rule
from abac_tree.policy._nodes import PolicyNode
from abac_tree.policy._target import evaluate_target
from abac_tree.retrieval._context import ContextNode
from abac_tree.retrieval._registry import RetrieverRegistry
from abac_tree.retrieval._retrievers import context_retriever, orm_retriever, static_retriever

try:
    __version__ = version("abac-tree")
except PackageNotFoundError:
    __version__ = "dev"

PERMIT = Verdict.PERMIT
DENY = Verdict.DENY
UNDETERMINED = Verdict.UNDETERMINED

__all__ = [
    "__version__",
    "DENY",
    "PERMIT",
    "UNDETERMINED",
    "AbacError",
    "AccessDenied",
    "AlgorithmRegistry",
    "CollisionError",
    "ConfigurationError",
    "ContextNode",
    "EngineConfig",
    "NodeKind",
    "PolicyNode",
    "RetrievalError",
    "RetrieverRegistry",
    "UnloadedAttributeError",
    "Verdict",
    "authorize",
    "can",
    "configure",
    "context_retriever",
    "decide",
    "evaluate_policy",
    "evaluate_rule",
    "evaluate_target",
    "explain_policy",
    "orm_retriever",
    "static_retriever",
]
