"""Attribute retrieval — registries, context nodes and built-in retrievers."""

from abac_tree._types import NOT_FOUND
from abac_tree.retrieval._context import ContextNode, split_reference
from abac_tree.retrieval._registry import RetrieverRegistration, RetrieverRegistry
from abac_tree.retrieval._retrievers import context_retriever, orm_retriever, static_retriever

__all__ = [
    "NOT_FOUND",
    "ContextNode",
    "RetrieverRegistration",
    "RetrieverRegistry",
    "context_retriever",
    "orm_retriever",
    "split_reference",
    "static_retriever",
]
