"""Import fixtures from abac_tree.testing for test discovery."""

from abac_tree.testing._fixtures import algorithm_registry, context_root, isolated_engine_state

__all__ = ["algorithm_registry", "context_root", "isolated_engine_state"]
