"""Configuration module for abac-tree."""

from __future__ import annotations

from abac_tree.config._config import EngineConfig, configure, get_global_config

__all__ = ["EngineConfig", "configure", "get_global_config"]
