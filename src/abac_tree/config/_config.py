"""Layered configuration for abac-tree."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "EngineConfig",
    "configure",
    "get_global_config",
    "_reset_global_config",
    "_set_global_config",
]


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Layered configuration with merge semantics (global -> call).

    Attributes:
        default_algorithm: Combining algorithm used by nodes with children
            and no explicit ``apply``.
        reference_separator: Separator between source and key in an
            attribute reference (``"credentials:group"``).
        concurrent_attribute_resolution: Resolve the attributes of one
            AND-group concurrently instead of one after another.
        log_policy_decisions: Emit audit log records for decisions.
        log_attribute_resolution: Emit debug records for every attribute
            lookup.

    Example::

        config = EngineConfig(default_algorithm="deny-overrides")
        merged = config.merge(log_policy_decisions=True)
    """

    default_algorithm: str = "permit-overrides"
    reference_separator: str = ":"
    concurrent_attribute_resolution: bool = True
    log_policy_decisions: bool = False
    log_attribute_resolution: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.default_algorithm, str) or not self.default_algorithm:
            raise ValueError(
                f"default_algorithm must be a non-empty string, got {self.default_algorithm!r}"
            )
        if not isinstance(self.reference_separator, str) or not self.reference_separator:
            raise ValueError(
                f"reference_separator must be a non-empty string, "
                f"got {self.reference_separator!r}"
            )

    def merge(
        self,
        *,
        default_algorithm: str | None = None,
        reference_separator: str | None = None,
        concurrent_attribute_resolution: bool | None = None,
        log_policy_decisions: bool | None = None,
        log_attribute_resolution: bool | None = None,
    ) -> EngineConfig:
        """Return a new config with non-None overrides applied.

        Example::

            base = EngineConfig()
            strict = base.merge(default_algorithm="deny-overrides")
        """
        return EngineConfig(
            default_algorithm=(
                default_algorithm if default_algorithm is not None else self.default_algorithm
            ),
            reference_separator=(
                reference_separator
                if reference_separator is not None
                else self.reference_separator
            ),
            concurrent_attribute_resolution=(
                concurrent_attribute_resolution
                if concurrent_attribute_resolution is not None
                else self.concurrent_attribute_resolution
            ),
            log_policy_decisions=(
                log_policy_decisions
                if log_policy_decisions is not None
                else self.log_policy_decisions
            ),
            log_attribute_resolution=(
                log_attribute_resolution
                if log_attribute_resolution is not None
                else self.log_attribute_resolution
            ),
        )


# ---------------------------------------------------------------------------
# Global configuration singleton
# ---------------------------------------------------------------------------

_global_config = EngineConfig()


def get_global_config() -> EngineConfig:
    """Return the current global configuration.

    Example::

        config = get_global_config()
        print(config.default_algorithm)  # "permit-overrides"
    """
    return _global_config


def configure(
    *,
    default_algorithm: str | None = None,
    reference_separator: str | None = None,
    concurrent_attribute_resolution: bool | None = None,
    log_policy_decisions: bool | None = None,
    log_attribute_resolution: bool | None = None,
) -> EngineConfig:
    """Update the global configuration by merging overrides.

    Only non-None values are applied. Intended to be called during
    application setup, before evaluation traffic starts.

    Args:
        default_algorithm: Name of the default combining algorithm.
        reference_separator: Separator used to split ``source:key``.
        concurrent_attribute_resolution: Gather AND-group lookups.
        log_policy_decisions: Enable/disable decision audit logging.
        log_attribute_resolution: Enable/disable attribute lookup logging.

    Returns:
        The updated global ``EngineConfig``.

    Example::

        configure(log_policy_decisions=True)
    """
    global _global_config
    _global_config = _global_config.merge(
        default_algorithm=default_algorithm,
        reference_separator=reference_separator,
        concurrent_attribute_resolution=concurrent_attribute_resolution,
        log_policy_decisions=log_policy_decisions,
        log_attribute_resolution=log_attribute_resolution,
    )
    return _global_config


def _set_global_config(cfg: EngineConfig) -> None:
    """Replace global config with an exact snapshot. For testing only."""
    global _global_config
    _global_config = cfg


def _reset_global_config() -> None:
    """Reset global config to defaults. For testing only."""
    global _global_config
    _global_config = EngineConfig()
