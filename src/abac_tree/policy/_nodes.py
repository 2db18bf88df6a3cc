"""PolicyNode — the PolicySet / Policy / Rule tree model."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from abac_tree._types import NodeKind, Target, Verdict
from abac_tree.exceptions import ConfigurationError

if TYPE_CHECKING:
    from abac_tree.policy._combining import CombiningAlgorithm

__all__ = ["PolicyNode", "as_node", "coerce_effect"]

_PAYLOAD_KEYS = ("policies", "rules", "effect")


def coerce_effect(value: Any) -> Verdict:
    """Turn ``"permit"``/``"deny"`` (or the matching verdicts) into a Verdict.

    Raises:
        ConfigurationError: For any other value, ``UNDETERMINED`` included.
    """
    if value is Verdict.PERMIT or (isinstance(value, str) and value == "permit"):
        return Verdict.PERMIT
    if value is Verdict.DENY or (isinstance(value, str) and value == "deny"):
        return Verdict.DENY
    raise ConfigurationError(f"Rule error: invalid effect {value!r}, expected 'permit' or 'deny'")


@dataclass(frozen=True, slots=True)
class PolicyNode:
    """One node of a policy tree, tagged by ``kind``.

    A ``POLICY_SET`` combines child nodes of any kind, a ``POLICY``
    combines rules, a ``RULE`` carries a terminal effect. Inconsistent
    combinations (an effect on a policy, children on a rule, a non-rule
    inside a policy) are rejected on construction.

    Attributes:
        kind: Which payload the node carries.
        target: Optional target expression; ``None`` always applies.
        apply: Combining algorithm name, algorithm object or callable.
            ``None`` uses the configured default. Ignored on rules.
        children: Child nodes, empty for rules.
        effect: ``PERMIT`` or ``DENY`` for rules, ``None`` otherwise.
        name: Optional label used in logs and explanations.

    Example::

        node = PolicyNode.policy(
            PolicyNode.rule("deny", target={"credentials:blocked": True}),
            PolicyNode.rule("permit"),
            apply="deny-overrides",
        )
    """

    kind: NodeKind
    target: Target | None = None
    apply: str | CombiningAlgorithm | Callable[..., Any] | None = None
    children: tuple[PolicyNode, ...] = ()
    effect: Verdict | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.kind, NodeKind):
            raise ConfigurationError(f"Invalid node kind {self.kind!r}")
        if not isinstance(self.name, str):
            raise ConfigurationError(f"Node name must be a string, got {self.name!r}")
        # Frozen dataclass: normalise through object.__setattr__.
        object.__setattr__(self, "children", tuple(self.children))

        if self.kind is NodeKind.RULE:
            if self.children:
                raise ConfigurationError("A rule cannot have child policies or rules")
            object.__setattr__(self, "effect", coerce_effect(self.effect))
            return

        if self.effect is not None:
            raise ConfigurationError(
                f"A {self.kind.value} node cannot carry an effect; only rules have effects"
            )
        for child in self.children:
            if not isinstance(child, PolicyNode):
                raise ConfigurationError(f"Child nodes must be PolicyNode instances, got {child!r}")
            if self.kind is NodeKind.POLICY and child.kind is not NodeKind.RULE:
                raise ConfigurationError(
                    f"A policy can only contain rules, got a {child.kind.value} node"
                )

    @property
    def has_children(self) -> bool:
        """``True`` for policy sets and policies."""
        return self.kind is not NodeKind.RULE

    @classmethod
    def policy_set(
        cls,
        *policies: PolicyNode,
        target: Target | None = None,
        apply: str | CombiningAlgorithm | Callable[..., Any] | None = None,
        name: str = "",
    ) -> PolicyNode:
        """Build a policy set over *policies*."""
        return cls(NodeKind.POLICY_SET, target=target, apply=apply, children=policies, name=name)

    @classmethod
    def policy(
        cls,
        *rules: PolicyNode,
        target: Target | None = None,
        apply: str | CombiningAlgorithm | Callable[..., Any] | None = None,
        name: str = "",
    ) -> PolicyNode:
        """Build a policy over *rules*."""
        return cls(NodeKind.POLICY, target=target, apply=apply, children=rules, name=name)

    @classmethod
    def rule(
        cls,
        effect: str | Verdict,
        *,
        target: Target | None = None,
        name: str = "",
    ) -> PolicyNode:
        """Build a terminal rule."""
        return cls(NodeKind.RULE, target=target, effect=coerce_effect(effect), name=name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PolicyNode:
        """Convert a parsed policy document into a node tree.

        The mapping must define exactly one of ``policies``, ``rules`` or
        ``effect``. ``target``, ``apply`` and ``name`` are optional; other
        keys are ignored.

        Raises:
            ConfigurationError: The document is malformed.

        Example::

            PolicyNode.from_mapping({
                "target": [{"credentials:group": "writer"}],
                "apply": "deny-overrides",
                "rules": [{"effect": "permit"}],
            })
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Policy node must be a mapping, got {data!r}")
        present = [key for key in _PAYLOAD_KEYS if data.get(key) is not None]
        if not present:
            raise ConfigurationError(
                "Configuration error: a node must define one of 'policies', 'rules' or 'effect'"
            )
        if len(present) > 1:
            raise ConfigurationError(
                f"Configuration error: a node can only define one of 'policies', 'rules' "
                f"or 'effect', got {present!r}"
            )

        payload = present[0]
        common: dict[str, Any] = {
            "target": data.get("target"),
            "name": data.get("name") or "",
        }
        if payload == "effect":
            return cls(NodeKind.RULE, effect=data["effect"], **common)

        items = data[payload]
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence):
            raise ConfigurationError(f"'{payload}' must be a sequence of nodes, got {items!r}")
        kind = NodeKind.POLICY_SET if payload == "policies" else NodeKind.POLICY
        return cls(
            kind,
            apply=data.get("apply"),
            children=tuple(as_node(item) for item in items),
            **common,
        )


def as_node(node: PolicyNode | Mapping[str, Any] | None) -> PolicyNode:
    """Return *node* as a :class:`PolicyNode`, converting mappings.

    Raises:
        ConfigurationError: *node* is ``None``, malformed or of an
            unsupported type.
    """
    if isinstance(node, PolicyNode):
        return node
    if node is None:
        raise ConfigurationError("Configuration error: policy node is missing")
    if isinstance(node, Mapping):
        return PolicyNode.from_mapping(node)
    raise ConfigurationError(f"Policy node must be a mapping or a PolicyNode, got {node!r}")
