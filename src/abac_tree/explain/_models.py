"""Data models for decision explanations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from abac_tree._types import NodeKind, Verdict

__all__ = ["DecisionExplanation", "NodeExplanation"]


@dataclass(frozen=True, slots=True)
class NodeExplanation:
    """How a single node of the policy tree was evaluated.

    Attributes:
        kind: Node kind.
        name: Node label (may be empty).
        applies: Whether the node's target applied. ``None`` if evaluation
            did not reach the target.
        verdict: The node's verdict, ``None`` if evaluation did not finish.
        algorithm: Combining algorithm name, ``None`` for rules.
        children: Explanations of the children that were evaluated,
            in document order.
    """

    kind: NodeKind
    name: str
    applies: bool | None
    verdict: Verdict | None
    algorithm: str | None
    children: list[NodeExplanation]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "applies": self.applies,
            "verdict": self.verdict.value if self.verdict is not None else None,
            "algorithm": self.algorithm,
            "children": [child.to_dict() for child in self.children],
        }

    def lines(self, indent: int = 0) -> list[str]:
        """Render this node and its children as indented text lines."""
        label = self.name or "<unnamed>"
        pad = "  " * indent
        head = f"{pad}{self.kind.value} {label}"
        if self.algorithm is not None:
            head += f" [{self.algorithm}]"
        if self.applies is False:
            head += " (target does not apply)"
        verdict = self.verdict.name if self.verdict is not None else "?"
        result = [f"{head} -> {verdict}"]
        for child in self.children:
            result.extend(child.lines(indent + 1))
        return result


@dataclass(frozen=True, slots=True)
class DecisionExplanation:
    """Full explanation of a policy decision.

    Attributes:
        verdict: The final verdict.
        context_repr: String representation of the bound request context.
        root: Explanation tree for the evaluated root node.
    """

    verdict: Verdict
    context_repr: str
    root: NodeExplanation

    @property
    def permitted(self) -> bool:
        """``True`` when the verdict is ``PERMIT``."""
        return self.verdict is Verdict.PERMIT

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {
            "verdict": self.verdict.value,
            "context_repr": self.context_repr,
            "root": self.root.to_dict(),
        }

    def __str__(self) -> str:
        """Return a human-readable multi-line explanation."""
        lines = [
            f"Decision: {self.verdict.name}",
            f"  Context: {self.context_repr}",
            "",
        ]
        lines.extend(self.root.lines(indent=1))
        return "\n".join(lines)
