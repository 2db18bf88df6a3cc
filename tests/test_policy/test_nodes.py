"""Tests for policy/_nodes.py — PolicyNode construction and document conversion."""

from __future__ import annotations

import dataclasses

import pytest

from abac_tree._types import NodeKind, Verdict
from abac_tree.exceptions import ConfigurationError
from abac_tree.policy._nodes import PolicyNode, as_node, coerce_effect


class TestCoerceEffect:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("permit", Verdict.PERMIT),
            ("deny", Verdict.DENY),
            (Verdict.PERMIT, Verdict.PERMIT),
            (Verdict.DENY, Verdict.DENY),
        ],
    )
    def test_valid(self, value, expected):
        assert coerce_effect(value) is expected

    @pytest.mark.parametrize("value", ["invalid", "PERMIT", None, True, Verdict.UNDETERMINED, 1])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError, match="invalid effect"):
            coerce_effect(value)


class TestConstruction:
    def test_rule(self):
        rule = PolicyNode.rule("permit", target={"credentials:group": "writer"}, name="writers")
        assert rule.kind is NodeKind.RULE
        assert rule.effect is Verdict.PERMIT
        assert rule.children == ()
        assert rule.has_children is False
        assert rule.name == "writers"

    def test_rule_with_invalid_effect(self):
        with pytest.raises(ConfigurationError):
            PolicyNode(NodeKind.RULE, effect="invalid")

    def test_rule_without_effect(self):
        with pytest.raises(ConfigurationError):
            PolicyNode(NodeKind.RULE)

    def test_rule_cannot_have_children(self):
        with pytest.raises(ConfigurationError, match="cannot have child"):
            PolicyNode(NodeKind.RULE, effect="deny", children=(PolicyNode.rule("permit"),))

    def test_policy(self):
        policy = PolicyNode.policy(
            PolicyNode.rule("deny", target={"credentials:blocked": True}),
            PolicyNode.rule("permit"),
            apply="deny-overrides",
        )
        assert policy.kind is NodeKind.POLICY
        assert policy.has_children is True
        assert len(policy.children) == 2
        assert policy.apply == "deny-overrides"
        assert policy.effect is None

    def test_policy_rejects_non_rule_children(self):
        inner = PolicyNode.policy(PolicyNode.rule("permit"))
        with pytest.raises(ConfigurationError, match="only contain rules"):
            PolicyNode.policy(inner)

    def test_policy_cannot_carry_effect(self):
        with pytest.raises(ConfigurationError, match="cannot carry an effect"):
            PolicyNode(NodeKind.POLICY, effect=Verdict.PERMIT)

    def test_policy_set_accepts_any_kind(self):
        node = PolicyNode.policy_set(
            PolicyNode.policy_set(PolicyNode.rule("permit")),
            PolicyNode.policy(PolicyNode.rule("deny")),
            PolicyNode.rule("permit"),
        )
        assert [child.kind for child in node.children] == [
            NodeKind.POLICY_SET,
            NodeKind.POLICY,
            NodeKind.RULE,
        ]

    def test_children_must_be_nodes(self):
        with pytest.raises(ConfigurationError):
            PolicyNode(NodeKind.POLICY_SET, children=({"effect": "permit"},))  # type: ignore[arg-type]

    def test_children_list_becomes_tuple(self):
        node = PolicyNode(NodeKind.POLICY, children=[PolicyNode.rule("permit")])  # type: ignore[arg-type]
        assert isinstance(node.children, tuple)

    def test_is_frozen(self):
        rule = PolicyNode.rule("permit")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.name = "other"  # type: ignore[misc]

    def test_invalid_kind(self):
        with pytest.raises(ConfigurationError):
            PolicyNode("rule", effect="permit")  # type: ignore[arg-type]


class TestFromMapping:
    def test_policy_set_document(self, articles_policy_set):
        node = PolicyNode.from_mapping(articles_policy_set)
        assert node.kind is NodeKind.POLICY_SET
        assert node.name == "articles"
        assert node.apply == "permit-overrides"
        premium, non_premium = node.children
        assert premium.kind is NodeKind.POLICY
        assert premium.name == "premium-writers"
        assert [rule.effect for rule in premium.children] == [
            Verdict.DENY,
            Verdict.DENY,
            Verdict.PERMIT,
        ]
        assert non_premium.target == {"credentials:premium": False}

    def test_rule_document(self):
        rule = PolicyNode.from_mapping({"target": {"grp:role": ["admin", "pub"]}, "effect": "permit"})
        assert rule.kind is NodeKind.RULE
        assert rule.target == {"grp:role": ["admin", "pub"]}

    def test_missing_payload(self):
        with pytest.raises(ConfigurationError, match="must define one of"):
            PolicyNode.from_mapping({"target": {"a:b": 1}})

    def test_none_payload_counts_as_missing(self):
        with pytest.raises(ConfigurationError, match="must define one of"):
            PolicyNode.from_mapping({"rules": None})

    @pytest.mark.parametrize(
        "document",
        [
            {"policies": [], "rules": []},
            {"rules": [{"effect": "permit"}], "effect": "deny"},
            {"policies": [], "effect": "permit"},
        ],
    )
    def test_ambiguous_payload(self, document):
        with pytest.raises(ConfigurationError, match="only define one of"):
            PolicyNode.from_mapping(document)

    @pytest.mark.parametrize("payload", ["rules", {"effect": "permit"}, 3])
    def test_payload_must_be_sequence(self, payload):
        with pytest.raises(ConfigurationError, match="must be a sequence"):
            PolicyNode.from_mapping({"rules": payload})

    def test_policy_document_with_nested_policy(self):
        with pytest.raises(ConfigurationError, match="only contain rules"):
            PolicyNode.from_mapping({"rules": [{"rules": [{"effect": "permit"}]}]})

    def test_unknown_keys_are_ignored(self):
        rule = PolicyNode.from_mapping({"effect": "deny", "description": "legacy field"})
        assert rule.effect is Verdict.DENY

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError):
            PolicyNode.from_mapping(["effect", "permit"])  # type: ignore[arg-type]


class TestAsNode:
    def test_node_is_returned_unchanged(self):
        rule = PolicyNode.rule("permit")
        assert as_node(rule) is rule

    def test_mapping_is_converted(self):
        assert as_node({"effect": "permit"}) == PolicyNode.rule("permit")

    def test_none(self):
        with pytest.raises(ConfigurationError, match="missing"):
            as_node(None)

    def test_unsupported_type(self):
        with pytest.raises(ConfigurationError):
            as_node("permit")  # type: ignore[arg-type]
