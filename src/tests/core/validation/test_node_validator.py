"""Tests for the per-node validation rules."""

import itertools
import random
from typing import Iterator, List

import pytest

from workflowgraph.core.graph.nodes.base.node import NodeType
from workflowgraph.core.graph.nodes.decision_table import DecisionTableData, DecisionTableNode
from workflowgraph.core.graph.nodes.factory import NodeFactory
from workflowgraph.core.graph.nodes.flow import (
    ApiNode,
    AutoNode,
    BranchCondition,
    ConcurrentNode,
    DecisionNode,
    ProcessNode,
    SubprocessNode,
)
from workflowgraph.core.graph.nodes.kinds import parse_node
from workflowgraph.core.graph.nodes.terminal import EndNode, ExceptionNode
from workflowgraph.core.validation.codes import ValidationCode
from workflowgraph.core.validation.node_validator import (
    NODE_RULES,
    ValidationContext,
    check_node,
    is_valid_endpoint,
    validate_node,
)
from workflowgraph.core.validation.results import Severity


def codes(node, context=None):
    return [f.code for f in check_node(node, context)]


BRANCH_ALPHABET = ["", " ", "yes", "no", "Yes"]


def branch_value_lists() -> Iterator[List[str]]:
    """Every list of up to three values over a small alphabet, then seeded longer ones."""
    for length in range(4):
        for values in itertools.product(BRANCH_ALPHABET, repeat=length):
            yield list(values)
    rng = random.Random(6)
    pool = BRANCH_ALPHABET + ["approve", "reject", "  padded  ", "0", "\t"]
    for _ in range(60):
        yield [rng.choice(pool) for _ in range(rng.randint(4, 10))]


def decision_with(values: List[str]) -> DecisionNode:
    return DecisionNode(id="d1", name="Route", branches=[
        BranchCondition(id=f"b{i}", value=value) for i, value in enumerate(values)
    ])


class TestRuleTable:
    """Test the rule dispatch table."""

    def test_every_kind_has_a_rule(self):
        """Test no node kind is left without validation rules."""
        assert set(NODE_RULES) == set(NodeType)


class TestNameRule:
    """Test the blank name warning."""

    @pytest.mark.parametrize("node_type", list(NodeType))
    def test_blank_name_warns_for_every_kind(self, factory: NodeFactory, node_type: NodeType):
        """Test a blank name never makes a node invalid on its own."""
        node = factory.create_node_by_type(node_type, "  ")
        findings = [f for f in check_node(node) if f.code.endswith(".missing-name")]
        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert findings[0].node_id == node.id

    def test_warning_text(self):
        """Test the message names the kind."""
        result = validate_node(ProcessNode(id="p1"))
        assert result.is_valid
        assert result.warnings == ["Process node should have a name"]


class TestTerminalRules:
    """Test expected value rules on begin, end and exception nodes."""

    def test_begin_is_valid(self, factory: NodeFactory):
        """Test a plain begin node passes."""
        assert validate_node(factory.create_begin_node("Start")).is_valid

    def test_begin_with_expected_value(self):
        """Test a begin node carrying expectedValue is an error."""
        node = parse_node({"id": "b1", "type": "begin", "name": "Start", "expectedValue": None})
        result = validate_node(node)
        assert not result.is_valid
        assert result.errors == ['Begin node "Start" should not have an expected value']

    @pytest.mark.parametrize("node_class", [EndNode, ExceptionNode])
    def test_terminal_with_field_is_valid(self, node_class):
        """Test presence, not truthiness, satisfies the rule."""
        assert validate_node(node_class(id="n1", name="Stop")).is_valid

    def test_parsed_end_gets_field(self):
        """Test data without expectedValue still yields a valid end node."""
        node = parse_node({"id": "end_1", "type": "end", "name": "Done"})
        assert codes(node) == []


class TestProcessRule:
    """Test the single outgoing edge rule."""

    @pytest.mark.parametrize("count", range(0, 2))
    def test_at_most_one_edge(self, count: int):
        """Test zero or one outgoing edge is fine."""
        node = ProcessNode(id="p1", name="Review")
        assert validate_node(node, ValidationContext(outgoing_edge_count=count)).is_valid

    @pytest.mark.parametrize("count", range(2, 12))
    def test_more_edges(self, count: int):
        """Test extra outgoing edges are an error."""
        node = ProcessNode(id="p1", name="Review")
        result = validate_node(node, ValidationContext(outgoing_edge_count=count))
        assert result.errors == [
            f'Process node "Review" allows only one outgoing edge, currently has {count}'
        ]


class TestDecisionRule:
    """Test branch rules."""

    def test_default_branches(self, factory: NodeFactory):
        """Test a fresh decision node passes."""
        assert validate_node(factory.create_decision_node("Route")).is_valid

    def test_duplicate_values(self):
        """Test duplicate non-empty values are an error."""
        node = DecisionNode(id="d1", name="Route", branches=[
            BranchCondition(id="b1", value="yes"),
            BranchCondition(id="b2", value="yes"),
        ])
        assert codes(node) == [ValidationCode.DECISION_NODE_DUPLICATE_BRANCH_VALUES.value]

    def test_empty_values_are_not_duplicates(self):
        """Test two empty values only warn."""
        node = DecisionNode(id="d1", name="Route", branches=[
            BranchCondition(id="b1", value=""),
            BranchCondition(id="b2", value=""),
        ])
        result = validate_node(node)
        assert result.is_valid
        assert result.warnings == ['Decision node "Route" has 2 branch(es) with empty values']

    def test_single_branch(self):
        """Test fewer than two branches warns."""
        node = DecisionNode(id="d1", name="Route", branches=[BranchCondition(id="b1", value="x")])
        assert codes(node) == [ValidationCode.DECISION_NODE_INSUFFICIENT_BRANCHES.value]


class TestBranchValueProperties:
    """Test branch rules hold for generated sets of values."""

    @pytest.mark.parametrize("values", list(branch_value_lists()))
    def test_invalid_iff_non_empty_duplicates(self, values: List[str]):
        """Test validity turns only on repeats among non-empty values."""
        non_empty = [v for v in values if v != ""]
        has_duplicates = len(non_empty) != len(set(non_empty))

        result = validate_node(decision_with(values))
        assert result.is_valid is not has_duplicates
        duplicate_code = ValidationCode.DECISION_NODE_DUPLICATE_BRANCH_VALUES.value
        assert (duplicate_code in codes(decision_with(values))) is has_duplicates

    @pytest.mark.parametrize("values", list(branch_value_lists()))
    def test_blank_values_warn_with_count(self, values: List[str]):
        """Test every blank or whitespace-only value is counted in one warning."""
        blank = sum(1 for v in values if not v.strip())
        warnings = [w for w in validate_node(decision_with(values)).warnings if "empty values" in w]
        if blank:
            assert warnings == [f'Decision node "Route" has {blank} branch(es) with empty values']
        else:
            assert warnings == []

    @pytest.mark.parametrize("values", list(branch_value_lists()))
    def test_too_few_branches_only_warns(self, values: List[str]):
        """Test fewer than two branches is a warning, never an error on its own."""
        found = codes(decision_with(values))
        insufficient = ValidationCode.DECISION_NODE_INSUFFICIENT_BRANCHES.value
        assert (insufficient in found) is (len(values) < 2)


class TestDecisionTableRule:
    """Test the table is validated through the node."""

    def test_default_table(self):
        """Test the default table passes."""
        assert validate_node(DecisionTableNode(id="t1", name="Rules")).is_valid

    def test_missing_columns(self):
        """Test shape errors map to their codes."""
        node = DecisionTableNode(id="t1", name="Rules", table_data=DecisionTableData())
        found = codes(node)
        assert ValidationCode.DECISION_TABLE_MISSING_DECISION_COLUMNS.value in found
        assert ValidationCode.DECISION_TABLE_MISSING_OUTPUT_COLUMNS.value in found
        assert ValidationCode.DECISION_TABLE_EMPTY_ROWS.value in found


class TestOtherKinds:
    """Test subprocess, auto and api rules."""

    def test_subprocess_path(self):
        """Test a missing reference path only warns."""
        assert codes(SubprocessNode(id="s1", name="Sub")) == [
            ValidationCode.SUBPROCESS_NODE_MISSING_REFERENCE_PATH.value
        ]
        assert codes(SubprocessNode(id="s1", name="Sub", reference_path="flows/a")) == []

    def test_auto_config(self):
        """Test a missing automation config only warns."""
        assert validate_node(AutoNode(id="a1", name="Bot")).is_valid
        assert codes(AutoNode(id="a1", name="Bot", automation_config={"job": "x"})) == []

    @pytest.mark.parametrize("endpoint,code", [
        ("https://api.example.com/v1", None),
        ("/internal/path", None),
        ("./relative", None),
        ("", ValidationCode.API_NODE_MISSING_ENDPOINT),
        ("not a url", ValidationCode.API_NODE_INVALID_ENDPOINT),
    ])
    def test_api_endpoint(self, endpoint: str, code):
        """Test endpoint presence and shape."""
        found = codes(ApiNode(id="api_1", name="Call", api_endpoint=endpoint))
        assert found == ([] if code is None else [code.value])

    def test_is_valid_endpoint(self):
        """Test the URL helper directly."""
        assert is_valid_endpoint("http://localhost:8080/x")
        assert not is_valid_endpoint("ftp//broken")


class TestConcurrentRule:
    """Test member kind rules on concurrent nodes."""

    def test_empty_branches_warns(self):
        """Test a region without members only warns."""
        assert codes(ConcurrentNode(id="c1", name="Fork")) == [
            ValidationCode.CONCURRENT_NODE_EMPTY_BRANCHES.value
        ]

    def test_illegal_member(self):
        """Test terminal members are errors, one per member."""
        node = ConcurrentNode(id="c1", name="Fork", parallel_branches=["p1", "end_1", "begin_1"])
        context = ValidationContext(
            member_types={"p1": NodeType.PROCESS, "end_1": NodeType.END, "begin_1": NodeType.BEGIN},
            member_names={"end_1": "Done", "begin_1": "Start"},
        )
        result = validate_node(node, context)
        assert not result.is_valid
        assert result.errors == [
            'Concurrent node "Fork" cannot contain end node "Done"',
            'Concurrent node "Fork" cannot contain begin node "Start"',
        ]

    def test_unknown_members_ignored(self):
        """Test members missing from the context are skipped."""
        node = ConcurrentNode(id="c1", name="Fork", parallel_branches=["ghost"])
        assert validate_node(node).is_valid


class TestReferenceOverlay:
    """Test rules for reference clones."""

    def test_valid_reference(self):
        """Test a well formed reference passes."""
        node = ProcessNode(id="ref_1", name="R", is_reference=True, source_node_id="p1",
                           editable_properties=("name", "stepDisplay"))
        assert codes(node) == []

    def test_missing_source_and_whitelist(self):
        """Test a broken overlay is reported."""
        node = ProcessNode(id="ref_1", name="R", is_reference=True, editable_properties=("name",))
        found = codes(node)
        assert ValidationCode.REFERENCE_NODE_MISSING_SOURCE_ID.value in found
        assert ValidationCode.REFERENCE_NODE_INVALID_EDIT.value in found
