"""Tests for the node model, the factory and the kind predicates."""

import random
from typing import Any, Dict, Iterator, List, Tuple

import pytest
from pydantic import ValidationError

from workflowgraph.core.graph.nodes.base.node import NodeType, Position, has_expected_value
from workflowgraph.core.graph.nodes.factory import NodeFactory, UnsupportedNodeTypeError
from workflowgraph.core.graph.nodes.flow import BranchCondition, ConcurrentNode, DecisionNode
from workflowgraph.core.graph.nodes.kinds import (
    NODE_CLASSES,
    can_be_referenced,
    is_begin_node,
    is_decision_table_node,
    is_reference_node,
    is_terminal_node,
    parse_node,
    supports_reference,
)
from workflowgraph.core.graph.nodes.terminal import BeginNode, EndNode, ExceptionNode
from workflowgraph.core.ids import IdGenerator


NAMES = ["", "   ", "Start", "开始", "a" * 50]
PROPERTY_KEYS = ["stepDisplay", "expectedValue", "expected_value", "owner", "sla", "nested"]
PROPERTY_VALUES: List[Any] = [True, False, None, 0, "ok", {"expectedValue": 1}, [1, 2]]


def property_bags() -> Iterator[Tuple[str, Position, Dict[str, Any]]]:
    """Seeded (name, position, properties) triples, including bags that mention expectedValue."""
    rng = random.Random(11)
    yield "Start", Position(), {}
    yield "Start", Position(), {"expectedValue": "ok"}
    for index in range(40):
        keys = rng.sample(PROPERTY_KEYS, rng.randint(0, len(PROPERTY_KEYS)))
        yield (
            NAMES[index % len(NAMES)],
            Position(x=rng.uniform(-500, 500), y=rng.uniform(-500, 500)),
            {key: rng.choice(PROPERTY_VALUES) for key in keys},
        )



class TestNodeFactory:
    """Test node construction."""

    def test_every_kind_has_a_model(self):
        """Test each type tag maps to its own node class."""
        assert set(NODE_CLASSES) == set(NodeType)
        assert len(set(NODE_CLASSES.values())) == len(NodeType)

    @pytest.mark.parametrize("node_type", list(NodeType))
    def test_create_node_by_type(self, factory: NodeFactory, node_type: NodeType):
        """Test every kind can be built by its type tag."""
        node = factory.create_node_by_type(node_type, "Step")
        assert isinstance(node, NODE_CLASSES[node_type])
        assert node.kind == node_type
        assert node.name == "Step"
        assert node.id == f"{node_type.value}_1"

    def test_create_node_by_string_type(self, factory: NodeFactory):
        """Test the plain string tag is accepted."""
        node = factory.create_node_by_type("process", "Step", Position(x=10, y=20))
        assert node.kind == NodeType.PROCESS
        assert node.position == Position(x=10, y=20)

    def test_unsupported_type_raises(self, factory: NodeFactory):
        """Test an unknown tag is a programmer error."""
        with pytest.raises(UnsupportedNodeTypeError, match="Unsupported node type: swimlane"):
            factory.create_node_by_type("swimlane", "Nope")

    def test_unsupported_type_is_value_error(self, factory: NodeFactory):
        """Test the error can be caught as a ValueError."""
        with pytest.raises(ValueError):
            factory.create_node_by_type("", "Nope")

    def test_ids_increment_per_prefix(self, factory: NodeFactory):
        """Test each kind has its own counter."""
        assert factory.create_process_node().id == "process_1"
        assert factory.create_process_node().id == "process_2"
        assert factory.create_begin_node().id == "begin_1"

    def test_reset_restarts_counters(self, factory: NodeFactory):
        """Test the reset hook."""
        factory.create_process_node()
        factory.reset()
        assert factory.create_process_node().id == "process_1"

    def test_factories_do_not_share_counters(self):
        """Test two factories with their own generators are independent."""
        first = NodeFactory(IdGenerator())
        second = NodeFactory(IdGenerator())
        first.create_process_node()
        assert second.create_process_node().id == "process_1"

    def test_properties_are_copied(self, factory: NodeFactory):
        """Test the caller's dict is not shared with the node."""
        props = {"stepDisplay": True}
        node = factory.create_process_node("Step", properties=props)
        props["stepDisplay"] = False
        assert node.step_display is True


class TestExpectedValue:
    """Test the expectedValue presence rules."""

    @pytest.mark.parametrize("name, position, properties", list(property_bags()))
    def test_begin_never_has_expected_value(
        self, factory: NodeFactory, name: str, position: Position, properties: Dict[str, Any]
    ):
        """Test Begin nodes never carry the field, whatever else they are given."""
        for node in (
            factory.create_begin_node(name, position, properties),
            parse_node({"id": "b1", "type": "begin", "name": name, "properties": properties}),
        ):
            assert not has_expected_value(node)
            assert "expectedValue" not in node.to_dict()
            assert node.properties == properties

    @pytest.mark.parametrize("name, position, properties", list(property_bags()))
    @pytest.mark.parametrize("node_type", [NodeType.END, NodeType.EXCEPTION])
    def test_terminal_always_has_expected_value(
        self, factory: NodeFactory, node_type: NodeType, name: str,
        position: Position, properties: Dict[str, Any]
    ):
        """Test End and Exception carry the field, defaulting to None."""
        node = factory.create_node_by_type(node_type, name, position, properties)
        assert has_expected_value(node)
        assert node.to_dict()["expectedValue"] is None
        parsed = parse_node({"id": "t1", "type": node_type.value, "properties": properties})
        assert has_expected_value(parsed)
        assert parsed.expected_value is None

    @pytest.mark.parametrize("node_class", [EndNode, ExceptionNode])
    def test_terminal_field_present_when_unset(self, node_class):
        """Test the field is present on direct construction too."""
        node = node_class(id="n1", name="Stop")
        assert has_expected_value(node)
        assert node.to_dict()["expectedValue"] is None

    def test_begin_with_extra_expected_value(self):
        """Test external data can smuggle the field onto a Begin node."""
        node = parse_node({"id": "b1", "type": "begin", "expectedValue": 1})
        assert isinstance(node, BeginNode)
        assert has_expected_value(node)


class TestDecisionNode:
    """Test decision branch helpers."""

    def test_default_branches(self, factory: NodeFactory):
        """Test a new decision node has true/false with one default."""
        node = factory.create_decision_node()
        assert node.get_branch_values() == ["true", "false"]
        assert [b.is_default for b in node.branches] == [False, True]

    def test_fresh_nodes_do_not_share_branches(self, factory: NodeFactory):
        """Test default branches are built per node."""
        first = factory.create_decision_node()
        second = factory.create_decision_node()
        first.add_branch("maybe")
        assert len(second.branches) == 2

    def test_add_branch_rejects_duplicate(self, factory: NodeFactory):
        """Test a taken value is refused."""
        node = factory.create_decision_node()
        assert node.add_branch("true") is None
        assert len(node.branches) == 2

    def test_add_branch_generates_id(self, factory: NodeFactory):
        """Test new branches get the next free id."""
        node = factory.create_decision_node()
        branch = node.add_branch("maybe")
        assert branch.id == "branch_3"
        assert node.get_branch_values() == ["true", "false", "maybe"]

    def test_add_default_branch_clears_previous_default(self, factory: NodeFactory):
        """Test only one branch stays default."""
        node = factory.create_decision_node()
        node.add_branch("maybe", is_default=True)
        assert [b.value for b in node.branches if b.is_default] == ["maybe"]

    def test_update_branch_value_conflict(self, factory: NodeFactory):
        """Test renaming onto another branch's value fails."""
        node = factory.create_decision_node()
        assert not node.update_branch_value("branch_1", "false")
        assert node.update_branch_value("branch_1", "yes")
        assert node.get_branch("branch_1").value == "yes"

    def test_remove_branch(self, factory: NodeFactory):
        """Test removal by id."""
        node = factory.create_decision_node()
        assert node.remove_branch("branch_1")
        assert not node.remove_branch("branch_1")
        assert node.get_branch_values() == ["false"]

    def test_explicit_branches(self, factory: NodeFactory):
        """Test explicit branches replace the defaults."""
        node = factory.create_decision_node(
            branches=[BranchCondition(id="b1", value="a"), BranchCondition(id="b2", value="b")]
        )
        assert node.get_branch_values() == ["a", "b"]


class TestConcurrentNode:
    """Test parallel member helpers."""

    def test_add_and_remove_member(self):
        """Test members are kept unique."""
        node = ConcurrentNode(id="c1", name="Fork")
        assert node.add_parallel_branch("p1")
        assert not node.add_parallel_branch("p1")
        assert node.parallel_branches == ["p1"]
        assert node.remove_parallel_branch("p1")
        assert not node.remove_parallel_branch("p1")

    def test_sub_type_markers(self):
        """Test start and end markers are read from properties."""
        start = ConcurrentNode(id="c1", properties={"subType": "concurrent_start"})
        end = ConcurrentNode(id="c2", properties={"subType": "concurrent_end"})
        assert start.is_concurrent_start() and not start.is_concurrent_end()
        assert end.is_concurrent_end()


class TestPredicates:
    """Test kind predicates."""

    def test_kind_predicates(self, factory: NodeFactory):
        """Test predicates match the type tag."""
        assert is_begin_node(factory.create_begin_node())
        assert is_decision_table_node(factory.create_decision_table_node())
        assert is_terminal_node(factory.create_end_node())
        assert is_terminal_node(factory.create_exception_node())
        assert not is_terminal_node(factory.create_process_node())

    @pytest.mark.parametrize("node_type,expected", [
        (NodeType.BEGIN, True),
        (NodeType.END, True),
        (NodeType.EXCEPTION, True),
        (NodeType.PROCESS, True),
        (NodeType.DECISION, True),
        (NodeType.DECISION_TABLE, True),
        (NodeType.AUTO, True),
        (NodeType.SUBPROCESS, False),
        (NodeType.CONCURRENT, False),
        (NodeType.API, False),
    ])
    def test_supports_reference(self, node_type: NodeType, expected: bool):
        """Test the referenceable set."""
        assert supports_reference(node_type) is expected

    def test_supports_reference_unknown_type(self):
        """Test unknown tags are not referenceable."""
        assert not supports_reference("swimlane")

    def test_reference_cannot_be_referenced(self, factory: NodeFactory):
        """Test a reference clone is not itself referenceable."""
        node = factory.create_process_node()
        ref = node.model_copy(update={"id": "ref_1", "is_reference": True, "source_node_id": node.id})
        assert is_reference_node(ref)
        assert can_be_referenced(node)
        assert not can_be_referenced(ref)


class TestSerialization:
    """Test parsing and dumping."""

    def test_parse_camel_case(self):
        """Test camelCase keys select and fill the right model."""
        node = parse_node({"id": "d1", "type": "decision", "name": "Route",
                           "branches": [{"id": "b1", "value": "x", "isDefault": True}]})
        assert isinstance(node, DecisionNode)
        assert node.branches[0].is_default

    def test_parse_snake_case(self):
        """Test snake_case keys work too."""
        node = parse_node({"id": "s1", "type": "subprocess", "reference_path": "flows/a"})
        assert node.reference_path == "flows/a"

    def test_parse_unknown_type(self):
        """Test an unknown tag fails validation."""
        with pytest.raises(ValidationError):
            parse_node({"id": "x", "type": "unknown"})

    def test_to_dict_camel_case(self, factory: NodeFactory):
        """Test dumps use camelCase keys and omit the reference overlay."""
        data = factory.create_subprocess_node("Sub", reference_path="flows/a").to_dict()
        assert data["referencePath"] == "flows/a"
        assert data["type"] == "subprocess"
        assert "isReference" not in data
        assert "sourceNodeId" not in data

    def test_round_trip(self, factory: NodeFactory):
        """Test a dump parses back into an equal node."""
        node = factory.create_api_node("Call", api_endpoint="https://example.com/x")
        assert parse_node(node.to_dict()) == node
