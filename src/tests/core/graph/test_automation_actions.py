"""Tests for automation actions and test data attached to nodes and edges."""

import asyncio

import pytest

from workflowgraph.core.graph.actions import AutomationActionManager, TestDataManager
from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.base.node import AutomationAction, TestData
from workflowgraph.core.graph.nodes.flow import ProcessNode


@pytest.fixture
def actions() -> AutomationActionManager:
    """Fixture providing a manager with the simulated executor."""
    return AutomationActionManager()


@pytest.fixture
def td_manager() -> TestDataManager:
    """Fixture providing a manager that echoes inputs."""
    return TestDataManager()


class TestActionConstruction:
    """Test building and attaching actions."""

    def test_typed_constructors(self, actions: AutomationActionManager):
        """Test each constructor fills its configuration."""
        api = actions.create_api_call_action("Fetch", "e2", "https://example.com")
        script = actions.create_script_action("Run", "e2", "print(1)")
        hook = actions.create_webhook_action("Notify", "e2", "https://example.com/hook")
        assert api.configuration == {"url": "https://example.com", "method": "GET"}
        assert script.configuration == {"code": "print(1)", "language": "python"}
        assert hook.configuration["method"] == "POST"
        assert api.id.startswith("aa_") and api.id != script.id

    def test_clone_rebinds(self, actions: AutomationActionManager):
        """Test a clone has a new id and optionally a new edge."""
        action = actions.create_script_action("Run", "e1", "x")
        clone = actions.clone_action(action, "e9")
        assert clone.id != action.id
        assert clone.edge_binding == "e9"
        assert actions.clone_action(action).edge_binding == "e1"

    def test_node_attachment(self, actions: AutomationActionManager):
        """Test add, update, query and remove on a node."""
        node = ProcessNode(id="p1")
        first = actions.create_script_action("Run", "e1", "x")
        second = actions.create_webhook_action("Notify", "e2", "https://example.com")
        node = actions.add_action_to_node(actions.add_action_to_node(node, first), second)

        assert actions.get_actions_for_edge(node, "e1") == [first]
        assert actions.get_actions_by_type(node, "webhook") == [second]

        node = actions.update_action_in_node(node, first.id, name="Renamed", id="hijack")
        assert node.automation_actions[0].name == "Renamed"
        assert node.automation_actions[0].id == first.id

        node = actions.remove_action_from_node(node, first.id)
        assert node.automation_actions == [second]

    def test_edge_attachment_rebinds(self, actions: AutomationActionManager):
        """Test attaching to an edge binds the action to that edge."""
        edge = WorkflowEdge(id="e5", source="a", target="b")
        action = actions.create_script_action("Run", "other", "x")
        edge = actions.add_action_to_edge(edge, action)
        assert edge.automation_actions[0].edge_binding == "e5"
        assert actions.remove_action_from_edge(edge, action.id).automation_actions == []

    def test_batch_bind(self, actions: AutomationActionManager):
        """Test rebinding several actions at once."""
        items = [actions.create_script_action("Run", "e1", "x") for _ in range(3)]
        assert {a.edge_binding for a in actions.batch_bind_actions_to_edge(items, "e7")} == {"e7"}


class TestActionValidation:
    """Test action checks."""

    def test_valid_action(self, actions: AutomationActionManager):
        """Test a complete action passes."""
        assert actions.validate_action(actions.create_api_call_action("Fetch", "e2", "https://x")).is_valid

    def test_missing_fields(self, actions: AutomationActionManager):
        """Test required fields and configuration are reported together."""
        action = AutomationAction(id="a1", action_type="script")
        result = actions.validate_action(action)
        assert result.errors == [
            "Action name is required",
            "Edge binding is required",
            "Script action requires code",
            "Script action requires a language",
        ]

    @pytest.mark.parametrize("action_type,configuration,errors", [
        ("api_call", {"url": "https://x", "method": "GET"}, []),
        ("api_call", {}, ["API call action requires a URL", "API call action requires a method"]),
        ("webhook", {}, ["Webhook action requires a URL"]),
        ("webhook", {"url": "https://x"}, []),
    ])
    def test_configuration(self, action_type, configuration, errors):
        """Test type specific configuration rules."""
        action = AutomationAction(id="a1", action_type=action_type, configuration=configuration)
        assert AutomationActionManager.validate_configuration(action) == errors

    def test_edge_binding(self, simple_model: WorkflowModel, actions: AutomationActionManager):
        """Test the binding must be an outgoing edge of the node."""
        good = actions.create_script_action("Run", "e2", "x")
        bad = actions.create_script_action("Run", "e1", "x")
        assert actions.validate_edge_binding(simple_model, "p1", good).is_valid
        assert actions.validate_edge_binding(simple_model, "p1", bad).errors == [
            "Edge with ID 'e1' is not an outgoing edge of node 'p1'"
        ]
        assert actions.validate_edge_binding(simple_model, "zz", good).errors == [
            "Node with ID 'zz' not found"
        ]


class TestActionExecution:
    """Test running actions through an executor."""

    @pytest.mark.asyncio
    async def test_simulated_responses(self, actions: AutomationActionManager):
        """Test the built-in responses per type."""
        result = await actions.execute_action(actions.create_api_call_action("Fetch", "e1", "https://x"))
        assert result.success
        assert result.response["status"] == 200
        assert result.execution_time >= 0

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_siblings(self):
        """Test one failing action leaves the others successful."""
        async def executor(action: AutomationAction):
            await asyncio.sleep(0)
            if action.name == "Broken":
                raise RuntimeError("connection refused")
            return {"ran": action.name}

        manager = AutomationActionManager(executor=executor)
        node = ProcessNode(id="p1")
        for name in ("First", "Broken", "Last"):
            node = manager.add_action_to_node(node, manager.create_script_action(name, "e1", "x"))

        results = await manager.execute_all_actions_for_node(node)
        assert [r.success for r in results] == [True, False, True]
        assert results[1].errors == ["connection refused"]
        assert results[2].response == {"ran": "Last"}

    @pytest.mark.asyncio
    async def test_execute_for_edge(self, actions: AutomationActionManager):
        """Test only actions bound to the edge run."""
        node = ProcessNode(id="p1")
        node = actions.add_action_to_node(node, actions.create_script_action("A", "e1", "x"))
        node = actions.add_action_to_node(node, actions.create_script_action("B", "e2", "x"))
        results = await actions.execute_actions_for_edge(node, "e2")
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_exception_without_message(self):
        """Test the exception type stands in for an empty message."""
        async def executor(action):
            raise ValueError()

        result = await AutomationActionManager(executor).execute_action(
            AutomationAction(id="a1", name="x", edge_binding="e1")
        )
        assert result.errors == ["ValueError"]


class TestTestData:
    """Test building, checking and running test cases."""

    def test_defaults(self, td_manager: TestDataManager):
        """Test input and expected output default to empty objects."""
        item = td_manager.create_test_data("Case", "e1")
        assert item.id.startswith("td_")
        assert item.input_data == {} and item.expected_output == {}

    def test_validation(self, td_manager: TestDataManager):
        """Test required fields."""
        result = td_manager.validate_test_data(TestData(id=" "))
        assert result.errors == [
            "Test data ID is required",
            "Test data name is required",
            "Edge binding is required",
        ]

    def test_node_attachment(self, td_manager: TestDataManager):
        """Test add, update, query and remove on a node."""
        item = td_manager.create_test_data("Case", "e1", {"a": 1})
        node = td_manager.add_test_data_to_node(ProcessNode(id="p1"), item)
        node = td_manager.update_test_data_in_node(node, item.id, name="Renamed")
        assert td_manager.get_test_data_for_edge(node, "e1")[0].name == "Renamed"
        assert td_manager.remove_test_data_from_node(node, item.id).test_data == []

    def test_edge_attachment(self, td_manager: TestDataManager):
        """Test attaching to an edge rebinds the case."""
        edge = td_manager.add_test_data_to_edge(WorkflowEdge(id="e3"), td_manager.create_test_data("Case", "x"))
        assert edge.test_data[0].edge_binding == "e3"

    @pytest.mark.parametrize("actual,expected,match", [
        ({"a": 1, "b": 2}, {"b": 2, "a": 1}, True),
        ([1, 2], [2, 1], False),
        ("ok", "ok", True),
        ({"a": 1}, {"a": "1"}, False),
    ])
    def test_compare_outputs(self, actual, expected, match):
        """Test JSON based output comparison ignores key order."""
        assert TestDataManager.compare_outputs(actual, expected) is match

    @pytest.mark.asyncio
    async def test_echo_execution(self, td_manager: TestDataManager):
        """Test the default executor echoes the input."""
        passing = td_manager.create_test_data("Same", "e1", {"x": 1}, {"x": 1})
        failing = td_manager.create_test_data("Diff", "e1", {"x": 1}, {"x": 2})
        node = td_manager.add_test_data_to_node(ProcessNode(id="p1"), passing)
        node = td_manager.add_test_data_to_node(node, failing)
        results = await td_manager.execute_all_test_data_for_node(node)
        assert [r.success for r in results] == [True, False]
        assert results[1].actual_output == {"x": 1}

    @pytest.mark.asyncio
    async def test_executor_error(self):
        """Test an executor error becomes a failed result."""
        async def executor(input_data):
            raise RuntimeError("timeout")

        manager = TestDataManager(executor)
        item = manager.create_test_data("Case", "e1")
        results = await manager.execute_test_data_for_edge(
            manager.add_test_data_to_node(ProcessNode(id="p1"), item), "e1"
        )
        assert results[0].errors == ["timeout"]
        assert not results[0].success
