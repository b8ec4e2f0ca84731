"""Automation Actions and Test Data

Nodes and edges can carry automation actions and test cases, each bound to
one outgoing edge of the owning node. The engine does not execute
workflows, so "execution" here means handing the item to a pluggable async
executor (or a built-in simulation) and wrapping the outcome in a result:

    ```python
    async def call_api(action: AutomationAction) -> dict:
        ...

    manager = AutomationActionManager(executor=call_api)
    results = await manager.execute_all_actions_for_node(node)
    ```

A failing executor produces a failed result for that one item; siblings in
the same batch still run to completion.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

from pydantic import Field

from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.base.node import (
    ActionType,
    AutomationAction,
    NodeValidationResult,
    TestData,
    WorkflowBaseModel,
    WorkflowNode,
)
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.ACTIONS)

ActionExecutor = Callable[[AutomationAction], Awaitable[Any]]
TestDataExecutor = Callable[[Any], Awaitable[Any]]

ACTION_TYPES = ("api_call", "script", "webhook")

_SIMULATED_RESPONSES: Dict[str, Dict[str, Any]] = {
    "api_call": {"status": 200, "message": "Simulated API call success"},
    "script": {"status": "completed", "message": "Simulated script execution success"},
    "webhook": {"status": "delivered", "message": "Simulated webhook delivery success"},
}


def _elapsed_ms(start: datetime) -> float:
    return (datetime.now() - start).total_seconds() * 1000


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _binding_errors(model: WorkflowModel, node_id: str, edge_binding: str) -> List[str]:
    if node_id not in model.nodes:
        return [f"Node with ID '{node_id}' not found"]
    if not any(e.id == edge_binding for e in model.get_outgoing_edges(node_id)):
        return [f"Edge with ID '{edge_binding}' is not an outgoing edge of node '{node_id}'"]
    return []


class ActionExecutionResult(WorkflowBaseModel):
    action_id: str
    success: bool
    response: Any = None
    errors: List[str] = Field(default_factory=list)
    execution_time: float = 0


class TestDataExecutionResult(WorkflowBaseModel):
    __test__ = False

    test_data_id: str
    success: bool
    actual_output: Any = None
    expected_output: Any = None
    errors: List[str] = Field(default_factory=list)
    execution_time: float = 0


class AutomationActionManager:
    """Builds, binds, validates and runs automation actions.

    Args:
        executor: Async callable that performs an action. When omitted the
            manager returns a canned response per action type.
    """

    def __init__(self, executor: Optional[ActionExecutor] = None):
        self.executor = executor

    # Construction

    @staticmethod
    def create_action(
        name: str,
        action_type: ActionType,
        edge_binding: str,
        configuration: Optional[Dict[str, Any]] = None,
    ) -> AutomationAction:
        return AutomationAction(
            id=f"aa_{uuid4().hex[:12]}",
            name=name,
            action_type=action_type,
            configuration=dict(configuration or {}),
            edge_binding=edge_binding,
        )

    def create_api_call_action(self, name: str, edge_binding: str, url: str, method: str = "GET", **extra) -> AutomationAction:
        return self.create_action(name, "api_call", edge_binding, {"url": url, "method": method, **extra})

    def create_script_action(self, name: str, edge_binding: str, code: str, language: str = "python", **extra) -> AutomationAction:
        return self.create_action(name, "script", edge_binding, {"code": code, "language": language, **extra})

    def create_webhook_action(self, name: str, edge_binding: str, url: str, method: str = "POST", **extra) -> AutomationAction:
        return self.create_action(name, "webhook", edge_binding, {"url": url, "method": method, **extra})

    def clone_action(self, action: AutomationAction, edge_binding: Optional[str] = None) -> AutomationAction:
        """Copy with a fresh id, optionally rebound to another edge."""
        return action.model_copy(
            deep=True,
            update={
                "id": f"aa_{uuid4().hex[:12]}",
                "edge_binding": edge_binding or action.edge_binding,
            },
        )

    @staticmethod
    def batch_bind_actions_to_edge(actions: List[AutomationAction], edge_id: str) -> List[AutomationAction]:
        return [a.model_copy(update={"edge_binding": edge_id}) for a in actions]

    # Node and edge attachment

    @staticmethod
    def add_action_to_node(node: WorkflowNode, action: AutomationAction) -> WorkflowNode:
        return node.model_copy(update={"automation_actions": [*node.automation_actions, action]})

    @staticmethod
    def remove_action_from_node(node: WorkflowNode, action_id: str) -> WorkflowNode:
        actions = [a for a in node.automation_actions if a.id != action_id]
        return node.model_copy(update={"automation_actions": actions})

    @staticmethod
    def update_action_in_node(node: WorkflowNode, action_id: str, **updates) -> WorkflowNode:
        """Apply field updates to one action. The id cannot change."""
        updates.pop("id", None)
        actions = [
            a.model_copy(update=updates) if a.id == action_id else a
            for a in node.automation_actions
        ]
        return node.model_copy(update={"automation_actions": actions})

    @staticmethod
    def add_action_to_edge(edge: WorkflowEdge, action: AutomationAction) -> WorkflowEdge:
        bound = action.model_copy(update={"edge_binding": edge.id})
        return edge.model_copy(update={"automation_actions": [*edge.automation_actions, bound]})

    @staticmethod
    def remove_action_from_edge(edge: WorkflowEdge, action_id: str) -> WorkflowEdge:
        actions = [a for a in edge.automation_actions if a.id != action_id]
        return edge.model_copy(update={"automation_actions": actions})

    @staticmethod
    def get_actions_for_edge(node: WorkflowNode, edge_id: str) -> List[AutomationAction]:
        return [a for a in node.automation_actions if a.edge_binding == edge_id]

    @staticmethod
    def get_actions_by_type(node: WorkflowNode, action_type: ActionType) -> List[AutomationAction]:
        return [a for a in node.automation_actions if a.action_type == action_type]

    # Validation

    @staticmethod
    def validate_configuration(action: AutomationAction) -> List[str]:
        """Type specific configuration errors for ``action``."""
        config = action.configuration
        errors: List[str] = []
        if action.action_type == "api_call":
            if not config.get("url"):
                errors.append("API call action requires a URL")
            if not config.get("method"):
                errors.append("API call action requires a method")
        elif action.action_type == "script":
            if not config.get("code"):
                errors.append("Script action requires code")
            if not config.get("language"):
                errors.append("Script action requires a language")
        elif action.action_type == "webhook":
            if not config.get("url"):
                errors.append("Webhook action requires a URL")
        return errors

    def validate_action(self, action: AutomationAction) -> NodeValidationResult:
        errors: List[str] = []
        if _blank(action.id):
            errors.append("Action ID is required")
        if _blank(action.name):
            errors.append("Action name is required")
        if _blank(action.edge_binding):
            errors.append("Edge binding is required")
        if action.action_type not in ACTION_TYPES:
            errors.append(f"Invalid action type: {action.action_type}")
        errors.extend(self.validate_configuration(action))
        return NodeValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def validate_edge_binding(model: WorkflowModel, node_id: str, action: AutomationAction) -> NodeValidationResult:
        """The action must be bound to an outgoing edge of ``node_id``."""
        errors = _binding_errors(model, node_id, action.edge_binding)
        return NodeValidationResult(is_valid=not errors, errors=errors)

    # Execution

    async def execute_action(self, action: AutomationAction) -> ActionExecutionResult:
        start = datetime.now()
        try:
            if self.executor is not None:
                response = await self.executor(action)
            else:
                response = _SIMULATED_RESPONSES.get(
                    action.action_type, {"status": "unknown", "message": "Unknown action type"}
                )
            return ActionExecutionResult(
                action_id=action.id,
                success=True,
                response=response,
                execution_time=_elapsed_ms(start),
            )
        except Exception as e:
            logger.error(f"Automation action {action.id} failed: {e}")
            return ActionExecutionResult(
                action_id=action.id,
                success=False,
                errors=[str(e) or type(e).__name__],
                execution_time=_elapsed_ms(start),
            )

    async def execute_all_actions_for_node(self, node: WorkflowNode) -> List[ActionExecutionResult]:
        return list(await asyncio.gather(*(self.execute_action(a) for a in node.automation_actions)))

    async def execute_actions_for_edge(self, node: WorkflowNode, edge_id: str) -> List[ActionExecutionResult]:
        actions = self.get_actions_for_edge(node, edge_id)
        return list(await asyncio.gather(*(self.execute_action(a) for a in actions)))


class TestDataManager:
    """Builds, binds, validates and runs test cases.

    Args:
        executor: Async callable mapping ``input_data`` to an actual output.
            When omitted the input is echoed back as the output.
    """
    __test__ = False

    def __init__(self, executor: Optional[TestDataExecutor] = None):
        self.executor = executor

    @staticmethod
    def create_test_data(
        name: str,
        edge_binding: str,
        input_data: Any = None,
        expected_output: Any = None,
    ) -> TestData:
        return TestData(
            id=f"td_{uuid4().hex[:12]}",
            name=name,
            input_data=input_data if input_data is not None else {},
            expected_output=expected_output if expected_output is not None else {},
            edge_binding=edge_binding,
        )

    def clone_test_data(self, test_data: TestData, edge_binding: Optional[str] = None) -> TestData:
        return test_data.model_copy(
            deep=True,
            update={
                "id": f"td_{uuid4().hex[:12]}",
                "edge_binding": edge_binding or test_data.edge_binding,
            },
        )

    @staticmethod
    def batch_bind_test_data_to_edge(items: List[TestData], edge_id: str) -> List[TestData]:
        return [td.model_copy(update={"edge_binding": edge_id}) for td in items]

    @staticmethod
    def add_test_data_to_node(node: WorkflowNode, test_data: TestData) -> WorkflowNode:
        return node.model_copy(update={"test_data": [*node.test_data, test_data]})

    @staticmethod
    def remove_test_data_from_node(node: WorkflowNode, test_data_id: str) -> WorkflowNode:
        items = [td for td in node.test_data if td.id != test_data_id]
        return node.model_copy(update={"test_data": items})

    @staticmethod
    def update_test_data_in_node(node: WorkflowNode, test_data_id: str, **updates) -> WorkflowNode:
        updates.pop("id", None)
        items = [
            td.model_copy(update=updates) if td.id == test_data_id else td
            for td in node.test_data
        ]
        return node.model_copy(update={"test_data": items})

    @staticmethod
    def add_test_data_to_edge(edge: WorkflowEdge, test_data: TestData) -> WorkflowEdge:
        bound = test_data.model_copy(update={"edge_binding": edge.id})
        return edge.model_copy(update={"test_data": [*edge.test_data, bound]})

    @staticmethod
    def remove_test_data_from_edge(edge: WorkflowEdge, test_data_id: str) -> WorkflowEdge:
        items = [td for td in edge.test_data if td.id != test_data_id]
        return edge.model_copy(update={"test_data": items})

    @staticmethod
    def get_test_data_for_edge(node: WorkflowNode, edge_id: str) -> List[TestData]:
        return [td for td in node.test_data if td.edge_binding == edge_id]

    @staticmethod
    def validate_test_data(test_data: TestData) -> NodeValidationResult:
        errors: List[str] = []
        if _blank(test_data.id):
            errors.append("Test data ID is required")
        if _blank(test_data.name):
            errors.append("Test data name is required")
        if _blank(test_data.edge_binding):
            errors.append("Edge binding is required")
        return NodeValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def validate_edge_binding(model: WorkflowModel, node_id: str, test_data: TestData) -> NodeValidationResult:
        errors = _binding_errors(model, node_id, test_data.edge_binding)
        return NodeValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def compare_outputs(actual: Any, expected: Any) -> bool:
        """Outputs match when their JSON encodings are equal."""
        return json.dumps(actual, sort_keys=True, default=str) == json.dumps(expected, sort_keys=True, default=str)

    async def execute_test_data(self, test_data: TestData) -> TestDataExecutionResult:
        start = datetime.now()
        try:
            if self.executor is not None:
                actual = await self.executor(test_data.input_data)
            else:
                actual = test_data.input_data
            return TestDataExecutionResult(
                test_data_id=test_data.id,
                success=self.compare_outputs(actual, test_data.expected_output),
                actual_output=actual,
                expected_output=test_data.expected_output,
                execution_time=_elapsed_ms(start),
            )
        except Exception as e:
            logger.error(f"Test data {test_data.id} failed: {e}")
            return TestDataExecutionResult(
                test_data_id=test_data.id,
                success=False,
                expected_output=test_data.expected_output,
                errors=[str(e) or type(e).__name__],
                execution_time=_elapsed_ms(start),
            )

    async def execute_all_test_data_for_node(self, node: WorkflowNode) -> List[TestDataExecutionResult]:
        return list(await asyncio.gather(*(self.execute_test_data(td) for td in node.test_data)))

    async def execute_test_data_for_edge(self, node: WorkflowNode, edge_id: str) -> List[TestDataExecutionResult]:
        items = self.get_test_data_for_edge(node, edge_id)
        return list(await asyncio.gather(*(self.execute_test_data(td) for td in items)))
