"""Node construction.

``NodeFactory`` builds each node kind with its defaults filled in and ids
drawn from an injected ``IdGenerator``. Ids look like ``begin_1``,
``decision_3``; each kind counts independently.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from workflowgraph.core.graph.nodes.base.node import NodeType, Position, WorkflowNode
from workflowgraph.core.graph.nodes.decision_table import DecisionTableData, DecisionTableNode
from workflowgraph.core.graph.nodes.flow import (
    ApiNode,
    AutoNode,
    BranchCondition,
    ConcurrentNode,
    DecisionNode,
    ProcessNode,
    SubprocessNode,
)
from workflowgraph.core.graph.nodes.terminal import BeginNode, EndNode, ExceptionNode
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)

Properties = Optional[Dict[str, Any]]


class UnsupportedNodeTypeError(ValueError):
    """Raised when asked to build a node for an unknown type tag."""

    def __init__(self, node_type: Any):
        self.node_type = node_type
        super().__init__(f"Unsupported node type: {node_type}")


class NodeFactory:
    """Creates workflow nodes with generated ids.

    Args:
        id_generator: Source of node ids, a fresh one is created when omitted
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self.ids = id_generator or IdGenerator()
        self._builders: Dict[NodeType, Callable[..., WorkflowNode]] = {
            NodeType.BEGIN: self.create_begin_node,
            NodeType.END: self.create_end_node,
            NodeType.EXCEPTION: self.create_exception_node,
            NodeType.PROCESS: self.create_process_node,
            NodeType.DECISION: self.create_decision_node,
            NodeType.DECISION_TABLE: self.create_decision_table_node,
            NodeType.SUBPROCESS: self.create_subprocess_node,
            NodeType.CONCURRENT: self.create_concurrent_node,
            NodeType.AUTO: self.create_auto_node,
            NodeType.API: self.create_api_node,
        }

    def reset(self) -> None:
        """Restart every node id counter."""
        self.ids.reset()

    def _common(
        self,
        node_type: NodeType,
        name: str,
        position: Optional[Position],
        properties: Properties,
    ) -> Dict[str, Any]:
        return {
            "id": self.ids.next_id(node_type.value),
            "name": name,
            "position": position or Position(),
            "properties": dict(properties or {}),
        }

    def create_begin_node(self, name: str = "Begin", position: Optional[Position] = None,
                          properties: Properties = None) -> BeginNode:
        return BeginNode(**self._common(NodeType.BEGIN, name, position, properties))

    def create_end_node(self, name: str = "End", position: Optional[Position] = None,
                        properties: Properties = None, expected_value: Any = None) -> EndNode:
        return EndNode(
            **self._common(NodeType.END, name, position, properties),
            expected_value=expected_value,
        )

    def create_exception_node(self, name: str = "Exception", position: Optional[Position] = None,
                              properties: Properties = None,
                              expected_value: Any = None) -> ExceptionNode:
        return ExceptionNode(
            **self._common(NodeType.EXCEPTION, name, position, properties),
            expected_value=expected_value,
        )

    def create_process_node(self, name: str = "Process", position: Optional[Position] = None,
                            properties: Properties = None) -> ProcessNode:
        return ProcessNode(**self._common(NodeType.PROCESS, name, position, properties))

    def create_decision_node(self, name: str = "Decision", position: Optional[Position] = None,
                             properties: Properties = None,
                             branches: Optional[List[BranchCondition]] = None) -> DecisionNode:
        """Create a Decision node. Without explicit branches it gets true/false."""
        fields = self._common(NodeType.DECISION, name, position, properties)
        if branches is not None:
            fields["branches"] = [b.model_copy() for b in branches]
        return DecisionNode(**fields)

    def create_decision_table_node(self, name: str = "Decision Table",
                                   position: Optional[Position] = None,
                                   properties: Properties = None,
                                   table_data: Optional[DecisionTableData] = None) -> DecisionTableNode:
        fields = self._common(NodeType.DECISION_TABLE, name, position, properties)
        if table_data is not None:
            fields["table_data"] = table_data.model_copy(deep=True)
        return DecisionTableNode(**fields)

    def create_subprocess_node(self, name: str = "Subprocess", position: Optional[Position] = None,
                               properties: Properties = None,
                               reference_path: str = "") -> SubprocessNode:
        return SubprocessNode(
            **self._common(NodeType.SUBPROCESS, name, position, properties),
            reference_path=reference_path,
        )

    def create_concurrent_node(self, name: str = "Concurrent", position: Optional[Position] = None,
                               properties: Properties = None,
                               parallel_branches: Optional[List[str]] = None) -> ConcurrentNode:
        return ConcurrentNode(
            **self._common(NodeType.CONCURRENT, name, position, properties),
            parallel_branches=list(parallel_branches or []),
        )

    def create_auto_node(self, name: str = "Auto", position: Optional[Position] = None,
                         properties: Properties = None,
                         automation_config: Optional[Dict[str, Any]] = None) -> AutoNode:
        return AutoNode(
            **self._common(NodeType.AUTO, name, position, properties),
            automation_config=automation_config,
        )

    def create_api_node(self, name: str = "API", position: Optional[Position] = None,
                        properties: Properties = None, api_endpoint: Optional[str] = None,
                        api_config: Optional[Dict[str, Any]] = None) -> ApiNode:
        return ApiNode(
            **self._common(NodeType.API, name, position, properties),
            api_endpoint=api_endpoint,
            api_config=api_config,
        )

    def create_node_by_type(
        self,
        node_type: Union[NodeType, str],
        name: str,
        position: Optional[Position] = None,
        properties: Properties = None,
    ) -> WorkflowNode:
        """Create a node of the requested kind with default fields.

        Args:
            node_type: A NodeType member or its string value
            name: Display name
            position: Diagram coordinates
            properties: Extra settings

        Returns:
            The new node

        Raises:
            UnsupportedNodeTypeError: If ``node_type`` is not a known kind
        """
        try:
            kind = NodeType(node_type)
        except ValueError:
            raise UnsupportedNodeTypeError(node_type) from None

        node = self._builders[kind](name=name, position=position, properties=properties)
        logger.debug(f"Created {kind.value} node {node.id}")
        return node
