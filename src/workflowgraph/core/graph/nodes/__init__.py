"""Node package initialization.

Exposes the ten node kinds, the factory and the kind predicates.
"""

from workflowgraph.core.graph.nodes.base.node import (
    NodeType,
    Position,
    WorkflowNode,
    NodeValidationResult,
)
from workflowgraph.core.graph.nodes.terminal import BeginNode, EndNode, ExceptionNode
from workflowgraph.core.graph.nodes.flow import (
    ProcessNode,
    DecisionNode,
    BranchCondition,
    SubprocessNode,
    ConcurrentNode,
    AutoNode,
    ApiNode,
)
from workflowgraph.core.graph.nodes.decision_table import DecisionTableNode, DecisionTableManager
from workflowgraph.core.graph.nodes.kinds import AnyWorkflowNode, parse_node, is_reference_node
from workflowgraph.core.graph.nodes.factory import NodeFactory, UnsupportedNodeTypeError

__all__ = [
    # Base types
    "NodeType",
    "Position",
    "WorkflowNode",
    "NodeValidationResult",
    "AnyWorkflowNode",

    # Node kinds
    "BeginNode",
    "EndNode",
    "ExceptionNode",
    "ProcessNode",
    "DecisionNode",
    "BranchCondition",
    "DecisionTableNode",
    "SubprocessNode",
    "ConcurrentNode",
    "AutoNode",
    "ApiNode",

    # Construction and helpers
    "NodeFactory",
    "UnsupportedNodeTypeError",
    "DecisionTableManager",
    "parse_node",
    "is_reference_node",
]
