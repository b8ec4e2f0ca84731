"""Graph package initialization.

Exposes the workflow model, its parts, and the managers that edit them.
"""

from workflowgraph.core.graph.base import WorkflowModel, WorkflowMetadata
from workflowgraph.core.graph.edge import WorkflowEdge, create_edge
from workflowgraph.core.graph.swimlane import (
    Swimlane,
    SwimlaneManager,
    SwimlaneCollectionManager,
)
from workflowgraph.core.graph.concurrent import (
    ConcurrentProcessData,
    ConcurrentProcessManager,
    validate_concurrent_structure,
)
from workflowgraph.core.graph.references import ReferenceManager
from workflowgraph.core.graph.actions import AutomationActionManager, TestDataManager
from workflowgraph.core.graph.nodes import NodeFactory, NodeType, WorkflowNode, parse_node

__all__ = [
    # Model
    "WorkflowModel",
    "WorkflowMetadata",
    "WorkflowEdge",
    "Swimlane",
    "WorkflowNode",
    "NodeType",

    # Managers
    "NodeFactory",
    "SwimlaneManager",
    "SwimlaneCollectionManager",
    "ConcurrentProcessManager",
    "ReferenceManager",
    "AutomationActionManager",
    "TestDataManager",

    # Data and helpers
    "ConcurrentProcessData",
    "create_edge",
    "parse_node",
    "validate_concurrent_structure",
]
