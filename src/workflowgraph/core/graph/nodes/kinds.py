"""The closed set of node kinds.

``AnyWorkflowNode`` is a discriminated union over the ``type`` tag, so
external data parses straight into the right model and every table keyed
by ``NodeType`` can be checked for completeness.
"""

from typing import Annotated, Any, Dict, FrozenSet, Mapping, Type, Union

from pydantic import Field, TypeAdapter

from workflowgraph.core.graph.nodes.base.node import NodeType, WorkflowNode
from workflowgraph.core.graph.nodes.decision_table import DecisionTableNode
from workflowgraph.core.graph.nodes.flow import (
    ApiNode,
    AutoNode,
    ConcurrentNode,
    DecisionNode,
    ProcessNode,
    SubprocessNode,
)
from workflowgraph.core.graph.nodes.terminal import BeginNode, EndNode, ExceptionNode

AnyWorkflowNode = Annotated[
    Union[
        BeginNode,
        EndNode,
        ExceptionNode,
        ProcessNode,
        DecisionNode,
        DecisionTableNode,
        SubprocessNode,
        ConcurrentNode,
        AutoNode,
        ApiNode,
    ],
    Field(discriminator="type"),
]

NODE_CLASSES: Dict[NodeType, Type[WorkflowNode]] = {
    NodeType.BEGIN: BeginNode,
    NodeType.END: EndNode,
    NodeType.EXCEPTION: ExceptionNode,
    NodeType.PROCESS: ProcessNode,
    NodeType.DECISION: DecisionNode,
    NodeType.DECISION_TABLE: DecisionTableNode,
    NodeType.SUBPROCESS: SubprocessNode,
    NodeType.CONCURRENT: ConcurrentNode,
    NodeType.AUTO: AutoNode,
    NodeType.API: ApiNode,
}

REFERENCEABLE_TYPES: FrozenSet[NodeType] = frozenset({
    NodeType.BEGIN,
    NodeType.END,
    NodeType.PROCESS,
    NodeType.DECISION,
    NodeType.DECISION_TABLE,
    NodeType.AUTO,
    NodeType.EXCEPTION,
})

# Kinds that may not sit inside a concurrent region
ILLEGAL_CONCURRENT_MEMBERS: FrozenSet[NodeType] = frozenset({
    NodeType.BEGIN,
    NodeType.END,
    NodeType.EXCEPTION,
})

_node_adapter: TypeAdapter = TypeAdapter(AnyWorkflowNode)


def parse_node(data: Mapping[str, Any]) -> WorkflowNode:
    """Build the matching node model from a dict (camelCase or snake_case keys).

    Raises:
        pydantic.ValidationError: If the type tag is unknown or fields are malformed
    """
    return _node_adapter.validate_python(dict(data))


def is_begin_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.BEGIN.value


def is_end_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.END.value


def is_exception_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.EXCEPTION.value


def is_process_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.PROCESS.value


def is_decision_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.DECISION.value


def is_decision_table_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.DECISION_TABLE.value


def is_subprocess_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.SUBPROCESS.value


def is_concurrent_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.CONCURRENT.value


def is_auto_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.AUTO.value


def is_api_node(node: WorkflowNode) -> bool:
    return node.type == NodeType.API.value


def is_terminal_node(node: WorkflowNode) -> bool:
    """End and Exception nodes both terminate a workflow."""
    return is_end_node(node) or is_exception_node(node)


def is_reference_node(node: WorkflowNode) -> bool:
    return bool(node.is_reference) and node.source_node_id is not None


def supports_reference(node_type: Union[NodeType, str]) -> bool:
    """Whether nodes of this kind may be cloned as references."""
    try:
        return NodeType(node_type) in REFERENCEABLE_TYPES
    except ValueError:
        return False


def can_be_referenced(node: WorkflowNode) -> bool:
    """A node can be referenced if its kind allows it and it is not a reference itself."""
    return supports_reference(node.type) and not node.is_reference
