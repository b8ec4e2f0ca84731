"""Workflow edges and small helpers over edge lists."""

from typing import Iterable, List, Optional

from pydantic import Field

from workflowgraph.core.graph.nodes.base.node import (
    AutomationAction,
    TestData,
    WorkflowBaseModel,
)
from workflowgraph.core.ids import IdGenerator


class WorkflowEdge(WorkflowBaseModel):
    """A directed connection between two nodes.

    Attributes:
        id: Unique identifier within a model
        source: Id of the node the edge leaves
        target: Id of the node the edge enters
        condition: Optional condition expression
        value: Branch discriminator for Decision and DecisionTable sources
        data_type: Type hint for ``value``
        test_data: Test cases attached to this edge
        automation_actions: Automation steps attached to this edge
    """
    id: str
    source: str = ""
    target: str = ""
    condition: Optional[str] = None
    value: Optional[str] = None
    data_type: Optional[str] = None
    test_data: List[TestData] = Field(default_factory=list)
    automation_actions: List[AutomationAction] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """``source->target``; two edges with the same key are duplicates."""
        return f"{self.source}->{self.target}"


def create_edge(
    source: str,
    target: str,
    id_generator: IdGenerator,
    condition: Optional[str] = None,
    value: Optional[str] = None,
    data_type: Optional[str] = None,
) -> WorkflowEdge:
    """Create an edge with an ``edge_n`` id."""
    return WorkflowEdge(
        id=id_generator.next_id("edge"),
        source=source,
        target=target,
        condition=condition,
        value=value,
        data_type=data_type,
    )


def validate_edge_value_uniqueness(edges: Iterable[WorkflowEdge]) -> bool:
    """True when no two edges carry the same (non-None) value."""
    values = [e.value for e in edges if e.value is not None]
    return len(values) == len(set(values))


def get_outgoing_edge_count(edges: Iterable[WorkflowEdge], node_id: str) -> int:
    return sum(1 for e in edges if e.source == node_id)


def get_incoming_edge_count(edges: Iterable[WorkflowEdge], node_id: str) -> int:
    return sum(1 for e in edges if e.target == node_id)
