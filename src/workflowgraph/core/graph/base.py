"""Workflow Model

This module defines the aggregate root of a workflow: its nodes, edges and
swimlanes plus metadata. The model is treated as a value:
1. Every mutating method returns a new model with ``updated_at`` bumped
2. Removing a node drops its incident edges and its swimlane membership
3. Assigning a node to a swimlane takes it out of any previous swimlane

Example:
    ```python
    factory = NodeFactory()
    begin = factory.create_begin_node("Start")
    end = factory.create_end_node("Done", expected_value="ok")

    model = WorkflowModel.create_empty("wf_1", "Onboarding")
    model = model.add_node(begin).add_node(end)
    model = model.add_edge(WorkflowEdge(id="e1", source=begin.id, target=end.id))
    ```
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import Field

from workflowgraph.core.config import get_config
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.base.node import WorkflowBaseModel, WorkflowNode
from workflowgraph.core.graph.nodes.kinds import AnyWorkflowNode
from workflowgraph.core.graph.swimlane import (
    Swimlane,
    add_node_to_swimlane,
    find_swimlane_for_node,
    remove_node_from_swimlane,
)
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.GRAPH)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowMetadata(WorkflowBaseModel):
    version: str = Field(default_factory=lambda: get_config().model_version)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    author: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None

    def touched(self) -> "WorkflowMetadata":
        """Copy with ``updated_at`` set to now, never moving backwards."""
        now = _now()
        return self.model_copy(update={"updated_at": max(now, self.updated_at)})


class WorkflowModel(WorkflowBaseModel):
    """A complete workflow: nodes, edges and swimlanes keyed by id.

    Mappings keep insertion order. Methods that change the workflow return a
    new ``WorkflowModel`` and leave the receiver untouched.

    Attributes:
        id: Workflow identifier
        name: Display name
        nodes: Node id to node
        edges: Edge id to edge
        swimlanes: Swimlane id to swimlane
        metadata: Version and timestamps
    """
    id: str
    name: str = ""
    nodes: Dict[str, AnyWorkflowNode] = Field(default_factory=dict)
    edges: Dict[str, WorkflowEdge] = Field(default_factory=dict)
    swimlanes: Dict[str, Swimlane] = Field(default_factory=dict)
    metadata: WorkflowMetadata = Field(default_factory=WorkflowMetadata)

    @classmethod
    def create_empty(cls, model_id: str, name: str) -> "WorkflowModel":
        now = _now()
        return cls(id=model_id, name=name, metadata=WorkflowMetadata(created_at=now, updated_at=now))

    def _evolve(self, **changes) -> "WorkflowModel":
        changes["metadata"] = self.metadata.touched()
        return self.model_copy(update=changes)

    # Nodes

    def add_node(self, node: WorkflowNode) -> "WorkflowModel":
        """Return a model with ``node`` inserted (or replaced, if the id exists)."""
        nodes = dict(self.nodes)
        nodes[node.id] = node
        logger.debug(f"Model {self.id}: added node {node.id} ({node.type})")
        return self._evolve(nodes=nodes)

    def update_node(self, node: WorkflowNode) -> "WorkflowModel":
        """Return a model with the node of the same id replaced."""
        if node.id not in self.nodes:
            raise ValueError(f"Node not found: {node.id}")
        return self.add_node(node)

    def remove_node(self, node_id: str) -> "WorkflowModel":
        """Return a model without the node, its edges or its swimlane membership."""
        nodes = {k: v for k, v in self.nodes.items() if k != node_id}
        edges = {
            k: e for k, e in self.edges.items()
            if e.source != node_id and e.target != node_id
        }
        swimlanes = {
            k: remove_node_from_swimlane(s, node_id) if node_id in s.contained_nodes else s
            for k, s in self.swimlanes.items()
        }
        dropped = len(self.edges) - len(edges)
        logger.debug(f"Model {self.id}: removed node {node_id} and {dropped} incident edges")
        return self._evolve(nodes=nodes, edges=edges, swimlanes=swimlanes)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self.nodes.get(node_id)

    def get_all_nodes(self) -> List[WorkflowNode]:
        return list(self.nodes.values())

    # Edges

    def add_edge(self, edge: WorkflowEdge) -> "WorkflowModel":
        edges = dict(self.edges)
        edges[edge.id] = edge
        logger.debug(f"Model {self.id}: added edge {edge.id} {edge.key}")
        return self._evolve(edges=edges)

    def remove_edge(self, edge_id: str) -> "WorkflowModel":
        edges = {k: e for k, e in self.edges.items() if k != edge_id}
        return self._evolve(edges=edges)

    def get_outgoing_edges(self, node_id: str) -> List[WorkflowEdge]:
        return [e for e in self.edges.values() if e.source == node_id]

    def get_incoming_edges(self, node_id: str) -> List[WorkflowEdge]:
        return [e for e in self.edges.values() if e.target == node_id]

    def get_all_edges(self) -> List[WorkflowEdge]:
        return list(self.edges.values())

    # Swimlanes

    def add_swimlane(self, swimlane: Swimlane) -> "WorkflowModel":
        swimlanes = dict(self.swimlanes)
        swimlanes[swimlane.id] = swimlane
        return self._evolve(swimlanes=swimlanes)

    def remove_swimlane(self, swimlane_id: str) -> "WorkflowModel":
        swimlanes = {k: s for k, s in self.swimlanes.items() if k != swimlane_id}
        return self._evolve(swimlanes=swimlanes)

    def assign_node_to_swimlane(self, node_id: str, swimlane_id: str) -> "WorkflowModel":
        """Return a model where ``node_id`` sits in ``swimlane_id`` and no other swimlane.

        Raises:
            ValueError: If the swimlane does not exist
        """
        if swimlane_id not in self.swimlanes:
            raise ValueError(f"Swimlane not found: {swimlane_id}")
        swimlanes = {}
        for key, swimlane in self.swimlanes.items():
            if key == swimlane_id:
                swimlanes[key] = add_node_to_swimlane(swimlane, node_id)
            elif node_id in swimlane.contained_nodes:
                swimlanes[key] = remove_node_from_swimlane(swimlane, node_id)
            else:
                swimlanes[key] = swimlane
        return self._evolve(swimlanes=swimlanes)

    def get_swimlane_for_node(self, node_id: str) -> Optional[Swimlane]:
        return find_swimlane_for_node(self.swimlanes.values(), node_id)

    def get_all_swimlanes(self) -> List[Swimlane]:
        return list(self.swimlanes.values())
