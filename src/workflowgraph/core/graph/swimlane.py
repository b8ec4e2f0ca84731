"""Swimlanes

Swimlanes group nodes visually. A node belongs to at most one swimlane at
a time. This module provides:
1. The Swimlane data model and pure helpers that return new values
2. SwimlaneManager for editing one swimlane
3. SwimlaneCollectionManager for a set of swimlanes, including node
   assignment across them and import/export of the raw data
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import Field

from workflowgraph.core.config import get_config
from workflowgraph.core.graph.nodes.base.node import (
    NodeValidationResult,
    Position,
    Size,
    WorkflowBaseModel,
)
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.SWIMLANES)


def _default_size() -> Size:
    config = get_config()
    return Size(width=config.default_swimlane_width, height=config.default_swimlane_height)


class Swimlane(WorkflowBaseModel):
    """A named lane holding an ordered list of node ids."""
    id: str
    name: str = ""
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=_default_size)
    properties: Dict[str, Any] = Field(default_factory=dict)
    contained_nodes: List[str] = Field(default_factory=list)


def create_swimlane(
    swimlane_id: str,
    name: str,
    position: Optional[Position] = None,
    size: Optional[Size] = None,
    properties: Optional[Dict[str, Any]] = None,
) -> Swimlane:
    fields: Dict[str, Any] = {"id": swimlane_id, "name": name}
    if position is not None:
        fields["position"] = position.model_copy()
    if size is not None:
        fields["size"] = size.model_copy()
    if properties is not None:
        fields["properties"] = dict(properties)
    return Swimlane(**fields)


def add_node_to_swimlane(swimlane: Swimlane, node_id: str) -> Swimlane:
    """Return a swimlane containing ``node_id``. Unchanged if already present."""
    if node_id in swimlane.contained_nodes:
        return swimlane
    return swimlane.model_copy(update={"contained_nodes": [*swimlane.contained_nodes, node_id]})


def remove_node_from_swimlane(swimlane: Swimlane, node_id: str) -> Swimlane:
    return swimlane.model_copy(
        update={"contained_nodes": [n for n in swimlane.contained_nodes if n != node_id]}
    )


def is_node_in_swimlane(swimlane: Swimlane, node_id: str) -> bool:
    return node_id in swimlane.contained_nodes


def find_swimlane_for_node(swimlanes: Iterable[Swimlane], node_id: str) -> Optional[Swimlane]:
    return next((s for s in swimlanes if node_id in s.contained_nodes), None)


class SwimlaneManager:
    """Edits a single swimlane in place."""

    def __init__(
        self,
        name: str,
        swimlane_id: Optional[str] = None,
        position: Optional[Position] = None,
        size: Optional[Size] = None,
        properties: Optional[Dict[str, Any]] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.ids = id_generator or IdGenerator()
        self.data = create_swimlane(
            swimlane_id or self.ids.next_id("swimlane"), name, position, size, properties
        )

    @classmethod
    def from_data(cls, data: Swimlane, id_generator: Optional[IdGenerator] = None) -> "SwimlaneManager":
        manager = cls.__new__(cls)
        manager.ids = id_generator or IdGenerator()
        manager.data = data.model_copy(deep=True)
        return manager

    def get_id(self) -> str:
        return self.data.id

    def get_name(self) -> str:
        return self.data.name

    def set_name(self, name: str) -> None:
        self.data.name = name

    def get_position(self) -> Position:
        return self.data.position

    def set_position(self, position: Position) -> None:
        self.data.position = position.model_copy()

    def get_size(self) -> Size:
        return self.data.size

    def set_size(self, size: Size) -> None:
        self.data.size = size.model_copy()

    def get_properties(self) -> Dict[str, Any]:
        return self.data.properties

    def update_properties(self, properties: Dict[str, Any]) -> None:
        self.data.properties = {**self.data.properties, **properties}

    def get_data(self) -> Swimlane:
        return self.data

    # Node membership

    def add_node(self, node_id: str) -> bool:
        if node_id in self.data.contained_nodes:
            return False
        self.data.contained_nodes.append(node_id)
        return True

    def add_nodes(self, node_ids: Iterable[str]) -> List[str]:
        """Add several nodes, returning the ids that were not already present."""
        return [node_id for node_id in node_ids if self.add_node(node_id)]

    def remove_node(self, node_id: str) -> bool:
        if node_id not in self.data.contained_nodes:
            return False
        self.data.contained_nodes.remove(node_id)
        return True

    def remove_nodes(self, node_ids: Iterable[str]) -> List[str]:
        return [node_id for node_id in node_ids if self.remove_node(node_id)]

    def clear_nodes(self) -> List[str]:
        cleared = list(self.data.contained_nodes)
        self.data.contained_nodes = []
        return cleared

    def contains_node(self, node_id: str) -> bool:
        return node_id in self.data.contained_nodes

    def get_contained_nodes(self) -> List[str]:
        return list(self.data.contained_nodes)

    def get_node_count(self) -> int:
        return len(self.data.contained_nodes)

    def is_empty(self) -> bool:
        return not self.data.contained_nodes

    def contains_point(self, point: Position) -> bool:
        """Whether a point lies inside the swimlane bounds, edges included."""
        left, top = self.data.position.x, self.data.position.y
        right, bottom = left + self.data.size.width, top + self.data.size.height
        return left <= point.x <= right and top <= point.y <= bottom

    def validate(self) -> NodeValidationResult:
        errors: List[str] = []
        warnings: List[str] = []
        if not self.data.name.strip():
            warnings.append("Swimlane should have a name")
        if self.data.size.width <= 0:
            errors.append("Swimlane width must be greater than 0")
        if self.data.size.height <= 0:
            errors.append("Swimlane height must be greater than 0")
        return NodeValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def clone(self) -> "SwimlaneManager":
        """Copy geometry and properties under a new id, without nodes."""
        return SwimlaneManager(
            name=f"{self.data.name} (Copy)",
            position=self.data.position,
            size=self.data.size,
            properties=dict(self.data.properties),
            id_generator=self.ids,
        )

    def clone_with_nodes(self) -> "SwimlaneManager":
        cloned = self.clone()
        cloned.add_nodes(self.data.contained_nodes)
        return cloned


class NodeAssignmentResult(WorkflowBaseModel):
    success: bool
    node_id: str
    previous_swimlane_id: Optional[str] = None
    new_swimlane_id: Optional[str] = None
    error: Optional[str] = None


class SwimlaneMoveResult(WorkflowBaseModel):
    delta_x: float
    delta_y: float
    swimlane: Any


class SwimlaneCollectionManager:
    """Manages every swimlane of a workflow and keeps node membership exclusive."""

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self.ids = id_generator or IdGenerator()
        self._swimlanes: Dict[str, SwimlaneManager] = {}

    def create_swimlane(
        self,
        name: str,
        swimlane_id: Optional[str] = None,
        position: Optional[Position] = None,
        size: Optional[Size] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> SwimlaneManager:
        manager = SwimlaneManager(
            name,
            swimlane_id=swimlane_id,
            position=position,
            size=size,
            properties=properties,
            id_generator=self.ids,
        )
        self._swimlanes[manager.get_id()] = manager
        self.ids.observe([manager.get_id()])
        logger.debug(f"Created swimlane {manager.get_id()} ({name})")
        return manager

    def get_swimlane(self, swimlane_id: str) -> Optional[SwimlaneManager]:
        return self._swimlanes.get(swimlane_id)

    def get_all_swimlanes(self) -> List[SwimlaneManager]:
        return list(self._swimlanes.values())

    def get_all_swimlane_data(self) -> List[Swimlane]:
        return [m.get_data() for m in self._swimlanes.values()]

    def get_swimlane_count(self) -> int:
        return len(self._swimlanes)

    def delete_swimlane(self, swimlane_id: str, delete_contained_nodes: bool = False) -> List[str]:
        """Remove a swimlane.

        Returns:
            The ids of nodes the caller should delete as well. Empty unless
            ``delete_contained_nodes`` is set.
        """
        manager = self._swimlanes.pop(swimlane_id, None)
        if manager is None:
            return []
        logger.debug(f"Deleted swimlane {swimlane_id}")
        return manager.get_contained_nodes() if delete_contained_nodes else []

    def get_swimlane_for_node(self, node_id: str) -> Optional[SwimlaneManager]:
        return next((m for m in self._swimlanes.values() if m.contains_node(node_id)), None)

    def get_swimlane_id_for_node(self, node_id: str) -> Optional[str]:
        manager = self.get_swimlane_for_node(node_id)
        return manager.get_id() if manager else None

    def is_node_in_any_swimlane(self, node_id: str) -> bool:
        return self.get_swimlane_for_node(node_id) is not None

    def assign_node_to_swimlane(self, node_id: str, swimlane_id: str) -> NodeAssignmentResult:
        """Move a node into a swimlane, taking it out of its previous one first."""
        target = self._swimlanes.get(swimlane_id)
        if target is None:
            return NodeAssignmentResult(
                success=False, node_id=node_id, error=f'Swimlane "{swimlane_id}" does not exist'
            )

        previous = self.get_swimlane_for_node(node_id)
        previous_id = previous.get_id() if previous else None
        if previous is not None and previous is not target:
            previous.remove_node(node_id)
        target.add_node(node_id)

        logger.debug(f"Assigned node {node_id} to swimlane {swimlane_id} (was {previous_id})")
        return NodeAssignmentResult(
            success=True,
            node_id=node_id,
            previous_swimlane_id=previous_id,
            new_swimlane_id=swimlane_id,
        )

    def remove_node_from_swimlane(self, node_id: str) -> NodeAssignmentResult:
        previous = self.get_swimlane_for_node(node_id)
        if previous is None:
            return NodeAssignmentResult(
                success=False, node_id=node_id, error=f'Node "{node_id}" is not in any swimlane'
            )
        previous.remove_node(node_id)
        return NodeAssignmentResult(
            success=True, node_id=node_id, previous_swimlane_id=previous.get_id()
        )

    def move_swimlane(self, swimlane_id: str, position: Position) -> Optional[SwimlaneMoveResult]:
        """Move a swimlane and report how far it moved, so callers can shift its nodes."""
        manager = self._swimlanes.get(swimlane_id)
        if manager is None:
            return None
        old = manager.get_position()
        delta_x, delta_y = position.x - old.x, position.y - old.y
        manager.set_position(position)
        return SwimlaneMoveResult(delta_x=delta_x, delta_y=delta_y, swimlane=manager)

    def find_swimlane_at_position(self, point: Position) -> Optional[SwimlaneManager]:
        return next((m for m in self._swimlanes.values() if m.contains_point(point)), None)

    def validate_all(self) -> Dict[str, NodeValidationResult]:
        return {swimlane_id: m.validate() for swimlane_id, m in self._swimlanes.items()}

    def import_from_data(self, swimlanes: Iterable[Swimlane]) -> None:
        """Replace the collection with the given swimlanes."""
        self._swimlanes.clear()
        for data in swimlanes:
            if isinstance(data, dict):
                data = Swimlane.model_validate(data)
            self._swimlanes[data.id] = SwimlaneManager.from_data(data, self.ids)
        self.ids.observe(self._swimlanes)
        logger.debug(f"Imported {len(self._swimlanes)} swimlanes")

    def export_to_data(self) -> List[Swimlane]:
        return [m.get_data().model_copy(deep=True) for m in self._swimlanes.values()]

    def clear(self) -> None:
        self._swimlanes.clear()
