"""Reference Nodes

A reference node is a clone of another node that mirrors every field
except a small whitelist (``name`` and ``stepDisplay``) which the
reference may change on its own. This module provides:
1. Standalone helpers to build and check reference clones
2. ``ReferenceManager``, which owns a ``WorkflowModel`` and keeps an index
   from source node id to the ids of its references

Deleting a source never deletes its references. They become dangling,
which ``validate_reference_node`` and ``sync_reference_with_source`` report.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from workflowgraph.core.config import WorkflowGraphConfig, get_config
from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.nodes.base.node import (
    STEP_DISPLAY,
    NodeType,
    NodeValidationResult,
    WorkflowBaseModel,
    WorkflowNode,
)
from workflowgraph.core.graph.nodes.kinds import (
    REFERENCEABLE_TYPES,
    can_be_referenced,
    is_reference_node,
)
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.REFERENCES)


class ReferenceCreationResult(WorkflowBaseModel):
    success: bool
    reference_node: Optional[WorkflowNode] = None
    error: Optional[str] = None


class BatchReferenceError(WorkflowBaseModel):
    node_id: str
    error: str


class BatchReferenceCreationResult(WorkflowBaseModel):
    success: bool
    reference_nodes: List[WorkflowNode] = Field(default_factory=list)
    errors: List[BatchReferenceError] = Field(default_factory=list)
    total_requested: int = 0
    total_created: int = 0


class ReferenceEditResult(WorkflowBaseModel):
    success: bool
    error: Optional[str] = None


class ReferenceStatistics(WorkflowBaseModel):
    total_references: int = 0
    referenced_nodes: int = 0
    references_by_type: Dict[NodeType, int] = Field(default_factory=dict)


def create_reference_node(
    source: WorkflowNode,
    reference_id: str,
    config: Optional[WorkflowGraphConfig] = None,
) -> WorkflowNode:
    """Clone ``source`` into a reference node with id ``reference_id``.

    Every field is deep-copied. The clone gets the reference overlay and the
    name ``"<source name> (Reference)"``.
    """
    config = config or get_config()
    return source.model_copy(
        deep=True,
        update={
            "id": reference_id,
            "name": f"{source.name}{config.reference_name_suffix}",
            "source_node_id": source.id,
            "is_reference": True,
            "editable_properties": tuple(config.reference_editable_properties),
        },
    )


def validate_reference_clone(source: WorkflowNode, reference: WorkflowNode) -> NodeValidationResult:
    """Check that ``reference`` is a faithful clone of ``source``."""
    errors: List[str] = []
    if reference.type != source.type:
        errors.append(
            f'Reference node type "{reference.type}" does not match source node type "{source.type}"'
        )
    if reference.source_node_id != source.id:
        errors.append(
            f'Reference node sourceNodeId "{reference.source_node_id}" does not match source node ID "{source.id}"'
        )
    if not reference.is_reference:
        errors.append("Reference node must have isReference set to true")
    if reference.position != source.position:
        errors.append("Reference node position does not match source node position")
    if set(reference.editable_properties or ()) != set(get_config().reference_editable_properties):
        errors.append("Reference node editable properties are not correctly configured")
    return NodeValidationResult(is_valid=not errors, errors=errors)


def validate_reference_edit_restriction(reference: WorkflowNode, property_name: str) -> NodeValidationResult:
    """Whether ``property_name`` may be edited on ``reference``."""
    if property_name in (reference.editable_properties or ()):
        return NodeValidationResult(is_valid=True)
    return NodeValidationResult(
        is_valid=False,
        errors=[f'Property "{property_name}" is not editable on reference node'],
    )


class ReferenceManager:
    """Creates, edits and tracks reference nodes inside a workflow model.

    The manager replaces its model with a new value on every change; read
    the current one back with ``get_model()``.

    Args:
        model: Workflow the references live in
        id_generator: Source of ``ref_n`` ids
        config: Naming suffix and editable whitelist
    """

    def __init__(
        self,
        model: WorkflowModel,
        id_generator: Optional[IdGenerator] = None,
        config: Optional[WorkflowGraphConfig] = None,
    ):
        self.ids = id_generator or IdGenerator()
        self.config = config or get_config()
        self._model = model
        self._index: Dict[str, List[str]] = {}
        self._rebuild_index()

    def _rebuild_index(self) -> None:
        self.ids.observe(self._model.nodes)
        self._index = {}
        for node_id, node in self._model.nodes.items():
            if is_reference_node(node):
                self._index.setdefault(node.source_node_id, []).append(node_id)

    def update_model(self, model: WorkflowModel) -> None:
        """Swap in a new model and rebuild the source index."""
        self._model = model
        self._rebuild_index()

    def get_model(self) -> WorkflowModel:
        return self._model

    @staticmethod
    def get_referenceable_node_types() -> List[NodeType]:
        return [t for t in NodeType if t in REFERENCEABLE_TYPES]

    def can_create_reference(self, node_id: str) -> bool:
        node = self._model.nodes.get(node_id)
        return node is not None and can_be_referenced(node)

    def create_reference(self, source_node_id: str) -> ReferenceCreationResult:
        """Clone a node as a reference and insert it into the model."""
        source = self._model.nodes.get(source_node_id)
        if source is None:
            return ReferenceCreationResult(
                success=False, error=f'Source node "{source_node_id}" does not exist'
            )
        if source.is_reference:
            return ReferenceCreationResult(
                success=False,
                error=f'Node "{source_node_id}" is a reference node and cannot be referenced',
            )
        if not can_be_referenced(source):
            return ReferenceCreationResult(
                success=False,
                error=f'Node type "{source.type}" does not support reference creation',
            )

        reference = create_reference_node(source, self.ids.next_id("ref"), self.config)
        self._model = self._model.add_node(reference)
        self._index.setdefault(source_node_id, []).append(reference.id)
        logger.info(f"Created reference {reference.id} of {source_node_id}")
        return ReferenceCreationResult(success=True, reference_node=reference)

    def create_batch_references(self, source_node_ids: List[str]) -> BatchReferenceCreationResult:
        """Create one reference per id, collecting failures instead of stopping."""
        created: List[WorkflowNode] = []
        errors: List[BatchReferenceError] = []
        for node_id in source_node_ids:
            result = self.create_reference(node_id)
            if result.success and result.reference_node is not None:
                created.append(result.reference_node)
            else:
                errors.append(BatchReferenceError(node_id=node_id, error=result.error or "Unknown error"))

        return BatchReferenceCreationResult(
            success=not errors,
            reference_nodes=created,
            errors=errors,
            total_requested=len(source_node_ids),
            total_created=len(created),
        )

    def is_property_editable(self, property_name: str) -> bool:
        return property_name in self.config.reference_editable_properties

    def _get_reference(self, node_id: str):
        node = self._model.nodes.get(node_id)
        if node is None:
            return None, f'Reference node "{node_id}" does not exist'
        if not is_reference_node(node):
            return None, f'Node "{node_id}" is not a reference node'
        return node, None

    def edit_reference_node(self, reference_node_id: str, property_name: str, value: Any) -> ReferenceEditResult:
        """Change ``name`` or ``stepDisplay`` on a reference. Anything else is refused."""
        node, error = self._get_reference(reference_node_id)
        if error:
            return ReferenceEditResult(success=False, error=error)
        if not self.is_property_editable(property_name):
            logger.warning(f"Refused edit of {property_name} on reference {reference_node_id}")
            return ReferenceEditResult(
                success=False,
                error=f'Property "{property_name}" is not editable on reference node',
            )

        if property_name == "name":
            updated = node.model_copy(update={"name": value})
        else:
            updated = node.model_copy(update={"properties": {**node.properties, property_name: value}})
        self._model = self._model.add_node(updated)
        return ReferenceEditResult(success=True)

    def get_references_for_node(self, source_node_id: str) -> List[WorkflowNode]:
        references = []
        for ref_id in self._index.get(source_node_id, []):
            node = self._model.nodes.get(ref_id)
            if node is not None and is_reference_node(node):
                references.append(node)
        return references

    def get_source_node(self, reference_node_id: str) -> Optional[WorkflowNode]:
        node = self._model.nodes.get(reference_node_id)
        if node is None or not is_reference_node(node):
            return None
        return self._model.nodes.get(node.source_node_id)

    def is_reference(self, node_id: str) -> bool:
        node = self._model.nodes.get(node_id)
        return node is not None and is_reference_node(node)

    def get_all_reference_nodes(self) -> List[WorkflowNode]:
        return [n for n in self._model.nodes.values() if is_reference_node(n)]

    def delete_reference(self, reference_node_id: str) -> bool:
        node, error = self._get_reference(reference_node_id)
        if error:
            return False

        refs = self._index.get(node.source_node_id, [])
        if reference_node_id in refs:
            refs.remove(reference_node_id)
            if not refs:
                del self._index[node.source_node_id]

        self._model = self._model.remove_node(reference_node_id)
        logger.info(f"Deleted reference {reference_node_id}")
        return True

    def validate_reference_node(self, reference_node_id: str) -> NodeValidationResult:
        """Check that a reference still points at an existing source."""
        node, error = self._get_reference(reference_node_id)
        if error:
            return NodeValidationResult(is_valid=False, errors=[error])

        errors: List[str] = []
        warnings: List[str] = []
        if node.source_node_id not in self._model.nodes:
            errors.append(
                f'Source node "{node.source_node_id}" for reference "{node.name}" does not exist'
            )
        editable = node.editable_properties or ()
        if not all(p in editable for p in self.config.reference_editable_properties):
            warnings.append("Reference node editable properties are not correctly configured")
        return NodeValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def sync_reference_with_source(self, reference_node_id: str) -> ReferenceEditResult:
        """Re-copy the source into the reference, keeping its own name and stepDisplay."""
        node, error = self._get_reference(reference_node_id)
        if error:
            return ReferenceEditResult(success=False, error=error)

        source = self._model.nodes.get(node.source_node_id)
        if source is None:
            return ReferenceEditResult(
                success=False, error=f'Source node "{node.source_node_id}" does not exist'
            )

        properties = dict(source.properties)
        if STEP_DISPLAY in node.properties:
            properties[STEP_DISPLAY] = node.properties[STEP_DISPLAY]
        else:
            properties.pop(STEP_DISPLAY, None)

        synced = source.model_copy(
            deep=True,
            update={
                "id": node.id,
                "name": node.name,
                "source_node_id": node.source_node_id,
                "is_reference": True,
                "editable_properties": tuple(self.config.reference_editable_properties),
                "properties": properties,
            },
        )
        self._model = self._model.add_node(synced)
        logger.debug(f"Synced reference {reference_node_id} with {source.id}")
        return ReferenceEditResult(success=True)

    def get_reference_statistics(self) -> ReferenceStatistics:
        by_type: Dict[NodeType, int] = {}
        total = 0
        for node in self._model.nodes.values():
            if is_reference_node(node):
                total += 1
                by_type[node.kind] = by_type.get(node.kind, 0) + 1
        return ReferenceStatistics(
            total_references=total,
            referenced_nodes=len(self._index),
            references_by_type=by_type,
        )
