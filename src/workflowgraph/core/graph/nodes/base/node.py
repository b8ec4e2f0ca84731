"""Base node model for workflow graphs.

This module defines the fields every workflow node shares. Each node kind
(Begin, End, Process, Decision, ...) is its own Pydantic model carrying a
literal ``type`` tag, and the kinds together form a closed union (see
``workflowgraph.core.graph.nodes.kinds``).

A node may also carry the reference overlay (``source_node_id``,
``is_reference``, ``editable_properties``), which turns it into a
restricted-edit clone of another node of the same kind.

Typical Usage:
    - Build nodes through ``NodeFactory`` or ``parse_node``
    - Validate them with ``validate_node``
    - Serialize with ``node.to_dict()`` (camelCase keys)
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)

STEP_DISPLAY = "stepDisplay"
REFERENCE_FIELDS = {"source_node_id", "is_reference", "editable_properties"}


class NodeType(str, Enum):
    """The ten node kinds a workflow node can carry."""
    BEGIN = "begin"
    END = "end"
    EXCEPTION = "exception"
    PROCESS = "process"
    DECISION = "decision"
    DECISION_TABLE = "decision_table"
    SUBPROCESS = "subprocess"
    CONCURRENT = "concurrent"
    AUTO = "auto"
    API = "api"


class WorkflowBaseModel(BaseModel):
    """Shared model config: camelCase aliases, snake_case attributes."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Dump with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


class Position(WorkflowBaseModel):
    """Diagram coordinates. Carried through untouched by the engine."""
    x: float = 0
    y: float = 0


class Size(WorkflowBaseModel):
    """Width and height of a diagram element."""
    width: float = 0
    height: float = 0


class TestData(WorkflowBaseModel):
    """A test case bound to one outgoing edge of a node.

    Attributes:
        id: Unique id of the test case
        name: Display name
        input_data: Input handed to the executor
        expected_output: Output the edge is expected to produce
        edge_binding: Id of the outgoing edge the test belongs to
    """
    __test__ = False

    id: str
    name: str = ""
    input_data: Any = None
    expected_output: Any = None
    edge_binding: str = ""


ActionType = Literal["api_call", "script", "webhook"]


class AutomationAction(WorkflowBaseModel):
    """An automation step bound to one outgoing edge of a node.

    Attributes:
        id: Unique id of the action
        name: Display name
        action_type: One of api_call, script or webhook
        configuration: Type specific settings (url, method, code, ...)
        edge_binding: Id of the outgoing edge the action belongs to
    """
    id: str
    name: str = ""
    action_type: ActionType = "api_call"
    configuration: Dict[str, Any] = Field(default_factory=dict)
    edge_binding: str = ""


class NodeValidationResult(WorkflowBaseModel):
    """Outcome of validating a single node."""
    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class WorkflowNode(WorkflowBaseModel):
    """Fields shared by every node kind.

    Attributes:
        id: Unique identifier within a model
        type: Node kind tag, narrowed to a literal by each subclass
        name: Display name, not required to be unique
        properties: Open bag of extra settings (``stepDisplay`` is recognised)
        position: Diagram coordinates
        test_data: Test cases bound to outgoing edges
        automation_actions: Automation steps bound to outgoing edges
        source_node_id: Id of the node this one mirrors, for references
        is_reference: Whether this node is a reference clone
        editable_properties: Fields a reference may change
    """
    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    name: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)
    test_data: List[TestData] = Field(default_factory=list)
    automation_actions: List[AutomationAction] = Field(default_factory=list)
    source_node_id: Optional[str] = None
    is_reference: bool = False
    editable_properties: Optional[Tuple[str, ...]] = None

    @property
    def kind(self) -> NodeType:
        """The node's type tag as a NodeType member."""
        return NodeType(self.type)

    @property
    def step_display(self) -> Optional[bool]:
        return self.properties.get(STEP_DISPLAY)

    def has_field(self, name: str) -> bool:
        """Check whether a field is present on this node.

        Declared fields always count. Undeclared data carried in from an
        external source counts under either its snake_case or camelCase key.
        """
        if name in type(self).model_fields:
            return True
        extra = self.model_extra or {}
        return name in extra or to_camel(name) in extra

    def to_dict(self) -> Dict[str, Any]:
        """Dump with camelCase keys, omitting the reference overlay on plain nodes."""
        exclude = set() if self.is_reference else set(REFERENCE_FIELDS)
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)


def has_expected_value(node: WorkflowNode) -> bool:
    """Return True when the node carries an ``expectedValue`` field."""
    return node.has_field("expected_value")
