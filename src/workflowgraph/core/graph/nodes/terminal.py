"""Terminal nodes: where a workflow starts and where it stops."""

from typing import Any, Literal

from workflowgraph.core.graph.nodes.base.node import WorkflowNode


class BeginNode(WorkflowNode):
    """Entry point of a workflow. Never carries an expected value."""
    type: Literal["begin"] = "begin"


class EndNode(WorkflowNode):
    """Normal exit of a workflow.

    ``expected_value`` is always present, and is None when nothing was supplied.
    """
    type: Literal["end"] = "end"
    expected_value: Any = None


class ExceptionNode(WorkflowNode):
    """Exceptional exit of a workflow. Carries an expected value like EndNode."""
    type: Literal["exception"] = "exception"
    expected_value: Any = None
