"""Flow nodes: process steps, branching, subprocesses and parallel regions.

Decision and Concurrent nodes own small collections (branch conditions,
parallel member ids) and expose helpers that keep those collections
consistent. The helpers mutate the node in place; aggregate-level updates
go through ``WorkflowModel`` which always returns a new model.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from workflowgraph.core.graph.nodes.base.node import WorkflowBaseModel, WorkflowNode
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)

CONCURRENT_START = "concurrent_start"
CONCURRENT_END = "concurrent_end"
SUB_TYPE = "subType"


class ProcessNode(WorkflowNode):
    """A single step with at most one outgoing edge."""
    type: Literal["process"] = "process"


class BranchCondition(WorkflowBaseModel):
    """A labelled outgoing edge discriminator owned by a Decision node."""
    id: str
    value: str = ""
    is_default: bool = False


def default_branches() -> List[BranchCondition]:
    """The two branches every new Decision node starts with."""
    return [
        BranchCondition(id="branch_1", value="true", is_default=False),
        BranchCondition(id="branch_2", value="false", is_default=True),
    ]


class DecisionNode(WorkflowNode):
    """Routes flow along one of several branches selected by value.

    Branch values must stay pairwise unique. Empty values are allowed but
    reported as warnings by the validator.
    """
    type: Literal["decision"] = "decision"
    branches: List[BranchCondition] = Field(default_factory=default_branches)

    def get_branch(self, branch_id: str) -> Optional[BranchCondition]:
        return next((b for b in self.branches if b.id == branch_id), None)

    def get_branch_values(self) -> List[str]:
        return [b.value for b in self.branches]

    def add_branch(
        self,
        value: str,
        is_default: bool = False,
        branch_id: Optional[str] = None
    ) -> Optional[BranchCondition]:
        """Append a branch.

        Args:
            value: Branch value, must not clash with an existing value
            is_default: Mark the new branch as the default one
            branch_id: Explicit id, generated when omitted

        Returns:
            The new branch, or None if the value is already taken
        """
        if value and value in self.get_branch_values():
            logger.warning(f"Decision {self.id}: branch value '{value}' already exists")
            return None

        if branch_id is None:
            taken = {b.id for b in self.branches}
            index = len(self.branches) + 1
            while f"branch_{index}" in taken:
                index += 1
            branch_id = f"branch_{index}"

        branch = BranchCondition(id=branch_id, value=value, is_default=is_default)
        if is_default:
            for existing in self.branches:
                existing.is_default = False
        self.branches.append(branch)
        logger.debug(f"Decision {self.id}: added branch {branch_id}={value!r}")
        return branch

    def remove_branch(self, branch_id: str) -> bool:
        before = len(self.branches)
        self.branches = [b for b in self.branches if b.id != branch_id]
        return len(self.branches) < before

    def update_branch_value(self, branch_id: str, value: str) -> bool:
        """Change a branch value unless another branch already uses it."""
        branch = self.get_branch(branch_id)
        if branch is None:
            return False
        if value and any(b.value == value for b in self.branches if b.id != branch_id):
            logger.warning(f"Decision {self.id}: branch value '{value}' conflicts")
            return False
        branch.value = value
        return True

    def set_default_branch(self, branch_id: str) -> bool:
        if self.get_branch(branch_id) is None:
            return False
        for branch in self.branches:
            branch.is_default = branch.id == branch_id
        return True


class SubprocessNode(WorkflowNode):
    """Delegates to another workflow located by ``reference_path``."""
    type: Literal["subprocess"] = "subprocess"
    reference_path: str = ""


class ConcurrentNode(WorkflowNode):
    """Marks a parallel region. ``parallel_branches`` lists the member node ids."""
    type: Literal["concurrent"] = "concurrent"
    parallel_branches: List[str] = Field(default_factory=list)

    @property
    def sub_type(self) -> Optional[str]:
        return self.properties.get(SUB_TYPE)

    def is_concurrent_start(self) -> bool:
        return self.sub_type == CONCURRENT_START

    def is_concurrent_end(self) -> bool:
        return self.sub_type == CONCURRENT_END

    def add_parallel_branch(self, node_id: str) -> bool:
        if node_id in self.parallel_branches:
            return False
        self.parallel_branches.append(node_id)
        return True

    def remove_parallel_branch(self, node_id: str) -> bool:
        if node_id not in self.parallel_branches:
            return False
        self.parallel_branches.remove(node_id)
        return True


class AutoNode(WorkflowNode):
    """An automated step configured by ``automation_config``."""
    type: Literal["auto"] = "auto"
    automation_config: Optional[Dict[str, Any]] = None


class ApiNode(WorkflowNode):
    """A step that calls an API endpoint."""
    type: Literal["api"] = "api"
    api_endpoint: Optional[str] = None
    api_config: Optional[Dict[str, Any]] = None
