"""Concurrent Processes

A concurrent process is a parallel region of a workflow: a start marker, an
end marker, a list of named branches, and the set of node ids the region
contains. This module provides:
1. The raw data shapes (``ConcurrentProcessData``, ``ConcurrentBranch``)
2. ``validate_concurrent_structure``, the composite structural check used
   by both the manager and whole-model validation
3. ``ConcurrentProcessManager``, which edits a region and answers graph
   questions about it using the algorithms module

Two notions of "valid" coexist on purpose. ``validate()`` answers whether
the region is structurally sound (no illegal members, no cycle).
``analyze_structure().is_valid`` is the stricter shape check that also
wants a start id, an end id and no disconnected ids.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import Field

from workflowgraph.core.graph import algorithms
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.base.node import (
    NodeType,
    NodeValidationResult,
    WorkflowBaseModel,
    WorkflowNode,
)
from workflowgraph.core.graph.nodes.flow import CONCURRENT_END, CONCURRENT_START, SUB_TYPE
from workflowgraph.core.graph.nodes.kinds import ILLEGAL_CONCURRENT_MEMBERS
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.CONCURRENT)

_ILLEGAL_LABELS = {
    NodeType.BEGIN: "begin node",
    NodeType.END: "end node",
    NodeType.EXCEPTION: "exception node",
}


class ConcurrentBranch(WorkflowBaseModel):
    id: str
    name: str = ""
    node_ids: List[str] = Field(default_factory=list)
    start_node_id: Optional[str] = None
    end_node_id: Optional[str] = None


class ConcurrentProcessData(WorkflowBaseModel):
    """Raw shape of a concurrent region.

    ``contained_node_ids`` is a superset of every branch's ``node_ids``.
    """
    id: str
    concurrent_start_node_id: str = ""
    concurrent_end_node_id: str = ""
    branches: List[ConcurrentBranch] = Field(default_factory=list)
    contained_node_ids: List[str] = Field(default_factory=list)


class ConcurrentValidationResult(NodeValidationResult):
    has_cycle: bool = False
    cycle_path: List[str] = Field(default_factory=list)
    invalid_nodes: List[str] = Field(default_factory=list)
    unreachable_nodes: List[str] = Field(default_factory=list)
    disconnected_nodes: List[str] = Field(default_factory=list)


class ConcurrentOperationResult(WorkflowBaseModel):
    success: bool
    error: Optional[str] = None


def _display_name(nodes: Mapping[str, WorkflowNode], node_id: str) -> str:
    node = nodes.get(node_id)
    return node.name if node is not None and node.name else node_id


def validate_concurrent_structure(
    nodes: Mapping[str, WorkflowNode],
    edges: Iterable[WorkflowEdge],
    contained_node_ids: Iterable[str],
) -> ConcurrentValidationResult:
    """Check a region for illegal members, cycles, disconnected and unreachable ids.

    Every check runs and contributes findings; nothing short-circuits.
    Only the first two produce errors.

    Args:
        nodes: Node lookup used for kinds and display names
        edges: Candidate edges, those leaving the region are ignored
        contained_node_ids: Ids inside the region

    Returns:
        The combined result. ``is_valid`` reflects errors only.
    """
    result = ConcurrentValidationResult()
    adjacency = algorithms.build_adjacency(edges, contained_node_ids)

    # Illegal members
    for node_id in adjacency.nodes:
        node = nodes.get(node_id)
        if node is None or node.kind not in ILLEGAL_CONCURRENT_MEMBERS:
            continue
        result.errors.append(
            f"Concurrent process cannot contain {_ILLEGAL_LABELS[node.kind]}: "
            f"{_display_name(nodes, node_id)}"
        )
        result.invalid_nodes.append(node_id)

    # Cycles
    cycle = algorithms.detect_cycle_in(adjacency)
    if cycle.has_cycle:
        result.has_cycle = True
        result.cycle_path = cycle.cycle_path
        chain = " -> ".join(_display_name(nodes, node_id) for node_id in cycle.cycle_path)
        result.errors.append(f"Concurrent process cannot contain cycles: {chain}")

    # Disconnected members, single-member regions excepted
    disconnected = algorithms.find_disconnected(adjacency)
    for node_id in disconnected:
        result.warnings.append(
            f'Node "{_display_name(nodes, node_id)}" is not connected to any other node '
            f"in the concurrent process"
        )
    result.disconnected_nodes = disconnected

    # Unreachable from entry points
    entries = algorithms.entry_points(adjacency)
    if entries:
        reached = algorithms.find_reachable(adjacency, entries)
        flagged = set(disconnected)
        for node_id in adjacency.nodes:
            if node_id in reached or node_id in flagged:
                continue
            result.unreachable_nodes.append(node_id)
            result.warnings.append(
                f'Node "{_display_name(nodes, node_id)}" is unreachable from the '
                f"concurrent process entry points"
            )

    result.is_valid = not result.errors
    return result


def is_concurrent_start_node(node: WorkflowNode) -> bool:
    return node.kind == NodeType.CONCURRENT and node.properties.get(SUB_TYPE) == CONCURRENT_START


def is_concurrent_end_node(node: WorkflowNode) -> bool:
    return node.kind == NodeType.CONCURRENT and node.properties.get(SUB_TYPE) == CONCURRENT_END


class ConcurrentProcessManager:
    """Owns one concurrent region plus a local cache of nodes and edges.

    The cache is what graph queries run against, so callers keep it current
    with ``add_node``/``add_edge`` or ``update_graph``.

    Args:
        data: Existing region data. A new region is created when omitted.
        nodes: Initial node cache
        edges: Initial edge cache
        id_generator: Source of ``concurrent_process_n`` and ``branch_n`` ids
    """

    def __init__(
        self,
        data: Optional[ConcurrentProcessData] = None,
        nodes: Optional[Iterable[WorkflowNode]] = None,
        edges: Optional[Iterable[WorkflowEdge]] = None,
        id_generator: Optional[IdGenerator] = None,
        start_node_id: str = "",
        end_node_id: str = "",
    ):
        self.ids = id_generator or IdGenerator()
        self.data = data.model_copy(deep=True) if data is not None else ConcurrentProcessData(
            id=self.ids.next_id("concurrent_process"),
            concurrent_start_node_id=start_node_id,
            concurrent_end_node_id=end_node_id,
        )
        self._nodes: Dict[str, WorkflowNode] = {n.id: n for n in (nodes or [])}
        self._edges: Dict[str, WorkflowEdge] = {e.id: e for e in (edges or [])}
        self._observe_ids()

    def _observe_ids(self) -> None:
        self.ids.observe([self.data.id, *(b.id for b in self.data.branches)])

    @property
    def id(self) -> str:
        return self.data.id

    @property
    def contained_node_ids(self) -> List[str]:
        return list(self.data.contained_node_ids)

    # Cache

    def update_graph(self, nodes: Iterable[WorkflowNode], edges: Iterable[WorkflowEdge]) -> None:
        """Replace the node and edge cache."""
        self._nodes = {n.id: n for n in nodes}
        self._edges = {e.id: e for e in edges}

    def add_edge(self, edge: WorkflowEdge) -> None:
        self._edges[edge.id] = edge

    def remove_edge(self, edge_id: str) -> bool:
        return self._edges.pop(edge_id, None) is not None

    def get_edges(self) -> List[WorkflowEdge]:
        return list(self._edges.values())

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self._nodes.get(node_id)

    # Members

    def can_add_node(self, node: WorkflowNode) -> bool:
        return node.kind not in ILLEGAL_CONCURRENT_MEMBERS

    def add_node(self, node: WorkflowNode) -> ConcurrentOperationResult:
        """Add a member node. Begin, End and Exception nodes are refused."""
        if not self.can_add_node(node):
            error = f'Node type "{node.type}" is not allowed in a concurrent process: {node.name or node.id}'
            logger.warning(f"Concurrent process {self.id}: {error}")
            return ConcurrentOperationResult(success=False, error=error)

        self._nodes[node.id] = node
        if node.id not in self.data.contained_node_ids:
            self.data.contained_node_ids.append(node.id)
        logger.debug(f"Concurrent process {self.id}: added node {node.id}")
        return ConcurrentOperationResult(success=True)

    def remove_node(self, node_id: str) -> bool:
        """Drop a member from the region, its branches, and the local cache."""
        if node_id not in self.data.contained_node_ids and node_id not in self._nodes:
            return False
        self.data.contained_node_ids = [n for n in self.data.contained_node_ids if n != node_id]
        for branch in self.data.branches:
            branch.node_ids = [n for n in branch.node_ids if n != node_id]
            if branch.start_node_id == node_id:
                branch.start_node_id = None
            if branch.end_node_id == node_id:
                branch.end_node_id = None
        self._nodes.pop(node_id, None)
        self._edges = {
            k: e for k, e in self._edges.items() if e.source != node_id and e.target != node_id
        }
        logger.debug(f"Concurrent process {self.id}: removed node {node_id}")
        return True

    def contains_node(self, node_id: str) -> bool:
        return node_id in self.data.contained_node_ids

    # Branches

    def create_branch(self, name: str, node_ids: Optional[Iterable[str]] = None) -> ConcurrentBranch:
        branch = ConcurrentBranch(id=self.ids.next_id("branch"), name=name)
        self.data.branches.append(branch)
        for node_id in node_ids or []:
            self.add_node_to_branch(branch.id, node_id)
        logger.debug(f"Concurrent process {self.id}: created branch {branch.id}")
        return branch

    def get_branch(self, branch_id: str) -> Optional[ConcurrentBranch]:
        return next((b for b in self.data.branches if b.id == branch_id), None)

    def get_branches(self) -> List[ConcurrentBranch]:
        return list(self.data.branches)

    def get_branch_for_node(self, node_id: str) -> Optional[ConcurrentBranch]:
        return next((b for b in self.data.branches if node_id in b.node_ids), None)

    def update_branch(
        self,
        branch_id: str,
        name: Optional[str] = None,
        start_node_id: Optional[str] = None,
        end_node_id: Optional[str] = None,
    ) -> Optional[ConcurrentBranch]:
        branch = self.get_branch(branch_id)
        if branch is None:
            return None
        if name is not None:
            branch.name = name
        if start_node_id is not None:
            branch.start_node_id = start_node_id
        if end_node_id is not None:
            branch.end_node_id = end_node_id
        return branch

    def delete_branch(self, branch_id: str) -> bool:
        """Remove a branch. Its nodes stay in the region."""
        before = len(self.data.branches)
        self.data.branches = [b for b in self.data.branches if b.id != branch_id]
        return len(self.data.branches) < before

    def add_node_to_branch(self, branch_id: str, node_id: str) -> ConcurrentOperationResult:
        """Put a node on a branch, enrolling it in the region if needed."""
        branch = self.get_branch(branch_id)
        if branch is None:
            return ConcurrentOperationResult(success=False, error=f'Branch "{branch_id}" does not exist')

        node = self._nodes.get(node_id)
        if node is not None and not self.can_add_node(node):
            error = f'Node type "{node.type}" is not allowed in a concurrent process: {node.name or node.id}'
            logger.warning(f"Concurrent process {self.id}: {error}")
            return ConcurrentOperationResult(success=False, error=error)

        if node_id not in branch.node_ids:
            branch.node_ids.append(node_id)
        if node_id not in self.data.contained_node_ids:
            self.data.contained_node_ids.append(node_id)
        return ConcurrentOperationResult(success=True)

    def remove_node_from_branch(self, branch_id: str, node_id: str) -> bool:
        branch = self.get_branch(branch_id)
        if branch is None or node_id not in branch.node_ids:
            return False
        branch.node_ids.remove(node_id)
        return True

    # Graph queries

    def validate(self) -> ConcurrentValidationResult:
        result = validate_concurrent_structure(
            self._nodes, self._edges.values(), self.data.contained_node_ids
        )
        if not result.is_valid:
            logger.info(f"Concurrent process {self.id} is invalid: {result.errors}")
        return result

    def analyze_structure(self) -> algorithms.StructureAnalysis:
        return algorithms.analyze_structure(self._edges.values(), self.data.contained_node_ids)

    def get_topological_order(self) -> Optional[List[str]]:
        return algorithms.topological_sort(self._edges.values(), self.data.contained_node_ids)

    def has_cycle(self) -> bool:
        return algorithms.detect_cycle(self._edges.values(), self.data.contained_node_ids).has_cycle

    def get_cycle_path(self) -> List[str]:
        return algorithms.detect_cycle(self._edges.values(), self.data.contained_node_ids).cycle_path

    # Import / export

    def export_to_data(self) -> ConcurrentProcessData:
        return self.data.model_copy(deep=True)

    def import_from_data(self, data: Union[ConcurrentProcessData, Dict[str, Any]]) -> None:
        """Replace the region data. The node and edge cache is left alone."""
        if isinstance(data, dict):
            data = ConcurrentProcessData.model_validate(data)
        self.data = data.model_copy(deep=True)
        self._observe_ids()
        logger.debug(f"Imported concurrent process {self.data.id}")
