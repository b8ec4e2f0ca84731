"""Graph algorithms over id-restricted subgraphs.

Every function takes an edge collection and a subset of node ids, and only
considers edges whose source and target both lie in the subset. Edges that
leave the subset are ignored without being reported.

Provided operations:
1. ``build_adjacency`` - forward and reverse adjacency lists
2. ``detect_cycle`` - iterative DFS that reconstructs the cycle path
3. ``topological_sort`` - Kahn's algorithm, None when cyclic
4. ``find_reachable`` - BFS from a set of entry ids
5. ``analyze_structure`` - start/end/internal/disconnected/unreachable/merge
   classification
"""

from collections import deque
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Set, Tuple

from pydantic import BaseModel, Field

from workflowgraph.core.logging import get_logger, LogComponent, log_verbose

logger = get_logger(LogComponent.ALGORITHMS)


class EdgeLike(Protocol):
    source: str
    target: str


class Adjacency(BaseModel):
    """Forward and reverse adjacency restricted to a node subset.

    Both maps hold an entry for every subset id, in subset order. Parallel
    edges appear once per edge.
    """
    nodes: List[str] = Field(default_factory=list)
    forward: Dict[str, List[str]] = Field(default_factory=dict)
    reverse: Dict[str, List[str]] = Field(default_factory=dict)

    def in_degree(self, node_id: str) -> int:
        return len(self.reverse.get(node_id, ()))

    def out_degree(self, node_id: str) -> int:
        return len(self.forward.get(node_id, ()))


class CycleDetectionResult(BaseModel):
    has_cycle: bool = False
    cycle_path: List[str] = Field(default_factory=list)


class NodeRole(str, Enum):
    START = "start"
    END = "end"
    INTERNAL = "internal"
    DISCONNECTED = "disconnected"


class StructureAnalysis(BaseModel):
    """Structural classification of a subgraph.

    ``is_valid`` is the strict shape check: no disconnected ids and at least
    one start and one end id.
    """
    roles: Dict[str, NodeRole] = Field(default_factory=dict)
    start_nodes: List[str] = Field(default_factory=list)
    end_nodes: List[str] = Field(default_factory=list)
    internal_nodes: List[str] = Field(default_factory=list)
    disconnected_nodes: List[str] = Field(default_factory=list)
    unreachable_nodes: List[str] = Field(default_factory=list)
    multiple_path_nodes: List[str] = Field(default_factory=list)
    is_valid: bool = False


def _ordered_subset(node_ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(node_ids))


def build_adjacency(edges: Iterable[EdgeLike], node_ids: Iterable[str]) -> Adjacency:
    """Build adjacency lists for the subgraph induced by ``node_ids``."""
    subset = _ordered_subset(node_ids)
    members = set(subset)
    forward: Dict[str, List[str]] = {node_id: [] for node_id in subset}
    reverse: Dict[str, List[str]] = {node_id: [] for node_id in subset}

    for edge in edges:
        if edge.source in members and edge.target in members:
            forward[edge.source].append(edge.target)
            reverse[edge.target].append(edge.source)

    return Adjacency(nodes=subset, forward=forward, reverse=reverse)


def _cycle_from_frames(frames: List[Tuple[str, Iterator[str]]], revisited: str) -> List[str]:
    """The cycle closed by an edge back to ``revisited``, as a closed id path."""
    path = [node_id for node_id, _ in frames]
    start = path.index(revisited)
    return path[start:] + [revisited]


def detect_cycle(edges: Iterable[EdgeLike], node_ids: Iterable[str]) -> CycleDetectionResult:
    """Find a cycle in the subgraph, if any.

    Runs an iterative depth-first search from every unvisited subset id.
    When an edge reaches a node that is still on the DFS stack, the cycle is
    the stack from that node's frame to the top, with the revisited id
    repeated at the end. A 3-node ring therefore yields a 4-element path
    whose first and last entries are equal.
    """
    adjacency = build_adjacency(edges, node_ids)
    return detect_cycle_in(adjacency)


def detect_cycle_in(adjacency: Adjacency) -> CycleDetectionResult:
    visited: Set[str] = set()
    on_stack: Set[str] = set()

    for root in adjacency.nodes:
        if root in visited:
            continue

        frames: List[Tuple[str, Iterator[str]]] = [(root, iter(adjacency.forward[root]))]
        visited.add(root)
        on_stack.add(root)

        while frames:
            node_id, neighbours = frames[-1]
            advanced = False
            for neighbour in neighbours:
                if neighbour in on_stack:
                    cycle = _cycle_from_frames(frames, neighbour)
                    log_verbose(logger, f"Cycle found: {' -> '.join(cycle)}")
                    return CycleDetectionResult(has_cycle=True, cycle_path=cycle)
                if neighbour not in visited:
                    visited.add(neighbour)
                    on_stack.add(neighbour)
                    frames.append((neighbour, iter(adjacency.forward[neighbour])))
                    advanced = True
                    break
            if not advanced:
                frames.pop()
                on_stack.discard(node_id)

    return CycleDetectionResult()


def topological_sort(edges: Iterable[EdgeLike], node_ids: Iterable[str]) -> Optional[List[str]]:
    """Order the subgraph with Kahn's algorithm.

    Zero in-degree ids are taken in discovery order (subset order first,
    then as they are freed).

    Returns:
        A permutation of the subset respecting every edge, or None if the
        subgraph has a cycle
    """
    adjacency = build_adjacency(edges, node_ids)
    return topological_sort_in(adjacency)


def topological_sort_in(adjacency: Adjacency) -> Optional[List[str]]:
    in_degree = {node_id: adjacency.in_degree(node_id) for node_id in adjacency.nodes}
    queue = deque(node_id for node_id in adjacency.nodes if in_degree[node_id] == 0)
    order: List[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)
        for neighbour in adjacency.forward[node_id]:
            in_degree[neighbour] -= 1
            if in_degree[neighbour] == 0:
                queue.append(neighbour)

    if len(order) < len(adjacency.nodes):
        log_verbose(logger, f"No topological order: {len(adjacency.nodes) - len(order)} ids left in cycles")
        return None
    return order


def find_reachable(adjacency: Adjacency, sources: Iterable[str]) -> Set[str]:
    """Breadth-first search from ``sources`` over the forward adjacency."""
    reached: Set[str] = set()
    queue = deque()
    for source in sources:
        if source in adjacency.forward and source not in reached:
            reached.add(source)
            queue.append(source)

    while queue:
        node_id = queue.popleft()
        for neighbour in adjacency.forward[node_id]:
            if neighbour not in reached:
                reached.add(neighbour)
                queue.append(neighbour)
    return reached


def entry_points(adjacency: Adjacency) -> List[str]:
    """Subset ids with no incoming edge inside the subset."""
    return [node_id for node_id in adjacency.nodes if adjacency.in_degree(node_id) == 0]


def find_disconnected(adjacency: Adjacency) -> List[str]:
    """Ids with neither incoming nor outgoing edges.

    A subset with a single member never reports it as disconnected.
    """
    if len(adjacency.nodes) <= 1:
        return []
    return [
        node_id for node_id in adjacency.nodes
        if adjacency.in_degree(node_id) == 0 and adjacency.out_degree(node_id) == 0
    ]


def analyze_structure(edges: Iterable[EdgeLike], node_ids: Iterable[str]) -> StructureAnalysis:
    """Classify every id of the subgraph by its position in the flow."""
    adjacency = build_adjacency(edges, node_ids)
    return analyze_structure_in(adjacency)


def analyze_structure_in(adjacency: Adjacency) -> StructureAnalysis:
    analysis = StructureAnalysis()
    reachable = find_reachable(adjacency, entry_points(adjacency))
    disconnected = set(find_disconnected(adjacency))

    for node_id in adjacency.nodes:
        incoming = adjacency.in_degree(node_id)
        outgoing = adjacency.out_degree(node_id)

        if node_id in disconnected:
            role = NodeRole.DISCONNECTED
            analysis.disconnected_nodes.append(node_id)
        elif incoming == 0 and outgoing > 0:
            role = NodeRole.START
            analysis.start_nodes.append(node_id)
        elif outgoing == 0 and incoming > 0:
            role = NodeRole.END
            analysis.end_nodes.append(node_id)
        else:
            role = NodeRole.INTERNAL
            analysis.internal_nodes.append(node_id)
        analysis.roles[node_id] = role

        if node_id not in reachable and node_id not in disconnected:
            analysis.unreachable_nodes.append(node_id)
        if incoming > 1:
            analysis.multiple_path_nodes.append(node_id)

    analysis.is_valid = (
        not analysis.disconnected_nodes
        and bool(analysis.start_nodes)
        and bool(analysis.end_nodes)
    )
    return analysis
