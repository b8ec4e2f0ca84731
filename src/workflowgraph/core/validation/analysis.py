"""Project Statistics and Health Analysis

Summaries of a whole ``WorkflowModel`` for dashboards and project views:
1. ``calculate_workflow_statistics`` - element totals, node type
   distribution, model version and last update time
2. ``analyze_workflow_project`` - structural issues, optimization
   suggestions, complexity metrics and a 0-100 health score

These checks are advisory and independent of ``WorkflowValidationService``.
They never block a save.

Example:
    ```python
    analysis = analyze_workflow_project(model)
    if analysis.health_score < 60:
        for issue in analysis.issues:
            print(issue.code, issue.location)
    ```
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from pydantic import Field

from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.base.node import NodeType, WorkflowBaseModel
from workflowgraph.core.logging import get_logger, log_verbose, LogComponent
from workflowgraph.core.validation.results import Severity

logger = get_logger(LogComponent.VALIDATION)

LONG_CHAIN_THRESHOLD = 10
MANY_DECISIONS_THRESHOLD = 5
HIGH_CYCLOMATIC_COMPLEXITY = 10
DEEP_NESTING = 5
MANY_PATHS = 32

ISSUE_PENALTIES: Dict[Severity, int] = {
    Severity.ERROR: 20,
    Severity.WARNING: 10,
    Severity.INFO: 2,
}


class IssueCode(str, Enum):
    MISSING_START_NODE = "MISSING_START_NODE"
    MULTIPLE_START_NODES = "MULTIPLE_START_NODES"
    MISSING_END_NODE = "MISSING_END_NODE"
    NO_INCOMING_EDGE = "NO_INCOMING_EDGE"
    NO_OUTGOING_EDGE = "NO_OUTGOING_EDGE"
    PROCESS_MULTIPLE_OUTGOING = "PROCESS_MULTIPLE_OUTGOING"
    DECISION_DUPLICATE_VALUES = "DECISION_DUPLICATE_VALUES"


class SuggestionType(str, Enum):
    PERFORMANCE = "performance"
    READABILITY = "readability"
    MAINTAINABILITY = "maintainability"


class SuggestionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WorkflowProjectStatistics(WorkflowBaseModel):
    total_workflows: int = 1
    total_nodes: int = 0
    total_edges: int = 0
    total_swimlanes: int = 0
    node_type_distribution: Dict[str, int] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None
    version: str = ""


class WorkflowIssue(WorkflowBaseModel):
    """A structural problem found by project analysis.

    Attributes:
        severity: error, warning or info
        code: One of IssueCode
        message: English message
        message_zh: Chinese message
        location: Id of the node the issue is about, if any
    """
    severity: Severity
    code: IssueCode
    message: str
    message_zh: str = ""
    location: Optional[str] = None


class WorkflowSuggestion(WorkflowBaseModel):
    type: SuggestionType
    message: str
    message_zh: str = ""
    priority: SuggestionPriority = SuggestionPriority.LOW


class WorkflowComplexity(WorkflowBaseModel):
    """Size and shape metrics.

    Attributes:
        cyclomatic_complexity: ``edges - nodes + 2``, at least 1
        nesting_depth: Longest simple path in edges from any Begin node
        branching_factor: Edges per node, rounded to two places
        path_count: ``2 ** decision nodes``
    """
    cyclomatic_complexity: int = 1
    nesting_depth: int = 0
    branching_factor: float = 0.0
    path_count: int = 1


class WorkflowProjectAnalysis(WorkflowBaseModel):
    health_score: int = 100
    issues: List[WorkflowIssue] = Field(default_factory=list)
    suggestions: List[WorkflowSuggestion] = Field(default_factory=list)
    complexity: WorkflowComplexity = Field(default_factory=WorkflowComplexity)


def calculate_workflow_statistics(model: WorkflowModel) -> WorkflowProjectStatistics:
    """Count the elements of ``model`` and group its nodes by type."""
    distribution: Dict[str, int] = {}
    for node in model.get_all_nodes():
        distribution[node.type] = distribution.get(node.type, 0) + 1

    return WorkflowProjectStatistics(
        total_nodes=len(model.nodes),
        total_edges=len(model.edges),
        total_swimlanes=len(model.swimlanes),
        node_type_distribution=distribution,
        last_updated=model.metadata.updated_at,
        version=model.metadata.version,
    )


def analyze_workflow_project(model: WorkflowModel) -> WorkflowProjectAnalysis:
    """Run the structural checks, suggestions and complexity metrics over ``model``.

    Args:
        model: Workflow to analyze

    Returns:
        Issues, suggestions, complexity metrics and the resulting health score
    """
    issues = find_structure_issues(model)
    suggestions = find_optimization_suggestions(model)
    complexity = calculate_complexity(model)
    score = calculate_health_score(issues, complexity)

    logger.info(
        f"Analyzed workflow {model.id}: score {score}, "
        f"{len(issues)} issues, {len(suggestions)} suggestions"
    )
    return WorkflowProjectAnalysis(
        health_score=score,
        issues=issues,
        suggestions=suggestions,
        complexity=complexity,
    )


def _forward_map(edges: Iterable[WorkflowEdge]) -> Dict[str, List[str]]:
    forward: Dict[str, List[str]] = {}
    for edge in edges:
        forward.setdefault(edge.source, []).append(edge.target)
    return forward


def _is_terminal(node_type: str) -> bool:
    return node_type in (NodeType.END.value, NodeType.EXCEPTION.value)


def find_structure_issues(model: WorkflowModel) -> List[WorkflowIssue]:
    """Start and end nodes, unconnected sides, Process fan-out, Decision values."""
    nodes = model.get_all_nodes()
    edges = model.get_all_edges()
    issues: List[WorkflowIssue] = []

    start_count = sum(1 for n in nodes if n.type == NodeType.BEGIN.value)
    if start_count == 0:
        issues.append(WorkflowIssue(
            severity=Severity.ERROR,
            code=IssueCode.MISSING_START_NODE,
            message="Workflow has no start node",
            message_zh="工作流程缺少开始节点",
        ))
    elif start_count > 1:
        issues.append(WorkflowIssue(
            severity=Severity.WARNING,
            code=IssueCode.MULTIPLE_START_NODES,
            message=f"Workflow has multiple start nodes ({start_count})",
            message_zh=f"工作流程包含多个开始节点 ({start_count})",
        ))

    if not any(_is_terminal(n.type) for n in nodes):
        issues.append(WorkflowIssue(
            severity=Severity.ERROR,
            code=IssueCode.MISSING_END_NODE,
            message="Workflow has no end node",
            message_zh="工作流程缺少结束节点",
        ))

    sources = {e.source for e in edges}
    targets = {e.target for e in edges}
    for node in nodes:
        if node.type != NodeType.BEGIN.value and node.id not in targets:
            issues.append(WorkflowIssue(
                severity=Severity.WARNING,
                code=IssueCode.NO_INCOMING_EDGE,
                message=f'Node "{node.name}" has no incoming edge',
                message_zh=f'节点 "{node.name}" 没有入边',
                location=node.id,
            ))
        if not _is_terminal(node.type) and node.id not in sources:
            issues.append(WorkflowIssue(
                severity=Severity.WARNING,
                code=IssueCode.NO_OUTGOING_EDGE,
                message=f'Node "{node.name}" has no outgoing edge',
                message_zh=f'节点 "{node.name}" 没有出边',
                location=node.id,
            ))

    for node in nodes:
        if node.type == NodeType.PROCESS.value:
            outgoing = len(model.get_outgoing_edges(node.id))
            if outgoing > 1:
                issues.append(WorkflowIssue(
                    severity=Severity.ERROR,
                    code=IssueCode.PROCESS_MULTIPLE_OUTGOING,
                    message=f'Process node "{node.name}" has {outgoing} outgoing edges, only one is allowed',
                    message_zh=f'过程节点 "{node.name}" 有多条出边 ({outgoing})，只允许一条',
                    location=node.id,
                ))

    for node in nodes:
        if node.type == NodeType.DECISION.value:
            values = [e.value for e in model.get_outgoing_edges(node.id) if e.value is not None]
            if len(values) != len(set(values)):
                issues.append(WorkflowIssue(
                    severity=Severity.ERROR,
                    code=IssueCode.DECISION_DUPLICATE_VALUES,
                    message=f'Decision node "{node.name}" has duplicate outgoing edge values',
                    message_zh=f'分支节点 "{node.name}" 的输出边值不唯一',
                    location=node.id,
                ))

    log_verbose(logger, f"Workflow {model.id}: {len(issues)} structure issues")
    return issues


def find_optimization_suggestions(model: WorkflowModel) -> List[WorkflowSuggestion]:
    """Long chains, many decisions, empty swimlanes, undocumented nodes."""
    nodes = model.get_all_nodes()
    forward = _forward_map(model.get_all_edges())
    suggestions: List[WorkflowSuggestion] = []

    longest_chain = max(
        (chain_length(n.id, forward) for n in nodes if n.type == NodeType.BEGIN.value),
        default=0,
    )
    if longest_chain > LONG_CHAIN_THRESHOLD:
        suggestions.append(WorkflowSuggestion(
            type=SuggestionType.READABILITY,
            priority=SuggestionPriority.MEDIUM,
            message=f"Workflow has a long sequential chain ({longest_chain} nodes); consider grouping it into a subprocess",
            message_zh=f"工作流程包含较长的顺序链 ({longest_chain} 个节点)，考虑使用子流程进行分组",
        ))

    decisions = sum(1 for n in nodes if n.type == NodeType.DECISION.value)
    if decisions > MANY_DECISIONS_THRESHOLD:
        suggestions.append(WorkflowSuggestion(
            type=SuggestionType.MAINTAINABILITY,
            priority=SuggestionPriority.MEDIUM,
            message=f"Workflow has many decision nodes ({decisions}); consider a decision table",
            message_zh=f"工作流程包含较多分支节点 ({decisions})，考虑使用决策表简化逻辑",
        ))

    for swimlane in model.get_all_swimlanes():
        if not swimlane.contained_nodes:
            suggestions.append(WorkflowSuggestion(
                type=SuggestionType.MAINTAINABILITY,
                priority=SuggestionPriority.LOW,
                message=f'Swimlane "{swimlane.name}" is empty; remove it or add nodes',
                message_zh=f'泳道 "{swimlane.name}" 为空，考虑删除或添加节点',
            ))

    undocumented = sum(1 for n in nodes if not n.properties.get("description"))
    if undocumented > len(nodes) * 0.5:
        suggestions.append(WorkflowSuggestion(
            type=SuggestionType.READABILITY,
            priority=SuggestionPriority.LOW,
            message="More than half of the nodes have no description",
            message_zh="超过一半的节点没有描述，建议添加描述以提高可读性",
        ))

    return suggestions


def chain_length(start: str, forward: Dict[str, List[str]]) -> int:
    """Nodes on the longest branch of a depth-first walk from ``start``.

    Nodes already reached through an earlier branch count as zero, so each
    node is counted at most once.
    """
    visited: Set[str] = {start}
    # Each frame is [node, remaining children, longest child chain so far]
    stack = [[start, iter(forward.get(start, ())), 0]]
    length = 0
    while stack:
        frame = stack[-1]
        child = next(frame[1], None)
        if child is None:
            stack.pop()
            length = 1 + frame[2]
            if stack:
                stack[-1][2] = max(stack[-1][2], length)
        elif child not in visited:
            visited.add(child)
            stack.append([child, iter(forward.get(child, ())), 0])
    return length


def nesting_depth(start: str, forward: Dict[str, List[str]]) -> int:
    """Edges on the longest simple path from ``start``.

    An edge back onto the current path still counts once. Every simple path
    is walked, so this is exponential on densely branching graphs.
    """
    on_path: Set[str] = {start}
    stack = [(start, iter(forward.get(start, ())), 0)]
    deepest = 0
    while stack:
        node, children, depth = stack[-1]
        child = next(children, None)
        if child is None:
            deepest = max(deepest, depth)
            on_path.discard(node)
            stack.pop()
        elif child in on_path:
            deepest = max(deepest, depth + 1)
        else:
            on_path.add(child)
            stack.append((child, iter(forward.get(child, ())), depth + 1))
    return deepest


def calculate_complexity(model: WorkflowModel) -> WorkflowComplexity:
    nodes = model.get_all_nodes()
    node_count, edge_count = len(nodes), len(model.edges)
    forward = _forward_map(model.get_all_edges())

    depth = max(
        (nesting_depth(n.id, forward) for n in nodes if n.type == NodeType.BEGIN.value),
        default=0,
    )
    decisions = sum(1 for n in nodes if n.type == NodeType.DECISION.value)
    return WorkflowComplexity(
        cyclomatic_complexity=max(1, edge_count - node_count + 2),
        nesting_depth=depth,
        branching_factor=round(edge_count / node_count, 2) if node_count else 0.0,
        path_count=2 ** decisions,
    )


def calculate_health_score(issues: List[WorkflowIssue], complexity: WorkflowComplexity) -> int:
    """Start from 100, subtract per issue and for high complexity, clamp to 0-100."""
    score = 100
    for issue in issues:
        score -= ISSUE_PENALTIES[issue.severity]

    if complexity.cyclomatic_complexity > HIGH_CYCLOMATIC_COMPLEXITY:
        score -= 10
    if complexity.nesting_depth > DEEP_NESTING:
        score -= 5
    if complexity.path_count > MANY_PATHS:
        score -= 10

    return max(0, min(100, score))
