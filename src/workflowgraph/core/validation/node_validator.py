"""Per-node validation.

One rule function per node kind checks the invariants of a single node.
Rules never traverse the graph: anything a node cannot tell about itself
(its outgoing edge count, the kinds of the nodes inside a concurrent
region) arrives through ``ValidationContext``.

Two entry points share the same rules:
    - ``check_node`` returns coded ``WorkflowValidationError`` findings
    - ``validate_node`` flattens them into a ``NodeValidationResult``

A blank name is always a warning, for every kind.
"""

from collections import Counter
from typing import Callable, Dict, List, Optional

from pydantic import AnyUrl, BaseModel, Field, TypeAdapter, ValidationError

from workflowgraph.core.config import get_config
from workflowgraph.core.graph.nodes.base.node import (
    NodeType,
    NodeValidationResult,
    WorkflowNode,
    has_expected_value,
)
from workflowgraph.core.graph.nodes import decision_table as dt
from workflowgraph.core.graph.nodes.kinds import ILLEGAL_CONCURRENT_MEMBERS
from workflowgraph.core.logging import get_logger, LogComponent
from workflowgraph.core.validation.codes import ValidationCode
from workflowgraph.core.validation.results import (
    Severity,
    WorkflowValidationError,
    create_validation_error,
)

logger = get_logger(LogComponent.VALIDATION)

Findings = List[WorkflowValidationError]

NODE_TYPE_LABELS: Dict[NodeType, str] = {
    NodeType.BEGIN: "Begin node",
    NodeType.END: "End node",
    NodeType.EXCEPTION: "Exception node",
    NodeType.PROCESS: "Process node",
    NodeType.DECISION: "Decision node",
    NodeType.DECISION_TABLE: "Decision table node",
    NodeType.SUBPROCESS: "Subprocess node",
    NodeType.CONCURRENT: "Concurrent node",
    NodeType.AUTO: "Auto node",
    NodeType.API: "API node",
}

NODE_TYPE_LABELS_ZH: Dict[NodeType, str] = {
    NodeType.BEGIN: "开始节点",
    NodeType.END: "结束节点",
    NodeType.EXCEPTION: "异常节点",
    NodeType.PROCESS: "过程节点",
    NodeType.DECISION: "分支节点",
    NodeType.DECISION_TABLE: "决策表节点",
    NodeType.SUBPROCESS: "子流程节点",
    NodeType.CONCURRENT: "并发节点",
    NodeType.AUTO: "Auto节点",
    NodeType.API: "API节点",
}

MISSING_NAME_CODES: Dict[NodeType, ValidationCode] = {
    NodeType.BEGIN: ValidationCode.BEGIN_NODE_MISSING_NAME,
    NodeType.END: ValidationCode.END_NODE_MISSING_NAME,
    NodeType.EXCEPTION: ValidationCode.EXCEPTION_NODE_MISSING_NAME,
    NodeType.PROCESS: ValidationCode.PROCESS_NODE_MISSING_NAME,
    NodeType.DECISION: ValidationCode.DECISION_NODE_MISSING_NAME,
    NodeType.DECISION_TABLE: ValidationCode.DECISION_TABLE_MISSING_NAME,
    NodeType.SUBPROCESS: ValidationCode.SUBPROCESS_NODE_MISSING_NAME,
    NodeType.CONCURRENT: ValidationCode.CONCURRENT_NODE_MISSING_NAME,
    NodeType.AUTO: ValidationCode.AUTO_NODE_MISSING_NAME,
    NodeType.API: ValidationCode.API_NODE_MISSING_NAME,
}

ILLEGAL_MEMBER_CODES: Dict[NodeType, ValidationCode] = {
    NodeType.BEGIN: ValidationCode.CONCURRENT_NODE_CONTAINS_BEGIN_NODE,
    NodeType.END: ValidationCode.CONCURRENT_NODE_CONTAINS_END_NODE,
    NodeType.EXCEPTION: ValidationCode.CONCURRENT_NODE_CONTAINS_EXCEPTION_NODE,
}

_DECISION_TABLE_CODES = {
    dt.MISSING_DECISION_COLUMNS: (
        ValidationCode.DECISION_TABLE_MISSING_DECISION_COLUMNS,
        "决策表必须包含至少一个决策列",
        "Add at least one decision column to define the conditions",
        "添加至少一个决策列来定义条件",
    ),
    dt.MISSING_OUTPUT_COLUMNS: (
        ValidationCode.DECISION_TABLE_MISSING_OUTPUT_COLUMNS,
        "决策表必须包含至少一个输出列",
        "Add at least one output column to define the results",
        "添加至少一个输出列来定义结果",
    ),
    dt.DUPLICATE_DECISION_ROWS: (
        ValidationCode.DECISION_TABLE_DUPLICATE_DECISION_ROWS,
        "决策表的决策列内容不能完全相同",
        "Modify the decision values to make each row unique",
        "修改决策值使每行唯一",
    ),
    dt.DUPLICATE_COLUMN_IDS: (
        ValidationCode.DECISION_TABLE_DUPLICATE_COLUMN_IDS,
        "列ID必须唯一",
        "Ensure all column IDs are unique",
        "确保所有列ID都是唯一的",
    ),
    dt.DUPLICATE_ROW_IDS: (
        ValidationCode.DECISION_TABLE_DUPLICATE_ROW_IDS,
        "行ID必须唯一",
        "Ensure all row IDs are unique",
        "确保所有行ID都是唯一的",
    ),
}

_url_adapter = TypeAdapter(AnyUrl)


class ValidationContext(BaseModel):
    """What a node cannot know about itself.

    Attributes:
        outgoing_edge_count: Number of edges leaving the node
        member_types: Kind of every node id inside a concurrent region
        member_names: Display names for those ids
    """
    outgoing_edge_count: int = 0
    member_types: Dict[str, NodeType] = Field(default_factory=dict)
    member_names: Dict[str, str] = Field(default_factory=dict)


def is_valid_endpoint(url: str) -> bool:
    """Absolute URLs and ``/`` or ``./`` relative paths are accepted."""
    try:
        _url_adapter.validate_python(url)
        return True
    except ValidationError:
        return url.startswith("/") or url.startswith("./")


def _finding(
    node: WorkflowNode,
    code: ValidationCode,
    severity: Severity,
    message: str,
    message_zh: str,
    **details,
) -> WorkflowValidationError:
    return create_validation_error(
        code,
        message,
        message_zh,
        severity,
        node_id=node.id,
        node_name=node.name,
        node_type=node.type,
        **details,
    )


def _check_name(node: WorkflowNode) -> Findings:
    if node.name and node.name.strip():
        return []
    kind = node.kind
    label, label_zh = NODE_TYPE_LABELS[kind], NODE_TYPE_LABELS_ZH[kind]
    return [_finding(
        node,
        MISSING_NAME_CODES[kind],
        Severity.WARNING,
        f"{label} should have a name",
        f"{label_zh}应该有一个名称",
        property="name",
        suggestion=f"Provide a descriptive name for this {label.lower()}",
        suggestion_zh=f"为此{label_zh}提供一个描述性名称",
    )]


def _check_begin(node: WorkflowNode, context: ValidationContext) -> Findings:
    if not has_expected_value(node):
        return []
    return [_finding(
        node,
        ValidationCode.BEGIN_NODE_HAS_EXPECTED_VALUE,
        Severity.ERROR,
        f'Begin node "{node.name}" should not have an expected value',
        f'开始节点 "{node.name}" 不应该有预期值',
        property="expectedValue",
        suggestion="Remove the expected value from the begin node",
        suggestion_zh="从开始节点移除预期值",
    )]


def _check_end(node: WorkflowNode, context: ValidationContext) -> Findings:
    if has_expected_value(node):
        return []
    return [_finding(
        node,
        ValidationCode.END_NODE_MISSING_EXPECTED_VALUE,
        Severity.ERROR,
        f'End node "{node.name}" must have an expected value property',
        f'结束节点 "{node.name}" 必须有预期值属性',
        property="expectedValue",
        suggestion="Add an expected value to define the successful outcome",
        suggestion_zh="添加预期值来定义成功的结果",
    )]


def _check_exception(node: WorkflowNode, context: ValidationContext) -> Findings:
    if has_expected_value(node):
        return []
    return [_finding(
        node,
        ValidationCode.EXCEPTION_NODE_MISSING_EXPECTED_VALUE,
        Severity.ERROR,
        f'Exception node "{node.name}" must have an expected value property',
        f'异常节点 "{node.name}" 必须有预期值属性',
        property="expectedValue",
        suggestion="Add an expected value to define the exception outcome",
        suggestion_zh="添加预期值来定义异常结果",
    )]


def _check_process(node: WorkflowNode, context: ValidationContext) -> Findings:
    count = context.outgoing_edge_count
    if count <= 1:
        return []
    return [_finding(
        node,
        ValidationCode.PROCESS_NODE_MULTIPLE_OUTGOING_EDGES,
        Severity.ERROR,
        f'Process node "{node.name}" allows only one outgoing edge, currently has {count}',
        f'过程节点 "{node.name}" 只允许一条出边，当前有 {count} 条',
        suggestion=f"Remove {count - 1} outgoing edge(s) or convert to a decision node",
        suggestion_zh=f"移除 {count - 1} 条出边，或将节点转换为分支节点",
    )]


def _check_decision(node: WorkflowNode, context: ValidationContext) -> Findings:
    findings: Findings = []
    branches = node.branches

    if len(branches) < 2:
        findings.append(_finding(
            node,
            ValidationCode.DECISION_NODE_INSUFFICIENT_BRANCHES,
            Severity.WARNING,
            f'Decision node "{node.name}" should have at least two branches',
            f'分支节点 "{node.name}" 应该至少有两条分支',
            property="branches",
            suggestion="Add more branches to handle different conditions",
            suggestion_zh="添加更多分支来处理不同的条件",
        ))

    values = Counter(b.value for b in branches if b.value)
    if any(count > 1 for count in values.values()):
        findings.append(_finding(
            node,
            ValidationCode.DECISION_NODE_DUPLICATE_BRANCH_VALUES,
            Severity.ERROR,
            f'Decision node "{node.name}" has duplicate branch values',
            f'分支节点 "{node.name}" 的输出边值必须唯一',
            property="branches",
            suggestion="Ensure all branch values are unique",
            suggestion_zh="确保所有分支值都是唯一的",
        ))

    empty = [b for b in branches if not b.value or not b.value.strip()]
    if empty:
        findings.append(_finding(
            node,
            ValidationCode.DECISION_NODE_EMPTY_BRANCH_VALUE,
            Severity.WARNING,
            f'Decision node "{node.name}" has {len(empty)} branch(es) with empty values',
            f'分支节点 "{node.name}" 有 {len(empty)} 个分支值为空',
            property="branches",
            suggestion="Provide meaningful values for all branches",
            suggestion_zh="为所有分支提供有意义的值",
        ))
    return findings


def _check_decision_table(node: WorkflowNode, context: ValidationContext) -> Findings:
    findings: Findings = []
    table = dt.validate_decision_table_data(node.table_data)

    for message in table.errors:
        code, message_zh, suggestion, suggestion_zh = _DECISION_TABLE_CODES[message]
        findings.append(_finding(
            node, code, Severity.ERROR, message, message_zh,
            property="tableData", suggestion=suggestion, suggestion_zh=suggestion_zh,
        ))
    for message in table.warnings:
        findings.append(_finding(
            node,
            ValidationCode.DECISION_TABLE_EMPTY_ROWS,
            Severity.WARNING,
            message,
            "决策表没有数据行",
            property="tableData",
        ))
    return findings


def _check_subprocess(node: WorkflowNode, context: ValidationContext) -> Findings:
    if node.reference_path and node.reference_path.strip():
        return []
    return [_finding(
        node,
        ValidationCode.SUBPROCESS_NODE_MISSING_REFERENCE_PATH,
        Severity.WARNING,
        f'Subprocess node "{node.name}" has no reference path',
        f'子流程节点 "{node.name}" 没有引用路径',
        property="referencePath",
        suggestion="Specify the path to the referenced workflow",
        suggestion_zh="指定引用的工作流程路径",
    )]


def _check_concurrent(node: WorkflowNode, context: ValidationContext) -> Findings:
    findings: Findings = []
    if not node.parallel_branches:
        findings.append(_finding(
            node,
            ValidationCode.CONCURRENT_NODE_EMPTY_BRANCHES,
            Severity.WARNING,
            f'Concurrent node "{node.name}" has no parallel branches',
            f'并发节点 "{node.name}" 没有并行分支',
            property="parallelBranches",
            suggestion="Add nodes to the parallel branches",
            suggestion_zh="向并行分支添加节点",
        ))

    for member_id in node.parallel_branches:
        member_type = context.member_types.get(member_id)
        if member_type is None or NodeType(member_type) not in ILLEGAL_CONCURRENT_MEMBERS:
            continue
        member_type = NodeType(member_type)
        member_name = context.member_names.get(member_id) or member_id
        label = NODE_TYPE_LABELS[member_type].lower()
        findings.append(_finding(
            node,
            ILLEGAL_MEMBER_CODES[member_type],
            Severity.ERROR,
            f'Concurrent node "{node.name}" cannot contain {label} "{member_name}"',
            f'并发节点 "{node.name}" 不能包含{NODE_TYPE_LABELS_ZH[member_type]} "{member_name}"',
            property="parallelBranches",
            suggestion=f"Move {label} \"{member_name}\" outside the parallel region",
            suggestion_zh=f"将{NODE_TYPE_LABELS_ZH[member_type]} \"{member_name}\" 移出并行区域",
        ))
    return findings


def _check_auto(node: WorkflowNode, context: ValidationContext) -> Findings:
    if node.automation_config:
        return []
    return [_finding(
        node,
        ValidationCode.AUTO_NODE_MISSING_CONFIG,
        Severity.WARNING,
        f'Auto node "{node.name}" has no automation configuration',
        f'Auto节点 "{node.name}" 没有自动化配置',
        property="automationConfig",
        suggestion="Configure the automation settings for this node",
        suggestion_zh="为此节点配置自动化设置",
    )]


def _check_api(node: WorkflowNode, context: ValidationContext) -> Findings:
    endpoint = node.api_endpoint
    if not endpoint or not endpoint.strip():
        return [_finding(
            node,
            ValidationCode.API_NODE_MISSING_ENDPOINT,
            Severity.WARNING,
            f'API node "{node.name}" has no endpoint configured',
            f'API节点 "{node.name}" 没有配置端点',
            property="apiEndpoint",
            suggestion="Specify the API endpoint URL",
            suggestion_zh="指定API端点URL",
        )]
    if not is_valid_endpoint(endpoint):
        return [_finding(
            node,
            ValidationCode.API_NODE_INVALID_ENDPOINT,
            Severity.ERROR,
            f'API node "{node.name}" has an invalid endpoint URL',
            f'API节点 "{node.name}" 的端点URL无效',
            property="apiEndpoint",
            suggestion="Provide a valid URL (e.g., https://api.example.com/endpoint)",
            suggestion_zh="提供有效的URL（例如：https://api.example.com/endpoint）",
        )]
    return []


def _check_reference_overlay(node: WorkflowNode) -> Findings:
    if not node.is_reference:
        return []
    findings: Findings = []
    if not node.source_node_id:
        findings.append(_finding(
            node,
            ValidationCode.REFERENCE_NODE_MISSING_SOURCE_ID,
            Severity.ERROR,
            f'Reference node "{node.name}" has no source node id',
            f'引用节点 "{node.name}" 缺少源节点ID',
            property="sourceNodeId",
        ))
    expected = set(get_config().reference_editable_properties)
    editable = node.editable_properties or ()
    if set(editable) != expected or len(editable) != len(expected):
        findings.append(_finding(
            node,
            ValidationCode.REFERENCE_NODE_INVALID_EDIT,
            Severity.WARNING,
            f'Reference node "{node.name}" has an unexpected editable property list',
            f'引用节点 "{node.name}" 的可编辑属性列表不正确',
            property="editableProperties",
        ))
    return findings


NodeRule = Callable[[WorkflowNode, ValidationContext], Findings]

NODE_RULES: Dict[NodeType, NodeRule] = {
    NodeType.BEGIN: _check_begin,
    NodeType.END: _check_end,
    NodeType.EXCEPTION: _check_exception,
    NodeType.PROCESS: _check_process,
    NodeType.DECISION: _check_decision,
    NodeType.DECISION_TABLE: _check_decision_table,
    NodeType.SUBPROCESS: _check_subprocess,
    NodeType.CONCURRENT: _check_concurrent,
    NodeType.AUTO: _check_auto,
    NodeType.API: _check_api,
}


def check_node(node: WorkflowNode, context: Optional[ValidationContext] = None) -> Findings:
    """Run the rules for ``node`` and return coded findings.

    Args:
        node: Node to check
        context: Outgoing edge count and concurrent member kinds

    Returns:
        Findings in rule order: kind rule, reference overlay, name
    """
    context = context or ValidationContext()
    findings = NODE_RULES[node.kind](node, context)
    findings.extend(_check_reference_overlay(node))
    findings.extend(_check_name(node))
    return findings


def validate_node(node: WorkflowNode, context: Optional[ValidationContext] = None) -> NodeValidationResult:
    """Validate one node.

    Args:
        node: Node to validate
        context: Outgoing edge count and concurrent member kinds

    Returns:
        ``is_valid`` is False only when an error-severity rule fired
    """
    findings = check_node(node, context)
    errors = [f.message for f in findings if f.severity == Severity.ERROR]
    warnings = [f.message for f in findings if f.severity == Severity.WARNING]
    if errors:
        logger.debug(f"Node {node.id} ({node.type}) failed validation: {errors}")
    return NodeValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
