"""Whole-Workflow Validation

``WorkflowValidationService`` runs every check over a ``WorkflowModel`` and
collects the findings into one ``WorkflowValidationResult``:
1. Workflow name and emptiness
2. Each node through the node validator, with its outgoing edge count and,
   for concurrent nodes, the kinds of its members
3. Each concurrent region through the shared structural check (cycles,
   disconnected and unreachable members)
4. Reference nodes whose source has been deleted
5. Edges: missing or dangling endpoints, self-loops, duplicates
6. Overall shape: begin and end nodes, nodes touched by no edge
7. Swimlanes, test data and automation action bindings

Cycles are only looked for inside concurrent regions. A loop back to an
earlier step elsewhere in the workflow is legal.

Example:
    ```python
    service = WorkflowValidationService()
    result = service.validate_workflow_model(model)
    if not service.can_save(result).can_save:
        ...
    ```
"""

from collections import Counter
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from workflowgraph.core.config import WorkflowGraphConfig, get_config
from workflowgraph.core.graph.actions import AutomationActionManager
from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.concurrent import validate_concurrent_structure
from workflowgraph.core.graph.nodes.base.node import NodeType, WorkflowNode
from workflowgraph.core.graph.nodes.kinds import is_reference_node
from workflowgraph.core.logging import get_logger, log_validation, LogComponent
from workflowgraph.core.validation.codes import ValidationCode
from workflowgraph.core.validation.node_validator import ValidationContext, check_node
from workflowgraph.core.validation.results import (
    Severity,
    WorkflowValidationError,
    WorkflowValidationResult,
    create_empty_validation_result,
    create_validation_error,
)

logger = get_logger(LogComponent.VALIDATION)


class ValidationStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class ValidationSummary(BaseModel):
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    status: ValidationStatus = ValidationStatus.VALID


class SaveCheck(BaseModel):
    """Whether a workflow may be saved, and the findings that prevent it."""
    can_save: bool = True
    blockers: List[WorkflowValidationError] = Field(default_factory=list)


def summarize(result: WorkflowValidationResult) -> ValidationSummary:
    if result.errors:
        status = ValidationStatus.ERROR
    elif result.warnings:
        status = ValidationStatus.WARNING
    else:
        status = ValidationStatus.VALID
    return ValidationSummary(
        error_count=len(result.errors),
        warning_count=len(result.warnings),
        info_count=len(result.infos),
        status=status,
    )


def _node_details(node: WorkflowNode) -> dict:
    return {"node_id": node.id, "node_name": node.name, "node_type": node.type}


def _label(node: WorkflowNode) -> str:
    return node.name or node.id


class WorkflowValidationService:
    """Validates complete workflow models.

    Args:
        config: Controls the disconnected-node check and which codes block
            a save. Defaults to the process configuration.
    """

    def __init__(self, config: Optional[WorkflowGraphConfig] = None):
        self.config = config or get_config()
        self.actions = AutomationActionManager()

    def validate_workflow_model(self, model: WorkflowModel) -> WorkflowValidationResult:
        """Run every check over ``model``.

        Args:
            model: Workflow to validate

        Returns:
            All findings. ``is_valid`` is False when any error was found.
        """
        result = create_empty_validation_result()
        self._validate_name(model, result)

        if not model.nodes:
            result.add(create_validation_error(
                ValidationCode.WORKFLOW_EMPTY_NODES,
                "Workflow should contain at least one node",
                "工作流程应该包含至少一个节点",
                Severity.WARNING,
                suggestion="Add nodes to define the workflow process",
                suggestion_zh="添加节点来定义工作流程",
            ))
        else:
            self._validate_nodes(model, result)
            self._validate_concurrent_regions(model, result)
            self._validate_references(model, result)

        self._validate_edges(model, result)

        if model.nodes:
            self._validate_structure(model, result)
        self._validate_swimlanes(model, result)
        self._validate_bindings(model, result)

        summary = summarize(result)
        log_validation(
            logger,
            f"Workflow {model.id}: {summary.status.value} "
            f"({summary.error_count} errors, {summary.warning_count} warnings)",
        )
        return result

    def _validate_name(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        if model.name and model.name.strip():
            return
        result.add(create_validation_error(
            ValidationCode.WORKFLOW_MISSING_NAME,
            "Workflow should have a name",
            "工作流程应该有一个名称",
            Severity.WARNING,
            suggestion="Add a descriptive name to identify this workflow",
            suggestion_zh="添加一个描述性名称来标识此工作流程",
        ))

    def _validate_nodes(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        outgoing = Counter(e.source for e in model.edges.values())
        for node in model.nodes.values():
            context = ValidationContext(outgoing_edge_count=outgoing.get(node.id, 0))
            if node.kind == NodeType.CONCURRENT:
                members = [model.nodes[m] for m in node.parallel_branches if m in model.nodes]
                context.member_types = {m.id: m.kind for m in members}
                context.member_names = {m.id: m.name for m in members}
            result.extend(check_node(node, context))

    def _validate_concurrent_regions(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        """Cycle, disconnected and unreachable checks per region.

        Illegal members are already reported by the node validator.
        """
        edges = list(model.edges.values())
        for node in model.nodes.values():
            if node.kind != NodeType.CONCURRENT or not node.parallel_branches:
                continue
            region = validate_concurrent_structure(model.nodes, edges, node.parallel_branches)

            if region.has_cycle:
                chain = " -> ".join(
                    _label(model.nodes[i]) if i in model.nodes else i for i in region.cycle_path
                )
                result.add(create_validation_error(
                    ValidationCode.CONCURRENT_NODE_CONTAINS_CYCLE,
                    f'Concurrent node "{node.name}" contains a cycle: {chain}',
                    f'并发节点 "{node.name}" 内部存在循环: {chain}',
                    Severity.ERROR,
                    property="parallelBranches",
                    suggestion="Remove an edge to break the cycle",
                    suggestion_zh="删除一条边以打破循环",
                    **_node_details(node),
                ))
            for member_id in region.disconnected_nodes:
                member = model.nodes.get(member_id)
                name = _label(member) if member is not None else member_id
                result.add(create_validation_error(
                    ValidationCode.CONCURRENT_NODE_DISCONNECTED_NODES,
                    f'Node "{name}" in concurrent node "{node.name}" is not connected to any other node',
                    f'并发节点 "{node.name}" 中的节点 "{name}" 没有连接到任何其他节点',
                    Severity.WARNING,
                    property="parallelBranches",
                    **_node_details(node),
                ))
            for member_id in region.unreachable_nodes:
                member = model.nodes.get(member_id)
                name = _label(member) if member is not None else member_id
                result.add(create_validation_error(
                    ValidationCode.CONCURRENT_NODE_UNREACHABLE_NODES,
                    f'Node "{name}" in concurrent node "{node.name}" is unreachable from its entry points',
                    f'并发节点 "{node.name}" 中的节点 "{name}" 无法从入口到达',
                    Severity.WARNING,
                    property="parallelBranches",
                    **_node_details(node),
                ))

    def _validate_references(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        for node in model.nodes.values():
            if not is_reference_node(node) or node.source_node_id in model.nodes:
                continue
            logger.warning(f"Reference {node.id} points at missing source {node.source_node_id}")
            result.add(create_validation_error(
                ValidationCode.REFERENCE_NODE_SOURCE_NOT_FOUND,
                f'Reference node "{node.name}" points at missing source node "{node.source_node_id}"',
                f'引用节点 "{node.name}" 的源节点 "{node.source_node_id}" 不存在',
                Severity.ERROR,
                property="sourceNodeId",
                suggestion="Delete the reference or restore its source node",
                suggestion_zh="删除此引用或恢复其源节点",
                **_node_details(node),
            ))

    def _validate_edges(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        seen = set()
        for edge in model.edges.values():
            if not edge.source:
                result.add(create_validation_error(
                    ValidationCode.EDGE_MISSING_SOURCE,
                    f'Edge "{edge.id}" is missing a source node',
                    f'边 "{edge.id}" 缺少源节点',
                    Severity.ERROR,
                    suggestion="Connect the edge to a source node",
                    suggestion_zh="将边连接到源节点",
                ))
            elif edge.source not in model.nodes:
                result.add(create_validation_error(
                    ValidationCode.EDGE_SOURCE_NOT_FOUND,
                    f'Edge "{edge.id}" references non-existent source node "{edge.source}"',
                    f'边 "{edge.id}" 引用了不存在的源节点 "{edge.source}"',
                    Severity.ERROR,
                    suggestion="Select a valid source node or remove the edge",
                    suggestion_zh="选择有效的源节点或删除此边",
                ))

            if not edge.target:
                result.add(create_validation_error(
                    ValidationCode.EDGE_MISSING_TARGET,
                    f'Edge "{edge.id}" is missing a target node',
                    f'边 "{edge.id}" 缺少目标节点',
                    Severity.ERROR,
                    suggestion="Connect the edge to a target node",
                    suggestion_zh="将边连接到目标节点",
                ))
            elif edge.target not in model.nodes:
                result.add(create_validation_error(
                    ValidationCode.EDGE_TARGET_NOT_FOUND,
                    f'Edge "{edge.id}" references non-existent target node "{edge.target}"',
                    f'边 "{edge.id}" 引用了不存在的目标节点 "{edge.target}"',
                    Severity.ERROR,
                    suggestion="Select a valid target node or remove the edge",
                    suggestion_zh="选择有效的目标节点或删除此边",
                ))

            if edge.source and edge.source == edge.target:
                result.add(create_validation_error(
                    ValidationCode.EDGE_SELF_LOOP,
                    f'Edge "{edge.id}" creates a self-loop on node "{edge.source}"',
                    f'边 "{edge.id}" 在节点 "{edge.source}" 上创建了自环',
                    Severity.WARNING,
                    suggestion="Self-loops are usually not recommended in workflows",
                    suggestion_zh="工作流程中通常不建议使用自环",
                ))

            if edge.key in seen:
                result.add(create_validation_error(
                    ValidationCode.EDGE_DUPLICATE,
                    f'Duplicate edge from "{edge.source}" to "{edge.target}"',
                    f'从 "{edge.source}" 到 "{edge.target}" 存在重复的边',
                    Severity.WARNING,
                    suggestion="Remove the duplicate edge",
                    suggestion_zh="删除重复的边",
                ))
            else:
                seen.add(edge.key)

    def _validate_structure(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        nodes = list(model.nodes.values())
        begins = [n for n in nodes if n.kind == NodeType.BEGIN]
        if not begins:
            result.add(create_validation_error(
                ValidationCode.WORKFLOW_MISSING_BEGIN_NODE,
                "Workflow should have at least one begin node",
                "工作流程应该有至少一个开始节点",
                Severity.WARNING,
                suggestion="Add a begin node to define the workflow entry point",
                suggestion_zh="添加开始节点来定义工作流程的入口点",
            ))
        elif len(begins) > 1:
            result.add(create_validation_error(
                ValidationCode.WORKFLOW_MULTIPLE_BEGIN_NODES,
                f"Workflow has {len(begins)} begin nodes, typically only one is needed",
                f"工作流程有 {len(begins)} 个开始节点，通常只需要一个",
                Severity.WARNING,
                suggestion="Consider using only one begin node for clarity",
                suggestion_zh="考虑只使用一个开始节点以保持清晰",
            ))

        if not any(n.kind in (NodeType.END, NodeType.EXCEPTION) for n in nodes):
            result.add(create_validation_error(
                ValidationCode.WORKFLOW_MISSING_END_NODE,
                "Workflow should have at least one end or exception node",
                "工作流程应该有至少一个结束节点或异常节点",
                Severity.WARNING,
                suggestion="Add an end node to define the workflow exit point",
                suggestion_zh="添加结束节点来定义工作流程的出口点",
            ))

        if not self.config.check_disconnected_nodes or len(nodes) <= 1:
            return
        connected = set()
        for edge in model.edges.values():
            if edge.source:
                connected.add(edge.source)
            if edge.target:
                connected.add(edge.target)
        for node in nodes:
            if node.id in connected:
                continue
            result.add(create_validation_error(
                ValidationCode.WORKFLOW_DISCONNECTED_NODES,
                f'Node "{_label(node)}" is not connected to any other node',
                f'节点 "{_label(node)}" 没有连接到任何其他节点',
                Severity.WARNING,
                suggestion="Connect this node to the workflow or remove it",
                suggestion_zh="将此节点连接到工作流程或删除它",
                **_node_details(node),
            ))

    def _validate_swimlanes(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        owners: Dict[str, List[str]] = {}
        for swimlane in model.swimlanes.values():
            if not swimlane.name or not swimlane.name.strip():
                result.add(create_validation_error(
                    ValidationCode.SWIMLANE_MISSING_NAME,
                    f'Swimlane "{swimlane.id}" should have a name',
                    f'泳道 "{swimlane.id}" 应该有一个名称',
                    Severity.WARNING,
                    property="name",
                ))
            if swimlane.size.width <= 0 or swimlane.size.height <= 0:
                result.add(create_validation_error(
                    ValidationCode.SWIMLANE_INVALID_SIZE,
                    f'Swimlane "{swimlane.name or swimlane.id}" must have a positive width and height',
                    f'泳道 "{swimlane.name or swimlane.id}" 的宽度和高度必须大于0',
                    Severity.ERROR,
                    property="size",
                ))
            for node_id in swimlane.contained_nodes:
                owners.setdefault(node_id, []).append(swimlane.id)
                if node_id not in model.nodes:
                    result.add(create_validation_error(
                        ValidationCode.SWIMLANE_NODE_NOT_FOUND,
                        f'Swimlane "{swimlane.name or swimlane.id}" contains unknown node "{node_id}"',
                        f'泳道 "{swimlane.name or swimlane.id}" 包含不存在的节点 "{node_id}"',
                        Severity.WARNING,
                        node_id=node_id,
                    ))

        for node_id, lanes in owners.items():
            if len(set(lanes)) < 2:
                continue
            result.add(create_validation_error(
                ValidationCode.SWIMLANE_DUPLICATE_NODE_IDS,
                f'Node "{node_id}" belongs to more than one swimlane: {", ".join(sorted(set(lanes)))}',
                f'节点 "{node_id}" 同时属于多个泳道: {", ".join(sorted(set(lanes)))}',
                Severity.ERROR,
                node_id=node_id,
                suggestion="Keep each node in a single swimlane",
                suggestion_zh="每个节点只能属于一个泳道",
            ))

    def _validate_bindings(self, model: WorkflowModel, result: WorkflowValidationResult) -> None:
        for node in model.nodes.values():
            outgoing = {e.id for e in model.get_outgoing_edges(node.id)}
            details = _node_details(node)

            for test_data in node.test_data:
                if not test_data.name or not test_data.name.strip():
                    result.add(create_validation_error(
                        ValidationCode.TEST_DATA_MISSING_NAME,
                        f'Test data "{test_data.id}" on node "{_label(node)}" should have a name',
                        f'节点 "{_label(node)}" 上的测试数据 "{test_data.id}" 应该有一个名称',
                        Severity.WARNING,
                        property="testData",
                        **details,
                    ))
                if not test_data.edge_binding:
                    result.add(create_validation_error(
                        ValidationCode.TEST_DATA_MISSING_EDGE_BINDING,
                        f'Test data "{test_data.name or test_data.id}" is not bound to an edge',
                        f'测试数据 "{test_data.name or test_data.id}" 没有绑定到边',
                        Severity.ERROR,
                        property="testData",
                        **details,
                    ))
                elif test_data.edge_binding not in outgoing:
                    result.add(create_validation_error(
                        ValidationCode.TEST_DATA_INVALID_EDGE_BINDING,
                        f'Test data "{test_data.name or test_data.id}" is bound to "{test_data.edge_binding}", '
                        f'which is not an outgoing edge of node "{_label(node)}"',
                        f'测试数据 "{test_data.name or test_data.id}" 绑定的边 "{test_data.edge_binding}" '
                        f'不是节点 "{_label(node)}" 的出边',
                        Severity.ERROR,
                        property="testData",
                        **details,
                    ))

            for action in node.automation_actions:
                if not action.name or not action.name.strip():
                    result.add(create_validation_error(
                        ValidationCode.AUTOMATION_ACTION_MISSING_NAME,
                        f'Automation action "{action.id}" on node "{_label(node)}" should have a name',
                        f'节点 "{_label(node)}" 上的自动化动作 "{action.id}" 应该有一个名称',
                        Severity.WARNING,
                        property="automationActions",
                        **details,
                    ))
                if not action.edge_binding or action.edge_binding not in outgoing:
                    result.add(create_validation_error(
                        ValidationCode.AUTOMATION_ACTION_MISSING_EDGE_BINDING,
                        f'Automation action "{action.name or action.id}" is not bound to an outgoing edge '
                        f'of node "{_label(node)}"',
                        f'自动化动作 "{action.name or action.id}" 没有绑定到节点 "{_label(node)}" 的出边',
                        Severity.ERROR,
                        property="automationActions",
                        **details,
                    ))
                config_errors = self.actions.validate_configuration(action)
                if config_errors:
                    result.add(create_validation_error(
                        ValidationCode.AUTOMATION_ACTION_INVALID_CONFIG,
                        f'Automation action "{action.name or action.id}": {"; ".join(config_errors)}',
                        f'自动化动作 "{action.name or action.id}" 配置无效',
                        Severity.ERROR,
                        property="automationActions",
                        **details,
                    ))

    def can_save(self, result: WorkflowValidationResult) -> SaveCheck:
        """Only the configured save-blocking codes prevent a save."""
        return can_save(result, self.config)


def can_save(result: WorkflowValidationResult, config: Optional[WorkflowGraphConfig] = None) -> SaveCheck:
    blocking = (config or get_config()).save_blocking_codes
    blockers = [f for f in result.errors if f.code in blocking]
    return SaveCheck(can_save=not blockers, blockers=blockers)
