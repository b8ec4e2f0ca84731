"""Stable dotted codes for every validation finding."""

import re
from enum import Enum
from typing import Optional


class ValidationCode(str, Enum):
    """Codes attached to ``WorkflowValidationError`` findings."""

    # Node findings
    BEGIN_NODE_HAS_EXPECTED_VALUE = "workflow.begin-node.has-expected-value"
    BEGIN_NODE_MISSING_NAME = "workflow.begin-node.missing-name"
    END_NODE_MISSING_EXPECTED_VALUE = "workflow.end-node.missing-expected-value"
    END_NODE_MISSING_NAME = "workflow.end-node.missing-name"
    EXCEPTION_NODE_MISSING_EXPECTED_VALUE = "workflow.exception-node.missing-expected-value"
    EXCEPTION_NODE_MISSING_NAME = "workflow.exception-node.missing-name"
    PROCESS_NODE_MULTIPLE_OUTGOING_EDGES = "workflow.process-node.multiple-outgoing-edges"
    PROCESS_NODE_MISSING_NAME = "workflow.process-node.missing-name"
    DECISION_NODE_DUPLICATE_BRANCH_VALUES = "workflow.decision-node.duplicate-branch-values"
    DECISION_NODE_INSUFFICIENT_BRANCHES = "workflow.decision-node.insufficient-branches"
    DECISION_NODE_MISSING_NAME = "workflow.decision-node.missing-name"
    DECISION_NODE_EMPTY_BRANCH_VALUE = "workflow.decision-node.empty-branch-value"
    DECISION_TABLE_MISSING_DECISION_COLUMNS = "workflow.decision-table.missing-decision-columns"
    DECISION_TABLE_MISSING_OUTPUT_COLUMNS = "workflow.decision-table.missing-output-columns"
    DECISION_TABLE_DUPLICATE_DECISION_ROWS = "workflow.decision-table.duplicate-decision-rows"
    DECISION_TABLE_MISSING_NAME = "workflow.decision-table.missing-name"
    DECISION_TABLE_EMPTY_ROWS = "workflow.decision-table.empty-rows"
    DECISION_TABLE_DUPLICATE_COLUMN_IDS = "workflow.decision-table.duplicate-column-ids"
    DECISION_TABLE_DUPLICATE_ROW_IDS = "workflow.decision-table.duplicate-row-ids"
    SUBPROCESS_NODE_MISSING_REFERENCE_PATH = "workflow.subprocess-node.missing-reference-path"
    SUBPROCESS_NODE_MISSING_NAME = "workflow.subprocess-node.missing-name"
    CONCURRENT_NODE_CONTAINS_BEGIN_NODE = "workflow.concurrent-node.contains-begin-node"
    CONCURRENT_NODE_CONTAINS_END_NODE = "workflow.concurrent-node.contains-end-node"
    CONCURRENT_NODE_CONTAINS_EXCEPTION_NODE = "workflow.concurrent-node.contains-exception-node"
    CONCURRENT_NODE_CONTAINS_CYCLE = "workflow.concurrent-node.contains-cycle"
    CONCURRENT_NODE_EMPTY_BRANCHES = "workflow.concurrent-node.empty-branches"
    CONCURRENT_NODE_MISSING_NAME = "workflow.concurrent-node.missing-name"
    CONCURRENT_NODE_DISCONNECTED_NODES = "workflow.concurrent-node.disconnected-nodes"
    CONCURRENT_NODE_UNREACHABLE_NODES = "workflow.concurrent-node.unreachable-nodes"
    AUTO_NODE_MISSING_NAME = "workflow.auto-node.missing-name"
    AUTO_NODE_MISSING_CONFIG = "workflow.auto-node.missing-config"
    API_NODE_MISSING_NAME = "workflow.api-node.missing-name"
    API_NODE_MISSING_ENDPOINT = "workflow.api-node.missing-endpoint"
    API_NODE_INVALID_ENDPOINT = "workflow.api-node.invalid-endpoint"
    REFERENCE_NODE_MISSING_SOURCE_ID = "workflow.reference-node.missing-source-id"
    REFERENCE_NODE_SOURCE_NOT_FOUND = "workflow.reference-node.source-not-found"
    REFERENCE_NODE_INVALID_EDIT = "workflow.reference-node.invalid-edit"

    # Edge findings
    EDGE_MISSING_SOURCE = "workflow.edge.missing-source"
    EDGE_MISSING_TARGET = "workflow.edge.missing-target"
    EDGE_SOURCE_NOT_FOUND = "workflow.edge.source-not-found"
    EDGE_TARGET_NOT_FOUND = "workflow.edge.target-not-found"
    EDGE_SELF_LOOP = "workflow.edge.self-loop"
    EDGE_DUPLICATE = "workflow.edge.duplicate"

    # Swimlane findings
    SWIMLANE_MISSING_NAME = "workflow.swimlane.missing-name"
    SWIMLANE_INVALID_SIZE = "workflow.swimlane.invalid-size"
    SWIMLANE_DUPLICATE_NODE_IDS = "workflow.swimlane.duplicate-node-ids"
    SWIMLANE_NODE_NOT_FOUND = "workflow.swimlane.node-not-found"

    # Whole-model findings
    WORKFLOW_MISSING_NAME = "workflow.model.missing-name"
    WORKFLOW_EMPTY_NODES = "workflow.model.empty-nodes"
    WORKFLOW_MISSING_BEGIN_NODE = "workflow.model.missing-begin-node"
    WORKFLOW_MISSING_END_NODE = "workflow.model.missing-end-node"
    WORKFLOW_MULTIPLE_BEGIN_NODES = "workflow.model.multiple-begin-nodes"
    WORKFLOW_DISCONNECTED_NODES = "workflow.model.disconnected-nodes"

    # Test data and automation action findings
    TEST_DATA_MISSING_NAME = "workflow.test-data.missing-name"
    TEST_DATA_MISSING_EDGE_BINDING = "workflow.test-data.missing-edge-binding"
    TEST_DATA_INVALID_EDGE_BINDING = "workflow.test-data.invalid-edge-binding"
    AUTOMATION_ACTION_MISSING_NAME = "workflow.automation-action.missing-name"
    AUTOMATION_ACTION_MISSING_TYPE = "workflow.automation-action.missing-type"
    AUTOMATION_ACTION_MISSING_EDGE_BINDING = "workflow.automation-action.missing-edge-binding"
    AUTOMATION_ACTION_INVALID_CONFIG = "workflow.automation-action.invalid-config"


_NODE_TYPE_PATTERN = re.compile(r"workflow\.([a-z-]+)-node\.")


def _value(code: str) -> str:
    return code.value if isinstance(code, ValidationCode) else code


def is_node_error(code: str) -> bool:
    code = _value(code)
    return code.startswith("workflow.") and "-node." in code


def is_edge_error(code: str) -> bool:
    return _value(code).startswith("workflow.edge.")


def is_swimlane_error(code: str) -> bool:
    return _value(code).startswith("workflow.swimlane.")


def is_workflow_model_error(code: str) -> bool:
    return _value(code).startswith("workflow.model.")


def is_decision_table_error(code: str) -> bool:
    return _value(code).startswith("workflow.decision-table.")


def is_concurrent_error(code: str) -> bool:
    return _value(code).startswith("workflow.concurrent-node.")


def get_node_type_from_code(code: str) -> Optional[str]:
    """``workflow.process-node.missing-name`` -> ``process``."""
    match = _NODE_TYPE_PATTERN.match(_value(code))
    return match.group(1) if match else None
