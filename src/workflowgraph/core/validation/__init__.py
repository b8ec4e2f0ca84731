"""Validation package initialization.

Per-node rules, the finding catalog, whole-workflow validation and
project health analysis.
"""

from workflowgraph.core.validation.codes import ValidationCode
from workflowgraph.core.validation.results import (
    Severity,
    WorkflowValidationError,
    WorkflowValidationResult,
    create_empty_validation_result,
    merge_validation_results,
)
from workflowgraph.core.validation.node_validator import (
    ValidationContext,
    check_node,
    validate_node,
)
from workflowgraph.core.validation.service import (
    WorkflowValidationService,
    ValidationSummary,
    can_save,
    summarize,
)
from workflowgraph.core.validation.analysis import (
    WorkflowProjectAnalysis,
    WorkflowProjectStatistics,
    analyze_workflow_project,
    calculate_workflow_statistics,
)

__all__ = [
    "ValidationCode",
    "Severity",
    "WorkflowValidationError",
    "WorkflowValidationResult",
    "ValidationContext",
    "WorkflowValidationService",
    "ValidationSummary",
    "check_node",
    "validate_node",
    "can_save",
    "summarize",
    "create_empty_validation_result",
    "merge_validation_results",
    "WorkflowProjectAnalysis",
    "WorkflowProjectStatistics",
    "analyze_workflow_project",
    "calculate_workflow_statistics",
]
