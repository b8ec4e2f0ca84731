"""Workflowgraph - workflow graph validation and analysis engine."""

from workflowgraph.core import (
    NodeFactory,
    WorkflowModel,
    WorkflowValidationService,
    configure_logging,
    LogLevel,
    LogComponent,
)

__all__ = [
    'NodeFactory',
    'WorkflowModel',
    'WorkflowValidationService',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
