"""Core modules for workflowgraph."""

from workflowgraph.core.logging import configure_logging, LogLevel, LogComponent
from workflowgraph.core.config import WorkflowGraphConfig, get_config, set_config
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.graph import (
    NodeFactory,
    WorkflowModel,
    ConcurrentProcessManager,
    ReferenceManager,
    SwimlaneCollectionManager,
)
from workflowgraph.core.validation import WorkflowValidationService, validate_node

__all__ = [
    'WorkflowGraphConfig',
    'get_config',
    'set_config',
    'IdGenerator',
    'NodeFactory',
    'WorkflowModel',
    'ConcurrentProcessManager',
    'ReferenceManager',
    'SwimlaneCollectionManager',
    'WorkflowValidationService',
    'validate_node',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
