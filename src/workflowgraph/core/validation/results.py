"""Severity-classified validation findings and their aggregate result."""

from enum import Enum
from typing import Iterable, List, Optional, Union

from pydantic import Field

from workflowgraph.core.graph.nodes.base.node import WorkflowBaseModel
from workflowgraph.core.validation.codes import ValidationCode


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class WorkflowValidationError(WorkflowBaseModel):
    """One finding, with English and Chinese text.

    Attributes:
        code: Stable dotted code, see ValidationCode
        message: English message
        message_zh: Chinese message
        severity: error, warning or info
        node_id: Node the finding is about, if any
        node_name: Name of that node
        node_type: Type tag of that node
        property: Offending field
        suggestion: English hint for fixing it
        suggestion_zh: Chinese hint for fixing it
    """
    code: str
    message: str
    message_zh: str = ""
    severity: Severity = Severity.ERROR
    node_id: Optional[str] = None
    node_name: Optional[str] = None
    node_type: Optional[str] = None
    property: Optional[str] = None
    suggestion: Optional[str] = None
    suggestion_zh: Optional[str] = None


def create_validation_error(
    code: Union[ValidationCode, str],
    message: str,
    message_zh: str,
    severity: Severity,
    **details,
) -> WorkflowValidationError:
    code = code.value if isinstance(code, ValidationCode) else code
    return WorkflowValidationError(
        code=code, message=message, message_zh=message_zh, severity=severity, **details
    )


class WorkflowValidationResult(WorkflowBaseModel):
    """Findings split by severity. Only errors make the result invalid."""
    is_valid: bool = True
    errors: List[WorkflowValidationError] = Field(default_factory=list)
    warnings: List[WorkflowValidationError] = Field(default_factory=list)
    infos: List[WorkflowValidationError] = Field(default_factory=list)

    def add(self, finding: WorkflowValidationError) -> None:
        add_validation_error(self, finding)

    def extend(self, findings: Iterable[WorkflowValidationError]) -> None:
        for finding in findings:
            add_validation_error(self, finding)

    def all_findings(self) -> List[WorkflowValidationError]:
        return [*self.errors, *self.warnings, *self.infos]

    def codes(self) -> List[str]:
        return [f.code for f in self.all_findings()]

    def has_code(self, code: Union[ValidationCode, str]) -> bool:
        code = code.value if isinstance(code, ValidationCode) else code
        return code in self.codes()

    def for_node(self, node_id: str) -> List[WorkflowValidationError]:
        return [f for f in self.all_findings() if f.node_id == node_id]


def create_empty_validation_result() -> WorkflowValidationResult:
    return WorkflowValidationResult()


def add_validation_error(result: WorkflowValidationResult, finding: WorkflowValidationError) -> None:
    """File a finding under its severity, marking the result invalid on errors."""
    if finding.severity == Severity.ERROR:
        result.errors.append(finding)
        result.is_valid = False
    elif finding.severity == Severity.WARNING:
        result.warnings.append(finding)
    else:
        result.infos.append(finding)


def merge_validation_results(*results: WorkflowValidationResult) -> WorkflowValidationResult:
    merged = create_empty_validation_result()
    for result in results:
        merged.errors.extend(result.errors)
        merged.warnings.extend(result.warnings)
        merged.infos.extend(result.infos)
    merged.is_valid = not merged.errors
    return merged
