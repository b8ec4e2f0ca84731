"""
Workflow Validation Example

This example demonstrates:
1. Building a workflow with the node factory
2. Validating the whole workflow
3. Reading findings and the save gate

The workflow:
- Start -> Review -> Route (decision) -> Approved / Rejected
- A second, accidental edge from Review is added to show a node finding
"""

from workflowgraph.core.graph import NodeFactory, WorkflowModel, create_edge
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)
from workflowgraph.core.validation import WorkflowValidationService, summarize


def build_workflow(ids: IdGenerator) -> WorkflowModel:
    """Build a small approval workflow."""
    factory = NodeFactory(ids)
    begin = factory.create_begin_node("Start")
    review = factory.create_process_node("Review")
    route = factory.create_decision_node("Route")
    approved = factory.create_end_node("Approved", expected_value={"status": "approved"})
    rejected = factory.create_exception_node("Rejected", expected_value={"status": "rejected"})

    model = WorkflowModel.create_empty("wf_approval", "Approval")
    for node in (begin, review, route, approved, rejected):
        model = model.add_node(node)

    model = model.add_edge(create_edge(begin.id, review.id, ids))
    model = model.add_edge(create_edge(review.id, route.id, ids))
    model = model.add_edge(create_edge(route.id, approved.id, ids, value="true"))
    model = model.add_edge(create_edge(route.id, rejected.id, ids, value="false"))
    return model


def print_findings(title: str, result) -> None:
    summary = summarize(result)
    print(f"\n{Colors.BOLD}{title}{Colors.RESET} ({summary.status.value})")
    for finding in result.errors:
        print(f"{Colors.ERROR}  error{Colors.RESET}   {finding.code}: {finding.message}")
    for finding in result.warnings:
        print(f"{Colors.WARNING}  warning{Colors.RESET} {finding.code}: {finding.message}")


def main():
    """Validate a clean workflow, then a broken one."""
    configure_logging(default_level=LogLevel.INFO)
    logger = get_logger(LogComponent.VALIDATION)

    try:
        ids = IdGenerator()
        model = build_workflow(ids)
        service = WorkflowValidationService()

        result = service.validate_workflow_model(model)
        print_findings("Clean workflow", result)

        # Review may only have one outgoing edge
        broken = model.add_edge(create_edge("process_1", "end_1", ids))
        result = service.validate_workflow_model(broken)
        print_findings("Broken workflow", result)

        check = service.can_save(result)
        print(f"\n{Colors.INFO}Can save:{Colors.RESET} {check.can_save}")

    except Exception as e:
        logger.error(f"Validation example failed: {str(e)}")
        raise


if __name__ == "__main__":
    main()
