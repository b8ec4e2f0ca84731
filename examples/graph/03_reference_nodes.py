"""
Reference Nodes Example

This example demonstrates:
1. Cloning a node as a reference
2. Editing the two properties a reference owns
3. Syncing a reference after its source changes
4. Detecting a dangling reference once the source is deleted
"""

from workflowgraph.core.graph import NodeFactory, ReferenceManager, WorkflowModel
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)
from workflowgraph.core.validation import WorkflowValidationService


def main():
    """Walk a reference through its lifecycle."""
    configure_logging(default_level=LogLevel.INFO)
    logger = get_logger(LogComponent.REFERENCES)

    try:
        ids = IdGenerator()
        factory = NodeFactory(ids)
        review = factory.create_process_node("Review", properties={"stepDisplay": True, "sla": "1d"})

        model = WorkflowModel.create_empty("wf_refs", "References").add_node(review)
        refs = ReferenceManager(model, ids)

        created = refs.create_reference(review.id)
        ref_id = created.reference_node.id
        print(f"{Colors.SUCCESS}Created:{Colors.RESET} {ref_id} ({created.reference_node.name})")

        refs.edit_reference_node(ref_id, "name", "Second review")
        refused = refs.edit_reference_node(ref_id, "position", {"x": 10, "y": 10})
        print(f"{Colors.WARNING}Refused:{Colors.RESET} {refused.error}")

        source = refs.get_model().get_node(review.id)
        changed = source.model_copy(update={"properties": {**source.properties, "sla": "4h"}})
        refs.update_model(refs.get_model().update_node(changed))
        refs.sync_reference_with_source(ref_id)
        synced = refs.get_model().get_node(ref_id)
        print(f"\n{Colors.INFO}Synced:{Colors.RESET} name={synced.name} sla={synced.properties['sla']}")

        stats = refs.get_reference_statistics()
        print(f"References: {stats.total_references}, sources: {stats.referenced_nodes}")

        refs.update_model(refs.get_model().remove_node(review.id))
        print(f"\n{Colors.ERROR}After deleting the source:{Colors.RESET}")
        print(f"  {refs.validate_reference_node(ref_id).errors}")

        result = WorkflowValidationService().validate_workflow_model(refs.get_model())
        for finding in result.errors:
            print(f"  {finding.code}: {finding.message}")

    except Exception as e:
        logger.error(f"Reference example failed: {str(e)}")
        raise


if __name__ == "__main__":
    main()
