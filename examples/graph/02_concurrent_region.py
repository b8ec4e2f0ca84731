"""
Concurrent Region Example

This example demonstrates:
1. Building a parallel region with ConcurrentProcessManager
2. Rejecting nodes that cannot live inside a region
3. Cycle detection with the cycle path and topological ordering

The region:
- Fetch -> Enrich -> Store, run as one branch of a parallel block
- A feedback edge Store -> Fetch is then added to create a cycle
"""

from workflowgraph.core.graph import ConcurrentProcessManager, NodeFactory, create_edge
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)


def main():
    """Build a region, validate it, then break it."""
    configure_logging(default_level=LogLevel.INFO)
    logger = get_logger(LogComponent.CONCURRENT)

    try:
        ids = IdGenerator()
        factory = NodeFactory(ids)
        fetch = factory.create_process_node("Fetch")
        enrich = factory.create_process_node("Enrich")
        store = factory.create_process_node("Store")

        manager = ConcurrentProcessManager(id_generator=ids)
        branch = manager.create_branch("Ingest")
        for node in (fetch, enrich, store):
            manager.add_node(node)
            manager.add_node_to_branch(branch.id, node.id)
        manager.add_edge(create_edge(fetch.id, enrich.id, ids))
        manager.add_edge(create_edge(enrich.id, store.id, ids))

        refused = manager.add_node(factory.create_begin_node("Start"))
        print(f"{Colors.WARNING}Begin node refused:{Colors.RESET} {refused.error}")

        result = manager.validate()
        print(f"\n{Colors.SUCCESS}Valid:{Colors.RESET} {result.is_valid}")
        print(f"Order: {' -> '.join(manager.get_topological_order())}")

        manager.add_edge(create_edge(store.id, fetch.id, ids))
        result = manager.validate()
        print(f"\n{Colors.ERROR}Valid:{Colors.RESET} {result.is_valid}")
        for error in result.errors:
            print(f"  {error}")
        print(f"Cycle path: {manager.get_cycle_path()}")
        print(f"Order: {manager.get_topological_order()}")

        data = manager.export_to_data()
        print(f"\n{Colors.INFO}Exported:{Colors.RESET} {data.to_dict()}")

    except Exception as e:
        logger.error(f"Concurrent example failed: {str(e)}")
        raise


if __name__ == "__main__":
    main()
