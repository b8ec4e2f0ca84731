"""
Automation Actions Example

This example demonstrates:
1. Attaching automation actions and test data to a node's outgoing edge
2. Running them concurrently through an async executor
3. A failing action that does not stop the others
"""

import asyncio

from workflowgraph.core.graph import AutomationActionManager, NodeFactory, TestDataManager
from workflowgraph.core.graph.nodes.base.node import AutomationAction
from workflowgraph.core.logging import (
    configure_logging,
    LogLevel,
    LogComponent,
    Colors,
    get_logger
)


async def executor(action: AutomationAction) -> dict:
    """Pretend to run an action."""
    await asyncio.sleep(0.1)
    if "unreachable" in action.configuration.get("url", ""):
        raise ConnectionError("host unreachable")
    return {"action": action.name, "status": "ok"}


async def main():
    """Run actions and test data bound to one edge."""
    configure_logging(default_level=LogLevel.INFO)
    logger = get_logger(LogComponent.ACTIONS)

    try:
        node = NodeFactory().create_process_node("Notify")
        actions = AutomationActionManager(executor=executor)
        for action in (
            actions.create_api_call_action("Fetch order", "edge_1", "https://api.example.com/orders"),
            actions.create_webhook_action("Ping ops", "edge_1", "https://unreachable.example.com/hook"),
            actions.create_script_action("Log", "edge_1", "print('done')"),
        ):
            node = actions.add_action_to_node(node, action)

        print(f"{Colors.INFO}Actions:{Colors.RESET}")
        for result in await actions.execute_actions_for_edge(node, "edge_1"):
            color = Colors.SUCCESS if result.success else Colors.ERROR
            print(f"  {color}{result.action_id}{Colors.RESET} {result.response or result.errors}")

        test_data = TestDataManager()
        node = test_data.add_test_data_to_node(
            node, test_data.create_test_data("Echo", "edge_1", {"order": 7}, {"order": 7})
        )
        print(f"\n{Colors.INFO}Test data:{Colors.RESET}")
        for result in await test_data.execute_all_test_data_for_node(node):
            print(f"  {result.test_data_id} passed={result.success}")

    except Exception as e:
        logger.error(f"Automation example failed: {str(e)}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
