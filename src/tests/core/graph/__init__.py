"""Test suite for the workflow graph engine.

1. Workflow Model (test_workflow_model.py)
   - Immutable mutations and metadata
   - Cascading node removal
   - Edge helpers

2. Nodes (nodes/)
   - Node kinds, factory and predicates
   - Decision tables and CSV/JSON import

3. Algorithms (test_algorithms.py)
   - Cycle detection with paths
   - Topological ordering
   - Structure classification

4. Concurrent Regions (test_concurrent.py)
5. Reference Nodes (test_references.py)
6. Swimlanes (test_swimlanes.py)
7. Automation Actions and Test Data (test_automation_actions.py)
"""
