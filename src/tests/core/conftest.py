"""Shared test fixtures for the workflow graph engine.

This module provides fixtures that can be shared across test files: id
generators, a node factory, and the small begin -> process -> end workflow
most suites start from.
"""

import os
from typing import Iterator

import pytest

from workflowgraph.core.config import ENV_PREFIX, set_config
from workflowgraph.core.graph.base import WorkflowModel
from workflowgraph.core.graph.edge import WorkflowEdge
from workflowgraph.core.graph.nodes.factory import NodeFactory
from workflowgraph.core.graph.nodes.flow import ProcessNode
from workflowgraph.core.graph.nodes.terminal import BeginNode, EndNode
from workflowgraph.core.ids import IdGenerator


@pytest.fixture(autouse=True)
def default_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Restore the default configuration around every test.

    Any WORKFLOWGRAPH_ variables from the outer environment are hidden.
    """
    for name in list(os.environ):
        if name.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def ids() -> IdGenerator:
    """Fixture providing a fresh id generator."""
    return IdGenerator()


@pytest.fixture
def factory(ids: IdGenerator) -> NodeFactory:
    """Fixture providing a node factory bound to the test's id generator."""
    return NodeFactory(ids)


@pytest.fixture
def simple_model() -> WorkflowModel:
    """Fixture providing begin_1 -> p1 -> end_1."""
    model = WorkflowModel.create_empty("wf_simple", "Simple workflow")
    model = model.add_node(BeginNode(id="begin_1", name="Start"))
    model = model.add_node(ProcessNode(id="p1", name="Review"))
    model = model.add_node(EndNode(id="end_1", name="Done", expected_value="ok"))
    model = model.add_edge(WorkflowEdge(id="e1", source="begin_1", target="p1"))
    model = model.add_edge(WorkflowEdge(id="e2", source="p1", target="end_1"))
    return model
