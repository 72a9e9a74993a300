"""Shared test fixtures for nodeflow backend tests."""
import sys
from pathlib import Path

import pytest

# Ensure nodeflow package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from nodeflow.engine.graph import Node, Parameter
from nodeflow.engine.mutations import Connection, GraphEngine
from nodeflow.engine.persistence import MemoryStore, PersistenceMirror


class RecordingBackendClient:
    """Backend client double that records cache invalidation requests."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.calls: list = []

    def clear_node_cache(self, node_id):
        self.calls.append(node_id)
        return self.ok


def make_node(node_id: str, params: dict[str, Parameter] | None = None, **kwargs) -> Node:
    return Node(
        id=node_id, module="core", action=kwargs.pop("action", node_id.lower()),
        params=params or {}, **kwargs,
    )


def producer(node_id: str) -> Node:
    """Node with no inputs and a single ``out`` output slot."""
    return make_node(node_id, {"out": Parameter(type="image", display="output")})


def wire(engine: GraphEngine, source: str, target: str, handle: str, source_handle: str = "out"):
    return engine.connect(Connection(
        source=source, source_handle=source_handle, target=target, target_handle=handle,
    ))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def mirror(store):
    return PersistenceMirror(store, "workflow")


@pytest.fixture
def backend():
    return RecordingBackendClient()


@pytest.fixture
def engine(mirror, backend):
    eng = GraphEngine(mirror, backend)
    yield eng
    eng.shutdown()


@pytest.fixture
def spawn_graph(engine):
    """Scenario graph: producers A and C, consumer B with spawnable ``x``."""
    engine.add_node(producer("A"))
    engine.add_node(producer("C"))
    engine.add_node(make_node("B", {
        "x": Parameter(type="image", label="Images", spawn=True),
        "strength": Parameter(type="float", default=0.5),
        "out": Parameter(type="image", display="output"),
    }))
    return engine
