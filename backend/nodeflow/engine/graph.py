"""Graph data structures for the editor state engine."""
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Parameter:
    type: str | list[str] | None = None
    label: str | None = None
    display: str | None = None
    value: Any = None
    default: Any = None
    spawn: bool = False
    options: Any = None
    description: str | None = None
    source: str | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    group: dict[str, Any] | None = None
    style: dict[str, str] | None = None
    disabled: bool | None = None
    hidden: bool | None = None

    @property
    def is_output(self) -> bool:
        return self.display == "output"


@dataclass(frozen=True)
class GroupState:
    """UI open/disabled state of a named parameter group."""
    disabled: bool | None = None
    hidden: bool | None = None
    open: bool | None = None


@dataclass(frozen=True)
class Node:
    id: str
    module: str
    action: str
    category: str = ""
    params: dict[str, Parameter] = field(default_factory=dict)
    cache: bool = False
    time: float = 0.0
    memory: float = 0.0
    label: str | None = None
    description: str | None = None
    groups: dict[str, GroupState] = field(default_factory=dict)
    style: dict[str, str] = field(default_factory=dict)
    position: dict[str, float] = field(default_factory=dict)
    selected: bool = False
    width: float | None = None
    height: float | None = None


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    source_handle: str | None
    target: str
    target_handle: str | None
    style: dict[str, str] = field(default_factory=dict)
    selected: bool = False


@dataclass(frozen=True)
class Viewport:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True)
class Graph:
    """Read-only view of the graph: nodes in insertion order plus edges."""
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge_at(self, node_id: str, handle: str | None) -> Edge | None:
        """Return the edge feeding the (node, handle) port, if any."""
        for edge in self.edges:
            if edge.target == node_id and edge.target_handle == handle:
                return edge
        return None

    def get_incomers(self, node_id: str) -> list[Node]:
        """Direct producers of a node, unique and in node-list order."""
        sources = {e.source for e in self.edges if e.target == node_id}
        return [n for n in self.nodes if n.id in sources]

    def get_outgoers(self, node_id: str) -> list[Node]:
        targets = {e.target for e in self.edges if e.source == node_id}
        return [n for n in self.nodes if n.id in targets]

    def touching_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source == node_id or e.target == node_id]
