"""Execution path derivation: per-terminal ancestor paths and graph export."""
from typing import Any

from .formatter import format_node
from .graph import Graph, Node


def build_path(graph: Graph, node_id: str, visited: frozenset[str] = frozenset()) -> list[str]:
    """Return the node ids needed to produce ``node_id``, ending with it.

    Each incomer's sub-path is computed depth-first and concatenated in
    incomer order. The cycle guard is local to the current branch, so a
    shared ancestor shows up once per branch that reaches it.
    """
    if node_id in visited:
        return []
    if graph.get_node(node_id) is None:
        return []

    incomers = graph.get_incomers(node_id)
    if not incomers:
        return [node_id]

    branch_visited = visited | {node_id}
    path: list[str] = []
    for incomer in incomers:
        path.extend(build_path(graph, incomer.id, branch_visited))
    path.append(node_id)
    return path


def terminal_nodes(graph: Graph) -> list[Node]:
    """Nodes with no outgoing edges, in node-list order."""
    return [n for n in graph.nodes if not graph.get_outgoers(n.id)]


def export_graph(graph: Graph, session_id: str | None) -> dict[str, Any]:
    """Build the job description: every node formatted, one path per terminal."""
    paths = [build_path(graph, n.id) for n in terminal_nodes(graph)]
    nodes = {n.id: format_node(n, graph.edges) for n in graph.nodes}
    return {
        "sid": session_id or "",
        "nodes": nodes,
        "paths": paths,
    }
