"""Convert graph nodes into the job entries the execution backend consumes."""
from typing import Any

from .graph import Edge, Node


def _drop_unset(entry: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in entry.items() if v is not None}


def format_node(node: Node, edges: list[Edge] | tuple[Edge, ...]) -> dict[str, Any]:
    """Format one node as ``{module, action, params}``.

    Output parameters are skipped: they only exist as edge sources.
    Parameters fed by an edge carry the producer in ``sourceId``/``sourceKey``;
    the others fall back to their static ``source`` field.
    """
    input_edges = [e for e in edges if e.target == node.id]
    params: dict[str, dict[str, Any]] = {}

    for key, param in node.params.items():
        if param.is_output:
            continue
        edge = next((e for e in input_edges if e.target_handle == key), None)
        params[key] = _drop_unset({
            "sourceId": edge.source if edge else None,
            "sourceKey": edge.source_handle if edge else param.source,
            "value": param.value,
            "display": param.display,
            "type": param.type,
        })

    return {
        "module": node.module,
        "action": node.action,
        "params": params,
    }
