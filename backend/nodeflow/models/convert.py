"""Conversion between API/storage schemas and engine graph records."""
from dataclasses import asdict

from ..engine.graph import Edge, Graph, GroupState, Node, Parameter, Viewport
from .schemas import (
    EdgeSchema, GroupStateSchema, NodeSchema, ParameterSchema,
    ViewportSchema, WorkflowSchema,
)


def parameter_from_schema(schema: ParameterSchema) -> Parameter:
    return Parameter(**schema.model_dump())


def node_from_schema(schema: NodeSchema) -> Node:
    data = schema.model_dump(exclude={"params", "groups"})
    return Node(
        **data,
        params={k: parameter_from_schema(p) for k, p in schema.params.items()},
        groups={k: GroupState(**g.model_dump()) for k, g in schema.groups.items()},
    )


def node_to_schema(node: Node) -> NodeSchema:
    return NodeSchema(
        id=node.id, module=node.module, action=node.action,
        category=node.category,
        params={k: ParameterSchema(**asdict(p)) for k, p in node.params.items()},
        cache=node.cache, time=node.time, memory=node.memory,
        label=node.label, description=node.description,
        groups={k: GroupStateSchema(**asdict(g)) for k, g in node.groups.items()},
        style=node.style, position=node.position, selected=node.selected,
        width=node.width, height=node.height,
    )


def edge_from_schema(schema: EdgeSchema) -> Edge:
    return Edge(**schema.model_dump())


def edge_to_schema(edge: Edge) -> EdgeSchema:
    return EdgeSchema(**asdict(edge))


def viewport_from_schema(schema: ViewportSchema | None) -> Viewport:
    if schema is None:
        return Viewport()
    return Viewport(**schema.model_dump())


def graph_from_workflow(workflow: WorkflowSchema) -> Graph:
    return Graph(
        nodes=tuple(node_from_schema(n) for n in workflow.nodes),
        edges=tuple(edge_from_schema(e) for e in workflow.edges),
    )


def graph_to_workflow(graph: Graph, viewport: Viewport | None = None) -> WorkflowSchema:
    return WorkflowSchema(
        nodes=[node_to_schema(n) for n in graph.nodes],
        edges=[edge_to_schema(e) for e in graph.edges],
        viewport=ViewportSchema(**asdict(viewport)) if viewport else None,
    )
