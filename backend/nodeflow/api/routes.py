"""REST API routes."""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException

from ..engine.graph import Viewport
from ..engine.mutations import Connection, EdgeChange, NodeChange
from ..engine.state import get_engine, get_progress
from ..models.convert import edge_from_schema, edge_to_schema, graph_to_workflow, node_from_schema, node_to_schema
from ..models.schemas import (
    ConnectionSchema, EdgeChangeSchema, EdgeSchema, ExecutedUpdate,
    GraphExportSchema, NodeChangeSchema, NodeSchema, ParamFieldResponse,
    ParamFieldUpdate, ProgressSchema, ViewportSchema, WorkflowSchema,
)

router = APIRouter(prefix="/api")
executor_pool = ThreadPoolExecutor(max_workers=4)


def _node_change(schema: NodeChangeSchema) -> NodeChange:
    return NodeChange(
        type=schema.type, id=schema.id,
        position=schema.position, dimensions=schema.dimensions,
        selected=schema.selected,
        item=node_from_schema(schema.item) if schema.item else None,
    )


def _edge_change(schema: EdgeChangeSchema) -> EdgeChange:
    return EdgeChange(
        type=schema.type, id=schema.id, selected=schema.selected,
        item=edge_from_schema(schema.item) if schema.item else None,
    )


def _current_workflow() -> WorkflowSchema:
    engine = get_engine()
    return graph_to_workflow(engine.graph, engine.viewport)


@router.get("/graph", response_model=WorkflowSchema)
async def read_graph():
    return _current_workflow()


@router.post("/graph/nodes", response_model=NodeSchema)
async def add_node(node: NodeSchema):
    try:
        added = get_engine().add_node(node_from_schema(node))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return node_to_schema(added)


@router.post("/graph/nodes/changes", response_model=WorkflowSchema)
async def apply_node_changes(changes: list[NodeChangeSchema]):
    get_engine().apply_node_mutations([_node_change(c) for c in changes])
    return _current_workflow()


@router.post("/graph/edges/changes", response_model=WorkflowSchema)
async def apply_edge_changes(changes: list[EdgeChangeSchema]):
    get_engine().apply_edge_mutations([_edge_change(c) for c in changes])
    return _current_workflow()


@router.delete("/graph/edges/{edge_id}", response_model=WorkflowSchema)
async def disconnect_edge(edge_id: str):
    engine = get_engine()
    if engine.get_edge(edge_id) is None:
        raise HTTPException(status_code=404, detail="Edge not found")
    engine.disconnect_edge(edge_id)
    return _current_workflow()


@router.post("/graph/connect", response_model=EdgeSchema | None)
async def connect(connection: ConnectionSchema):
    edge = get_engine().connect(Connection(
        source=connection.source, source_handle=connection.source_handle,
        target=connection.target, target_handle=connection.target_handle,
        style=connection.style,
    ))
    return edge_to_schema(edge) if edge else None


@router.get("/graph/nodes/{node_id}/params/{param_key}", response_model=ParamFieldResponse)
async def read_param(node_id: str, param_key: str, field: str = "value"):
    engine = get_engine()
    node = engine.get_node(node_id)
    if node is None or param_key not in node.params:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return ParamFieldResponse(
        node_id=node_id, param_key=param_key, field=field,
        value=engine.read_parameter_field(node_id, param_key, field),
    )


@router.put("/graph/nodes/{node_id}/params/{param_key}", response_model=NodeSchema)
async def update_param(node_id: str, param_key: str, update: ParamFieldUpdate):
    engine = get_engine()
    if engine.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    engine.set_parameter_field(node_id, param_key, update.value, update.field)
    return node_to_schema(engine.get_node(node_id))


@router.post("/graph/nodes/{node_id}/executed", response_model=NodeSchema)
async def node_executed(node_id: str, update: ExecutedUpdate):
    engine = get_engine()
    if engine.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    engine.mark_executed(node_id, update.cache, update.time, update.memory)
    return node_to_schema(engine.get_node(node_id))


@router.delete("/graph/nodes/{node_id}/cache")
async def clear_node_cache(node_id: str):
    engine = get_engine()
    if engine.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    if engine.client is None:
        return {"cleared": False}
    # Only the HTTP call leaves the event loop; graph writes stay on it.
    loop = asyncio.get_event_loop()
    ok = await loop.run_in_executor(executor_pool, engine.client.clear_node_cache, node_id)
    if ok:
        engine.mark_executed(node_id, False, 0, 0)
    return {"cleared": ok}


@router.put("/graph/viewport", response_model=ViewportSchema)
async def set_viewport(viewport: ViewportSchema):
    get_engine().set_viewport(Viewport(**viewport.model_dump()))
    return viewport


@router.post("/graph/undo", response_model=WorkflowSchema)
async def undo():
    get_engine().undo()
    return _current_workflow()


@router.post("/graph/redo", response_model=WorkflowSchema)
async def redo():
    get_engine().redo()
    return _current_workflow()


@router.get(
    "/graph/export", response_model=GraphExportSchema, response_model_exclude_none=True,
)
async def export_graph(sid: str = ""):
    return get_engine().export_graph(sid)


@router.get("/progress/{node_id}", response_model=ProgressSchema)
async def read_progress(node_id: str):
    progress = get_progress().get(node_id)
    return ProgressSchema(value=progress.value, type=progress.type.value)
