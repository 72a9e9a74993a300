"""Pydantic schemas for API request/response models and the persisted workflow."""
from typing import Any, Literal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ParameterSchema(CamelModel):
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


class GroupStateSchema(CamelModel):
    disabled: bool | None = None
    hidden: bool | None = None
    open: bool | None = None


class NodeSchema(CamelModel):
    id: str
    module: str
    action: str
    category: str = ""
    params: dict[str, ParameterSchema] = {}
    cache: bool = False
    time: float = 0.0
    memory: float = 0.0
    label: str | None = None
    description: str | None = None
    groups: dict[str, GroupStateSchema] = {}
    style: dict[str, str] = {}
    position: dict[str, float] = {}
    selected: bool = False
    width: float | None = None
    height: float | None = None


class EdgeSchema(CamelModel):
    id: str
    source: str
    source_handle: str | None = None
    target: str
    target_handle: str | None = None
    style: dict[str, str] = {}
    selected: bool = False


class ViewportSchema(CamelModel):
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class WorkflowSchema(CamelModel):
    """Document mirrored to the local key/value store."""
    nodes: list[NodeSchema] = []
    edges: list[EdgeSchema] = []
    viewport: ViewportSchema | None = None


class ConnectionSchema(CamelModel):
    source: str
    source_handle: str | None = None
    target: str
    target_handle: str | None = None
    style: dict[str, str] | None = None


class NodeChangeSchema(CamelModel):
    type: Literal["position", "dimensions", "select", "remove", "add", "replace"]
    id: str | None = None
    position: dict[str, float] | None = None
    dimensions: dict[str, float] | None = None
    selected: bool | None = None
    item: NodeSchema | None = None


class EdgeChangeSchema(CamelModel):
    type: Literal["select", "remove", "add", "replace"]
    id: str | None = None
    selected: bool | None = None
    item: EdgeSchema | None = None


class ParamFieldUpdate(CamelModel):
    value: Any = None
    field: str = "value"


class ParamFieldResponse(CamelModel):
    node_id: str
    param_key: str
    field: str
    value: Any = None


class ExecutedUpdate(CamelModel):
    cache: bool
    time: float = 0.0
    memory: float = 0.0


class ProgressSchema(CamelModel):
    value: float = 0.0
    type: Literal["determinate", "indeterminate", "disabled"] = "determinate"


class ExportedParamSchema(CamelModel):
    source_id: str | None = None
    source_key: str | None = None
    value: Any = None
    display: str | None = None
    type: str | list[str] | None = None


class ExportedNodeSchema(CamelModel):
    module: str
    action: str
    params: dict[str, ExportedParamSchema] = {}


class GraphExportSchema(CamelModel):
    sid: str
    nodes: dict[str, ExportedNodeSchema] = {}
    paths: list[list[str]] = []
