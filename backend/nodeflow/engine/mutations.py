"""Graph mutation engine: the only writer of node and edge state.

Every structural operation replaces the affected Node/Edge records, then
mirrors the whole graph to the persistence store and records an undo
snapshot. Lookups against unknown nodes or parameters return None.
"""
import logging
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Literal, Mapping

from .backend_client import BackendClient
from .graph import Edge, Graph, GroupState, Node, Parameter, Viewport
from .history import UndoRedoStack
from .paths import export_graph
from .persistence import PersistenceMirror
from .spawn import MAX_SPAWNED_PARAMS, is_spawnable, is_spawned_slot, retract_parameter, spawn_parameter

logger = logging.getLogger(__name__)

DEFAULT_EDGE_STYLE = {"stroke": "#aaaaaa"}
GROUP_FIELD = "group"
DEFAULT_HISTORY_LIMIT = 100

_PARAM_FIELDS = {f.name for f in fields(Parameter)}
_GROUP_FIELDS = {f.name for f in fields(GroupState)}


@dataclass(frozen=True)
class NodeChange:
    type: Literal["position", "dimensions", "select", "remove", "add", "replace"]
    id: str | None = None
    position: dict[str, float] | None = None
    dimensions: dict[str, float] | None = None
    selected: bool | None = None
    item: Node | None = None


@dataclass(frozen=True)
class EdgeChange:
    type: Literal["select", "remove", "add", "replace"]
    id: str | None = None
    selected: bool | None = None
    item: Edge | None = None


@dataclass(frozen=True)
class Connection:
    source: str
    source_handle: str | None
    target: str
    target_handle: str | None
    style: dict[str, str] | None = None


class GraphEngine:
    """Owns the node/edge collections of one editor session.

    Other components get read-only views through ``graph``, ``nodes`` and
    ``edges``. Cache invalidation on node removal runs on ``executor`` and
    never blocks or reverts the local change.
    """

    def __init__(
        self,
        mirror: PersistenceMirror,
        client: BackendClient | None = None,
        executor: Executor | None = None,
        max_spawned_params: int = MAX_SPAWNED_PARAMS,
        history_limit: int | None = DEFAULT_HISTORY_LIMIT,
    ):
        self.mirror = mirror
        self.client = client
        self.max_spawned_params = max_spawned_params
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="cache-invalidation",
        )
        self._pending: set[Future] = set()

        graph, self._viewport = mirror.load_graph()
        self._nodes: list[Node] = list(graph.nodes)
        node_ids = {n.id for n in self._nodes}
        self._edges: list[Edge] = [
            e for e in graph.edges if e.source in node_ids and e.target in node_ids
        ]
        if len(self._edges) != len(graph.edges):
            logger.warning(
                "Dropped %d stored edge(s) pointing at missing nodes",
                len(graph.edges) - len(self._edges),
            )
        self.history = UndoRedoStack(self.graph, limit=history_limit)

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def graph(self) -> Graph:
        return Graph(nodes=tuple(self._nodes), edges=tuple(self._edges))

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    def get_node(self, node_id: str) -> Node | None:
        return self.graph.get_node(node_id)

    def get_edge(self, edge_id: str) -> Edge | None:
        for edge in self._edges:
            if edge.id == edge_id:
                return edge
        return None

    # ── Internal helpers ─────────────────────────────────────────────────

    def _commit(self, record_history: bool = True) -> None:
        graph = self.graph
        self.mirror.save(graph, self._viewport)
        if record_history:
            self.history.set_present(graph)

    def _put_node(self, node: Node) -> None:
        self._nodes = [node if n.id == node.id else n for n in self._nodes]

    def _put_edge(self, edge: Edge) -> None:
        self._edges = [edge if e.id == edge.id else e for e in self._edges]

    def _remove_edge(self, edge: Edge) -> None:
        """Drop an edge; a spawned slot it was feeding is dropped with it."""
        self._edges = [e for e in self._edges if e.id != edge.id]
        target = self.get_node(edge.target)
        if target is not None and is_spawned_slot(target.params, edge.target_handle):
            self._put_node(replace(target, params=retract_parameter(target.params, edge.target_handle)))

    def _invalidate_cache(self, node_ids: list[str]) -> None:
        if self.client is None:
            return
        future = self._executor.submit(self.client.clear_node_cache, node_ids)
        self._pending.add(future)
        future.add_done_callback(self._on_invalidated)

    def _on_invalidated(self, future: Future) -> None:
        self._pending.discard(future)
        exc = future.exception()
        if exc is not None:
            logger.error("Cache invalidation failed: %s", exc)

    def wait_pending(self, timeout: float | None = None) -> None:
        """Block until in-flight cache invalidation requests finish."""
        wait(list(self._pending), timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

    # ── Nodes ────────────────────────────────────────────────────────────

    def add_node(self, node: Node) -> Node:
        """Seed every parameter's value from its default and append the node."""
        if self.get_node(node.id) is not None:
            raise ValueError(f"Node '{node.id}' already exists")
        params = {
            key: replace(p, value=p.value if p.value is not None else p.default)
            for key, p in node.params.items()
        }
        node = replace(node, params=params)
        self._nodes.append(node)
        self._commit()
        return node

    def apply_node_mutations(self, changes: Iterable[NodeChange]) -> None:
        """Apply a batch of node changes in order; the last write to a node wins."""
        removed: list[str] = []
        for change in changes:
            if change.type == "add":
                if change.item is None or self.get_node(change.item.id) is not None:
                    logger.warning("Ignoring node add without a new item: %s", change)
                    continue
                self._nodes.append(change.item)
                continue

            node = self.get_node(change.id or (change.item.id if change.item else ""))
            if node is None:
                continue

            if change.type == "remove":
                self._nodes = [n for n in self._nodes if n.id != node.id]
                removed.append(node.id)
            elif change.type == "replace" and change.item is not None:
                self._put_node(replace(change.item, id=node.id))
            elif change.type == "position" and change.position is not None:
                self._put_node(replace(node, position=dict(change.position)))
            elif change.type == "dimensions" and change.dimensions is not None:
                self._put_node(replace(
                    node,
                    width=change.dimensions.get("width", node.width),
                    height=change.dimensions.get("height", node.height),
                ))
            elif change.type == "select" and change.selected is not None:
                self._put_node(replace(node, selected=change.selected))

        for node_id in removed:
            for edge in self.graph.touching_edges(node_id):
                self._remove_edge(edge)

        self._commit()

        if removed:
            self._invalidate_cache(removed)

    # ── Edges ────────────────────────────────────────────────────────────

    def apply_edge_mutations(self, changes: Iterable[EdgeChange]) -> None:
        """Apply a batch of edge changes in order.

        Added and replacing edges must join existing nodes, and are placed
        with the same port policy as ``connect``.
        """
        for change in changes:
            if change.type == "add":
                item = change.item
                if item is None or self.get_edge(item.id) is not None:
                    logger.warning("Ignoring edge add without a new item: %s", change)
                    continue
                if not self._joins_known_nodes(item):
                    continue
                self._place_edge(item)
                continue

            edge = self.get_edge(change.id or (change.item.id if change.item else ""))
            if edge is None:
                continue

            if change.type == "remove":
                self._remove_edge(edge)
            elif change.type == "replace" and change.item is not None:
                item = replace(change.item, id=edge.id)
                if not self._joins_known_nodes(item):
                    continue
                if (item.target, item.target_handle) == (edge.target, edge.target_handle):
                    self._put_edge(item)
                else:
                    self._remove_edge(edge)
                    self._place_edge(item)
            elif change.type == "select" and change.selected is not None:
                self._put_edge(replace(edge, selected=change.selected))

        self._commit()

    def disconnect_edge(self, edge_id: str) -> None:
        self.apply_edge_mutations([EdgeChange(type="remove", id=edge_id)])

    def connect(self, connection: Connection) -> Edge | None:
        """Wire ``source.source_handle`` into ``target.target_handle``.

        Returns the recorded edge, or None when the connection was dropped.
        Re-wiring the producer already on the port returns its edge unchanged.
        """
        edge = Edge(
            id=str(uuid.uuid4()),
            source=connection.source,
            source_handle=connection.source_handle,
            target=connection.target,
            target_handle=connection.target_handle,
            style=dict(connection.style or DEFAULT_EDGE_STYLE),
        )
        if not self._joins_known_nodes(edge):
            return None
        placed = self._place_edge(edge)
        if placed is not None and placed.id == edge.id:
            self._commit()
        return placed

    def _joins_known_nodes(self, edge: Edge) -> bool:
        if self.get_node(edge.source) is None or self.get_node(edge.target) is None:
            logger.warning("Ignoring edge %s between unknown nodes", edge.id)
            return False
        return True

    def _place_edge(self, edge: Edge) -> Edge | None:
        """Insert an edge, keeping one producer per target port.

        A regular port drops the edge already there. An occupied port of a
        spawn family gets a fresh sibling slot instead, unless the family is
        full, in which case nothing is inserted.
        """
        target = self.get_node(edge.target)
        existing = self.graph.get_edge_at(edge.target, edge.target_handle)
        if existing is not None and (existing.source, existing.source_handle) == (
            edge.source, edge.source_handle,
        ):
            return existing

        target_handle = edge.target_handle
        if (
            existing is not None
            and target_handle is not None
            and is_spawnable(target.params, target_handle)
        ):
            spawned = spawn_parameter(target.params, target_handle, self.max_spawned_params)
            if spawned is None:
                logger.info(
                    "Spawn limit of %d reached on %s.%s, edge %s dropped",
                    self.max_spawned_params, target.id, target_handle, edge.id,
                )
                return None
            params, target_handle = spawned
            self._put_node(replace(target, params=params))
        elif existing is not None:
            self._edges = [e for e in self._edges if e.id != existing.id]

        edge = replace(edge, target_handle=target_handle)
        self._edges.append(edge)
        return edge

    # ── Parameters ───────────────────────────────────────────────────────

    def set_parameter_field(
        self, node_id: str, param_key: str, value: Any, field: str = "value",
    ) -> None:
        """Replace one field of one parameter.

        The ``group`` field is routed to the node's ``groups`` map instead:
        ``value`` is merged into ``groups[param_key]``.
        """
        node = self.get_node(node_id)
        if node is None:
            return

        if field == GROUP_FIELD:
            if value is not None and not isinstance(value, Mapping):
                logger.warning("Group state for %s.%s must be a mapping, got %r", node_id, param_key, value)
                return
            updates = {k: v for k, v in (value or {}).items() if k in _GROUP_FIELDS}
            current = node.groups.get(param_key, GroupState())
            groups = {**node.groups, param_key: replace(current, **updates)}
            self._put_node(replace(node, groups=groups))
        else:
            if field not in _PARAM_FIELDS:
                logger.warning("Unknown parameter field '%s' on %s.%s", field, node_id, param_key)
                return
            param = node.params.get(param_key, Parameter())
            params = {**node.params, param_key: replace(param, **{field: value})}
            self._put_node(replace(node, params=params))

        self._commit()

    def read_parameter_field(self, node_id: str, param_key: str, field: str = "value") -> Any:
        node = self.get_node(node_id)
        if node is None:
            return None
        param = node.params.get(param_key)
        if param is None or field not in _PARAM_FIELDS:
            return None
        return getattr(param, field)

    # ── Telemetry & backend cache ────────────────────────────────────────

    def mark_executed(self, node_id: str, cached: bool, time: float, memory: float) -> None:
        """Record execution telemetry. Session-only: nothing is persisted."""
        node = self.get_node(node_id)
        if node is None:
            return
        self._put_node(replace(node, cache=cached, time=time, memory=memory))

    def clear_node_cache(self, node_id: str) -> bool:
        """Invalidate one node's backend cache; telemetry resets only on success."""
        if self.client is None or self.get_node(node_id) is None:
            return False
        ok = self.client.clear_node_cache(node_id)
        if ok:
            self.mark_executed(node_id, False, 0, 0)
        return ok

    # ── Viewport, history, export ────────────────────────────────────────

    def set_viewport(self, viewport: Viewport) -> None:
        self._viewport = viewport
        self.mirror.save(self.graph, viewport)

    def snapshot(self) -> Graph:
        return self.graph

    def restore(self, graph: Graph, record_history: bool = True) -> None:
        self._nodes = list(graph.nodes)
        self._edges = list(graph.edges)
        self._commit(record_history=record_history)

    def undo(self) -> Graph | None:
        graph = self.history.undo()
        if graph is not None:
            self.restore(graph, record_history=False)
        return graph

    def redo(self) -> Graph | None:
        graph = self.history.redo()
        if graph is not None:
            self.restore(graph, record_history=False)
        return graph

    def export_graph(self, session_id: str | None) -> dict[str, Any]:
        return export_graph(self.graph, session_id)
