"""Local key/value mirror of the live graph, used to recover it on reload."""
import logging
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from ..models.convert import graph_from_workflow, graph_to_workflow, viewport_from_schema
from ..models.schemas import WorkflowSchema
from .graph import Graph, Viewport

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """One ``<key>.json`` file per key inside a directory."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._path(key).write_text(value, encoding="utf-8")


class PersistenceMirror:
    """Keeps the stored workflow document in step with the engine.

    The document is ``{nodes, edges, viewport}``. Graph writes keep whatever
    viewport is already stored so canvas position survives structural edits.
    """

    def __init__(self, store: KeyValueStore, key: str = "workflow"):
        self.store = store
        self.key = key

    def load(self) -> WorkflowSchema:
        """Read the stored workflow; missing or unreadable state is an empty graph."""
        try:
            raw = self.store.get(self.key)
        except (UnicodeDecodeError, OSError) as e:
            logger.warning("Discarding unreadable workflow %r: %s", self.key, e)
            return WorkflowSchema()
        if not raw:
            return WorkflowSchema()
        try:
            return WorkflowSchema.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable workflow %r: %s", self.key, e)
            return WorkflowSchema()

    def load_graph(self) -> tuple[Graph, Viewport]:
        workflow = self.load()
        return graph_from_workflow(workflow), viewport_from_schema(workflow.viewport)

    def stored_viewport(self) -> Viewport:
        return viewport_from_schema(self.load().viewport)

    def save(self, graph: Graph, viewport: Viewport | None = None) -> None:
        if viewport is None:
            viewport = self.stored_viewport()
        workflow = graph_to_workflow(graph, viewport)
        self.store.set(self.key, workflow.model_dump_json(by_alias=True))

    def save_viewport(self, viewport: Viewport) -> None:
        graph, _ = self.load_graph()
        self.save(graph, viewport)
