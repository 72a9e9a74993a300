"""Process-wide editor state: the graph engine and the progress board."""
from ..config import settings
from .backend_client import BackendClient
from .mutations import GraphEngine
from .persistence import JsonFileStore, PersistenceMirror
from .progress import ProgressBoard


_engine: GraphEngine | None = None
_progress = ProgressBoard()


def init_engine(mirror: PersistenceMirror | None = None, client: BackendClient | None = None) -> GraphEngine:
    """Create the shared engine, rehydrating it from the persistence mirror."""
    global _engine
    if mirror is None:
        mirror = PersistenceMirror(JsonFileStore(settings.storage_dir), settings.workflow_key)
    if client is None:
        client = BackendClient(settings.backend_address, timeout=settings.cache_request_timeout)
    _engine = GraphEngine(
        mirror, client,
        max_spawned_params=settings.max_spawned_params,
        history_limit=settings.history_limit,
    )
    return _engine


def get_engine() -> GraphEngine:
    if _engine is None:
        return init_engine()
    return _engine


def get_progress() -> ProgressBoard:
    return _progress


def shutdown_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.shutdown()
    _engine = None
