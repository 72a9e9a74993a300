"""FastAPI application with CORS, lifespan, and routes."""
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .api.routes import router
from .api.websocket import apply_message, manager
from .engine.state import get_engine, get_progress, shutdown_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Startup: rehydrate the graph from the persistence mirror
    get_engine()
    yield
    shutdown_engine()


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.websocket("/ws/progress/{session_id}")
async def progress_endpoint(websocket: WebSocket, session_id: str):
    await manager.connect(session_id, websocket)
    try:
        while True:
            try:
                data = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                logger.warning("Dropping non-JSON progress message on session %s", session_id)
                continue
            if isinstance(data, dict) and apply_message(data, get_progress(), get_engine()):
                await manager.send_to_session(session_id, data, exclude=websocket)
    except WebSocketDisconnect:
        manager.disconnect(session_id, websocket)
