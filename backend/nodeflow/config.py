"""Application configuration via environment variables."""
from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "nodeflow"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    backend_address: str = "127.0.0.1:8088"
    cache_request_timeout: float | None = None
    storage_dir: Path = PROJECT_ROOT / "data" / "storage"
    workflow_key: str = "workflow"
    max_spawned_params: int = 32
    history_limit: int = 100
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = {"env_prefix": "NODEFLOW_"}


settings = Settings()
settings.storage_dir.mkdir(parents=True, exist_ok=True)
