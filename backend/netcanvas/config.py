"""Application configuration via environment variables."""
from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "NetCanvas"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_file: Path | None = None
    max_networks: int = 50
    default_batch_size: int = 32
    bytes_per_value: int = 4  # float32
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = {"env_prefix": "NETCANVAS_"}


settings = Settings()
