"""Configuration management for the health-stats reproduction harness."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Harness settings loaded from environment variables (prefix ``HSR_``)."""

    model_config = SettingsConfigDict(
        env_prefix="HSR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Docker daemon connection
    docker_host: Optional[str] = None
    client_timeout: int = 60

    # Image definition
    image_name: str = "docker-poke:healthchecks"
    base_image: str = (
        "busybox@sha256:5551dbdfc48d66734d0f01cafee0952cb6e8eeecd1e2492240bf2fd9640c2279"
    )
    image_sleep: str = "2m"
    healthcheck_interval: str = "1s"
    healthcheck_timeout: str = "1s"
    healthcheck_retries: int = 3
    healthcheck_cmd: str = "echo hello"

    # Run shape
    container_count: int = Field(default=2, ge=1)
    run_duration: float = 10.0  # seconds
    call_timeout: float = 15.0  # seconds

    # Lifecycle verification
    stop_container: bool = False
    remove_container: bool = False

    # Streaming
    stream_stats: bool = True
    stream_events: bool = True
    cancel_streams_after_window: bool = True

    # Paths
    output_dir: Path = Path(".")

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # Process fan-out
    fanout_runs: int = Field(default=10, ge=1)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file; environment fills in the rest."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def ensure_dirs(self):
        """Create necessary directories."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
