"""ClawHuddle configuration — loaded once from environment / .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CLAWHUDDLE_", extra="ignore", frozen=True
    )

    env: str = "development"
    secret_key: str = "change-me"
    database_url: str = "sqlite+aiosqlite:///./clawhuddle.db"

    # Root for skill repo checkouts and per-member gateway trees
    data_dir: Path = Path("data")

    # Per-member OpenClaw gateways
    gateway_host: str = "127.0.0.1"
    gateway_port_start: int = 19000
    gateway_port_end: int = 19999
    openclaw_version: str = "2026.2.17"

    # git subprocess ceilings (seconds)
    git_clone_timeout: float = 60.0
    git_pull_timeout: float = 30.0


settings = Settings()
