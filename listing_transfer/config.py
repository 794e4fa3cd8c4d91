"""Listing transfer configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class TransferSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///listing_transfer.db"
    echo_sql: bool = False
    app_title: str = "Listing Transfer"
    log_level: str = "INFO"

    # Browser (nodriver)
    browser_headless: bool = True
    browser_extra_args: str = ""
    browser_navigation_timeout_seconds: float = 30.0
    browser_settle_seconds: float = 5.0

    # Connectivity probes
    probe_reachability_timeout_seconds: float = 10.0
    probe_login_timeout_seconds: float = 15.0
    probe_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Orchestrator
    default_action_delay_seconds: float = 3.0
    max_attempts: int = 3

    # Media
    media_dir_name: str = "data/media"
    media_download_timeout_seconds: float = 60.0

    # Retention
    log_retention_days: int = 30

    model_config = {"env_prefix": "LT_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent

    @property
    def media_dir(self) -> Path:
        path = Path(self.media_dir_name)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def browser_args(self) -> list[str]:
        """Comma-separated extra Chrome flags appended to the hardened set."""
        return [a.strip() for a in self.browser_extra_args.split(",") if a.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = TransferSettings()
