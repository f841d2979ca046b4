"""AdPulse — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    max_upload_bytes: int = 10 * 1024 * 1024

    # ── Ingestion ──
    batch_max_retries: int = 3
    batch_retry_base_delay: float = 1.0  # seconds, doubled per attempt

    # ── Scheduler ──
    scheduler_enabled: bool = True
    stale_upload_minutes: int = 30
    stale_sweep_interval_minutes: int = 15

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adpulse.db"
        return "sqlite:///./adpulse.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
