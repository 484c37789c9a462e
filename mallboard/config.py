"""MallBoard — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Marketplace gateway (product-sales fetch + save) ──
    gateway_base_url: str = "http://localhost:8000"
    gateway_timeout: float = 30.0
    gateway_max_attempts: int = 1  # no automatic retry

    # ── Marketplace APIs ──
    qoo10_api_base: str = (
        "https://api.qoo10.jp/GMKT.INC.Front.QAPIService/ebayjapan.qapi"
    )
    rakuten_api_base: str = "https://api.rms.rakuten.co.jp/es/2.0"
    marketplace_timeout: float = 60.0

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = False
    batch_hour: int = 3  # Daily mall sync at 3 AM
    default_range_days: int = 30
    batch_window_days: int = 30
    currency: str = "JPY"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/mallboard.db"
        return "sqlite:///./mallboard.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
