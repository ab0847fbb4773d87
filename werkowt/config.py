from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the Werkowt backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("WERKOWT_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("WERKOWT_DB_PATH") or (self.data_root / "werkowt.db")
        ).expanduser()
        # In production you MUST set WERKOWT_JWT_SECRET.
        self.jwt_secret: str = os.environ.get("WERKOWT_JWT_SECRET") or "dev-secret-change-me"
        self.token_ttl_days: int = int(os.environ.get("WERKOWT_TOKEN_TTL_DAYS") or "7")
        self.cookie_secure: bool = (os.environ.get("WERKOWT_COOKIE_SECURE") or "").strip() in {"1", "true", "True"}
        self.log_level: str = (os.environ.get("WERKOWT_LOG_LEVEL") or "INFO").strip().upper()
        self.max_upload_mb: int = int(os.environ.get("WERKOWT_MAX_UPLOAD_MB") or "5")

        # ---- Hosted LLM (messages API) ----
        self.anthropic_api_key: str | None = os.environ.get("ANTHROPIC_API_KEY")
        self.anthropic_base_url: str = os.environ.get(
            "ANTHROPIC_BASE_URL", "https://api.anthropic.com"
        )
        self.anthropic_model: str = os.environ.get(
            "ANTHROPIC_MODEL", "claude-3-5-sonnet-20240620"
        )
        self.anthropic_version: str = os.environ.get("ANTHROPIC_VERSION", "2023-06-01")
        self.anthropic_timeout: float = float(os.environ.get("ANTHROPIC_TIMEOUT", "60"))
        self.anthropic_max_tokens: int = int(os.environ.get("ANTHROPIC_MAX_TOKENS", "4096"))

        cors = os.environ.get("WERKOWT_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
