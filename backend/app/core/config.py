# File: backend/app/core/config.py
# Version: v0.4.0
"""
Centralized application settings using Pydantic Settings.

Controls:
- App metadata and API prefix
- CORS origins
- Paths to the enzyme / feature stores and the plan parameters JSON
- BLAST databases and executables used by the match source
- Log level for CLIs and the API

v0.4.0
- Store/BLAST paths replace the construction-tree config paths.
"""
from __future__ import annotations

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

_APP_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    # --- App ---
    API_PREFIX: str = "/api"
    APP_NAME: str = "VecForge"
    APP_VERSION: str = "0.4.0"

    # --- CORS ---
    CORS_ORIGINS: str = "*"  # comma-separated or '*' for all

    # --- Stores / parameters ---
    ENZYME_DB_PATH: Path = _APP_DIR / "data" / "enzymes.tsv"
    FEATURE_DB_PATH: Path = _APP_DIR / "data" / "features.tsv"
    PLAN_PARAMS_PATH: Path = _APP_DIR / "config" / "plan_param.json"

    # --- Match source ---
    BLAST_DBS: str = ""  # comma-separated BLAST database paths
    BLASTN_BIN: str = "blastn"
    BLASTDBCMD_BIN: str = "blastdbcmd"
    BLAST_THREADS: int = 1

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def blast_dbs_list(self) -> list[str]:
        return [d.strip() for d in self.BLAST_DBS.split(",") if d.strip()]


settings = Settings()
