# File: backend/app/api/v1/deps.py
# Version: v0.3.0
"""
Dependency providers for the v1 routers.

Stores and the match source are created once per process (lru_cache) from
`settings`; tests swap them with `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from backend.app.core.assembly.planner import MatchSource
from backend.app.core.blast.match_source import BlastMatchSource
from backend.app.core.config import settings
from backend.app.services.enzyme_db import EnzymeDB
from backend.app.services.feature_db import FeatureDB


@lru_cache(maxsize=1)
def get_enzyme_db() -> EnzymeDB:
    return EnzymeDB(settings.ENZYME_DB_PATH)


@lru_cache(maxsize=1)
def get_feature_db() -> FeatureDB:
    return FeatureDB(settings.FEATURE_DB_PATH)


@lru_cache(maxsize=1)
def get_match_source() -> MatchSource:
    return BlastMatchSource(
        blastn_bin=settings.BLASTN_BIN,
        blastdbcmd_bin=settings.BLASTDBCMD_BIN,
        threads=settings.BLAST_THREADS,
    )


def get_plan_params_path() -> Path:
    return settings.PLAN_PARAMS_PATH
