# File: backend/app/config/config_plan.py
# Version: v0.3.0
"""
Plan configuration loader/saver.

- Reads defaults from: backend/app/config/plan_param_default.json
- Reads/writes current from: backend/app/config/plan_param.json
- Validates payloads with PlanConfig (Pydantic) from core/assembly/plan_parameters.py

Usage:
    from backend.app.config.config_plan import load_current_params, save_current_params

Notes
-----
- Missing sections/keys fall back to the model defaults, so a partial JSON such as

  {
    "synthesis": { "bp_cost": 0.07, "max_length": 1800 },
    "search": { "max_fragments": 5 }
  }

  is a valid configuration.

Thread-safety:
- Uses atomic writes (tmp + replace) to avoid partial/dirty writes.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from backend.app.core.assembly.plan_parameters import PlanConfig

logger = logging.getLogger(__name__)

# Resolve config directory relative to this file
_THIS_DIR = Path(__file__).resolve().parent
CONFIG_DIR = _THIS_DIR
DEFAULT_FILE = CONFIG_DIR / "plan_param_default.json"
CURRENT_FILE = CONFIG_DIR / "plan_param.json"


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _atomic_write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    os.replace(tmp, path)


def load_plan_config(path: Optional[Path | str]) -> PlanConfig:
    """Load a PlanConfig from an explicit JSON file (None → model defaults)."""
    if path is None:
        return PlanConfig()
    payload = _read_json(Path(path))
    if not payload:
        logger.warning("Plan config %s missing or empty; using defaults", path)
    return PlanConfig.model_validate(payload or {})


def load_default_params() -> PlanConfig:
    """Load default plan parameters from plan_param_default.json."""
    return PlanConfig.model_validate(_read_json(DEFAULT_FILE) or {})


def load_current_params(fallback_to_default: bool = True, path: Path = CURRENT_FILE) -> PlanConfig:
    """
    Load current (editable) plan parameters.
    If the file is missing and fallback is True, return defaults.
    """
    payload = _read_json(path)
    if not payload and fallback_to_default:
        return load_default_params()
    return PlanConfig.model_validate(payload or {})


def save_current_params(params: PlanConfig, path: Path = CURRENT_FILE) -> None:
    """Persist current parameters to plan_param.json (atomic write)."""
    _atomic_write_json(path, params.model_dump(mode="json"))


def ensure_current_exists(path: Path = CURRENT_FILE) -> Tuple[bool, PlanConfig]:
    """
    Ensure plan_param.json exists; if not, initialize from defaults.
    Returns (created, params).
    """
    if path.exists():
        return False, load_current_params(path=path)
    defaults = load_default_params()
    save_current_params(defaults, path=path)
    return True, defaults
