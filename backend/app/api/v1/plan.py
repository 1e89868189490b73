# File: backend/app/api/v1/plan.py
# Version: v0.3.0
"""
Planning endpoints:
- POST /plan/fragments    ← assemble caller-ordered fragments
- POST /plan/sequence     ← plan a target from BLAST matches
- GET  /plan/parameters   ← current plan parameters (initialized from defaults)
- PUT  /plan/parameters   ← validate & persist plan parameters

Errors:
- NoCoveringAssemblyError / NoValidCutsiteError -> 422 (with reasons)
- SearchToolError / DesignToolError             -> 502
- other PlanningError                           -> 400
- unknown enzyme                                -> 404
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException

from backend.app.api.v1.deps import get_enzyme_db, get_match_source, get_plan_params_path
from backend.app.api.v1.schemas import PlanFragmentsRequest, PlanSequenceRequest, SequenceIn
from backend.app.config.config_plan import ensure_current_exists, load_current_params, save_current_params
from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.assembly.planner import AssemblyPlanner, MatchSource
from backend.app.core.config import settings
from backend.app.core.dna.digest import Enzyme
from backend.app.core.errors import (
    DesignToolError,
    NoCoveringAssemblyError,
    NoValidCutsiteError,
    PlanningError,
    SearchToolError,
)
from backend.app.core.export.json_exporter import plan_to_dict
from backend.app.services.enzyme_db import EnzymeDB

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plan", tags=["plan"])


def _error_detail(e: PlanningError) -> Dict[str, Any]:
    return {
        "error": type(e).__name__,
        "message": str(e),
        "target_id": e.target_id,
        "reasons": list(getattr(e, "reasons", []) or []),
    }


def _raise_http(e: PlanningError) -> NoReturn:
    if isinstance(e, (NoCoveringAssemblyError, NoValidCutsiteError)):
        status = 422
    elif isinstance(e, (SearchToolError, DesignToolError)):
        status = 502
    else:
        status = 400
    logger.warning("Planning failed (%s): %s", type(e).__name__, e)
    raise HTTPException(status_code=status, detail=_error_detail(e)) from e


def _backbone(
    backbone: Optional[SequenceIn], enzyme_name: Optional[str], enzymes: EnzymeDB
) -> Tuple[Optional[Tuple[str, str]], Optional[Enzyme]]:
    if backbone is None:
        return None, None
    if not enzyme_name:
        raise HTTPException(status_code=400, detail="A backbone requires an enzyme.")
    try:
        return (backbone.id, backbone.seq), enzymes.enzyme(enzyme_name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown enzyme: {enzyme_name}")


def _config(payload_params: Optional[PlanConfig], params_path: Path) -> PlanConfig:
    return payload_params or load_current_params(path=params_path)


@router.get("/parameters", response_model=PlanConfig)
def get_parameters(params_path: Path = Depends(get_plan_params_path)):
    """Current plan parameters; creates plan_param.json from defaults if missing."""
    _, params = ensure_current_exists(path=params_path)
    return params


@router.put("/parameters", response_model=PlanConfig)
def update_parameters(payload: PlanConfig, params_path: Path = Depends(get_plan_params_path)):
    """Validate and persist new plan parameters."""
    save_current_params(payload, path=params_path)
    return payload


@router.post("/fragments")
def plan_fragments(
    payload: PlanFragmentsRequest,
    enzymes: EnzymeDB = Depends(get_enzyme_db),
    params_path: Path = Depends(get_plan_params_path),
) -> Dict[str, Any]:
    config = _config(payload.parameters, params_path)
    backbone, enzyme = _backbone(payload.backbone, payload.enzyme, enzymes)
    planner = AssemblyPlanner(config)
    try:
        plan = planner.plan_fragments(
            [(f.id, f.seq) for f in payload.fragments],
            backbone=backbone,
            enzyme=enzyme,
            target_id=payload.target_id,
        )
    except PlanningError as e:
        _raise_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return plan_to_dict(plan)


@router.post("/sequence")
def plan_sequence(
    payload: PlanSequenceRequest,
    enzymes: EnzymeDB = Depends(get_enzyme_db),
    source: MatchSource = Depends(get_match_source),
    params_path: Path = Depends(get_plan_params_path),
) -> Dict[str, Any]:
    config = _config(payload.parameters, params_path)
    backbone, enzyme = _backbone(payload.backbone, payload.enzyme, enzymes)
    databases = payload.databases if payload.databases is not None else settings.blast_dbs_list
    planner = AssemblyPlanner(config, match_source=source)
    try:
        plan = planner.plan_sequence(
            payload.target_id, payload.sequence, databases, backbone=backbone, enzyme=enzyme
        )
    except PlanningError as e:
        _raise_http(e)
    return plan_to_dict(plan)
