# File: backend/app/api/v1/schemas.py
# Version: v0.2.0
"""
Request/response models for the planning and store endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from backend.app.core.assembly.plan_parameters import PlanConfig


class SequenceIn(BaseModel):
    id: str = Field(..., min_length=1)
    seq: str = Field(..., min_length=1)


class PlanFragmentsRequest(BaseModel):
    target_id: str = "assembly"
    fragments: List[SequenceIn] = Field(..., min_length=1)
    backbone: Optional[SequenceIn] = None
    enzyme: Optional[str] = None
    parameters: Optional[PlanConfig] = None   # omitted -> stored plan_param.json


class PlanSequenceRequest(BaseModel):
    target_id: str = "target"
    sequence: str = Field(..., min_length=1)
    databases: Optional[List[str]] = None     # omitted -> settings.BLAST_DBS
    backbone: Optional[SequenceIn] = None
    enzyme: Optional[str] = None
    parameters: Optional[PlanConfig] = None


class StoreEntry(BaseModel):
    name: str
    value: str


class StoreValue(BaseModel):
    value: str = Field(..., min_length=1)
