# File: backend/app/core/assembly/plan_parameters.py
# Version: v0.4.0
"""
Cost-model and search configuration for assembly planning (Pydantic, frozen).

Sections
--------
- fragments : homology bounds and the minimum useful match length
- pcr       : per-base primer cost and the primer length assumed by the cost model
- synthesis : per-base synthesis cost and synthetic fragment length bounds
- search    : fragment-count cap, reach budget, table/pool bounds
- validation: ranker thresholds and flag policy
- execution : primer-design worker pool
- primers   : PrimerDesignParameters for the junction designer

A `PlanConfig` is attached to every node created during a run; it is frozen so
nodes and the search can share it without copying or locking.

v0.4.0
- `validation.flag_policy` (tiebreak | deprioritize | drop).
v0.3.0
- `execution.design_timeout_s`: a timed-out junction design invalidates the junction.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, conint, confloat

from backend.app.core.primer.parameters import PrimerDesignParameters


class FlagPolicy(str, Enum):
    TIEBREAK = "tiebreak"          # flags rank after count and cost
    DEPRIORITIZE = "deprioritize"  # flagged assemblies rank after every clean one
    DROP = "drop"                  # flagged assemblies are removed


class FragmentsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_homology: conint(ge=1) = Field(20, description="Min junction homology created by PCR/synthesis (bp)")
    max_homology: conint(ge=1) = Field(120, description="Max junction homology (bp)")
    existing_homology: conint(ge=0) = Field(
        20, description="Overlap beyond this many bp counts as free existing homology"
    )
    min_match_length: conint(ge=1) = Field(40, description="Shorter matches cannot carry two homology arms")


class PCRConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bp_cost: confloat(ge=0) = Field(0.6, description="USD per primer base")
    primer_length: conint(ge=1) = Field(60, description="Primer bases assumed per PCR reaction by the cost model")


class SynthesisConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    bp_cost: confloat(ge=0) = Field(0.1, description="USD per synthesized base")
    max_length: conint(ge=1) = Field(3000, description="Longest orderable synthetic fragment (bp)")
    min_length: conint(ge=1) = Field(125, description="Shortest orderable synthetic fragment (bp)")


class SearchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_fragments: conint(ge=1) = Field(6, description="Global fragment-count bound")
    synthesis_reach_min: conint(ge=0) = Field(5, description="Min nodes reachable only via synthesis")
    synthesis_reach_fraction: confloat(ge=0, le=1) = Field(
        0.05, description="Reach budget as a fraction of the node count"
    )
    max_partials_per_node: conint(ge=1) = Field(8, description="Partial paths kept per node and anchor")
    max_solutions: conint(ge=1) = Field(20, description="Complete assemblies retained by branch-and-bound")
    max_reported: conint(ge=1) = Field(5, description="Ranked assemblies returned in a plan")


class ValidationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    flag_policy: FlagPolicy = FlagPolicy.TIEBREAK
    duplicate_max_distance: confloat(ge=0, le=1) = Field(
        0.1, description="Junction regions closer than this normalized edit distance are duplicates"
    )
    inverted_repeat_min_run: conint(ge=1) = Field(
        10, description="Consecutive self-complementary bases that flag a junction"
    )
    offtarget_max_mismatches: conint(ge=0) = Field(1, description="Mismatches tolerated for a binding site")


class ExecutionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    workers: conint(ge=1) = Field(4, description="Concurrent junction designs")
    design_timeout_s: confloat(gt=0) = Field(30.0, description="Per-junction design timeout (s)")


class PlanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fragments: FragmentsConfig = Field(default_factory=FragmentsConfig)
    pcr: PCRConfig = Field(default_factory=PCRConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    primers: PrimerDesignParameters = Field(default_factory=PrimerDesignParameters)

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        f = self.fragments
        if f.max_homology < f.min_homology:
            raise ValueError("fragments.max_homology must be >= fragments.min_homology")
        if self.synthesis.max_length < self.synthesis.min_length:
            raise ValueError("synthesis.max_length must be >= synthesis.min_length")
        if self.synthesis.max_length <= 2 * f.min_homology:
            raise ValueError("synthesis.max_length must leave room for two homology flanks")

    @property
    def pcr_reaction_cost(self) -> float:
        """Flat cost the model charges for a PCR-amplified fragment."""
        return self.pcr.bp_cost * self.pcr.primer_length
