# File: backend/app/core/primer/parameters.py
# Version: v1.2.0
"""
Pydantic model for junction primer design parameters.

The annealing part of each primer (the bases that bind the fragment template) is
constrained by length / Tm / GC / homopolymer / hairpin ΔG. The 5' tail that adds
homology to the neighbouring fragment is not part of those checks, but the whole
primer must fit `primerTotalLengthMax`.

v1.2.0
- NEW `primerTotalLengthMax` (anneal + homology tail).
- `primerSecondaryStructureDeltaGMin` is now enforced (primer3 hairpin ΔG, kcal/mol).
- Dropped off-target count fields; off-target risk is scored by the plan ranker.

Usage:
    from backend.app.core.primer.parameters import PrimerDesignParameters
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, conint, confloat


class Weights(BaseModel):
    """Scoring weights for the composite pair penalty."""
    model_config = ConfigDict(frozen=True)

    wTm: float = 1.0
    wGC: float = 0.5
    wDimer: float = 1.0
    wLen: float = 0.1


class PrimerDesignParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Annealing lengths
    primerLengthMin: conint(ge=6) = Field(18, description="Minimum annealing length")
    primerLengthMax: conint(gt=6) = Field(28, description="Maximum annealing length")
    primerTotalLengthMax: conint(gt=6) = Field(60, description="Maximum primer length incl. homology tail")

    # Temperatures (range)
    primerTmMin: confloat(ge=0) = Field(52.0, description="Minimum acceptable annealing Tm (°C)")
    primerTmMax: confloat(ge=0) = Field(68.0, description="Maximum acceptable annealing Tm (°C)")

    # GC content (%)
    primerGCMin: confloat(ge=0, le=100) = Field(30.0, description="Minimum GC percentage")
    primerGCMax: confloat(ge=0, le=100) = Field(70.0, description="Maximum GC percentage")

    # Structure/sequence constraints
    primerHomopolymerMax: conint(ge=1) = Field(5, description="Max run of identical bases")
    primerSecondaryStructureDeltaGMin: float = Field(-9.0, description="Min hairpin ΔG of the annealing part (kcal/mol)")

    # Pairing constraint
    primerTmDifferenceMax: confloat(ge=0) = Field(5.0, description="Max |Tm_f - Tm_r| (°C)")

    # Tm method passed to compute_tm ("PRIMER3" | "NN" | "Wallace")
    tmMethod: str = Field("PRIMER3", description="Melting temperature model")

    weights: Weights = Field(default_factory=Weights)

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        if self.primerLengthMax < self.primerLengthMin:
            raise ValueError("primerLengthMax must be >= primerLengthMin")
        if self.primerTotalLengthMax < self.primerLengthMax:
            raise ValueError("primerTotalLengthMax must be >= primerLengthMax")
        if self.primerTmMax < self.primerTmMin:
            raise ValueError("primerTmMax must be >= primerTmMin")
        if self.primerGCMax < self.primerGCMin:
            raise ValueError("primerGCMax must be >= primerGCMin")
