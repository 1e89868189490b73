# File: backend/app/core/primer/scoring.py
# Version: v0.2.0
"""
Composite penalty for a junction primer pair.

Lower is better. Components:
- Tm distance from the allowed band's midpoint for each primer + |ΔTm between primers|
- GC deviation from midpoint of allowed range
- Cross-dimer penalty (consecutive and total complementary matches)
- Length of the homology tails (longer tails cost more and misprime more)

The plan ranker sums these per assembly ("aggregate primer penalty").
"""

from __future__ import annotations

from dataclasses import dataclass

from backend.app.core.primer.parameters import PrimerDesignParameters


@dataclass
class ScoreContext:
    tm_min: float
    tm_max: float
    gc_min: float
    gc_max: float
    wTm: float
    wGC: float
    wDimer: float
    wLen: float

    @classmethod
    def from_params(cls, p: PrimerDesignParameters) -> "ScoreContext":
        w = p.weights
        return cls(
            tm_min=p.primerTmMin,
            tm_max=p.primerTmMax,
            gc_min=p.primerGCMin,
            gc_max=p.primerGCMax,
            wTm=w.wTm,
            wGC=w.wGC,
            wDimer=w.wDimer,
            wLen=w.wLen,
        )


def _mid(lo: float, hi: float) -> float:
    return (lo + hi) / 2.0


def score_pair(
    ctx: ScoreContext,
    f_tm: float,
    f_gc: float,
    r_tm: float,
    r_gc: float,
    cross_dimer_max_consec: int,
    cross_dimer_total: int,
    tail_len: int,
) -> float:
    tmid = _mid(ctx.tm_min, ctx.tm_max)
    tm_pen = abs(f_tm - tmid) + abs(r_tm - tmid) + 2.0 * abs(f_tm - r_tm)

    gmid = _mid(ctx.gc_min, ctx.gc_max)
    gc_pen = abs(f_gc - gmid) + abs(r_gc - gmid)

    # Dimer penalties (weight consecutive higher)
    dimer_pen = 2.0 * cross_dimer_max_consec + 0.5 * cross_dimer_total

    return (
        ctx.wTm * tm_pen
        + ctx.wGC * gc_pen
        + ctx.wDimer * dimer_pen
        + ctx.wLen * tail_len
    )
