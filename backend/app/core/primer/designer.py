# File: backend/app/core/primer/designer.py
# Version: v2.0.0
"""
Junction primer design: anchored primers that add homology tails.

What this file does
-------------------
- Given the two fragments meeting at a junction (`left_flank` ends at the junction,
  `right_flank` starts at it) and the overlap they already share, designs:
  - a **reverse** primer for the left fragment: anneals to its 3' end and carries a
    5' tail copying the bases that follow the junction on the target;
  - a **forward** primer for the right fragment: anneals to its 5' end and carries a
    5' tail copying the bases that precede the junction.
  After PCR the two products share `existing + tails` bases of homology, which must
  land in [min_homology, max_homology].
- Annealing parts are enumerated over [primerLengthMin, primerLengthMax] and must pass:
  - Tm in [primerTmMin, primerTmMax]   (primer3 calc_tm by default)
  - GC% in [primerGCMin, primerGCMax]
  - max homopolymer run ≤ primerHomopolymerMax
  - hairpin ΔG ≥ primerSecondaryStructureDeltaGMin
  - whole primer (tail + anneal) ≤ primerTotalLengthMax
  - |Tm_f - Tm_r| ≤ primerTmDifferenceMax
- Produces rich diagnostics on failure (`JunctionDesignFailed.reasons`).

v2.0.0
- Replaces window-anchored pair design with junction (tail-adding) design.
- `JunctionDesigner` protocol so the planner can take any primer-design backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from backend.app.core.dna.sequence_utils import (
    clean_sequence,
    compute_tm,
    gc_fraction,
    max_same_base_run,
    reverse_complement,
)
from backend.app.core.errors import DesignToolError, JunctionDesignFailed
from backend.app.core.primer.constraints import check_dimer_risk
from backend.app.core.primer.parameters import PrimerDesignParameters as ParamModel
from backend.app.core.primer.scoring import ScoreContext, score_pair
from backend.app.core.primer.thermodynamics import hairpin_dg

logger = logging.getLogger(__name__)


# --- DTOs ----------------------------------------------------------------------------------------

@dataclass
class Primer:
    seq: str                 # full primer 5'->3' (tail + anneal)
    anneal: str              # 3' part binding the template
    tail: str                # 5' homology tail ("" when none is needed)
    tm: float                # Tm of the annealing part
    gc: float
    hairpin_dg: float = 0.0

    @property
    def length(self) -> int:
        return len(self.seq)


@dataclass
class JunctionPrimers:
    forward: Primer          # on the right fragment
    reverse: Primer          # on the left fragment
    penalty: float
    homology: str            # junction homology after PCR
    existing: int            # bp shared before PCR


@dataclass
class CandidateRow:
    side: str                # 'F' or 'R'
    length: int
    seq: str
    tm: float
    gc: float
    rejected: bool
    reason: str


@dataclass
class DesignDiagnostics:
    forward_candidates: List[CandidateRow] = field(default_factory=list)
    reverse_candidates: List[CandidateRow] = field(default_factory=list)
    pair_scores_checked: int = 0
    message: str = ""


class JunctionDesigner(Protocol):
    """Primer-design collaborator used by the assembly filler."""

    def design_junction(
        self,
        left_flank: str,
        right_flank: str,
        min_homology: int,
        max_homology: int,
        overlap: Optional[int] = None,
    ) -> JunctionPrimers:
        ...


# --- Validation helpers --------------------------------------------------------------------------

def _candidate_ok(
    anneal: str,
    tail: str,
    p: ParamModel,
    tm_func: Callable[[str], float],
) -> Tuple[bool, float, float, float, str]:
    """Validate single-primer constraints against ParamModel."""
    L = len(anneal)
    if not (p.primerLengthMin <= L <= p.primerLengthMax):
        return False, 0.0, 0.0, 0.0, f"length({L}) not in [{p.primerLengthMin},{p.primerLengthMax}]"

    if L + len(tail) > p.primerTotalLengthMax:
        return False, 0.0, 0.0, 0.0, f"total length > {p.primerTotalLengthMax}"

    tm = tm_func(anneal)
    if not (p.primerTmMin <= tm <= p.primerTmMax):
        return False, tm, 0.0, 0.0, f"Tm {tm:.1f} not in [{p.primerTmMin:.1f},{p.primerTmMax:.1f}]"

    gc = gc_fraction(anneal)
    if not (p.primerGCMin <= gc <= p.primerGCMax):
        return False, tm, gc, 0.0, f"GC {gc:.1f}% not in [{p.primerGCMin:.1f},{p.primerGCMax:.1f}]"

    if max_same_base_run(anneal) > p.primerHomopolymerMax:
        return False, tm, gc, 0.0, f"homopolymer > {p.primerHomopolymerMax}"

    try:
        dg = hairpin_dg(anneal)
    except (OSError, RuntimeError) as exc:
        raise DesignToolError(f"primer3 hairpin calculation failed for {anneal}: {exc}") from exc
    if dg < p.primerSecondaryStructureDeltaGMin:
        return False, tm, gc, dg, f"hairpin ΔG {dg:.1f} < {p.primerSecondaryStructureDeltaGMin:.1f}"

    return True, tm, gc, dg, ""


def _top_reasons(rows: List[CandidateRow]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for r in rows:
        if r.rejected and r.reason:
            key = r.reason.split(" ")[0]
            counts[key] = counts.get(key, 0) + 1
    return counts


# --- Public API ----------------------------------------------------------------------------------

class AnchoredJunctionDesigner:
    """Default `JunctionDesigner`: anneals at the fragment ends, tails carry homology."""

    def __init__(
        self,
        params: Optional[ParamModel] = None,
        tm_func: Optional[Callable[[str], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.params = params or ParamModel()
        self.tm_func = tm_func or (lambda s: compute_tm(s, method=self.params.tmMethod))
        self.log = logger or logging.getLogger(__name__)
        self.last_diagnostics: Optional[DesignDiagnostics] = None

    def design_junction(
        self,
        left_flank: str,
        right_flank: str,
        min_homology: int,
        max_homology: int,
        overlap: Optional[int] = None,
    ) -> JunctionPrimers:
        left = clean_sequence(left_flank)
        right = clean_sequence(right_flank)
        if not left or not right:
            raise JunctionDesignFailed("empty flank", reasons={"empty_flank": 1})

        e = overlap if overlap is not None else self._shared_overlap(left, right, max_homology)
        if e < 0 or e > min(len(left), len(right)):
            raise JunctionDesignFailed(f"overlap {e} outside the flanks", reasons={"overlap": 1})
        if e and left[-e:] != right[:e]:
            raise JunctionDesignFailed(f"flanks do not share the declared {e} bp overlap", reasons={"overlap": 1})
        if e > max_homology:
            raise JunctionDesignFailed(
                f"existing overlap {e} exceeds max homology {max_homology}", reasons={"max_homology": 1}
            )

        need = max(0, min_homology - e)
        add_rev = min((need + 1) // 2, len(right) - e)
        add_fwd = need - add_rev
        if add_fwd > len(left) - e:
            raise JunctionDesignFailed(
                f"flanks too short to add {need} bp of homology", reasons={"short_flank": 1}
            )

        rev_tail = reverse_complement(right[e : e + add_rev])
        fwd_tail = left[len(left) - e - add_fwd : len(left) - e]
        p = self.params
        diag = DesignDiagnostics()

        reverse_ok: List[Primer] = []
        for L in range(p.primerLengthMin, min(p.primerLengthMax, len(left)) + 1):
            anneal = reverse_complement(left[-L:])
            ok, tm, gc, dg, reason = _candidate_ok(anneal, rev_tail, p, self.tm_func)
            diag.reverse_candidates.append(CandidateRow("R", L, rev_tail + anneal, tm, gc, not ok, reason))
            if ok:
                reverse_ok.append(Primer(rev_tail + anneal, anneal, rev_tail, tm, gc, dg))

        forward_ok: List[Primer] = []
        for L in range(p.primerLengthMin, min(p.primerLengthMax, len(right)) + 1):
            anneal = right[:L]
            ok, tm, gc, dg, reason = _candidate_ok(anneal, fwd_tail, p, self.tm_func)
            diag.forward_candidates.append(CandidateRow("F", L, fwd_tail + anneal, tm, gc, not ok, reason))
            if ok:
                forward_ok.append(Primer(fwd_tail + anneal, anneal, fwd_tail, tm, gc, dg))

        ctx = ScoreContext.from_params(p)
        best: Optional[Tuple[float, Primer, Primer]] = None
        checked = 0
        for f in forward_ok:
            for r in reverse_ok:
                if abs(f.tm - r.tm) > p.primerTmDifferenceMax:
                    continue
                consec, total = check_dimer_risk(f.anneal, r.anneal)
                score = score_pair(ctx, f.tm, f.gc, r.tm, r.gc, consec, total, len(f.tail) + len(r.tail))
                checked += 1
                if best is None or score < best[0]:
                    best = (score, f, r)
        diag.pair_scores_checked = checked
        self.last_diagnostics = diag

        if best is not None:
            diag.message = "OK"
            score, f, r = best
            hom_len = e + add_fwd + add_rev
            extended_left = left + right[e : e + add_rev]
            homology = extended_left[-hom_len:] if hom_len else ""
            return JunctionPrimers(forward=f, reverse=r, penalty=score, homology=homology, existing=e)

        # Explain failure
        reasons: Dict[str, int] = {}
        for side, rows in (("fwd", diag.forward_candidates), ("rev", diag.reverse_candidates)):
            for k, v in _top_reasons(rows).items():
                reasons[f"{side}_{k}"] = v
        if forward_ok and reverse_ok:
            reasons["tm_difference"] = len(forward_ok) * len(reverse_ok)
        diag.message = "No valid junction primer pair"
        hints = [
            "No valid junction primer pair.",
            f"- Forward: tested {len(diag.forward_candidates)}, ok={len(forward_ok)}",
            f"- Reverse: tested {len(diag.reverse_candidates)}, ok={len(reverse_ok)}",
            "Try widening primerTmMin/primerTmMax, primerGCMin/primerGCMax, "
            "increasing primerLengthMin..primerLengthMax, or relaxing primerTmDifferenceMax.",
        ]
        raise JunctionDesignFailed("\n".join(hints), reasons=reasons)

    @staticmethod
    def _shared_overlap(left: str, right: str, max_homology: int) -> int:
        upper = min(max_homology, len(left), len(right))
        for k in range(upper, 0, -1):
            if left[-k:] == right[:k]:
                return k
        return 0
