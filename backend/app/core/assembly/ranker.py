# File: backend/app/core/assembly/ranker.py
# Version: v0.2.0
"""
Plan validator / ranker.

Hard checks (assembly discarded, kept in `rejected` with reasons):
- filler marked the assembly invalid (junction design failed / timed out)
- coverage: spans must cover [0, L) exactly once (see search.coverage_errors)

Soft flags (scored, not rejected unless flag_policy == drop):
- duplicate_junction : two junction regions within `duplicate_max_distance`
                       normalized edit distance (rapidfuzz Levenshtein)
- inverted_repeat    : a junction region holds a stem >= `inverted_repeat_min_run`
- offtarget          : a primer's annealing part binds its source more than once
                       with <= `offtarget_max_mismatches` mismatches

Ordering by `validation.flag_policy`:
- tiebreak     : (fragment_count, total_cost, #flags, primer_penalty)
- deprioritize : (flagged?, fragment_count, total_cost, primer_penalty)
- drop         : flagged assemblies rejected, rest by (fragment_count, total_cost, primer_penalty)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from backend.app.core.assembly.plan_parameters import FlagPolicy, PlanConfig
from backend.app.core.assembly.search import coverage_errors
from backend.app.core.dna.sequence_utils import normalized_edit_distance
from backend.app.core.models.plan import FilledAssembly
from backend.app.core.primer.constraints import inverted_repeat_run
from backend.app.core.primer.offtarget import is_offtarget


class PlanRanker:
    def __init__(self, config: Optional[PlanConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or PlanConfig()
        self.log = logger or logging.getLogger(__name__)

    def flags_for(self, assembly: FilledAssembly) -> List[str]:
        v = self.config.validation
        flags: List[str] = []

        regions = assembly.homologies
        for i in range(len(regions)):
            for k in range(i + 1, len(regions)):
                if regions[i] and regions[k] and normalized_edit_distance(regions[i], regions[k]) <= v.duplicate_max_distance:
                    flags.append(f"duplicate_junction:{i + 1},{k + 1}")

        for i, region in enumerate(regions):
            if region and inverted_repeat_run(region, min_stem=v.inverted_repeat_min_run) >= v.inverted_repeat_min_run:
                flags.append(f"inverted_repeat:{i + 1}")

        for frag in assembly.fragments:
            for p in frag.primers:
                if is_offtarget(p.anneal, frag.source_seq, v.offtarget_max_mismatches):
                    flags.append(f"offtarget:{frag.id}:{p.anneal}")
        return flags

    def rank(self, assemblies: Sequence[FilledAssembly], length: int) -> Tuple[List[FilledAssembly], List[FilledAssembly]]:
        """Returns (ranked valid assemblies capped at search.max_reported, rejected)."""
        policy = self.config.validation.flag_policy
        kept: List[FilledAssembly] = []
        rejected: List[FilledAssembly] = []

        for a in assemblies:
            if a.valid and a.candidate is not None:
                errs = coverage_errors(a.candidate, length)
                if errs:
                    a.valid = False
                    a.reasons.extend(errs)
            if not a.valid:
                rejected.append(a)
                continue

            a.flags = self.flags_for(a)
            if a.flags and policy is FlagPolicy.DROP:
                a.reasons.append("dropped for flags: " + ", ".join(a.flags))
                rejected.append(a)
                continue
            kept.append(a)

        if policy is FlagPolicy.DEPRIORITIZE:
            kept.sort(key=lambda a: (a.flagged, a.fragment_count, a.total_cost, a.primer_penalty))
        else:
            kept.sort(key=lambda a: (a.fragment_count, a.total_cost, len(a.flags), a.primer_penalty))

        self.log.info("Ranked %d assemblies (%d rejected, policy=%s)", len(kept), len(rejected), policy.value)
        return kept[: self.config.search.max_reported], rejected
