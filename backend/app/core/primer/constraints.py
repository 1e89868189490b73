# File: backend/app/core/primer/constraints.py
# Version: v0.2.0
"""
Sequence constraints shared by the primer designer and the plan ranker.

Includes:
- Self-/cross-complementarity (consecutive & total matches, ungapped)
- Dimer risk between two primers
- Inverted-repeat run inside a single region (junction homology)

v0.2.0
- `inverted_repeat_run()` for junction screening; homopolymer helper moved to
  core/dna/sequence_utils.max_same_base_run.
"""

from __future__ import annotations

from typing import Tuple

from backend.app.core.dna.sequence_utils import reverse_complement


def consecutive_complement_runs(a: str, b_rc: str) -> Tuple[int, int]:
    """
    Compute:
     - max consecutive complementary matches when a is aligned to RC of b without gaps
     - total complementary matches in the best ungapped alignment (max over shifts)

    Returns:
        (max_consecutive, max_total)
    """
    a = a.upper()
    b_rc = b_rc.upper()
    max_consec = 0
    max_total = 0

    # Align a against b_rc with all relative shifts (ungapped)
    for shift in range(-len(b_rc) + 1, len(a)):
        consec = 0
        total = 0
        for i in range(len(a)):
            j = i - shift
            if 0 <= j < len(b_rc):
                if a[i] == b_rc[j]:
                    total += 1
                    consec += 1
                    max_consec = max(max_consec, consec)
                else:
                    consec = 0
        max_total = max(max_total, total)

    return max_consec, max_total


def check_dimer_risk(a: str, b: str) -> Tuple[int, int]:
    """
    Compute dimer risk between a and b (both 5'->3'):
     - returns (max_consecutive, max_total) complementary matches
    """
    return consecutive_complement_runs(a, reverse_complement(b))


def inverted_repeat_run(region: str, min_stem: int = 4) -> int:
    """
    Longest stem (bp) of an inverted repeat inside `region`: a stretch whose reverse
    complement also occurs in `region` without overlapping it. Runs shorter than
    `min_stem` return 0.
    """
    s = region.upper()
    n = len(s)
    best = 0
    for k in range(min_stem, n // 2 + 1):
        found = False
        for i in range(0, n - k + 1):
            rc = reverse_complement(s[i : i + k])
            j = s.find(rc, i + k)
            if j != -1:
                found = True
                break
        if not found:
            break
        best = k
    return best
