# File: backend/app/core/primer/offtarget.py
# Version: v0.2.0
"""
Off-target attachment counters.

Approach:
- Ungapped sliding comparison of a primer's annealing part vs. its source fragment
  and the fragment's RC.
- Count windows with at most `max_mismatches` mismatches. The intended site is one
  of them, so a count above 1 means the primer can also prime elsewhere.
- This approximates local alignment with strong gap-open penalties while being fast.

v0.2.0
- `is_offtarget()` convenience used by the plan ranker.
"""

from __future__ import annotations

from typing import Tuple

from backend.app.core.dna.sequence_utils import reverse_complement


def _count_ungapped_matches(primer: str, subject: str, max_mismatches: int) -> int:
    p = primer.upper()
    s = subject.upper()
    n = len(p)
    if n == 0 or len(s) < n:
        return 0
    count = 0
    for start in range(0, len(s) - n + 1):
        window = s[start : start + n]
        mism = 0
        for i in range(n):
            if p[i] != window[i]:
                mism += 1
                if mism > max_mismatches:
                    break
        if mism <= max_mismatches:
            count += 1
    return count


def count_offtargets(primer: str, target: str, max_mismatches_full: int, len3: int, max_mismatches_3p: int) -> Tuple[int, int]:
    """
    Count occurrences where the primer (or 3' window) can attach to target (or RC(target))
    with at most the given mismatch thresholds.

    Returns:
        (full_matches_count, three_prime_matches_count)
    """
    t = target.upper()
    trc = reverse_complement(t)
    p = primer.upper()
    p3 = p[-len3:] if len3 > 0 else ""

    full = _count_ungapped_matches(p, t, max_mismatches_full) + _count_ungapped_matches(p, trc, max_mismatches_full)
    three_p = 0
    if p3:
        three_p = _count_ungapped_matches(p3, t, max_mismatches_3p) + _count_ungapped_matches(p3, trc, max_mismatches_3p)
    return full, three_p


def is_offtarget(anneal: str, source: str, max_mismatches: int) -> bool:
    """True if the annealing part binds `source` at more than its intended site."""
    if not anneal or not source:
        return False
    full, _ = count_offtargets(anneal, source, max_mismatches, 0, 0)
    return full > 1
