# File: backend/app/core/primer/thermodynamics.py
# Version: v0.2.0
"""
Thermodynamics utilities for primer properties.

Implements:
- Hairpin ΔG of a primer's annealing part (primer3 thermodynamic alignment)

Notes:
- primer3 reports ΔG in cal/mol; values here are kcal/mol.
- primer3's thal engine accepts oligos up to 60 nt; longer inputs are trimmed
  to their 3' end, which is the part that primes.
"""

from __future__ import annotations

import primer3

_THAL_MAX_LEN = 60


def _thal_window(seq: str) -> str:
    s = (seq or "").upper()
    return s[-_THAL_MAX_LEN:]


def hairpin_dg(seq: str) -> float:
    """Hairpin ΔG (kcal/mol); 0.0 when no structure is found."""
    if not seq:
        return 0.0
    res = primer3.calc_hairpin(_thal_window(seq))
    if not res.structure_found:
        return 0.0
    return float(res.dg) / 1000.0
