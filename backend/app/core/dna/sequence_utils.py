# File: backend/app/core/dna/sequence_utils.py
# Version: v0.3.0

"""
Sequence helpers shared by the planner, the primer designer and the stores.

Changes in v0.3.0:
- `de_double()` undoes circular entries that a database stores twice in a row.
- `suffix_prefix_overlap()` replaces the ad-hoc overlap scans in the fragment builder.

Changes in v0.2.0:
- Edit distance goes through rapidfuzz (C-accelerated); Tm through primer3 with
  Biopython NN/Wallace as selectable methods.
"""

from __future__ import annotations

import re
from functools import lru_cache

import primer3
from Bio.SeqUtils import MeltingTemp as _mt
from rapidfuzz.distance import Levenshtein

# IUPAC alphabet accepted in stored sequences (features and enzyme sites)
IUPAC_BASES = "ACGTMRWYSKHDVBNX"

_RC_TABLE = str.maketrans("ACGTMRWYSKHDVBNacgtmrwyskhdvbn", "TGCAKYWRSMDHBVNtgcakywrsmdhbvn")
_WHITESPACE = re.compile(r"\s+")


# --- Small, hot helpers (cached) ---------------------------------------------

@lru_cache(maxsize=4096)
def reverse_complement(seq: str) -> str:
    """Reverse complement, IUPAC-aware (cached)."""
    return seq.translate(_RC_TABLE)[::-1]


def clean_sequence(seq: str) -> str:
    """Uppercase and strip whitespace / line breaks."""
    return _WHITESPACE.sub("", seq or "").upper()


def de_double(seq: str) -> str:
    """
    Return the first half of `seq` if the entry is a doubled circular sequence
    (first half == second half), else `seq` unchanged.
    """
    n = len(seq)
    if n >= 2 and n % 2 == 0 and seq[: n // 2] == seq[n // 2 :]:
        return seq[: n // 2]
    return seq


def suffix_prefix_overlap(left: str, right: str, min_len: int, max_len: int) -> str:
    """
    Longest suffix of `left` (length within [min_len, max_len]) that is also a
    prefix of `right`. Returns "" when none exists.
    """
    upper = min(max_len, len(left), len(right))
    for k in range(upper, max(min_len, 1) - 1, -1):
        if left[-k:] == right[:k]:
            return right[:k]
    return ""


# --- Biophysical helpers -----------------------------------------------------

def gc_fraction(seq: str) -> float:
    """GC percent ∈ [0,100]."""
    if not seq:
        return 0.0
    s = seq.upper()
    return (s.count("G") + s.count("C")) / len(s) * 100.0


def max_same_base_run(seq: str) -> int:
    """Maximum homopolymer run length in the sequence."""
    if not seq:
        return 0
    best = 1
    curr = 1
    for i in range(1, len(seq)):
        if seq[i] == seq[i - 1]:
            curr += 1
            if curr > best:
                best = curr
        else:
            curr = 1
    return best


# --- Edit distance -----------------------------------------------------------

def normalized_edit_distance(a: str, b: str) -> float:
    """Normalized Levenshtein distance ∈ [0,1] (rapidfuzz)."""
    if not a and not b:
        return 0.0
    return Levenshtein.distance(a, b) / max(len(a), len(b))


# --- Melting temperature (primer3 preferred) ---------------------------------

def compute_tm(seq: str, method: str = "PRIMER3", **params) -> float:
    """
    Compute melting temperature (°C).

    method:
      - "PRIMER3" (default): `primer3.calc_tm`
          mv_conc  = K + Na (mM)
          dv_conc  = Mg (mM)
          dntp_conc= dNTPs (mM)
          dna_conc = max(dnac1, dnac2) (nM)
      - "NN": Biopython nearest-neighbor
      - "Wallace": Biopython Wallace rule
    """
    seq = (seq or "").upper()

    # Q5-like defaults
    Na_mM = float(params.get("Na", 0.0))
    K_mM = float(params.get("K", 50.0))
    Tris_mM = float(params.get("Tris", 10.0))
    Mg_mM = float(params.get("Mg", 2.0))
    dNTPs_mM = float(params.get("dNTPs", 0.8))
    dnac1_nM = float(params.get("dnac1", 500.0))
    dnac2_nM = float(params.get("dnac2", 500.0))
    saltcorr = int(params.get("saltcorr", 7))

    method_u = (method or "").upper()

    if method_u in ("PRIMER3", "P3", "PR3"):
        return float(
            primer3.calc_tm(
                seq,
                mv_conc=K_mM + Na_mM,
                dv_conc=Mg_mM,
                dntp_conc=dNTPs_mM,
                dna_conc=max(dnac1_nM, dnac2_nM),
            )
        )

    if method_u == "WALLACE":
        return float(_mt.Tm_Wallace(seq))

    if method_u != "NN":
        raise ValueError(f"Unknown Tm method: {method!r}")
    return float(
        _mt.Tm_NN(
            seq,
            Na=Na_mM,
            K=K_mM,
            Tris=Tris_mM,
            Mg=Mg_mM,
            dNTPs=dNTPs_mM,
            dnac1=dnac1_nM,
            dnac2=dnac2_nM,
            saltcorr=saltcorr,
        )
    )
