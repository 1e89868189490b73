# File: backend/app/core/dna/digest.py
# Version: v0.1.0
"""
Restriction enzymes and backbone linearization.

Recognition sequences carry two markers:
  '^'  cut on the top strand
  '_'  cut on the complement strand
e.g. EcoRI "G^AATT_C", PstI "C_TGCA^G". Exactly one of each is required.

`digest()` cuts a circular backbone at the first recognition site (top strand
first, then the reverse complement), keeping the 3' overhangs. The backbone is
scanned with `WRAP_WINDOW` bases of its start appended so sites spanning the
origin are found.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from typing import Tuple

from backend.app.core.dna.sequence_utils import clean_sequence, de_double, reverse_complement
from backend.app.core.errors import InvalidRecognitionSyntaxError, NoValidCutsiteError
from backend.app.core.models.plan import Backbone

# longest recognition site expected in the enzyme store
WRAP_WINDOW = 38

SEQ_CUT = "^"
COMP_CUT = "_"

_IUPAC_CLASSES = {
    "A": "A",
    "C": "C",
    "G": "G",
    "T": "T",
    "M": "[AC]",
    "R": "[AG]",
    "W": "[AT]",
    "Y": "[CT]",
    "S": "[CG]",
    "K": "[GT]",
    "H": "[ACT]",
    "D": "[AGT]",
    "V": "[ACG]",
    "B": "[CGT]",
    "N": "[ACGT]",
    "X": "[ACGT]",
}
_INVALID_RECOG = re.compile(r"[^ATGCMRWYSKHDVBNX_^]")


def clean_recognition(recognition: str) -> str:
    """Uppercase, drop characters outside IUPAC + markers, and check the markers."""
    seq = _INVALID_RECOG.sub("", (recognition or "").upper())
    if seq.count(SEQ_CUT) != 1 or seq.count(COMP_CUT) != 1:
        raise InvalidRecognitionSyntaxError(
            f"{recognition!r} is not a valid recognition sequence: "
            f"expected exactly one '{SEQ_CUT}' and one '{COMP_CUT}'"
        )
    return seq


def recog_regex(recog: str) -> str:
    """Regex for a marker-free recognition sequence (IUPAC codes -> classes)."""
    return "".join(_IUPAC_CLASSES[c] for c in recog)


@dataclass(frozen=True)
class Enzyme:
    name: str
    recog: str
    seq_cut_index: int
    comp_cut_index: int

    @classmethod
    def parse(cls, name: str, recognition: str) -> "Enzyme":
        marked = clean_recognition(recognition)
        cut = marked.index(SEQ_CUT)
        hang = marked.index(COMP_CUT)
        if cut < hang:
            hang -= 1
        else:
            cut -= 1
        recog = marked.replace(SEQ_CUT, "").replace(COMP_CUT, "")
        return cls(name=name, recog=recog, seq_cut_index=cut, comp_cut_index=hang)

    @property
    def overhang_length(self) -> int:
        """>0: top strand overhang; <0: complement strand overhang."""
        return self.seq_cut_index - self.comp_cut_index

    @cached_property
    def pattern(self) -> "re.Pattern[str]":
        return re.compile(recog_regex(self.recog))


def digest(frag_id: str, seq: str, enzyme: Enzyme, wrap_window: int = WRAP_WINDOW) -> Tuple[str, Backbone]:
    """
    Linearize a circular backbone with `enzyme`.

    Returns:
        (linearized_sequence, Backbone record with the un-linearized sequence)
    Raises:
        NoValidCutsiteError if the backbone is too short or carries no site.
    """
    s = clean_sequence(seq)
    if len(s) < wrap_window:
        raise NoValidCutsiteError(f"{frag_id} is too short for digestion", target_id=frag_id)
    s = de_double(s)
    L = len(s)

    forward = True
    m = enzyme.pattern.search(s + s[:wrap_window])
    if m is not None:
        recog_index = m.start() % L
    else:
        rc = reverse_complement(s)
        m = enzyme.pattern.search(rc + rc[:wrap_window])
        if m is None:
            raise NoValidCutsiteError(f"no {enzyme.name} ({enzyme.recog}) cutsites found in {frag_id}", target_id=frag_id)
        recog_index = (L - m.start() - len(enzyme.recog)) % L
        forward = False

    if enzyme.overhang_length >= 0:
        cut = (recog_index + enzyme.seq_cut_index) % L
        linear = s[cut:] + s[:cut]
    else:
        bottom = (recog_index + enzyme.seq_cut_index) % L
        top = (recog_index + enzyme.comp_cut_index) % L
        linear = s[top:] + s[:bottom]

    backbone = Backbone(
        id=frag_id,
        seq=s,
        enzyme=enzyme.name,
        recognition_index=recog_index,
        forward=forward,
    )
    return linear, backbone
