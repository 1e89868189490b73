# File: backend/app/services/feature_db.py
# Version: v0.2.0
"""
Feature store: name -> sequence, plus target composition from named features.

compose("SV40 origin,p10 promoter,mEGFP:rev") concatenates the features in order;
a ':rev' suffix (any case) takes the reverse complement.
"""

from __future__ import annotations

import re
from typing import List, Tuple

from backend.app.core.dna.sequence_utils import IUPAC_BASES, reverse_complement
from backend.app.services.tab_store import TabStore

_INVALID_SEQ = re.compile(f"[^{IUPAC_BASES}]")
_REV_SUFFIX = ":rev"


class FeatureDB(TabStore):
    kind = "feature"

    def clean(self, value: str) -> str:
        seq = _INVALID_SEQ.sub("", (value or "").upper())
        if not seq:
            raise ValueError("feature sequence is empty after cleaning")
        return seq

    def compose(self, names: str) -> Tuple[str, List[Tuple[str, str]]]:
        """
        Returns:
            (target_sequence, [(label, sequence), ...]) in the requested order.
        Raises:
            KeyError for a feature missing from the store.
        """
        parts: List[Tuple[str, str]] = []
        for raw in names.split(","):
            token = raw.strip()
            if not token:
                continue
            rev = token.lower().endswith(_REV_SUFFIX)
            name = token[: -len(_REV_SUFFIX)].strip() if rev else token
            seq = self.get(name)
            if seq is None:
                raise KeyError(f"failed to find feature {name!r} in the features database")
            if rev:
                parts.append((f"{name}:REV", reverse_complement(seq)))
            else:
                parts.append((name, seq))
        if not parts:
            raise ValueError("no features requested")
        return "".join(seq for _, seq in parts), parts
