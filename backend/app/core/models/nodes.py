# File: backend/app/core/models/nodes.py
# Version: v0.3.0

"""
Search-side dataclasses: raw matches and the placement nodes built from them.

Coordinates are inclusive and *unrolled* (see core/dna/coordinates.py): a node's
`start` lies in [0, L) after normalization and its `end` may run past L when the
fragment crosses the origin.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from backend.app.core.assembly.plan_parameters import PlanConfig


class NodeKind(str, Enum):
    EXISTING = "existing"
    PCR = "pcr"
    SYNTHETIC = "synthetic"
    LINEAR_BACKBONE = "linear_backbone"


@dataclass(frozen=True)
class Match:
    """
    One similarity-search hit against the tripled target.
    """
    entry:              str               # source entry id, e.g. "addgene:107006"
    seq:                str               # matched subsequence
    start:              int               # 0-based inclusive start on the tripled target
    end:                int               # 0-based inclusive end on the tripled target
    reverse_complement: bool = False      # hit lies on the minus strand of the entry
    mismatches:         int = 0
    source_seq:         Optional[str] = field(default=None, repr=False)  # full parent entry, if fetched

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class Node:
    """
    A placement of one candidate fragment on the target.
    """
    id:          str                      # source entry id
    unique_key:  str                      # f"{start % L}{id}", shared by shifted copies
    start:       int
    end:         int
    sequence:    str                      # fragment's own sequence
    kind:        NodeKind = NodeKind.EXISTING
    config:      PlanConfig = field(default_factory=PlanConfig, compare=False, repr=False)
    source_seq:  str = field(default="", compare=False, repr=False)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def shifted(self, offset: int) -> "Node":
        """Same placement one target-length further along the unrolled axis."""
        return replace(self, start=self.start + offset, end=self.end + offset)
