# File: backend/app/core/models/plan.py
# Version: v0.3.1

"""
Assembly-side dataclasses: junctions, candidate paths, concrete fragments and plans.

v0.3.1
- `FilledAssembly.homologies` keeps the sequence of every physical junction
  (synthetic bridges contribute one region per seam) for the ranker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from backend.app.core.models.nodes import Node, NodeKind
from backend.app.core.primer.designer import Primer


class JunctionKind(str, Enum):
    EXISTING_HOMOLOGY = "existing_homology"
    PCR_HOMOLOGY = "pcr_homology"
    SYNTHESIS_BRIDGE = "synthesis_bridge"


@dataclass(frozen=True)
class Junction:
    left:     Node
    right:    Node
    distance: int              # <0 overlap, >0 gap (bp)
    kind:     JunctionKind
    hops:     int              # synthetic fragments needed to bridge the gap
    cost:     float

    @property
    def overlap(self) -> int:
        return max(0, -self.distance)

    @property
    def gap(self) -> int:
        return max(0, self.distance)


@dataclass(frozen=True)
class CandidateAssembly:
    """
    A complete circular path found by the search.

    `nodes[0]` is the anchor; `closing` is the anchor shifted by one target length;
    `junctions[i]` joins nodes[i] to nodes[i+1] (the last one joins to `closing`).
    """
    nodes:          Tuple[Node, ...]
    closing:        Node
    fragment_count: int
    total_cost:     float
    junctions:      Tuple[Junction, ...]

    @property
    def unique_keys(self) -> Tuple[str, ...]:
        return tuple(n.unique_key for n in self.nodes)


@dataclass
class Fragment:
    """A concrete build unit of a plan."""
    id:             str
    seq:            str
    kind:           NodeKind
    start:          int                  # canonical start on the target
    end:            int                  # canonical end on the target
    cost:           float = 0.0
    forward_primer: Optional[Primer] = None
    reverse_primer: Optional[Primer] = None
    source:         str = ""             # source entry id ("" for synthetic pieces)
    source_seq:     str = field(default="", repr=False)

    @property
    def primers(self) -> List[Primer]:
        return [p for p in (self.forward_primer, self.reverse_primer) if p is not None]


@dataclass
class FilledAssembly:
    fragments:      List[Fragment]
    junctions:      List[Junction]
    total_cost:     float
    homologies:     List[str] = field(default_factory=list)
    primer_penalty: float = 0.0
    flags:          List[str] = field(default_factory=list)
    valid:          bool = True
    reasons:        List[str] = field(default_factory=list)
    candidate:      Optional[CandidateAssembly] = field(default=None, repr=False)

    @property
    def fragment_count(self) -> int:
        return len(self.fragments)

    @property
    def flagged(self) -> bool:
        return bool(self.flags)


@dataclass
class Backbone:
    """Linearized backbone record (sequence kept un-linearized)."""
    id:                str
    seq:               str
    enzyme:            str
    recognition_index: int
    forward:           bool


@dataclass
class Plan:
    target_id:  str
    target_seq: str
    assemblies: List[FilledAssembly] = field(default_factory=list)   # ranked, best first
    rejected:   List[FilledAssembly] = field(default_factory=list)   # invalid, kept for diagnostics
    backbone:   Optional[Backbone] = None

    @property
    def best(self) -> Optional[FilledAssembly]:
        return self.assemblies[0] if self.assemblies else None
