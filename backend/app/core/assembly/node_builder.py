# File: backend/app/core/assembly/node_builder.py
# Version: v0.3.0
"""
Node graph builder: turns search hits (or caller-supplied fragments) into the
placement nodes the assembly search walks over.

Two modes
---------
1) `build_from_matches()`: hits against the tripled target:
   - malformed hits (empty sequence, negative or inverted coordinates) are dropped;
   - doubled circular entries are de-doubled (span shrinks to half);
   - hits shorter than `fragments.min_match_length` are dropped;
   - spans are normalized so 0 <= start < L (and clamped to L bases);
   - duplicates by `unique_key` keep the hit with fewer mismatches (first seen on ties);
   - output sorted by (start, unique_key).

2) `build_from_fragments()`: explicit-order mode, no search:
   - nodes are created in caller order at start = end = 0;
   - a positioning pass assigns cumulative offsets from the suffix/prefix
     junctions between neighbors (the wrap junction last→first is found first);
   - returns the nodes plus the circular target the fragments spell out.

v0.3.0
- Spans longer than the target are clamped instead of rejected.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.dna.coordinates import CircularTarget
from backend.app.core.dna.sequence_utils import clean_sequence, de_double, suffix_prefix_overlap
from backend.app.core.models.nodes import Match, Node, NodeKind


class NodeGraphBuilder:
    def __init__(self, config: Optional[PlanConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or PlanConfig()
        self.log = logger or logging.getLogger(__name__)

    # --------------------- Search mode ---------------------

    def build_from_matches(
        self,
        matches: Iterable[Match],
        target: CircularTarget,
        kinds: Optional[Dict[str, NodeKind]] = None,
    ) -> List[Node]:
        """
        Args:
            matches: hits on the tripled target, in the order the search tool returned them
            target:  the circular target the hits were found against
            kinds:   optional entry id -> NodeKind override (e.g. the linearized backbone)
        """
        kinds = kinds or {}
        min_len = self.config.fragments.min_match_length
        best: Dict[str, Tuple[int, Node]] = {}
        dropped = 0

        for m in matches:
            seq = clean_sequence(m.seq)
            if not seq or m.start < 0 or m.end < m.start:
                self.log.debug("Dropping malformed match %s [%s..%s]", m.entry, m.start, m.end)
                dropped += 1
                continue

            start, end = m.start, m.end
            single = de_double(seq)
            if len(single) != len(seq):
                self.log.debug("De-doubled %s: %d -> %d bp", m.entry, len(seq), len(single))
                seq = single
                end = start + len(seq) - 1

            if end - start + 1 < min_len:
                dropped += 1
                continue

            start, end = target.normalize_span(start, end)
            node = Node(
                id=m.entry,
                unique_key=f"{start % len(target)}{m.entry}",
                start=start,
                end=end,
                sequence=seq,
                kind=kinds.get(m.entry, NodeKind.EXISTING),
                config=self.config,
                source_seq=de_double(clean_sequence(m.source_seq)) if m.source_seq else seq,
            )

            prev = best.get(node.unique_key)
            if prev is None or m.mismatches < prev[0]:
                best[node.unique_key] = (m.mismatches, node)

        nodes = sorted((n for _, n in best.values()), key=lambda n: (n.start, n.unique_key))
        self.log.info("Built %d nodes from matches (%d dropped)", len(nodes), dropped)
        return nodes

    # --------------------- Explicit mode ---------------------

    def build_from_fragments(
        self,
        fragments: Sequence[Tuple[str, str]],
        kinds: Optional[Dict[str, NodeKind]] = None,
    ) -> Tuple[List[Node], str]:
        """
        Place `(id, sequence)` fragments end to end in the given order.

        Returns:
            (nodes, target_seq); node spans are inclusive offsets on `target_seq`;
            the last node may run past the origin by the wrap junction.
        """
        if not fragments:
            raise ValueError("no fragments to assemble")
        kinds = kinds or {}

        nodes: List[Node] = []
        for frag_id, raw in fragments:
            seq = de_double(clean_sequence(raw))
            if not seq:
                raise ValueError(f"fragment {frag_id} has an empty sequence")
            nodes.append(
                Node(
                    id=frag_id,
                    unique_key=f"0{frag_id}",
                    start=0,
                    end=0,
                    sequence=seq,
                    kind=kinds.get(frag_id, NodeKind.EXISTING),
                    config=self.config,
                    source_seq=seq,
                )
            )

        # junctions[i] joins nodes[i] to its successor; the last one wraps to nodes[0]
        junctions = [self._junction(n, nodes[(i + 1) % len(nodes)]) for i, n in enumerate(nodes)]

        built: List[str] = []
        offset = 0
        placed: List[Node] = []
        for n, junction in zip(nodes, junctions):
            end = offset + len(n.sequence) - 1
            placed.append(replace(n, start=offset, end=end, unique_key=f"{offset}{n.id}"))
            body = n.sequence[: len(n.sequence) - len(junction)]
            built.append(body)
            offset += len(body)

        target_seq = "".join(built)
        if not target_seq:
            raise ValueError("fragments collapse to an empty target")
        self.log.info("Placed %d fragments into a %d bp target", len(placed), len(target_seq))
        return placed, target_seq

    def _junction(self, left: Node, right: Node) -> str:
        f = self.config.fragments
        upper = f.max_homology
        if left is right:
            upper = min(upper, len(left.sequence) - 1)
        return suffix_prefix_overlap(left.sequence, right.sequence, f.min_homology, upper)
