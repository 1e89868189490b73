# File: backend/app/core/assembly/planner.py
# Version: v0.3.0
"""
AssemblyPlanner: the two entry points of the planning engine.

plan_sequence(target_id, target_seq, databases, backbone=None, enzyme=None)
  1) optional backbone: digest with `enzyme`, append to the target, add it as a
     linear-backbone match
  2) triple the target and ask the match source for hits
  3) nodes -> search -> fill (primer design in a worker pool) -> rank
plan_fragments(fragments, backbone=None, enzyme=None)
  Caller-ordered fragments (backbone first, if any); no search step.

Both return a `Plan` or raise a `PlanningError` subclass; neither terminates the process.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from backend.app.core.assembly.filler import AssemblyFiller
from backend.app.core.assembly.node_builder import NodeGraphBuilder
from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.assembly.ranker import PlanRanker
from backend.app.core.assembly.search import AssemblySearch, explicit_candidate
from backend.app.core.dna.coordinates import CircularTarget
from backend.app.core.dna.digest import Enzyme, digest
from backend.app.core.dna.sequence_utils import clean_sequence
from backend.app.core.errors import NoCoveringAssemblyError, NoMatchesError, PlanningError
from backend.app.core.models.nodes import Match, NodeKind
from backend.app.core.models.plan import Backbone, FilledAssembly, Plan
from backend.app.core.primer.designer import AnchoredJunctionDesigner, JunctionDesigner


class MatchSource(Protocol):
    def search(self, query: str, databases: Sequence[str]) -> List[Match]:
        ...


class AssemblyPlanner:
    def __init__(
        self,
        config: Optional[PlanConfig] = None,
        match_source: Optional[MatchSource] = None,
        designer: Optional[JunctionDesigner] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or PlanConfig()
        self.match_source = match_source
        self.designer = designer or AnchoredJunctionDesigner(self.config.primers)
        self.log = logger or logging.getLogger(__name__)

        self.builder = NodeGraphBuilder(self.config, logger=self.log)
        self.searcher = AssemblySearch(self.config, logger=self.log)
        self.filler = AssemblyFiller(self.designer, self.config, logger=self.log)
        self.ranker = PlanRanker(self.config, logger=self.log)

    # --------------------- Public API ---------------------

    def plan_sequence(
        self,
        target_id: str,
        target_seq: str,
        databases: Sequence[str],
        backbone: Optional[Tuple[str, str]] = None,
        enzyme: Optional[Enzyme] = None,
    ) -> Plan:
        if self.match_source is None:
            raise PlanningError("no match source configured", target_id=target_id)
        seq = clean_sequence(target_seq)
        if not seq:
            raise PlanningError("empty target sequence", target_id=target_id)

        bb: Optional[Backbone] = None
        extra: List[Match] = []
        kinds: Dict[str, NodeKind] = {}
        if backbone is not None:
            linear, bb = self._linearize(backbone, enzyme, target_id)
            extra.append(Match(entry=bb.id, seq=linear, start=len(seq), end=len(seq) + len(linear) - 1, source_seq=bb.seq))
            kinds[bb.id] = NodeKind.LINEAR_BACKBONE
            seq = seq + linear

        target = CircularTarget(seq)
        self.log.info("Planning %s (%d bp) against %d database(s)", target_id, len(target), len(databases))
        matches = list(self.match_source.search(target.tripled(), databases)) + extra
        nodes = self.builder.build_from_matches(matches, target, kinds)
        if not nodes:
            raise NoMatchesError(
                f"no usable matches for {target_id}",
                target_id=target_id,
                reasons=[f"{len(matches)} raw matches, none >= {self.config.fragments.min_match_length} bp"],
            )

        candidates = self.searcher.search(nodes, len(target), target_id=target_id)
        filled = self.filler.fill_many(candidates, target)
        return self._ranked_plan(target_id, target, filled, bb)

    def plan_fragments(
        self,
        fragments: Sequence[Tuple[str, str]],
        backbone: Optional[Tuple[str, str]] = None,
        enzyme: Optional[Enzyme] = None,
        target_id: str = "assembly",
    ) -> Plan:
        frags = list(fragments)
        kinds: Dict[str, NodeKind] = {}
        bb: Optional[Backbone] = None
        if backbone is not None:
            linear, bb = self._linearize(backbone, enzyme, target_id)
            frags.insert(0, (bb.id, linear))
            kinds[bb.id] = NodeKind.LINEAR_BACKBONE
        if not frags:
            raise PlanningError("no fragments to assemble", target_id=target_id)

        nodes, target_seq = self.builder.build_from_fragments(frags, kinds)
        target = CircularTarget(target_seq)
        self.log.info("Assembling %d fragments into %s (%d bp)", len(nodes), target_id, len(target))
        candidate = explicit_candidate(nodes, len(target))
        filled = self.filler.fill_many([candidate], target)
        return self._ranked_plan(target_id, target, filled, bb)

    # --------------------- Internals ---------------------

    def _linearize(
        self, backbone: Tuple[str, str], enzyme: Optional[Enzyme], target_id: str
    ) -> Tuple[str, Backbone]:
        if enzyme is None:
            raise PlanningError("a backbone needs an enzyme to linearize it", target_id=target_id)
        bb_id, bb_seq = backbone
        linear, record = digest(bb_id, bb_seq, enzyme)
        self.log.info("Linearized backbone %s with %s (%d bp)", bb_id, enzyme.name, len(linear))
        return linear, record

    def _ranked_plan(
        self,
        target_id: str,
        target: CircularTarget,
        filled: List[FilledAssembly],
        backbone: Optional[Backbone],
    ) -> Plan:
        ranked, rejected = self.ranker.rank(filled, len(target))
        if not ranked:
            reasons = [r for a in rejected for r in a.reasons]
            raise NoCoveringAssemblyError(
                f"no valid assembly for {target_id}",
                target_id=target_id,
                reasons=reasons or ["every candidate was rejected"],
            )
        best = ranked[0]
        self.log.info(
            "Best plan for %s: %d fragments, $%.2f, %d flag(s)",
            target_id, best.fragment_count, best.total_cost, len(best.flags),
        )
        return Plan(
            target_id=target_id,
            target_seq=target.seq,
            assemblies=ranked,
            rejected=rejected,
            backbone=backbone,
        )
