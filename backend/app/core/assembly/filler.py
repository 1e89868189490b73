# File: backend/app/core/assembly/filler.py
# Version: v0.4.0
"""
Assembly filler: candidate node paths -> concrete, buildable fragments.

Per junction kind:
- existing_homology : both neighbors used as they are.
- pcr_homology      : `JunctionDesigner.design_junction()` adds homology tails
                      (reverse primer on the left fragment, forward primer on the right).
                      Failure or timeout invalidates the assembly, reason kept.
- synthesis_bridge  : the gap is split evenly into
                      max(hops, ceil(gap / (max_length - 2*min_homology))) pieces;
                      each piece carries `min_homology` bp of flank into both neighbors
                      and is padded up to `synthesis.min_length`.

Concurrency
-----------
`fill_many()` collects every PCR junction of every candidate, deduplicates identical
design requests and runs them on a bounded ThreadPoolExecutor (`execution.workers`).
Each call may run for at most `execution.design_timeout_s`, timed from the moment a
worker picks it up; a timed-out call only invalidates its own junction and queued
designs get a replacement worker. `JunctionDesignFailed` and timeouts stay local to
the junction; a `DesignToolError` or any other designer exception aborts the run.

Changes in v0.4.0:
- Timeouts are measured per call instead of per wait, so designs queued behind a
  hung one are no longer reported as timed out.

Nodes are never mutated: fragments are new objects built from target windows.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.dna.coordinates import CircularTarget
from backend.app.core.dna.sequence_utils import reverse_complement
from backend.app.core.errors import JunctionDesignFailed
from backend.app.core.models.nodes import Node, NodeKind
from backend.app.core.models.plan import (
    CandidateAssembly,
    FilledAssembly,
    Fragment,
    Junction,
    JunctionKind,
)
from backend.app.core.primer.designer import JunctionDesigner, JunctionPrimers

_DesignKey = Tuple[str, str, int]
_DesignResult = Union[JunctionPrimers, str]   # primers, or the failure reason

_POLL_S = 0.05


@dataclass
class _Unit:
    """A physical piece on the unrolled axis while an assembly is being filled."""
    frag_id:  str
    start:    int
    end:      int
    kind:     NodeKind
    source:   str = ""
    source_seq: str = ""
    forward:  Optional[JunctionPrimers] = None   # design whose forward primer amplifies this unit
    reverse:  Optional[JunctionPrimers] = None   # design whose reverse primer amplifies this unit


class AssemblyFiller:
    def __init__(
        self,
        designer: JunctionDesigner,
        config: Optional[PlanConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.designer = designer
        self.config = config or PlanConfig()
        self.log = logger or logging.getLogger(__name__)

    # --------------------- Public API ---------------------

    def fill(self, candidate: CandidateAssembly, target: CircularTarget) -> FilledAssembly:
        return self.fill_many([candidate], target)[0]

    def fill_many(self, candidates: Sequence[CandidateAssembly], target: CircularTarget) -> List[FilledAssembly]:
        requests: Dict[_DesignKey, Junction] = {}
        for cand in candidates:
            for j in cand.junctions:
                if j.kind is JunctionKind.PCR_HOMOLOGY:
                    requests.setdefault(self._design_key(j, target), j)

        designs = self._run_designs(requests, target)
        return [self._fill_one(cand, target, designs) for cand in candidates]

    # --------------------- Primer design ---------------------

    @staticmethod
    def _design_key(j: Junction, target: CircularTarget) -> _DesignKey:
        left = target.window(j.left.start, j.left.end)
        right = target.window(j.right.start, j.right.end)
        return left, right, j.overlap

    def _run_designs(self, requests: Dict[_DesignKey, Junction], target: CircularTarget) -> Dict[_DesignKey, _DesignResult]:
        if not requests:
            return {}
        f = self.config.fragments
        ex = self.config.execution
        results: Dict[_DesignKey, _DesignResult] = {}
        started: Dict[_DesignKey, float] = {}

        def call(key: _DesignKey) -> JunctionPrimers:
            started[key] = time.monotonic()
            return self.designer.design_junction(key[0], key[1], f.min_homology, f.max_homology, overlap=key[2])

        pools = [ThreadPoolExecutor(max_workers=ex.workers, thread_name_prefix="junction-design")]
        pending: Dict[Future, _DesignKey] = {pools[0].submit(call, key): key for key in requests}
        poll = min(_POLL_S, ex.design_timeout_s)
        try:
            while pending:
                done, _ = wait(pending, timeout=poll, return_when=FIRST_COMPLETED)
                for fut in done:
                    key = pending.pop(fut)
                    results[key] = self._design_result(fut, requests[key])

                now = time.monotonic()
                for fut, key in list(pending.items()):
                    t0 = started.get(key)
                    if t0 is None or now - t0 <= ex.design_timeout_s or fut.done():
                        continue
                    del pending[fut]
                    label = self._label(requests[key])
                    self.log.warning("Junction %s design timed out after %.1fs", label, ex.design_timeout_s)
                    results[key] = f"junction {label}: primer design timed out"
                    # the hung call keeps its worker; queued designs get a replacement one
                    self._requeue_one(pending, started, pools, call)
        finally:
            for pool in pools:
                pool.shutdown(wait=False, cancel_futures=True)

        self.log.info("Designed %d unique PCR junctions", len(results))
        return results

    @staticmethod
    def _label(j: Junction) -> str:
        return f"{j.left.id}->{j.right.id}"

    def _design_result(self, fut: Future, j: Junction) -> _DesignResult:
        """Primers, or the failure reason. Any other designer error propagates."""
        try:
            return fut.result()
        except JunctionDesignFailed as exc:
            label = self._label(j)
            self.log.debug("Junction %s design failed: %s", label, exc.formatted_reasons())
            return f"junction {label}: primer design failed ({exc.formatted_reasons()})"

    @staticmethod
    def _requeue_one(
        pending: Dict[Future, _DesignKey],
        started: Dict[_DesignKey, float],
        pools: List[ThreadPoolExecutor],
        call,
    ) -> None:
        for fut, key in list(pending.items()):
            if key in started or not fut.cancel():
                continue
            spare = ThreadPoolExecutor(max_workers=1, thread_name_prefix="junction-design-spare")
            pools.append(spare)
            del pending[fut]
            pending[spare.submit(call, key)] = key
            return

    # --------------------- Filling ---------------------

    def _fill_one(
        self,
        cand: CandidateAssembly,
        target: CircularTarget,
        designs: Dict[_DesignKey, _DesignResult],
    ) -> FilledAssembly:
        units: List[_Unit] = []
        reasons: List[str] = []
        penalty = 0.0

        first = self._unit(cand.nodes[0])
        units.append(first)
        for j in cand.junctions:
            left = units[-1]
            closes = j.right is cand.closing
            right = first if closes else self._unit(j.right)

            if j.kind is JunctionKind.PCR_HOMOLOGY:
                res = designs[self._design_key(j, target)]
                if isinstance(res, str):
                    reasons.append(res)
                else:
                    left.reverse = res
                    right.forward = res
                    penalty += res.penalty
            elif j.kind is JunctionKind.SYNTHESIS_BRIDGE:
                units.extend(self._bridge(j))

            if not closes:
                units.append(right)

        fragments = [self._fragment(u, target) for u in units]
        homologies = self._homologies(units, target)
        return FilledAssembly(
            fragments=fragments,
            junctions=list(cand.junctions),
            total_cost=sum(fr.cost for fr in fragments),
            homologies=homologies,
            primer_penalty=penalty,
            valid=not reasons,
            reasons=reasons,
            candidate=cand,
        )

    @staticmethod
    def _unit(n: Node) -> _Unit:
        return _Unit(frag_id=n.id, start=n.start, end=n.end, kind=n.kind, source=n.id, source_seq=n.source_seq)

    def _bridge(self, j: Junction) -> List[_Unit]:
        f = self.config.fragments
        syn = self.config.synthesis
        h = f.min_homology
        gap = j.gap
        pieces = max(j.hops, math.ceil(gap / (syn.max_length - 2 * h)))
        a = j.left.end + 1

        out: List[_Unit] = []
        for k in range(pieces):
            lo = a + (gap * k) // pieces
            hi = a + (gap * (k + 1)) // pieces - 1
            s, e = lo - h, hi + h
            short = syn.min_length - (e - s + 1)
            if short > 0:
                s -= short // 2
                e += short - short // 2
            out.append(
                _Unit(
                    frag_id=f"{j.left.id}-{j.right.id}-synth-{k + 1}",
                    start=s,
                    end=e,
                    kind=NodeKind.SYNTHETIC,
                )
            )
        self.log.debug("Bridging %d bp gap %s->%s with %d synthetic pieces", gap, j.left.id, j.right.id, pieces)
        return out

    def _fragment(self, u: _Unit, target: CircularTarget) -> Fragment:
        body = target.window(u.start, u.end)
        fwd = u.forward.forward if u.forward else None
        rev = u.reverse.reverse if u.reverse else None
        seq = (fwd.tail if fwd else "") + body + (reverse_complement(rev.tail) if rev else "")

        if u.kind is NodeKind.SYNTHETIC:
            cost = len(seq) * self.config.synthesis.bp_cost
            kind = NodeKind.SYNTHETIC
        else:
            primer_bases = sum(p.length for p in (fwd, rev) if p is not None)
            cost = primer_bases * self.config.pcr.bp_cost
            kind = NodeKind.PCR if (fwd or rev) and u.kind is NodeKind.EXISTING else u.kind

        return Fragment(
            id=u.frag_id,
            seq=seq,
            kind=kind,
            start=target.canonical(u.start),
            end=target.canonical(u.end),
            cost=cost,
            forward_primer=fwd,
            reverse_primer=rev,
            source=u.source,
            source_seq=u.source_seq or body,
        )

    @staticmethod
    def _homologies(units: List[_Unit], target: CircularTarget) -> List[str]:
        """Sequence shared by every pair of physically adjacent pieces (wrap included)."""
        out: List[str] = []
        L = len(target)
        for i, u in enumerate(units):
            nxt = units[(i + 1) % len(units)]
            if u.reverse is not None:
                out.append(u.reverse.homology)
                continue
            ns = nxt.start + L if i == len(units) - 1 else nxt.start
            if ns <= u.end:
                out.append(target.window(ns, u.end))
        return out
