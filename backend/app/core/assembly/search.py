# File: backend/app/core/assembly/search.py
# Version: v0.4.0
"""
Assembly search: fewest-fragment, then cheapest, circular covering of the target.

Model
-----
- Nodes are unrolled: every node appears once at its own position and once shifted
  by L, sorted by (start, unique_key). Edges only go forward, so the graph is a DAG.
- Each first-copy node is an *anchor*. A path from an anchor is complete when it
  reaches the anchor's shifted copy: its spans then cover [0, L) once around.
- Fragment count of a path = nodes on it + synthetic fragments needed for gaps.
  The closing copy is not counted (it is the anchor again).
- Per (node, anchor) the search keeps at most `search.max_partials_per_node`
  partial paths, ordered by (count, cost, unique_keys).
- Branch-and-bound: once `search.max_solutions` complete assemblies are retained,
  partials no better than the worst of them are dropped. Paths above
  `search.max_fragments` are dropped outright.

Path rules while extending `cur` with `m`:
- m ends after cur (no contained nodes)
- m starts after the node before cur (no base covered three times)
- m's unique_key is not already on the path
- m stays inside one turn of the anchor (m.start < anchor.start + L, m.end < anchor.end + L)

v0.4.0
- `explicit_candidate()` for the caller-ordered fragments mode.
- `coverage_errors()` shared with the ranker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.assembly.reachability import (
    cost_to,
    make_junction,
    reach_budget,
    reachable,
    synthesis_hop_count,
)
from backend.app.core.errors import NoCoveringAssemblyError
from backend.app.core.models.nodes import Node
from backend.app.core.models.plan import CandidateAssembly, JunctionKind


@dataclass(frozen=True)
class _Partial:
    path: Tuple[Node, ...]
    count: int
    cost: float
    keys: Tuple[str, ...]

    def sort_key(self) -> Tuple[int, float, Tuple[str, ...]]:
        return self.count, self.cost, self.keys


def unroll(nodes: Sequence[Node], length: int) -> List[Node]:
    """First copy plus the copy shifted by one target length, sorted by position."""
    out = list(nodes) + [n.shifted(length) for n in nodes]
    out.sort(key=lambda n: (n.start, n.unique_key))
    return out


def _candidate(path: Tuple[Node, ...], closing: Node, count: int, cost: float) -> CandidateAssembly:
    seq = path + (closing,)
    junctions = tuple(make_junction(seq[i], seq[i + 1]) for i in range(len(path)))
    return CandidateAssembly(
        nodes=path,
        closing=closing,
        fragment_count=count,
        total_cost=cost,
        junctions=junctions,
    )


def explicit_candidate(nodes: Sequence[Node], length: int) -> CandidateAssembly:
    """Caller-ordered path (explicit fragments mode): no search, same bookkeeping."""
    path = tuple(nodes)
    closing = path[0].shifted(length)
    seq = path + (closing,)
    count = len(path) + sum(synthesis_hop_count(seq[i], seq[i + 1]) for i in range(len(path)))
    cost = sum(cost_to(seq[i], seq[i + 1]) for i in range(len(path)))
    return _candidate(path, closing, count, cost)


def coverage_errors(candidate: CandidateAssembly, length: int) -> List[str]:
    """
    Check that the path covers [0, length) exactly once: every base is on a node
    or in a synthesized gap, and only declared junction overlaps are covered twice.
    """
    errors: List[str] = []
    anchor, closing = candidate.nodes[0], candidate.closing
    if closing.unique_key != anchor.unique_key or closing.start != anchor.start + length:
        errors.append("path does not close on its anchor")
        return errors

    counts = [0] * length
    declared = 0
    for j in candidate.junctions:
        n = j.left
        for k in range(n.start, n.end + 1):
            counts[k % length] += 1
        if j.gap:
            if j.kind is not JunctionKind.SYNTHESIS_BRIDGE:
                errors.append(f"gap of {j.gap} bp after {n.id} is not bridged")
            for k in range(n.end + 1, j.right.start):
                counts[k % length] += 1
        declared += j.overlap

    uncovered = sum(1 for c in counts if c == 0)
    if uncovered:
        errors.append(f"{uncovered} bp uncovered")
    if any(c > 2 for c in counts):
        errors.append("bases covered more than twice")
    if sum(counts) - length != declared:
        errors.append(f"overlap {sum(counts) - length} bp differs from declared junction overlap {declared} bp")
    return errors


class AssemblySearch:
    def __init__(self, config: Optional[PlanConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or PlanConfig()
        self.log = logger or logging.getLogger(__name__)

    # --------------------- Public API ---------------------

    def search(self, nodes: Sequence[Node], length: int, target_id: Optional[str] = None) -> List[CandidateAssembly]:
        """
        Returns complete candidates sorted by (fragment_count, total_cost, unique_keys).
        Raises NoCoveringAssemblyError when no path closes within the bounds.
        """
        if not nodes:
            raise NoCoveringAssemblyError(
                "no nodes to assemble", target_id=target_id, reasons=["empty node set"]
            )

        s = self.config.search
        unrolled = unroll(nodes, length)
        position = {n: k for k, n in enumerate(unrolled)}
        budget = reach_budget(self.config, len(nodes))

        solutions: Dict[FrozenSet[str], _Partial] = {}
        closings: Dict[FrozenSet[str], Node] = {}

        for anchor_pos, anchor in enumerate(unrolled):
            if anchor.start >= length:
                break
            self._search_anchor(anchor, anchor_pos, unrolled, position, budget, length, solutions, closings)

        if not solutions:
            raise NoCoveringAssemblyError(
                f"no circular assembly within {s.max_fragments} fragments",
                target_id=target_id,
                reasons=[f"{len(nodes)} nodes searched, reach budget {budget}"],
            )

        ranked = sorted(solutions.items(), key=lambda kv: kv[1].sort_key())
        out = [_candidate(p.path, closings[key], p.count, p.cost) for key, p in ranked]
        self.log.info(
            "Search found %d assemblies (best: %d fragments, $%.2f)",
            len(out), out[0].fragment_count, out[0].total_cost,
        )
        return out

    # --------------------- Internals ---------------------

    def _worst(self, solutions: Dict[FrozenSet[str], _Partial]) -> Optional[Tuple[int, float]]:
        if len(solutions) < self.config.search.max_solutions:
            return None
        worst = max(solutions.values(), key=lambda p: p.sort_key())
        return worst.count, worst.cost

    def _retain(self, solutions: Dict[FrozenSet[str], _Partial], closings: Dict[FrozenSet[str], Node],
                done: _Partial, closing: Node) -> None:
        key = frozenset(done.keys)
        prev = solutions.get(key)
        if prev is not None and prev.sort_key() <= done.sort_key():
            return
        solutions[key] = done
        closings[key] = closing
        if len(solutions) > self.config.search.max_solutions:
            worst_key = max(solutions, key=lambda k: solutions[k].sort_key())
            del solutions[worst_key]
            del closings[worst_key]

    def _search_anchor(
        self,
        anchor: Node,
        anchor_pos: int,
        unrolled: List[Node],
        position: Dict[Node, int],
        budget: int,
        length: int,
        solutions: Dict[FrozenSet[str], _Partial],
        closings: Dict[FrozenSet[str], Node],
    ) -> None:
        s = self.config.search
        tables: Dict[int, List[_Partial]] = {
            anchor_pos: [_Partial((anchor,), 1, 0.0, (anchor.unique_key,))]
        }

        for pos in range(anchor_pos, len(unrolled)):
            partials = tables.pop(pos, None)
            if not partials:
                continue
            partials.sort(key=_Partial.sort_key)
            partials = partials[: s.max_partials_per_node]
            cur = unrolled[pos]

            for m in reachable(cur, unrolled, pos, budget):
                closes = m.unique_key == anchor.unique_key
                if closes and m.start != anchor.start + length:
                    continue
                if not closes and (
                    m.end <= cur.end
                    or m.start <= anchor.start
                    or m.start >= anchor.start + length
                    or m.end >= anchor.end + length
                ):
                    continue

                hops = synthesis_hop_count(cur, m)
                step_cost = cost_to(cur, m)
                for p in partials:
                    if len(p.path) > 1 and m.start <= p.path[-2].end:
                        continue
                    if closes:
                        if len(p.path) > 1 and cur.end >= p.path[1].start + length:
                            continue
                        done = _Partial(p.path, p.count + hops, p.cost + step_cost, p.keys)
                        if done.count <= s.max_fragments:
                            self._retain(solutions, closings, done, m)
                        continue

                    if m.unique_key in p.keys:
                        continue
                    count = p.count + 1 + hops
                    cost = p.cost + step_cost
                    if count > s.max_fragments:
                        continue
                    worst = self._worst(solutions)
                    if worst is not None and (count, cost) >= worst:
                        continue
                    tables.setdefault(position[m], []).append(
                        _Partial(p.path + (m,), count, cost, p.keys + (m.unique_key,))
                    )
