# File: backend/app/core/assembly/reachability.py
# Version: v0.2.0
"""
Reachability and cost model between placement nodes.

All functions read thresholds from the `PlanConfig` carried by the node, so a
run under different cost assumptions never touches module state.

Conventions (inclusive, unrolled coordinates):
- distance_to(n, m) = m.start - (n.end + 1)
    < 0  : n and m share -distance bases
    = 0  : abutting, no shared sequence
    > 0  : `distance` uncovered bases between them
- an overlap deeper than `fragments.existing_homology` is free existing homology
- the reach scan stops at the first node that is neither overlapping deep enough
  nor affordable with the remaining synthesis budget (locality heuristic: keeps
  the branching factor bounded on large match sets)
"""

from __future__ import annotations

import math
from typing import List, Sequence

from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.models.nodes import Node
from backend.app.core.models.plan import Junction, JunctionKind


def distance_to(n: Node, m: Node) -> int:
    """Bases between the end of `n` and the start of its successor `m`."""
    return m.start - (n.end + 1)


def _has_existing_homology(n: Node, m: Node) -> bool:
    return distance_to(n, m) < -n.config.fragments.existing_homology


def reach_budget(config: PlanConfig, node_count: int) -> int:
    """Nodes a scan may accept through synthesis alone."""
    s = config.search
    return max(s.synthesis_reach_min, int(s.synthesis_reach_fraction * node_count))


def reachable(n: Node, nodes: Sequence[Node], i: int, synth_budget: int) -> List[Node]:
    """
    Successors of `n` (sitting at index `i` of `nodes`, sorted by start).
    """
    out: List[Node] = []
    for m in nodes[i + 1 :]:
        if _has_existing_homology(n, m):
            out.append(m)
        elif synth_budget > 0:
            synth_budget -= 1
            out.append(m)
        else:
            break
    return out


def synthesis_hop_count(n: Node, m: Node) -> int:
    dist = distance_to(n, m)
    if dist <= 0:
        return 0
    return math.ceil(dist / n.config.synthesis.max_length)


def cost_to(n: Node, m: Node) -> float:
    """PCR reaction cost for deep overlaps, otherwise linear synthesis cost of the gap."""
    if _has_existing_homology(n, m):
        return n.config.pcr_reaction_cost
    return max(0, distance_to(n, m)) * n.config.synthesis.bp_cost


def classify(n: Node, m: Node) -> JunctionKind:
    if _has_existing_homology(n, m):
        return JunctionKind.EXISTING_HOMOLOGY
    if distance_to(n, m) <= 0:
        return JunctionKind.PCR_HOMOLOGY
    return JunctionKind.SYNTHESIS_BRIDGE


def make_junction(n: Node, m: Node) -> Junction:
    return Junction(
        left=n,
        right=m,
        distance=distance_to(n, m),
        kind=classify(n, m),
        hops=synthesis_hop_count(n, m),
        cost=cost_to(n, m),
    )
