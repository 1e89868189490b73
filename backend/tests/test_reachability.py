# File: backend/tests/test_reachability.py
# Version: v0.1.0
"""
Distance, junction classification and cost model between nodes.
"""

from __future__ import annotations

import pytest

from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.assembly.reachability import (
    classify,
    cost_to,
    distance_to,
    make_junction,
    reach_budget,
    reachable,
    synthesis_hop_count,
)
from backend.app.core.models.nodes import Node
from backend.app.core.models.plan import JunctionKind


def _node(name: str, start: int, end: int, config: PlanConfig = None) -> Node:
    return Node(
        id=name,
        unique_key=f"{start}{name}",
        start=start,
        end=end,
        sequence="A" * (end - start + 1),
        config=config or PlanConfig(),
    )


def test_distance_sign():
    n = _node("n", 0, 99)
    assert distance_to(n, _node("m", 75, 199)) == -25
    assert distance_to(n, _node("m", 100, 199)) == 0
    assert distance_to(n, _node("m", 150, 249)) == 50


def test_deep_overlap_is_existing_homology():
    n, m = _node("n", 0, 99), _node("m", 75, 199)
    assert classify(n, m) is JunctionKind.EXISTING_HOMOLOGY
    assert cost_to(n, m) == pytest.approx(36.0)  # 0.6 $/bp * 60 bp of primers
    assert synthesis_hop_count(n, m) == 0


def test_shallow_overlap_or_abutting_needs_pcr():
    n = _node("n", 0, 99)
    assert classify(n, _node("m", 90, 199)) is JunctionKind.PCR_HOMOLOGY
    assert classify(n, _node("m", 80, 199)) is JunctionKind.PCR_HOMOLOGY  # exactly 20 bp shared
    assert classify(n, _node("m", 100, 199)) is JunctionKind.PCR_HOMOLOGY


def test_gap_cost_grows_with_distance():
    n = _node("n", 0, 99)
    near, far = _node("a", 150, 249), _node("b", 400, 499)
    assert classify(n, near) is JunctionKind.SYNTHESIS_BRIDGE
    assert cost_to(n, near) == pytest.approx(5.0)
    assert cost_to(n, far) > cost_to(n, near)


def test_hops_follow_max_synthesis_length():
    n = _node("n", 0, 99)
    assert synthesis_hop_count(n, _node("m", 3100, 3199)) == 1   # 3000 bp gap
    assert synthesis_hop_count(n, _node("m", 3101, 3199)) == 2
    assert synthesis_hop_count(n, _node("m", 7100, 7199)) == 3


def test_reach_budget_floor_and_fraction():
    cfg = PlanConfig()
    assert reach_budget(cfg, 10) == 5
    assert reach_budget(cfg, 1000) == 50


def test_reachable_stops_when_budget_spent():
    n = _node("n", 0, 99)
    deep = _node("deep", 50, 149)
    gap1 = _node("gap1", 300, 399)
    gap2 = _node("gap2", 500, 599)
    later = _node("later", 550, 699)
    nodes = [n, deep, gap1, gap2, later]
    assert reachable(n, nodes, 0, 1) == [deep, gap1]
    assert reachable(n, nodes, 0, 3) == [deep, gap1, gap2, later]


def test_make_junction_fields():
    n, m = _node("n", 0, 99), _node("m", 150, 249)
    j = make_junction(n, m)
    assert (j.distance, j.gap, j.overlap, j.hops) == (50, 50, 0, 1)
    assert j.kind is JunctionKind.SYNTHESIS_BRIDGE
