# File: backend/tests/test_planner.py
# Version: v0.1.0
"""
AssemblyPlanner end to end with stub collaborators (no BLAST, no primer3 design).
"""

from __future__ import annotations

import pytest

from backend.app.core.assembly.planner import AssemblyPlanner
from backend.app.core.dna.digest import Enzyme
from backend.app.core.errors import NoCoveringAssemblyError, NoMatchesError, PlanningError
from backend.app.core.models.nodes import Match, NodeKind
from backend.app.core.models.plan import JunctionKind
from backend.app.core.primer.designer import JunctionPrimers, Primer


class StubDesigner:
    def design_junction(self, left_flank, right_flank, min_homology, max_homology, overlap=None):
        fwd = right_flank[:20]
        rev = left_flank[-20:][::-1]
        return JunctionPrimers(
            forward=Primer(seq="GGGG" + fwd, anneal=fwd, tail="GGGG", tm=60.0, gc=50.0),
            reverse=Primer(seq="CCCC" + rev, anneal=rev, tail="CCCC", tm=60.0, gc=50.0),
            penalty=1.0,
            homology=left_flank[-12:] + right_flank[:12],
            existing=overlap or 0,
        )


class StubSource:
    """Returns hits laid out as (entry, start, end) on the middle copy of the query."""

    def __init__(self, layout):
        self.layout = layout
        self.queries = []

    def search(self, query, databases):
        self.queries.append((query, list(databases)))
        L = len(query) // 3
        return [
            Match(entry=entry, seq=query[L + s : L + e + 1], start=L + s, end=L + e)
            for entry, s, e in self.layout
        ]


def test_fragments_with_long_overlaps_need_no_primers(dna):
    seq = dna(300, seed=21)
    frags = [("f1", seq[0:125]), ("f2", seq[100:225]), ("f3", seq[200:300] + seq[0:25])]

    plan = AssemblyPlanner().plan_fragments(frags, target_id="trio")

    assert plan.target_seq == seq
    best = plan.best
    assert best is not None and best.valid
    assert [f.id for f in best.fragments] == ["f1", "f2", "f3"]
    assert all(j.kind is JunctionKind.EXISTING_HOMOLOGY for j in best.junctions)
    assert all(not f.primers for f in best.fragments)
    assert best.total_cost == 0.0


def test_abutting_fragments_get_pcr_primers(dna):
    seq = dna(200, seed=22)
    plan = AssemblyPlanner(designer=StubDesigner()).plan_fragments([("a", seq[:100]), ("b", seq[100:])])

    best = plan.best
    assert [f.kind for f in best.fragments] == [NodeKind.PCR, NodeKind.PCR]
    assert all(len(f.primers) == 2 for f in best.fragments)
    assert best.primer_penalty == pytest.approx(2.0)


def test_sequence_mode_prefers_fewest_fragments(dna):
    seq = dna(300, seed=23)
    source = StubSource([("A", 0, 129), ("B", 100, 229), ("C", 200, 329)])

    plan = AssemblyPlanner(match_source=source, designer=StubDesigner()).plan_sequence("t", seq, ["db1"])

    query, dbs = source.queries[0]
    assert query == seq * 3 and dbs == ["db1"]
    best = plan.best
    assert best.fragment_count == 2
    assert [f.kind for f in best.fragments] == [NodeKind.EXISTING, NodeKind.SYNTHETIC]
    assert best.total_cost == pytest.approx((170 + 40) * 0.1)
    assert len(plan.assemblies) <= 5


def test_sequence_mode_with_backbone(dna):
    seq = dna(300, seed=24)
    backbone_seq = dna(150, seed=25, alphabet="ACT") + "GAATTC" + dna(150, seed=26, alphabet="ACT")
    source = StubSource([("insert", 0, 299)])

    plan = AssemblyPlanner(match_source=source, designer=StubDesigner()).plan_sequence(
        "t", seq, ["db1"], backbone=("pBB", backbone_seq), enzyme=Enzyme.parse("EcoRI", "G^AATT_C")
    )

    assert plan.backbone is not None
    assert plan.backbone.enzyme == "EcoRI"
    assert plan.backbone.recognition_index == 150
    assert len(plan.target_seq) == 300 + len(backbone_seq) - 4
    assert any(f.kind is NodeKind.LINEAR_BACKBONE for a in plan.assemblies for f in a.fragments)


def test_backbone_requires_enzyme(dna):
    seq = dna(200, seed=27)
    with pytest.raises(PlanningError):
        AssemblyPlanner(designer=StubDesigner()).plan_fragments(
            [("a", seq[:100]), ("b", seq[100:])], backbone=("pBB", seq)
        )


def test_no_matches_raises():
    planner = AssemblyPlanner(match_source=StubSource([]))
    with pytest.raises(NoMatchesError) as ei:
        planner.plan_sequence("empty", "ACGT" * 50, ["db1"])
    assert isinstance(ei.value, NoCoveringAssemblyError)
    assert ei.value.target_id == "empty"


def test_missing_match_source_is_an_error():
    with pytest.raises(PlanningError):
        AssemblyPlanner().plan_sequence("t", "ACGT" * 50, ["db1"])
