# File: backend/tests/test_filler.py
# Version: v0.1.1
"""
Assembly filler with a stub junction designer:
- synthetic bridges (even split, padding to the minimum length)
- PCR junctions (primers attached to both neighbors, design dedup)
- design failures / timeouts invalidate the assembly; tool errors abort
"""

from __future__ import annotations

import time

import pytest

from backend.app.core.assembly.filler import AssemblyFiller
from backend.app.core.assembly.plan_parameters import ExecutionConfig, PlanConfig, SynthesisConfig
from backend.app.core.assembly.search import explicit_candidate
from backend.app.core.dna.coordinates import CircularTarget
from backend.app.core.dna.sequence_utils import reverse_complement
from backend.app.core.errors import DesignToolError, JunctionDesignFailed
from backend.app.core.models.nodes import Node, NodeKind
from backend.app.core.primer.designer import JunctionPrimers, Primer


class StubDesigner:
    """Fixed 4 bp tails on 20 bp annealing parts."""

    def __init__(self, fail=None, delay=0.0):
        self.fail = fail
        self.delay = delay
        self.calls = []

    def design_junction(self, left_flank, right_flank, min_homology, max_homology, overlap=None):
        self.calls.append((left_flank, right_flank, overlap))
        if self.delay:
            time.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        fwd_anneal = right_flank[:20]
        rev_anneal = reverse_complement(left_flank[-20:])
        return JunctionPrimers(
            forward=Primer(seq="GGGG" + fwd_anneal, anneal=fwd_anneal, tail="GGGG", tm=60.0, gc=50.0),
            reverse=Primer(seq="CCCC" + rev_anneal, anneal=rev_anneal, tail="CCCC", tm=60.0, gc=50.0),
            penalty=1.5,
            homology=left_flank[-10:] + right_flank[:10],
            existing=overlap or 0,
        )


def _node(name: str, start: int, end: int, seq: str, config: PlanConfig) -> Node:
    target = CircularTarget(seq)
    return Node(
        id=name,
        unique_key=f"{start}{name}",
        start=start,
        end=end,
        sequence=target.window(start, end),
        config=config,
    )


def test_long_gap_split_into_equal_pieces(dna):
    cfg = PlanConfig(synthesis=SynthesisConfig(max_length=1000, min_length=125))
    seq = dna(3800, seed=11)  # 3500 bp gap after A: 3.5x the synthesis limit
    cand = explicit_candidate([_node("A", 0, 299, seq, cfg)], len(seq))
    assert cand.junctions[0].hops == 4

    filled = AssemblyFiller(StubDesigner(), cfg).fill(cand, CircularTarget(seq))

    pieces = [f for f in filled.fragments if f.kind is NodeKind.SYNTHETIC]
    assert len(pieces) == 4
    assert {len(p.seq) for p in pieces} == {3500 // 4 + 40}
    assert [p.id for p in pieces] == [f"A-A-synth-{k}" for k in range(1, 5)]
    assert filled.valid
    assert filled.total_cost == pytest.approx(4 * 915 * 0.1)


def test_short_gap_padded_to_min_length(dna):
    cfg = PlanConfig()
    seq = dna(300, seed=12)
    cand = explicit_candidate([_node("A", 0, 249, seq, cfg)], len(seq))

    filled = AssemblyFiller(StubDesigner(), cfg).fill(cand, CircularTarget(seq))

    synth = filled.fragments[1]
    assert synth.kind is NodeKind.SYNTHETIC
    assert len(synth.seq) == cfg.synthesis.min_length
    # the piece still reaches into both neighbors
    assert synth.seq[:20] in seq[:250]


def test_pcr_junctions_attach_primers(dna):
    cfg = PlanConfig()
    seq = dna(200, seed=13)
    nodes = [_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)]
    cand = explicit_candidate(nodes, len(seq))
    designer = StubDesigner()

    filled = AssemblyFiller(designer, cfg).fill(cand, CircularTarget(seq))

    a, b = filled.fragments
    assert a.kind is NodeKind.PCR and b.kind is NodeKind.PCR
    assert a.forward_primer is not None and a.reverse_primer is not None
    assert a.seq == "GGGG" + seq[:100] + "GGGG"
    assert b.seq == "GGGG" + seq[100:] + "GGGG"
    assert a.cost == pytest.approx(48 * 0.6)
    assert filled.primer_penalty == pytest.approx(3.0)
    assert len(filled.homologies) == 2
    assert len(designer.calls) == 2
    assert all(call[2] == 0 for call in designer.calls)


def test_identical_design_requests_run_once(dna):
    cfg = PlanConfig()
    seq = dna(200, seed=14)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))
    designer = StubDesigner()

    out = AssemblyFiller(designer, cfg).fill_many([cand, cand], CircularTarget(seq))

    assert len(out) == 2
    assert len(designer.calls) == 2


def test_existing_homology_needs_no_design(dna):
    cfg = PlanConfig()
    seq = dna(300, seed=15)
    nodes = [_node("A", 0, 129, seq, cfg), _node("B", 100, 229, seq, cfg), _node("C", 200, 329, seq, cfg)]
    designer = StubDesigner()

    filled = AssemblyFiller(designer, cfg).fill(explicit_candidate(nodes, 300), CircularTarget(seq))

    assert designer.calls == []
    assert [f.kind for f in filled.fragments] == [NodeKind.EXISTING] * 3
    assert filled.homologies == [seq[100:130], seq[200:230], seq[0:30]]


def test_design_failure_invalidates_assembly(dna):
    cfg = PlanConfig()
    seq = dna(200, seed=16)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))
    designer = StubDesigner(fail=JunctionDesignFailed("no pair", reasons={"fwd_Tm": 3}))

    filled = AssemblyFiller(designer, cfg).fill(cand, CircularTarget(seq))

    assert not filled.valid
    assert len(filled.reasons) == 2
    assert "fwd_Tm x3" in filled.reasons[0]


def test_design_timeout_invalidates_assembly(dna):
    cfg = PlanConfig(execution=ExecutionConfig(workers=2, design_timeout_s=0.05))
    seq = dna(200, seed=17)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))

    filled = AssemblyFiller(StubDesigner(delay=0.5), cfg).fill(cand, CircularTarget(seq))

    assert not filled.valid
    assert any("timed out" in r for r in filled.reasons)


def test_design_tool_error_aborts(dna):
    cfg = PlanConfig()
    seq = dna(200, seed=18)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))

    with pytest.raises(DesignToolError):
        AssemblyFiller(StubDesigner(fail=DesignToolError("primer3 crashed")), cfg).fill(cand, CircularTarget(seq))


class SlowFirstDesigner(StubDesigner):
    """Only the first call hangs."""

    def design_junction(self, left_flank, right_flank, min_homology, max_homology, overlap=None):
        self.delay = 1.0 if not self.calls else 0.0
        return super().design_junction(left_flank, right_flank, min_homology, max_homology, overlap=overlap)


def test_hung_design_does_not_time_out_queued_ones(dna):
    cfg = PlanConfig(execution=ExecutionConfig(workers=1, design_timeout_s=0.3))
    seq = dna(200, seed=19)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))

    t0 = time.monotonic()
    filled = AssemblyFiller(SlowFirstDesigner(), cfg).fill(cand, CircularTarget(seq))
    elapsed = time.monotonic() - t0

    assert len(filled.reasons) == 1
    assert "timed out" in filled.reasons[0]
    assert elapsed < 0.9


def test_unexpected_designer_error_aborts(dna):
    cfg = PlanConfig()
    seq = dna(200, seed=20)
    cand = explicit_candidate([_node("A", 0, 99, seq, cfg), _node("B", 100, 199, seq, cfg)], len(seq))

    with pytest.raises(RuntimeError, match="bad flank"):
        AssemblyFiller(StubDesigner(fail=RuntimeError("bad flank")), cfg).fill(cand, CircularTarget(seq))
