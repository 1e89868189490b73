# File: backend/app/core/export/json_exporter.py
# Version: v0.4.0

"""
Export a Plan (target + ranked assemblies) to a clean JSON file.

v0.4.0
- Plans replace fragment trees; PCR fragments carry their primer pair.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from backend.app.core.models.plan import Backbone, FilledAssembly, Fragment, Plan
from backend.app.core.primer.designer import Primer


def _primer(p: Optional[Primer], strand: str) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    return {
        "seq":    p.seq,
        "anneal": p.anneal,
        "tail":   p.tail,
        "strand": strand,
        "tm":     round(p.tm, 2),
        "gc":     round(p.gc, 2),
    }


def _fragment(f: Fragment) -> Dict[str, Any]:
    return {
        "id":     f.id,
        "type":   f.kind.value,
        "start":  f.start,
        "end":    f.end,
        "seq":    f.seq,
        "cost":   round(f.cost, 2),
        "source": f.source or None,
        "primers": [p for p in (_primer(f.forward_primer, "+"), _primer(f.reverse_primer, "-")) if p],
    }


def _assembly(a: FilledAssembly) -> Dict[str, Any]:
    return {
        "count":          a.fragment_count,
        "cost":           round(a.total_cost, 2),
        "primer_penalty": round(a.primer_penalty, 3),
        "flags":          list(a.flags),
        "valid":          a.valid,
        "reasons":        list(a.reasons),
        "junctions":      [
            {"left": j.left.id, "right": j.right.id, "kind": j.kind.value, "distance": j.distance}
            for j in a.junctions
        ],
        "fragments":      [_fragment(f) for f in a.fragments],
    }


def _backbone(b: Optional[Backbone]) -> Optional[Dict[str, Any]]:
    if b is None:
        return None
    return {
        "id":                b.id,
        "seq":               b.seq,
        "enzyme":            b.enzyme,
        "recognition_index": b.recognition_index,
        "forward":           b.forward,
    }


def plan_to_dict(plan: Plan, include_rejected: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "target":     {"id": plan.target_id, "seq": plan.target_seq, "length": len(plan.target_seq)},
        "backbone":   _backbone(plan.backbone),
        "assemblies": [_assembly(a) for a in plan.assemblies],
    }
    if include_rejected:
        data["rejected"] = [_assembly(a) for a in plan.rejected]
    return data


def export_plan_to_json(plan: Plan, json_path: Path, include_rejected: bool = False) -> None:
    """Write the plan (best assembly first) as indented JSON."""
    json_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(json.dumps(plan_to_dict(plan, include_rejected), indent=2), encoding="utf-8")


def fragments_table(plan: Plan) -> List[Dict[str, Any]]:
    """Flat rows of the best assembly (id, type, length, cost) for CLI summaries."""
    best = plan.best
    if best is None:
        return []
    return [{"id": f.id, "type": f.kind.value, "length": len(f.seq), "cost": round(f.cost, 2)} for f in best.fragments]
