# File: backend/app/core/export/fasta_exporter.py
# Version: v0.3.0

"""
FASTA export utilities for plans.

v0.3.0
- Records come from the plan's assemblies; primers get their own export.
"""

from pathlib import Path
from typing import List

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from backend.app.core.models.plan import Plan


def export_plan_to_fasta(plan: Plan, fasta_path: Path, rank: int = 0) -> None:
    """
    Write every fragment of the assembly at `rank` (0 = best) as a FASTA record.
    ID: <fragment_id>_<start>_<end>, description: build type
    """
    if not (0 <= rank < len(plan.assemblies)):
        raise IndexError(f"plan has {len(plan.assemblies)} assemblies; rank {rank} requested")
    records: List[SeqRecord] = []
    for f in plan.assemblies[rank].fragments:
        rid = f"{f.id}_{f.start}_{f.end}"
        records.append(SeqRecord(Seq(f.seq), id=rid, description=f.kind.value))
    SeqIO.write(records, str(fasta_path), "fasta")


def export_primers_to_fasta(plan: Plan, fasta_path: Path, rank: int = 0) -> int:
    """
    Export the primers of the assembly at `rank`.
    ID: <fragment_id>_F / <fragment_id>_R. Returns the number of records written.
    """
    if not (0 <= rank < len(plan.assemblies)):
        raise IndexError(f"plan has {len(plan.assemblies)} assemblies; rank {rank} requested")
    records: List[SeqRecord] = []
    for f in plan.assemblies[rank].fragments:
        if f.forward_primer is not None:
            records.append(SeqRecord(Seq(f.forward_primer.seq), id=f"{f.id}_F", description=""))
        if f.reverse_primer is not None:
            records.append(SeqRecord(Seq(f.reverse_primer.seq), id=f"{f.id}_R", description=""))
    SeqIO.write(records, str(fasta_path), "fasta")
    return len(records)
