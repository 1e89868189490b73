# File: backend/app/cli/plan_cli.py
# Version: v0.3.0

"""
Command-line interface for assembly planning.

Subcommands:
  sequence   plan a target (first FASTA record) from BLAST matches
  fragments  assemble the FASTA records in the given order (no search)
  features   compose a target from named features, then plan it like `sequence`

Outputs in --outdir:
  <id>_plan.json, <id>_fragments.fasta, <id>_primers.fasta

Exit codes: 0 on success, 1 on a planning error (logged with the target id).

Usage:
    python -m backend.app.cli.plan_cli sequence --fasta target.fa --dbs db/addgene,db/igem --outdir out
    python -m backend.app.cli.plan_cli fragments --fasta parts.fa --backbone pSB1C3.fa --enzyme EcoRI --outdir out
    python -m backend.app.cli.plan_cli features --names "SV40 origin,mEGFP:rev" --dbs db/addgene --outdir out
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from Bio import SeqIO

from backend.app.config.config_plan import load_current_params, load_plan_config
from backend.app.core.assembly.plan_parameters import PlanConfig
from backend.app.core.assembly.planner import AssemblyPlanner
from backend.app.core.blast.match_source import BlastMatchSource, parse_dbs
from backend.app.core.config import settings
from backend.app.core.dna.digest import Enzyme
from backend.app.core.errors import PlanningError
from backend.app.core.export.fasta_exporter import export_plan_to_fasta, export_primers_to_fasta
from backend.app.core.export.json_exporter import export_plan_to_json, fragments_table
from backend.app.core.models.plan import Plan
from backend.app.services.enzyme_db import EnzymeDB
from backend.app.services.feature_db import FeatureDB

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# ---------- IO helpers ----------

def read_records(path: Path) -> List[Tuple[str, str]]:
    records = [(rec.id, str(rec.seq).upper()) for rec in SeqIO.parse(str(path), "fasta")]
    if not records:
        raise ValueError(f"No FASTA records found in {path}")
    return records


def write_outputs(plan: Plan, outdir: Path, log: logging.Logger) -> None:
    outdir.mkdir(parents=True, exist_ok=True)
    export_plan_to_json(plan, outdir / f"{plan.target_id}_plan.json", include_rejected=True)
    export_plan_to_fasta(plan, outdir / f"{plan.target_id}_fragments.fasta")
    n_primers = export_primers_to_fasta(plan, outdir / f"{plan.target_id}_primers.fasta")
    for row in fragments_table(plan):
        log.info("  %-28s %-16s %6d bp  $%.2f", row["id"], row["type"], row["length"], row["cost"])
    log.info("Wrote plan for %s (%d assemblies, %d primers) to %s", plan.target_id, len(plan.assemblies), n_primers, outdir)


# ---------- Argument parsing ----------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Vector assembly planning CLI")
    sub = p.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--outdir", required=True, type=Path, help="Output directory")
    common.add_argument("--params", type=Path, default=None,
                        help="Plan parameters JSON (default: current plan_param.json)")
    common.add_argument("--backbone", type=Path, default=None, help="FASTA with a backbone to linearize")
    common.add_argument("--enzyme", default=None, help="Enzyme (by name) used to linearize --backbone")
    common.add_argument("--enzymes-db", type=Path, default=settings.ENZYME_DB_PATH, help="Enzyme store (TSV)")
    common.add_argument("--log-level", dest="log_level", default="INFO", choices=LOG_LEVELS,
                        help="Logging level (default: INFO)")

    search = argparse.ArgumentParser(add_help=False)
    search.add_argument("--dbs", default=settings.BLAST_DBS, help="Comma-separated BLAST databases")
    search.add_argument("--fetch-sources", action="store_true",
                        help="Fetch parent entries with blastdbcmd (enables off-target checks)")

    s = sub.add_parser("sequence", parents=[common, search], help="Plan a target sequence")
    s.add_argument("--fasta", required=True, type=Path, help="Target FASTA (first record is used)")

    f = sub.add_parser("fragments", parents=[common], help="Assemble fragments in the given order")
    f.add_argument("--fasta", required=True, type=Path, help="FASTA with the fragments, in order")

    ft = sub.add_parser("features", parents=[common, search], help="Plan a target composed of named features")
    ft.add_argument("--names", required=True, help='Comma-separated feature names, e.g. "SV40 origin,mEGFP:rev"')
    ft.add_argument("--features-db", type=Path, default=settings.FEATURE_DB_PATH, help="Feature store (TSV)")
    ft.add_argument("--target-id", default="features", help="Identifier for the composed target")
    return p


def _load_config(path: Optional[Path]) -> PlanConfig:
    return load_plan_config(path) if path is not None else load_current_params()


def _backbone(args: argparse.Namespace) -> Tuple[Optional[Tuple[str, str]], Optional[Enzyme]]:
    if args.backbone is None:
        return None, None
    if not args.enzyme:
        raise ValueError("--backbone requires --enzyme")
    enzyme = EnzymeDB(args.enzymes_db).enzyme(args.enzyme)
    return read_records(args.backbone)[0], enzyme


def run(args: argparse.Namespace, log: logging.Logger) -> Plan:
    config = _load_config(args.params)
    backbone, enzyme = _backbone(args)

    if args.command == "fragments":
        fragments = read_records(args.fasta)
        target_id = args.fasta.stem
        planner = AssemblyPlanner(config, logger=log)
        return planner.plan_fragments(fragments, backbone=backbone, enzyme=enzyme, target_id=target_id)

    source = BlastMatchSource(
        blastn_bin=settings.BLASTN_BIN,
        blastdbcmd_bin=settings.BLASTDBCMD_BIN,
        threads=settings.BLAST_THREADS,
        fetch_sources=args.fetch_sources,
        logger=log,
    )
    planner = AssemblyPlanner(config, match_source=source, logger=log)
    databases = parse_dbs(args.dbs)

    if args.command == "features":
        target_seq, parts = FeatureDB(args.features_db).compose(args.names)
        log.info("Composed %s from %d features (%d bp)", args.target_id, len(parts), len(target_seq))
        return planner.plan_sequence(args.target_id, target_seq, databases, backbone=backbone, enzyme=enzyme)

    records = read_records(args.fasta)
    if len(records) > 1:
        log.warning("%d records in %s; only targeting the first: %s", len(records), args.fasta, records[0][0])
    target_id, target_seq = records[0]
    return planner.plan_sequence(target_id, target_seq, databases, backbone=backbone, enzyme=enzyme)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level))
    log = logging.getLogger("plan_cli")

    # Startup banner
    log.info("=== plan_cli %s ===", args.command)
    log.info("OUTDIR=%s | PARAMS=%s | BACKBONE=%s | ENZYME=%s | LOG=%s",
             str(args.outdir), str(args.params) if args.params else "current",
             str(args.backbone) if args.backbone else "None", args.enzyme or "None", args.log_level)

    try:
        plan = run(args, log)
    except PlanningError as e:
        log.error("✗ Failed %s: %s", e.target_id or "run", e)
        for reason in getattr(e, "reasons", [])[:10]:
            log.error("    - %s", reason)
        raise SystemExit(1)
    except (KeyError, ValueError, OSError) as e:
        log.error("✗ Failed: %s", e)
        raise SystemExit(1)

    write_outputs(plan, args.outdir, log)
    log.info("✓ Completed %s", plan.target_id)
    raise SystemExit(0)


if __name__ == "__main__":
    main()
