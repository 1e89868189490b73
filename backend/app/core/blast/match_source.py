# File: backend/app/core/blast/match_source.py
# Version: v0.2.0
"""
BLAST-backed match source.

search(query, databases) -> [Match]
- writes the (tripled) query to a temporary FASTA (Biopython SeqIO)
- runs `blastn` once per database with tabular output:
    sseqid qstart qend sstart send sseq mismatch
- converts to 0-based inclusive query coordinates; sstart > send means the hit is
  on the minus strand of the subject entry
- `gnl|<db>|<id>` subject ids become `<db>:<id>`
- optionally fetches each parent entry with `blastdbcmd` (for off-target checks)

Errors:
- no database reachable, missing binary, non-zero exit -> SearchToolError
- no hits -> []
"""

from __future__ import annotations

import glob
import logging
import os
import subprocess
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from backend.app.core.errors import SearchToolError
from backend.app.core.models.nodes import Match

OUTFMT = "6 sseqid qstart qend sstart send sseq mismatch"


def parse_dbs(db_list: str) -> List[str]:
    """Comma-separated BLAST database list -> absolute paths (blank items skipped)."""
    paths: List[str] = []
    for raw in db_list.split(","):
        db = raw.strip(" ,")
        if db:
            paths.append(os.path.abspath(db))
    return paths


def normalize_entry_id(sseqid: str) -> str:
    """gnl|addgene|107006 -> addgene:107006; anything else unchanged."""
    parts = sseqid.split("|")
    if len(parts) == 3 and parts[0] == "gnl":
        return f"{parts[1]}:{parts[2]}"
    return sseqid


def parse_blast_output(text: str, logger: Optional[logging.Logger] = None) -> List[Match]:
    """Parse `OUTFMT` rows; malformed lines are skipped."""
    log = logger or logging.getLogger(__name__)
    matches: List[Match] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        cols = line.split("\t") if "\t" in line else line.split()
        if len(cols) < 7:
            log.debug("Skipping short BLAST row: %r", line)
            continue
        try:
            qstart, qend, sstart, send = (int(c) for c in cols[1:5])
            mismatches = int(cols[6])
        except ValueError:
            log.debug("Skipping malformed BLAST row: %r", line)
            continue
        matches.append(
            Match(
                entry=normalize_entry_id(cols[0]),
                seq=cols[5].replace("-", "").upper(),
                start=qstart - 1,
                end=qend - 1,
                reverse_complement=sstart > send,
                mismatches=mismatches,
            )
        )
    return matches


def _db_reachable(db: str) -> bool:
    return bool(glob.glob(f"{db}.*")) or os.path.exists(db)


class BlastMatchSource:
    def __init__(
        self,
        blastn_bin: str = "blastn",
        blastdbcmd_bin: str = "blastdbcmd",
        threads: int = 1,
        perc_identity: float = 100.0,
        fetch_sources: bool = False,
        timeout_s: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.blastn_bin = blastn_bin
        self.blastdbcmd_bin = blastdbcmd_bin
        self.threads = threads
        self.perc_identity = perc_identity
        self.fetch_sources = fetch_sources
        self.timeout_s = timeout_s
        self.log = logger or logging.getLogger(__name__)

    # --------------------- Public API ---------------------

    def search(self, query: str, databases: Sequence[str]) -> List[Match]:
        reachable = [db for db in databases if _db_reachable(db)]
        if not reachable:
            raise SearchToolError(f"no BLAST database reachable among: {', '.join(databases) or '(none)'}")
        for db in databases:
            if db not in reachable:
                self.log.warning("BLAST database %s not found; skipping", db)

        with tempfile.TemporaryDirectory(prefix="vecforge-blast-") as tmp:
            query_path = Path(tmp) / "query.fa"
            SeqIO.write([SeqRecord(Seq(query), id="query", description="")], str(query_path), "fasta")

            matches: List[Match] = []
            for db in reachable:
                hits = parse_blast_output(self._blastn(query_path, db), self.log)
                if self.fetch_sources and hits:
                    hits = self._attach_sources(hits, db)
                self.log.info("BLAST %s: %d hits", db, len(hits))
                matches.extend(hits)
        return matches

    # --------------------- Tool calls ---------------------

    def _run(self, cmd: List[str]) -> str:
        self.log.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_s)
        except FileNotFoundError as exc:
            raise SearchToolError(f"{cmd[0]} not found in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise SearchToolError(f"{cmd[0]} timed out after {self.timeout_s}s") from exc
        if result.returncode != 0:
            raise SearchToolError(f"{cmd[0]} failed ({result.returncode}): {result.stderr.strip()}")
        return result.stdout

    def _blastn(self, query_path: Path, db: str) -> str:
        return self._run(
            [
                self.blastn_bin,
                "-task", "blastn",
                "-db", db,
                "-query", str(query_path),
                "-outfmt", OUTFMT,
                "-perc_identity", str(self.perc_identity),
                "-num_threads", str(self.threads),
                "-max_target_seqs", "10000",
                "-evalue", "10",
            ]
        )

    def _attach_sources(self, hits: List[Match], db: str) -> List[Match]:
        sources: Dict[str, str] = {}
        out: List[Match] = []
        for m in hits:
            if m.entry not in sources:
                sources[m.entry] = self._fetch_entry(m.entry, db)
            out.append(replace(m, source_seq=sources[m.entry] or None))
        return out

    def _fetch_entry(self, entry: str, db: str) -> str:
        raw_id = entry.split(":", 1)[1] if ":" in entry else entry
        stdout = self._run([self.blastdbcmd_bin, "-db", db, "-entry", raw_id, "-outfmt", "%s"])
        return "".join(stdout.split()).upper()
