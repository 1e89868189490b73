# File: backend/app/cli/store_cli.py
# Version: v0.1.1

"""
CLI for the feature and enzyme stores.

Usage:
    python -m backend.app.cli.store_cli set feature "custom terminator 3" CTAGCATAACAAGCTTGGG...
    python -m backend.app.cli.store_cli set enzyme BbvCI CC^TCA_GC
    python -m backend.app.cli.store_cli ls enzyme [EcoR]
    python -m backend.app.cli.store_cli delete feature "custom terminator 3"

Multi-word names are joined with spaces (the value is always the last argument of `set`).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from backend.app.core.config import settings
from backend.app.core.errors import InvalidRecognitionSyntaxError
from backend.app.services.enzyme_db import EnzymeDB
from backend.app.services.feature_db import FeatureDB
from backend.app.services.tab_store import TabStore


def open_store(kind: str, path: Optional[Path]) -> TabStore:
    if kind == "enzyme":
        return EnzymeDB(path or settings.ENZYME_DB_PATH)
    return FeatureDB(path or settings.FEATURE_DB_PATH)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Feature / enzyme store CLI")
    p.add_argument("action", choices=["set", "ls", "delete"])
    p.add_argument("kind", choices=["feature", "enzyme"])
    p.add_argument("args", nargs="*", help="name words (and, for set, the sequence last)")
    p.add_argument("--db", type=Path, default=None, help="Store file (default from settings)")
    p.add_argument("--log-level", dest="log_level", default="WARNING",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    log = logging.getLogger("store_cli")
    store = open_store(args.kind, args.db)

    if args.action == "ls":
        rows = store.find(" ".join(args.args)) if args.args else store.items()
        if args.args and not rows:
            print(f"failed to find any {args.kind}s for {' '.join(args.args)}")
            raise SystemExit(1)
        width = max((len(n) for n, _ in rows), default=0)
        for name, value in rows:
            print(f"{name.ljust(width)}   {value}")
        raise SystemExit(0)

    if args.action == "set":
        if len(args.args) < 2:
            log.error("expecting a name and a sequence")
            raise SystemExit(2)
        name, value = " ".join(args.args[:-1]), args.args[-1]
        try:
            updated = store.set(name, value)
        except (InvalidRecognitionSyntaxError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            raise SystemExit(1)
        print(f"{'updated' if updated else 'created'} {name} in the {args.kind}s database")
        raise SystemExit(0)

    # delete
    if not args.args:
        log.error("expecting a name")
        raise SystemExit(2)
    name = " ".join(args.args)
    if store.delete(name):
        print(f"deleted {name} from the {args.kind}s database")
        raise SystemExit(0)
    print(f"failed to find {name} in the {args.kind}s database")
    raise SystemExit(1)


if __name__ == "__main__":
    main()
