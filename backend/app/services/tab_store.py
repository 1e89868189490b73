# File: backend/app/services/tab_store.py
# Version: v0.2.1
"""
Name-keyed sequence store over a `name<TAB>sequence` file.

- Loaded once at construction; lookups are served from memory.
- `set()` / `delete()` rewrite the whole file atomically (tmp + os.replace)
  while holding the store lock, so concurrent writers are serialized. The
  in-memory entries are swapped only after the file was written.
- `find()` is forgiving: exact name, else names containing the query, else names
  within a small Levenshtein distance (rapidfuzz). Fewer than three containing
  names are merged into the low-distance list.

Subclasses define `kind` (for messages) and `clean()` (value validation).
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from rapidfuzz.distance import Levenshtein


FIND_MAX_DISTANCE = 2
FIND_MIN_CONTAINING = 3


class TabStore:
    kind = "entry"

    def __init__(self, path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = self._read()

    # --------------------- IO ---------------------

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            self.log.warning("%s store %s not found; starting empty", self.kind, self.path)
            return {}
        entries: Dict[str, str] = {}
        with self.path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                name, sep, value = line.partition("\t")
                if not sep:
                    self.log.debug("Skipping malformed line %d in %s", lineno, self.path)
                    continue
                entries[name] = value.strip()
        self.log.debug("Loaded %d %ss from %s", len(entries), self.kind, self.path)
        return entries

    def _write(self, entries: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            for name, value in entries.items():
                fh.write(f"{name}\t{value}\n")
        os.replace(tmp, self.path)

    # --------------------- Validation ---------------------

    def clean(self, value: str) -> str:
        return value

    # --------------------- Read API ---------------------

    def names(self) -> List[str]:
        return sorted(self._entries)

    def items(self) -> List[Tuple[str, str]]:
        return [(n, self._entries[n]) for n in self.names()]

    def get(self, name: str) -> Optional[str]:
        return self._entries.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, query: str) -> List[Tuple[str, str]]:
        if query in self._entries:
            return [(query, self._entries[query])]

        q = query.lower()
        containing: List[str] = []
        low_distance: List[str] = []
        for name in self._entries:
            n = name.lower()
            if q in n:
                containing.append(name)
            elif len(n) > FIND_MAX_DISTANCE and Levenshtein.distance(q, n) <= FIND_MAX_DISTANCE:
                low_distance.append(name)

        if len(containing) < FIND_MIN_CONTAINING:
            low_distance.extend(containing)
            containing = []
        hits = containing or low_distance
        return [(n, self._entries[n]) for n in sorted(hits)]

    # --------------------- Write API ---------------------

    def set(self, name: str, value: str) -> bool:
        """Create or update `name`. Returns True when an existing entry was updated."""
        name = name.strip()
        if not name or "\t" in name:
            raise ValueError(f"invalid {self.kind} name: {name!r}")
        cleaned = self.clean(value)
        with self._lock:
            updated = name in self._entries
            entries = dict(self._entries)
            entries[name] = cleaned
            self._write(entries)
            self._entries = entries
        self.log.info("%s %s %s", "Updated" if updated else "Created", self.kind, name)
        return updated

    def delete(self, name: str) -> bool:
        """Remove `name`. Returns False when it was not in the store."""
        with self._lock:
            if name not in self._entries:
                return False
            entries = {n: v for n, v in self._entries.items() if n != name}
            self._write(entries)
            self._entries = entries
        self.log.info("Deleted %s %s", self.kind, name)
        return True
