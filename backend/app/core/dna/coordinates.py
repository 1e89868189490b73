# File: backend/app/core/dna/coordinates.py
# Version: v0.1.1
"""
Coordinate layer for circular targets.

The search tool sees the target written three times in a row so that matches
spanning the origin come back as one contiguous hit. Everything downstream works
on *unrolled* coordinates: any integer index, mapped back onto the circle with
`idx mod L`. Only this module knows about the tripling.

v0.1.1
- `window()` accepts spans longer than the target (wraps more than once).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CircularTarget:
    seq: str
    copies: int = 3

    def __post_init__(self) -> None:
        if not self.seq:
            raise ValueError("Target sequence is empty")

    def __len__(self) -> int:
        return len(self.seq)

    @property
    def length(self) -> int:
        return len(self.seq)

    def tripled(self) -> str:
        """Query handed to the linear search tool."""
        return self.seq * self.copies

    def canonical(self, idx: int) -> int:
        """Map any unrolled index onto [0, L)."""
        return idx % len(self.seq)

    def normalize_span(self, start: int, end: int) -> Tuple[int, int]:
        """
        Shift an inclusive span so that 0 <= start < L, preserving its length.
        Spans longer than the target are clamped to exactly L bases.
        """
        if end < start:
            raise ValueError(f"span end {end} precedes start {start}")
        L = len(self.seq)
        shift = (start // L) * L
        s = start - shift
        e = min(end - shift, s + L - 1)
        return s, e

    def window(self, start: int, end: int) -> str:
        """Sequence of the inclusive unrolled span [start, end] (wraps the origin)."""
        if end < start:
            return ""
        L = len(self.seq)
        s = start % L
        n = end - start + 1
        reps = (s + n) // L + 1
        return (self.seq * reps)[s : s + n]
