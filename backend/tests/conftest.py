# File: backend/tests/conftest.py
# Version: v0.2.0
"""
Test bootstrap: ensure project root is on sys.path so 'backend.*' imports work.

This avoids requiring editable installs or extra plugins. It keeps tests hermetic
to the repo layout (works in CI and locally).

v0.2.0
- `dna` fixture: deterministic pseudo-random sequences for planner tests.
"""
import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]  # repo root (../.. from this file)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def dna():
    """dna(n, seed=0, alphabet="ACGT") -> reproducible random sequence."""
    def make(n: int, seed: int = 0, alphabet: str = "ACGT") -> str:
        rng = random.Random(seed)
        return "".join(rng.choice(alphabet) for _ in range(n))
    return make
