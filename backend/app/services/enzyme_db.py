# File: backend/app/services/enzyme_db.py
# Version: v0.2.0
"""Enzyme store: name -> marked recognition sequence (e.g. EcoRI -> G^AATT_C)."""

from __future__ import annotations

from backend.app.core.dna.digest import Enzyme, clean_recognition
from backend.app.services.tab_store import TabStore


class EnzymeDB(TabStore):
    kind = "enzyme"

    def clean(self, value: str) -> str:
        return clean_recognition(value)

    def enzyme(self, name: str) -> Enzyme:
        """Parsed enzyme; KeyError if unknown."""
        recognition = self.get(name)
        if recognition is None:
            raise KeyError(f"failed to find {name} in the enzymes database")
        return Enzyme.parse(name, recognition)
