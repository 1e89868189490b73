# File: backend/tests/test_stores.py
# Version: v0.1.1
"""
Feature / enzyme stores and backbone digestion:
- recognition-sequence parsing (cut markers)
- store persistence, forgiving lookups, composition of named features
- digest(): forward / reverse-complement sites, failure modes
"""

from __future__ import annotations

import pytest

from backend.app.core.dna.digest import Enzyme, digest
from backend.app.core.dna.sequence_utils import reverse_complement
from backend.app.core.errors import InvalidRecognitionSyntaxError, NoValidCutsiteError
from backend.app.services.enzyme_db import EnzymeDB
from backend.app.services.feature_db import FeatureDB


# ---------- enzymes ----------

def test_parse_top_strand_first():
    e = Enzyme.parse("EcoRI", "G^AATT_C")
    assert (e.recog, e.seq_cut_index, e.comp_cut_index) == ("GAATTC", 1, 5)
    assert e.overhang_length == -4


def test_parse_complement_first():
    e = Enzyme.parse("PstI", "C_TGCA^G")
    assert (e.recog, e.seq_cut_index, e.comp_cut_index) == ("CTGCAG", 5, 1)
    assert e.overhang_length == 4


def test_parse_type_iis_site():
    e = Enzyme.parse("BsaI", "GGTCTCN^NNNN_")
    assert (e.recog, e.seq_cut_index, e.comp_cut_index) == ("GGTCTCNNNNN", 7, 11)
    assert e.overhang_length == -4


@pytest.mark.parametrize("bad", ["GAATTC", "G^AA^TT_C", "G^AATTC", "G_AATT_C^"])
def test_parse_rejects_bad_markers(bad):
    with pytest.raises(InvalidRecognitionSyntaxError):
        Enzyme.parse("X", bad)


def test_enzyme_store_roundtrip(tmp_path):
    path = tmp_path / "enzymes.tsv"
    db = EnzymeDB(path)
    assert len(db) == 0

    assert db.set("EcoRI", "g^aatt_c") is False
    assert db.set("EcoRI", "G^AATT_C") is True
    assert EnzymeDB(path).get("EcoRI") == "G^AATT_C"
    assert db.enzyme("EcoRI").recog == "GAATTC"
    with pytest.raises(KeyError):
        db.enzyme("NotThere")


def test_invalid_recognition_not_written(tmp_path):
    path = tmp_path / "enzymes.tsv"
    db = EnzymeDB(path)
    with pytest.raises(InvalidRecognitionSyntaxError):
        db.set("Bad", "GAATTC")
    assert "Bad" not in db
    assert not path.exists()


def test_find_exact_containing_and_close(tmp_path):
    path = tmp_path / "enzymes.tsv"
    path.write_text("EcoRI\tG^AATT_C\nEcoRV\tGAT^_ATC\nBamHI\tG^GATC_C\nHindIII\tA^AGCT_T\n", encoding="utf-8")
    db = EnzymeDB(path)

    assert db.find("EcoRI") == [("EcoRI", "G^AATT_C")]
    assert [n for n, _ in db.find("ecor")] == ["EcoRI", "EcoRV"]
    assert [n for n, _ in db.find("BamH1")] == ["BamHI"]
    assert db.find("zzzzzz") == []


def test_delete(tmp_path):
    path = tmp_path / "enzymes.tsv"
    db = EnzymeDB(path)
    db.set("SmaI", "CCC^_GGG")
    assert db.delete("SmaI") is True
    assert db.delete("SmaI") is False
    assert EnzymeDB(path).names() == []


def test_failed_write_leaves_store_unchanged(tmp_path, monkeypatch):
    path = tmp_path / "enzymes.tsv"
    db = EnzymeDB(path)
    db.set("SmaI", "CCC^_GGG")

    def disk_full(entries):
        raise OSError("disk full")

    monkeypatch.setattr(db, "_write", disk_full)
    with pytest.raises(OSError):
        db.set("EcoRI", "G^AATT_C")
    with pytest.raises(OSError):
        db.delete("SmaI")

    assert db.names() == ["SmaI"]
    assert EnzymeDB(path).names() == ["SmaI"]


# ---------- features ----------

def test_feature_values_are_cleaned(tmp_path):
    db = FeatureDB(tmp_path / "features.tsv")
    db.set("ori", "acg t\nn")
    assert db.get("ori") == "ACGTN"
    with pytest.raises(ValueError):
        db.set("empty", "1234")
    with pytest.raises(ValueError):
        db.set("bad\tname", "ACGT")


def test_compose_with_reverse_suffix(tmp_path):
    db = FeatureDB(tmp_path / "features.tsv")
    db.set("promoter", "AAAACCC")
    db.set("gene", "GGGT")

    seq, parts = db.compose("promoter, gene:REV")

    assert seq == "AAAACCC" + reverse_complement("GGGT")
    assert [label for label, _ in parts] == ["promoter", "gene:REV"]
    with pytest.raises(KeyError):
        db.compose("promoter,terminator")
    with pytest.raises(ValueError):
        db.compose(" , ")


def test_bundled_stores_load():
    from backend.app.core.config import settings

    enzymes = EnzymeDB(settings.ENZYME_DB_PATH)
    bsai = enzymes.enzyme("BsaI")
    assert (bsai.recog, bsai.seq_cut_index, bsai.comp_cut_index) == ("GGTCTCNNNNN", 7, 11)
    assert len(FeatureDB(settings.FEATURE_DB_PATH)) >= 3


# ---------- digest ----------

def test_digest_forward_site(dna):
    seq = dna(150, seed=31, alphabet="ACT") + "GAATTC" + dna(150, seed=32, alphabet="ACT")
    linear, bb = digest("pBB", seq, Enzyme.parse("EcoRI", "G^AATT_C"))

    assert bb.forward is True
    assert bb.recognition_index == 150
    assert linear == seq[155:] + seq[:151]
    assert bb.seq == seq


def test_digest_reverse_strand_site(dna):
    # only the reverse complement carries GGTCTC
    seq = dna(100, seed=33, alphabet="ACT") + "GAGACC" + dna(100, seed=34, alphabet="ACT")
    linear, bb = digest("pBB", seq, Enzyme.parse("BsaI", "GGTCTCN^NNNN_"))

    assert bb.forward is False
    assert len(linear) == len(seq) - 4


def test_digest_top_strand_overhang(dna):
    seq = dna(100, seed=35, alphabet="ACT") + "CTGCAG" + dna(100, seed=36, alphabet="ACT")
    linear, _ = digest("pBB", seq, Enzyme.parse("PstI", "C_TGCA^G"))
    cut = 100 + 5
    assert linear == seq[cut:] + seq[:cut]


def test_digest_failures(dna):
    enzyme = Enzyme.parse("EcoRI", "G^AATT_C")
    with pytest.raises(NoValidCutsiteError):
        digest("tiny", "GAATTC", enzyme)
    with pytest.raises(NoValidCutsiteError):
        digest("nosite", dna(200, seed=37, alphabet="ACT"), enzyme)
