# File: backend/tests/test_cli.py
# Version: v0.1.0
"""
Store and plan CLIs (fragments mode; no BLAST needed).
"""

from __future__ import annotations

import json

import pytest

from backend.app.cli import plan_cli, store_cli


def _run(main, argv):
    with pytest.raises(SystemExit) as ei:
        main(argv)
    return ei.value.code


def test_store_cli_set_ls_delete(tmp_path, capsys):
    db = str(tmp_path / "features.tsv")

    assert _run(store_cli.main, ["set", "feature", "custom", "terminator", "CTAGCATAACAAGCTTGGG", "--db", db]) == 0
    assert "created custom terminator in the features database" in capsys.readouterr().out

    assert _run(store_cli.main, ["ls", "feature", "terminator", "--db", db]) == 0
    assert "CTAGCATAACAAGCTTGGG" in capsys.readouterr().out

    assert _run(store_cli.main, ["delete", "feature", "custom", "terminator", "--db", db]) == 0
    assert "deleted custom terminator" in capsys.readouterr().out

    assert _run(store_cli.main, ["delete", "feature", "custom", "terminator", "--db", db]) == 1


def test_store_cli_rejects_bad_enzyme(tmp_path, capsys):
    db = tmp_path / "enzymes.tsv"
    assert _run(store_cli.main, ["set", "enzyme", "Bad", "GAATTC", "--db", str(db)]) == 1
    assert "error" in capsys.readouterr().err
    assert not db.exists()


def test_store_cli_usage_errors(tmp_path):
    db = str(tmp_path / "enzymes.tsv")
    assert _run(store_cli.main, ["set", "enzyme", "OnlyName", "--db", db]) == 2
    assert _run(store_cli.main, ["ls", "enzyme", "nothing", "--db", db]) == 1


def test_plan_cli_fragments(tmp_path, dna):
    seq = dna(300, seed=71)
    fasta = tmp_path / "trio.fa"
    fasta.write_text(
        f">f1\n{seq[0:125]}\n>f2\n{seq[100:225]}\n>f3\n{seq[200:300] + seq[0:25]}\n",
        encoding="utf-8",
    )
    params = tmp_path / "params.json"
    params.write_text("{}", encoding="utf-8")
    outdir = tmp_path / "out"

    code = _run(plan_cli.main, ["fragments", "--fasta", str(fasta), "--outdir", str(outdir), "--params", str(params)])

    assert code == 0
    data = json.loads((outdir / "trio_plan.json").read_text(encoding="utf-8"))
    assert data["target"]["length"] == 300
    assert (outdir / "trio_fragments.fasta").exists()
    assert (outdir / "trio_primers.fasta").exists()


def test_plan_cli_missing_enzyme_fails(tmp_path, dna):
    fasta = tmp_path / "a.fa"
    fasta.write_text(f">a\n{dna(200, seed=72)}\n", encoding="utf-8")
    backbone = tmp_path / "bb.fa"
    backbone.write_text(f">bb\n{dna(300, seed=73)}\n", encoding="utf-8")

    code = _run(
        plan_cli.main,
        ["fragments", "--fasta", str(fasta), "--backbone", str(backbone), "--outdir", str(tmp_path / "o")],
    )
    assert code == 1
