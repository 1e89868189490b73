# File: backend/tests/test_plan_api.py
# Version: v0.1.0
"""
Planning endpoints with temporary stores / parameters and a stub match source.
"""

from __future__ import annotations

import random

import pytest
from fastapi.testclient import TestClient

from backend.app.api.v1.deps import get_enzyme_db, get_match_source, get_plan_params_path
from backend.app.core.errors import SearchToolError
from backend.app.main import app
from backend.app.services.enzyme_db import EnzymeDB


def _seq(n: int, seed: int) -> str:
    rng = random.Random(seed)
    return "".join(rng.choice("ACGT") for _ in range(n))


class FailingSource:
    def search(self, query, databases):
        raise SearchToolError("blastn not found in PATH")


class EmptySource:
    def search(self, query, databases):
        return []


@pytest.fixture
def client(tmp_path):
    enzymes = EnzymeDB(tmp_path / "enzymes.tsv")
    enzymes.set("EcoRI", "G^AATT_C")
    app.dependency_overrides[get_enzyme_db] = lambda: enzymes
    app.dependency_overrides[get_plan_params_path] = lambda: tmp_path / "plan_param.json"
    app.dependency_overrides[get_match_source] = lambda: EmptySource()
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_parameters_roundtrip(client, tmp_path):
    r = client.get("/api/plan/parameters")
    assert r.status_code == 200
    assert r.json()["search"]["max_fragments"] == 6
    assert (tmp_path / "plan_param.json").exists()

    body = r.json()
    body["search"]["max_fragments"] = 4
    r = client.put("/api/plan/parameters", json=body)
    assert r.status_code == 200
    assert client.get("/api/plan/parameters").json()["search"]["max_fragments"] == 4


def test_invalid_parameters_rejected(client):
    r = client.put("/api/plan/parameters", json={"search": {"max_fragments": 0}})
    assert r.status_code == 422


def test_plan_fragments(client):
    seq = _seq(300, 51)
    payload = {
        "target_id": "trio",
        "fragments": [
            {"id": "f1", "seq": seq[0:125]},
            {"id": "f2", "seq": seq[100:225]},
            {"id": "f3", "seq": seq[200:300] + seq[0:25]},
        ],
    }
    r = client.post("/api/plan/fragments", json=payload)
    assert r.status_code == 200
    data = r.json()
    assert data["target"] == {"id": "trio", "seq": seq, "length": 300}
    best = data["assemblies"][0]
    assert best["count"] == 3
    assert [j["kind"] for j in best["junctions"]] == ["existing_homology"] * 3
    assert all(f["primers"] == [] for f in best["fragments"])


def test_plan_fragments_unknown_enzyme(client):
    payload = {
        "fragments": [{"id": "a", "seq": _seq(100, 52)}],
        "backbone": {"id": "pBB", "seq": _seq(300, 53)},
        "enzyme": "NoSuchI",
    }
    r = client.post("/api/plan/fragments", json=payload)
    assert r.status_code == 404


def test_plan_fragments_backbone_without_site(client):
    payload = {
        "fragments": [{"id": "a", "seq": _seq(100, 54)}],
        "backbone": {"id": "pBB", "seq": "ACT" * 100},
        "enzyme": "EcoRI",
    }
    r = client.post("/api/plan/fragments", json=payload)
    assert r.status_code == 422
    assert r.json()["detail"]["error"] == "NoValidCutsiteError"


def test_plan_sequence_without_matches(client):
    r = client.post("/api/plan/sequence", json={"target_id": "t1", "sequence": _seq(300, 55), "databases": ["db"]})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["error"] == "NoMatchesError"
    assert detail["target_id"] == "t1"
    assert detail["reasons"]


def test_plan_sequence_search_tool_failure(client):
    app.dependency_overrides[get_match_source] = lambda: FailingSource()
    r = client.post("/api/plan/sequence", json={"sequence": _seq(300, 56), "databases": ["db"]})
    assert r.status_code == 502
    assert r.json()["detail"]["error"] == "SearchToolError"
