# File: backend/tests/test_config_loader.py
# Version: v0.2.0

"""
Plan parameter loading: partial JSON, defaults file, current-file initialization.
"""

import json

import pytest

from backend.app.config.config_plan import (
    ensure_current_exists,
    load_current_params,
    load_default_params,
    load_plan_config,
    save_current_params,
)
from backend.app.core.assembly.plan_parameters import FlagPolicy, PlanConfig


def test_partial_json_falls_back_to_defaults(tmp_path):
    p = tmp_path / "plan.json"
    p.write_text(
        """{
          "synthesis": { "bp_cost": 0.07, "max_length": 1800 },
          "search": { "max_fragments": 5 },
          "validation": { "flag_policy": "drop" }
        }""",
        encoding="utf-8",
    )
    cfg = load_plan_config(p)
    assert isinstance(cfg, PlanConfig)
    assert cfg.synthesis.bp_cost == pytest.approx(0.07)
    assert cfg.synthesis.max_length == 1800
    assert cfg.synthesis.min_length == 125
    assert cfg.search.max_fragments == 5
    assert cfg.validation.flag_policy is FlagPolicy.DROP
    assert cfg.fragments.min_homology == 20


def test_missing_file_gives_defaults(tmp_path):
    assert load_plan_config(tmp_path / "nope.json") == PlanConfig()
    assert load_plan_config(None) == PlanConfig()


def test_default_file_matches_model():
    assert load_default_params() == PlanConfig()


def test_inconsistent_bounds_rejected(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text(json.dumps({"fragments": {"min_homology": 50, "max_homology": 30}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_plan_config(p)


def test_ensure_current_exists_and_save(tmp_path):
    path = tmp_path / "plan_param.json"
    created, params = ensure_current_exists(path=path)
    assert created is True
    assert path.exists()
    assert params == load_default_params()

    created_again, _ = ensure_current_exists(path=path)
    assert created_again is False

    changed = PlanConfig.model_validate({"search": {"max_reported": 2}})
    save_current_params(changed, path=path)
    assert load_current_params(path=path).search.max_reported == 2


def test_pcr_reaction_cost():
    assert PlanConfig().pcr_reaction_cost == pytest.approx(36.0)
