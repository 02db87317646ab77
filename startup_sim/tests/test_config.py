from __future__ import annotations

import json
from pathlib import Path

import pytest

from startup_sim.config import (
    SimulationConfig,
    apply_difficulty_profile,
    get_difficulty_profile,
    list_difficulty_profiles,
    load_difficulty_profile,
)


def test_overrides_return_new_config() -> None:
    base = SimulationConfig()
    updated = base.copy_with_overrides({"STARTING_MONEY": 250_000, "DIFFICULTY": " Hard "})
    assert updated.STARTING_MONEY == 250_000
    assert updated.DIFFICULTY == "hard"
    assert base.STARTING_MONEY == 100_000


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(KeyError):
        SimulationConfig().copy_with_overrides({"NOT_A_SETTING": 1})
    with pytest.raises(KeyError):
        SimulationConfig().copy_with_overrides({"BASE_OVERHEAD.extra": 1})


def test_override_values_are_copied() -> None:
    overrides = {"SELECTED_PRODUCT_ID": "crm-platform", "REVENUE_HISTORY_LENGTH": 6}
    config = SimulationConfig().copy_with_overrides(overrides)
    overrides["SELECTED_PRODUCT_ID"] = "ai-chatbot"
    assert config.SELECTED_PRODUCT_ID == "crm-platform"
    assert config.REVENUE_HISTORY_LENGTH == 6


@pytest.mark.parametrize("speed", [0, -1.0, float("inf"), float("nan")])
def test_game_speed_must_be_positive(speed: float) -> None:
    with pytest.raises(ValueError):
        SimulationConfig(GAME_SPEED=speed)


def test_from_game_config_applies_difficulty() -> None:
    config = SimulationConfig.from_game_config(
        {"startingMoney": 50_000, "difficulty": "hard", "selectedProductId": "crm-platform"}
    )
    hard = get_difficulty_profile("hard")
    assert config.STARTING_MONEY == 50_000
    assert config.SELECTED_PRODUCT_ID == "crm-platform"
    assert config.active_difficulty == "hard"
    assert config.BASE_OVERHEAD == hard.overrides["BASE_OVERHEAD"]
    assert config.RECRUITING_FEE == hard.overrides["RECRUITING_FEE"]


def test_from_game_config_defaults_to_medium() -> None:
    config = SimulationConfig.from_game_config({})
    assert config.DIFFICULTY == "medium"
    assert config.STARTING_MONEY == 100_000
    assert config.SELECTED_PRODUCT_ID is None


def test_unknown_difficulty_raises() -> None:
    with pytest.raises(KeyError):
        SimulationConfig.from_game_config({"difficulty": "nightmare"})


def test_profiles_catalogue() -> None:
    names = {profile.name for profile in list_difficulty_profiles()}
    assert names == {"easy", "medium", "hard"}
    assert get_difficulty_profile("EASY").name == "easy"
    assert apply_difficulty_profile(SimulationConfig(), None).active_difficulty is None


def test_load_difficulty_profile(tmp_path: Path) -> None:
    path = tmp_path / "brutal.json"
    path.write_text(json.dumps({"description": "Very hard", "overrides": {"BASE_OVERHEAD": 9000}}), encoding="utf-8")
    profile = load_difficulty_profile(path)
    assert profile.name == "brutal"
    assert profile.to_metadata()["overrides"] == {"BASE_OVERHEAD": 9000}
    config = apply_difficulty_profile(SimulationConfig(), profile)
    assert config.BASE_OVERHEAD == 9000
    assert config.active_difficulty == "brutal"


def test_load_difficulty_profile_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_difficulty_profile(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"overrides": [1, 2, 3]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_difficulty_profile(bad)


def test_snapshot_is_json_safe() -> None:
    snapshot = SimulationConfig(START_DATE="2025-01-01").snapshot()
    assert json.loads(json.dumps(snapshot))["START_DATE"] == "2025-01-01"
    assert snapshot["RECRUITING_FEE"] == 3000
