"""
Simulation configuration dataclass and difficulty profiles.

The configuration bundles everything the engine needs at construction time:
the player's starting conditions (money, difficulty, selected product and the
calendar anchor) and the tunable constants that shape the economy (overhead,
recruiting fees, onboarding delay, event cadence, funding timings).

Usage
-----
Basic configuration:

    >>> config = SimulationConfig()
    >>> config = config.copy_with_overrides({"STARTING_MONEY": 250_000})

From the presentation layer's initial-game payload:

    >>> config = SimulationConfig.from_game_config(
    ...     {"startingMoney": 100_000, "difficulty": "hard", "selectedProductId": "crm-platform"}
    ... )

Difficulty profiles are plain override bundles; ``from_game_config`` applies
the named profile on top of the defaults.
"""

from __future__ import annotations

import copy
import json
import math
import os
from dataclasses import asdict, dataclass, field
from numbers import Number
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class SimulationConfig:
    """Starting conditions and economy constants for one simulation."""

    # Starting conditions
    STARTING_MONEY: float = 100_000.0
    DIFFICULTY: str = "medium"
    SELECTED_PRODUCT_ID: Optional[str] = None
    START_DATE: Optional[str] = None  # ISO date; None anchors at today
    RANDOM_SEED: Optional[int] = None  # None draws from OS entropy
    INITIAL_OFFICE_TIER: str = "coworking"
    INITIAL_CANDIDATE_POOL: int = 8
    GAME_SPEED: float = 1.0
    START_PAUSED: bool = True

    # Treasury
    BASE_OVERHEAD: float = 2000.0  # Monthly fixed costs outside salaries and rent
    RECRUITING_FEE: float = 3000.0  # Charged on top of the first month's salary
    OFFICE_UPFRONT_MONTHS: int = 3
    REVENUE_HISTORY_LENGTH: int = 12

    # Team
    ONBOARDING_DAYS: float = 14.0
    HIRING_SEARCH_DURATION: float = 60.0
    CANDIDATE_INTERVAL_DAYS: float = 7.0
    CANDIDATES_PER_INTERVAL: float = 1.5
    MAX_SEARCHES_PER_RECRUITER: int = 2
    HIRING_DISCOUNT_DAYS: float = 60.0

    # Events
    EVENT_COOLDOWN_DAYS: float = 10.0
    MONTHLY_EVENT_PROBABILITY: float = 0.3
    DAILY_EVENT_PROBABILITY: float = 0.03
    COFOUNDER_EVENT_PROBABILITY: float = 0.05
    MAX_PENDING_EVENTS: int = 3

    # Funding
    FUNDING_OFFER_DELAY_DAYS: float = 30.0
    FUNDING_OFFER_TTL_DAYS: float = 30.0
    FUNDING_ROUND_TIMEOUT_DAYS: float = 120.0
    MAX_FUNDING_OFFERS: int = 5

    # Product
    PMF_DAILY_INCREMENT: float = 0.001
    QUALITY_DAILY_INCREMENT: float = 0.0005

    # Run-time switches
    enable_round_logging: bool = False
    round_log_path: Optional[str] = None
    active_difficulty: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.GAME_SPEED, Number) or not math.isfinite(self.GAME_SPEED) or self.GAME_SPEED <= 0:
            raise ValueError(f"GAME_SPEED must be a positive finite number, got {self.GAME_SPEED!r}.")
        self.DIFFICULTY = str(self.DIFFICULTY).strip().lower()

    def snapshot(self) -> Dict[str, Any]:
        """Return a deep-copied, JSON-safe representation of the configuration."""
        return asdict(self)

    def copy_with_overrides(self, overrides: Optional[Dict[str, Any]] = None) -> "SimulationConfig":
        """Return a new config with the provided overrides merged in."""
        new_cfg = copy.deepcopy(self)
        if overrides:
            _apply_overrides(new_cfg, overrides)
        new_cfg.__post_init__()
        return new_cfg

    @classmethod
    def from_game_config(cls, payload: Dict[str, Any]) -> "SimulationConfig":
        """Build a config from ``{startingMoney, difficulty, selectedProductId}``."""
        difficulty = str(payload.get("difficulty") or "medium")
        base = apply_difficulty_profile(cls(), get_difficulty_profile(difficulty))
        overrides: Dict[str, Any] = {"DIFFICULTY": difficulty}
        if payload.get("startingMoney") is not None:
            overrides["STARTING_MONEY"] = float(payload["startingMoney"])
        if payload.get("selectedProductId"):
            overrides["SELECTED_PRODUCT_ID"] = str(payload["selectedProductId"])
        if payload.get("startDate"):
            overrides["START_DATE"] = str(payload["startDate"])
        if payload.get("seed") is not None:
            overrides["RANDOM_SEED"] = int(payload["seed"])
        return base.copy_with_overrides(overrides)


def _apply_overrides(config: SimulationConfig, overrides: Dict[str, Any]) -> None:
    """Set each known attribute in ``overrides`` on ``config``."""
    for key, value in overrides.items():
        if not hasattr(config, key):
            raise KeyError(f"Unknown configuration attribute '{key}' in override.")
        setattr(config, key, copy.deepcopy(value))


@dataclass(frozen=True)
class DifficultyProfile:
    """Reusable bundle of overrides selected by the player's difficulty."""

    name: str
    description: str
    overrides: Dict[str, Any] = field(default_factory=dict)
    source: str = "built-in"

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "source": self.source,
            "overrides": copy.deepcopy(self.overrides),
        }


def apply_difficulty_profile(config: SimulationConfig, profile: Optional[DifficultyProfile]) -> SimulationConfig:
    """Return a config with the profile overrides applied."""
    if profile is None:
        return config
    updated = config.copy_with_overrides(profile.overrides)
    updated.active_difficulty = profile.name
    return updated


def list_difficulty_profiles() -> List[DifficultyProfile]:
    return list(DIFFICULTY_LIBRARY.values())


def get_difficulty_profile(name: str) -> DifficultyProfile:
    """Fetch a built-in difficulty profile by name (case-insensitive)."""
    normalized = name.strip().lower()
    for profile in DIFFICULTY_LIBRARY.values():
        if profile.name.lower() == normalized:
            return profile
    raise KeyError(f"Unknown difficulty profile '{name}'. Available: {', '.join(DIFFICULTY_LIBRARY.keys())}")


def load_difficulty_profile(path: str | os.PathLike[str]) -> DifficultyProfile:
    """Load a difficulty profile definition from disk."""
    file_path = Path(path).expanduser().resolve()
    if not file_path.exists():
        raise FileNotFoundError(f"Difficulty profile not found: {file_path}")
    with file_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    overrides = payload.get("overrides") or {}
    if not isinstance(overrides, dict):
        raise ValueError(f"Difficulty file {file_path} must define an 'overrides' dictionary.")
    return DifficultyProfile(
        name=payload.get("name") or file_path.stem,
        description=payload.get("description", f"Custom difficulty loaded from {file_path.name}"),
        overrides=overrides,
        source=payload.get("source", str(file_path)),
    )


DIFFICULTY_LIBRARY: Dict[str, DifficultyProfile] = {
    "easy": DifficultyProfile(
        name="easy",
        description="Cheaper overhead and recruiting, calmer event stream.",
        overrides={
            "BASE_OVERHEAD": 1500.0,
            "RECRUITING_FEE": 2000.0,
            "MONTHLY_EVENT_PROBABILITY": 0.2,
            "DAILY_EVENT_PROBABILITY": 0.02,
        },
    ),
    "medium": DifficultyProfile(
        name="medium",
        description="Baseline economy.",
        overrides={},
    ),
    "hard": DifficultyProfile(
        name="hard",
        description="Heavier overhead, pricier recruiting and frequent events.",
        overrides={
            "BASE_OVERHEAD": 3000.0,
            "RECRUITING_FEE": 4000.0,
            "MONTHLY_EVENT_PROBABILITY": 0.4,
            "DAILY_EVENT_PROBABILITY": 0.04,
            "ONBOARDING_DAYS": 21.0,
        },
    ),
}
