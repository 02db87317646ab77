"""Shared fixtures; keeps the package importable without installation."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
PARENT = ROOT.parent
for candidate in (PARENT, ROOT):
    path_str = str(candidate)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

import numpy as np
import pytest

from startup_sim.config import SimulationConfig
from startup_sim.simulation import StartupSimulation

QUIET = {"DAILY_EVENT_PROBABILITY": 0.0, "MONTHLY_EVENT_PROBABILITY": 0.0}


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def make_sim():
    """Factory for an unpaused simulation anchored on 2025-01-01."""

    def _factory(quiet: bool = True, **overrides) -> StartupSimulation:
        settings = {"START_DATE": "2025-01-01", "RANDOM_SEED": 7}
        if quiet:
            settings.update(QUIET)
        settings.update(overrides)
        sim = StartupSimulation(SimulationConfig().copy_with_overrides(settings))
        sim.set_paused(False)
        return sim

    return _factory
