"""Utility helpers and role label normalization for the startup simulation."""

from __future__ import annotations

import itertools
from typing import Any, Iterable, Optional

import numpy as np


def weighted_mean(values: Iterable[float], weights: Iterable[float]) -> float:
    """Weighted mean that returns 0.0 when the weights sum to zero."""
    vals = np.asarray(list(values), dtype=float)
    wts = np.asarray(list(weights), dtype=float)
    total = float(wts.sum()) if wts.size else 0.0
    if total <= 0.0:
        return 0.0
    return float((vals * wts).sum() / total)


ROLE_NORMALIZATION = {
    "engineer": "engineer",
    "engineering": "engineer",
    "developer": "engineer",
    "designer": "designer",
    "design": "designer",
    "sales": "sales",
    "marketing": "marketing",
    "operations": "operations",
    "ops": "operations",
    "cto": "cofounder",
    "cofounder": "cofounder",
    "co_founder": "cofounder",
    "founder": "cofounder",
}

SUBCLASS_NORMALIZATION = {
    "frontend": "frontend",
    "front_end": "frontend",
    "backend": "backend",
    "back_end": "backend",
    "product": "product",
    "visual": "visual",
}


def normalize_role(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Map varied role labels to canonical roles.

    ``cto`` and ``cofounder`` name the same seat, so both collapse to
    ``cofounder``.
    """
    if value is None:
        return default
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    return ROLE_NORMALIZATION.get(key, default)


def normalize_subclass(value: Any) -> Optional[str]:
    if value is None:
        return None
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    return SUBCLASS_NORMALIZATION.get(key)


def is_cofounder_role(value: Any) -> bool:
    return normalize_role(value) == "cofounder"


class IdSequence:
    """Monotonic id generator scoped to one simulation instance."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def __call__(self, prefix: str) -> str:
        return f"{prefix}-{next(self._counter)}"


FIRST_NAMES = [
    "Alex", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Avery", "Quinn",
    "Sam", "Jamie", "Cameron", "Dakota", "Skylar", "Blake", "Sage", "River",
    "Phoenix", "Rowan", "Finley", "Hayden", "Reese", "Drew", "Logan", "Noah",
]
LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Hernandez", "Lopez", "Wilson", "Anderson", "Thomas", "Jackson",
    "White", "Harris", "Martin", "Thompson", "Moore", "Young", "King", "Lee",
]


def random_name(rng: np.random.Generator) -> str:
    return f"{FIRST_NAMES[int(rng.integers(len(FIRST_NAMES)))]} {LAST_NAMES[int(rng.integers(len(LAST_NAMES)))]}"


def format_money(amount: float) -> str:
    """Compact dollar formatting used by CLI summaries."""
    if amount is None or not np.isfinite(amount):
        return "n/a"
    sign = "-" if amount < 0 else ""
    value = abs(float(amount))
    if value >= 1_000_000:
        return f"{sign}${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{sign}${value / 1_000:.1f}k"
    return f"{sign}${value:.0f}"
