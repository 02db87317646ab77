"""
Funding rounds, investor interest and offer economics.

Rounds run strictly in sequence (seed, then series A through D). A round
collects offers once investors have had a month to look at the company;
offers are live for thirty days and a round with no live offer left after
four months fails.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .benchmarks import get_milestone_profile
from .calculations import calculate_valuation
from .models import ROUND_ORDER, FundingOffer, FundingRound, FundingState, WorldState
from .templates import get_product_template

IdFactory = Callable[[str], str]

REVENUE_REQUIREMENTS: Dict[str, float] = {
    "seed": 0.0,
    "series_a": 10_000.0,
    "series_b": 100_000.0,
    "series_c": 500_000.0,
    "series_d": 2_000_000.0,
}

# round -> ((min amount, max amount), (min equity, max equity))
BASE_TERMS: Dict[str, Tuple[Tuple[float, float], Tuple[float, float]]] = {
    "seed": ((250_000, 2_000_000), (15, 25)),
    "series_a": ((3_000_000, 15_000_000), (12, 20)),
    "series_b": ((15_000_000, 50_000_000), (8, 15)),
    "series_c": ((50_000_000, 150_000_000), (5, 12)),
    "series_d": ((100_000_000, 300_000_000), (3, 8)),
}

HARD_BOUNDS: Dict[str, Tuple[Tuple[float, float], Tuple[float, float]]] = {
    "seed": ((200_000, 2_500_000), (12, 30)),
    "series_a": ((2_500_000, 18_000_000), (8, 25)),
    "series_b": ((12_000_000, 60_000_000), (5, 18)),
    "series_c": ((40_000_000, 180_000_000), (3, 15)),
    "series_d": ((80_000_000, 350_000_000), (2, 10)),
}

OFFER_DELAY_DAYS = 30.0
OFFER_TTL_DAYS = 30.0
ROUND_TIMEOUT_DAYS = 120.0
MAX_OFFERS = 5


def normalize_round_type(value: Optional[str]) -> Optional[str]:
    """Map ``seriesA``, ``Series A`` or ``series-a`` onto ``series_a``."""
    if value is None:
        return None
    text = re.sub(r"(?<=[a-z])(?=[A-Z])", "_", str(value).strip())
    key = re.sub(r"[\s\-]+", "_", text).lower()
    return key if key in ROUND_ORDER else None


def get_revenue_requirement(round_type: str) -> float:
    return REVENUE_REQUIREMENTS.get(normalize_round_type(round_type) or "", 0.0)


def calculate_investor_interest(state: WorldState) -> float:
    """Investor appetite in [0, 1]; the milestone carries half the weight."""
    milestone_weight = get_milestone_profile(state.product.current_milestone).investor_interest
    progress_score = state.product.overall_progress / 100.0
    team_score = min(1.0, len(state.team.employees) / 10.0)
    revenue_score = min(1.0, state.monthly_revenue / 50_000.0)
    interest = milestone_weight * 0.5 + progress_score * 0.2 + team_score * 0.15 + revenue_score * 0.15
    return min(1.0, interest)


def validate_round_start(funding: FundingState, round_type: Optional[str], monthly_revenue: float) -> Optional[str]:
    """Return why a round cannot start, or ``None``."""
    if round_type not in ROUND_ORDER:
        return "unknown round type"
    if funding.active_round is not None:
        return "another round is in progress"
    completed = funding.completed_round_types()
    if round_type in completed:
        return f"{round_type} has already been raised"
    index = ROUND_ORDER.index(round_type)
    if index > 0 and ROUND_ORDER[index - 1] not in completed:
        return f"{ROUND_ORDER[index - 1]} must close before {round_type}"
    if monthly_revenue < REVENUE_REQUIREMENTS[round_type]:
        return f"{round_type} needs {REVENUE_REQUIREMENTS[round_type]:,.0f}/month revenue"
    return None


def start_round(round_type: str, game_time: float, investor_interest: float, round_id: str) -> FundingRound:
    return FundingRound(
        id=round_id,
        round_type=round_type,
        started_at=game_time,
        investor_interest=float(np.clip(investor_interest, 0.0, 1.0)),
    )


def offer_requirements(round_type: str) -> List[str]:
    requirement = REVENUE_REQUIREMENTS.get(round_type, 0.0)
    if round_type == "seed" or requirement <= 0:
        return []
    return [f"Minimum {round(requirement / 1000)}k/month revenue"]


def generate_funding_offer(
    round_type: str,
    investor_interest: float,
    state: WorldState,
    offer_id: str,
    offer_index: int = 0,
    ttl_days: float = OFFER_TTL_DAYS,
) -> FundingOffer:
    """Price one term sheet for the current company.

    Interest interpolates within the round's base ranges (more interest
    means more money for less equity); milestone, product template and
    revenue then scale the result before the round's hard bounds apply.
    """
    milestone = get_milestone_profile(state.product.current_milestone)
    template = get_product_template(state.product.product_template_id) if state.product.product_template_id else None
    complexity = template.estimated_complexity if template else 3
    revenue_potential = template.revenue_potential if template else 1.0

    complexity_factor = 0.9 + (complexity / 5) * 0.2
    potential_factor = 0.85 + (revenue_potential - 1.0) * 0.3

    (min_amount, max_amount), (min_equity, max_equity) = BASE_TERMS[round_type]
    variation = (offer_index / 5) * 0.15 - 0.075
    interest = float(np.clip(investor_interest + variation, 0.0, 1.0))

    amount = min_amount + interest * (max_amount - min_amount)
    equity = max_equity - interest * (max_equity - min_equity)
    amount *= milestone.offer_amount_multiplier * complexity_factor * potential_factor
    equity *= milestone.offer_equity_multiplier

    if state.monthly_revenue > 0:
        bonus = min(1.2, 1 + (state.monthly_revenue / 100_000) * 0.1)
        amount *= bonus
        equity /= bonus

    (amount_floor, amount_cap), (equity_floor, equity_cap) = HARD_BOUNDS[round_type]
    amount = float(np.clip(amount, amount_floor, amount_cap))
    equity = float(np.clip(equity, equity_floor, equity_cap))

    valuation = calculate_valuation(
        state.monthly_revenue,
        state.product.maturity,
        len(state.team.employees),
        state.product.product_market_fit,
        state.product.current_milestone,
    )
    return FundingOffer(
        id=offer_id,
        round_type=round_type,
        amount=float(round(amount)),
        valuation=float(round(valuation)),
        equity_percent=round(equity, 1),
        expires_at=state.current_time + ttl_days,
        requirements=offer_requirements(round_type),
    )


def _offer_score(offer: FundingOffer) -> float:
    return offer.amount / offer.equity_percent if offer.equity_percent > 0 else math.inf


def live_offers(round_: FundingRound, now: float) -> List[FundingOffer]:
    return [o for o in round_.offers if now < o.expires_at]


def update_funding_system(
    funding: FundingState,
    state: WorldState,
    rng: np.random.Generator,
    id_factory: IdFactory,
    offer_delay: float = OFFER_DELAY_DAYS,
    offer_ttl: float = OFFER_TTL_DAYS,
    timeout: float = ROUND_TIMEOUT_DAYS,
    max_offers: int = MAX_OFFERS,
) -> FundingState:
    """Advance the active round in place: generate, expire, or fail it."""
    round_ = funding.active_round
    if round_ is None or round_.status != "in_progress":
        return funding

    now = state.current_time
    elapsed = now - round_.started_at
    if elapsed >= offer_delay and not round_.offers_generated:
        count = max(1, min(max_offers, math.ceil(round_.investor_interest * max_offers)))
        for index in range(count):
            jittered = float(np.clip(round_.investor_interest + (rng.random() - 0.5) * 0.2, 0.0, 1.0))
            round_.offers.append(
                generate_funding_offer(
                    round_.round_type, jittered, state, id_factory("offer"), index, ttl_days=offer_ttl
                )
            )
        round_.offers.sort(key=_offer_score, reverse=True)
        round_.offers_generated = True

    if round_.offers_generated:
        round_.offers = live_offers(round_, now)
    if elapsed >= timeout and not round_.offers:
        round_.status = "failed"
        funding.active_round = None
    return funding
