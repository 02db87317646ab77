"""
Recruiter-bound hiring searches and candidate generation.

A search runs for two months; candidates trickle in at roughly 1.5 per week
until it completes. Searches are recruited either by the founder (the
``"founder"`` sentinel) or by the co-founder, and each recruiter can run at
most two searches at once.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional

import numpy as np

from .models import (
    EXPERIENCE_LEVELS,
    FOUNDER_RECRUITER,
    ROLE_SUBCLASSES,
    ROLES,
    Candidate,
    HiringSearch,
    TeamState,
)
from .utils import normalize_role, normalize_subclass, random_name

IdFactory = Callable[[str], str]

HIRING_SEARCH_DURATION = 60.0
CANDIDATE_INTERVAL_DAYS = 7.0
CANDIDATES_PER_INTERVAL = 1.5
MAX_SEARCHES_PER_RECRUITER = 2

# role -> experience -> (low, high) monthly salary
SALARY_BANDS = {
    "engineer": {"junior": (6000, 8000), "mid": (10000, 13000), "senior": (14000, 18000)},
    "designer": {"junior": (5000, 7000), "mid": (8000, 11000), "senior": (11000, 15000)},
    "other": {"junior": (4000, 6000), "mid": (6000, 9000), "senior": (9000, 13000)},
}
PRODUCTIVITY_BANDS = {"junior": (0.5, 0.7), "mid": (0.7, 0.9), "senior": (0.85, 1.0)}
COFOUNDER_SALARY_BAND = (8000, 12000)
COFOUNDER_PRODUCTIVITY_BAND = (0.9, 1.0)
INITIAL_POOL_ROLES = ("engineer", "designer", "sales", "marketing")


def _uniform(rng: np.random.Generator, band) -> float:
    low, high = band
    return float(rng.uniform(low, high))


def random_experience_level(rng: np.random.Generator) -> str:
    draw = rng.random()
    if draw < 0.4:
        return "junior"
    if draw < 0.8:
        return "mid"
    return "senior"


def random_subclass(role: str, rng: np.random.Generator) -> Optional[str]:
    options = ROLE_SUBCLASSES.get(role)
    if not options:
        return None
    return options[0] if rng.random() < 0.5 else options[1]


def generate_candidate(
    role: str,
    subclass: Optional[str],
    rng: np.random.Generator,
    id_factory: IdFactory,
    experience_level: Optional[str] = None,
) -> Candidate:
    """Draw one candidate; salary and productivity follow role and seniority bands."""
    role = normalize_role(role, default=role)
    if role == "cofounder":
        return Candidate(
            id=id_factory("candidate"),
            name=random_name(rng),
            role="cofounder",
            expected_salary=float(round(_uniform(rng, COFOUNDER_SALARY_BAND))),
            productivity=round(_uniform(rng, COFOUNDER_PRODUCTIVITY_BAND), 2),
            experience_level="senior",
        )

    level = experience_level or random_experience_level(rng)
    if role in ROLE_SUBCLASSES:
        subclass = normalize_subclass(subclass) or random_subclass(role, rng)
    else:
        subclass = None
    salary_band = SALARY_BANDS.get(role, SALARY_BANDS["other"])[level]
    return Candidate(
        id=id_factory("candidate"),
        name=random_name(rng),
        role=role,
        expected_salary=float(round(_uniform(rng, salary_band))),
        productivity=round(_uniform(rng, PRODUCTIVITY_BANDS[level]), 2),
        experience_level=level,
        role_subclass=subclass,
    )


def generate_candidates_for_role(
    role: str,
    subclass: Optional[str],
    count: int,
    rng: np.random.Generator,
    id_factory: IdFactory,
) -> List[Candidate]:
    return [generate_candidate(role, subclass, rng, id_factory) for _ in range(max(0, int(count)))]


def generate_initial_candidates(count: int, rng: np.random.Generator, id_factory: IdFactory) -> List[Candidate]:
    """Seed the legacy flat pool with a mix of builders and go-to-market roles."""
    candidates = []
    for _ in range(count):
        role = INITIAL_POOL_ROLES[int(rng.integers(len(INITIAL_POOL_ROLES)))]
        level = EXPERIENCE_LEVELS[int(rng.integers(len(EXPERIENCE_LEVELS)))]
        candidates.append(generate_candidate(role, None, rng, id_factory, experience_level=level))
    return candidates


def cofounder_equity_award(days_elapsed: float, rng: np.random.Generator) -> float:
    """Equity granted to a co-founder; earlier joiners get a larger stake."""
    if days_elapsed <= 30:
        band = (20.0, 25.0)
    elif days_elapsed <= 90:
        band = (15.0, 20.0)
    else:
        band = (10.0, 15.0)
    return round(_uniform(rng, band), 1)


def validate_search_request(
    team: TeamState,
    role: Optional[str],
    subclass: Optional[str],
    recruiter_id: str,
    max_per_recruiter: int = MAX_SEARCHES_PER_RECRUITER,
) -> Optional[str]:
    """Return why a search cannot start, or ``None`` when it can."""
    if role not in ROLES:
        return f"unknown role {role!r}"
    allowed = ROLE_SUBCLASSES.get(role)
    if allowed:
        if subclass not in allowed:
            return f"{role} searches need a subclass from {allowed}"
    elif subclass is not None:
        return f"{role} searches take no subclass"

    if role == "cofounder":
        if team.cofounder() is not None:
            return "a co-founder is already on the team"
        if any(s.is_active and s.role == "cofounder" for s in team.active_hiring_searches):
            return "a co-founder search is already running"

    if recruiter_id != FOUNDER_RECRUITER:
        recruiter = team.get_employee(recruiter_id)
        if recruiter is None or not recruiter.is_cofounder:
            return f"recruiter {recruiter_id!r} is neither the founder nor the co-founder"

    running = sum(1 for s in team.active_hiring_searches if s.is_active and s.recruiter_id == recruiter_id)
    if running >= max_per_recruiter:
        return f"recruiter {recruiter_id!r} already runs {running} searches"
    return None


def start_hiring_search(
    role: str,
    subclass: Optional[str],
    recruiter_id: str,
    game_time: float,
    search_id: str,
) -> HiringSearch:
    return HiringSearch(
        id=search_id,
        role=role,
        role_subclass=subclass,
        recruiter_id=recruiter_id,
        started_at=game_time,
    )


def complete_hiring_search(search: HiringSearch) -> HiringSearch:
    search.status = "completed"
    return search


def update_hiring_searches(
    searches: List[HiringSearch],
    game_time: float,
    rng: np.random.Generator,
    id_factory: IdFactory,
    duration: float = HIRING_SEARCH_DURATION,
    interval: float = CANDIDATE_INTERVAL_DAYS,
    per_interval: float = CANDIDATES_PER_INTERVAL,
) -> List[HiringSearch]:
    """Advance every active search in place and return the list."""
    for search in searches:
        if not search.is_active:
            continue
        elapsed = game_time - search.started_at
        if elapsed >= duration:
            complete_hiring_search(search)
            continue
        expected = math.floor(elapsed / interval) * per_interval
        have = len(search.candidates)
        if have >= expected:
            continue
        batch = min(int(rng.integers(1, 3)), math.ceil(expected) - have)
        search.candidates.extend(
            generate_candidates_for_role(search.role, search.role_subclass, batch, rng, id_factory)
        )
    return searches
