"""
Static benchmark tables consumed by the calculator, funding and office code.

Category figures approximate public SaaS pricing and sales-cycle benchmarks:
ARPU is monthly revenue per customer at mature pricing, and the acquisition
rate is customers closed per salesperson per month. Every milestone-keyed
number lives in ``MILESTONE_PROFILES`` so pricing, churn, investor appetite and
offer terms cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

MILESTONES = ("idea", "mvp", "validated", "growing", "mature")
DEFAULT_CATEGORY = "Productivity"

CATEGORY_ARPU: Dict[str, float] = {
    "CRM": 120.0,          # Salesforce/HubSpot seat tiers
    "Productivity": 20.0,  # Asana/Notion/Monday.com
    "Analytics": 75.0,     # Mixpanel/Amplitude
    "AI": 100.0,
    "HR": 10.0,            # per-employee pricing (BambooHR/Gusto)
}

CATEGORY_ACQUISITION_RATE: Dict[str, float] = {
    "CRM": 4.0,            # enterprise sales, long cycles
    "Productivity": 12.0,  # self-serve friendly
    "Analytics": 6.0,
    "AI": 5.0,
    "HR": 20.0,            # SMB volume play
}


@dataclass(frozen=True)
class MilestoneProfile:
    arpu_multiplier: float
    acquisition_multiplier: float
    churn_rate: float  # monthly
    investor_interest: float
    offer_amount_multiplier: float
    offer_equity_multiplier: float
    valuation_multiplier: float


MILESTONE_PROFILES: Dict[str, MilestoneProfile] = {
    "idea": MilestoneProfile(0.0, 0.0, 0.0, 0.10, 0.40, 1.40, 0.5),
    "mvp": MilestoneProfile(0.5, 0.3, 0.13, 0.30, 0.60, 1.15, 0.7),
    "validated": MilestoneProfile(0.7, 0.6, 0.07, 0.60, 0.85, 1.00, 0.9),
    "growing": MilestoneProfile(0.9, 0.9, 0.04, 0.85, 1.00, 0.90, 1.1),
    "mature": MilestoneProfile(1.0, 1.0, 0.015, 1.00, 1.15, 0.85, 1.3),
}

ROLE_PRODUCTIVITY_MULTIPLIER: Dict[str, float] = {
    "engineer": 1.0,
    "designer": 0.7,
    "sales": 0.5,
    "marketing": 0.4,
    "operations": 0.3,
    "cofounder": 1.2,
}
DEFAULT_ROLE_MULTIPLIER = 0.5


@dataclass(frozen=True)
class OfficeTier:
    name: str
    capacity: int
    monthly_cost: float
    description: str


OFFICE_TIERS: Dict[str, OfficeTier] = {
    "coworking": OfficeTier(
        "Coworking Space", 5, 1000.0,
        "Shared workspace for up to 5 people. Perfect for early stage startups.",
    ),
    "small": OfficeTier(
        "Small Office", 10, 3000.0,
        "Small private office space for up to 10 team members.",
    ),
    "medium": OfficeTier(
        "Medium Office", 25, 8000.0,
        "Comfortable office space for a growing team of up to 25 people.",
    ),
    "large": OfficeTier(
        "Large Office", 50, 20000.0,
        "Spacious office complex for large teams of up to 50 people.",
    ),
}


def get_milestone_profile(milestone: str) -> MilestoneProfile:
    return MILESTONE_PROFILES.get(milestone, MILESTONE_PROFILES["idea"])


def get_category_arpu(category: str) -> float:
    return CATEGORY_ARPU.get(category, CATEGORY_ARPU[DEFAULT_CATEGORY])


def get_category_acquisition_rate(category: str) -> float:
    return CATEGORY_ACQUISITION_RATE.get(category, CATEGORY_ACQUISITION_RATE[DEFAULT_CATEGORY])


def get_milestone_arpu_multiplier(milestone: str) -> float:
    return get_milestone_profile(milestone).arpu_multiplier


def get_milestone_acquisition_multiplier(milestone: str) -> float:
    return get_milestone_profile(milestone).acquisition_multiplier


def get_churn_rate_by_milestone(milestone: str) -> float:
    return get_milestone_profile(milestone).churn_rate


def get_role_multiplier(role: str) -> float:
    return ROLE_PRODUCTIVITY_MULTIPLIER.get(role, DEFAULT_ROLE_MULTIPLIER)
