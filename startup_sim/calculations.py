"""
Pure financial arithmetic for the treasury, customer lifecycle and valuations.

Nothing here touches the world-state; the engine feeds in the relevant scalars
and writes results back during its financial recompute and monthly cycle.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from .benchmarks import (
    get_category_acquisition_rate,
    get_category_arpu,
    get_churn_rate_by_milestone,
    get_milestone_acquisition_multiplier,
    get_milestone_arpu_multiplier,
    get_milestone_profile,
    get_role_multiplier,
)
from .models import Employee

EPSILON = 1e-9


def calculate_burn_rate(monthly_expenses: float, monthly_revenue: float) -> float:
    return max(0.0, monthly_expenses - monthly_revenue)


def calculate_runway(money: float, burn_rate: float) -> float:
    """Months of cash left; infinite when the company is not burning."""
    if burn_rate <= 0:
        return math.inf
    return money / burn_rate


def calculate_monthly_expenses(
    employees: Iterable[Employee],
    office_cost: float,
    base_overhead: float = 2000.0,
    adjustments: float = 0.0,
) -> float:
    salaries = sum(e.salary for e in employees)
    return salaries + office_cost + base_overhead + adjustments


def calculate_team_productivity(employees: Iterable[Employee]) -> float:
    return sum(e.productivity * get_role_multiplier(e.role) for e in employees if e.onboarding_complete)


def calculate_customer_acquisitions(
    stage: str,
    category: str,
    product_market_fit: float,
    sales_count: int,
    marketing_count: int,
) -> int:
    """Customers closed this month by the sales team.

    Marketing amplifies sales by up to 50% (two marketers per salesperson),
    and product-market fit scales the result between half and full rate.
    """
    stage_mult = get_milestone_acquisition_multiplier(stage)
    if stage_mult <= 0 or sales_count <= 0:
        return 0
    rate = get_category_acquisition_rate(category)
    marketing_mult = 1.0 + min(marketing_count / max(sales_count, EPSILON), 2.0) * 0.25
    fit_mult = 0.5 + product_market_fit * 0.5
    return int(round(rate * sales_count * stage_mult * marketing_mult * fit_mult))


def calculate_churn_rate(stage: str) -> float:
    return get_churn_rate_by_milestone(stage)


def calculate_revenue_from_customers(customers: int, stage: str, category: str) -> float:
    multiplier = get_milestone_arpu_multiplier(stage)
    if customers <= 0 or multiplier <= 0:
        return 0.0
    return float(round(customers * get_category_arpu(category) * multiplier))


def calculate_valuation(
    monthly_revenue: float,
    product_maturity: float,
    team_size: int,
    growth_rate: float,
    stage: str,
) -> float:
    """Offer-level valuation blended from revenue, product, team and growth."""
    base = (
        monthly_revenue * 10
        + product_maturity * 500_000
        + team_size * 50_000
        + growth_rate * 1_000_000
    )
    return base * get_milestone_profile(stage).valuation_multiplier


def trailing_growth(revenue_history: Sequence[float]) -> float:
    """Growth from the oldest to the newest recorded month, 0 when undefined."""
    if len(revenue_history) < 2:
        return 0.0
    oldest, newest = revenue_history[0], revenue_history[-1]
    if oldest <= 0:
        return 0.0
    return (newest - oldest) / oldest


def calculate_company_valuation(
    cash: float,
    burn_rate: float,
    monthly_revenue: float,
    revenue_history: Sequence[float],
) -> float:
    valuation = cash
    if monthly_revenue > 0:
        growth = trailing_growth(revenue_history)
        multiple = 5.0
        if growth > 0:
            multiple *= min(1.0 + growth * 10.0, 3.0)
        multiple = min(max(multiple, 3.0), 15.0)
        valuation += monthly_revenue * 12 * multiple
    if burn_rate > 0:
        runway = calculate_runway(cash, burn_rate)
        if runway < 6:
            valuation *= max(0.5, runway / 6)
    else:
        valuation *= 1.2
    return max(valuation, cash)
