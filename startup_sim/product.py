"""
Product and feature development engine.

Work happens per feature: only employees assigned to a feature and past
onboarding contribute to it. Engineers (the co-founder counts as one) move
components forward; designers raise overall product quality. Feature,
product and milestone progress are always recomputed from components, so any
out-of-band nudge to ``overall_progress`` lasts only until the next pass.

Daily progress on a component is

    (100 / estimated_days) * (1 + (n - 1) * 0.7) * (0.5 + score * 0.1) * adj

where ``n`` is the number of engineers on the feature, ``score`` the summed
role-weighted productivity of the feature team, and ``adj`` a 10% slowdown
for components with complexity above 8. The first incomplete component gets
85% of that; with two or more engineers the next one gets 15% of its own.
"""

from __future__ import annotations

import copy
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .benchmarks import get_role_multiplier
from .models import EXPERIENCE_LEVELS, Employee, Feature, FeatureComponent, ProductState
from .templates import (
    ProductTemplate,
    generate_components_for_feature,
    generate_feature_requirements,
)
from .utils import weighted_mean

PRIMARY_SHARE = 0.85
SECONDARY_SHARE = 0.15
ENGINEER_EFFICIENCY_STEP = 0.7
STAGE_THRESHOLDS = ((0.2, "idea"), (0.4, "mvp"), (0.6, "validated"), (0.8, "growing"))


def meets_seniority(level: str, minimum: str) -> bool:
    try:
        return EXPERIENCE_LEVELS.index(level) >= EXPERIENCE_LEVELS.index(minimum)
    except ValueError:
        return False


def is_engineer(employee: Employee) -> bool:
    return employee.role in ("engineer", "cofounder")


def calculate_product_stage(features: Sequence[Feature]) -> str:
    """Milestone from the share of fully completed features."""
    if not features:
        return "idea"
    ratio = sum(1 for f in features if f.is_complete) / len(features)
    for threshold, stage in STAGE_THRESHOLDS:
        if ratio < threshold:
            return stage
    return "mature"


def feature_progress(feature: Feature) -> float:
    if not feature.components:
        return feature.progress
    return weighted_mean(
        (c.progress for c in feature.components),
        (c.base_complexity for c in feature.components),
    )


def overall_progress(features: Sequence[Feature]) -> float:
    return weighted_mean((f.progress for f in features), (f.base_complexity for f in features))


def _component_daily_progress(component: FeatureComponent, engineers: int, multiplier: float) -> float:
    efficiency = 1.0 + max(engineers - 1, 0) * ENGINEER_EFFICIENCY_STEP
    adjustment = 0.9 if component.base_complexity > 8 else 1.0
    return (100.0 / max(component.estimated_days, 1e-9)) * efficiency * multiplier * adjustment


def _advance_feature(feature: Feature, team: List[Employee]) -> None:
    engineers = sum(1 for e in team if is_engineer(e))
    if engineers == 0:
        return
    score = sum(e.productivity * get_role_multiplier(e.role) for e in team)
    multiplier = 0.5 + score * 0.1

    pending = [c for c in feature.components if not c.is_complete]
    if not pending:
        return
    primary = pending[0]
    primary.progress = min(100.0, primary.progress + _component_daily_progress(primary, engineers, multiplier) * PRIMARY_SHARE)
    if len(pending) > 1 and engineers >= 2:
        secondary = pending[1]
        step = _component_daily_progress(secondary, engineers - 1, multiplier) * SECONDARY_SHARE
        secondary.progress = min(100.0, secondary.progress + step)


def update_product_system(
    product: ProductState,
    employees: Iterable[Employee],
    quality_increment: float = 0.0005,
    pmf_increment: float = 0.001,
) -> ProductState:
    """Return a copy of ``product`` advanced by one working day."""
    updated = copy.deepcopy(product)
    by_id = {e.id: e for e in employees}
    designers_active = False

    for feature in sorted(updated.features, key=lambda f: f.priority):
        if feature.is_complete:
            continue
        team = [
            by_id[eid]
            for eid in feature.assigned_employee_ids
            if eid in by_id and by_id[eid].onboarding_complete
        ]
        if not team:
            continue
        _advance_feature(feature, team)
        if any(e.role == "designer" for e in team):
            designers_active = True

    for feature in updated.features:
        feature.progress = min(100.0, feature_progress(feature))

    updated.overall_progress = min(100.0, overall_progress(updated.features))
    updated.maturity = min(1.0, updated.overall_progress / 100.0)
    updated.current_milestone = calculate_product_stage(updated.features)
    if updated.maturity > 0.5:
        updated.product_market_fit = min(1.0, updated.product_market_fit + pmf_increment)
    if designers_active:
        updated.quality = min(1.0, updated.quality + quality_increment)
    return updated


def build_features_from_template(template: ProductTemplate, rng: np.random.Generator) -> List[Feature]:
    features = []
    for ft in sorted(template.features, key=lambda f: f.priority):
        components = ft.components or generate_components_for_feature(ft.id, ft.name, ft.base_complexity)
        features.append(
            Feature(
                id=ft.id,
                name=ft.name,
                description=ft.description,
                priority=ft.priority,
                base_complexity=ft.base_complexity,
                components=[
                    FeatureComponent(c.id, c.name, c.base_complexity, c.estimated_days)
                    for c in components
                ],
                requirements=generate_feature_requirements(ft.base_complexity, rng),
                unlocks_capability=ft.unlocks_capability,
            )
        )
    # Priorities are a dense 1..N ranking regardless of template numbering.
    for rank, feature in enumerate(features, start=1):
        feature.priority = rank
    return features


def create_product_from_template(template: ProductTemplate, rng: np.random.Generator) -> ProductState:
    return ProductState(
        features=build_features_from_template(template, rng),
        product_template_id=template.id,
    )


def create_default_product(rng: np.random.Generator) -> ProductState:
    """Single-feature placeholder used until the player picks a template."""
    components = generate_components_for_feature("core", "Core Functionality", 5)
    core = Feature(
        id="core",
        name="Core Functionality",
        description="Basic product features",
        priority=1,
        base_complexity=5,
        components=[FeatureComponent(c.id, c.name, c.base_complexity, c.estimated_days) for c in components],
        requirements=generate_feature_requirements(5, rng),
    )
    return ProductState(features=[core])


def _take(pool: List[Employee], used: set, count: int, predicate) -> List[str]:
    picked: List[str] = []
    for employee in pool:
        if len(picked) >= count:
            break
        if employee.id in used or not predicate(employee):
            continue
        picked.append(employee.id)
        used.add(employee.id)
    return picked


def plan_auto_assignment(features: Sequence[Feature], employees: Iterable[Employee]) -> Dict[str, List[str]]:
    """Greedy staffing plan for incomplete features in priority order.

    Candidates are onboarded employees ranked by productivity (ties by id),
    each used at most once per plan. The co-founder covers one frontend and
    one backend slot together and is considered before dedicated engineers.
    The plan depends only on its inputs, so repeated runs agree.
    """
    pool = sorted(
        (e for e in employees if e.onboarding_complete),
        key=lambda e: (-e.productivity, e.id),
    )
    used: set = set()
    plan: Dict[str, List[str]] = {}

    for feature in sorted(features, key=lambda f: f.priority):
        if feature.is_complete:
            continue
        reqs = feature.requirements
        minimum = reqs.min_seniority
        need_frontend, need_backend = reqs.frontend, reqs.backend
        assigned: List[str] = []

        if need_frontend > 0 and need_backend > 0:
            taken = _take(pool, used, 1, lambda e: e.is_cofounder and meets_seniority(e.experience_level, minimum))
            if taken:
                assigned.extend(taken)
                need_frontend -= 1
                need_backend -= 1

        slots = (
            ("engineer", "frontend", need_frontend),
            ("engineer", "backend", need_backend),
            ("designer", "product", reqs.product_designers),
            ("designer", "visual", reqs.visual_designers),
        )
        for role, subclass, count in slots:
            if count <= 0:
                continue
            assigned.extend(
                _take(
                    pool,
                    used,
                    count,
                    lambda e, r=role, s=subclass: e.role == r
                    and e.role_subclass == s
                    and meets_seniority(e.experience_level, minimum),
                )
            )
        plan[feature.id] = assigned
    return plan


def find_feature_for(features: Sequence[Feature], employee_id: str) -> Optional[Feature]:
    return next((f for f in features if employee_id in f.assigned_employee_ids), None)
