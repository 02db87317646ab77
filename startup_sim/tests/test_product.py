from __future__ import annotations

import math

import numpy as np
import pytest

from startup_sim.models import Employee, Feature, FeatureComponent, FeatureRequirements, ProductState
from startup_sim.product import (
    build_features_from_template,
    calculate_product_stage,
    create_default_product,
    meets_seniority,
    plan_auto_assignment,
    update_product_system,
)
from startup_sim.templates import (
    PRODUCT_TEMPLATES,
    generate_components_for_feature,
    generate_feature_requirements,
    get_product_template,
)


def _employee(emp_id: str, role: str, productivity: float = 1.0, subclass=None, level="senior", onboarded=True):
    return Employee(
        id=emp_id,
        name=emp_id,
        role=role,
        salary=10_000,
        productivity=productivity,
        hire_date=0.0,
        experience_level=level,
        onboarding_complete=onboarded,
        role_subclass=subclass,
    )


def _feature(feature_id: str = "f1", priority: int = 1, assigned=(), days=(10.0, 10.0, 10.0)) -> Feature:
    return Feature(
        id=feature_id,
        name=feature_id,
        priority=priority,
        base_complexity=5,
        components=[FeatureComponent(f"{feature_id}-{i}", "c", 4, d) for i, d in enumerate(days)],
        assigned_employee_ids=list(assigned),
    )


def test_templates_catalogue() -> None:
    assert {t.id for t in PRODUCT_TEMPLATES} == {
        "crm-platform",
        "project-management",
        "analytics-dashboard",
        "ai-chatbot",
        "hr-management",
    }
    for template in PRODUCT_TEMPLATES:
        assert len(template.features) == 8
        assert [f.priority for f in template.features] == list(range(1, 9))
        assert 1 <= template.estimated_complexity <= 5
        assert 1.0 <= template.revenue_potential <= 2.0
    assert get_product_template("missing") is None


def test_known_feature_components_are_predefined() -> None:
    components = generate_components_for_feature("auth", "Authentication", 3)
    assert [c.name for c in components][0] == "User Registration"
    assert len(components) == 5


@pytest.mark.parametrize("complexity", [1, 4.5, 7, 10])
def test_generic_components_follow_complexity(complexity: float) -> None:
    components = generate_components_for_feature("bespoke", "Bespoke", complexity)
    assert 3 <= len(components) <= 6
    n = int(np.clip(math.ceil(complexity / 1.5), 3, 6))
    assert len(components) == n
    for i, component in enumerate(components):
        raw = float(np.clip(complexity + (i - n / 2) * 0.5, 2, 8))
        assert 2 <= component.base_complexity <= 8
        assert component.base_complexity == pytest.approx(raw, abs=0.05)
        assert component.estimated_days == math.ceil(raw * 1.2)


def test_feature_requirements_always_need_an_engineer() -> None:
    rng = np.random.default_rng(99)
    for _ in range(200):
        for complexity in range(1, 11):
            reqs = generate_feature_requirements(complexity, rng)
            assert reqs.engineer_slots() >= 1
            if complexity >= 7:
                assert reqs.min_seniority == "senior"
                assert reqs.frontend == reqs.backend == math.ceil(complexity / 4)


def test_product_stage_thresholds() -> None:
    features = [_feature(f"f{i}", i + 1) for i in range(10)]
    assert calculate_product_stage(features) == "idea"
    for feature in features[:2]:
        feature.progress = 100
    assert calculate_product_stage(features) == "mvp"
    for feature in features[2:6]:
        feature.progress = 100
    assert calculate_product_stage(features) == "growing"
    for feature in features:
        feature.progress = 100
    assert calculate_product_stage(features) == "mature"
    assert calculate_product_stage([]) == "idea"


def test_single_engineer_moves_first_component_only() -> None:
    engineer = _employee("e1", "engineer", productivity=1.0, subclass="backend")
    product = ProductState(features=[_feature(assigned=["e1"])])
    updated = update_product_system(product, [engineer])

    expected = (100 / 10.0) * 1.0 * (0.5 + 1.0 * 0.1) * 0.85
    components = updated.features[0].components
    assert components[0].progress == pytest.approx(expected)
    assert components[1].progress == 0
    # input untouched
    assert product.features[0].components[0].progress == 0


def test_second_engineer_splits_effort() -> None:
    team = [_employee("e1", "engineer", subclass="frontend"), _employee("e2", "engineer", subclass="backend")]
    product = ProductState(features=[_feature(assigned=["e1", "e2"])])
    updated = update_product_system(product, team)
    first, second, third = updated.features[0].components
    multiplier = 0.5 + 2.0 * 0.1
    assert first.progress == pytest.approx(10.0 * 1.7 * multiplier * 0.85)
    assert second.progress == pytest.approx(10.0 * 1.0 * multiplier * 0.15)
    assert third.progress == 0


def test_unassigned_or_onboarding_staff_do_nothing() -> None:
    idle = _employee("idle", "engineer", subclass="backend")
    rookie = _employee("rookie", "engineer", subclass="backend", onboarded=False)
    product = ProductState(features=[_feature(assigned=["rookie"])])
    updated = update_product_system(product, [idle, rookie])
    assert updated.overall_progress == 0
    assert all(c.progress == 0 for c in updated.features[0].components)


def test_progress_clamps_and_completes() -> None:
    engineer = _employee("e1", "engineer", subclass="backend")
    feature = _feature(assigned=["e1"], days=(1.0,))
    feature.components[0].progress = 99.5
    updated = update_product_system(ProductState(features=[feature]), [engineer])
    assert updated.features[0].components[0].progress == 100
    assert updated.features[0].is_complete
    assert updated.overall_progress == pytest.approx(100)
    assert updated.current_milestone == "mature"
    assert updated.maturity == pytest.approx(1.0)
    assert updated.product_market_fit == pytest.approx(0.001)


def test_designers_raise_quality_on_active_features() -> None:
    team = [_employee("e1", "engineer", subclass="backend"), _employee("d1", "designer", subclass="visual")]
    product = ProductState(features=[_feature(assigned=["e1", "d1"])])
    updated = update_product_system(product, team)
    assert updated.quality == pytest.approx(0.5005)
    first = updated.features[0].components[0]
    assert first.progress == pytest.approx(10.0 * (0.5 + (1.0 + 0.7) * 0.1) * 0.85)


def test_cofounder_counts_as_engineer() -> None:
    cofounder = _employee("c1", "cofounder")
    updated = update_product_system(ProductState(features=[_feature(assigned=["c1"])]), [cofounder])
    assert updated.features[0].components[0].progress == pytest.approx(10.0 * (0.5 + 0.12) * 0.85)


def test_seniority_ordering() -> None:
    assert meets_seniority("senior", "mid")
    assert meets_seniority("mid", "mid")
    assert not meets_seniority("junior", "mid")
    assert not meets_seniority("guru", "junior")


def test_build_features_from_template(rng: np.random.Generator) -> None:
    template = get_product_template("project-management")
    features = build_features_from_template(template, rng)
    assert len(features) == len(template.features)
    assert sorted(f.priority for f in features) == list(range(1, len(features) + 1))
    assert all(f.components and f.assigned_employee_ids == [] for f in features)
    default = create_default_product(rng)
    assert [f.id for f in default.features] == ["core"]
    assert default.product_template_id is None


def test_auto_assignment_plan() -> None:
    first = _feature("first", 1)
    first.requirements = FeatureRequirements("mid", frontend=1, backend=1, product_designers=1)
    second = _feature("second", 2)
    second.requirements = FeatureRequirements("junior", frontend=0, backend=1)
    team = [
        _employee("c1", "cofounder"),
        _employee("fe", "engineer", 0.9, "frontend"),
        _employee("be-a", "engineer", 0.8, "backend", level="junior"),
        _employee("be-b", "engineer", 0.95, "backend"),
        _employee("pd", "designer", 0.7, "product"),
        _employee("late", "engineer", 1.0, "backend", onboarded=False),
    ]
    plan = plan_auto_assignment([second, first], team)
    assert plan["first"] == ["c1", "pd"]
    assert plan["second"] == ["be-b"]
    assert plan_auto_assignment([second, first], team) == plan
