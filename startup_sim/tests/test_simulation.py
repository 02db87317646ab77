from __future__ import annotations

import json
import math
from pathlib import Path

import pandas as pd
import pytest

from startup_sim.config import SimulationConfig
from startup_sim.models import Candidate, Employee, EventEffect, EventOption, GameEvent
from startup_sim.simulation import HISTORY_COLUMNS, StartupSimulation
from startup_sim.templates import get_product_template


def _candidate(cid: str = "cand-x", role: str = "engineer", salary: float = 8000, subclass="backend") -> Candidate:
    return Candidate(id=cid, name="Pat Lee", role=role, expected_salary=salary, productivity=0.8,
                     experience_level="mid", role_subclass=subclass)


def test_initial_state() -> None:
    sim = StartupSimulation(SimulationConfig(START_DATE="2025-01-01", RANDOM_SEED=1))
    state = sim.state
    assert state.is_paused and state.game_speed == 1
    assert state.money == 100_000
    assert state.monthly_expenses == 2000 + 1000
    assert state.offices.total_capacity == 5
    assert len(state.team.candidate_pool) == 8
    assert [f.id for f in state.product.features] == ["core"]
    assert sim.current_date().isoformat() == "2025-01-01"


def test_paused_tick_does_nothing() -> None:
    sim = StartupSimulation(SimulationConfig(START_DATE="2025-01-01"))
    sim.tick(5000)
    assert sim.state.current_time == 0
    sim.set_paused(False)
    sim.tick(1500)
    assert sim.state.current_time == pytest.approx(1.5)


def test_game_speed_must_be_positive(make_sim) -> None:
    sim = make_sim()
    assert not sim.set_game_speed(0)
    assert not sim.set_game_speed(-2)
    assert not sim.set_game_speed(math.inf)
    assert sim.set_game_speed(2.5)
    sim.tick(1000)
    assert sim.state.current_time == pytest.approx(2.5)


def test_snapshots_do_not_alias(make_sim) -> None:
    sim = make_sim()
    snapshot = sim.get_state()
    snapshot.money = -1
    snapshot.team.candidate_pool.clear()
    assert sim.state.money == 100_000
    assert len(sim.state.team.candidate_pool) == 8


def test_selecting_project_management() -> None:
    sim = StartupSimulation(SimulationConfig.from_game_config({"startingMoney": 100_000}))
    assert sim.set_product_from_template("project-management")
    product = sim.state.product
    assert product.overall_progress == 0
    assert product.current_milestone == "idea"
    assert len(product.features) == len(get_product_template("project-management").features)
    assert all(f.components for f in product.features)
    assert not sim.set_product_from_template("no-such-product")


def test_template_locks_once_work_starts(make_sim) -> None:
    sim = make_sim(SELECTED_PRODUCT_ID="crm-platform")
    sim.state.product.overall_progress = 3
    assert not sim.set_product_from_template("hr-management")
    assert sim.state.product.product_template_id == "crm-platform"


def test_first_month_costs_exactly_the_expenses(make_sim) -> None:
    sim = make_sim()
    expenses = sim.state.monthly_expenses
    assert expenses == 3000
    sim.advance_days(31)
    assert sim.current_date().isoformat() == "2025-02-01"
    assert sim.state.money == pytest.approx(100_000 - expenses)
    assert sim.state.monthly_revenue == 0
    assert sim.state.revenue_history == [0]
    assert len(sim.history) == 1


def test_month_boundary_is_charged_once_even_with_events() -> None:
    sim = StartupSimulation(SimulationConfig(START_DATE="2025-01-01", RANDOM_SEED=3, START_PAUSED=False))
    sim.advance_days(31)
    assert sim.state.money == pytest.approx(97_000)


def test_regular_hire_debits_fee_and_first_salary(make_sim) -> None:
    sim = make_sim()
    candidate = sim.state.team.candidate_pool[0]
    before = sim.state.money
    assert sim.hire_employee(candidate.id)
    assert sim.state.money == pytest.approx(before - 3000 - candidate.expected_salary)
    assert candidate.id not in {c.id for c in sim.state.team.candidate_pool}
    hired = sim.state.team.employees[0]
    assert not hired.onboarding_complete
    assert sim.state.monthly_expenses == pytest.approx(3000 + candidate.expected_salary)
    assert not sim.hire_employee(candidate.id)


def test_hire_from_search_pool(make_sim) -> None:
    sim = make_sim()
    assert sim.start_hiring_search("engineer", "frontend")
    search = sim.state.team.active_hiring_searches[0]
    search.candidates.append(_candidate("cand-s", subclass="frontend"))
    assert sim.hire_employee("cand-s", search.id)
    assert search.candidates == []


def test_capacity_and_cash_are_enforced(make_sim) -> None:
    sim = make_sim()
    pool = sim.state.team.candidate_pool
    pool[:] = [_candidate(f"cand-{i}", salary=5000) for i in range(7)]
    hired = [sim.hire_employee(f"cand-{i}") for i in range(7)]
    assert hired == [True] * 5 + [False] * 2
    assert len(sim.state.team.employees) == sim.state.offices.total_capacity

    broke = make_sim(STARTING_MONEY=5000.0)
    broke.state.team.candidate_pool[:] = [_candidate("cand-big", salary=4000)]
    assert not broke.hire_employee("cand-big")
    assert broke.state.money == 5000


def test_hiring_discount_event_lowers_fee(make_sim) -> None:
    sim = make_sim()
    sim.state.events.pending_events.append(
        GameEvent("event-77", "team", "Crash", "", [
            EventOption("hire-now", "Hire", effects=[EventEffect("expense", -0.2, applies_to="hiring")]),
        ], triggered_at=0.0, expires_at=7.0)
    )
    sim.respond_to_event("event-77", "hire-now")
    candidate = sim.state.team.candidate_pool[0]
    before = sim.state.money
    assert sim.hire_employee(candidate.id)
    assert sim.state.money == pytest.approx(before - 2400 - candidate.expected_salary)


def test_cofounder_hire(make_sim) -> None:
    sim = make_sim()
    before = sim.state.money
    assert sim.hire_cofounder()
    cofounder = sim.state.team.cofounder()
    assert sim.state.money == before
    assert 20 <= cofounder.equity_percent <= 25
    assert sim.state.funding.total_equity == pytest.approx(100 - cofounder.equity_percent)
    assert cofounder.onboarding_complete
    assert not sim.hire_cofounder()

    sim.state.team.candidate_pool.append(_candidate("cand-cto", role="cto", subclass=None))
    assert not sim.hire_employee("cand-cto")
    assert sum(1 for e in sim.state.team.employees if e.is_cofounder) == 1


def test_cofounder_rejected_when_equity_would_go_negative(make_sim) -> None:
    sim = make_sim()
    sim.state.funding.total_equity = 5.0
    assert not sim.hire_cofounder()
    assert sim.state.funding.total_equity == 5.0
    assert sim.state.team.employees == []


def test_fire_cleans_up_assignments_and_searches(make_sim) -> None:
    sim = make_sim()
    assert sim.hire_cofounder()
    cofounder = sim.state.team.cofounder()
    assert sim.start_hiring_search("sales", recruiter_id=cofounder.id)
    assert sim.assign_employee_to_feature(cofounder.id, "core")
    sim.fire_employee(cofounder.id)
    assert sim.state.team.employees == []
    assert sim.state.product.features[0].assigned_employee_ids == []
    assert sim.state.team.active_hiring_searches[0].status == "completed"
    sim.fire_employee("emp-unknown")


def test_search_actions(make_sim) -> None:
    sim = make_sim()
    assert not sim.start_hiring_search("engineer")
    assert not sim.start_hiring_search("sales", "frontend")
    assert not sim.start_hiring_search("sales", recruiter_id="emp-404")
    assert sim.start_hiring_search("engineer", "backend")
    assert sim.start_hiring_search("CTO")
    assert not sim.start_hiring_search("marketing")
    search_id = sim.state.team.active_hiring_searches[0].id
    sim.cancel_hiring_search(search_id)
    assert sim.start_hiring_search("marketing")


def test_searches_gather_candidates_over_time(make_sim) -> None:
    sim = make_sim()
    assert sim.start_hiring_search("designer", "product")
    sim.advance_days(70)
    search = sim.state.team.active_hiring_searches[0]
    assert search.status == "completed"
    assert 0 < len(search.candidates) <= math.ceil(60 / 7 * 1.5)


def test_fundraising_sequence(make_sim) -> None:
    sim = make_sim()
    assert not sim.start_fundraising("seriesA")
    assert sim.start_fundraising("seed")
    assert not sim.start_fundraising("seed")

    sim.advance_days(31)
    round_ = sim.state.funding.active_round
    assert round_ is not None and round_.offers
    best = round_.offers[0]
    money = sim.state.money
    assert sim.accept_funding_offer(best.id)
    assert sim.state.money == pytest.approx(money + best.amount)
    assert sim.state.funding.total_equity == pytest.approx(100 - best.equity_percent)
    assert sim.state.funding.total_raised == best.amount
    assert sim.state.funding.active_round is None
    assert round_.status == "completed" and round_.offers == [best]
    assert not sim.accept_funding_offer(best.id)

    assert not sim.start_fundraising("seriesC")
    assert not sim.start_fundraising("seriesA")
    sim.state.monthly_revenue = 10_000
    assert sim.start_fundraising("seriesA")


def test_expired_offer_cannot_be_accepted(make_sim) -> None:
    sim = make_sim()
    assert sim.start_fundraising("seed")
    sim.advance_days(31)
    offer = sim.state.funding.active_round.offers[0]
    sim.state.current_time = offer.expires_at
    assert not sim.accept_funding_offer(offer.id)


def test_respond_to_event(make_sim) -> None:
    sim = make_sim()
    sim.state.events.pending_events.append(
        GameEvent("event-50", "financial", "Legal fee", "", [
            EventOption("pay", "Pay", effects=[EventEffect("money", -5000)]),
        ], triggered_at=0.0, expires_at=1.0)
    )
    sim.respond_to_event("event-50", "nope")
    assert len(sim.state.events.pending_events) == 1
    sim.respond_to_event("event-50", "pay")
    assert sim.state.money == 95_000
    assert sim.state.events.pending_events == []
    assert sim.state.events.event_history[-1].chosen_option_id == "pay"


def test_equity_event_without_cofounder_stays_pending(make_sim) -> None:
    sim = make_sim()
    sim.state.events.pending_events.append(
        GameEvent("event-51", "team", "Equity", "", [
            EventOption("give-equity", "Give", effects=[EventEffect("equity", 5)]),
        ], triggered_at=0.0, expires_at=5.0)
    )
    sim.respond_to_event("event-51", "give-equity")
    assert len(sim.state.events.pending_events) == 1
    assert sim.state.funding.total_equity == 100


def test_raise_event_feeds_monthly_expenses(make_sim) -> None:
    sim = make_sim()
    sim.state.events.pending_events.append(
        GameEvent("event-52", "team", "Raise", "", [
            EventOption("give-raise", "Raise", effects=[EventEffect("expense", 2000, applies_to="monthly")]),
        ], triggered_at=0.0, expires_at=3.0)
    )
    sim.respond_to_event("event-52", "give-raise")
    assert sim.state.monthly_expenses == 5000
    sim.advance_days(31)
    assert sim.state.money == pytest.approx(95_000)


def test_purchase_office(make_sim) -> None:
    sim = make_sim()
    assert sim.purchase_office("small")
    assert sim.state.money == 100_000 - 9000
    assert sim.state.offices.total_capacity == 15
    assert sim.state.monthly_expenses == 2000 + 1000 + 3000
    assert not sim.purchase_office("castle")

    lean = make_sim(STARTING_MONEY=20_000.0)
    assert not lean.purchase_office("large")
    assert lean.state.money == 20_000
    assert lean.state.offices.total_capacity == 5


def test_prioritize_keeps_dense_ranking(make_sim) -> None:
    sim = make_sim(SELECTED_PRODUCT_ID="ai-chatbot")
    moves = [("training", 1), ("nlp", 8), ("api", -4), ("sso", 99), ("chat-interface", 3), ("missing", 2)]
    for feature_id, priority in moves:
        sim.prioritize_feature(feature_id, priority)
        priorities = [f.priority for f in sim.state.product.features]
        assert sorted(priorities) == list(range(1, 9))
        assert priorities == sorted(priorities)
    assert sim.state.product.get_feature("chat-interface").priority == 3
    assert sim.state.product.features[0].id == "api"


def test_manual_assignment(make_sim) -> None:
    sim = make_sim(SELECTED_PRODUCT_ID="crm-platform")
    assert sim.hire_cofounder()
    cofounder = sim.state.team.cofounder()
    assert sim.assign_employee_to_feature(cofounder.id, "auth")
    assert sim.assign_employee_to_feature(cofounder.id, "contacts")
    assert sim.state.product.get_feature("auth").assigned_employee_ids == []
    assert sim.state.product.get_feature("contacts").assigned_employee_ids == [cofounder.id]
    assert cofounder.assigned_feature_id == "contacts"
    assert not sim.assign_employee_to_feature("emp-404", "contacts")
    sim.unassign_employee(cofounder.id)
    assert cofounder.assigned_feature_id is None
    assert sim.state.product.get_feature("contacts").assigned_employee_ids == []


def test_auto_assign_is_idempotent(make_sim) -> None:
    sim = make_sim(SELECTED_PRODUCT_ID="analytics-dashboard", STARTING_MONEY=1_000_000.0)
    sim.purchase_office("medium")
    sim.hire_cofounder()
    pool = sim.state.team.candidate_pool
    pool[:] = [_candidate(f"cand-{i}", subclass=("frontend", "backend")[i % 2]) for i in range(6)]
    for i in range(6):
        sim.hire_employee(f"cand-{i}")
    for employee in sim.state.team.employees:
        employee.onboarding_complete = True
        employee.experience_level = "senior"

    def assignment():
        return {f.id: tuple(f.assigned_employee_ids) for f in sim.state.product.features}

    sim.auto_assign_teams()
    first = assignment()
    sim.auto_assign_teams()
    assert assignment() == first
    assigned = [eid for ids in first.values() for eid in ids]
    assert len(assigned) == len(set(assigned))
    for feature in sim.state.product.features:
        for employee_id in feature.assigned_employee_ids:
            assert sim.state.team.get_employee(employee_id).assigned_feature_id == feature.id


def test_assigned_engineers_build_the_product(make_sim) -> None:
    sim = make_sim(SELECTED_PRODUCT_ID="project-management")
    assert sim.hire_cofounder()
    sim.auto_assign_teams()
    if not any(f.assigned_employee_ids for f in sim.state.product.features):
        sim.assign_employee_to_feature(sim.state.team.cofounder().id, sim.state.product.features[0].id)
    sim.advance_days(14)
    assert sim.state.product.overall_progress > 0
    assert not sim.set_product_from_template("crm-platform")


def test_revenue_history_is_capped(make_sim) -> None:
    sim = make_sim(STARTING_MONEY=10_000_000.0)
    sim.advance_days(15 * 31)
    history = sim.state.revenue_history
    assert len(history) == 12
    assert len(sim.history) > 12


def test_revenue_history_evicts_oldest_first(make_sim) -> None:
    sim = make_sim()
    sim.state.revenue_history = [float(month) for month in range(1, 13)]
    sim.advance_days(31)
    assert sim.state.revenue_history == [float(month) for month in range(2, 13)] + [0.0]


def _finish_product_and_hire_sales(sim: StartupSimulation) -> None:
    for feature in sim.state.product.features:
        for component in feature.components:
            component.progress = 100.0
        feature.progress = 100.0
    sim.state.team.employees.append(
        Employee(
            id="emp-sales",
            name="Sam Young",
            role="sales",
            salary=5000,
            productivity=0.8,
            hire_date=0.0,
            experience_level="mid",
            onboarding_complete=True,
        )
    )


def test_monthly_customer_lifecycle(make_sim) -> None:
    sim = make_sim()
    _finish_product_and_hire_sales(sim)
    sim.advance_days(31)
    customers = sim.state.customers
    # January 2025 has 23 weekdays out of 31 days.
    assert customers.monthly_acquisitions == round(12 * 0.5 * 23 / 31) == 4
    assert customers.monthly_churn == 0
    assert customers.total_customers == 4
    assert sim.state.product.current_milestone == "mature"
    assert sim.state.monthly_revenue == 80.0
    assert sim.state.revenue_history == [80.0]
    assert sim.history[-1]["customers"] == 4


def test_churn_applies_to_customers_held_before_acquisitions(make_sim) -> None:
    sim = make_sim()
    _finish_product_and_hire_sales(sim)
    sim.state.customers.total_customers = 200
    sim.advance_days(31)
    customers = sim.state.customers
    assert customers.monthly_churn == round(200 * 0.015) == 3
    assert customers.monthly_acquisitions == 4
    assert customers.total_customers == 201
    assert sim.state.revenue_history == [201 * 20.0]


def test_no_product_work_on_weekends(make_sim) -> None:
    sim = make_sim()
    assert sim.hire_cofounder()
    assert sim.assign_employee_to_feature(sim.state.team.cofounder().id, "core")

    def progress() -> float:
        return sum(c.progress for c in sim.state.product.features[0].components)

    sim.advance_days(3)
    assert sim.current_date().isoformat() == "2025-01-04"
    friday_progress = progress()
    assert friday_progress > 0
    sim.advance_days(1)
    assert sim.current_date().weekday() == 6
    assert progress() == friday_progress
    sim.advance_days(1)
    assert progress() > friday_progress


@pytest.mark.parametrize("speed", [1.0, 2.0, 3.0])
def test_every_day_gets_a_daily_phase_at_any_speed(make_sim, monkeypatch, speed: float) -> None:
    sim = make_sim(GAME_SPEED=speed)
    days_seen = []
    run_daily_phase = sim._daily_phase

    def counting_daily_phase() -> None:
        days_seen.append(math.floor(sim.state.current_time))
        run_daily_phase()

    monkeypatch.setattr(sim, "_daily_phase", counting_daily_phase)
    assert sim.advance_days(30) == pytest.approx(30)
    assert days_seen == list(range(1, 31))


def test_zero_length_tick_changes_nothing(make_sim) -> None:
    sim = make_sim()
    sim.state.events.pending_events.append(
        GameEvent("event-60", "market", "Stale", "", [EventOption("ok", "Ok")], triggered_at=0.0, expires_at=-1.0)
    )
    sim.state.money = -10.0
    sim.state.runway = -1.0
    sim.tick(0)
    assert sim.state.current_time == 0
    assert len(sim.state.events.pending_events) == 1
    assert not sim.state.game_over
    sim.tick(1000)
    assert sim.state.events.pending_events == []
    assert sim.state.game_over


def test_bankruptcy_ends_the_game(make_sim) -> None:
    sim = make_sim(STARTING_MONEY=2000.0)
    sim.advance_days(62)
    assert sim.state.game_over
    assert sim.state.game_over_reason == "bankruptcy"
    frozen = sim.state.current_time
    sim.tick(10_000)
    assert sim.state.current_time == frozen


def test_history_frame_and_run_log(make_sim, tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "run_log.jsonl"
    sim = make_sim(enable_round_logging=True, round_log_path=str(log_path))
    sim.advance_days(65)
    frame = sim.history_frame()
    assert isinstance(frame, pd.DataFrame)
    assert list(frame.columns) == HISTORY_COLUMNS
    assert list(frame["date"]) == ["2025-01", "2025-02"]
    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert json.loads(lines[0])["money"] == pytest.approx(97_000)
    assert StartupSimulation(SimulationConfig()).history_frame().empty


def test_resumed_state_keeps_ids_unique(make_sim) -> None:
    first = make_sim()
    first.hire_cofounder()
    resumed = StartupSimulation(first.config, initial_state=first.get_state())
    resumed.set_paused(False)
    assert resumed.hire_employee(resumed.state.team.candidate_pool[0].id)
    assert resumed.start_hiring_search("sales")
    assert resumed.start_fundraising("seed")
    assert resumed.state.funding.active_round.id not in {e.id for e in first.state.team.employees}
    ids = [e.id for e in resumed.state.team.employees] + [c.id for c in resumed.state.team.candidate_pool]
    ids += [s.id for s in resumed.state.team.active_hiring_searches]
    assert len(ids) == len(set(ids))


def test_company_valuation_tracks_cash(make_sim) -> None:
    sim = make_sim()
    assert sim.company_valuation() >= sim.state.money
