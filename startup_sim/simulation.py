"""
Simulation engine for the startup world.

``StartupSimulation`` owns the single mutable ``WorldState`` and advances it
from elapsed wall-clock deltas. One second of real time is one simulated day
at 1x speed. Each ``tick`` runs its phases in a fixed order:

1. advance the clock;
2. drop expired pending events and expense modifiers;
3. daily phase (product work on weekdays, hiring searches, financials);
4. weekly phase (financials);
5. monthly phase (customers, treasury, revenue history, onboarding,
   funding, events);
6. continuous phase;
7. daily random-event roll;
8. bankruptcy check.

Player actions validate fully before mutating anything and report failure
with ``False``; unknown ids are ignored. Callers only ever see deep-copied
snapshots from ``get_state``.
"""

from __future__ import annotations

import copy
import json
import math
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .benchmarks import DEFAULT_CATEGORY, OFFICE_TIERS
from .calculations import (
    calculate_burn_rate,
    calculate_churn_rate,
    calculate_company_valuation,
    calculate_customer_acquisitions,
    calculate_monthly_expenses,
    calculate_revenue_from_customers,
    calculate_runway,
    calculate_team_productivity,
)
from .config import SimulationConfig
from .dates import (
    format_game_date,
    game_date,
    is_new_day,
    is_new_month,
    is_new_week,
    is_weekend,
    parse_start_date,
    weekday_fraction,
)
from .events import (
    apply_effects,
    can_apply_effects,
    drop_expired_events,
    hiring_fee_multiplier,
    monthly_adjustment,
    roll_random_event,
    update_event_system,
)
from .funding import (
    calculate_investor_interest,
    normalize_round_type,
    start_round,
    update_funding_system,
    validate_round_start,
)
from .hiring import (
    cofounder_equity_award,
    complete_hiring_search,
    generate_candidate,
    generate_initial_candidates,
    start_hiring_search,
    update_hiring_searches,
    validate_search_request,
)
from .models import (
    FOUNDER_RECRUITER,
    Candidate,
    Employee,
    Office,
    OfficeState,
    TeamState,
    WorldState,
)
from .product import (
    create_default_product,
    create_product_from_template,
    find_feature_for,
    plan_auto_assignment,
    update_product_system,
)
from .templates import get_product_template
from .utils import IdSequence, is_cofounder_role, normalize_role, normalize_subclass

HISTORY_COLUMNS = [
    "date",
    "day",
    "money",
    "monthly_revenue",
    "monthly_expenses",
    "burn_rate",
    "runway",
    "customers",
    "acquisitions",
    "churn",
    "milestone",
    "product_progress",
    "total_equity",
    "total_raised",
    "valuation",
    "headcount",
    "pending_events",
]


def build_office(tier: str, office_id: str) -> Office:
    tier_info = OFFICE_TIERS[tier]
    return Office(
        id=office_id,
        tier=tier,
        name=tier_info.name,
        capacity=tier_info.capacity,
        monthly_cost=tier_info.monthly_cost,
        description=tier_info.description,
    )


def create_initial_state(config: SimulationConfig, rng: np.random.Generator, id_factory) -> WorldState:
    """Fresh world: one office, a legacy candidate pool and an untouched product."""
    office = build_office(config.INITIAL_OFFICE_TIER, id_factory("office"))
    offices = OfficeState(offices=[office], total_capacity=office.capacity, total_monthly_cost=office.monthly_cost)

    template = get_product_template(config.SELECTED_PRODUCT_ID) if config.SELECTED_PRODUCT_ID else None
    product = create_product_from_template(template, rng) if template else create_default_product(rng)

    expenses = config.BASE_OVERHEAD + offices.total_monthly_cost
    money = float(config.STARTING_MONEY)
    return WorldState(
        start_date=parse_start_date(config.START_DATE),
        money=money,
        monthly_expenses=expenses,
        burn_rate=calculate_burn_rate(expenses, 0.0),
        runway=calculate_runway(money, calculate_burn_rate(expenses, 0.0)),
        is_paused=config.START_PAUSED,
        game_speed=config.GAME_SPEED,
        team=TeamState(candidate_pool=generate_initial_candidates(config.INITIAL_CANDIDATE_POOL, rng, id_factory)),
        product=product,
        offices=offices,
    )


def _iter_ids(state: WorldState) -> Iterable[str]:
    team = state.team
    yield from (e.id for e in team.employees)
    yield from (c.id for c in team.candidate_pool)
    for search in team.active_hiring_searches:
        yield search.id
        yield from (c.id for c in search.candidates)
    for round_ in state.funding.rounds:
        yield round_.id
        yield from (o.id for o in round_.offers)
    yield from (e.id for e in state.events.pending_events)
    yield from (e.id for e in state.events.event_history)
    yield from (o.id for o in state.offices.offices)
    yield from (m.id for m in state.expense_modifiers)


def _next_id_start(state: WorldState) -> int:
    highest = 0
    for value in _iter_ids(state):
        match = re.search(r"-(\d+)$", value)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


class StartupSimulation:
    """Owns the world-state and advances it one ``tick`` at a time."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        initial_state: Optional[WorldState] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or SimulationConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.RANDOM_SEED)
        if initial_state is not None:
            self.state = copy.deepcopy(initial_state)
            self._ids = IdSequence(_next_id_start(self.state))
        else:
            self._ids = IdSequence()
            self.state = create_initial_state(self.config, self.rng, self._ids)

        self.history: List[Dict[str, Any]] = []
        self.enable_round_logging = bool(self.config.enable_round_logging and self.config.round_log_path)
        self.round_log_path = Path(self.config.round_log_path) if self.config.round_log_path else None
        if self.enable_round_logging:
            self.round_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.round_log_path, "w", encoding="utf-8") as _log_file:
                _log_file.write("")

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    def get_state(self) -> WorldState:
        return copy.deepcopy(self.state)

    def current_date(self):
        return game_date(self.state.start_date, self.state.current_time)

    def formatted_date(self) -> str:
        return format_game_date(self.state.start_date, self.state.current_time)

    def company_valuation(self) -> float:
        s = self.state
        return calculate_company_valuation(s.money, s.burn_rate, s.monthly_revenue, s.revenue_history)

    def product_category(self) -> str:
        template_id = self.state.product.product_template_id
        template = get_product_template(template_id) if template_id else None
        return template.category if template else DEFAULT_CATEGORY

    def history_frame(self) -> pd.DataFrame:
        """Monthly summaries as a DataFrame, one row per crossed month boundary."""
        return pd.DataFrame(self.history, columns=HISTORY_COLUMNS)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    def set_paused(self, paused: bool) -> None:
        self.state.is_paused = bool(paused)

    def set_game_speed(self, speed: float) -> bool:
        try:
            value = float(speed)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(value) or value <= 0:
            return False
        self.state.game_speed = value
        return True

    def tick(self, elapsed_ms: float) -> None:
        state = self.state
        if state.is_paused or state.game_over:
            return
        advance = (elapsed_ms / 1000.0) * state.game_speed
        # Zero-length ticks change nothing, expiry and game-over checks included.
        if not math.isfinite(advance) or advance <= 0:
            return

        previous = state.current_time
        current = previous + advance
        new_day = is_new_day(previous, current)
        new_week = is_new_week(state.start_date, previous, current)
        new_month = is_new_month(state.start_date, previous, current)
        state.current_time = current

        self._process_expirations()
        if new_day:
            self._daily_phase()
        if new_week:
            self._weekly_phase()
        if new_month:
            self._monthly_phase(previous)
        self._continuous_phase()
        if new_day:
            self._roll_daily_event()
        self._check_game_over()

    def advance_days(self, days: float, step_ms: float = 1000.0) -> float:
        """Drive ``tick`` in small steps so every simulated day gets its own phase.

        A step never spans more than one simulated day, whatever the game
        speed. Returns the number of simulated days actually advanced, which
        is less than ``days`` when the game is paused or ends part-way.
        """
        start = self.state.current_time
        remaining = float(days)
        while remaining > 1e-9 and not self.state.is_paused and not self.state.game_over:
            step_days = min((step_ms / 1000.0) * self.state.game_speed, 1.0, remaining)
            self.tick(step_days * 1000.0 / self.state.game_speed)
            remaining -= step_days
        return self.state.current_time - start

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _process_expirations(self) -> None:
        now = self.state.current_time
        drop_expired_events(self.state.events, now)
        self.state.expense_modifiers = [m for m in self.state.expense_modifiers if m.is_active(now)]

    def _daily_phase(self) -> None:
        state = self.state
        if not is_weekend(state.start_date, state.current_time):
            state.product = update_product_system(
                state.product,
                state.team.employees,
                quality_increment=self.config.QUALITY_DAILY_INCREMENT,
                pmf_increment=self.config.PMF_DAILY_INCREMENT,
            )
        update_hiring_searches(
            state.team.active_hiring_searches,
            state.current_time,
            self.rng,
            self._ids,
            duration=self.config.HIRING_SEARCH_DURATION,
            interval=self.config.CANDIDATE_INTERVAL_DAYS,
            per_interval=self.config.CANDIDATES_PER_INTERVAL,
        )
        self._recompute_financials()

    def _weekly_phase(self) -> None:
        self._recompute_financials()

    def _monthly_phase(self, previous_time: float) -> None:
        state = self.state
        cfg = self.config
        elapsed_month = game_date(state.start_date, previous_time)

        self._update_customers(weekday_fraction(elapsed_month))
        self._recompute_financials()

        state.money += state.monthly_revenue - state.monthly_expenses
        self._recompute_financials()

        state.revenue_history.append(state.monthly_revenue)
        overflow = len(state.revenue_history) - cfg.REVENUE_HISTORY_LENGTH
        if overflow > 0:
            del state.revenue_history[:overflow]

        for employee in state.team.employees:
            if not employee.onboarding_complete and state.current_time - employee.hire_date >= cfg.ONBOARDING_DAYS:
                employee.onboarding_complete = True
        self._recompute_financials()

        if state.funding.active_round is not None:
            update_funding_system(
                state.funding,
                state,
                self.rng,
                self._ids,
                offer_delay=cfg.FUNDING_OFFER_DELAY_DAYS,
                offer_ttl=cfg.FUNDING_OFFER_TTL_DAYS,
                timeout=cfg.FUNDING_ROUND_TIMEOUT_DAYS,
                max_offers=cfg.MAX_FUNDING_OFFERS,
            )

        update_event_system(
            state.events,
            state,
            self.rng,
            self._ids,
            probability=cfg.MONTHLY_EVENT_PROBABILITY,
            cooldown=cfg.EVENT_COOLDOWN_DAYS,
            max_pending=cfg.MAX_PENDING_EVENTS,
            cofounder_probability=cfg.COFOUNDER_EVENT_PROBABILITY,
        )
        self._record_month(elapsed_month)

    def _continuous_phase(self) -> None:
        # Nothing accrues between boundaries; snapshots expose the state as is.
        return None

    def _roll_daily_event(self) -> None:
        cfg = self.config
        roll_random_event(
            self.state.events,
            self.state,
            self.rng,
            cfg.DAILY_EVENT_PROBABILITY,
            self._ids,
            cooldown=cfg.EVENT_COOLDOWN_DAYS,
            max_pending=cfg.MAX_PENDING_EVENTS,
            cofounder_probability=cfg.COFOUNDER_EVENT_PROBABILITY,
        )

    def _check_game_over(self) -> None:
        state = self.state
        if state.money <= 0 and state.runway <= 0:
            state.game_over = True
            state.game_over_reason = "bankruptcy"

    def _update_customers(self, working_share: float) -> None:
        state = self.state
        onboarded = [e for e in state.team.employees if e.onboarding_complete]
        sales = sum(1 for e in onboarded if e.role == "sales")
        marketing = sum(1 for e in onboarded if e.role == "marketing")
        milestone = state.product.current_milestone

        acquisitions = calculate_customer_acquisitions(
            milestone, self.product_category(), state.product.product_market_fit, sales, marketing
        )
        acquisitions = int(round(acquisitions * working_share))
        churned = int(round(state.customers.total_customers * calculate_churn_rate(milestone)))

        state.customers.monthly_acquisitions = acquisitions
        state.customers.monthly_churn = churned
        state.customers.total_customers = max(0, state.customers.total_customers + acquisitions - churned)

    def _recompute_financials(self) -> None:
        """Single source of truth for every derived treasury and team figure."""
        state = self.state
        now = state.current_time
        state.monthly_expenses = calculate_monthly_expenses(
            state.team.employees,
            state.offices.total_monthly_cost,
            self.config.BASE_OVERHEAD,
            monthly_adjustment(state.expense_modifiers, now),
        )
        state.monthly_revenue = calculate_revenue_from_customers(
            state.customers.total_customers, state.product.current_milestone, self.product_category()
        )
        state.burn_rate = calculate_burn_rate(state.monthly_expenses, state.monthly_revenue)
        state.runway = calculate_runway(state.money, state.burn_rate)
        state.team.total_monthly_salary = sum(e.salary for e in state.team.employees)
        state.team.total_productivity = calculate_team_productivity(state.team.employees)

    def _record_month(self, month) -> None:
        state = self.state
        record = {
            "date": month.strftime("%Y-%m"),
            "day": state.current_time,
            "money": state.money,
            "monthly_revenue": state.monthly_revenue,
            "monthly_expenses": state.monthly_expenses,
            "burn_rate": state.burn_rate,
            "runway": state.runway,
            "customers": state.customers.total_customers,
            "acquisitions": state.customers.monthly_acquisitions,
            "churn": state.customers.monthly_churn,
            "milestone": state.product.current_milestone,
            "product_progress": state.product.overall_progress,
            "total_equity": state.funding.total_equity,
            "total_raised": state.funding.total_raised,
            "valuation": self.company_valuation(),
            "headcount": len(state.team.employees),
            "pending_events": len(state.events.pending_events),
        }
        self.history.append(record)
        self._log_month_summary(record)

    def _log_month_summary(self, record: Dict[str, Any]) -> None:
        """Append a plain-text JSON record for quick diagnostics."""
        if not self.enable_round_logging:
            return
        enriched = dict(record)
        for key, value in list(enriched.items()):
            if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
                enriched[key] = None
        with open(self.round_log_path, "a", encoding="utf-8") as log_file:
            log_file.write(json.dumps(enriched, default=float) + "\n")

    # ------------------------------------------------------------------
    # Hiring actions
    # ------------------------------------------------------------------
    def _resolve_candidate(
        self, candidate_id: str, search_id: Optional[str]
    ) -> Tuple[Optional[Candidate], Optional[List[Candidate]]]:
        team = self.state.team
        searches = team.active_hiring_searches
        if search_id is not None:
            search = team.get_search(search_id)
            searches = [search] if search is not None else []
        for search in searches:
            for candidate in search.candidates:
                if candidate.id == candidate_id:
                    return candidate, search.candidates
        for candidate in team.candidate_pool:
            if candidate.id == candidate_id:
                return candidate, team.candidate_pool
        return None, None

    def hire_employee(self, candidate_id: str, search_id: Optional[str] = None) -> bool:
        candidate, source = self._resolve_candidate(candidate_id, search_id)
        if candidate is None:
            return False
        if is_cofounder_role(candidate.role):
            return self._hire_cofounder_candidate(candidate, source)

        state = self.state
        if len(state.team.employees) >= state.offices.total_capacity:
            return False
        fee = self.config.RECRUITING_FEE * hiring_fee_multiplier(state.expense_modifiers, state.current_time)
        cost = fee + candidate.expected_salary
        if state.money < cost:
            return False

        state.money -= cost
        state.team.employees.append(
            Employee(
                id=self._ids("emp"),
                name=candidate.name,
                role=candidate.role,
                salary=candidate.expected_salary,
                productivity=candidate.productivity,
                hire_date=state.current_time,
                experience_level=candidate.experience_level,
                role_subclass=candidate.role_subclass,
            )
        )
        source.remove(candidate)
        self._recompute_financials()
        return True

    def _hire_cofounder_candidate(self, candidate: Candidate, source: Optional[List[Candidate]]) -> bool:
        state = self.state
        if state.team.cofounder() is not None:
            return False
        equity = cofounder_equity_award(state.current_time, self.rng)
        if state.funding.total_equity - equity < 0:
            return False

        state.funding.total_equity -= equity
        state.team.employees.append(
            Employee(
                id=self._ids("emp"),
                name=candidate.name,
                role="cofounder",
                salary=candidate.expected_salary,
                productivity=candidate.productivity,
                hire_date=state.current_time,
                experience_level="senior",
                onboarding_complete=True,
                equity_percent=equity,
            )
        )
        if source is not None:
            source.remove(candidate)
        for search in state.team.active_hiring_searches:
            if search.is_active and search.role == "cofounder":
                complete_hiring_search(search)
        self._recompute_financials()
        return True

    def hire_cofounder(self) -> bool:
        if self.state.team.cofounder() is not None:
            return False
        candidate = generate_candidate("cofounder", None, self.rng, self._ids)
        return self._hire_cofounder_candidate(candidate, None)

    def fire_employee(self, employee_id: str) -> None:
        team = self.state.team
        employee = team.get_employee(employee_id)
        if employee is None:
            return
        for feature in self.state.product.features:
            if employee_id in feature.assigned_employee_ids:
                feature.assigned_employee_ids.remove(employee_id)
        team.employees.remove(employee)
        for search in team.active_hiring_searches:
            if search.is_active and search.recruiter_id == employee_id:
                complete_hiring_search(search)
        self._recompute_financials()

    def start_hiring_search(
        self, role: str, role_subclass: Optional[str] = None, recruiter_id: str = FOUNDER_RECRUITER
    ) -> bool:
        canonical = normalize_role(role)
        subclass = normalize_subclass(role_subclass)
        if role_subclass is not None and subclass is None:
            return False
        team = self.state.team
        if validate_search_request(team, canonical, subclass, recruiter_id, self.config.MAX_SEARCHES_PER_RECRUITER):
            return False
        team.active_hiring_searches.append(
            start_hiring_search(canonical, subclass, recruiter_id, self.state.current_time, self._ids("search"))
        )
        return True

    def cancel_hiring_search(self, search_id: str) -> None:
        team = self.state.team
        search = team.get_search(search_id)
        if search is not None:
            team.active_hiring_searches.remove(search)

    # ------------------------------------------------------------------
    # Funding actions
    # ------------------------------------------------------------------
    def start_fundraising(self, round_type: str) -> bool:
        state = self.state
        canonical = normalize_round_type(round_type)
        if validate_round_start(state.funding, canonical, state.monthly_revenue):
            return False
        round_ = start_round(canonical, state.current_time, calculate_investor_interest(state), self._ids("round"))
        state.funding.active_round = round_
        state.funding.rounds.append(round_)
        return True

    def accept_funding_offer(self, offer_id: str) -> bool:
        state = self.state
        funding = state.funding
        round_ = funding.active_round
        if round_ is None:
            return False
        offer = next((o for o in round_.offers if o.id == offer_id), None)
        if offer is None or state.current_time >= offer.expires_at:
            return False
        if funding.total_equity - offer.equity_percent < 0:
            return False

        state.money += offer.amount
        funding.total_equity -= offer.equity_percent
        funding.total_raised += offer.amount
        round_.offers = [offer]
        round_.status = "completed"
        funding.active_round = None
        self._recompute_financials()
        return True

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def respond_to_event(self, event_id: str, option_id: str) -> None:
        state = self.state
        event = next((e for e in state.events.pending_events if e.id == event_id), None)
        if event is None:
            return
        option = event.get_option(option_id)
        if option is None or not can_apply_effects(state, option.effects):
            return
        apply_effects(state, option.effects, state.current_time, self._ids, source_event_id=event.id,
                      hiring_default_days=self.config.HIRING_DISCOUNT_DAYS)
        event.chosen_option_id = option.id
        state.events.pending_events.remove(event)
        state.events.event_history.append(event)
        self._recompute_financials()

    # ------------------------------------------------------------------
    # Offices
    # ------------------------------------------------------------------
    def purchase_office(self, tier: str) -> bool:
        state = self.state
        if tier not in OFFICE_TIERS:
            return False
        cost = OFFICE_TIERS[tier].monthly_cost * self.config.OFFICE_UPFRONT_MONTHS
        if state.money < cost:
            return False
        state.money -= cost
        office = build_office(tier, self._ids("office"))
        state.offices.offices.append(office)
        state.offices.total_capacity += office.capacity
        state.offices.total_monthly_cost += office.monthly_cost
        self._recompute_financials()
        return True

    # ------------------------------------------------------------------
    # Product actions
    # ------------------------------------------------------------------
    def set_product_from_template(self, product_id: str) -> bool:
        state = self.state
        template = get_product_template(product_id)
        if template is None:
            return False
        if state.product.product_template_id and state.product.overall_progress > 0:
            return False
        state.product = create_product_from_template(template, self.rng)
        for employee in state.team.employees:
            employee.assigned_feature_id = None
        self._recompute_financials()
        return True

    def prioritize_feature(self, feature_id: str, new_priority: int) -> None:
        features = self.state.product.features
        feature = self.state.product.get_feature(feature_id)
        if feature is None:
            return
        target = int(np.clip(int(new_priority), 1, len(features)))
        if target == feature.priority:
            return
        other = next((f for f in features if f is not feature and f.priority == target), None)
        if other is not None:
            other.priority = feature.priority
        feature.priority = target
        features.sort(key=lambda f: f.priority)

    def assign_employee_to_feature(self, employee_id: str, feature_id: str) -> bool:
        employee = self.state.team.get_employee(employee_id)
        feature = self.state.product.get_feature(feature_id)
        if employee is None or feature is None or feature.is_complete:
            return False
        self.unassign_employee(employee_id)
        feature.assigned_employee_ids.append(employee_id)
        employee.assigned_feature_id = feature_id
        return True

    def unassign_employee(self, employee_id: str) -> None:
        employee = self.state.team.get_employee(employee_id)
        current = find_feature_for(self.state.product.features, employee_id)
        if current is not None:
            current.assigned_employee_ids.remove(employee_id)
        if employee is not None:
            employee.assigned_feature_id = None

    def auto_assign_teams(self) -> None:
        state = self.state
        for feature in state.product.features:
            feature.assigned_employee_ids = []
        for employee in state.team.employees:
            employee.assigned_feature_id = None
        plan = plan_auto_assignment(state.product.features, state.team.employees)
        for feature_id, employee_ids in plan.items():
            feature = state.product.get_feature(feature_id)
            for employee_id in employee_ids:
                feature.assigned_employee_ids.append(employee_id)
                state.team.get_employee(employee_id).assigned_feature_id = feature_id
