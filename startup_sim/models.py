"""
Core dataclasses that make up the simulation world-state.

``WorldState`` is the single mutable root owned by ``StartupSimulation``. The
nested states group the treasury-adjacent subsystems (team, product, funding,
events, offices, customers); clock and treasury scalars sit directly on the
root because almost every phase touches them.

Derived fields (``monthly_expenses``, ``burn_rate``, ``runway``,
``total_monthly_salary``, ``total_productivity``, feature and product progress)
are caches. They are rewritten by the engine's financial recompute and by the
product engine and should never be set by callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

ROLES = ("engineer", "designer", "sales", "marketing", "operations", "cofounder")
ROLE_SUBCLASSES: Dict[str, tuple] = {
    "engineer": ("frontend", "backend"),
    "designer": ("product", "visual"),
}
EXPERIENCE_LEVELS = ("junior", "mid", "senior")
ROUND_ORDER = ("seed", "series_a", "series_b", "series_c", "series_d")
FOUNDER_RECRUITER = "founder"


@dataclass(slots=True)
class FeatureComponent:
    id: str
    name: str
    base_complexity: float
    estimated_days: float
    progress: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100.0


@dataclass(slots=True)
class FeatureRequirements:
    """Staffing a feature needs before auto-assignment considers it covered."""

    min_seniority: str = "junior"
    frontend: int = 0
    backend: int = 0
    product_designers: int = 0
    visual_designers: int = 0

    def engineer_slots(self) -> int:
        return self.frontend + self.backend


@dataclass(slots=True)
class Feature:
    id: str
    name: str
    priority: int
    base_complexity: float
    components: List[FeatureComponent] = field(default_factory=list)
    description: str = ""
    progress: float = 0.0
    assigned_employee_ids: List[str] = field(default_factory=list)
    requirements: FeatureRequirements = field(default_factory=FeatureRequirements)
    unlocks_capability: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.progress >= 100.0


@dataclass
class ProductState:
    overall_progress: float = 0.0
    current_milestone: str = "idea"
    features: List[Feature] = field(default_factory=list)
    maturity: float = 0.0
    quality: float = 0.5
    product_market_fit: float = 0.0
    product_template_id: Optional[str] = None

    def get_feature(self, feature_id: str) -> Optional[Feature]:
        return next((f for f in self.features if f.id == feature_id), None)


@dataclass(slots=True)
class Candidate:
    id: str
    name: str
    role: str
    expected_salary: float
    productivity: float
    experience_level: str
    role_subclass: Optional[str] = None


@dataclass(slots=True)
class Employee:
    id: str
    name: str
    role: str
    salary: float
    productivity: float
    hire_date: float
    experience_level: str
    onboarding_complete: bool = False
    role_subclass: Optional[str] = None
    equity_percent: Optional[float] = None
    assigned_feature_id: Optional[str] = None

    @property
    def is_cofounder(self) -> bool:
        return self.role == "cofounder"


@dataclass(slots=True)
class HiringSearch:
    id: str
    role: str
    recruiter_id: str
    started_at: float
    role_subclass: Optional[str] = None
    candidates: List[Candidate] = field(default_factory=list)
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass
class TeamState:
    employees: List[Employee] = field(default_factory=list)
    candidate_pool: List[Candidate] = field(default_factory=list)
    active_hiring_searches: List[HiringSearch] = field(default_factory=list)
    total_monthly_salary: float = 0.0
    total_productivity: float = 0.0

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.employees if e.id == employee_id), None)

    def get_search(self, search_id: str) -> Optional[HiringSearch]:
        return next((s for s in self.active_hiring_searches if s.id == search_id), None)

    def cofounder(self) -> Optional[Employee]:
        return next((e for e in self.employees if e.is_cofounder), None)


@dataclass(slots=True)
class FundingOffer:
    id: str
    round_type: str
    amount: float
    valuation: float
    equity_percent: float
    expires_at: float
    requirements: List[str] = field(default_factory=list)


@dataclass(slots=True)
class FundingRound:
    id: str
    round_type: str
    started_at: float
    investor_interest: float
    status: str = "in_progress"
    offers: List[FundingOffer] = field(default_factory=list)
    offers_generated: bool = False


@dataclass
class FundingState:
    total_equity: float = 100.0
    total_raised: float = 0.0
    rounds: List[FundingRound] = field(default_factory=list)
    active_round: Optional[FundingRound] = None

    def completed_round_types(self) -> List[str]:
        return [r.round_type for r in self.rounds if r.status == "completed"]


@dataclass(slots=True)
class Office:
    id: str
    tier: str
    name: str
    capacity: int
    monthly_cost: float
    description: str = ""


@dataclass
class OfficeState:
    offices: List[Office] = field(default_factory=list)
    total_capacity: int = 0
    total_monthly_cost: float = 0.0


@dataclass
class CustomerState:
    total_customers: int = 0
    monthly_acquisitions: int = 0
    monthly_churn: int = 0


@dataclass(slots=True)
class EventEffect:
    """One step of an event option.

    ``type`` is one of ``money``, ``product``, ``expense`` or ``equity``.
    Expense effects are routed by ``applies_to`` (``monthly``, ``hiring`` or
    ``cofounder_salary``); ``duration_days`` bounds temporary modifiers.
    """

    type: str
    value: float
    description: str = ""
    applies_to: Optional[str] = None
    duration_days: Optional[float] = None


@dataclass(slots=True)
class EventOption:
    id: str
    label: str
    description: str = ""
    effects: List[EventEffect] = field(default_factory=list)


@dataclass(slots=True)
class GameEvent:
    id: str
    type: str
    title: str
    description: str
    options: List[EventOption]
    triggered_at: float
    expires_at: float
    chosen_option_id: Optional[str] = None

    def get_option(self, option_id: str) -> Optional[EventOption]:
        return next((o for o in self.options if o.id == option_id), None)


@dataclass
class EventState:
    pending_events: List[GameEvent] = field(default_factory=list)
    event_history: List[GameEvent] = field(default_factory=list)
    last_event_time: float = 0.0


@dataclass(slots=True)
class ExpenseModifier:
    """Monthly expense delta (``monthly``) or recruiting-fee multiplier delta (``hiring``)."""

    id: str
    applies_to: str
    value: float
    source_event_id: Optional[str] = None
    expires_at: Optional[float] = None

    def is_active(self, now: float) -> bool:
        return self.expires_at is None or now <= self.expires_at


@dataclass
class WorldState:
    start_date: date
    money: float
    monthly_expenses: float = 0.0
    monthly_revenue: float = 0.0
    revenue_history: List[float] = field(default_factory=list)
    burn_rate: float = 0.0
    runway: float = float("inf")
    current_time: float = 0.0
    is_paused: bool = True
    game_speed: float = 1.0
    team: TeamState = field(default_factory=TeamState)
    product: ProductState = field(default_factory=ProductState)
    funding: FundingState = field(default_factory=FundingState)
    events: EventState = field(default_factory=EventState)
    offices: OfficeState = field(default_factory=OfficeState)
    customers: CustomerState = field(default_factory=CustomerState)
    expense_modifiers: List[ExpenseModifier] = field(default_factory=list)
    game_over: bool = False
    game_over_reason: Optional[str] = None
