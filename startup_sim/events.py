"""
Random narrative events and the interpreter for their option effects.

Events arrive as pending decisions with a short deadline. Each option carries
an ordered list of effects; the interpreter applies them to the world-state
only after ``can_apply_effects`` has cleared the whole option.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import numpy as np

from .models import (
    EventEffect,
    EventOption,
    EventState,
    ExpenseModifier,
    GameEvent,
    WorldState,
)

IdFactory = Callable[[str], str]

EVENT_COOLDOWN_DAYS = 10.0
MONTHLY_EVENT_PROBABILITY = 0.3
COFOUNDER_EVENT_PROBABILITY = 0.05
MAX_PENDING_EVENTS = 3
HIRING_DISCOUNT_DAYS = 60.0


def _event(state: WorldState, id_factory: IdFactory, kind: str, title: str, description: str,
           options: List[EventOption], ttl: float) -> GameEvent:
    return GameEvent(
        id=id_factory("event"),
        type=kind,
        title=title,
        description=description,
        options=options,
        triggered_at=state.current_time,
        expires_at=state.current_time + ttl,
    )


def talent_market_crash(state: WorldState, id_factory: IdFactory) -> GameEvent:
    return _event(
        state, id_factory, "team", "Tech Talent Market Crash",
        "Due to market conditions, hiring costs have dropped significantly. Great time to hire!",
        [
            EventOption("hire-now", "Hire Aggressively", "Take advantage of low costs", [
                EventEffect("expense", -0.2, "Hiring costs reduced 20% for 2 months",
                            applies_to="hiring", duration_days=HIRING_DISCOUNT_DAYS),
            ]),
            EventOption("wait", "Wait", "Keep current strategy"),
        ],
        ttl=7,
    )


def competing_offer(state: WorldState, id_factory: IdFactory) -> GameEvent:
    return _event(
        state, id_factory, "team", "Key Employee Competing Offer",
        "One of your key employees received a competing offer. They want a raise or they'll leave.",
        [
            EventOption("give-raise", "Give Raise", "Increase salary by $2k/month to retain them", [
                EventEffect("expense", 2000, "Monthly expenses increased by $2k", applies_to="monthly"),
            ]),
            EventOption("let-go", "Let Them Go", "Accept the productivity loss", [
                EventEffect("product", -5, "Product development slowed"),
            ]),
        ],
        ttl=3,
    )


def technical_breakthrough(state: WorldState, id_factory: IdFactory) -> GameEvent:
    return _event(
        state, id_factory, "product", "Technical Breakthrough",
        "Your team made a significant technical breakthrough!",
        [
            EventOption("boost", "Apply Breakthrough", "Accelerate product development", [
                EventEffect("product", 5, "Product progress increased by 5%"),
            ]),
        ],
        ttl=1,
    )


def financial_event(state: WorldState, id_factory: IdFactory) -> GameEvent:
    if state.runway < 3:
        return _event(
            state, id_factory, "financial", "Emergency Funding Opportunity",
            "An angel investor offers emergency funding at unfavorable terms due to your low runway.",
            [
                EventOption("take-emergency", "Take Emergency Funding", "Get $100k on poor terms", [
                    EventEffect("money", 100_000, "Received $100k"),
                ]),
                EventOption("decline", "Decline", "Try to survive without it"),
            ],
            ttl=2,
        )
    return _event(
        state, id_factory, "financial", "Unexpected Expense",
        "An unexpected legal fee of $5,000 is due.",
        [
            EventOption("pay", "Pay It", "Pay the fee", [
                EventEffect("money", -5000, "Paid $5,000"),
            ]),
        ],
        ttl=1,
    )


def market_opportunity(state: WorldState, id_factory: IdFactory) -> GameEvent:
    return _event(
        state, id_factory, "market", "Market Opportunity",
        "A large enterprise customer is interested, but needs a custom feature built.",
        [
            EventOption("build-feature", "Build Custom Feature", "Spend 1 month dev time, get $50k contract", [
                EventEffect("product", -10, "Other features delayed"),
                EventEffect("money", 50_000, "Received $50k contract"),
            ]),
            EventOption("decline", "Decline", "Focus on core product"),
        ],
        ttl=5,
    )


def cofounder_event(state: WorldState, rng: np.random.Generator, id_factory: IdFactory) -> Optional[GameEvent]:
    cofounder = state.team.cofounder()
    if cofounder is None:
        return None
    name = cofounder.name
    held = cofounder.equity_percent or 0.0
    choices = [
        lambda: _event(
            state, id_factory, "team", "Co-Founder Wants More Equity",
            f"{name} feels they deserve more equity given their contributions. "
            "They're asking for an additional 5% equity.",
            [
                EventOption("give-equity", "Grant Additional Equity", f"Give {name} 5% more equity", [
                    EventEffect("equity", 5, f"{name} now has {held + 5:g}% equity"),
                ]),
                EventOption("refuse", "Refuse", "Risk relationship damage", [
                    EventEffect("product", -10, "Productivity decreased due to conflict"),
                ]),
            ],
            ttl=5,
        ),
        lambda: _event(
            state, id_factory, "team", "Co-Founder Considering Leaving",
            f"{name} has received an offer from another startup. They want either a significant "
            "raise ($3k/month) or more equity (3%) to stay.",
            [
                EventOption("give-raise", "Give Raise", f"Increase {name}'s salary by $3k/month", [
                    EventEffect("expense", 3000, "Monthly expenses increased by $3k", applies_to="cofounder_salary"),
                ]),
                EventOption("give-equity", "Give More Equity", f"Give {name} 3% more equity", [
                    EventEffect("equity", 3, f"{name} now has {held + 3:g}% equity"),
                ]),
                EventOption("let-leave", "Let Them Leave", "Accept the loss of your co-founder", [
                    EventEffect("product", -20, "Major productivity loss from losing co-founder"),
                ]),
            ],
            ttl=3,
        ),
        lambda: _event(
            state, id_factory, "team", "Co-Founder Conflict",
            f"You and {name} have a disagreement about product direction. "
            "This is affecting team morale and productivity.",
            [
                EventOption("compromise", "Find Compromise", "Spend time resolving the conflict", [
                    EventEffect("product", -5, "Product development slowed while resolving conflict"),
                ]),
                EventOption("stand-ground", "Stand Your Ground", "Risk further conflict", [
                    EventEffect("product", -15, "Productivity significantly decreased"),
                ]),
            ],
            ttl=2,
        ),
        lambda: _event(
            state, id_factory, "product", "Co-Founder Wants to Pivot",
            f"{name} believes the current product direction is wrong and wants to pivot to a "
            "different market. This would reset significant progress.",
            [
                EventOption("pivot", "Pivot", "Reset product progress but potentially find better market fit", [
                    EventEffect("product", -30, "Product progress reset due to pivot"),
                ]),
                EventOption("stay-course", "Stay the Course", "Continue with current direction", [
                    EventEffect("product", -5, "Minor productivity loss from disagreement"),
                ]),
            ],
            ttl=7,
        ),
    ]
    return choices[int(rng.integers(len(choices)))]()


def generate_random_event(
    state: WorldState,
    rng: np.random.Generator,
    id_factory: IdFactory,
    cofounder_probability: float = COFOUNDER_EVENT_PROBABILITY,
) -> GameEvent:
    if state.team.cofounder() is not None and rng.random() < cofounder_probability:
        event = cofounder_event(state, rng, id_factory)
        if event is not None:
            return event
    category = int(rng.integers(4))
    if category == 0:
        hiring = (talent_market_crash, competing_offer)
        return hiring[int(rng.integers(len(hiring)))](state, id_factory)
    if category == 1:
        return technical_breakthrough(state, id_factory)
    if category == 2:
        return financial_event(state, id_factory)
    return market_opportunity(state, id_factory)


def roll_random_event(
    events: EventState,
    state: WorldState,
    rng: np.random.Generator,
    probability: float,
    id_factory: IdFactory,
    cooldown: float = EVENT_COOLDOWN_DAYS,
    max_pending: int = MAX_PENDING_EVENTS,
    cofounder_probability: float = COFOUNDER_EVENT_PROBABILITY,
) -> Optional[GameEvent]:
    """Maybe append a new pending event; returns it when one was created."""
    if state.current_time - events.last_event_time < cooldown:
        return None
    if len(events.pending_events) >= max_pending:
        return None
    if rng.random() >= probability:
        return None
    event = generate_random_event(state, rng, id_factory, cofounder_probability)
    events.pending_events.append(event)
    events.last_event_time = state.current_time
    return event


def drop_expired_events(events: EventState, now: float) -> EventState:
    events.pending_events = [e for e in events.pending_events if now <= e.expires_at]
    return events


def update_event_system(
    events: EventState,
    state: WorldState,
    rng: np.random.Generator,
    id_factory: IdFactory,
    probability: float = MONTHLY_EVENT_PROBABILITY,
    cooldown: float = EVENT_COOLDOWN_DAYS,
    max_pending: int = MAX_PENDING_EVENTS,
    cofounder_probability: float = COFOUNDER_EVENT_PROBABILITY,
) -> EventState:
    roll_random_event(events, state, rng, probability, id_factory, cooldown, max_pending, cofounder_probability)
    return drop_expired_events(events, state.current_time)


def can_apply_effects(state: WorldState, effects: Sequence[EventEffect]) -> bool:
    """False when an option would overdraw equity or needs a missing co-founder."""
    cofounder = state.team.cofounder()
    equity_needed = 0.0
    for effect in effects:
        if effect.type == "equity":
            if cofounder is None:
                return False
            equity_needed += max(effect.value, 0.0)
        elif effect.type == "expense" and effect.applies_to == "cofounder_salary" and cofounder is None:
            return False
    return state.funding.total_equity - equity_needed >= 0


def apply_effects(
    state: WorldState,
    effects: Sequence[EventEffect],
    current_time: float,
    id_factory: IdFactory,
    source_event_id: Optional[str] = None,
    hiring_default_days: float = HIRING_DISCOUNT_DAYS,
) -> None:
    """Apply ``effects`` in order; callers check ``can_apply_effects`` first."""
    for effect in effects:
        if effect.type == "money":
            state.money += effect.value
        elif effect.type == "product":
            state.product.overall_progress = float(np.clip(state.product.overall_progress + effect.value, 0.0, 100.0))
        elif effect.type == "equity":
            cofounder = state.team.cofounder()
            if cofounder is not None:
                cofounder.equity_percent = (cofounder.equity_percent or 0.0) + effect.value
                state.funding.total_equity -= effect.value
        elif effect.type == "expense":
            _apply_expense(state, effect, current_time, id_factory, source_event_id, hiring_default_days)


def _apply_expense(
    state: WorldState,
    effect: EventEffect,
    current_time: float,
    id_factory: IdFactory,
    source_event_id: Optional[str],
    hiring_default_days: float,
) -> None:
    target = effect.applies_to or "monthly"
    if target == "cofounder_salary":
        cofounder = state.team.cofounder()
        if cofounder is not None:
            cofounder.salary += effect.value
        return
    if target == "hiring":
        duration = effect.duration_days if effect.duration_days is not None else hiring_default_days
    else:
        duration = effect.duration_days
    state.expense_modifiers.append(
        ExpenseModifier(
            id=id_factory("modifier"),
            applies_to=target,
            value=effect.value,
            source_event_id=source_event_id,
            expires_at=None if duration is None else current_time + duration,
        )
    )


def monthly_adjustment(modifiers: Sequence[ExpenseModifier], now: float) -> float:
    return sum(m.value for m in modifiers if m.applies_to == "monthly" and m.is_active(now))


def hiring_fee_multiplier(modifiers: Sequence[ExpenseModifier], now: float) -> float:
    multiplier = 1.0
    for modifier in modifiers:
        if modifier.applies_to == "hiring" and modifier.is_active(now):
            multiplier *= 1.0 + modifier.value
    return max(multiplier, 0.0)
