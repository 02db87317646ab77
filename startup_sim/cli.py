"""Command-line entry point that plays a simulation headlessly."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import (
    DifficultyProfile,
    SimulationConfig,
    apply_difficulty_profile,
    get_difficulty_profile,
    list_difficulty_profiles,
    load_difficulty_profile,
)
from .models import ROUND_ORDER
from .simulation import StartupSimulation
from .templates import list_product_templates
from .utils import format_money

CASH_RESERVE_MONTHS = 3.0
AUTOPILOT_SEARCHES = (("engineer", "frontend"), ("engineer", "backend"), ("sales", None), ("designer", "product"))
OFFICE_UPGRADE_PATH = ("small", "medium", "large")


def _print_difficulty_catalog() -> None:
    catalog: List[DifficultyProfile] = sorted(list_difficulty_profiles(), key=lambda p: p.name)
    print("Available difficulty profiles:")
    for profile in catalog:
        print(f"  - {profile.name}: {profile.description}")


def _print_product_catalog() -> None:
    print("Available product templates:")
    for template in list_product_templates():
        print(
            f"  - {template.id}: {template.name} [{template.category}] "
            f"complexity {template.estimated_complexity}, revenue potential {template.revenue_potential}"
        )


def _write_config_dump(config: SimulationConfig, destination: str) -> Path:
    """Persist the resolved configuration to ``destination``."""
    target = Path(destination).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(config.snapshot(), handle, indent=2, sort_keys=True)
    print(f"[CLI] Wrote configuration snapshot to {target}")
    return target


def _answer_events(sim: StartupSimulation) -> None:
    for event in list(sim.state.events.pending_events):
        for option in event.options:
            sim.respond_to_event(event.id, option.id)
            if event not in sim.state.events.pending_events:
                break


def _hire_available(sim: StartupSimulation) -> int:
    hired = 0
    state = sim.state
    reserve = state.monthly_expenses * CASH_RESERVE_MONTHS
    pools = [(s.id, list(s.candidates)) for s in state.team.active_hiring_searches]
    pools.append((None, list(state.team.candidate_pool)))
    for search_id, candidates in pools:
        for candidate in sorted(candidates, key=lambda c: (-c.productivity, c.expected_salary, c.id)):
            if len(state.team.employees) >= state.offices.total_capacity:
                return hired
            if state.money - candidate.expected_salary < reserve:
                continue
            if sim.hire_employee(candidate.id, search_id):
                hired += 1
                reserve = state.monthly_expenses * CASH_RESERVE_MONTHS
    return hired


def _expand_offices(sim: StartupSimulation) -> None:
    state = sim.state
    if len(state.team.employees) < state.offices.total_capacity:
        return
    owned = {office.tier for office in state.offices.offices}
    for tier in OFFICE_UPGRADE_PATH:
        if tier in owned:
            continue
        sim.purchase_office(tier)
        return


def _keep_searches_running(sim: StartupSimulation) -> None:
    state = sim.state
    running = {(s.role, s.role_subclass) for s in state.team.active_hiring_searches if s.is_active}
    for role, subclass in AUTOPILOT_SEARCHES:
        if (role, subclass) in running:
            continue
        if not sim.start_hiring_search(role, subclass):
            cofounder = state.team.cofounder()
            if cofounder is not None:
                sim.start_hiring_search(role, subclass, recruiter_id=cofounder.id)


def _manage_funding(sim: StartupSimulation) -> None:
    funding = sim.state.funding
    round_ = funding.active_round
    if round_ is not None:
        live = [o for o in round_.offers if o.expires_at > sim.state.current_time]
        if live:
            sim.accept_funding_offer(live[0].id)
        return
    completed = set(funding.completed_round_types())
    for round_type in ROUND_ORDER:
        if round_type not in completed:
            sim.start_fundraising(round_type)
            return


def autopilot_step(sim: StartupSimulation) -> None:
    """One day of simple founder decisions."""
    _answer_events(sim)
    if sim.state.team.cofounder() is None:
        sim.hire_cofounder()
    _expand_offices(sim)
    _hire_available(sim)
    _keep_searches_running(sim)
    sim.auto_assign_teams()
    _manage_funding(sim)


def _parse_cli_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Headless startup simulation runner")
    parser.add_argument("--days", type=float, default=365.0, help="Simulated days to run.")
    parser.add_argument("--starting-money", type=float, help="Override the starting treasury.")
    parser.add_argument("--difficulty", default="medium", help="Built-in difficulty profile name.")
    parser.add_argument("--difficulty-file", help="Path to a JSON difficulty profile with an 'overrides' mapping.")
    parser.add_argument("--product", help="Product template id to build (see --list-products).")
    parser.add_argument("--seed", type=int, help="Seed for the simulation's random generator.")
    parser.add_argument("--start-date", help="Calendar anchor in ISO format (YYYY-MM-DD).")
    parser.add_argument("--speed", type=float, default=1.0, help="Game speed multiplier.")
    parser.add_argument(
        "--no-autopilot",
        action="store_true",
        help="Let time pass without any founder decisions.",
    )
    parser.add_argument("--history-csv", help="Write the monthly history table to this CSV path.")
    parser.add_argument("--run-log", help="Append monthly JSON summaries to this file.")
    parser.add_argument("--dump-config", help="Write the resolved configuration as JSON and continue.")
    parser.add_argument("--list-products", action="store_true", help="List product templates and exit.")
    parser.add_argument("--list-difficulties", action="store_true", help="List difficulty profiles and exit.")
    return parser.parse_args(list(argv) if argv is not None else None)


def _resolve_config(args: argparse.Namespace, base_config: Optional[SimulationConfig]) -> SimulationConfig:
    payload: Dict[str, Any] = {"difficulty": args.difficulty}
    if args.starting_money is not None:
        payload["startingMoney"] = args.starting_money
    if args.product:
        payload["selectedProductId"] = args.product
    if args.start_date:
        payload["startDate"] = args.start_date
    if args.seed is not None:
        payload["seed"] = args.seed

    if base_config is None:
        config = SimulationConfig.from_game_config(payload)
    else:
        config = apply_difficulty_profile(base_config, get_difficulty_profile(args.difficulty))
        overrides = {
            key: value
            for key, value in (
                ("STARTING_MONEY", args.starting_money),
                ("SELECTED_PRODUCT_ID", args.product),
                ("START_DATE", args.start_date),
                ("RANDOM_SEED", args.seed),
            )
            if value is not None
        }
        config = config.copy_with_overrides(overrides)
    if args.difficulty_file:
        config = apply_difficulty_profile(config, load_difficulty_profile(args.difficulty_file))
    run_switches: Dict[str, Any] = {"GAME_SPEED": args.speed, "START_PAUSED": False}
    if args.run_log:
        run_switches.update({"enable_round_logging": True, "round_log_path": args.run_log})
    return config.copy_with_overrides(run_switches)


def run_cli(
    base_config: Optional[SimulationConfig] = None,
    argv: Optional[Iterable[str]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Parse CLI arguments, play the simulation and report the outcome.
    Returns a summary dictionary, allowing programmatic reuse.
    """
    args = _parse_cli_args(argv)
    if args.list_difficulties or args.list_products:
        if args.list_difficulties:
            _print_difficulty_catalog()
        if args.list_products:
            _print_product_catalog()
        return None

    try:
        config = _resolve_config(args, base_config)
    except (FileNotFoundError, ValueError, KeyError) as exc:
        print(f"[CLI] Configuration error: {exc}")
        return None
    if args.dump_config:
        _write_config_dump(config, args.dump_config)

    sim = StartupSimulation(config)
    print(
        f"[CLI] Starting {config.DIFFICULTY} run on {sim.formatted_date()} with "
        f"{format_money(sim.state.money)} ({sim.state.product.product_template_id or 'default product'})"
    )
    elapsed = 0.0
    while elapsed < args.days and not sim.state.game_over:
        if not args.no_autopilot:
            autopilot_step(sim)
        step = min(1.0, args.days - elapsed)
        advanced = sim.advance_days(step)
        if advanced <= 0:
            break
        elapsed += advanced

    state = sim.state
    if state.game_over:
        print(f"[CLI] Game over on {sim.formatted_date()}: {state.game_over_reason}")
    print(
        f"[CLI] {sim.formatted_date()}: cash {format_money(state.money)}, "
        f"revenue {format_money(state.monthly_revenue)}/mo, customers {state.customers.total_customers}, "
        f"milestone {state.product.current_milestone}, team {len(state.team.employees)}, "
        f"equity {state.funding.total_equity:.1f}%"
    )

    result: Dict[str, Any] = {
        "days": state.current_time,
        "money": state.money,
        "game_over": state.game_over,
        "milestone": state.product.current_milestone,
        "valuation": sim.company_valuation(),
        "months": len(sim.history),
    }
    if args.history_csv:
        target = Path(args.history_csv).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        sim.history_frame().to_csv(target, index=False)
        print(f"[CLI] Wrote monthly history to {target}")
        result["history_csv"] = str(target)
    if args.run_log:
        result["run_log"] = args.run_log
    return result


def main(argv: Optional[Iterable[str]] = None) -> None:  # pragma: no cover - thin wrapper
    run_cli(argv=argv)


if __name__ == "__main__":  # pragma: no cover
    main()


__all__ = [
    "autopilot_step",
    "run_cli",
    "main",
]
