"""Public API for the startup simulation package.

Tick-driven business simulation of a startup's product, team, funding,
offices and customers over calendar time.
"""

__version__ = "1.0.0"

from .cli import autopilot_step, run_cli
from .config import (
    DifficultyProfile,
    SimulationConfig,
    apply_difficulty_profile,
    get_difficulty_profile,
    list_difficulty_profiles,
    load_difficulty_profile,
)
from .models import (
    Candidate,
    Employee,
    Feature,
    FeatureComponent,
    FundingOffer,
    FundingRound,
    GameEvent,
    HiringSearch,
    WorldState,
)
from .simulation import StartupSimulation, create_initial_state
from .templates import PRODUCT_TEMPLATES, get_product_template
from .utils import IdSequence, normalize_role

__all__ = [
    "__version__",
    "run_cli",
    "autopilot_step",
    "SimulationConfig",
    "DifficultyProfile",
    "apply_difficulty_profile",
    "get_difficulty_profile",
    "list_difficulty_profiles",
    "load_difficulty_profile",
    "Candidate",
    "Employee",
    "Feature",
    "FeatureComponent",
    "FundingOffer",
    "FundingRound",
    "GameEvent",
    "HiringSearch",
    "WorldState",
    "StartupSimulation",
    "create_initial_state",
    "PRODUCT_TEMPLATES",
    "get_product_template",
    "IdSequence",
    "normalize_role",
]
