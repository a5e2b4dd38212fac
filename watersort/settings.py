"""
Settings - Environment-driven defaults for the CLI and sessions.

Library classes take explicit arguments; these values only fill in
defaults at the edges.

Environment variables:
- WATERSORT_LOG_LEVEL: logging level name (default WARNING)
- WATERSORT_SOLVER_MAX_STATES: BFS state cap (default 10000)
- WATERSORT_GENERATION_ATTEMPTS: generator attempt budget (default 50)
- WATERSORT_SEED: default generator seed (unset means random)
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping

from .solver.hint_solver import DEFAULT_MAX_STATES


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    solver_max_states: int = DEFAULT_MAX_STATES
    generation_attempts: int = 50
    seed: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read settings from the environment. Bad numbers raise ValueError."""
        env = os.environ if environ is None else environ
        seed = env.get("WATERSORT_SEED")
        return cls(
            log_level=env.get("WATERSORT_LOG_LEVEL", "WARNING").upper(),
            solver_max_states=int(env.get("WATERSORT_SOLVER_MAX_STATES", DEFAULT_MAX_STATES)),
            generation_attempts=int(env.get("WATERSORT_GENERATION_ATTEMPTS", 50)),
            seed=int(seed) if seed else None,
        )
