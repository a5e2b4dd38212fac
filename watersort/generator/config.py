"""
Generation Config - Knobs for the reverse level generator.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..solver.hint_solver import DEFAULT_MAX_STATES


@dataclass
class GenerationConfig:
    """
    Configuration for level generation.

    seed: base seed; None draws fresh randomness on every call
    max_generation_attempts: scramble/validate rounds before giving up
    solver_max_states: state cap for every solvability check
    return_best: on exhaustion, return the best invalid candidate
        (tagged with its failures) instead of raising
    optimize_empty_containers: try to drop empty containers after scrambling
    min_containers_to_optimize: boards with this many containers or
        fewer are left as they are
    record_audit: keep a step-by-step scramble log on the generator
    max_moves_factor: move allowance of a validated level, as a
        multiple of its minimum moves
    """
    seed: int | None = None
    max_generation_attempts: int = 50
    solver_max_states: int = DEFAULT_MAX_STATES
    return_best: bool = True
    optimize_empty_containers: bool = True
    min_containers_to_optimize: int = 3
    record_audit: bool = False
    max_moves_factor: float = 2.0
