"""
Solver module - Hints and full solutions.

Provides:
- HintSolver: capped breadth-first search over legal pours
- SolveResult: path, explored-state count and truncation flag
- Heuristic ranking used when the search cap is hit
"""

from .hint_solver import HintSolver, SolveResult, DEFAULT_MAX_STATES
from .heuristics import MoveCategory, categorize_move, rank_moves, pick_heuristic_move

__all__ = [
    "HintSolver",
    "SolveResult",
    "DEFAULT_MAX_STATES",
    "MoveCategory",
    "categorize_move",
    "rank_moves",
    "pick_heuristic_move",
]
