"""
Generator module - Builds solvable levels.

Provides:
- ReverseLevelGenerator: scrambles a solved layout with inverse pours
- GenerationConfig: seed, attempt budget, solver cap, return-best mode
- validate_level: failure tags for generated or loaded levels
- optimize_empty_containers: drops empty containers a solution does not need
- GenerationAudit: optional step-by-step scramble log
- LevelParameters: level number to generation parameters
- LevelGenerationService: level runs without near repeats
"""

from .config import GenerationConfig
from .reverse_generator import (
    ReverseLevelGenerator,
    InverseOperation,
    InverseMove,
    scramble_budget,
    generate_tags,
    solved_layout,
)
from .validation import (
    ValidationFailure,
    ValidationResult,
    LevelValidationError,
    LevelGenerationError,
    validate_level,
    is_valid_level,
)
from .optimizer import optimize_empty_containers, without_empty_containers, renumber
from .audit import GenerationAudit, ScrambleStep
from .parameters import LevelParameters
from .similarity import are_levels_similar, similarity_score, normalized_signature
from .service import LevelGenerationService

__all__ = [
    "GenerationConfig",
    "ReverseLevelGenerator",
    "InverseOperation",
    "InverseMove",
    "scramble_budget",
    "generate_tags",
    "solved_layout",
    "ValidationFailure",
    "ValidationResult",
    "LevelValidationError",
    "LevelGenerationError",
    "validate_level",
    "is_valid_level",
    "optimize_empty_containers",
    "without_empty_containers",
    "renumber",
    "GenerationAudit",
    "ScrambleStep",
    "LevelParameters",
    "are_levels_similar",
    "similarity_score",
    "normalized_signature",
    "LevelGenerationService",
]
