"""
Watersort CLI - Command-line interface for the puzzle engine.

Usage:
    watersort generate --level 12            Generate a level from the level policy
    watersort generate --colors 4 --seed 7   Generate with explicit parameters
    watersort validate <level_file>          Check structure and solvability
    watersort hint <file>                    Next move for a level or saved game
    watersort solve <file>                   Full shortest solution
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .settings import Settings

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(
        description="Watersort - Liquid sorting puzzle engine",
        prog="watersort",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate a level")
    generate_parser.add_argument("--id", type=int, default=1, help="Level id")
    generate_parser.add_argument("--level", type=int, help="Use the level parameter policy for this level number")
    generate_parser.add_argument("--difficulty", type=int, default=1, help="Difficulty (1-10)")
    generate_parser.add_argument("--colors", type=int, default=3, help="Number of colors")
    generate_parser.add_argument("--capacity", type=int, default=4, help="Container capacity")
    generate_parser.add_argument("--empty-slots", type=int, help="Free space in liquid units")
    generate_parser.add_argument("--containers", type=int, help="Total number of containers")
    generate_parser.add_argument("--seed", type=int, default=settings.seed, help="Random seed")
    generate_parser.add_argument("--attempts", type=int, default=settings.generation_attempts,
                                 help="Generation attempt budget")
    generate_parser.add_argument("--no-optimize", action="store_true", help="Keep all empty containers")
    generate_parser.add_argument("--strict", action="store_true",
                                 help="Fail instead of returning the best invalid candidate")
    generate_parser.add_argument("--audit", action="store_true", help="Print the scramble audit to stderr")
    generate_parser.add_argument("--output", "-o", help="Output level file")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a level")
    validate_parser.add_argument("level_file", help="Path to level file")

    # Hint command
    hint_parser = subparsers.add_parser("hint", help="Suggest the next move")
    hint_parser.add_argument("file", help="Path to level or saved game file")

    # Solve command
    solve_parser = subparsers.add_parser("solve", help="Print a shortest solution")
    solve_parser.add_argument("file", help="Path to level or saved game file")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "generate":
        cmd_generate(args, settings)
    elif args.command == "validate":
        cmd_validate(args, settings)
    elif args.command == "hint":
        cmd_hint(args, settings)
    elif args.command == "solve":
        cmd_solve(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_generate(args, settings: Settings):
    """Generate a level."""
    from .generator import GenerationConfig, LevelGenerationError, LevelParameters, ReverseLevelGenerator
    from .persistence import dump_level

    config = GenerationConfig(
        seed=args.seed,
        max_generation_attempts=args.attempts,
        solver_max_states=settings.solver_max_states,
        return_best=not args.strict,
        optimize_empty_containers=not args.no_optimize,
        record_audit=args.audit,
    )
    generator = ReverseLevelGenerator(config)
    logger.debug(f"Generating with {config}")

    try:
        if args.level is not None:
            params = LevelParameters.for_level(args.level)
            level = generator.generate_level(
                params.level_id,
                difficulty=params.difficulty,
                color_count=params.color_count,
                container_capacity=params.container_capacity,
                empty_slots=params.empty_slots,
                container_count=params.container_count,
            )
        else:
            level = generator.generate_level(
                args.id,
                difficulty=args.difficulty,
                color_count=args.colors,
                container_capacity=args.capacity,
                empty_slots=args.empty_slots,
                container_count=args.containers,
            )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except LevelGenerationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.audit:
        for audit in generator.audits:
            print(audit.to_detailed_string(), file=sys.stderr)

    payload = dump_level(level)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"Level {level.id} written to {args.output}")
        print(f"Validated: {level.is_validated}")
        if level.minimum_moves is not None:
            print(f"Minimum moves: {level.minimum_moves}")
        if level.validation_failures:
            print(f"Failures: {', '.join(level.validation_failures)}")
    else:
        print(payload)


def cmd_validate(args, settings: Settings):
    """Validate a level file."""
    from .engine_core import ContainerInvariantError
    from .generator import validate_level
    from .persistence import load_level
    from .solver import HintSolver

    try:
        level = load_level(_read(args.level_file))
    except (ValidationError, ContainerInvariantError) as e:
        print(f"Error: {args.level_file} is not a valid level:\n{e}")
        sys.exit(1)
    result = validate_level(level, solver=HintSolver(max_states=settings.solver_max_states))

    print(f"Validating: {args.level_file}")
    print(f"Valid: {result.valid}")
    if result.minimum_moves is not None:
        print(f"Minimum moves: {result.minimum_moves}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)


def cmd_hint(args, settings: Settings):
    """Print the next move."""
    from .engine_core import compact_layout
    from .solver import HintSolver

    state = _load_board(args.file)
    print(compact_layout(state.containers))

    move = HintSolver(max_states=settings.solver_max_states).find_best_move(state)
    if move is None:
        print("No move available")
        return
    print(f"Hint: {move}")


def cmd_solve(args, settings: Settings):
    """Print a full shortest solution."""
    from .engine_core import GameEngine, compact_layout
    from .solver import HintSolver

    engine = GameEngine()
    state = _load_board(args.file, engine)
    result = HintSolver(engine=engine, max_states=settings.solver_max_states).solve(state)

    if not result.solved:
        reason = "state cap reached" if result.truncated else "no solution exists"
        print(f"No solution found ({reason}, {result.states_explored} states explored)")
        sys.exit(1)

    print(compact_layout(state.containers))
    for i, move in enumerate(result.moves, start=1):
        state = engine.execute_pour(state, move.from_container_id, move.to_container_id)
        print(f"{i:3d}. {move}  {compact_layout(state.containers)}")
    print(f"Solved in {result.length} moves ({result.states_explored} states explored)")


def _read(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)


def _load_board(path: str, engine=None):
    """Load a saved game, or start a level, from a JSON file."""
    from .engine_core import ContainerInvariantError, GameEngine
    from .persistence import load_game_state, load_level

    engine = engine or GameEngine()
    text = _read(path)
    try:
        if "move_history" in json.loads(text):
            return load_game_state(text, engine=engine)
        return engine.initialize_from_level(load_level(text))
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not JSON: {e}")
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: {path} is not a level or saved game:\n{e}")
        sys.exit(1)
    except ContainerInvariantError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
