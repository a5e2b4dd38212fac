"""
Watersort - Liquid sorting puzzle engine

A deterministic engine for liquid sorting puzzles. Containers hold
stacked color layers; a pour moves the top run of one container onto
an empty container or a matching color. Provides:
- Pour validation, undo/redo by replay, win/loss detection
- Reverse level generation that is solvable by construction
- Breadth-first hint solver with a heuristic fallback
- JSON round-trip for levels and saved games
"""

__version__ = "0.1.0"
