"""Core position model: pure functions over FEN placement and move lists.

Quick start::

    from chessbench.core import apply_move, parse_placement, STARTING_FEN

    grid = parse_placement(STARTING_FEN)
    apply_move(grid, "e2e4")
"""

from chessbench.core.board import apply_move, copy_grid, format_grid, split_uci, start_grid
from chessbench.core.notation import (
    STARTING_FEN,
    MalformedPositionError,
    MoveRow,
    append_move_text,
    fen_from_grid,
    parse_move_list,
    parse_placement,
    placement_from_grid,
    side_to_move,
)
from chessbench.core.types import Grid, coordinate_to_square, square_to_coordinate

__all__ = [
    # Types / helpers
    "Grid",
    "coordinate_to_square",
    "square_to_coordinate",
    # Board projection
    "apply_move",
    "copy_grid",
    "format_grid",
    "split_uci",
    "start_grid",
    # Notation
    "STARTING_FEN",
    "MalformedPositionError",
    "MoveRow",
    "append_move_text",
    "fen_from_grid",
    "parse_move_list",
    "parse_placement",
    "placement_from_grid",
    "side_to_move",
]
