"""Notation package: FEN placement and PGN-style move-list helpers."""

from chessbench.core.notation.fen import (
    STARTING_FEN,
    MalformedPositionError,
    fen_from_grid,
    parse_placement,
    placement_field,
    placement_from_grid,
    side_to_move,
)
from chessbench.core.notation.models import MoveRow
from chessbench.core.notation.pgn import (
    PGN_RESULT_TOKENS,
    append_move_text,
    move_tokens,
    parse_move_list,
)

__all__ = [
    "STARTING_FEN",
    "PGN_RESULT_TOKENS",
    "MalformedPositionError",
    "MoveRow",
    "append_move_text",
    "fen_from_grid",
    "move_tokens",
    "parse_move_list",
    "parse_placement",
    "placement_field",
    "placement_from_grid",
    "side_to_move",
]
