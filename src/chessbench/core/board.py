"""Board projection - moves pieces on a display grid without rule checks."""

from __future__ import annotations

from chessbench.core.notation.fen import STARTING_FEN, parse_placement
from chessbench.core.types import Grid, is_white_piece, square_to_coordinate

# king move -> (king code, rook from, rook to)
_CASTLING_ROOK_MOVES: dict[str, tuple[str, str, str]] = {
    "e1g1": ("K", "h1", "f1"),
    "e1c1": ("K", "a1", "d1"),
    "e8g8": ("k", "h8", "f8"),
    "e8c8": ("k", "a8", "d8"),
}


def start_grid() -> Grid:
    """Fresh grid holding the standard initial position."""
    return parse_placement(STARTING_FEN)


def copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


def split_uci(uci: str) -> tuple[str, str, str | None]:
    """Split a UCI move code into ``(from, to, promotion)``."""
    if len(uci) not in (4, 5):
        raise ValueError(f"Invalid UCI move: {uci!r}")
    promotion = uci[4] if len(uci) == 5 else None
    if promotion is not None and promotion.lower() not in "nbrq":
        raise ValueError(f"Invalid UCI promotion: {uci!r}")
    return uci[:2], uci[2:4], promotion


def apply_move(grid: Grid, uci: str) -> None:
    """Relocate pieces on *grid* in place according to *uci*.

    Castling king moves also bring the matching rook across, and a fifth
    character promotes the moved piece (cased to the mover's side). Moves
    from an empty square leave the grid untouched.
    """
    from_sq, to_sq, promotion = split_uci(uci)
    from_col, from_row = square_to_coordinate(from_sq)
    to_col, to_row = square_to_coordinate(to_sq)

    piece = grid[from_row][from_col]
    if piece is None:
        return
    grid[from_row][from_col] = None

    castling = _CASTLING_ROOK_MOVES.get(uci[:4])
    if castling is not None and castling[0] == piece:
        _, rook_from, rook_to = castling
        rook_from_col, rook_from_row = square_to_coordinate(rook_from)
        rook_to_col, rook_to_row = square_to_coordinate(rook_to)
        grid[rook_to_row][rook_to_col] = grid[rook_from_row][rook_from_col]
        grid[rook_from_row][rook_from_col] = None

    if promotion is not None:
        piece = promotion.upper() if is_white_piece(piece) else promotion.lower()
    grid[to_row][to_col] = piece


def format_grid(grid: Grid) -> str:
    """Plain-text diagram of *grid* with rank and file labels."""
    lines = [
        f"{8 - row_idx} " + " ".join(square or "." for square in row)
        for row_idx, row in enumerate(grid)
    ]
    lines.append("  a b c d e f g h")
    return "\n".join(lines)
