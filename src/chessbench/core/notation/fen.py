"""FEN placement parsing and serialization."""

from __future__ import annotations

from chessbench.core.types import PIECE_CODES, Grid

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


class MalformedPositionError(ValueError):
    """Raised when a FEN placement field cannot be turned into an 8x8 grid."""


def placement_field(fen: str) -> str:
    """Return the piece-placement field of *fen* (or *fen* itself)."""
    parts = fen.split()
    if not parts:
        raise MalformedPositionError(f"Empty FEN: {fen!r}")
    return parts[0]


def side_to_move(fen: str) -> str:
    """Return ``'w'`` or ``'b'``; a FEN without the field defaults to White."""
    parts = fen.split()
    if len(parts) < 2:
        return "w"
    if parts[1] not in ("w", "b"):
        raise MalformedPositionError(f"Invalid FEN side-to-move field: {parts[1]!r}")
    return parts[1]


def parse_placement(fen: str) -> Grid:
    """Parse a FEN (or its placement field) into a display grid.

    Row 0 of the result is rank 8. Each rank must describe exactly eight
    squares; digits ``1``-``8`` expand to empty squares and every other
    character must be a piece letter.
    """
    placement = placement_field(fen)
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise MalformedPositionError(f"Invalid FEN board (must contain 8 ranks): {fen!r}")

    grid: Grid = []
    for rank_text in ranks:
        row: list[str | None] = []
        for ch in rank_text:
            if ch in "12345678":
                row.extend([None] * int(ch))
            elif ch in PIECE_CODES:
                row.append(ch)
            else:
                raise MalformedPositionError(f"Invalid FEN character {ch!r}: {fen!r}")
            if len(row) > 8:
                raise MalformedPositionError(f"Invalid FEN rank width: {fen!r}")
        if len(row) != 8:
            raise MalformedPositionError(f"Invalid FEN rank width: {fen!r}")
        grid.append(row)
    return grid


def placement_from_grid(grid: Grid) -> str:
    """Serialise a display grid back to a FEN placement field."""
    rows: list[str] = []
    for rank in grid:
        empty = 0
        row = ""
        for square in rank:
            if square is None:
                empty += 1
            else:
                if empty:
                    row += str(empty)
                    empty = 0
                row += square
        if empty:
            row += str(empty)
        rows.append(row)
    return "/".join(rows)


def fen_from_grid(grid: Grid, side: str) -> str:
    """Build a FEN from *grid* and *side*.

    Castling, en-passant and move counters are not tracked by the board
    projector, so they are written as ``- - 0 1``.
    """
    return f"{placement_from_grid(grid)} {side} - - 0 1"
