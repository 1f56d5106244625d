"""Grid type aliases and square/coordinate helpers.

Display-grid layout (row 0 is the top rank as seen from White):
    row 0 = rank 8, ..., row 7 = rank 1
    column 0 = file a, ..., column 7 = file h
"""

from __future__ import annotations

from typing import TypeAlias

PieceCode: TypeAlias = str  # "P", "n", ...
Grid: TypeAlias = list[list[PieceCode | None]]

FILES = "abcdefgh"
RANKS = "12345678"
PIECE_CODES = frozenset("PNBRQKpnbrqk")


def square_to_coordinate(square: str) -> tuple[int, int]:
    """Map a square name to ``(column, row)``, e.g. ``'e2'`` → ``(4, 6)``."""
    if len(square) != 2 or square[0] not in FILES or square[1] not in RANKS:
        raise ValueError(f"Invalid square name: {square!r}")
    return FILES.index(square[0]), 8 - int(square[1])


def coordinate_to_square(column: int, row: int) -> str:
    """Inverse of :func:`square_to_coordinate`, e.g. ``(4, 6)`` → ``'e2'``."""
    if not (0 <= column < 8 and 0 <= row < 8):
        raise ValueError(f"Coordinate out of range: {(column, row)!r}")
    return FILES[column] + str(8 - row)


def is_white_piece(code: PieceCode) -> bool:
    return code.isupper()


def empty_grid() -> Grid:
    return [[None] * 8 for _ in range(8)]
